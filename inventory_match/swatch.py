"""
Swatch color from a product photo.

A manual-classification aid for when a product's color text cannot be
mapped to a cluster color: average the center of the photo and snap it
to the nearest cluster bucket. Only `MatchEngine.cluster_color` reaches
it, and only when the caller hands over a photo.
"""

import os
import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from .colors import closest_cluster_for_rgb

logger = logging.getLogger(__name__)

DEFAULT_PATCH_SIZE = int(os.environ.get("SWATCH_PATCH_SIZE", "200"))

_TO_RGB = {1: cv2.COLOR_GRAY2RGB, 4: cv2.COLOR_RGBA2RGB}


def _channels(image_np: np.ndarray) -> int:
    return 1 if image_np.ndim == 2 else image_np.shape[2]


def as_rgb8(image_np: np.ndarray) -> np.ndarray:
    """Gray, RGB or RGBA photo (uint8, or float scaled 0-1) as uint8 RGB."""
    if image_np.dtype == np.uint8:
        pixels = image_np
    else:
        scale = 255.0 if float(image_np.max()) <= 1.0 else 1.0
        pixels = np.clip(image_np * scale, 0, 255).astype(np.uint8)

    code = _TO_RGB.get(_channels(pixels))
    return cv2.cvtColor(pixels, code) if code is not None else pixels


def center_crop(image_np: np.ndarray, patch_size: int = None) -> np.ndarray:
    """Square crop of at most patch_size pixels around the image center."""
    side = min(patch_size or DEFAULT_PATCH_SIZE, *image_np.shape[:2])
    top = (image_np.shape[0] - side) // 2
    left = (image_np.shape[1] - side) // 2
    return image_np[top:top + side, left:left + side]


def average_rgb(image_np: np.ndarray, patch_size: int = None) -> Optional[Tuple[int, int, int]]:
    """
    Mean RGB of the center patch of an image.

    Args:
        image_np: Gray, RGB or RGBA image (uint8, or float in 0-1).
        patch_size: Side of the center patch in pixels.

    Returns:
        (r, g, b) rounded to ints, or None for an empty image.
    """
    if image_np is None or image_np.size == 0:
        return None

    patch = center_crop(as_rgb8(image_np), patch_size)
    if patch.size == 0:
        return None

    r, g, b, _ = cv2.mean(patch)
    return int(round(r)), int(round(g)), int(round(b))


def classify_swatch(image_np: np.ndarray, patch_size: int = None) -> str:
    """Nearest cluster color for a photo, or "" when none can be computed."""
    try:
        rgb = average_rgb(image_np, patch_size)
    except cv2.error as e:
        logger.warning(f"Swatch color extraction failed: {e}")
        return ""
    return closest_cluster_for_rgb(rgb)
