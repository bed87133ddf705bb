"""
Color-name resolution and perceptual distance.

Maps loose free-text color descriptions ("Dk Pink/Cream", "dusty pink")
onto a fixed RGB palette, and measures similarity as Euclidean distance
in RGB space. Cluster colors are the coarse buckets products are filed
under; every cluster name is itself a palette key.

Resolution order:
    1. Exact palette key
    2. First separator-delimited token that is a palette key
    3. First palette key (in PALETTE order) contained in the text
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

# Ordered on purpose: the substring scan walks this list front to back,
# so "pink" wins over "dark pink" for "dark pinkish".
PALETTE: Tuple[Tuple[str, RGB], ...] = (
    # Reds / Pinks
    ("red", (255, 0, 0)),
    ("burgundy", (128, 0, 32)),
    ("beauty", (199, 21, 133)),
    ("pink", (255, 192, 203)),
    ("dark pink", (231, 84, 128)),
    ("dk pink", (231, 84, 128)),
    ("hot pink", (255, 105, 180)),
    ("rose", (255, 0, 127)),
    ("mauve", (224, 176, 255)),
    ("lavender", (230, 230, 250)),
    ("purple", (128, 0, 128)),
    ("lilac", (200, 162, 200)),
    ("dusty pink", (216, 167, 177)),
    # Yellows / Oranges
    ("yellow", (255, 255, 0)),
    ("gold", (255, 215, 0)),
    ("orange", (255, 165, 0)),
    ("peach", (255, 218, 185)),
    ("apricot", (251, 206, 177)),
    ("champagne", (247, 231, 206)),
    # Whites / Creams
    ("white", (255, 255, 255)),
    ("cream", (255, 253, 208)),
    ("ivory", (255, 255, 240)),
    ("vanilla", (243, 229, 171)),
    # Greens
    ("green", (0, 128, 0)),
    ("dark green", (0, 100, 0)),
    ("grey green", (94, 113, 106)),
    ("lime", (50, 205, 50)),
    ("olive", (128, 128, 0)),
    ("sage", (188, 184, 138)),
    ("variegated", (144, 238, 144)),
    # Blues
    ("blue", (0, 0, 255)),
    ("navy", (0, 0, 128)),
    # Neutrals
    ("black", (0, 0, 0)),
    ("grey", (128, 128, 128)),
    ("silver", (192, 192, 192)),
    ("brown", (165, 42, 42)),
    ("chocolate", (123, 63, 0)),
    ("rust", (183, 65, 14)),
    ("natural", (139, 69, 19)),
    ("mixed", (128, 128, 128)),
)

_PALETTE_MAP = dict(PALETTE)

CLUSTER_COLORS: Tuple[str, ...] = (
    "White", "Green", "Variegated", "Red", "Burgundy", "Pink", "Ivory", "Peach",
    "Cream", "Dusty Pink", "Grey Green", "Blue", "Orange", "Purple", "Natural",
    "Grey", "Dark Green", "Yellow", "Black", "Mauve", "Lilac", "Mixed", "Beauty",
)

# Strictly above the RGB cube diagonal, sqrt(3 * 255^2) ~= 441.7
UNKNOWN_DISTANCE = 442.0

_SEPARATORS = re.compile(r"[/\s,&]+")


def palette_names() -> List[str]:
    """Palette keys in resolution order."""
    return [name for name, _ in PALETTE]


def resolve_color(color_text: Optional[str]) -> Optional[RGB]:
    """
    Resolve free-text color to an RGB triple.

    Args:
        color_text: Any color description, e.g. "Dk Pink/Cream".

    Returns:
        (r, g, b) tuple, or None when no palette color is recognized.
    """
    if not color_text:
        return None

    clean = color_text.strip().lower()
    if not clean:
        return None

    if clean in _PALETTE_MAP:
        return _PALETTE_MAP[clean]

    for part in _SEPARATORS.split(clean):
        if part in _PALETTE_MAP:
            return _PALETTE_MAP[part]

    for name, rgb in PALETTE:
        if name in clean:
            return rgb

    logger.debug(f"Unresolved color text: {color_text!r}")
    return None


def color_distance(rgb_a: Optional[Sequence[int]], rgb_b: Optional[Sequence[int]]) -> float:
    """Euclidean RGB distance; UNKNOWN_DISTANCE if either side is unresolved."""
    if rgb_a is None or rgb_b is None:
        return UNKNOWN_DISTANCE
    diff = np.asarray(rgb_a, dtype=np.float64) - np.asarray(rgb_b, dtype=np.float64)
    return float(np.linalg.norm(diff))


_CLUSTER_RGB = np.array([resolve_color(name) for name in CLUSTER_COLORS], dtype=np.float64)


def closest_cluster_for_rgb(rgb: Optional[Sequence[int]]) -> str:
    """Nearest cluster color to an RGB triple; first listed wins exact ties."""
    if rgb is None:
        return ""
    distances = np.linalg.norm(_CLUSTER_RGB - np.asarray(rgb, dtype=np.float64), axis=1)
    return CLUSTER_COLORS[int(np.argmin(distances))]


def closest_cluster_color(color_text: Optional[str]) -> str:
    """
    Classify free-text color into a cluster bucket.

    Returns an empty string when the text cannot be resolved; the caller
    should then ask for manual classification.
    """
    return closest_cluster_for_rgb(resolve_color(color_text))
