"""
Name/color match scoring for AI-suggested products.

A candidate's match score is the sum of two parts:
    - name score: all-or-nothing, NAME_WEIGHT when the detected name (or
      one of its synonyms) matches the candidate's subcategory
    - color score: up to COLOR_WEIGHT, scaled by how close the candidate's
      color is relative to the farthest known color in the same batch

Color distances are normalized per batch rather than against the RGB
cube, so the closest-colored candidate always gets the full weight and
the farthest gets nothing.
"""

import os
import math
import logging
from typing import Iterable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

NAME_WEIGHT = float(os.environ.get("AI_NAME_WEIGHT", "60"))
COLOR_WEIGHT = float(os.environ.get("AI_COLOR_WEIGHT", "40"))

T = TypeVar("T")


def round_score(value: float) -> int:
    """Round half up (2.5 -> 3), matching how scores are shown to staff."""
    return int(math.floor(value + 0.5))


def compute_name_score(sub_category: str,
                       terms: Sequence[str],
                       is_fallback: bool,
                       weight: float = None) -> float:
    """
    Binary name relevance.

    Args:
        sub_category: Candidate's subcategory.
        terms: Expanded synonym family of the detected name.
        is_fallback: Detected name is a catch-all category; candidates
            reaching scoring already matched it exactly.
        weight: Score awarded on a match (defaults to NAME_WEIGHT).

    Returns:
        weight or 0.0, never anything in between.
    """
    weight = NAME_WEIGHT if weight is None else weight
    if is_fallback:
        return weight

    sub = (sub_category or "").lower()
    if any(t.lower() in sub for t in terms if t):
        return weight
    return 0.0


def max_known_distance(distances: Iterable[Optional[float]]) -> float:
    """Largest known distance (None entries ignored); 0.0 if none are known."""
    known = [d for d in distances if d is not None]
    return max(known) if known else 0.0


def compute_color_score(distance: Optional[float],
                        max_distance: float,
                        weight: float = None) -> float:
    """
    Relative color similarity.

    Args:
        distance: RGB distance to the detected color, or None if either
            color was unresolved.
        max_distance: Largest known distance in the batch.
        weight: Score for an exact color match (defaults to COLOR_WEIGHT).

    Returns:
        weight - (distance / max_distance) * weight; weight for an exact
        match even when max_distance is 0; 0.0 for an unknown distance.
    """
    weight = COLOR_WEIGHT if weight is None else weight
    if distance is None:
        return 0.0
    if distance == 0:
        return weight
    if max_distance > 0:
        return max(0.0, weight - (distance / max_distance) * weight)
    return 0.0


def rank_results(results: List[T]) -> List[T]:
    """
    Sort scored items by name score (desc), color score (desc), then
    list price (asc). Items must expose name_score, color_score and
    list_price attributes.
    """
    return sorted(
        results,
        key=lambda x: (-x.name_score, -x.color_score, x.list_price)
    )
