"""
Product match engine.

Orchestrates the AI match pipeline:
    1. Resolve the detected color to RGB
    2. Expand the detected name into its synonym family
    3. Pre-filter by AI category, price ceiling and name/term match
    4. Score name and color per candidate, normalizing color distance
       against the farthest known color in the batch
    5. Drop noise, rank and cap the result list

Also exposes the structured filter path and taxonomy lookups behind one
facade so callers hold a single object.
"""

import os
import logging
from typing import Iterable, List, Optional, Sequence, Union

from .colors import closest_cluster_color, color_distance, resolve_color
from .filters import filter_products
from .models import FilterSpec, ProductItem, ScoredProductItem, VisionAnalysisResult
from .scoring import (
    compute_color_score, compute_name_score, max_known_distance, rank_results, round_score,
)
from .swatch import classify_swatch
from .taxonomy import TaxonomyResolver, TaxonomySnapshot

logger = logging.getLogger(__name__)

# Display categories eligible for camera-driven matching
AI_CATEGORIES = tuple(
    c.strip() for c in os.environ.get("AI_CATEGORIES", "Flowers,Greenery").split(",") if c.strip()
)
AI_MAX_PRICE = float(os.environ.get("AI_MAX_PRICE", "30"))
AI_MIN_MATCH_SCORE = int(os.environ.get("AI_MIN_MATCH_SCORE", "10"))
AI_MAX_RESULTS = int(os.environ.get("AI_MAX_RESULTS", "50"))

Taxonomy = Union[TaxonomyResolver, TaxonomySnapshot]


def _snapshot_of(taxonomy: Taxonomy) -> TaxonomySnapshot:
    if isinstance(taxonomy, TaxonomyResolver):
        return taxonomy.snapshot
    return taxonomy


def _is_candidate(item: ProductItem,
                  simple_name: str,
                  terms: Sequence[str],
                  is_fallback: bool,
                  categories: Sequence[str],
                  max_price: float) -> bool:
    if item.display_category not in categories:
        return False
    if item.list_price > max_price:
        return False

    sub = (item.sub_category or "").lower()
    if is_fallback:
        return sub == simple_name.lower()

    desc = (item.description or "").lower()
    return any(t.lower() in desc or t.lower() in sub for t in terms)


def rank_matches(items: Iterable[ProductItem],
                 analysis: VisionAnalysisResult,
                 taxonomy: Taxonomy,
                 categories: Sequence[str] = None,
                 max_price: float = None,
                 min_score: int = None,
                 limit: int = None) -> List[ScoredProductItem]:
    """
    Rank catalog items against one vision-analysis result.

    Args:
        items: Full product collection (not modified).
        analysis: Detected name and color from the vision service.
        taxonomy: Resolver or snapshot used for synonym expansion.
        categories: Eligible display categories (defaults to AI_CATEGORIES).
        max_price: Inclusive list price ceiling (defaults to AI_MAX_PRICE).
        min_score: Results must score strictly above this
            (defaults to AI_MIN_MATCH_SCORE).
        limit: Maximum results returned (defaults to AI_MAX_RESULTS).

    Returns:
        Scored copies of the matching items, best first. Empty when no
        candidate survives the pre-filter.

    Raises:
        ValueError: analysis is missing.
    """
    if analysis is None:
        raise ValueError("rank_matches requires a vision analysis result")

    categories = AI_CATEGORIES if categories is None else categories
    max_price = AI_MAX_PRICE if max_price is None else max_price
    min_score = AI_MIN_MATCH_SCORE if min_score is None else min_score
    limit = AI_MAX_RESULTS if limit is None else limit

    snapshot = _snapshot_of(taxonomy)
    simple_name = (analysis.simple_name or "").strip()

    # Step 1-2: Resolve color and search terms
    ai_rgb = resolve_color(analysis.color)
    terms = snapshot.expand_term(simple_name)
    is_fallback = snapshot.is_fallback(simple_name)

    # Step 3: Pre-filter
    candidates = [
        item for item in items
        if _is_candidate(item, simple_name, terms, is_fallback, categories, max_price)
    ]
    if not candidates:
        logger.info(f"No AI candidates for {simple_name!r} ({len(terms)} terms)")
        return []

    # Step 4: Raw name scores and color distances
    raw = []
    for item in candidates:
        name_score = compute_name_score(item.sub_category, terms, is_fallback)
        item_rgb = resolve_color(item.color)
        distance = (
            color_distance(ai_rgb, item_rgb)
            if ai_rgb is not None and item_rgb is not None else None
        )
        raw.append((item, name_score, distance))

    # Step 5-7: Normalize color against the farthest known color
    max_distance = max_known_distance(d for _, _, d in raw)
    scored = []
    for item, name_score, distance in raw:
        color_score = compute_color_score(distance, max_distance)
        result = ScoredProductItem.from_item(item, round_score(name_score), round_score(color_score))
        if result.match_score > min_score:
            scored.append(result)

    # Step 8-9: Rank and trim
    results = rank_results(scored)[:limit]

    logger.info(
        f"AI match for {simple_name!r}/{analysis.color!r}: "
        f"{len(candidates)} candidates → {len(results)} results"
    )
    return results


def ai_context_subcategories(items: Iterable[ProductItem], categories: Sequence[str] = None) -> List[str]:
    """Distinct subcategories in the AI categories, sorted, for the vision prompt."""
    categories = AI_CATEGORIES if categories is None else categories
    return sorted({
        item.sub_category for item in items
        if item.display_category in categories and item.sub_category
    })


def available_prices(results: Iterable[ProductItem]) -> List[float]:
    """Distinct list prices present in a result set, ascending."""
    return sorted({item.list_price for item in results})


def refine_results(results: Sequence[ScoredProductItem],
                   price: Optional[float] = None,
                   sort_by: Optional[str] = None,
                   descending: bool = False) -> List[ScoredProductItem]:
    """
    Narrow and re-sort ranked results for display.

    Args:
        results: Output of rank_matches.
        price: Keep only items at exactly this list price.
        sort_by: "price" or "color"; None keeps the ranked order.
        descending: Reverse the chosen sort.

    Raises:
        ValueError: Unknown sort_by value.
    """
    refined = [r for r in results if price is None or r.list_price == price]
    if sort_by is None:
        return refined
    if sort_by == "price":
        return sorted(refined, key=lambda r: r.list_price, reverse=descending)
    if sort_by == "color":
        return sorted(refined, key=lambda r: (r.color or "").strip().lower(), reverse=descending)
    raise ValueError(f"Unknown sort key: {sort_by!r}")


class MatchEngine:
    """
    Facade over filtering, AI matching and taxonomy lookups.

    Holds a TaxonomyResolver; each call reads the resolver's current
    snapshot once, so a concurrent reload never affects a call in flight.
    """

    def __init__(self, taxonomy: Optional[TaxonomyResolver] = None):
        self.taxonomy = taxonomy or TaxonomyResolver()

    def filter(self, items: Iterable[ProductItem], spec: FilterSpec) -> List[ProductItem]:
        return filter_products(items, spec)

    def rank(self, items: Iterable[ProductItem], analysis: VisionAnalysisResult,
             **kwargs) -> List[ScoredProductItem]:
        return rank_matches(items, analysis, self.taxonomy.snapshot, **kwargs)

    def find_code(self, category: str, sub_category: str) -> str:
        return self.taxonomy.find_code(category, sub_category)

    def ai_vocabulary(self) -> List[str]:
        return self.taxonomy.snapshot.ai_vocabulary

    def fallback_categories(self) -> List[str]:
        return list(self.taxonomy.snapshot.fallback_categories)

    def context_subcategories(self, items: Iterable[ProductItem]) -> List[str]:
        return ai_context_subcategories(items)

    def cluster_color(self, color_text: Optional[str], image=None) -> str:
        """
        Cluster bucket for a product color.

        The color text decides when it resolves. A photo is only consulted
        when the text does not resolve and the caller supplied one.
        """
        cluster = closest_cluster_color(color_text)
        if not cluster and image is not None:
            cluster = classify_swatch(image)
            if cluster:
                logger.info(f"Color {color_text!r} classified from swatch as {cluster}")
        return cluster
