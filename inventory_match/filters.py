"""
Structured product filtering.

An item passes when it satisfies every active predicate: stock, price
range, height range, supplier allow-list, display category, subcategory
allow-list and the keyword expression.

Keyword expressions split on " OR " (any case) into groups; terms inside
a group are separated by whitespace or "+" and a leading "-" negates a
term. Negation is local to its group:

    "red OR blue -small"  ->  (red) OR (blue AND NOT small)
    "rose -bud OR peony -bud"  ->  (rose AND NOT bud) OR (peony AND NOT bud)

A term matches when it appears (case-insensitively) in the item's code,
SKU, description or subcategory.
"""

import re
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import ALL, FilterSpec, ProductItem

logger = logging.getLogger(__name__)

_OR_SPLIT = re.compile(r"\s+OR\s+", re.IGNORECASE)
_TERM_SPLIT = re.compile(r"[\s+]+")

# (term, negated)
KeywordTerm = Tuple[str, bool]


def parse_keywords(query: Optional[str]) -> List[List[KeywordTerm]]:
    """
    Parse a keyword expression into OR-groups of AND-ed terms.

    Returns an empty list for a blank query (no keyword restriction).
    """
    if not query or not query.strip():
        return []

    groups = []
    for raw_group in _OR_SPLIT.split(query):
        terms = []
        for term in _TERM_SPLIT.split(raw_group.strip()):
            if not term:
                continue
            negated = term.startswith("-") and len(term) > 1
            terms.append((term[1:].lower() if negated else term.lower(), negated))
        groups.append(terms)
    return groups


def _matches_term(item: ProductItem, term: str) -> bool:
    return any(
        term in (value or "").lower()
        for value in (item.code, item.sku, item.description, item.sub_category)
    )


def matches_keywords(item: ProductItem, groups: Sequence[Sequence[KeywordTerm]]) -> bool:
    """True if any group has all of its term conditions satisfied."""
    if not groups:
        return True
    return any(
        all(_matches_term(item, term) != negated for term, negated in group)
        for group in groups
    )


def _in_range(value: float, low: Optional[float], high: Optional[float]) -> bool:
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def _is_unrestricted(value: Optional[str]) -> bool:
    return not value or value == ALL


def matches_filters(item: ProductItem,
                    spec: FilterSpec,
                    keyword_groups: Optional[Sequence[Sequence[KeywordTerm]]] = None) -> bool:
    """Check one item against every active predicate of a FilterSpec."""
    if spec.in_stock_only and item.stock <= 0:
        return False

    if not _in_range(item.list_price, spec.min_price, spec.max_price):
        return False

    if not _in_range(item.height, spec.min_height, spec.max_height):
        return False

    if spec.suppliers and ALL not in spec.suppliers:
        if item.supplier not in spec.suppliers:
            return False

    if not _is_unrestricted(spec.category) and item.display_category != spec.category:
        return False

    active_subs = [s for s in (spec.sub_categories or ()) if s]
    if active_subs and item.sub_category not in active_subs:
        return False

    if keyword_groups is None:
        keyword_groups = parse_keywords(spec.keywords)
    return matches_keywords(item, keyword_groups)


def filter_products(items: Iterable[ProductItem], spec: FilterSpec) -> List[ProductItem]:
    """
    Return the items passing every active predicate, in input order.

    Inverted bounds (min > max) are accepted and simply match nothing.
    """
    groups = parse_keywords(spec.keywords)
    results = [item for item in items if matches_filters(item, spec, groups)]
    logger.debug(f"Filter kept {len(results)} items (keywords={spec.keywords!r})")
    return results
