"""Data types shared by the filter and match pipelines."""

import re
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Sequence

__all__ = [
    "ALL",
    "RAW_TO_DISPLAY_MAP",
    "display_category",
    "parse_currency",
    "ProductItem",
    "ScoredProductItem",
    "FilterSpec",
    "VisionAnalysisResult",
]

# Supplier/category value meaning "no restriction"
ALL = "ALL"

# Raw export category (upper-cased) -> display category
RAW_TO_DISPLAY_MAP = {
    "ARTIFICIAL FLOWER ARRANGEMENTS": "Arrangements",
    "ARTIFICIAL FLOWERS": "Flowers",
    "ARTIFICIAL PLANTER PLANTS": "Plants",
    "ARTIFICIAL PLANTS": "Greenery",
    "ARTIFICIAL TREES": "Trees",
    "HANGING BASKET": "Baskets",
    "PERIPHERAL": "Peripheral",
}

_CURRENCY_JUNK = re.compile(r"[^0-9.\-]+")


def display_category(raw: Optional[str]) -> str:
    """Map a raw export category to its display name (unknowns pass through)."""
    clean = str(raw or "").strip()
    return RAW_TO_DISPLAY_MAP.get(clean.upper(), clean)


def parse_currency(value: Any) -> float:
    """
    Parse a price-like value such as "$1,200.50" into a float.

    Numbers pass through unchanged; anything unparsable becomes 0.0.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if not value:
        return 0.0
    try:
        return float(_CURRENCY_JUNK.sub("", str(value)))
    except ValueError:
        return 0.0


def _first(record: Mapping[str, Any], *keys: str, default: Any = "") -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return default


@dataclass(frozen=True)
class ProductItem:
    """
    One catalog entry, already normalized by the ingestion layer.

    Stock may be negative during transient edits; only Stock > 0 counts
    as in stock.
    """

    id: int
    code: str = ""
    sku: str = ""
    description: str = ""
    category: str = ""
    display_category: str = ""
    sub_category: str = ""
    color: str = ""
    cluster_color: str = ""
    supplier: str = ""
    list_price: float = 0.0
    stock: int = 0
    height: float = 0.0

    @classmethod
    def from_record(cls, record: Mapping[str, Any], identity: int) -> "ProductItem":
        """
        Build an item from a normalized record.

        Accepts both the export column names (SU, SubCat, HL, Cluster) and
        the datastore names (supplier, nSubCategory, Height, ClusterColor).
        """
        raw_category = str(_first(record, "nCategory", "Category")).strip()
        return cls(
            id=identity,
            code=str(_first(record, "Code")),
            sku=str(_first(record, "SKU")),
            description=str(_first(record, "Description")),
            category=raw_category,
            display_category=str(
                _first(record, "displayCategory", default=display_category(raw_category))
            ),
            sub_category=str(_first(record, "nSubCategory", "SubCategory", "SubCat")).strip(),
            color=str(_first(record, "Color")),
            cluster_color=str(_first(record, "ClusterColor", "Cluster")),
            supplier=str(_first(record, "SU", "supplier", "Supplier")),
            list_price=parse_currency(_first(record, "ListPrice", default=0)),
            stock=int(parse_currency(_first(record, "Stock", default=0))),
            height=parse_currency(_first(record, "HL", "Height", default=0)),
        )


@dataclass(frozen=True)
class ScoredProductItem(ProductItem):
    """A ProductItem carrying AI match scores. Never persisted."""

    name_score: int = 0
    color_score: int = 0
    match_score: int = 0
    match_reason: str = ""

    @classmethod
    def from_item(cls, item: ProductItem, name_score: int, color_score: int) -> "ScoredProductItem":
        total = name_score + color_score
        base = {f.name: getattr(item, f.name) for f in fields(ProductItem)}
        return cls(
            **base,
            name_score=name_score,
            color_score=color_score,
            match_score=total,
            match_reason=f"Total: {total}% (Name: {name_score}%, Color: {color_score}%)",
        )


@dataclass(frozen=True)
class FilterSpec:
    """
    Caller-supplied filter criteria.

    A bound left as None imposes no restriction on that side; it is never
    treated as zero. An allow-list left as None or empty admits everything.
    """

    keywords: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_height: Optional[float] = None
    max_height: Optional[float] = None
    suppliers: Optional[Sequence[str]] = None
    category: Optional[str] = None
    sub_categories: Optional[Sequence[str]] = None
    in_stock_only: bool = False


@dataclass(frozen=True)
class VisionAnalysisResult:
    """Best-guess item name and dominant color from the vision service."""

    simple_name: str
    color: str = ""
