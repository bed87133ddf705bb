"""
Synonym families and category code lookup.

Two feeds are loaded into an immutable TaxonomySnapshot:
    - the synonym feed (CatCode, Category, SubCategory, Singular, Synonyms)
      which groups interchangeable search terms into families that all
      resolve to one canonical SubCategory
    - the code feed (Code, Category, SubCategory) which assigns each
      (category, subcategory) pair a zero-padded 3-digit code

Feed columns are identified by ordered rules evaluated once per load.
A feed missing a required column is rejected as a whole; the previous
snapshot stays live.

TaxonomyResolver owns the current snapshot and replaces it with a fully
built successor on every load, so readers never see a half-filled map.
"""

import math
import os
import re
import logging
import threading
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .feeds import read_feed

logger = logging.getLogger(__name__)

FALLBACK_CATEGORIES: Tuple[str, ...] = (
    "Other Greenery", "Other Leaf", "Other Spray", "Other Flower",
)

DEFAULT_SYNONYM_FEED = os.environ.get("TAXONOMY_SYNONYM_FEED", "")
DEFAULT_CODE_FEED = os.environ.get("TAXONOMY_CODE_FEED", "")

_ARTIFICIAL_PREFIX = re.compile(r"^ARTIFICIAL\s+", re.IGNORECASE)
_SYNONYM_SPLIT = re.compile(r"[,/]+")


class TaxonomyFeedError(ValueError):
    """A taxonomy feed is structurally unusable (required columns missing)."""


@dataclass(frozen=True)
class SynonymRecord:
    cat_code: str
    category: str
    sub_category: str
    singular: str = ""
    synonyms: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CatalogCodeRecord:
    code: str
    category: str
    sub_category: str


# ---------------------------------------------------------------------------
# Column identification
# ---------------------------------------------------------------------------

ColumnRule = Callable[[str], bool]


def _normalize_header(header: str) -> str:
    return re.sub(r"[\s_]+", "", str(header)).lower()


def exact(name: str) -> ColumnRule:
    return lambda h: h == name


def contains(part: str, excluding: Sequence[str] = (), not_prefix: Optional[str] = None) -> ColumnRule:
    def rule(h: str) -> bool:
        if part not in h or any(x in h for x in excluding):
            return False
        return not (not_prefix and h.startswith(not_prefix))
    return rule


# Role -> rules, tried in order. Exact "category" is preferred so a
# prefixed "nCategory" column in the code feed is never picked by accident.
CODE_FEED_COLUMNS: Dict[str, Tuple[ColumnRule, ...]] = {
    "code": (exact("code"), contains("code")),
    "category": (exact("category"), contains("category", excluding=("sub",), not_prefix="n")),
    "sub_category": (exact("subcategory"), contains("sub")),
}
CODE_FEED_REQUIRED = ("code", "category", "sub_category")

SYNONYM_FEED_COLUMNS: Dict[str, Tuple[ColumnRule, ...]] = {
    "sub_category": (exact("nsubcategory"), exact("subcategory"), contains("subcat")),
    "category": (exact("ncategory"), exact("category"), contains("category", excluding=("sub",))),
    "cat_code": (exact("catcode"), contains("code")),
    "singular": (exact("singular"), contains("singular")),
    "synonyms": (exact("synonyms"), contains("synonym")),
}
SYNONYM_FEED_REQUIRED = ("sub_category",)


def resolve_columns(headers: Sequence[str],
                    rules: Mapping[str, Sequence[ColumnRule]],
                    required: Sequence[str]) -> Dict[str, str]:
    """
    Map column roles to actual header names.

    Roles are resolved in the order given; each rule is tried against all
    headers before falling through to the next rule. A header claimed by
    one role is not offered to later roles.

    Raises:
        TaxonomyFeedError: A required role matched no header.
    """
    normalized = [(h, _normalize_header(h)) for h in headers]
    mapping: Dict[str, str] = {}
    claimed = set()

    for role, role_rules in rules.items():
        for rule in role_rules:
            match = next((h for h, n in normalized if h not in claimed and rule(n)), None)
            if match is not None:
                mapping[role] = match
                claimed.add(match)
                break

    missing = [role for role in required if role not in mapping]
    if missing:
        raise TaxonomyFeedError(
            f"Missing required columns {missing}; headers were {list(headers)}"
        )
    return mapping


def _cell(row: Mapping[str, Any], column: Optional[str]) -> str:
    if column is None:
        return ""
    value = row.get(column)
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def parse_synonym_rows(rows: Iterable[Mapping[str, Any]], headers: Sequence[str]) -> List[SynonymRecord]:
    """Turn synonym feed rows into records, skipping rows without a SubCategory."""
    columns = resolve_columns(headers, SYNONYM_FEED_COLUMNS, SYNONYM_FEED_REQUIRED)
    records = []
    for row in rows:
        sub_category = _cell(row, columns["sub_category"])
        if not sub_category:
            continue
        synonyms = _cell(row, columns.get("synonyms"))
        records.append(SynonymRecord(
            cat_code=_cell(row, columns.get("cat_code")),
            category=_cell(row, columns.get("category")),
            sub_category=sub_category,
            singular=_cell(row, columns.get("singular")),
            synonyms=tuple(s.strip() for s in _SYNONYM_SPLIT.split(synonyms) if s.strip()),
        ))
    return records


def normalize_code(raw: str) -> str:
    """Zero-pad numeric codes to 3 digits; other codes are kept as-is."""
    code = raw.strip()
    return code.zfill(3) if code.isdigit() else code


def parse_code_rows(rows: Iterable[Mapping[str, Any]], headers: Sequence[str]) -> List[CatalogCodeRecord]:
    """Turn code feed rows into records, skipping incomplete rows."""
    columns = resolve_columns(headers, CODE_FEED_COLUMNS, CODE_FEED_REQUIRED)
    logger.debug(
        f"Code feed columns: code={columns['code']!r}, "
        f"category={columns['category']!r}, subcategory={columns['sub_category']!r}"
    )
    records = []
    for row in rows:
        code = _cell(row, columns["code"])
        category = _cell(row, columns["category"])
        sub_category = _cell(row, columns["sub_category"])
        if not (code and category and sub_category):
            continue
        records.append(CatalogCodeRecord(
            code=normalize_code(code),
            category=_ARTIFICIAL_PREFIX.sub("", category).strip(),
            sub_category=sub_category,
        ))
    return records


def _append_unique(target: List[str], seen: set, term: str) -> None:
    key = term.lower()
    if term and key not in seen:
        seen.add(key)
        target.append(term)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

def _frozen_map() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class TaxonomySnapshot:
    """
    Read-only lookup tables built from one load of each feed.

    Attributes:
        records: Synonym records that were accepted (fallbacks excluded).
        term_map: lowercase term -> canonical SubCategory.
        family_map: lowercase canonical SubCategory -> all its aliases.
        specific_terms: Singular and synonym terms across all records.
        fallback_categories: Catch-all labels matched only exactly.
        cat_code_map: "category|subcategory" (lowercase) -> code.
        category_catalog: Sorted categories from the code feed.
        subcategory_catalog: Category -> sorted subcategories.
    """

    records: Tuple[SynonymRecord, ...] = ()
    term_map: Mapping[str, str] = field(default_factory=_frozen_map)
    family_map: Mapping[str, Tuple[str, ...]] = field(default_factory=_frozen_map)
    specific_terms: Tuple[str, ...] = ()
    fallback_categories: Tuple[str, ...] = FALLBACK_CATEGORIES
    cat_code_map: Mapping[str, str] = field(default_factory=_frozen_map)
    category_catalog: Tuple[str, ...] = ()
    subcategory_catalog: Mapping[str, Tuple[str, ...]] = field(default_factory=_frozen_map)

    def with_synonyms(self, records: Iterable[SynonymRecord]) -> "TaxonomySnapshot":
        """New snapshot with the synonym tables rebuilt from records."""
        fallbacks = {f.lower() for f in self.fallback_categories}
        kept: List[SynonymRecord] = []
        term_map: Dict[str, str] = {}
        families: Dict[str, Tuple[List[str], set]] = {}
        specific: List[str] = []
        specific_seen: set = set()

        for record in records:
            canonical = record.sub_category.strip()
            if not canonical or canonical.lower() in fallbacks:
                continue
            kept.append(record)

            members, seen = families.setdefault(canonical.lower(), ([], set()))
            _append_unique(members, seen, canonical)
            term_map[canonical.lower()] = canonical

            for term in (record.singular, *record.synonyms):
                term = term.strip()
                if not term:
                    continue
                term_map[term.lower()] = canonical
                _append_unique(members, seen, term)
                _append_unique(specific, specific_seen, term)

        logger.info(
            f"Synonym snapshot: {len(kept)} records, {len(term_map)} terms, "
            f"{len(families)} families"
        )
        return replace(
            self,
            records=tuple(kept),
            term_map=MappingProxyType(term_map),
            family_map=MappingProxyType({k: tuple(v[0]) for k, v in families.items()}),
            specific_terms=tuple(specific),
        )

    def with_codes(self, records: Iterable[CatalogCodeRecord]) -> "TaxonomySnapshot":
        """New snapshot with the code tables rebuilt from records."""
        code_map: Dict[str, str] = {}
        by_category: Dict[str, set] = {}

        for record in records:
            key = f"{record.category.lower()}|{record.sub_category.lower()}"
            code_map[key] = record.code
            by_category.setdefault(record.category, set()).add(record.sub_category)

        logger.info(f"Code snapshot: {len(code_map)} codes, {len(by_category)} categories")
        return replace(
            self,
            cat_code_map=MappingProxyType(code_map),
            category_catalog=tuple(sorted(by_category)),
            subcategory_catalog=MappingProxyType(
                {cat: tuple(sorted(subs)) for cat, subs in by_category.items()}
            ),
        )

    @property
    def ai_vocabulary(self) -> List[str]:
        """Specific terms offered to the vision service as its vocabulary."""
        return list(self.specific_terms)

    def is_fallback(self, text: Optional[str]) -> bool:
        clean = (text or "").strip().lower()
        return any(f.lower() == clean for f in self.fallback_categories)

    def expand_term(self, text: Optional[str]) -> List[str]:
        """
        Expand a term to its full synonym family.

        Fallback categories and unknown terms come back unexpanded as a
        one-element list; blank input gives an empty list.
        """
        clean = (text or "").strip()
        if not clean:
            return []
        if self.is_fallback(clean):
            return [clean]

        canonical = self.term_map.get(clean.lower())
        if canonical:
            family = self.family_map.get(canonical.lower())
            if family:
                return list(family)
        return [clean]

    def find_code(self, category: str, sub_category: str) -> str:
        """3-digit code for a (category, subcategory) pair, or "" if unknown."""
        key = f"{(category or '').strip().lower()}|{(sub_category or '').strip().lower()}"
        code = self.cat_code_map.get(key)
        if code is None:
            logger.warning(
                f"CatCode not found for Category={category!r}, "
                f"SubCategory={sub_category!r} (key {key!r})"
            )
            return ""
        return code

    def list_categories(self) -> List[str]:
        return list(self.category_catalog)

    def list_subcategories(self, category: str) -> List[str]:
        clean = (category or "").strip()
        if clean in self.subcategory_catalog:
            return list(self.subcategory_catalog[clean])
        for name, subs in self.subcategory_catalog.items():
            if name.lower() == clean.lower():
                return list(subs)
        return []


# ---------------------------------------------------------------------------
# Resolver (load-once, read-many holder)
# ---------------------------------------------------------------------------

class TaxonomyResolver:
    """
    Holds the live TaxonomySnapshot and swaps in rebuilt ones on load.

    Loads are serialized by a lock; readers take `snapshot` without
    locking and keep using whatever snapshot they grabbed.
    """

    def __init__(self,
                 snapshot: Optional[TaxonomySnapshot] = None,
                 synonym_source: Optional[str] = None,
                 code_source: Optional[str] = None):
        self._snapshot = snapshot or TaxonomySnapshot()
        self._lock = threading.Lock()
        self.synonym_source = synonym_source or DEFAULT_SYNONYM_FEED
        self.code_source = code_source or DEFAULT_CODE_FEED

    @property
    def snapshot(self) -> TaxonomySnapshot:
        return self._snapshot

    def load_synonym_rows(self, rows: Iterable[Mapping[str, Any]], headers: Sequence[str]) -> bool:
        """Rebuild synonym tables from in-memory rows. Returns False if rejected."""
        try:
            records = parse_synonym_rows(rows, headers)
        except TaxonomyFeedError as e:
            logger.error(f"Synonym feed rejected: {e}")
            return False
        with self._lock:
            self._snapshot = self._snapshot.with_synonyms(records)
        return True

    def load_code_rows(self, rows: Iterable[Mapping[str, Any]], headers: Sequence[str]) -> bool:
        """Rebuild code tables from in-memory rows. Returns False if rejected."""
        try:
            records = parse_code_rows(rows, headers)
        except TaxonomyFeedError as e:
            logger.error(f"CatCode feed rejected: {e}")
            return False
        with self._lock:
            self._snapshot = self._snapshot.with_codes(records)
        return True

    def load_synonyms(self, source: Optional[str] = None) -> bool:
        source = source or self.synonym_source
        try:
            rows, headers = read_feed(source)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read synonym feed {source!r}: {e}")
            return False
        return self.load_synonym_rows(rows, headers)

    def load_codes(self, source: Optional[str] = None) -> bool:
        source = source or self.code_source
        try:
            rows, headers = read_feed(source)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read CatCode feed {source!r}: {e}")
            return False
        return self.load_code_rows(rows, headers)

    def refresh(self) -> bool:
        """Reload both feeds from their configured sources."""
        synonyms_ok = self.load_synonyms()
        codes_ok = self.load_codes()
        return synonyms_ok and codes_ok

    # Convenience passthroughs to the live snapshot

    def expand_term(self, text: str) -> List[str]:
        return self._snapshot.expand_term(text)

    def is_fallback(self, text: str) -> bool:
        return self._snapshot.is_fallback(text)

    def find_code(self, category: str, sub_category: str) -> str:
        return self._snapshot.find_code(category, sub_category)

    def list_categories(self) -> List[str]:
        return self._snapshot.list_categories()

    def list_subcategories(self, category: str) -> List[str]:
        return self._snapshot.list_subcategories(category)
