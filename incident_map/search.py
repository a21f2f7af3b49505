from __future__ import annotations
from collections import Counter
from typing import Any, Dict, Iterable, List

from incident_map.records import CATEGORIES, category_key


def default_filters() -> Dict[str, bool]:
    return {category_key(c): True for c in CATEGORIES}


def _field_text(record: Dict[str, Any], key: str) -> str:
    value = record.get(key)
    if value is None:
        return ""
    return str(value).lower()


def matches_search(record: Dict[str, Any], term: str) -> bool:
    if not term:
        return True
    term = term.lower()
    haystacks = (
        _field_text(record, "crime_type"),
        _field_text(record, "national_id"),
        _field_text(record, "report_date_time"),
        _field_text(record, "report_details"),
    )
    return any(term in h for h in haystacks if h)


def passes_filters(record: Dict[str, Any], filters: Dict[str, bool]) -> bool:
    return bool(filters.get(category_key(record.get("crime_type")), False))


def derive(
    records: Iterable[Dict[str, Any]], filters: Dict[str, bool], search_term: str = ""
) -> List[Dict[str, Any]]:
    """Records passing the category toggles and the search term, in input order."""
    return [
        r for r in records if passes_filters(r, filters) and matches_search(r, search_term)
    ]


def count_by_category(records: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    counts = Counter(category_key(r.get("crime_type")) or "unknown" for r in records)
    return dict(counts)
