from __future__ import annotations
import html
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

CATEGORIES: Sequence[str] = ("Assault", "Robbery", "Homicide", "Kidnapping", "Theft")

CATEGORY_COLORS: Dict[str, str] = {
    "assault": "#FF5733",
    "robbery": "#33A1FF",
    "homicide": "#C70039",
    "kidnapping": "#FFC300",
    "theft": "#28B463",
}
FALLBACK_COLOR = "#000000"

STATUS_PENDING = "Pending"
TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M"


def category_key(value: Any) -> str:
    return str(value or "").strip().lower()


def category_color(category: Any) -> str:
    key = category_key(category)
    if key in CATEGORY_COLORS:
        return CATEGORY_COLORS[key]
    return FALLBACK_COLOR


def is_pending(record: Dict[str, Any]) -> bool:
    return str(record.get("report_status") or "").strip().lower() == "pending"


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def normalize_record(rec: Dict[str, Any]) -> Dict[str, Any]:
    """Copy a raw record, coercing coordinates to floats when possible.

    Unparseable coordinates are left as they are so the record still shows up
    in counts and search; `record_location` reports it as unplaceable.
    """
    out = dict(rec)
    for key in ("latitude", "longitude"):
        num = to_float(rec.get(key))
        if num is not None:
            out[key] = num
    return out


def normalize_records(raw: Any) -> List[Dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    return [normalize_record(r) for r in raw if isinstance(r, dict)]


def record_location(record: Dict[str, Any]) -> Optional[tuple]:
    """Return (lng, lat) for a record, or None when it cannot be placed."""
    lat = to_float(record.get("latitude"))
    lng = to_float(record.get("longitude"))
    if lat is None or lng is None:
        return None
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lng <= 180.0:
        return None
    return (lng, lat)


def _display(value: Any) -> str:
    return "" if value is None else str(value)


def popup_html(record: Dict[str, Any]) -> str:
    # Every value is user-controlled display text.
    rows = [
        ("Type", record.get("crime_type")),
        ("Date", record.get("report_date_time")),
        ("Status", record.get("report_status")),
        ("Details", record.get("report_details")),
    ]
    body = "<br />".join(
        f"<strong>{label}:</strong> {html.escape(_display(value))}"
        for label, value in rows
    )
    return f'<div style="font-size: 14px; color: black;">{body}</div>'
