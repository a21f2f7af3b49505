from __future__ import annotations
import http.client
import json
import logging
from pathlib import Path
from typing import Any, Dict, List
from urllib.error import URLError
from urllib.request import Request, urlopen

from incident_map.overlay_store import OverlayStore
from incident_map.records import normalize_records

logger = logging.getLogger(__name__)

USER_AGENT = "incident-map/0.1 (https://example.com)"
DEFAULT_TIMEOUT = 15.0


def is_url(source: str) -> bool:
    return str(source).lower().startswith(("http://", "https://"))


def read_source(source: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    if is_url(source):
        req = Request(source, headers={"User-Agent": USER_AGENT})
        with urlopen(req, timeout=timeout) as resp:
            return resp.read().decode("utf-8", errors="replace")
    return Path(source).read_text(encoding="utf-8")


def fetch_base_dataset(source: str, timeout: float = DEFAULT_TIMEOUT) -> List[Dict[str, Any]]:
    """Load the read-only base dataset; any failure yields an empty list."""
    try:
        document = json.loads(read_source(source, timeout))
    except (OSError, URLError, http.client.HTTPException, ValueError) as exc:
        logger.warning("Failed to fetch base dataset from %s: %s", source, exc)
        return []
    if not isinstance(document, dict):
        logger.warning("Base dataset at %s is not an object; using empty base", source)
        return []
    return normalize_records(document.get("crimes"))


def assign_overlay_ids(base_count: int, overlay: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # Ids collide if the base grew since the overlay was written; see DESIGN.md.
    return [dict(rec, id=base_count + pos) for pos, rec in enumerate(overlay, start=1)]


def merge(base: List[Dict[str, Any]], overlay: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return list(base) + assign_overlay_ids(len(base), overlay)


def load_all(
    source: str, overlay_store: OverlayStore, timeout: float = DEFAULT_TIMEOUT
) -> List[Dict[str, Any]]:
    base = fetch_base_dataset(source, timeout)
    overlay = overlay_store.load()
    merged = merge(base, overlay)
    logger.info(
        "Loaded %d report(s): %d base, %d overlay", len(merged), len(base), len(overlay)
    )
    return merged
