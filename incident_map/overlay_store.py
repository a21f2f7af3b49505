"""Client-local persistence for user-submitted incident reports.

The overlay is one key in a small JSON key-value file; the value is the
serialized list of reports, mirroring how a browser keeps it in local storage.
"""

from __future__ import annotations
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from incident_map.records import normalize_records

logger = logging.getLogger(__name__)

DEFAULT_OVERLAY_KEY = "newReports"

# Streamlit sessions run on threads of one process and share the overlay file.
_APPEND_LOCK = threading.Lock()


class JsonFileStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> Dict[str, Any]:
        try:
            if not self.path.exists():
                return {}
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable store %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(data, ensure_ascii=False))
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class OverlayStore:
    def __init__(self, store: JsonFileStore, key: str = DEFAULT_OVERLAY_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> List[Dict[str, Any]]:
        raw = self.store.get(self.key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Overlay key %r is not valid JSON, treating as empty: %s", self.key, exc)
            return []
        return normalize_records(parsed)

    def append(self, record: Dict[str, Any]) -> bool:
        """Persist `record` after the existing overlay; False if the write failed."""
        with _APPEND_LOCK:
            records = self.load()
            records.append(dict(record))
            try:
                self.store.set(self.key, json.dumps(records, ensure_ascii=False))
            except (OSError, TypeError, ValueError) as exc:
                logger.warning("Failed to persist overlay report %s: %s", record.get("id"), exc)
                return False
        return True
