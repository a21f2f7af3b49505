from __future__ import annotations
import os
from pathlib import Path
from typing import Optional

import streamlit as st
from streamlit.errors import StreamlitAPIException

StreamlitSecretNotFoundError = StreamlitAPIException


def get_secret(key: str, default: Optional[str] = None) -> Optional[str]:
    env_value = os.getenv(key)
    if env_value is not None:
        return env_value
    try:
        secrets_obj = dict(st.secrets)  # type: ignore[arg-type]
    except (StreamlitSecretNotFoundError, FileNotFoundError):
        secrets_obj = {}
    value = secrets_obj.get(key, default)
    return str(value) if value is not None else None


def get_float(key: str, default: float) -> float:
    raw = get_secret(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


DATA_SOURCE = get_secret("INCIDENT_DATA_SOURCE", "data/data.json")
OVERLAY_PATH = Path(get_secret("INCIDENT_OVERLAY_PATH", "data/overlay_store.json"))
OVERLAY_KEY = get_secret("INCIDENT_OVERLAY_KEY", "newReports")
MAP_CENTER = (
    get_float("INCIDENT_MAP_CENTER_LAT", 23.5859),
    get_float("INCIDENT_MAP_CENTER_LNG", 58.4059),
)
MAP_ZOOM = int(get_float("INCIDENT_MAP_ZOOM", 12))
MAP_TILES = get_secret("INCIDENT_MAP_TILES", "CartoDB dark_matter")
FETCH_TIMEOUT = get_float("INCIDENT_FETCH_TIMEOUT", 15.0)
