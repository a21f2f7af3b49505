from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from incident_map.dataset import DEFAULT_TIMEOUT, load_all, merge
from incident_map.interaction import InteractionModeController
from incident_map.map_surface import MapSurface
from incident_map.markers import MarkerSynchronizer
from incident_map.overlay_store import OverlayStore
from incident_map.records import category_key
from incident_map.search import default_filters, derive
from incident_map.wizard import SubmissionWizard


@dataclass
class AppState:
    records: List[Dict[str, Any]] = field(default_factory=list)
    filters: Dict[str, bool] = field(default_factory=default_filters)
    search_term: str = ""

    def derived_view(self) -> List[Dict[str, Any]]:
        return derive(self.records, self.filters, self.search_term)


class IncidentMapSession:
    """Owns the state of one client and re-renders markers on every change."""

    def __init__(
        self,
        surface: MapSurface,
        overlay_store: OverlayStore,
        data_source: str,
        fetch_timeout: float = DEFAULT_TIMEOUT,
        state: Optional[AppState] = None,
    ) -> None:
        self.surface = surface
        self.overlay_store = overlay_store
        self.data_source = data_source
        self.fetch_timeout = fetch_timeout
        self.state = state or AppState()
        self.synchronizer = MarkerSynchronizer()
        self.controller = InteractionModeController(surface)
        self.wizard = SubmissionWizard(
            self.state,
            overlay_store,
            self.controller,
            on_submitted=lambda _record: self.refresh(),
        )
        self.view: List[Dict[str, Any]] = []

    def load(self, base: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
        """Build the merged collection once; `base` skips the fetch when already cached."""
        if base is None:
            self.state.records = load_all(self.data_source, self.overlay_store, self.fetch_timeout)
        else:
            self.state.records = merge(base, self.overlay_store.load())
        return self.refresh()

    def set_filter(self, category: str, enabled: bool) -> List[Dict[str, Any]]:
        self.state.filters[category_key(category)] = bool(enabled)
        return self.refresh()

    def toggle_category(self, category: str) -> List[Dict[str, Any]]:
        key = category_key(category)
        return self.set_filter(key, not self.state.filters.get(key, False))

    def set_search(self, term: str) -> List[Dict[str, Any]]:
        self.state.search_term = term or ""
        return self.refresh()

    def refresh(self) -> List[Dict[str, Any]]:
        self.view = self.state.derived_view()
        self.synchronizer.sync(self.surface, self.view)
        return self.view

    @property
    def showing(self) -> str:
        return f"Showing {len(self.view)} of {len(self.state.records)} crime reports"
