"""Keeps the map's visual markers equal to the derived view.

Every pass tears down all tracked markers and rebuilds one per record. A
surface that has not finished loading gets a single ready callback; later
passes against it only replace the view that callback will render.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from incident_map.map_surface import MapSurface, MarkerHandle, MarkerSpec
from incident_map.records import category_color, is_pending, popup_html, record_location

logger = logging.getLogger(__name__)


def marker_spec(record: Dict[str, Any]) -> MarkerSpec:
    return MarkerSpec(
        color=category_color(record.get("crime_type")),
        pulsing=is_pending(record),
        popup_html=popup_html(record),
    )


class MarkerSynchronizer:
    def __init__(self) -> None:
        self._tracked: List[Tuple[MapSurface, MarkerHandle]] = []
        self._waiting_on: Optional[MapSurface] = None
        self._pending_view: List[Dict[str, Any]] = []

    @property
    def handles(self) -> List[MarkerHandle]:
        return [handle for _, handle in self._tracked]

    @property
    def deferred(self) -> bool:
        return self._waiting_on is not None

    def sync(self, surface: MapSurface, view: Sequence[Dict[str, Any]]) -> bool:
        """Rebuild markers for `view`; returns False when deferred until ready."""
        if not surface.is_ready():
            self._pending_view = list(view)
            if self._waiting_on is not surface:
                self._waiting_on = surface
                surface.on_ready(lambda: self._resume(surface))
                logger.debug("Map not ready, deferring sync of %d report(s)", len(view))
            return False
        if self._waiting_on is surface:
            # A ready pass supersedes whatever the callback would have drawn.
            self._pending_view = list(view)
        self.teardown()
        for record in view:
            location = record_location(record)
            if location is None:
                logger.debug("Skipping report %s without usable coordinates", record.get("id"))
                continue
            handle = surface.add_marker(location, marker_spec(record))
            self._tracked.append((surface, handle))
        return True

    def _resume(self, surface: MapSurface) -> None:
        if self._waiting_on is not surface:
            return
        self._waiting_on = None
        view, self._pending_view = self._pending_view, []
        self.sync(surface, view)

    def teardown(self) -> None:
        while self._tracked:
            surface, handle = self._tracked[-1]
            surface.remove_marker(handle)
            self._tracked.pop()
