"""Map surface contract and the folium-backed surface used by the app.

A surface holds visual markers by handle, tells whether its style has
finished loading, and delivers one-shot ready callbacks and click events.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import folium

MarkerHandle = int
LngLat = Tuple[float, float]
ReadyCallback = Callable[[], None]
ClickCallback = Callable[[float, float], None]

BLINK_CSS = """
<style>
@keyframes incident-blink { 0% { opacity: 1; } 50% { opacity: 0; } 100% { opacity: 1; } }
.incident-marker.pulse { animation: incident-blink 1s infinite; }
</style>
"""


@dataclass(frozen=True)
class MarkerSpec:
    color: str
    pulsing: bool = False
    popup_html: Optional[str] = None
    border_color: Optional[str] = None
    size: int = 20


class MapSurface(Protocol):
    def add_marker(self, lnglat: LngLat, spec: MarkerSpec) -> MarkerHandle:  # pragma: no cover - interface
        ...

    def remove_marker(self, handle: MarkerHandle) -> None:  # pragma: no cover - interface
        ...

    def on_ready(self, callback: ReadyCallback) -> None:  # pragma: no cover - interface
        ...

    def on_click(self, callback: ClickCallback) -> None:  # pragma: no cover - interface
        ...

    def is_ready(self) -> bool:  # pragma: no cover - interface
        ...


class FoliumMapSurface:
    """In-memory marker table rendered to a folium map on every script run.

    The surface starts not ready. The app calls `mark_ready` only once the
    browser component has reported its map bounds (see `component_rendered`);
    the value `st_folium` returns before that is a placeholder.
    """

    def __init__(
        self,
        center: Tuple[float, float] = (23.5859, 58.4059),
        zoom: int = 12,
        tiles: str = "CartoDB dark_matter",
    ) -> None:
        self.center = center
        self.zoom = zoom
        self.tiles = tiles
        self.markers: Dict[MarkerHandle, Tuple[LngLat, MarkerSpec]] = {}
        self._next_handle = 1
        self._ready = False
        self._ready_callbacks: List[ReadyCallback] = []
        self._click_callbacks: List[ClickCallback] = []
        self._last_click: Optional[LngLat] = None

    def add_marker(self, lnglat: LngLat, spec: MarkerSpec) -> MarkerHandle:
        handle = self._next_handle
        self._next_handle += 1
        self.markers[handle] = ((float(lnglat[0]), float(lnglat[1])), spec)
        return handle

    def remove_marker(self, handle: MarkerHandle) -> None:
        self.markers.pop(handle, None)

    def on_ready(self, callback: ReadyCallback) -> None:
        self._ready_callbacks.append(callback)

    def on_click(self, callback: ClickCallback) -> None:
        if callback not in self._click_callbacks:
            self._click_callbacks.append(callback)

    def is_ready(self) -> bool:
        return self._ready

    def mark_ready(self) -> int:
        """Flip to ready and fire pending ready callbacks once; returns how many fired."""
        if self._ready:
            return 0
        self._ready = True
        callbacks, self._ready_callbacks = self._ready_callbacks, []
        for cb in callbacks:
            cb()
        return len(callbacks)

    def reload_style(self, tiles: Optional[str] = None) -> None:
        if tiles:
            self.tiles = tiles
        self._ready = False

    def dispatch_click(self, lng: float, lat: float) -> None:
        for cb in list(self._click_callbacks):
            cb(lng, lat)

    def report_click(self, payload: Any) -> bool:
        """Feed a component click payload ({"lat", "lng"}); repeats are ignored."""
        if not isinstance(payload, dict):
            return False
        try:
            point = (float(payload["lng"]), float(payload["lat"]))
        except (KeyError, TypeError, ValueError):
            return False
        if point == self._last_click:
            return False
        self._last_click = point
        self.dispatch_click(*point)
        return True

    def build_map(self) -> folium.Map:
        m = folium.Map(location=list(self.center), zoom_start=self.zoom, tiles=self.tiles)
        m.get_root().header.add_child(folium.Element(BLINK_CSS))
        layer = folium.FeatureGroup(name="Reports").add_to(m)
        for (lng, lat), spec in self.markers.values():
            folium_marker(lng, lat, spec).add_to(layer)
        return m


def component_rendered(output: Any) -> bool:
    """True once `st_folium` output carries bounds reported by the browser map."""
    if not isinstance(output, dict):
        return False
    bounds = output.get("bounds")
    if not isinstance(bounds, dict):
        return False
    corner = bounds.get("_southWest")
    return isinstance(corner, dict) and corner.get("lat") is not None


def marker_icon_html(spec: MarkerSpec) -> str:
    classes = "incident-marker pulse" if spec.pulsing else "incident-marker"
    border = f"border: 3px solid {spec.border_color};" if spec.border_color else ""
    return (
        f'<div class="{classes}" style="width: {spec.size}px; height: {spec.size}px; '
        f"background-color: {spec.color}; border-radius: 50%; cursor: pointer; {border}\"></div>"
    )


def folium_marker(lng: float, lat: float, spec: MarkerSpec) -> folium.Marker:
    half = spec.size // 2
    icon = folium.DivIcon(
        html=marker_icon_html(spec),
        icon_size=(spec.size, spec.size),
        icon_anchor=(half, half),
    )
    popup = folium.Popup(spec.popup_html, max_width=300) if spec.popup_html else None
    return folium.Marker(location=[lat, lng], icon=icon, popup=popup)
