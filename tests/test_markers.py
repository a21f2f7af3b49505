from __future__ import annotations

from incident_map.map_surface import FoliumMapSurface
from incident_map.markers import MarkerSynchronizer, marker_spec
from incident_map.records import FALLBACK_COLOR

VIEW = [
    {"id": 1, "crime_type": "Assault", "latitude": 23.58, "longitude": 58.38, "report_status": "Resolved"},
    {"id": 2, "crime_type": "Theft", "latitude": 23.60, "longitude": 58.42, "report_status": "pending"},
    {"id": 3, "crime_type": "Robbery", "latitude": 23.57, "longitude": 58.40, "report_status": "Pending"},
]


class CountingSurface(FoliumMapSurface):
    def __init__(self) -> None:
        super().__init__()
        self.ready_registrations = 0

    def on_ready(self, callback) -> None:
        self.ready_registrations += 1
        super().on_ready(callback)


def ready_surface() -> FoliumMapSurface:
    surface = FoliumMapSurface()
    surface.mark_ready()
    return surface


def marker_points(surface: FoliumMapSurface):
    return sorted(loc for loc, _ in surface.markers.values())


def test_sync_creates_one_marker_per_record():
    surface = ready_surface()
    sync = MarkerSynchronizer()
    assert sync.sync(surface, VIEW) is True
    assert len(surface.markers) == 3
    assert marker_points(surface) == sorted((r["longitude"], r["latitude"]) for r in VIEW)


def test_sync_twice_is_idempotent():
    surface = ready_surface()
    sync = MarkerSynchronizer()
    sync.sync(surface, VIEW)
    first = marker_points(surface)
    sync.sync(surface, VIEW)
    assert marker_points(surface) == first
    assert len(surface.markers) == len(VIEW)
    assert len(sync.handles) == len(VIEW)


def test_sync_replaces_previous_markers():
    surface = ready_surface()
    sync = MarkerSynchronizer()
    sync.sync(surface, VIEW)
    sync.sync(surface, VIEW[:1])
    assert marker_points(surface) == [(58.38, 23.58)]
    sync.sync(surface, [])
    assert surface.markers == {}


def test_not_ready_surface_defers_until_ready():
    surface = FoliumMapSurface()
    sync = MarkerSynchronizer()
    assert sync.sync(surface, VIEW) is False
    assert surface.markers == {}
    assert sync.deferred is True
    surface.mark_ready()
    assert len(surface.markers) == 3
    assert sync.deferred is False


def test_deferred_syncs_register_once_and_render_latest_view():
    surface = CountingSurface()
    sync = MarkerSynchronizer()
    sync.sync(surface, VIEW)
    sync.sync(surface, VIEW[:2])
    sync.sync(surface, VIEW[:1])
    assert surface.ready_registrations == 1
    surface.mark_ready()
    assert len(surface.markers) == 1


def test_style_reload_defers_again_and_rebuilds():
    surface = CountingSurface()
    surface.mark_ready()
    sync = MarkerSynchronizer()
    sync.sync(surface, VIEW)
    surface.reload_style("OpenStreetMap")
    sync.sync(surface, VIEW[1:])
    assert surface.ready_registrations == 1
    surface.mark_ready()
    assert len(surface.markers) == 2
    assert surface.tiles == "OpenStreetMap"


def test_records_without_coordinates_are_skipped():
    surface = ready_surface()
    rows = VIEW + [{"id": 9, "crime_type": "Theft", "latitude": "abc", "longitude": 58.0}]
    MarkerSynchronizer().sync(surface, rows)
    assert len(surface.markers) == 3


def test_marker_spec_colors_and_pulse():
    assault = marker_spec(VIEW[0])
    assert assault.color == "#FF5733"
    assert assault.pulsing is False
    assert marker_spec(VIEW[1]).pulsing is True
    assert marker_spec({"crime_type": "Arson"}).color == FALLBACK_COLOR


def test_marker_popup_escapes_details():
    spec = marker_spec(dict(VIEW[0], report_details="<script>alert(1)</script>"))
    assert "<script>" not in spec.popup_html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in spec.popup_html
    assert "<strong>Status:</strong> Resolved" in spec.popup_html
