from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from incident_map.map_surface import MapSurface, MarkerHandle, MarkerSpec

logger = logging.getLogger(__name__)

PICK_MARKER = MarkerSpec(color="white", border_color="red")


class InteractionMode(str, Enum):
    NORMAL = "normal"
    PICKING = "picking"


@dataclass(frozen=True)
class PickedPoint:
    lng: float
    lat: float


def format_coordinate(value: float) -> str:
    return f"{value:.6f}"


class InteractionModeController:
    """Switches the map between browsing and picking a report location.

    Clicks only count while picking; each one moves the single transient pick
    marker. Confirming copies the point into the wizard form and returns to
    browsing but leaves the marker in place until `clear` is called.
    """

    def __init__(self, surface: MapSurface) -> None:
        self.surface = surface
        self.mode = InteractionMode.NORMAL
        self.picked_point: Optional[PickedPoint] = None
        self._pick_handle: Optional[MarkerHandle] = None
        surface.on_click(self.handle_click)

    @property
    def is_picking(self) -> bool:
        return self.mode is InteractionMode.PICKING

    @property
    def can_confirm(self) -> bool:
        return self.is_picking and self.picked_point is not None

    def begin_picking(self) -> None:
        self.mode = InteractionMode.PICKING

    def handle_click(self, lng: float, lat: float) -> bool:
        if not self.is_picking:
            return False
        self._remove_pick_marker()
        self._pick_handle = self.surface.add_marker((lng, lat), PICK_MARKER)
        self.picked_point = PickedPoint(lng=lng, lat=lat)
        logger.debug("Picked location lng=%s lat=%s", lng, lat)
        return True

    def confirm(self, form) -> bool:
        """Copy the picked point into `form` as 6-decimal strings."""
        if not self.can_confirm:
            return False
        point = self.picked_point
        form.latitude = format_coordinate(point.lat)
        form.longitude = format_coordinate(point.lng)
        self.picked_point = None
        self.mode = InteractionMode.NORMAL
        return True

    def clear(self) -> None:
        self._remove_pick_marker()
        self.picked_point = None
        self.mode = InteractionMode.NORMAL

    def _remove_pick_marker(self) -> None:
        if self._pick_handle is not None:
            self.surface.remove_marker(self._pick_handle)
            self._pick_handle = None
