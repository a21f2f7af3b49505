from __future__ import annotations
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from incident_map.interaction import InteractionModeController
from incident_map.overlay_store import OverlayStore
from incident_map.records import CATEGORIES, STATUS_PENDING, format_timestamp

logger = logging.getLogger(__name__)

TOTAL_STEPS = 3
DEFAULT_CATEGORY = CATEGORIES[0]
DIGITS_RE = re.compile(r"[0-9]+")
DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class ValidationError(ValueError):
    """User-correctable input problem; the message is shown as-is."""


@dataclass
class WizardFormData:
    crime_type: str = DEFAULT_CATEGORY
    national_id: str = ""
    report_details: str = ""
    latitude: str = ""
    longitude: str = ""


@dataclass(frozen=True)
class SubmissionResult:
    record: Dict[str, Any]
    persisted: bool


def is_digits(value: Any) -> bool:
    return isinstance(value, str) and DIGITS_RE.fullmatch(value) is not None


def parse_coordinate(value: Any) -> Optional[float]:
    if isinstance(value, str):
        if DECIMAL_RE.fullmatch(value.strip()) is None:
            return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


class SubmissionWizard:
    """Three-step report form: basic info, details, location.

    Forward moves validate the current step and raise `ValidationError`
    without changing state. A successful `submit` writes the report to the
    overlay and the in-memory collection, then resets and closes the form.
    """

    def __init__(
        self,
        state,
        overlay_store: OverlayStore,
        controller: InteractionModeController,
        clock: Callable[[], datetime] = datetime.now,
        on_submitted: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> None:
        self.state = state
        self.overlay_store = overlay_store
        self.controller = controller
        self.clock = clock
        self.on_submitted = on_submitted
        self.is_open = False
        self.step = 1
        self.form = WizardFormData()

    def open(self) -> None:
        self.is_open = True
        self.step = 1

    def cancel(self) -> None:
        self._reset()
        self.is_open = False

    def next_step(self) -> int:
        if self.step == 1 and not is_digits(self.form.national_id):
            raise ValidationError("Please provide a valid National ID (digits only).")
        if self.step == 2 and not self.form.report_details.strip():
            raise ValidationError("Please provide report details.")
        if self.step < TOTAL_STEPS:
            self.step += 1
        return self.step

    def prev_step(self) -> int:
        if self.step > 1:
            self.step -= 1
        return self.step

    def select_on_map(self) -> None:
        if self.step != TOTAL_STEPS:
            raise ValidationError("Location can only be picked on the last step.")
        self.controller.begin_picking()

    def confirm_location(self) -> bool:
        return self.controller.confirm(self.form)

    def validate(self) -> Dict[str, Any]:
        form = self.form
        fields = (
            form.report_details,
            form.crime_type,
            form.national_id,
            form.latitude,
            form.longitude,
        )
        if not all(str(f).strip() for f in fields):
            raise ValidationError("Please fill in all fields.")
        if form.crime_type not in CATEGORIES:
            raise ValidationError(f"Unknown crime type: {form.crime_type}.")
        lat = parse_coordinate(form.latitude)
        lng = parse_coordinate(form.longitude)
        if lat is None or lng is None:
            raise ValidationError("Latitude and Longitude must be valid numbers.")
        if not is_digits(form.national_id):
            raise ValidationError("National ID must be a number.")
        return {"latitude": lat, "longitude": lng}

    def submit(self) -> SubmissionResult:
        if self.step != TOTAL_STEPS:
            raise ValidationError("Complete all steps before submitting.")
        coords = self.validate()
        record = {
            "id": len(self.state.records) + 1,
            "report_details": self.form.report_details,
            "crime_type": self.form.crime_type,
            "national_id": self.form.national_id,
            "latitude": coords["latitude"],
            "longitude": coords["longitude"],
            "report_status": STATUS_PENDING,
            "report_date_time": format_timestamp(self.clock()),
        }
        persisted = self.overlay_store.append(record)
        if not persisted:
            logger.warning("Report %s kept for this session only", record["id"])
        self.state.records.append(record)
        self.cancel()
        if self.on_submitted is not None:
            self.on_submitted(record)
        return SubmissionResult(record=record, persisted=persisted)

    def _reset(self) -> None:
        self.step = 1
        self.form = WizardFormData()
        self.controller.clear()
