from __future__ import annotations
from typing import Any, Dict, List, Optional

import streamlit as st
from streamlit_folium import st_folium

from incident_map.dataset import fetch_base_dataset
from incident_map.map_surface import FoliumMapSurface, component_rendered
from incident_map.overlay_store import JsonFileStore, OverlayStore
from incident_map.records import CATEGORIES, CATEGORY_COLORS, category_key
from incident_map.session import IncidentMapSession
from incident_map.settings import (
    DATA_SOURCE,
    FETCH_TIMEOUT,
    MAP_CENTER,
    MAP_TILES,
    MAP_ZOOM,
    OVERLAY_KEY,
    OVERLAY_PATH,
)
from incident_map.wizard import TOTAL_STEPS, ValidationError

APP_TITLE = "Crime Reporting System"
SESSION_KEY = "incident_session"
FLASH_KEY = "flash"
FORM_GEN_KEY = "wizard_generation"

STEP_TITLES = {
    1: "Step 1: Basic Info",
    2: "Step 2: Report Details",
    3: "Step 3: Location",
}


@st.cache_data(show_spinner=False)
def load_base(source: str, timeout: float) -> List[Dict[str, Any]]:
    return fetch_base_dataset(source, timeout)


def get_session() -> IncidentMapSession:
    session: Optional[IncidentMapSession] = st.session_state.get(SESSION_KEY)
    if session is None:
        surface = FoliumMapSurface(center=MAP_CENTER, zoom=MAP_ZOOM, tiles=MAP_TILES)
        store = OverlayStore(JsonFileStore(OVERLAY_PATH), OVERLAY_KEY or "newReports")
        session = IncidentMapSession(surface, store, DATA_SOURCE or "", FETCH_TIMEOUT)
        session.load(base=load_base(session.data_source, FETCH_TIMEOUT))
        if not session.state.records:
            st.warning("No crime reports could be loaded. The map will start empty.")
        st.session_state[SESSION_KEY] = session
    return session


def flash(kind: str, message: str) -> None:
    st.session_state[FLASH_KEY] = (kind, message)


def show_flash() -> None:
    entry = st.session_state.pop(FLASH_KEY, None)
    if not entry:
        return
    kind, message = entry
    if kind == "success":
        st.success(message, icon="✅")
    elif kind == "warning":
        st.warning(message)
    else:
        st.error(message)


def form_key(name: str) -> str:
    return f"wizard_{st.session_state.get(FORM_GEN_KEY, 0)}_{name}"


def new_form_generation() -> None:
    st.session_state[FORM_GEN_KEY] = st.session_state.get(FORM_GEN_KEY, 0) + 1


def render_filters(session: IncidentMapSession) -> None:
    state = session.state
    st.sidebar.header("Search")
    term = st.sidebar.text_input(
        "Search crimes...", value=state.search_term, key="search_term"
    )
    if term != state.search_term:
        session.set_search(term)

    st.sidebar.header("Filter")
    for category in CATEGORIES:
        key = category_key(category)
        enabled = st.sidebar.checkbox(
            category, value=state.filters.get(key, True), key=f"filter_{key}"
        )
        if enabled != state.filters.get(key, True):
            session.set_filter(key, enabled)


def render_legend() -> None:
    chips = " ".join(
        f'<span style="margin-left: 10px;"><span style="display: inline-block; width: 10px; '
        f'height: 10px; background-color: {color}; border-radius: 50%; margin-right: 5px;"></span>'
        f"{key.title()}</span>"
        for key, color in CATEGORY_COLORS.items()
    )
    st.markdown(
        f'<div style="text-align: center;"><strong>Types:</strong>{chips}</div>',
        unsafe_allow_html=True,
    )


def render_progress(step: int) -> None:
    cols = st.columns(TOTAL_STEPS)
    for idx, col in enumerate(cols, start=1):
        marker = "🔵" if step >= idx else "⚪"
        col.markdown(f"<div style='text-align: center;'>{marker} {idx}</div>", unsafe_allow_html=True)


def bound_field(name: str, current: str) -> str:
    key = form_key(name)
    st.session_state.setdefault(key, current)
    return key


def render_step_fields(session: IncidentMapSession) -> None:
    wizard = session.wizard
    form = wizard.form
    st.markdown(f"#### {STEP_TITLES[wizard.step]}")
    if wizard.step == 1:
        crime_type = form.crime_type if form.crime_type in CATEGORIES else CATEGORIES[0]
        form.crime_type = st.selectbox(
            "Crime Type", CATEGORIES, key=bound_field("crime_type", crime_type)
        )
        form.national_id = st.text_input(
            "National ID",
            placeholder="e.g. 123456789",
            key=bound_field("national_id", form.national_id),
        ).strip()
    elif wizard.step == 2:
        form.report_details = st.text_area(
            "Report Details",
            placeholder="Describe the incident...",
            height=100,
            key=bound_field("report_details", form.report_details),
        )
    else:
        pick_col, hint_col = st.columns([1, 2])
        with pick_col:
            if st.button("Select on Map", type="primary", key="select_on_map"):
                wizard.select_on_map()
                st.rerun()
        hint_col.caption("(Click anywhere on the map)")
        form.latitude = st.text_input("Latitude", key=bound_field("latitude", form.latitude))
        form.longitude = st.text_input(
            "Longitude", key=bound_field("longitude", form.longitude)
        )



def render_wizard(session: IncidentMapSession) -> None:
    wizard = session.wizard
    with st.container(border=True):
        title_col, close_col = st.columns([8, 1])
        title_col.subheader("Report a crime")
        if close_col.button("×", key="close_wizard", help="Close without submitting"):
            wizard.cancel()
            new_form_generation()
            st.rerun()
        render_progress(wizard.step)
        render_step_fields(session)

        prev_col, next_col = st.columns(2)
        try:
            if wizard.step > 1 and prev_col.button("Previous", width="stretch"):
                wizard.prev_step()
                st.rerun()
            if wizard.step < TOTAL_STEPS and next_col.button(
                "Next", type="primary", width="stretch"
            ):
                wizard.next_step()
                st.rerun()
            if wizard.step == TOTAL_STEPS and next_col.button(
                "Submit", type="primary", width="stretch"
            ):
                result = wizard.submit()
                new_form_generation()
                if result.persisted:
                    flash("success", f"Saved report {result.record['id']}.")
                else:
                    flash(
                        "warning",
                        f"Report {result.record['id']} is shown for this session but could not be saved locally.",
                    )
                st.rerun()
        except ValidationError as exc:
            st.error(str(exc))


def render_location_confirm(session: IncidentMapSession) -> None:
    controller = session.controller
    st.info("Click the map to choose the report location.")
    if st.button(
        "Confirm Location",
        type="primary",
        disabled=not controller.can_confirm,
        key="confirm_location",
    ):
        if session.wizard.confirm_location():
            form = session.wizard.form
            st.session_state[form_key("latitude")] = form.latitude
            st.session_state[form_key("longitude")] = form.longitude
            st.rerun()


def render_map(session: IncidentMapSession) -> None:
    surface = session.surface
    output = st_folium(
        surface.build_map(),
        height=700,
        use_container_width=True,
        key="incident_map",
        returned_objects=["last_clicked", "bounds"],
    )
    if not isinstance(output, dict):
        return
    if component_rendered(output) and surface.mark_ready():
        st.rerun()
    if surface.report_click(output.get("last_clicked")) and session.controller.is_picking:
        st.rerun()


def main() -> None:
    session = get_session()
    wizard = session.wizard

    header_col, action_col = st.columns([5, 1])
    header_col.title(APP_TITLE)
    with action_col:
        if st.button("Report Crime", type="primary", width="stretch"):
            wizard.open()
            st.rerun()

    show_flash()
    render_filters(session)

    if wizard.is_open:
        if session.controller.is_picking:
            render_location_confirm(session)
        else:
            render_wizard(session)

    render_map(session)
    st.markdown(
        f"<div style='text-align: center;'>{session.showing}</div>", unsafe_allow_html=True
    )
    render_legend()
