"""Streamlit operator dashboard for EventStay."""

from __future__ import annotations

import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
import requests
import streamlit as st

from eventstay.utils.config import get_settings

# ==========================================
# Configuration & Constants
# ==========================================
API_BASE_URL = get_settings().dashboard_api_base_url.rstrip("/")
PARTICIPANT_COLUMNS = [
    "last_name",
    "first_name",
    "role",
    "city",
    "arrival_date",
    "departure_date",
    "room_name",
    "has_paid",
    "checked_in",
]

st.set_page_config(
    page_title="EventStay Dashboard",
    page_icon="🏕️",
    layout="wide",
)

# ==========================================
# API Helper Functions
# ==========================================
def _headers() -> Dict[str, str]:
    token = st.session_state.get("access_token")
    return {"Authorization": f"Bearer {token}"} if token else {}


def _error_detail(response: Optional[requests.Response]) -> str:
    if response is None:
        return "no response"
    try:
        detail = response.json().get("detail")
    except ValueError:
        return response.text
    if isinstance(detail, dict):
        return str(detail.get("message", detail))
    return str(detail)


def api_get(path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
    try:
        response = requests.get(
            f"{API_BASE_URL}{path}",
            params=params,
            headers=_headers(),
            timeout=10,
        )
        response.raise_for_status()
        return response.json()
    except requests.exceptions.HTTPError as e:
        st.error(f"Request failed: {_error_detail(e.response)}")
        return None
    except requests.exceptions.RequestException as e:
        st.error(f"Backend connection failed: {e}")
        return None


def api_send(method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Optional[Any]:
    try:
        response = requests.request(
            method,
            f"{API_BASE_URL}{path}",
            json=payload,
            headers=_headers(),
            timeout=10,
        )
        response.raise_for_status()
        return response.json() if response.content else {}
    except requests.exceptions.HTTPError as e:
        st.error(f"Request failed: {_error_detail(e.response)}")
        return None
    except requests.exceptions.RequestException as e:
        st.error(f"Backend connection failed: {e}")
        return None


def login(admin_token: str) -> bool:
    try:
        response = requests.post(
            f"{API_BASE_URL}/login",
            json={"admin_token": admin_token},
            timeout=5,
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        st.sidebar.error(f"Login failed: {e}")
        return False
    st.session_state["access_token"] = response.json()["access_token"]
    return True


def participants_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    frame = pd.DataFrame(rows)
    if frame.empty:
        return frame
    return frame[[column for column in PARTICIPANT_COLUMNS if column in frame.columns]]


# ==========================================
# UI Page Functions
# ==========================================
def render_overview_page(event: Dict[str, Any]) -> None:
    st.header(f"📊 {event['name']}")
    st.caption(f"{event['location']} · {event['start_date']} to {event['end_date']}")

    stats = api_get(f"/events/{event['event_id']}/statistics")
    if not stats:
        return
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Participants", stats["total_participants"])
    col2.metric("Checked in", stats["checked_in"])
    col3.metric("Paid", stats["paid"], delta=f"-{stats['unpaid']} open", delta_color="off")
    col4.metric("Beds used", f"{stats['occupied_beds']} / {stats['total_beds']}")

    col_a, col_b = st.columns(2)
    with col_a:
        st.subheader("Cities")
        cities = api_get(f"/events/{event['event_id']}/statistics/cities")
        if cities:
            st.bar_chart(pd.DataFrame(cities).set_index("label")["count"])
    with col_b:
        st.subheader("Countries")
        countries = api_get(f"/events/{event['event_id']}/statistics/countries")
        if countries:
            st.dataframe(pd.DataFrame(countries), use_container_width=True)


def render_participants_page(event: Dict[str, Any]) -> None:
    st.header("🧑‍🤝‍🧑 Participants")
    event_id = event["event_id"]

    search = st.text_input("Search by name or city")
    rows = api_get(f"/events/{event_id}/participants", params={"search": search or None})
    if rows is not None:
        st.dataframe(participants_frame(rows), use_container_width=True)

    with st.expander("Import CSV / Excel"):
        upload = st.file_uploader("Participant list", type=["csv", "xlsx"])
        mode = st.radio("Mode", ["add", "replace"], horizontal=True)
        if upload is not None and st.button("Import", type="primary"):
            try:
                response = requests.post(
                    f"{API_BASE_URL}/events/{event_id}/participants/import",
                    params={"mode": mode},
                    files={"file": (upload.name, upload.getvalue())},
                    headers=_headers(),
                    timeout=30,
                )
                response.raise_for_status()
            except requests.exceptions.RequestException as e:
                st.error(f"Import failed: {e}")
            else:
                result = response.json()
                st.success(f"{result['added']} added, {result['skipped']} skipped")
                for message in result["errors"]:
                    st.warning(message)


def render_rooms_page(event: Dict[str, Any]) -> None:
    st.header("🛏️ Rooms")
    event_id = event["event_id"]

    occupancy = api_get(f"/events/{event_id}/rooms/occupancy")
    if occupancy:
        st.dataframe(pd.DataFrame(occupancy), use_container_width=True)

    st.subheader("Assign a room")
    participants = api_get(f"/events/{event_id}/participants") or []
    if not participants:
        st.info("No participants registered yet.")
        return
    labels = {
        f"{item['last_name']}, {item['first_name']} (#{item['participant_id']})": item
        for item in participants
    }
    chosen = labels[st.selectbox("Participant", list(labels))]
    options = api_get(f"/participants/{chosen['participant_id']}/room-options") or []
    if not options:
        return

    frame = pd.DataFrame(
        [
            {
                "room": option["name"],
                "capacity": option["capacity"],
                "overlapping": option["availability"]["overlapping_count"],
                "free beds": option["availability"]["free_slots"],
                "has space": option["availability"]["has_space"],
                "current": option["is_current_room"],
            }
            for option in options
        ]
    )
    st.dataframe(frame, use_container_width=True)

    open_rooms = {
        option["name"]: option["room_id"]
        for option in options
        if option["availability"]["has_space"] or option["is_current_room"]
    }
    if open_rooms:
        target = st.selectbox("Room", list(open_rooms))
        if st.button("Assign", type="primary"):
            result = api_send(
                "PUT",
                f"/participants/{chosen['participant_id']}/room",
                {"room_id": open_rooms[target]},
            )
            if result:
                st.success(f"{result['full_name']} now sleeps in {result['room_name']}")
    else:
        st.warning("No room has a free bed for this stay.")


def render_report_page(event: Dict[str, Any]) -> None:
    st.header("📅 Daily Report")
    start = datetime.date.fromisoformat(event["start_date"])
    end = datetime.date.fromisoformat(event["end_date"])
    today = datetime.date.today()
    day = st.date_input(
        "Date",
        today if start <= today <= end else start,
        min_value=start,
        max_value=end,
    )
    report = api_get(f"/events/{event['event_id']}/report", params={"date": str(day)})
    if not report:
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Present", len(report["present"]))
    col2.metric("Arrivals", len(report["arrivals"]))
    col3.metric("Departures", len(report["departures"]))

    for room in report["rooms"]:
        names = ", ".join(item["full_name"] for item in room["occupants"]) or "-"
        st.write(f"**{room['name']}** ({len(room['occupants'])}/{room['capacity']}): {names}")


def render_finance_page(event: Dict[str, Any]) -> None:
    st.header("💶 Finances")
    finance = api_get(f"/events/{event['event_id']}/finance")
    if not finance:
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Collected", f"{finance['total_amount']:.2f} €")
    col2.metric("Paid", f"{finance['percentage_paid']:.1f}%")
    col3.metric("Partially paid", finance["partially_paid"])

    st.subheader("By payment method")
    st.bar_chart(pd.Series(finance["amount_by_method"]))

    st.subheader("Open payments")
    st.dataframe(participants_frame(finance["unpaid_participants"]), use_container_width=True)


# ==========================================
# Main App Router
# ==========================================
def main() -> None:
    st.sidebar.title("EventStay")
    st.sidebar.markdown("---")

    if "access_token" not in st.session_state:
        admin_token = st.sidebar.text_input("Admin token", type="password")
        if st.sidebar.button("Login") and admin_token and login(admin_token):
            st.sidebar.success("Logged in")

    events = api_get("/events") or []
    if not events:
        st.info("No events available. Log in or create an event through the API.")
        return
    by_label = {f"{item['name']} ({item['year']})": item for item in events}
    event = by_label[st.sidebar.selectbox("Event", list(by_label))]

    page = st.sidebar.radio(
        "Navigation",
        ["Overview", "Participants", "Rooms", "Daily Report", "Finances"],
    )
    st.sidebar.markdown("---")
    st.sidebar.caption(f"API: {API_BASE_URL}")

    if page == "Overview":
        render_overview_page(event)
    elif page == "Participants":
        render_participants_page(event)
    elif page == "Rooms":
        render_rooms_page(event)
    elif page == "Daily Report":
        render_report_page(event)
    elif page == "Finances":
        render_finance_page(event)


if __name__ == "__main__":
    main()
