"""Event Harvest -- Streamlit UI.

Operator console for uploading event URLs, extracting event details in
batches, reviewing the results, and saving them to the database.
"""

from __future__ import annotations

import json
from typing import Any

import streamlit as st

from src.ui.api_client import (
    check_health,
    clear_all,
    export_csv,
    forward_listing_urls,
    get_listing_urls,
    get_page,
    resolve_listing_urls,
    run_extraction,
    save_checked,
    toggle_all,
    toggle_row,
    upload_csv,
    upload_listing_csv,
)

STATUS_LABELS = {
    "not_started": "Not Started",
    "in_progress": "In Progress",
    "done": "Done Extracting",
    "sent_to_db": "Sent to Database",
    "failed": "Failed",
}

DISPLAY_FIELDS = [
    ("name", "Name"),
    ("start_date", "Start Date"),
    ("end_date", "End Date"),
    ("city", "City"),
    ("state", "State"),
    ("country", "Country"),
    ("event_type", "Event Type"),
    ("topics", "Topics"),
    ("sponsors", "Sponsors"),
    ("hosting_company", "Hosting Company"),
]


def render_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(render_cell(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(page_title="Event Harvest", layout="wide")

with st.sidebar:
    st.title("Event Harvest")
    st.markdown("---")

    page = st.radio(
        "Navigate",
        ["Event URLs", "Listing Pages"],
        label_visibility="collapsed",
    )

    st.markdown("---")
    page_size: int = st.selectbox("Rows per page", options=[25, 50, 100], index=1)

    api_healthy = check_health()
    if api_healthy:
        st.markdown(":green_circle: API connected")
    else:
        st.markdown(":red_circle: API unreachable")

if "page_number" not in st.session_state:
    st.session_state.page_number = 1

# ---------------------------------------------------------------------------
# Page: Event URLs
# ---------------------------------------------------------------------------
if page == "Event URLs":
    st.header("Event URLs")

    uploaded_file = st.file_uploader("Upload a CSV of event URLs", type=["csv"])
    column = st.number_input("URL column (0-based, -1 = first non-empty)", value=1, step=1)
    if st.button("Import", disabled=uploaded_file is None or not api_healthy):
        if uploaded_file is not None:
            result = upload_csv(uploaded_file.getvalue(), uploaded_file.name, int(column))
            if result:
                st.success(f"Imported {result['imported']} URLs ({result['total']} in table).")

    data = get_page(st.session_state.page_number, page_size) if api_healthy else {}
    eligible = data.get("eligible_count", 0)

    cols = st.columns(5)
    if cols[0].button(f"Extract Data ({eligible})", disabled=eligible == 0):
        with st.spinner("Extracting..."):
            result = run_extraction()
        if result:
            st.info(result["message"])
        st.rerun()
    if cols[1].button("Save Checked Rows"):
        result = save_checked()
        if result:
            st.info(result["message"])
        st.rerun()
    if cols[2].button("Uncheck All" if data.get("all_checked") else "Check All"):
        toggle_all()
        st.rerun()
    if cols[3].button("Clear All"):
        clear_all()
        st.session_state.page_number = 1
        st.rerun()
    cols[4].download_button(
        "Export CSV",
        data=export_csv() if data.get("total") else b"",
        file_name="events.csv",
        mime="text/csv",
        disabled=not data.get("total"),
    )

    items = data.get("items", [])
    if not items:
        st.info("No rows yet. Upload a CSV to get started.")
    for visible_index, row in enumerate(items):
        event = row.get("event") or {}
        with st.container(border=True):
            left, right = st.columns([1, 11])
            checked = left.checkbox(
                "Select",
                value=row["checked"],
                # Key changes whenever the server-side checked flag does
                key=f"row-{row['index']}-{row['checked']}",
                label_visibility="collapsed",
            )
            if checked != row["checked"]:
                toggle_row(visible_index, data["page"], data["page_size"])
                st.rerun()
            right.markdown(f"**{STATUS_LABELS[row['status']]}** · {row['url']}")
            if row.get("error"):
                right.error(row["error"])
            elif event:
                right.write(
                    " | ".join(
                        f"{label}: {render_cell(event.get(key))}"
                        for key, label in DISPLAY_FIELDS
                        if event.get(key) is not None
                    )
                )

    page_count = data.get("page_count", 0)
    if page_count > 1:
        prev_col, label_col, next_col = st.columns([1, 2, 1])
        if prev_col.button("Previous", disabled=data["page"] <= 1):
            st.session_state.page_number = data["page"] - 1
            st.rerun()
        label_col.write(f"Page {data['page']} of {page_count}")
        if next_col.button("Next", disabled=data["page"] >= page_count):
            st.session_state.page_number = data["page"] + 1
            st.rerun()

# ---------------------------------------------------------------------------
# Page: Listing Pages
# ---------------------------------------------------------------------------
elif page == "Listing Pages":
    st.header("Listing Pages")
    st.write("Resolve events-directory pages to each event's own site, then copy them over.")

    listing_file = st.file_uploader("Upload a CSV of listing-page URLs", type=["csv"])
    if st.button("Import listing pages", disabled=listing_file is None or not api_healthy):
        if listing_file is not None:
            upload_listing_csv(listing_file.getvalue(), listing_file.name)

    cols = st.columns(2)
    if cols[0].button("Extract URLs"):
        with st.spinner("Resolving..."):
            resolve_listing_urls()
    if cols[1].button("Copy to Event URLs"):
        result = forward_listing_urls()
        if result:
            st.success(f"Copied {result['forwarded']} URLs.")

    listing = get_listing_urls() if api_healthy else {}
    rows = listing.get("items", [])
    if rows:
        st.dataframe(rows, use_container_width=True)
    else:
        st.info("No listing pages uploaded yet.")
