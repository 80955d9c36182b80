"""
app.py
Streamlit Gym Members front-end over MemberStore.
Run: streamlit run app.py
"""

from __future__ import annotations

from datetime import date, timedelta

import streamlit as st

import db
import utils
from member_store import MemberStore
from models import STATUS_ACTIVE, STATUS_EXPIRED, Member

STATUS_OPTIONS = [STATUS_ACTIVE, STATUS_EXPIRED]


@st.cache_resource
def get_store(db_path: str) -> MemberStore:
    return MemberStore(db.Database(db_path))


def init_once() -> MemberStore:
    db.configure_logging()
    return get_store(str(db.get_db_path()))


def status_options(current: str | None = None) -> list[str]:
    # status is free-form; keep a stored label selectable so saving doesn't overwrite it
    if current and current not in STATUS_OPTIONS:
        return STATUS_OPTIONS + [current]
    return list(STATUS_OPTIONS)


def show_failure(result) -> None:
    st.error(result.message or "Operation failed.")


def dashboard_page(store: MemberStore):
    st.header("📊 Dashboard")

    c1, c2, c3 = st.columns(3)
    c1.metric("Total members", store.total_members().value)
    c2.metric("Active", store.active_members().value)
    c3.metric("Expired", store.expired_members().value)


def member_form(store: MemberStore, existing: Member | None = None):
    if existing:
        st.subheader(f"✏️ Edit Member (ID: {existing.id})")
    else:
        st.subheader("➕ Add Member")

    key = f"edit_{existing.id}" if existing else "add"
    col1, col2, col3 = st.columns(3)
    with col1:
        name = st.text_input("Name", value=(existing.name if existing else ""), key=f"{key}_name")
        phone = st.text_input("Phone", value=(existing.phone if existing else ""), key=f"{key}_phone")
        plan_type = st.text_input("Plan type", value=(existing.plan_type if existing else "Monthly"), key=f"{key}_plan")

    with col2:
        start_date = st.date_input(
            "Start date", value=(existing.start_date if existing else date.today()), key=f"{key}_start"
        )
        end_date = st.date_input(
            "End date", value=(existing.end_date if existing else date.today() + timedelta(days=30)), key=f"{key}_end"
        )

    with col3:
        options = status_options(existing.status if existing else None)
        status = st.selectbox(
            "Status",
            options=options,
            index=(options.index(existing.status) if existing else 0),
            key=f"{key}_status",
        )
        membership_count = st.number_input(
            "Membership count", min_value=0, step=1,
            value=(existing.membership_count if existing else 1), key=f"{key}_count",
        )

    errors = utils.validate_member_inputs(name, phone, start_date, end_date)
    for e in errors:
        st.error(e)

    if st.button("Save", type="primary", disabled=bool(errors), key=f"{key}_save"):
        member = Member(
            id=(existing.id if existing else None),
            name=name.strip(),
            phone=phone.strip(),
            plan_type=plan_type.strip(),
            start_date=start_date,
            end_date=end_date,
            status=status,
            membership_count=int(membership_count),
        )
        result = store.update(member) if existing else store.add(member)
        if not result:
            show_failure(result)
            return
        st.session_state.edit_member_id = None
        st.success("Member updated." if existing else f"Member added (ID: {result.value.id}).")
        st.rerun()


def members_page(store: MemberStore):
    st.header("👥 Members")

    with st.sidebar:
        st.subheader("Search & Filters")
        search = st.text_input("Search (name/phone)")
        status_filter = st.selectbox("Status", ["All"] + STATUS_OPTIONS)
        plan_filter = st.text_input("Plan type (exact)")

    if search.strip():
        result = store.search(search)
    elif status_filter != "All":
        result = store.list_by_status(status_filter)
    elif plan_filter.strip():
        result = store.list_by_plan(plan_filter.strip())
    else:
        result = store.list_all()

    if not result:
        show_failure(result)
    members = result.value
    if search.strip() and status_filter != "All":
        members = [m for m in members if m.status == status_filter]
    if (search.strip() or status_filter != "All") and plan_filter.strip():
        members = [m for m in members if m.plan_type == plan_filter.strip()]

    st.dataframe(utils.members_to_frame(members), use_container_width=True, hide_index=True)

    st.divider()

    colA, colB = st.columns([1, 2])
    with colA:
        st.subheader("Select member")
        selected_id = st.selectbox("Member ID", options=["(none)"] + [str(m.id) for m in members])

    with colB:
        if selected_id != "(none)":
            st.subheader("Member actions")
            c1, c2 = st.columns(2)
            with c1:
                if st.button("Edit"):
                    st.session_state.edit_member_id = int(selected_id)
                    st.rerun()
            with c2:
                delete_confirm = st.checkbox("Confirm delete", value=False, key="del_confirm")
                if st.button("Delete", type="secondary", disabled=not delete_confirm):
                    deleted = store.delete(int(selected_id))
                    if deleted:
                        st.success("Member deleted.")
                        st.rerun()
                    else:
                        show_failure(deleted)

    st.divider()

    if st.session_state.get("edit_member_id"):
        existing = store.get_by_id(st.session_state.edit_member_id)
        if existing:
            member_form(store, existing=existing.value)
        else:
            show_failure(existing)
        if st.button("Cancel edit"):
            st.session_state.edit_member_id = None
            st.rerun()
    else:
        member_form(store, existing=None)


def reports_page(store: MemberStore):
    st.header("🧾 Reports")

    st.subheader("Export members to CSV")
    result = store.list_all()
    if not result:
        show_failure(result)
    elif result.value:
        st.download_button(
            "Download members.csv",
            data=utils.members_to_csv_bytes(result.value),
            file_name="members.csv",
            mime="text/csv",
        )
    else:
        st.caption("No members to export.")

    st.divider()

    st.subheader("Member listing")
    st.code(utils.format_member_listing(store), language=None)


def settings_page(store: MemberStore):
    st.header("⚙️ Settings")

    st.subheader("Sample data")
    st.caption("Insert 3 sample members (phones already on file are skipped).")
    if st.button("Insert sample data"):
        added = utils.insert_sample_data(store)
        st.success(f"Sample data inserted ({added} added).")
        st.rerun()

    st.divider()

    st.subheader("Clear all members")
    st.caption("Deletes every member and restarts IDs at 1. This cannot be undone.")
    clear_confirm = st.checkbox("I understand, delete everything", value=False)
    if st.button("Clear all", type="secondary", disabled=not clear_confirm):
        result = store.clear_all()
        if result:
            st.success("All members cleared.")
        else:
            show_failure(result)


def main_app(store: MemberStore):
    st.sidebar.title("🏋️ Gym Members")

    pages = ["Dashboard", "Members", "Reports", "Settings"]
    if "page" not in st.session_state:
        st.session_state.page = "Dashboard"
    st.session_state.page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page))

    if st.session_state.page == "Dashboard":
        dashboard_page(store)
    elif st.session_state.page == "Members":
        members_page(store)
    elif st.session_state.page == "Reports":
        reports_page(store)
    elif st.session_state.page == "Settings":
        settings_page(store)


# --------- App entry ---------

def run():
    st.set_page_config(page_title="Gym Members", layout="wide")
    store = init_once()
    main_app(store)


if __name__ == "__main__":
    run()
