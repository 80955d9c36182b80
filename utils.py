"""
utils.py
Validation, dates, exports, sample data.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import date, timedelta

import pandas as pd

from models import STATUS_ACTIVE, STATUS_EXPIRED, Member

MEMBER_COLUMNS = [
    "id", "name", "phone", "plan_type", "start_date", "end_date", "status", "membership_count",
]


def today_iso() -> str:
    return date.today().isoformat()


def parse_iso(d: str) -> date:
    return date.fromisoformat(d)


def validate_member_inputs(name: str, phone: str, start_date: date, end_date: date) -> list[str]:
    errors: list[str] = []
    if not name.strip():
        errors.append("Name is required.")
    if not phone.strip():
        errors.append("Phone is required.")
    if end_date < start_date:
        errors.append("End date must not be before start date.")
    return errors


def members_to_frame(members: list[Member]) -> pd.DataFrame:
    if not members:
        return pd.DataFrame(columns=MEMBER_COLUMNS)
    return pd.DataFrame([asdict(m) for m in members], columns=MEMBER_COLUMNS)


def members_to_csv_bytes(members: list[Member]) -> bytes:
    df = members_to_frame(members)
    return df.to_csv(index=False).encode("utf-8")


def format_member_listing(store) -> str:
    """
    Plain-text member table followed by a Total | Active | Expired summary.
    """
    members = store.list_all().value
    df = members_to_frame(members).drop(columns=["membership_count"])
    body = df.to_string(index=False) if members else "(no members)"
    summary = (
        f"Total: {store.total_members().value}"
        f" | Active: {store.active_members().value}"
        f" | Expired: {store.expired_members().value}"
    )
    return f"{body}\n{summary}"


def insert_sample_data(store) -> int:
    """
    Insert 3 sample members. Phones already on file are skipped, so re-running is harmless.
    Returns the number of members added.
    """
    today = date.today()

    members = [
        Member(None, "Ahmed Hassan", "01000000001", "Monthly",
               today - timedelta(days=25), today + timedelta(days=5), STATUS_ACTIVE, 1),
        Member(None, "Mona Ali", "01000000002", "Quarterly",
               today - timedelta(days=10), today + timedelta(days=80), STATUS_ACTIVE, 2),
        Member(None, "Omar Samy", "01000000003", "Monthly",
               today - timedelta(days=60), today - timedelta(days=2), STATUS_EXPIRED, 1),
    ]

    added = 0
    for m in members:
        if store.add(m):
            added += 1
    return added
