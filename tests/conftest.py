from datetime import date

import pytest

from db import Database
from member_store import MemberStore
from models import STATUS_ACTIVE, Member


@pytest.fixture()
def db_path(tmp_path):
    return tmp_path / "gym_test.db"


@pytest.fixture()
def database(db_path):
    return Database(db_path)


@pytest.fixture()
def store(database):
    return MemberStore(database)


@pytest.fixture()
def make_member():
    def _make(**overrides):
        fields = dict(
            id=None,
            name="Alice",
            phone="555-0100",
            plan_type="Gold",
            start_date=date(2024, 1, 1),
            end_date=date(2025, 1, 1),
            status=STATUS_ACTIVE,
            membership_count=1,
        )
        fields.update(overrides)
        return Member(**fields)

    return _make
