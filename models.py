"""
models.py
Lightweight domain types (member record, operation results).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any

STATUS_ACTIVE = "Active"
STATUS_EXPIRED = "Expired"


@dataclass(frozen=True)
class Member:
    id: int | None  # assigned by storage on insert
    name: str
    phone: str
    plan_type: str
    start_date: date
    end_date: date
    status: str  # stored as-is, never derived from the dates
    membership_count: int = 1

    def with_id(self, member_id: int) -> "Member":
        return replace(self, id=member_id)


class ErrorKind(Enum):
    VALIDATION = "validation"
    BACKEND = "backend"
    NOT_FOUND = "not_found"
    PARSE = "parse"


class ClearOutcome(Enum):
    CLEARED = "cleared"
    ROWS_CLEARED_SEQUENCE_NOT_RESET = "rows_cleared_sequence_not_reset"
    FAILED = "failed"


@dataclass(frozen=True)
class Result:
    """
    Outcome of a store operation.

    `value` always holds something usable (empty list, 0, None) so callers that
    only want the data can ignore `ok`; callers that care can check `error`.
    """

    ok: bool
    value: Any = None
    error: ErrorKind | None = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Any = None, message: str = "") -> "Result":
        return cls(True, value, None, message)

    @classmethod
    def failure(cls, error: ErrorKind, message: str, value: Any = None) -> "Result":
        return cls(False, value, error, message)
