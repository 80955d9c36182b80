"""
member_store.py
Member persistence: CRUD, filters, search, counts and reset on top of db.Database.

Every operation returns a models.Result. Backend errors never escape an
operation; they are logged and come back as a failed Result whose `value`
is the neutral empty answer (empty list, 0, None).
"""

from __future__ import annotations

import logging
import sqlite3

from db import MEMBERS_TABLE, Database
from models import STATUS_ACTIVE, STATUS_EXPIRED, ClearOutcome, ErrorKind, Member, Result
from utils import parse_iso

logger = logging.getLogger(__name__)

_COLUMNS = "name, phone, plan_type, start_date, end_date, status, membership_count"


def _row_to_member(row: sqlite3.Row) -> Member:
    # Raises ValueError on malformed stored dates.
    return Member(
        id=int(row["id"]),
        name=row["name"],
        phone=row["phone"],
        plan_type=row["plan_type"],
        start_date=parse_iso(row["start_date"]),
        end_date=parse_iso(row["end_date"]),
        status=row["status"],
        membership_count=int(row["membership_count"]),
    )


def _member_params(member: Member) -> tuple:
    return (
        member.name,
        member.phone,
        member.plan_type,
        member.start_date.isoformat(),
        member.end_date.isoformat(),
        member.status,
        member.membership_count,
    )


def _is_unique_violation(e: sqlite3.IntegrityError) -> bool:
    return "UNIQUE" in str(e).upper()


class MemberStore:
    TRUNCATE_SQL = f"TRUNCATE TABLE {MEMBERS_TABLE}"
    DELETE_ALL_SQL = f"DELETE FROM {MEMBERS_TABLE}"
    RESET_SEQUENCE_SQL = "DELETE FROM sqlite_sequence WHERE name = ?"

    def __init__(self, database: Database):
        self.db = database
        if not self.db.is_ready():
            self.db.initialize()

    # ---------- reads ----------

    def _fetch_members(self, action: str, sql: str, params: tuple = ()) -> Result:
        try:
            rows = self.db.fetch_all(sql, params)
            members = [_row_to_member(r) for r in rows]
        except sqlite3.Error as e:
            logger.error("Error %s: %s", action, e)
            return Result.failure(ErrorKind.BACKEND, f"Error {action}: {e}", value=[])
        except ValueError as e:
            logger.error("Malformed stored date while %s: %s", action, e)
            return Result.failure(ErrorKind.PARSE, f"Malformed stored date while {action}: {e}", value=[])
        logger.debug("%s: %d members", action, len(members))
        return Result.success(members)

    def list_all(self) -> Result:
        return self._fetch_members(
            "retrieving members",
            f"SELECT * FROM {MEMBERS_TABLE} ORDER BY id ASC",
        )

    def get_by_id(self, member_id: int) -> Result:
        try:
            row = self.db.fetch_one(f"SELECT * FROM {MEMBERS_TABLE} WHERE id = ?", (member_id,))
            member = _row_to_member(row) if row else None
        except sqlite3.Error as e:
            logger.error("Error retrieving member %s: %s", member_id, e)
            return Result.failure(ErrorKind.BACKEND, f"Error retrieving member {member_id}: {e}")
        except ValueError as e:
            logger.error("Malformed stored date for member %s: %s", member_id, e)
            return Result.failure(ErrorKind.PARSE, f"Malformed stored date for member {member_id}: {e}")
        if member is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"No member with ID {member_id}")
        return Result.success(member)

    def list_by_plan(self, plan_type: str) -> Result:
        return self._fetch_members(
            "retrieving members by plan",
            f"SELECT * FROM {MEMBERS_TABLE} WHERE plan_type = ? ORDER BY id ASC",
            (plan_type,),
        )

    def list_by_status(self, status: str) -> Result:
        return self._fetch_members(
            "retrieving members by status",
            f"SELECT * FROM {MEMBERS_TABLE} WHERE status = ? ORDER BY id ASC",
            (status,),
        )

    def search(self, keyword: str | None) -> Result:
        """
        Case-insensitive (Unicode) substring match on name, exact-case substring match on phone.
        A blank keyword lists everything.
        """
        if keyword is None or not keyword.strip():
            return self.list_all()

        # casefold() is registered on every connection by db.Database
        return self._fetch_members(
            f"searching members for {keyword!r}",
            f"""
            SELECT * FROM {MEMBERS_TABLE}
            WHERE instr(casefold(name), ?) > 0 OR instr(phone, ?) > 0
            ORDER BY id ASC
            """,
            (keyword.casefold(), keyword),
        )

    def exists_by_phone(self, phone: str) -> Result:
        try:
            row = self.db.fetch_one(f"SELECT COUNT(*) AS c FROM {MEMBERS_TABLE} WHERE phone = ?", (phone,))
        except sqlite3.Error as e:
            logger.error("Error checking member existence: %s", e)
            return Result.failure(ErrorKind.BACKEND, f"Error checking member existence: {e}", value=False)
        return Result.success(bool(row and row["c"] > 0))

    def _count(self, status: str | None = None) -> Result:
        sql = f"SELECT COUNT(*) AS c FROM {MEMBERS_TABLE}"
        params: tuple = ()
        if status is not None:
            sql += " WHERE status = ?"
            params = (status,)
        try:
            row = self.db.fetch_one(sql, params)
        except sqlite3.Error as e:
            logger.error("Error counting members: %s", e)
            return Result.failure(ErrorKind.BACKEND, f"Error counting members: {e}", value=0)
        return Result.success(int(row["c"]) if row else 0)

    def total_members(self) -> Result:
        return self._count()

    def active_members(self) -> Result:
        return self._count(STATUS_ACTIVE)

    def expired_members(self) -> Result:
        return self._count(STATUS_EXPIRED)

    # ---------- writes ----------

    def add(self, member: Member) -> Result:
        """Insert a new member; the result value is the stored member with its new id."""
        exists = self.exists_by_phone(member.phone)
        if not exists:
            return Result.failure(exists.error, exists.message)
        if exists.value:
            logger.warning("Member with phone %s already exists", member.phone)
            return Result.failure(ErrorKind.VALIDATION, f"Member with phone {member.phone} already exists")

        try:
            new_id = self.db.execute_insert(
                f"INSERT INTO {MEMBERS_TABLE} ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                _member_params(member),
            )
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                # lost the race against a concurrent insert with the same phone
                logger.warning("Member with phone %s already exists: %s", member.phone, e)
                return Result.failure(ErrorKind.VALIDATION, f"Member with phone {member.phone} already exists")
            logger.error("Error adding member: %s", e)
            return Result.failure(ErrorKind.BACKEND, f"Error adding member: {e}")
        except sqlite3.Error as e:
            logger.error("Error adding member: %s", e)
            return Result.failure(ErrorKind.BACKEND, f"Error adding member: {e}")

        logger.info("Member added: %s (ID: %s)", member.name, new_id)
        return Result.success(member.with_id(new_id))

    def update(self, member: Member) -> Result:
        """Overwrite every field of the row with member.id."""
        try:
            rows = self.db.execute_update(
                f"""
                UPDATE {MEMBERS_TABLE}
                SET name=?, phone=?, plan_type=?, start_date=?, end_date=?, status=?, membership_count=?
                WHERE id=?
                """,
                _member_params(member) + (member.id,),
            )
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                logger.warning("Phone %s already belongs to another member", member.phone)
                return Result.failure(ErrorKind.VALIDATION, f"Phone {member.phone} already belongs to another member")
            logger.error("Error updating member %s: %s", member.id, e)
            return Result.failure(ErrorKind.BACKEND, f"Error updating member {member.id}: {e}")
        except sqlite3.Error as e:
            logger.error("Error updating member %s: %s", member.id, e)
            return Result.failure(ErrorKind.BACKEND, f"Error updating member {member.id}: {e}")

        if rows < 1:
            return Result.failure(ErrorKind.NOT_FOUND, f"No member with ID {member.id}")
        logger.info("Member updated: %s (ID: %s)", member.name, member.id)
        return Result.success(member)

    def delete(self, member_id: int) -> Result:
        try:
            rows = self.db.execute_update(f"DELETE FROM {MEMBERS_TABLE} WHERE id = ?", (member_id,))
        except sqlite3.Error as e:
            logger.error("Error deleting member %s: %s", member_id, e)
            return Result.failure(ErrorKind.BACKEND, f"Error deleting member {member_id}: {e}")

        if rows < 1:
            return Result.failure(ErrorKind.NOT_FOUND, f"No member with ID {member_id}")
        logger.info("Member deleted (ID: %s)", member_id)
        return Result.success(member_id)

    def clear_all(self) -> Result:
        """
        Remove every member and restart ids at 1.

        Tries a single TRUNCATE first. When the backend rejects it, deletes the
        rows and resets the id sequence as two separate statements. The result
        value is a ClearOutcome; ROWS_CLEARED_SEQUENCE_NOT_RESET means the table
        is empty but new ids will continue from the old counter.
        """
        try:
            self.db.execute_update(self.TRUNCATE_SQL)
        except sqlite3.Error as e:
            logger.warning("TRUNCATE rejected, falling back to DELETE + sequence reset: %s", e)
        else:
            logger.info("All members cleared (table truncated)")
            return Result.success(ClearOutcome.CLEARED)

        try:
            deleted = self.db.execute_update(self.DELETE_ALL_SQL)
        except sqlite3.Error as e:
            logger.error("Error clearing members: %s", e)
            return Result.failure(ErrorKind.BACKEND, f"Error clearing members: {e}", value=ClearOutcome.FAILED)

        try:
            self.db.execute_update(self.RESET_SEQUENCE_SQL, (MEMBERS_TABLE,))
        except sqlite3.Error as e:
            logger.error("Deleted %d members, but failed to reset the id sequence: %s", deleted, e)
            return Result.failure(
                ErrorKind.BACKEND,
                f"Deleted {deleted} members, but failed to reset the id sequence: {e}",
                value=ClearOutcome.ROWS_CLEARED_SEQUENCE_NOT_RESET,
            )

        logger.info("All members cleared (deleted: %d) and id sequence reset", deleted)
        return Result.success(ClearOutcome.CLEARED)
