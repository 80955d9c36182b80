"""
db.py
SQLite connection provider + initialization (creates DB/tables) and config lookup.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import yaml

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parent
DB_FILE = _PROJECT_ROOT / "gym.db"
CONFIG_FILE = _PROJECT_ROOT / "config.yaml"

MEMBERS_TABLE = "members"

_MEMBERS_DDL = f"""
CREATE TABLE IF NOT EXISTS {MEMBERS_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    phone TEXT NOT NULL UNIQUE,
    plan_type TEXT NOT NULL,
    start_date TEXT NOT NULL,
    end_date TEXT NOT NULL,
    status TEXT NOT NULL,
    membership_count INTEGER NOT NULL DEFAULT 1
)
"""


def read_config(path: Path | None = None) -> dict:
    cfg_path = Path(path) if path else CONFIG_FILE
    if not cfg_path.exists():
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"{cfg_path} must contain a mapping")
    return cfg


def get_db_path(config: dict | None = None) -> Path:
    """
    Resolution order:
    1) GYM_DB_PATH environment variable
    2) db_path in config.yaml
    3) gym.db next to this file
    """
    cfg = read_config() if config is None else config
    env_path = os.environ.get("GYM_DB_PATH")
    cfg_path = cfg.get("db_path")

    if env_path:
        path = Path(env_path)
    elif isinstance(cfg_path, str) and cfg_path.strip():
        path = Path(cfg_path.strip())
    else:
        path = DB_FILE

    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def configure_logging(config: dict | None = None) -> None:
    cfg = read_config() if config is None else config
    level = os.environ.get("GYM_LOG_LEVEL") or cfg.get("log_level") or "INFO"
    logging.basicConfig(
        level=str(level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


class Database:
    """Hands out scoped connections to one SQLite file and runs parametrized statements."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"Database({str(self.path)!r})"

    @contextmanager
    def get_conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        # SQLite's LOWER()/LIKE only fold ASCII
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def execute_update(self, sql: str, params: tuple = ()) -> int:
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.rowcount

    def execute_insert(self, sql: str, params: tuple = ()) -> int:
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.lastrowid

    def fetch_one(self, sql: str, params: tuple = ()):
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.fetchone()

    def fetch_all(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.fetchall()

    def is_ready(self) -> bool:
        try:
            row = self.fetch_one(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
                (MEMBERS_TABLE,),
            )
        except sqlite3.Error as e:
            logger.warning("Database %s not reachable: %s", self.path, e)
            return False
        return row is not None

    def initialize(self) -> None:
        """Create the members table. Safe to call more than once."""
        with self.get_conn() as conn:
            conn.execute(_MEMBERS_DDL)
        logger.info("Database initialized at %s", self.path)


def default_database() -> Database:
    return Database(get_db_path())
