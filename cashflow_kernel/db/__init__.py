"""Database layer - engine, base classes, money helpers."""

from cashflow_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from cashflow_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from cashflow_kernel.db.types import money_from_value, round_money

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "money_from_value",
    "round_money",
]
