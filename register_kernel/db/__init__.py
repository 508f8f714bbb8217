"""register_kernel.db -- SQLAlchemy base classes, column types and engine."""

from register_kernel.db.base import Base, SurrogateKeyMixin, TimestampedBase, UUIDString
from register_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)

__all__ = [
    "Base",
    "SurrogateKeyMixin",
    "TimestampedBase",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "reset_engine",
]
