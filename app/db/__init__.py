from .database import (
    db,
    DEFAULT_USERS,
    get_engine,
    set_engine,
    init_db,
    seed_default_users,
    get_session,
    session_scope,
    close_db_connection,
)

__all__ = [
    "db",
    "DEFAULT_USERS",
    "get_engine",
    "set_engine",
    "init_db",
    "seed_default_users",
    "get_session",
    "session_scope",
    "close_db_connection",
]
