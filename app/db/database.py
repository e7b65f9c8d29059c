import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine, select

from ..config import get_settings
from ..constants import UserRole
from ..core.security import hash_password
from ..models import User

logger = logging.getLogger(__name__)

# Accounts inserted on startup when absent: (id, name, password, role)
DEFAULT_USERS = [
    ("user-123", "Demo User", "demo", UserRole.USER.value),
    ("admin-001", "Administrator", "admin", UserRole.ADMIN.value),
]


class Database:
    engine: Optional[Engine] = None

db = Database()


def _build_engine(database_url: str) -> Engine:
    # SQLite needs check_same_thread off: background tasks use their own threads
    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, connect_args={"check_same_thread": False})
        _enable_sqlite_foreign_keys(engine)
        return engine
    return create_engine(database_url, pool_pre_ping=True)


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_engine() -> Engine:
    """
    Returns the engine, creating it from settings on first use.
    """
    if db.engine is None:
        settings = get_settings()
        db.engine = _build_engine(settings.database_url)
        logger.info(f"Database engine created for {db.engine.url.get_backend_name()}")
    return db.engine


def set_engine(engine: Engine) -> None:
    """Replace the engine (tests, workers with their own connection)."""
    if engine.url.get_backend_name() == "sqlite":
        _enable_sqlite_foreign_keys(engine)
    db.engine = engine


def init_db() -> None:
    """
    Creates the tables and seeds the default accounts.
    """
    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    logger.info("Tables ensured: users, analyses")

    if get_settings().seed_default_users:
        with Session(engine) as session:
            seed_default_users(session)


def seed_default_users(session: Session) -> int:
    """
    Inserts the demo and admin accounts unless a row with the same id exists.

    Returns:
        Number of users inserted
    """
    inserted = 0
    for user_id, name, password, role in DEFAULT_USERS:
        existing = session.exec(select(User).where(User.id == user_id)).first()
        if existing:
            continue
        session.add(User(id=user_id, name=name, password=hash_password(password), role=role))
        inserted += 1

    if inserted:
        session.commit()
        logger.info(f"Seeded {inserted} default user(s)")
    return inserted


def get_session() -> Iterator[Session]:
    """FastAPI dependency yielding a session per request."""
    with Session(get_engine()) as session:
        yield session


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for code running outside a request (pipeline, workers)."""
    session = Session(get_engine())
    try:
        yield session
    finally:
        session.close()


def close_db_connection() -> None:
    if db.engine is not None:
        db.engine.dispose()
        db.engine = None
        logger.info("Database engine disposed")
