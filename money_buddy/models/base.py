"""
Database engine, session management, and base model.

Every model inherits from Base. Every request gets a session
from get_db(). The ledger state lives here, not in process
memory, so it survives restarts.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import create_engine, BigInteger
from sqlalchemy.types import TypeDecorator
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from money_buddy.config import get_settings

settings = get_settings()

# SQLite connections are bound to the creating thread by default;
# FastAPI runs sync endpoints in a thread pool.
connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

# --- Engine ---
# pool_pre_ping=True tests connections before using them,
# which handles a restarted database or a stale connection.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

# --- Session Factory ---
# autocommit=False: the caller decides when a ledger operation
# is committed, so a failed step rolls back the whole operation.
# autoflush=False: SQL is only sent on explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


class Money(TypeDecorator):
    """
    Fixed-point money stored as an integer count of 1/10000 units.

    Keeps SQL-side arithmetic such as `balance - :amount` exact on
    every backend, including SQLite, which has no decimal type.
    """

    impl = BigInteger
    cache_ok = True

    SCALE = Decimal("10000")
    QUANTUM = Decimal("0.0001")

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        units = Decimal(str(value)) * self.SCALE
        return int(units.to_integral_value(rounding=ROUND_HALF_UP))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return (Decimal(value) / self.SCALE).quantize(self.QUANTUM)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally pattern ensures the session is always
    closed, even when the endpoint raises.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
