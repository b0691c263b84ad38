from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from booking_backend.core import config


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_appointment_schema(bind=None) -> None:
    """Create the slot indexes on an appointments table that predates them."""
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    bind = bind or engine

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(bind)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        with bind.begin() as connection:
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_scheduled_slot '
                    "ON appointments(scheduled_at) WHERE status = 'SCHEDULED'"
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_scheduled_at ON appointments(scheduled_at)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_customer ON appointments(customer_id)')
            )

        _appointment_schema_checked = True
