from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from booking.core import config


def _connect_args(url: str) -> dict:
    # Sessions are handed out per request from a worker thread pool.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    connect_args=_connect_args(config.DATABASE_URL),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_scheduling_schema(bind=None) -> None:
    """Bring databases created by older releases up to the current layout.

    Adds the booked-duration snapshot column to ``appointments`` and the
    indexes the overlap queries rely on. Runs once per process.
    """
    global _scheduling_schema_checked

    if _scheduling_schema_checked:
        return

    bind = bind or engine

    with _schema_lock:
        if _scheduling_schema_checked:
            return

        inspector = inspect(bind)
        table_names = set(inspector.get_table_names())

        with bind.begin() as connection:
            if 'appointments' in table_names:
                existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
                if 'duration_minutes' not in existing_columns:
                    connection.execute(text('ALTER TABLE appointments ADD COLUMN duration_minutes INTEGER'))
                connection.execute(
                    text(
                        'CREATE INDEX IF NOT EXISTS idx_appointments_employee_date '
                        'ON appointments(employee_id, date, start_time)'
                    )
                )

            if 'availability' in table_names:
                connection.execute(
                    text(
                        'CREATE UNIQUE INDEX IF NOT EXISTS uq_availability_employee_date_start '
                        'ON availability(employee_id, date, start_time)'
                    )
                )

        _scheduling_schema_checked = True
