import logging
from threading import Lock

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from salon.core import config

logger = logging.getLogger(__name__)

APPOINTMENT_OVERLAP_CONSTRAINT = 'appointments_no_overlap'
APPOINTMENT_START_CONSTRAINT = 'uq_appointments_professional_start'
SQLITE_OVERLAP_MESSAGE = 'appointment_overlap'


def create_store_engine(database_url: str, echo: bool = False) -> Engine:
    if not database_url.startswith('sqlite'):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    store_engine = create_engine(
        database_url,
        echo=echo,
        connect_args={'check_same_thread': False, 'timeout': config.SQLITE_BUSY_TIMEOUT_SECONDS},
    )

    # Take the write lock at BEGIN so the overlap trigger only sees committed rows.
    @event.listens_for(store_engine, 'connect')
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()

    # SQLite is for development only: every session, reads included, holds the write lock until it ends.
    @event.listens_for(store_engine, 'begin')
    def _on_begin(connection):
        connection.exec_driver_sql('BEGIN IMMEDIATE')

    return store_engine


engine = create_store_engine(config.DATABASE_URL, echo=config.DATABASE_ECHO)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked: set[Engine] = set()
_professional_schema_checked: set[Engine] = set()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _install_postgres_overlap_guard(connection) -> None:
    connection.execute(text('CREATE EXTENSION IF NOT EXISTS btree_gist'))
    exists = connection.execute(
        text('SELECT 1 FROM pg_constraint WHERE conname = :name'),
        {'name': APPOINTMENT_OVERLAP_CONSTRAINT},
    ).first()
    if exists:
        return

    connection.execute(
        text(
            f'ALTER TABLE appointments ADD CONSTRAINT {APPOINTMENT_OVERLAP_CONSTRAINT} '
            'EXCLUDE USING gist ('
            'professional_id WITH =, '
            'date WITH =, '
            'int4range(start_minute, start_minute + duration) WITH &&'
            ')'
        )
    )


def _install_sqlite_overlap_guard(connection) -> None:
    connection.execute(
        text(
            f'CREATE TRIGGER IF NOT EXISTS {APPOINTMENT_OVERLAP_CONSTRAINT}_insert '
            'BEFORE INSERT ON appointments '
            'FOR EACH ROW WHEN EXISTS ('
            'SELECT 1 FROM appointments '
            'WHERE professional_id = NEW.professional_id '
            'AND date = NEW.date '
            'AND start_minute < NEW.start_minute + NEW.duration '
            'AND start_minute + duration > NEW.start_minute'
            ') '
            f"BEGIN SELECT RAISE(ABORT, '{SQLITE_OVERLAP_MESSAGE}'); END"
        )
    )
    connection.execute(
        text(
            f'CREATE TRIGGER IF NOT EXISTS {APPOINTMENT_OVERLAP_CONSTRAINT}_update '
            'BEFORE UPDATE OF professional_id, date, start_minute, duration ON appointments '
            'FOR EACH ROW WHEN EXISTS ('
            'SELECT 1 FROM appointments '
            'WHERE id != NEW.id '
            'AND professional_id = NEW.professional_id '
            'AND date = NEW.date '
            'AND start_minute < NEW.start_minute + NEW.duration '
            'AND start_minute + duration > NEW.start_minute'
            ') '
            f"BEGIN SELECT RAISE(ABORT, '{SQLITE_OVERLAP_MESSAGE}'); END"
        )
    )


def ensure_appointment_schema(bind: Engine | None = None) -> None:
    """Install the database-side guard that rejects overlapping appointments of a professional on a date."""
    target = bind if bind is not None else engine

    if target in _appointment_schema_checked:
        return

    with _schema_lock:
        if target in _appointment_schema_checked:
            return

        inspector = inspect(target)

        if 'appointments' not in inspector.get_table_names():
            return

        with target.begin() as connection:
            if target.dialect.name == 'postgresql':
                _install_postgres_overlap_guard(connection)
            elif target.dialect.name == 'sqlite':
                _install_sqlite_overlap_guard(connection)
            else:
                logger.warning(
                    'No appointment overlap guard available for dialect %s; concurrent bookings are not serialized.',
                    target.dialect.name,
                )

        _appointment_schema_checked.add(target)


def ensure_professional_schema(bind: Engine | None = None) -> None:
    target = bind if bind is not None else engine

    if target in _professional_schema_checked:
        return

    with _schema_lock:
        if target in _professional_schema_checked:
            return

        inspector = inspect(target)

        if 'professionals' not in inspector.get_table_names():
            return

        existing_columns = {column['name'] for column in inspector.get_columns('professionals')}
        migration_steps = [
            ('color', 'ALTER TABLE professionals ADD COLUMN color VARCHAR'),
            ('working_hours', 'ALTER TABLE professionals ADD COLUMN working_hours JSON'),
        ]

        with target.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))

        _professional_schema_checked.add(target)
