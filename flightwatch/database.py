from sqlalchemy import Boolean, Integer, Numeric, create_engine, event, inspect, text
from sqlalchemy.orm import sessionmaker, declarative_base
from flightwatch.config import get_settings
import logging
import os

logger = logging.getLogger(__name__)
settings = get_settings()

db_url = settings.database_url
is_sqlite = db_url.startswith("sqlite")

engine = create_engine(
    db_url,
    connect_args={"check_same_thread": False} if is_sqlite else {}
)


# Without this, ON DELETE CASCADE on price_history doesn't fire in SQLite
if is_sqlite:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_sqlite_dir():
    """Create the directory holding the SQLite file, if the URL points at one."""
    if not is_sqlite:
        return
    path = db_url.split("///", 1)[-1]
    if not path or path == ":memory:":
        return
    directory = os.path.dirname(path)
    if directory and not os.path.isdir(directory):
        os.makedirs(directory, exist_ok=True)
        logger.info(f"Created database directory {directory}")


def _sql_literal(value) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


def _add_column_ddl(table_name: str, col, dialect) -> str:
    """ALTER TABLE statement for a column missing from an existing table.

    SQLite refuses ADD COLUMN ... NOT NULL without a DEFAULT, so required
    columns get their model default or a zero/empty filler.
    """
    ddl = f"ALTER TABLE {table_name} ADD COLUMN {col.name} {col.type.compile(dialect=dialect)}"
    if col.nullable:
        return ddl

    default = None
    if col.default is not None and not callable(col.default.arg):
        default = col.default.arg
    if default is None:
        default = 0 if isinstance(col.type, (Integer, Numeric, Boolean)) else ""
    return f"{ddl} NOT NULL DEFAULT {_sql_literal(default)}"


def ensure_sqlite_columns(bind=None) -> int:
    """Add any model columns missing from existing SQLite tables.

    Databases created before the offer snapshot columns existed only carry the
    route/date columns; this brings them up to date without a migration tool.
    Unique indexes declared on the models are created when missing.
    """
    bind = bind or engine
    added = 0
    with bind.connect() as conn:
        inspector = inspect(conn)
        for table in Base.metadata.sorted_tables:
            if not inspector.has_table(table.name):
                continue
            existing = {c["name"] for c in inspector.get_columns(table.name)}

            for col in table.columns:
                if col.name in existing:
                    continue
                conn.execute(text(_add_column_ddl(table.name, col, conn.dialect)))
                logger.info(f"Added column {table.name}.{col.name}")
                added += 1

            for index in table.indexes:
                if index.unique:
                    index.create(conn, checkfirst=True)

        conn.commit()

    if added:
        logger.info(f"Schema upgrade: added {added} column(s)")
    return added
