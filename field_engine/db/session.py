from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from fastapi import Depends

from field_engine.core.config import settings
from field_engine.db.record_store import SqlAlchemyRecordStore


def enable_sqlite_savepoints(engine: Engine) -> None:
    """
    pysqlite opens transactions lazily, which breaks SAVEPOINT. Let
    SQLAlchemy emit BEGIN itself so record batches can roll back alone.
    """

    @event.listens_for(engine, "connect")
    def _no_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, connect_args=_connect_args)
if engine.dialect.name == "sqlite":
    enable_sqlite_savepoints(engine)

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)

def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

def get_store(db: Session = Depends(get_db)) -> SqlAlchemyRecordStore:
    return SqlAlchemyRecordStore(db)
