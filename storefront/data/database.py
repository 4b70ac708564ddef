# storefront/data/database.py
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from storefront.utils.settings import (
    DATABASE_URL,
    DB_ECHO,
    DB_POOL_SIZE,
    DB_MAX_OVERFLOW,
    DB_POOL_TIMEOUT,
    DB_POOL_RECYCLE,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

#jeden engine (pool) na proces, ustawiany w lifespan aplikacji
engine: Engine | None = None
SessionLocal = sessionmaker(autoflush=False)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"echo": DB_ECHO, "connect_args": {"check_same_thread": False}}

    return {
        "echo": DB_ECHO,
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": DB_POOL_TIMEOUT,
        "pool_recycle": DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


def _enable_sqlite_fk(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **overrides) -> Engine:
    options = _engine_options(url)
    options.update(overrides)
    new_engine = create_engine(url, **options)

    if new_engine.dialect.name == "sqlite":
        event.listen(new_engine, "connect", _enable_sqlite_fk)

    return new_engine


def init_db(url: str | None = None, **overrides) -> Engine:
    """
    Tworzy pool polaczen dla procesu i zaklada brakujace tabele.
    Wywolywane raz przy starcie aplikacji.
    """
    global engine

    # import modeli zeby zarejestrowaly sie w Base.metadata
    import storefront.data.models  # noqa: F401

    if engine is not None:
        return engine

    engine = build_engine(url or DATABASE_URL, **overrides)
    SessionLocal.configure(bind=engine)

    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")

    return engine


def dispose_db() -> None:
    global engine

    if engine is None:
        return

    engine.dispose()
    engine = None
    logger.info("Database pool disposed")


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Jednostka pracy: commit gdy blok przejdzie, rollback przy dowolnym wyjatku.
    Kaskady, checkout i anulowanie zamowienia ida w calosci przez jeden taki blok.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
