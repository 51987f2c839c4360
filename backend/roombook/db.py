from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from roombook.core.config import settings


def _build_engine() -> Engine:
    connect_args = {}
    options = {"pool_pre_ping": True}
    if settings.DATABASE_URL.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    else:
        options["pool_size"] = settings.DB_POOL_SIZE
        options["pool_recycle"] = settings.DB_POOL_RECYCLE_SECONDS
    return create_engine(settings.DATABASE_URL, connect_args=connect_args, **options)


@lru_cache
def get_engine() -> Engine:
    """The process-wide engine, created on first use."""
    return _build_engine()


def init_db(engine: Engine | None = None) -> None:
    """Create database tables in environments without migrations."""
    import roombook.models  # noqa: F401  registers the tables

    SQLModel.metadata.create_all(bind=engine or get_engine())


def get_session() -> Generator[Session, None, None]:
    with Session(get_engine()) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_session)]
