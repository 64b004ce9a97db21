from __future__ import annotations
import logging
from pathlib import Path
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from . import models  # noqa: F401  (register tables on SQLModel.metadata)

logger = logging.getLogger(__name__)

engine = None
_db_path: Optional[Path] = None

def _sqlite_url(db_path: Path) -> str:
    return f"sqlite:///{db_path.as_posix()}"

def init_db(data_folder: Optional[Path] = None, *, filename: str = "networth_history.sqlite") -> None:
    """Create or connect the DB at the given folder."""
    global engine, _db_path
    if data_folder is None:
        data_folder = Path.cwd() / "data"
    data_folder.mkdir(parents=True, exist_ok=True)
    _db_path = data_folder / filename
    engine = create_engine(_sqlite_url(_db_path), echo=False, connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    logger.info("Using database %s", _db_path)

def init_memory_db() -> None:
    """Single shared in-memory database (tests, throwaway runs)."""
    global engine, _db_path
    _db_path = None
    engine = create_engine(
        "sqlite://", echo=False,
        connect_args={"check_same_thread": False}, poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)

def dispose_db() -> None:
    global engine
    if engine is not None:
        engine.dispose()
    engine = None

@contextmanager
def get_session():
    if engine is None:
        raise RuntimeError("DB engine not initialized; call init_db() in startup.")
    with Session(engine) as session:
        yield session

def current_db_path() -> Optional[Path]:
    return _db_path
