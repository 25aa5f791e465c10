from __future__ import annotations

import os
from pathlib import Path

from loguru import logger
from sqlmodel import Session, SQLModel, create_engine


def database_url() -> str:
    url = os.environ.get("SEATPLAN_DB_URL")
    if url:
        return url
    # Layouts and seat inventory live under ./data unless told otherwise.
    data_dir = Path(os.environ.get("SEATPLAN_DATA_DIR", Path.cwd() / "data"))
    data_dir.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{data_dir / 'seatplan.db'}"


def _make_engine(url: str):
    # sqlite connections are shared across the threadpool FastAPI runs sync routes on
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=os.environ.get("SEATPLAN_DB_ECHO") == "1", connect_args=connect_args)


engine = _make_engine(database_url())


def init_db() -> None:
    from . import models  # noqa: F401 - register tables on the metadata

    SQLModel.metadata.create_all(engine)
    logger.info("seat inventory database ready at {}", engine.url.render_as_string(hide_password=True))


def get_session() -> Session:
    return Session(engine)
