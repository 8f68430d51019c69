from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from lp_analytics.config import Config


def get_engine(url: str | None = None):
    url = make_url(url or Config.sqlalchemy_url())
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url)


def get_session_factory(url: str | None = None) -> sessionmaker:
    return sessionmaker(bind=get_engine(url))
