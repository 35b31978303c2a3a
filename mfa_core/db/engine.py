# (c) Copyright Datacraft, 2026
from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import sessionmaker

from mfa_core.config import Settings

from .base import Base


def make_engine(settings: Settings, **kwargs) -> Engine:
    return create_engine(settings.db_url, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create MFA tables if they do not exist."""
    from . import orm  # noqa: F401

    Base.metadata.create_all(engine)
