"""
Test configuration and fixtures

SQL store tests run against an in-memory SQLite database shared across
threads through a StaticPool. Concurrency tests use a SQLite file instead.
"""

import pytest
from sqlalchemy import event
from sqlalchemy.pool import StaticPool

from mfa_core.config import Settings
from mfa_core.crypto import FieldCipher
from mfa_core.db.engine import init_db, make_engine, make_session_factory
from mfa_core.db.store import InMemoryMFAStore, SqlMFAStore
from mfa_core.mfa.service import MFAService


@pytest.fixture
def settings():
    return Settings(db_url="sqlite://", issuer="ClearNav", fail_closed=False)


@pytest.fixture
def cipher():
    return FieldCipher(FieldCipher.generate_key())


@pytest.fixture
def sql_engine(settings):
    engine = make_engine(
        settings,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(sql_engine):
    return SqlMFAStore(make_session_factory(sql_engine))


@pytest.fixture
def file_sql_store(tmp_path):
    """SQL store on a SQLite file, one pooled connection per thread"""
    engine = make_engine(
        Settings(db_url=f"sqlite:///{tmp_path / 'mfa.db'}"),
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def begin_immediate(conn):
        # Writers queue on the file lock instead of failing on upgrade
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    init_db(engine)
    yield SqlMFAStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture
def memory_store():
    return InMemoryMFAStore()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Run a test against both store implementations"""
    if request.param == "memory":
        return request.getfixturevalue("memory_store")
    return request.getfixturevalue("sql_store")


@pytest.fixture
def service(store, cipher, settings):
    return MFAService(store, cipher, settings)
