"""Tests for shared/database.py."""

import pytest
from sqlalchemy import inspect, text

from shared.database import (
    check_connection,
    create_db_engine,
    get_db,
    get_engine,
    get_session_factory,
    init_db,
    reset_engine,
    transaction,
)


class TestEngine:
    def test_engine_is_cached(self):
        assert get_engine() is get_engine()

    def test_reset_engine(self):
        first = get_engine()
        reset_engine()
        assert get_engine() is not first

    def test_init_db_creates_tables(self, db_engine):
        tables = set(inspect(db_engine).get_table_names())
        assert {"users", "user_preferences", "user_enabled_plugins"} <= tables

    def test_init_db_is_repeatable(self, db_engine):
        init_db(db_engine)

    def test_check_connection(self, db_engine):
        assert check_connection(db_engine) is True

    def test_check_connection_failure(self, tmp_path):
        engine = create_db_engine(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'hub.db'}")
        assert check_connection(engine) is False


class TestSessions:
    def test_get_db_closes_session(self, db_engine):
        """The connection goes back to the pool when the request ends."""
        generator = get_db()
        session = next(generator)
        session.execute(text("SELECT 1"))
        assert db_engine.pool.checkedout() == 1
        with pytest.raises(StopIteration):
            next(generator)
        assert db_engine.pool.checkedout() == 0

    def test_get_db_closes_session_on_error(self, db_engine):
        generator = get_db()
        session = next(generator)
        session.execute(text("SELECT 1"))
        with pytest.raises(RuntimeError):
            generator.throw(RuntimeError("handler crashed"))
        assert db_engine.pool.checkedout() == 0

    def test_transaction_commits(self, db_engine):
        session = get_session_factory()()
        with transaction(session):
            session.execute(text("CREATE TABLE scratch (id INTEGER)"))
            session.execute(text("INSERT INTO scratch VALUES (1)"))
        session.close()

        other = get_session_factory()()
        assert other.execute(text("SELECT COUNT(*) FROM scratch")).scalar() == 1
        other.close()

    def test_transaction_rolls_back(self, db_engine):
        session = get_session_factory()()
        with transaction(session):
            session.execute(text("CREATE TABLE scratch (id INTEGER)"))

        with pytest.raises(ValueError):
            with transaction(session):
                session.execute(text("INSERT INTO scratch VALUES (1)"))
                raise ValueError("abort")
        session.close()

        other = get_session_factory()()
        assert other.execute(text("SELECT COUNT(*) FROM scratch")).scalar() == 0
        other.close()
