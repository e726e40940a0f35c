"""Fixtures for persistence integration tests (in-memory SQLite)."""

from tests.shared.fixtures.database import async_engine, db_session, session_maker

__all__ = ["async_engine", "db_session", "session_maker"]
