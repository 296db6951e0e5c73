"""Database package for the notifier."""
from db.connection import create_engine, get_db, make_session_factory, ping

__all__ = ["create_engine", "make_session_factory", "get_db", "ping"]
