# src/qsys/db/__init__.py
"""Database configuration and utilities."""

from .session import SessionLocal, get_session, get_session_factory
from .transaction import run_transaction

__all__ = ["get_session", "get_session_factory", "SessionLocal", "run_transaction"]
