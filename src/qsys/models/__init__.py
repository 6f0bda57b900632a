# src/qsys/models/__init__.py
"""SQLAlchemy models for the QSys application."""

from .branch import Branch
from .daily_stat import DailyStat, DailyStatEvent
from .now_serving import NowServing
from .ticket import QueueCounter, Ticket
from .wait_stat import WaitStatBucket

__all__ = [
    "Branch",
    "DailyStat", "DailyStatEvent",
    "NowServing",
    "QueueCounter", "Ticket",
    "WaitStatBucket",
]
