"""QSys: multi-branch restaurant queueing service."""

__version__ = "0.1.0"
