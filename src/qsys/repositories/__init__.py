"""Repository helpers wrapping async SQLAlchemy sessions."""

from .branch_repo import BranchRepository
from .ticket_repo import TicketRepository

__all__ = ["BranchRepository", "TicketRepository"]
