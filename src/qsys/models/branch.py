"""SQLAlchemy model for restaurant branches."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from qsys.db.session import Base
from qsys.db.time import utcnow


class Branch(Base):
    """A restaurant location guests can queue at.

    ``id`` is the record identifier admins created the branch under. Older
    records may carry the canonical code only in ``id``; newer ones set
    ``code`` explicitly and may use a different ``id``.
    """

    __tablename__ = "branch"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    code: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True, index=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
