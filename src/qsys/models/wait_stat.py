"""EMA wait-time statistics per branch, group and time-of-day bucket."""

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from qsys.db.session import Base

BUCKETS: tuple[str, ...] = ("lunch", "afternoon", "dinner", "late")


class WaitStatBucket(Base):
    """Exponential moving average of registration-to-seat waits.

    ``ema_wait_min`` is only trusted once ``sample_count`` reaches the
    configured minimum; below that the estimator uses static fallbacks.
    """

    __tablename__ = "wait_stat_bucket"

    branch_code: Mapped[str] = mapped_column(String(64), primary_key=True)
    group: Mapped[str] = mapped_column(String(1), primary_key=True)
    bucket_id: Mapped[str] = mapped_column(String(16), primary_key=True)
    ema_wait_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    sample_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
