"""SQLAlchemy ORM models."""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from padhlo.database import Base


class UserEntitlement(Base):
    """Stored subscription state, one row per user."""

    __tablename__ = "user_entitlements"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tier: Mapped[str] = mapped_column(String(16), nullable=False, default="free", index=True)
    period_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    period_end: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    has_used_trial: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Compare-and-swap token, bumped on every write
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<UserEntitlement(user_id={self.user_id}, tier='{self.tier}', v={self.version})>"


class UsageCounter(Base):
    """Consumption count per user, action type and day key."""

    __tablename__ = "usage_counters"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    action_type: Mapped[str] = mapped_column(String(32), primary_key=True)
    day_key: Mapped[date] = mapped_column(Date, primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<UsageCounter(user_id={self.user_id}, action_type='{self.action_type}', "
            f"day_key={self.day_key}, count={self.count})>"
        )
