"""Subscription usage model: per-user billing period counters."""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from split.models.base import Base, TimestampMixin, UUIDMixin


class SubscriptionUsage(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "subscription_usage"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    plan = Column(String(20), nullable=False, default="free")
    plan_status = Column(String(20), nullable=False, default="active")

    billing_period_start = Column(DateTime(timezone=True), nullable=False)
    billing_period_end = Column(DateTime(timezone=True), nullable=False, index=True)

    snapshots_used = Column(Integer, nullable=False, default=0)
    crawler_visits_tracked = Column(Integer, nullable=False, default=0)

    # Relationships
    user = relationship("User", back_populates="usage")
