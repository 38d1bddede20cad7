"""User model for authentication."""

from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship

from split.models.base import Base, TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    email_verified_at = Column(DateTime(timezone=True))
    last_login_at = Column(DateTime(timezone=True))

    # Billing
    subscription_plan = Column(String(20), default="free", nullable=False)  # free, plus, pro, enterprise
    subscription_status = Column(String(20), default="inactive", nullable=False)
    stripe_customer_id = Column(String(255))

    # Relationships
    workspaces = relationship("Workspace", back_populates="user", cascade="all, delete-orphan")
    snapshot_requests = relationship("SnapshotRequest", back_populates="user")
    usage = relationship("SubscriptionUsage", back_populates="user", uselist=False, cascade="all, delete-orphan")
    auth_tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")
