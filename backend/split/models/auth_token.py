"""Single-use auth tokens (email verification, password reset)."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from split.models.base import Base, TimestampMixin, UUIDMixin


class AuthToken(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "auth_tokens"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    purpose = Column(String(30), nullable=False)  # email_verification, password_reset
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    used_at = Column(DateTime(timezone=True))

    # Relationships
    user = relationship("User", back_populates="auth_tokens")
