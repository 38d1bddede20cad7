"""Workspace API key model: hashed keys used by tracking integrations."""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from split.models.base import Base, TimestampMixin, UUIDMixin


class WorkspaceApiKey(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "workspace_api_keys"

    workspace_id = Column(Uuid(as_uuid=True), ForeignKey("workspaces.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    key_type = Column(String(10), nullable=False, default="live")  # live, test
    key_prefix = Column(String(24), nullable=False)
    key_hash = Column(String(64), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_used_at = Column(DateTime(timezone=True))

    # Relationships
    workspace = relationship("Workspace", back_populates="api_keys")
