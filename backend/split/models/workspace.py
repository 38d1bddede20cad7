"""Workspace model: one tracked domain per workspace."""

from sqlalchemy import Column, String, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from split.models.base import Base, TimestampMixin, UUIDMixin


class Workspace(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "workspaces"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    workspace_name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="workspaces")
    api_keys = relationship("WorkspaceApiKey", back_populates="workspace", cascade="all, delete-orphan")
    crawler_visits = relationship("CrawlerVisit", back_populates="workspace")
