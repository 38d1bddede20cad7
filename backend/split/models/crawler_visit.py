"""Crawler visit model: immutable log of one detected AI crawler hit."""

from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from split.models.base import Base, JSONType, UUIDMixin, utcnow


class CrawlerVisit(UUIDMixin, Base):
    __tablename__ = "crawler_visits"

    workspace_id = Column(Uuid(as_uuid=True), ForeignKey("workspaces.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    domain = Column(String(255), nullable=False)
    path = Column(String(2000), nullable=False, default="/")
    crawler_name = Column(String(100), nullable=False, index=True)
    crawler_company = Column(String(100))
    crawler_category = Column(String(50))
    user_agent = Column(Text, default="")
    status_code = Column(Integer)
    response_time_ms = Column(Integer)
    country = Column(String(2))
    extra_data = Column("metadata", JSONType, default=dict)

    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    workspace = relationship("Workspace", back_populates="crawler_visits")

    __table_args__ = (
        Index("idx_crawler_visit_workspace_ts", "workspace_id", "timestamp"),
    )
