"""Snapshot summary model: per-URL visibility score and insights."""

from sqlalchemy import Column, String, Integer, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from split.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class SnapshotSummary(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "snapshot_summaries"

    request_id = Column(Uuid(as_uuid=True), ForeignKey("snapshot_requests.id"), nullable=False, index=True)
    url = Column(String(2000), nullable=False)

    visibility_score = Column(Integer, nullable=False, default=0)
    mentions_count = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False, default=0)
    top_competitors = Column(JSONType, default=list)
    insights = Column(JSONType, default=list)
    insights_summary = Column(Text)

    # Relationships
    request = relationship("SnapshotRequest", back_populates="summaries")
