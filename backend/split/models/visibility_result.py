"""Visibility result model: one answer-engine probe for one question."""

from sqlalchemy import Column, String, Integer, Boolean, Text, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from split.models.base import Base, JSONType, UUIDMixin, utcnow


class VisibilityResult(UUIDMixin, Base):
    __tablename__ = "visibility_results"

    request_id = Column(Uuid(as_uuid=True), ForeignKey("snapshot_requests.id"), nullable=False, index=True)
    url = Column(String(2000), nullable=False)

    question_text = Column(Text, nullable=False)
    question_number = Column(Integer, nullable=False)
    question_type = Column(String(20), nullable=False)  # direct, indirect, comparison
    question_weight = Column(Integer, nullable=False, default=1)

    target_found = Column(Boolean, nullable=False, default=False)
    position = Column(Integer)
    cited_domains = Column(JSONType, default=list)
    competitor_domains = Column(JSONType, default=list)
    competitor_names = Column(JSONType, default=list)
    citation_snippet = Column(Text)
    reasoning_summary = Column(Text)
    search_metadata = Column(JSONType, default=dict)

    tested_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    request = relationship("SnapshotRequest", back_populates="results")
