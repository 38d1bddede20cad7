"""Snapshot request model: one queued AI visibility analysis job."""

from sqlalchemy import CheckConstraint, Column, String, Text, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from split.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class SnapshotRequest(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "snapshot_requests"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)

    urls = Column(JSONType, nullable=False, default=list)
    topic = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, processing, completed, failed

    # Lock fields, set by the claim statement and cleared by the reclaimer
    locked_at = Column(DateTime(timezone=True))
    locked_by = Column(String(100))

    completed_at = Column(DateTime(timezone=True))
    error_message = Column(Text)

    # Relationships
    user = relationship("User", back_populates="snapshot_requests")
    results = relationship("VisibilityResult", back_populates="request", order_by="VisibilityResult.question_number")
    summaries = relationship("SnapshotSummary", back_populates="request")
    page_contents = relationship("PageContent", back_populates="request")

    __table_args__ = (
        Index("idx_snapshot_status_created", "status", "created_at"),
        Index("idx_snapshot_status_locked", "status", "locked_at"),
        CheckConstraint(
            "status IN ('pending', 'processing', 'completed', 'failed')",
            name="ck_snapshot_requests_status",
        ),
    )
