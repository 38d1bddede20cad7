"""Page content model: scraped page plus its technical AEO audit."""

from sqlalchemy import Column, String, Integer, Boolean, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from split.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class PageContent(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "page_contents"

    request_id = Column(Uuid(as_uuid=True), ForeignKey("snapshot_requests.id"), nullable=False, index=True)
    url = Column(String(2000), nullable=False)
    domain = Column(String(255), nullable=False)

    # Scrape
    title = Column(Text, default="")
    meta_description = Column(Text, default="")
    raw_markdown = Column(Text, default="")
    raw_html = Column(Text, default="")
    word_count = Column(Integer, default=0)
    scrape_duration_ms = Column(Integer, default=0)
    scrape_success = Column(Boolean, nullable=False, default=False)
    scrape_error = Column(Text)
    scrape_metadata = Column(JSONType, default=dict)

    # Technical audit
    aeo_score = Column(Integer)
    rendering_mode = Column(String(20))  # ssr, csr, hybrid
    category_scores = Column(JSONType, default=dict)
    issues = Column(JSONType, default=list)
    recommendations = Column(JSONType, default=list)

    # Relationships
    request = relationship("SnapshotRequest", back_populates="page_contents")
