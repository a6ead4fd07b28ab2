"""Submission model definitions."""

from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from scidatahub.database import Base, utcnow

CATEGORIES = ('biology', 'chemistry', 'physics', 'environmental', 'medical', 'other')
DATA_TYPES = ('form_data', 'csv_upload', 'excel_upload', 'manual_entry')
SUBMITTER_TYPES = ('researcher', 'citizen')

STATUS_PENDING = 'pending'
STATUS_UNDER_REVIEW = 'under_review'
STATUS_APPROVED = 'approved'
STATUS_REJECTED = 'rejected'
STATUS_REVISION_REQUIRED = 'revision_required'
DECIDED_STATUSES = (STATUS_APPROVED, STATUS_REJECTED, STATUS_REVISION_REQUIRED)
OPEN_STATUSES = (STATUS_PENDING, STATUS_UNDER_REVIEW)


class Submission(Base):
    """A dataset plus its metadata, moving through the review workflow."""
    __tablename__ = "submissions"

    id = Column(String(32), primary_key=True, default=lambda: uuid4().hex)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False, index=True)
    data_type = Column(String, nullable=False)
    submitted_by = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    submitter_type = Column(String, default='citizen', nullable=False)
    data = Column(JSON, nullable=False)
    # "metadata" is reserved on declarative classes
    submission_metadata = Column("metadata", JSON, default=dict, nullable=False)
    file_urls = Column(JSON, default=list, nullable=False)
    status = Column(String, default=STATUS_PENDING, nullable=False, index=True)
    reviewed_by = Column(String(32), ForeignKey("users.id"))
    review_comments = Column(Text)
    review_date = Column(DateTime)
    validation_status = Column(String, default='not_validated', nullable=False)
    validation_errors = Column(JSON, default=list, nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    submitter = relationship("User", foreign_keys=[submitted_by], lazy="selectin")
    reviewer = relationship("User", foreign_keys=[reviewed_by], lazy="selectin")
