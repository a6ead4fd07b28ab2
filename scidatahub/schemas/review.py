from pydantic import field_validator

from scidatahub.schemas.common import CamelModel
from scidatahub.schemas.submission import SubmissionResponse


class ReviewerRequest(CamelModel):
    reviewer_id: str


class ReviewDecisionRequest(CamelModel):
    reviewer_id: str
    decision: str
    comments: str | None = None
    suggested_changes: str | None = None

    @field_validator('decision')
    @classmethod
    def normalize_decision(cls, value: str) -> str:
        return value.strip().lower()


class BatchReviewRequest(CamelModel):
    submission_ids: list[str]
    decision: str
    comments: str | None = None
    reviewer_id: str

    @field_validator('decision')
    @classmethod
    def normalize_decision(cls, value: str) -> str:
        return value.strip().lower()


class TransitionResponse(CamelModel):
    message: str
    submission: SubmissionResponse


class BatchReviewResponse(CamelModel):
    message: str
    modified_count: int


class StatusCount(CamelModel):
    status: str
    count: int


class CategoryBreakdown(CamelModel):
    category: str
    statuses: list[StatusCount]
    total: int


class TopReviewer(CamelModel):
    reviewer_id: str
    reviewer_name: str
    reviewer_email: str
    total_reviewed: int
    approved: int
    rejected: int
    revision_required: int
    approval_rate: float


class ReviewStatsResponse(CamelModel):
    total_reviewed: int
    approved: int
    rejected: int
    revision_required: int
    pending: int
    under_review: int
    approval_rate: str
    average_review_time_hours: float
    min_review_time_hours: float
    max_review_time_hours: float
    category_breakdown: list[CategoryBreakdown]
    top_reviewers: list[TopReviewer]


class DataIntegrity(CamelModel):
    has_validation_errors: bool
    error_count: int
    warning_count: int


class SubmissionAge(CamelModel):
    days: int
    hours: int


class DataSize(CamelModel):
    record_count: int
    fields: int


class ReviewMetadata(CamelModel):
    data_integrity: DataIntegrity
    submission_age: SubmissionAge
    data_size: DataSize


class ReviewDetailResponse(CamelModel):
    submission: SubmissionResponse
    review_metadata: ReviewMetadata
