from datetime import datetime
from typing import Any

from pydantic import field_validator

from scidatahub.models.submission import CATEGORIES, DATA_TYPES, SUBMITTER_TYPES
from scidatahub.schemas.common import CamelModel, PageMeta
from scidatahub.schemas.user import UserSummary, user_summary


def _normalize_choice(value: str, choices: tuple[str, ...], message: str) -> str:
    normalized = value.strip().lower()
    if normalized not in choices:
        raise ValueError(message)
    return normalized


class FileReference(CamelModel):
    filename: str
    original_name: str | None = None
    mimetype: str | None = None
    size: int | None = None
    url: str | None = None


class ValidationIssueResponse(CamelModel):
    field: str
    message: str
    severity: str


class SubmissionResponse(CamelModel):
    id: str
    title: str
    description: str
    category: str
    data_type: str
    submitted_by: UserSummary | None = None
    submitter_type: str
    data: Any = None
    metadata: dict = {}
    file_urls: list[FileReference] = []
    status: str
    reviewed_by: UserSummary | None = None
    review_comments: str | None = None
    review_date: datetime | None = None
    validation_status: str
    validation_errors: list[ValidationIssueResponse] = []
    tags: list[str] = []
    is_public: bool
    created_at: datetime
    updated_at: datetime


def submission_response(submission) -> SubmissionResponse:
    return SubmissionResponse(
        id=submission.id,
        title=submission.title,
        description=submission.description,
        category=submission.category,
        data_type=submission.data_type,
        submitted_by=user_summary(submission.submitter),
        submitter_type=submission.submitter_type,
        data=submission.data,
        metadata=submission.submission_metadata or {},
        file_urls=submission.file_urls or [],
        status=submission.status,
        reviewed_by=user_summary(submission.reviewer),
        review_comments=submission.review_comments,
        review_date=submission.review_date,
        validation_status=submission.validation_status,
        validation_errors=submission.validation_errors or [],
        tags=submission.tags or [],
        is_public=submission.is_public,
        created_at=submission.created_at,
        updated_at=submission.updated_at,
    )


class CreateSubmissionRequest(CamelModel):
    title: str
    description: str
    category: str
    data_type: str = 'form_data'
    data: Any = None
    metadata: dict | None = None
    submitted_by: str
    submitter_type: str = 'citizen'
    tags: list[str] | None = None
    is_public: bool = False
    file_urls: list[FileReference] | None = None

    @field_validator('title', 'description')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        return normalized

    @field_validator('category')
    @classmethod
    def validate_category(cls, value: str) -> str:
        return _normalize_choice(value, CATEGORIES, 'Invalid category.')

    @field_validator('data_type')
    @classmethod
    def validate_data_type(cls, value: str) -> str:
        return _normalize_choice(value, DATA_TYPES, 'Invalid data type.')

    @field_validator('submitter_type')
    @classmethod
    def validate_submitter_type(cls, value: str) -> str:
        return _normalize_choice(value or 'citizen', SUBMITTER_TYPES, 'Invalid submitter type.')


class UpdateSubmissionRequest(CamelModel):
    title: str | None = None
    description: str | None = None
    category: str | None = None
    data: Any = None
    metadata: dict | None = None
    tags: list[str] | None = None
    is_public: bool | None = None

    @field_validator('category')
    @classmethod
    def validate_category(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _normalize_choice(value, CATEGORIES, 'Invalid category.')


class CreateSubmissionResponse(CamelModel):
    message: str
    submission_id: str
    validation_status: str
    validation_errors: list[ValidationIssueResponse]


class SubmissionEnvelope(CamelModel):
    submission: SubmissionResponse


class SubmissionUpdateResponse(CamelModel):
    message: str
    submission: SubmissionResponse


class SubmissionPage(PageMeta):
    submissions: list[SubmissionResponse]


class CountByKey(CamelModel):
    key: str | None = None
    count: int


class DataStatsResponse(CamelModel):
    total_submissions: int
    pending_submissions: int
    approved_submissions: int
    rejected_submissions: int
    category_stats: list[CountByKey]
    submitter_type_stats: list[CountByKey]
