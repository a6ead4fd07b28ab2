import csv
import io
import logging
import os
from datetime import datetime

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from scidatahub.core import config
from scidatahub.database import utcnow
from scidatahub.models.submission import (
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    Submission,
)
from scidatahub.models.user import User
from scidatahub.services.errors import NotFoundError
from scidatahub.services.queries import Page, apply_date_window, paginate, sort_column
from scidatahub.services.validation import validate_submission_data

logger = logging.getLogger(__name__)


def get_submission(db: Session, submission_id: str) -> Submission:
    submission = db.get(Submission, submission_id)
    if submission is None:
        raise NotFoundError('Submission not found')
    return submission


def create_submission(
    db: Session,
    *,
    title: str,
    description: str,
    category: str,
    data_type: str,
    data,
    submitted_by: str,
    metadata: dict | None = None,
    submitter_type: str = 'citizen',
    tags: list[str] | None = None,
    is_public: bool = False,
    file_urls: list[dict] | None = None,
) -> Submission:
    """Validate and store a new submission.

    A payload that fails validation is still stored; it is flagged
    ``needs_review`` and carries its issues so a reviewer can see them.
    """
    if db.get(User, submitted_by) is None:
        raise NotFoundError('Submitter not found')

    validation = validate_submission_data(data, data_type)

    submission = Submission(
        title=title,
        description=description,
        category=category,
        data_type=data_type,
        data=data,
        submission_metadata={**(metadata or {}), 'timestamp': utcnow().isoformat()},
        submitted_by=submitted_by,
        submitter_type=submitter_type,
        tags=tags or [],
        is_public=is_public,
        file_urls=file_urls or [],
        status=STATUS_PENDING,
        validation_status=validation.validation_status,
        validation_errors=validation.issues(),
    )
    db.add(submission)
    db.commit()
    db.refresh(submission)

    if not validation.is_valid:
        logger.info('Submission %s stored with %d validation issue(s)', submission.id, len(validation.errors))
    return submission


def update_submission(db: Session, submission_id: str, changes: dict) -> Submission:
    """Apply a partial owner edit.

    Replacing ``data`` re-runs validation against the stored data type. The
    review status is not touched.
    """
    submission = get_submission(db, submission_id)

    for attribute in ('title', 'description', 'category', 'tags', 'is_public'):
        if changes.get(attribute) is not None:
            setattr(submission, attribute, changes[attribute])

    if changes.get('metadata'):
        submission.submission_metadata = {**(submission.submission_metadata or {}), **changes['metadata']}

    if changes.get('data') is not None:
        validation = validate_submission_data(changes['data'], submission.data_type)
        submission.data = changes['data']
        submission.validation_status = validation.validation_status
        submission.validation_errors = validation.issues()

    db.commit()
    db.refresh(submission)
    return submission


def _remove_stored_files(file_urls: list[dict]) -> None:
    for file_reference in file_urls or []:
        filename = os.path.basename(file_reference.get('filename') or '')
        if not filename:
            continue
        file_path = os.path.join(config.UPLOAD_DIR, filename)
        if os.path.exists(file_path):
            os.remove(file_path)
            logger.info('Removed stored file %s', file_path)


def delete_submission(db: Session, submission_id: str) -> None:
    submission = get_submission(db, submission_id)
    _remove_stored_files(submission.file_urls)
    db.delete(submission)
    db.commit()


def list_submissions(
    db: Session,
    page: int = 1,
    limit: int = 10,
    category: str | None = None,
    status: str | None = None,
    submitted_by: str | None = None,
    data_type: str | None = None,
    search: str | None = None,
    is_public: bool | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    sort_by: str | None = None,
    sort_order: str | None = 'desc',
) -> Page:
    query = db.query(Submission)
    if category:
        query = query.filter(Submission.category == category)
    if status:
        query = query.filter(Submission.status == status)
    if submitted_by:
        query = query.filter(Submission.submitted_by == submitted_by)
    if data_type:
        query = query.filter(Submission.data_type == data_type)
    if is_public is not None:
        query = query.filter(Submission.is_public == is_public)
    if search:
        pattern = f'%{search.strip()}%'
        query = query.filter(
            or_(
                Submission.title.ilike(pattern),
                Submission.description.ilike(pattern),
                cast(Submission.tags, String).ilike(pattern),
            )
        )
    query = apply_date_window(query, Submission.created_at, start_date, end_date)

    return paginate(query.order_by(*sort_column(sort_by, sort_order, default_order='desc')), page, limit)


def submission_statistics(db: Session) -> dict:
    status_counts = dict(db.query(Submission.status, func.count(Submission.id)).group_by(Submission.status).all())

    count = func.count(Submission.id).label('count')
    category_stats = (
        db.query(Submission.category, count)
        .group_by(Submission.category)
        .order_by(count.desc(), Submission.category.asc())
        .all()
    )
    submitter_type_stats = (
        db.query(Submission.submitter_type, count)
        .group_by(Submission.submitter_type)
        .order_by(Submission.submitter_type.asc())
        .all()
    )

    return {
        'total_submissions': sum(status_counts.values()),
        'pending_submissions': status_counts.get(STATUS_PENDING, 0),
        'approved_submissions': status_counts.get(STATUS_APPROVED, 0),
        'rejected_submissions': status_counts.get(STATUS_REJECTED, 0),
        'category_stats': [{'key': key, 'count': value} for key, value in category_stats],
        'submitter_type_stats': [{'key': key, 'count': value} for key, value in submitter_type_stats],
    }


EXPORT_COLUMNS = (
    'id',
    'title',
    'category',
    'status',
    'submitterName',
    'submitterEmail',
    'createdAt',
    'updatedAt',
)


def export_submissions(
    db: Session,
    category: str | None = None,
    status: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> list[Submission]:
    query = db.query(Submission)
    if category:
        query = query.filter(Submission.category == category)
    if status:
        query = query.filter(Submission.status == status)
    query = apply_date_window(query, Submission.created_at, start_date, end_date)
    return query.order_by(Submission.created_at.asc(), Submission.id.asc()).all()


def submissions_csv(rows: list[Submission]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(EXPORT_COLUMNS)
    for submission in rows:
        submitter = submission.submitter
        writer.writerow(
            [
                submission.id,
                submission.title,
                submission.category,
                submission.status,
                submitter.full_name if submitter else '',
                submitter.email if submitter else '',
                submission.created_at.isoformat(),
                submission.updated_at.isoformat(),
            ]
        )
    return buffer.getvalue()
