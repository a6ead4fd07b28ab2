"""Review workflow for submissions.

Status lifecycle::

    pending --assign--> under_review --submit--> approved | rejected | revision_required
       ^                     |
       +------release--------+

    pending | under_review --batch--> approved | rejected

Every transition is written as a single conditional UPDATE whose WHERE clause
carries the expected current status (and, where relevant, the expected
reviewer). A zero row count means the guard failed; only then is the row read
back to work out which error to report. Two reviewers racing to assign the
same submission therefore cannot both win.
"""

import logging
from datetime import datetime

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from scidatahub.auth.permissions import can_review
from scidatahub.database import utcnow
from scidatahub.models.submission import (
    DECIDED_STATUSES,
    OPEN_STATUSES,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    STATUS_REVISION_REQUIRED,
    STATUS_UNDER_REVIEW,
    Submission,
)
from scidatahub.models.user import User
from scidatahub.services.errors import InvalidTransitionError, PermissionDeniedError
from scidatahub.services.queries import Page, apply_date_window, paginate, sort_column, to_naive_utc
from scidatahub.services.submissions import get_submission
from scidatahub.services.validation import SEVERITY_WARNING, count_records

logger = logging.getLogger(__name__)

REVIEW_DECISIONS = DECIDED_STATUSES
BATCH_DECISIONS = (STATUS_APPROVED, STATUS_REJECTED)
TOP_REVIEWER_LIMIT = 10
SUGGESTED_CHANGES_HEADING = 'Suggested Changes:'


def get_reviewer(db: Session, reviewer_id: str | None) -> User:
    reviewer = db.get(User, reviewer_id) if reviewer_id else None
    if not can_review(reviewer):
        logger.warning('Rejected reviewer %s: missing or lacks review permission', reviewer_id)
        raise PermissionDeniedError('Invalid reviewer or insufficient permissions')
    return reviewer


def _conditional_update(db: Session, submission_id: str, guards: list, values: dict) -> int:
    updated = (
        db.query(Submission)
        .filter(Submission.id == submission_id, *guards)
        .update(values, synchronize_session=False)
    )
    db.commit()
    return updated


def compose_review_comments(decision: str, comments: str | None, suggested_changes: str | None) -> str:
    review_comments = comments or ''
    if decision == STATUS_REVISION_REQUIRED and suggested_changes:
        review_comments += f'\n\n{SUGGESTED_CHANGES_HEADING}\n{suggested_changes}'
    return review_comments


def assign_submission(db: Session, submission_id: str, reviewer_id: str) -> Submission:
    get_reviewer(db, reviewer_id)

    updated = _conditional_update(
        db,
        submission_id,
        [Submission.status == STATUS_PENDING],
        {Submission.status: STATUS_UNDER_REVIEW, Submission.reviewed_by: reviewer_id},
    )
    if not updated:
        submission = get_submission(db, submission_id)
        logger.warning('Assignment of %s refused: status is %s', submission_id, submission.status)
        raise InvalidTransitionError('Submission is not available for assignment')

    logger.info('Submission %s assigned to reviewer %s', submission_id, reviewer_id)
    return get_submission(db, submission_id)


def release_submission(db: Session, submission_id: str, reviewer_id: str) -> Submission:
    updated = _conditional_update(
        db,
        submission_id,
        [Submission.status == STATUS_UNDER_REVIEW, Submission.reviewed_by == reviewer_id],
        {Submission.status: STATUS_PENDING, Submission.reviewed_by: None},
    )
    if not updated:
        submission = get_submission(db, submission_id)
        if submission.status != STATUS_UNDER_REVIEW:
            raise InvalidTransitionError('Submission is not under review')
        logger.warning('Reviewer %s tried to release %s assigned to %s', reviewer_id, submission_id, submission.reviewed_by)
        raise InvalidTransitionError('You are not assigned to review this submission')

    logger.info('Submission %s released by reviewer %s', submission_id, reviewer_id)
    return get_submission(db, submission_id)


def submit_review(
    db: Session,
    submission_id: str,
    reviewer_id: str,
    decision: str,
    comments: str | None = None,
    suggested_changes: str | None = None,
) -> Submission:
    if decision not in REVIEW_DECISIONS:
        raise InvalidTransitionError('Invalid review decision')

    get_reviewer(db, reviewer_id)

    # a decision never touches is_public
    updated = _conditional_update(
        db,
        submission_id,
        [Submission.status == STATUS_UNDER_REVIEW, Submission.reviewed_by == reviewer_id],
        {
            Submission.status: decision,
            Submission.review_comments: compose_review_comments(decision, comments, suggested_changes),
            Submission.review_date: utcnow(),
        },
    )
    if not updated:
        get_submission(db, submission_id)
        logger.warning('Reviewer %s not authorized to decide %s', reviewer_id, submission_id)
        raise InvalidTransitionError('You are not authorized to review this submission')

    logger.info('Submission %s marked %s by reviewer %s', submission_id, decision, reviewer_id)
    return get_submission(db, submission_id)


def batch_review(
    db: Session,
    submission_ids: list[str],
    decision: str,
    reviewer_id: str,
    comments: str | None = None,
) -> int:
    if decision not in BATCH_DECISIONS:
        raise InvalidTransitionError('Invalid batch decision. Only approve or reject allowed.')

    get_reviewer(db, reviewer_id)

    if not submission_ids:
        return 0

    modified = (
        db.query(Submission)
        .filter(Submission.id.in_(submission_ids), Submission.status.in_(OPEN_STATUSES))
        .update(
            {
                Submission.status: decision,
                Submission.reviewed_by: reviewer_id,
                Submission.review_comments: comments or f'Batch {decision}',
                Submission.review_date: utcnow(),
            },
            synchronize_session=False,
        )
    )
    db.commit()

    logger.info('Batch %s by reviewer %s: %d of %d submissions', decision, reviewer_id, modified, len(submission_ids))
    return modified


def list_pending(
    db: Session,
    page: int = 1,
    limit: int = 10,
    category: str | None = None,
    submitter_type: str | None = None,
    validation_status: str | None = None,
    sort_by: str | None = None,
    sort_order: str | None = 'asc',
) -> Page:
    query = db.query(Submission).filter(Submission.status.in_(OPEN_STATUSES))
    if category:
        query = query.filter(Submission.category == category)
    if submitter_type:
        query = query.filter(Submission.submitter_type == submitter_type)
    if validation_status:
        query = query.filter(Submission.validation_status == validation_status)

    return paginate(query.order_by(*sort_column(sort_by, sort_order)), page, limit)


def list_reviewed(
    db: Session,
    reviewer_id: str,
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
    category: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> Page:
    query = db.query(Submission).filter(Submission.reviewed_by == reviewer_id)
    if status:
        query = query.filter(Submission.status == status)
    if category:
        query = query.filter(Submission.category == category)
    query = apply_date_window(query, Submission.review_date, start_date, end_date)

    return paginate(query.order_by(Submission.review_date.desc(), Submission.id.asc()), page, limit)


def _percentage(part: int, whole: int) -> float:
    if not whole:
        return 0
    return round(part / whole * 100, 2)


def _decided_filter(query, reviewer_id: str | None, start_date: datetime | None, end_date: datetime | None):
    query = query.filter(Submission.status.in_(DECIDED_STATUSES))
    query = apply_date_window(query, Submission.review_date, start_date, end_date)
    if reviewer_id:
        query = query.filter(Submission.reviewed_by == reviewer_id)
    return query


def _review_time_hours(db: Session, reviewer_id, start_date, end_date) -> list[float]:
    rows = _decided_filter(
        db.query(Submission.created_at, Submission.review_date).filter(Submission.review_date.is_not(None)),
        reviewer_id,
        start_date,
        end_date,
    ).all()
    return [(reviewed - created).total_seconds() / 3600 for created, reviewed in rows]


def _category_breakdown(db: Session, reviewer_id, start_date, end_date) -> list[dict]:
    rows = _decided_filter(
        db.query(Submission.category, Submission.status, func.count(Submission.id)),
        reviewer_id,
        start_date,
        end_date,
    ).group_by(Submission.category, Submission.status).all()

    breakdown: dict[str, dict] = {}
    for category, status, count in rows:
        entry = breakdown.setdefault(category, {'category': category, 'statuses': [], 'total': 0})
        entry['statuses'].append({'status': status, 'count': count})
        entry['total'] += count

    return sorted(breakdown.values(), key=lambda entry: (-entry['total'], entry['category']))


def _top_reviewers(db: Session, start_date, end_date) -> list[dict]:
    total = func.count(Submission.id).label('total_reviewed')
    rows = (
        _decided_filter(
            db.query(
                Submission.reviewed_by,
                User.first_name,
                User.last_name,
                User.email,
                total,
                func.sum(case((Submission.status == STATUS_APPROVED, 1), else_=0)),
                func.sum(case((Submission.status == STATUS_REJECTED, 1), else_=0)),
                func.sum(case((Submission.status == STATUS_REVISION_REQUIRED, 1), else_=0)),
            )
            .select_from(Submission)
            .join(User, User.id == Submission.reviewed_by),
            None,
            start_date,
            end_date,
        )
        .group_by(Submission.reviewed_by, User.first_name, User.last_name, User.email)
        .order_by(total.desc(), Submission.reviewed_by.asc())
        .limit(TOP_REVIEWER_LIMIT)
        .all()
    )

    return [
        {
            'reviewer_id': reviewer_id,
            'reviewer_name': f'{first_name} {last_name}',
            'reviewer_email': email,
            'total_reviewed': total_reviewed,
            'approved': approved,
            'rejected': rejected,
            'revision_required': revision_required,
            # total_reviewed >= 1 for every grouped row
            'approval_rate': _percentage(approved, total_reviewed),
        }
        for reviewer_id, first_name, last_name, email, total_reviewed, approved, rejected, revision_required in rows
    ]


def review_statistics(
    db: Session,
    reviewer_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> dict:
    status_counts = dict(
        _decided_filter(
            db.query(Submission.status, func.count(Submission.id)),
            reviewer_id,
            start_date,
            end_date,
        ).group_by(Submission.status).all()
    )
    approved = status_counts.get(STATUS_APPROVED, 0)
    rejected = status_counts.get(STATUS_REJECTED, 0)
    revision_required = status_counts.get(STATUS_REVISION_REQUIRED, 0)
    total_reviewed = approved + rejected + revision_required

    # queue sizes are global, independent of the reviewer and date filters
    pending = db.query(Submission).filter(Submission.status == STATUS_PENDING).count()
    under_review = db.query(Submission).filter(Submission.status == STATUS_UNDER_REVIEW).count()

    review_hours = _review_time_hours(db, reviewer_id, start_date, end_date)

    return {
        'total_reviewed': total_reviewed,
        'approved': approved,
        'rejected': rejected,
        'revision_required': revision_required,
        'pending': pending,
        'under_review': under_review,
        'approval_rate': f'{approved / total_reviewed * 100:.2f}' if total_reviewed else '0',
        'average_review_time_hours': round(sum(review_hours) / len(review_hours), 2) if review_hours else 0,
        'min_review_time_hours': round(min(review_hours), 2) if review_hours else 0,
        'max_review_time_hours': round(max(review_hours), 2) if review_hours else 0,
        'category_breakdown': _category_breakdown(db, reviewer_id, start_date, end_date),
        'top_reviewers': [] if reviewer_id else _top_reviewers(db, start_date, end_date),
    }


def review_metadata(submission: Submission, now: datetime | None = None) -> dict:
    now = to_naive_utc(now) or utcnow()
    issues = submission.validation_errors or []
    error_count = len(issues)
    warning_count = sum(1 for issue in issues if issue.get('severity') == SEVERITY_WARNING)

    age_seconds = max((now - submission.created_at).total_seconds(), 0)
    record_count, field_count = count_records(submission.data)

    return {
        'data_integrity': {
            'has_validation_errors': bool(issues),
            'error_count': error_count,
            'warning_count': warning_count,
        },
        'submission_age': {
            'days': int(age_seconds // 86400),
            'hours': int(age_seconds // 3600),
        },
        'data_size': {
            'record_count': record_count,
            'fields': field_count,
        },
    }
