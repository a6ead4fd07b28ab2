from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from scidatahub.core import config
from scidatahub.database import get_db
from scidatahub.routes.common import store_errors
from scidatahub.schemas.common import page_fields
from scidatahub.schemas.review import (
    BatchReviewRequest,
    BatchReviewResponse,
    ReviewDecisionRequest,
    ReviewDetailResponse,
    ReviewerRequest,
    ReviewStatsResponse,
    TransitionResponse,
)
from scidatahub.schemas.submission import SubmissionPage, submission_response
from scidatahub.services import review_workflow
from scidatahub.services.submissions import get_submission

router = APIRouter(tags=['review'])


def _submission_page(result) -> SubmissionPage:
    return SubmissionPage(
        submissions=[submission_response(submission) for submission in result.items],
        **page_fields(result),
    )


@router.get('/pending', response_model=SubmissionPage)
def list_pending_submissions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    category: str | None = Query(default=None),
    submitter_type: str | None = Query(default=None, alias='submitterType'),
    validation_status: str | None = Query(default=None, alias='validationStatus'),
    sort_by: str = Query(default='createdAt', alias='sortBy'),
    sort_order: str = Query(default='asc', alias='sortOrder'),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Pending submissions fetch'):
        result = review_workflow.list_pending(
            db,
            page=page,
            limit=limit,
            category=category,
            submitter_type=submitter_type,
            validation_status=validation_status,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return _submission_page(result)


@router.post('/assign/{submission_id}', response_model=TransitionResponse)
def assign_submission(submission_id: str, data: ReviewerRequest, db: Session = Depends(get_db)):
    with store_errors(db, 'Review assignment'):
        submission = review_workflow.assign_submission(db, submission_id, data.reviewer_id)
        return TransitionResponse(
            message='Submission assigned for review',
            submission=submission_response(submission),
        )


@router.post('/submit/{submission_id}', response_model=TransitionResponse)
def submit_review(submission_id: str, data: ReviewDecisionRequest, db: Session = Depends(get_db)):
    with store_errors(db, 'Review submission'):
        submission = review_workflow.submit_review(
            db,
            submission_id,
            reviewer_id=data.reviewer_id,
            decision=data.decision,
            comments=data.comments,
            suggested_changes=data.suggested_changes,
        )
        return TransitionResponse(
            message=f'Submission {data.decision}',
            submission=submission_response(submission),
        )


@router.post('/release/{submission_id}', response_model=TransitionResponse)
def release_submission(submission_id: str, data: ReviewerRequest, db: Session = Depends(get_db)):
    with store_errors(db, 'Review release'):
        submission = review_workflow.release_submission(db, submission_id, data.reviewer_id)
        return TransitionResponse(
            message='Submission released back to pending queue',
            submission=submission_response(submission),
        )


@router.post('/batch', response_model=BatchReviewResponse)
def batch_review(data: BatchReviewRequest, db: Session = Depends(get_db)):
    with store_errors(db, 'Batch review'):
        modified_count = review_workflow.batch_review(
            db,
            data.submission_ids,
            decision=data.decision,
            reviewer_id=data.reviewer_id,
            comments=data.comments,
        )
        return BatchReviewResponse(
            message=f'Batch operation completed: {modified_count} submissions {data.decision}',
            modified_count=modified_count,
        )


@router.get('/reviewed/{reviewer_id}', response_model=SubmissionPage)
def list_reviewed_submissions(
    reviewer_id: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    status: str | None = Query(default=None),
    category: str | None = Query(default=None),
    start_date: datetime | None = Query(default=None, alias='startDate'),
    end_date: datetime | None = Query(default=None, alias='endDate'),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Reviewed submissions fetch'):
        result = review_workflow.list_reviewed(
            db,
            reviewer_id,
            page=page,
            limit=limit,
            status=status,
            category=category,
            start_date=start_date,
            end_date=end_date,
        )
        return _submission_page(result)


@router.get('/stats', response_model=ReviewStatsResponse)
def review_stats(
    reviewer_id: str | None = Query(default=None, alias='reviewerId'),
    start_date: datetime | None = Query(default=None, alias='startDate'),
    end_date: datetime | None = Query(default=None, alias='endDate'),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Review stats'):
        stats = review_workflow.review_statistics(
            db,
            reviewer_id=reviewer_id,
            start_date=start_date,
            end_date=end_date,
        )
        return ReviewStatsResponse(**stats)


@router.get('/submission/{submission_id}', response_model=ReviewDetailResponse)
def review_submission_detail(submission_id: str, db: Session = Depends(get_db)):
    with store_errors(db, 'Review submission detail'):
        submission = get_submission(db, submission_id)
        return ReviewDetailResponse(
            submission=submission_response(submission),
            review_metadata=review_workflow.review_metadata(submission),
        )
