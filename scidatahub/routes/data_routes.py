from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from scidatahub.core import config
from scidatahub.database import get_db
from scidatahub.routes.common import store_errors
from scidatahub.schemas.common import MessageResponse, page_fields
from scidatahub.schemas.submission import (
    CreateSubmissionRequest,
    CreateSubmissionResponse,
    DataStatsResponse,
    SubmissionEnvelope,
    SubmissionPage,
    SubmissionUpdateResponse,
    UpdateSubmissionRequest,
    submission_response,
)
from scidatahub.services import submissions

router = APIRouter(tags=['data'])


@router.post('/submit', response_model=CreateSubmissionResponse, status_code=status.HTTP_201_CREATED)
def submit_data(data: CreateSubmissionRequest, db: Session = Depends(get_db)):
    with store_errors(db, 'Data submission'):
        submission = submissions.create_submission(
            db,
            title=data.title,
            description=data.description,
            category=data.category,
            data_type=data.data_type,
            data=data.data,
            submitted_by=data.submitted_by,
            metadata=data.metadata,
            submitter_type=data.submitter_type,
            tags=data.tags,
            is_public=data.is_public,
            file_urls=[reference.model_dump() for reference in data.file_urls or []],
        )
        return CreateSubmissionResponse(
            message='Data submitted successfully',
            submission_id=submission.id,
            validation_status=submission.validation_status,
            validation_errors=submission.validation_errors,
        )


@router.get('/submissions', response_model=SubmissionPage)
def list_submissions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    category: str | None = Query(default=None),
    submission_status: str | None = Query(default=None, alias='status'),
    submitted_by: str | None = Query(default=None, alias='submittedBy'),
    data_type: str | None = Query(default=None, alias='dataType'),
    search: str | None = Query(default=None),
    is_public: bool | None = Query(default=None, alias='isPublic'),
    start_date: datetime | None = Query(default=None, alias='startDate'),
    end_date: datetime | None = Query(default=None, alias='endDate'),
    sort_by: str = Query(default='createdAt', alias='sortBy'),
    sort_order: str = Query(default='desc', alias='sortOrder'),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Submissions fetch'):
        result = submissions.list_submissions(
            db,
            page=page,
            limit=limit,
            category=category,
            status=submission_status,
            submitted_by=submitted_by,
            data_type=data_type,
            search=search,
            is_public=is_public,
            start_date=start_date,
            end_date=end_date,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return SubmissionPage(
            submissions=[submission_response(submission) for submission in result.items],
            **page_fields(result),
        )


@router.get('/submissions/{submission_id}', response_model=SubmissionEnvelope)
def get_submission(submission_id: str, db: Session = Depends(get_db)):
    with store_errors(db, 'Submission fetch'):
        submission = submissions.get_submission(db, submission_id)
        return SubmissionEnvelope(submission=submission_response(submission))


@router.put('/submissions/{submission_id}', response_model=SubmissionUpdateResponse)
def update_submission(submission_id: str, data: UpdateSubmissionRequest, db: Session = Depends(get_db)):
    with store_errors(db, 'Submission update'):
        submission = submissions.update_submission(db, submission_id, data.model_dump(exclude_unset=True))
        return SubmissionUpdateResponse(
            message='Submission updated successfully',
            submission=submission_response(submission),
        )


@router.delete('/submissions/{submission_id}', response_model=MessageResponse)
def delete_submission(submission_id: str, db: Session = Depends(get_db)):
    with store_errors(db, 'Submission deletion'):
        submissions.delete_submission(db, submission_id)
        return MessageResponse(message='Submission deleted successfully')


@router.get('/stats', response_model=DataStatsResponse)
def submission_stats(db: Session = Depends(get_db)):
    with store_errors(db, 'Stats fetch'):
        return DataStatsResponse(**submissions.submission_statistics(db))


@router.get('/export')
def export_submissions(
    export_format: str = Query(default='json', alias='format'),
    category: str | None = Query(default=None),
    submission_status: str | None = Query(default=None, alias='status'),
    start_date: datetime | None = Query(default=None, alias='startDate'),
    end_date: datetime | None = Query(default=None, alias='endDate'),
    db: Session = Depends(get_db),
):
    export_format = export_format.strip().lower()
    if export_format not in ('json', 'csv'):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Unsupported export format')

    with store_errors(db, 'Export'):
        rows = submissions.export_submissions(
            db,
            category=category,
            status=submission_status,
            start_date=start_date,
            end_date=end_date,
        )
        headers = {'Content-Disposition': f'attachment; filename=submissions.{export_format}'}
        if export_format == 'csv':
            return Response(content=submissions.submissions_csv(rows), media_type='text/csv', headers=headers)
        return JSONResponse(
            content=[submission_response(row).model_dump(mode='json', by_alias=True) for row in rows],
            headers=headers,
        )
