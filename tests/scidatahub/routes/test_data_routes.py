import csv
import io
from datetime import datetime

import pytest
from pydantic import ValidationError

from scidatahub.schemas.submission import CreateSubmissionRequest


def _payload(submitter_id: str, **overrides) -> dict:
    payload = {
        'title': 'Air quality',
        'description': 'PM2.5 readings',
        'category': 'environmental',
        'data': {'pm25': 12},
        'submittedBy': submitter_id,
    }
    payload.update(overrides)
    return payload


def test_create_submission_request_normalizes_choices() -> None:
    request = CreateSubmissionRequest(
        title=' Air ',
        description='d',
        category=' Biology ',
        data_type='CSV_UPLOAD',
        submitted_by='u1',
    )

    assert request.title == 'Air'
    assert request.category == 'biology'
    assert request.data_type == 'csv_upload'
    assert request.submitter_type == 'citizen'


@pytest.mark.parametrize(
    ('field', 'value'),
    [('category', 'astrology'), ('data_type', 'pdf_upload'), ('submitter_type', 'robot'), ('title', '   ')],
)
def test_create_submission_request_rejects_bad_values(field: str, value: str) -> None:
    values = {'title': 't', 'description': 'd', 'category': 'other', 'submitted_by': 'u1', field: value}

    with pytest.raises(ValidationError):
        CreateSubmissionRequest(**values)


def test_submit_invalid_payload_still_creates(client, make_user) -> None:
    submitter = make_user()

    response = client.post('/data/submit', json=_payload(submitter.id, data=[{'pm25': 12}]))

    assert response.status_code == 201
    body = response.json()
    assert body['validationStatus'] == 'needs_review'
    assert body['validationErrors'] == [
        {'field': 'data', 'message': 'Form data must be an object', 'severity': 'error'},
    ]


def test_submit_tabular_payload_with_uneven_rows(client, make_user) -> None:
    submitter = make_user()

    response = client.post(
        '/data/submit',
        json=_payload(submitter.id, dataType='csv_upload', data=[{'a': 1, 'b': 2}, {'a': 3}]),
    )

    assert response.status_code == 201
    assert response.json()['validationStatus'] == 'valid'
    assert response.json()['validationErrors'][0]['severity'] == 'warning'


def test_submit_unknown_submitter_returns_404(client) -> None:
    response = client.post('/data/submit', json=_payload('ghost'))

    assert response.status_code == 404
    assert response.json() == {'detail': 'Submitter not found'}


def test_submit_rejects_unknown_category(client, make_user) -> None:
    response = client.post('/data/submit', json=_payload(make_user().id, category='astrology'))

    assert response.status_code == 422


def test_get_update_and_delete_submission(client, make_user) -> None:
    submitter = make_user()
    submission_id = client.post('/data/submit', json=_payload(submitter.id)).json()['submissionId']

    fetched = client.get(f'/data/submissions/{submission_id}')
    assert fetched.status_code == 200
    assert fetched.json()['submission']['data'] == {'pm25': 12}
    assert fetched.json()['submission']['status'] == 'pending'

    updated = client.put(f'/data/submissions/{submission_id}', json={'data': [1, 2], 'isPublic': True})
    assert updated.status_code == 200
    assert updated.json()['message'] == 'Submission updated successfully'
    assert updated.json()['submission']['validationStatus'] == 'needs_review'
    assert updated.json()['submission']['isPublic'] is True

    deleted = client.delete(f'/data/submissions/{submission_id}')
    assert deleted.status_code == 200
    assert deleted.json() == {'message': 'Submission deleted successfully'}
    assert client.get(f'/data/submissions/{submission_id}').status_code == 404


def test_list_submissions_filters_by_status(client, make_submission) -> None:
    make_submission(status='approved')
    make_submission()

    body = client.get('/data/submissions', params={'status': 'approved'}).json()

    assert body['total'] == 1
    assert body['submissions'][0]['status'] == 'approved'


def test_data_stats(client, make_submission) -> None:
    make_submission()
    make_submission(status='approved', category='physics')

    body = client.get('/data/stats').json()

    assert body['totalSubmissions'] == 2
    assert body['pendingSubmissions'] == 1
    assert body['approvedSubmissions'] == 1
    assert body['categoryStats'] == [{'key': 'environmental', 'count': 1}, {'key': 'physics', 'count': 1}]


def test_health(client) -> None:
    assert client.get('/health').json()['status'] == 'ok'
    assert client.get('/').json() == {'status': 'SciDataHub API Running'}


def test_export_csv_filters_and_names_submitter(client, make_user, make_submission) -> None:
    owner = make_user(first_name='Ada', last_name='Lovelace', email='ada@example.org')
    exported = make_submission(owner, title='Tide gauge, north pier', status='approved')
    make_submission(owner, title='Still pending')
    make_submission(title='Old approval', status='approved', created_at=datetime(2025, 6, 1))

    response = client.get(
        '/data/export',
        params={'format': 'csv', 'status': 'approved', 'startDate': '2026-01-01T00:00:00'},
    )

    assert response.status_code == 200
    assert response.headers['content-type'].startswith('text/csv')
    assert response.headers['content-disposition'] == 'attachment; filename=submissions.csv'
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == [
        'id', 'title', 'category', 'status', 'submitterName', 'submitterEmail', 'createdAt', 'updatedAt',
    ]
    assert len(rows) == 2
    assert rows[1][:7] == [
        exported.id,
        'Tide gauge, north pier',
        'environmental',
        'approved',
        'Ada Lovelace',
        'ada@example.org',
        '2026-01-05T09:00:00',
    ]


def test_export_json_includes_submitter(client, make_user, make_submission) -> None:
    owner = make_user(first_name='Ada', last_name='Lovelace')
    make_submission(owner, category='biology')
    make_submission(category='physics')

    response = client.get('/data/export', params={'category': 'biology'})

    assert response.status_code == 200
    assert response.headers['content-disposition'] == 'attachment; filename=submissions.json'
    body = response.json()
    assert len(body) == 1
    assert body[0]['category'] == 'biology'
    assert body[0]['submittedBy']['firstName'] == 'Ada'


def test_export_rejects_unknown_format(client) -> None:
    response = client.get('/data/export', params={'format': 'xml'})

    assert response.status_code == 400
    assert response.json() == {'detail': 'Unsupported export format'}
