import itertools
import os
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from scidatahub.auth.permissions import permissions_for  # noqa: E402
from scidatahub.database import Database  # noqa: E402
from scidatahub.main import app  # noqa: E402
from scidatahub.models.submission import Submission  # noqa: E402
from scidatahub.models.user import User  # noqa: E402


@pytest.fixture
def database():
    handle = Database('sqlite://')
    handle.create_schema()
    try:
        yield handle
    finally:
        handle.drop_schema()
        handle.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(database):
    app.state.database = database
    return TestClient(app)


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make_user(role: str = 'citizen', **overrides) -> User:
        index = next(counter)
        values = {
            'email': f'{role}{index}@example.org',
            'hashed_password': 'unused',
            'first_name': role.title(),
            'last_name': f'Number{index}',
            'role': role,
            'permissions': permissions_for(role),
        }
        values.update(overrides)
        user = User(**values)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_submission(db, make_user):
    def _make_submission(submitter: User | None = None, **overrides) -> Submission:
        values = {
            'title': 'River temperature',
            'description': 'Weekly readings',
            'category': 'environmental',
            'data_type': 'form_data',
            'data': {'temp': 5},
            'submitted_by': (submitter or make_user()).id,
            'submitter_type': 'citizen',
            'validation_status': 'valid',
            'validation_errors': [],
            'created_at': datetime(2026, 1, 5, 9, 0),
        }
        values.update(overrides)
        submission = Submission(**values)
        db.add(submission)
        db.commit()
        db.refresh(submission)
        return submission

    return _make_submission
