import os
import tempfile

import pytest

# Configure the app before it is imported: in-memory database, throwaway audit log
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['AUDIT_LOG_DIR'] = tempfile.mkdtemp(prefix='portal-audit-')
os.environ['RATELIMIT_ENABLED'] = 'false'
os.environ['STORAGE_URL'] = 'https://storage.example.test'
os.environ['STORAGE_API_KEY'] = 'test-anon-key'
os.environ['STORAGE_BUCKET'] = 'petitions'

from flask_jwt_extended import create_access_token  # noqa: E402

from portal import app as portal_app, db  # noqa: E402
from portal.routes import directory  # noqa: E402


@pytest.fixture
def app():
    portal_app.config['TESTING'] = True
    with portal_app.app_context():
        db.create_all()
        yield portal_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def make_user(app):
    """Register a user through the directory; each call gets a unique email and national id."""
    counter = {'n': 0}

    def _make_user(role='petitioner', password='password1', **overrides):
        counter['n'] += 1
        n = counter['n']
        fields = {
            'first_name': 'Jane',
            'last_name': 'Doe',
            'email': f'user{n}@example.com',
            'phone': '0700000000',
            'national_id': f'ID{n:06d}',
        }
        fields.update(overrides)
        result = directory.register(
            fields['first_name'], fields['last_name'], fields['email'], fields['phone'],
            fields['national_id'], password, role=role,
        )
        assert result, result.message
        return result.value

    return _make_user


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        token = create_access_token(identity=user.id, additional_claims={'role': user.role})
        return {'Authorization': f'Bearer {token}'}
    return _auth_headers
