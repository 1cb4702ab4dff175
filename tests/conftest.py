"""
BusBuzz API - test configuration and fixtures
"""
import os

# must be in place before busbuzz.core.config builds its Settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret-for-testing-only"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "true"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("SUPABASE_SERVICE_ROLE", None)

import pytest
from fastapi.testclient import TestClient

from busbuzz.core.config import settings
from busbuzz.core.security import Principal, make_token
from busbuzz.db.session import Database
from busbuzz.main import create_app
from busbuzz.services.directory import Directory
from busbuzz.services.identity import create_user
from busbuzz.services.lifecycle import LifecycleEngine
from busbuzz.services.report_store import ReportStore
from busbuzz.services.storage import LocalBlobStore

PASSWORD = "password123"


@pytest.fixture
def database():
    """Fresh in-memory database per test"""
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    db = database.session()
    yield db
    db.close()


@pytest.fixture
def engine(session):
    return LifecycleEngine(ReportStore(session), Directory(session))


@pytest.fixture
def blobs(tmp_path):
    return LocalBlobStore(str(tmp_path / "blobs"))


@pytest.fixture
def client(database, blobs):
    app = create_app(settings, database=database, blobs=blobs)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(database):
    """Create a user in its own short-lived session and return its Principal"""
    def _make(name="Asha", email=None, role="student", password=PASSWORD):
        with database.session() as db:
            user = create_user(
                db,
                name=name,
                email=email or f"{name.lower().replace(' ', '.')}@campus.edu",
                password=password,
                role=role,
            )
            return Principal(user_id=user.id, role=user.role.value, name=user.name)
    return _make


@pytest.fixture
def student(make_user):
    return make_user("Asha")


@pytest.fixture
def other_student(make_user):
    return make_user("Bala")


@pytest.fixture
def admin(make_user):
    return make_user("Admin User", email="admin@campus.edu", role="admin")


def auth_headers(principal: Principal) -> dict:
    return {"Authorization": f"Bearer {make_token(principal.user_id, principal.role)}"}


def feedback_body(**overrides) -> dict:
    body = {
        "kind": "Feedback",
        "route": "5A",
        "busNo": "KA-01-F-1234",
        "issue": "Punctuality",
        "description": "Bus was 20 minutes late",
        "attachments": [{"url": "/a/1"}],
    }
    body.update(overrides)
    return body
