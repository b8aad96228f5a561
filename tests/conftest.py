import os
import tempfile

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="luminos-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'luminos_test.db')}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["ADMIN_EMAIL"] = "admin@technovation.com"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("DUMMY_OPENAI_KEY", None)

import httpx  # noqa: E402
import openai  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from database import Base, SessionLocal, engine  # noqa: E402
import app_models  # noqa: E402,F401
import crud  # noqa: E402
from services import openai_client  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_database(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("DUMMY_OPENAI_KEY", raising=False)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_token(client):
    response = client.post(
        "/api/auth/login",
        json={"email": "admin@technovation.com", "password": "admin123"},
    )
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def make_user(db):
    """Create a user directly in the database and return it."""
    counter = {"n": 0}

    def _make(role="citizen", status=None, phone_number=None, password="secret123", **kwargs):
        counter["n"] += 1
        n = counter["n"]
        user = crud.create_user(
            db,
            first_name=kwargs.pop("first_name", f"User{n}"),
            last_name=kwargs.pop("last_name", "Test"),
            email=kwargs.pop("email", f"user{n}@example.com"),
            password=password,
            national_id=kwargs.pop("national_id", f"NID{n:010d}"),
            sex=kwargs.pop("sex", "other"),
            phone_number=phone_number or f"0170000{n:04d}",
            role=role,
            department=kwargs.pop("department", "fire" if role == "govt_authority" else None),
            region=kwargs.pop("region", "dhaka_north" if role == "govt_authority" else None),
        )
        if status:
            user.status = status
            db.commit()
        for key, value in kwargs.items():
            setattr(user, key, value)
        if kwargs:
            db.commit()
        return user

    return _make


@pytest.fixture
def token_for():
    from app_utils.security import create_access_token

    def _token(user):
        return create_access_token(user)

    return _token


@pytest.fixture
def mock_openai(monkeypatch):
    """Route the OpenAI SDK through an in-process transport; returns the captured requests."""
    def _install(handler):
        seen = []

        def transport(request):
            seen.append(request)
            return handler(request)

        monkeypatch.setattr(
            openai_client, "get_client",
            lambda: openai.OpenAI(
                api_key="sk-test",
                max_retries=0,
                http_client=httpx.Client(transport=httpx.MockTransport(transport)),
            ),
        )
        return seen

    return _install
