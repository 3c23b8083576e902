import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Point the app at throwaway storage before any project module is imported
_TMP = Path(tempfile.mkdtemp(prefix="board-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["APP_SECRET"] = "test-secret"
os.environ.pop("UPLOAD_URL_PREFIX", None)
os.environ.pop("ATTACHMENT_CASE_INSENSITIVE", None)

from app import app as flask_app  # noqa: E402
from db_models import Base, SessionLocal, engine  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app():
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def csrf_client(client):
    with client.session_transaction() as sess:
        sess["csrf_token"] = "test-token"
    return client


@pytest.fixture
def upload_dir():
    import uploads

    return uploads.UPLOAD_DIR
