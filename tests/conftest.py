import os
import tempfile
from urllib.parse import urlsplit

import pytest
import requests

_db_dir = tempfile.mkdtemp(prefix="school-admin-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ.pop("ADMIN_INIT_TOKEN", None)

import app as school_app  # noqa: E402
from api_client import SchoolApiClient  # noqa: E402


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    school_app.SessionLocal.remove()
    with school_app.engine.begin() as conn:
        for table in reversed(school_app.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def client():
    school_app.app.config["TESTING"] = True
    with school_app.app.test_client() as c:
        yield c


class _TestResponse:
    """Just enough of ``requests.Response`` for SchoolApiClient."""

    def __init__(self, resp):
        self._resp = resp
        self.status_code = resp.status_code

    def json(self):
        return self._resp.get_json()

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FlaskTestSession:
    """Routes ``session.request(...)`` calls into the Flask test client."""

    def __init__(self, test_client):
        self.test_client = test_client
        self.calls = []

    def request(self, method, url, json=None, timeout=None):
        path = urlsplit(url).path
        self.calls.append((method, path, json))
        return _TestResponse(self.test_client.open(path, method=method, json=json))


@pytest.fixture
def http(client):
    return FlaskTestSession(client)


@pytest.fixture
def api(http):
    return SchoolApiClient(base_url="http://testserver", session=http)


@pytest.fixture
def make_teacher(client):
    def _make(**overrides):
        body = {
            "name": "Bob",
            "email": "b@x.com",
            "username": "bob",
            "password": "p",
            "employee_id": "E1",
            "phone": "555",
            "subjects": ["Math", "Art"],
        }
        body.update(overrides)
        resp = client.post("/api/teachers", json=body)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()

    return _make
