import pytest

from wellcare import create_app
from wellcare.config import Config
from wellcare.extensions import db
from wellcare.services import Services


@pytest.fixture
def app(tmp_path):
    config = type("TestConfig", (Config,), {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        "JWT_SECRET_KEY": "test-jwt-secret-key-that-is-long-enough",
        "OPENAI_API_KEY": "",
        "LOG_LEVEL": "WARNING",
    })
    app = create_app(config)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    with app.app_context():
        yield Services(db.session)


@pytest.fixture
def people(services):
    """A patient with two caregivers and a doctor, registered directly."""
    reg = services.registry
    return {
        "patient": reg.create_principal("pat@example.com", "Pat", "patient", {"age": 61}),
        "carol": reg.create_principal("carol@example.com", "Carol", "caregiver", {"relationship": "daughter"}),
        "cody": reg.create_principal("cody@example.com", "Cody", "caregiver"),
        "doc": reg.create_principal("doc@example.com", "Dr. Dee", "doctor", {"specialization": "cardiology"}),
    }


def _signup(client, email, role="patient", name=None, password="secret123", **profile):
    resp = client.post("/auth/signup", json={
        "email": email,
        "password": password,
        "name": name or email.split("@")[0].title(),
        "role": role,
        "profileData": profile,
    })
    assert resp.status_code == 201, resp.get_json()
    login = client.post("/auth/login", json={"email": email, "password": password})
    assert login.status_code == 200, login.get_json()
    data = login.get_json()
    return {"Authorization": f"Bearer {data['accessToken']}"}, data["profile"]


@pytest.fixture
def signup(client):
    """Register and log in through the HTTP surface; returns (auth headers, profile)."""
    def _register(email, role="patient", **kwargs):
        return _signup(client, email, role, **kwargs)
    return _register
