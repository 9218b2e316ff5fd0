import os
import tempfile

import pytest

# main builds a module-level app on import; keep it out of the working tree
_scratch = tempfile.mkdtemp(prefix="portfolio-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_scratch}/import.db")
os.environ.setdefault("PUBLIC_DIR", os.path.join(_scratch, "public"))

from fastapi.testclient import TestClient  # noqa: E402

from config import Settings  # noqa: E402
from main import create_app  # noqa: E402

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-pass"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def settings(tmp_path):
    return Settings(
        environment="test",
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        jwt_secret="test-secret",
        database_url=f"sqlite:///{tmp_path}/test.db",
        public_dir=str(tmp_path / "public"),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def token(client):
    response = client.post(
        "/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def upload_dir(settings):
    return os.path.join(settings.public_dir, "uploads", "projects")


def project_form(**overrides):
    form = {
        "title": "Fuel Tracker",
        "description": "Fleet fuel monitoring dashboard",
        "technologies": "React, Node",
        "category": "Web Development",
        "completionDate": "2024-03-15",
        "featured": "true",
    }
    form.update(overrides)
    return {key: value for key, value in form.items() if value is not None}


def image_file(name="shot.png", content=PNG_BYTES, content_type="image/png"):
    return {"image": (name, content, content_type)}


def uploaded_files(directory):
    if not os.path.isdir(directory):
        return []
    return sorted(os.listdir(directory))
