"""Shared pytest fixtures for all tests."""

import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from fragments.auth import hash_password
from fragments.main import create_app
from fragments.storage.interfaces import StorageBackends
from fragments.storage.memory import InMemoryBlobStore, InMemoryMetadataStore


USER_EMAIL = "user1@email.com"
USER_PASSWORD = "password1"
OTHER_EMAIL = "user2@email.com"
OTHER_PASSWORD = "password2"


@pytest.fixture
def backends():
    """
    Fresh in-memory storage backends.

    Returns:
        StorageBackends with empty in-memory stores
    """
    return StorageBackends(
        metadata=InMemoryMetadataStore(),
        blobs=InMemoryBlobStore(),
        kind="memory",
    )


@pytest.fixture
def htpasswd_file(tmp_path):
    """
    Create an htpasswd file with two bcrypt users.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to the htpasswd file
    """
    path = tmp_path / '.htpasswd'
    lines = [
        f"{USER_EMAIL}:{hash_password(USER_PASSWORD, rounds=4).replace('$2b$', '$2y$', 1)}",
        f"{OTHER_EMAIL}:{hash_password(OTHER_PASSWORD, rounds=4)}",
    ]
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def client(backends, htpasswd_file, monkeypatch):
    """
    Create a FastAPI test client serving from in-memory backends.
    """
    monkeypatch.setattr("fragments.config.HTPASSWD_FILE", str(htpasswd_file))
    monkeypatch.setattr("fragments.config.API_URL", "http://localhost:8080")
    app = create_app(backends=backends)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth():
    """Basic credentials of the primary test user."""
    return (USER_EMAIL, USER_PASSWORD)


@pytest.fixture
def other_auth():
    """Basic credentials of a second test user."""
    return (OTHER_EMAIL, OTHER_PASSWORD)


def make_image(image_format: str = "PNG", mode: str = "RGB", size=(4, 4)) -> bytes:
    """
    Encode a small solid-colour image.

    Args:
        image_format: Pillow format name
        mode: Pillow image mode
        size: Width and height in pixels

    Returns:
        Encoded image bytes
    """
    color = {"RGBA": (255, 0, 0, 128), "CMYK": (0, 255, 255, 0)}.get(mode, (255, 0, 0))
    image = Image.new(mode, size, color)
    output = io.BytesIO()
    image.save(output, format=image_format)
    return output.getvalue()


@pytest.fixture
def png_bytes():
    return make_image("PNG")


@pytest.fixture
def image_factory():
    """The make_image helper, for tests that need several formats."""
    return make_image
