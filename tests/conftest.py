"""Shared fixtures for gclientauth tests."""

import json
import socket
import sys
import time
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from loguru import logger


def client_secret_document(kind: str = "installed", **overrides: Any) -> dict:
    """Build a client credential document of the given kind."""
    section = {
        "client_id": "test-client.apps.googleusercontent.com",
        "client_secret": "test-secret",
        "auth_uri": "https://accounts.example.com/o/oauth2/auth",
        "token_uri": "https://oauth2.example.com/token",
        "redirect_uris": ["http://localhost"],
    }
    section.update(overrides)
    return {kind: section}


def find_free_port() -> int:
    """Find an available port on 127.0.0.1."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port: int = s.getsockname()[1]
        return port


@pytest.fixture
def installed_secrets(tmp_path: Path) -> Path:
    path = tmp_path / "client_secret.json"
    path.write_text(json.dumps(client_secret_document("installed")))
    return path


@pytest.fixture
def token_response() -> dict:
    """A successful token endpoint response."""
    return {
        "access_token": "fresh-token",
        "token_type": "Bearer",
        "refresh_token": "refresh-token",
        "expires_in": 3599,
        "expires_at": time.time() + 3599,
    }


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """Undo setup_logging so sinks never point at a closed capture stream."""
    yield
    logger.remove()
    logger.add(sys.stderr)
