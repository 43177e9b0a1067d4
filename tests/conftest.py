"""
Pytest configuration: puts ``src`` on sys.path and provides shared fixtures.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"

for path in (SRC, ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from tests.helpers import WEBHOOK_SECRET, FakeAuthenticator, RecordingApi  # noqa: E402


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


@pytest.fixture
def app_env(monkeypatch: pytest.MonkeyPatch, private_key_pem: str) -> dict[str, str]:
    """A complete, valid environment for ``load_config``."""
    env = {
        "GITHUB_PRIVATE_KEY": private_key_pem,
        "GITHUB_WEBHOOK_SECRET": WEBHOOK_SECRET,
        "GITHUB_APP_IDENTIFIER": "1",
        "GITHUB_URI": "https://github.local",
    }
    for name in (
        "WEBHOOK_ADDR",
        "WEBHOOK_ENDPOINT",
        "INTERNAL_ADDR",
        "GITHUB_HTTP_TIMEOUT",
        "TOKEN_CACHE_ENABLED",
        "TOKEN_CACHE_MAXSIZE",
        "TOKEN_CACHE_EXPIRY_MARGIN",
        "CHECK_RUN_TEMPLATE_PATH",
        "CHECK_RUN_NAME",
        "CHECK_RUN_DETAILS_URL",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    return env


@pytest.fixture
def fake_api() -> RecordingApi:
    return RecordingApi()


@pytest.fixture
def fake_authenticator(fake_api: RecordingApi) -> FakeAuthenticator:
    return FakeAuthenticator(api=fake_api)


@pytest.fixture
def mock_aiohttp_session():
    """An aiohttp session whose ``post`` returns queued mock responses."""
    mock_session = MagicMock()
    mock_session.closed = False
    mock_session.close = AsyncMock()
    # post() must return the async context manager directly
    mock_session.post = MagicMock()

    def create_mock_response(status, json_data=None, text_data=None):
        mock_response = AsyncMock()
        mock_response.status = status

        async def mock_json():
            return json_data

        mock_response.json = mock_json

        async def mock_text():
            return text_data if text_data is not None else ""

        mock_response.text = mock_text

        mock_response.__aenter__.return_value = mock_response
        mock_response.__aexit__.return_value = None
        return mock_response

    mock_session.create_mock_response = create_mock_response
    return mock_session
