"""
Test configuration and fixtures.

Storage credentials are fake: presigning is local SigV4 math, so no test
talks to a real bucket. Direct uploads go to an in-memory store behind
httpx.MockTransport.
"""
import os
from urllib.parse import unquote

# Set test environment before any imports
os.environ["ENVIRONMENT"] = "test"

import pytest
from typing import AsyncGenerator, Callable, Dict, Optional, Set

import httpx
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from app.config import ObjectKeyPolicy, Settings, get_settings
from app.client.files import FileBlob


TEST_PASSWORD = "correct horse battery staple"
TEST_BUCKET = "test-bucket"
TEST_ACCOUNT = "acct123"
PUBLIC_DOMAIN = "https://images.example.com"


def make_settings(**overrides) -> Settings:
    """Fully configured settings, ignoring any .env file or real environment."""
    values = dict(
        environment="test",
        auth_password=TEST_PASSWORD,
        r2_account_id=TEST_ACCOUNT,
        r2_endpoint=None,
        r2_access_key_id="test-access-key",
        r2_secret_access_key="test-secret-key",
        r2_bucket_name=TEST_BUCKET,
        public_image_domain=PUBLIC_DOMAIN,
        object_key_policy=ObjectKeyPolicy.EXACT_NAME,
        require_upload_token=False,
        upload_token_secret=None,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


def get_test_app(settings: Settings) -> FastAPI:
    """Create a test FastAPI app with overridden settings."""
    from app.main import app

    app.dependency_overrides[get_settings] = lambda: settings
    return app


@pytest.fixture
def app_factory():
    """Build the app for given settings; overrides are cleared afterwards."""
    from app.main import app

    yield get_test_app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_settings: Settings, app_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    transport = ASGITransport(app=app_factory(test_settings))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_client(app_factory):
    """Async client for custom settings: ``async with make_client(settings) as ac``."""
    def _make(settings: Settings) -> AsyncClient:
        transport = ASGITransport(app=app_factory(settings))
        return AsyncClient(transport=transport, base_url="http://test")
    return _make


# ---------------------------------------------------------------------------
# Client-side fakes
# ---------------------------------------------------------------------------

STORAGE_HOST = "storage.test"


class FakeStorage:
    """
    In-memory bucket reachable through httpx.MockTransport.

    ``reject`` maps object keys to a status code answered for PUTs to them.
    """

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.reject: Dict[str, int] = {}
        self.requests = []

    @staticmethod
    def key_from_url(url: httpx.URL) -> str:
        # Path-style: /<bucket>/<key>
        path = unquote(url.path)
        return path.split("/", 2)[2]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        assert request.method == "PUT"
        key = self.key_from_url(request.url)
        if key in self.reject:
            body = (
                "<?xml version=\"1.0\" encoding=\"UTF-8\"?><Error><Code>AccessDenied</Code>"
                "<Message>" + "x" * 500 + "</Message></Error>"
            )
            return httpx.Response(self.reject[key], text=body)
        self.objects[key] = request.content
        self.content_types[key] = request.headers.get("content-type")
        return httpx.Response(200)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakePresignApi:
    """Stand-in for /api/r2presign issuing exact-name grants."""

    def __init__(self, fail_names: Optional[Set[str]] = None):
        self.fail_names = fail_names or set()
        self.presigned = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        import json

        body = json.loads(request.content)
        name = body["fileName"]
        self.presigned.append(name)
        if name in self.fail_names:
            return httpx.Response(400, json={"success": False, "error": "Only image files are allowed."})
        return httpx.Response(200, json={
            "success": True,
            "presignedUrl": f"https://{STORAGE_HOST}/{TEST_BUCKET}/{name}?X-Amz-Signature=abc",
            "publicUrl": f"{PUBLIC_DOMAIN}/{name}",
            "key": name,
            "expiresIn": 300,
        })

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def presign_api() -> FakePresignApi:
    return FakePresignApi()


@pytest.fixture
def images() -> Callable[..., list]:
    def _images(*names: str, size: int = 1024) -> list:
        return [
            FileBlob(name=name, type="image/png", data=bytes([i % 256]) * size)
            for i, name in enumerate(names)
        ]
    return _images
