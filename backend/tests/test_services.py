"""
Tests for the gate, key policies and presign service.
"""
import time

import pytest
from urllib.parse import unquote, urlparse

from app.auth.gate import CredentialGate
from app.auth.tokens import create_upload_token, verify_upload_token
from app.config import ObjectKeyPolicy
from app.errors import ConfigurationError, InvalidInput, SigningError, Unauthorized
from app.schemas.upload import PresignRequest
from app.storage.keys import build_object_key, get_extension
from app.storage.presign import PresignService
from app.storage.r2_client import R2Client
from tests.conftest import PUBLIC_DOMAIN, TEST_BUCKET, make_settings


class TestCredentialGate:
    """Tests for CredentialGate."""

    def test_exact_match_accepted(self):
        CredentialGate("s3cret").authorize("s3cret")

    @pytest.mark.parametrize("candidate", ["S3cret", "s3cret ", " s3cret", "s3cre", "s3cret!", "sécret"])
    def test_anything_else_rejected(self, candidate):
        with pytest.raises(Unauthorized, match="Invalid password."):
            CredentialGate("s3cret").authorize(candidate)

    def test_non_ascii_secret(self):
        gate = CredentialGate("pässwörd")
        gate.authorize("pässwörd")
        with pytest.raises(Unauthorized):
            gate.authorize("passwort")

    @pytest.mark.parametrize("candidate", [None, "", 42, ["s3cret"]])
    def test_bad_shape(self, candidate):
        with pytest.raises(InvalidInput, match="Password is required."):
            CredentialGate("s3cret").authorize(candidate)

    @pytest.mark.parametrize("reference", [None, ""])
    def test_not_configured(self, reference):
        gate = CredentialGate(reference)

        assert gate.is_configured is False
        # Configuration fault wins over a bad candidate
        with pytest.raises(ConfigurationError):
            gate.authorize("")


class TestUploadTokens:
    """Tests for signed upload tokens."""

    def test_round_trip_claims(self):
        token = create_upload_token("k" * 32, 60)
        claims = verify_upload_token(token, "k" * 32)

        assert claims["scope"] == "upload"
        assert claims["exp"] > time.time()

    def test_expired_token(self):
        token = create_upload_token("k" * 32, -10)

        with pytest.raises(Unauthorized):
            verify_upload_token(token, "k" * 32)

    def test_garbage_token(self):
        with pytest.raises(Unauthorized):
            verify_upload_token("not-a-jwt", "k" * 32)

    def test_missing_secret(self):
        with pytest.raises(ConfigurationError):
            create_upload_token("", 60)


class TestObjectKeys:
    """Tests for object key policies."""

    def test_exact_name(self):
        key = build_object_key(ObjectKeyPolicy.EXACT_NAME, "holiday/cat 1.png", "image/png")
        assert key == "holiday/cat 1.png"

    def test_timestamp(self):
        key = build_object_key(
            ObjectKeyPolicy.TIMESTAMP_DISAMBIGUATED, "cat.png", "image/png", now_ms=1700000000123
        )
        assert key == "1700000000123-cat.png"

    def test_timestamp_defaults_to_now(self):
        before = int(time.time() * 1000)
        key = build_object_key(ObjectKeyPolicy.TIMESTAMP_DISAMBIGUATED, "cat.png", "image/png")
        assert int(key.split("-", 1)[0]) >= before

    def test_content_addressed(self):
        digest = "AB" * 32
        key = build_object_key(ObjectKeyPolicy.CONTENT_ADDRESSED, "Cat.JPEG", "image/jpeg", checksum=digest)
        assert key == f"{'ab' * 32}.jpeg"

    @pytest.mark.parametrize("checksum", [None, "", "abc", "zz" * 32])
    def test_content_addressed_bad_checksum(self, checksum):
        with pytest.raises(InvalidInput):
            build_object_key(ObjectKeyPolicy.CONTENT_ADDRESSED, "cat.png", "image/png", checksum=checksum)

    def test_extension_from_content_type(self):
        assert get_extension("photo", "image/webp") == "webp"
        assert get_extension("photo", "image/x-unknown") == "bin"


class TestR2Client:
    """Tests for R2Client."""

    def test_endpoint_derived_from_account(self):
        settings = make_settings()
        assert settings.storage_endpoint == "https://acct123.r2.cloudflarestorage.com"

    def test_explicit_endpoint_wins(self):
        settings = make_settings(r2_endpoint="http://localhost:9000")
        assert settings.storage_endpoint == "http://localhost:9000"

    def test_public_url(self):
        client = R2Client(make_settings(public_image_domain=f"{PUBLIC_DOMAIN}/"))
        assert client.public_url("cat.png") == f"{PUBLIC_DOMAIN}/cat.png"
        assert client.public_url("a b/c.png") == f"{PUBLIC_DOMAIN}/a%20b/c.png"

    def test_unconfigured_client(self):
        client = R2Client(make_settings(r2_secret_access_key=None))

        assert client.is_configured is False
        with pytest.raises(ConfigurationError):
            client.generate_presigned_upload_url("cat.png", "image/png")

    def test_presigned_url_is_local(self):
        """Signing works with fake credentials: no request reaches a bucket."""
        client = R2Client(make_settings())
        url = client.generate_presigned_upload_url("cat.png", "image/png", expiration=300)

        parsed = urlparse(url)
        assert parsed.hostname == "acct123.r2.cloudflarestorage.com"
        assert unquote(parsed.path) == f"/{TEST_BUCKET}/cat.png"
        assert "X-Amz-Expires=300" in parsed.query


class TestPresignService:
    """Tests for PresignService."""

    def _service(self, **overrides) -> PresignService:
        settings = make_settings(**overrides)
        return PresignService(R2Client(settings), settings)

    def test_issue_grant(self):
        grant = self._service().issue_presign(
            PresignRequest(file_name="cat.png", content_type="image/png")
        )

        assert grant.object_key == "cat.png"
        assert grant.public_url == f"{PUBLIC_DOMAIN}/cat.png"
        assert grant.expires_in == 300
        assert unquote(urlparse(grant.upload_url).path) == f"/{TEST_BUCKET}/cat.png"

    @pytest.mark.parametrize("name", ["cat.png", "nested/dir/dog.jpg", "space name.gif", "ünïcødé.webp"])
    def test_key_consistent_across_urls(self, name):
        grant = self._service().issue_presign(PresignRequest(file_name=name, content_type="image/png"))

        upload_key = unquote(urlparse(grant.upload_url).path).split("/", 2)[2]
        public_key = unquote(grant.public_url[len(PUBLIC_DOMAIN) + 1:])
        assert upload_key == public_key == grant.object_key

    @pytest.mark.parametrize("content_type", ["text/plain", "application/pdf", "video/mp4", "IMAGE/PNG", "img/png"])
    def test_non_image_rejected(self, content_type):
        service = self._service()
        with pytest.raises(InvalidInput, match="Only image files are allowed."):
            service.issue_presign(PresignRequest(file_name="x", content_type=content_type))

    def test_two_grants_are_independent(self):
        service = self._service()
        request = PresignRequest(file_name="cat.png", content_type="image/png")

        first = service.issue_presign(request)
        second = service.issue_presign(request)

        assert first.object_key == second.object_key
        assert first.public_url == second.public_url
        for grant in (first, second):
            assert "X-Amz-Signature" in grant.upload_url

    def test_configuration_checked_first(self):
        service = self._service(public_image_domain=None)
        with pytest.raises(ConfigurationError):
            service.issue_presign(PresignRequest(file_name="", content_type="text/plain"))

    def test_signing_error_propagates(self, monkeypatch):
        service = self._service()

        def broken(*args, **kwargs):
            raise SigningError("bad credentials")

        monkeypatch.setattr(service.r2, "generate_presigned_upload_url", broken)
        with pytest.raises(SigningError, match="Failed to generate presigned URL: bad credentials"):
            service.issue_presign(PresignRequest(file_name="cat.png", content_type="image/png"))
