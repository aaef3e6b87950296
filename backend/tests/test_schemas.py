"""
Tests for Pydantic schemas validation.
"""
import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from app.schemas.upload import BatchProgress, PresignGrant, PresignRequest, PresignResponse, UploadedFile


class TestPresignSchemas:
    """Tests for presign schemas."""

    def test_request_accepts_wire_names(self):
        schema = PresignRequest.model_validate({"fileName": "cat.png", "contentType": "image/png"})
        assert schema.file_name == "cat.png"
        assert schema.content_type == "image/png"
        assert schema.checksum is None

    def test_request_rejects_non_strings(self):
        with pytest.raises(ValidationError):
            PresignRequest.model_validate({"fileName": 1, "contentType": "image/png"})

    def test_response_uses_wire_names(self):
        grant = PresignGrant(
            upload_url="https://s/b/cat.png?sig",
            public_url="https://img/cat.png",
            object_key="cat.png",
            expires_in=300,
        )
        data = PresignResponse.from_grant(grant).model_dump(by_alias=True)

        assert data == {
            "success": True,
            "presignedUrl": "https://s/b/cat.png?sig",
            "publicUrl": "https://img/cat.png",
            "key": "cat.png",
            "expiresIn": 300,
        }


class TestUploadSchemas:
    """Tests for client-side upload schemas."""

    def test_uploaded_file_is_immutable(self):
        f = UploadedFile(
            id="cat.png", name="cat.png", size=3, type="image/png",
            url="https://img/cat.png", uploaded_at=datetime.now(timezone.utc),
        )
        with pytest.raises(ValidationError):
            f.name = "dog.png"

    def test_uploaded_file_size_non_negative(self):
        with pytest.raises(ValidationError):
            UploadedFile(
                id="k", name="k", size=-1, type="image/png",
                url="u", uploaded_at=datetime.now(timezone.utc),
            )

    def test_batch_progress_defaults(self):
        progress = BatchProgress()
        assert progress.percent_complete == 0
        assert progress.is_uploading is False
        assert progress.error is None
        assert progress.completed_files == []
