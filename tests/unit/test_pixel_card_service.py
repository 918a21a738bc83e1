"""Unit tests for the upload sequence in PixelCardService."""

import base64
import re

import pytest
from firebase_admin import exceptions as firebase_exceptions

from pixelcard.errors import DatabaseError, PixelCardValidationError, StorageError
from pixelcard.models import CreatePixelCardRequest, PixelCardResponse
from pixelcard.services.pixel_card_service import PixelCardService


@pytest.fixture
def service(fake_store, fake_storage):
    return PixelCardService(fake_store, fake_storage)


class TestSavePixelCard:
    """Happy path."""

    def test_returns_response_and_persists(self, service, fake_store, fake_storage, png_data_uri):
        response = service.save_pixel_card({"userName": "Ada Lovelace", "imageData": png_data_uri})

        assert isinstance(response, PixelCardResponse)
        assert response.user_name == "Ada Lovelace"
        assert response.id in fake_store.rows

        row = fake_store.rows[response.id]
        assert re.fullmatch(r"\d{4}/\d{2}/[0-9a-f-]{36}\.png", row["image_path"])
        assert row["image_url"] == response.image_url
        assert row["mime_type"] == "image/png"

        stored_bytes, content_type = fake_storage.objects[row["image_path"]]
        assert content_type == "image/png"
        assert stored_bytes == base64.b64decode(png_data_uri.split(",", 1)[1])
        assert response.file_size == len(stored_bytes) == row["file_size"]

    def test_accepts_typed_request(self, service, fake_store):
        request = CreatePixelCardRequest(user_name="Grace", image_data="data:image/jpeg;base64,/9j/4AAQ")
        response = service.save_pixel_card(request)
        row = fake_store.rows[response.id]
        assert row["image_path"].endswith(".jpg")
        assert row["mime_type"] == "image/jpeg"
        assert row["file_size"] == 6

    def test_name_is_sanitized_before_insert(self, service, fake_store, png_data_uri):
        response = service.save_pixel_card({"userName": "  Ada   King ", "imageData": png_data_uri})
        assert fake_store.rows[response.id]["user_name"] == "Ada King"

    def test_hello_payload_size(self, service):
        response = service.save_pixel_card({"userName": "Ada", "imageData": "data:image/png;base64,aGVsbG8="})
        assert response.file_size == 5


class TestValidationStep:
    def test_invalid_request_aggregates_and_never_uploads(self, service, fake_store, fake_storage):
        with pytest.raises(PixelCardValidationError) as exc_info:
            service.save_pixel_card({"userName": "", "imageData": "data:image/gif;base64,R0lG"})

        err = exc_info.value
        assert err.step == "validate"
        assert "User name is required" in err.details
        assert "Image data must be a valid PNG or JPEG in base64 format" in err.details
        assert fake_storage.objects == {}
        assert fake_store.calls == []

    def test_eleven_mib_rejected_before_upload(self, service, fake_storage):
        payload = base64.b64encode(b"\0" * (11 * 1024 * 1024)).decode()
        with pytest.raises(PixelCardValidationError) as exc_info:
            service.save_pixel_card({"userName": "Ada", "imageData": "data:image/png;base64," + payload})
        assert exc_info.value.details == ["Image size exceeds maximum limit of 10MB"]
        assert fake_storage.objects == {}

    def test_non_mapping_request(self, service):
        with pytest.raises(PixelCardValidationError) as exc_info:
            service.save_pixel_card("hello")  # type: ignore[arg-type]
        assert exc_info.value.details == ["Request data is required"]


class TestUploadStep:
    def test_storage_failure_stops_before_insert(self, service, fake_store, fake_storage, png_data_uri):
        fake_storage.upload_error = StorageError("Storage upload failed: 503", step="upload")
        with pytest.raises(StorageError) as exc_info:
            service.save_pixel_card({"userName": "Ada", "imageData": png_data_uri})
        assert exc_info.value.step == "upload"
        assert "insert" not in fake_store.calls


class TestInsertStep:
    def test_insert_failure_is_database_error(self, service, fake_store, png_data_uri):
        fake_store.errors["insert"] = firebase_exceptions.UnavailableError("db down")
        with pytest.raises(DatabaseError, match="Database insert failed") as exc_info:
            service.save_pixel_card({"userName": "Ada", "imageData": png_data_uri})
        assert exc_info.value.step == "insert"

    def test_insert_failure_removes_uploaded_blob(self, service, fake_store, fake_storage, png_data_uri):
        fake_store.errors["insert"] = firebase_exceptions.UnavailableError("db down")
        with pytest.raises(DatabaseError):
            service.save_pixel_card({"userName": "Ada", "imageData": png_data_uri})
        assert fake_storage.objects == {}
        assert len(fake_storage.deleted) == 1

    def test_cleanup_disabled_leaves_blob(self, fake_store, fake_storage, png_data_uri):
        service = PixelCardService(fake_store, fake_storage, cleanup_orphans=False)
        fake_store.errors["insert"] = firebase_exceptions.UnavailableError("db down")
        with pytest.raises(DatabaseError):
            service.save_pixel_card({"userName": "Ada", "imageData": png_data_uri})
        assert len(fake_storage.objects) == 1
        assert fake_storage.deleted == []

    def test_failed_cleanup_still_raises_database_error(self, service, fake_store, fake_storage, png_data_uri):
        fake_store.errors["insert"] = firebase_exceptions.UnavailableError("db down")
        fake_storage.delete_error = StorageError("delete failed")
        with pytest.raises(DatabaseError):
            service.save_pixel_card({"userName": "Ada", "imageData": png_data_uri})

    def test_empty_insert_result(self, service, fake_store, fake_storage, png_data_uri, monkeypatch):
        monkeypatch.setattr(fake_store, "insert", lambda payload: {})
        with pytest.raises(DatabaseError, match="no data returned"):
            service.save_pixel_card({"userName": "Ada", "imageData": png_data_uri})
        assert fake_storage.objects == {}
