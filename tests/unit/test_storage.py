"""Unit tests for StorageService against a mocked GCS bucket."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
import requests
from google.api_core import exceptions as gcs_exceptions
from google.auth import exceptions as auth_exceptions

from pixelcard.errors import StorageError
from pixelcard.services.storage import StorageService


@pytest.fixture
def bucket():
    bucket = MagicMock()
    bucket.name = "cards-bucket"
    blob = bucket.blob.return_value
    blob.public_url = "https://storage.googleapis.com/cards-bucket/2024/01/a.png"
    blob.generate_signed_url.return_value = "https://signed.example.com/a.png?sig=1"
    return bucket


class TestUploadImage:
    def test_public_upload(self, bucket):
        service = StorageService(bucket, cache_control="public, max-age=60")
        gs_path, url = service.upload_image(b"png", "2024/01/a.png", content_type="image/png")

        blob = bucket.blob.return_value
        bucket.blob.assert_called_once_with("2024/01/a.png")
        blob.upload_from_string.assert_called_once_with(b"png", content_type="image/png", if_generation_match=0)
        blob.make_public.assert_called_once_with()
        assert blob.cache_control == "public, max-age=60"
        assert gs_path == "gs://cards-bucket/2024/01/a.png"
        assert url == blob.public_url

    def test_signed_url(self, bucket):
        service = StorageService(bucket, public=False, expires=timedelta(days=2))
        _, url = service.upload_image(b"jpg", "2024/01/a.jpg", content_type="image/jpeg")

        blob = bucket.blob.return_value
        blob.make_public.assert_not_called()
        blob.generate_signed_url.assert_called_once_with(expiration=timedelta(days=2), version="v4")
        assert url == "https://signed.example.com/a.png?sig=1"

    def test_rejects_unknown_content_type(self, bucket):
        service = StorageService(bucket)
        with pytest.raises(StorageError):
            service.upload_image(b"gif", "x.gif", content_type="image/gif")
        bucket.blob.assert_not_called()

    def test_existing_object_is_not_overwritten(self, bucket):
        bucket.blob.return_value.upload_from_string.side_effect = gcs_exceptions.PreconditionFailed("exists")
        service = StorageService(bucket)
        with pytest.raises(StorageError, match="already exists") as exc_info:
            service.upload_image(b"png", "2024/01/a.png", content_type="image/png")
        assert exc_info.value.step == "upload"

    def test_api_error_wrapped(self, bucket):
        bucket.blob.return_value.upload_from_string.side_effect = gcs_exceptions.ServiceUnavailable("503")
        service = StorageService(bucket)
        with pytest.raises(StorageError, match="Storage upload failed"):
            service.upload_image(b"png", "2024/01/a.png", content_type="image/png")

    def test_url_failure_wrapped(self, bucket):
        bucket.blob.return_value.make_public.side_effect = gcs_exceptions.Forbidden("acl disabled")
        service = StorageService(bucket)
        with pytest.raises(StorageError, match="Failed to get URL"):
            service.upload_image(b"png", "2024/01/a.png", content_type="image/png")

    @pytest.mark.parametrize(
        "error",
        [requests.exceptions.ConnectionError("reset"), auth_exceptions.TransportError("metadata server unreachable")],
    )
    def test_transport_failure_on_url_resolution(self, bucket, error):
        bucket.blob.return_value.make_public.side_effect = error
        service = StorageService(bucket)
        with pytest.raises(StorageError) as exc_info:
            service.upload_image(b"png", "2024/01/a.png", content_type="image/png")
        assert exc_info.value.step == "upload"
        assert exc_info.value.__cause__ is error

    def test_credential_refresh_failure_on_upload(self, bucket):
        bucket.blob.return_value.upload_from_string.side_effect = auth_exceptions.RefreshError("token expired")
        service = StorageService(bucket)
        with pytest.raises(StorageError, match="Storage upload failed") as exc_info:
            service.upload_image(b"png", "2024/01/a.png", content_type="image/png")
        assert exc_info.value.step == "upload"

    def test_empty_url_is_error(self, bucket):
        bucket.blob.return_value.public_url = ""
        service = StorageService(bucket)
        with pytest.raises(StorageError, match="Failed to get URL"):
            service.upload_image(b"png", "2024/01/a.png", content_type="image/png")


class TestDeleteImage:
    def test_deletes_blob(self, bucket):
        StorageService(bucket).delete_image("2024/01/a.png")
        bucket.blob.assert_called_once_with("2024/01/a.png")
        bucket.blob.return_value.delete.assert_called_once_with()

    def test_missing_blob_ignored(self, bucket):
        bucket.blob.return_value.delete.side_effect = gcs_exceptions.NotFound("gone")
        StorageService(bucket).delete_image("2024/01/a.png")

    def test_connection_error_on_delete(self, bucket):
        bucket.blob.return_value.delete.side_effect = requests.exceptions.ConnectionError("reset")
        with pytest.raises(StorageError):
            StorageService(bucket).delete_image("2024/01/a.png")

    def test_other_errors_raise(self, bucket):
        bucket.blob.return_value.delete.side_effect = gcs_exceptions.InternalServerError("boom")
        with pytest.raises(StorageError):
            StorageService(bucket).delete_image("2024/01/a.png")
