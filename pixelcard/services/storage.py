"""Google Cloud Storage helper for generated portraits.

Objects are stored under the following key pattern:

    {YYYY}/{MM}/{uuid}.{ext}

Callers receive both the *gs://* path and an externally accessible URL
(public or signed depending on configuration).  Objects are never
overwritten: uploads are conditional on the object not existing yet.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Tuple

import requests
from google.api_core import exceptions as gcs_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage

from pixelcard.errors import StorageError
from pixelcard.models import ALLOWED_MIME_TYPES

logger = logging.getLogger(__name__)

# Everything the storage client or its auth/HTTP transport can raise
_BACKEND_ERRORS = (
    gcs_exceptions.GoogleAPIError,
    requests.exceptions.RequestException,
    auth_exceptions.GoogleAuthError,
)


class StorageService:  # pylint: disable=too-few-public-methods
    """Wrapper around Google Cloud Storage uploads and URLs."""

    def __init__(
        self,
        bucket: storage.Bucket,
        *,
        public: bool = True,
        cache_control: str | None = "public, max-age=3600",
        expires: timedelta = timedelta(days=7),
    ) -> None:
        self._bucket = bucket
        self._public = public
        self._cache_control = cache_control
        self._expires = expires

    @property
    def bucket_name(self) -> str:
        return self._bucket.name

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------

    def upload_image(self, file_bytes: bytes, blob_name: str, *, content_type: str) -> Tuple[str, str]:
        """Upload an image and return (gs_path, url).

        Raises ``StorageError`` if the upload or URL resolution fails, including
        when an object already exists at ``blob_name``.
        """

        if content_type not in ALLOWED_MIME_TYPES:
            raise StorageError(f"Unsupported content_type {content_type}", step="upload")

        blob = self._bucket.blob(blob_name)
        if self._cache_control:
            blob.cache_control = self._cache_control

        try:
            blob.upload_from_string(file_bytes, content_type=content_type, if_generation_match=0)
        except gcs_exceptions.PreconditionFailed as exc:
            raise StorageError(f"Storage upload failed: object {blob_name} already exists", step="upload") from exc
        except _BACKEND_ERRORS as exc:
            raise StorageError(f"Storage upload failed: {exc}", step="upload") from exc

        try:
            url = self._resolve_url(blob)
        except _BACKEND_ERRORS as exc:
            raise StorageError(f"Failed to get URL for uploaded image: {exc}", step="upload") from exc

        if not url:
            raise StorageError("Failed to get URL for uploaded image", step="upload")

        gs_path = f"gs://{self.bucket_name}/{blob_name}"
        logger.debug("Uploaded image to %s", gs_path)
        return gs_path, url

    def delete_image(self, blob_name: str) -> None:
        try:
            self._bucket.blob(blob_name).delete()
        except gcs_exceptions.NotFound:
            logger.debug("Blob %s already absent", blob_name)
            return
        except _BACKEND_ERRORS as exc:
            raise StorageError(f"Failed to delete {blob_name}: {exc}") from exc
        logger.debug("Deleted image blob %s", blob_name)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve_url(self, blob: storage.Blob) -> str:
        if self._public:
            blob.make_public()
            return blob.public_url
        return blob.generate_signed_url(expiration=self._expires, version="v4")
