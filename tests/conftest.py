"""Shared pytest fixtures for pixel card tests.

The backends are replaced by in-memory fakes so no Firebase project,
storage bucket or AI key is needed.
"""

from __future__ import annotations

import base64
import io
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from pixelcard.config import Settings
from pixelcard.handlers.dependencies import AppServices
from pixelcard.main import create_app
from pixelcard.models import PixelCardInsert
from pixelcard.services.imaging import ImageStyleProvider
from pixelcard.services.pixel_card_service import PixelCardService
from pixelcard.services.repository import PixelCardRepository
from pixelcard.utils.transform import format_timestamp


def png_bytes(color: str = "red", size: tuple[int, int] = (4, 4)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_uri(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class FakeCardStore:
    """In-memory stand-in for ``FirebaseCardStore``.

    ``errors`` maps an operation name (``count``, ``fetch_page``,
    ``fetch_recent``, ``get``, ``insert``) to the exception it should raise.
    """

    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []
        self.errors: dict[str, Exception] = {}

    def _enter(self, op: str) -> None:
        self.calls.append(op)
        if op in self.errors:
            raise self.errors[op]

    def _newest_first(self, user_name: str | None) -> list[dict[str, Any]]:
        rows = [r for r in self.rows.values() if user_name is None or r["user_name"] == user_name]
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)

    def count(self, user_name: str | None = None) -> int:
        self._enter("count")
        return len(self._newest_first(user_name))

    def fetch_page(self, offset: int, limit: int, user_name: str | None = None) -> list[dict[str, Any]]:
        self._enter("fetch_page")
        return self._newest_first(user_name)[offset : offset + limit]

    def fetch_recent(self, limit: int) -> list[dict[str, Any]]:
        self._enter("fetch_recent")
        return self._newest_first(None)[:limit]

    def get(self, card_id: str) -> dict[str, Any] | None:
        self._enter("get")
        return self.rows.get(card_id)

    def insert(self, payload: PixelCardInsert) -> dict[str, Any]:
        self._enter("insert")
        now = format_timestamp(datetime.now(timezone.utc))
        row = {"id": str(uuid.uuid4()), **payload.model_dump(mode="json"), "created_at": now, "updated_at": now}
        self.rows[row["id"]] = row
        return row


class FakeStorage:
    """In-memory stand-in for ``StorageService``."""

    bucket_name = "test-bucket"

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []
        self.upload_error: Exception | None = None
        self.delete_error: Exception | None = None

    def upload_image(self, file_bytes: bytes, blob_name: str, *, content_type: str) -> tuple[str, str]:
        if self.upload_error is not None:
            raise self.upload_error
        self.objects[blob_name] = (file_bytes, content_type)
        return f"gs://{self.bucket_name}/{blob_name}", f"https://storage.example.com/{self.bucket_name}/{blob_name}"

    def delete_image(self, blob_name: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.objects.pop(blob_name, None)
        self.deleted.append(blob_name)


class FakeImageProvider(ImageStyleProvider):
    name = "fake"

    def __init__(self, output: bytes | None = None) -> None:
        self.output = png_bytes("white") if output is None else output
        self.received: list[bytes] = []
        self.closed = False

    async def _stylize(self, source: bytes) -> bytes:
        self.received.append(source)
        return self.output

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_row() -> Callable[..., dict[str, Any]]:
    """Factory for persisted rows; later calls get later timestamps by default."""

    base = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _make(**overrides: Any) -> dict[str, Any]:
        counter["n"] += 1
        created = format_timestamp(base + timedelta(minutes=counter["n"]))
        row = {
            "id": str(uuid.uuid4()),
            "user_name": "Ada Lovelace",
            "image_path": f"2024/01/{uuid.uuid4()}.png",
            "image_url": "https://storage.example.com/test-bucket/img.png",
            "created_at": created,
            "updated_at": created,
            "file_size": 1234,
            "mime_type": "image/png",
        }
        row.update(overrides)
        return row

    return _make


@pytest.fixture
def fake_store() -> FakeCardStore:
    return FakeCardStore()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def fake_provider() -> FakeImageProvider:
    return FakeImageProvider()


@pytest.fixture
def png_data_uri() -> str:
    return to_data_uri(png_bytes())


@pytest.fixture
def services(fake_store, fake_storage, fake_provider) -> AppServices:
    return AppServices(
        repository=PixelCardRepository(fake_store),
        pixel_card_service=PixelCardService(fake_store, fake_storage),  # type: ignore[arg-type]
        image_provider=fake_provider,
    )


@pytest.fixture
def test_client(services):
    with TestClient(create_app(services)) as client:
        yield client


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    return png_bytes


@pytest.fixture
def make_data_uri() -> Callable[..., str]:
    return to_data_uri


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build Settings from keyword overrides without reading a .env file."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "firebase_database_url": "https://pixelcard-test.firebaseio.com",
            "bucket_name": "test-bucket",
            "openai_api_key": "sk-test",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def fake_provider_cls() -> type[FakeImageProvider]:
    return FakeImageProvider
