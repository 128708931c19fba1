"""Pytest fixtures for the upload service.

Provides reusable test fixtures for:
- Per-test public, upload and staging directories under tmp_path
- Settings pointing at those directories
- Application instances and TestClient
- Hand-built multipart bodies and chunked request streams

Usage:
    def test_upload(client, upload_dir):
        response = client.post("/upload", files={"uploadedFile": ("cat.png", b"...", "image/png")})
        assert response.status_code == 200
"""

from pathlib import Path
from typing import Callable, Generator, Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.datastructures import Headers
from starlette.requests import ClientDisconnect

from fileupload.config import Settings
from fileupload.domain.uploads import UploadAcceptor, UploadPolicy
from fileupload.infrastructure.storage.local_storage_adapter import LocalDiskStorageAdapter
from fileupload.main import create_app


PNG_HEADER = b"\x89PNG\r\n\x1a\n"


def png_bytes(size_bytes: int) -> bytes:
    """PNG signature padded with filler bytes to exactly size_bytes."""
    return PNG_HEADER + bytes(i % 251 for i in range(size_bytes - len(PNG_HEADER)))


@pytest.fixture
def make_png() -> Callable[[int], bytes]:
    return png_bytes


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    path = tmp_path / "public"
    path.mkdir()
    (path / "index.html").write_text("<h1>Home</h1>")
    (path / "style.css").write_text("body { margin: 0; }")
    return path


@pytest.fixture
def upload_dir(public_dir: Path) -> Path:
    path = public_dir / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def make_settings(public_dir: Path, upload_dir: Path, staging_dir: Path) -> Callable[..., Settings]:
    """Factory for Settings bound to the per-test directories."""

    def _make(**overrides) -> Settings:
        values = {
            "PUBLIC_DIR": public_dir,
            "UPLOAD_DIR": upload_dir,
            "STAGING_DIR": staging_dir,
            "LOG_JSON": False,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_client(make_settings) -> Generator[Callable[..., TestClient], None, None]:
    """Factory for clients of apps built with overridden settings."""
    clients = []

    def _make(raise_server_exceptions: bool = True, **overrides) -> TestClient:
        test_client = TestClient(
            create_app(make_settings(**overrides)),
            raise_server_exceptions=raise_server_exceptions,
        )
        clients.append(test_client)
        return test_client

    yield _make

    for test_client in clients:
        test_client.close()


@pytest.fixture
def storage(upload_dir: Path) -> LocalDiskStorageAdapter:
    return LocalDiskStorageAdapter(upload_dir)


@pytest.fixture
def policy(upload_dir: Path) -> UploadPolicy:
    return UploadPolicy(upload_dir=upload_dir, max_size_bytes=10 * 1024)


@pytest.fixture
def acceptor(policy: UploadPolicy, storage: LocalDiskStorageAdapter) -> UploadAcceptor:
    return UploadAcceptor(policy, storage)


@pytest.fixture
def stage_bytes(staging_dir: Path) -> Callable[[bytes], Path]:
    """Write bytes to a fresh staging file and return its path."""
    counter = iter(range(10**6))

    def _stage(content: bytes) -> Path:
        path = staging_dir / f"upload-{next(counter)}.part"
        path.write_bytes(content)
        return path

    return _stage


BOUNDARY = "fileupload-test-boundary"


def build_multipart(parts, boundary: str = BOUNDARY, close: bool = True) -> bytes:
    """Encode (name, filename, content_type, content) parts as multipart/form-data.

    filename None makes a plain text field; close=False drops the closing boundary.
    """
    body = b""
    for name, filename, content_type, content in parts:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        body += f"--{boundary}\r\nContent-Disposition: {disposition}\r\n".encode()
        if content_type:
            body += f"Content-Type: {content_type}\r\n".encode()
        body += b"\r\n" + content + b"\r\n"
    if close:
        body += f"--{boundary}--\r\n".encode()
    return body


class BodyStream:
    """Async request body that counts how many chunks were pulled."""

    def __init__(self, data: bytes, chunk_size: int = 4096, fail_after: Optional[int] = None):
        self.chunks = [data[i:i + chunk_size] for i in range(0, len(data), chunk_size)]
        self.consumed = 0
        self.fail_after = fail_after

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            if self.fail_after is not None and self.consumed >= self.fail_after:
                raise ClientDisconnect()
            self.consumed += 1
            yield chunk


@pytest.fixture
def multipart_body() -> Callable[..., bytes]:
    return build_multipart


@pytest.fixture
def body_stream() -> Callable[..., BodyStream]:
    return BodyStream


@pytest.fixture
def multipart_headers() -> Callable[..., Headers]:
    """Request headers for a BOUNDARY-delimited body, optionally with Content-Length."""

    def _headers(content_length: Optional[int] = None) -> Headers:
        values = {"content-type": f"multipart/form-data; boundary={BOUNDARY}"}
        if content_length is not None:
            values["content-length"] = str(content_length)
        return Headers(values)

    return _headers
