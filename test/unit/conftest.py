"""Test fixtures for httpexchange unit tests."""

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from httpexchange.core.builder import RequestBuilder
from httpexchange.handlers.methods import default_handlers

BOUNDARY = "----FormBoundaryX"


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key, default)

    def get_headers(self) -> dict[str, list[str]]:
        return {key: [value] for key, value in self._data.items()}


@dataclass
class MockQueryParams:
    """Mock QueryParams object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def to_dict(self) -> dict[str, list[str]]:
        return {key: [value] for key, value in self._data.items()}


@dataclass
class MockUrl:
    scheme: str = "http"
    host: str = "localhost:8080"
    path: str = "/"


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    body: bytes | str = b""
    headers: MockHeaders = field(default_factory=MockHeaders)
    query_params: MockQueryParams = field(default_factory=MockQueryParams)
    url: MockUrl = field(default_factory=MockUrl)
    method: str = "GET"
    form_data: dict = field(default_factory=dict)
    files: dict = field(default_factory=dict)
    ip_addr: str | None = "127.0.0.1"


# -----------------------------------------------------------------------------
# Multipart helpers
# -----------------------------------------------------------------------------


def multipart_field(name: str, value: str) -> bytes:
    return (
        f'Content-Disposition: form-data; name="{name}"\r\n'
        f"\r\n"
        f"{value}"
    ).encode()


def multipart_file(name: str, filename: str, content: bytes, media_type: str = "application/octet-stream") -> bytes:
    return (
        f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
        f"Content-Type: {media_type}\r\n"
        f"\r\n"
    ).encode() + content


def build_multipart(*sections: bytes, boundary: str = BOUNDARY) -> bytes:
    """Join sections the way browsers do: CRLF before every delimiter."""
    delimiter = f"--{boundary}".encode()
    body = b""
    for section in sections:
        body += delimiter + b"\r\n" + section + b"\r\n"
    return body + delimiter + b"--\r\n"


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    """Isolated directory for upload temp files."""
    directory = tmp_path / "uploads"
    directory.mkdir()
    return directory


@pytest.fixture
def builder(upload_dir: Path) -> RequestBuilder:
    """Default handler chain writing uploads into upload_dir."""
    return RequestBuilder(default_handlers(tmp_dir=upload_dir))


@pytest.fixture
def multipart_content_type() -> str:
    return f"multipart/form-data; boundary={BOUNDARY}"


@pytest.fixture
def make_mock_request():
    """Factory fixture to create robyn mock requests."""

    def _make(
        method: str = "GET",
        body: bytes | str = b"",
        headers: dict | None = None,
        query: dict | None = None,
        **kwargs,
    ) -> MockRequest:
        return MockRequest(
            body=body,
            headers=MockHeaders(headers or {}),
            query_params=MockQueryParams(query or {}),
            method=method,
            **kwargs,
        )

    return _make
