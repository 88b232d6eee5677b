"""Server request value object."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from beartype.door import is_bearable

from httpexchange.core.exceptions import InvalidInput
from httpexchange.models.core import RequestBody
from httpexchange.models.upload import UploadedFile

METHOD_OVERRIDE_PARAM = "_method"


class Headers(Mapping[str, str]):
    """Case-insensitive header mapping that remembers names as received."""

    __slots__ = ("_store",)

    def __init__(self, raw: Mapping[str, str | list[str]] | None = None) -> None:
        self._store: dict[str, tuple[str, str]] = {}
        for name, value in (raw or {}).items():
            if isinstance(value, (list, tuple)):
                value = ", ".join(value)
            self._store[name.lower()] = (name, str(value))

    def __getitem__(self, name: str) -> str:
        return self._store[name.lower()][1]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._store

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())})"


@dataclass(frozen=True, slots=True)
class ServerRequest:
    """An incoming request after body decoding.

    Instances are not mutated in place; the `with_*` methods return copies.
    """

    real_method: str
    uri: str = "/"
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    query_params: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    server_params: dict[str, str] = field(default_factory=dict)
    parsed_body: dict[str, Any] = field(default_factory=dict)
    uploaded_files: dict[str, UploadedFile] = field(default_factory=dict)

    def __enter__(self) -> "ServerRequest":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def method(self) -> str:
        """HTTP method, honouring a `_method` query override from HTML forms."""
        override = self.query_params.get(METHOD_OVERRIDE_PARAM)
        return (override or self.real_method).upper()

    @property
    def content_type(self) -> str:
        return self.header("Content-Type")

    def header(self, name: str) -> str:
        return self.headers.get(name, "")

    def has_header(self, name: str) -> bool:
        return name in self.headers

    def is_ajax(self) -> bool:
        return self.header("X-Requested-With").lower() == "xmlhttprequest"

    def input(self, name: str | int, default: Any = "") -> Any:
        """Look a value up in the query params, then in the parsed body."""
        if isinstance(name, bool) or not is_bearable(name, str | int):
            raise InvalidInput("Input name must be a string or an integer")
        key = str(name)
        if key in self.query_params:
            return self.query_params[key]
        if key in self.parsed_body:
            return self.parsed_body[key]
        return default

    def server_param(self, name: str) -> str:
        """Server environment lookup, `remote-addr` finds `REMOTE_ADDR`."""
        return self.server_params.get(name.upper().replace("-", "_"), "")

    def with_parsed_body(self, parsed_body: dict[str, Any]) -> "ServerRequest":
        return replace(self, parsed_body=dict(parsed_body))

    def with_uploaded_files(self, uploaded_files: dict[str, UploadedFile]) -> "ServerRequest":
        return replace(self, uploaded_files=dict(uploaded_files))

    def with_request_body(self, request_body: RequestBody) -> "ServerRequest":
        return replace(
            self,
            parsed_body=dict(request_body.parsed_body),
            uploaded_files=dict(request_body.uploaded_files),
        )

    def close(self) -> None:
        """Remove temp files of uploads that were never moved."""
        for uploaded in self.uploaded_files.values():
            uploaded.discard()
