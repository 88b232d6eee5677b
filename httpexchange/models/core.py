"""Core models for request body decoding."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote

if TYPE_CHECKING:
    from httpexchange.models.upload import UploadedFile


def decode_extended_value(value: str) -> str:
    """Decode an RFC 5987 `charset'language'percent-encoded` parameter value."""
    charset, sep, rest = value.partition("'")
    _, sep2, encoded = rest.partition("'")
    if not (sep and sep2):
        return unquote(value)
    try:
        return unquote(encoded, encoding=charset or "utf-8", errors="replace")
    except LookupError:
        return unquote(encoded, errors="replace")


class ContentKind(StrEnum):
    """Body content type classification for request parsing."""

    JSON = "json"
    MULTIPART = "multipart"
    URL_ENCODED = "urlencoded"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class HeaderValue:
    """Tokenized value of a multipart part header.

    `Content-Disposition: form-data; name="avatar"; filename="a.png"` becomes
    tokens ``["form-data"]`` and params ``{"name": "avatar", "filename": "a.png"}``.
    """

    tokens: list[str] = field(default_factory=list)
    params: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class BodyPart:
    """One boundary-delimited section of a multipart body."""

    headers: dict[str, HeaderValue] = field(default_factory=dict)
    content: bytes = b""

    def header(self, name: str) -> HeaderValue | None:
        """Case-insensitive header lookup, headers are stored as received."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def name(self) -> str | None:
        disposition = self.header("Content-Disposition")
        return disposition.params.get("name") if disposition else None

    @property
    def filename(self) -> str | None:
        """Client filename, from `filename` or else the RFC 5987 `filename*` form."""
        disposition = self.header("Content-Disposition")
        if disposition is None:
            return None
        if (plain := disposition.params.get("filename")) is not None:
            return plain
        if (extended := disposition.params.get("filename*")) is not None:
            return decode_extended_value(extended)
        return None

    @property
    def content_type(self) -> str | None:
        value = self.header("Content-Type")
        return value.tokens[0] if value and value.tokens else None

    @property
    def is_file(self) -> bool:
        return self.filename is not None


@dataclass(frozen=True, slots=True)
class RequestBody:
    """Decoding result of a method handler: form/JSON fields and uploaded files."""

    parsed_body: dict[str, Any] = field(default_factory=dict)
    uploaded_files: dict[str, "UploadedFile"] = field(default_factory=dict)
