"""Content-Type classification."""

import re

from httpexchange.models.core import ContentKind

JSON_PATTERN = re.compile(r"application/json")
MULTIPART_PATTERN = re.compile(r"multipart/form-data")
URL_ENCODED_PATTERN = re.compile(r"application/x-www-form-urlencoded")
BOUNDARY_PATTERN = re.compile(r"""boundary=(?:"([^"]+)"|([^;\s]+))""", re.IGNORECASE)

_PATTERNS = (
    (JSON_PATTERN, ContentKind.JSON),
    (MULTIPART_PATTERN, ContentKind.MULTIPART),
    (URL_ENCODED_PATTERN, ContentKind.URL_ENCODED),
)


def classify_content_type(value: str | None) -> ContentKind:
    """Pick the decoding strategy for a Content-Type header value."""
    if not value:
        return ContentKind.UNKNOWN

    lowered = value.lower()
    for pattern, kind in _PATTERNS:
        if pattern.search(lowered):
            return kind
    return ContentKind.UNKNOWN


def extract_boundary(value: str | None) -> str | None:
    """Return the multipart boundary parameter, unquoted, if present."""
    if not value:
        return None
    match = BOUNDARY_PATTERN.search(value)
    if match is None:
        return None
    return match.group(1) or match.group(2)
