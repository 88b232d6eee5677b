"""multipart/form-data splitter and part extraction."""

import os
import tempfile
from pathlib import Path
from typing import Any

from beartype.door import is_bearable

from httpexchange.core.exceptions import InvalidInput, MalformedMultipart
from httpexchange.core.logger import LogIcon, logger
from httpexchange.core.settings import settings
from httpexchange.models.core import BodyPart, HeaderValue
from httpexchange.models.upload import UploadedFile, UploadErrorCode, create_uploaded_file

CRLF = b"\r\n"
HEADER_SEPARATOR = b"\r\n\r\n"
CLOSE_MARKER = b"--"
TOKEN_SEPARATOR = "; "


def _to_bytes(body: Any) -> bytes:
    if not is_bearable(body, str | bytes):
        raise InvalidInput(f"Raw message body must be str or bytes, got {type(body).__name__}")
    return body.encode("utf-8") if isinstance(body, str) else body


def _delimiter(data: bytes, boundary: str | None) -> bytes:
    """Dash-boundary from the Content-Type parameter, else the body's first line."""
    if boundary:
        return b"--" + boundary.encode("latin-1")

    first_line, sep, _ = data.partition(CRLF)
    if not sep or not first_line:
        raise MalformedMultipart("Multipart body does not start with a boundary line")
    return first_line


def _tokenize(value: str, into: HeaderValue) -> HeaderValue:
    for token in value.split(TOKEN_SEPARATOR):
        key, eq, param = token.partition("=")
        if not eq or not key:
            into.tokens.append(token)
            continue
        into.params[key] = param.strip('"')
    return into


def _strip_transport_padding(fragment: bytes) -> bytes:
    """Drop the whitespace-only rest of the delimiter line."""
    padding, crlf, rest = fragment.partition(CRLF)
    if crlf and not padding.strip(b" \t"):
        return rest
    return fragment


def _parse_part(fragment: bytes, index: int) -> BodyPart:
    raw_headers, sep, content = _strip_transport_padding(fragment).lstrip(CRLF).partition(HEADER_SEPARATOR)
    if not sep:
        raise MalformedMultipart(f"Body part {index} has no blank line between headers and content")

    headers: dict[str, HeaderValue] = {}
    for line in raw_headers.split(CRLF):
        name, colon, value = line.decode("utf-8", errors="replace").partition(":")
        if not colon:
            raise MalformedMultipart(f"Body part {index} has a header line without a colon: {name!r}")
        _tokenize(value.strip(" "), headers.setdefault(name, HeaderValue()))

    return BodyPart(headers=headers, content=content)


def split_multipart(body: str | bytes, boundary: str | None = None) -> list[BodyPart]:
    """Split a multipart body into its parts, in encounter order.

    The CRLF preceding each delimiter belongs to the delimiter, so part content
    never carries the line break that precedes the next boundary. Without an
    explicit boundary the first line of the body is used as the delimiter.
    """
    data = _to_bytes(body)
    if not data:
        return []

    delimiter = _delimiter(data, boundary)
    # Leading CRLF lets a delimiter on the very first line match too
    fragments = (CRLF + data).split(CRLF + delimiter)[1:]

    parts: list[BodyPart] = []
    for index, fragment in enumerate(fragments):
        if fragment.startswith(CLOSE_MARKER):
            break
        parts.append(_parse_part(fragment, index))

    if not fragments:
        logger.warning("Multipart boundary not found in body", icon=LogIcon.WARNING, boundary=boundary)
    logger.debug("Multipart body split", icon=LogIcon.PARSER, parts=len(parts))
    return parts


def pull_parsed_body(parts: list[BodyPart]) -> dict[str, str]:
    """Collect non-file parts as `{name: text}`."""
    parsed: dict[str, str] = {}
    for part in parts:
        if part.is_file:
            continue
        if part.name is None:
            logger.warning("Multipart field without a name skipped", icon=LogIcon.WARNING)
            continue
        parsed[part.name] = part.content.decode("utf-8", errors="replace")
    return parsed


def _write_temp_file(content: bytes, directory: Path) -> Path:
    fd, path = tempfile.mkstemp(prefix=settings.UPLOAD_TMP_PREFIX, dir=directory)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
    except BaseException:
        Path(path).unlink(missing_ok=True)
        raise
    return Path(path)


def pull_uploaded_files(parts: list[BodyPart], tmp_dir: str | os.PathLike | None = None) -> dict[str, UploadedFile]:
    """Write every file part to its own temp file and describe it as an UploadedFile.

    If any write fails, the temp files already written are removed before the
    error propagates.
    """
    directory = Path(tmp_dir) if tmp_dir else settings.upload_tmp_dir
    files: dict[str, UploadedFile] = {}

    try:
        for part in parts:
            if not part.is_file:
                continue

            field_name = part.name or part.filename
            location = _write_temp_file(part.content, directory)
            if (previous := files.get(field_name)) is not None:
                previous.discard()

            files[field_name] = create_uploaded_file(
                location,
                len(part.content),
                UploadErrorCode.OK,
                part.filename,
                part.content_type,
            )
            logger.info("Upload stored", icon=LogIcon.UPLOAD, field=field_name, size=len(part.content))
    except BaseException:
        for uploaded in files.values():
            uploaded.discard()
        logger.warning("Upload extraction failed, temp files removed", icon=LogIcon.CLEANUP, stored=len(files))
        raise

    return files
