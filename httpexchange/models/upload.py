"""Uploaded file entity with move-once semantics."""

import io
import os
import shutil
import threading
from enum import IntEnum
from pathlib import Path
from typing import BinaryIO

from beartype.door import is_bearable

from httpexchange.core.exceptions import AlreadyMoved, InvalidInput, UploadError
from httpexchange.core.logger import LogIcon, logger


class UploadErrorCode(IntEnum):
    """Transport error codes attached to an upload (0 means received fine)."""

    OK = 0
    INI_SIZE = 1
    FORM_SIZE = 2
    PARTIAL = 3
    NO_FILE = 4
    NO_TMP_DIR = 6
    CANT_WRITE = 7
    EXTENSION = 8


MAX_ERROR_CODE = 8


class UploadedFile:
    """A received file backed by either a temp file path or a stream.

    The entity owns its temp file until `move_to` succeeds. Once moved, both
    `stream` and `move_to` refuse to run; the check-and-set of the moved flag
    happens under a lock so concurrent callers observe a single winner.
    """

    __slots__ = ("_file", "_stream", "_size", "_error", "_client_filename", "_client_media_type", "_moved", "_lock")

    def __init__(
        self,
        *,
        file: Path | None = None,
        stream: BinaryIO | None = None,
        size: int,
        error: int = UploadErrorCode.OK,
        client_filename: str | None = None,
        client_media_type: str | None = None,
    ) -> None:
        self._file = file
        self._stream = stream
        self._size = size
        self._error = error
        self._client_filename = client_filename
        self._client_media_type = client_media_type
        self._moved = False
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            f"UploadedFile(client_filename={self._client_filename!r}, size={self._size}, "
            f"error={self._error}, moved={self._moved})"
        )

    @property
    def size(self) -> int:
        return self._size

    @property
    def error(self) -> int:
        return self._error

    @property
    def client_filename(self) -> str | None:
        return self._client_filename

    @property
    def client_media_type(self) -> str | None:
        return self._client_media_type

    @property
    def file(self) -> Path | None:
        """Temp file location, None for stream-backed uploads."""
        return self._file

    @property
    def moved(self) -> bool:
        return self._moved

    def _check_error(self, action: str) -> None:
        if self._error != UploadErrorCode.OK:
            raise UploadError(f"Cannot {action} due to upload error {self._error}")

    def stream(self) -> BinaryIO:
        """Return a binary stream over the upload, opening the temp file lazily."""
        self._check_error("retrieve stream")
        with self._lock:
            if self._moved:
                raise AlreadyMoved("Cannot retrieve stream after it has already been moved")
            if self._stream is None:
                self._stream = self._file.open("rb")  # type: ignore[union-attr]
            return self._stream

    def move_to(self, path: str | os.PathLike) -> Path:
        """Move the upload to `path`. Only one call may ever succeed."""
        self._check_error("move file")
        if not is_bearable(path, str | os.PathLike) or not os.fspath(path):
            raise InvalidInput("Invalid path provided for move operation, must be a non-empty path")

        target = Path(path)
        with self._lock:
            if self._moved:
                raise AlreadyMoved("File already moved")
            try:
                if self._file is not None:
                    self._close_stream()
                    shutil.move(self._file, target)
                else:
                    self._write_stream(target)
            except OSError as err:
                raise UploadError(f"Error occurred while moving uploaded file to {target}") from err
            self._moved = True

        logger.info("Uploaded file moved", icon=LogIcon.MOVE, filename=self._client_filename, target=str(target))
        return target

    def discard(self) -> bool:
        """Delete the temp file of an upload that was never moved."""
        with self._lock:
            if self._moved or self._file is None:
                return False
            self._close_stream()
            self._file.unlink(missing_ok=True)

        logger.debug("Discarded temp upload", icon=LogIcon.CLEANUP, file=str(self._file))
        return True

    def _close_stream(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def _write_stream(self, target: Path) -> None:
        source = self._stream
        if source.seekable():  # type: ignore[union-attr]
            source.seek(0)  # type: ignore[union-attr]
        with target.open("wb") as destination:
            shutil.copyfileobj(source, destination)  # type: ignore[arg-type]


def create_uploaded_file(
    source: str | os.PathLike | BinaryIO,
    size: int,
    error: int = UploadErrorCode.OK,
    client_filename: str | None = None,
    client_media_type: str | None = None,
) -> UploadedFile:
    """Validate arguments and build a fresh UploadedFile from a path or a stream."""
    file: Path | None = None
    stream: BinaryIO | None = None

    match source:
        case str() | os.PathLike() if os.fspath(source):
            file = Path(source)
        case io.IOBase():
            stream = source  # type: ignore[assignment]
        case _:
            raise InvalidInput("Invalid stream or file provided for UploadedFile")

    if isinstance(size, bool) or not is_bearable(size, int) or size < 0:
        raise InvalidInput("Size of uploaded file must be a non-negative integer")
    if isinstance(error, bool) or not is_bearable(error, int) or not 0 <= error <= MAX_ERROR_CODE:
        raise InvalidInput(f"Error status of uploaded file must be an UploadErrorCode between 0 and {MAX_ERROR_CODE}")
    if not is_bearable(client_filename, str | None):
        raise InvalidInput("Invalid filename of uploaded file, must be None or a string")
    if not is_bearable(client_media_type, str | None):
        raise InvalidInput("Invalid client media type of uploaded file, must be None or a string")

    return UploadedFile(
        file=file,
        stream=stream,
        size=size,
        error=error,
        client_filename=client_filename,
        client_media_type=client_media_type,
    )
