"""Error taxonomy for request decoding and upload handling."""


class HttpExchangeError(Exception):
    """Base class for every error raised by httpexchange."""


class InvalidInput(HttpExchangeError, ValueError):
    """An argument has the wrong type or an unusable value."""


class MalformedMultipart(HttpExchangeError, ValueError):
    """A multipart body part lacks its header separator or a header colon."""


class UploadError(HttpExchangeError, RuntimeError):
    """The upload was flagged as failed, or the file could not be moved."""


class AlreadyMoved(HttpExchangeError, RuntimeError):
    """The uploaded file was already moved to its destination."""
