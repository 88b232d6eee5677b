"""JSON and URL-encoded body decoders."""

from typing import Any
from urllib.parse import unquote_plus

import orjson
from beartype.door import is_bearable

from httpexchange.core.exceptions import InvalidInput
from httpexchange.core.logger import LogIcon, logger


def _require_text(raw: Any, kind: str) -> None:
    if not is_bearable(raw, str | bytes):
        raise InvalidInput(f"Raw {kind} data must be str or bytes, got {type(raw).__name__}")


def decode_urlencoded(raw: str | bytes) -> dict[str, str]:
    """Decode `a=1&b=2` into a mapping. Segments without `=` are dropped."""
    _require_text(raw, "URL encoded")
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw

    params: dict[str, str] = {}
    for segment in text.split("&"):
        key, sep, value = segment.partition("=")
        if not sep:
            continue
        params[unquote_plus(key)] = unquote_plus(value)
    return params


def decode_json(raw: str | bytes) -> dict[str, Any]:
    """Decode a JSON object body. Invalid or non-object JSON yields an empty mapping."""
    _require_text(raw, "json")
    if not raw:
        return {}

    try:
        decoded = orjson.loads(raw)
    except orjson.JSONDecodeError as ex:
        logger.warning("Malformed json body ignored", icon=LogIcon.WARNING, error=str(ex))
        return {}

    if not isinstance(decoded, dict):
        logger.warning("Json body is not an object", icon=LogIcon.WARNING, kind=type(decoded).__name__)
        return {}
    return decoded
