"""Request builder: dispatches body decoding to the matching method handler."""

from collections.abc import Iterable, Mapping
from http.cookies import CookieError, SimpleCookie

from beartype.door import is_bearable

from httpexchange.core.exceptions import InvalidInput
from httpexchange.core.logger import LogIcon, logger
from httpexchange.handlers.base import MethodHandler
from httpexchange.handlers.methods import default_handlers
from httpexchange.models.core import RequestBody
from httpexchange.models.message import Headers, ServerRequest


def parse_cookie_header(value: str) -> dict[str, str]:
    """Parse a `Cookie` header into a plain mapping, empty when unparseable."""
    if not value:
        return {}
    jar = SimpleCookie()
    try:
        jar.load(value)
    except CookieError:
        logger.warning("Malformed cookie header ignored", icon=LogIcon.WARNING)
        return {}
    return {name: morsel.value for name, morsel in jar.items()}


class RequestBuilder:
    """Builds ServerRequest objects from raw request metadata.

    Handlers are scanned in registration order and the first one whose method
    matches decodes the body; the rest are not consulted.
    """

    def __init__(self, handlers: Iterable[MethodHandler] | None = None) -> None:
        self._handlers: list[MethodHandler] = []
        for handler in default_handlers() if handlers is None else handlers:
            self.register(handler)

    def register(self, handler: MethodHandler) -> "RequestBuilder":
        """Register a method handler. Returns self for chaining."""
        if not isinstance(handler, MethodHandler):
            raise InvalidInput("HTTP method handler must be an instance of MethodHandler")
        self._handlers.append(handler)
        return self

    @property
    def handlers(self) -> list[MethodHandler]:
        return list(self._handlers)

    def decode(self, request: ServerRequest) -> RequestBody:
        """Decode the request body with the first handler claiming its method."""
        for handler in self._handlers:
            request_body = handler.update(request)
            if request_body is not None:
                return request_body

        logger.debug("No body handler for method", icon=LogIcon.DETECTION, method=request.method)
        return RequestBody()

    def build(
        self,
        method: str,
        *,
        uri: str = "/",
        headers: Mapping[str, str | list[str]] | None = None,
        body: bytes | str = b"",
        query_params: Mapping[str, str] | None = None,
        cookies: Mapping[str, str] | None = None,
        server_params: Mapping[str, str] | None = None,
    ) -> ServerRequest:
        """Create a ServerRequest and populate its parsed body and uploaded files."""
        if not is_bearable(method, str) or not method:
            raise InvalidInput("HTTP method must be a non-empty string")
        if not is_bearable(body, bytes | str):
            raise InvalidInput("Request body must be bytes or str")

        header_map = Headers(headers)
        request = ServerRequest(
            real_method=method.upper(),
            uri=uri,
            headers=header_map,
            body=body.encode("utf-8") if isinstance(body, str) else body,
            query_params=dict(query_params or {}),
            cookies=dict(cookies) if cookies is not None else parse_cookie_header(header_map.get("Cookie", "")),
            server_params=dict(server_params or {}),
        )

        request = request.with_request_body(self.decode(request))
        logger.info(
            "Request built",
            icon=LogIcon.SUCCESS,
            method=request.method,
            fields=len(request.parsed_body),
            files=len(request.uploaded_files),
        )
        return request


def decode(request: ServerRequest, handlers: Iterable[MethodHandler] | None = None) -> RequestBody:
    """Decode a request body with the given handlers, or the default chain."""
    return RequestBuilder(handlers).decode(request)
