"""Bridge between robyn request/response objects and httpexchange messages."""

import io
import mimetypes
import os
from collections.abc import Mapping
from typing import Any

from robyn import Request
from robyn import Response as RobynResponse

from httpexchange.core.builder import RequestBuilder
from httpexchange.core.logger import LogIcon, logger
from httpexchange.handlers.methods import default_handlers
from httpexchange.models.message import ServerRequest
from httpexchange.models.response import Response
from httpexchange.models.upload import UploadedFile, UploadErrorCode, create_uploaded_file


class RobynPreParsedBody:
    """Exposes robyn's own form/multipart parsing of POST bodies."""

    __slots__ = ("_request",)

    def __init__(self, request: Request) -> None:
        self._request = request

    def fields(self) -> Mapping[str, Any]:
        return dict(getattr(self._request, "form_data", None) or {})

    def files(self) -> Mapping[str, UploadedFile]:
        """robyn keys files by client filename and keeps their bytes in memory."""
        files = getattr(self._request, "files", None) or {}
        return {
            filename: create_uploaded_file(
                io.BytesIO(data),
                len(data),
                UploadErrorCode.OK,
                filename,
                mimetypes.guess_type(filename)[0],
            )
            for filename, data in files.items()
        }


def _request_body(request: Request) -> bytes | str:
    body = getattr(request, "body", None) or b""
    if isinstance(body, (bytes, str)):
        return body
    return bytes(body)


def _request_uri(request: Request) -> str:
    url = getattr(request, "url", None)
    if url is None:
        return "/"
    return f"{url.scheme}://{url.host}{url.path}"


def from_robyn(
    request: Request,
    builder: RequestBuilder | None = None,
    tmp_dir: str | os.PathLike | None = None,
) -> ServerRequest:
    """Build a ServerRequest from a robyn Request, trusting robyn's POST parsing."""
    builder = builder or RequestBuilder(default_handlers(RobynPreParsedBody(request), tmp_dir))
    query = {name: values[-1] for name, values in request.query_params.to_dict().items() if values}

    logger.debug("Adapting robyn request", icon=LogIcon.ADAPTER, method=request.method)
    return builder.build(
        request.method,
        uri=_request_uri(request),
        headers=request.headers.get_headers(),
        body=_request_body(request),
        query_params=query,
        server_params={
            "REQUEST_METHOD": request.method,
            "REMOTE_ADDR": getattr(request, "ip_addr", None) or "",
        },
    )


def to_robyn_response(response: Response) -> RobynResponse:
    """Hand a Response to robyn for transmission."""
    return RobynResponse(
        status_code=response.status_code,
        headers=dict(response.headers),
        description=response.body,
    )
