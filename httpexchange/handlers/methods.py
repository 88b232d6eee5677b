"""Concrete handlers for the body-carrying HTTP methods."""

import os

from httpexchange.core.logger import LogIcon, logger
from httpexchange.handlers.base import MethodHandler, PreParsedBody
from httpexchange.models.core import ContentKind, RequestBody
from httpexchange.models.message import ServerRequest
from httpexchange.parsers.content_type import classify_content_type
from httpexchange.parsers.decoders import decode_json


class DeleteHandler(MethodHandler):
    """DELETE bodies carry fields only; uploaded files are never decoded."""

    method = "DELETE"

    def decode(self, request: ServerRequest) -> RequestBody:
        return self.decode_body(request, with_files=False)


class PatchHandler(MethodHandler):
    method = "PATCH"

    def decode(self, request: ServerRequest) -> RequestBody:
        return self.decode_body(request, with_files=True)


class PutHandler(MethodHandler):
    method = "PUT"

    def decode(self, request: ServerRequest) -> RequestBody:
        return self.decode_body(request, with_files=True)


class PostHandler(MethodHandler):
    """POST handler that trusts bodies the host runtime already parsed.

    JSON is always decoded here. For other content types the injected
    PreParsedBody wins; without one the full decoder chain runs.
    """

    method = "POST"

    def __init__(self, pre_parsed: PreParsedBody | None = None, tmp_dir: str | os.PathLike | None = None) -> None:
        super().__init__(tmp_dir)
        self.pre_parsed = pre_parsed

    def decode(self, request: ServerRequest) -> RequestBody:
        if classify_content_type(request.content_type) is ContentKind.JSON:
            return RequestBody(parsed_body=decode_json(request.body))

        if self.pre_parsed is None:
            return self.decode_body(request, with_files=True)

        logger.debug("Using pre-parsed POST body", icon=LogIcon.ADAPTER)
        return RequestBody(
            parsed_body=dict(self.pre_parsed.fields()),
            uploaded_files=dict(self.pre_parsed.files()),
        )


def default_handlers(
    pre_parsed: PreParsedBody | None = None,
    tmp_dir: str | os.PathLike | None = None,
) -> list[MethodHandler]:
    """Handlers for every body-carrying method, POST first."""
    return [
        PostHandler(pre_parsed, tmp_dir),
        PutHandler(tmp_dir),
        PatchHandler(tmp_dir),
        DeleteHandler(tmp_dir),
    ]
