"""Base method handler architecture for request body decoding."""

import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, Protocol

from httpexchange.core.logger import LogIcon, logger
from httpexchange.models.core import ContentKind, RequestBody
from httpexchange.models.message import ServerRequest
from httpexchange.models.upload import UploadedFile
from httpexchange.parsers.content_type import classify_content_type, extract_boundary
from httpexchange.parsers.decoders import decode_json, decode_urlencoded
from httpexchange.parsers.multipart import pull_parsed_body, pull_uploaded_files, split_multipart


class PreParsedBody(Protocol):
    """Fields and files a hosting runtime already parsed before we run."""

    def fields(self) -> Mapping[str, Any]: ...

    def files(self) -> Mapping[str, UploadedFile]: ...


@dataclass(frozen=True, slots=True)
class StaticPreParsedBody:
    """PreParsedBody over plain mappings."""

    parsed_fields: dict[str, Any] = field(default_factory=dict)
    parsed_files: dict[str, UploadedFile] = field(default_factory=dict)

    def fields(self) -> Mapping[str, Any]:
        return self.parsed_fields

    def files(self) -> Mapping[str, UploadedFile]:
        return self.parsed_files


class MethodHandler(ABC):
    """Abstract handler that decodes the body of requests using one HTTP method."""

    method: ClassVar[str]

    def __init__(self, tmp_dir: str | os.PathLike | None = None) -> None:
        self.tmp_dir = tmp_dir

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(method={self.method!r})"

    def matches(self, method: str) -> bool:
        return method.upper() == self.method

    def update(self, request: ServerRequest) -> RequestBody | None:
        """Decode the request body, or return None when the method is not ours."""
        if not self.matches(request.method):
            return None

        logger.debug(f"Handler matched: {self.method}", icon=LogIcon.DETECTION)
        return self.decode(request)

    @abstractmethod
    def decode(self, request: ServerRequest) -> RequestBody:
        """Decode the request body into parsed fields and uploaded files."""
        ...

    def decode_body(self, request: ServerRequest, *, with_files: bool) -> RequestBody:
        """Run the decoder picked by the request's Content-Type."""
        content_type = request.content_type
        kind = classify_content_type(content_type)
        logger.debug("Content type classified", icon=LogIcon.PARSER, kind=kind.value, method=self.method)

        match kind:
            case ContentKind.JSON:
                return RequestBody(parsed_body=decode_json(request.body))
            case ContentKind.URL_ENCODED:
                return RequestBody(parsed_body=decode_urlencoded(request.body))
            case ContentKind.MULTIPART:
                parts = split_multipart(request.body, extract_boundary(content_type))
                files = pull_uploaded_files(parts, self.tmp_dir) if with_files else {}
                return RequestBody(parsed_body=pull_parsed_body(parts), uploaded_files=files)
            case _:
                return RequestBody()
