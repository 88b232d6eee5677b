"""Tests for request building and handler dispatch."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from conftest import build_multipart, multipart_field, multipart_file

from httpexchange.core.builder import RequestBuilder, decode, parse_cookie_header
from httpexchange.core.exceptions import InvalidInput, MalformedMultipart
from httpexchange.handlers.base import MethodHandler
from httpexchange.handlers.methods import DeleteHandler, PatchHandler
from httpexchange.models.core import RequestBody
from httpexchange.models.message import ServerRequest

# -----------------------------------------------------------------------------
# End-to-end scenarios
# -----------------------------------------------------------------------------


class TestScenarios:
    """End-to-end decoding through the default handler chain."""

    def test_delete_json(self, builder: RequestBuilder) -> None:
        request = builder.build("DELETE", headers={"Content-Type": "application/json"}, body='{"id":"42"}')

        assert request.parsed_body == {"id": "42"}
        assert request.uploaded_files == {}

    def test_patch_multipart(self, builder: RequestBuilder, multipart_content_type: str, upload_dir: Path) -> None:
        png = b"\x89PNG\r\n\x1a\nimage"
        body = build_multipart(multipart_field("title", "Hello"), multipart_file("avatar", "a.png", png, "image/png"))

        request = builder.build("PATCH", headers={"Content-Type": multipart_content_type}, body=body)

        assert request.parsed_body == {"title": "Hello"}
        assert list(request.uploaded_files) == ["avatar"]
        avatar = request.uploaded_files["avatar"]
        assert avatar.client_filename == "a.png"
        assert avatar.size == len(png)
        assert avatar.file.parent == upload_dir

    def test_get_has_no_body_processing(self, builder: RequestBuilder) -> None:
        request = builder.build("GET", headers={"Content-Type": "application/json"}, body='{"ignored": true}')

        assert request.parsed_body == {}
        assert request.uploaded_files == {}

    def test_urlencoded_malformed_segment(self, builder: RequestBuilder) -> None:
        request = builder.build(
            "DELETE",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            body="a=1&b=2&malformed",
        )

        assert request.parsed_body == {"a": "1", "b": "2"}

    def test_malformed_multipart_not_swallowed(self, builder: RequestBuilder, multipart_content_type: str) -> None:
        body = build_multipart(b"Content-Disposition: form-data; name=\"x\"\r\nmissing blank line")

        with pytest.raises(MalformedMultipart):
            builder.build("PATCH", headers={"Content-Type": multipart_content_type}, body=body)


# -----------------------------------------------------------------------------
# Dispatch Tests
# -----------------------------------------------------------------------------


class TestDispatch:
    """Tests for handler registration and linear dispatch."""

    def test_first_match_short_circuits(self) -> None:
        """Verify handlers after the first match are never consulted."""
        first = MagicMock(spec=MethodHandler)
        first.update.return_value = None
        matching = MagicMock(spec=MethodHandler)
        matching.update.return_value = RequestBody(parsed_body={"hit": "yes"})
        never = MagicMock(spec=MethodHandler)
        request = ServerRequest(real_method="PATCH")

        result = RequestBuilder([first, matching, never]).decode(request)

        assert result.parsed_body == {"hit": "yes"}
        first.update.assert_called_once_with(request)
        matching.update.assert_called_once_with(request)
        never.update.assert_not_called()

    def test_empty_result_still_short_circuits(self) -> None:
        """Verify a matching handler with an empty body ends the scan."""
        matching = MagicMock(spec=MethodHandler)
        matching.update.return_value = RequestBody()
        never = MagicMock(spec=MethodHandler)

        result = RequestBuilder([matching, never]).decode(ServerRequest(real_method="DELETE"))

        assert result == RequestBody()
        never.update.assert_not_called()

    def test_no_handlers_means_empty_body(self) -> None:
        assert RequestBuilder([]).decode(ServerRequest(real_method="PATCH")) == RequestBody()

    def test_unregistered_method_is_empty(self) -> None:
        builder = RequestBuilder([DeleteHandler()])

        request = builder.build("PATCH", headers={"Content-Type": "application/json"}, body='{"a": "b"}')

        assert request.parsed_body == {}

    def test_register_chains(self) -> None:
        builder = RequestBuilder([]).register(DeleteHandler()).register(PatchHandler())

        assert [handler.method for handler in builder.handlers] == ["DELETE", "PATCH"]

    @pytest.mark.parametrize("handler", [object(), "DELETE", None])
    def test_register_rejects_non_handlers(self, handler) -> None:
        with pytest.raises(InvalidInput, match="MethodHandler"):
            RequestBuilder([handler])

    def test_default_chain(self) -> None:
        assert [handler.method for handler in RequestBuilder().handlers] == ["POST", "PUT", "PATCH", "DELETE"]

    def test_module_level_decode(self) -> None:
        request = ServerRequest(real_method="DELETE")

        assert decode(request, [DeleteHandler()]) == RequestBody()


# -----------------------------------------------------------------------------
# build() Tests
# -----------------------------------------------------------------------------


class TestBuild:
    """Tests for RequestBuilder.build."""

    def test_request_metadata(self, builder: RequestBuilder) -> None:
        request = builder.build(
            "post",
            uri="http://example.com/items?_method=put",
            headers={"X-Requested-With": "XMLHttpRequest", "Cookie": "session=abc; theme=dark"},
            query_params={"_method": "put"},
            server_params={"REMOTE_ADDR": "10.1.1.1"},
        )

        assert request.real_method == "POST"
        assert request.method == "PUT"
        assert request.uri == "http://example.com/items?_method=put"
        assert request.is_ajax()
        assert request.cookies == {"session": "abc", "theme": "dark"}
        assert request.server_param("remote_addr") == "10.1.1.1"

    def test_explicit_cookies_win(self, builder: RequestBuilder) -> None:
        request = builder.build("GET", headers={"Cookie": "a=1"}, cookies={"b": "2"})

        assert request.cookies == {"b": "2"}

    def test_str_body_encoded(self, builder: RequestBuilder) -> None:
        assert builder.build("GET", body="héllo").body == "héllo".encode()

    @pytest.mark.parametrize("method", ["", None, 3])
    def test_invalid_method(self, builder: RequestBuilder, method) -> None:
        with pytest.raises(InvalidInput, match="method"):
            builder.build(method)

    @pytest.mark.parametrize("body", [None, 12, {"a": 1}])
    def test_invalid_body(self, builder: RequestBuilder, body) -> None:
        with pytest.raises(InvalidInput, match="body"):
            builder.build("POST", body=body)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("", {}),
        ("a=1", {"a": "1"}),
        ("a=1; b=two", {"a": "1", "b": "two"}),
    ],
)
def test_parse_cookie_header(value: str, expected: dict) -> None:
    assert parse_cookie_header(value) == expected
