"""Tests for headers, request context, and response conversion."""

import pytest

from switchyard.http.headers import Headers
from switchyard.http.request import RawRequest, RequestContext
from switchyard.http.response import Response, data, error, json_response, to_response


class TestHeaders:
    def test_case_insensitive_lookup(self) -> None:
        headers = Headers.from_mapping({"Content-Type": "application/json"})
        assert headers["content-type"] == "application/json"
        assert headers.get("CONTENT-TYPE") == "application/json"
        assert "Content-type" in headers

    def test_missing(self) -> None:
        headers = Headers()
        assert headers.get("x") is None
        assert headers.get("x", "d") == "d"
        with pytest.raises(KeyError):
            headers["x"]

    def test_repeated_values(self) -> None:
        headers = Headers([("Via", "a"), ("via", "b")])
        assert headers["via"] == "a"
        assert headers.get_list("VIA") == ["a", "b"]
        assert list(headers) == ["via"]
        assert len(headers) == 1

    def test_from_raw(self) -> None:
        headers = Headers.from_raw([(b"x-forwarded-for", b"1.2.3.4")])
        assert headers["X-Forwarded-For"] == "1.2.3.4"

    def test_non_string_key(self) -> None:
        assert 1 not in Headers([("a", "b")])


class TestRequest:
    def test_build(self) -> None:
        request = RawRequest.build("GET", "/x", headers={"A": "1"}, body=b"hi")
        assert request.headers["a"] == "1"
        assert request.body == b"hi"
        assert request.client is None

    @pytest.mark.anyio
    async def test_from_asgi_reads_chunked_body(self) -> None:
        messages = [
            {"type": "http.request", "body": b"ab", "more_body": True},
            {"type": "http.request", "body": b"cd", "more_body": False},
        ]

        async def receive():
            return messages.pop(0)

        scope = {
            "type": "http",
            "method": "POST",
            "path": "/items",
            "headers": [(b"content-type", b"application/json")],
            "client": ["10.0.0.2", 5555],
        }
        request = await RawRequest.from_asgi(scope, receive)
        assert request.body == b"abcd"
        assert request.method == "POST"
        assert request.client == ("10.0.0.2", 5555)
        assert request.headers["Content-Type"] == "application/json"

    def test_context_helpers(self) -> None:
        context = RequestContext(
            uri="items",
            method="POST",
            params={},
            headers=Headers.from_mapping({"Content-Type": "application/json"}),
            body=b'{"a": 1}',
        )
        assert context.content_type == "application/json"
        assert context.text() == '{"a": 1}'
        assert context.json() == {"a": 1}
        assert context.state == {}


class TestResponse:
    def test_chainable(self) -> None:
        response = Response(b"x").with_status(201).with_header("X-A", "1").with_content_type(
            "text/plain"
        )
        assert response.status == 201
        assert response.header("x-a") == "1"
        assert response.header("missing") is None
        assert response.content_type == "text/plain"

    def test_envelopes(self) -> None:
        assert data([1, 2]).json() == {"data": [1, 2]}
        assert error("Nope", 418).json() == {"error": {"code": 418, "message": "Nope"}}
        assert error("Nope", 418).status == 418
        assert error("Custom", 1001, status=400).status == 400
        assert json_response({"raw": True}).json() == {"raw": True}

    def test_default_content_type_is_json(self) -> None:
        assert data("x").content_type == "application/json"


class TestToResponse:
    def test_response_passes_through(self) -> None:
        response = Response(b"x")
        assert to_response(response) is response

    def test_value_is_wrapped(self) -> None:
        assert to_response({"a": 1}).json() == {"data": {"a": 1}}
        assert to_response("text").json() == {"data": "text"}
        assert to_response(0).json() == {"data": 0}

    def test_status_tuple(self) -> None:
        response = to_response(({"a": 1}, 202))
        assert response.status == 202
        assert response.json() == {"data": {"a": 1}}

    def test_plain_tuple_is_data(self) -> None:
        assert to_response(("a", True)).json() == {"data": ["a", True]}
        assert to_response((1, 2, 3)).json() == {"data": [1, 2, 3]}

    @pytest.mark.parametrize("status", [100, 599])
    def test_status_bounds_are_inclusive(self, status: int) -> None:
        assert to_response(("Ada", status)).status == status

    @pytest.mark.parametrize("status", [7, 99, 600, -200])
    def test_out_of_range_int_is_data(self, status: int) -> None:
        response = to_response(("Ada", status))
        assert response.status == 200
        assert response.json() == {"data": ["Ada", status]}

    def test_list_is_not_status_pair(self) -> None:
        response = to_response(["a", 201])
        assert response.status == 200
        assert response.json() == {"data": ["a", 201]}

    def test_none_is_rejected(self) -> None:
        with pytest.raises(TypeError, match="None"):
            to_response(None)

    def test_unserializable(self) -> None:
        with pytest.raises(TypeError, match="object"):
            to_response(object())
