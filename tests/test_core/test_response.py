"""Tests for waymark.response — rendering and conversion."""

import json

from waymark.response import JSONResponse, TextResponse, message_response, to_response

from tests.conftest import ResponseCapture


class TestTextResponse:
    def test_render_string(self) -> None:
        assert TextResponse("hello").render() == b"hello"

    def test_render_none(self) -> None:
        assert TextResponse(None).render() == b""

    def test_render_bytes(self) -> None:
        assert TextResponse(b"raw").render() == b"raw"


class TestJSONResponse:
    def test_render(self) -> None:
        assert json.loads(JSONResponse({"a": 1}).render()) == {"a": 1}

    def test_null(self) -> None:
        assert JSONResponse(None).render() == b"null"

    def test_patterns_not_escaped(self) -> None:
        assert JSONResponse(["post/$id/edit"]).render() == b'["post/$id/edit"]'

    async def test_send(self) -> None:
        cap = ResponseCapture()
        await JSONResponse({"ok": True}, status_code=201)(cap)
        assert cap.status == 201
        assert cap.headers["content-type"] == "application/json; charset=utf-8"
        assert cap.headers["content-length"] == str(len(cap.body))
        assert json.loads(cap.body) == {"ok": True}


class TestConversion:
    def test_message_response(self) -> None:
        response = message_response("Resource not found.", 404)
        assert response.status_code == 404
        assert json.loads(response.render()) == {"message": "Resource not found."}

    def test_none_is_no_content(self) -> None:
        response = to_response(None)
        assert response.status_code == 204
        assert response.render() == b""

    def test_str_is_text(self) -> None:
        assert isinstance(to_response("hi"), TextResponse)

    def test_list_is_json(self) -> None:
        assert isinstance(to_response(["a"]), JSONResponse)

    def test_response_passes_through(self) -> None:
        response = JSONResponse({})
        assert to_response(response) is response
