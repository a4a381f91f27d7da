"""Tests for waymark.auth — JWT bearer tokens checked before routing."""

import json
import time

import jwt
import pytest

from waymark.app import Waymark
from waymark.auth import JWTAuthBackend, User
from waymark.exceptions import AuthenticationError
from waymark.request import RequestContext

from tests.conftest import ResponseCapture, make_receive, make_scope
from tests.resources import blog
from tests.resources.blog import Blog

SECRET = "s" * 32


def _context(authorization: str | None = None) -> RequestContext:
    headers = {"authorization": authorization} if authorization else {}
    return RequestContext(path="post/new", headers=headers)


class TestJWTAuthBackend:
    async def test_valid_token(self) -> None:
        backend = JWTAuthBackend(SECRET)
        token = backend.issue_token("1", username="ada", scopes=["read"])
        user = await backend.authenticate(_context(f"Bearer {token}"))
        assert isinstance(user, User)
        assert user.identity == "1"
        assert user.username == "ada"
        assert user.has_scope("read")

    async def test_claims_kept_on_user(self) -> None:
        backend = JWTAuthBackend(SECRET)
        token = backend.issue_token("7", tenant="acme")
        user = await backend.authenticate(_context(f"Bearer {token}"))
        assert user.data["tenant"] == "acme"
        assert user.data["sub"] == "7"
        assert "exp" in user.data

    async def test_missing_header(self) -> None:
        with pytest.raises(AuthenticationError, match="missing"):
            await JWTAuthBackend(SECRET).authenticate(_context())

    async def test_wrong_scheme(self) -> None:
        with pytest.raises(AuthenticationError):
            await JWTAuthBackend(SECRET).authenticate(_context("Basic abc"))

    async def test_malformed_header(self) -> None:
        with pytest.raises(AuthenticationError, match="Malformed"):
            await JWTAuthBackend(SECRET).authenticate(_context("Bearer"))

    async def test_bad_signature(self) -> None:
        token = JWTAuthBackend("x" * 32).issue_token("1")
        with pytest.raises(AuthenticationError, match="Invalid"):
            await JWTAuthBackend(SECRET).authenticate(_context(f"Bearer {token}"))

    async def test_expired(self) -> None:
        token = jwt.encode({"sub": "1", "exp": int(time.time()) - 10}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError, match="expired"):
            await JWTAuthBackend(SECRET).authenticate(_context(f"Bearer {token}"))

    async def test_no_subject(self) -> None:
        token = jwt.encode({"username": "ada"}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError, match="subject"):
            await JWTAuthBackend(SECRET).authenticate(_context(f"Bearer {token}"))

    def test_error_is_401(self) -> None:
        exc = AuthenticationError("nope")
        assert exc.status_code == 401
        assert exc.headers["WWW-Authenticate"] == "Bearer"


class TestAuthBeforeRouting:
    async def test_rejected_before_dispatch(self) -> None:
        app = Waymark(resources=[Blog], secret_key=SECRET)
        cap = ResponseCapture()
        await app(make_scope(path="/post/new"), make_receive(), cap)
        assert cap.status == 401
        assert json.loads(cap.body) == {"message": "Authentication token missing."}
        assert cap.headers["www-authenticate"] == "Bearer"
        assert blog.CALLS == []

    async def test_unknown_route_still_401(self) -> None:
        app = Waymark(resources=[Blog], secret_key=SECRET)
        cap = ResponseCapture()
        await app(make_scope(path="/nowhere"), make_receive(), cap)
        assert cap.status == 401

    async def test_authenticated_dispatch(self) -> None:
        app = Waymark(resources=[Blog], secret_key=SECRET)
        token = JWTAuthBackend(SECRET).issue_token("1")
        cap = ResponseCapture()
        scope = make_scope(path="/post/9/edit", headers={"Authorization": f"Bearer {token}"})
        await app(scope, make_receive(), cap)
        assert cap.status == 200
        assert blog.CALLS == [("edit_post", ("9",))]
