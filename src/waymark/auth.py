"""
Authentication for Waymark.

A backend runs before routing; a request it cannot authenticate ends with
``AuthenticationError`` and never reaches the matcher.
"""
import time

import jwt

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from waymark.exceptions import AuthenticationError
from waymark.request import RequestContext


@dataclass
class User:
    """Authenticated identity attached to the request context.

    ``data`` holds every claim the credentials carried.
    """

    id: str
    username: str | None = None
    scopes: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def identity(self) -> str:
        return self.id

    def has_scope(self, scope: str) -> bool:
        """Check if user has a specific scope/permission."""
        return scope in self.scopes


class AuthBackend(ABC):
    """Pluggable authentication strategy."""

    @abstractmethod
    async def authenticate(self, context: RequestContext) -> User:
        """
        Authenticate a request.

        Raises:
            AuthenticationError: If the request carries no valid credentials.
        """
        ...


class JWTAuthBackend(AuthBackend):
    """Bearer-token backend validating HS256 (or configured) JWTs."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        token_prefix: str = "Bearer",
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._token_prefix = token_prefix

    def _extract_token(self, context: RequestContext) -> str:
        auth_header = context.get_header("authorization")
        if not auth_header:
            raise AuthenticationError("Authentication token missing.")

        try:
            scheme, token = auth_header.split(" ", 1)
        except ValueError:
            raise AuthenticationError("Malformed Authorization header.") from None

        if scheme.lower() != self._token_prefix.lower():
            raise AuthenticationError(f"Expected a {self._token_prefix} token.")
        return token.strip()

    async def authenticate(self, context: RequestContext) -> User:
        token = self._extract_token(context)
        try:
            payload: dict[str, Any] = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Authentication token expired.") from None
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid authentication token.") from None

        if "sub" not in payload:
            raise AuthenticationError("Authentication token has no subject.")
        return User(
            id=str(payload["sub"]),
            username=payload.get("username"),
            scopes=payload.get("scopes", []),
            data=payload,
        )

    def issue_token(
        self,
        subject: str,
        expires_in: int = 3600,
        **claims: Any,
    ) -> str:
        """Sign a token this backend accepts."""
        now = int(time.time())
        payload: dict[str, Any] = {
            "sub": subject,
            "iat": now,
            "exp": now + expires_in,
            **claims,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
