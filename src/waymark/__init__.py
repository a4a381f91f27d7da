"""
Waymark - pattern routing for annotated Python operations

Maps request paths such as ``post/42/edit`` onto methods marked with
``@api("post/$id/edit")``, optionally restricted by HTTP verb, and serves
them as an ASGI application.
"""

from waymark.app import Waymark
from waymark.auth import AuthBackend, JWTAuthBackend, User
from waymark.config import AppConfig
from waymark.discovery import Operation, api, discover_directory, discover_package, discover_resources, http_method
from waymark.dispatch import Dispatcher
from waymark.exceptions import (
    AuthenticationError,
    DiscoveryError,
    HTTPException,
    MalformedPatternError,
    RouteNotFoundError,
    VerbNotSupportedError,
)
from waymark.params import resolve_parameters
from waymark.request import RequestContext
from waymark.resource import Resource
from waymark.response import JSONResponse, Response, TextResponse
from waymark.routing import Matcher, OperationTarget, Route, RouteRegistry, Router

__version__ = "0.1.0"
__all__ = [
    "Waymark",
    "AppConfig",
    "AuthBackend",
    "JWTAuthBackend",
    "User",
    "Operation",
    "api",
    "http_method",
    "discover_resources",
    "discover_package",
    "discover_directory",
    "Dispatcher",
    "AuthenticationError",
    "DiscoveryError",
    "HTTPException",
    "MalformedPatternError",
    "RouteNotFoundError",
    "VerbNotSupportedError",
    "resolve_parameters",
    "RequestContext",
    "Resource",
    "Response",
    "JSONResponse",
    "TextResponse",
    "Matcher",
    "OperationTarget",
    "Route",
    "RouteRegistry",
    "Router",
]
