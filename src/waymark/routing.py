"""
Routing system for Waymark.

Patterns are ``/``-delimited strings whose ``$name`` segments are variables::

    post/new
    post/$id/edit

A request path registered verbatim is resolved directly. Any other path is
matched by elimination: patterns with a different segment count are dropped,
then, position by position, patterns whose literal segment differs from the
request. The first survivor in registration order wins.
"""

import inspect
import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from waymark.dispatch import Dispatcher
from waymark.exceptions import MalformedPatternError, RouteNotFoundError, VerbNotSupportedError
from waymark.params import is_variable, resolve_parameters, split_segments

if TYPE_CHECKING:
    from waymark.discovery import Operation
    from waymark.request import RequestContext

logger = logging.getLogger("waymark.routing")

ALTERNATIVE_SEPARATOR: str = ";"
VERB_SEPARATOR: str = ","
ESCAPE_CHARACTER: str = "\\"


def validate_pattern(pattern: str) -> str:
    """Return ``pattern`` unchanged, or raise ``MalformedPatternError``."""
    if (
        not pattern
        or pattern.endswith("/")
        or ESCAPE_CHARACTER in pattern
        or any(char.isspace() for char in pattern)
    ):
        raise MalformedPatternError(pattern)
    return pattern


def parse_verb_spec(verb_spec: str | None) -> frozenset[str]:
    """
    Parse a comma-separated verb list such as ``"POST, DELETE"``.

    ``None`` or a blank spec gives an empty set, which accepts any verb.
    """
    if not verb_spec:
        return frozenset()
    return frozenset(
        verb.strip().upper()
        for verb in verb_spec.split(VERB_SEPARATOR)
        if verb.strip()
    )


@dataclass(frozen=True, slots=True)
class OperationTarget:
    """A method of a class, addressed by owner and name."""

    owner: type
    method_name: str

    @property
    def qualname(self) -> str:
        return f"{self.owner.__module__}.{self.owner.__qualname__}.{self.method_name}"

    def parameter_names(self) -> list[str]:
        """Positional parameter names of the method, in declaration order."""
        raw = inspect.getattr_static(self.owner, self.method_name)
        function = raw.__func__ if isinstance(raw, (staticmethod, classmethod)) else raw
        names = [
            parameter.name
            for parameter in inspect.signature(function).parameters.values()
            if parameter.kind in (
                inspect.Parameter.POSITIONAL_ONLY,
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
            )
        ]
        # Drop self / cls
        return names if isinstance(raw, staticmethod) else names[1:]


@dataclass(frozen=True, slots=True)
class Route:
    """
    A pattern bound to one operation and the verbs it accepts.

    An empty ``verbs`` set accepts every verb.
    """

    pattern: str
    target: OperationTarget
    verbs: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        validate_pattern(self.pattern)

    @property
    def segments(self) -> list[str]:
        return split_segments(self.pattern)

    @property
    def variables(self) -> list[str]:
        """Variable names in the order they appear in the pattern."""
        return [segment[1:] for segment in self.segments if is_variable(segment)]

    def accepts_pattern(self, candidate: str) -> bool:
        return self.pattern == candidate

    def accepts_verb(self, verb: str) -> bool:
        return not self.verbs or verb in self.verbs

    def declared_parameter_names(self) -> list[str]:
        return self.target.parameter_names()

    def invoke(
        self,
        args: Sequence[Any] = (),
        context: "RequestContext | None" = None,
    ) -> Any:
        """Run the operation on a fresh owner instance."""
        return Dispatcher().dispatch(self, args, context)


class RouteRegistry:
    """
    Ordered collection of routes.

    ``patterns`` runs parallel to ``routes`` (one raw pattern per route,
    duplicates included) and backs the existence check and the listing.
    """

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._patterns: list[str] = []
        self._pattern_set: set[str] = set()

    @property
    def routes(self) -> list[Route]:
        return list(self._routes)

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def register(
        self,
        pattern: str,
        target: OperationTarget,
        verb_spec: str | None = None,
    ) -> list[Route]:
        """
        Register ``target`` under ``pattern``.

        ``pattern`` may list ``;``-separated alternatives; each becomes its
        own route sharing target and verbs. All alternatives are validated
        before any is stored.

        Raises:
            MalformedPatternError: If any alternative breaks the grammar.
        """
        verbs = parse_verb_spec(verb_spec)
        routes = [
            Route(alternative, target, verbs)
            for alternative in pattern.split(ALTERNATIVE_SEPARATOR)
        ]
        for route in routes:
            self._routes.append(route)
            self._patterns.append(route.pattern)
            self._pattern_set.add(route.pattern)
            logger.debug(
                "Registered %s -> %s [%s]",
                route.pattern,
                target.qualname,
                ",".join(sorted(verbs)) or "*",
            )
        return routes

    def populate(self, operations: Iterable["Operation"]) -> list[MalformedPatternError]:
        """
        Register every discovered operation.

        A malformed pattern rejects only its own registration; the error is
        logged and returned, and the remaining operations still register.
        """
        rejected: list[MalformedPatternError] = []
        for operation in operations:
            try:
                self.register(operation.pattern, operation.target, operation.verb_spec)
            except MalformedPatternError as exc:
                logger.error("Rejected %s: %s", operation.target.qualname, exc.message)
                rejected.append(exc)
        return rejected

    def unique_patterns(self) -> list[str]:
        """Each registered pattern once, in first-registered order."""
        return list(dict.fromkeys(self._patterns))

    def exists(self, path: str) -> bool:
        return path in self._pattern_set


class Matcher:
    """Finds the single route that handles a request path and verb."""

    def __init__(self, registry: RouteRegistry) -> None:
        self._registry = registry

    def match(self, path: str, verb: str) -> Route:
        """
        Resolve ``path`` and ``verb`` to a route.

        Raises:
            RouteNotFoundError: If no pattern has the shape of ``path``.
            VerbNotSupportedError: If the chosen pattern has no route for
                ``verb``.
        """
        if self._registry.exists(path):
            return self._route_for(path, verb)

        candidates = self.candidates(path)
        if not candidates:
            raise RouteNotFoundError(path)

        if len(candidates) > 1:
            logger.debug("Path %s matches %s, taking the first", path, candidates)
        return self._route_for(candidates[0], verb)

    def candidates(self, path: str) -> list[str]:
        """Distinct patterns with the shape of ``path``, in registration order."""
        request_segments = split_segments(path)
        remaining = [
            (pattern, segments)
            for pattern, segments in (
                (pattern, split_segments(pattern))
                for pattern in self._registry.unique_patterns()
            )
            if len(segments) == len(request_segments)
        ]

        for index, value in enumerate(request_segments):
            remaining = [
                (pattern, segments)
                for pattern, segments in remaining
                if is_variable(segments[index]) or segments[index] == value
            ]

        return [pattern for pattern, _ in remaining]

    def _route_for(self, pattern: str, verb: str) -> Route:
        for route in self._registry:
            if route.accepts_pattern(pattern) and route.accepts_verb(verb):
                return route
        raise VerbNotSupportedError(verb, pattern)


class Router:
    """
    Routes requests to operations.

    Owns the registry, which is read-only once built and safe to share, and
    handles one ``RequestContext`` per call.
    """

    def __init__(
        self,
        registry: RouteRegistry | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        self.registry = registry if registry is not None else RouteRegistry()
        self.matcher = Matcher(self.registry)
        self.dispatcher = dispatcher or Dispatcher()

    @classmethod
    def from_operations(cls, operations: Iterable["Operation"]) -> "Router":
        router = cls()
        router.registry.populate(operations)
        logger.info("Router built with %d route(s)", len(router.registry))
        return router

    @classmethod
    def from_resources(cls, *resources: type) -> "Router":
        from waymark.discovery import discover_resources

        return cls.from_operations(discover_resources(*resources))

    @classmethod
    def from_package(cls, package: str) -> "Router":
        from waymark.discovery import discover_package

        return cls.from_operations(discover_package(package))

    @classmethod
    def from_directory(cls, directory: str) -> "Router":
        from waymark.discovery import discover_directory

        return cls.from_operations(discover_directory(directory))

    @property
    def routes(self) -> list[Route]:
        return self.registry.routes

    def index(self) -> list[str]:
        """Listing answered when a request names no path."""
        return self.registry.unique_patterns()

    def resolve(self, path: str, verb: str) -> tuple[Route, list[str]]:
        """Match ``path`` and extract its arguments in declared order."""
        route = self.matcher.match(path, verb)
        args = resolve_parameters(route.pattern, route.declared_parameter_names(), path)
        return route, args

    def handle(self, context: "RequestContext") -> Any:
        """
        Route and dispatch one request.

        Returns the pattern listing for an empty path, otherwise whatever
        the operation returned.
        """
        if not context.path:
            return self.index()
        route, args = self.resolve(context.path, context.verb)
        return self.dispatcher.dispatch(route, args, context)
