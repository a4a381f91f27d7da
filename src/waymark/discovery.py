"""
Operation discovery.

Methods are marked with decorators and collected from classes, packages
or source directories::

    class Blog(Resource):
        @api("post/new")
        @http_method("POST,DELETE")
        def save_new_post(self):
            ...
"""

import hashlib
import importlib
import importlib.util
import inspect
import logging
import pkgutil
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from types import ModuleType
from typing import Any, NamedTuple, TypeVar

from waymark.exceptions import DiscoveryError
from waymark.params import is_variable, split_segments
from waymark.routing import ALTERNATIVE_SEPARATOR, OperationTarget

logger = logging.getLogger("waymark.discovery")

F = TypeVar("F", bound=Callable[..., Any])

PATTERN_ATTRIBUTE: str = "__waymark_pattern__"
VERBS_ATTRIBUTE: str = "__waymark_verbs__"


class Operation(NamedTuple):
    """A discovered registration: what the registry is built from."""

    pattern: str
    verb_spec: str | None
    target: OperationTarget
    parameter_names: list[str]


def api(pattern: str) -> Callable[[F], F]:
    """Expose a method under ``pattern`` (``;`` separates alternatives)."""
    def decorator(function: F) -> F:
        setattr(_unwrap(function), PATTERN_ATTRIBUTE, pattern)
        return function
    return decorator


def http_method(verb_spec: str) -> Callable[[F], F]:
    """Restrict an ``@api`` method to the verbs in ``verb_spec`` (``,``-separated)."""
    def decorator(function: F) -> F:
        setattr(_unwrap(function), VERBS_ATTRIBUTE, verb_spec)
        return function
    return decorator


def _unwrap(member: Any) -> Any:
    if isinstance(member, (staticmethod, classmethod)):
        return member.__func__
    return member


def _methods_in_order(cls: type) -> dict[str, Any]:
    """Class members by name, base classes first, overrides keeping their slot."""
    members: dict[str, Any] = {}
    for klass in reversed(cls.__mro__[:-1]):
        members.update(vars(klass))
    return members


def discover_resources(*classes: type) -> list[Operation]:
    """
    Collect the ``@api`` methods of ``classes`` in definition order.

    Raises:
        DiscoveryError: If an ``@api`` method is a coroutine function.
            Operations are called synchronously.
    """
    operations: list[Operation] = []

    for cls in classes:
        for name, member in _methods_in_order(cls).items():
            function = _unwrap(member)
            pattern = getattr(function, PATTERN_ATTRIBUTE, None)
            if pattern is None:
                continue

            target = OperationTarget(cls, name)
            if inspect.iscoroutinefunction(inspect.unwrap(function)):
                raise DiscoveryError(
                    f"{target.qualname} is declared async; operations must be "
                    "plain (synchronous) methods"
                )
            parameter_names = target.parameter_names()
            _warn_undeclared(pattern, parameter_names, target)
            operations.append(Operation(
                pattern=pattern,
                verb_spec=getattr(function, VERBS_ATTRIBUTE, None),
                target=target,
                parameter_names=parameter_names,
            ))

    return operations


def _warn_undeclared(
    pattern: str,
    parameter_names: list[str],
    target: OperationTarget,
) -> None:
    for alternative in pattern.split(ALTERNATIVE_SEPARATOR):
        for segment in split_segments(alternative):
            if is_variable(segment) and segment[1:] not in parameter_names:
                logger.warning(
                    "Pattern %s of %s names $%s, which is not a parameter; "
                    "its value will not be passed",
                    alternative,
                    target.qualname,
                    segment[1:],
                )


def _classes_of(module: ModuleType) -> list[type]:
    """Classes defined in ``module`` (not imported into it), in source order."""
    return [
        member
        for member in vars(module).values()
        if inspect.isclass(member) and member.__module__ == module.__name__
    ]


def _iter_modules(package_name: str) -> Iterator[ModuleType]:
    try:
        package = importlib.import_module(package_name)
    except ImportError as exc:
        raise DiscoveryError(f"Cannot import {package_name!r}: {exc}") from exc

    yield package
    search_path = getattr(package, "__path__", None)
    if search_path is None:
        return

    submodules = sorted(
        info.name
        for info in pkgutil.walk_packages(search_path, prefix=f"{package.__name__}.")
    )
    for name in submodules:
        yield importlib.import_module(name)


def discover_package(package_name: str) -> list[Operation]:
    """Collect operations from a module or a package and all its submodules."""
    operations: list[Operation] = []
    for module in _iter_modules(package_name):
        operations.extend(discover_resources(*_classes_of(module)))
    logger.info("Discovered %d operation(s) in %s", len(operations), package_name)
    return operations


def _load_source(path: Path, root: Path) -> ModuleType:
    relative = path.relative_to(root).with_suffix("")
    root_key = hashlib.sha1(str(root).encode()).hexdigest()[:8]
    module_name = f"_waymark_src_{root_key}_" + "_".join(relative.parts)
    if module_name in sys.modules:
        return sys.modules[module_name]

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise DiscoveryError(f"Cannot load {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        del sys.modules[module_name]
        raise
    return module


def discover_directory(directory: str | Path) -> list[Operation]:
    """
    Collect operations from every ``*.py`` file below ``directory``.

    Files are loaded in sorted path order.

    Raises:
        DiscoveryError: If ``directory`` does not exist.
    """
    root = Path(directory).resolve()
    if not root.is_dir():
        raise DiscoveryError(f"Source directory {str(directory)!r} does not exist.")

    operations: list[Operation] = []
    for path in sorted(root.rglob("*.py")):
        module = _load_source(path, root)
        operations.extend(discover_resources(*_classes_of(module)))
    logger.info("Discovered %d operation(s) in %s", len(operations), root)
    return operations
