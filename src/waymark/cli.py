"""Waymark CLI: list discovered routes and serve them.

Entry point registered as ``waymark`` in ``pyproject.toml``::

    [project.scripts]
    waymark = "waymark.cli:main"

A target is ``module:attribute`` naming a ``Waymark`` app, a source
directory, or an importable package to discover operations in.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path

from waymark.app import Waymark
from waymark.config import AppConfig
from waymark.exceptions import DiscoveryError


def resolve_app(target: str, config: AppConfig | None = None) -> Waymark:
    """Turn a CLI target into an application."""
    if ":" in target:
        module_name, _, attribute = target.partition(":")
        module = importlib.import_module(module_name)
        app = getattr(module, attribute)
        if not isinstance(app, Waymark):
            raise TypeError(f"{target} is {type(app).__name__}, not a Waymark app")
        return app
    if Path(target).is_dir():
        return Waymark(directory=target, config=config)
    return Waymark(package=target, config=config)


def run_routes(args: argparse.Namespace) -> int:
    """Print a table of PATTERN, VERBS and OPERATION."""
    app = resolve_app(args.target)
    routes = app.routes

    for error in app.rejected:
        print(f"Rejected: {error.message}", file=sys.stderr)

    if not routes:
        print("No routes registered.")
        return 0

    rows = [
        (route.pattern, ",".join(sorted(route.verbs)) or "*", route.target.qualname)
        for route in routes
    ]
    max_pattern = max(max(len(r[0]) for r in rows), 7)
    max_verbs = max(max(len(r[1]) for r in rows), 5)

    fmt = f"{{:<{max_pattern}}}  {{:<{max_verbs}}}  {{}}"
    print(fmt.format("PATTERN", "VERBS", "OPERATION"))
    print("-" * min(max_pattern + max_verbs + 4 + max(len(r[2]) for r in rows), 80))
    for row in rows:
        print(fmt.format(*row))
    return 0


def run_server(args: argparse.Namespace) -> int:
    """Serve the target; command-line flags win over its config."""
    app = resolve_app(args.target, AppConfig.from_env())
    overrides = {
        name: value
        for name, value in (
            ("host", args.host),
            ("port", args.port),
            ("mount_prefix", args.prefix),
        )
        if value is not None
    }
    if overrides:
        app.config = app.config.with_overrides(**overrides)

    app.run()
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the ``waymark`` command."""
    parser = argparse.ArgumentParser(
        prog="waymark",
        description="Waymark: pattern routing for annotated Python operations.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    routes_parser = subparsers.add_parser("routes", help="List discovered routes")
    routes_parser.add_argument("target", help="module:app, package name or directory")

    run_parser = subparsers.add_parser("run", help="Serve the routes with uvicorn")
    run_parser.add_argument("target", help="module:app, package name or directory")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument("--prefix", default=None, help="Path prefix to strip before matching")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    try:
        if args.command == "routes":
            return run_routes(args)
        return run_server(args)
    except (DiscoveryError, ModuleNotFoundError, AttributeError, TypeError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
