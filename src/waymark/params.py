"""
Path parameter resolution.

Binds the values found under ``$variable`` segments of a matched pattern to
the positions of the target operation's declared parameters.
"""

import logging
from collections.abc import Sequence

logger = logging.getLogger("waymark.routing")

SEGMENT_DELIMITER: str = "/"
VARIABLE_MARKER: str = "$"


def split_segments(path: str) -> list[str]:
    """Split a pattern or request path on the segment delimiter."""
    return path.split(SEGMENT_DELIMITER)


def is_variable(segment: str) -> bool:
    return segment.startswith(VARIABLE_MARKER)


def resolve_parameters(
    pattern: str,
    parameter_names: Sequence[str],
    path: str,
) -> list[str]:
    """
    Extract the arguments for an operation from a request path.

    Each ``$name`` segment of ``pattern`` takes the request segment at the
    same position and places it at the index of ``name`` in
    ``parameter_names``. The result is ordered by declared position, with
    unbound positions skipped.

    A variable that names no declared parameter is dropped.

    Example:
        >>> resolve_parameters("org/$repo/by/$org", ["org", "repo"], "org/waymark/by/acme")
        ['acme', 'waymark']
    """
    pattern_segments = split_segments(pattern)
    request_segments = split_segments(path)
    bound: dict[int, str] = {}

    for index, segment in enumerate(pattern_segments):
        if not is_variable(segment) or index >= len(request_segments):
            continue
        name = segment[len(VARIABLE_MARKER):]
        try:
            position = parameter_names.index(name)
        except ValueError:
            logger.debug("Dropping undeclared variable $%s of pattern %s", name, pattern)
            continue
        bound[position] = request_segments[index]

    if not bound:
        return []
    return [bound[position] for position in range(max(bound) + 1) if position in bound]
