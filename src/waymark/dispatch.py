"""
Operation dispatch.
"""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from waymark.resource import Resource

if TYPE_CHECKING:
    from waymark.request import RequestContext
    from waymark.routing import Route

logger = logging.getLogger("waymark.routing")


class Dispatcher:
    """
    Invokes a route's target operation.

    A fresh instance of the owning class is built for every call, without
    constructor arguments. Exceptions raised by the operation propagate to
    the caller untouched.
    """

    def dispatch(
        self,
        route: "Route",
        args: Sequence[Any] = (),
        context: "RequestContext | None" = None,
    ) -> Any:
        """Call ``route``'s operation with ``args`` in order."""
        target = route.target
        instance = target.owner()

        if context is not None and isinstance(instance, Resource):
            instance.bind(context)

        logger.debug("Dispatching %s with %d argument(s)", target.qualname, len(args))
        return getattr(instance, target.method_name)(*args)
