from __future__ import annotations

import typing as t
from dataclasses import dataclass

from stalewise._core.models import CacheDirective

ValidatorKind = t.Literal["none", "last-modified", "etag"]
VALIDATOR_KINDS: t.Tuple[ValidatorKind, ...] = ("none", "last-modified", "etag")

__all__ = ("RoutePolicy", "ValidatorKind", "VALIDATOR_KINDS")


@dataclass(frozen=True)
class RoutePolicy:
    """
    How the responses of one route are cached.

    ``directive`` adds a Cache-Control expiry to every response of the route.
    ``validator`` picks the negotiated strategy run on every request that does
    reach the server. When both are set, the validator alone decides between
    200 and 304; the directive only limits how often clients ask.

    Examples:
        >>> RoutePolicy()  # no caching at all
        RoutePolicy(directive=None, validator='none')
        >>> RoutePolicy(directive=CacheDirective(max_age=30))  # forced cache
        RoutePolicy(directive=CacheDirective(max_age=30, visibility='public'), validator='none')
        >>> RoutePolicy(validator="last-modified")
        RoutePolicy(directive=None, validator='last-modified')
        >>> RoutePolicy(directive=CacheDirective(max_age=10), validator="etag")
        RoutePolicy(directive=CacheDirective(max_age=10, visibility='public'), validator='etag')
    """

    directive: t.Optional[CacheDirective] = None
    validator: ValidatorKind = "none"

    def __post_init__(self) -> None:
        if self.validator not in VALIDATOR_KINDS:
            raise ValueError(f"validator must be one of {VALIDATOR_KINDS}, got {self.validator!r}")
