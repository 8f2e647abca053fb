"""Route and hop descriptors."""

from __future__ import annotations

from dataclasses import dataclass, replace

from dexrouter.errors import InvalidRoute
from dexrouter.models.types import normalize_address
from dexrouter.models.venue import VenueId

# Pool address (constant product, concentrated), Balancer pool id, or Ambient pool index
PoolRef = str | int


@dataclass(frozen=True)
class HopDescriptor:
    """One conversion step of a configured route.

    Attributes:
        token_in: Token paid into the hop
        token_out: Token received from the hop
        venue: Venue executing the hop
        is_composite: The hop expands into the route configured for its own pair
        pinned_pool: Pool to use instead of running discovery
    """

    token_in: str
    token_out: str
    venue: VenueId
    is_composite: bool = False
    pinned_pool: PoolRef | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "token_in", normalize_address(self.token_in))
        object.__setattr__(self, "token_out", normalize_address(self.token_out))
        object.__setattr__(self, "venue", VenueId.parse(self.venue))

    def reversed(self) -> HopDescriptor:
        return replace(self, token_in=self.token_out, token_out=self.token_in)


Route = tuple[HopDescriptor, ...]


def validate_route(token_in: str, token_out: str, hops: Route) -> None:
    """Check that hops chain from token_in to token_out.

    Raises:
        InvalidRoute: If the route is empty or any hop does not connect
    """
    if not hops:
        raise InvalidRoute("Route must contain at least one hop")

    current = normalize_address(token_in)
    for i, hop in enumerate(hops):
        if hop.token_in != current:
            raise InvalidRoute(f"Hop {i} starts at {hop.token_in}, expected {current}")
        if hop.token_in == hop.token_out:
            raise InvalidRoute(f"Hop {i} swaps {hop.token_in} into itself")
        current = hop.token_out

    if current != normalize_address(token_out):
        raise InvalidRoute(f"Route ends at {current}, expected {normalize_address(token_out)}")


def reverse_route(hops: Route) -> Route:
    """Derive the route for the opposite direction."""
    return tuple(hop.reversed() for hop in reversed(hops))


def path_of(hops: Route) -> list[str]:
    """Flatten hops into their token path."""
    return [hops[0].token_in, *(hop.token_out for hop in hops)]


__all__ = ["PoolRef", "HopDescriptor", "Route", "validate_route", "reverse_route", "path_of"]
