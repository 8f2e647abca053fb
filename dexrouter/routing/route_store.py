"""Operator-configured routes keyed by (token_in, token_out)."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import structlog

from dexrouter.models.route import HopDescriptor, Route, reverse_route, validate_route
from dexrouter.models.types import normalize_address

from .access import OperatorGated

logger = structlog.get_logger()


class RouteStore(OperatorGated):
    """Directed routes; a route is validated when stored, never when read."""

    def __init__(self, operators: Iterable[str] = ()) -> None:
        super().__init__(operators)
        self._routes: dict[tuple[str, str], Route] = {}

    @staticmethod
    def _key(token_in: str, token_out: str) -> tuple[str, str]:
        return normalize_address(token_in), normalize_address(token_out)

    def get_route(self, token_in: str, token_out: str) -> Route | None:
        return self._routes.get(self._key(token_in, token_out))

    def has_route(self, token_in: str, token_out: str) -> bool:
        return self._key(token_in, token_out) in self._routes

    def __iter__(self) -> Iterator[tuple[tuple[str, str], Route]]:
        return iter(self._routes.items())

    def __len__(self) -> int:
        return len(self._routes)

    def set_route(
        self,
        token_in: str,
        token_out: str,
        hops: Iterable[HopDescriptor],
        *,
        sender: str,
        with_reverse: bool = False,
    ) -> None:
        """Store a route, optionally also storing its reverse for (token_out, token_in).

        Raises:
            Unauthorized: If sender is not an operator
            InvalidRoute: If the hops do not chain from token_in to token_out
        """
        self.require_operator(sender)
        route = tuple(hops)
        validate_route(token_in, token_out, route)
        self._routes[self._key(token_in, token_out)] = route
        if with_reverse:
            self._routes[self._key(token_out, token_in)] = reverse_route(route)
        logger.info(
            "route_set",
            token_in=normalize_address(token_in),
            token_out=normalize_address(token_out),
            hops=len(route),
            with_reverse=with_reverse,
        )

    def clear_route(
        self, token_in: str, token_out: str, *, sender: str, with_reverse: bool = False
    ) -> None:
        self.require_operator(sender)
        self._routes.pop(self._key(token_in, token_out), None)
        if with_reverse:
            self._routes.pop(self._key(token_out, token_in), None)


__all__ = ["RouteStore"]
