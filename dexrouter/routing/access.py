"""Operator role shared by the registry and the route store."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from dexrouter.errors import Unauthorized
from dexrouter.models.types import normalize_address

logger = structlog.get_logger()


class OperatorGated:
    """Mixin holding a set of operator addresses."""

    def __init__(self, operators: Iterable[str] = ()) -> None:
        self._operators = {normalize_address(op) for op in operators}

    def is_operator(self, address: str) -> bool:
        return normalize_address(address) in self._operators

    def require_operator(self, sender: str) -> None:
        """Raises Unauthorized unless sender holds the operator role."""
        if not self.is_operator(sender):
            logger.warning("unauthorized_call", sender=sender, target=type(self).__name__)
            raise Unauthorized(f"{sender} is not an operator")

    def add_operator(self, operator: str, *, sender: str) -> None:
        self.require_operator(sender)
        self._operators.add(normalize_address(operator))

    def remove_operator(self, operator: str, *, sender: str) -> None:
        self.require_operator(sender)
        self._operators.discard(normalize_address(operator))


__all__ = ["OperatorGated"]
