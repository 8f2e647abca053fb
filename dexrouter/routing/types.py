"""Result types for the routing and liquidity engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from dexrouter.models.route import PoolRef
from dexrouter.models.venue import VenueId


@dataclass(frozen=True)
class PoolCandidate:
    """Outcome of pool discovery.

    Attributes:
        pool_ref: Pool address, Balancer pool id, or Ambient pool index (None if not found)
        liquidity: Liquidity observed for the pool
        key: Candidate-list entry that produced the pool (fee tier, pool index, or None)
    """

    pool_ref: PoolRef | None
    liquidity: int
    key: Any = None

    @classmethod
    def none(cls) -> PoolCandidate:
        return cls(pool_ref=None, liquidity=0)

    @property
    def found(self) -> bool:
        return self.pool_ref is not None and self.liquidity > 0


@dataclass
class HopResult:
    """One executed (or quoted) conversion step."""

    venue: VenueId
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    pool: PoolRef | None = None


@dataclass
class SwapResult:
    """Result of a swap entry point."""

    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    hops: list[HopResult] = field(default_factory=list)

    @property
    def is_multihop(self) -> bool:
        return len(self.hops) > 1


@dataclass
class LiquidityResult:
    """Result of an add- or remove-liquidity entry point.

    Attributes:
        liquidity: Position units minted (add) or redeemed (remove)
        tokens: Underlying tokens of the position, in venue order
        amounts: Underlying amounts deposited (add) or withdrawn (remove)
        split: Input sub-amounts allotted to each underlying token (add only)
        amount_out: Output-token total delivered (remove only)
        refunds: Dust returned to the sender, per token
        token_id: Position token id for concentrated-liquidity venues
    """

    liquidity: int
    tokens: tuple[str, ...]
    amounts: tuple[int, ...]
    split: tuple[int, ...] = ()
    amount_out: int = 0
    refunds: dict[str, int] = field(default_factory=dict)
    token_id: int | None = None


__all__ = ["PoolCandidate", "HopResult", "SwapResult", "LiquidityResult"]
