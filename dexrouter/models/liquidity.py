"""Liquidity-position descriptors and per-call request bundles."""

from __future__ import annotations

from dataclasses import dataclass, field

from dexrouter.models.types import normalize_address, sort_tokens


@dataclass(frozen=True)
class PairPosition:
    """Constant-product LP position; the pair contract is also the LP token."""

    pair: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "pair", normalize_address(self.pair))


@dataclass(frozen=True)
class RangePosition:
    """Concentrated-liquidity position over [tick_lower, tick_upper).

    token_id is None when minting a new position and set when adding to or
    removing from an existing one.
    """

    token0: str
    token1: str
    fee: int
    tick_lower: int
    tick_upper: int
    token_id: int | None = None

    def __post_init__(self) -> None:
        token0, token1 = sort_tokens(self.token0, self.token1)
        object.__setattr__(self, "token0", token0)
        object.__setattr__(self, "token1", token1)
        if self.tick_lower >= self.tick_upper:
            raise ValueError(f"tick_lower {self.tick_lower} must be below {self.tick_upper}")


@dataclass(frozen=True)
class PoolPosition:
    """Balancer pool share (BPT), addressed by pool id."""

    pool_id: str


@dataclass(frozen=True)
class AmbientPosition:
    """Full-range Ambient liquidity in the (base, quote, pool_idx) pool."""

    base: str
    quote: str
    pool_idx: int

    def __post_init__(self) -> None:
        base, quote = sort_tokens(self.base, self.quote)
        object.__setattr__(self, "base", base)
        object.__setattr__(self, "quote", quote)


Position = PairPosition | RangePosition | PoolPosition | AmbientPosition


@dataclass
class AddLiquidityRequest:
    """Venue-agnostic add-liquidity parameters, built per call."""

    position: Position
    tokens: tuple[str, ...]
    amounts_desired: tuple[int, ...]
    recipient: str
    deadline: int
    amounts_min: tuple[int, ...] = ()
    min_liquidity: int = 0

    def __post_init__(self) -> None:
        if len(self.tokens) != len(self.amounts_desired):
            raise ValueError("tokens and amounts_desired must have the same length")
        if not self.amounts_min:
            self.amounts_min = (0,) * len(self.tokens)


@dataclass
class RemoveLiquidityRequest:
    """Venue-agnostic remove-liquidity parameters, built per call."""

    position: Position
    liquidity: int
    recipient: str
    deadline: int
    amounts_min: tuple[int, ...] = field(default_factory=tuple)


__all__ = [
    "PairPosition",
    "RangePosition",
    "PoolPosition",
    "AmbientPosition",
    "Position",
    "AddLiquidityRequest",
    "RemoveLiquidityRequest",
]
