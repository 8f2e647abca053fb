"""Liquidity engine: single-token entry into and exit from venue positions.

Adding liquidity splits the input across the position's underlying tokens
in proportion to their value (each pool-held amount priced in input-token
units), converts each share through the swap engine, deposits, and hands
back whatever the venue did not take. Removing redeems the position,
converts every underlying into the output token and sums the results.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from dexrouter.chain.ledger import Chain, Contract
from dexrouter.constants import PRICE_UNIT
from dexrouter.errors import InsufficientOutput, ZeroAddress, ZeroAmount, ZeroTotalRatio
from dexrouter.models.liquidity import AddLiquidityRequest, Position, RemoveLiquidityRequest
from dexrouter.models.types import is_zero_address, normalize_address
from dexrouter.models.venue import VenueId
from dexrouter.safe_int import S

from .handlers import VenueHandler
from .quoter import Quoter
from .registry import VenueRegistry
from .swap_router import SwapRouter
from .types import LiquidityResult

logger = structlog.get_logger()


def divide_in_ratio(amount: int, ratio0: int, ratio1: int) -> tuple[int, int]:
    """Split amount as (amount * ratio0 // (ratio0 + ratio1), remainder).

    The two parts always sum to amount, and ratio0 == 0 gives a zero first part.

    Raises:
        ZeroTotalRatio: If ratio0 + ratio1 == 0
    """
    total = ratio0 + ratio1
    if total == 0:
        raise ZeroTotalRatio(f"Cannot split {amount} by a zero total ratio")
    first = (S(amount) * S(ratio0) // S(total)).value
    return first, amount - first


def split_amount(amount: int, ratios: Sequence[int]) -> tuple[int, ...]:
    """N-way divide_in_ratio: each share against the sum of the ratios after it.

    The last share takes the remainder, so the shares sum to amount.

    Raises:
        ZeroTotalRatio: If every ratio is zero
    """
    if sum(ratios) == 0:
        raise ZeroTotalRatio(f"Cannot split {amount} by a zero total ratio")
    shares = []
    remaining = amount
    for i, ratio in enumerate(ratios[:-1]):
        rest = sum(ratios[i + 1 :])
        if ratio + rest == 0:
            shares.append(0)
            continue
        share, remaining = divide_in_ratio(remaining, ratio, rest)
        shares.append(share)
    shares.append(remaining)
    return tuple(shares)


class LiquidityRouter(Contract):
    """Single-token add and remove for every venue's position type.

    Like the swap router, it is not deployed on the chain and keeps no state.
    Removing liquidity pulls the position from the sender, so the sender
    approves this router for the LP token (or, on concentrated venues, for
    the position token on the position manager) beforehand.
    """

    def __init__(self, chain: Chain, swap_router: SwapRouter, quoter: Quoter) -> None:
        super().__init__(chain)
        self.swap_router = swap_router
        self.quoter = quoter

    @property
    def registry(self) -> VenueRegistry:
        return self.swap_router.registry

    def handler(self, venue: VenueId | int | str) -> VenueHandler:
        return self.swap_router.handler(venue)

    # --- Split planning ---

    def token_values(
        self,
        input_token: str,
        tokens: Sequence[str],
        reserves: Sequence[int],
        venue: VenueId,
    ) -> tuple[int, ...]:
        """Each pool-held amount priced in input-token units; the input token is at par."""
        values = []
        for token, reserve in zip(tokens, reserves, strict=True):
            if token == input_token or reserve == 0:
                values.append(reserve)
                continue
            unit_price = self.quoter.get_quote(token, input_token, PRICE_UNIT, venue)
            values.append((S(unit_price) * S(reserve) // S(PRICE_UNIT)).value)
        return tuple(values)

    def plan_split(
        self, input_token: str, input_amount: int, position: Position, venue: VenueId | int | str
    ) -> tuple[tuple[str, ...], tuple[int, ...]]:
        """Underlying tokens of the position and the input share for each.

        Raises:
            ZeroTotalRatio: If the position's underlying value is zero
        """
        venue = VenueId.parse(venue)
        handler = self.handler(venue)
        tokens = handler.position_tokens(position)
        reserves = handler.position_reserves(position)
        values = self.token_values(normalize_address(input_token), tokens, reserves, venue)
        return tokens, split_amount(input_amount, values)

    # --- Entry points ---

    def add_liquidity(
        self,
        input_token: str,
        input_amount: int,
        position: Position,
        venue: VenueId | int | str,
        *,
        sender: str,
        min_liquidity: int = 0,
        recipient: str | None = None,
    ) -> LiquidityResult:
        """Enter a position from a single input token.

        Raises:
            ZeroAddress: If the input token or recipient is the zero address
            ZeroAmount: If input_amount is zero
            ZeroTotalRatio: If the position's underlying value is zero
            InsufficientOutput: If fewer than min_liquidity position units are minted
        """
        input_token = self._validate(input_token, input_amount)
        recipient = recipient or sender
        if is_zero_address(recipient):
            raise ZeroAddress("Recipient cannot be the zero address")
        venue = VenueId.parse(venue)
        handler = self.handler(venue)

        with self.chain.transaction():
            tokens, split = self.plan_split(input_token, input_amount, position, venue)
            watched = {input_token, *tokens}
            before = self._balances(watched)
            self.pull(input_token, sender, input_amount)

            amounts = []
            for token, share in zip(tokens, split, strict=True):
                amounts.append(self._convert(input_token, token, share, venue))

            liquidity, used, token_id = handler.add_liquidity(
                AddLiquidityRequest(
                    position=position,
                    tokens=tokens,
                    amounts_desired=tuple(amounts),
                    recipient=normalize_address(recipient),
                    deadline=self.swap_router.deadline(),
                    min_liquidity=min_liquidity,
                ),
                payer=self.address,
            )
            if liquidity < min_liquidity:
                raise InsufficientOutput(liquidity, min_liquidity)
            refunds = self._refund_dust(before, sender)

        logger.info(
            "liquidity_added",
            venue=venue.name,
            input_token=input_token,
            input_amount=input_amount,
            split=split,
            liquidity=liquidity,
            dust_tokens=len(refunds),
        )
        return LiquidityResult(
            liquidity=liquidity,
            tokens=tuple(tokens),
            amounts=tuple(used),
            split=split,
            refunds=refunds,
            token_id=token_id,
        )

    def remove_liquidity(
        self,
        position: Position,
        amount: int,
        output_token: str,
        venue: VenueId | int | str,
        *,
        sender: str,
        min_amount_out: int = 0,
        recipient: str | None = None,
    ) -> LiquidityResult:
        """Redeem `amount` position units and pay out a single output token.

        Raises:
            ZeroAddress: If the output token or recipient is the zero address
            ZeroAmount: If amount is zero
            InsufficientOutput: If the summed output is below min_amount_out
        """
        output_token = self._validate(output_token, amount)
        recipient = recipient or sender
        if is_zero_address(recipient):
            raise ZeroAddress("Recipient cannot be the zero address")
        venue = VenueId.parse(venue)
        handler = self.handler(venue)

        with self.chain.transaction():
            tokens = handler.position_tokens(position)
            before = self._balances({output_token, *tokens})
            withdrawn = handler.remove_liquidity(
                RemoveLiquidityRequest(
                    position=position,
                    liquidity=amount,
                    recipient=self.address,
                    deadline=self.swap_router.deadline(),
                ),
                owner=sender,
                custody=self.address,
            )

            amount_out = 0
            for token, withdrawn_amount in zip(tokens, withdrawn, strict=True):
                amount_out += self._convert(token, output_token, withdrawn_amount, venue)
            if amount_out < min_amount_out:
                logger.warning(
                    "liquidity_removal_rejected",
                    amount_out=amount_out,
                    min_amount_out=min_amount_out,
                )
                raise InsufficientOutput(amount_out, min_amount_out)
            self.push(output_token, recipient, amount_out)
            refunds = self._refund_dust(before, sender)

        logger.info(
            "liquidity_removed",
            venue=venue.name,
            output_token=output_token,
            liquidity=amount,
            amount_out=amount_out,
        )
        return LiquidityResult(
            liquidity=amount,
            tokens=tuple(tokens),
            amounts=tuple(withdrawn),
            amount_out=amount_out,
            refunds=refunds,
        )

    def add_liquidity_with_default_dex(
        self,
        input_token: str,
        input_amount: int,
        position: Position,
        *,
        sender: str,
        min_liquidity: int = 0,
        recipient: str | None = None,
    ) -> LiquidityResult:
        return self.add_liquidity(
            input_token,
            input_amount,
            position,
            self.registry.default_venue,
            sender=sender,
            min_liquidity=min_liquidity,
            recipient=recipient,
        )

    def remove_liquidity_with_default_dex(
        self,
        position: Position,
        amount: int,
        output_token: str,
        *,
        sender: str,
        min_amount_out: int = 0,
        recipient: str | None = None,
    ) -> LiquidityResult:
        return self.remove_liquidity(
            position,
            amount,
            output_token,
            self.registry.default_venue,
            sender=sender,
            min_amount_out=min_amount_out,
            recipient=recipient,
        )

    # --- Internals ---

    @staticmethod
    def _validate(token: str, amount: int) -> str:
        if is_zero_address(token):
            raise ZeroAddress("Token cannot be the zero address")
        if amount <= 0:
            raise ZeroAmount(f"Amount must be positive, got {amount}")
        return normalize_address(token)

    def _convert(self, token_in: str, token_out: str, amount: int, venue: VenueId) -> int:
        """Swap held tokens through the swap engine back into this router's custody."""
        if token_in == token_out or amount == 0:
            return amount
        self.chain.approve(token_in, self.address, self.swap_router.address, amount)
        result = self.swap_router.swap(
            token_in, token_out, amount, 0, self.address, venue, sender=self.address
        )
        return result.amount_out

    def _balances(self, tokens: set[str]) -> dict[str, int]:
        return {token: self.chain.balance_of(token, self.address) for token in tokens}

    def _refund_dust(self, before: dict[str, int], sender: str) -> dict[str, int]:
        refunds = {}
        for token, held in sorted(before.items()):
            dust = self.chain.balance_of(token, self.address) - held
            if dust > 0:
                self.push(token, sender, dust)
                refunds[token] = dust
        return refunds


__all__ = ["LiquidityRouter", "divide_in_ratio", "split_amount"]
