"""Balancer pool math.

Weighted pools evaluate their power terms in Decimal at 60 significant
digits and floor the result back to token units; stable pools use the
StableSwap invariant solved by Newton iteration on integers. Weights and
fees are 18-decimal fixed point (ONE = 1e18).
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Context, Decimal, localcontext

from dexrouter.safe_int import S

ONE = 10**18

# Swaps may not move more than 30% of a balance
MAX_IN_RATIO = 3 * 10**17

# Amplification parameters carry three decimals
AMP_PRECISION = 1000

_MAX_ITERATIONS = 255

_CTX = Context(prec=60)


class BalancerMathError(ArithmeticError):
    """Base error for Balancer pool math."""


class MaxInRatioError(BalancerMathError):
    """Input exceeds 30% of the input balance."""


class ZeroBalanceError(BalancerMathError):
    """Pool balance must be positive."""


class DidNotConverge(BalancerMathError):
    """Newton iteration did not settle within the iteration bound."""


def _floor(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def subtract_swap_fee(amount: int, swap_fee: int) -> int:
    """Amount left after the pool fee (fee rounded up)."""
    fee = (S(amount) * S(swap_fee)).ceiling_div(ONE)
    return (S(amount) - fee).value


# --- Weighted ---


def weighted_out_given_in(
    balance_in: int, weight_in: int, balance_out: int, weight_out: int, amount_in: int
) -> int:
    """out = balance_out * (1 - (balance_in / (balance_in + amount_in)) ^ (w_in / w_out))

    amount_in must already have the swap fee removed.

    Raises:
        ZeroBalanceError: If either balance is zero
        MaxInRatioError: If amount_in exceeds 30% of balance_in
    """
    if balance_in <= 0 or balance_out <= 0:
        raise ZeroBalanceError("Weighted pool balances must be positive")
    if amount_in * ONE > balance_in * MAX_IN_RATIO:
        raise MaxInRatioError(f"Input {amount_in} exceeds 30% of balance {balance_in}")

    with localcontext(_CTX):
        base = Decimal(balance_in) / Decimal(balance_in + amount_in)
        power = base ** (Decimal(weight_in) / Decimal(weight_out))
        return _floor(Decimal(balance_out) * (1 - power))


def weighted_invariant(balances: list[int], weights: list[int]) -> int:
    """prod(balance_i ^ weight_i)"""
    if any(b <= 0 for b in balances):
        raise ZeroBalanceError("Weighted pool balances must be positive")

    with localcontext(_CTX):
        invariant = Decimal(1)
        for balance, weight in zip(balances, weights, strict=True):
            invariant *= Decimal(balance) ** (Decimal(weight) / ONE)
        return _floor(invariant)


def weighted_bpt_out_given_exact_tokens_in(
    balances: list[int],
    weights: list[int],
    amounts_in: list[int],
    total_supply: int,
    swap_fee: int,
) -> int:
    """Pool tokens minted for an unbalanced deposit.

    Deposits beyond the pool's proportional ratio are charged the swap fee
    on the excess, as if that part had been swapped in.
    """
    with localcontext(_CTX):
        fractions = [Decimal(w) / ONE for w in weights]
        ratios = [
            Decimal(balance + amount) / Decimal(balance)
            for balance, amount in zip(balances, amounts_in, strict=True)
        ]
        ratio_with_fees = sum(r * w for r, w in zip(ratios, fractions, strict=True))
        fee = Decimal(swap_fee) / ONE

        invariant_ratio = Decimal(1)
        for balance, amount, ratio, weight in zip(
            balances, amounts_in, ratios, fractions, strict=True
        ):
            if ratio > ratio_with_fees:
                non_taxable = Decimal(balance) * (ratio_with_fees - 1)
                amount_without_fee = non_taxable + (Decimal(amount) - non_taxable) * (1 - fee)
            else:
                amount_without_fee = Decimal(amount)
            balance_ratio = (Decimal(balance) + amount_without_fee) / Decimal(balance)
            invariant_ratio *= balance_ratio**weight

        if invariant_ratio <= 1:
            return 0
        return _floor(Decimal(total_supply) * (invariant_ratio - 1))


# --- Stable ---


def stable_invariant(amp: int, balances: list[int]) -> int:
    """StableSwap invariant D, with A*n in the Newton step.

    Raises:
        ZeroBalanceError: If any balance is zero
        DidNotConverge: If D does not settle within 255 iterations
    """
    n = len(balances)
    if any(b <= 0 for b in balances):
        raise ZeroBalanceError("Stable pool balances must be positive")

    total = sum(balances)
    amp_times_n = amp * n
    d = total
    for _ in range(_MAX_ITERATIONS):
        d_p = d
        for balance in balances:
            d_p = d_p * d // (balance * n)
        d_prev = d
        numerator = (amp_times_n * total // AMP_PRECISION + d_p * n) * d
        denominator = (amp_times_n - AMP_PRECISION) * d // AMP_PRECISION + (n + 1) * d_p
        d = numerator // denominator
        if abs(d - d_prev) <= 1:
            return d
    raise DidNotConverge("Stable invariant did not converge")


def _stable_balance_given_invariant(
    amp: int, balances: list[int], invariant: int, index: int
) -> int:
    n = len(balances)
    amp_times_total = amp * n

    total = balances[0]
    p_d = balances[0] * n
    for balance in balances[1:]:
        p_d = p_d * balance * n // invariant
        total += balance
    total -= balances[index]

    inv2 = invariant * invariant
    c = -(-inv2 // (amp_times_total * p_d)) * AMP_PRECISION * balances[index]
    b = total + invariant // amp_times_total * AMP_PRECISION

    y = -(-(inv2 + c) // (invariant + b))
    for _ in range(_MAX_ITERATIONS):
        y_prev = y
        y = -(-(y * y + c) // (2 * y + b - invariant))
        if abs(y - y_prev) <= 1:
            return y
    raise DidNotConverge("Stable balance did not converge")


def stable_out_given_in(
    amp: int, balances: list[int], index_in: int, index_out: int, amount_in: int
) -> int:
    """Output of a stable swap; amount_in must already have the fee removed."""
    invariant = stable_invariant(amp, balances)
    updated = list(balances)
    updated[index_in] += amount_in
    final_out = _stable_balance_given_invariant(amp, updated, invariant, index_out)
    return max(balances[index_out] - final_out - 1, 0)


def stable_bpt_out_given_exact_tokens_in(
    amp: int, balances: list[int], amounts_in: list[int], total_supply: int
) -> int:
    """Pool tokens minted in proportion to the invariant growth."""
    d0 = stable_invariant(amp, balances)
    d1 = stable_invariant(amp, [b + a for b, a in zip(balances, amounts_in, strict=True)])
    if d1 <= d0:
        return 0
    return (S(total_supply) * S(d1 - d0) // S(d0)).value


# --- Proportional exit ---


def tokens_out_given_exact_bpt_in(balances: list[int], bpt_in: int, total_supply: int) -> list[int]:
    """Each balance scaled by bpt_in / total_supply, rounded down."""
    return [(S(balance) * S(bpt_in) // S(total_supply)).value for balance in balances]


__all__ = [
    "ONE",
    "MAX_IN_RATIO",
    "AMP_PRECISION",
    "BalancerMathError",
    "MaxInRatioError",
    "ZeroBalanceError",
    "DidNotConverge",
    "subtract_swap_fee",
    "weighted_out_given_in",
    "weighted_invariant",
    "weighted_bpt_out_given_exact_tokens_in",
    "stable_invariant",
    "stable_out_given_in",
    "stable_bpt_out_given_exact_tokens_in",
    "tokens_out_given_exact_bpt_in",
]
