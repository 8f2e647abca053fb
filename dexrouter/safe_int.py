"""Checked integer wrapper for token-amount arithmetic.

Venue math runs on unbounded Python ints, but every value it produces must be
representable on-chain. SafeInt makes the usual failure modes loud:
- dividing by zero raises DivisionByZero
- a subtraction that would go negative raises Underflow
- `to_uint256()` raises Uint256Overflow outside [0, 2^256)

Usage:
    from dexrouter.safe_int import S

    def share_of(amount: int, part: int, total: int) -> int:
        return (S(amount) * S(part) // S(total)).value
"""

from __future__ import annotations

UINT256_MAX = 2**256 - 1
UINT128_MAX = 2**128 - 1


class SafeIntError(ArithmeticError):
    """Base class for SafeInt arithmetic errors."""


class DivisionByZero(SafeIntError):
    """Division or modulo by zero."""


class Underflow(SafeIntError):
    """Subtraction would produce a negative amount."""


class Uint256Overflow(SafeIntError):
    """Value does not fit in a uint256."""


def _raw(x: SafeInt | int) -> int:
    if isinstance(x, SafeInt):
        return x._value
    return x


class SafeInt:
    """Non-negative integer with checked arithmetic.

    Addition and multiplication are unchecked (Python ints do not overflow);
    subtraction and division are checked eagerly so that a bad intermediate
    value is reported where it happens instead of at the end of a formula.
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            self._value = value._value
        elif isinstance(value, int):
            self._value = value
        else:
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")

    @property
    def value(self) -> int:
        """The wrapped integer."""
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __hash__(self) -> int:
        return hash(self._value)

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _raw(other))

    __radd__ = __add__

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        result = self._value - _raw(other)
        if result < 0:
            raise Underflow(f"Underflow: {self._value} - {_raw(other)}")
        return SafeInt(result)

    def __rsub__(self, other: int) -> SafeInt:
        return SafeInt(other) - self

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _raw(other))

    __rmul__ = __mul__

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        divisor = _raw(other)
        if divisor == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return SafeInt(self._value // divisor)

    def __rfloordiv__(self, other: int) -> SafeInt:
        return SafeInt(other) // self

    def __lshift__(self, bits: int) -> SafeInt:
        return SafeInt(self._value << bits)

    def __rshift__(self, bits: int) -> SafeInt:
        return SafeInt(self._value >> bits)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt | int):
            return self._value == _raw(other)
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _raw(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= _raw(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > _raw(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= _raw(other)

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def ceiling_div(self, other: SafeInt | int) -> SafeInt:
        """Division rounding up.

        Raises:
            DivisionByZero: If other is zero
        """
        divisor = _raw(other)
        if divisor == 0:
            raise DivisionByZero(f"Ceiling division by zero: {self._value}")
        return SafeInt(-(-self._value // divisor))

    def min(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(min(self._value, _raw(other)))

    def saturating_sub(self, other: SafeInt | int) -> SafeInt:
        """Subtract, clamping at zero instead of raising."""
        return SafeInt(max(0, self._value - _raw(other)))

    def to_uint256(self) -> int:
        """Unwrap, validating uint256 bounds.

        Raises:
            Uint256Overflow: If the value is negative or exceeds 2^256-1
        """
        if not 0 <= self._value <= UINT256_MAX:
            raise Uint256Overflow(f"Value outside uint256 range: {self._value}")
        return self._value


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) with a checked divisor."""
    return (S(a) * S(b) // S(denominator)).value


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator) with a checked divisor."""
    return (S(a) * S(b)).ceiling_div(denominator).value


S = SafeInt
