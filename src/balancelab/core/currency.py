"""
Currency and precision handling for BalanceLab.

Balances are exact fixed-point decimals. Each currency defines the scale every
stored amount and computed balance is quantized to.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum


class RoundingPolicy(Enum):
    """Rounding policies for currency calculations."""

    BANKERS = ROUND_HALF_EVEN
    HALF_UP = ROUND_HALF_UP


class Currency:
    """
    Currency definition with precision and rounding rules.

    Attributes:
        code: ISO currency code (e.g., 'EUR', 'USD', 'JPY')
        decimals: Number of decimal places for this currency
        rounding: Rounding policy for calculations
    """

    def __init__(
        self,
        code: str,
        decimals: int = 2,
        rounding: RoundingPolicy = RoundingPolicy.BANKERS,
    ):
        self.code = code.upper()
        self.decimals = decimals
        self.rounding = rounding

    @property
    def quantum(self) -> Decimal:
        return Decimal("1").scaleb(-self.decimals)  # 0.01 for 2 dp, 1 for 0 dp

    def quantize(self, amount: Decimal) -> Decimal:
        """Quantize amount to currency precision."""
        return amount.quantize(self.quantum, rounding=self.rounding.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Currency):
            return NotImplemented
        return (self.code, self.decimals, self.rounding) == (
            other.code,
            other.decimals,
            other.rounding,
        )

    def __hash__(self) -> int:
        return hash((self.code, self.decimals, self.rounding))

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency('{self.code}', decimals={self.decimals})"


# Standard currency definitions
EUR = Currency("EUR", decimals=2)
USD = Currency("USD", decimals=2)
JPY = Currency("JPY", decimals=0)
GBP = Currency("GBP", decimals=2)
CHF = Currency("CHF", decimals=2)

# Currency registry
CURRENCIES: dict[str, Currency] = {
    "EUR": EUR,
    "USD": USD,
    "JPY": JPY,
    "GBP": GBP,
    "CHF": CHF,
}


def get_currency(code: str) -> Currency:
    """Get currency by code."""
    code = code.upper()
    if code not in CURRENCIES:
        # Default to 2 decimal places for unknown currencies
        return Currency(code, decimals=2)
    return CURRENCIES[code]


def to_decimal(value: Decimal | int | str) -> Decimal:
    """
    Convert a stored amount into a Decimal.

    Floats are refused; amounts stay exact from storage to balance.

    Raises:
        TypeError: If ``value`` is a float, bool or another unsupported type
        ValueError: If ``value`` is a string that is not a decimal number
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Amounts must be Decimal, int or str, got {value!r}")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation as exc:
            raise ValueError(f"Invalid decimal amount: {value!r}") from exc
    else:
        raise TypeError(f"Amounts must be Decimal, int or str, got {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    return result
