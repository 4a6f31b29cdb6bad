from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal

# Currencies Stripe charges in whole units.
ZERO_DECIMAL_CURRENCIES = frozenset(
    {"BIF", "CLP", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA", "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF"}
)

CENT = Decimal("0.01")


class ConversionUnavailable(ValueError):
    pass


class CurrencyConverter(ABC):
    @abstractmethod
    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal: ...


class StaticRateConverter(CurrencyConverter):
    """
    Fixed, approximate exchange rates.

    A placeholder until a live rate provider is wired in: amounts converted
    here are not authoritative and lose precision.
    """

    DEFAULT_RATES = {
        "UGX": {"USD": Decimal("0.00027"), "EUR": Decimal("0.00025")},
        "USD": {"UGX": Decimal("3700"), "EUR": Decimal("0.92")},
    }

    def __init__(self, rates: dict[str, dict[str, Decimal]] | None = None):
        self.rates = rates or self.DEFAULT_RATES

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()
        if from_currency == to_currency:
            return Decimal(amount)
        rate = self.rates.get(from_currency, {}).get(to_currency)
        if rate is None:
            raise ConversionUnavailable(f"Conversion rate not available for {from_currency} to {to_currency}")
        return (Decimal(amount) * rate).quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal, currency: str) -> int:
    """Convert a decimal amount into the integer unit Stripe expects."""
    amount = Decimal(amount)
    if currency.upper() in ZERO_DECIMAL_CURRENCIES:
        return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
