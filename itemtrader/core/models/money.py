from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import Any, Callable, Iterable


DEFAULT_CURRENCY = "coin"


def _safe_int(value: object, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@total_ordering
@dataclass(frozen=True)
class MoneyValue:
    """Amount of a single currency.

    ``free`` marks a price explicitly set to nothing, which is distinct from
    an unset price (``None`` on the trade slot).
    """

    value: int = 0
    currency: str = DEFAULT_CURRENCY
    free: bool = False

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("money value cannot be negative")

    @classmethod
    def of(cls, value: int, currency: str = DEFAULT_CURRENCY) -> "MoneyValue":
        return cls(value=max(0, _safe_int(value)), currency=currency)

    @classmethod
    def empty(cls) -> "MoneyValue":
        return cls()

    @classmethod
    def free_price(cls) -> "MoneyValue":
        return cls(free=True)

    def is_empty(self) -> bool:
        return self.value <= 0

    def _check(self, other: "MoneyValue") -> None:
        if not isinstance(other, MoneyValue):
            raise TypeError(f"cannot combine MoneyValue with {type(other).__name__}")
        if other.value and self.value and other.currency != self.currency:
            raise ValueError(f"currency mismatch: {self.currency} / {other.currency}")

    def _currency_with(self, other: "MoneyValue") -> str:
        return self.currency if self.value or not other.value else other.currency

    def __add__(self, other: "MoneyValue") -> "MoneyValue":
        self._check(other)
        return MoneyValue(value=self.value + other.value, currency=self._currency_with(other))

    def __sub__(self, other: "MoneyValue") -> "MoneyValue":
        self._check(other)
        if other.value > self.value:
            raise ValueError("money value cannot go negative")
        return MoneyValue(value=self.value - other.value, currency=self._currency_with(other))

    def __lt__(self, other: "MoneyValue") -> bool:
        self._check(other)
        return self.value < other.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MoneyValue):
            return NotImplemented
        if not self.value and not other.value:
            return True
        return self.value == other.value and self.currency == other.currency

    def __hash__(self) -> int:
        return hash((self.value, self.currency if self.value else ""))

    def percent(self, pct: int) -> "MoneyValue":
        return MoneyValue(value=max(0, (self.value * pct) // 100), currency=self.currency)

    def to_json(self) -> dict[str, Any]:
        if self.free:
            return {"Free": True}
        return {"Currency": self.currency, "Value": self.value}

    @classmethod
    def from_json(cls, raw: object) -> "MoneyValue":
        if isinstance(raw, bool):
            raise ValueError(f"invalid money value: {raw!r}")
        if isinstance(raw, int):
            return cls.of(raw)
        if not isinstance(raw, dict):
            raise ValueError(f"invalid money value: {raw!r}")
        if raw.get("Free"):
            return cls.free_price()
        if "Value" not in raw:
            raise ValueError("money value is missing 'Value'")
        value = raw.get("Value")
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"invalid money amount: {value!r}")
        currency = str(raw.get("Currency") or DEFAULT_CURRENCY).strip() or DEFAULT_CURRENCY
        return cls(value=value, currency=currency)

    def __str__(self) -> str:
        if self.free:
            return "free"
        return f"{self.value} {self.currency}"


class MoneyStorage:
    """Balances kept per currency.

    Amounts of different currencies never combine: adding a gem price to a
    coin balance opens a gem balance next to it, and a payment is covered
    only by the balance in its own currency.
    """

    def __init__(self, amounts: Iterable[MoneyValue] = ()) -> None:
        self._balances: dict[str, int] = {}
        for amount in amounts:
            self.add(amount)

    @classmethod
    def of(cls, value: int, currency: str = DEFAULT_CURRENCY) -> "MoneyStorage":
        return cls([MoneyValue.of(value, currency)])

    def get(self, currency: str = DEFAULT_CURRENCY) -> MoneyValue:
        return MoneyValue(value=self._balances.get(currency, 0), currency=currency)

    def values(self) -> list[MoneyValue]:
        return [MoneyValue(value=value, currency=currency) for currency, value in sorted(self._balances.items())]

    def is_empty(self) -> bool:
        return not self._balances

    def contains(self, amount: MoneyValue) -> bool:
        return amount.is_empty() or self._balances.get(amount.currency, 0) >= amount.value

    def add(self, amount: MoneyValue) -> None:
        if amount.is_empty():
            return
        self._balances[amount.currency] = self._balances.get(amount.currency, 0) + amount.value

    def remove(self, amount: MoneyValue) -> bool:
        if amount.is_empty():
            return True
        if not self.contains(amount):
            return False
        left = self._balances[amount.currency] - amount.value
        if left > 0:
            self._balances[amount.currency] = left
        else:
            del self._balances[amount.currency]
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MoneyStorage):
            return NotImplemented
        return self._balances == other._balances

    def to_json(self) -> list[dict[str, Any]]:
        return [value.to_json() for value in self.values()]

    @classmethod
    def from_json(cls, raw: object) -> "MoneyStorage":
        rows = raw if isinstance(raw, list) else [raw]
        return cls(MoneyValue.from_json(row) for row in rows)

    def __str__(self) -> str:
        return ", ".join(str(value) for value in self.values()) or "0"


# Returns (net amount credited to the trader, tax paid).
TaxPolicy = Callable[[MoneyValue], "tuple[MoneyValue, MoneyValue]"]


def no_tax(amount: MoneyValue) -> tuple[MoneyValue, MoneyValue]:
    return amount, MoneyValue.empty()
