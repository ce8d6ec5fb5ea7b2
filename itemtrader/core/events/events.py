from __future__ import annotations

from dataclasses import dataclass, field

from itemtrader.core.models.items import ItemStack
from itemtrader.core.models.money import MoneyValue


@dataclass(frozen=True)
class ItemTradeNotification:
    trade_index: int
    direction: str
    requester: str
    price: MoneyValue
    items: tuple[ItemStack, ...] = field(default_factory=tuple)
    barter_items: tuple[ItemStack, ...] = field(default_factory=tuple)
    taxes_paid: MoneyValue = field(default_factory=MoneyValue.empty)


@dataclass(frozen=True)
class OutOfStockNotification:
    trade_index: int


@dataclass(frozen=True)
class AddRemoveTradeNotification:
    requester: str
    added: bool
    trade_count: int
