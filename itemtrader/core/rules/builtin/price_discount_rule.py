from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from itemtrader.core.models.money import MoneyValue
from itemtrader.core.models.trade_result import TradeDirection

from ..base import TradeRule


@dataclass
class PriceDiscountRule(TradeRule):
    rule_type = "price_discount"
    applies_to = frozenset({TradeDirection.SALE, TradeDirection.PURCHASE})

    percent: int = 10
    # Empty means everyone gets the discount.
    players: list[str] = field(default_factory=list)

    def _eligible(self, context) -> bool:
        if not self.players:
            return True
        requester = str(context.get_player_reference() or "").strip().casefold()
        return requester in {name.casefold() for name in self.players}

    def trade_cost(self, slot, context, cost: MoneyValue) -> MoneyValue:
        if cost.free or cost.is_empty() or not self._eligible(context):
            return cost
        return cost - cost.percent(self.percent)

    def save_json(self, data: dict[str, Any]) -> None:
        data["Percent"] = self.percent
        if self.players:
            data["Players"] = list(self.players)

    def load_json(self, data: Mapping[str, Any]) -> None:
        percent = data.get("Percent", 10)
        if isinstance(percent, bool) or not isinstance(percent, int) or not 0 <= percent <= 100:
            raise ValueError(f"invalid discount percent: {percent!r}")
        self.percent = percent
        raw = data.get("Players", [])
        if not isinstance(raw, list):
            raise ValueError("Players must be a list")
        self.players = [str(name).strip() for name in raw if str(name).strip()]
