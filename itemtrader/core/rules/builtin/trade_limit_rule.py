from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ..base import TradeRule


@dataclass
class TradeLimitRule(TradeRule):
    """Caps how many times each requester may use the trade.

    The per-requester counters are persistent data, the limit is configuration.
    """

    rule_type = "trade_limit"

    limit: int = 1
    counts: dict[str, int] = field(default_factory=dict)

    def _key(self, context) -> str:
        return str(context.get_player_reference() or "").strip().casefold()

    def pre_trade(self, slot, context) -> bool:
        return self.counts.get(self._key(context), 0) < self.limit

    def post_trade(self, slot, context, price, taxes_paid) -> None:
        key = self._key(context)
        self.counts[key] = self.counts.get(key, 0) + 1

    def reset(self) -> None:
        self.counts.clear()

    def save_json(self, data: dict[str, Any]) -> None:
        data["Limit"] = self.limit

    def load_json(self, data: Mapping[str, Any]) -> None:
        limit = data.get("Limit", 1)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValueError(f"invalid trade limit: {limit!r}")
        self.limit = limit

    def save_persistent(self, tag: dict[str, Any]) -> bool:
        if not self.counts:
            return False
        tag["Counts"] = dict(sorted(self.counts.items()))
        return True

    def load_persistent(self, tag: Mapping[str, Any]) -> None:
        raw = tag.get("Counts")
        self.counts = {}
        if not isinstance(raw, Mapping):
            return
        for name, count in raw.items():
            try:
                value = int(count)
            except (TypeError, ValueError):
                continue
            if value > 0:
                self.counts[str(name)] = value
