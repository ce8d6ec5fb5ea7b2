from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ..base import TradeRule


@dataclass
class PlayerBlacklistRule(TradeRule):
    rule_type = "player_blacklist"

    players: list[str] = field(default_factory=list)

    def pre_trade(self, slot, context) -> bool:
        requester = str(context.get_player_reference() or "").strip().casefold()
        return requester not in {name.casefold() for name in self.players}

    def save_json(self, data: dict[str, Any]) -> None:
        data["Players"] = list(self.players)

    def load_json(self, data: Mapping[str, Any]) -> None:
        raw = data.get("Players", [])
        if not isinstance(raw, list):
            raise ValueError("Players must be a list")
        self.players = [str(name).strip() for name in raw if str(name).strip()]
