from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

if TYPE_CHECKING:
    from itemtrader.core.engine.trade_slot import TradeRestriction


PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(PROJECT_ROOT / ".env", override=False)

DEFAULT_STACK_LIMIT = 576
DEFAULT_MAX_TRADES = 100
ITEM_CAPACITY_UPGRADE = "item_capacity"


def _env_int(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default)) or str(default)).strip()
    try:
        return int(raw)
    except ValueError:
        return default


def _env_set(name: str) -> frozenset[str]:
    raw = str(os.getenv(name) or "").strip()
    if not raw:
        return frozenset()
    return frozenset(part.strip().casefold() for part in raw.split(",") if part.strip())


BASE_STACK_LIMIT = max(1, _env_int("ITEMTRADER_BASE_STACK_LIMIT", DEFAULT_STACK_LIMIT))
MAX_TRADES = max(1, _env_int("ITEMTRADER_MAX_TRADES", DEFAULT_MAX_TRADES))
DATA_DIR = str(os.getenv("ITEMTRADER_DATA_DIR") or "data/traders").strip()
ADMIN_PLAYERS = _env_set("ITEMTRADER_ADMINS")
LOG_LEVEL = str(os.getenv("ITEMTRADER_LOG_LEVEL") or "WARNING").strip().upper()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _default_rule_types() -> dict[str, type]:
    from itemtrader.core.rules.builtin import BUILTIN_RULE_TYPES

    return dict(BUILTIN_RULE_TYPES)


@dataclass
class TraderConfig:
    """Explicit tables handed to a trader at construction time.

    Upgrade types, trade restrictions and rule types are looked up here
    instead of in process-wide registries.
    """

    base_stack_limit: int = BASE_STACK_LIMIT
    max_trades: int = MAX_TRADES
    allowed_upgrades: frozenset[str] = frozenset({ITEM_CAPACITY_UPGRADE})
    restrictions: dict[int, "TradeRestriction"] = field(default_factory=dict)
    rule_types: dict[str, type] = field(default_factory=_default_rule_types)
    admins: frozenset[str] = ADMIN_PLAYERS
    max_stack_size: int = 64

    def restriction_for(self, trade_index: int) -> "TradeRestriction":
        from itemtrader.core.engine.trade_slot import TradeRestriction

        return self.restrictions.get(trade_index, TradeRestriction.NONE)

    def is_admin(self, requester: Any) -> bool:
        name = str(requester or "").strip().casefold()
        return bool(name) and name in self.admins
