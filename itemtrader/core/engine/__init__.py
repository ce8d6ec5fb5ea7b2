from itemtrader.core.models.trade_result import TradeDirection, TradeResult

from .trade_context import PlayerTradeContext, TradeContext
from .trade_slot import TradeRestriction, TradeSlot
from .trader_account import (
    MONEY_EARNED,
    MONEY_PAID,
    TAXES_PAID,
    CapacityUpgrade,
    TraderAccount,
    TraderStats,
)

__all__ = [
    "TradeDirection",
    "TradeResult",
    "PlayerTradeContext",
    "TradeContext",
    "TradeRestriction",
    "TradeSlot",
    "MONEY_EARNED",
    "MONEY_PAID",
    "TAXES_PAID",
    "CapacityUpgrade",
    "TraderAccount",
    "TraderStats",
]
