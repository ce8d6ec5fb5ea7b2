from .engine import (
    CapacityUpgrade,
    PlayerTradeContext,
    TradeContext,
    TradeDirection,
    TradeRestriction,
    TradeResult,
    TradeSlot,
    TraderAccount,
)
from .models import ItemRequirement, ItemStack, MoneyStorage, MoneyValue
from .storage import LockedTraderStorage, Side, TraderStorage

__all__ = [
    "CapacityUpgrade",
    "PlayerTradeContext",
    "TradeContext",
    "TradeDirection",
    "TradeRestriction",
    "TradeResult",
    "TradeSlot",
    "TraderAccount",
    "ItemRequirement",
    "ItemStack",
    "MoneyStorage",
    "MoneyValue",
    "LockedTraderStorage",
    "Side",
    "TraderStorage",
]
