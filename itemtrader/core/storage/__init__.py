from .trader_storage import LockedTraderStorage, Side, TraderItemHandler, TraderStorage

__all__ = [
    "LockedTraderStorage",
    "Side",
    "TraderItemHandler",
    "TraderStorage",
]
