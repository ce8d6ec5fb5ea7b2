from .bus import EventBus
from .events import AddRemoveTradeNotification, ItemTradeNotification, OutOfStockNotification

__all__ = [
    "EventBus",
    "ItemTradeNotification",
    "OutOfStockNotification",
    "AddRemoveTradeNotification",
]
