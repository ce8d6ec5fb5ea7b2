from .items import InventoryGrid, ItemRequirement, ItemStack, merge_stacks
from .money import MoneyStorage, MoneyValue, TaxPolicy, no_tax
from .trade_result import TradeDirection, TradeResult

__all__ = [
    "InventoryGrid",
    "ItemRequirement",
    "ItemStack",
    "merge_stacks",
    "MoneyStorage",
    "MoneyValue",
    "TaxPolicy",
    "no_tax",
    "TradeDirection",
    "TradeResult",
]
