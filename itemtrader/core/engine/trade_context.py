from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence, runtime_checkable

from itemtrader.core.models.items import InventoryGrid, ItemRequirement, ItemStack, merge_stacks
from itemtrader.core.models.money import DEFAULT_CURRENCY, MoneyStorage, MoneyValue


@runtime_checkable
class TradeContext(Protocol):
    """Requester-side resources for a single trade attempt."""

    def has_player_reference(self) -> bool: ...

    def get_player_reference(self) -> Optional[str]: ...

    def get_available_funds(self, currency: str = DEFAULT_CURRENCY) -> MoneyValue: ...

    def get_payment(self, price: MoneyValue) -> bool: ...

    def give_payment(self, amount: MoneyValue) -> None: ...

    def get_collectable_items(
        self, first: ItemRequirement, second: ItemRequirement
    ) -> Optional[list[ItemStack]]: ...

    def has_items(self, items: Optional[Sequence[ItemStack]]) -> bool: ...

    def collect_items(self, items: Sequence[ItemStack]) -> bool: ...

    def collect_item(self, item: ItemStack) -> bool: ...

    def can_fit_items(self, items: Sequence[ItemStack]) -> bool: ...

    def put_item(self, item: ItemStack) -> bool: ...


def _default_inventory() -> InventoryGrid:
    return InventoryGrid.empty(9, 4)


@dataclass
class PlayerTradeContext:
    """Trade context over a requester's inventory grid and wallet."""

    player: Optional[str] = None
    wallet: MoneyStorage = field(default_factory=MoneyStorage)
    inventory: InventoryGrid = field(default_factory=_default_inventory)

    def has_player_reference(self) -> bool:
        return bool(str(self.player or "").strip())

    def get_player_reference(self) -> Optional[str]:
        return self.player

    # ---------- Money ----------
    def get_available_funds(self, currency: str = DEFAULT_CURRENCY) -> MoneyValue:
        return self.wallet.get(currency)

    def get_payment(self, price: MoneyValue) -> bool:
        return self.wallet.remove(price)

    def give_payment(self, amount: MoneyValue) -> None:
        self.wallet.add(amount)

    # ---------- Items in ----------
    def get_collectable_items(
        self, first: ItemRequirement, second: ItemRequirement
    ) -> Optional[list[ItemStack]]:
        remaining = [stack.copy() if stack is not None else None for stack in self.inventory.slots]
        picked: list[ItemStack] = []
        for req in (first, second):
            if req.is_empty():
                continue
            needed = req.count
            for stack in remaining:
                if needed <= 0:
                    break
                if stack is None or stack.qty <= 0 or not req.matches(stack):
                    continue
                take = min(stack.qty, needed)
                stack.qty -= take
                needed -= take
                picked.append(stack.copy_with_qty(take))
            if needed > 0:
                return None
        return merge_stacks(picked)

    def has_items(self, items: Optional[Sequence[ItemStack]]) -> bool:
        if items is None:
            return False
        return all(self.inventory.count_item(item) >= item.qty for item in merge_stacks(list(items)))

    def collect_items(self, items: Sequence[ItemStack]) -> bool:
        if not self.has_items(items):
            return False
        for item in items:
            self.inventory.remove(item)
        return True

    def collect_item(self, item: ItemStack) -> bool:
        return self.collect_items([item])

    # ---------- Items out ----------
    def can_fit_items(self, items: Sequence[ItemStack]) -> bool:
        scratch = deepcopy(self.inventory)
        return all(scratch.add(item) == item.qty for item in items)

    def put_item(self, item: ItemStack) -> bool:
        added = self.inventory.add(item)
        if added < item.qty:
            if added > 0:
                self.inventory.remove(item.copy_with_qty(added))
            return False
        return True
