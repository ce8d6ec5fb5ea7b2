from __future__ import annotations

from enum import Enum
import logging
import random
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from itemtrader.config import DEFAULT_STACK_LIMIT
from itemtrader.core.models.items import ItemRequirement, ItemStack, merge_stacks

if TYPE_CHECKING:
    from itemtrader.core.engine.trade_slot import TradeSlot


LOG = logging.getLogger(__name__)

ItemFilter = Callable[[ItemStack], bool]
StackKey = tuple[str, str]


def _accept_all(item: ItemStack) -> bool:
    return True


def _always() -> bool:
    return True


class Side(Enum):
    DOWN = "down"
    UP = "up"
    NORTH = "north"
    SOUTH = "south"
    WEST = "west"
    EAST = "east"


class TraderStorage:
    """Items owned by a trader, one entry per distinct item and data.

    Counts are not bound by item stack sizes; each distinct entry is bound by
    the storage stack limit instead.
    """

    locked = False

    def __init__(
        self,
        *,
        stack_limit: Callable[[], int] | int = DEFAULT_STACK_LIMIT,
        item_filter: ItemFilter | None = None,
        contents: Iterable[ItemStack] = (),
    ) -> None:
        self._stack_limit = stack_limit
        self._filter = item_filter or _accept_all
        self._stacks: dict[StackKey, ItemStack] = {}
        for item in contents:
            self.force_add_item(item)

    def bind(self, *, stack_limit: Callable[[], int] | int, item_filter: ItemFilter | None = None) -> None:
        self._stack_limit = stack_limit
        if item_filter is not None:
            self._filter = item_filter

    # ---------- Capacity ----------
    def get_storage_stack_limit(self) -> int:
        limit = self._stack_limit() if callable(self._stack_limit) else self._stack_limit
        return max(0, int(limit))

    def get_item_count(self, item: ItemStack) -> int:
        stack = self._stacks.get(item.key)
        return stack.qty if stack is not None else 0

    def get_matching_count(self, requirement: ItemRequirement) -> int:
        return sum(stack.qty for stack in self._stacks.values() if requirement.matches(stack))

    def get_fittable_amount(self, item: ItemStack) -> int:
        if item.is_empty():
            return 0
        return max(0, self.get_storage_stack_limit() - self.get_item_count(item))

    def can_fit_item(self, item: ItemStack) -> bool:
        return self.get_fittable_amount(item) >= item.qty

    def has_space(self, items: Iterable[ItemStack] | None) -> bool:
        if items is None:
            return False
        return all(self.can_fit_item(item) for item in merge_stacks(list(items)))

    def is_item_relevant(self, item: ItemStack) -> bool:
        return not item.is_empty() and self._filter(item)

    # ---------- Mutation ----------
    def force_add_item(self, item: ItemStack) -> None:
        if item.is_empty():
            return
        stack = self._stacks.get(item.key)
        if stack is None:
            self._stacks[item.key] = item.copy()
        else:
            stack.qty += item.qty

    def remove_item(self, item: ItemStack) -> bool:
        stack = self._stacks.get(item.key)
        if stack is None or stack.qty < item.qty:
            return False
        stack.qty -= item.qty
        if stack.qty <= 0:
            del self._stacks[item.key]
        return True

    def remove_items(self, items: Iterable[ItemStack]) -> None:
        for item in items:
            if not self.remove_item(item):
                LOG.error("Storage is missing %sx %s while removing sold items", item.qty, item.item_id)

    def admin_add_item(self, item: ItemStack) -> bool:
        if self.locked or not self.is_item_relevant(item) or not self.can_fit_item(item):
            return False
        self.force_add_item(item)
        return True

    def admin_remove_item(self, item: ItemStack) -> bool:
        if self.locked:
            return False
        return self.remove_item(item)

    def clear(self) -> None:
        self._stacks.clear()

    # ---------- Stock ----------
    def stock_count(self, slot: "TradeSlot") -> int:
        """How many times the slot's sell items could be furnished.

        Each requirement is counted on its own, so two requirements drawing
        on the same stored items are both credited with the full amount.
        """
        reqs = slot.sell_requirements()
        if not reqs:
            return 0
        return min(self.get_matching_count(req) // max(1, req.count) for req in reqs)

    def out_of_stock(self, slot: "TradeSlot") -> bool:
        return self.stock_count(slot) <= 0

    def pick_random_sell_stacks(
        self, slot: "TradeSlot", rng: Optional[random.Random] = None
    ) -> list[ItemStack] | None:
        """Choose concrete stored stacks covering every sell requirement.

        Requirements are served in order from what earlier ones left, and a
        type-only requirement draws from randomly chosen matching entries.
        Returns None when no combination can be furnished right now.
        """
        reqs = slot.sell_requirements()
        if not reqs:
            return None
        rng = rng or random.Random()
        remaining = {key: stack.qty for key, stack in self._stacks.items()}
        picked: list[ItemStack] = []
        for req in reqs:
            needed = req.count
            while needed > 0:
                candidates = [
                    key for key, stack in self._stacks.items() if remaining[key] > 0 and req.matches(stack)
                ]
                if not candidates:
                    return None
                key = rng.choice(candidates)
                take = min(remaining[key], needed)
                remaining[key] -= take
                needed -= take
                picked.append(self._stacks[key].copy_with_qty(take))
        return merge_stacks(picked)

    # ---------- Views ----------
    def get_contents(self) -> list[ItemStack]:
        return [stack.copy() for stack in self._stacks.values()]

    def split_contents(self, max_stack_size: int = 64) -> list[ItemStack]:
        size = max(1, int(max_stack_size))
        out: list[ItemStack] = []
        for stack in self._stacks.values():
            left = stack.qty
            while left > 0:
                take = min(size, left)
                out.append(stack.copy_with_qty(take))
                left -= take
        return out

    def is_empty(self) -> bool:
        return not self._stacks

    def to_state(self) -> list[dict[str, Any]]:
        return [stack.to_json() for stack in self._stacks.values()]

    def load_state(self, rows: object) -> None:
        self._stacks.clear()
        if not isinstance(rows, list):
            return
        for idx, row in enumerate(rows):
            try:
                self.force_add_item(ItemStack.from_json(row))
            except ValueError as e:
                LOG.error("Error loading storage item at index %s: %s", idx, e)


class LockedTraderStorage(TraderStorage):
    """Author-defined storage; only trades move its items."""

    locked = True


class TraderItemHandler:
    """Slot view of a trader storage for external item transport."""

    def __init__(
        self,
        storage_getter: Callable[[], TraderStorage],
        on_change: Callable[[], None] | None = None,
        *,
        can_insert: Callable[[], bool] = _always,
        can_extract: Callable[[], bool] = _always,
    ) -> None:
        self._storage_getter = storage_getter
        self._on_change = on_change
        self._can_insert = can_insert
        self._can_extract = can_extract

    @property
    def storage(self) -> TraderStorage:
        return self._storage_getter()

    def get_slots(self) -> int:
        return len(self.storage.get_contents()) + 1

    def get_stack_in_slot(self, slot: int) -> ItemStack:
        contents = self.storage.get_contents()
        if 0 <= slot < len(contents):
            return contents[slot]
        return ItemStack.empty()

    def insert_item(self, item: ItemStack, *, simulate: bool = False) -> ItemStack:
        """Insert what fits and return the remainder."""
        storage = self.storage
        if storage.locked or not self._can_insert() or not storage.is_item_relevant(item):
            return item.copy()
        amount = min(item.qty, storage.get_fittable_amount(item))
        if amount <= 0:
            return item.copy()
        if not simulate:
            storage.force_add_item(item.copy_with_qty(amount))
            self._changed()
        return item.copy_with_qty(item.qty - amount)

    def extract_item(self, slot: int, amount: int, *, simulate: bool = False) -> ItemStack:
        storage = self.storage
        if storage.locked or amount <= 0 or not self._can_extract():
            return ItemStack.empty()
        stack = self.get_stack_in_slot(slot)
        if stack.is_empty():
            return ItemStack.empty()
        out = stack.copy_with_qty(min(amount, stack.qty))
        if not simulate:
            storage.remove_item(out)
            self._changed()
        return out

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
