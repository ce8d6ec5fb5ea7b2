from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, ClassVar, Iterable, Optional

from itemtrader.core.models.items import ItemRequirement, ItemStack
from itemtrader.core.models.money import MoneyValue
from itemtrader.core.models.trade_result import TradeDirection
from itemtrader.core.rules.base import TradeRule, run_trade_cost

if TYPE_CHECKING:
    from itemtrader.core.engine.trade_context import TradeContext


LOG = logging.getLogger(__name__)

SELL_SLOTS = (0, 1)
BARTER_SLOTS = (2, 3)
ITEM_SLOT_COUNT = 4


@dataclass(frozen=True)
class TradeRestriction:
    """Limits what a trade slot may hold and how much it moves per execution.

    ``max_count`` caps every item requirement of the slot, ``allowed_items``
    (when non-empty) limits which item ids the slot and its storage accept.
    """

    NONE: ClassVar["TradeRestriction"]

    name: str = "none"
    allowed_items: frozenset[str] = frozenset()
    max_count: Optional[int] = None

    def allows_item(self, item: ItemStack) -> bool:
        if item.is_empty():
            return False
        return not self.allowed_items or item.item_id in self.allowed_items

    def cap_count(self, count: int) -> int:
        if self.max_count is None:
            return count
        return max(0, min(count, self.max_count))


TradeRestriction.NONE = TradeRestriction()


def _empty_requirements() -> list[ItemRequirement]:
    return [ItemRequirement() for _ in range(ITEM_SLOT_COUNT)]


@dataclass
class TradeSlot:
    direction: TradeDirection = TradeDirection.SALE
    items: list[ItemRequirement] = field(default_factory=_empty_requirements)
    custom_names: list[str] = field(default_factory=lambda: ["", ""])
    cost: Optional[MoneyValue] = None
    rules: list[TradeRule] = field(default_factory=list)
    restriction: TradeRestriction = TradeRestriction.NONE
    # Runtime-created slots only keep rules that apply to their direction.
    validate_rules: bool = True

    @classmethod
    def list_of_size(cls, count: int, validate_rules: bool) -> list["TradeSlot"]:
        return [cls(validate_rules=validate_rules) for _ in range(max(0, count))]

    # ---------- Direction ----------
    @property
    def is_sale(self) -> bool:
        return self.direction is TradeDirection.SALE

    @property
    def is_purchase(self) -> bool:
        return self.direction is TradeDirection.PURCHASE

    @property
    def is_barter(self) -> bool:
        return self.direction is TradeDirection.BARTER

    def set_direction(self, direction: TradeDirection) -> None:
        self.direction = direction
        if self.validate_rules:
            self.set_rules(self.rules)

    # ---------- Items ----------
    def set_item(self, stack: ItemStack | None, index: int) -> None:
        if not 0 <= index < ITEM_SLOT_COUNT:
            raise IndexError(f"item slot {index} out of range")
        enforce = self.items[index].enforce_nbt
        self.items[index] = ItemRequirement(stack=stack.copy() if stack else ItemStack.empty(), enforce_nbt=enforce)

    def get_item(self, index: int) -> ItemStack:
        if not 0 <= index < ITEM_SLOT_COUNT:
            return ItemStack.empty()
        return self.items[index].stack.copy()

    def get_sell_item(self, index: int) -> ItemStack:
        return self.get_item(SELL_SLOTS[index]) if 0 <= index < 2 else ItemStack.empty()

    def get_barter_item(self, index: int) -> ItemStack:
        return self.get_item(BARTER_SLOTS[index]) if 0 <= index < 2 else ItemStack.empty()

    def get_enforce_nbt(self, index: int) -> bool:
        return self.items[index].enforce_nbt if 0 <= index < ITEM_SLOT_COUNT else True

    def set_enforce_nbt(self, index: int, enforce: bool) -> None:
        if not 0 <= index < ITEM_SLOT_COUNT:
            raise IndexError(f"item slot {index} out of range")
        self.items[index].enforce_nbt = bool(enforce)

    def get_custom_name(self, index: int) -> str:
        return self.custom_names[index] if 0 <= index < 2 else ""

    def has_custom_name(self, index: int) -> bool:
        return bool(self.get_custom_name(index))

    def set_custom_name(self, index: int, name: str) -> None:
        if not 0 <= index < 2:
            raise IndexError(f"custom name slot {index} out of range")
        self.custom_names[index] = str(name or "").strip()

    def get_item_requirement(self, index: int) -> ItemRequirement:
        """Requirement for slot ``index`` with the restriction cap applied."""
        if not 0 <= index < ITEM_SLOT_COUNT:
            return ItemRequirement()
        base = self.items[index]
        if base.is_empty():
            return ItemRequirement(enforce_nbt=base.enforce_nbt)
        qty = self.restriction.cap_count(base.count)
        return ItemRequirement(stack=base.stack.copy_with_qty(qty), enforce_nbt=base.enforce_nbt)

    def sell_requirements(self) -> list[ItemRequirement]:
        reqs = [self.get_item_requirement(i) for i in SELL_SLOTS]
        return [req for req in reqs if not req.is_empty()]

    def barter_requirements(self) -> list[ItemRequirement]:
        reqs = [self.get_item_requirement(i) for i in BARTER_SLOTS]
        return [req for req in reqs if not req.is_empty()]

    def sell_items_defined(self) -> bool:
        return bool(self.sell_requirements())

    def barter_items_defined(self) -> bool:
        return bool(self.barter_requirements())

    # ---------- Price & rules ----------
    def set_cost(self, cost: MoneyValue | None) -> None:
        self.cost = cost

    def get_cost(self, context: "TradeContext | None" = None) -> MoneyValue:
        base = self.cost if self.cost is not None else MoneyValue.empty()
        if context is None:
            return base
        return run_trade_cost(self.rules, self, context, base)

    def set_rules(self, rules: Iterable[TradeRule]) -> None:
        kept: list[TradeRule] = []
        for rule in rules:
            if self.validate_rules and not rule.allowed_for(self.direction):
                LOG.warning("Rule %s does not apply to %s trades, dropping it", rule.rule_type, self.direction.name)
                continue
            kept.append(rule)
        self.rules = kept

    # ---------- Validity ----------
    def is_valid(self) -> bool:
        if not self.sell_items_defined():
            return False
        if self.direction in (TradeDirection.SALE, TradeDirection.PURCHASE) and self.cost is None:
            return False
        if self.is_barter and not self.barter_items_defined():
            return False
        return True

    def allow_item_in_storage(self, item: ItemStack) -> bool:
        if not self.restriction.allows_item(item):
            return False
        reqs = self.sell_requirements()
        if self.is_barter:
            reqs = reqs + self.barter_requirements()
        return any(req.matches(item) for req in reqs)

    def should_storage_item_be_saved(self, item: ItemStack) -> bool:
        return self.allow_item_in_storage(item)
