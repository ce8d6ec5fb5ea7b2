from __future__ import annotations

from dataclasses import dataclass, field
import json
import re
from typing import Any, Optional


_ITEM_ID_RE = re.compile(r"^(?:[a-z0-9_.-]+:)?[a-z0-9_./-]+$")


def _safe_int(value: object, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _clean_id(value: object) -> str:
    return str(value or "").strip().casefold()


def nbt_key(nbt: dict[str, Any] | None) -> str:
    if not nbt:
        return ""
    return json.dumps(nbt, sort_keys=True, separators=(",", ":"))


@dataclass
class ItemStack:
    item_id: str
    qty: int
    nbt: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        self.item_id = _clean_id(self.item_id)
        if self.item_id and not _ITEM_ID_RE.match(self.item_id):
            raise ValueError(f"invalid item id: {self.item_id!r}")
        self.qty = max(0, _safe_int(self.qty, 0))
        if not self.nbt:
            self.nbt = None

    @classmethod
    def empty(cls) -> "ItemStack":
        return cls(item_id="", qty=0)

    def is_empty(self) -> bool:
        return not self.item_id or self.qty <= 0

    @property
    def key(self) -> tuple[str, str]:
        return self.item_id, nbt_key(self.nbt)

    def same_item(self, other: "ItemStack", *, enforce_nbt: bool = True) -> bool:
        if self.item_id != other.item_id:
            return False
        return not enforce_nbt or nbt_key(self.nbt) == nbt_key(other.nbt)

    def copy_with_qty(self, qty: int) -> "ItemStack":
        return ItemStack(item_id=self.item_id, qty=qty, nbt=dict(self.nbt) if self.nbt else None)

    def copy(self) -> "ItemStack":
        return self.copy_with_qty(self.qty)

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.item_id, "count": self.qty}
        if self.nbt:
            out["tag"] = dict(self.nbt)
        return out

    @classmethod
    def from_json(cls, raw: object) -> "ItemStack":
        if not isinstance(raw, dict):
            raise ValueError(f"item must be an object, got {type(raw).__name__}")
        item_id = _clean_id(raw.get("id"))
        if not item_id:
            raise ValueError(f"invalid item id: {raw.get('id')!r}")
        count = raw.get("count", 1)
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise ValueError(f"invalid item count: {count!r}")
        tag = raw.get("tag")
        if tag is not None and not isinstance(tag, dict):
            raise ValueError("item tag must be an object")
        return cls(item_id=item_id, qty=count, nbt=tag)


def merge_stacks(items: list[ItemStack]) -> list[ItemStack]:
    """Combine stacks of the same item and data into single entries."""
    merged: dict[tuple[str, str], ItemStack] = {}
    for item in items:
        if item.is_empty():
            continue
        existing = merged.get(item.key)
        if existing is None:
            merged[item.key] = item.copy()
        else:
            existing.qty += item.qty
    return list(merged.values())


@dataclass
class ItemRequirement:
    """One configured item of a trade, matched by type or by type and data."""

    stack: ItemStack = field(default_factory=ItemStack.empty)
    enforce_nbt: bool = True

    def is_empty(self) -> bool:
        return self.stack.is_empty()

    @property
    def count(self) -> int:
        return self.stack.qty

    def matches(self, item: ItemStack) -> bool:
        if self.is_empty() or item.is_empty():
            return False
        return self.stack.same_item(item, enforce_nbt=self.enforce_nbt)


@dataclass
class InventoryGrid:
    cols: int
    rows: int
    slots: list[Optional[ItemStack]]
    stack_max: int = 64

    @classmethod
    def empty(cls, cols: int, rows: int, *, stack_max: int = 64) -> "InventoryGrid":
        return cls(cols=cols, rows=rows, slots=[None] * (cols * rows), stack_max=stack_max)

    def set(self, idx: int, stack: Optional[ItemStack]) -> None:
        self.slots[idx] = stack if stack is not None and not stack.is_empty() else None

    def count_item(self, item: ItemStack) -> int:
        return sum(stack.qty for stack in self.slots if stack is not None and stack.same_item(item))

    def add(self, item: ItemStack) -> int:
        wanted = item.qty
        added = 0
        for stack in self.slots:
            if added >= wanted:
                return added
            if stack is None or not stack.same_item(item):
                continue
            take = min(max(0, self.stack_max - stack.qty), wanted - added)
            stack.qty += take
            added += take
        for idx, stack in enumerate(self.slots):
            if added >= wanted:
                break
            if stack is not None:
                continue
            take = min(self.stack_max, wanted - added)
            self.slots[idx] = item.copy_with_qty(take)
            added += take
        return added

    def remove(self, item: ItemStack) -> int:
        wanted = item.qty
        removed = 0
        for idx, stack in enumerate(self.slots):
            if removed >= wanted:
                break
            if stack is None or not stack.same_item(item):
                continue
            take = min(stack.qty, wanted - removed)
            stack.qty -= take
            removed += take
            if stack.qty <= 0:
                self.slots[idx] = None
        return removed

    def totals(self) -> dict[tuple[str, str], int]:
        out: dict[tuple[str, str], int] = {}
        for stack in self.slots:
            if stack is None or stack.is_empty():
                continue
            out[stack.key] = out.get(stack.key, 0) + stack.qty
        return out
