from __future__ import annotations

import random

from itemtrader.config import TraderConfig
from itemtrader.core.engine import CapacityUpgrade, TradeDirection, TradeSlot, TraderAccount
from itemtrader.core.models import ItemStack, MoneyValue
from itemtrader.core.storage import LockedTraderStorage, Side, TraderStorage


STICK = "minecraft:stick"
SWORD = "minecraft:iron_sword"


def _sale_slot(item: ItemStack, *, enforce_nbt: bool = True) -> TradeSlot:
    slot = TradeSlot(direction=TradeDirection.SALE)
    slot.set_item(item, 0)
    slot.set_enforce_nbt(0, enforce_nbt)
    slot.set_cost(MoneyValue.of(1))
    return slot


def test_capacity_is_per_item_and_data() -> None:
    storage = TraderStorage(stack_limit=10)
    storage.force_add_item(ItemStack(STICK, 8))

    assert storage.get_fittable_amount(ItemStack(STICK, 1)) == 2
    assert storage.can_fit_item(ItemStack(STICK, 2)) is True
    assert storage.can_fit_item(ItemStack(STICK, 3)) is False
    assert storage.has_space([ItemStack(STICK, 1), ItemStack(STICK, 2)]) is False
    assert storage.has_space([ItemStack(SWORD, 10)]) is True
    assert storage.has_space(None) is False


def test_stored_items_with_different_data_are_separate_entries() -> None:
    storage = TraderStorage()
    storage.force_add_item(ItemStack(SWORD, 1, {"Damage": 3}))
    storage.force_add_item(ItemStack(SWORD, 2))
    storage.force_add_item(ItemStack(SWORD, 1, {"Damage": 3}))

    assert storage.get_item_count(ItemStack(SWORD, 1, {"Damage": 3})) == 2
    assert storage.get_item_count(ItemStack(SWORD, 1)) == 2
    assert len(storage.get_contents()) == 2


def test_type_only_requirement_draws_from_any_data_variant() -> None:
    storage = TraderStorage()
    storage.force_add_item(ItemStack(SWORD, 1, {"Damage": 3}))
    storage.force_add_item(ItemStack(SWORD, 1, {"Damage": 7}))

    strict = _sale_slot(ItemStack(SWORD, 2), enforce_nbt=True)
    loose = _sale_slot(ItemStack(SWORD, 2), enforce_nbt=False)

    assert storage.out_of_stock(strict) is True
    assert storage.stock_count(loose) == 1
    picked = storage.pick_random_sell_stacks(loose, random.Random(7))
    assert picked is not None
    assert sum(stack.qty for stack in picked) == 2
    assert {stack.nbt["Damage"] for stack in picked} == {3, 7}


def test_stock_count_and_removal() -> None:
    storage = TraderStorage()
    storage.force_add_item(ItemStack(STICK, 12))
    slot = _sale_slot(ItemStack(STICK, 5))

    assert storage.stock_count(slot) == 2
    assert storage.remove_item(ItemStack(STICK, 13)) is False
    assert storage.remove_item(ItemStack(STICK, 12)) is True
    assert storage.is_empty()
    assert storage.out_of_stock(slot) is True


def test_split_contents_respects_max_stack_size() -> None:
    storage = TraderStorage()
    storage.force_add_item(ItemStack(STICK, 130))

    assert [stack.qty for stack in storage.split_contents(64)] == [64, 64, 2]

    trader = TraderAccount(1)
    trader.storage.force_add_item(ItemStack(STICK, 70))
    assert [stack.qty for stack in trader.get_additional_contents()] == [64, 6]


def test_locked_storage_refuses_admin_changes() -> None:
    storage = LockedTraderStorage(contents=[ItemStack(STICK, 5)])

    assert storage.admin_add_item(ItemStack(STICK, 1)) is False
    assert storage.admin_remove_item(ItemStack(STICK, 1)) is False
    assert storage.get_item_count(ItemStack(STICK, 1)) == 5


def test_storage_state_skips_bad_rows() -> None:
    storage = TraderStorage()
    storage.load_state([{"id": STICK, "count": 4}, {"id": "Not An Id!", "count": 1}, {"id": STICK, "count": 0}])

    assert storage.get_contents() == [ItemStack(STICK, 4)]


def test_item_handler_only_accepts_relevant_items() -> None:
    trader = TraderAccount(1, config=TraderConfig(base_stack_limit=10))
    trader.trades[0] = _sale_slot(ItemStack(STICK, 5))
    trader.set_input_side(Side.UP, True)
    trader.set_output_side(Side.UP, True)
    handler = trader.get_item_handler(Side.UP)

    left = handler.insert_item(ItemStack(STICK, 14))
    assert left == ItemStack(STICK, 4)
    assert trader.storage.get_item_count(ItemStack(STICK, 1)) == 10

    dirt = ItemStack("minecraft:dirt", 3)
    assert handler.insert_item(dirt) == dirt
    assert handler.get_slots() == 2

    out = handler.extract_item(0, 3, simulate=True)
    assert out == ItemStack(STICK, 3)
    assert trader.storage.get_item_count(ItemStack(STICK, 1)) == 10
    handler.extract_item(0, 3)
    assert trader.storage.get_item_count(ItemStack(STICK, 1)) == 7


def test_upgrades_only_count_when_allowed() -> None:
    trader = TraderAccount(1, config=TraderConfig(base_stack_limit=576))

    assert trader.install_upgrade(CapacityUpgrade(amount=64)) is True
    assert trader.install_upgrade(CapacityUpgrade(amount=64, upgrade_type="speed")) is False
    assert trader.get_storage_stack_limit() == 640
    assert trader.remove_upgrade(CapacityUpgrade(amount=64)) is True
    assert trader.get_storage_stack_limit() == 576


def test_item_handler_follows_side_settings() -> None:
    trader = TraderAccount(1)
    trader.trades[0] = _sale_slot(ItemStack(STICK, 5))
    trader.storage.force_add_item(ItemStack(STICK, 6))
    top = trader.get_item_handler(Side.UP)
    bottom = trader.get_item_handler(Side.DOWN)

    assert top.insert_item(ItemStack(STICK, 2)) == ItemStack(STICK, 2)
    assert bottom.extract_item(0, 2).is_empty()

    trader.set_input_side(Side.UP, True)
    trader.set_output_side(Side.DOWN, True)
    assert trader.get_item_handler(Side.UP) is top
    assert top.insert_item(ItemStack(STICK, 2)).is_empty()
    assert top.extract_item(0, 1).is_empty()
    assert bottom.extract_item(0, 3) == ItemStack(STICK, 3)
    assert bottom.insert_item(ItemStack(STICK, 1)) == ItemStack(STICK, 1)
    assert trader.storage.get_item_count(ItemStack(STICK, 1)) == 5

    trader.set_input_side(Side.UP, False)
    assert trader.allow_input_side(Side.UP) is False
    assert top.insert_item(ItemStack(STICK, 1)) == ItemStack(STICK, 1)
