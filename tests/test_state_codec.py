from __future__ import annotations

import gzip
import json

import pytest

from itemtrader.core.engine import (
    MONEY_EARNED,
    CapacityUpgrade,
    PlayerTradeContext,
    TradeDirection,
    TradeResult,
    TradeSlot,
    TraderAccount,
)
from itemtrader.core.models import ItemStack, MoneyStorage, MoneyValue
from itemtrader.core.rules import PlayerBlacklistRule, TradeLimitRule
from itemtrader.core.save import TraderDataError, account_to_state, dumps_state, import_trader_json, loads_state
from itemtrader.core.storage import LockedTraderStorage, Side


STICK = "minecraft:stick"


def _build_trader() -> TraderAccount:
    trader = TraderAccount(3, trader_id="market")
    slot = TradeSlot(direction=TradeDirection.SALE)
    slot.set_item(ItemStack(STICK, 5), 0)
    slot.set_item(ItemStack("minecraft:iron_sword", 1, {"Damage": 2}), 1)
    slot.set_enforce_nbt(1, False)
    slot.set_custom_name(1, "Old sword")
    slot.set_cost(MoneyValue.of(10))
    slot.set_rules([TradeLimitRule(limit=3), PlayerBlacklistRule(players=["griefer"])])
    trader.trades[0] = slot
    trader.storage.force_add_item(ItemStack(STICK, 20))
    trader.storage.force_add_item(ItemStack("minecraft:iron_sword", 4, {"Damage": 2}))
    trader.install_upgrade(CapacityUpgrade(amount=64))
    return trader


def test_state_round_trip_keeps_everything() -> None:
    trader = _build_trader()
    ctx = PlayerTradeContext(player="steve", wallet=MoneyStorage.of(50))
    assert trader.execute_trade(ctx, 0) is TradeResult.SUCCESS

    loaded = loads_state(dumps_state(trader))

    assert loaded.trader_id == "market"
    assert loaded.get_trade_count() == 3
    assert loaded.trades == trader.trades
    assert loaded.trades[0].rules[0].counts == {"steve": 1}
    assert sorted(loaded.storage.to_state(), key=json.dumps) == sorted(trader.storage.to_state(), key=json.dumps)
    assert loaded.get_stored_money() == MoneyValue.of(10)
    assert loaded.upgrades == [CapacityUpgrade(amount=64)]
    assert loaded.get_storage_stack_limit() == trader.get_storage_stack_limit()
    assert loaded.stats.get(MONEY_EARNED) == MoneyValue.of(10)


def test_persistent_trade_data_written_only_when_relevant() -> None:
    trader = _build_trader()
    assert "PersistentTradeData" not in account_to_state(trader)

    trader.execute_trade(PlayerTradeContext(player="steve", wallet=MoneyStorage.of(10)), 0)
    tag = account_to_state(trader)

    rows = tag["PersistentTradeData"]
    assert len(rows) == 3
    assert rows[0]["RuleData"][0] == {"Type": "trade_limit", "Counts": {"steve": 1}}
    assert rows[1] == {}


def test_trade_limit_survives_reload() -> None:
    trader = _build_trader()
    trader.trades[0].rules[0].limit = 1
    ctx = PlayerTradeContext(player="steve", wallet=MoneyStorage.of(50))
    assert trader.execute_trade(ctx, 0) is TradeResult.SUCCESS

    loaded = loads_state(dumps_state(trader))

    assert loaded.execute_trade(ctx, 0) is TradeResult.FAIL_TRADE_RULE_DENIAL


def test_locked_storage_and_persistence_flags_survive() -> None:
    data = {"Trades": [{"TradeType": "SALE", "SellItem": {"id": STICK}, "Price": 1}], "RelevantStorage": [{"id": STICK, "count": 3}]}
    trader = import_trader_json(data, trader_id="fixed")

    loaded = loads_state(dumps_state(trader))

    assert loaded.is_persistent is True
    assert isinstance(loaded.storage, LockedTraderStorage)
    assert loaded.storage.get_item_count(ItemStack(STICK, 1)) == 3
    assert loaded.trades[0].validate_rules is False


def test_state_round_trip_keeps_every_storage_id_and_side() -> None:
    trader = _build_trader()
    trader.storage.force_add_item(ItemStack("Minecraft:Iron_Ingot", 7, {"Smelted": True}))
    trader.storage.force_add_item(ItemStack("mymod:ores/raw.tin", 2))
    trader.add_stored_money(MoneyValue.of(4, "gem"))
    trader.set_input_side(Side.UP, True)
    trader.set_output_side(Side.DOWN, True)

    loaded = loads_state(dumps_state(trader))

    assert sorted(loaded.storage.to_state(), key=json.dumps) == sorted(trader.storage.to_state(), key=json.dumps)
    assert loaded.storage.get_item_count(ItemStack("minecraft:iron_ingot", 1, {"Smelted": True})) == 7
    assert loaded.storage.get_item_count(ItemStack("mymod:ores/raw.tin", 1)) == 2
    assert loaded.stored_money == trader.stored_money
    assert loaded.get_stored_money("gem") == MoneyValue.of(4, "gem")
    assert loaded.input_sides == {Side.UP}
    assert loaded.output_sides == {Side.DOWN}


def test_item_ids_outside_the_id_format_are_rejected() -> None:
    with pytest.raises(ValueError):
        ItemStack("Iron Ingot", 3)
    with pytest.raises(ValueError):
        ItemStack.from_json({"id": "iron ingot", "count": 3})
    assert ItemStack(" Minecraft:Stick ", 1).item_id == STICK
    assert ItemStack.empty().is_empty()


def test_unreadable_state_raises() -> None:
    with pytest.raises(TraderDataError):
        loads_state(b"not gzip at all")
    with pytest.raises(TraderDataError):
        loads_state(gzip.compress(b"[1, 2]"))
    with pytest.raises(TraderDataError):
        loads_state(gzip.compress(json.dumps({"Trades": []}).encode("utf-8")))
