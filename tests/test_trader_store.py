from __future__ import annotations

import pytest

from itemtrader.core.engine import TradeDirection, TradeSlot, TraderAccount
from itemtrader.core.models import ItemStack, MoneyStorage, MoneyValue
from itemtrader.core.save import TraderDataError, TraderStore
from itemtrader.core.save.trader_store import safe_id


def _build_trader(trader_id: str = "shop_1", funds: int = 0) -> TraderAccount:
    trader = TraderAccount(1, trader_id=trader_id)
    slot = TradeSlot(direction=TradeDirection.SALE)
    slot.set_item(ItemStack("minecraft:bread", 2), 0)
    slot.set_cost(MoneyValue.of(4))
    trader.trades[0] = slot
    trader.stored_money = MoneyStorage.of(funds)
    return trader


def test_save_and_load(tmp_path) -> None:
    store = TraderStore(data_dir=str(tmp_path))
    path = store.save(_build_trader(funds=12))

    assert path.name == "shop_1.trader"
    assert store.list_ids() == ["shop_1"]
    loaded = store.load("shop_1")
    assert loaded is not None
    assert loaded.get_stored_money() == MoneyValue.of(12)
    assert store.load("nobody") is None


def test_second_save_keeps_backup_and_restores_it(tmp_path) -> None:
    store = TraderStore(data_dir=str(tmp_path))
    store.save(_build_trader(funds=1))
    path = store.save(_build_trader(funds=2))
    backup = path.with_name(path.name + ".bak")
    assert backup.exists()

    path.write_bytes(b"corrupted")
    loaded = store.load("shop_1")

    assert loaded is not None
    assert loaded.get_stored_money() == MoneyValue.of(1)
    assert path.read_bytes() == backup.read_bytes()


def test_corrupted_file_without_backup_raises(tmp_path) -> None:
    store = TraderStore(data_dir=str(tmp_path))
    path = store.save(_build_trader())
    path.write_bytes(b"corrupted")

    with pytest.raises(TraderDataError):
        store.load("shop_1")


def test_delete_and_missing_id(tmp_path) -> None:
    store = TraderStore(data_dir=str(tmp_path))
    store.save(_build_trader())
    store.save(_build_trader())

    assert store.delete("shop_1") is True
    assert store.delete("shop_1") is False
    assert list(tmp_path.iterdir()) == []
    with pytest.raises(ValueError):
        store.save(_build_trader(trader_id=""))


def test_safe_id() -> None:
    assert safe_id("Market Stall #3") == "Market_Stall_3"
    assert safe_id("../../etc") == "etc"
    assert safe_id("  ") == "unknown"
