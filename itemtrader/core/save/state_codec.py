"""Full runtime snapshot of an item trader.

The snapshot is a nested compound (plain dicts and lists) and travels as
gzip-compressed JSON. Unlike the author format it keeps everything: invalid
placeholder trades, all of storage, funds, upgrades, stats and rule state.
"""

from __future__ import annotations

import gzip
import json
import logging
from typing import Any, Mapping

from itemtrader.config import TraderConfig
from itemtrader.core.engine.trade_slot import ITEM_SLOT_COUNT, TradeSlot
from itemtrader.core.engine.trader_account import CapacityUpgrade, TraderAccount
from itemtrader.core.models.items import ItemRequirement, ItemStack
from itemtrader.core.models.money import MoneyStorage, MoneyValue
from itemtrader.core.models.trade_result import TradeDirection
from itemtrader.core.rules.base import (
    load_persistent_data,
    parse_rules,
    save_persistent_data,
    save_rules_to_json,
)
from itemtrader.core.storage import LockedTraderStorage, Side, TraderStorage

from .json_codec import TraderDataError


LOG = logging.getLogger(__name__)

STATE_VERSION = 1
RULE_DATA_KEY = "RuleData"


def trade_to_state(trade: TradeSlot) -> dict[str, Any]:
    tag: dict[str, Any] = {
        "TradeType": trade.direction.name,
        "Items": [req.stack.to_json() if not req.is_empty() else {} for req in trade.items],
        "EnforceNBT": [req.enforce_nbt for req in trade.items],
        "CustomNames": list(trade.custom_names),
        "ValidateRules": trade.validate_rules,
        "Rules": save_rules_to_json(trade.rules),
    }
    if trade.cost is not None:
        tag["Price"] = trade.cost.to_json()
    return tag


def trade_from_state(tag: Mapping[str, Any], config: TraderConfig) -> TradeSlot:
    trade = TradeSlot(
        direction=TradeDirection.parse(tag.get("TradeType", "SALE")),
        validate_rules=bool(tag.get("ValidateRules", True)),
    )
    items = tag.get("Items") or []
    enforce = tag.get("EnforceNBT") or []
    for idx in range(ITEM_SLOT_COUNT):
        raw = items[idx] if idx < len(items) else {}
        stack = ItemStack.from_json(raw) if raw else ItemStack.empty()
        flag = bool(enforce[idx]) if idx < len(enforce) else True
        trade.items[idx] = ItemRequirement(stack=stack, enforce_nbt=flag)
    names = tag.get("CustomNames") or []
    trade.custom_names = [str(names[i]) if i < len(names) else "" for i in range(2)]
    if "Price" in tag:
        trade.cost = MoneyValue.from_json(tag["Price"])
    # Rules are restored as saved, without direction filtering.
    trade.rules = parse_rules(tag.get("Rules") or [], config.rule_types)
    return trade


def save_persistent_trade_data(account: TraderAccount, tag: dict[str, Any]) -> bool:
    rows: list[dict[str, Any]] = []
    relevant = False
    for trade in account.trades:
        row: dict[str, Any] = {}
        if save_persistent_data(row, trade.rules, RULE_DATA_KEY):
            relevant = True
        rows.append(row)
    if relevant:
        tag["PersistentTradeData"] = rows
    return relevant


def load_persistent_trade_data(account: TraderAccount, tag: Mapping[str, Any]) -> None:
    rows = tag.get("PersistentTradeData")
    if not isinstance(rows, list):
        return
    for trade, row in zip(account.trades, rows):
        if isinstance(row, Mapping):
            load_persistent_data(row, trade.rules, RULE_DATA_KEY)


def account_to_state(account: TraderAccount) -> dict[str, Any]:
    tag: dict[str, Any] = {
        "Version": STATE_VERSION,
        "TraderId": account.trader_id,
        "Creative": account.is_creative,
        "Persistent": account.is_persistent,
        "Trades": [trade_to_state(trade) for trade in account.trades],
        "ItemStorage": account.storage.to_state(),
        "StorageLocked": account.storage.locked,
        "StoredMoney": account.stored_money.to_json(),
        "Upgrades": [{"Type": up.upgrade_type, "Capacity": up.amount} for up in account.upgrades],
        "Stats": {key: value.to_json() for key, value in sorted(account.stats.counters.items())},
        "InputSides": sorted(side.value for side in account.input_sides),
        "OutputSides": sorted(side.value for side in account.output_sides),
    }
    save_persistent_trade_data(account, tag)
    return tag


def account_from_state(
    tag: Mapping[str, Any],
    *,
    config: TraderConfig | None = None,
    **account_kwargs: Any,
) -> TraderAccount:
    config = config or TraderConfig()
    raw_trades = tag.get("Trades")
    if not isinstance(raw_trades, list) or not raw_trades:
        raise TraderDataError("Trader state has no trades")
    try:
        trades = [trade_from_state(row, config) for row in raw_trades[: config.max_trades]]
        stored_money = MoneyStorage.from_json(tag.get("StoredMoney", []))
        upgrades = [
            CapacityUpgrade(amount=int(row["Capacity"]), upgrade_type=str(row["Type"]))
            for row in tag.get("Upgrades") or []
        ]
        stats = {str(key): MoneyStorage.from_json(value) for key, value in (tag.get("Stats") or {}).items()}
        input_sides = {Side(value) for value in tag.get("InputSides") or []}
        output_sides = {Side(value) for value in tag.get("OutputSides") or []}
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        raise TraderDataError(f"Invalid trader state: {e}") from e

    account_kwargs.setdefault("trader_id", str(tag.get("TraderId") or ""))
    account = TraderAccount(
        len(trades),
        is_persistent=bool(tag.get("Persistent", False)),
        is_creative=bool(tag.get("Creative", False)),
        config=config,
        **account_kwargs,
    )
    account.set_trades(trades)
    storage: TraderStorage = LockedTraderStorage() if tag.get("StorageLocked") else TraderStorage()
    storage.load_state(tag.get("ItemStorage"))
    account.set_storage(storage)
    account.stored_money = stored_money
    account.upgrades = upgrades
    account.stats.counters = stats
    account.input_sides = input_sides
    account.output_sides = output_sides
    load_persistent_trade_data(account, tag)
    return account


def dumps_state(account: TraderAccount) -> bytes:
    payload = json.dumps(account_to_state(account), ensure_ascii=False, sort_keys=True)
    return gzip.compress(payload.encode("utf-8"))


def loads_state(blob: bytes, *, config: TraderConfig | None = None, **account_kwargs: Any) -> TraderAccount:
    try:
        tag = json.loads(gzip.decompress(blob).decode("utf-8"))
    except (OSError, EOFError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TraderDataError(f"Unreadable trader state: {e}") from e
    if not isinstance(tag, dict):
        raise TraderDataError("Trader state must be a compound")
    return account_from_state(tag, config=config, **account_kwargs)
