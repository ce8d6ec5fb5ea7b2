"""Author-facing JSON format for item traders.

Only valid trades are written, and only the storage entries some valid trade
cares about ("RelevantStorage"); everything else is dropped on export.
Import skips malformed trade entries and fails only when none is left.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from itemtrader.config import TraderConfig
from itemtrader.core.engine.trade_slot import BARTER_SLOTS, ITEM_SLOT_COUNT, TradeSlot
from itemtrader.core.engine.trader_account import TraderAccount
from itemtrader.core.models.items import ItemStack
from itemtrader.core.models.money import MoneyValue
from itemtrader.core.models.trade_result import TradeDirection
from itemtrader.core.rules.base import parse_rules, save_rules_to_json
from itemtrader.core.storage import LockedTraderStorage


LOG = logging.getLogger(__name__)


class TraderDataError(RuntimeError):
    """Trader data that cannot be loaded at all."""


class TradeEntryDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    trade_type: Optional[str] = Field(None, alias="TradeType")
    sell_item: dict[str, Any] = Field(..., alias="SellItem")
    sell_item2: Optional[dict[str, Any]] = Field(None, alias="SellItem2")
    display_name: Optional[str] = Field(None, alias="DisplayName")
    display_name2: Optional[str] = Field(None, alias="DisplayName2")
    price: Any = Field(None, alias="Price")
    barter_item: Optional[dict[str, Any]] = Field(None, alias="BarterItem")
    barter_item2: Optional[dict[str, Any]] = Field(None, alias="BarterItem2")
    ignore_nbt: list[int] = Field(default_factory=list, alias="IgnoreNBT")
    rules: Optional[list[Any]] = Field(None, alias="Rules")

    @field_validator("trade_type")
    @classmethod
    def _v_trade_type(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return TradeDirection.parse(value).name

    @field_validator("ignore_nbt")
    @classmethod
    def _v_ignore_nbt(cls, value: list[int]) -> list[int]:
        for slot in value:
            if not 0 <= slot < ITEM_SLOT_COUNT:
                raise ValueError(f"IgnoreNBT slot {slot} out of range")
        return value


# ---------- Export ----------
def _trade_to_json(trade: TradeSlot) -> dict[str, Any]:
    data: dict[str, Any] = {"TradeType": trade.direction.name}
    ignore_nbt: list[int] = []
    sell0 = trade.get_sell_item(0)
    sell1 = trade.get_sell_item(1)
    if sell0.is_empty():
        data["SellItem"] = sell1.to_json()
        if trade.has_custom_name(1):
            data["DisplayName"] = trade.get_custom_name(1)
        if not trade.get_enforce_nbt(1):
            ignore_nbt.append(0)
    else:
        data["SellItem"] = sell0.to_json()
        if trade.has_custom_name(0):
            data["DisplayName"] = trade.get_custom_name(0)
        if not trade.get_enforce_nbt(0):
            ignore_nbt.append(0)
        if not sell1.is_empty():
            data["SellItem2"] = sell1.to_json()
            if trade.has_custom_name(1):
                data["DisplayName2"] = trade.get_custom_name(1)
            if not trade.get_enforce_nbt(1):
                ignore_nbt.append(1)
    if (trade.is_sale or trade.is_purchase) and trade.cost is not None:
        data["Price"] = trade.cost.to_json()
    if trade.is_barter:
        barter0 = trade.get_barter_item(0)
        barter1 = trade.get_barter_item(1)
        if barter0.is_empty():
            data["BarterItem"] = barter1.to_json()
            if not trade.get_enforce_nbt(BARTER_SLOTS[1]):
                ignore_nbt.append(2)
        else:
            data["BarterItem"] = barter0.to_json()
            if not trade.get_enforce_nbt(BARTER_SLOTS[0]):
                ignore_nbt.append(2)
            if not barter1.is_empty():
                data["BarterItem2"] = barter1.to_json()
                if not trade.get_enforce_nbt(BARTER_SLOTS[1]):
                    ignore_nbt.append(3)
    if ignore_nbt:
        data["IgnoreNBT"] = ignore_nbt
    rules = save_rules_to_json(trade.rules)
    if rules:
        data["Rules"] = rules
    return data


def export_trader_json(account: TraderAccount) -> dict[str, Any]:
    valid_trades = [trade for trade in account.trades if trade.is_valid()]
    out: dict[str, Any] = {}
    relevant = [
        item.to_json()
        for item in account.storage.get_contents()
        if any(trade.should_storage_item_be_saved(item) for trade in valid_trades)
    ]
    if relevant:
        out["RelevantStorage"] = relevant
    out["Trades"] = [_trade_to_json(trade) for trade in valid_trades]
    return out


# ---------- Import ----------
def _trade_from_draft(draft: TradeEntryDraft, config: TraderConfig) -> TradeSlot:
    trade = TradeSlot(validate_rules=False)
    trade.set_item(ItemStack.from_json(draft.sell_item), 0)
    if draft.sell_item2 is not None:
        trade.set_item(ItemStack.from_json(draft.sell_item2), 1)
    if draft.trade_type is not None:
        trade.set_direction(TradeDirection.parse(draft.trade_type))

    if "price" in draft.model_fields_set and draft.price is not None:
        if trade.is_barter:
            LOG.warning("Price is being defined for a barter trade. Price will be ignored.")
        else:
            trade.set_cost(MoneyValue.from_json(draft.price))
    elif not trade.is_barter:
        LOG.warning("Price is not defined on a non-barter trade. Price will be assumed to be free.")
        trade.set_cost(MoneyValue.free_price())

    if draft.barter_item is not None:
        if trade.is_barter:
            trade.set_item(ItemStack.from_json(draft.barter_item), BARTER_SLOTS[0])
            if draft.barter_item2 is not None:
                trade.set_item(ItemStack.from_json(draft.barter_item2), BARTER_SLOTS[1])
        else:
            LOG.warning("BarterItem is being defined for a non-barter trade. Barter item will be ignored.")

    if draft.display_name is not None:
        trade.set_custom_name(0, draft.display_name)
    if draft.display_name2 is not None:
        trade.set_custom_name(1, draft.display_name2)
    if draft.rules is not None:
        trade.set_rules(parse_rules(draft.rules, config.rule_types))
    for slot in draft.ignore_nbt:
        trade.set_enforce_nbt(slot, False)
    return trade


def parse_trades_json(raw_trades: object, config: TraderConfig) -> list[TradeSlot]:
    if not isinstance(raw_trades, list):
        raise TraderDataError("'Trades' must be a list")
    trades: list[TradeSlot] = []
    for idx, raw in enumerate(raw_trades):
        if len(trades) >= config.max_trades:
            break
        try:
            draft = TradeEntryDraft.model_validate(raw)
            trades.append(_trade_from_draft(draft, config))
        except (ValidationError, ValueError, TypeError, KeyError) as e:
            LOG.error("Error parsing item trade at index %s: %s", idx, e)
    return trades


def parse_relevant_storage(raw_storage: object) -> list[ItemStack]:
    if raw_storage is None:
        return []
    if not isinstance(raw_storage, list):
        LOG.error("'RelevantStorage' must be a list, ignoring it")
        return []
    items: list[ItemStack] = []
    for idx, raw in enumerate(raw_storage):
        try:
            items.append(ItemStack.from_json(raw))
        except ValueError as e:
            LOG.error("Error parsing storage item at index %s: %s", idx, e)
    return items


def import_trader_json(
    data: object,
    *,
    config: TraderConfig | None = None,
    **account_kwargs: Any,
) -> TraderAccount:
    """Build a persistent trader from its JSON definition."""
    if not isinstance(data, dict):
        raise TraderDataError("Trader definition must be a JSON object")
    if "Trades" not in data:
        raise TraderDataError("Trader definition is missing 'Trades'")
    config = config or TraderConfig()
    trades = parse_trades_json(data.get("Trades"), config)
    if not trades:
        raise TraderDataError("Trader has no valid trades!")

    account = TraderAccount(len(trades), is_persistent=True, config=config, **account_kwargs)
    account.set_trades(trades)
    account.set_storage(LockedTraderStorage(contents=parse_relevant_storage(data.get("RelevantStorage"))))
    return account


def read_trader_file(path: str | Path, *, config: TraderConfig | None = None, **account_kwargs: Any) -> TraderAccount:
    path = Path(path)
    if not path.exists():
        raise TraderDataError(f"File not found: {path.as_posix()}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise TraderDataError(f"Invalid JSON in {path.as_posix()}: {e}") from e
    account_kwargs.setdefault("trader_id", path.stem)
    return import_trader_json(data, config=config, **account_kwargs)


def write_trader_file(path: str | Path, account: TraderAccount) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(export_trader_json(account), ensure_ascii=False, indent=2), encoding="utf-8")
