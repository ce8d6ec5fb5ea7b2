from __future__ import annotations

from dataclasses import dataclass, field
import logging
import random
import sys
from typing import Any, Callable, Optional

from itemtrader.config import ITEM_CAPACITY_UPGRADE, TraderConfig
from itemtrader.core.events import (
    AddRemoveTradeNotification,
    EventBus,
    ItemTradeNotification,
    OutOfStockNotification,
)
from itemtrader.core.models.items import ItemStack, merge_stacks
from itemtrader.core.models.money import DEFAULT_CURRENCY, MoneyStorage, MoneyValue, TaxPolicy, no_tax
from itemtrader.core.models.trade_result import TradeDirection, TradeResult
from itemtrader.core.rules.base import run_post_trade, run_pre_trade
from itemtrader.core.storage import Side, TraderItemHandler, TraderStorage

from .trade_context import TradeContext
from .trade_slot import TradeSlot


LOG = logging.getLogger(__name__)

MONEY_EARNED = "money_earned"
MONEY_PAID = "money_paid"
TAXES_PAID = "taxes_paid"

PermissionCheck = Callable[[Any], bool]


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, int(value)))


@dataclass(frozen=True)
class CapacityUpgrade:
    amount: int
    upgrade_type: str = ITEM_CAPACITY_UPGRADE


@dataclass
class TraderStats:
    counters: dict[str, MoneyStorage] = field(default_factory=dict)

    def increment(self, key: str, amount: MoneyValue) -> None:
        self.counters.setdefault(key, MoneyStorage()).add(amount)

    def get(self, key: str, currency: str = DEFAULT_CURRENCY) -> MoneyValue:
        counter = self.counters.get(key)
        return counter.get(currency) if counter is not None else MoneyValue(currency=currency)


class TraderAccount:
    """One item trader: its trade slots, storage, funds and upgrades."""

    def __init__(
        self,
        trade_count: int = 1,
        *,
        trader_id: str = "",
        is_persistent: bool = False,
        is_creative: bool = False,
        config: TraderConfig | None = None,
        tax_policy: TaxPolicy = no_tax,
        events: EventBus | None = None,
        permission_check: PermissionCheck | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.trader_id = trader_id
        self.config = config or TraderConfig()
        self.is_persistent = bool(is_persistent)
        self.is_creative = bool(is_creative)
        self.tax_policy = tax_policy
        self.events = events or EventBus()
        self.permission_check = permission_check or self.config.is_admin
        self.rng = rng or random.Random()
        self.stored_money = MoneyStorage()
        self.upgrades: list[CapacityUpgrade] = []
        self.stats = TraderStats()
        self.trades = TradeSlot.list_of_size(
            _clamp(trade_count, 1, self.config.max_trades), not self.is_persistent
        )
        self.storage = TraderStorage(stack_limit=self.get_storage_stack_limit, item_filter=self.is_item_relevant)
        self.input_sides: set[Side] = set()
        self.output_sides: set[Side] = set()
        self._item_handlers: dict[Side, TraderItemHandler] = {}
        self.validate_trade_restrictions()

    # ---------- Trades ----------
    def get_trade_count(self) -> int:
        return len(self.trades)

    def get_trade(self, trade_index: int) -> Optional[TradeSlot]:
        if 0 <= trade_index < len(self.trades):
            return self.trades[trade_index]
        LOG.error("Cannot get trade in index %s from a trader with only %s trades.", trade_index, len(self.trades))
        return None

    def set_trades(self, trades: list[TradeSlot]) -> None:
        self.trades = list(trades[: self.config.max_trades])
        self.validate_trade_restrictions()

    def add_trade(self, requester: Any) -> bool:
        if self.get_trade_count() >= self.config.max_trades:
            return False
        if not self.permission_check(requester):
            LOG.warning("%s is not allowed to add a trade slot", requester)
            return False
        self.override_trade_count(self.get_trade_count() + 1)
        self.events.publish(AddRemoveTradeNotification(str(requester), True, self.get_trade_count()))
        return True

    def remove_trade(self, requester: Any) -> bool:
        if self.get_trade_count() <= 1:
            return False
        if not self.permission_check(requester):
            LOG.warning("%s is not allowed to remove a trade slot", requester)
            return False
        self.override_trade_count(self.get_trade_count() - 1)
        self.events.publish(AddRemoveTradeNotification(str(requester), False, self.get_trade_count()))
        return True

    def override_trade_count(self, new_trade_count: int) -> None:
        trade_count = _clamp(new_trade_count, 1, self.config.max_trades)
        if trade_count == self.get_trade_count():
            return
        old_trades = self.trades
        self.trades = TradeSlot.list_of_size(trade_count, not self.is_persistent)
        for i in range(min(len(old_trades), trade_count)):
            self.trades[i] = old_trades[i]
        self.validate_trade_restrictions()

    def validate_trade_restrictions(self) -> None:
        for idx, trade in enumerate(self.trades):
            trade.restriction = self.config.restriction_for(idx)

    # ---------- Storage, upgrades & funds ----------
    def set_storage(self, storage: TraderStorage) -> None:
        storage.bind(stack_limit=self.get_storage_stack_limit, item_filter=self.is_item_relevant)
        self.storage = storage

    def is_item_relevant(self, item: ItemStack) -> bool:
        return any(trade.allow_item_in_storage(item) for trade in self.trades)

    def allow_upgrade(self, upgrade: CapacityUpgrade) -> bool:
        return upgrade.upgrade_type in self.config.allowed_upgrades

    def install_upgrade(self, upgrade: CapacityUpgrade) -> bool:
        if not self.allow_upgrade(upgrade):
            LOG.warning("Upgrade type %s is not allowed on item traders", upgrade.upgrade_type)
            return False
        self.upgrades.append(upgrade)
        return True

    def remove_upgrade(self, upgrade: CapacityUpgrade) -> bool:
        if upgrade not in self.upgrades:
            return False
        self.upgrades.remove(upgrade)
        return True

    def get_storage_stack_limit(self) -> int:
        limit = self.config.base_stack_limit
        for upgrade in self.upgrades:
            if self.allow_upgrade(upgrade) and upgrade.upgrade_type == ITEM_CAPACITY_UPGRADE:
                limit += max(0, upgrade.amount)
        return limit

    def get_stored_money(self, currency: str = DEFAULT_CURRENCY) -> MoneyValue:
        return self.stored_money.get(currency)

    def add_stored_money(self, amount: MoneyValue, *, taxable: bool = True) -> MoneyValue:
        """Credit the trader and return the taxes paid on the amount."""
        if taxable:
            net, taxes = self.tax_policy(amount)
        else:
            net, taxes = amount, MoneyValue.empty()
        self.stored_money.add(net)
        return taxes

    def remove_stored_money(self, amount: MoneyValue) -> bool:
        return self.stored_money.remove(amount)

    def can_pay(self, price: MoneyValue) -> bool:
        return self.stored_money.contains(price)

    # ---------- Item transport ----------
    def allow_input_side(self, side: Side) -> bool:
        return side in self.input_sides

    def allow_output_side(self, side: Side) -> bool:
        return side in self.output_sides

    def set_input_side(self, side: Side, enabled: bool) -> None:
        if enabled:
            self.input_sides.add(side)
        else:
            self.input_sides.discard(side)

    def set_output_side(self, side: Side, enabled: bool) -> None:
        if enabled:
            self.output_sides.add(side)
        else:
            self.output_sides.discard(side)

    def get_item_handler(self, side: Side) -> TraderItemHandler:
        """Storage view for transport attached on ``side``.

        Inserting needs the side enabled for input, extracting needs it
        enabled for output. Settings are read on every call.
        """
        handler = self._item_handlers.get(side)
        if handler is None:
            handler = TraderItemHandler(
                lambda: self.storage,
                can_insert=lambda: self.allow_input_side(side),
                can_extract=lambda: self.allow_output_side(side),
            )
            self._item_handlers[side] = handler
        return handler

    # ---------- Stock ----------
    def _stock_for(self, trade: TradeSlot, price: MoneyValue) -> int:
        if trade.is_purchase:
            if price.is_empty():
                return sys.maxsize
            return self.stored_money.get(price.currency).value // price.value
        return self.storage.stock_count(trade)

    def has_stock(self, trade: TradeSlot, price: MoneyValue | None = None) -> bool:
        return self._stock_for(trade, trade.get_cost() if price is None else price) > 0

    def get_trade_stock(self, trade_index: int) -> int:
        trade = self.get_trade(trade_index)
        if trade is None or not trade.sell_items_defined():
            return 0
        if self.is_creative:
            return sys.maxsize
        return self._stock_for(trade, trade.get_cost())

    def terminal_summary(self) -> dict[str, int]:
        trade_count = 0
        out_of_stock = 0
        for trade in self.trades:
            if not trade.is_valid():
                continue
            trade_count += 1
            if not self.is_creative and not self.has_stock(trade):
                out_of_stock += 1
        return {"trade_count": trade_count, "out_of_stock": out_of_stock}

    def get_additional_contents(self) -> list[ItemStack]:
        return self.storage.split_contents(self.config.max_stack_size)

    # ---------- Execution ----------
    def execute_trade(self, context: TradeContext, trade_index: int) -> TradeResult:
        trade = self.get_trade(trade_index)
        if trade is None:
            LOG.debug("Trade at index %s is null. Cannot execute trade!", trade_index)
            return TradeResult.FAIL_INVALID_TRADE
        if not trade.is_valid():
            LOG.debug("Trade at index %s is not a valid trade. Cannot execute trade.", trade_index)
            return TradeResult.FAIL_INVALID_TRADE
        if not context.has_player_reference():
            return TradeResult.FAIL_NULL
        if not run_pre_trade(trade.rules, trade, context):
            return TradeResult.FAIL_TRADE_RULE_DENIAL

        price = trade.get_cost(context)
        if trade.direction is TradeDirection.SALE:
            return self._execute_sale(context, trade, trade_index, price)
        if trade.direction is TradeDirection.PURCHASE:
            return self._execute_purchase(context, trade, trade_index, price)
        if trade.direction is TradeDirection.BARTER:
            return self._execute_barter(context, trade, trade_index)
        return TradeResult.FAIL_INVALID_TRADE

    def _execute_sale(
        self, context: TradeContext, trade: TradeSlot, trade_index: int, price: MoneyValue
    ) -> TradeResult:
        if not self.is_creative and self.storage.out_of_stock(trade):
            LOG.debug("Not enough items in storage to carry out the trade at index %s.", trade_index)
            return TradeResult.FAIL_OUT_OF_STOCK
        sold_items = self._sell_stacks(trade)
        if sold_items is None:
            LOG.debug("No combination of stored items satisfies the trade at index %s.", trade_index)
            return TradeResult.FAIL_OUT_OF_STOCK
        if not context.can_fit_items(sold_items):
            LOG.debug("Not enough room for the output item. Aborting trade!")
            return TradeResult.FAIL_NO_OUTPUT_SPACE
        # Settle the tax split before anything moves.
        net, taxes_paid = (price, MoneyValue.empty()) if self.is_creative else self.tax_policy(price)
        if not context.get_payment(price):
            LOG.debug(
                "Not enough money is present for the trade at index %s. Price: %s, available funds: %s",
                trade_index,
                price,
                context.get_available_funds(price.currency),
            )
            return TradeResult.FAIL_CANNOT_AFFORD
        if not self._put_items(context, sold_items):
            context.give_payment(price)
            return TradeResult.FAIL_NO_OUTPUT_SPACE

        if not self.is_creative:
            self.storage.remove_items(sold_items)
            self.stored_money.add(net)
            self._notify_if_out_of_stock(trade, trade_index)
        self.stats.increment(MONEY_EARNED, price)
        self.stats.increment(TAXES_PAID, taxes_paid)
        self.events.publish(
            ItemTradeNotification(
                trade_index=trade_index,
                direction=trade.direction.name,
                requester=str(context.get_player_reference()),
                price=price,
                items=tuple(sold_items),
                taxes_paid=taxes_paid,
            )
        )
        run_post_trade(trade.rules, trade, context, price, taxes_paid)
        return TradeResult.SUCCESS

    def _execute_purchase(
        self, context: TradeContext, trade: TradeSlot, trade_index: int, price: MoneyValue
    ) -> TradeResult:
        collectable = context.get_collectable_items(trade.get_item_requirement(0), trade.get_item_requirement(1))
        if not context.has_items(collectable):
            LOG.debug("Not enough items in the item slots to make the purchase.")
            return TradeResult.FAIL_CANNOT_AFFORD
        if not self.is_creative and not self.storage.has_space(collectable):
            LOG.debug("Not enough room in storage to store the purchased items.")
            return TradeResult.FAIL_NO_INPUT_SPACE
        if not self.is_creative and not self.can_pay(price):
            LOG.debug("Not enough money in storage to pay for the purchased items.")
            return TradeResult.FAIL_OUT_OF_STOCK

        context.collect_items(collectable)
        context.give_payment(price)
        if not self.is_creative:
            for item in collectable:
                self.storage.force_add_item(item)
            self.stored_money.remove(price)
            self._notify_if_out_of_stock(trade, trade_index)
        self.stats.increment(MONEY_PAID, price)
        self.events.publish(
            ItemTradeNotification(
                trade_index=trade_index,
                direction=trade.direction.name,
                requester=str(context.get_player_reference()),
                price=price,
                items=tuple(collectable),
            )
        )
        run_post_trade(trade.rules, trade, context, price, MoneyValue.empty())
        return TradeResult.SUCCESS

    def _execute_barter(self, context: TradeContext, trade: TradeSlot, trade_index: int) -> TradeResult:
        collectable = context.get_collectable_items(trade.get_item_requirement(2), trade.get_item_requirement(3))
        if collectable is None or not context.has_items(collectable):
            LOG.debug("Requester cannot provide the barter items for trade %s.", trade_index)
            return TradeResult.FAIL_CANNOT_AFFORD
        if not self.is_creative and not self.storage.has_space(collectable):
            LOG.debug("Not enough room in storage to store the bartered items.")
            return TradeResult.FAIL_NO_INPUT_SPACE
        if not self.is_creative and self.storage.out_of_stock(trade):
            LOG.debug("Not enough items in storage to carry out the trade at index %s.", trade_index)
            return TradeResult.FAIL_OUT_OF_STOCK
        sold_items = self._sell_stacks(trade)
        if sold_items is None:
            LOG.debug("No combination of stored items satisfies the trade at index %s.", trade_index)
            return TradeResult.FAIL_OUT_OF_STOCK
        if not context.can_fit_items(sold_items):
            LOG.debug("Not enough space to store the bartered items.")
            return TradeResult.FAIL_NO_OUTPUT_SPACE

        context.collect_items(collectable)
        if not self._put_items(context, sold_items):
            for item in collectable:
                if not context.put_item(item):
                    LOG.error("Could not return %sx %s to the requester", item.qty, item.item_id)
            return TradeResult.FAIL_NO_OUTPUT_SPACE

        if not self.is_creative:
            for item in collectable:
                self.storage.force_add_item(item)
            self.storage.remove_items(sold_items)
            self._notify_if_out_of_stock(trade, trade_index)
        self.events.publish(
            ItemTradeNotification(
                trade_index=trade_index,
                direction=trade.direction.name,
                requester=str(context.get_player_reference()),
                price=MoneyValue.empty(),
                items=tuple(sold_items),
                barter_items=tuple(collectable),
            )
        )
        run_post_trade(trade.rules, trade, context, MoneyValue.empty(), MoneyValue.empty())
        return TradeResult.SUCCESS

    def _sell_stacks(self, trade: TradeSlot) -> list[ItemStack] | None:
        if self.is_creative:
            return merge_stacks([req.stack.copy() for req in trade.sell_requirements()])
        return self.storage.pick_random_sell_stacks(trade, self.rng)

    def _put_items(self, context: TradeContext, items: list[ItemStack]) -> bool:
        """Place every item or take back the ones already placed."""
        for i, item in enumerate(items):
            if context.put_item(item):
                continue
            LOG.error("Not enough room for the output item. Giving refund & aborting trade!")
            for placed in items[:i]:
                context.collect_item(placed)
            return False
        return True

    def _notify_if_out_of_stock(self, trade: TradeSlot, trade_index: int) -> None:
        if not self.has_stock(trade):
            self.events.publish(OutOfStockNotification(trade_index))
