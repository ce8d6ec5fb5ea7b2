from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Mapping

from itemtrader.core.models.trade_result import TradeDirection
from itemtrader.core.models.money import MoneyValue

if TYPE_CHECKING:
    from itemtrader.core.engine.trade_context import TradeContext
    from itemtrader.core.engine.trade_slot import TradeSlot


LOG = logging.getLogger(__name__)

_ALL_DIRECTIONS = frozenset({TradeDirection.SALE, TradeDirection.PURCHASE, TradeDirection.BARTER})


@dataclass
class TradeRule:
    """Veto and side-effect hook attached to a single trade slot.

    Subclasses override the hooks they need. ``save_json``/``load_json`` carry
    the static configuration; ``save_persistent``/``load_persistent`` carry
    state that changes while the trader is in use.
    """

    rule_type: ClassVar[str] = ""
    applies_to: ClassVar[frozenset[TradeDirection]] = _ALL_DIRECTIONS

    enabled: bool = True

    def allowed_for(self, direction: TradeDirection) -> bool:
        return direction in self.applies_to

    def pre_trade(self, slot: "TradeSlot", context: "TradeContext") -> bool:
        return True

    def trade_cost(self, slot: "TradeSlot", context: "TradeContext", cost: MoneyValue) -> MoneyValue:
        return cost

    def post_trade(
        self,
        slot: "TradeSlot",
        context: "TradeContext",
        price: MoneyValue,
        taxes_paid: MoneyValue,
    ) -> None:
        return None

    def save_json(self, data: dict[str, Any]) -> None:
        return None

    def load_json(self, data: Mapping[str, Any]) -> None:
        return None

    def save_persistent(self, tag: dict[str, Any]) -> bool:
        return False

    def load_persistent(self, tag: Mapping[str, Any]) -> None:
        return None

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"Type": self.rule_type, "Enabled": self.enabled}
        self.save_json(data)
        return data


def run_pre_trade(rules: Iterable[TradeRule], slot: "TradeSlot", context: "TradeContext") -> bool:
    for rule in rules:
        if not rule.enabled:
            continue
        if not rule.pre_trade(slot, context):
            LOG.debug("Trade denied by rule %s", rule.rule_type)
            return False
    return True


def run_trade_cost(
    rules: Iterable[TradeRule], slot: "TradeSlot", context: "TradeContext", cost: MoneyValue
) -> MoneyValue:
    for rule in rules:
        if rule.enabled:
            cost = rule.trade_cost(slot, context, cost)
    return cost


def run_post_trade(
    rules: Iterable[TradeRule],
    slot: "TradeSlot",
    context: "TradeContext",
    price: MoneyValue,
    taxes_paid: MoneyValue,
) -> None:
    for rule in rules:
        if rule.enabled:
            rule.post_trade(slot, context, price, taxes_paid)


def save_rules_to_json(rules: Iterable[TradeRule]) -> list[dict[str, Any]]:
    return [rule.to_json() for rule in rules]


def parse_rule(raw: object, rule_types: Mapping[str, type]) -> TradeRule:
    if not isinstance(raw, Mapping):
        raise ValueError("rule entry must be an object")
    rule_type = str(raw.get("Type") or "").strip()
    cls = rule_types.get(rule_type)
    if cls is None:
        raise ValueError(f"unknown trade rule type: {rule_type!r}")
    rule = cls()
    rule.enabled = bool(raw.get("Enabled", True))
    rule.load_json(raw)
    return rule


def parse_rules(raw_rules: object, rule_types: Mapping[str, type]) -> list[TradeRule]:
    if not isinstance(raw_rules, list):
        raise ValueError("rules must be a list")
    rules: list[TradeRule] = []
    for idx, raw in enumerate(raw_rules):
        try:
            rules.append(parse_rule(raw, rule_types))
        except (ValueError, TypeError, KeyError) as e:
            LOG.error("Error parsing trade rule at index %s: %s", idx, e)
    return rules


def save_persistent_data(tag: dict[str, Any], rules: Iterable[TradeRule], key: str) -> bool:
    rows: list[dict[str, Any]] = []
    relevant = False
    for rule in rules:
        row: dict[str, Any] = {"Type": rule.rule_type}
        if rule.save_persistent(row):
            relevant = True
        rows.append(row)
    if relevant:
        tag[key] = rows
    return relevant


def load_persistent_data(tag: Mapping[str, Any], rules: list[TradeRule], key: str) -> None:
    rows = tag.get(key)
    if not isinstance(rows, list):
        return
    for rule, row in zip(rules, rows):
        if not isinstance(row, Mapping) or row.get("Type") != rule.rule_type:
            LOG.warning("Persistent data does not match rule %s, skipping", rule.rule_type)
            continue
        rule.load_persistent(row)
