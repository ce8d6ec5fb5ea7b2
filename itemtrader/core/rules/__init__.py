"""Trade rules attached to trade slots.

How to add a new rule:
1) Create a rule module in rules/builtin (e.g. my_rule.py) with a TradeRule
   dataclass subclass and a unique ``rule_type``.
2) Override the hooks it needs: pre_trade, trade_cost, post_trade, and the
   json/persistent (de)serialization pairs.
3) Add it to BUILTIN_RULE_TYPES, or pass it in TraderConfig.rule_types.
"""

from .base import (
    TradeRule,
    load_persistent_data,
    parse_rule,
    parse_rules,
    run_post_trade,
    run_pre_trade,
    run_trade_cost,
    save_persistent_data,
    save_rules_to_json,
)
from .builtin import BUILTIN_RULE_TYPES, PlayerBlacklistRule, PriceDiscountRule, TradeLimitRule

__all__ = [
    "TradeRule",
    "load_persistent_data",
    "parse_rule",
    "parse_rules",
    "run_post_trade",
    "run_pre_trade",
    "run_trade_cost",
    "save_persistent_data",
    "save_rules_to_json",
    "BUILTIN_RULE_TYPES",
    "PlayerBlacklistRule",
    "PriceDiscountRule",
    "TradeLimitRule",
]
