from .blacklist_rule import PlayerBlacklistRule
from .price_discount_rule import PriceDiscountRule
from .trade_limit_rule import TradeLimitRule

BUILTIN_RULE_TYPES: dict[str, type] = {
    PlayerBlacklistRule.rule_type: PlayerBlacklistRule,
    PriceDiscountRule.rule_type: PriceDiscountRule,
    TradeLimitRule.rule_type: TradeLimitRule,
}

__all__ = [
    "BUILTIN_RULE_TYPES",
    "PlayerBlacklistRule",
    "PriceDiscountRule",
    "TradeLimitRule",
]
