from __future__ import annotations

from enum import Enum


class TradeResult(Enum):
    SUCCESS = "success"
    FAIL_INVALID_TRADE = "fail_invalid_trade"
    FAIL_NULL = "fail_null"
    FAIL_TRADE_RULE_DENIAL = "fail_trade_rule_denial"
    FAIL_CANNOT_AFFORD = "fail_cannot_afford"
    FAIL_OUT_OF_STOCK = "fail_out_of_stock"
    FAIL_NO_OUTPUT_SPACE = "fail_no_output_space"
    FAIL_NO_INPUT_SPACE = "fail_no_input_space"

    @property
    def is_success(self) -> bool:
        return self is TradeResult.SUCCESS


class TradeDirection(Enum):
    NONE = "NONE"
    SALE = "SALE"
    PURCHASE = "PURCHASE"
    BARTER = "BARTER"

    @classmethod
    def parse(cls, raw: object) -> "TradeDirection":
        text = str(raw or "").strip().upper()
        try:
            return cls(text)
        except ValueError as e:
            raise ValueError(f"unknown trade type: {raw!r}") from e
