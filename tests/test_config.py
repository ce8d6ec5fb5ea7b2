from __future__ import annotations

import logging

from itemtrader import config
from itemtrader.config import DEFAULT_MAX_TRADES, DEFAULT_STACK_LIMIT, TraderConfig
from itemtrader.core.engine import TradeRestriction
from itemtrader.core.rules import BUILTIN_RULE_TYPES


def test_trader_config_defaults() -> None:
    cfg = TraderConfig(base_stack_limit=DEFAULT_STACK_LIMIT, max_trades=DEFAULT_MAX_TRADES)

    assert cfg.base_stack_limit == 576
    assert cfg.max_trades == 100
    assert cfg.rule_types == BUILTIN_RULE_TYPES
    assert cfg.rule_types is not BUILTIN_RULE_TYPES
    assert cfg.restriction_for(5) is TradeRestriction.NONE


def test_is_admin_ignores_case_and_blanks() -> None:
    cfg = TraderConfig(admins=frozenset({"op"}))

    assert cfg.is_admin("OP") is True
    assert cfg.is_admin(" op ") is True
    assert cfg.is_admin("steve") is False
    assert cfg.is_admin(None) is False


def test_configure_logging_uses_level_name(monkeypatch) -> None:
    seen: dict = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: seen.update(kwargs))

    config.configure_logging("debug")
    assert seen["level"] == logging.DEBUG

    config.configure_logging("nonsense")
    assert seen["level"] == logging.WARNING
