from __future__ import annotations

import pytest

from itemtrader.core.models import MoneyStorage, MoneyValue, no_tax


def test_money_arithmetic_and_ordering() -> None:
    assert MoneyValue.of(7) + MoneyValue.of(3) == MoneyValue.of(10)
    assert MoneyValue.of(7) - MoneyValue.of(7) == MoneyValue.empty()
    assert MoneyValue.of(3) < MoneyValue.of(7)
    assert MoneyValue.empty() == MoneyValue.of(0, "gem")
    assert MoneyValue.of(-4).is_empty()
    with pytest.raises(ValueError):
        MoneyValue.of(3) - MoneyValue.of(4)
    with pytest.raises(ValueError):
        MoneyValue.of(3) + MoneyValue.of(4, "gem")


def test_money_json() -> None:
    assert MoneyValue.from_json(12) == MoneyValue.of(12)
    assert MoneyValue.from_json({"Currency": "gem", "Value": 2}) == MoneyValue.of(2, "gem")
    assert MoneyValue.from_json({"Free": True}).free is True
    assert MoneyValue.free_price().to_json() == {"Free": True}
    for bad in (True, "12", {"Currency": "gem"}, {"Value": -1}):
        with pytest.raises(ValueError):
            MoneyValue.from_json(bad)


def test_no_tax_keeps_full_amount() -> None:
    net, tax = no_tax(MoneyValue.of(9))

    assert net == MoneyValue.of(9)
    assert tax.is_empty()


def test_money_storage_keeps_currencies_apart() -> None:
    funds = MoneyStorage.of(50)
    funds.add(MoneyValue.of(4, "gem"))

    assert funds.get() == MoneyValue.of(50)
    assert funds.get("gem") == MoneyValue.of(4, "gem")
    assert funds.contains(MoneyValue.of(5, "gem")) is False
    assert funds.remove(MoneyValue.of(5, "gem")) is False
    assert funds.remove(MoneyValue.of(4, "gem")) is True
    assert funds.get("gem").is_empty()
    assert funds.values() == [MoneyValue.of(50)]
    assert funds.remove(MoneyValue.empty()) is True
    assert MoneyStorage().is_empty()


def test_money_storage_json() -> None:
    funds = MoneyStorage([MoneyValue.of(3, "gem"), MoneyValue.of(8)])

    assert funds.to_json() == [{"Currency": "coin", "Value": 8}, {"Currency": "gem", "Value": 3}]
    assert MoneyStorage.from_json(funds.to_json()) == funds
    assert MoneyStorage.from_json(12) == MoneyStorage.of(12)
    assert MoneyStorage.from_json([]).is_empty()
    with pytest.raises(ValueError):
        MoneyStorage.from_json([{"Value": -1}])
