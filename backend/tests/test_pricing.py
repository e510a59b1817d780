from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from backend.services.pricing import latest_price_map, quote_order


def test_quote_scenario_priced_and_unpriced_product():
    """
    GIVEN
    - A à 10/kg, B sans prix
    - commande [A x2, B x3]

    THEN
    - sous-totaux 20 et 0, total 60 (40 de frais)
    """
    quote = quote_order([("A", 2), ("B", 3)], {"A": Decimal("10")})

    assert [ln.subtotal for ln in quote.lines] == [Decimal("20"), Decimal("0")]
    assert quote.items_total == Decimal("20")
    assert quote.total == Decimal("60")


def test_quote_empty_price_map_is_fee_only():
    quote = quote_order([("A", 5)], {})
    assert quote.lines[0].unit_price == Decimal("0")
    assert quote.total == Decimal("40")


def test_quote_custom_fee():
    quote = quote_order([("A", 1)], {"A": Decimal("2.50")}, fee=Decimal("15"))
    assert quote.total == Decimal("17.50")


def test_quote_keeps_duplicate_lines_separate():
    quote = quote_order([("A", 1), ("A", 4)], {"A": Decimal("3")})
    assert len(quote.lines) == 2
    assert quote.total == Decimal("55")


def test_quote_is_idempotent_and_does_not_touch_prices():
    prices = {"A": Decimal("1.25"), "B": Decimal("7")}
    snapshot = dict(prices)

    first = quote_order([("A", 4), ("B", 2)], prices)
    second = quote_order([("A", 4), ("B", 2)], prices)

    assert first == second
    assert prices == snapshot


def test_quote_rejects_zero_quantity():
    with pytest.raises(ValueError):
        quote_order([("A", 0)], {"A": Decimal("1")})


def test_latest_price_map_uses_most_recent_set_at(db_session, make_product, set_price):
    onions = make_product("Onions")
    oil = make_product("Cooking Oil", unit="ltr")
    t0 = datetime(2026, 10, 1, 6, 0, tzinfo=timezone.utc)

    # inséré dans le désordre : c'est set_at qui compte
    set_price(onions, "12", set_at=t0 + timedelta(hours=2))
    set_price(onions, "9", set_at=t0)
    set_price(oil, "150", set_at=t0 + timedelta(hours=1))

    prices = latest_price_map(db_session)

    assert prices == {onions.id: Decimal("12"), oil.id: Decimal("150")}


def test_latest_price_map_omits_unpriced_products(db_session, make_product):
    make_product("Tomatoes")
    assert latest_price_map(db_session) == {}


def test_latest_price_map_same_set_at_last_inserted_wins(db_session, make_product, set_price):
    """
    GIVEN
    - pour chaque produit, deux prix au MÊME set_at : 1 puis 2

    THEN
    - le prix inséré en dernier (2) est le prix courant, pour tous les produits
    """
    t0 = datetime(2026, 10, 1, 6, 0, tzinfo=timezone.utc)
    products = [make_product(f"P{i}") for i in range(40)]
    for p in products:
        set_price(p, "1", set_at=t0)
        set_price(p, "2", set_at=t0)

    prices = latest_price_map(db_session)

    assert {prices[p.id] for p in products} == {Decimal("2")}
