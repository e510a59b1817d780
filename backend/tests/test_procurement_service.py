from decimal import Decimal

import pytest
from sqlalchemy import select

from backend.app.db.models.models_v1 import ProcurementPrice
from backend.app.db.models.core_types import OrderStatus
from backend.services.errors import NotFound
from backend.services.procurement import (
    aggregated_procurement_list,
    partner_earnings,
    set_procurement_price,
)


def test_procurement_list_sums_placed_orders(db_session, make_user, make_product, make_order):
    """
    GIVEN
    - deux commandes PLACED : A x2 et A x5
    - une commande PROCURING : A x100 (déjà prise en charge)
    - un produit C jamais commandé

    THEN
    - une seule ligne pour A, total 7 ; C absent
    """
    vendor = make_user()
    a = make_product("A")
    b = make_product("B", unit="ltr")
    make_product("C")

    make_order(vendor, [(a, 2), (b, 1)])
    make_order(vendor, [(a, 5)])
    make_order(vendor, [(a, 100)], status=OrderStatus.procuring)

    rows = aggregated_procurement_list(db_session)

    by_id = {r.product_id: r for r in rows}
    assert len(rows) == len(by_id)
    assert set(by_id) == {a.id, b.id}
    assert by_id[a.id].total_quantity == 7
    assert by_id[a.id].product_name == "A"
    assert by_id[b.id].unit == "ltr"


def test_procurement_list_empty_without_placed_orders(db_session, make_user, make_product, make_order):
    vendor = make_user()
    make_order(vendor, [(make_product("A"), 3)], status=OrderStatus.delivered)
    assert aggregated_procurement_list(db_session) == []


def test_earnings_zero(db_session):
    e = partner_earnings(db_session)
    assert e.total_deliveries == 0
    assert e.total_earnings == Decimal("0")


def test_earnings_three_delivered(db_session, make_user, make_product, make_order):
    vendor = make_user()
    a = make_product("A")
    for _ in range(3):
        make_order(vendor, [(a, 1)], status=OrderStatus.delivered)
    make_order(vendor, [(a, 1)], status=OrderStatus.on_the_way)

    e = partner_earnings(db_session, partner_id="whoever")

    assert e.total_deliveries == 3
    assert e.total_earnings == Decimal("120")


def test_set_price_appends_history(db_session, make_product):
    a = make_product("A")

    set_procurement_price(db_session, product_id=a.id, price=Decimal("10"))
    set_procurement_price(db_session, product_id=a.id, price=Decimal("12.50"))

    rows = db_session.execute(select(ProcurementPrice).where(ProcurementPrice.product_id == a.id)).scalars().all()
    assert sorted(r.price for r in rows) == [Decimal("10"), Decimal("12.50")]


def test_set_price_unknown_product(db_session):
    with pytest.raises(NotFound):
        set_procurement_price(db_session, product_id="missing", price=Decimal("1"))
