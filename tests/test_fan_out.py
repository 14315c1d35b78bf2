from __future__ import annotations

from decimal import Decimal

import pytest

from app.core.exceptions import NotFoundError
from app.modules.vendor_orders.service import VendorOrdersService
from app.shared.database.models import BuyerOrder, VendorOrder, VendorOrderStatusHistory


@pytest.fixture()
def two_vendor_order(make_user, make_product, make_buyer_order, item):
    buyer = make_user("buyer")
    v1 = make_user("vendor")
    v2 = make_user("vendor")
    p1 = make_product(v1, price=1000, category="ceramica")
    p2 = make_product(v2, price=5000, category="pintura")
    order = make_buyer_order(buyer, [item(p1, quantity=2), item(p2, quantity=1)], shipping_cost=300)
    return order, v1, v2


def test_fan_out_splits_order_and_apportions_shipping(db_session, two_vendor_order) -> None:
    order, v1, v2 = two_vendor_order
    assert order.total == Decimal("7300")

    result = VendorOrdersService(db_session).fan_out_order(order.id)

    assert not result.has_errors
    assert len(result.created) == 2
    by_vendor = result.by_vendor

    first = by_vendor[v1.id]
    assert first.vendor_subtotal == Decimal("2000")
    assert first.shipping_cost == Decimal("86")
    assert first.vendor_total == Decimal("2086")
    assert first.other_vendors_in_order is True
    assert first.original_order_total == Decimal("7300")
    assert first.buyer_order_code == order.code

    second = by_vendor[v2.id]
    assert second.vendor_subtotal == Decimal("5000")
    assert second.shipping_cost == Decimal("214")
    assert second.vendor_total == Decimal("5214")
    assert second.other_vendors_in_order is True


def test_fan_out_copies_snapshots_and_initial_history(db_session, two_vendor_order) -> None:
    order, v1, _ = two_vendor_order

    result = VendorOrdersService(db_session).fan_out_order(order.id)
    vendor_order = result.by_vendor[v1.id]

    assert vendor_order.status == "pending"
    assert vendor_order.customer["full_name"] == "Ana Rodríguez"
    assert vendor_order.payment["method"] == "card"
    assert vendor_order.payment["total"] == 2086.0
    assert vendor_order.shipping["cost"] == 86.0
    assert vendor_order.shipping["estimated_delivery"] == "3-5 días hábiles"

    assert len(vendor_order.items) == 1
    snapshot = vendor_order.items[0]["product_snapshot"]
    assert snapshot["title"] == "Producto 1"
    assert snapshot["images"]

    assert [h.status for h in vendor_order.status_history] == ["pending"]
    assert vendor_order.status_history[0].notes == "Pedido creado"


def test_fan_out_does_not_touch_buyer_order(db_session, two_vendor_order) -> None:
    order, _, _ = two_vendor_order
    items_before = list(order.items)

    VendorOrdersService(db_session).fan_out_order(order.id)
    db_session.expire_all()

    refreshed = db_session.get(BuyerOrder, order.id)
    assert refreshed.status == "pending"
    assert refreshed.items == items_before
    assert refreshed.total == Decimal("7300")


def test_fan_out_is_idempotent(db_session, two_vendor_order) -> None:
    order, _, _ = two_vendor_order
    service = VendorOrdersService(db_session)

    first = service.fan_out_order(order.id)
    second = service.fan_out_order(order.id)

    assert len(first.created) == 2
    assert second.created == []
    assert {vo.id for vo in second.already_existed} == {vo.id for vo in first.created}
    assert db_session.query(VendorOrder).filter_by(buyer_order_id=order.id).count() == 2


def test_fan_out_single_vendor_gets_full_shipping(db_session, make_user, make_product, make_buyer_order, item) -> None:
    buyer = make_user("buyer")
    vendor = make_user("vendor")
    p1 = make_product(vendor, price=1500)
    p2 = make_product(vendor, price=700)
    order = make_buyer_order(buyer, [item(p1, quantity=3), item(p2, quantity=2)], shipping_cost=450)

    result = VendorOrdersService(db_session).fan_out_order(order.id)

    assert len(result.created) == 1
    vendor_order = result.created[0]
    assert vendor_order.shipping_cost == Decimal("450")
    assert vendor_order.vendor_total == order.total
    assert vendor_order.other_vendors_in_order is False


def test_fan_out_skips_items_without_seller(db_session, make_user, make_product, make_buyer_order, item) -> None:
    buyer = make_user("buyer")
    vendor = make_user("vendor")
    product = make_product(vendor, price=1000)
    orphan = {"product_id": 999, "seller_id": None, "name": "Sin vendedor", "price": 500, "quantity": 1}
    order = make_buyer_order(buyer, [item(product), orphan])

    result = VendorOrdersService(db_session).fan_out_order(order.id)

    assert len(result.created) == 1
    assert [i["product_id"] for i in result.created[0].items] == [product.id]


def test_fan_out_uses_empty_snapshot_for_missing_product(db_session, make_user, make_buyer_order) -> None:
    buyer = make_user("buyer")
    vendor = make_user("vendor")
    ghost = {"product_id": 4242, "seller_id": vendor.id, "name": "Producto borrado", "price": 800, "quantity": 1}
    order = make_buyer_order(buyer, [ghost])

    result = VendorOrdersService(db_session).fan_out_order(order.id)

    item = result.created[0].items[0]
    assert item["name"] == "Producto borrado"
    assert item["product_snapshot"] == {"title": None, "images": [], "description": None}


def test_fan_out_failure_for_one_vendor_does_not_stop_others(db_session, two_vendor_order, monkeypatch) -> None:
    order, v1, v2 = two_vendor_order
    service = VendorOrdersService(db_session)
    failing_product = next(i["product_id"] for i in order.items if i["seller_id"] == v1.id)
    original = service.catalog.snapshot_or_empty

    def flaky_snapshot(product_id):
        if product_id == failing_product:
            raise RuntimeError("catálogo caído")
        return original(product_id)

    monkeypatch.setattr(service.catalog, "snapshot_or_empty", flaky_snapshot)

    result = service.fan_out_order(order.id)

    assert [e.vendor_id for e in result.errors] == [v1.id]
    assert "catálogo caído" in result.errors[0].error
    assert [vo.vendor_id for vo in result.created] == [v2.id]

    # Reintento sin el fallo: solo se crea el que faltaba
    monkeypatch.setattr(service.catalog, "snapshot_or_empty", original)
    retry = service.fan_out_order(order.id)

    assert [vo.vendor_id for vo in retry.created] == [v1.id]
    assert [vo.vendor_id for vo in retry.already_existed] == [v2.id]


def test_fan_out_recovers_from_concurrent_insert(db_session, two_vendor_order, monkeypatch) -> None:
    order, _, _ = two_vendor_order
    service = VendorOrdersService(db_session)
    service.fan_out_order(order.id)

    original = service.repository.find_by_buyer_order_and_vendor
    calls = {"n": 0}

    def racing_lookup(buyer_order_id, vendor_id):
        # La primera consulta de cada vendedor no ve la fila creada "por otro proceso"
        calls["n"] += 1
        if calls["n"] % 2 == 1:
            return None
        return original(buyer_order_id, vendor_id)

    monkeypatch.setattr(service.repository, "find_by_buyer_order_and_vendor", racing_lookup)

    result = service.fan_out_order(order.id)

    assert result.created == []
    assert result.errors == []
    assert len(result.already_existed) == 2
    assert db_session.query(VendorOrder).count() == 2
    assert db_session.query(VendorOrderStatusHistory).count() == 2


def test_fan_out_ignores_malformed_seller_id(db_session, make_user, make_product, make_buyer_order, item) -> None:
    buyer = make_user("buyer")
    vendor = make_user("vendor")
    product = make_product(vendor, price=1000)
    broken = {"product_id": 77, "seller_id": "not-a-vendor", "name": "Dato roto", "price": 500, "quantity": 1}
    order = make_buyer_order(buyer, [broken, item(product)])

    result = VendorOrdersService(db_session).fan_out_order(order.id)

    assert result.errors == []
    assert [vo.vendor_id for vo in result.created] == [vendor.id]


def test_fan_out_unknown_buyer_order(db_session) -> None:
    with pytest.raises(NotFoundError):
        VendorOrdersService(db_session).fan_out_order(12345)
