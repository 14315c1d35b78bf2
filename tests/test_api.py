from __future__ import annotations

import pytest

from app.shared.database.models import BuyerOrder, VendorOrder


@pytest.fixture()
def marketplace(make_user, make_product):
    buyer = make_user("buyer")
    v1 = make_user("vendor")
    v2 = make_user("vendor")
    admin = make_user("admin")
    p1 = make_product(v1, price=1000, category="ceramica")
    p2 = make_product(v2, price=5000, category="pintura")
    return {"buyer": buyer, "v1": v1, "v2": v2, "admin": admin, "p1": p1, "p2": p2}


def _checkout_payload(m) -> dict:
    return {
        "items": [
            {"product_id": m["p1"].id, "quantity": 2},
            {"product_id": m["p2"].id, "quantity": 1},
        ],
        "customer": {"full_name": "Ana Rodríguez", "email": "ana@example.com", "address": "San José"},
        "payment": {"method": "card", "card_last4": "4242"},
        "shipping": {"cost": 300},
    }


@pytest.fixture()
def checked_out(client, auth_headers, marketplace):
    response = client.post(
        "/api/v1/buyer-orders/checkout",
        json=_checkout_payload(marketplace),
        headers=auth_headers(marketplace["buyer"]),
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_checkout_creates_vendor_orders(checked_out, db_session) -> None:
    order = checked_out["order"]
    assert float(order["subtotal"]) == 7000
    assert float(order["total"]) == 7300
    assert order["code"].startswith("ORD-")

    fan_out = checked_out["fan_out"]
    assert fan_out["created_count"] == 2
    assert fan_out["errors"] == []
    assert db_session.query(VendorOrder).filter_by(buyer_order_id=order["id"]).count() == 2


def test_checkout_rejects_unknown_product(client, auth_headers, marketplace) -> None:
    payload = _checkout_payload(marketplace)
    payload["items"].append({"product_id": 9999, "quantity": 1})

    response = client.post(
        "/api/v1/buyer-orders/checkout", json=payload, headers=auth_headers(marketplace["buyer"])
    )

    assert response.status_code == 400
    assert "9999" in response.json()["detail"]


def test_buyer_sees_vendor_progress(client, auth_headers, marketplace, checked_out) -> None:
    order_id = checked_out["order"]["id"]

    response = client.get(f"/api/v1/buyer-orders/{order_id}", headers=auth_headers(marketplace["buyer"]))

    assert response.status_code == 200
    vendors = response.json()["vendors"]
    assert sorted(v["vendor_id"] for v in vendors) == sorted([marketplace["v1"].id, marketplace["v2"].id])
    assert all(v["status"] == "pending" for v in vendors)


def test_vendor_lists_only_own_orders(client, auth_headers, marketplace, checked_out) -> None:
    response = client.get("/api/v1/vendor-orders", headers=auth_headers(marketplace["v1"]))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    summary = body["orders"][0]
    assert summary["vendor_id"] == marketplace["v1"].id
    assert float(summary["vendor_total"]) == 2086
    assert float(summary["shipping_cost"]) == 86
    assert summary["other_vendors_in_order"] is True


def test_vendor_list_filters_by_status(client, auth_headers, marketplace, checked_out) -> None:
    response = client.get(
        "/api/v1/vendor-orders", params={"status": "shipped"}, headers=auth_headers(marketplace["v1"])
    )

    assert response.status_code == 200
    assert response.json()["total"] == 0


def test_vendor_updates_status_and_buyer_order_follows(client, auth_headers, marketplace, checked_out, db_session) -> None:
    order_id = checked_out["order"]["id"]
    vendor_orders = db_session.query(VendorOrder).filter_by(buyer_order_id=order_id).all()

    for vo in vendor_orders:
        vendor = marketplace["v1"] if vo.vendor_id == marketplace["v1"].id else marketplace["v2"]
        response = client.patch(
            f"/api/v1/vendor-orders/{vo.id}/status",
            json={"status": "shipped", "tracking_number": f"CR{vo.id}"},
            headers=auth_headers(vendor),
        )
        assert response.status_code == 200, response.text
        detail = response.json()["vendor_order"]
        assert detail["status"] == "shipped"
        assert detail["shipped_at"] is not None
        assert [h["status"] for h in detail["status_history"]] == ["pending", "shipped"]

    db_session.expire_all()
    assert db_session.get(BuyerOrder, order_id).status == "shipped"


def test_vendor_cannot_touch_foreign_order(client, auth_headers, marketplace, checked_out, db_session) -> None:
    foreign = db_session.query(VendorOrder).filter_by(vendor_id=marketplace["v2"].id).one()
    headers = auth_headers(marketplace["v1"])

    assert client.get(f"/api/v1/vendor-orders/{foreign.id}", headers=headers).status_code == 404
    response = client.patch(
        f"/api/v1/vendor-orders/{foreign.id}/status", json={"status": "cancelled"}, headers=headers
    )
    assert response.status_code == 404

    db_session.expire_all()
    assert db_session.get(VendorOrder, foreign.id).status == "pending"


def test_invalid_status_is_rejected(client, auth_headers, marketplace, checked_out, db_session) -> None:
    own = db_session.query(VendorOrder).filter_by(vendor_id=marketplace["v1"].id).one()

    response = client.patch(
        f"/api/v1/vendor-orders/{own.id}/status",
        json={"status": "teleported"},
        headers=auth_headers(marketplace["v1"]),
    )

    assert response.status_code == 422


def test_buyer_cannot_use_vendor_routes(client, auth_headers, marketplace) -> None:
    response = client.get("/api/v1/vendor-orders", headers=auth_headers(marketplace["buyer"]))
    assert response.status_code == 403


def test_missing_token_is_rejected(client) -> None:
    response = client.get("/api/v1/vendor-orders")
    assert response.status_code in (401, 403)


def test_admin_fan_out_retry_is_idempotent(client, auth_headers, marketplace, checked_out) -> None:
    order_id = checked_out["order"]["id"]

    response = client.post(
        f"/api/v1/vendor-orders/fan-out/{order_id}", headers=auth_headers(marketplace["admin"])
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["created"] == []
    assert len(body["already_existed"]) == 2


def test_admin_reconcile(client, auth_headers, marketplace, checked_out, db_session) -> None:
    order_id = checked_out["order"]["id"]
    vo = db_session.query(VendorOrder).filter_by(vendor_id=marketplace["v1"].id).one()
    vo.status = "cancelled"
    db_session.commit()

    response = client.post(
        f"/api/v1/vendor-orders/reconcile/{order_id}", headers=auth_headers(marketplace["admin"])
    )

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


def test_vendor_cannot_fan_out(client, auth_headers, marketplace, checked_out) -> None:
    order_id = checked_out["order"]["id"]

    response = client.post(
        f"/api/v1/vendor-orders/fan-out/{order_id}", headers=auth_headers(marketplace["v1"])
    )

    assert response.status_code == 403


def test_reconcile_unknown_order(client, auth_headers, marketplace) -> None:
    response = client.post(
        "/api/v1/vendor-orders/reconcile/999", headers=auth_headers(marketplace["admin"])
    )
    assert response.status_code == 404


def test_me_normalizes_role(client, auth_headers, make_user) -> None:
    seller = make_user("seller")

    response = client.get("/api/v1/auth/me", headers=auth_headers(seller))

    assert response.status_code == 200
    assert response.json()["role"] == "vendor"


def test_inactive_user_is_rejected(client, auth_headers, make_user) -> None:
    inactive = make_user("vendor", is_active=False)

    response = client.get("/api/v1/vendor-orders", headers=auth_headers(inactive))

    assert response.status_code == 401


@pytest.mark.parametrize("query", ["ana rodr", "ANA@EXAMPLE", "ord-"])
def test_vendor_list_search_matches_code_and_customer(client, auth_headers, marketplace, checked_out, query) -> None:
    response = client.get(
        "/api/v1/vendor-orders", params={"q": query}, headers=auth_headers(marketplace["v1"])
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["orders"][0]["buyer_order_code"] == checked_out["order"]["code"]


def test_vendor_list_search_without_match(client, auth_headers, marketplace, checked_out) -> None:
    response = client.get(
        "/api/v1/vendor-orders", params={"q": "pedro"}, headers=auth_headers(marketplace["v1"])
    )

    assert response.status_code == 200
    assert response.json()["total"] == 0


def test_admin_lists_all_vendor_orders(client, auth_headers, marketplace, checked_out) -> None:
    headers = auth_headers(marketplace["admin"])

    everything = client.get("/api/v1/vendor-orders", headers=headers).json()
    one_vendor = client.get(
        "/api/v1/vendor-orders", params={"vendor_id": marketplace["v2"].id}, headers=headers
    ).json()

    assert everything["total"] == 2
    assert one_vendor["total"] == 1
    assert one_vendor["orders"][0]["vendor_id"] == marketplace["v2"].id


def test_vendor_cannot_list_other_vendor(client, auth_headers, marketplace, checked_out) -> None:
    response = client.get(
        "/api/v1/vendor-orders",
        params={"vendor_id": marketplace["v2"].id},
        headers=auth_headers(marketplace["v1"]),
    )

    body = response.json()
    assert body["total"] == 1
    assert body["orders"][0]["vendor_id"] == marketplace["v1"].id
