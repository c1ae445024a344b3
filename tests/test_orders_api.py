"""Integration tests for order creation via TestClient."""

import json

from sqlmodel import select

from conftest import order_payload
from storefront.models.order import Order


class TestCreateOrderApi:
    def test_create_returns_order_id(self, client, session):
        response = client.post("/orders", json=order_payload())

        assert response.status_code == 201
        order_id = response.json()["orderId"]
        order = session.get(Order, order_id)
        assert order.total_amount == 1250
        assert order.status == "Received"

    def test_empty_cart_returns_400_and_creates_nothing(self, client, session):
        response = client.post("/orders", json=order_payload(cartItems=[]))

        assert response.status_code == 400
        assert response.json()["message"] == "Cart is empty"
        assert session.exec(select(Order)).all() == []

    def test_malformed_body_returns_400_message(self, client):
        payload = order_payload(cartItems=[{"designCode": "GX-1", "price": "lots", "qty": 1}])
        response = client.post("/orders", json=payload)

        assert response.status_code == 400
        assert "message" in response.json()

    def test_infinite_price_is_rejected(self, client, session):
        payload = order_payload(cartItems=[{"designCode": "GX-1", "price": "inf", "qty": 1}])
        response = client.post("/orders", json=payload)

        assert response.status_code == 400
        assert "message" in response.json()
        assert session.exec(select(Order)).all() == []

    def test_nan_total_is_rejected(self, client, session):
        response = client.post("/orders", json=order_payload(totalAmount="nan"))
        assert response.status_code == 400

        body = json.dumps(order_payload()).replace('"COD"', '"COD", "totalAmount": NaN')
        raw = client.post("/orders", content=body, headers={"Content-Type": "application/json"})
        assert raw.status_code == 400
        assert session.exec(select(Order)).all() == []

    def test_unknown_payment_method_is_rejected(self, client):
        response = client.post("/orders", json=order_payload(paymentMethod="BARTER"))
        assert response.status_code == 400

    def test_idempotency_key_collapses_double_submit(self, client, session):
        headers = {"Idempotency-Key": "cart-123-nonce-1"}
        first = client.post("/orders", json=order_payload(), headers=headers)
        second = client.post("/orders", json=order_payload(), headers=headers)

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["orderId"] == second.json()["orderId"]
        assert len(session.exec(select(Order)).all()) == 1

    def test_signed_in_order_is_not_guest(self, client, session, user, user_headers):
        response = client.post(
            "/orders", json=order_payload(email="gift@example.com"), headers=user_headers
        )

        order = session.get(Order, response.json()["orderId"])
        assert order.is_guest is False
        assert order.user_email == user.email

    def test_invalid_bearer_token_is_rejected(self, client):
        response = client.post(
            "/orders", json=order_payload(), headers={"Authorization": "Bearer nonsense"}
        )
        assert response.status_code == 401


class TestMyOrdersApi:
    def test_lists_orders_for_signed_in_user(self, client, user_headers, make_order):
        mine = make_order()
        make_order(email="other@example.com")

        response = client.get("/users/me/orders", headers=user_headers)

        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [mine.id]
        assert response.json()[0]["cartItems"][0]["designCode"] == "GX-1"

    def test_requires_sign_in(self, client):
        assert client.get("/users/me/orders").status_code == 401

    def test_admin_token_is_not_a_user_session(self, client, admin_headers):
        assert client.get("/users/me/orders", headers=admin_headers).status_code == 401
