from datetime import datetime, timedelta, timezone

from conftest import auth, order_payload, tomorrow_slot
from laundry.models.coupon import Coupon
from laundry.models.user import Profile


def _coupon(client, admin_id, **overrides):
    data = {"code": "KESA10", "discount_type": "percentage", "discount_value": 10}
    data.update(overrides)
    response = client.post("/coupons", json=data, headers=auth(admin_id))
    assert response.status_code == 201
    return response.json()


def test_create_order_uses_catalog_prices(client, customer_id, products):
    """Prices sent by the client are ignored"""
    payload = order_payload(cart_items=[{"service_id": "wash_fold", "quantity": 2, "price": 0.01}])
    response = client.post("/orders", json=payload, headers=auth(customer_id))
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["price"] == 51.80
    assert data["final_price"] == 51.80
    assert data["items"][0]["unit_price"] == 25.90
    assert data["user_id"] == customer_id
    assert data["driver_id"] is None


def test_create_order_derives_return_estimate(client, customer_id, products):
    slot = tomorrow_slot("18:00")
    response = client.post("/orders", json=order_payload(selected_time_slot=slot), headers=auth(customer_id))
    assert response.status_code == 201
    data = response.json()
    assert data["pickup_time"] == "18:00"
    assert data["return_time"] == "08:00"
    pickup_day = datetime.strptime(data["pickup_date"], "%Y-%m-%d")
    assert data["return_date"] == (pickup_day + timedelta(days=1)).strftime("%Y-%m-%d")


def test_asap_order_gets_server_slot(client, customer_id, products):
    payload = order_payload(pickup_option="asap", selected_time_slot=None)
    response = client.post("/orders", json=payload, headers=auth(customer_id))
    assert response.status_code == 201
    assert response.json()["pickup_time"] in {"08:00", "10:00", "12:00", "14:00", "16:00", "18:00"}


def test_choose_time_requires_slot(client, customer_id, products):
    payload = order_payload(selected_time_slot=None)
    response = client.post("/orders", json=payload, headers=auth(customer_id))
    assert response.status_code == 400


def test_past_pickup_rejected(client, customer_id, products):
    yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).strftime("%Y-%m-%d")
    payload = order_payload(selected_time_slot={"date": yesterday, "start": "10:00", "end": "12:00"})
    response = client.post("/orders", json=payload, headers=auth(customer_id))
    assert response.status_code == 400
    assert response.json()["error"]["detail"] == "Pickup time must be in the future"


def test_off_grid_pickup_rejected(client, customer_id, products):
    slot = tomorrow_slot()
    slot.update(start="09:00", end="11:00")
    response = client.post("/orders", json=order_payload(selected_time_slot=slot), headers=auth(customer_id))
    assert response.status_code == 400


def test_unknown_product_rejected(client, customer_id, products):
    payload = order_payload(cart_items=[{"service_id": "nope", "quantity": 1}])
    response = client.post("/orders", json=payload, headers=auth(customer_id))
    assert response.status_code == 400
    assert response.json()["error"]["detail"] == "Invalid product: nope"


def test_inactive_product_rejected(client, customer_id, products):
    payload = order_payload(cart_items=[{"service_id": "retired", "quantity": 1}])
    response = client.post("/orders", json=payload, headers=auth(customer_id))
    assert response.status_code == 400


def test_rug_priced_by_area(client, customer_id, products):
    payload = order_payload(cart_items=[
        {"service_id": "rug_wash", "quantity": 1, "rug_dimensions": {"length": 120, "width": 180}},
    ])
    response = client.post("/orders", json=payload, headers=auth(customer_id))
    assert response.status_code == 201
    data = response.json()
    assert data["final_price"] == 49.90
    assert data["items"][0]["item_metadata"] == {"rug_dimensions": {"length": 120, "width": 180}}


def test_rug_without_dimensions_rejected(client, customer_id, products):
    payload = order_payload(cart_items=[{"service_id": "rug_wash", "quantity": 1}])
    assert client.post("/orders", json=payload, headers=auth(customer_id)).status_code == 400


def test_oversized_rug_fails_schema(client, customer_id, products):
    payload = order_payload(cart_items=[
        {"service_id": "rug_wash", "quantity": 1, "rug_dimensions": {"length": 250, "width": 100}},
    ])
    assert client.post("/orders", json=payload, headers=auth(customer_id)).status_code == 422


def test_bad_phone_fails_schema(client, customer_id, products):
    payload = order_payload(phone="call me")
    assert client.post("/orders", json=payload, headers=auth(customer_id)).status_code == 422


def test_coupon_applied_and_counted(client, admin_id, customer_id, products, db):
    _coupon(client, admin_id)
    response = client.post("/orders", json=order_payload(coupon_code="kesa10"), headers=auth(customer_id))
    assert response.status_code == 201
    data = response.json()
    assert data["price"] == 25.90
    assert data["final_price"] == 23.31
    assert data["discount_code"] == "KESA10"
    assert db.query(Coupon).filter(Coupon.code == "KESA10").one().usage_count == 1


def test_expired_coupon_hard_rejected(client, admin_id, customer_id, products):
    now = datetime.now(timezone.utc)
    _coupon(
        client, admin_id,
        valid_from=(now - timedelta(days=5)).isoformat(),
        valid_until=(now - timedelta(days=1)).isoformat(),
    )
    response = client.post("/orders", json=order_payload(coupon_code="KESA10"), headers=auth(customer_id))
    assert response.status_code == 400
    assert response.json()["error"]["detail"] == "Coupon is expired"
    assert client.get("/orders", headers=auth(customer_id)).json() == []


def test_unknown_coupon_hard_rejected(client, customer_id, products):
    response = client.post("/orders", json=order_payload(coupon_code="GHOST"), headers=auth(customer_id))
    assert response.status_code == 400
    assert response.json()["error"]["detail"] == "Invalid coupon code"


def test_coupon_usage_limit(client, admin_id, customer_id, products):
    _coupon(client, admin_id, usage_limit=1)
    first = client.post("/orders", json=order_payload(coupon_code="KESA10"), headers=auth(customer_id))
    assert first.status_code == 201
    second = client.post("/orders", json=order_payload(coupon_code="KESA10"), headers=auth(customer_id))
    assert second.status_code == 400
    assert second.json()["error"]["detail"] == "Coupon usage limit reached"
    assert len(client.get("/orders", headers=auth(customer_id)).json()) == 1


def test_free_payment_requires_zero_total(client, admin_id, customer_id, products):
    response = client.post("/orders", json=order_payload(payment_method="free"), headers=auth(customer_id))
    assert response.status_code == 400

    _coupon(client, admin_id, code="ILMAINEN", discount_type="fixed", discount_value=100)
    response = client.post(
        "/orders", json=order_payload(payment_method="free", coupon_code="ILMAINEN"), headers=auth(customer_id)
    )
    assert response.status_code == 201
    assert response.json()["final_price"] == 0


def test_validate_writes_nothing(client, customer_id, products):
    response = client.post("/orders/validate", json=order_payload(), headers=auth(customer_id))
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is True
    assert data["subtotal"] == 25.90
    assert data["items"][0]["name"] == "Pesu ja viikkaus"
    assert data["estimated_return_slot"]["start"] == "15:00"
    assert client.get("/orders", headers=auth(customer_id)).json() == []


def test_drivers_cannot_place_orders(client, driver_id, products):
    response = client.post("/orders", json=order_payload(), headers=auth(driver_id))
    assert response.status_code == 403


def test_order_syncs_profile(client, customer_id, products, db):
    client.post("/orders", json=order_payload(phone="040 555 1234"), headers=auth(customer_id))
    profile = db.query(Profile).filter(Profile.user_id == customer_id).one()
    assert profile.phone == "040 555 1234"
    assert profile.address == "Mannerheimintie 1, Helsinki"


def test_orders_are_private(client, customer_id, other_customer_id, place_order):
    order = place_order(customer_id)
    assert client.get(f"/orders/{order['id']}", headers=auth(customer_id)).status_code == 200
    assert client.get(f"/orders/{order['id']}", headers=auth(other_customer_id)).status_code == 404
    assert client.get("/orders", headers=auth(other_customer_id)).json() == []


def test_admin_sees_all_orders(client, admin_id, customer_id, other_customer_id, place_order):
    place_order(customer_id)
    place_order(other_customer_id)
    assert len(client.get("/orders", headers=auth(admin_id)).json()) == 2


def test_update_instructions(client, customer_id, other_customer_id, place_order):
    order = place_order(customer_id)
    response = client.patch(
        f"/orders/{order['id']}/instructions",
        json={"special_instructions": "Ovikoodi 1234"},
        headers=auth(customer_id),
    )
    assert response.status_code == 200
    assert response.json()["special_instructions"] == "Ovikoodi 1234"

    response = client.patch(
        f"/orders/{order['id']}/instructions",
        json={"special_instructions": "x"},
        headers=auth(other_customer_id),
    )
    assert response.status_code == 404
