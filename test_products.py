from conftest import auth, order_payload


def test_public_catalog_hides_inactive(client, products):
    response = client.get("/products")
    assert response.status_code == 200
    ids = {p["product_id"] for p in response.json()}
    assert ids == {"wash_fold", "shirt", "rug_wash"}


def test_admin_sees_whole_catalog(client, admin_id, products):
    response = client.get("/products/all", headers=auth(admin_id))
    assert "retired" in {p["product_id"] for p in response.json()}


def test_create_product(client, admin_id):
    response = client.post(
        "/products",
        json={"product_id": "duvet", "name": "Peitto", "category": "laundry", "base_price": 19.9},
        headers=auth(admin_id),
    )
    assert response.status_code == 201
    assert response.json()["pricing_model"] == "fixed"

    duplicate = client.post(
        "/products", json={"product_id": "duvet", "name": "Peitto", "base_price": 19.9}, headers=auth(admin_id)
    )
    assert duplicate.status_code == 400


def test_catalog_changes_are_admin_only(client, customer_id, products):
    response = client.patch("/products/shirt", json={"base_price": 0}, headers=auth(customer_id))
    assert response.status_code == 403


def test_price_change_applies_to_new_orders(client, admin_id, customer_id, products):
    response = client.patch("/products/shirt", json={"base_price": 5.0}, headers=auth(admin_id))
    assert response.status_code == 200

    payload = order_payload(cart_items=[{"service_id": "shirt", "quantity": 3}])
    order = client.post("/orders", json=payload, headers=auth(customer_id)).json()
    assert order["final_price"] == 15.0


def test_deactivated_product_cannot_be_ordered(client, admin_id, customer_id, products):
    client.patch("/products/shirt", json={"is_active": False}, headers=auth(admin_id))
    payload = order_payload(cart_items=[{"service_id": "shirt", "quantity": 1}])
    assert client.post("/orders", json=payload, headers=auth(customer_id)).status_code == 400


def test_unknown_product_update(client, admin_id):
    assert client.patch("/products/ghost", json={"name": "x"}, headers=auth(admin_id)).status_code == 404
