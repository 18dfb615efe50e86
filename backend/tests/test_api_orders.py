"""
CrudLab Backend — Order API Tests
==================================
"""

import uuid

import pytest


def _order_payload():
    return {
        "order_price": 59.97,
        "order_items": [
            {"product_id": str(uuid.uuid4()), "quantity": 2, "address": "221B Baker Street"},
            {"product_id": str(uuid.uuid4()), "quantity": 1, "address": "221B Baker Street"},
        ],
    }


async def _create_order(client, headers):
    response = await client.post("/api/v1/orders", headers=headers, json=_order_payload())
    assert response.status_code == 201
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_order_defaults_items_to_pending(test_client, user, auth_headers):
    order = await _create_order(test_client, auth_headers)

    assert order["customer"] == str(user.id)
    assert order["order_price"] == 59.97
    assert [item["quantity"] for item in order["order_items"]] == [2, 1]
    assert all(item["status"] == "PENDING" for item in order["order_items"])


@pytest.mark.asyncio
async def test_create_order_rejects_unknown_status(test_client, auth_headers):
    payload = _order_payload()
    payload["order_items"][0]["status"] = "SHIPPED"

    response = await test_client.post("/api/v1/orders", headers=auth_headers, json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_order_requires_price(test_client, auth_headers):
    payload = _order_payload()
    del payload["order_price"]

    response = await test_client.post("/api/v1/orders", headers=auth_headers, json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_and_list_orders(test_client, auth_headers, other_user):
    order = await _create_order(test_client, auth_headers)

    response = await test_client.get(f"/api/v1/orders/{order['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert len(response.json()["data"]["order_items"]) == 2

    response = await test_client.get("/api/v1/orders", headers=auth_headers)
    assert response.headers["X-Total-Count"] == "1"
    assert response.json()["data"]["items"][0]["id"] == order["id"]

    other_headers = {"X-User-ID": str(other_user.id)}
    response = await test_client.get(f"/api/v1/orders/{order['id']}", headers=other_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_item_status(test_client, auth_headers):
    order = await _create_order(test_client, auth_headers)
    item_id = order["order_items"][1]["id"]

    response = await test_client.patch(
        f"/api/v1/orders/{order['id']}/items/{item_id}/status",
        headers=auth_headers,
        json={"status": "DELIVERED"},
    )

    assert response.status_code == 200
    statuses = {i["id"]: i["status"] for i in response.json()["data"]["order_items"]}
    assert statuses[item_id] == "DELIVERED"
    assert statuses[order["order_items"][0]["id"]] == "PENDING"


@pytest.mark.asyncio
async def test_update_item_status_invalid_value(test_client, auth_headers):
    order = await _create_order(test_client, auth_headers)
    item_id = order["order_items"][0]["id"]

    response = await test_client.patch(
        f"/api/v1/orders/{order['id']}/items/{item_id}/status",
        headers=auth_headers,
        json={"status": "delivered"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_unknown_item(test_client, auth_headers):
    order = await _create_order(test_client, auth_headers)

    response = await test_client.patch(
        f"/api/v1/orders/{order['id']}/items/{uuid.uuid4()}/status",
        headers=auth_headers,
        json={"status": "CANCELLED"},
    )

    assert response.status_code == 404
    assert "order item" in response.json()["message"]
