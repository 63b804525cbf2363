"""Integration tests for Orders API."""

from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient

from domain.entities.principal import Principal
from tests.conftest import ActingAs


@pytest.fixture
async def product(
    authenticated_client: AsyncClient,
    acting_as: ActingAs,
    seller_principal: Principal,
    buyer_principal: Principal,
) -> dict:
    """A listing owned by the seller; leaves the client acting as the buyer."""
    acting_as.principal = seller_principal
    response = await authenticated_client.post(
        "/api/v1/products", json={"name": "Basmati Rice", "price": "80.00"}
    )
    acting_as.principal = buyer_principal
    return response.json()["data"]


async def _place_order(client: AsyncClient, product: dict, **overrides) -> dict:
    payload = {
        "items": [{"product_id": product["id"], "quantity": 2, "price": "75.50"}],
        "shipping_address": "12 Mill Road, Pune",
    }
    payload.update(overrides)
    response = await client.post("/api/v1/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestOrdersAPI:
    """Integration tests for order submission and tracking."""

    @pytest.mark.asyncio
    async def test_place_order(
        self,
        authenticated_client: AsyncClient,
        product: dict,
        buyer_principal: Principal,
        seller_principal: Principal,
    ):
        """Test POST /api/v1/orders uses the submitted prices."""
        order = await _place_order(authenticated_client, product)

        assert order["buyer_id"] == str(buyer_principal.id)
        assert order["seller_id"] == str(seller_principal.id)
        assert Decimal(order["total_amount"]) == Decimal("151.00")
        assert order["status"] == "pending"
        assert order["delivery_status"] == "processing"
        assert order["tracking_number"].startswith("FF")
        assert len(order["items"]) == 1

    @pytest.mark.asyncio
    async def test_empty_order_is_rejected(self, authenticated_client: AsyncClient):
        """Test an order without items returns 400 EMPTY_ORDER."""
        response = await authenticated_client.post(
            "/api/v1/orders", json={"items": [], "shipping_address": "12 Mill Road"}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "EMPTY_ORDER"

    @pytest.mark.asyncio
    async def test_unknown_product_is_rejected(self, authenticated_client: AsyncClient):
        """Test the seller cannot be resolved from an unknown product."""
        response = await authenticated_client.post(
            "/api/v1/orders",
            json={
                "items": [{"product_id": str(uuid4()), "quantity": 1, "price": "1.00"}],
                "shipping_address": "12 Mill Road",
            },
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "PRODUCT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_zero_quantity_is_rejected(self, authenticated_client: AsyncClient, product: dict):
        """Test item quantities must be positive."""
        response = await authenticated_client.post(
            "/api/v1/orders",
            json={
                "items": [{"product_id": product["id"], "quantity": 0, "price": "1.00"}],
                "shipping_address": "12 Mill Road",
            },
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_buyer_and_seller_lists(
        self,
        authenticated_client: AsyncClient,
        product: dict,
        acting_as: ActingAs,
        seller_principal: Principal,
    ):
        """Test GET /api/v1/orders and GET /api/v1/orders/selling."""
        order = await _place_order(authenticated_client, product)

        mine = await authenticated_client.get("/api/v1/orders")
        assert [o["id"] for o in mine.json()["data"]] == [order["id"]]

        forbidden = await authenticated_client.get("/api/v1/orders/selling")
        assert forbidden.status_code == 403

        acting_as.principal = seller_principal
        selling = await authenticated_client.get("/api/v1/orders/selling")
        assert [o["id"] for o in selling.json()["data"]] == [order["id"]]

    @pytest.mark.asyncio
    async def test_get_order(self, authenticated_client: AsyncClient, product: dict):
        """Test GET /api/v1/orders/{id} returns the items."""
        order = await _place_order(authenticated_client, product)

        response = await authenticated_client.get(f"/api/v1/orders/{order['id']}")

        assert response.status_code == 200
        item = response.json()["data"]["items"][0]
        assert item["product_id"] == product["id"]
        assert item["quantity"] == 2
        assert Decimal(item["price"]) == Decimal("75.50")

    @pytest.mark.asyncio
    async def test_other_buyer_cannot_see_order(
        self, authenticated_client: AsyncClient, product: dict, acting_as: ActingAs
    ):
        """Test orders are only visible to their parties."""
        order = await _place_order(authenticated_client, product)
        acting_as.principal = Principal(
            id=uuid4(), email="other@example.com", metadata={"name": "Other"}
        )

        response = await authenticated_client.get(f"/api/v1/orders/{order['id']}")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_seller_moves_order_along(
        self,
        authenticated_client: AsyncClient,
        product: dict,
        acting_as: ActingAs,
        seller_principal: Principal,
    ):
        """Test PATCH /api/v1/orders/{id}/status."""
        order = await _place_order(authenticated_client, product)
        acting_as.principal = seller_principal

        confirmed = await authenticated_client.patch(
            f"/api/v1/orders/{order['id']}/status", json={"status": "confirmed"}
        )
        shipped = await authenticated_client.patch(
            f"/api/v1/orders/{order['id']}/status", json={"status": "shipped"}
        )

        assert confirmed.status_code == 200
        assert shipped.json()["data"]["delivery_status"] == "in_transit"

        backwards = await authenticated_client.patch(
            f"/api/v1/orders/{order['id']}/status", json={"status": "pending"}
        )
        assert backwards.status_code == 400
        assert backwards.json()["error_code"] == "INVALID_ORDER_STATUS"

    @pytest.mark.asyncio
    async def test_buyer_cannot_update_status(
        self, authenticated_client: AsyncClient, product: dict
    ):
        """Test buyers get 403 on status updates."""
        order = await _place_order(authenticated_client, product)

        response = await authenticated_client.patch(
            f"/api/v1/orders/{order['id']}/status", json={"status": "cancelled"}
        )

        assert response.status_code == 403
