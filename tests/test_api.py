"""HTTP-level tests for the v1 API."""

from datetime import datetime

import pytest

from number_market_api.app.schemas.number import NumberStatus

API = "/api/v1"


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get(f"{API}/health/")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["timestamp"].endswith("Z")


class TestBuyersApi:

    @pytest.mark.asyncio
    async def test_create_and_get(self, client):
        response = await client.post(
            f"{API}/buyers/", json={"name": "Alice", "mode": "auto", "chat_id": "100"}
        )
        assert response.status_code == 201
        buyer = response.json()
        assert buyer["is_banned"] is False

        response = await client.get(f"{API}/buyers/{buyer['id']}")
        assert response.status_code == 200
        assert response.json()["chat_id"] == "100"

    @pytest.mark.asyncio
    async def test_duplicate_chat_id_conflicts(self, client):
        payload = {"name": "Alice", "mode": "auto", "chat_id": "100"}
        await client.post(f"{API}/buyers/", json=payload)

        response = await client.post(f"{API}/buyers/", json=payload)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_payload_is_rejected(self, client):
        response = await client.post(
            f"{API}/buyers/", json={"name": "Alice", "mode": "auto", "chat_id": "1", "max_numbers_per_branch": 0}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_buyer(self, client):
        assert (await client.get(f"{API}/buyers/999")).status_code == 404
        assert (await client.patch(f"{API}/buyers/999", json={"name": "x"})).status_code == 404
        assert (await client.post(f"{API}/buyers/999/ban", json={"ban_reason": "x"})).status_code == 404

    @pytest.mark.asyncio
    async def test_stopwork(self, client, make_buyer, make_number):
        buyer = await make_buyer()
        number = await make_number(
            status=NumberStatus.ACCEPTED, buyer_id=buyer.id, rented_at=datetime(2024, 1, 15, 10, 0)
        )

        response = await client.post(f"{API}/buyers/{buyer.id}/stopwork")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["reclaimed_numbers"] == 1
        number_body = (await client.get(f"{API}/numbers/{number.id}")).json()
        assert number_body["status"] == "returned_to_queue"
        assert number_body["buyer_id"] is None

        # already banned: reported, not raised
        response = await client.post(f"{API}/buyers/{buyer.id}/stopwork")
        assert response.status_code == 200
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_stopwork_unknown_buyer(self, client):
        response = await client.post(f"{API}/buyers/999/stopwork")

        assert response.status_code == 200
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_ban_and_unban(self, client, make_buyer):
        buyer = await make_buyer()

        response = await client.post(f"{API}/buyers/{buyer.id}/ban", json={"ban_reason": "spam"})
        assert response.json()["ban_reason"] == "spam"

        response = await client.post(f"{API}/buyers/{buyer.id}/unban")
        assert response.json()["is_banned"] is False


class TestNumbersApi:

    @pytest.mark.asyncio
    async def test_create_number(self, client):
        payload = {"phone_number": "+15550001", "country": "US", "type": "SMS", "price": "3.50"}

        response = await client.post(f"{API}/numbers/", json=payload)
        assert response.status_code == 201
        assert response.json()["status"] == "available"

        response = await client.post(f"{API}/numbers/", json=payload)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_negative_price_is_rejected(self, client):
        payload = {"phone_number": "+15550001", "country": "US", "type": "SMS", "price": "-1"}
        assert (await client.post(f"{API}/numbers/", json=payload)).status_code == 422

    @pytest.mark.asyncio
    async def test_update_status(self, client, make_number):
        number = await make_number()

        response = await client.patch(f"{API}/numbers/{number.id}/status", json={"status": "completed"})

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["completed_at"] is not None

    @pytest.mark.asyncio
    async def test_update_status_of_unknown_number(self, client):
        response = await client.patch(f"{API}/numbers/999/status", json={"status": "completed"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_status_is_rejected(self, client, make_number):
        number = await make_number()
        response = await client.patch(f"{API}/numbers/{number.id}/status", json={"status": "lost"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_filter(self, client, make_number):
        wanted = await make_number("+12025550101", "US", "SMS")
        await make_number("+447700900103", "UK", "SMS")

        response = await client.post(f"{API}/numbers/filter", json={"country": "US", "phone_number": "0101"})

        assert response.status_code == 200
        assert [n["id"] for n in response.json()] == [wanted.id]

    @pytest.mark.asyncio
    async def test_empty_filter_lists_everything(self, client, make_number):
        await make_number()
        await make_number()

        response = await client.post(f"{API}/numbers/filter", json={})

        assert len(response.json()) == 2
        assert len((await client.get(f"{API}/numbers/")).json()) == 2


class TestSellersApi:

    @pytest.mark.asyncio
    async def test_ban_without_body_uses_default_comment(self, client, make_seller):
        seller = await make_seller()

        response = await client.post(f"{API}/sellers/{seller.id}/ban")

        assert response.status_code == 200
        assert response.json()["status"] == "banned"
        assert response.json()["status_comment"] == "Banned by administrator"

    @pytest.mark.asyncio
    async def test_cannot_create_banned_seller(self, client):
        response = await client.post(f"{API}/sellers/", json={"telegram_id": "1", "status": "banned"})
        assert response.status_code == 422


class TestBillingApi:

    @pytest.mark.asyncio
    async def test_invoice(self, client, make_buyer, make_number):
        buyer = await make_buyer()
        for price in ("1.99", "2.01", "0.50"):
            await make_number(price=price, buyer_id=buyer.id, rented_at=datetime(2024, 1, 15, 12, 0))

        response = await client.get(f"{API}/billing/invoice", params={"buyer_id": buyer.id, "date": "2024-01-15"})

        assert response.status_code == 200
        body = response.json()
        assert body["total_numbers_rented"] == 3
        assert body["total_amount"] == "4.50"

    @pytest.mark.asyncio
    async def test_invoice_unknown_buyer(self, client):
        response = await client.get(f"{API}/billing/invoice", params={"buyer_id": 999, "date": "2024-01-15"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invoice_bad_date(self, client, make_buyer):
        buyer = await make_buyer()
        response = await client.get(f"{API}/billing/invoice", params={"buyer_id": buyer.id, "date": "yesterday"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invoice_for_last_representable_day(self, client, make_buyer):
        buyer = await make_buyer()
        response = await client.get(f"{API}/billing/invoice", params={"buyer_id": buyer.id, "date": "9999-12-31"})
        assert response.status_code == 200
        assert response.json()["total_numbers_rented"] == 0

    @pytest.mark.asyncio
    async def test_records_and_history(self, client, make_buyer):
        buyer = await make_buyer()
        for day in ("2024-01-01T00:00:00", "2024-01-02T00:00:00"):
            response = await client.post(
                f"{API}/billing/records",
                json={"buyer_id": buyer.id, "amount": "9.99", "description": "daily", "billing_date": day},
            )
            assert response.status_code == 201

        response = await client.get(f"{API}/billing/history/{buyer.id}", params={"limit": 1})

        assert response.status_code == 200
        [record] = response.json()
        assert record["billing_date"].startswith("2024-01-02")

    @pytest.mark.asyncio
    async def test_record_for_unknown_buyer(self, client):
        response = await client.post(
            f"{API}/billing/records",
            json={"buyer_id": 999, "amount": "1.00", "description": "x", "billing_date": "2024-01-01T00:00:00"},
        )
        assert response.status_code == 404
