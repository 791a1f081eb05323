import asyncio
import pytest
from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from easymove.api.bookings import update_booking_status
from easymove.core.enums import BookingStatus
from easymove.main import app
from easymove.models.audit import Audit
from easymove.models.booking import Booking
from easymove.schemas.booking import BookingStatusUpdate, CheckoutIn
from easymove.services.checkout import create_booking
from easymove.services.payments import MockPaymentGateway, get_payment_gateway
from easymove.services.quote_cache import load_quote
from easymove.services.webhook import send_webhook

pytestmark = [pytest.mark.integration, pytest.mark.bookings]


async def create_quote(client, quote_request) -> dict:
    response = await client.post("/quotes/calculate", json=quote_request)
    assert response.status_code == 200
    return response.json()


class CountingGateway(MockPaymentGateway):
    def __init__(self):
        self.intents = []

    async def create_payment_intent(self, amount, currency, metadata):
        intent = await super().create_payment_intent(amount, currency, metadata)
        self.intents.append(intent)
        return intent


class TestCheckout:

    @pytest.mark.asyncio
    async def test_checkout_charges_total_in_pence(self, test_client, quote_request, checkout_request):
        quote = await create_quote(test_client, quote_request)

        response = await test_client.post("/bookings/checkout", json=checkout_request(quote["quote_reference"]))
        assert response.status_code == 200
        data = response.json()
        assert data["amount"] == 11154
        assert data["currency"] == "GBP"
        assert data["total"] == 111.54
        assert data["status"] == "pending"
        assert data["booking_reference"].startswith("BK")
        assert data["payment_intent_id"].startswith("pi_mock_")
        assert data["client_secret"].startswith(data["payment_intent_id"])

    @pytest.mark.asyncio
    async def test_booking_keeps_quote_breakdown(self, test_client, quote_request, checkout_request):
        quote = await create_quote(test_client, quote_request)
        checkout = (await test_client.post(
            "/bookings/checkout", json=checkout_request(quote["quote_reference"])
        )).json()

        response = await test_client.get(f"/bookings/{checkout['booking_reference']}")
        assert response.status_code == 200
        booking = response.json()
        assert booking["quote_reference"] == quote["quote_reference"]
        assert booking["subtotal"] == 92.95
        assert booking["platform_fee"] == 23.24
        assert booking["driver_share"] == 69.71
        assert booking["breakdown"]["line_items"] == quote["line_items"]
        assert booking["customer_email"] == "sam.taylor@example.com"

    @pytest.mark.asyncio
    async def test_checkout_unknown_quote(self, test_client, checkout_request):
        response = await test_client.post("/bookings/checkout", json=checkout_request("QMISSING"))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_checkout_rejects_bad_email(self, test_client, quote_request, checkout_request):
        quote = await create_quote(test_client, quote_request)
        payload = checkout_request(quote["quote_reference"])
        payload["customer_email"] = "not_an_email"
        response = await test_client.post("/bookings/checkout", json=payload)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_quote_cannot_be_booked_twice(self, test_client, quote_request, checkout_request):
        quote = await create_quote(test_client, quote_request)
        payload = checkout_request(quote["quote_reference"])

        first = await test_client.post("/bookings/checkout", json=payload)
        second = await test_client.post("/bookings/checkout", json=payload)
        assert first.status_code == 200
        assert second.status_code == 409

    @pytest.mark.asyncio
    async def test_concurrent_checkouts_book_quote_once(self, test_client, quote_request, checkout_request,
                                                        db_session):
        gateway = CountingGateway()
        app.dependency_overrides[get_payment_gateway] = lambda: gateway

        quote = await create_quote(test_client, quote_request)
        payload = checkout_request(quote["quote_reference"])
        responses = await asyncio.gather(
            test_client.post("/bookings/checkout", json=payload),
            test_client.post("/bookings/checkout", json=payload),
        )

        assert sorted(r.status_code for r in responses) == [200, 409]
        res = await db_session.execute(
            select(Booking).where(Booking.quote_reference == quote["quote_reference"])
        )
        assert len(res.scalars().all()) == 1
        assert len(gateway.intents) == 1

    @pytest.mark.asyncio
    async def test_duplicate_booking_fails_before_charging(self, test_client, quote_request, checkout_request,
                                                           session_factory):
        quote = await load_quote((await create_quote(test_client, quote_request))["quote_reference"])
        customer = CheckoutIn(**checkout_request(quote.quote_reference))
        gateway = CountingGateway()

        async with session_factory() as session:
            booking, intent = await create_booking(session, quote, customer, gateway)
            await session.commit()
            assert booking.payment_intent_id == intent.id

        async with session_factory() as session:
            with pytest.raises(IntegrityError):
                await create_booking(session, quote, customer, gateway)
            await session.rollback()

        assert len(gateway.intents) == 1

    @pytest.mark.asyncio
    @pytest.mark.idempotency
    async def test_idempotent_checkout(self, test_client, quote_request, checkout_request):
        quote = await create_quote(test_client, quote_request)
        payload = checkout_request(quote["quote_reference"])
        headers = {"Idempotency-Key": "checkout-key-1"}

        first = await test_client.post("/bookings/checkout", json=payload, headers=headers)
        second = await test_client.post("/bookings/checkout", json=payload, headers=headers)
        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()

    @pytest.mark.asyncio
    async def test_checkout_is_audited(self, test_client, quote_request, checkout_request, db_session):
        quote = await create_quote(test_client, quote_request)
        await test_client.post("/bookings/checkout", json=checkout_request(quote["quote_reference"]))

        res = await db_session.execute(select(Audit).where(Audit.action == "create_booking"))
        audit = res.scalars().first()
        assert audit is not None
        assert audit.user_id is None
        assert len(audit.payload_hash) == 64


class TestBookingStatus:

    @pytest.mark.asyncio
    @pytest.mark.auth
    async def test_status_update_requires_admin(self, test_client, quote_request, checkout_request,
                                                operator_headers):
        quote = await create_quote(test_client, quote_request)
        checkout = (await test_client.post(
            "/bookings/checkout", json=checkout_request(quote["quote_reference"])
        )).json()
        url = f"/bookings/{checkout['booking_reference']}/status"

        assert (await test_client.patch(url, json={"status": "confirmed"})).status_code == 401
        response = await test_client.patch(url, json={"status": "confirmed"}, headers=operator_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    @pytest.mark.webhooks
    async def test_status_change_sends_webhook(self, test_client, quote_request, checkout_request,
                                               admin_headers, monkeypatch):
        sent = []

        async def fake_send(payload, **kwargs):
            sent.append(payload)
            return True

        monkeypatch.setattr("easymove.api.bookings.send_webhook", fake_send)

        quote = await create_quote(test_client, quote_request)
        checkout = (await test_client.post(
            "/bookings/checkout", json=checkout_request(quote["quote_reference"])
        )).json()
        reference = checkout["booking_reference"]

        response = await test_client.patch(
            f"/bookings/{reference}/status", json={"status": "confirmed"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert len(sent) == 1
        assert sent[0]["event"] == "booking.status_changed"
        assert sent[0]["booking_reference"] == reference
        assert sent[0]["status"] == "confirmed"
        assert sent[0]["total"] == "111.54"

        # same status again: nothing new to announce
        await test_client.patch(f"/bookings/{reference}/status", json={"status": "confirmed"}, headers=admin_headers)
        assert len(sent) == 1

    @pytest.mark.asyncio
    @pytest.mark.webhooks
    async def test_webhook_runs_after_response(self, test_client, quote_request, checkout_request,
                                               admin_user, session_factory):
        quote = await create_quote(test_client, quote_request)
        checkout = (await test_client.post(
            "/bookings/checkout", json=checkout_request(quote["quote_reference"])
        )).json()
        background_tasks = BackgroundTasks()

        async with session_factory() as session:
            out = await update_booking_status(
                checkout["booking_reference"],
                BookingStatusUpdate(status=BookingStatus.CONFIRMED),
                background_tasks,
                db=session,
                current_user=admin_user,
            )

        assert out.status == BookingStatus.CONFIRMED
        assert len(background_tasks.tasks) == 1
        task = background_tasks.tasks[0]
        assert task.func is send_webhook
        assert task.args[0]["booking_reference"] == checkout["booking_reference"]

    @pytest.mark.asyncio
    async def test_unknown_booking(self, test_client, admin_headers):
        response = await test_client.patch(
            "/bookings/BKNOPE/status", json={"status": "cancelled"}, headers=admin_headers
        )
        assert response.status_code == 404


class TestAdmin:

    @pytest.mark.asyncio
    @pytest.mark.auth
    async def test_login(self, test_client, admin_user):
        response = await test_client.post("/auth/login", data={"username": "admin", "password": "s3cret-pass"})
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

        token = response.json()["access_token"]
        bookings = await test_client.get("/admin/bookings", headers={"Authorization": f"Bearer {token}"})
        assert bookings.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.auth
    async def test_login_wrong_password(self, test_client, admin_user):
        response = await test_client.post("/auth/login", data={"username": "admin", "password": "wrong"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.auth
    async def test_invalid_token_denied(self, test_client):
        response = await test_client.get("/admin/bookings", headers={"Authorization": "Bearer invalid.token.here"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_bookings_filtered(self, test_client, quote_request, checkout_request, operator_headers):
        for _ in range(2):
            quote = await create_quote(test_client, quote_request)
            await test_client.post("/bookings/checkout", json=checkout_request(quote["quote_reference"]))

        response = await test_client.get("/admin/bookings", headers=operator_headers)
        assert response.status_code == 200
        assert len(response.json()) == 2

        response = await test_client.get("/admin/bookings?status=completed", headers=operator_headers)
        assert response.json() == []

    @pytest.mark.asyncio
    @pytest.mark.auth
    async def test_pricing_history_admin_only(self, test_client, operator_headers):
        response = await test_client.get("/admin/pricing-history", headers=operator_headers)
        assert response.status_code == 403
