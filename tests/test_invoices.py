from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.api.invoices import service as invoice_service
from permit_office.core.identifiers import generate_identifier, year_prefix
from permit_office.core.models import Invoice
from permit_office.core.time_utils import today

from conftest import auth_headers, create_application, create_park, create_permit, create_user


async def _invoice(db: AsyncSession, park, number: str, application=None, status: str = "pending", amount: int = 3500):
    invoice = Invoice(
        invoice_number=number,
        amount=amount,
        status=status,
        issue_date=today(),
        due_date=today() + timedelta(days=30),
        park_id=park.id,
        application_id=application.id if application else None,
    )
    db.add(invoice)
    await db.commit()
    await db.refresh(invoice)
    return invoice


@pytest.mark.asyncio
async def test_payment_webhook_marks_invoice_and_application_paid(
    client: AsyncClient, db_session: AsyncSession
) -> None:
    park = await create_park(db_session)
    application = await create_application(db_session, park, "APP-2025-0001", status="approved")
    invoice = await _invoice(db_session, park, "INV-2025-0001", application=application)

    response = await client.patch(
        "/api/public/invoices/INV-2025-0001/payment",
        json={"status": "paid", "paymentDate": "2025-05-01T10:00:00Z", "transactionId": "txn_123"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "paid"
    assert body["transaction_id"] == "txn_123"
    assert body["payment_date"].startswith("2025-05-01T10:00:00")
    await db_session.refresh(application)
    await db_session.refresh(invoice)
    assert application.is_paid is True
    assert invoice.status == "paid"


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", ["failed", "pending"])
async def test_payment_webhook_leaves_invoice_pending(
    client: AsyncClient, db_session: AsyncSession, outcome: str
) -> None:
    park = await create_park(db_session)
    application = await create_application(db_session, park, "APP-2025-0001", status="approved")
    await _invoice(db_session, park, "INV-2025-0001", application=application)

    response = await client.patch("/api/public/invoices/INV-2025-0001/payment", json={"status": outcome})

    assert response.status_code == 200
    assert response.json()["status"] == "pending"
    await db_session.refresh(application)
    assert application.is_paid is False


@pytest.mark.asyncio
async def test_payment_webhook_unknown_invoice(client: AsyncClient, db_session: AsyncSession) -> None:
    response = await client.patch("/api/public/invoices/INV-2025-9999/payment", json={"status": "paid"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_payment_webhook_rejects_unknown_status(client: AsyncClient, db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    await _invoice(db_session, park, "INV-2025-0001")

    response = await client.patch("/api/public/invoices/INV-2025-0001/payment", json={"status": "refunded"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_invoice_listing_is_scoped(client: AsyncClient, db_session: AsyncSession) -> None:
    north = await create_park(db_session, "North")
    south = await create_park(db_session, "South")
    staff = await create_user(db_session, "ranger", park_ids=[south.id])
    admin = await create_user(db_session, "root", role="admin")
    await _invoice(db_session, north, "INV-2025-0001")
    south_invoice = await _invoice(db_session, south, "INV-2025-0002")

    staff_list = await client.get("/api/invoices", headers=auth_headers(staff))
    admin_list = await client.get("/api/invoices", headers=auth_headers(admin))
    recent = await client.get("/api/invoices/recent", headers=auth_headers(staff))

    assert [i["invoice_number"] for i in staff_list.json()] == ["INV-2025-0002"]
    assert len(admin_list.json()) == 2
    assert [i["id"] for i in recent.json()] == [south_invoice.id]


@pytest.mark.asyncio
async def test_invoice_read_and_delete_check_access(client: AsyncClient, db_session: AsyncSession) -> None:
    north = await create_park(db_session, "North")
    staff = await create_user(db_session, "ranger")
    invoice = await _invoice(db_session, north, "INV-2025-0001")

    assert (await client.get(f"/api/invoices/{invoice.id}", headers=auth_headers(staff))).status_code == 403
    assert (await client.delete(f"/api/invoices/{invoice.id}", headers=auth_headers(staff))).status_code == 403
    assert (await client.get("/api/invoices/9999", headers=auth_headers(staff))).status_code == 404


@pytest.mark.asyncio
async def test_manual_invoice_takes_park_from_permit(client: AsyncClient, db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    permit = await create_permit(db_session, park, "SUP-2025-0001")
    staff = await create_user(db_session, "ranger", park_ids=[park.id])

    response = await client.post(
        "/api/invoices",
        json={"amount": 5000, "permit_id": permit.id},
        headers=auth_headers(staff),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["park_id"] == park.id
    assert body["invoice_number"] == f"{year_prefix('INV')}0001"
    assert body["status"] == "pending"


@pytest.mark.asyncio
async def test_marking_invoice_paid_flags_application(client: AsyncClient, db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    admin = await create_user(db_session, "root", role="admin")
    application = await create_application(db_session, park, "APP-2025-0001", status="approved")
    invoice = await _invoice(db_session, park, "INV-2025-0001", application=application)

    response = await client.patch(
        f"/api/invoices/{invoice.id}", json={"status": "paid", "transaction_id": "manual"}, headers=auth_headers(admin)
    )

    assert response.status_code == 200
    assert response.json()["status"] == "paid"
    await db_session.refresh(application)
    assert application.is_paid is True


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", ["failed", "pending"])
async def test_late_payment_result_does_not_unsettle_paid_invoice(
    client: AsyncClient, db_session: AsyncSession, outcome: str
) -> None:
    park = await create_park(db_session)
    application = await create_application(db_session, park, "APP-2025-0001", status="approved")
    invoice = await _invoice(db_session, park, "INV-2025-0001", application=application)

    paid = await client.patch(
        "/api/public/invoices/INV-2025-0001/payment", json={"status": "paid", "transactionId": "t1"}
    )
    late = await client.patch(
        "/api/public/invoices/INV-2025-0001/payment", json={"status": outcome, "transactionId": "t2"}
    )

    assert paid.status_code == 200
    assert late.status_code == 200
    assert late.json()["status"] == "paid"
    assert late.json()["transaction_id"] == "t1"
    await db_session.refresh(invoice)
    await db_session.refresh(application)
    assert invoice.status == "paid"
    assert invoice.transaction_id == "t1"
    assert application.is_paid is True


@pytest.mark.asyncio
async def test_paid_invoice_cannot_be_set_back_to_pending(client: AsyncClient, db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    admin = await create_user(db_session, "root", role="admin")
    application = await create_application(db_session, park, "APP-2025-0001", status="approved", is_paid=True)
    invoice = await _invoice(db_session, park, "INV-2025-0001", application=application, status="paid")

    response = await client.patch(f"/api/invoices/{invoice.id}", json={"status": "pending"}, headers=auth_headers(admin))

    assert response.status_code == 409
    await db_session.refresh(invoice)
    await db_session.refresh(application)
    assert invoice.status == "paid"
    assert application.is_paid is True


@pytest.mark.asyncio
async def test_paid_manual_invoice_flags_application_after_number_collision(
    client: AsyncClient, db_session: AsyncSession, monkeypatch
) -> None:
    park = await create_park(db_session)
    admin = await create_user(db_session, "root", role="admin")
    application = await create_application(db_session, park, "APP-2025-0001", status="approved")
    taken = f"{year_prefix('INV')}0001"
    await _invoice(db_session, park, taken)

    calls = []

    async def colliding_once(db, column, prefix):
        calls.append(prefix)
        if len(calls) == 1:
            return taken
        return await generate_identifier(db, column, prefix)

    monkeypatch.setattr(invoice_service, "generate_identifier", colliding_once)

    response = await client.post(
        "/api/invoices",
        json={"amount": 3500, "application_id": application.id, "status": "paid"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 201
    assert len(calls) == 2
    assert response.json()["invoice_number"] == f"{year_prefix('INV')}0002"
    assert response.json()["status"] == "paid"
    await db_session.refresh(application)
    assert application.is_paid is True
