import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.core.identifiers import year_prefix

from conftest import auth_headers, create_park, create_permit, create_user


@pytest.mark.asyncio
async def test_park_directory_by_role(client: AsyncClient, db_session: AsyncSession) -> None:
    north = await create_park(db_session, "North")
    await create_park(db_session, "South")
    staff = await create_user(db_session, "ranger", park_ids=[north.id])
    manager = await create_user(db_session, "boss", role="manager")
    admin = await create_user(db_session, "root", role="admin")

    staff_parks = await client.get("/api/parks", headers=auth_headers(staff))
    manager_parks = await client.get("/api/parks", headers=auth_headers(manager))
    admin_parks = await client.get("/api/parks", headers=auth_headers(admin))

    assert [p["name"] for p in staff_parks.json()] == ["North"]
    assert [p["name"] for p in manager_parks.json()] == ["North", "South"]
    assert [p["name"] for p in admin_parks.json()] == ["North", "South"]


@pytest.mark.asyncio
async def test_park_status_overview(client: AsyncClient, db_session: AsyncSession) -> None:
    park = await create_park(db_session, "North")
    admin = await create_user(db_session, "root", role="admin")

    response = await client.get("/api/parks/status", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json() == [{"id": park.id, "name": "North", "status": "active", "location": park.location}]


@pytest.mark.asyncio
async def test_park_mutations_are_admin_only(client: AsyncClient, db_session: AsyncSession) -> None:
    manager = await create_user(db_session, "boss", role="manager")
    admin = await create_user(db_session, "root", role="admin")
    payload = {"name": "Lakeside", "location": "Provo, UT", "locations": ["Dock", " ", "Beach"]}

    denied = await client.post("/api/parks", json=payload, headers=auth_headers(manager))
    created = await client.post("/api/parks", json=payload, headers=auth_headers(admin))

    assert denied.status_code == 403
    assert created.status_code == 201
    assert created.json()["locations"] == ["Dock", "Beach"]

    park_id = created.json()["id"]
    updated = await client.patch(
        f"/api/parks/{park_id}", json={"waiver": "Sign before entry"}, headers=auth_headers(admin)
    )
    assert updated.json()["waiver"] == "Sign before entry"


@pytest.mark.asyncio
async def test_park_with_permits_cannot_be_deleted(client: AsyncClient, db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    empty = await create_park(db_session, "Empty")
    await create_permit(db_session, park, "SUP-2025-0001")
    admin = await create_user(db_session, "root", role="admin")

    blocked = await client.delete(f"/api/parks/{park.id}", headers=auth_headers(admin))
    allowed = await client.delete(f"/api/parks/{empty.id}", headers=auth_headers(admin))

    assert blocked.status_code == 409
    assert blocked.json()["detail"] == "Cannot delete park with active permits"
    assert allowed.status_code == 204


@pytest.mark.asyncio
async def test_staff_cannot_read_unassigned_park(client: AsyncClient, db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    staff = await create_user(db_session, "ranger")

    assert (await client.get(f"/api/parks/{park.id}", headers=auth_headers(staff))).status_code == 403
    assert (await client.get("/api/parks/9999", headers=auth_headers(staff))).status_code == 404


@pytest.mark.asyncio
async def test_create_permit_assigns_number(client: AsyncClient, db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    staff = await create_user(db_session, "ranger", park_ids=[park.id])
    payload = {
        "permit_type": "Special Use",
        "park_id": park.id,
        "location": "Pavilion",
        "permittee_name": "Pat Doe",
        "permittee_email": "pat@example.com",
        "activity": "Wedding",
        "start_date": "2025-06-01",
        "end_date": "2025-06-01",
    }

    first = await client.post("/api/permits", json=payload, headers=auth_headers(staff))
    second = await client.post("/api/permits", json=payload, headers=auth_headers(staff))

    prefix = year_prefix("SUP")
    assert first.status_code == 201
    assert first.json()["permit_number"] == f"{prefix}0001"
    assert second.json()["permit_number"] == f"{prefix}0002"
    assert first.json()["created_by"] == staff.id


@pytest.mark.asyncio
async def test_create_permit_requires_park_access(client: AsyncClient, db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    staff = await create_user(db_session, "ranger")
    payload = {
        "permit_type": "Special Use",
        "park_id": park.id,
        "location": "Pavilion",
        "permittee_name": "Pat Doe",
        "permittee_email": "pat@example.com",
        "activity": "Wedding",
        "start_date": "2025-06-01",
        "end_date": "2025-06-02",
    }

    response = await client.post("/api/permits", json=payload, headers=auth_headers(staff))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_approving_permit_sets_issue_date(client: AsyncClient, db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    permit = await create_permit(db_session, park, "SUP-2025-0001")
    admin = await create_user(db_session, "root", role="admin")

    response = await client.patch(f"/api/permits/{permit.id}", json={"status": "approved"}, headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["issue_date"] is not None


@pytest.mark.asyncio
async def test_permit_listing_and_single_reads_are_scoped(client: AsyncClient, db_session: AsyncSession) -> None:
    north = await create_park(db_session, "North")
    south = await create_park(db_session, "South")
    staff = await create_user(db_session, "ranger", park_ids=[north.id])
    await create_permit(db_session, north, "SUP-2025-0001")
    hidden = await create_permit(db_session, south, "SUP-2025-0002")

    listing = await client.get("/api/permits", headers=auth_headers(staff))
    recent = await client.get("/api/permits/recent", headers=auth_headers(staff))
    single = await client.get(f"/api/permits/{hidden.id}", headers=auth_headers(staff))
    delete = await client.delete(f"/api/permits/{hidden.id}", headers=auth_headers(staff))

    assert [p["permit_number"] for p in listing.json()] == ["SUP-2025-0001"]
    assert [p["permit_number"] for p in recent.json()] == ["SUP-2025-0001"]
    assert single.status_code == 403
    assert delete.status_code == 403


@pytest.mark.asyncio
async def test_permit_templates_round_trip(client: AsyncClient, db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    staff = await create_user(db_session, "ranger", park_ids=[park.id])
    form = {
        "name": "Wedding Package",
        "parkId": park.id,
        "locations": [{"name": "Rose Garden", "description": "Ceremony", "fee": 50}],
        "insuranceRequired": True,
    }

    created = await client.post("/api/permit-templates", json=form, headers=auth_headers(staff))

    assert created.status_code == 201
    body = created.json()
    assert body["permit_number"] == f"{year_prefix('TEMPLATE')}0001"
    assert body["is_template"] is True
    assert body["status"] == "template"
    assert body["location"] == "Rose Garden"
    assert body["template_data"]["insuranceRequired"] is True
    assert body["template_data"]["locations"][0]["fee"] == 50

    # Templates are not listed as permits
    assert (await client.get("/api/permits", headers=auth_headers(staff))).json() == []

    template_id = body["id"]
    updated = await client.put(
        f"/api/permit-templates/{template_id}",
        json={"name": "Wedding Deluxe", "parkId": park.id, "locations": []},
        headers=auth_headers(staff),
    )
    assert updated.json()["permit_type"] == "Wedding Deluxe"
    assert updated.json()["location"] == "No location specified"
    assert updated.json()["permit_number"] == body["permit_number"]

    deleted = await client.delete(f"/api/permit-templates/{template_id}", headers=auth_headers(staff))
    assert deleted.status_code == 204
    missing = await client.get(f"/api/permit-templates/{template_id}", headers=auth_headers(staff))
    assert missing.status_code == 404
