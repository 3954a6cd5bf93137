"""API tests for authentication, companies and tenant scoping."""

import pytest


@pytest.mark.asyncio
async def test_health_and_root(client):
    response = await client.get("/health")
    assert response.json() == {"status": "healthy"}

    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["endpoints"]["invoices"] == "/api/invoices"


@pytest.mark.asyncio
async def test_register_login_and_me(client, user_headers):
    response = await client.get("/auth/me", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["username"] == "alice"


@pytest.mark.asyncio
async def test_register_duplicate_username(client, user_headers):
    response = await client.post(
        "/auth/register", json={"username": "alice", "password": "another-pass"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_register_rejects_short_password(client):
    response = await client.post("/auth/register", json={"username": "bob", "password": "short"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, user_headers):
    response = await client.post("/auth/login", json={"username": "alice", "password": "nope"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client):
    assert (await client.get("/auth/me")).status_code == 401
    response = await client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_and_list_companies(client, user_headers):
    response = await client.post(
        "/api/companies",
        json={"name": "Lusaka Traders", "country": "ZM", "currency": "ZMW", "currency_symbol": "K"},
        headers=user_headers,
    )
    assert response.status_code == 201
    company = response.json()
    assert company["country"] == "ZM"

    response = await client.get("/api/companies", headers=user_headers)
    assert [c["name"] for c in response.json()] == ["Lusaka Traders"]

    response = await client.get(f"/api/companies/{company['id']}/members", headers=user_headers)
    assert response.json()[0]["role"] == "owner"


@pytest.mark.asyncio
async def test_update_company(client, company_headers):
    company_id = company_headers["X-Company-ID"]
    response = await client.put(
        f"/api/companies/{company_id}",
        json={"vat_rate": 0.16, "tax_number": "7000123456"},
        headers=company_headers,
    )
    assert response.status_code == 200
    assert response.json()["vat_rate"] == 0.16


@pytest.mark.asyncio
async def test_business_endpoints_require_company_header(client, user_headers):
    response = await client.get("/api/contacts", headers=user_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_other_users_cannot_access_company(client, company_headers, login):
    bob = await login("bob")
    company_id = company_headers["X-Company-ID"]

    response = await client.get("/api/contacts", headers={**bob, "X-Company-ID": company_id})
    assert response.status_code == 403

    response = await client.get(f"/api/companies/{company_id}", headers=bob)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_added_member_can_access_company(client, company_headers, login):
    bob = await login("bob")
    company_id = company_headers["X-Company-ID"]

    response = await client.post(
        f"/api/companies/{company_id}/members",
        json={"username": "bob", "role": "member"},
        headers=company_headers,
    )
    assert response.status_code == 201

    bob_company = {**bob, "X-Company-ID": company_id}
    response = await client.get("/api/contacts", headers=bob_company)
    assert response.status_code == 200

    # members cannot manage the company
    response = await client.put(
        f"/api/companies/{company_id}", json={"name": "Hijacked"}, headers=bob
    )
    assert response.status_code == 403
    response = await client.post(
        "/api/payroll/tax-brackets/seed-defaults", headers=bob_company
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_add_unknown_member(client, company_headers):
    company_id = company_headers["X-Company-ID"]
    response = await client.post(
        f"/api/companies/{company_id}/members",
        json={"username": "ghost"},
        headers=company_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_contacts_are_isolated_per_company(client, company_headers, user_headers):
    response = await client.post(
        "/api/contacts",
        json={"name": "Thabo Supplies", "contact_type": "supplier"},
        headers=company_headers,
    )
    assert response.status_code == 201
    contact_id = response.json()["id"]

    response = await client.post("/api/companies", json={"name": "Second Co"}, headers=user_headers)
    second = {**user_headers, "X-Company-ID": str(response.json()["id"])}

    response = await client.get(f"/api/contacts/{contact_id}", headers=second)
    assert response.status_code == 404
    response = await client.get("/api/contacts", headers=second)
    assert response.json()["total"] == 0

    response = await client.get("/api/contacts?contact_type=supplier", headers=company_headers)
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_contact_email_is_validated(client, company_headers):
    response = await client.post(
        "/api/contacts",
        json={"name": "Lerato Traders", "email": "not-an-email"},
        headers=company_headers,
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/contacts",
        json={"name": "Lerato Traders", "email": "accounts@lerato.co.za"},
        headers=company_headers,
    )
    assert response.status_code == 201
    contact_id = response.json()["id"]
    assert response.json()["email"] == "accounts@lerato.co.za"

    response = await client.put(
        f"/api/contacts/{contact_id}", json={"email": "lerato@"}, headers=company_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_updates_cannot_clear_required_fields(client, company_headers):
    response = await client.post(
        "/api/contacts", json={"name": "Lerato Traders"}, headers=company_headers
    )
    contact_id = response.json()["id"]

    response = await client.put(
        f"/api/contacts/{contact_id}", json={"name": None}, headers=company_headers
    )
    assert response.status_code == 422

    response = await client.put(
        f"/api/companies/{company_headers['X-Company-ID']}",
        json={"name": None},
        headers=company_headers,
    )
    assert response.status_code == 422

    response = await client.get(f"/api/contacts/{contact_id}", headers=company_headers)
    assert response.json()["name"] == "Lerato Traders"
