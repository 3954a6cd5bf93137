"""API tests for CRM deals, support tickets and inventory."""

import pytest


async def create_deal(client, headers, title, value, stage="lead", probability=0):
    response = await client.post(
        "/api/crm/deals",
        json={
            "title": title,
            "customer": "Naledi Homes",
            "value": value,
            "stage": stage,
            "probability": probability,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_pipeline_summary(client, company_headers):
    await create_deal(client, company_headers, "Office fit-out", 100000, "proposal", 50)
    await create_deal(client, company_headers, "Roof repair", 20000, "proposal", 25)
    deal = await create_deal(client, company_headers, "New build", 500000, "lead", 10)

    response = await client.get("/api/crm/pipeline", headers=company_headers)
    pipeline = response.json()
    assert [s["stage"] for s in pipeline["stages"]] == [
        "lead",
        "qualified",
        "proposal",
        "negotiation",
        "closed",
    ]
    by_stage = {s["stage"]: s for s in pipeline["stages"]}
    assert by_stage["proposal"] == {"stage": "proposal", "count": 2, "value": 120000}
    assert by_stage["qualified"]["count"] == 0
    assert pipeline["total_deals"] == 3
    assert pipeline["total_value"] == 620000
    assert pipeline["weighted_value"] == 105000

    response = await client.put(
        f"/api/crm/deals/{deal['id']}",
        json={"stage": "negotiation", "probability": 60},
        headers=company_headers,
    )
    assert response.json()["stage"] == "negotiation"

    response = await client.get("/api/crm/deals?stage=proposal", headers=company_headers)
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_deal_validation(client, company_headers):
    response = await client.post(
        "/api/crm/deals",
        json={"title": "X", "customer": "Y", "stage": "won"},
        headers=company_headers,
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/crm/deals",
        json={"title": "X", "customer": "Y", "probability": 120},
        headers=company_headers,
    )
    assert response.status_code == 422

    response = await client.get("/api/crm/deals/4242", headers=company_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_ticket_filters(client, company_headers):
    tickets = [
        {"title": "Leaking geyser", "priority": "urgent", "assigned_to": "sipho"},
        {"title": "Invoice query", "priority": "low", "assigned_to": "lerato"},
        {"title": "Snag list", "priority": "urgent", "status": "in-progress"},
    ]
    for ticket in tickets:
        response = await client.post("/api/crm/tickets", json=ticket, headers=company_headers)
        assert response.status_code == 201

    response = await client.get("/api/crm/tickets?priority=urgent", headers=company_headers)
    assert response.json()["total"] == 2

    response = await client.get("/api/crm/tickets?assigned_to=lerato", headers=company_headers)
    items = response.json()["items"]
    assert [t["title"] for t in items] == ["Invoice query"]
    assert items[0]["status"] == "todo"

    response = await client.put(
        f"/api/crm/tickets/{items[0]['id']}",
        json={"status": "completed"},
        headers=company_headers,
    )
    assert response.json()["status"] == "completed"

    response = await client.get("/api/crm/tickets?status=completed", headers=company_headers)
    assert response.json()["total"] == 1

    response = await client.delete(f"/api/crm/tickets/{items[0]['id']}", headers=company_headers)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_inventory_low_stock_and_sku(client, company_headers):
    items = [
        {"sku": "PIPE-15", "name": "Copper pipe 15mm", "quantity_on_hand": 3, "reorder_level": 10},
        {"sku": "ELB-15", "name": "Elbow 15mm", "quantity_on_hand": 50, "reorder_level": 10},
        {"sku": "TAPE", "name": "PTFE tape", "quantity_on_hand": 5, "reorder_level": 5},
    ]
    for item in items:
        response = await client.post("/api/inventory", json=item, headers=company_headers)
        assert response.status_code == 201

    response = await client.post("/api/inventory", json=items[0], headers=company_headers)
    assert response.status_code == 400

    response = await client.get("/api/inventory/low-stock", headers=company_headers)
    assert [i["sku"] for i in response.json()] == ["PIPE-15", "TAPE"]

    response = await client.get("/api/inventory?search=15mm", headers=company_headers)
    assert response.json()["total"] == 2

    elbow_id = next(
        i["id"] for i in (await client.get("/api/inventory", headers=company_headers)).json()["items"]
        if i["sku"] == "ELB-15"
    )
    response = await client.put(
        f"/api/inventory/{elbow_id}", json={"quantity_on_hand": 8}, headers=company_headers
    )
    assert response.json()["quantity_on_hand"] == 8

    response = await client.get("/api/inventory/low-stock", headers=company_headers)
    assert len(response.json()) == 3

    response = await client.delete(f"/api/inventory/{elbow_id}", headers=company_headers)
    assert response.status_code == 204
    response = await client.get(f"/api/inventory/{elbow_id}", headers=company_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_inventory_update_rejects_null_required_fields(client, company_headers):
    response = await client.post(
        "/api/inventory",
        json={"sku": "GLUE", "name": "PVC cement", "quantity_on_hand": 4},
        headers=company_headers,
    )
    item_id = response.json()["id"]

    for payload in ({"name": None}, {"quantity_on_hand": None}):
        response = await client.put(
            f"/api/inventory/{item_id}", json=payload, headers=company_headers
        )
        assert response.status_code == 422, payload

    response = await client.put(
        f"/api/inventory/{item_id}", json={"description": None}, headers=company_headers
    )
    assert response.status_code == 200
    assert response.json()["name"] == "PVC cement"
    assert response.json()["quantity_on_hand"] == 4
