"""API tests for formulas, calculators, the VAT report and the dashboard."""

import pytest

ROWS = [
    {"region": "North", "amount": 100},
    {"region": "South", "amount": 250.5},
    {"region": "North", "amount": 40},
]


@pytest.mark.asyncio
async def test_formula_catalogue(client):
    response = await client.get("/api/analytics/formulas")
    assert response.status_code == 200
    assert "SUM" in response.json()
    assert "IRR" in response.json()


@pytest.mark.asyncio
async def test_evaluate_formula(client, user_headers):
    response = await client.post(
        "/api/analytics/formula",
        json={"formula": "sum", "column": "amount", "data": ROWS},
        headers=user_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"formula": "SUM", "value": 390.5, "formatted": "390.50"}

    response = await client.post(
        "/api/analytics/formula",
        json={
            "formula": "SUMIF",
            "column": "amount",
            "data": ROWS,
            "params": {"criteria_col1": "region", "criteria_val1": "north"},
        },
        headers=user_headers,
    )
    assert response.json()["value"] == 140


@pytest.mark.asyncio
async def test_formula_errors(client, user_headers):
    response = await client.post(
        "/api/analytics/formula",
        json={"formula": "VLOOKUP", "column": "amount", "data": ROWS},
        headers=user_headers,
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/analytics/formula", json={"formula": "SUM", "column": "amount", "data": ROWS}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_formula_with_unsolvable_inputs_is_bad_request(client, user_headers):
    for params in (
        {"fv": 100, "rate": -1, "periods": 1},
        {"pv": 100, "rate": 10, "periods": 1000},
        {"pv": 100, "rate": -2, "periods": 0.5},
    ):
        formula = "PV" if "fv" in params else "FV"
        response = await client.post(
            "/api/analytics/formula",
            json={"formula": formula, "params": params},
            headers=user_headers,
        )
        assert response.status_code == 400, params


@pytest.mark.asyncio
async def test_calculators(client, user_headers):
    response = await client.get("/api/analytics/calculators")
    assert "markup-margin" in response.json()

    response = await client.post(
        "/api/analytics/calculators/markup-margin",
        json={"cost": 80, "selling_price": 100},
        headers=user_headers,
    )
    assert response.status_code == 200
    assert response.json()["markup"] == 25
    assert response.json()["margin"] == 20

    response = await client.post(
        "/api/analytics/calculators/markup-margin",
        json={"cost": 0, "selling_price": 100},
        headers=user_headers,
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/analytics/calculators/markup-margin",
        json={"cost": 80},
        headers=user_headers,
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/analytics/calculators/horoscope", json={}, headers=user_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_vat_report(client, company_headers, line_item):
    base = {"client_name": "Sipho Construction", "tax_rate": 0.15}
    response = await client.post(
        "/api/invoices",
        json={**base, "issue_date": "2024-03-05", "line_items": [line_item()]},
        headers=company_headers,
    )
    invoice = response.json()
    await client.post(
        "/api/invoices",
        json={**base, "issue_date": "2024-03-06", "status": "draft", "line_items": [line_item()]},
        headers=company_headers,
    )
    await client.post(
        "/api/invoices",
        json={**base, "issue_date": "2024-05-01", "line_items": [line_item()]},
        headers=company_headers,
    )
    await client.post(
        f"/api/invoices/{invoice['id']}/credit-notes",
        json={"issue_date": "2024-03-20", "line_items": [line_item(quantity=1)]},
        headers=company_headers,
    )

    purchase = {
        "vendor": "BuildIt Supplies",
        "tax_rate": 0.15,
        "purchase_date": "2024-03-10",
        "line_items": [{"description": "Cement", "quantity": 10, "unit_cost": 95}],
    }
    await client.post(
        "/api/purchases",
        json={**purchase, "supplier_invoice_number": "BI-1"},
        headers=company_headers,
    )
    response = await client.post("/api/purchases", json=purchase, headers=company_headers)
    await client.put(
        f"/api/purchases/{response.json()['id']}",
        json={"status": "cancelled"},
        headers=company_headers,
    )

    response = await client.get(
        "/api/analytics/vat-report?start=2024-03-01&end=2024-03-31", headers=company_headers
    )
    assert response.status_code == 200
    report = response.json()
    assert [t["reference"] for t in report["output_vat"]["transactions"]] == ["INV-0001"]
    assert report["output_vat"]["total_taxable"] == 200
    assert report["output_vat"]["total_vat"] == 30
    assert [t["reference"] for t in report["input_vat"]["transactions"]] == ["BI-1"]
    assert report["input_vat"]["total_vat"] == 142.5
    assert report["net_vat"] == -112.5

    response = await client.get(
        "/api/analytics/vat-report?start=2024-03-31&end=2024-03-01", headers=company_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_dashboard(client, company_headers, line_item):
    response = await client.post(
        "/api/invoices",
        json={
            "client_name": "Late Payer",
            "tax_rate": 0.15,
            "issue_date": "2024-03-05",
            "due_date": "2024-04-04",
            "line_items": [line_item()],
        },
        headers=company_headers,
    )
    await client.post(
        f"/api/invoices/{response.json()['id']}/payments",
        json={"amount": 30},
        headers=company_headers,
    )
    await client.post(
        "/api/crm/deals",
        json={"title": "Warehouse", "customer": "X", "value": 1000, "probability": 50},
        headers=company_headers,
    )
    await client.post(
        "/api/crm/deals",
        json={"title": "Done deal", "customer": "Y", "value": 5000, "stage": "closed"},
        headers=company_headers,
    )
    await client.post(
        "/api/inventory",
        json={"sku": "GLUE", "name": "Tile adhesive", "quantity_on_hand": 1, "reorder_level": 4},
        headers=company_headers,
    )

    response = await client.get("/api/analytics/dashboard", headers=company_headers)
    summary = response.json()
    assert summary["invoice_count"] == 1
    assert summary["total_invoiced"] == 230
    assert summary["total_outstanding"] == 200
    assert summary["overdue_count"] == 1
    assert summary["purchase_count"] == 0
    assert summary["open_deals"] == 1
    assert summary["pipeline_value"] == 1000
    assert summary["weighted_pipeline_value"] == 500
    assert summary["low_stock_items"] == 1


@pytest.mark.asyncio
async def test_ar_aging(client, company_headers, line_item):
    async def invoice(client_name, issue_date, **fields):
        response = await client.post(
            "/api/invoices",
            json={
                "client_name": client_name,
                "tax_rate": 0.15,
                "issue_date": issue_date,
                "line_items": [line_item()],
                **fields,
            },
            headers=company_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    recent = await invoice("Sipho Construction", "2024-06-10")
    await client.post(
        f"/api/invoices/{recent['id']}/payments", json={"amount": 30}, headers=company_headers
    )
    await invoice("Sipho Construction", "2024-04-15")
    await invoice("Amani Holdings", "2024-01-02")
    settled = await invoice("Amani Holdings", "2024-05-01")
    await client.post(
        f"/api/invoices/{settled['id']}/payments", json={"amount": 230}, headers=company_headers
    )
    await invoice("Amani Holdings", "2024-06-01", status="draft")
    await invoice("Amani Holdings", "2024-07-05")

    response = await client.get(
        "/api/analytics/ar-aging?as_at=2024-06-30", headers=company_headers
    )
    assert response.status_code == 200
    report = response.json()
    assert report["as_at"] == "2024-06-30"
    assert [row["contact_name"] for row in report["rows"]] == [
        "Amani Holdings",
        "Sipho Construction",
    ]
    amani, sipho = report["rows"]
    assert amani["days_120_plus"] == 230
    assert amani["total"] == 230
    assert sipho["current"] == 200
    assert sipho["days_30"] == 0
    assert sipho["days_60"] == 230
    assert sipho["total"] == 430
    assert report["totals"]["total"] == 660
    assert report["totals"]["current"] == 200


@pytest.mark.asyncio
async def test_ap_aging(client, company_headers):
    async def purchase(vendor, purchase_date):
        response = await client.post(
            "/api/purchases",
            json={
                "vendor": vendor,
                "tax_rate": 0.15,
                "purchase_date": purchase_date,
                "line_items": [{"description": "Cement", "quantity": 10, "unit_cost": 95}],
            },
            headers=company_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    partly_paid = await purchase("BuildIt Supplies", "2024-05-20")
    await client.post(
        f"/api/purchases/{partly_paid['id']}/payments",
        json={"amount": 92.5},
        headers=company_headers,
    )
    await purchase("Cape Timber", "2024-06-25")
    cancelled = await purchase("Cape Timber", "2024-06-26")
    await client.put(
        f"/api/purchases/{cancelled['id']}", json={"status": "cancelled"}, headers=company_headers
    )

    response = await client.get(
        "/api/analytics/ap-aging?as_at=2024-06-30", headers=company_headers
    )
    assert response.status_code == 200
    rows = {row["contact_name"]: row for row in response.json()["rows"]}
    assert rows["BuildIt Supplies"]["days_30"] == 1000
    assert rows["BuildIt Supplies"]["total"] == 1000
    assert rows["Cape Timber"]["current"] == pytest.approx(1092.5)
    assert response.json()["totals"]["total"] == pytest.approx(2092.5)


def test_aging_bucket_boundaries():
    from bizsuite.services.reports import aging_bucket

    assert aging_bucket(0) == "current"
    assert aging_bucket(30) == "current"
    assert aging_bucket(31) == "days_30"
    assert aging_bucket(90) == "days_60"
    assert aging_bucket(120) == "days_90"
    assert aging_bucket(121) == "days_120_plus"
