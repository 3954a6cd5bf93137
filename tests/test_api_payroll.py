"""API tests for employees, tax brackets and payroll processing."""

import pytest


async def create_employee(client, headers, number, salary, **fields):
    payload = {
        "employee_number": number,
        "first_name": "Thandi",
        "last_name": "Mokoena",
        "basic_salary": salary,
    }
    payload.update(fields)
    response = await client.post("/api/payroll/employees", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def seed_brackets(client, headers):
    response = await client.post("/api/payroll/tax-brackets/seed-defaults", headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_seed_default_brackets(client, company_headers):
    brackets = await seed_brackets(client, company_headers)
    assert {b["age_group"] for b in brackets} == {"under_65", "65_to_75", "over_75"}
    assert all(b["country"] == "ZA" and b["year"] == 2024 for b in brackets)

    response = await client.post(
        "/api/payroll/tax-brackets/seed-defaults", headers=company_headers
    )
    assert response.status_code == 400

    response = await client.get(
        "/api/payroll/tax-brackets?year=2024&country=za", headers=company_headers
    )
    assert len(response.json()) == len(brackets)


@pytest.mark.asyncio
async def test_custom_bracket_validation(client, company_headers):
    response = await client.post(
        "/api/payroll/tax-brackets",
        json={"year": 2024, "country": "zm", "bracket_min": 5000, "bracket_max": 4000, "rate": 20},
        headers=company_headers,
    )
    assert response.status_code == 422

    response = await client.post(
        "/api/payroll/tax-brackets",
        json={"year": 2024, "country": "zm", "bracket_min": 0, "rate": 10},
        headers=company_headers,
    )
    assert response.status_code == 201
    assert response.json()["country"] == "ZM"

    response = await client.delete(
        f"/api/payroll/tax-brackets/{response.json()['id']}", headers=company_headers
    )
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_calculate_preview(client, company_headers):
    request = {"basic_salary": 18000, "allowances": 2000, "age": 30}

    response = await client.post("/api/payroll/calculate", json=request, headers=company_headers)
    assert response.status_code == 200
    assert response.json()["paye"] == 0

    await seed_brackets(client, company_headers)
    response = await client.post("/api/payroll/calculate", json=request, headers=company_headers)
    payslip = response.json()
    assert payslip["gross_salary"] == 20000
    assert payslip["paye"] == pytest.approx(2183.08)
    assert payslip["uif"] == pytest.approx(177.12)
    assert payslip["net_salary"] == pytest.approx(17639.80)
    assert [d["name"] for d in payslip["deductions"]] == ["PAYE", "UIF"]


@pytest.mark.asyncio
async def test_employee_crud(client, company_headers):
    employee = await create_employee(client, company_headers, "EMP001", 20000)
    assert employee["is_active"] is True

    response = await client.post(
        "/api/payroll/employees",
        json={"employee_number": "EMP001", "first_name": "A", "last_name": "B", "basic_salary": 1},
        headers=company_headers,
    )
    assert response.status_code == 400

    response = await client.put(
        f"/api/payroll/employees/{employee['id']}",
        json={"basic_salary": 21000, "position": "Site manager"},
        headers=company_headers,
    )
    assert response.json()["basic_salary"] == 21000
    assert response.json()["position"] == "Site manager"

    response = await client.delete(
        f"/api/payroll/employees/{employee['id']}", headers=company_headers
    )
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_process_payroll_record(client, company_headers):
    await seed_brackets(client, company_headers)
    employee = await create_employee(client, company_headers, "EMP001", 18000)
    record_request = {
        "employee_id": employee["id"],
        "period_start": "2024-03-01",
        "period_end": "2024-03-31",
        "payment_date": "2024-03-25",
        "allowances": 2000,
    }

    response = await client.post("/api/payroll/records", json=record_request, headers=company_headers)
    assert response.status_code == 201
    record = response.json()
    assert record["status"] == "processed"
    assert record["gross_salary"] == 20000
    assert record["paye"] == pytest.approx(2183.08)
    assert record["net_salary"] == pytest.approx(17639.80)

    response = await client.post("/api/payroll/records", json=record_request, headers=company_headers)
    assert response.status_code == 400

    response = await client.delete(
        f"/api/payroll/employees/{employee['id']}", headers=company_headers
    )
    assert response.status_code == 400

    response = await client.get(
        f"/api/payroll/records?employee_id={employee['id']}", headers=company_headers
    )
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_payroll_record_validation(client, company_headers):
    response = await client.post(
        "/api/payroll/records",
        json={"employee_id": 999, "period_start": "2024-03-01", "period_end": "2024-03-31"},
        headers=company_headers,
    )
    assert response.status_code == 400

    employee = await create_employee(client, company_headers, "EMP002", 10000)
    response = await client.post(
        "/api/payroll/records",
        json={"employee_id": employee["id"], "period_start": "2024-03-31", "period_end": "2024-03-01"},
        headers=company_headers,
    )
    assert response.status_code == 422

    await client.put(
        f"/api/payroll/employees/{employee['id']}",
        json={"is_active": False},
        headers=company_headers,
    )
    response = await client.post(
        "/api/payroll/records",
        json={"employee_id": employee["id"], "period_start": "2024-03-01", "period_end": "2024-03-31"},
        headers=company_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_bulk_payroll_and_emp201(client, company_headers):
    await seed_brackets(client, company_headers)
    first = await create_employee(client, company_headers, "EMP001", 20000)
    await create_employee(client, company_headers, "EMP002", 10000)
    inactive = await create_employee(client, company_headers, "EMP003", 5000)
    await client.put(
        f"/api/payroll/employees/{inactive['id']}",
        json={"is_active": False},
        headers=company_headers,
    )

    await client.post(
        "/api/payroll/records",
        json={"employee_id": first["id"], "period_start": "2024-03-01", "period_end": "2024-03-31"},
        headers=company_headers,
    )

    response = await client.post(
        "/api/payroll/bulk",
        json={"period_start": "2024-03-01", "period_end": "2024-03-31"},
        headers=company_headers,
    )
    assert response.status_code == 201
    result = response.json()
    assert result["processed"] == 1
    assert result["skipped"] == ["EMP001"]
    assert result["records"][0]["gross_salary"] == 10000

    response = await client.get(
        "/api/payroll/emp201?year=2024&month=3", headers=company_headers
    )
    summary = response.json()
    assert summary["employee_count"] == 2
    assert summary["total_gross"] == 30000
    assert summary["uif_employee"] == pytest.approx(277.12)
    assert summary["total_uif"] == pytest.approx(554.24)
    assert summary["total_due"] == pytest.approx(summary["total_paye"] + 554.24)
    assert summary["payment_reference"] == "PAYE 202403"

    response = await client.get(
        "/api/payroll/emp201?year=2024&month=4", headers=company_headers
    )
    assert response.json()["employee_count"] == 0


@pytest.mark.asyncio
async def test_employee_update_rejects_null_required_fields(client, company_headers):
    employee = await create_employee(client, company_headers, "EMP010", 18000)

    for payload in ({"first_name": None}, {"basic_salary": None}, {"is_active": None}):
        response = await client.put(
            f"/api/payroll/employees/{employee['id']}", json=payload, headers=company_headers
        )
        assert response.status_code == 422, payload

    response = await client.get(
        f"/api/payroll/employees/{employee['id']}", headers=company_headers
    )
    assert response.json()["first_name"] == "Thandi"
