"""Tests for PAYE and statutory deductions."""

import pytest
from datetime import date
from bizsuite.services.paye import (
    DEFAULT_TAX_BRACKETS_2024,
    TaxBracketData,
    calculate_age,
    calculate_annual_paye,
    calculate_monthly_paye,
    calculate_napsa,
    calculate_nssa,
    calculate_payslip,
    calculate_uif,
    emp201_summary,
    get_age_group,
)


def test_calculate_age_before_and_after_birthday():
    dob = date(1990, 6, 15)
    assert calculate_age(dob, date(2024, 6, 14)) == 33
    assert calculate_age(dob, date(2024, 6, 15)) == 34


def test_age_groups():
    assert get_age_group(30) == "under_65"
    assert get_age_group(65) == "65_to_75"
    assert get_age_group(74) == "65_to_75"
    assert get_age_group(75) == "over_75"


def test_annual_paye_first_bracket():
    # 200 000 * 18% less the primary rebate
    tax = calculate_annual_paye(200000, 30, DEFAULT_TAX_BRACKETS_2024, "ZA")
    assert tax == pytest.approx(36000 - 17235)


def test_annual_paye_uses_threshold_of_higher_bracket():
    tax = calculate_annual_paye(500000, 30, DEFAULT_TAX_BRACKETS_2024, "ZA")
    assert tax == pytest.approx(77362 + 129500 * 0.31 - 17235)


def test_annual_paye_top_bracket_is_open_ended():
    tax = calculate_annual_paye(2000000, 30, DEFAULT_TAX_BRACKETS_2024, "ZA")
    assert tax == pytest.approx(644489 + 183000 * 0.45 - 17235)


def test_annual_paye_uses_age_group_rebate():
    tax = calculate_annual_paye(300000, 70, DEFAULT_TAX_BRACKETS_2024, "ZA")
    assert tax == pytest.approx(300000 * 0.18 - 26679)


def test_rebate_never_makes_tax_negative():
    assert calculate_annual_paye(50000, 30, DEFAULT_TAX_BRACKETS_2024, "ZA") == 0


def test_no_brackets_means_no_tax():
    assert calculate_annual_paye(500000, 30, [], "ZA") == 0


def test_other_countries_use_standard_brackets_without_rebate():
    brackets = [
        TaxBracketData(2024, "ZM", "under_65", 0, 60000, 0, 0),
        TaxBracketData(2024, "ZM", "under_65", 60000, None, 25, 0, rebate=1000),
    ]
    assert calculate_annual_paye(100000, 70, brackets, "ZM") == pytest.approx(10000)


def test_monthly_paye_annualises_salary():
    monthly = calculate_monthly_paye(20000, 30, DEFAULT_TAX_BRACKETS_2024, "ZA")
    annual = 42678 + (240000 - 237100) * 0.26 - 17235
    assert monthly == pytest.approx(annual / 12)


def test_statutory_deductions_by_country():
    assert calculate_uif(30000, "ZA") == pytest.approx(177.12)
    assert calculate_uif(10000, "ZA") == pytest.approx(100)
    assert calculate_uif(10000, "ZM") == 0
    assert calculate_napsa(10000, "ZM") == pytest.approx(500)
    assert calculate_nssa(500, "ZW") == pytest.approx(17.5)
    assert calculate_nssa(5000, "ZW") == pytest.approx(24.5)


def test_payslip():
    payslip = calculate_payslip(18000, 30, DEFAULT_TAX_BRACKETS_2024, "ZA", allowances=2000)

    assert payslip["gross_salary"] == 20000
    assert payslip["paye"] == pytest.approx(2183.08)
    assert payslip["uif"] == pytest.approx(177.12)
    assert payslip["napsa"] == 0
    assert payslip["net_salary"] == pytest.approx(17639.80)
    assert [d["name"] for d in payslip["deductions"]] == ["PAYE", "UIF"]


def test_payslip_zambia():
    payslip = calculate_payslip(10000, 40, [], "ZM", other_deductions=250)

    assert payslip["paye"] == 0
    assert payslip["napsa"] == pytest.approx(500)
    assert payslip["nhima"] == pytest.approx(100)
    assert payslip["net_salary"] == pytest.approx(9150)


class _Record:
    def __init__(self, gross_salary, paye, uif):
        self.gross_salary = gross_salary
        self.paye = paye
        self.uif = uif


def test_emp201_summary_doubles_uif():
    records = [_Record(20000, 2183.08, 177.12), _Record(10000, 0, 100)]
    summary = emp201_summary(records, 2024, 3)

    assert summary["employee_count"] == 2
    assert summary["total_gross"] == 30000
    assert summary["total_uif"] == pytest.approx(554.24)
    assert summary["total_due"] == pytest.approx(2183.08 + 554.24)
    assert summary["payment_reference"] == "PAYE 202403"
