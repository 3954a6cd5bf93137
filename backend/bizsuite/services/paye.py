"""PAYE Calculator

Progressive income tax from configurable brackets, plus the statutory
employee deductions of the supported countries:

- ZA: UIF, age-group brackets and a primary rebate
- ZM: NAPSA and NHIMA
- ZW: NSSA

Other countries use the ``under_65`` brackets and no statutory deductions.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

UIF_RATE = 0.01
UIF_MAX_SALARY = 17712.0
NAPSA_RATE = 0.05
NHIMA_RATE = 0.01
NSSA_RATE = 0.035
NSSA_MAX_SALARY = 700.0

AGE_GROUPS = ("under_65", "65_to_75", "over_75")


@dataclass
class TaxBracketData:
    """Bracket row independent of the database (rate is a percentage)."""

    year: int
    country: str
    age_group: str
    bracket_min: float
    bracket_max: Optional[float]
    rate: float
    threshold: float = 0.0
    rebate: float = 0.0


def calculate_age(date_of_birth: date, today: Optional[date] = None) -> int:
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def get_age_group(age: int) -> str:
    if age < 65:
        return "under_65"
    if age < 75:
        return "65_to_75"
    return "over_75"


def applicable_brackets(brackets: Iterable, age: int, country: str) -> list:
    """Brackets for the employee's age group (ZA) or the standard group."""
    age_group = get_age_group(age) if country == "ZA" else "under_65"
    return sorted(
        (b for b in brackets if b.age_group == age_group),
        key=lambda b: b.bracket_min,
    )


def calculate_annual_paye(
    annual_income: float,
    age: int,
    brackets: Sequence,
    country: str,
) -> float:
    """Annual PAYE for ``annual_income``.

    The first bracket taxes income above its minimum at its rate. Every later
    bracket adds its rate on income above its minimum to its threshold, which
    already holds the tax due on everything below. In ZA the rebate of the
    first bracket is deducted, never taking tax below zero.
    """
    selected = applicable_brackets(brackets, age, country)
    if not selected:
        return 0.0

    tax = 0.0
    for i, bracket in enumerate(selected):
        bracket_max = bracket.bracket_max if bracket.bracket_max else float("inf")
        if annual_income <= bracket.bracket_min:
            continue

        taxable_in_bracket = min(annual_income, bracket_max) - bracket.bracket_min
        if i == 0 and annual_income <= bracket_max:
            tax = taxable_in_bracket * (bracket.rate / 100)
        else:
            tax = (bracket.threshold or 0.0) + taxable_in_bracket * (bracket.rate / 100)

        if annual_income <= bracket_max:
            break

    if country == "ZA":
        rebate = selected[0].rebate or 0.0
        tax = max(0.0, tax - rebate)

    return tax


def calculate_monthly_paye(
    monthly_salary: float,
    age: int,
    brackets: Sequence,
    country: str,
) -> float:
    return calculate_annual_paye(monthly_salary * 12, age, brackets, country) / 12


def calculate_uif(gross_salary: float, country: str) -> float:
    if country != "ZA":
        return 0.0
    return min(gross_salary, UIF_MAX_SALARY) * UIF_RATE


def calculate_napsa(gross_salary: float, country: str) -> float:
    if country != "ZM":
        return 0.0
    return gross_salary * NAPSA_RATE


def calculate_nhima(gross_salary: float, country: str) -> float:
    if country != "ZM":
        return 0.0
    return gross_salary * NHIMA_RATE


def calculate_nssa(gross_salary: float, country: str) -> float:
    if country != "ZW":
        return 0.0
    return min(gross_salary, NSSA_MAX_SALARY) * NSSA_RATE


def calculate_gross_salary(
    basic_salary: float,
    allowances: float = 0.0,
    overtime: float = 0.0,
    bonuses: float = 0.0,
) -> float:
    return basic_salary + allowances + overtime + bonuses


def get_statutory_deductions(gross_salary: float, paye: float, country: str) -> list[dict]:
    deductions = [{"name": "PAYE", "amount": paye}]
    if country == "ZA":
        deductions.append({"name": "UIF", "amount": calculate_uif(gross_salary, country)})
    elif country == "ZM":
        deductions.append({"name": "NAPSA", "amount": calculate_napsa(gross_salary, country)})
        deductions.append({"name": "NHIMA", "amount": calculate_nhima(gross_salary, country)})
    elif country == "ZW":
        deductions.append({"name": "NSSA", "amount": calculate_nssa(gross_salary, country)})
    return deductions


def calculate_net_salary(
    gross_salary: float,
    paye: float,
    country: str,
    other_deductions: float = 0.0,
) -> float:
    statutory = sum(d["amount"] for d in get_statutory_deductions(gross_salary, paye, country))
    return gross_salary - statutory - other_deductions


def calculate_payslip(
    basic_salary: float,
    age: int,
    brackets: Sequence,
    country: str,
    allowances: float = 0.0,
    overtime: float = 0.0,
    bonuses: float = 0.0,
    other_deductions: float = 0.0,
) -> dict:
    """Full monthly pay calculation, amounts rounded to cents."""
    gross = calculate_gross_salary(basic_salary, allowances, overtime, bonuses)
    paye = calculate_monthly_paye(gross, age, brackets, country)
    net = calculate_net_salary(gross, paye, country, other_deductions)
    return {
        "basic_salary": round(basic_salary, 2),
        "allowances": round(allowances, 2),
        "overtime": round(overtime, 2),
        "bonuses": round(bonuses, 2),
        "gross_salary": round(gross, 2),
        "paye": round(paye, 2),
        "uif": round(calculate_uif(gross, country), 2),
        "napsa": round(calculate_napsa(gross, country), 2),
        "nhima": round(calculate_nhima(gross, country), 2),
        "nssa": round(calculate_nssa(gross, country), 2),
        "other_deductions": round(other_deductions, 2),
        "net_salary": round(net, 2),
        "deductions": [
            {"name": d["name"], "amount": round(d["amount"], 2)}
            for d in get_statutory_deductions(gross, paye, country)
        ],
    }


def emp201_summary(records: Iterable, year: int, month: int) -> dict:
    """Monthly employer declaration totals.

    The employer matches the employee UIF contribution, so the amount due is
    PAYE plus twice the employee UIF.
    """
    employees = 0
    gross = 0.0
    paye = 0.0
    uif = 0.0
    for record in records:
        employees += 1
        gross += record.gross_salary or 0.0
        paye += record.paye or 0.0
        uif += record.uif or 0.0

    return {
        "year": year,
        "month": month,
        "employee_count": employees,
        "total_gross": round(gross, 2),
        "total_paye": round(paye, 2),
        "uif_employee": round(uif, 2),
        "uif_employer": round(uif, 2),
        "total_uif": round(uif * 2, 2),
        "total_due": round(paye + uif * 2, 2),
        "payment_reference": f"PAYE {year}{month:02d}",
    }


def _za_2024(age_group: str, rebate: float, rows: list[tuple]) -> list[TaxBracketData]:
    return [
        TaxBracketData(2024, "ZA", age_group, low, high, rate, threshold, rebate)
        for low, high, rate, threshold in rows
    ]


DEFAULT_TAX_BRACKETS_2024 = (
    _za_2024(
        "under_65",
        17235,
        [
            (0, 237100, 18, 0),
            (237100, 370500, 26, 42678),
            (370500, 512800, 31, 77362),
            (512800, 673000, 36, 121475),
            (673000, 857900, 39, 179147),
            (857900, 1817000, 41, 251258),
            (1817000, None, 45, 644489),
        ],
    )
    + _za_2024(
        "65_to_75",
        26679,
        [
            (0, 370500, 18, 0),
            (370500, 512800, 26, 24012),
            (512800, 673000, 31, 61110),
            (673000, 857900, 36, 110772),
            (857900, 1817000, 39, 177336),
            (1817000, None, 41, 570567),
        ],
    )
    + _za_2024(
        "over_75",
        29861,
        [
            (0, 512800, 18, 0),
            (512800, 673000, 26, 37008),
            (673000, 857900, 31, 78660),
            (857900, 1817000, 36, 136979),
            (1817000, None, 39, 482256),
        ],
    )
)
