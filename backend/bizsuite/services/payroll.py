"""Payroll Services

Tax bracket lookup, payroll record processing and monthly declarations.
"""

import calendar
import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.models.company import Company
from bizsuite.models.payroll import Employee, PayrollRecord, TaxBracket
from bizsuite.services.paye import (
    DEFAULT_TAX_BRACKETS_2024,
    calculate_age,
    calculate_payslip,
    emp201_summary,
)

logger = logging.getLogger(__name__)

# used when an employee has no date of birth on file
DEFAULT_AGE = 30


class PayrollService:
    """Service for payroll business operations"""

    @staticmethod
    async def get_brackets(
        db: AsyncSession,
        company_id: int,
        country: str,
        year: int,
    ) -> list[TaxBracket]:
        result = await db.execute(
            select(TaxBracket)
            .where(
                TaxBracket.company_id == company_id,
                TaxBracket.country == country,
                TaxBracket.year == year,
            )
            .order_by(TaxBracket.age_group, TaxBracket.bracket_min)
        )
        return list(result.scalars().all())

    @staticmethod
    async def seed_default_brackets(db: AsyncSession, company_id: int) -> list[TaxBracket]:
        """Load the built-in ZA 2024 table unless the company already has it"""
        existing = await PayrollService.get_brackets(db, company_id, "ZA", 2024)
        if existing:
            raise BusinessRuleError("Default ZA 2024 tax brackets are already loaded")

        brackets = [
            TaxBracket(
                company_id=company_id,
                year=row.year,
                country=row.country,
                age_group=row.age_group,
                bracket_min=row.bracket_min,
                bracket_max=row.bracket_max,
                rate=row.rate,
                threshold=row.threshold,
                rebate=row.rebate,
            )
            for row in DEFAULT_TAX_BRACKETS_2024
        ]
        db.add_all(brackets)
        await db.flush()
        logger.info(f"Seeded {len(brackets)} tax brackets for company {company_id}")
        return brackets

    @staticmethod
    async def calculate(
        db: AsyncSession,
        company: Company,
        basic_salary: float,
        age: int,
        allowances: float = 0.0,
        overtime: float = 0.0,
        bonuses: float = 0.0,
        other_deductions: float = 0.0,
        country: Optional[str] = None,
        year: Optional[int] = None,
    ) -> dict:
        country = (country or company.country or "ZA").upper()
        year = year or company.current_tax_year
        brackets = await PayrollService.get_brackets(db, company.id, country, year)
        return calculate_payslip(
            basic_salary,
            age,
            brackets,
            country,
            allowances=allowances,
            overtime=overtime,
            bonuses=bonuses,
            other_deductions=other_deductions,
        )

    @staticmethod
    async def process_employee(
        db: AsyncSession,
        company: Company,
        employee: Employee,
        period_start: date,
        period_end: date,
        payment_date: Optional[date] = None,
        allowances: float = 0.0,
        overtime: float = 0.0,
        bonuses: float = 0.0,
        other_deductions: float = 0.0,
    ) -> PayrollRecord:
        """Compute and store one employee's pay for a period"""
        if not employee.is_active:
            raise BusinessRuleError(f"Employee {employee.employee_number} is not active")

        existing = await db.execute(
            select(PayrollRecord.id).where(
                PayrollRecord.employee_id == employee.id,
                PayrollRecord.period_start == period_start,
            )
        )
        if existing.first():
            raise BusinessRuleError(
                f"Payroll for {employee.employee_number} starting {period_start} already exists"
            )

        age = (
            calculate_age(employee.date_of_birth, period_end)
            if employee.date_of_birth
            else DEFAULT_AGE
        )
        payslip = await PayrollService.calculate(
            db,
            company,
            employee.basic_salary,
            age,
            allowances=allowances,
            overtime=overtime,
            bonuses=bonuses,
            other_deductions=other_deductions,
        )
        payslip.pop("deductions")

        record = PayrollRecord(
            company_id=company.id,
            employee_id=employee.id,
            period_start=period_start,
            period_end=period_end,
            payment_date=payment_date,
            status="processed",
            **payslip,
        )
        db.add(record)
        await db.flush()
        logger.info(
            f"Processed payroll for {employee.employee_number}: "
            f"gross {record.gross_salary:.2f}, net {record.net_salary:.2f}"
        )
        return record

    @staticmethod
    async def process_bulk(
        db: AsyncSession,
        company: Company,
        period_start: date,
        period_end: date,
        payment_date: Optional[date] = None,
    ) -> tuple[list[PayrollRecord], list[str]]:
        """Process every active employee; already processed ones are skipped"""
        result = await db.execute(
            select(Employee)
            .where(Employee.company_id == company.id, Employee.is_active.is_(True))
            .order_by(Employee.employee_number)
        )
        records = []
        skipped = []
        for employee in result.scalars().all():
            try:
                record = await PayrollService.process_employee(
                    db, company, employee, period_start, period_end, payment_date
                )
            except BusinessRuleError as e:
                logger.error(f"Skipping {employee.employee_number}: {e}")
                skipped.append(employee.employee_number)
                continue
            records.append(record)

        logger.info(
            f"Bulk payroll for company {company.id}: {len(records)} processed, "
            f"{len(skipped)} skipped"
        )
        return records, skipped

    @staticmethod
    async def emp201(db: AsyncSession, company_id: int, year: int, month: int) -> dict:
        """Declaration totals for records paid within a calendar month"""
        if not 1 <= month <= 12:
            raise BusinessRuleError("Month must be between 1 and 12")
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        result = await db.execute(
            select(PayrollRecord).where(
                PayrollRecord.company_id == company_id,
                PayrollRecord.period_start >= first,
                PayrollRecord.period_start <= last,
            )
        )
        return emp201_summary(result.scalars().all(), year, month)
