"""Payroll Models

Employees, configurable tax brackets and processed payroll records.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    String,
    Float,
    Date,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bizsuite.core.database import Base


class Employee(Base):
    """Employee on the company payroll"""

    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    employee_number = Column(String(50), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    id_number = Column(String(50))
    date_of_birth = Column(Date)
    email = Column(String(255))
    position = Column(String(100))
    department = Column(String(100))
    basic_salary = Column(Float, nullable=False, default=0.0)
    is_active = Column(Boolean, default=True, nullable=False)
    start_date = Column(Date)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    payroll_records = relationship(
        "PayrollRecord",
        back_populates="employee",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("company_id", "employee_number", name="uq_employee_number"),
    )


class TaxBracket(Base):
    """Progressive income tax bracket

    ``rate`` is a percentage; ``threshold`` is the tax already due on income
    up to ``bracket_min``.
    """

    __tablename__ = "tax_brackets"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    year = Column(Integer, nullable=False)
    country = Column(String(2), nullable=False)
    age_group = Column(String(20), default="under_65")  # under_65, 65_to_75, over_75
    bracket_min = Column(Float, nullable=False)
    bracket_max = Column(Float)
    rate = Column(Float, nullable=False)
    threshold = Column(Float, default=0.0)
    rebate = Column(Float, default=0.0)

    __table_args__ = (
        Index("idx_tax_brackets_lookup", "company_id", "country", "year"),
    )


class PayrollRecord(Base):
    """One employee's pay for one period"""

    __tablename__ = "payroll_records"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    employee_id = Column(
        Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    period_start = Column(Date, nullable=False, index=True)
    period_end = Column(Date, nullable=False)
    payment_date = Column(Date)
    basic_salary = Column(Float, default=0.0)
    allowances = Column(Float, default=0.0)
    overtime = Column(Float, default=0.0)
    bonuses = Column(Float, default=0.0)
    gross_salary = Column(Float, default=0.0)
    paye = Column(Float, default=0.0)
    uif = Column(Float, default=0.0)
    napsa = Column(Float, default=0.0)
    nhima = Column(Float, default=0.0)
    nssa = Column(Float, default=0.0)
    other_deductions = Column(Float, default=0.0)
    net_salary = Column(Float, default=0.0)
    status = Column(String(20), default="pending")  # pending, processed, paid
    created_at = Column(DateTime, server_default=func.now())

    employee = relationship("Employee", back_populates="payroll_records")

    __table_args__ = (
        Index("idx_payroll_records_company_period", "company_id", "period_start"),
    )
