"""Company Models

A company is the tenant boundary: every business record belongs to one.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Float,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bizsuite.core.database import Base


class Company(Base):
    """Tenant company with its tax and currency settings"""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    name = Column(String(255), nullable=False, index=True)
    registration_number = Column(String(100))
    tax_number = Column(String(100))  # PAYE / VAT reference
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(Text)
    country = Column(String(2), default="ZA")  # ZA, ZM, ZW, ...
    currency = Column(String(3), default="ZAR")
    currency_symbol = Column(String(5), default="R")
    vat_rate = Column(Float, default=0.15)
    current_tax_year = Column(Integer, default=2024)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    members = relationship(
        "CompanyMember",
        back_populates="company",
        cascade="all, delete-orphan",
    )


class CompanyMember(Base):
    """User membership in a company"""

    __tablename__ = "company_members"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(20), default="member", nullable=False)  # owner, admin, member
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    company = relationship("Company", back_populates="members")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="uq_company_member"),
        Index("idx_company_members_user", "user_id"),
    )
