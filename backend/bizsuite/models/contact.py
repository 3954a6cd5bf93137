"""Contact Model

Customers and suppliers of a company.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from bizsuite.core.database import Base


class Contact(Base):
    """Customer or supplier contact"""

    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(255), nullable=False, index=True)
    contact_type = Column(String(20), default="customer")  # customer, supplier, both
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(Text)
    tax_number = Column(String(100))
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_contacts_company", "company_id"),
        Index("idx_contacts_type", "contact_type"),
    )
