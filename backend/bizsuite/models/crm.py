"""CRM Models

Sales pipeline deals and support tickets.
"""

from sqlalchemy import Column, Integer, String, Text, Float, Date, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from bizsuite.core.database import Base


class Deal(Base):
    """Sales opportunity in the pipeline"""

    __tablename__ = "deals"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    title = Column(String(255), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"))
    customer = Column(String(255), nullable=False)
    value = Column(Float, default=0.0)
    stage = Column(
        String(20), default="lead", index=True
    )  # lead, qualified, proposal, negotiation, closed
    probability = Column(Integer, default=0)
    expected_close_date = Column(Date)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (Index("idx_deals_company", "company_id"),)


class Ticket(Base):
    """Support or task ticket"""

    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    title = Column(String(255), nullable=False)
    description = Column(Text)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"))
    assigned_to = Column(String(255))
    status = Column(
        String(20), default="todo", index=True
    )  # todo, in-progress, completed, on-hold
    priority = Column(String(20), default="medium")  # low, medium, high, urgent
    due_date = Column(Date)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (Index("idx_tickets_company", "company_id"),)
