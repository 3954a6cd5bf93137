"""Quote Models

Quotes built by industry, with line items.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Float,
    Date,
    DateTime,
    ForeignKey,
    Index,
    JSON,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bizsuite.core.database import Base


class Quote(Base):
    """Customer quote"""

    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    quote_number = Column(String(50), nullable=False, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"))

    # Project details
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255))
    client_phone = Column(String(50))
    project_name = Column(String(255))
    project_address = Column(Text)
    industry = Column(
        String(40), default="construction"
    )  # construction, plumbing, electrical, professional-services
    start_date = Column(Date)
    estimated_duration = Column(String(100))
    notes = Column(Text)
    industry_fields = Column(JSON, default=dict)

    subtotal = Column(Float, default=0.0)
    tax_rate = Column(Float, default=0.0)
    tax_amount = Column(Float, default=0.0)
    discount = Column(Float, default=0.0)
    total = Column(Float, default=0.0)
    valid_until = Column(Date)
    status = Column(
        String(20), default="draft", index=True
    )  # draft, sent, accepted, declined, converted
    converted_invoice_id = Column(Integer)  # invoices.id, no FK since invoices.quote_id points back here
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    line_items = relationship(
        "QuoteLineItem",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteLineItem.id",
    )

    __table_args__ = (Index("idx_quotes_company", "company_id"),)


class QuoteLineItem(Base):
    """Line item on a quote"""

    __tablename__ = "quote_line_items"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    quote_id = Column(
        Integer, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(String(500), nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(30), default="each")
    unit_price = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    category = Column(String(100))

    quote = relationship("Quote", back_populates="line_items")
