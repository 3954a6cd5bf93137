"""Invoice Models

Invoices, credit notes, invoice payments and recurring invoice templates.
A credit note is an invoice row with ``invoice_type == "credit-note"`` that
points at the invoice it credits.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    String,
    Text,
    Float,
    Date,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bizsuite.core.database import Base


class Invoice(Base):
    """Sales invoice or credit note"""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    invoice_number = Column(String(50), nullable=False, index=True)
    invoice_type = Column(String(20), default="invoice")  # invoice, credit-note
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="SET NULL"))
    original_invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"))
    recurring_invoice_id = Column(
        Integer, ForeignKey("recurring_invoices.id", ondelete="SET NULL")
    )
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"))

    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255))
    client_phone = Column(String(50))
    project_name = Column(String(255))
    project_address = Column(Text)

    issue_date = Column(Date, nullable=False, index=True)
    due_date = Column(Date, nullable=False)
    subtotal = Column(Float, default=0.0)
    tax_rate = Column(Float, default=0.0)
    tax_amount = Column(Float, default=0.0)
    discount = Column(Float, default=0.0)
    total = Column(Float, default=0.0)
    status = Column(
        String(20), default="unpaid", index=True
    )  # draft, paid, unpaid, partly-paid, overdue
    payment_terms = Column(String(100), default="Net 30")
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    line_items = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineItem.id",
    )
    payments = relationship(
        "InvoicePayment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoicePayment.payment_date",
    )
    credit_notes = relationship(
        "Invoice",
        back_populates="original_invoice",
        cascade="all, delete-orphan",
    )
    original_invoice = relationship(
        "Invoice", back_populates="credit_notes", remote_side=[id]
    )

    __table_args__ = (
        Index("idx_invoices_company", "company_id"),
        Index("idx_invoices_type", "invoice_type"),
    )


class InvoiceLineItem(Base):
    """Line item on an invoice"""

    __tablename__ = "invoice_line_items"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    invoice_id = Column(
        Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(String(500), nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(30), default="each")
    unit_price = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    inventory_item_id = Column(
        Integer, ForeignKey("inventory_items.id", ondelete="SET NULL")
    )

    invoice = relationship("Invoice", back_populates="line_items")


class InvoicePayment(Base):
    """Payment received against an invoice"""

    __tablename__ = "invoice_payments"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    invoice_id = Column(
        Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount = Column(Float, nullable=False)
    payment_date = Column(Date, nullable=False)
    method = Column(String(50), default="bank_transfer")  # bank_transfer, card, cash, cheque
    reference = Column(String(100))
    created_at = Column(DateTime, server_default=func.now())

    invoice = relationship("Invoice", back_populates="payments")


class RecurringInvoice(Base):
    """Template from which invoices are generated on a schedule"""

    __tablename__ = "recurring_invoices"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"))
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255))
    frequency = Column(String(20), nullable=False)  # weekly, monthly, quarterly, yearly
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)
    next_invoice_date = Column(Date, nullable=False, index=True)
    last_generated_date = Column(Date)
    is_active = Column(Boolean, default=True, nullable=False)
    subtotal = Column(Float, default=0.0)
    tax_rate = Column(Float, default=0.0)
    tax_amount = Column(Float, default=0.0)
    discount = Column(Float, default=0.0)
    total = Column(Float, default=0.0)
    payment_terms_days = Column(Integer, default=30)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    line_items = relationship(
        "RecurringInvoiceLineItem",
        back_populates="recurring_invoice",
        cascade="all, delete-orphan",
        order_by="RecurringInvoiceLineItem.id",
    )

    __table_args__ = (Index("idx_recurring_invoices_company", "company_id"),)


class RecurringInvoiceLineItem(Base):
    """Line item on a recurring invoice template"""

    __tablename__ = "recurring_invoice_line_items"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    recurring_invoice_id = Column(
        Integer,
        ForeignKey("recurring_invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description = Column(String(500), nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(30), default="each")
    unit_price = Column(Float, nullable=False)
    total = Column(Float, nullable=False)

    recurring_invoice = relationship("RecurringInvoice", back_populates="line_items")
