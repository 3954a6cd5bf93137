"""Purchasing Models

Purchase orders, the purchases they convert into, and supplier payments.
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
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bizsuite.core.database import Base


class PurchaseOrder(Base):
    """Purchase order sent to a vendor"""

    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    po_number = Column(String(50), nullable=False, index=True)
    vendor = Column(String(255), nullable=False)
    vendor_contact = Column(String(255))
    order_date = Column(Date, nullable=False)
    expected_delivery = Column(Date)
    subtotal = Column(Float, default=0.0)
    tax_rate = Column(Float, default=0.0)
    tax_amount = Column(Float, default=0.0)
    discount = Column(Float, default=0.0)
    total = Column(Float, default=0.0)
    status = Column(
        String(20), default="draft", index=True
    )  # draft, sent, approved, rejected, converted
    notes = Column(Text)
    terms = Column(String(255))
    delivery_address = Column(Text)
    converted_to_purchase_id = Column(
        Integer, ForeignKey("purchases.id", ondelete="SET NULL")
    )
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    line_items = relationship(
        "PurchaseOrderLineItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderLineItem.id",
    )

    __table_args__ = (Index("idx_purchase_orders_company", "company_id"),)


class PurchaseOrderLineItem(Base):
    """Line item on a purchase order"""

    __tablename__ = "purchase_order_line_items"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    purchase_order_id = Column(
        Integer,
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description = Column(String(500), nullable=False)
    quantity = Column(Float, nullable=False)
    unit_cost = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    inventory_item_id = Column(
        Integer, ForeignKey("inventory_items.id", ondelete="SET NULL")
    )

    purchase_order = relationship("PurchaseOrder", back_populates="line_items")


class Purchase(Base):
    """Supplier purchase (goods bought, to be received and paid)"""

    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    purchase_number = Column(String(50), nullable=False, index=True)
    vendor = Column(String(255), nullable=False)
    vendor_contact = Column(String(255))
    purchase_date = Column(Date, nullable=False, index=True)
    due_date = Column(Date)
    subtotal = Column(Float, default=0.0)
    tax_rate = Column(Float, default=0.0)
    tax_amount = Column(Float, default=0.0)
    discount = Column(Float, default=0.0)
    total = Column(Float, default=0.0)
    status = Column(
        String(20), default="pending", index=True
    )  # pending, received, partly-received, cancelled
    inventory_method = Column(String(20), default="perpetual")  # perpetual, periodic
    supplier_invoice_number = Column(String(100))
    received_date = Column(Date)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    line_items = relationship(
        "PurchaseLineItem",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="PurchaseLineItem.id",
    )
    payments = relationship(
        "PurchasePayment",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="PurchasePayment.payment_date",
    )

    __table_args__ = (
        Index("idx_purchases_company", "company_id"),
        Index("idx_purchases_supplier_invoice", "company_id", "vendor", "supplier_invoice_number"),
    )


class PurchaseLineItem(Base):
    """Line item on a purchase, tracking received quantity"""

    __tablename__ = "purchase_line_items"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    purchase_id = Column(
        Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(String(500), nullable=False)
    quantity = Column(Float, nullable=False)
    received_quantity = Column(Float, default=0.0, nullable=False)
    unit_cost = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    category = Column(String(100))
    inventory_item_id = Column(
        Integer, ForeignKey("inventory_items.id", ondelete="SET NULL")
    )

    purchase = relationship("Purchase", back_populates="line_items")


class PurchasePayment(Base):
    """Payment made to a supplier against a purchase"""

    __tablename__ = "purchase_payments"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    purchase_id = Column(
        Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount = Column(Float, nullable=False)
    payment_date = Column(Date, nullable=False)
    method = Column(String(50), default="bank_transfer")
    reference = Column(String(100))
    created_at = Column(DateTime, server_default=func.now())

    purchase = relationship("Purchase", back_populates="payments")
