"""Inventory Model

Stock items with on-hand quantity and reorder level.
"""

from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from bizsuite.core.database import Base


class InventoryItem(Base):
    """Stocked item"""

    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, autoincrement="auto")
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    sku = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    unit = Column(String(30), default="each")
    category = Column(String(100))
    cost_price = Column(Float, default=0.0)
    selling_price = Column(Float, default=0.0)
    quantity_on_hand = Column(Float, default=0.0, nullable=False)
    reorder_level = Column(Float, default=0.0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (UniqueConstraint("company_id", "sku", name="uq_inventory_sku"),)
