"""BizSuite Models

SQLAlchemy models for all business entities.
"""

from bizsuite.models.user import User
from bizsuite.models.company import Company, CompanyMember
from bizsuite.models.contact import Contact
from bizsuite.models.inventory import InventoryItem
from bizsuite.models.quote import Quote, QuoteLineItem
from bizsuite.models.invoice import (
    Invoice,
    InvoiceLineItem,
    InvoicePayment,
    RecurringInvoice,
    RecurringInvoiceLineItem,
)
from bizsuite.models.purchasing import (
    PurchaseOrder,
    PurchaseOrderLineItem,
    Purchase,
    PurchaseLineItem,
    PurchasePayment,
)
from bizsuite.models.payroll import Employee, TaxBracket, PayrollRecord
from bizsuite.models.crm import Deal, Ticket

__all__ = [
    "User",
    "Company",
    "CompanyMember",
    "Contact",
    "InventoryItem",
    "Quote",
    "QuoteLineItem",
    "Invoice",
    "InvoiceLineItem",
    "InvoicePayment",
    "RecurringInvoice",
    "RecurringInvoiceLineItem",
    "PurchaseOrder",
    "PurchaseOrderLineItem",
    "Purchase",
    "PurchaseLineItem",
    "PurchasePayment",
    "Employee",
    "TaxBracket",
    "PayrollRecord",
    "Deal",
    "Ticket",
]
