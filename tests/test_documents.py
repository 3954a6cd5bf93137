"""Tests for document totals, numbering and status rules."""

import pytest
from datetime import date
from types import SimpleNamespace
from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.services.documents import (
    add_months,
    calculate_amount_due,
    calculate_invoice_status,
    calculate_totals,
    format_document_number,
    line_total,
    next_generation_date,
    next_sequence,
    purchase_payment_status,
    purchase_status_badge,
    receipt_status,
)

TODAY = date(2024, 6, 15)


def make_invoice(total=1000.0, payments=(), credit_notes=(), status="unpaid",
                 due_date=date(2024, 6, 30), invoice_type="invoice"):
    return SimpleNamespace(
        total=total,
        payments=[SimpleNamespace(amount=a) for a in payments],
        credit_notes=[
            SimpleNamespace(total=-a, invoice_type="credit-note") for a in credit_notes
        ],
        status=status,
        due_date=due_date,
        invoice_type=invoice_type,
    )


def test_totals_tax_on_subtotal_then_discount():
    totals = calculate_totals([line_total(2, 100), line_total(1, 50)], 0.15, discount=10)
    assert totals == {"subtotal": 250, "tax_amount": 37.5, "total": 277.5}


def test_document_numbers():
    assert format_document_number("invoice", 7) == "INV-0007"
    assert format_document_number("quote", 12) == "QTE-0012"
    assert format_document_number("credit-note", 1) == "CN-0001"
    assert format_document_number("purchase-order", 3) == "PO-00003"
    assert format_document_number("purchase", 42) == "PUR-00042"


def test_next_sequence_uses_highest_matching_number():
    existing = ["INV-0001", "INV-0009", "CN-0020", "legacy-77", None, "INV-0003"]
    assert next_sequence(existing, "invoice") == 10
    assert next_sequence(existing, "credit-note") == 21
    assert next_sequence([], "quote") == 1


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)


def test_next_generation_date():
    start = date(2024, 1, 31)
    assert next_generation_date(start, "weekly") == date(2024, 2, 7)
    assert next_generation_date(start, "monthly") == date(2024, 2, 29)
    assert next_generation_date(start, "quarterly") == date(2024, 4, 30)
    assert next_generation_date(date(2024, 2, 29), "yearly") == date(2025, 2, 28)
    with pytest.raises(BusinessRuleError):
        next_generation_date(start, "daily")


def test_invoice_status_unpaid_partly_paid_paid():
    assert calculate_invoice_status(make_invoice(), TODAY) == "unpaid"
    assert calculate_invoice_status(make_invoice(payments=[400]), TODAY) == "partly-paid"
    assert calculate_invoice_status(make_invoice(payments=[400, 600]), TODAY) == "paid"


def test_invoice_status_overdue_until_settled():
    invoice = make_invoice(due_date=date(2024, 6, 1), payments=[100])
    assert calculate_invoice_status(invoice, TODAY) == "overdue"

    invoice = make_invoice(due_date=date(2024, 6, 1), payments=[1000])
    assert calculate_invoice_status(invoice, TODAY) == "paid"


def test_credit_notes_reduce_amount_due():
    invoice = make_invoice(payments=[300], credit_notes=[700])
    assert calculate_amount_due(invoice) == 0
    assert calculate_invoice_status(invoice, TODAY) == "paid"

    invoice = make_invoice(credit_notes=[250])
    assert calculate_amount_due(invoice) == 750
    assert calculate_invoice_status(invoice, TODAY) == "partly-paid"


def test_amount_due_is_never_negative():
    assert calculate_amount_due(make_invoice(payments=[1200])) == 0


def test_drafts_and_credit_notes_keep_their_status():
    assert calculate_invoice_status(make_invoice(status="draft", payments=[1000]), TODAY) == "draft"
    credit_note = make_invoice(total=-100, invoice_type="credit-note")
    assert calculate_invoice_status(credit_note, TODAY) == "paid"
    assert calculate_amount_due(credit_note) == 0


def make_purchase(total=1000.0, payments=(), status="pending"):
    return SimpleNamespace(
        total=total,
        payments=[SimpleNamespace(amount=a) for a in payments],
        status=status,
    )


def test_purchase_payment_status():
    info = purchase_payment_status(make_purchase(payments=[250]))
    assert info == {
        "is_paid": False,
        "is_partially_paid": True,
        "remaining_balance": 750,
        "total_paid": 250,
        "payment_progress": 25,
    }

    info = purchase_payment_status(make_purchase(payments=[999.999]))
    assert info["is_paid"] is True


def test_purchase_progress_capped_and_balance_floored():
    info = purchase_payment_status(make_purchase(total=100, payments=[150]))
    assert info["payment_progress"] == 100
    assert info["remaining_balance"] == 0


def test_purchase_status_badge():
    assert purchase_status_badge(make_purchase(payments=[1000], status="received")) == (
        "PAID & RECEIVED"
    )
    assert purchase_status_badge(make_purchase(payments=[1000])) == "PAID"
    assert purchase_status_badge(make_purchase(payments=[10])) == "PARTIALLY PAID"
    assert purchase_status_badge(make_purchase(status="cancelled")) == "CANCELLED"
    assert purchase_status_badge(make_purchase(status="partly-received")) == "PARTLY RECEIVED"


def test_receipt_status():
    def line(quantity, received):
        return SimpleNamespace(quantity=quantity, received_quantity=received)

    assert receipt_status([line(5, 5), line(2, 2)]) == "received"
    assert receipt_status([line(5, 5), line(2, 0)]) == "partly-received"
    assert receipt_status([line(5, 0)]) == "pending"
