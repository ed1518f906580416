"""Repository tests against the sqlite test database"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from sqlalchemy.exc import IntegrityError
from finflow.domain.dashboard import build_dashboard_metrics
from finflow.domain.exceptions import ConflictError, NotFoundError, ValidationError
from finflow.infrastructure.database.models import Invoice
from finflow.infrastructure.database.repositories import (
    GstFilingRepository,
    InvoiceRepository,
    KycDocumentRepository,
    LoanApplicationRepository,
    UpiPaymentRepository,
    UserRepository,
)


def _invoice(number, client="Acme Corp", amount="1000.00", status="pending", **extra):
    fields = {
        "invoice_number": number,
        "client_name": client,
        "amount": Decimal(amount),
        "due_date": date(2024, 12, 31),
        "status": status,
    }
    fields.update(extra)
    return fields


def _filing(due_in_days, status="pending", period="2024-11"):
    return {
        "filing_type": "GSTR-3B",
        "period": period,
        "due_date": date.today() + timedelta(days=due_in_days),
        "status": status,
    }


# Users

def test_user_upsert_is_idempotent(db):
    """Test repeated sign-in updates the same row"""
    repo = UserRepository(db)
    repo.upsert("u1", {"email": "u1@example.com", "first_name": "Old"})
    repo.upsert("u1", {"email": "u1@example.com", "first_name": "New"})
    db.commit()

    user = repo.get("u1")
    assert user.first_name == "New"
    assert user.kyc_status == "pending"


def test_user_duplicate_email_conflict(db):
    repo = UserRepository(db)
    repo.upsert("u1", {"email": "same@example.com"})
    db.commit()

    with pytest.raises(ConflictError):
        repo.upsert("u2", {"email": "same@example.com"})


# Ownership

def test_create_requires_existing_owner(db):
    with pytest.raises(NotFoundError):
        InvoiceRepository(db).create("ghost", _invoice("INV-1"))


def test_create_ignores_protected_fields(db, user, other_user):
    """Test payload owner/id never override the authenticated owner"""
    invoice = InvoiceRepository(db).create(
        user.id, {**_invoice("INV-1"), "user_id": other_user.id, "id": 999}
    )
    db.commit()

    assert invoice.user_id == user.id
    assert invoice.id != 999


def test_list_by_owner_scoped(db, user, other_user):
    repo = InvoiceRepository(db)
    repo.create(user.id, _invoice("INV-A1"))
    repo.create(other_user.id, _invoice("INV-B1"))
    db.commit()

    numbers = [inv.invoice_number for inv in repo.list_by_owner(user.id)]
    assert numbers == ["INV-A1"]


def test_list_by_owner_newest_first(db, user):
    repo = InvoiceRepository(db)
    for number in ("INV-1", "INV-2", "INV-3"):
        repo.create(user.id, _invoice(number))
    db.commit()

    numbers = [inv.invoice_number for inv in repo.list_by_owner(user.id)]
    assert numbers == ["INV-3", "INV-2", "INV-1"]


def test_foreign_record_behaves_as_missing(db, user, other_user):
    """Test get/update/delete on another user's invoice raise NotFoundError"""
    repo = InvoiceRepository(db)
    invoice = repo.create(other_user.id, _invoice("INV-B1"))
    db.commit()

    with pytest.raises(NotFoundError):
        repo.get_owned(invoice.id, user.id)
    with pytest.raises(NotFoundError):
        repo.update(invoice.id, user.id, {"client_name": "Hijacked"})
    with pytest.raises(NotFoundError):
        repo.delete(invoice.id, user.id)

    assert repo.get_by_id(invoice.id).client_name == "Acme Corp"


# Invoices

def test_duplicate_invoice_number_conflicts(db, user, other_user):
    """Test invoice numbers are unique across users and the original survives"""
    repo = InvoiceRepository(db)
    original = repo.create(user.id, _invoice("INV-2024-001", client="First Client"))
    db.commit()

    with pytest.raises(ConflictError):
        repo.create(other_user.id, _invoice("INV-2024-001", client="Second Client"))

    rows = db.query(Invoice).filter(Invoice.invoice_number == "INV-2024-001").all()
    assert len(rows) == 1
    assert rows[0].id == original.id
    assert rows[0].client_name == "First Client"


def test_invoice_requires_fields(db, user):
    with pytest.raises(ValidationError) as exc_info:
        InvoiceRepository(db).create(user.id, {"invoice_number": "INV-1"})

    fields = {e["field"] for e in exc_info.value.errors}
    assert fields == {"client_name", "amount", "due_date"}


def test_invoice_rejects_non_positive_amount(db, user):
    with pytest.raises(ValidationError):
        InvoiceRepository(db).create(user.id, _invoice("INV-1", amount="0"))


def test_invoice_search_and_status_filter(db, user):
    """Test case-insensitive search on number or client plus exact status"""
    repo = InvoiceRepository(db)
    repo.create(user.id, _invoice("INV-2024-001", client="ACME Corp", status="paid"))
    repo.create(user.id, _invoice("INV-2024-002", client="Globex", status="pending"))
    repo.create(user.id, _invoice("BILL-7", client="Initech", status="pending"))
    db.commit()

    by_client = repo.list_by_owner(user.id, search="acme")
    by_number = repo.list_by_owner(user.id, search="2024")
    pending = repo.list_by_owner(user.id, status="pending")
    everything = repo.list_by_owner(user.id, status="all")

    assert [i.client_name for i in by_client] == ["ACME Corp"]
    assert len(by_number) == 2
    assert {i.invoice_number for i in pending} == {"INV-2024-002", "BILL-7"}
    assert len(everything) == 3


def test_invoice_search_treats_wildcards_literally(db, user):
    repo = InvoiceRepository(db)
    repo.create(user.id, _invoice("INV-1", client="Acme Corp"))
    db.commit()

    assert repo.list_by_owner(user.id, search="%") == []


def test_invoice_update_merges_and_refreshes_timestamp(db, user):
    repo = InvoiceRepository(db)
    invoice = repo.create(user.id, _invoice("INV-1"))
    db.commit()
    created_at, updated_at = invoice.created_at, invoice.updated_at

    repo.update(invoice.id, user.id, {"status": "paid"})
    db.commit()
    db.refresh(invoice)

    assert invoice.status == "paid"
    assert invoice.client_name == "Acme Corp"
    assert invoice.created_at == created_at
    assert invoice.updated_at >= updated_at


def test_invoice_paid_cannot_return_to_pending(db, user):
    repo = InvoiceRepository(db)
    invoice = repo.create(user.id, _invoice("INV-1", status="paid"))
    db.commit()

    with pytest.raises(ValidationError):
        repo.update(invoice.id, user.id, {"status": "pending"})


def test_invoice_delete(db, user):
    repo = InvoiceRepository(db)
    invoice = repo.create(user.id, _invoice("INV-1"))
    db.commit()

    repo.delete(invoice.id, user.id)
    db.commit()

    assert repo.list_by_owner(user.id) == []
    with pytest.raises(NotFoundError):
        repo.delete(invoice.id, user.id)


# Loan applications

def test_loan_wizard_draft_then_submit(db, user):
    """Test step 2 draft submitted at step 3, then resubmitted without duplication"""
    repo = LoanApplicationRepository(db)
    application = repo.create(
        user.id,
        {"amount": Decimal("500000"), "tenure_months": 24, "purpose": "working_capital", "current_step": 2},
        action="save_draft",
    )
    db.commit()
    assert (application.status, application.current_step) == ("draft", 2)

    repo.update(application.id, user.id, {"current_step": 3}, action="submit")
    db.commit()
    assert (application.status, application.current_step) == ("submitted", 3)

    repo.update(application.id, user.id, {"current_step": 3}, action="submit")
    db.commit()
    assert (application.status, application.current_step) == ("submitted", 3)
    assert len(repo.list_by_owner(user.id)) == 1


def test_loan_draft_status_on_create_means_save_draft(db, user):
    application = LoanApplicationRepository(db).create(
        user.id, {"amount": Decimal("0"), "tenure_months": 0, "purpose": "", "status": "draft"}
    )

    assert application.status == "draft"
    assert application.current_step == 1


def test_loan_back_office_status_change(db, user):
    repo = LoanApplicationRepository(db)
    application = repo.create(
        user.id,
        {"amount": Decimal("100000"), "tenure_months": 12, "purpose": "inventory", "current_step": 3},
    )
    db.commit()
    assert application.status == "submitted"

    repo.update(application.id, user.id, {"status": "approved"})
    repo.update(application.id, user.id, {"status": "disbursed"})
    db.commit()

    assert application.status == "disbursed"
    with pytest.raises(ValidationError):
        repo.update(application.id, user.id, {"status": "draft"})


# UPI payments

def _payment(**extra):
    fields = {
        "amount": Decimal("2500.00"),
        "description": "Advance",
        "payment_link": "https://finflow.app/pay/PAY_1",
        "qr_code": "data:image/svg+xml;base64,AAAA",
    }
    fields.update(extra)
    return fields


def test_payment_rejects_foreign_invoice(db, user, other_user):
    invoice = InvoiceRepository(db).create(other_user.id, _invoice("INV-B1"))
    db.commit()

    with pytest.raises(ValidationError) as exc_info:
        UpiPaymentRepository(db).create(user.id, _payment(invoice_id=invoice.id))

    assert exc_info.value.errors[0]["field"] == "invoiceId"


def test_payment_link_fixed_after_creation(db, user):
    repo = UpiPaymentRepository(db)
    payment = repo.create(user.id, _payment())
    db.commit()

    repo.update(payment.id, user.id, {"status": "completed", "payment_link": "https://evil.example/pay"})
    db.commit()

    assert payment.status == "completed"
    assert payment.payment_link == "https://finflow.app/pay/PAY_1"


# GST filings

def test_gst_filings_ordered_by_due_date(db, user):
    repo = GstFilingRepository(db)
    repo.create(user.id, _filing(20))
    repo.create(user.id, _filing(3))
    repo.create(user.id, _filing(10))
    db.commit()

    due_dates = [f.due_date for f in repo.list_by_owner(user.id)]
    assert due_dates == sorted(due_dates)


def test_gst_filing_stamps_filed_at(db, user):
    repo = GstFilingRepository(db)
    filing = repo.create(user.id, _filing(5))
    db.commit()
    assert filing.filed_at is None

    repo.update(filing.id, user.id, {"status": "filed"})
    db.commit()

    assert filing.filed_at is not None
    with pytest.raises(ValidationError):
        repo.update(filing.id, user.id, {"status": "pending"})


def test_gst_filing_rejects_bad_period(db, user):
    with pytest.raises(ValidationError) as exc_info:
        GstFilingRepository(db).create(user.id, _filing(5, period="2024-13"))
    assert exc_info.value.errors[0]["field"] == "period"


# KYC documents

def test_kyc_rejects_unknown_document_type(db, user):
    with pytest.raises(ValidationError):
        KycDocumentRepository(db).create(
            user.id, {"document_type": "passport", "file_name": "p.pdf", "file_url": "https://x/p.pdf"}
        )


# Dashboard

def _dashboard(db, user_id):
    return build_dashboard_metrics(
        user_id,
        InvoiceRepository(db),
        LoanApplicationRepository(db),
        GstFilingRepository(db),
    )


def test_dashboard_revenue_sums_paid_invoices(db, user, other_user):
    """Test revenue is the exact decimal sum of paid invoices only"""
    repo = InvoiceRepository(db)
    repo.create(user.id, _invoice("INV-1", amount="45000.00", status="paid"))
    repo.create(user.id, _invoice("INV-2", amount="125500.50", status="paid"))
    repo.create(user.id, _invoice("INV-3", amount="75000.00", status="pending"))
    repo.create(user.id, _invoice("INV-4", amount="9000.00", status="overdue"))
    repo.create(other_user.id, _invoice("INV-5", amount="99999.00", status="paid"))
    db.commit()

    metrics = _dashboard(db, user.id)

    assert metrics.total_revenue == Decimal("170500.50")
    assert metrics.pending_invoices == 1
    assert metrics.overdue_invoices == 1


def test_dashboard_empty_user(db, user):
    metrics = _dashboard(db, user.id)

    assert metrics.total_revenue == Decimal("0.00")
    assert metrics.active_loans == 0
    assert metrics.upcoming_gst_filings == []


def test_dashboard_counts_disbursed_loans_only(db, user):
    repo = LoanApplicationRepository(db)
    loan_fields = {"amount": Decimal("100000"), "tenure_months": 12, "purpose": "inventory", "current_step": 3}
    disbursed = repo.create(user.id, dict(loan_fields))
    repo.create(user.id, dict(loan_fields))
    repo.update(disbursed.id, user.id, {"status": "approved"})
    repo.update(disbursed.id, user.id, {"status": "disbursed"})
    db.commit()

    assert _dashboard(db, user.id).active_loans == 1


def test_dashboard_upcoming_filings(db, user):
    """Test at most five pending filings, soonest first"""
    repo = GstFilingRepository(db)
    for days in (30, 2, 14, 7, 21, 45, 60):
        repo.create(user.id, _filing(days))
    repo.create(user.id, _filing(1, status="filed"))
    db.commit()

    upcoming = _dashboard(db, user.id).upcoming_gst_filings

    assert len(upcoming) == 5
    assert [(f.due_date - date.today()).days for f in upcoming] == [2, 7, 14, 21, 30]
    assert all(f.status == "pending" for f in upcoming)


def test_dashboard_excludes_filed_past_filing(db, user):
    """Test a filed return due 5 days ago is dropped, a pending one due in 5 days kept"""
    repo = GstFilingRepository(db)
    repo.create(user.id, _filing(-5, status="filed"))
    upcoming_filing = repo.create(user.id, _filing(5))
    db.commit()

    upcoming = _dashboard(db, user.id).upcoming_gst_filings

    assert [f.id for f in upcoming] == [upcoming_filing.id]


def test_deleting_invoice_detaches_payments(db, user, other_user):
    """Test payments lose their invoice link and the id is not reissued"""
    invoices = InvoiceRepository(db)
    invoice = invoices.create(user.id, _invoice("INV-A1"))
    db.commit()
    deleted_id = invoice.id
    payment = UpiPaymentRepository(db).create(user.id, _payment(invoice_id=deleted_id))
    db.commit()

    invoices.delete(deleted_id, user.id)
    db.commit()
    db.refresh(payment)

    assert payment.invoice_id is None
    replacement = invoices.create(other_user.id, _invoice("INV-B1"))
    db.commit()
    assert replacement.id != deleted_id


def test_non_unique_integrity_error_is_not_conflict(db, user):
    """Test NOT NULL failures propagate instead of becoming a 409"""
    with pytest.raises(IntegrityError):
        KycDocumentRepository(db).create(user.id, {"document_type": "pan", "file_url": "https://x/pan.pdf"})


@pytest.mark.parametrize(
    "fields,field",
    [
        ({"amount": Decimal("-1"), "tenure_months": 12}, "amount"),
        ({"amount": Decimal("1000"), "tenure_months": -3}, "tenureMonths"),
    ],
)
def test_loan_draft_rejects_negative_values(db, user, fields, field):
    with pytest.raises(ValidationError) as exc_info:
        LoanApplicationRepository(db).create(user.id, fields, action="save_draft")

    assert exc_info.value.errors[0]["field"] == field


def test_loan_draft_update_rejects_negative_amount(db, user):
    repo = LoanApplicationRepository(db)
    application = repo.create(user.id, {"amount": Decimal("0")}, action="save_draft")
    db.commit()

    with pytest.raises(ValidationError):
        repo.update(application.id, user.id, {"amount": Decimal("-50")}, action="save_draft")
