"""Unit tests for KYC progress aggregation"""

from decimal import Decimal
from types import SimpleNamespace
from finflow.domain.kyc import latest_by_type, summarize_kyc


def _doc(doc_id, document_type, status="pending"):
    return SimpleNamespace(id=doc_id, document_type=document_type, status=status)


def test_latest_upload_supersedes_older():
    """Test newer upload of the same type replaces the earlier one"""
    docs = [_doc(1, "pan", "rejected"), _doc(3, "pan", "pending"), _doc(2, "aadhaar")]

    latest = latest_by_type(docs)

    assert latest["pan"].id == 3
    assert latest["aadhaar"].id == 2


def test_summary_no_documents():
    summary = summarize_kyc([])

    assert summary.status == "pending"
    assert summary.progress == Decimal("0.00")
    assert all(state.status == "missing" for state in summary.documents)
    assert len(summary.documents) == 6


def test_summary_partial_progress():
    """Test 2 of 4 required documents approved -> 50%"""
    docs = [
        _doc(1, "pan", "approved"),
        _doc(2, "aadhaar", "approved"),
        _doc(3, "address_proof", "pending"),
        _doc(4, "gst_certificate", "approved"),  # optional, not counted
    ]

    summary = summarize_kyc(docs)

    assert summary.status == "partial"
    assert summary.progress == Decimal("50.00")


def test_summary_verified_when_all_required_approved():
    docs = [
        _doc(i, doc_type, "approved")
        for i, doc_type in enumerate(["pan", "aadhaar", "address_proof", "bank_statement"], start=1)
    ]

    summary = summarize_kyc(docs)

    assert summary.status == "verified"
    assert summary.progress == Decimal("100.00")


def test_summary_uses_latest_status():
    """Test a rejected re-upload cancels an earlier approval"""
    docs = [_doc(1, "pan", "approved"), _doc(5, "pan", "rejected")]

    summary = summarize_kyc(docs)

    assert summary.status == "pending"
    pan = next(s for s in summary.documents if s.document_type == "pan")
    assert pan.status == "rejected"
    assert pan.required is True
