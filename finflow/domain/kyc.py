"""KYC progress across required document types"""

from decimal import Decimal
from typing import Any, Dict, Iterable

from finflow.domain.finance import quantize_money
from finflow.domain.models import (
    KYC_DOCUMENT_TYPES,
    REQUIRED_KYC_DOCUMENT_TYPES,
    KycDocumentState,
    KycSummary,
)


def latest_by_type(documents: Iterable[Any]) -> Dict[str, Any]:
    """Keep only the newest upload per document type (ids grow with insertion order)"""
    latest: Dict[str, Any] = {}
    for doc in documents:
        current = latest.get(doc.document_type)
        if current is None or doc.id > current.id:
            latest[doc.document_type] = doc
    return latest


def summarize_kyc(documents: Iterable[Any]) -> KycSummary:
    """
    Overall KYC status for one user's uploads.

    - verified: every required type has an approved latest upload (progress 100)
    - pending: no required type approved yet (progress 0)
    - partial: some required types approved (progress = approved / required * 100)
    """
    latest = latest_by_type(documents)

    states = []
    for doc_type in KYC_DOCUMENT_TYPES:
        doc = latest.get(doc_type)
        states.append(
            KycDocumentState(
                document_type=doc_type,
                required=doc_type in REQUIRED_KYC_DOCUMENT_TYPES,
                status=doc.status if doc is not None else "missing",
                document=doc,
            )
        )

    approved = sum(1 for s in states if s.required and s.status == "approved")
    required = len(REQUIRED_KYC_DOCUMENT_TYPES)

    if approved == required:
        return KycSummary(status="verified", progress=Decimal("100.00"), documents=states)
    if approved == 0:
        return KycSummary(status="pending", progress=Decimal("0.00"), documents=states)

    progress = quantize_money(Decimal(approved) * 100 / Decimal(required))
    return KycSummary(status="partial", progress=progress, documents=states)
