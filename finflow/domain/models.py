"""Domain models - pure Python dataclasses for derived finance values"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List


# Status vocabularies
LOAN_STATUSES = ("draft", "submitted", "approved", "rejected", "disbursed")
INVOICE_STATUSES = ("pending", "paid", "overdue")
PAYMENT_STATUSES = ("pending", "completed", "failed")
GST_STATUSES = ("pending", "filed", "overdue")
KYC_DOCUMENT_STATUSES = ("pending", "approved", "rejected")
USER_KYC_STATUSES = ("pending", "verified", "rejected")

KYC_DOCUMENT_TYPES = (
    "pan",
    "aadhaar",
    "address_proof",
    "bank_statement",
    "gst_certificate",
    "incorporation_certificate",
)
REQUIRED_KYC_DOCUMENT_TYPES = ("pan", "aadhaar", "address_proof", "bank_statement")

LOAN_WIZARD_STEPS = 3


@dataclass
class EmiBreakdown:
    """Fixed monthly repayment for an amortizing loan"""

    principal: Decimal
    annual_rate: Decimal
    tenure_months: int
    emi: Decimal
    total_amount: Decimal
    total_interest: Decimal


@dataclass
class InvoiceLineItem:
    """Single billable line on an invoice"""

    description: str
    quantity: Decimal
    rate: Decimal

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.rate


@dataclass
class InvoiceTotals:
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal


@dataclass
class DashboardMetrics:
    """Point-in-time summary for one user, never persisted"""

    total_revenue: Decimal
    active_loans: int
    pending_invoices: int
    overdue_invoices: int
    upcoming_gst_filings: List[Any] = field(default_factory=list)


@dataclass
class KycDocumentState:
    document_type: str
    required: bool
    status: str  # pending | approved | rejected | missing
    document: Any = None


@dataclass
class KycSummary:
    """Overall KYC progress across required document types"""

    status: str  # pending | partial | verified
    progress: Decimal
    documents: List[KycDocumentState] = field(default_factory=list)


@dataclass
class PaymentLink:
    """Payment link and QR code issued by a payment-link provider"""

    payment_id: str
    payment_link: str
    qr_code: str
