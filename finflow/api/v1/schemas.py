"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from finflow.domain.finance import quantize_money
from finflow.utils.date_utils import days_until

# Amounts up to 10 digits before the decimal point, rounded to paise
Money = Annotated[Decimal, Field(ge=0, lt=Decimal("1e10")), AfterValidator(quantize_money)]
PositiveMoney = Annotated[Decimal, Field(gt=0, lt=Decimal("1e10")), AfterValidator(quantize_money)]

LoanStatus = Literal["draft", "submitted", "approved", "rejected", "disbursed"]
InvoiceStatus = Literal["pending", "paid", "overdue"]
PaymentStatus = Literal["pending", "completed", "failed"]
GstStatus = Literal["pending", "filed", "overdue"]
KycDocumentStatus = Literal["pending", "approved", "rejected"]
KycDocumentType = Literal[
    "pan",
    "aadhaar",
    "address_proof",
    "bank_statement",
    "gst_certificate",
    "incorporation_certificate",
]
WizardAction = Literal["submit", "save_draft"]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; unknown keys (e.g. userId) are ignored"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageResponse(CamelModel):
    message: str


# Users


class DevLoginRequest(CamelModel):
    """Identity claims accepted by the development login"""

    id: str = Field(..., min_length=1, description="Identity provider subject")
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    company_name: Optional[str] = None


class UserResponse(CamelModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    company_name: Optional[str] = None
    kyc_status: str
    created_at: datetime
    updated_at: datetime


# Loan applications


class LoanDocument(CamelModel):
    name: str = Field(..., min_length=1)
    size: int = Field(0, ge=0)


class LoanApplicationCreate(CamelModel):
    """
    Request body for POST /api/loan-applications.

    Drafts may leave numeric fields empty or zero; submitting checks them strictly.
    """

    amount: Optional[Money] = None
    tenure_months: Optional[int] = Field(None, ge=0, le=360)
    purpose: Optional[str] = Field(None, max_length=255)
    documents: List[LoanDocument] = Field(default_factory=list)
    current_step: Optional[int] = Field(None, ge=1, le=3)
    status: Optional[Literal["draft", "submitted"]] = None
    action: Optional[WizardAction] = None


class LoanApplicationUpdate(CamelModel):
    """Request body for PUT /api/loan-applications/{id}"""

    amount: Optional[Money] = None
    tenure_months: Optional[int] = Field(None, ge=0, le=360)
    purpose: Optional[str] = Field(None, max_length=255)
    documents: Optional[List[LoanDocument]] = None
    current_step: Optional[int] = Field(None, ge=1, le=3)
    status: Optional[LoanStatus] = None
    action: Optional[WizardAction] = None


class LoanApplicationResponse(CamelModel):
    id: int
    user_id: str
    amount: Decimal
    tenure_months: int
    purpose: str
    status: str
    current_step: int
    documents: List[LoanDocument]
    created_at: datetime
    updated_at: datetime


class EmiResponse(CamelModel):
    """Response for GET /api/loan-applications/emi"""

    principal: Decimal
    interest_rate: Decimal
    tenure_months: int
    emi: Decimal
    total_amount: Decimal
    total_interest: Decimal


# Invoices


class InvoiceItem(CamelModel):
    description: str = ""
    quantity: Decimal = Field(..., gt=0)
    rate: Money


class InvoiceCreate(CamelModel):
    """
    Request body for POST /api/invoices.

    Send either a total amount or line items; with items the amount is
    derived on the server as subtotal plus GST.
    """

    invoice_number: str = Field(..., min_length=1, max_length=64)
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    amount: Optional[PositiveMoney] = None
    status: InvoiceStatus = "pending"
    due_date: date
    description: Optional[str] = None
    notes: Optional[str] = None
    items: Optional[List[InvoiceItem]] = Field(None, min_length=1)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)

    @model_validator(mode="after")
    def require_amount_or_items(self) -> "InvoiceCreate":
        if self.amount is None and not self.items:
            raise ValueError("Either amount or items is required")
        return self


class InvoiceUpdate(CamelModel):
    invoice_number: Optional[str] = Field(None, min_length=1, max_length=64)
    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    amount: Optional[PositiveMoney] = None
    status: Optional[InvoiceStatus] = None
    due_date: Optional[date] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    items: Optional[List[InvoiceItem]] = Field(None, min_length=1)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)


class InvoiceResponse(CamelModel):
    id: int
    user_id: str
    invoice_number: str
    client_name: str
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    amount: Decimal
    status: str
    due_date: date
    description: Optional[str] = None
    notes: Optional[str] = None
    items: Optional[List[InvoiceItem]] = None
    tax_rate: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime


# UPI payments


class UpiPaymentCreate(CamelModel):
    amount: PositiveMoney
    description: Optional[str] = None
    invoice_id: Optional[int] = None


class UpiPaymentUpdate(CamelModel):
    status: PaymentStatus


class UpiPaymentResponse(CamelModel):
    id: int
    user_id: str
    invoice_id: Optional[int] = None
    amount: Decimal
    description: Optional[str] = None
    payment_link: str
    qr_code: str
    status: str
    created_at: datetime
    updated_at: datetime


# GST filings

_PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class GstFilingCreate(CamelModel):
    filing_type: str = Field(..., min_length=1, max_length=64, description="GSTR-1, GSTR-3B, TDS Return, ...")
    period: str = Field(..., pattern=_PERIOD_PATTERN, description="YYYY-MM")
    due_date: date
    status: GstStatus = "pending"


class GstFilingUpdate(CamelModel):
    filing_type: Optional[str] = Field(None, min_length=1, max_length=64)
    period: Optional[str] = Field(None, pattern=_PERIOD_PATTERN)
    due_date: Optional[date] = None
    status: Optional[GstStatus] = None


class GstFilingResponse(CamelModel):
    id: int
    user_id: str
    filing_type: str
    period: str
    due_date: date
    status: str
    filed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @computed_field(alias="daysUntilDue")
    @property
    def days_until_due(self) -> int:
        return days_until(self.due_date)


# KYC documents


class KycDocumentCreate(CamelModel):
    document_type: KycDocumentType
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: Optional[str] = None


class KycDocumentUpdate(CamelModel):
    status: KycDocumentStatus


class KycDocumentResponse(CamelModel):
    id: int
    user_id: str
    document_type: str
    file_name: str
    file_url: str
    status: str
    created_at: datetime
    updated_at: datetime


class KycDocumentStateResponse(CamelModel):
    document_type: str
    required: bool
    status: str
    document: Optional[KycDocumentResponse] = None


class KycSummaryResponse(CamelModel):
    status: str
    progress: Decimal
    documents: List[KycDocumentStateResponse]


# Dashboard


class DashboardMetricsResponse(CamelModel):
    total_revenue: Decimal
    active_loans: int
    pending_invoices: int
    overdue_invoices: int
    upcoming_gst_filings: List[GstFilingResponse]
