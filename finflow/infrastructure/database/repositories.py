"""Data access layer for finance entities, scoped by owning user"""

from decimal import Decimal
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finflow.domain.exceptions import ConflictError, NotFoundError, ValidationError
from finflow.domain.lifecycle import (
    GST_TRANSITIONS,
    INVOICE_TRANSITIONS,
    KYC_DOCUMENT_TRANSITIONS,
    PAYMENT_TRANSITIONS,
    Transitions,
    apply_wizard_action,
    check_loan_status_change,
    check_transition,
)
from finflow.domain.models import KYC_DOCUMENT_TYPES
from finflow.infrastructure.database.models import (
    GstFiling,
    Invoice,
    KycDocument,
    LoanApplication,
    UpiPayment,
    User,
)
from finflow.utils.date_utils import is_valid_period, utcnow

ModelT = TypeVar("ModelT")

# Never written from a payload; owner and timestamps are managed here
PROTECTED_FIELDS = frozenset({"id", "user_id", "created_at", "updated_at"})


class OwnedRepository(Generic[ModelT]):
    """
    CRUD for a table whose rows belong to exactly one user.

    Subclasses set the model, the columns free-text search matches against
    and the status lifecycle. Reads and writes always filter on the owner, so
    another user's record behaves exactly like a missing one.
    """

    model: Type[ModelT]
    entity_name: str = "Record"
    search_fields: Sequence[str] = ()
    transitions: Optional[Transitions] = None
    update_ignored_fields: frozenset = frozenset()

    def __init__(self, db: Session):
        self.db = db

    # Queries

    def _ordering(self) -> tuple:
        """Newest first; id breaks ties between rows created in the same instant"""
        return (self.model.created_at.desc(), self.model.id.desc())

    def _owned(self, owner_id: str):
        return self.db.query(self.model).filter(self.model.user_id == owner_id)

    def list_by_owner(
        self,
        owner_id: str,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[ModelT]:
        """All of the owner's records, optionally filtered by exact status and free text"""
        query = self._owned(owner_id)
        if status and status != "all":
            query = query.filter(self.model.status == status)
        if search and self.search_fields:
            query = query.filter(
                or_(*[getattr(self.model, name).icontains(search, autoescape=True) for name in self.search_fields])
            )
        return query.order_by(*self._ordering()).all()

    def count_by_status(self, owner_id: str, status: str) -> int:
        return (
            self.db.query(func.count(self.model.id))
            .filter(self.model.user_id == owner_id, self.model.status == status)
            .scalar()
        )

    def get_by_id(self, record_id: int) -> Optional[ModelT]:
        """Fetch by primary key without ownership check; callers must verify the owner"""
        return self.db.get(self.model, record_id)

    def get_owned(self, record_id: int, owner_id: str) -> ModelT:
        """
        Fetch a record the caller owns.

        Raises:
            NotFoundError: record is missing or belongs to someone else
        """
        record = self.get_by_id(record_id)
        if record is None or record.user_id != owner_id:
            raise NotFoundError(f"{self.entity_name} {record_id} not found")
        return record

    # Writes

    def create(self, owner_id: str, fields: Dict[str, Any]) -> ModelT:
        """Persist a new record for owner_id with a generated id and default status"""
        if self.db.get(User, owner_id) is None:
            raise NotFoundError(f"User {owner_id} not found")

        fields = _without(fields, PROTECTED_FIELDS)
        if self.transitions is not None and fields.get("status") is not None:
            if fields["status"] not in self.transitions:
                raise ValidationError.for_field("status", f"Unknown status '{fields['status']}'")
        self._validate_create(owner_id, fields)
        self._before_create(fields)

        record = self.model(user_id=owner_id, **fields)
        self.db.add(record)
        self._flush()
        return record

    def update(self, record_id: int, owner_id: str, fields: Dict[str, Any]) -> ModelT:
        """
        Merge the provided fields onto an owned record and refresh updated_at.

        Raises:
            NotFoundError: record is missing or belongs to someone else
            ValidationError: field constraints or status lifecycle violated
        """
        record = self.get_owned(record_id, owner_id)
        return self._apply_update(record, fields)

    def _apply_update(self, record: ModelT, fields: Dict[str, Any]) -> ModelT:
        fields = _without(fields, PROTECTED_FIELDS | self.update_ignored_fields)

        if self.transitions is not None and fields.get("status") is not None:
            check_transition(self.transitions, record.status, fields["status"])
        self._validate_update(record, fields)
        self._before_update(record, fields)

        for name, value in fields.items():
            setattr(record, name, value)
        record.updated_at = utcnow()
        self._flush()
        return record

    def _flush(self) -> None:
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if _is_unique_violation(e):
                raise ConflictError(f"{self.entity_name} conflicts with an existing record") from e
            raise

    # Hooks

    def _validate_create(self, owner_id: str, fields: Dict[str, Any]) -> None:
        pass

    def _validate_update(self, record: ModelT, fields: Dict[str, Any]) -> None:
        pass

    def _before_create(self, fields: Dict[str, Any]) -> None:
        pass

    def _before_update(self, record: ModelT, fields: Dict[str, Any]) -> None:
        pass


def _without(fields: Dict[str, Any], names) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k not in names}


def _require_positive(fields: Dict[str, Any], name: str, label: str) -> None:
    value = fields.get(name)
    if value is not None and Decimal(value) <= 0:
        raise ValidationError.for_field(label, f"{label} must be greater than zero")


def _is_unique_violation(error: IntegrityError) -> bool:
    """Unique/primary-key clash, as opposed to NOT NULL or foreign-key failures"""
    if getattr(error.orig, "pgcode", None) == "23505":
        return True
    return "UNIQUE constraint failed" in str(error.orig)


def _require_non_negative(fields: Dict[str, Any], name: str, label: str) -> None:
    value = fields.get(name)
    if value is not None and Decimal(value) < 0:
        raise ValidationError.for_field(label, f"{label} cannot be negative")


class UserRepository:
    """Repository for users synced from the identity provider"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def upsert(self, user_id: str, fields: Dict[str, Any]) -> User:
        """Insert the user if absent, else overwrite the provided fields and bump updated_at"""
        fields = _without(fields, PROTECTED_FIELDS)
        user = self.get(user_id)
        if user is None:
            user = User(id=user_id, **fields)
            self.db.add(user)
        else:
            for name, value in fields.items():
                setattr(user, name, value)
            user.updated_at = utcnow()

        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if _is_unique_violation(e):
                raise ConflictError("Email is already registered to another user") from e
            raise
        return user


class LoanApplicationRepository(OwnedRepository[LoanApplication]):
    """Repository for loan applications; wizard progress drives the status"""

    model = LoanApplication
    entity_name = "Loan application"

    WIZARD_FIELDS = ("amount", "tenure_months", "purpose", "documents", "current_step")

    def create(self, owner_id: str, fields: Dict[str, Any], action: Optional[str] = None) -> LoanApplication:
        """Start an application; status 'draft' without an action means save_draft"""
        fields = dict(fields)
        requested_step = fields.pop("current_step", None)
        requested_status = fields.pop("status", None)
        if action is None:
            action = "save_draft" if requested_status == "draft" else "submit"

        status, step = apply_wizard_action(
            action=action,
            status=None,
            current_step=None,
            requested_step=requested_step,
            amount=fields.get("amount"),
            tenure_months=fields.get("tenure_months"),
            purpose=fields.get("purpose"),
        )
        fields.update(status=status, current_step=step)
        return super().create(owner_id, fields)

    def _check_amounts(self, fields: Dict[str, Any]) -> None:
        # Drafts may hold zeros, never negatives
        _require_non_negative(fields, "amount", "amount")
        _require_non_negative(fields, "tenure_months", "tenureMonths")

    def _validate_create(self, owner_id: str, fields: Dict[str, Any]) -> None:
        self._check_amounts(fields)

    def _validate_update(self, record: LoanApplication, fields: Dict[str, Any]) -> None:
        self._check_amounts(fields)

    def update(
        self,
        record_id: int,
        owner_id: str,
        fields: Dict[str, Any],
        action: Optional[str] = None,
    ) -> LoanApplication:
        """
        Apply a wizard action or a back-office status change.

        A payload with wizard fields (or an explicit action) is a wizard step;
        status 'draft' in such a payload means save_draft. A bare status is a
        lifecycle change checked against the loan transitions.
        """
        record = self.get_owned(record_id, owner_id)
        fields = dict(fields)
        target_status = fields.pop("status", None)

        is_wizard = action is not None or any(name in fields for name in self.WIZARD_FIELDS)
        if not is_wizard:
            if target_status is None:
                return self._apply_update(record, fields)
            check_loan_status_change(record.status, target_status)
            return self._apply_update(record, {**fields, "status": target_status})

        if action is None:
            action = "save_draft" if target_status == "draft" else "submit"
        elif target_status not in (None, "draft", "submitted"):
            raise ValidationError.for_field("status", "Status cannot change while editing the application")

        status, step = apply_wizard_action(
            action=action,
            status=record.status,
            current_step=record.current_step,
            requested_step=fields.pop("current_step", None),
            amount=fields.get("amount", record.amount),
            tenure_months=fields.get("tenure_months", record.tenure_months),
            purpose=fields.get("purpose", record.purpose),
        )
        fields.update(status=status, current_step=step)
        return self._apply_update(record, fields)


class InvoiceRepository(OwnedRepository[Invoice]):
    """Repository for invoices; invoice numbers are unique across all users"""

    model = Invoice
    entity_name = "Invoice"
    search_fields = ("invoice_number", "client_name")
    transitions = INVOICE_TRANSITIONS

    def _ensure_unique_number(self, invoice_number: str, exclude_id: Optional[int] = None) -> None:
        query = self.db.query(Invoice.id).filter(Invoice.invoice_number == invoice_number)
        if exclude_id is not None:
            query = query.filter(Invoice.id != exclude_id)
        if query.first() is not None:
            raise ConflictError(f"Invoice number {invoice_number} already exists")

    def _validate_create(self, owner_id: str, fields: Dict[str, Any]) -> None:
        missing = [
            {"field": name, "message": "Field is required"}
            for name in ("invoice_number", "client_name", "amount", "due_date")
            if not fields.get(name)
        ]
        if missing:
            raise ValidationError("Invalid invoice", missing)
        _require_positive(fields, "amount", "amount")
        self._ensure_unique_number(fields["invoice_number"])

    def _validate_update(self, record: Invoice, fields: Dict[str, Any]) -> None:
        _require_positive(fields, "amount", "amount")
        number = fields.get("invoice_number")
        if number is not None and number != record.invoice_number:
            self._ensure_unique_number(number, exclude_id=record.id)

    def delete(self, record_id: int, owner_id: str) -> None:
        """
        Permanently remove an owned invoice.

        Raises:
            NotFoundError: invoice is missing or belongs to someone else
        """
        record = self.get_owned(record_id, owner_id)
        self.db.delete(record)
        self.db.flush()

    def paid_amounts(self, owner_id: str) -> List[Decimal]:
        rows = (
            self.db.query(Invoice.amount)
            .filter(Invoice.user_id == owner_id, Invoice.status == "paid")
            .all()
        )
        return [row.amount for row in rows]


class UpiPaymentRepository(OwnedRepository[UpiPayment]):
    """Repository for UPI payment requests"""

    model = UpiPayment
    entity_name = "UPI payment"
    transitions = PAYMENT_TRANSITIONS
    update_ignored_fields = frozenset({"payment_link", "qr_code", "amount", "invoice_id"})

    def _validate_create(self, owner_id: str, fields: Dict[str, Any]) -> None:
        _require_positive(fields, "amount", "amount")
        invoice_id = fields.get("invoice_id")
        if invoice_id is not None:
            invoice = self.db.get(Invoice, invoice_id)
            if invoice is None or invoice.user_id != owner_id:
                raise ValidationError.for_field("invoiceId", f"Invoice {invoice_id} not found")
        if not fields.get("payment_link") or not fields.get("qr_code"):
            raise ValidationError("Payment link was not generated")


class GstFilingRepository(OwnedRepository[GstFiling]):
    """Repository for GST filings; soonest due date first"""

    model = GstFiling
    entity_name = "GST filing"
    transitions = GST_TRANSITIONS
    update_ignored_fields = frozenset({"filed_at"})

    def _ordering(self) -> tuple:
        return (GstFiling.due_date.asc(), GstFiling.id.asc())

    def _check_period(self, fields: Dict[str, Any]) -> None:
        period = fields.get("period")
        if period is not None and not is_valid_period(period):
            raise ValidationError.for_field("period", "Period must be in YYYY-MM format")

    def _validate_create(self, owner_id: str, fields: Dict[str, Any]) -> None:
        self._check_period(fields)

    def _validate_update(self, record: GstFiling, fields: Dict[str, Any]) -> None:
        self._check_period(fields)

    def _before_create(self, fields: Dict[str, Any]) -> None:
        fields.pop("filed_at", None)
        if fields.get("status") == "filed":
            fields["filed_at"] = utcnow()

    def _before_update(self, record: GstFiling, fields: Dict[str, Any]) -> None:
        if fields.get("status") == "filed" and record.status != "filed":
            fields["filed_at"] = utcnow()

    def upcoming(self, owner_id: str, limit: int = 5) -> List[GstFiling]:
        """Pending filings, soonest due first"""
        return (
            self._owned(owner_id)
            .filter(GstFiling.status == "pending")
            .order_by(*self._ordering())
            .limit(limit)
            .all()
        )


class KycDocumentRepository(OwnedRepository[KycDocument]):
    """Repository for KYC uploads; newer uploads of a type supersede older ones"""

    model = KycDocument
    entity_name = "KYC document"
    transitions = KYC_DOCUMENT_TRANSITIONS
    update_ignored_fields = frozenset({"document_type"})

    def _validate_create(self, owner_id: str, fields: Dict[str, Any]) -> None:
        if fields.get("document_type") not in KYC_DOCUMENT_TYPES:
            raise ValidationError.for_field("documentType", f"Unknown document type '{fields.get('document_type')}'")
