"""/api/invoices - Invoice CRUD with status/search filters"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from finflow.api.dependencies import get_current_user, get_request_id
from finflow.api.v1.schemas import (
    InvoiceCreate,
    InvoiceItem,
    InvoiceResponse,
    InvoiceUpdate,
    MessageResponse,
)
from finflow.config import settings
from finflow.domain.finance import calculate_invoice_totals
from finflow.domain.models import InvoiceLineItem
from finflow.infrastructure.database.models import User
from finflow.infrastructure.database.repositories import InvoiceRepository
from finflow.infrastructure.database.session import get_db
from finflow.infrastructure.observability.logging import log_entity_event
from finflow.infrastructure.observability.metrics import record_write

router = APIRouter()

ENTITY = "invoice"


def _price_line_items(fields: Dict[str, Any], items: List[InvoiceItem], tax_rate: Optional[Decimal]) -> None:
    """Replace the client's amount with subtotal + GST computed from the line items"""
    rate = tax_rate if tax_rate is not None else settings.default_gst_rate
    totals = calculate_invoice_totals(
        [InvoiceLineItem(description=i.description, quantity=i.quantity, rate=i.rate) for i in items],
        rate,
    )
    fields["items"] = [i.model_dump(mode="json") for i in items]
    fields["tax_rate"] = totals.tax_rate
    fields["amount"] = totals.total


@router.post("/invoices", response_model=InvoiceResponse, status_code=201)
def create_invoice(
    body: InvoiceCreate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Raise an invoice.

    Raises 409 when the invoice number is already taken by any user.
    """
    fields = body.model_dump(exclude_none=True, exclude={"items"})
    if body.items:
        _price_line_items(fields, body.items, body.tax_rate)

    invoice = InvoiceRepository(db).create(user.id, fields)
    db.commit()

    record_write(ENTITY, "create")
    log_entity_event(get_request_id(request), user.id, ENTITY, "create", invoice.id, invoice_number=invoice.invoice_number)
    return InvoiceResponse.model_validate(invoice)


@router.get("/invoices", response_model=List[InvoiceResponse])
def list_invoices(
    status: Optional[str] = Query(None, description="Exact status, or 'all'"),
    search: Optional[str] = Query(None, description="Matches invoice number or client name"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    invoices = InvoiceRepository(db).list_by_owner(user.id, status=status, search=search)
    return [InvoiceResponse.model_validate(i) for i in invoices]


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    invoice = InvoiceRepository(db).get_owned(invoice_id, user.id)
    return InvoiceResponse.model_validate(invoice)


@router.put("/invoices/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: int,
    body: InvoiceUpdate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = InvoiceRepository(db)
    existing = repo.get_owned(invoice_id, user.id)

    fields = body.model_dump(exclude_unset=True, exclude_none=True, exclude={"items"})
    if body.items:
        _price_line_items(fields, body.items, body.tax_rate if body.tax_rate is not None else existing.tax_rate)
    elif body.tax_rate is not None and existing.items:
        # New GST rate on an itemised invoice: re-price the stored lines
        _price_line_items(fields, [InvoiceItem.model_validate(i) for i in existing.items], body.tax_rate)

    invoice = repo.update(invoice_id, user.id, fields)
    db.commit()

    record_write(ENTITY, "update")
    log_entity_event(get_request_id(request), user.id, ENTITY, "update", invoice.id, status=invoice.status)
    return InvoiceResponse.model_validate(invoice)


@router.delete("/invoices/{invoice_id}", response_model=MessageResponse)
def delete_invoice(
    invoice_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    InvoiceRepository(db).delete(invoice_id, user.id)
    db.commit()

    record_write(ENTITY, "delete")
    log_entity_event(get_request_id(request), user.id, ENTITY, "delete", invoice_id)
    return MessageResponse(message="Invoice deleted successfully")
