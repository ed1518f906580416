"""/api/upi-payments - UPI payment links"""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from finflow.api.dependencies import get_current_user, get_payment_link_provider, get_request_id
from finflow.api.v1.schemas import UpiPaymentCreate, UpiPaymentResponse, UpiPaymentUpdate
from finflow.infrastructure.database.models import User
from finflow.infrastructure.database.repositories import UpiPaymentRepository
from finflow.infrastructure.database.session import get_db
from finflow.infrastructure.observability.logging import log_entity_event
from finflow.infrastructure.observability.metrics import payment_link_counter, record_write
from finflow.infrastructure.providers.payment_links import PaymentLinkProvider

router = APIRouter()

ENTITY = "upi_payment"


@router.post("/upi-payments", response_model=UpiPaymentResponse, status_code=201)
def create_upi_payment(
    body: UpiPaymentCreate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    links: PaymentLinkProvider = Depends(get_payment_link_provider),
):
    """
    Issue a payment link and QR code for an amount.

    The link is generated once here and never changes afterwards.
    """
    link = links.create_link(body.amount, body.description)

    fields = body.model_dump(exclude_none=True)
    fields.update(payment_link=link.payment_link, qr_code=link.qr_code)
    payment = UpiPaymentRepository(db).create(user.id, fields)
    db.commit()

    payment_link_counter.inc()
    record_write(ENTITY, "create")
    log_entity_event(get_request_id(request), user.id, ENTITY, "create", payment.id, payment_id=link.payment_id)
    return UpiPaymentResponse.model_validate(payment)


@router.get("/upi-payments", response_model=List[UpiPaymentResponse])
def list_upi_payments(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    payments = UpiPaymentRepository(db).list_by_owner(user.id)
    return [UpiPaymentResponse.model_validate(p) for p in payments]


@router.put("/upi-payments/{payment_id}", response_model=UpiPaymentResponse)
def update_upi_payment(
    payment_id: int,
    body: UpiPaymentUpdate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Record the outcome of a payment (completed or failed)"""
    payment = UpiPaymentRepository(db).update(payment_id, user.id, body.model_dump())
    db.commit()

    record_write(ENTITY, "update")
    log_entity_event(get_request_id(request), user.id, ENTITY, "update", payment.id, status=payment.status)
    return UpiPaymentResponse.model_validate(payment)
