"""/api/loan-applications - Loan application wizard and EMI calculator"""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from finflow.api.dependencies import get_current_user, get_request_id
from finflow.api.v1.schemas import (
    EmiResponse,
    LoanApplicationCreate,
    LoanApplicationResponse,
    LoanApplicationUpdate,
)
from finflow.config import settings
from finflow.domain.finance import calculate_emi
from finflow.infrastructure.database.models import User
from finflow.infrastructure.database.repositories import LoanApplicationRepository
from finflow.infrastructure.database.session import get_db
from finflow.infrastructure.observability.logging import log_entity_event
from finflow.infrastructure.observability.metrics import record_write

router = APIRouter()

ENTITY = "loan_application"


@router.post("/loan-applications", response_model=LoanApplicationResponse, status_code=201)
def create_loan_application(
    body: LoanApplicationCreate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Start a loan application.

    action=save_draft (or status=draft) stores whatever was entered so far;
    submit validates amount, tenure and purpose. Landing on step 3 submits it.
    """
    fields = body.model_dump(exclude_none=True, exclude={"action"})
    application = LoanApplicationRepository(db).create(user.id, fields, action=body.action)
    db.commit()

    record_write(ENTITY, "create")
    log_entity_event(get_request_id(request), user.id, ENTITY, "create", application.id, status=application.status)
    return LoanApplicationResponse.model_validate(application)


@router.get("/loan-applications", response_model=List[LoanApplicationResponse])
def list_loan_applications(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's applications, newest first"""
    applications = LoanApplicationRepository(db).list_by_owner(user.id)
    return [LoanApplicationResponse.model_validate(a) for a in applications]


@router.get("/loan-applications/emi", response_model=EmiResponse)
def get_emi(
    amount: Decimal = Query(..., gt=0, description="Principal"),
    tenure_months: int = Query(..., alias="tenureMonths", gt=0, le=360),
    interest_rate: Optional[Decimal] = Query(None, alias="interestRate", ge=0, le=100, description="% per annum"),
    user: User = Depends(get_current_user),
):
    """Monthly installment, total payable and total interest for a loan"""
    rate = interest_rate if interest_rate is not None else settings.default_interest_rate
    breakdown = calculate_emi(amount, rate, tenure_months)

    return EmiResponse(
        principal=breakdown.principal,
        interest_rate=breakdown.annual_rate,
        tenure_months=breakdown.tenure_months,
        emi=breakdown.emi,
        total_amount=breakdown.total_amount,
        total_interest=breakdown.total_interest,
    )


@router.get("/loan-applications/{application_id}", response_model=LoanApplicationResponse)
def get_loan_application(
    application_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    application = LoanApplicationRepository(db).get_owned(application_id, user.id)
    return LoanApplicationResponse.model_validate(application)


@router.put("/loan-applications/{application_id}", response_model=LoanApplicationResponse)
def update_loan_application(
    application_id: int,
    body: LoanApplicationUpdate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Advance or save a wizard step, or move the application through review"""
    fields = body.model_dump(exclude_unset=True, exclude_none=True, exclude={"action"})
    application = LoanApplicationRepository(db).update(application_id, user.id, fields, action=body.action)
    db.commit()

    record_write(ENTITY, "update")
    log_entity_event(
        get_request_id(request),
        user.id,
        ENTITY,
        "update",
        application.id,
        status=application.status,
        current_step=application.current_step,
    )
    return LoanApplicationResponse.model_validate(application)
