"""/api/gst-filings - GST filing deadlines"""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from finflow.api.dependencies import get_current_user, get_request_id
from finflow.api.v1.schemas import GstFilingCreate, GstFilingResponse, GstFilingUpdate
from finflow.infrastructure.database.models import User
from finflow.infrastructure.database.repositories import GstFilingRepository
from finflow.infrastructure.database.session import get_db
from finflow.infrastructure.observability.logging import log_entity_event
from finflow.infrastructure.observability.metrics import record_write

router = APIRouter()

ENTITY = "gst_filing"


@router.post("/gst-filings", response_model=GstFilingResponse, status_code=201)
def create_gst_filing(
    body: GstFilingCreate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    filing = GstFilingRepository(db).create(user.id, body.model_dump())
    db.commit()

    record_write(ENTITY, "create")
    log_entity_event(get_request_id(request), user.id, ENTITY, "create", filing.id, filing_type=filing.filing_type)
    return GstFilingResponse.model_validate(filing)


@router.get("/gst-filings", response_model=List[GstFilingResponse])
def list_gst_filings(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's filings, soonest due first"""
    filings = GstFilingRepository(db).list_by_owner(user.id)
    return [GstFilingResponse.model_validate(f) for f in filings]


@router.put("/gst-filings/{filing_id}", response_model=GstFilingResponse)
def update_gst_filing(
    filing_id: int,
    body: GstFilingUpdate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Edit a filing or mark it filed/overdue; filedAt is stamped on the server"""
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    filing = GstFilingRepository(db).update(filing_id, user.id, fields)
    db.commit()

    record_write(ENTITY, "update")
    log_entity_event(get_request_id(request), user.id, ENTITY, "update", filing.id, status=filing.status)
    return GstFilingResponse.model_validate(filing)
