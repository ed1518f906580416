"""/api/kyc-documents - KYC uploads and verification progress"""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from finflow.api.dependencies import get_current_user, get_document_storage, get_request_id
from finflow.api.v1.schemas import (
    KycDocumentCreate,
    KycDocumentResponse,
    KycDocumentStateResponse,
    KycDocumentUpdate,
    KycSummaryResponse,
)
from finflow.domain.kyc import summarize_kyc
from finflow.infrastructure.database.models import User
from finflow.infrastructure.database.repositories import KycDocumentRepository
from finflow.infrastructure.database.session import get_db
from finflow.infrastructure.observability.logging import log_entity_event
from finflow.infrastructure.observability.metrics import record_write
from finflow.infrastructure.providers.document_storage import DocumentStorageProvider

router = APIRouter()

ENTITY = "kyc_document"


@router.post("/kyc-documents", response_model=KycDocumentResponse, status_code=201)
def create_kyc_document(
    body: KycDocumentCreate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: DocumentStorageProvider = Depends(get_document_storage),
):
    """Record an uploaded document; it starts out pending review"""
    file_url = storage.register(user.id, body.document_type, body.file_name, body.file_url)

    fields = body.model_dump()
    fields["file_url"] = file_url
    document = KycDocumentRepository(db).create(user.id, fields)
    db.commit()

    record_write(ENTITY, "create")
    log_entity_event(get_request_id(request), user.id, ENTITY, "create", document.id, document_type=document.document_type)
    return KycDocumentResponse.model_validate(document)


@router.get("/kyc-documents", response_model=List[KycDocumentResponse])
def list_kyc_documents(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    documents = KycDocumentRepository(db).list_by_owner(user.id)
    return [KycDocumentResponse.model_validate(d) for d in documents]


@router.get("/kyc-documents/summary", response_model=KycSummaryResponse)
def get_kyc_summary(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Overall progress using the latest upload of each document type"""
    summary = summarize_kyc(KycDocumentRepository(db).list_by_owner(user.id))

    return KycSummaryResponse(
        status=summary.status,
        progress=summary.progress,
        documents=[
            KycDocumentStateResponse(
                document_type=state.document_type,
                required=state.required,
                status=state.status,
                document=KycDocumentResponse.model_validate(state.document) if state.document is not None else None,
            )
            for state in summary.documents
        ],
    )


@router.put("/kyc-documents/{document_id}", response_model=KycDocumentResponse)
def update_kyc_document(
    document_id: int,
    body: KycDocumentUpdate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Approve or reject a pending document"""
    document = KycDocumentRepository(db).update(document_id, user.id, body.model_dump())
    db.commit()

    record_write(ENTITY, "update")
    log_entity_event(get_request_id(request), user.id, ENTITY, "update", document.id, status=document.status)
    return KycDocumentResponse.model_validate(document)
