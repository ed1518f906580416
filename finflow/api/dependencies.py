"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from finflow.domain.exceptions import AuthenticationError
from finflow.infrastructure.database.models import User
from finflow.infrastructure.database.repositories import UserRepository
from finflow.infrastructure.database.session import get_db
from finflow.infrastructure.providers.document_storage import DocumentStorageProvider, MockDocumentStorage
from finflow.infrastructure.providers.payment_links import MockPaymentLinkProvider, PaymentLinkProvider

SESSION_USER_KEY = "user_id"


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Resolve the signed-in user from the session cookie.

    Raises:
        AuthenticationError: no session, or the session's user no longer exists
    """
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        raise AuthenticationError("Unauthorized")

    user = UserRepository(db).get(user_id)
    if user is None:
        request.session.clear()
        raise AuthenticationError("Unauthorized")
    return user


def get_payment_link_provider() -> PaymentLinkProvider:
    """Provide payment-link provider instance"""
    return MockPaymentLinkProvider()


def get_document_storage() -> DocumentStorageProvider:
    """Provide KYC document storage instance"""
    return MockDocumentStorage()
