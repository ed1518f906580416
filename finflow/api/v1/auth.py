"""Session endpoints: current user, development login, logout"""

import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from finflow.api.dependencies import SESSION_USER_KEY, get_current_user, get_request_id
from finflow.api.v1.schemas import DevLoginRequest, MessageResponse, UserResponse
from finflow.config import settings
from finflow.domain.exceptions import NotFoundError
from finflow.infrastructure.database.models import User
from finflow.infrastructure.database.repositories import UserRepository
from finflow.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/auth/user", response_model=UserResponse)
def get_auth_user(user: User = Depends(get_current_user)):
    """Return the signed-in user's profile"""
    return UserResponse.model_validate(user)


@router.post("/auth/dev-login", response_model=UserResponse)
def dev_login(body: DevLoginRequest, request: Request, db: Session = Depends(get_db)):
    """
    Sign in with identity claims supplied directly.

    Stands in for the identity provider callback outside production: the
    claims are synced with an upsert keyed on the subject id and the id is
    stored in the signed session cookie. Disabled unless DEV_LOGIN_ENABLED is set.
    """
    if not settings.dev_login_enabled:
        raise NotFoundError("Not found")

    claims = body.model_dump(exclude={"id"}, exclude_none=True)
    user = UserRepository(db).upsert(body.id, claims)
    db.commit()

    request.session[SESSION_USER_KEY] = user.id
    logging.info("User signed in", extra={"request_id": get_request_id(request), "user_id": user.id})
    return UserResponse.model_validate(user)


@router.post("/auth/logout", response_model=MessageResponse)
def logout(request: Request):
    request.session.clear()
    return MessageResponse(message="Logged out")
