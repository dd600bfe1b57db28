import logging

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from quizdeck.core.config import settings
from quizdeck.core.errors import Conflict, Forbidden, InvalidArgument, Unauthorized
from quizdeck.core.rate_limit import rate_limit
from quizdeck.core.security import create_access_token, get_current_user, hash_password, verify_password
from quizdeck.db.session import get_db
from quizdeck.models.user import User
from quizdeck.schemas.auth import RegisterRequest, TokenResponse, UserPublic
from quizdeck.schemas.common import Envelope

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)


def _user_public(user: User) -> dict:
    return {"id": user.id, "username": user.username, "email": user.email, "createdAt": user.created_at}


def _token_payload(user: User) -> dict:
    return {
        "accessToken": create_access_token(user_id=user.id),
        "tokenType": "bearer",
        "expiresIn": int(settings.jwt_access_token_minutes) * 60,
        "user": _user_public(user),
    }


@router.post("/register", response_model=Envelope[TokenResponse], status_code=201)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_register", limit=10, window_seconds=60),
):
    if not settings.allow_public_register:
        raise Forbidden("registration disabled")

    username = (payload.username or "").strip()
    email = (payload.email or "").strip().lower()
    if not username or not email or not payload.password:
        raise InvalidArgument("please provide username, email, and password")
    if len(payload.password) < int(settings.password_min_length or 0):
        raise InvalidArgument("password too short")

    existing = db.scalar(select(User.id).where(or_(User.username == username, User.email == email)))
    if existing is not None:
        raise Conflict("username or email already exists")

    user = User(username=username, email=email, password_hash=hash_password(payload.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user %s registered", user.id)

    return {"success": True, "data": _token_payload(user)}


@router.post("/token", response_model=Envelope[TokenResponse])
def token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_token", limit=20, window_seconds=60),
):
    login = (form_data.username or "").strip()
    user = db.scalar(select(User).where(or_(User.username == login, User.email == login.lower())))
    if user is None or not verify_password(form_data.password, user.password_hash):
        logger.info("failed login attempt", extra={"login": login})
        raise Unauthorized("invalid credentials")

    return {"success": True, "data": _token_payload(user)}


@router.get("/me", response_model=Envelope[UserPublic])
def me(user: User = Depends(get_current_user)):
    return {"success": True, "data": _user_public(user)}
