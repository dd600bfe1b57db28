from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from quizdeck.core.config import settings
from quizdeck.core.errors import Unauthorized
from quizdeck.db.session import get_db
from quizdeck.models.user import User


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(*, user_id: int) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.jwt_access_token_minutes)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": expire,
        "iss": settings.jwt_issuer,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def resolve_requester_id(token: str | None) -> int:
    """Turn a bearer token into the user id it was issued for."""
    if not token:
        raise Unauthorized("not authenticated")
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except JWTError as e:
        raise Unauthorized("invalid token") from e

    try:
        return int(str(payload.get("sub")))
    except ValueError as e:
        raise Unauthorized("invalid token") from e


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: str | None = Depends(oauth2_scheme),
) -> User:
    user_id = resolve_requester_id(token)
    user = db.scalar(select(User).where(User.id == user_id))
    if user is None:
        raise Unauthorized("invalid token")

    request.state.user_id = user.id
    return user
