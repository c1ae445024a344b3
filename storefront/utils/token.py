from jose import jwt, JWTError
from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session
from storefront.config import settings
from storefront.database import get_session
from storefront.errors import AuthenticationError
from storefront.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

ADMIN_SCOPE = "admin"
ORDER_REFERENCE_SCOPE = "order_ref"
ORDER_REFERENCE_LIFETIME = timedelta(days=30)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()

    expire = datetime.utcnow() + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )
    return encoded_jwt


def decode_access_token(token: str):
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return payload
    except JWTError:
        return None


def _user_from_token(token: str, session: Session) -> User:
    payload = decode_access_token(token)

    if payload is None or payload.get("scope") in (ADMIN_SCOPE, ORDER_REFERENCE_SCOPE):
        raise AuthenticationError("Could not validate credentials")

    user_id = payload.get("user_id") or payload.get("sub")

    if user_id is None:
        raise AuthenticationError("Invalid token payload")

    try:
        user = session.get(User, int(user_id))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token payload")

    if user is None:
        raise AuthenticationError("User not found")

    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session)
) -> User:
    return _user_from_token(token, session)


def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    session: Session = Depends(get_session)
) -> Optional[User]:
    """Guest checkout is allowed; a token that is present must still be valid."""
    if not token:
        return None
    return _user_from_token(token, session)


def create_admin_token() -> str:
    return create_access_token(
        {"sub": ADMIN_SCOPE, "scope": ADMIN_SCOPE},
        expires_delta=timedelta(minutes=settings.admin_token_expire_minutes),
    )


def is_admin_token(token: Optional[str]) -> bool:
    if not token:
        return False
    payload = decode_access_token(token)
    return bool(payload) and payload.get("scope") == ADMIN_SCOPE


def create_order_reference(order_id: str, created_at: datetime) -> str:
    """
    Signed order reference for the payment success redirect.

    Expiry is derived from the order, so the same order always yields the
    same token and retried provider calls carry identical parameters.
    """
    return jwt.encode(
        {
            "sub": order_id,
            "scope": ORDER_REFERENCE_SCOPE,
            "exp": created_at + ORDER_REFERENCE_LIFETIME,
        },
        settings.secret_key,
        algorithm=settings.algorithm,
    )


def decode_order_reference(reference: str) -> str:
    payload = decode_access_token(reference)
    if not payload or payload.get("scope") != ORDER_REFERENCE_SCOPE or not payload.get("sub"):
        raise AuthenticationError("Invalid or expired order reference")
    return payload["sub"]
