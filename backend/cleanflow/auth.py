"""Bearer-token authentication for the single operator account."""

import logging
from datetime import timedelta
from typing import Optional, Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from cleanflow.config import settings
from cleanflow.schemas.auth import TokenData, User, UserInDB
from cleanflow.utils.clock import now

log = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def token_lifetime() -> timedelta:
    return timedelta(minutes=settings.access_token_expire_minutes)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    claims = {
        "sub": user.username,
        "role": user.role,
        "iat": now(),
        "exp": now() + (expires_delta or token_lifetime()),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


# Operator account from settings, hashed on first use
_ADMIN_USER: Optional[UserInDB] = None


def get_admin_user() -> UserInDB:
    global _ADMIN_USER
    if _ADMIN_USER is None:
        _ADMIN_USER = UserInDB(
            username=settings.admin_username,
            full_name="Housekeeping Administrator",
            role=ADMIN_ROLE,
            hashed_password=pwd_context.hash(settings.admin_password)
        )
    return _ADMIN_USER


def get_user(username: Optional[str]) -> Optional[UserInDB]:
    admin = get_admin_user()
    return admin if username == admin.username else None


def authenticate_user(username: str, password: str) -> Optional[UserInDB]:
    user = get_user(username)
    if user is None or not pwd_context.verify(password, user.hashed_password):
        log.warning(f"Failed login attempt for '{username}'")
        return None
    return user


def get_current_user(token: Annotated[str, Depends(oauth2_scheme)]) -> UserInDB:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        token_data = TokenData(username=payload.get("sub"), role=payload.get("role"))
    except JWTError as e:
        log.debug(f"Rejected bearer token: {e}")
        raise credentials_exception

    user = get_user(token_data.username)
    # A token minted for another role is stale after a settings change
    if user is None or token_data.role != user.role:
        raise credentials_exception
    return user


def get_current_active_user(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user
