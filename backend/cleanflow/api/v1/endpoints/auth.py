from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from cleanflow.auth import authenticate_user, create_access_token, get_current_active_user, token_lifetime
from cleanflow.schemas.auth import Token, User

router = APIRouter()


@router.post("/token", response_model=Token)
async def login_for_access_token(form_data: Annotated[OAuth2PasswordRequestForm, Depends()]):
    """Exchange the operator credentials for a bearer token."""
    user = authenticate_user(form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    lifetime = token_lifetime()
    return Token(
        access_token=create_access_token(user, lifetime),
        token_type="bearer",
        expires_in=int(lifetime.total_seconds())
    )


@router.get("/users/me", response_model=User)
async def read_users_me(current_user: Annotated[User, Depends(get_current_active_user)]):
    return current_user
