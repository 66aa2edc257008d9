from typing import Optional
from pydantic import BaseModel


class Token(BaseModel):
    access_token: str
    token_type: str
    expires_in: int


class TokenData(BaseModel):
    username: Optional[str] = None
    role: Optional[str] = None


class User(BaseModel):
    username: str
    full_name: Optional[str] = None
    role: str = "operator"
    disabled: bool = False


class UserInDB(User):
    hashed_password: str
