# Request/response schemas for login and registration

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from ..core.security import password_too_long, BCRYPT_MAX_PASSWORD_BYTES
from ..user.schemas import UserResponse


class LoginRequest(BaseModel):
    # username, phone or email
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=72)
    phone: Optional[str] = Field(None, min_length=6, max_length=20)
    email: Optional[EmailStr] = None
    nickname: Optional[str] = Field(None, max_length=50)

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value: str) -> str:
        if password_too_long(value):
            raise ValueError(f"must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
        return value


class TokenResponse(BaseModel):
    token: str


class AuthResponse(TokenResponse):
    user: UserResponse
