# Schemas for user profiles and shipping addresses

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from ..core.security import password_too_long, BCRYPT_MAX_PASSWORD_BYTES


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    username: str
    phone: Optional[str] = None
    email: Optional[str] = None
    nickname: Optional[str] = None
    avatar: Optional[str] = None
    role: str = "user"
    status: int = 1
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    nickname: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, min_length=6, max_length=20)
    email: Optional[EmailStr] = None
    avatar: Optional[str] = Field(None, max_length=255)


class PasswordUpdate(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=72)

    @field_validator("new_password")
    @classmethod
    def check_password_bytes(cls, value: str) -> str:
        if password_too_long(value):
            raise ValueError(f"must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
        return value


class AddressBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    phone: str = Field(..., min_length=6, max_length=20)
    province: str = Field(..., min_length=1, max_length=50)
    city: str = Field(..., min_length=1, max_length=50)
    district: str = Field(..., min_length=1, max_length=50)
    detail: str = Field(..., min_length=1, max_length=255)
    postcode: Optional[str] = Field(None, max_length=10)
    tag: Optional[str] = Field(None, max_length=20)


class AddressCreate(AddressBase):
    is_default: bool = False


class AddressUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[str] = Field(None, min_length=6, max_length=20)
    province: Optional[str] = Field(None, min_length=1, max_length=50)
    city: Optional[str] = Field(None, min_length=1, max_length=50)
    district: Optional[str] = Field(None, min_length=1, max_length=50)
    detail: Optional[str] = Field(None, min_length=1, max_length=255)
    postcode: Optional[str] = Field(None, max_length=10)
    tag: Optional[str] = Field(None, max_length=20)
    is_default: Optional[bool] = None


class AddressResponse(AddressBase):
    model_config = ConfigDict(from_attributes=True)

    address_id: int
    user_id: int
    is_default: bool
    created_at: Optional[datetime] = None
