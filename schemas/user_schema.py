# user_schema.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

from models.models import UserRole


# ---------------------------
# Create & Auth
# ---------------------------
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.GENERAL

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserLogin(BaseModel):
    email: EmailStr
    password: str


# ---------------------------
# Read / Update
# ---------------------------
class UserRead(BaseModel):
    id: str
    name: str
    email: EmailStr
    role: UserRole
    is_active: bool = True
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    role: Optional[UserRole] = None


class AuthResult(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
