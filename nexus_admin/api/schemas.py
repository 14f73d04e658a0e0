"""
API request/response Pydantic models.

JSON field names are camelCase (``externalId``, ``lastActive``) to match the
single-page client; Python attributes stay snake_case.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

Role = Literal["admin", "client"]
Status = Literal["active", "inactive"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── users ──────────────────────────────────────────────────────────────

class UserCreate(_CamelModel):
    """Registration / admin create"""

    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    celular: Optional[str] = None
    external_id: Optional[str] = None
    role: Role = "client"
    status: Status = "active"
    avatar: Optional[str] = None


class UserUpdate(_CamelModel):
    """Partial update; the password cannot be changed here and is ignored if sent."""

    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=1)
    celular: Optional[str] = None
    external_id: Optional[str] = None
    role: Optional[Role] = None
    status: Optional[Status] = None
    avatar: Optional[str] = None


class UserOut(_CamelModel):
    """Public view of a user: never carries password or reset token fields."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    email: str
    name: str
    celular: Optional[str] = None
    external_id: Optional[str] = None
    role: str
    status: str
    avatar: Optional[str] = None
    last_active: Optional[datetime] = None
    created_at: Optional[datetime] = None


class UserEnvelope(BaseModel):
    user: UserOut


class UserListEnvelope(BaseModel):
    users: List[UserOut]


# ── auth ───────────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr
    method: str = Field("email", description="email | whatsapp; anything else falls back to email")

    @field_validator("method", mode="before")
    @classmethod
    def _normalize_method(cls, value):
        return "whatsapp" if value == "whatsapp" else "email"


class ResetPasswordRequest(BaseModel):
    token: str
    password: str = Field(..., min_length=6)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class SuccessResponse(BaseModel):
    success: bool = True


class TokenValidity(BaseModel):
    valid: bool


class RecoveryMethods(BaseModel):
    methods: Dict[str, bool]
