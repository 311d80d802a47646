from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic.functional_validators import AfterValidator
from typing import Any, Dict, Optional, Annotated
from datetime import datetime
from enum import Enum
import re


def validate_email_flexible(v: str) -> str:
    """Custom email validator that allows .local domains for development/testing."""
    if not v or not v.strip():
        raise ValueError("Email is required")

    email_pattern = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
    if not re.match(email_pattern, v.strip()):
        raise ValueError("Please enter a valid email address")

    return v.strip().lower()


# Custom email type that allows .local domains
FlexibleEmailStr = Annotated[str, AfterValidator(validate_email_flexible)]


class RoleChoicesSchema(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    email_confirmed_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return self.user_metadata.get("full_name") or ""

    @property
    def is_email_confirmed(self) -> bool:
        return bool(
            self.email_confirmed_at or self.user_metadata.get("email_verified")
        )

    @classmethod
    def from_supabase(cls, user: Any) -> "CurrentUser":
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None),
            user_metadata=getattr(user, "user_metadata", None) or {},
            email_confirmed_at=getattr(user, "email_confirmed_at", None),
        )


class SignupRequestSchema(BaseModel):
    email: FlexibleEmailStr
    password: str
    confirmPassword: str
    firstName: str = ""
    lastName: str = ""

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters long")
        if not re.search(r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)", v):
            raise ValueError("Password must include uppercase, lowercase, and a number")
        return v

    @field_validator("confirmPassword")
    @classmethod
    def validate_confirm_password(cls, v: str, info: ValidationInfo) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords do not match")
        return v

    @property
    def full_name(self) -> str:
        return f"{self.firstName} {self.lastName}".strip()


class LoginRequestSchema(BaseModel):
    email: str = ""
    password: str = ""


class EmailRequestSchema(BaseModel):
    email: FlexibleEmailStr


class RefreshRequestSchema(BaseModel):
    refresh_token: Optional[str] = None


class AuthRedirectSchema(BaseModel):
    message: str
    redirect: str
    user_id: Optional[str] = None


class VerificationStatusSchema(BaseModel):
    verified: bool
    email: Optional[str] = None
    redirect: Optional[str] = None
