"""
Auth Schemas.

Signed-in identity and the validated sign-up / sign-in forms.
"""

from pydantic import BaseModel, Field

from notevault.schemas.base import RowModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class AuthUser(RowModel):
    """Identity of the signed-in user as reported by the auth provider."""

    id: str
    email: str | None = None


class RegisterForm(BaseModel):
    fullname: str = Field(..., min_length=2)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    university: str = Field(..., min_length=2)


class LoginForm(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)
