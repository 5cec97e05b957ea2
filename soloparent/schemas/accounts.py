"""
Solo Parent Backend: Account Schemas
=====================================

Login, password change and password reset contracts. Field names follow
the web client (camelCase where it sends camelCase).
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AccountOut(BaseModel):
    id: int
    email: str
    status: Optional[str] = None
    role: str
    barangay: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool = True
    user: AccountOut


class EmailRequest(BaseModel):
    email: str = Field(min_length=1)


class UserStatusOut(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    status: str


class UserStatusResponse(BaseModel):
    success: bool = True
    user: UserStatusOut


class CreateUserRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    name: Optional[str] = None
    code_id: Optional[str] = None


class CreatedResponse(BaseModel):
    success: bool = True
    id: int


class _PasswordChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword", min_length=1)
    new_password: str = Field(alias="newPassword", min_length=1)


class UserPasswordChange(_PasswordChange):
    user_id: int = Field(alias="userId")


class AdminPasswordChange(_PasswordChange):
    admin_id: int = Field(alias="adminId")


class SuperadminPasswordChange(_PasswordChange):
    superadmin_id: Optional[int] = Field(default=None, alias="superadminId")
    email: Optional[str] = None


class ForgotPasswordResponse(BaseModel):
    success: bool = True
    message: str
    email_sent: bool = Field(serialization_alias="emailSent")


class TokenCheckResponse(BaseModel):
    valid: bool
    message: str


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=6)
