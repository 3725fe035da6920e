"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Registration fields accept the camelCase names the browser client sends
(admissionYear, passoutYear) as well as snake_case.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    admin = "admin"
    faculty = "faculty"
    student = "student"


class Course(str, Enum):
    btech = "BTech"
    mtech = "MTech"
    bca = "BCA"
    mca = "MCA"
    bba = "BBA"
    mba = "MBA"
    diploma = "Diploma"


PHONE_PATTERN = r"^\+\d{10,15}$"


# ============================================================
# REGISTRATION SCHEMAS
# ============================================================

class EmailRequest(BaseModel):
    """Body of send-otp, resend-otp, forgot-password and verify-account."""
    email: EmailStr


class StudentRegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=PHONE_PATTERN)
    password: str = Field(..., min_length=6, max_length=72)
    course: Course
    branch: str = Field(..., min_length=1, max_length=100)
    admission_year: int = Field(..., ge=1990, le=2100, alias="admissionYear")
    passout_year: int = Field(..., ge=1990, le=2100, alias="passoutYear")
    otp: str = Field(..., pattern=r"^\d{6}$")

    @model_validator(mode="after")
    def check_years(self):
        if self.passout_year < self.admission_year:
            raise ValueError("passoutYear cannot be before admissionYear")
        return self


class RegisterResponse(BaseModel):
    success: bool = True
    message: str
    is_verified: bool = True


# ============================================================
# AUTH SCHEMAS
# ============================================================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: UserRole
    name: str
    email: str

class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6, max_length=72)
    # Reset links carry the role as ?type=...; accept either name.
    role: str = Field(..., validation_alias=AliasChoices("role", "type"))

class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    is_verified: bool = False
    course: Optional[str] = None
    branch: Optional[str] = None
    admission_year: Optional[int] = None
    passout_year: Optional[int] = None
    specialization: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


# ============================================================
# ADMIN / FACULTY SCHEMAS
# ============================================================

class AdminCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=PHONE_PATTERN)
    password: str = Field(..., min_length=6, max_length=72)

class AdminUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)

class FacultyCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=PHONE_PATTERN)
    password: str = Field(..., min_length=6, max_length=72)
    specialization: str = Field(..., min_length=1, max_length=100)

class AdminExistsResponse(BaseModel):
    exists: bool

class AdminSummary(BaseModel):
    id: str
    name: str
    email: str


# ============================================================
# COMMON
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str
    fields: Optional[List[str]] = None
