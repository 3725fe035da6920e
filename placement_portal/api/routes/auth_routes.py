"""
Authentication Routes

POST /auth/send-otp - Start student registration (mail an OTP)
POST /auth/resend-otp - Mail a fresh OTP
POST /auth/register-student - Complete registration with OTP
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
POST /auth/forgot-password - Mail a password reset link
POST /auth/reset-password - Set a new password with a reset token
POST /auth/verify-account - Mark an account verified (admin only)

Handlers are plain `def` so FastAPI runs them in its thread pool; bcrypt,
SMTP and pymongo calls never block the event loop.
"""

from fastapi import APIRouter, Depends

from placement_portal.core.auth import get_current_admin, get_current_user
from placement_portal.services.auth_service import AuthService, get_auth_service
from placement_portal.services.user_service import to_public
from placement_portal.schemas.schemas import (
    EmailRequest, StudentRegisterRequest, RegisterResponse, LoginRequest,
    TokenResponse, ResetPasswordRequest, UserResponse, MessageResponse
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/send-otp", response_model=MessageResponse)
def send_otp(request: EmailRequest, auth: AuthService = Depends(get_auth_service)):
    """
    Start student registration.

    Email must belong to the institute. An OTP valid for 10 minutes is mailed.
    """
    auth.start_registration(request.email)
    return MessageResponse(message="OTP sent to your email")


@router.post("/resend-otp", response_model=MessageResponse)
def resend_otp(request: EmailRequest, auth: AuthService = Depends(get_auth_service)):
    """Mail a new OTP. The previous code stops working."""
    auth.resend_otp(request.email)
    return MessageResponse(message="OTP resent successfully")


@router.post("/register-student", response_model=RegisterResponse, status_code=201)
def register_student(request: StudentRegisterRequest, auth: AuthService = Depends(get_auth_service)):
    """
    Complete student registration.

    The OTP is consumed; the account is created already verified.
    """
    auth.complete_registration(
        name=request.name,
        email=request.email,
        phone=request.phone,
        password=request.password,
        course=request.course.value,
        branch=request.branch,
        admission_year=request.admission_year,
        passout_year=request.passout_year,
        otp=request.otp,
    )
    return RegisterResponse(
        message="Registration successful. Your account is now verified and you can login."
    )


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    """
    Login and receive JWT access token (valid for one hour).

    Include token in requests: Authorization: Bearer <token>
    """
    return TokenResponse(**auth.login(request.email, request.password))


@router.get("/me", response_model=UserResponse)
def get_me(user: dict = Depends(get_current_user)):
    """Get current authenticated user's info."""
    return UserResponse(**to_public(user))


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(request: EmailRequest, auth: AuthService = Depends(get_auth_service)):
    """Mail a reset link. The answer never reveals whether the email exists."""
    return MessageResponse(message=auth.request_password_reset(request.email))


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(request: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    """Set a new password using the token from the reset email."""
    auth.reset_password(request.token, request.password, request.role)
    return MessageResponse(message="Password has been reset successfully.")


@router.post("/verify-account", response_model=MessageResponse)
def verify_account(
    request: EmailRequest,
    auth: AuthService = Depends(get_auth_service),
    admin: dict = Depends(get_current_admin),
):
    """Mark an account verified when the OTP flow cannot be completed."""
    user = auth.force_verify(request.email)
    return MessageResponse(message=f"{user['role']} account verified successfully")
