"""
Auth Service - registration, login, password reset and verification override.

REGISTRATION STATE MACHINE (students):
    Unregistered --send-otp--> OTPPending --register-student--> Verified

- Unregistered: no account for the email, or an unverified student account
  (retryable; it is replaced on completion)
- OTPPending: a code is held by the OTP registry
- Verified: a student account with is_verified = true exists

Nothing is written to MongoDB before the OTP is redeemed, so a failed mail
delivery never leaves a partial account behind.

ENUMERATION SAFETY:
Login reports the same InvalidCredentials error for an unknown email and for
a wrong password. Forgot-password always answers with the same generic
acknowledgement.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable

from fastapi import Depends, Request

from placement_portal.core.auth import (
    create_access_token, dummy_verify, hash_password, verify_password
)
from placement_portal.core.config import Settings, get_settings
from placement_portal.core.errors import (
    AlreadyVerified, DuplicateEmail, InvalidCredentials, InvalidDomain,
    InvalidOrExpiredToken, InvalidRole, MailFailure, NotFound, VerificationRequired
)
from placement_portal.services.mail_service import Mailer
from placement_portal.services.otp_registry import OTPRegistry
from placement_portal.services.user_service import (
    ROLE_PRIORITY, UserService, get_user_service, new_user_doc, normalize_email
)

logger = logging.getLogger(__name__)

RESET_ACK = "If this email exists, a password reset link has been sent"


def hash_reset_token(token: str) -> str:
    """Reset tokens are stored as SHA-256 digests; only the mail holds the token."""
    return hashlib.sha256(token.encode()).hexdigest()


class AuthService:
    """
    Implements every authentication operation exposed under /auth.

    Collaborators are passed in explicitly; the OTP registry in particular
    must be the application-wide instance.
    """

    def __init__(
        self,
        users: UserService,
        otp_registry: OTPRegistry,
        mailer: Mailer,
        settings: Settings = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.users = users
        self.otp_registry = otp_registry
        self.mailer = mailer
        self.settings = settings or get_settings()
        self.clock = clock

    # ============================================================
    # REGISTRATION
    # ============================================================

    def _check_domain(self, email: str) -> None:
        domain = self.settings.institution_email_domain.lower()
        if not email.endswith(domain):
            raise InvalidDomain(f"Email must be from {domain} domain")

    def _issue_and_send_otp(self, email: str) -> None:
        code = self.otp_registry.issue(email)
        try:
            self.mailer.send_otp_email(email, code)
        except MailFailure:
            # Undelivered codes must not stay redeemable
            self.otp_registry.discard(email, code)
            raise

    def start_registration(self, email: str) -> None:
        """Unregistered -> OTPPending."""
        email = normalize_email(email)
        self._check_domain(email)

        existing = self.users.get_by_email(email)
        if existing is not None and (existing["role"] != "student" or existing.get("is_verified")):
            raise AlreadyVerified()

        self._issue_and_send_otp(email)
        logger.info("Registration started for %s", email)

    def resend_otp(self, email: str) -> None:
        """Re-issue the code; any previously mailed code stops working."""
        email = normalize_email(email)
        self._check_domain(email)
        self._issue_and_send_otp(email)
        logger.info("OTP resent for %s", email)

    def complete_registration(
        self,
        name: str,
        email: str,
        phone: str,
        password: str,
        course: str,
        branch: str,
        admission_year: int,
        passout_year: int,
        otp: str,
    ) -> str:
        """
        OTPPending -> Verified.

        Returns the new student's id. The unique email index decides
        concurrent duplicate registrations.
        """
        email = normalize_email(email)
        self._check_domain(email)

        self.otp_registry.redeem(email, otp)

        doc = new_user_doc(
            role="student",
            name=name,
            email=email,
            phone=phone,
            password_hash=hash_password(password),
            is_verified=True,
            course=course,
            branch=branch.strip(),
            admission_year=admission_year,
            passout_year=passout_year,
        )
        try:
            user_id = self.users.insert(doc)
        except DuplicateEmail:
            user_id = self.users.replace_unverified_student(doc)
            if user_id is None:
                logger.warning("Registration rejected, email already in use: %s", email)
                raise
            logger.info("Replaced unverified student record for %s", email)

        logger.info("Student registered and verified: %s", email)
        return user_id

    # ============================================================
    # LOGIN
    # ============================================================

    def login(self, email: str, password: str) -> dict:
        """
        Check credentials and issue an access token.

        Returns:
            {"access_token", "token_type", "role", "name", "email"}
        """
        email = normalize_email(email)
        user = self.users.get_by_email(email)

        if user is None:
            dummy_verify()
            logger.info("Login failed for %s", email)
            raise InvalidCredentials()

        if user["role"] == "student" and not user.get("is_verified"):
            logger.info("Login blocked, student not verified: %s", email)
            raise VerificationRequired(email=user["email"])

        if not verify_password(password, user["password_hash"]):
            logger.info("Login failed for %s", email)
            raise InvalidCredentials()

        token = create_access_token(
            data={"sub": str(user["_id"]), "email": user["email"], "role": user["role"]},
            expires_delta=timedelta(minutes=self.settings.jwt_expire_minutes),
        )
        logger.info("Login successful for %s: %s", user["role"], email)

        return {
            "access_token": token,
            "token_type": "bearer",
            "role": user["role"],
            "name": user["name"],
            "email": user["email"],
        }

    # ============================================================
    # PASSWORD RESET
    # ============================================================

    def request_password_reset(self, email: str) -> str:
        """
        Mail a reset link if the account exists.
        Returns the generic acknowledgement in every case.
        """
        email = normalize_email(email)
        user = self.users.get_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return RESET_ACK

        token = secrets.token_hex(20)
        expiry = self.clock() + timedelta(minutes=self.settings.reset_token_expire_minutes)
        digest = hash_reset_token(token)
        self.users.set_reset_token(user["_id"], digest, expiry)

        try:
            self.mailer.send_password_reset_email(user["email"], token, user["role"])
        except MailFailure:
            # An unmailed token must not stay redeemable
            self.users.clear_reset_token_for(user["_id"], digest)
            raise
        logger.info("Password reset link sent to %s", email)
        return RESET_ACK

    def reset_password(self, token: str, new_password: str, role: str) -> None:
        """Redeem a reset token. The token is cleared whether or not it was still valid."""
        role = (role or "").strip().lower()
        if role not in ROLE_PRIORITY:
            raise InvalidRole()

        digest = hash_reset_token(token)
        user = self.users.redeem_reset_token(
            digest, role, hash_password(new_password), self.clock()
        )
        if user is None:
            if self.users.clear_reset_token(digest, role):
                logger.info("Cleared expired reset token for a %s account", role)
            raise InvalidOrExpiredToken()

        logger.info("Password reset for %s: %s", role, user["email"])

    # ============================================================
    # VERIFICATION OVERRIDE
    # ============================================================

    def force_verify(self, email: str) -> dict:
        """Operator escape hatch: mark an account verified. Idempotent."""
        email = normalize_email(email)
        user = self.users.mark_verified(email)
        if user is None:
            raise NotFound()
        logger.info("%s account %s marked verified", user["role"], email)
        return user


def get_auth_service(
    request: Request,
    users: UserService = Depends(get_user_service),
) -> AuthService:
    """FastAPI dependency - AuthService wired to the app's shared registry and mailer."""
    state = request.app.state
    return AuthService(
        users=users,
        otp_registry=state.otp_registry,
        mailer=state.mailer,
        settings=state.settings,
    )
