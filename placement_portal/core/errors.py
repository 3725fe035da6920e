"""
Error taxonomy for the portal.

Every failure the API reports is a PortalError carrying:
- kind: machine-readable name the frontend switches on
- status_code: HTTP status returned to the caller
- message: caller-safe text (never internal ids or stack traces)

main.py registers a handler that renders these as
{"success": false, "error": kind, "message": message}.
"""

from typing import Optional


class PortalError(Exception):
    kind = "PortalError"
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.kind, "message": self.message}


# ============================================================
# VALIDATION ERRORS
# ============================================================

class ValidationFailed(PortalError):
    kind = "ValidationError"
    status_code = 422
    default_message = "Invalid request data"


class InvalidDomain(PortalError):
    kind = "InvalidDomain"
    default_message = "Email must be from the institutional domain"


class InvalidRole(PortalError):
    kind = "InvalidRole"
    default_message = "Invalid user type"


# ============================================================
# STATE CONFLICTS
# ============================================================

class AlreadyVerified(PortalError):
    kind = "AlreadyVerified"
    status_code = 409
    default_message = "Email is already registered and verified. Please login."


class DuplicateEmail(PortalError):
    kind = "DuplicateEmail"
    status_code = 409
    default_message = "An account with this email already exists"


class NotFound(PortalError):
    kind = "NotFound"
    status_code = 404
    default_message = "User not found"


# ============================================================
# OTP REDEMPTION
# ============================================================

class OTPError(PortalError):
    kind = "OTPError"


class OTPNotFound(OTPError):
    kind = "OTPNotFound"
    default_message = "No pending OTP for this email. Request a new one."


class OTPMismatch(OTPError):
    kind = "OTPMismatch"
    default_message = "Invalid OTP"


class OTPExpired(OTPError):
    kind = "OTPExpired"
    default_message = "OTP has expired. Request a new one."


# ============================================================
# AUTHENTICATION
# ============================================================

class InvalidCredentials(PortalError):
    kind = "InvalidCredentials"
    status_code = 401
    default_message = "Invalid email or password"


class VerificationRequired(PortalError):
    kind = "VerificationRequired"
    status_code = 403
    default_message = "Please verify your email first"

    def __init__(self, email: str, message: Optional[str] = None):
        super().__init__(message)
        self.email = email

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"email": self.email, "needsVerification": True})
        return data


class InvalidOrExpiredToken(PortalError):
    kind = "InvalidOrExpiredToken"
    default_message = "Invalid or expired reset token"


class NotAuthenticated(PortalError):
    kind = "NotAuthenticated"
    status_code = 401
    default_message = "Invalid or expired token"


class PermissionDenied(PortalError):
    kind = "PermissionDenied"
    status_code = 403
    default_message = "You do not have access to this resource"


# ============================================================
# EXTERNAL FAILURES
# ============================================================

class MailFailure(PortalError):
    kind = "MailFailure"
    status_code = 502
    default_message = "Failed to send email. Please try again later."
