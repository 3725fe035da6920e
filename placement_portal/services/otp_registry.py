"""
OTP Registry - short-lived numeric codes bound to an email address.

Gates student self-registration: a code is issued (and mailed) when the
student starts registering and must be redeemed to create the account.

One registry exists per application. main.create_app() builds it and stores
it on app.state; every handler receives that same instance through
get_auth_service(), so a code issued by send-otp is always redeemable by
register-student.

Entries are only removed on successful redemption or overwritten by a new
issuance; stale entries are not swept.
"""

import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from placement_portal.core.errors import OTPExpired, OTPMismatch, OTPNotFound

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999


@dataclass(frozen=True)
class PendingOTP:
    code: str
    expiry: datetime


def generate_otp() -> str:
    """Uniformly random 6-digit code in 100000-999999."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


class OTPRegistry:
    """
    In-memory email -> PendingOTP map.

    All reads and writes go through one lock, so a redeem racing a
    re-issue for the same email either sees the new code or fails.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=10),
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, PendingOTP] = {}
        self._lock = threading.Lock()

    def issue(self, email: str) -> str:
        """Create (or overwrite) the pending code for email and return it."""
        entry = PendingOTP(code=generate_otp(), expiry=self.clock() + self.ttl)
        with self._lock:
            replaced = email in self._entries
            self._entries[email] = entry
        logger.info("Issued OTP for %s (replaced previous: %s), expires at %s",
                    email, replaced, entry.expiry.isoformat())
        return entry.code

    def redeem(self, email: str, code: str) -> None:
        """
        Consume the pending code for email.

        Raises:
            OTPNotFound: nothing pending for email
            OTPMismatch: code differs; the entry stays redeemable
            OTPExpired: code matched but its expiry has passed
        """
        with self._lock:
            entry = self._entries.get(email)
            if entry is None:
                raise OTPNotFound()
            if not secrets.compare_digest(entry.code.encode(), code.encode()):
                raise OTPMismatch()
            if self.clock() > entry.expiry:
                raise OTPExpired()
            del self._entries[email]
        logger.info("OTP redeemed for %s", email)

    def discard(self, email: str, code: Optional[str] = None) -> bool:
        """
        Remove the pending entry for email.
        When code is given, only remove it if it is still the pending code.
        """
        with self._lock:
            entry = self._entries.get(email)
            if entry is None or (code is not None and entry.code != code):
                return False
            del self._entries[email]
            return True

    def __contains__(self, email: str) -> bool:
        with self._lock:
            return email in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
