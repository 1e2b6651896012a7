"""Failed-login throttling for dashboard operators."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

from .rate_limit import AttemptLimiter

LOGGER = logging.getLogger(__name__)

PasswordCheck = Callable[[str, str], bool]


@dataclass(frozen=True)
class LoginResult:
    success: bool
    error: Optional[str] = None


class OperatorAuthenticator:
    """Wrap a credential check with per-operator lockout.

    ``verify_password(email, password)`` is supplied by the identity
    provider; this class only counts failures and enforces the lock.
    """

    def __init__(self, verify_password: PasswordCheck, limiter: Optional[AttemptLimiter] = None) -> None:
        self._verify_password = verify_password
        self._limiter = limiter or AttemptLimiter()

    def authenticate(self, email: str, password: str) -> LoginResult:
        key = email.strip().lower()
        remaining_lock = self._limiter.locked_for(key)
        if remaining_lock > 0:
            minutes = math.ceil(remaining_lock / 60)
            return LoginResult(False, f"Account locked. Try again in {minutes} minutes.")

        if self._verify_password(email, password):
            self._limiter.reset(key)
            return LoginResult(True)

        remaining = self._limiter.record_failure(key)
        if remaining == 0:
            LOGGER.warning("Locking operator %s after repeated failed logins", key)
            minutes = math.ceil(self._limiter.lock_seconds / 60)
            return LoginResult(False, f"Too many failed attempts. Account locked for {minutes} minutes.")
        return LoginResult(False, f"Invalid credentials. {remaining} attempts remaining.")


__all__ = ["LoginResult", "OperatorAuthenticator"]
