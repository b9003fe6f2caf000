# contact/timetoken.py
"""
Signed form-timing token.

The token is issued when the form is displayed and checked on submit: a
submission that comes back faster than a human could type, or long after the
page was loaded, is treated as automated.
"""
import time
from dataclasses import dataclass
from typing import Callable, Optional

from itsdangerous import BadData, URLSafeSerializer


TOKEN_SALT = "contact-form-time-token.v1"
MIN_AGE_SECONDS = 3
MAX_AGE_SECONDS = 60 * 60


@dataclass(frozen=True)
class TokenCheck:
    ok: bool
    age_seconds: Optional[int] = None
    reason: str = ""


class FormTimeTokenSigner:
    def __init__(
        self,
        secret_key: str,
        *,
        min_age: int = MIN_AGE_SECONDS,
        max_age: int = MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._serializer = URLSafeSerializer(secret_key, salt=TOKEN_SALT)
        self.min_age = min_age
        self.max_age = max_age
        self._clock = clock

    def issue(self, now: Optional[float] = None) -> str:
        issued_at = int(self._clock() if now is None else now)
        return self._serializer.dumps(issued_at)

    def verify(self, token: Optional[str], now: Optional[float] = None) -> TokenCheck:
        """Return the token age when it is within bounds; fail closed otherwise."""
        if not token or not isinstance(token, str) or not token.strip():
            return TokenCheck(False, reason="missing")

        try:
            issued_at = self._serializer.loads(token.strip())
        except BadData:
            return TokenCheck(False, reason="bad_signature")

        # bool is an int subclass; json `true` is not a timestamp
        if isinstance(issued_at, bool) or not isinstance(issued_at, int):
            return TokenCheck(False, reason="bad_payload")

        age = int(self._clock() if now is None else now) - issued_at
        if age < self.min_age:
            return TokenCheck(False, age_seconds=age, reason="too_fast")
        if age > self.max_age:
            return TokenCheck(False, age_seconds=age, reason="too_old")
        return TokenCheck(True, age_seconds=age)
