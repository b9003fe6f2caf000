# contact/pipeline.py
"""
Contact submission pipeline.

Gates run in a fixed order and the first terminal outcome wins:

    honeypot -> timing token -> validation + heuristics -> daily quota -> send

Bot-looking submissions get the same answer as a real success so nothing
tells the sender it was caught. Host gating and per-IP rate limiting happen
in the caller before `submit` is reached.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from contact.heuristics import check_heuristics, is_honeypot_triggered
from contact.mailer import Mailer, SendResult
from contact.models import Submission
from contact.quota import DailyQuota
from contact.timetoken import FormTimeTokenSigner
from contact.validation import FieldErrors, merge_errors, validate_submission

logger = logging.getLogger(__name__)

SUBJECT = "New Support Request"

MSG_SENT = "Thanks! Your request has been sent. We'll be in touch soon."
MSG_INVALID = "Please correct the highlighted fields and try again."
MSG_QUOTA = "Contact form is temporarily unavailable. Please try again later."
MSG_SEND_FAILED = "Something went wrong sending your request. Please try again later."


class Outcome(str, Enum):
    ACCEPTED = "accepted"
    SOFT_REJECTED = "soft_rejected"
    VALIDATION_FAILED = "validation_failed"
    QUOTA_EXCEEDED = "quota_exceeded"
    SEND_FAILED = "send_failed"


_USER_MESSAGES = {
    Outcome.ACCEPTED: MSG_SENT,
    Outcome.SOFT_REJECTED: MSG_SENT,
    Outcome.VALIDATION_FAILED: MSG_INVALID,
    Outcome.QUOTA_EXCEEDED: MSG_QUOTA,
    Outcome.SEND_FAILED: MSG_SEND_FAILED,
}


@dataclass(frozen=True)
class Decision:
    outcome: Outcome
    submission: Optional[Submission] = None
    errors: FieldErrors = field(default_factory=dict)
    cause: str = ""  # internal only, never shown to the visitor

    @property
    def appears_successful(self) -> bool:
        return self.outcome in (Outcome.ACCEPTED, Outcome.SOFT_REJECTED)

    @property
    def user_message(self) -> str:
        return _USER_MESSAGES[self.outcome]


def build_email_body(s: Submission) -> str:
    return (
        f"Name: {s.name}\n"
        f"Email: {s.email}\n"
        f"Phone: {s.phone_number}\n"
        f"Preferred Contact: {s.contact_method}\n"
        f"Service Type: {s.service_type}\n"
        f"Device Type: {s.device_type}\n"
        f"Service Mode: {s.service_mode}\n"
        f"\n"
        f"Message:\n{s.message}\n"
    )


class ContactPipeline:
    def __init__(
        self,
        *,
        token_signer: FormTimeTokenSigner,
        quota: DailyQuota,
        mailer: Mailer,
        from_email: Optional[str],
        to_email: Optional[str],
        max_per_day: int = 20,
        send_timeout: float = 10.0,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.token_signer = token_signer
        self.quota = quota
        self.mailer = mailer
        self.from_email = from_email
        self.to_email = to_email
        self.max_per_day = max_per_day
        self.send_timeout = send_timeout
        self._executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="contact-mail")

    def issue_token(self) -> str:
        return self.token_signer.issue()

    def submit(self, submission: Submission) -> Decision:
        # 1) Honeypot: pretend success, don't tip off bots
        if is_honeypot_triggered(submission.honeypot):
            logger.info("[contact] honeypot triggered from %s; skipping send", submission.client_ip)
            return Decision(Outcome.SOFT_REJECTED)

        # 2) Time-to-submit
        check = self.token_signer.verify(submission.form_time_token)
        if not check.ok:
            logger.info(
                "[contact] timing token rejected from %s (%s, age=%s); skipping send",
                submission.client_ip, check.reason, check.age_seconds,
            )
            return Decision(Outcome.SOFT_REJECTED)

        # 3) Conditional validation + cheap heuristics
        submission = submission.normalized()
        errors = merge_errors(validate_submission(submission), check_heuristics(submission))
        if errors:
            return Decision(Outcome.VALIDATION_FAILED, submission=submission, errors=errors)

        # 4) Cost fuse
        if not self.quota.try_consume(self.max_per_day):
            return Decision(Outcome.QUOTA_EXCEEDED, submission=submission)

        # 5) Send (once; no automatic retry)
        result = self._send(submission)
        if not result.ok:
            logger.error(
                "[contact] send failed for %s <%s>: %s",
                submission.name, submission.email or submission.phone_number, result.error,
            )
            return Decision(Outcome.SEND_FAILED, submission=submission, cause=result.error)

        return Decision(Outcome.ACCEPTED, submission=submission)

    def _send(self, submission: Submission) -> SendResult:
        future = self._executor.submit(
            self.mailer.send,
            SUBJECT,
            build_email_body(submission),
            self.from_email,
            self.to_email,
            submission.email or None,
        )
        try:
            result = future.result(timeout=self.send_timeout)
        except FutureTimeout:
            future.cancel()
            return SendResult.failure(f"timed out after {self.send_timeout}s")
        except Exception as e:
            logger.exception("[contact] mailer raised")
            return SendResult.failure(f"{e.__class__.__name__}: {e}")

        if not isinstance(result, SendResult):
            return SendResult.failure("mailer returned no result")
        return result

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
