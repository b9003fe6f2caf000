# contact/heuristics.py
import re
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from contact.models import Submission
from contact.validation import FieldErrors, add_error

LINK_PATTERN = re.compile(r"https?://", re.IGNORECASE)
MAX_LINKS = 2  # three or more raw links looks like spam


def is_honeypot_triggered(value: Optional[str]) -> bool:
    """The hidden field is invisible to people; anything in it came from a bot."""
    return bool(value and value.strip())


def count_links(text: Optional[str]) -> int:
    return len(LINK_PATTERN.findall(text or ""))


def is_valid_email(address: str) -> bool:
    try:
        validate_email(address, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def check_heuristics(submission: Submission) -> FieldErrors:
    """Cheap content checks. Expects an already normalized submission."""
    errors: FieldErrors = {}
    if count_links(submission.message) > MAX_LINKS:
        add_error(errors, "message", "Please remove extra links and try again.")
    if submission.email and not is_valid_email(submission.email):
        add_error(errors, "email", "Please enter a valid email address.")
    return errors
