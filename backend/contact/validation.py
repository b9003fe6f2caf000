# contact/validation.py
"""
Field validation for contact submissions.

Which of email / phone is required depends on the contact method the visitor
picked, so the checks branch on that value (compared case-insensitively).
All problems are collected; an empty dict means the submission is valid.
"""
from typing import Dict, List

from contact.models import Submission

FieldErrors = Dict[str, List[str]]

MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 2000

# Column caps from the form definition
MAX_LENGTHS = {
    "name": 80,
    "email": 120,
    "phone_number": 30,
    "service_type": 50,
    "contact_method": 20,
}

LABELS = {
    "name": "Name",
    "email": "Email",
    "phone_number": "Phone number",
    "service_type": "Service type",
    "contact_method": "Contact method",
}

PHONE_METHODS = {"phone call", "text"}


def add_error(errors: FieldErrors, field: str, message: str) -> None:
    errors.setdefault(field, []).append(message)


def merge_errors(*groups: FieldErrors) -> FieldErrors:
    merged: FieldErrors = {}
    for group in groups:
        for field, messages in group.items():
            for message in messages:
                add_error(merged, field, message)
    return merged


def _check_lengths(submission: Submission, errors: FieldErrors) -> None:
    for field, limit in MAX_LENGTHS.items():
        value = getattr(submission, field) or ""
        if len(value) > limit:
            add_error(errors, field, f"{LABELS[field]} must be at most {limit} characters.")

    message = submission.message or ""
    if message.strip() and not (MESSAGE_MIN_LENGTH <= len(message) <= MESSAGE_MAX_LENGTH):
        add_error(
            errors,
            "message",
            f"Message must be between {MESSAGE_MIN_LENGTH} and {MESSAGE_MAX_LENGTH} characters.",
        )


def validate_submission(submission: Submission) -> FieldErrors:
    errors: FieldErrors = {}
    _check_lengths(submission, errors)

    if not (submission.name or "").strip():
        add_error(errors, "name", "Name is required.")
    if not (submission.message or "").strip():
        add_error(errors, "message", "Message is required.")
    if not (submission.service_type or "").strip():
        add_error(errors, "service_type", "Please choose a service.")
    if not submission.privacy_consent:
        add_error(errors, "privacy_consent", "You must agree to the Privacy Policy.")

    method = (submission.contact_method or "").strip().lower()
    has_email = bool((submission.email or "").strip())
    has_phone = bool((submission.phone_number or "").strip())

    if method == "any":
        if not has_email:
            add_error(errors, "email", "Email is required when contact method is Any.")
        if not has_phone:
            add_error(errors, "phone_number", "Phone number is required when contact method is Any.")
        return errors

    if method == "email":
        # phone is not used for this method, so none of its checks apply
        errors.pop("phone_number", None)
        if not has_email:
            add_error(errors, "email", "Email is required when contact method is Email.")
        return errors

    if method in PHONE_METHODS:
        errors.pop("email", None)
        if not has_phone:
            add_error(errors, "phone_number", "Phone number is required when contact method is Phone or Text.")
        return errors

    add_error(errors, "contact_method", "Please choose a valid contact method.")
    return errors
