import unittest
from dataclasses import replace

from contact.models import Submission
from contact.validation import merge_errors, validate_submission

VALID = Submission(
    name="Jane Doe",
    email="jane@example.com",
    phone_number="",
    message="My laptop will not boot after the update.",
    service_type="Computer repair",
    contact_method="Email",
    privacy_consent=True,
)


class TestValidateSubmission(unittest.TestCase):
    def test_valid_email_submission(self):
        self.assertEqual(validate_submission(VALID), {})

    def test_any_requires_email_and_phone(self):
        errors = validate_submission(replace(VALID, contact_method="Any", email="", phone_number=""))
        self.assertEqual(set(errors), {"email", "phone_number"})

    def test_any_with_both_is_valid(self):
        s = replace(VALID, contact_method="any", phone_number="555-0100")
        self.assertEqual(validate_submission(s), {})

    def test_email_method_requires_email(self):
        errors = validate_submission(replace(VALID, email="  "))
        self.assertEqual(errors, {"email": ["Email is required when contact method is Email."]})

    def test_email_method_clears_phone_errors(self):
        s = replace(VALID, phone_number="5" * 40)
        self.assertEqual(validate_submission(s), {})

    def test_phone_methods_require_phone(self):
        for method in ("Phone call", "TEXT", " text "):
            with self.subTest(method=method):
                errors = validate_submission(replace(VALID, contact_method=method, email=""))
                self.assertEqual(list(errors), ["phone_number"])

    def test_phone_method_clears_email_errors(self):
        s = replace(VALID, contact_method="Phone call", email="x" * 200, phone_number="555-0100")
        self.assertEqual(validate_submission(s), {})

    def test_unknown_method(self):
        errors = validate_submission(replace(VALID, contact_method="Carrier pigeon", email=""))
        self.assertEqual(errors, {"contact_method": ["Please choose a valid contact method."]})

    def test_always_required_fields_accumulate(self):
        s = Submission(contact_method="Email", email="jane@example.com")
        errors = validate_submission(s)
        self.assertEqual(set(errors), {"name", "message", "service_type", "privacy_consent"})

    def test_message_length_bounds(self):
        self.assertIn("message", validate_submission(replace(VALID, message="too short")))
        self.assertIn("message", validate_submission(replace(VALID, message="x" * 2001)))
        self.assertEqual(validate_submission(replace(VALID, message="x" * 2000)), {})

    def test_name_length_cap(self):
        errors = validate_submission(replace(VALID, name="n" * 81))
        self.assertEqual(errors, {"name": ["Name must be at most 80 characters."]})

    def test_merge_errors(self):
        merged = merge_errors({"message": ["a"]}, {"message": ["b"], "email": ["c"]})
        self.assertEqual(merged, {"message": ["a", "b"], "email": ["c"]})


if __name__ == "__main__":
    unittest.main()
