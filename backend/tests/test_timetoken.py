import unittest

from contact.timetoken import FormTimeTokenSigner, TokenCheck

ISSUED_AT = 1_760_000_000


class TestFormTimeToken(unittest.TestCase):
    def setUp(self):
        self.signer = FormTimeTokenSigner("test-secret")
        self.token = self.signer.issue(now=ISSUED_AT)

    def test_too_fast_is_invalid(self):
        check = self.signer.verify(self.token, now=ISSUED_AT + 2)
        self.assertFalse(check.ok)
        self.assertEqual(check.reason, "too_fast")

    def test_too_old_is_invalid(self):
        check = self.signer.verify(self.token, now=ISSUED_AT + 3600 + 1)
        self.assertFalse(check.ok)
        self.assertEqual(check.reason, "too_old")

    def test_age_within_bounds(self):
        for age in (3, 4, 90, 1800, 3600):
            with self.subTest(age=age):
                self.assertEqual(self.signer.verify(self.token, now=ISSUED_AT + age), TokenCheck(True, age))

    def test_future_token_is_invalid(self):
        self.assertFalse(self.signer.verify(self.token, now=ISSUED_AT - 60).ok)

    def test_tampered_token_is_invalid(self):
        payload, _, signature = self.token.partition(".")
        flip = lambda c: "A" if c != "A" else "B"
        tampered_payload = flip(payload[0]) + payload[1:] + "." + signature
        tampered_signature = payload + "." + flip(signature[0]) + signature[1:]
        for token in (tampered_payload, tampered_signature):
            with self.subTest(token=token):
                check = self.signer.verify(token, now=ISSUED_AT + 10)
                self.assertFalse(check.ok)
                self.assertEqual(check.reason, "bad_signature")

    def test_other_key_cannot_verify(self):
        other = FormTimeTokenSigner("another-secret")
        self.assertFalse(other.verify(self.token, now=ISSUED_AT + 10).ok)

    def test_malformed_input_fails_closed(self):
        for token in (None, "", "   ", "not-a-token", "a.b.c", "....", "éé"):
            with self.subTest(token=token):
                self.assertFalse(self.signer.verify(token, now=ISSUED_AT + 10).ok)

    def test_non_integer_payload_is_invalid(self):
        from itsdangerous import URLSafeSerializer
        from contact.timetoken import TOKEN_SALT

        serializer = URLSafeSerializer("test-secret", salt=TOKEN_SALT)
        for payload in ("1760000000", True, 1.5, {"t": ISSUED_AT}):
            with self.subTest(payload=payload):
                check = self.signer.verify(serializer.dumps(payload), now=ISSUED_AT + 10)
                self.assertFalse(check.ok)
                self.assertEqual(check.reason, "bad_payload")

    def test_uses_injected_clock(self):
        now = [ISSUED_AT]
        signer = FormTimeTokenSigner("test-secret", clock=lambda: now[0])
        token = signer.issue()
        now[0] += 5
        self.assertEqual(signer.verify(token).age_seconds, 5)

    def test_custom_bounds(self):
        signer = FormTimeTokenSigner("test-secret", min_age=10, max_age=20)
        token = signer.issue(now=ISSUED_AT)
        self.assertFalse(signer.verify(token, now=ISSUED_AT + 9).ok)
        self.assertTrue(signer.verify(token, now=ISSUED_AT + 15).ok)
        self.assertFalse(signer.verify(token, now=ISSUED_AT + 21).ok)

    def test_empty_key_rejected(self):
        with self.assertRaises(ValueError):
            FormTimeTokenSigner("")


if __name__ == "__main__":
    unittest.main()
