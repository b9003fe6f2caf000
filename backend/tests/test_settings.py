import os
import unittest
from unittest.mock import patch

from contact import utils
from contact.settings import ContactSettings


class TestContactSettings(unittest.TestCase):
    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        s = ContactSettings.from_env()
        self.assertEqual(s.max_per_day, 20)
        self.assertEqual((s.rate_burst, s.rate_refill, s.rate_period_seconds), (5, 2, 60.0))
        self.assertEqual((s.token_min_age, s.token_max_age), (3, 3600))
        self.assertEqual(s.email_transport, "smtp")
        self.assertEqual(s.allowed_hosts, [])

    @patch.dict(
        os.environ,
        {
            "CONTACT_ALLOWED_HOSTS": "KairosTech.ca, www.kairostech.ca",
            "CONTACT_MAX_PER_DAY": "7",
            "CONTACT_RATE_BURST": "not-a-number",
            "EMAIL_TRANSPORT": "API",
            "SMTP_USER": "bot@kairostech.ca",
            "CONTACT_TO_EMAIL": "support@kairostech.ca",
            "EMAIL_SEND_TIMEOUT": "2.5",
        },
        clear=True,
    )
    def test_from_env(self):
        s = ContactSettings.from_env()
        self.assertEqual(s.allowed_hosts, ["kairostech.ca", "www.kairostech.ca"])
        self.assertEqual(s.max_per_day, 7)
        self.assertEqual(s.rate_burst, 5)
        self.assertEqual(s.email_transport, "api")
        self.assertEqual(s.from_email, "bot@kairostech.ca")
        self.assertEqual(s.to_email, "support@kairostech.ca")
        self.assertEqual(s.send_timeout, 2.5)

    def test_host_gating(self):
        s = ContactSettings(allowed_hosts=["kairostech.ca", "www.kairostech.ca"])
        self.assertTrue(s.is_allowed_host("KAIROSTECH.CA"))
        self.assertTrue(s.is_allowed_host("www.kairostech.ca:443"))
        self.assertFalse(s.is_allowed_host("app.onrender.com"))
        self.assertFalse(s.is_allowed_host(None))
        self.assertTrue(ContactSettings().is_allowed_host("anything"))


class TestGetenvOrSsm(unittest.TestCase):
    def setUp(self):
        utils.ssm_get.cache_clear()

    @patch.dict(os.environ, {"SMTP_PASSWORD": "  from-env  "}, clear=True)
    @patch("contact.utils.ssm_get")
    def test_env_first(self, mock_ssm):
        self.assertEqual(utils.getenv_or_ssm("SMTP_PASSWORD", "/p"), "from-env")
        mock_ssm.assert_not_called()

    @patch.dict(os.environ, {"USE_SSM": "true", "SMTP_PASSWORD": " "}, clear=True)
    @patch("contact.utils.ssm_get", return_value="from-ssm\n")
    def test_ssm_fallback(self, mock_ssm):
        self.assertEqual(utils.getenv_or_ssm("SMTP_PASSWORD", "/p"), "from-ssm")
        mock_ssm.assert_called_once_with("/p", decrypt=True)

    @patch.dict(os.environ, {}, clear=True)
    @patch("contact.utils.ssm_get")
    def test_ssm_disabled_by_default(self, mock_ssm):
        self.assertIsNone(utils.getenv_or_ssm("SMTP_PASSWORD", "/p"))
        mock_ssm.assert_not_called()

    @patch.dict(os.environ, {}, clear=True)
    def test_blank_value_uses_default(self):
        with patch.dict(os.environ, {"SMTP_HOST": "   "}):
            self.assertEqual(utils.getenv_or_ssm("SMTP_HOST", default="smtp.gmail.com"), "smtp.gmail.com")

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_secret_key_falls_back_with_warning(self):
        utils.get_secret_key.cache_clear()
        self.addCleanup(utils.get_secret_key.cache_clear)
        with self.assertLogs("contact.utils", level="WARNING") as logs:
            key = utils.get_secret_key()
        self.assertEqual(len(key), 64)
        self.assertIn("SECRET_KEY is not set", logs.output[0])

    @patch.dict(os.environ, {"SECRET_KEY": "shared-key"}, clear=True)
    def test_configured_secret_key_is_used(self):
        utils.get_secret_key.cache_clear()
        self.addCleanup(utils.get_secret_key.cache_clear)
        with patch.object(utils.logger, "warning") as warn:
            self.assertEqual(utils.get_secret_key(), "shared-key")
        warn.assert_not_called()


if __name__ == "__main__":
    unittest.main()
