# contact/settings.py
"""Contact form configuration, read from the environment (and SSM for secrets)."""
from dataclasses import dataclass, field
from typing import List, Optional

from contact.utils import (
    getenv_bool,
    getenv_float,
    getenv_int,
    getenv_list,
    getenv_or_ssm,
    ssm_param,
)


@dataclass(frozen=True)
class ContactSettings:
    allowed_hosts: List[str] = field(default_factory=list)

    # Cost fuse: global sends per UTC day
    max_per_day: int = 20
    quota_retention_days: int = 2

    # Per-IP token bucket
    rate_burst: int = 5
    rate_refill: int = 2
    rate_period_seconds: float = 60.0

    # Human-plausible fill time
    token_min_age: int = 3
    token_max_age: int = 3600

    # Email
    email_transport: str = "smtp"
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    email_api_url: Optional[str] = None
    email_api_key: Optional[str] = None
    from_email: Optional[str] = None
    to_email: Optional[str] = None
    send_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "ContactSettings":
        smtp_user = getenv_or_ssm("SMTP_USER", ssm_param("SMTP_USER"))
        return cls(
            allowed_hosts=getenv_list("CONTACT_ALLOWED_HOSTS"),
            max_per_day=getenv_int("CONTACT_MAX_PER_DAY", 20),
            quota_retention_days=getenv_int("CONTACT_QUOTA_RETENTION_DAYS", 2),
            rate_burst=getenv_int("CONTACT_RATE_BURST", 5),
            rate_refill=getenv_int("CONTACT_RATE_REFILL", 2),
            rate_period_seconds=getenv_float("CONTACT_RATE_PERIOD_SECONDS", 60.0),
            token_min_age=getenv_int("CONTACT_TOKEN_MIN_AGE", 3),
            token_max_age=getenv_int("CONTACT_TOKEN_MAX_AGE", 3600),
            email_transport=(getenv_or_ssm("EMAIL_TRANSPORT", default="smtp") or "smtp").lower(),
            smtp_host=getenv_or_ssm("SMTP_HOST", default="smtp.gmail.com") or "smtp.gmail.com",
            smtp_port=getenv_int("SMTP_PORT", 587),
            smtp_user=smtp_user,
            smtp_password=getenv_or_ssm("SMTP_PASSWORD", ssm_param("SMTP_PASSWORD")),
            smtp_use_tls=getenv_bool("SMTP_USE_TLS", True),
            email_api_url=getenv_or_ssm("EMAIL_API_URL"),
            email_api_key=getenv_or_ssm("EMAIL_API_KEY", ssm_param("EMAIL_API_KEY")),
            from_email=getenv_or_ssm("CONTACT_FROM_EMAIL") or smtp_user,
            to_email=getenv_or_ssm("CONTACT_TO_EMAIL") or smtp_user,
            send_timeout=getenv_float("EMAIL_SEND_TIMEOUT", 10.0),
        )

    def is_allowed_host(self, host: Optional[str]) -> bool:
        """Only accept posts for the real domain when hosts are configured."""
        if not self.allowed_hosts:
            return True
        host = (host or "").strip().lower()
        # strip a port, but leave bracketed IPv6 literals alone
        if host and not host.startswith("[") and ":" in host:
            host = host.rsplit(":", 1)[0]
        return host in self.allowed_hosts
