# contact/models.py
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping, Optional

_TRUTHY = {"true", "on", "1", "yes"}

# Field names accepted from the form / JSON body
HONEYPOT_FIELD = "website"
TOKEN_FIELD = "form_time_token"


@dataclass(frozen=True)
class Submission:
    name: str = ""
    email: str = ""
    phone_number: str = ""
    message: str = ""
    service_type: str = ""
    device_type: str = ""
    service_mode: str = "Not sure"
    contact_method: str = "Email"
    privacy_consent: bool = False
    honeypot: str = ""
    form_time_token: str = ""
    client_ip: str = "unknown"

    @classmethod
    def from_form(cls, data: Mapping[str, Any], client_ip: Optional[str] = None) -> "Submission":
        def text(*names: str, default: str = "") -> str:
            for name in names:
                value = data.get(name)
                if value is not None:
                    return str(value)
            return default

        return cls(
            name=text("name"),
            email=text("email"),
            phone_number=text("phone_number", "phone"),
            message=text("message"),
            service_type=text("service_type"),
            device_type=text("device_type"),
            service_mode=text("service_mode", default="Not sure"),
            contact_method=text("contact_method", default="Email"),
            privacy_consent=parse_consent(data.get("privacy_consent")),
            honeypot=text(HONEYPOT_FIELD, "company"),
            form_time_token=text(TOKEN_FIELD),
            client_ip=client_ip or "unknown",
        )

    def normalized(self) -> "Submission":
        return replace(
            self,
            name=(self.name or "").strip(),
            email=(self.email or "").strip(),
            phone_number=(self.phone_number or "").strip(),
            message=(self.message or "").strip(),
        )

    def draft(self) -> Dict[str, Any]:
        """User-editable values to put back into the form after a failure."""
        values = asdict(self)
        for hidden in ("honeypot", "form_time_token", "client_ip"):
            values.pop(hidden)
        return values


def parse_consent(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY
