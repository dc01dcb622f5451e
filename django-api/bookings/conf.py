"""App-level settings read from ``settings.BOOKINGS``."""

from dataclasses import dataclass
from typing import Any, Self


@dataclass(frozen=True)
class BookingSettings:
    placeholder_email_domain: str = "temp.local"
    system_actor: str = "system"
    default_page_size: int = 20
    max_page_size: int = 100

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> Self:
        return cls(
            placeholder_email_domain=values.get("PLACEHOLDER_EMAIL_DOMAIN", cls.placeholder_email_domain),
            system_actor=values.get("SYSTEM_ACTOR", cls.system_actor),
            default_page_size=int(values.get("DEFAULT_PAGE_SIZE", cls.default_page_size)),
            max_page_size=int(values.get("MAX_PAGE_SIZE", cls.max_page_size)),
        )

    @classmethod
    def from_django(cls) -> Self:
        from django.conf import settings

        return cls.from_dict(getattr(settings, "BOOKINGS", {}))
