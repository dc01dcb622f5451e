"""Member identity resolution.

Bookings arrive with a name and optionally an email and phone. Email is the
natural key: an existing member with that email is reused, otherwise one is
created. Bookings without an email get a placeholder address derived from
the name, so two anonymous members with the same name resolve to the same
record. That merge is the documented "temporary anonymous booking" policy.
"""

import logging
import re

from bookings.domain import Member
from bookings.domain.errors import ErrorCode, ValidationError
from bookings.stores.interfaces import MemberStore

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")
_PHONE_PUNCTUATION = re.compile(r"[\s\-()]")
_WHITESPACE = re.compile(r"\s+")


def placeholder_email(name: str, domain: str) -> str:
    """Build the deterministic address used for bookings without an email."""
    local_part = _WHITESPACE.sub(".", name.strip().lower())
    return f"{local_part}@{domain}"


class MemberResolver:
    """Resolve (name, email, phone) to a durable member, creating it if absent."""

    def __init__(self, store: MemberStore, placeholder_domain: str = "temp.local") -> None:
        self._store = store
        self._placeholder_domain = placeholder_domain

    def resolve(self, name: str, email: str | None = None, phone: str | None = None) -> Member:
        """Return the member for ``email`` (or the name placeholder).

        Existing records win; only a missing phone is filled in.

        Raises:
            ValidationError: If the name is blank or the email or phone is malformed.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Member name is required", ErrorCode.MISSING_FIELDS)

        if email and email.strip():
            email = email.strip().lower()
            if not EMAIL_RE.match(email):
                raise ValidationError("Invalid email format", ErrorCode.INVALID_EMAIL)
        else:
            email = placeholder_email(name, self._placeholder_domain)

        if phone:
            phone = phone.strip()
            if not PHONE_RE.match(_PHONE_PUNCTUATION.sub("", phone)):
                raise ValidationError("Invalid phone number format", ErrorCode.INVALID_PHONE)
        phone = phone or None

        member = self._store.create_member_if_not_exists(name=name, email=email, phone=phone)
        if phone and not member.phone:
            member = self._store.fill_missing_phone(member.id, phone)
        logger.debug("Resolved member %s for %s", member.id, email)
        return member
