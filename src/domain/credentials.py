"""
Credential helpers - email normalization, business-email policy, password hashing.
"""

from dataclasses import dataclass, field

import bcrypt

from .exceptions import ValidationFailed

# Consumer mail providers refused at customer registration.
FREE_EMAIL_PROVIDERS = frozenset(
    {
        "gmail.com",
        "yahoo.com",
        "hotmail.com",
        "outlook.com",
        "aol.com",
        "icloud.com",
        "mail.com",
        "protonmail.com",
        "yandex.com",
        "zoho.com",
        "gmx.com",
        "live.com",
        "msn.com",
        "rediffmail.com",
        "inbox.com",
        "rocketmail.com",
        "me.com",
        "mac.com",
    }
)

# bcrypt only considers the first 72 bytes of a password.
BCRYPT_MAX_PASSWORD_BYTES = 72


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


def email_domain(email: str) -> str:
    """Domain part of the address, or "" when there is no local part or no @."""
    local, sep, domain = normalize_email(email).rpartition("@")
    return domain if sep and local else ""


def is_business_email(email: str) -> bool:
    domain = email_domain(email)
    return bool(domain) and domain not in FREE_EMAIL_PROVIDERS


def ensure_business_email(email: str) -> None:
    """
    Raises:
        ValidationFailed: If the email belongs to a consumer mail provider
    """
    if not is_business_email(email):
        raise ValidationFailed(
            "Only business email addresses are accepted (no Gmail, Yahoo, etc.)"
        )


@dataclass
class PasswordHasher:
    """
    bcrypt hashing with a configurable cost factor.

    verify_dummy() burns the same bcrypt time as a real comparison so
    that callers can hide whether an account exists.
    """

    rounds: int = 10
    _dummy_hash: bytes = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._dummy_hash = bcrypt.hashpw(
            b"dummy_password_for_timing_safety", bcrypt.gensalt(self.rounds)
        )

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.rounds)).decode()

    def verify(self, password: str, password_hash: str) -> bool:
        if not password:
            return False
        encoded = password.encode()
        if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(encoded, password_hash.encode())

    def verify_dummy(self, password: str) -> bool:
        bcrypt.checkpw(password.encode()[:BCRYPT_MAX_PASSWORD_BYTES], self._dummy_hash)
        return False
