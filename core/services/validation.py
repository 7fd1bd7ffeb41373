"""
Input validation shared by account, reset and records endpoints.

Philippine mobile numbers are accepted as ``09XXXXXXXXX`` or
``+639XXXXXXXXX``; password-reset lookups also tolerate ``639...`` and
bare ``9...`` forms and expand them into every stored variant.
"""
from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass, field
from typing import Optional

from rest_framework.exceptions import ValidationError

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_RE = re.compile(r'^(?:\+639|09)\d{9}$')


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value or ''))


def sanitize_phone_number(value: Optional[str]) -> str:
    if not value:
        return ''
    cleaned = re.sub(r'[^+\d]', '', value)
    if not cleaned:
        return ''
    if cleaned.startswith('+'):
        return '+' + cleaned[1:].replace('+', '')
    return cleaned.replace('+', '')


def validate_and_normalize_contacts(email=None, contact_number=None, emergency_number=None):
    """Return ``(email, contact, emergency)`` normalized, or raise ``ValidationError``."""
    email = (email or '').strip()
    if email and not is_valid_email(email):
        raise ValidationError('Please enter a valid email address.')

    contact = sanitize_phone_number(contact_number) if contact_number else ''
    if contact and not PHONE_RE.match(contact):
        raise ValidationError('Contact number must follow the 09XXXXXXXXX or +639XXXXXXXXX format.')

    emergency = sanitize_phone_number(emergency_number) if emergency_number else ''
    if emergency and not PHONE_RE.match(emergency):
        raise ValidationError(
            'Emergency contact number must follow the 09XXXXXXXXX or +639XXXXXXXXX format.'
        )
    return email, contact, emergency


@dataclass
class ResetContact:
    normalized: str
    channel: str
    variants: list = field(default_factory=list)


def normalize_reset_contact(raw: Optional[str]) -> Optional[ResetContact]:
    raw = (raw or '').strip()
    if not raw:
        return None
    if is_valid_email(raw):
        normalized = raw.lower()
        return ResetContact(normalized, 'EMAIL', [normalized])

    digits = re.sub(r'\D', '', raw)
    base = None
    if len(digits) == 11 and digits.startswith('09'):
        base = digits
    elif len(digits) == 12 and digits.startswith('639'):
        base = '0' + digits[2:]
    elif len(digits) == 10 and digits.startswith('9'):
        base = '0' + digits
    if base is None:
        return None
    return ResetContact(base, 'PHONE', [base, f"+63{base[1:]}", f"63{base[1:]}"])


def format_phone_for_sms(base: str) -> str:
    return f"+63{base[1:]}"


def password_strength(password: Optional[str]) -> tuple[str, int]:
    """Score a password; returns ``(label, value)`` where value is 0..100."""
    trimmed = (password or '').strip()
    if not trimmed:
        return '', 0
    score = 0
    if len(trimmed) >= 8:
        score += 1
    if len(trimmed) >= 12:
        score += 1
    if re.search(r'[a-z]', trimmed) and re.search(r'[A-Z]', trimmed):
        score += 1
    if re.search(r'\d', trimmed):
        score += 1
    if re.search(r'[^A-Za-z0-9]', trimmed):
        score += 1

    if len(trimmed) < 8 or score <= 2:
        return 'Too weak', 25
    if score <= 4:
        return 'Medium', 60
    return 'Strong', 100


def ensure_password_strength(password: Optional[str]) -> None:
    label, _ = password_strength(password)
    if label in ('', 'Too weak'):
        raise ValidationError(
            'Password is too weak. Use at least 8 characters mixing letters, numbers and symbols.'
        )


def generate_random_password(length: int = 12) -> str:
    alphabet = string.ascii_letters + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def generate_numeric_code(length: int = 6) -> str:
    return ''.join(secrets.choice(string.digits) for _ in range(length))
