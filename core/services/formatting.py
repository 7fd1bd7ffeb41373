"""Display helpers for names, enum labels and free-text condition lists."""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional

import bleach
from django.utils.text import slugify as django_slugify

from core.models import PersonProfile, StudentProfile

BLOOD_TYPE_LABELS = dict(PersonProfile.BLOOD_TYPE_CHOICES)
DEPARTMENT_LABELS = dict(StudentProfile.DEPARTMENT_CHOICES)
YEAR_LEVEL_LABELS = dict(StudentProfile.YEAR_LEVEL_CHOICES)

_ENUM_RE = re.compile(r'^[A-Z0-9_]+$')


def full_name(user) -> str:
    """Student profile name first, then employee profile, then username."""
    if user is None:
        return ''
    prof = user.profile
    if prof is not None:
        name = prof.full_name
        if name:
            return name
    return user.username


def humanize_enum(value: Optional[str]) -> str:
    if not value:
        return ''
    if not _ENUM_RE.match(value):
        return value
    words = []
    for word in value.split('_'):
        if len(word) <= 3 and word.isupper() and not word.isalpha():
            words.append(word)
        else:
            words.append(word.capitalize())
    return ' '.join(words)


def format_blood_type(value: Optional[str]) -> str:
    if not value:
        return ''
    return BLOOD_TYPE_LABELS.get(value, value)


def format_department(value: Optional[str]) -> str:
    if not value:
        return ''
    return DEPARTMENT_LABELS.get(value) or humanize_enum(value)


def format_year_level(value: Optional[str]) -> str:
    if not value:
        return ''
    return YEAR_LEVEL_LABELS.get(value) or humanize_enum(value)


def title_case(value: Optional[str]) -> str:
    if not value:
        return ''
    return ' '.join(w[:1].upper() + w[1:] for w in value.lower().split())


def slugify(value: Optional[str]) -> str:
    return django_slugify(value or '')[:80].strip('-') or 'certificate'


def clean_text(value) -> Optional[str]:
    """Strip every tag from user-supplied text; ``None`` stays ``None``."""
    if value is None:
        return None
    return bleach.clean(str(value), tags=[], attributes={}, strip=True).strip()


def compute_age(dob: Optional[date], at) -> Optional[int]:
    if dob is None:
        return None
    if isinstance(at, datetime):
        at = at.date()
    age = at.year - dob.year
    if (at.month, at.day) < (dob.month, dob.day):
        age -= 1
    return age if age > 0 else None


def split_conditions(text: Optional[str]) -> list[str]:
    if not text:
        return []
    return [part.strip() for part in re.split(r'[,;\n]', text) if part.strip()]


def match_choice(value, choices) -> Optional[str]:
    """Accept either an enum key or its friendly label; ``None`` if neither."""
    if value in (None, ''):
        return None
    s = str(value).strip()
    for key, label in choices:
        if s == key or s.lower() == label.lower():
            return key
    return None
