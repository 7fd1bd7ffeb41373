"""
Quarterly consultation report for the nurse dashboard.

Consultations are bucketed by the Manila calendar quarter of their
appointment date.  Reports are cached per (year, quarter) for
``REPORT_CACHE_SECONDS``.
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from typing import Optional

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ObjectDoesNotExist

from core.models import Consultation
from core.services import timeutils

logger = logging.getLogger(__name__)

QUARTERS = (1, 2, 3, 4)
PATIENT_TYPES = ('Student', 'Employee', 'Unknown')
TOP_DIAGNOSES = 10


def normalize_diagnosis(value: Optional[str]) -> str:
    cleaned = (value or '').strip()
    if not cleaned:
        return 'Unspecified'
    return ' '.join(w[:1].upper() + w[1:] for w in cleaned.lower().split())


def quarter_range(year: int, quarter: int) -> tuple[date, date]:
    """First and last day of the quarter."""
    start = date(year, (quarter - 1) * 3 + 1, 1)
    end = date(year + 1, 1, 1) if quarter == 4 else date(year, quarter * 3 + 1, 1)
    return start, date.fromordinal(end.toordinal() - 1)


def parse_report_params(year, quarter) -> tuple[Optional[int], Optional[int]]:
    """Lenient parsing; anything unusable is dropped."""
    try:
        y = int(year) if year not in (None, '') else None
    except (TypeError, ValueError):
        y = None
    if y is not None and not 1900 <= y <= 9999:
        y = None
    try:
        q = int(quarter) if quarter not in (None, '') else None
    except (TypeError, ValueError):
        q = None
    if q not in QUARTERS:
        q = None
    return y, q


def _sorted_counts(counter: Counter, limit: Optional[int] = None) -> list[dict]:
    rows = sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))
    if limit is not None:
        rows = rows[:limit]
    return [{'diagnosis': d, 'count': n} for d, n in rows]


def _patient_type(patient) -> str:
    if patient is None:
        return 'Unknown'
    for attr, label in (('student_profile', 'Student'), ('employee_profile', 'Employee')):
        try:
            getattr(patient, attr)
        except ObjectDoesNotExist:
            continue
        return label
    return 'Unknown'


def build_quarterly_report(year: int, quarter: Optional[int] = None, now=None) -> dict:
    now = now or timeutils.manila_now()
    current_year = now.year
    start, _ = quarter_range(year, 1)
    _, end = quarter_range(year, 4)

    qs = (Consultation.objects
          .filter(appointment__appointment_date__gte=start, appointment__appointment_date__lte=end)
          .select_related('appointment__patient__student_profile', 'appointment__patient__employee_profile'))

    buckets = {q: {'consultations': 0, 'patients': set(), 'types': Counter(), 'diagnoses': Counter()}
               for q in QUARTERS}
    year_patients = set()
    year_diagnoses = Counter()
    for c in qs:
        appt = c.appointment
        q = timeutils.quarter_of(appt.appointment_date)
        b = buckets[q]
        b['consultations'] += 1
        b['patients'].add(appt.patient_id)
        year_patients.add(appt.patient_id)
        b['types'][_patient_type(appt.patient)] += 1
        diagnosis = normalize_diagnosis(c.diagnosis)
        b['diagnoses'][diagnosis] += 1
        year_diagnoses[diagnosis] += 1

    quarters = []
    year_types = Counter()
    for q in QUARTERS:
        b = buckets[q]
        q_start, q_end = quarter_range(year, q)
        year_types.update(b['types'])
        quarters.append({
            'quarter': q,
            'label': f'Q{q}',
            'start': q_start.isoformat(),
            'end': q_end.isoformat(),
            'consultations': b['consultations'],
            'uniquePatients': len(b['patients']),
            'patientTypes': {t: b['types'].get(t, 0) for t in PATIENT_TYPES},
            'diagnoses': _sorted_counts(b['diagnoses']),
        })

    if quarter in QUARTERS:
        selected = quarter
    elif year == current_year:
        selected = timeutils.quarter_of(now)
    else:
        selected = 4

    return {
        'year': year,
        'quarters': quarters,
        'totals': {
            'consultations': sum(q['consultations'] for q in quarters),
            'uniquePatients': len(year_patients),
            'patientTypes': {t: year_types.get(t, 0) for t in PATIENT_TYPES},
        },
        'selectedQuarter': selected,
        'selected': quarters[selected - 1],
        'topDiagnoses': _sorted_counts(year_diagnoses, TOP_DIAGNOSES),
        'generatedAt': timeutils.to_manila(now).isoformat(timespec='seconds'),
    }


def generate_quarterly_report(year=None, quarter=None) -> dict:
    y, q = parse_report_params(year, quarter)
    now = timeutils.manila_now()
    y = y or now.year
    key = f'nurse-report:{y}:{q or 0}'
    report = cache.get(key)
    if report is None:
        report = build_quarterly_report(y, q, now=now)
        cache.set(key, report, settings.REPORT_CACHE_SECONDS)
        logger.debug('quarterly report %s computed', key)
    return report
