"""
Bookable slot computation and the booking-related lookups behind
``/api/meta/*``.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Optional

from django.conf import settings

from core.models import Appointment, DoctorAvailability, User
from core.services.formatting import full_name
from core.services.service_options import specialization_for_service
from core.services.timeutils import format_hhmm, manila_now, ranges_overlap, start_of_manila_day


def compute_slots(windows: Iterable[DoctorAvailability], busy: Iterable[Appointment],
                  minutes: Optional[int] = None) -> list[dict]:
    """Split duty windows into fixed slots, dropping the ones a booking overlaps."""
    step = timedelta(minutes=minutes or settings.CLINIC_SLOT_MINUTES)
    busy = [(a.appointment_timestart, a.appointment_timeend) for a in busy]
    slots = []
    for w in windows:
        cursor = w.available_timestart
        while cursor < w.available_timeend:
            nxt = cursor + step
            if nxt <= w.available_timeend:
                if not any(ranges_overlap(cursor, nxt, s, e) for s, e in busy):
                    slots.append({'start': format_hhmm(cursor), 'end': format_hhmm(nxt)})
            cursor = nxt
    return slots


def _windows(clinic_id, doctor_ids, day):
    return (DoctorAvailability.objects
            .filter(clinic_id=clinic_id, doctor_id__in=doctor_ids, available_date=day)
            .order_by('available_timestart'))


def _blocking(doctor_ids, day):
    return Appointment.objects.filter(
        doctor_id__in=doctor_ids,
        appointment_date=day,
        status__in=Appointment.BLOCKING_STATUSES,
    )


def slots_for_doctor(clinic_id, doctor_id, day) -> list[dict]:
    windows = list(_windows(clinic_id, [doctor_id], day))
    if not windows:
        return []
    return compute_slots(windows, _blocking([doctor_id], day))


def slots_for_doctors(clinic_id, doctor_ids: list, day) -> dict:
    by_doctor = defaultdict(list)
    for w in _windows(clinic_id, doctor_ids, day):
        by_doctor[w.doctor_id].append(w)
    busy = defaultdict(list)
    for a in _blocking(doctor_ids, day):
        busy[a.doctor_id].append(a)
    return {str(d): compute_slots(by_doctor.get(d, []), busy.get(d, [])) for d in doctor_ids}


def doctors_for_clinic(clinic_id, service_type: Optional[str] = None) -> list[dict]:
    doctor_ids = (DoctorAvailability.objects
                  .filter(clinic_id=clinic_id)
                  .values_list('doctor_id', flat=True)
                  .distinct())
    qs = (User.objects
          .filter(id__in=list(doctor_ids), role=User.ROLE_DOCTOR, status=User.STATUS_ACTIVE)
          .select_related('employee_profile', 'student_profile')
          .order_by('username'))
    wanted = specialization_for_service(service_type)
    if wanted:
        qs = qs.filter(specialization=wanted)
    return [
        {'user_id': d.id, 'name': full_name(d), 'specialization': d.specialization}
        for d in qs
    ]


def earliest_booking_start(specialization: Optional[str], now: Optional[datetime] = None,
                           lead_days: Optional[int] = None) -> datetime:
    """First Manila day start a patient may book, honouring the lead time.

    Sundays are never bookable; Saturdays only for dentists.
    """
    now = now or manila_now()
    lead = settings.CLINIC_MIN_BOOKING_LEAD_DAYS if lead_days is None else lead_days
    cursor = now + timedelta(days=lead)
    for _ in range(31):
        day = start_of_manila_day(cursor)
        weekday = day.weekday()
        skip = weekday == 6 or (weekday == 5 and specialization != User.DENTIST)
        if not skip:
            return day
        cursor = cursor + timedelta(days=1)
    return start_of_manila_day(cursor)
