"""
Doctor duty hours.

A doctor publishes one duty window per working day of a Manila week
(Monday to Friday, dentists also Saturday).  Windows are never deleted
by time; instead they are archived a day after they end so listings
stay short while history is kept.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from django.db import transaction

from core.exceptions import ClinicError
from core.models import Appointment, DoctorAvailability, User
from core.services.clinics import get_clinic
from core.services.timeutils import (
    build_manila_datetime,
    end_of_manila_day,
    format_hhmm,
    manila_now,
    ranges_overlap,
    start_of_manila_day,
    start_of_manila_week,
)

logger = logging.getLogger(__name__)


def serialize_availability(av: DoctorAvailability) -> dict:
    return {
        'availability_id': av.id,
        'available_date': av.available_date.isoformat(),
        'available_timestart': av.available_timestart.isoformat(),
        'available_timeend': av.available_timeend.isoformat(),
        'start': format_hhmm(av.available_timestart),
        'end': format_hhmm(av.available_timeend),
        'clinic': {'clinic_id': av.clinic_id, 'clinic_name': av.clinic.name},
    }


def archive_expired_duty_hours(**filters) -> int:
    """Archive windows that ended more than 24 hours ago; returns the count."""
    now = manila_now()
    cutoff = now - timedelta(hours=24)
    n = (DoctorAvailability.objects
         .filter(archived_at__isnull=True, available_timeend__lt=cutoff, **filters)
         .update(archived_at=now))
    if n:
        logger.info('archived %s expired duty windows', n)
    return n


def list_duty_hours(doctor: User) -> list[dict]:
    archive_expired_duty_hours(doctor=doctor)
    qs = (DoctorAvailability.objects
          .filter(doctor=doctor, archived_at__isnull=True)
          .select_related('clinic')
          .order_by('available_date', 'available_timestart'))
    return [serialize_availability(a) for a in qs]


def working_days(doctor: User) -> int:
    return 6 if doctor.specialization == User.DENTIST else 5


def create_duty_week(doctor: User, *, clinic_id, timestart, timeend, week_start=None) -> list[DoctorAvailability]:
    """Publish one window per working day of the week holding ``week_start`` (a ``date``)."""
    clinic = get_clinic(clinic_id)
    monday = start_of_manila_week(week_start or manila_now()).date()

    days = []
    for i in range(working_days(doctor)):
        day = monday + timedelta(days=i)
        start = build_manila_datetime(day, timestart)
        end = build_manila_datetime(day, timeend)
        days.append((day, start, end))
    if any(end <= start for _, start, end in days):
        raise ClinicError('End time must be after start time', 400)

    first = days[0][0]
    with transaction.atomic():
        # concurrent publishes by the same doctor queue on this row
        User.objects.select_for_update().filter(pk=doctor.pk).first()
        _check_week_conflicts(doctor, days)
        created = [
            DoctorAvailability.objects.create(
                doctor=doctor, clinic=clinic, available_date=day,
                available_timestart=start, available_timeend=end,
            )
            for day, start, end in days
        ]
    logger.info('doctor %s published %s duty windows from %s', doctor.id, len(created), first)
    return created


def _check_week_conflicts(doctor: User, days) -> None:
    first, last = days[0][0], days[-1][0]
    existing = list(DoctorAvailability.objects.filter(
        doctor=doctor, available_date__gte=first, available_date__lte=last,
    ))
    appointments = list(Appointment.objects.filter(
        doctor=doctor,
        appointment_timestart__gte=start_of_manila_day(first),
        appointment_timestart__lte=end_of_manila_day(last),
        status__in=Appointment.ACTIVE_STATUSES,
    ))
    conflicts = []
    for day, start, end in days:
        clash = any(ranges_overlap(start, end, a.available_timestart, a.available_timeend) for a in existing) \
            or any(ranges_overlap(start, end, ap.appointment_timestart, ap.appointment_timeend) for ap in appointments)
        if clash:
            conflicts.append(day.isoformat())
    if conflicts:
        raise ClinicError(f"Duty hours conflict with existing schedules on: {', '.join(conflicts)}", 409)


def _own_window(doctor: User, availability_id) -> DoctorAvailability:
    if not availability_id:
        raise ClinicError('Missing availability ID', 400)
    av = DoctorAvailability.objects.select_related('clinic').filter(pk=availability_id, doctor=doctor).first()
    if av is None:
        raise ClinicError('Availability not found', 404)
    return av


def update_duty_window(doctor: User, availability_id, *, clinic_id=None, available_date=None,
                       timestart=None, timeend=None) -> DoctorAvailability:
    av = _own_window(doctor, availability_id)
    day = av.available_date
    if available_date:
        day = available_date

    def _rebuild(value, current):
        if value:
            dt = build_manila_datetime(day, value)
            if dt is None:
                raise ClinicError('Times must be in HH:MM format', 400)
            return dt
        # keep the time of day when only the date moves
        return build_manila_datetime(day, format_hhmm(current))

    new_start = _rebuild(timestart, av.available_timestart)
    new_end = _rebuild(timeend, av.available_timeend)
    if new_end <= new_start:
        raise ClinicError('End time must be after start time', 400)

    others = DoctorAvailability.objects.filter(doctor=doctor, available_date=day).exclude(pk=av.pk)
    if any(ranges_overlap(new_start, new_end, o.available_timestart, o.available_timeend) for o in others):
        raise ClinicError('Updated schedule overlaps with an existing duty hour', 409)

    if clinic_id:
        av.clinic = get_clinic(clinic_id)
    av.available_date = day
    av.available_timestart = new_start
    av.available_timeend = new_end
    av.save()
    return av


def delete_duty_window(doctor: User, availability_id) -> None:
    av = _own_window(doctor, availability_id)
    busy = Appointment.objects.filter(
        doctor=doctor,
        status__in=Appointment.ACTIVE_STATUSES,
        appointment_timestart__lt=av.available_timeend,
        appointment_timeend__gt=av.available_timestart,
    ).exists()
    if busy:
        raise ClinicError('Cannot remove duty hours with active appointments', 409)
    av.delete()
    logger.info('doctor %s removed duty window %s', doctor.id, availability_id)
