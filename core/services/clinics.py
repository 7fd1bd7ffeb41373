from __future__ import annotations

from django.db import IntegrityError, transaction

from core.exceptions import ClinicError
from core.models import Clinic


def serialize_clinic(clinic: Clinic) -> dict:
    return {
        'clinic_id': clinic.id,
        'clinic_name': clinic.name,
        'clinic_location': clinic.location,
        'clinic_contactno': clinic.contactno,
    }


def list_clinics() -> list[dict]:
    return [serialize_clinic(c) for c in Clinic.objects.order_by('name')]


def get_clinic(clinic_id) -> Clinic:
    clinic = Clinic.objects.filter(pk=clinic_id).first()
    if clinic is None:
        raise ClinicError('Clinic not found', 404)
    return clinic


def create_clinic(*, name, location, contactno) -> Clinic:
    if not name or not location or not contactno:
        raise ClinicError('All fields are required', 400)
    try:
        with transaction.atomic():
            return Clinic.objects.create(name=name.strip(), location=location.strip(), contactno=contactno.strip())
    except IntegrityError:
        raise ClinicError('A clinic with this name already exists', 409)


def update_clinic(clinic_id, *, name=None, location=None, contactno=None) -> Clinic:
    clinic = get_clinic(clinic_id)
    if name:
        clinic.name = name.strip()
    if location:
        clinic.location = location.strip()
    if contactno:
        clinic.contactno = contactno.strip()
    try:
        with transaction.atomic():
            clinic.save()
    except IntegrityError:
        raise ClinicError('A clinic with this name already exists', 409)
    return clinic
