from __future__ import annotations

from typing import Optional

from core.models import Appointment, User

PHYSICIAN_OPTIONS = [
    {'label': 'Physical examinations', 'value': 'Assessment-physical', 'serviceType': Appointment.SERVICE_ASSESSMENT},
    {'label': 'Consultations', 'value': 'Consultation-general', 'serviceType': Appointment.SERVICE_CONSULTATION},
    {'label': 'Medical certificate issuance', 'value': 'Consultation-cert', 'serviceType': Appointment.SERVICE_CONSULTATION},
]

DENTIST_OPTIONS = [
    {'label': 'Consultations and examinations', 'value': 'Dental-consult', 'serviceType': Appointment.SERVICE_DENTAL},
    {'label': 'Oral prophylaxis', 'value': 'Dental-cleaning', 'serviceType': Appointment.SERVICE_DENTAL},
    {'label': 'Tooth extractions', 'value': 'Dental-extraction', 'serviceType': Appointment.SERVICE_DENTAL},
    {'label': 'Dental certificate issuance', 'value': 'Dental-cert', 'serviceType': Appointment.SERVICE_DENTAL},
]

ALL_OPTIONS = PHYSICIAN_OPTIONS + DENTIST_OPTIONS


def options_for_specialization(specialization: Optional[str]) -> list[dict]:
    if specialization == User.PHYSICIAN:
        return PHYSICIAN_OPTIONS
    if specialization == User.DENTIST:
        return DENTIST_OPTIONS
    return []


def resolve_service_type(value: Optional[str]) -> Optional[str]:
    value = value or ''
    for opt in ALL_OPTIONS:
        if opt['value'] == value:
            return opt['serviceType']
    for prefix in (Appointment.SERVICE_CONSULTATION, Appointment.SERVICE_DENTAL, Appointment.SERVICE_ASSESSMENT):
        if value.startswith(prefix):
            return prefix
    if value.strip():
        return Appointment.SERVICE_OTHER
    return None


def service_label(value: Optional[str]) -> Optional[str]:
    for opt in ALL_OPTIONS:
        if opt['value'] == value:
            return opt['label']
    return None


def specialization_for_service(service_type: Optional[str]) -> Optional[str]:
    """Dental work goes to dentists, everything else to physicians."""
    if not service_type:
        return None
    resolved = resolve_service_type(service_type)
    if resolved == Appointment.SERVICE_DENTAL:
        return User.DENTIST
    return User.PHYSICIAN
