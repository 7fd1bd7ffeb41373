"""
URL mappings for the clinic API.

Endpoints are grouped by portal (``/api/patient``, ``/api/doctor``,
``/api/nurse``, ``/api/scholar``) plus the shared ``/api/auth`` and
``/api/meta`` lookups.  Trailing slashes are omitted throughout.
"""
from django.urls import include, path

from .auth_views import (
    admin_pin_view,
    jwt_logout_view,
    jwt_refresh_view,
    login_view,
    provision_user_view,
    request_reset_view,
    reset_password_view,
)
from .views import account, contact, doctor, health, meta, nurse, patient, scholar

# /api/<role>/account/... ; nurses historically used the plural form
_ACCOUNT_PREFIXES = ['account', 'accounts']

urlpatterns = [
    # django_prometheus.urls serves /metrics
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),

    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout'),
    path('api/auth/admin-pin', admin_pin_view, name='admin_pin'),
    path('api/auth/request-reset', request_reset_view, name='request_reset'),
    path('api/auth/reset-password', reset_password_view, name='reset_password'),
    path('api/users', provision_user_view, name='provision_user'),
    path('api/contact', contact.contact_view, name='contact'),

    # Lookups
    path('api/meta/clinics', meta.clinics, name='meta_clinics'),
    path('api/meta/doctor-availability', meta.doctor_availability, name='meta_doctor_availability'),
    path('api/meta/doctor-availability/bulk', meta.doctor_availability_bulk, name='meta_doctor_availability_bulk'),
    path('api/meta/doctors', meta.doctors, name='meta_doctors'),
    path('api/meta/service-options', meta.service_options, name='meta_service_options'),
    path('api/meta/earliest-booking', meta.earliest_booking, name='meta_earliest_booking'),
    path('api/enums', meta.enums, name='enums'),

    # Patient
    path('api/patient/appointments', patient.appointments, name='patient_appointments'),
    path('api/patient/appointments/<int:appointment_id>', patient.appointment_detail,
         name='patient_appointment_detail'),

    # Doctor
    path('api/doctor/consultation', doctor.duty_hours, name='doctor_duty_hours'),
    path('api/doctor/appointments', doctor.appointment_list, name='doctor_appointments'),
    path('api/doctor/appointments/<int:appointment_id>', doctor.appointment_action,
         name='doctor_appointment_action'),
    path('api/doctor/appointments/<int:appointment_id>/certificate', doctor.appointment_certificate,
         name='doctor_appointment_certificate'),
    path('api/doctor/patient-consultations', doctor.patient_consultations, name='doctor_consultations'),
    path('api/doctor/patient-consultations/certificate', doctor.consultation_certificate,
         name='doctor_consultation_certificate'),
    path('api/doctor/patients', doctor.patient_list, name='doctor_patients'),
    path('api/doctor/patients/<int:user_id>', doctor.patient_detail, name='doctor_patient_detail'),
    path('api/doctor/dispense', doctor.dispense_view, name='doctor_dispense'),

    # Nurse
    path('api/nurse/clinic', nurse.clinic_list, name='nurse_clinics'),
    path('api/nurse/clinic/<int:clinic_id>', nurse.clinic_detail, name='nurse_clinic_detail'),
    path('api/nurse/records', nurse.record_list, name='nurse_records'),
    path('api/nurse/records/<int:profile_id>', nurse.record_detail, name='nurse_record_detail'),
    path('api/nurse/inventory', nurse.inventory_list, name='nurse_inventory'),
    path('api/nurse/inventory/<int:med_id>/replenish', nurse.inventory_replenish, name='nurse_replenish'),
    path('api/nurse/dispense', nurse.dispense_view, name='nurse_dispense'),
    path('api/nurse/consultations', nurse.consultation_notes, name='nurse_consultations'),
    path('api/nurse/reports', nurse.report_view, name='nurse_reports'),
    path('api/nurse/reports/export', nurse.report_export, name='nurse_reports_export'),
    path('api/nurse/accounts', nurse.account_admin, name='nurse_accounts'),

    # Scholar
    path('api/scholar/appointments', scholar.appointment_desk, name='scholar_appointments'),
    path('api/scholar/patients', scholar.patient_search, name='scholar_patients'),
    path('api/scholar/dispense', scholar.dispense_view, name='scholar_dispense'),
]

for _prefix in _ACCOUNT_PREFIXES:
    urlpatterns += [
        path(f'api/<str:role>/{_prefix}/me', account.account_me, name=f'{_prefix}_me'),
        path(f'api/<str:role>/{_prefix}/password', account.account_password, name=f'{_prefix}_password'),
    ]
