import re
from decimal import Decimal

from rest_framework import serializers

from core.models import Medicine, PersonProfile
from core.services.formatting import clean_text
from core.services.timeutils import manila_today

HHMM_RE = r'^(?:[01]\d|2[0-3]):[0-5]\d$'
ISO_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')

ID_ERRORS = ('required', 'null', 'invalid', 'min_value', 'max_string_length')


def _errors(message, *keys):
    return dict.fromkeys(keys or ID_ERRORS, message)


class IsoDateField(serializers.DateField):
    """``YYYY-MM-DD`` only; the ISO parser alone also takes ``2026-2-3``."""

    def to_internal_value(self, value):
        if not isinstance(value, str) or not ISO_DATE_RE.match(value.strip()):
            self.fail('invalid', format='YYYY-MM-DD')
        return super().to_internal_value(value.strip())


class CleanCharField(serializers.CharField):
    """CharField whose value has every tag stripped before it is stored."""

    def to_internal_value(self, data):
        return clean_text(super().to_internal_value(data))


class EmergencySerializer(serializers.Serializer):
    name = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=150)
    num = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    relation = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=50)


class RecordPatchSerializer(serializers.Serializer):
    """Nurse edit of a patient record; only supplied fields change."""
    type = serializers.ChoiceField(choices=['Student', 'Employee'])
    contactno = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    address = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    bloodtype = serializers.ChoiceField(
        choices=[k for k, _ in PersonProfile.BLOOD_TYPE_CHOICES], required=False, allow_null=True,
    )
    allergies = CleanCharField(required=False, allow_blank=True, allow_null=True)
    medical_cond = CleanCharField(required=False, allow_blank=True, allow_null=True)
    emergency = EmergencySerializer(required=False)


class ContactSerializer(serializers.Serializer):
    name = CleanCharField(max_length=120)
    email = serializers.EmailField()
    message = CleanCharField(max_length=5000)

    def validate_name(self, v):
        if not v:
            raise serializers.ValidationError('Name is required')
        # the name ends up in the mail subject
        if '\r' in v or '\n' in v:
            raise serializers.ValidationError('Name must be a single line')
        return v

    def validate_message(self, v):
        if not v:
            raise serializers.ValidationError('Message is required')
        return v


# ---------------------------------------------------------------------
# Booking
# ---------------------------------------------------------------------
MISSING_FIELDS = 'Missing required fields'


class RescheduleSerializer(serializers.Serializer):
    date = IsoDateField(error_messages={
        **_errors(MISSING_FIELDS, 'required', 'null'), 'invalid': 'Invalid date format',
    })
    time_start = serializers.RegexField(HHMM_RE, error_messages={
        **_errors(MISSING_FIELDS, 'required', 'null', 'blank'), 'invalid': 'Invalid time format',
    })
    time_end = serializers.RegexField(HHMM_RE, error_messages={
        **_errors(MISSING_FIELDS, 'required', 'null', 'blank'), 'invalid': 'Invalid time format',
    })
    clinic_id = serializers.IntegerField(min_value=1, required=False, allow_null=True,
                                         error_messages=_errors('clinic_id must be a positive integer'))
    doctor_user_id = serializers.IntegerField(min_value=1, required=False, allow_null=True,
                                              error_messages=_errors('doctor_user_id must be a positive integer'))
    service_type = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)


class BookingSerializer(RescheduleSerializer):
    clinic_id = serializers.IntegerField(min_value=1, error_messages={
        **_errors('clinic_id must be a positive integer'), **_errors(MISSING_FIELDS, 'required', 'null'),
    })
    doctor_user_id = serializers.IntegerField(min_value=1, error_messages={
        **_errors('doctor_user_id must be a positive integer'), **_errors(MISSING_FIELDS, 'required', 'null'),
    })
    service_type = serializers.CharField(max_length=64, error_messages=_errors(MISSING_FIELDS, 'required', 'null', 'blank'))


# ---------------------------------------------------------------------
# Duty hours
# ---------------------------------------------------------------------
DUTY_MISSING = 'All fields are required'
HHMM_ERROR = 'Times must be in HH:MM format'


class DutyWeekSerializer(serializers.Serializer):
    clinic_id = serializers.IntegerField(min_value=1, error_messages={
        **_errors('clinic_id must be a positive integer'), **_errors(DUTY_MISSING, 'required', 'null'),
    })
    available_timestart = serializers.RegexField(HHMM_RE, error_messages={
        **_errors(DUTY_MISSING, 'required', 'null', 'blank'), 'invalid': HHMM_ERROR,
    })
    available_timeend = serializers.RegexField(HHMM_RE, error_messages={
        **_errors(DUTY_MISSING, 'required', 'null', 'blank'), 'invalid': HHMM_ERROR,
    })
    week_start = IsoDateField(required=False, allow_null=True,
                              error_messages={'invalid': 'week_start must be YYYY-MM-DD'})


class DutyWindowRefSerializer(serializers.Serializer):
    availability_id = serializers.IntegerField(min_value=1, error_messages={
        **_errors('availability_id must be a positive integer'), **_errors('Missing availability ID', 'required', 'null'),
    })


class DutyWindowUpdateSerializer(DutyWindowRefSerializer):
    clinic_id = serializers.IntegerField(min_value=1, required=False, allow_null=True,
                                         error_messages=_errors('clinic_id must be a positive integer'))
    available_date = IsoDateField(required=False, allow_null=True,
                                  error_messages={'invalid': 'available_date must be YYYY-MM-DD'})
    available_timestart = serializers.RegexField(HHMM_RE, required=False, allow_blank=True, allow_null=True,
                                                 error_messages={'invalid': HHMM_ERROR})
    available_timeend = serializers.RegexField(HHMM_RE, required=False, allow_blank=True, allow_null=True,
                                               error_messages={'invalid': HHMM_ERROR})


# ---------------------------------------------------------------------
# Consultations and certificates
# ---------------------------------------------------------------------
class ConsultationNotesSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField(min_value=1, error_messages=_errors('Valid appointment_id is required'))
    reason_of_visit = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    findings = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    diagnosis = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class DoctorNotesSerializer(ConsultationNotesSerializer):
    appointment_id = serializers.IntegerField(min_value=1, error_messages=_errors('appointment_id is required'))
    nurse_user_id = serializers.IntegerField(min_value=1, required=False, allow_null=True,
                                             error_messages=_errors('nurse_user_id must reference a nurse'))


class AppointmentRefSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField(min_value=1, error_messages=_errors('appointment_id is required'))


# ---------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------
QUANTITY_ERROR = 'quantity must be a positive integer'
STOCK_MISSING = 'clinic_id and item_name are required'


class StockBatchSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, error_messages=_errors(QUANTITY_ERROR))
    expiry = IsoDateField(error_messages=_errors('expiry must be a YYYY-MM-DD date', 'required', 'null', 'invalid'))

    def validate_expiry(self, value):
        if value <= manila_today():
            raise serializers.ValidationError('expiry must be a future date')
        return value


class StockSerializer(StockBatchSerializer):
    clinic_id = serializers.IntegerField(min_value=1, error_messages={
        **_errors('clinic_id must be a positive integer'), **_errors(STOCK_MISSING, 'required', 'null'),
    })
    item_name = serializers.CharField(max_length=150, error_messages=_errors(STOCK_MISSING, 'required', 'null', 'blank'))
    item_type = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    category = serializers.ChoiceField(choices=Medicine.CATEGORY_CHOICES, required=False, allow_blank=True,
                                       allow_null=True, error_messages={'invalid_choice': 'Invalid category'})
    unit = serializers.ChoiceField(choices=Medicine.UNIT_CHOICES, required=False, allow_blank=True,
                                   allow_null=True, error_messages={'invalid_choice': 'Invalid unit'})
    strength = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.01'), required=False, allow_null=True,
        error_messages={
            'invalid': 'strength must be a number',
            'min_value': 'strength must be positive',
            'max_digits': 'strength is too large',
            'max_whole_digits': 'strength is too large',
            'max_decimal_places': 'strength allows at most 2 decimal places',
        },
    )

    def to_internal_value(self, data):
        # forms send an empty strength for unmeasured items
        if hasattr(data, 'get') and data.get('strength') == '':
            data = data.copy()
            data['strength'] = None
        return super().to_internal_value(data)


class InventoryQuerySerializer(serializers.Serializer):
    clinic_id = serializers.IntegerField(min_value=1, required=False,
                                         error_messages=_errors('clinic_id must be a positive integer'))


# ---------------------------------------------------------------------
# Dispensing, desk and clinics
# ---------------------------------------------------------------------
class DispenseSerializer(serializers.Serializer):
    med_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField()
    consultation_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    walkInName = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=150)
    walkInContact = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    walkInNotes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)

    def walk_in(self) -> dict:
        vd = self.validated_data
        return {'name': vd.get('walkInName'), 'contact': vd.get('walkInContact'), 'notes': vd.get('walkInNotes')}


class DeskAppointmentSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField(min_value=1)
    status = serializers.CharField(required=False, allow_null=True)
    remarks = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)


class DoctorActionSerializer(serializers.Serializer):
    action = serializers.CharField()


class ClinicSerializer(serializers.Serializer):
    clinic_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    clinic_location = serializers.CharField(required=False, allow_blank=True, max_length=255)
    clinic_contactno = serializers.CharField(required=False, allow_blank=True, max_length=32)
