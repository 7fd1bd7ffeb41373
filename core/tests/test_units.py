from datetime import date, datetime, timezone

import pytest
from rest_framework.exceptions import ValidationError

from core.services import formatting, timeutils, validation
from core.services.service_options import resolve_service_type, specialization_for_service


def test_parse_iso_date_is_strict():
    assert timeutils.parse_iso_date('2026-02-28') == date(2026, 2, 28)
    assert timeutils.parse_iso_date('2026-02-30') is None
    assert timeutils.parse_iso_date('2026-2-3') is None
    assert timeutils.parse_iso_date(None) is None


def test_parse_hhmm():
    assert timeutils.parse_hhmm('07:05').minute == 5
    assert timeutils.parse_hhmm('24:00') is None
    assert timeutils.parse_hhmm('7:05') is None


def test_manila_day_boundaries():
    # 17:30 UTC is already the next day in Manila
    utc = datetime(2026, 3, 31, 17, 30, tzinfo=timezone.utc)
    assert timeutils.to_manila_date_string(utc) == '2026-04-01'
    assert timeutils.quarter_of(utc) == 2
    assert timeutils.format_hhmm(utc) == '01:30'
    assert timeutils.format_time_12h(utc) == '1:30 AM'


def test_ranges_overlap_is_half_open():
    a = timeutils.build_manila_datetime(date(2026, 5, 4), '09:00')
    b = timeutils.build_manila_datetime(date(2026, 5, 4), '09:15')
    c = timeutils.build_manila_datetime(date(2026, 5, 4), '09:30')
    assert not timeutils.ranges_overlap(a, b, b, c)
    assert timeutils.ranges_overlap(a, c, b, c)


def test_start_of_manila_week():
    thursday = timeutils.build_manila_datetime(date(2026, 10, 22), '15:00')
    assert timeutils.start_of_manila_week(thursday).date() == date(2026, 10, 19)


def test_format_date_long():
    assert timeutils.format_date_long(date(2026, 10, 9)) == 'October 9, 2026'


@pytest.mark.parametrize('raw, channel, normalized', [
    ('Nurse@Clinic.edu', 'EMAIL', 'nurse@clinic.edu'),
    ('0917-123-4567', 'PHONE', '09171234567'),
    ('+639171234567', 'PHONE', '09171234567'),
    ('9171234567', 'PHONE', '09171234567'),
])
def test_normalize_reset_contact(raw, channel, normalized):
    contact = validation.normalize_reset_contact(raw)
    assert contact.channel == channel
    assert contact.normalized == normalized
    if channel == 'PHONE':
        assert '+639171234567' in contact.variants


def test_normalize_reset_contact_rejects_garbage():
    assert validation.normalize_reset_contact('12345') is None
    assert validation.normalize_reset_contact('') is None


def test_contacts_validation():
    assert validation.validate_and_normalize_contacts('a@b.co', '0917 123 4567', None) == ('a@b.co', '09171234567', '')
    with pytest.raises(ValidationError):
        validation.validate_and_normalize_contacts('not-an-email')
    with pytest.raises(ValidationError):
        validation.validate_and_normalize_contacts(None, None, '0812')


def test_password_strength():
    assert validation.password_strength('')[0] == ''
    assert validation.password_strength('password')[0] == 'Too weak'
    assert validation.password_strength('Password12')[0] == 'Medium'
    assert validation.password_strength('Str0ng#Password')[0] == 'Strong'
    with pytest.raises(ValidationError):
        validation.ensure_password_strength('abc12345')


def test_generated_secrets():
    assert len(validation.generate_random_password()) == 12
    code = validation.generate_numeric_code()
    assert len(code) == 6 and code.isdigit()


def test_formatting_helpers():
    assert formatting.title_case('juan DELA cruz') == 'Juan Dela Cruz'
    assert formatting.slugify('Medical Certificate') == 'medical-certificate'
    assert formatting.slugify('***') == 'certificate'
    assert formatting.slugify(None) == 'certificate'
    assert formatting.slugify('Peña, José Médical') == 'pena-jose-medical'
    long_slug = formatting.slugify('ab ' * 60)
    assert len(long_slug) <= 80 and not long_slug.endswith('-')
    assert formatting.split_conditions('Asthma; diabetes,\nheart disease') == ['Asthma', 'diabetes', 'heart disease']
    assert formatting.compute_age(date(2004, 10, 20), date(2026, 10, 19)) == 21
    assert formatting.compute_age(None, date(2026, 1, 1)) is None


def test_clean_text_strips_every_tag():
    assert formatting.clean_text('<b>Bold</b> <a href="http://x">link</a> <i>it</i>') == 'Bold link it'
    assert formatting.clean_text('  plain  ') == 'plain'
    assert formatting.clean_text(None) is None


def test_service_type_resolution():
    assert resolve_service_type('Dental-extraction') == 'Dental'
    assert resolve_service_type('Assessment-physical') == 'Assessment'
    assert resolve_service_type('Vaccination') == 'Other'
    assert resolve_service_type('') is None
    assert specialization_for_service('Dental-consult') == 'Dentist'
    assert specialization_for_service('Consultation-general') == 'Physician'
