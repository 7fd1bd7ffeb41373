from datetime import date, datetime

import pytest
from django.urls import reverse

from core.models import Consultation
from core.services import reports, timeutils

from .factories import client_for, make_appointment

pytestmark = pytest.mark.django_db


@pytest.fixture
def visits(doctor, clinic, student, employee_patient):
    """Four consultations in 2025: three in Q1 (two patients), one in Q3."""
    rows = [
        (student, date(2025, 1, 15), 'acute pharyngitis'),
        (student, date(2025, 3, 31), 'Acute  Pharyngitis '),
        (employee_patient, date(2025, 2, 3), 'migraine'),
        (employee_patient, date(2025, 8, 20), ''),
    ]
    for i, (patient, day, diagnosis) in enumerate(rows):
        appt = make_appointment(patient, doctor, clinic, day, f'{9 + i:02d}:00', f'{9 + i:02d}:15')
        Consultation.objects.create(appointment=appt, doctor=doctor, diagnosis=diagnosis)


def test_quarter_range():
    assert reports.quarter_range(2025, 1) == (date(2025, 1, 1), date(2025, 3, 31))
    assert reports.quarter_range(2024, 1)[1] == date(2024, 3, 31)
    assert reports.quarter_range(2025, 4) == (date(2025, 10, 1), date(2025, 12, 31))


@pytest.mark.parametrize('year, quarter, expected', [
    ('2025', '2', (2025, 2)),
    ('abc', '5', (None, None)),
    ('', None, (None, None)),
    ('1800', '4', (None, 4)),
])
def test_parse_report_params(year, quarter, expected):
    assert reports.parse_report_params(year, quarter) == expected


def test_normalize_diagnosis():
    assert reports.normalize_diagnosis('  ACUTE   pharyngitis ') == 'Acute Pharyngitis'
    assert reports.normalize_diagnosis(None) == 'Unspecified'


def test_build_quarterly_report(visits):
    now = datetime(2026, 5, 1, 9, 0, tzinfo=timeutils.MANILA)
    report = reports.build_quarterly_report(2025, now=now)

    q1, q2, q3, q4 = report['quarters']
    assert q1['consultations'] == 3
    assert q1['uniquePatients'] == 2
    assert q1['patientTypes'] == {'Student': 2, 'Employee': 1, 'Unknown': 0}
    assert q1['diagnoses'][0] == {'diagnosis': 'Acute Pharyngitis', 'count': 2}
    assert q2['consultations'] == 0
    assert q3['diagnoses'] == [{'diagnosis': 'Unspecified', 'count': 1}]
    assert q4['start'] == '2025-10-01' and q4['end'] == '2025-12-31'

    assert report['totals']['consultations'] == 4
    assert report['totals']['uniquePatients'] == 2
    assert report['totals']['patientTypes']['Employee'] == 2
    # a past year defaults to its last quarter
    assert report['selectedQuarter'] == 4
    assert report['topDiagnoses'][0]['diagnosis'] == 'Acute Pharyngitis'


def test_selected_quarter_defaults(visits):
    now = datetime(2025, 8, 1, 9, 0, tzinfo=timeutils.MANILA)
    assert reports.build_quarterly_report(2025, now=now)['selectedQuarter'] == 3
    report = reports.build_quarterly_report(2025, 1, now=now)
    assert report['selectedQuarter'] == 1
    assert report['selected']['consultations'] == 3


def test_report_is_cached(visits, doctor, clinic, student):
    first = reports.generate_quarterly_report('2025', '1')
    assert first['totals']['consultations'] == 4

    appt = make_appointment(student, doctor, clinic, date(2025, 1, 20), '15:00', '15:15')
    Consultation.objects.create(appointment=appt, doctor=doctor, diagnosis='Flu')
    assert reports.generate_quarterly_report('2025', '1')['totals']['consultations'] == 4


def test_nurse_report_endpoints(visits, nurse):
    client = client_for(nurse)
    r = client.get(reverse('nurse_reports'), {'year': 2025, 'quarter': 1})
    assert r.status_code == 200
    assert r.data['report']['selected']['consultations'] == 3

    pdf = client.get(reverse('nurse_reports_export'), {'year': 2025, 'quarter': 3})
    assert pdf.status_code == 200
    assert pdf['Content-Type'] == 'application/pdf'
    assert 'nurse-quarterly-report-2025-q3.pdf' in pdf['Content-Disposition']
    assert pdf.content.startswith(b'%PDF')


def test_reports_are_nurse_only(doctor):
    assert client_for(doctor).get(reverse('nurse_reports')).status_code == 403
