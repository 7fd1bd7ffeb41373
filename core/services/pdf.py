"""
PDF rendering with the reportlab canvas.

Documents are drawn top-down on letter pages with a moving ``y``
cursor; a new page is started whenever the cursor drops below the
bottom margin.  Renderers return the finished bytes, ``pdf_response``
wraps them into a download.
"""
from __future__ import annotations

import logging
from io import BytesIO
from typing import Iterable, Optional

from django.http import HttpResponse
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = letter
MARGIN = 54
TOP = PAGE_HEIGHT - MARGIN
BOTTOM = MARGIN
BODY_FONT = 'Helvetica'
BOLD_FONT = 'Helvetica-Bold'


class _Writer:
    """Cursor over a canvas; handles wrapping and page breaks."""

    def __init__(self, title: str):
        self.buffer = BytesIO()
        self.c = canvas.Canvas(self.buffer, pagesize=letter)
        self.c.setTitle(title)
        self.y = TOP
        self.width = PAGE_WIDTH - 2 * MARGIN

    def _ensure(self, needed: float):
        if self.y - needed < BOTTOM:
            self.c.showPage()
            self.y = TOP

    def gap(self, h: float = 8):
        self.y -= h

    def centered(self, text: str, size: int = 12, bold: bool = False, gap: float = 4):
        self._ensure(size + gap)
        self.c.setFont(BOLD_FONT if bold else BODY_FONT, size)
        self.c.drawCentredString(PAGE_WIDTH / 2, self.y - size, text)
        self.y -= size + gap

    def paragraph(self, text: str, size: int = 11, bold: bool = False, indent: float = 0, leading: float = None):
        font = BOLD_FONT if bold else BODY_FONT
        leading = leading or size + 4
        lines = simpleSplit(text or '', font, size, self.width - indent) or ['']
        for line in lines:
            self._ensure(leading)
            self.c.setFont(font, size)
            self.c.drawString(MARGIN + indent, self.y - size, line)
            self.y -= leading

    def field(self, label: str, value, size: int = 11):
        """``Label: value`` with the label in bold and the value wrapped."""
        label_text = f'{label}: '
        label_w = self.c.stringWidth(label_text, BOLD_FONT, size)
        lines = simpleSplit(str(value or '-'), BODY_FONT, size, self.width - label_w) or ['-']
        for i, line in enumerate(lines):
            self._ensure(size + 4)
            if i == 0:
                self.c.setFont(BOLD_FONT, size)
                self.c.drawString(MARGIN, self.y - size, label_text)
            self.c.setFont(BODY_FONT, size)
            self.c.drawString(MARGIN + label_w, self.y - size, line)
            self.y -= size + 4

    def checkbox(self, label: str, checked: bool, x_offset: float = 0, size: int = 10):
        box = size - 1
        self.c.rect(MARGIN + x_offset, self.y - size, box, box, stroke=1, fill=0)
        if checked:
            self.c.setFont(BOLD_FONT, size)
            self.c.drawString(MARGIN + x_offset + 1.5, self.y - size + 1, 'X')
        self.c.setFont(BODY_FONT, size)
        self.c.drawString(MARGIN + x_offset + box + 5, self.y - size + 1, label)

    def checkbox_grid(self, items: Iterable[tuple[str, bool]], columns: int = 2, size: int = 10):
        items = list(items)
        col_w = self.width / columns
        for start in range(0, len(items), columns):
            self._ensure(size + 6)
            for col, (label, checked) in enumerate(items[start:start + columns]):
                self.checkbox(label, checked, x_offset=col * col_w, size=size)
            self.y -= size + 6

    def rule(self):
        self._ensure(6)
        self.c.setLineWidth(0.5)
        self.c.line(MARGIN, self.y - 3, PAGE_WIDTH - MARGIN, self.y - 3)
        self.y -= 8

    def row(self, cells: list, widths: list, size: int = 10, bold: bool = False):
        self._ensure(size + 5)
        self.c.setFont(BOLD_FONT if bold else BODY_FONT, size)
        x = MARGIN
        for cell, w in zip(cells, widths):
            text = str(cell)
            while text and self.c.stringWidth(text, BOLD_FONT if bold else BODY_FONT, size) > w - 4:
                text = text[:-1]
            self.c.drawString(x, self.y - size, text)
            x += w
        self.y -= size + 5

    def finish(self) -> bytes:
        self.c.showPage()
        self.c.save()
        return self.buffer.getvalue()


def render_certificate(doc: dict) -> bytes:
    """Draw a medical or dental certificate.

    ``doc`` keys: ``institution``, ``address``, ``title``,
    ``certificate_id``, ``issue_date``, ``valid_until`` (optional),
    ``paragraphs``, ``patient`` (list of label/value pairs),
    ``history`` (label/checked pairs, optional), ``remaining``,
    ``allergies``, ``impression``, ``recommendation``, ``notes``
    (label/text pairs), ``footer`` and ``doctor`` (name/title/license).
    """
    w = _Writer(doc['title'])
    w.centered(doc['institution'], size=15, bold=True)
    if doc.get('address'):
        w.centered(doc['address'], size=10)
    if doc.get('clinic'):
        w.centered(doc['clinic'], size=10)
    w.gap(6)
    w.rule()
    w.centered(doc['title'].upper(), size=16, bold=True, gap=8)
    w.field('Certificate No.', doc['certificate_id'])
    w.field('Date Issued', doc['issue_date'])
    if doc.get('valid_until'):
        w.field('Valid Until', doc['valid_until'])
    w.gap()

    for para in doc.get('paragraphs') or []:
        w.paragraph(para)
        w.gap(4)

    w.paragraph('Patient Information', size=12, bold=True)
    for label, value in doc.get('patient') or []:
        w.field(label, value)
    w.gap()

    if doc.get('history'):
        w.paragraph('Medical History', size=12, bold=True)
        w.checkbox_grid(doc['history'])
        if doc.get('remaining'):
            w.field('Other Conditions', ', '.join(doc['remaining']))
        w.field('Allergies', doc.get('allergies') or 'None recorded')
        w.gap()

    if doc.get('impression') is not None or doc.get('recommendation') is not None:
        w.field('Impression', doc.get('impression'))
        w.field('Recommendation', doc.get('recommendation'))
        w.gap()

    notes = [(label, text) for label, text in doc.get('notes') or [] if text]
    if notes:
        w.paragraph('Clinical Notes', size=12, bold=True)
        for label, text in notes:
            w.field(label, text)
        w.gap()

    if doc.get('footer'):
        w.paragraph(doc['footer'], size=10)
    w.gap(36)

    doctor = doc.get('doctor') or {}
    w.paragraph('_' * 36)
    w.paragraph(doctor.get('name') or '', bold=True)
    w.paragraph(doctor.get('title') or '', size=10)
    if doctor.get('license'):
        w.paragraph(f"License No.: {doctor['license']}", size=10)
    return w.finish()


def render_quarterly_report(report: dict, *, institution: str) -> bytes:
    """Draw the nurse quarterly consultation report."""
    year = report['year']
    selected = report['selectedQuarter']
    quarter = next(q for q in report['quarters'] if q['quarter'] == selected)

    w = _Writer(f'Quarterly Report {year} Q{selected}')
    w.centered(institution, size=15, bold=True)
    w.centered(f'Quarterly Consultation Report: {year} Q{selected}', size=13, bold=True, gap=8)
    w.field('Period', f"{quarter['start']} to {quarter['end']}")
    w.field('Generated', report['generatedAt'])
    w.rule()

    w.paragraph(f'Quarter {selected}', size=12, bold=True)
    w.field('Consultations', quarter['consultations'])
    w.field('Unique patients', quarter['uniquePatients'])
    types = quarter['patientTypes']
    w.field('Students', types.get('Student', 0))
    w.field('Employees', types.get('Employee', 0))
    w.field('Unknown', types.get('Unknown', 0))
    w.gap()
    _diagnosis_table(w, quarter['diagnoses'], 'Diagnoses this quarter')

    w.rule()
    w.paragraph('Quarter summary', size=12, bold=True)
    widths = [80, 120, 120, 100, 100]
    w.row(['Quarter', 'Consultations', 'Unique patients', 'Students', 'Employees'], widths, bold=True)
    for q in report['quarters']:
        w.row([f"Q{q['quarter']}", q['consultations'], q['uniquePatients'],
               q['patientTypes'].get('Student', 0), q['patientTypes'].get('Employee', 0)], widths)
    totals = report['totals']
    w.row(['Year', totals['consultations'], totals['uniquePatients'],
           totals['patientTypes'].get('Student', 0), totals['patientTypes'].get('Employee', 0)], widths, bold=True)
    w.gap()
    _diagnosis_table(w, report['topDiagnoses'], f'Top diagnoses {year}')
    return w.finish()


def _diagnosis_table(w: _Writer, rows: list, heading: str):
    w.paragraph(heading, size=11, bold=True)
    if not rows:
        w.paragraph('No consultations recorded.', size=10)
        return
    widths = [380, 100]
    w.row(['Diagnosis', 'Count'], widths, bold=True)
    for row in rows:
        w.row([row['diagnosis'], row['count']], widths)
    w.gap(4)


def pdf_response(content: bytes, filename: str, headers: Optional[dict] = None) -> HttpResponse:
    resp = HttpResponse(content, content_type='application/pdf')
    resp['Content-Disposition'] = f'attachment; filename="{filename}"'
    resp['Cache-Control'] = 'no-store'
    for k, v in (headers or {}).items():
        resp[k] = str(v)
    logger.debug('pdf response %s (%s bytes)', filename, len(content))
    return resp
