"""
First-expiry-first-out dispensing.

A dispense draws from the unexpired batches of a medicine ordered by
expiry date, oldest first, locking the medicine and its batches for the
duration of the transaction.  The per-batch draw is recorded in
``DispenseBatch`` so a dispense can always be traced back to the stock
it consumed.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.db.models import Prefetch

from core.exceptions import DispenseError
from core.models import Consultation, Dispense, DispenseBatch, Medicine, Replenishment, User
from core.services.audit import log_action
from core.services.formatting import clean_text, full_name
from core.services.timeutils import manila_today

logger = logging.getLogger(__name__)


def record_dispense(*, med_id, quantity, dispensed_by: User, consultation_id=None,
                    walk_in: Optional[dict] = None, consultation_guard=None) -> Dispense:
    """Deduct ``quantity`` units FEFO and record the dispense.

    ``consultation_guard`` is called with the resolved consultation and
    may raise to veto the dispense (used to keep doctors to their own
    patients).
    """
    try:
        qty = int(quantity)
    except (TypeError, ValueError):
        raise DispenseError('Quantity must be a positive integer', 400)
    if qty <= 0 or isinstance(quantity, bool):
        raise DispenseError('Quantity must be a positive integer', 400)

    walk_in = walk_in or {}
    today = manila_today()
    with transaction.atomic():
        med = Medicine.objects.select_for_update().filter(pk=med_id).first()
        if med is None:
            raise DispenseError('Medicine not found', 404)

        consultation = None
        if consultation_id:
            consultation = Consultation.objects.filter(pk=consultation_id).first()
            if consultation is None:
                raise DispenseError('Consultation not found', 404)
            if consultation_guard is not None:
                consultation_guard(consultation)

        batches = list(Replenishment.objects
                       .select_for_update()
                       .filter(medicine=med, remaining_qty__gt=0, expiry_date__gte=today)
                       .order_by('expiry_date', 'id'))
        if not batches:
            raise DispenseError('No unexpired stock available', 400)
        if sum(b.remaining_qty for b in batches) < qty:
            raise DispenseError('Not enough unexpired stock available', 400)

        dispense = Dispense.objects.create(
            medicine=med,
            consultation=consultation,
            walk_in_name=_clean(walk_in.get('name')),
            walk_in_contact=_clean(walk_in.get('contact')),
            walk_in_notes=_clean(walk_in.get('notes')),
            quantity=qty,
            dispensed_by=dispensed_by,
        )
        left = qty
        for batch in batches:
            if left == 0:
                break
            take = min(batch.remaining_qty, left)
            batch.remaining_qty -= take
            batch.save(update_fields=['remaining_qty'])
            DispenseBatch.objects.create(dispense=dispense, replenishment=batch, quantity_used=take)
            left -= take
        med.quantity -= qty
        med.save(update_fields=['quantity'])

    log_action(user=dispensed_by, action='dispense', object_type='medicine', object_id=med.id,
               detail={'dispense': dispense.id, 'quantity': qty, 'consultation': consultation_id})
    logger.info('dispensed %s of medicine %s (dispense %s) by user %s', qty, med.id, dispense.id, dispensed_by.id)
    return dispense


def _clean(value) -> Optional[str]:
    return clean_text(value) or None


def serialize_dispense(d: Dispense) -> dict:
    consultation = d.consultation
    patient = consultation.appointment.patient if consultation and consultation.appointment_id else None
    return {
        'dispense_id': d.id,
        'med_id': d.medicine_id,
        'item_name': d.medicine.item_name,
        'quantity': d.quantity,
        'consultation_id': d.consultation_id,
        'patientName': full_name(patient) if patient else d.walk_in_name,
        'walkInName': d.walk_in_name,
        'walkInContact': d.walk_in_contact,
        'walkInNotes': d.walk_in_notes,
        'dispensedBy': full_name(d.dispensed_by) if d.dispensed_by_id else None,
        'createdAt': d.created_at.isoformat(),
        'batches': [
            {'replenishment_id': b.replenishment_id, 'quantity_used': b.quantity_used,
             'expiry_date': b.replenishment.expiry_date.isoformat()}
            for b in d.batches.all()
        ],
    }


def list_dispenses(*, dispensed_by: Optional[User] = None, walk_in_only: bool = False, limit: int = 200) -> list[dict]:
    qs = (Dispense.objects
          .select_related('medicine', 'dispensed_by__employee_profile', 'dispensed_by__student_profile',
                          'consultation__appointment__patient__student_profile',
                          'consultation__appointment__patient__employee_profile')
          .prefetch_related(Prefetch('batches', queryset=DispenseBatch.objects.select_related('replenishment')))
          .order_by('-created_at'))
    if dispensed_by is not None:
        qs = qs.filter(dispensed_by=dispensed_by)
    if walk_in_only:
        qs = qs.filter(consultation__isnull=True)
    return [serialize_dispense(d) for d in qs[:limit]]


def medicine_options() -> list[dict]:
    qs = Medicine.objects.select_related('clinic').filter(quantity__gt=0).order_by('item_name')
    return [
        {'med_id': m.id, 'item_name': m.item_name, 'strength': str(m.strength) if m.strength is not None else None,
         'unit': m.unit, 'quantity': m.quantity, 'clinic_name': m.clinic.name}
        for m in qs
    ]
