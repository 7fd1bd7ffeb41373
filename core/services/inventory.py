"""
Medicine inventory with expiring replenishment batches.

``Medicine.quantity`` is the sum of ``remaining_qty`` over the
medicine's batches.  Every mutation here (intake, restock, expiry
sweep) keeps the two in step inside one transaction.  Expired batches
are zeroed rather than deleted so dispense history still points at
them.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from django.db import transaction
from django.db.models import F, Prefetch

from core.exceptions import ClinicError
from core.models import Medicine, Replenishment, User
from core.services.audit import log_action
from core.services.clinics import get_clinic
from core.services.timeutils import manila_now, manila_today

logger = logging.getLogger(__name__)


def expiry_status(expiry: date, today: Optional[date] = None) -> str:
    days = (expiry - (today or manila_today())).days
    if days < 0:
        return 'Expired'
    if days < 9:
        return 'Expiring Very Soon'
    if days < 30:
        return 'Expiring Soon'
    return 'Valid'


def sweep_expired_stock(today: Optional[date] = None) -> int:
    """Zero every batch past its expiry date; returns the units removed."""
    today = today or manila_today()
    removed = 0
    with transaction.atomic():
        batches = (Replenishment.objects
                   .select_for_update()
                   .filter(expiry_date__lt=today, remaining_qty__gt=0)
                   .order_by('medicine_id', 'expiry_date'))
        for batch in batches:
            qty = batch.remaining_qty
            Medicine.objects.filter(pk=batch.medicine_id).update(quantity=F('quantity') - qty)
            batch.remaining_qty = 0
            batch.save(update_fields=['remaining_qty'])
            removed += qty
    if removed:
        logger.info('expiry sweep removed %s units', removed)
    return removed


def serialize_batch(b: Replenishment, today: date) -> dict:
    return {
        'replenishment_id': b.id,
        'quantity_added': b.quantity_added,
        'remaining_qty': b.remaining_qty,
        'date_received': b.date_received.isoformat(),
        'expiry_date': b.expiry_date.isoformat(),
        'expiryStatus': expiry_status(b.expiry_date, today),
    }


def serialize_medicine(m: Medicine, today: Optional[date] = None) -> dict:
    today = today or manila_today()
    batches = list(m.replenishments.all())
    live = [b for b in batches if b.remaining_qty > 0]
    nearest = min((b.expiry_date for b in live), default=None)
    return {
        'med_id': m.id,
        'clinic_id': m.clinic_id,
        'clinic_name': m.clinic.name,
        'item_name': m.item_name,
        'item_type': m.item_type,
        'category': m.category,
        'strength': str(m.strength) if m.strength is not None else None,
        'unit': m.unit,
        'quantity': m.quantity,
        'nearestExpiry': nearest.isoformat() if nearest else None,
        'expiryStatus': expiry_status(nearest, today) if nearest else None,
        'replenishments': [serialize_batch(b, today) for b in batches],
    }


def list_inventory(clinic_id=None) -> dict:
    removed = sweep_expired_stock()
    qs = (Medicine.objects
          .select_related('clinic')
          .prefetch_related(Prefetch('replenishments', queryset=Replenishment.objects.order_by('expiry_date')))
          .order_by('item_name'))
    if clinic_id:
        qs = qs.filter(clinic_id=clinic_id)
    today = manila_today()
    return {'inventory': [serialize_medicine(m, today) for m in qs], 'expiredDeducted': removed}


def _add_batch(med: Medicine, qty: int, expiry: date) -> Replenishment:
    batch = Replenishment.objects.create(
        medicine=med, quantity_added=qty, remaining_qty=qty,
        date_received=manila_now(), expiry_date=expiry,
    )
    Medicine.objects.filter(pk=med.pk).update(quantity=F('quantity') + qty)
    med.refresh_from_db(fields=['quantity'])
    return batch


def add_stock(user: User, data: dict) -> Medicine:
    """Record incoming stock; restocks a matching medicine or creates one.

    ``data`` is validated ``StockSerializer`` output.
    """
    qty = data['quantity']
    expiry = data['expiry']
    clinic = get_clinic(data['clinic_id'])
    name = data['item_name'].strip()
    strength = data.get('strength')
    unit = data.get('unit') or None
    category = data.get('category') or 'Other'

    with transaction.atomic():
        med = (Medicine.objects.select_for_update()
               .filter(clinic=clinic, item_name__iexact=name, strength=strength, unit=unit)
               .first())
        created = med is None
        if created:
            med = Medicine.objects.create(
                clinic=clinic, item_name=name, item_type=(data.get('item_type') or '').strip(),
                category=category, strength=strength, unit=unit, quantity=0,
            )
        batch = _add_batch(med, qty, expiry)
    log_action(user=user, action='stock_add', object_type='medicine', object_id=med.id,
               detail={'quantity': qty, 'expiry': expiry.isoformat(), 'batch': batch.id, 'created': created})
    logger.info('stock %s x%s added to medicine %s (created=%s)', batch.id, qty, med.id, created)
    return med


def replenish(user: User, med_id, data: dict) -> Medicine:
    qty = data['quantity']
    expiry = data['expiry']
    with transaction.atomic():
        med = Medicine.objects.select_for_update().filter(pk=med_id).first()
        if med is None:
            raise ClinicError('Medicine not found', 404)
        batch = _add_batch(med, qty, expiry)
    log_action(user=user, action='stock_replenish', object_type='medicine', object_id=med.id,
               detail={'quantity': qty, 'expiry': expiry.isoformat(), 'batch': batch.id})
    return med


def get_medicine_payload(med: Medicine) -> dict:
    med = (Medicine.objects.select_related('clinic')
           .prefetch_related(Prefetch('replenishments', queryset=Replenishment.objects.order_by('expiry_date')))
           .get(pk=med.pk))
    return serialize_medicine(med)
