"""
Approval workflow: approve (with optional per-line adjustments) or
reject a requisition that is pending approval.

Line adjustments and the header change are written in one atomic
block; a bad adjustment leaves both the items and the status as they
were.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from django.db import transaction
from django.utils import timezone

from requisitions.exceptions import NotFound, ValidationError
from requisitions.models import InventoryItem, Requisition, RequisitionStatus, User
from requisitions.services import notify
from requisitions.services.audit import log_action
from requisitions.services.requisitions import as_uuid, lock_items, lock_requisition, transition

logger = logging.getLogger(__name__)

NOT_PENDING = 'Requisition must be pending approval'


def _apply_adjustment(items: dict, adjustment: dict) -> None:
    line_id = as_uuid(adjustment.get('requisition_item_id'), 'requisition_item_id')
    line = items.get(line_id)
    if line is None:
        raise NotFound(f"Requisition item {line_id} not found")

    qty = adjustment.get('quantity_approved')
    if isinstance(qty, bool) or not isinstance(qty, int) or qty < 0:
        raise ValidationError({'quantity_approved': 'Quantity cannot be negative'})

    substitute_id = adjustment.get('substitute_item_id')
    if substitute_id:
        substitute_id = as_uuid(substitute_id, 'substitute_item_id')
        if not InventoryItem.objects.filter(id=substitute_id).exists():
            raise NotFound(f"Item {substitute_id} not found")

    line.quantity_approved = qty
    line.substitute_item_id = substitute_id or None
    line.substitution_approved = bool(adjustment.get('substitution_approved', False))


def approve_requisition(requisition_id, *, approved_by: User, approval_notes: str = '',
                        items: Optional[Iterable[dict]] = None) -> Requisition:
    """Approve a pending requisition.

    ``items`` is an optional list of ``{'requisition_item_id',
    'quantity_approved', 'substitute_item_id', 'substitution_approved'}``.
    Lines not mentioned keep ``quantity_approved`` unset, i.e. they are
    approved as requested.
    """
    with transaction.atomic():
        req = lock_requisition(requisition_id)
        transition(req, RequisitionStatus.APPROVED, NOT_PENDING)

        lines = lock_items(req)
        adjustments = list(items or [])
        for adjustment in adjustments:
            _apply_adjustment(lines, adjustment)
        for line in lines.values():
            # a line approved at zero has nothing left to issue
            line.is_fulfilled = line.derive_fulfilled()
            line.save(update_fields=['quantity_approved', 'substitute_item', 'substitution_approved', 'is_fulfilled'])

        req.approved_by = approved_by
        req.approved_at = timezone.now()
        req.approval_notes = approval_notes or ''
        req.save(update_fields=['status', 'approved_by', 'approved_at', 'approval_notes', 'updated_at'])
        log_action(req, user=approved_by, action='approve',
                   adjusted=[str(a.get('requisition_item_id')) for a in adjustments])
        notify.requisition_changed(req, action='approved')
    logger.info("requisition %s approved by %s (%d adjustment(s))", req.req_number, approved_by.pk, len(adjustments))
    return req


def reject_requisition(requisition_id, *, approved_by: User, reason: str) -> Requisition:
    with transaction.atomic():
        req = lock_requisition(requisition_id)
        transition(req, RequisitionStatus.REJECTED, NOT_PENDING)
        req.approved_by = approved_by
        req.approved_at = timezone.now()
        req.approval_notes = reason or ''
        req.save(update_fields=['status', 'approved_by', 'approved_at', 'approval_notes', 'updated_at'])
        log_action(req, user=approved_by, action='reject', reason=reason or '')
        notify.requisition_changed(req, action='rejected')
    logger.info("requisition %s rejected by %s", req.req_number, approved_by.pk)
    return req
