"""
Fulfillment engine.

Issues stock against an approved requisition.  A call carries a list of
instructions ``{requisition_item_id, quantity_issued, location_id,
lot_number, serial_number}`` that are applied strictly in the order
given, because a later instruction may draw on a stock record an
earlier one already depleted.  For each instruction the line item is
advanced, an ISSUE transaction is appended and the stock record is
decremented; the requisition status is then rolled up from its lines.
Only an APPROVED requisition accepts a batch; once partially fulfilled it
takes no further fulfillment.

The whole batch is one transaction.  Any failure (unknown line, missing
stock, insufficient stock, over-issue) rolls back every instruction in
the call, including those that had already been applied.
"""
from __future__ import annotations

import logging
from typing import Iterable

from django.db import transaction
from django.utils import timezone

from requisitions.exceptions import InvalidState, NotFound, ValidationError
from requisitions.models import Requisition, RequisitionStatus, User
from requisitions.services import ledger, notify, stock
from requisitions.services.audit import log_action
from requisitions.services.requisitions import as_uuid, lock_items, lock_requisition

logger = logging.getLogger(__name__)

FULFILLABLE = (RequisitionStatus.APPROVED,)


def _apply_instruction(req: Requisition, lines: dict, instruction: dict, *, fulfilled_by: User, notes: str) -> int:
    """Apply one instruction; returns the quantity actually issued."""
    line_id = as_uuid(instruction.get('requisition_item_id'), 'requisition_item_id')
    line = lines.get(line_id)
    if line is None:
        raise NotFound(f"Requisition item {line_id} not found")

    qty = instruction.get('quantity_issued') or 0
    if qty <= 0:
        return 0

    target = line.effective_target
    new_issued = line.quantity_issued + qty
    if new_issued > target:
        raise InvalidState(
            f"Issuing {qty} of item {line.item.sku} would exceed the approved quantity "
            f"({line.quantity_issued} of {target} already issued)"
        )
    location_id = as_uuid(instruction.get('location_id'), 'location_id')
    lot_number = instruction.get('lot_number') or None
    serial_number = instruction.get('serial_number') or None

    line.quantity_issued = new_issued
    line.is_fulfilled = new_issued >= target
    line.save(update_fields=['quantity_issued', 'is_fulfilled'])

    ledger.record_issue(
        requisition=req,
        item=line.item,
        location_id=location_id,
        quantity=qty,
        performed_by=fulfilled_by,
        lot_number=lot_number,
        serial_number=serial_number,
        notes=notes,
    )
    stock.issue_stock(
        item_id=line.item_id,
        location_id=location_id,
        quantity=qty,
        lot_number=lot_number,
        serial_number=serial_number,
    )
    return qty


def _rollup(req: Requisition) -> str:
    """Derive the requisition status from the current state of all its lines."""
    lines = list(req.items.all())
    all_fulfilled = all(line.derive_fulfilled() for line in lines)
    any_fulfilled = any(line.quantity_issued > 0 for line in lines)
    if all_fulfilled:
        return RequisitionStatus.FULFILLED
    if any_fulfilled:
        return RequisitionStatus.PARTIALLY_FULFILLED
    return req.status


def fulfill_requisition(requisition_id, *, fulfilled_by: User, instructions: Iterable[dict],
                        notes: str = '') -> Requisition:
    instructions = list(instructions)
    for instruction in instructions:
        qty = instruction.get('quantity_issued')
        if qty is not None and (isinstance(qty, bool) or not isinstance(qty, int)):
            raise ValidationError({'quantity_issued': 'A whole number is required.'})

    with transaction.atomic():
        req = lock_requisition(requisition_id)
        if req.status not in FULFILLABLE:
            raise InvalidState('Requisition must be approved before fulfillment')
        lines = lock_items(req)

        issued_total = 0
        for instruction in instructions:
            issued_total += _apply_instruction(req, lines, instruction, fulfilled_by=fulfilled_by, notes=notes)

        old = req.status
        new_status = _rollup(req)
        if issued_total == 0:
            # every instruction was a no-op: nothing to record
            return req

        if new_status != old and not req.can_transition_to(new_status):
            raise InvalidState(f'Cannot move requisition from {old} to {new_status}')
        req.status = new_status
        req.fulfilled_by = fulfilled_by
        if req.fulfilled_at is None:
            req.fulfilled_at = timezone.now()
        req.save(update_fields=['status', 'fulfilled_by', 'fulfilled_at', 'updated_at'])
        log_action(req, user=fulfilled_by, action='fulfill', previous=str(old), issued=issued_total)
        notify.requisition_changed(req, action='fulfilled')
    logger.info("requisition %s: issued %d unit(s), status %s -> %s", req.req_number, issued_total, old, new_status)
    return req
