"""
Requisition aggregate operations: creation, draft edits, submission,
cancellation and the read side (detail, listing, statistics).

Every mutation locks the requisition row before looking at its status,
so two callers acting on the same requisition are serialized by the
database rather than racing on a stale read.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q

from requisitions.exceptions import InvalidState, NotFound, ValidationError
from requisitions.models import (
    Department,
    InventoryItem,
    Requisition,
    RequisitionItem,
    RequisitionPriority,
    RequisitionStatus,
    User,
)
from requisitions.services import ledger, notify, stock
from requisitions.services.audit import log_action
from requisitions.services.sequences import next_requisition_number

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('priority', 'needed_by', 'justification', 'notes')


def as_uuid(value, field: str = 'id') -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError({field: f'"{value}" is not a valid UUID.'})


def lock_requisition(requisition_id) -> Requisition:
    """Fetch and row-lock a requisition.  Must be called inside ``atomic``."""
    req = (
        Requisition.objects.select_for_update()
        .filter(id=as_uuid(requisition_id))
        .first()
    )
    if req is None:
        raise NotFound('Requisition not found')
    return req


def items_for_update(req: Requisition):
    # lock the line rows only; the joined catalog rows stay unlocked
    return (
        RequisitionItem.objects.select_for_update(of=('self',))
        .filter(requisition=req)
        .select_related('item')
        .order_by('position', 'id')
    )


def lock_items(req: Requisition) -> dict[uuid.UUID, RequisitionItem]:
    return {item.id: item for item in items_for_update(req)}


def transition(req: Requisition, new_status: str, message: str) -> str:
    """Move ``req`` to ``new_status`` in memory; returns the old status."""
    if not req.can_transition_to(new_status):
        raise InvalidState(message)
    old = req.status
    req.status = new_status
    return old


def _validated_lines(items: Optional[Iterable[dict]]) -> list[dict]:
    lines = list(items or [])
    if not lines:
        raise ValidationError({'items': 'At least one item is required'})
    for line in lines:
        qty = line.get('quantity_requested')
        if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
            raise ValidationError({'items': 'Quantity must be at least 1'})
    wanted = {as_uuid(line['item_id'], 'item_id') for line in lines}
    found = set(InventoryItem.objects.filter(id__in=wanted).values_list('id', flat=True))
    missing = wanted - found
    if missing:
        raise NotFound(f"Item {sorted(str(m) for m in missing)[0]} not found")
    return lines


def _create_lines(req: Requisition, lines: list[dict]) -> None:
    RequisitionItem.objects.bulk_create([
        RequisitionItem(
            requisition=req,
            position=index,
            item_id=as_uuid(line['item_id'], 'item_id'),
            quantity_requested=line['quantity_requested'],
            notes=line.get('notes') or '',
        )
        for index, line in enumerate(lines)
    ])


def create_requisition(*, department_id: str, requested_by: User, items: Iterable[dict],
                       priority: str = RequisitionPriority.NORMAL, needed_by: Optional[date] = None,
                       justification: str = '', notes: str = '') -> Requisition:
    """Create a DRAFT requisition with its line items.

    ``items`` is a list of ``{'item_id', 'quantity_requested', 'notes'}``.
    Raises ``ValidationError`` for an empty list or a quantity below 1 and
    ``NotFound`` for an unknown department or catalog item.
    """
    if priority not in RequisitionPriority.values:
        raise ValidationError({'priority': f'"{priority}" is not a valid priority.'})
    lines = _validated_lines(items)
    if not Department.objects.filter(id=department_id).exists():
        raise NotFound(f"Department {department_id} not found")

    with transaction.atomic():
        req = Requisition.objects.create(
            req_number=next_requisition_number(),
            department_id=department_id,
            requested_by=requested_by,
            priority=priority,
            needed_by=needed_by,
            justification=justification or '',
            notes=notes or '',
        )
        _create_lines(req, lines)
        log_action(req, user=requested_by, action='create', items=len(lines))
        notify.requisition_changed(req, action='created')
    logger.info("requisition %s created by %s with %d item(s)", req.req_number, requested_by.pk, len(lines))
    return req


def update_requisition(requisition_id, *, user: Optional[User] = None, **fields) -> Requisition:
    """Edit a DRAFT requisition's header fields and, optionally, replace its items."""
    unknown = set(fields) - set(EDITABLE_FIELDS) - {'items'}
    if unknown:
        raise ValidationError({name: 'This field cannot be updated.' for name in sorted(unknown)})
    if 'priority' in fields and fields['priority'] not in RequisitionPriority.values:
        raise ValidationError({'priority': f'"{fields["priority"]}" is not a valid priority.'})
    lines = _validated_lines(fields.pop('items')) if 'items' in fields else None

    with transaction.atomic():
        req = lock_requisition(requisition_id)
        if req.status != RequisitionStatus.DRAFT:
            raise InvalidState('Can only update draft requisitions')
        for name, value in fields.items():
            if name in ('justification', 'notes'):
                value = value or ''
            setattr(req, name, value)
        req.save(update_fields=[*fields.keys(), 'updated_at'])
        if lines is not None:
            req.items.all().delete()
            _create_lines(req, lines)
        log_action(req, user=user, action='update', fields=sorted(fields), itemsReplaced=lines is not None)
        notify.requisition_changed(req, action='updated')
    return req


def submit_requisition(requisition_id, *, user: Optional[User] = None) -> Requisition:
    with transaction.atomic():
        req = lock_requisition(requisition_id)
        old = transition(req, RequisitionStatus.PENDING_APPROVAL, 'Can only submit draft requisitions')
        req.save(update_fields=['status', 'updated_at'])
        log_action(req, user=user, action='submit', previous=str(old))
        notify.requisition_changed(req, action='submitted')
    logger.info("requisition %s submitted", req.req_number)
    return req


def cancel_requisition(requisition_id, reason: Optional[str] = None, *, user: Optional[User] = None) -> Requisition:
    """Cancel a requisition that has not had any stock issued against it.

    Cancelling an already cancelled, rejected or fulfilled requisition
    raises ``InvalidState``.
    """
    with transaction.atomic():
        req = lock_requisition(requisition_id)
        if req.status in (RequisitionStatus.FULFILLED, RequisitionStatus.PARTIALLY_FULFILLED):
            raise InvalidState('Cannot cancel fulfilled or partially fulfilled requisitions')
        if req.items.filter(quantity_issued__gt=0).exists():
            raise InvalidState('Cannot cancel requisition with issued items')
        old = transition(req, RequisitionStatus.CANCELLED, f'Cannot cancel a {req.status.lower()} requisition')
        if reason:
            req.notes = f"{req.notes or ''}\n\nCancellation reason: {reason}"
        req.save(update_fields=['status', 'notes', 'updated_at'])
        log_action(req, user=user, action='cancel', previous=str(old), reason=reason or '')
        notify.requisition_changed(req, action='cancelled')
    logger.info("requisition %s cancelled (was %s)", req.req_number, old)
    return req


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------

def get_requisition_by_id(requisition_id) -> Requisition:
    """Return a requisition whose items carry ``available_stock`` and ``stock_locations``."""
    req = (
        Requisition.objects.select_related('department', 'requested_by', 'approved_by', 'fulfilled_by')
        .prefetch_related('items__item', 'items__substitute_item')
        .filter(id=as_uuid(requisition_id))
        .first()
    )
    if req is None:
        raise NotFound('Requisition not found')
    items = list(req.items.all())
    summary = stock.stock_by_item({line.item_id for line in items})
    for line in items:
        line.available_stock, line.stock_locations = summary[line.item_id]
    return req


def list_requisitions(*, status: Optional[str] = None, department_id: Optional[str] = None,
                      priority: Optional[str] = None, from_date: Optional[datetime] = None,
                      to_date: Optional[datetime] = None, search: Optional[str] = None,
                      page: int = 1, page_size: int = 20) -> tuple[list[Requisition], int]:
    qs = Requisition.objects.all()
    if status:
        qs = qs.filter(status=status)
    if department_id:
        qs = qs.filter(department_id=department_id)
    if priority:
        qs = qs.filter(priority=priority)
    if from_date:
        qs = qs.filter(requested_at__gte=from_date)
    if to_date:
        qs = qs.filter(requested_at__lte=to_date)
    if search:
        qs = qs.filter(
            Q(req_number__icontains=search) | Q(justification__icontains=search) | Q(notes__icontains=search)
        )

    total = qs.count()
    page = max(1, int(page or 1))
    page_size = min(settings.REQUISITION_MAX_PAGE_SIZE, max(1, int(page_size or 20)))
    start = (page - 1) * page_size
    rows = (
        qs.select_related('department', 'requested_by', 'approved_by', 'fulfilled_by')
        .prefetch_related('items__item')
        .annotate(item_count=Count('items'))
        .order_by('-requested_at', '-id')[start:start + page_size]
    )
    return list(rows), total


def get_requisition_stats() -> dict:
    by_status = (
        Requisition.objects.values('status').annotate(count=Count('id')).order_by('status')
    )
    by_priority = (
        Requisition.objects.values('priority').annotate(count=Count('id')).order_by('priority')
    )
    status_counts = {row['status']: row['count'] for row in by_status}
    return {
        'total': sum(status_counts.values()),
        'pendingApproval': status_counts.get(RequisitionStatus.PENDING_APPROVAL.value, 0),
        'pendingFulfillment': (
            status_counts.get(RequisitionStatus.APPROVED.value, 0)
            + status_counts.get(RequisitionStatus.PARTIALLY_FULFILLED.value, 0)
        ),
        'byStatus': [{'status': s, 'count': c} for s, c in status_counts.items()],
        'byPriority': [{'priority': row['priority'], 'count': row['count']} for row in by_priority],
    }


def list_requisition_transactions(requisition_id):
    req = Requisition.objects.filter(id=as_uuid(requisition_id)).first()
    if req is None:
        raise NotFound('Requisition not found')
    return list(ledger.transactions_for_requisition(req))
