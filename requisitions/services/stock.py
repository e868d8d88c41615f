"""
Stock ledger primitives.

``issue_stock`` is the only mutation this service performs on stock.
It must run inside the caller's ``transaction.atomic()`` block: the
record is locked before the availability check so the check and the
decrement cannot be separated by a concurrent writer.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction

from requisitions.exceptions import InsufficientStock, NotFound
from requisitions.models import StockRecord

logger = logging.getLogger(__name__)


def _stock_key(item_id, location_id, lot_number: Optional[str], serial_number: Optional[str]) -> dict:
    key = {'item_id': item_id, 'location_id': location_id}
    if lot_number:
        key['lot_number'] = lot_number
    else:
        key['lot_number__isnull'] = True
    if serial_number:
        key['serial_number'] = serial_number
    else:
        key['serial_number__isnull'] = True
    return key


def issue_stock(*, item_id, location_id, quantity: int,
                lot_number: Optional[str] = None, serial_number: Optional[str] = None) -> Optional[StockRecord]:
    """Remove ``quantity`` from the stock record identified by the key.

    Returns the updated record, or ``None`` when the record reached zero
    on-hand and zero reserved and was deleted.
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError('issue_stock must be called inside transaction.atomic()')

    stock = (
        StockRecord.objects.select_for_update()
        .filter(**_stock_key(item_id, location_id, lot_number, serial_number))
        .order_by('id')
        .first()
    )
    if stock is None:
        raise NotFound('Stock not found for the specified item and location')
    if stock.quantity_on_hand < quantity:
        raise InsufficientStock(available=stock.quantity_on_hand, requested=quantity)

    stock.quantity_on_hand -= quantity
    # available can lag on-hand by the reserved amount; never let it go negative
    stock.quantity_available = max(0, min(stock.quantity_available - quantity, stock.quantity_on_hand))

    if stock.quantity_on_hand == 0 and stock.quantity_reserved == 0:
        logger.info("stock %s for item %s emptied; removing record", stock.id, item_id)
        stock.delete()
        return None
    stock.save(update_fields=['quantity_on_hand', 'quantity_available', 'updated_at'])
    return stock


def stock_by_item(item_ids) -> dict:
    """Map each item id to ``(available_total, locations_with_stock)``.

    Read-side helper for requisition detail views; takes no locks.
    """
    item_ids = list(item_ids)
    summary: dict = {item_id: (0, []) for item_id in item_ids}
    records = (
        StockRecord.objects.filter(item_id__in=item_ids)
        .select_related('location')
        .order_by('location__code', 'lot_number', 'serial_number')
    )
    for record in records:
        total, locations = summary[record.item_id]
        if record.quantity_available > 0:
            locations.append(record)
        summary[record.item_id] = (total + record.quantity_available, locations)
    return summary
