"""
Inventory transaction log.

Entries are appended, never edited: the model refuses updates and
deletes.  The unit cost is the catalog item's average cost at the
moment of issue.
"""
from __future__ import annotations

from typing import Optional

from requisitions.models import (
    InventoryItem,
    InventoryTransaction,
    Requisition,
    User,
)
from requisitions.services.sequences import next_transaction_number


def record_issue(*, requisition: Requisition, item: InventoryItem, location_id, quantity: int,
                 performed_by: User, lot_number: Optional[str] = None,
                 serial_number: Optional[str] = None, notes: str = '') -> InventoryTransaction:
    unit_cost = item.average_cost
    return InventoryTransaction.objects.create(
        transaction_number=next_transaction_number(),
        transaction_type=InventoryTransaction.TYPE_ISSUE,
        item=item,
        from_location_id=location_id,
        quantity=quantity,
        unit_cost=unit_cost,
        total_cost=unit_cost * quantity,
        lot_number=lot_number or None,
        serial_number=serial_number or None,
        reference_type=InventoryTransaction.REFERENCE_REQUISITION,
        reference_id=requisition.id,
        reference_number=requisition.req_number,
        performed_by=performed_by,
        notes=notes or '',
    )


def transactions_for_requisition(requisition: Requisition):
    return (
        InventoryTransaction.objects.filter(
            reference_type=InventoryTransaction.REFERENCE_REQUISITION,
            reference_id=requisition.id,
        )
        .select_related('item', 'from_location', 'performed_by')
        .order_by('created_at', 'transaction_number')
    )
