"""
Sequence allocator for human-readable document numbers.

Numbers come from a dedicated counter row per sequence name that is
locked and incremented inside the caller's transaction, so two
concurrent callers can never receive the same value.  If the caller's
transaction rolls back the increment rolls back with it.
"""
from __future__ import annotations

from django.conf import settings
from django.db import transaction

from requisitions.models import Sequence

REQUISITION = 'requisition'
INVENTORY_TRANSACTION = 'inventory_transaction'


@transaction.atomic
def next_value(name: str) -> int:
    seq, _ = Sequence.objects.select_for_update().get_or_create(
        name=name, defaults={'current_value': 0},
    )
    seq.current_value += 1
    seq.save(update_fields=['current_value', 'updated_at'])
    return seq.current_value


def next_number(name: str, prefix: str, width: int | None = None) -> str:
    """Return the next number for ``name`` formatted as ``PREFIX-000001``."""
    width = width or settings.SEQUENCE_WIDTH
    return f"{prefix}-{next_value(name):0{width}d}"


def next_requisition_number() -> str:
    return next_number(REQUISITION, settings.REQUISITION_NUMBER_PREFIX)


def next_transaction_number() -> str:
    return next_number(INVENTORY_TRANSACTION, settings.TRANSACTION_NUMBER_PREFIX)
