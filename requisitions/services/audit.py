"""
Audit trail for requisition lifecycle changes.

Entries are written inside the transaction that performs the change,
so an entry exists only for a change that committed.
"""
from __future__ import annotations

from typing import Any, Optional

from requisitions.models import AuditEvent, Requisition, User

OBJECT_TYPE = 'requisition'


def log_action(requisition: Requisition, *, user: Optional[User], action: str, **detail: Any) -> AuditEvent:
    detail.setdefault('reqNumber', requisition.req_number)
    detail.setdefault('status', str(requisition.status))
    return AuditEvent.objects.create(
        user=user if user is not None and user.pk else None,
        action=f'{OBJECT_TYPE}_{action}',
        object_type=OBJECT_TYPE,
        object_id=str(requisition.pk),
        detail=detail,
    )


def history(requisition: Requisition):
    """Audit entries for one requisition, oldest first."""
    return (
        AuditEvent.objects.filter(object_type=OBJECT_TYPE, object_id=str(requisition.pk))
        .select_related('user')
        .order_by('created_at', 'id')
    )
