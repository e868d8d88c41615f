"""Public operations of the requisition engine.

Views and management commands import from here rather than from the
individual service modules.
"""
from requisitions.services.approval import approve_requisition, reject_requisition
from requisitions.services.fulfillment import fulfill_requisition
from requisitions.services.requisitions import (
    cancel_requisition,
    create_requisition,
    get_requisition_by_id,
    get_requisition_stats,
    list_requisition_transactions,
    list_requisitions,
    submit_requisition,
    update_requisition,
)

__all__ = [
    'approve_requisition',
    'cancel_requisition',
    'create_requisition',
    'fulfill_requisition',
    'get_requisition_by_id',
    'get_requisition_stats',
    'list_requisition_transactions',
    'list_requisitions',
    'reject_requisition',
    'submit_requisition',
    'update_requisition',
]
