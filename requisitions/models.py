"""
Database models for the hospital supply service.

The catalog (items, locations) and the department directory are
consulted by the requisition engine but not owned by it; they are kept
deliberately small here.  The engine owns requisitions and their line
items, the physical stock records it decrements, the append-only
inventory transaction log and the counters behind human-readable
document numbers.
"""
from __future__ import annotations

import uuid
from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.db import models


class Department(models.Model):
    """A hospital department that raises supply requisitions.

    The primary key is a short string code (e.g. ``'icu'``) as used by
    the department directory.
    """
    id = models.CharField(max_length=20, primary_key=True)
    name = models.CharField(max_length=255)
    active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class User(AbstractUser):
    """Custom user model with a supply role and optional department.

    ``requester`` raises requisitions, ``approver`` approves or rejects
    them, ``storekeeper`` issues stock and ``admin`` may do all of it.
    """
    ROLE_REQUESTER = 'requester'
    ROLE_APPROVER = 'approver'
    ROLE_STOREKEEPER = 'storekeeper'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_REQUESTER, 'Requester'),
        (ROLE_APPROVER, 'Approver'),
        (ROLE_STOREKEEPER, 'Storekeeper'),
        (ROLE_ADMIN, 'Administrator'),
    ]
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_REQUESTER)
    department = models.ForeignKey(
        Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='users'
    )

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username


class InventoryItem(models.Model):
    """Catalog item.  ``average_cost`` is snapshotted into issue transactions."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    unit_of_measure = models.CharField(max_length=32, default='EA')
    average_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    active = models.BooleanField(default=True)

    def __str__(self) -> str:
        return f"{self.sku} {self.name}"


class InventoryLocation(models.Model):
    """A storage location (store room, ward cupboard, pharmacy shelf)."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    active = models.BooleanField(default=True)

    def __str__(self) -> str:
        return f"{self.code} {self.name}"


class StockRecord(models.Model):
    """Quantity of one item at one location, optionally per lot/serial.

    ``quantity_available`` never exceeds ``quantity_on_hand``.  A record
    that reaches zero on-hand and zero reserved is deleted by the
    operation that emptied it.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    item = models.ForeignKey(InventoryItem, on_delete=models.PROTECT, related_name='stock')
    location = models.ForeignKey(InventoryLocation, on_delete=models.PROTECT, related_name='stock')
    lot_number = models.CharField(max_length=64, null=True, blank=True)
    serial_number = models.CharField(max_length=64, null=True, blank=True)
    quantity_on_hand = models.PositiveIntegerField(default=0)
    quantity_reserved = models.PositiveIntegerField(default=0)
    quantity_available = models.PositiveIntegerField(default=0)
    expiration_date = models.DateField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['item', 'location', 'lot_number', 'serial_number'],
                name='uniq_stock_item_location_lot_serial',
            ),
            models.CheckConstraint(
                condition=models.Q(quantity_available__lte=models.F('quantity_on_hand')),
                name='stock_available_lte_on_hand',
            ),
        ]
        indexes = [
            models.Index(fields=['item', 'location'], name='stock_item_location_idx'),
        ]

    def __str__(self) -> str:
        lot = f" lot={self.lot_number}" if self.lot_number else ''
        return f"{self.item_id}@{self.location_id}{lot} on_hand={self.quantity_on_hand}"


class Sequence(models.Model):
    """A named monotonic counter backing document numbers."""
    name = models.CharField(max_length=64, unique=True)
    current_value = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name}={self.current_value}"


class RequisitionStatus(models.TextChoices):
    DRAFT = 'DRAFT', 'Draft'
    PENDING_APPROVAL = 'PENDING_APPROVAL', 'Pending approval'
    APPROVED = 'APPROVED', 'Approved'
    PARTIALLY_FULFILLED = 'PARTIALLY_FULFILLED', 'Partially fulfilled'
    FULFILLED = 'FULFILLED', 'Fulfilled'
    REJECTED = 'REJECTED', 'Rejected'
    CANCELLED = 'CANCELLED', 'Cancelled'


class RequisitionPriority(models.TextChoices):
    LOW = 'LOW', 'Low'
    NORMAL = 'NORMAL', 'Normal'
    HIGH = 'HIGH', 'High'
    URGENT = 'URGENT', 'Urgent'


# Every legal status change.  Anything not listed is refused.  Fulfillment
# runs once, from APPROVED; a partially fulfilled requisition accepts no
# further fulfillment or cancellation.
TRANSITIONS: dict[str, tuple[str, ...]] = {
    RequisitionStatus.DRAFT: (
        RequisitionStatus.PENDING_APPROVAL,
        RequisitionStatus.CANCELLED,
    ),
    RequisitionStatus.PENDING_APPROVAL: (
        RequisitionStatus.APPROVED,
        RequisitionStatus.REJECTED,
        RequisitionStatus.CANCELLED,
    ),
    RequisitionStatus.APPROVED: (
        RequisitionStatus.PARTIALLY_FULFILLED,
        RequisitionStatus.FULFILLED,
        RequisitionStatus.CANCELLED,
    ),
    RequisitionStatus.PARTIALLY_FULFILLED: (),
    RequisitionStatus.FULFILLED: (),
    RequisitionStatus.REJECTED: (),
    RequisitionStatus.CANCELLED: (),
}

TERMINAL_STATUSES = (
    RequisitionStatus.FULFILLED,
    RequisitionStatus.REJECTED,
    RequisitionStatus.CANCELLED,
)


def can_transition(current: str, new: str) -> bool:
    """Return True if a requisition may move from ``current`` to ``new``."""
    return new in TRANSITIONS.get(RequisitionStatus(current), ())


class Requisition(models.Model):
    """A department's request for supply items."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    req_number = models.CharField(max_length=32, unique=True, editable=False)
    department = models.ForeignKey(Department, on_delete=models.PROTECT, related_name='requisitions')
    requested_by = models.ForeignKey(
        User, on_delete=models.PROTECT, related_name='requisitions_requested'
    )
    priority = models.CharField(
        max_length=10, choices=RequisitionPriority.choices, default=RequisitionPriority.NORMAL, db_index=True
    )
    status = models.CharField(
        max_length=20, choices=RequisitionStatus.choices, default=RequisitionStatus.DRAFT, db_index=True
    )
    requested_at = models.DateTimeField(auto_now_add=True, db_index=True)
    needed_by = models.DateField(null=True, blank=True)
    justification = models.TextField(blank=True, default='')
    notes = models.TextField(blank=True, default='')

    approved_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.PROTECT, related_name='requisitions_approved'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    approval_notes = models.TextField(blank=True, default='')

    fulfilled_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.PROTECT, related_name='requisitions_fulfilled'
    )
    fulfilled_at = models.DateTimeField(null=True, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['department', 'status', 'requested_at'], name='req_dept_status_requested_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.req_number} ({self.status})"

    def can_transition_to(self, new_status: str) -> bool:
        return can_transition(self.status, new_status)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class RequisitionItem(models.Model):
    """One requested catalog item within a requisition."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    requisition = models.ForeignKey(Requisition, on_delete=models.CASCADE, related_name='items')
    position = models.PositiveIntegerField(default=0)
    item = models.ForeignKey(InventoryItem, on_delete=models.PROTECT, related_name='requisition_items')
    quantity_requested = models.PositiveIntegerField()
    quantity_approved = models.PositiveIntegerField(null=True, blank=True)
    quantity_issued = models.PositiveIntegerField(default=0)
    is_fulfilled = models.BooleanField(default=False)
    substitute_item = models.ForeignKey(
        InventoryItem, null=True, blank=True, on_delete=models.PROTECT, related_name='substitutions'
    )
    substitution_approved = models.BooleanField(default=False)
    notes = models.TextField(blank=True, default='')

    class Meta:
        ordering = ['position', 'id']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity_requested__gte=1),
                name='req_item_quantity_requested_gte_1',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.item_id} x{self.quantity_requested} in {self.requisition_id}"

    @property
    def effective_target(self) -> int:
        """Approved quantity when set, otherwise the requested quantity."""
        if self.quantity_approved is not None:
            return self.quantity_approved
        return self.quantity_requested

    def derive_fulfilled(self) -> bool:
        return self.quantity_issued >= self.effective_target


class InventoryTransaction(models.Model):
    """Append-only record of an inventory movement.

    Rows are never updated or deleted once written.
    """
    TYPE_RECEIPT = 'RECEIPT'
    TYPE_ISSUE = 'ISSUE'
    TYPE_RETURN = 'RETURN'
    TYPE_ADJUSTMENT = 'ADJUSTMENT'
    TYPE_CHOICES = [
        (TYPE_RECEIPT, 'Receipt'),
        (TYPE_ISSUE, 'Issue'),
        (TYPE_RETURN, 'Return'),
        (TYPE_ADJUSTMENT, 'Adjustment'),
    ]
    REFERENCE_REQUISITION = 'REQUISITION'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    transaction_number = models.CharField(max_length=32, unique=True)
    transaction_type = models.CharField(max_length=16, choices=TYPE_CHOICES, db_index=True)
    item = models.ForeignKey(InventoryItem, on_delete=models.PROTECT, related_name='transactions')
    from_location = models.ForeignKey(
        InventoryLocation, null=True, blank=True, on_delete=models.PROTECT, related_name='outbound_transactions'
    )
    quantity = models.PositiveIntegerField()
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2)
    total_cost = models.DecimalField(max_digits=14, decimal_places=2)
    lot_number = models.CharField(max_length=64, null=True, blank=True)
    serial_number = models.CharField(max_length=64, null=True, blank=True)
    reference_type = models.CharField(max_length=32, blank=True, default='')
    reference_id = models.UUIDField(null=True, blank=True)
    reference_number = models.CharField(max_length=32, blank=True, default='')
    performed_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='inventory_transactions')
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'transaction_number']
        indexes = [
            models.Index(fields=['reference_type', 'reference_id'], name='trx_reference_idx'),
            models.Index(fields=['item', 'created_at'], name='trx_item_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.transaction_number} {self.transaction_type} {self.quantity}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Inventory transactions are append-only")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Inventory transactions are append-only")


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action}:{self.object_type}/{self.object_id}"
