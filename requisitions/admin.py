"""
Django admin registrations for the supply models.

The inventory transaction log is append-only, so its admin is
read-only: no add, change or delete.
"""

from django.contrib import admin

from .models import (
    AuditEvent,
    Department,
    InventoryItem,
    InventoryLocation,
    InventoryTransaction,
    Requisition,
    RequisitionItem,
    Sequence,
    StockRecord,
    User,
)


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'active', 'created_at')
    search_fields = ('id', 'name')


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'department', 'is_staff', 'is_superuser')
    list_filter = ('role', 'department')
    search_fields = ('username', 'first_name', 'last_name')


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ('sku', 'name', 'unit_of_measure', 'average_cost', 'active')
    list_filter = ('active',)
    search_fields = ('sku', 'name')


@admin.register(InventoryLocation)
class InventoryLocationAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'active')
    search_fields = ('code', 'name')


@admin.register(StockRecord)
class StockRecordAdmin(admin.ModelAdmin):
    list_display = ('item', 'location', 'lot_number', 'serial_number',
                    'quantity_on_hand', 'quantity_reserved', 'quantity_available', 'expiration_date')
    list_filter = ('location',)
    search_fields = ('item__sku', 'item__name', 'lot_number', 'serial_number')


@admin.register(Sequence)
class SequenceAdmin(admin.ModelAdmin):
    list_display = ('name', 'current_value', 'updated_at')


class RequisitionItemInline(admin.TabularInline):
    model = RequisitionItem
    extra = 0
    fk_name = 'requisition'


@admin.register(Requisition)
class RequisitionAdmin(admin.ModelAdmin):
    list_display = ('req_number', 'department', 'status', 'priority', 'requested_by', 'requested_at')
    list_filter = ('status', 'priority', 'department')
    search_fields = ('req_number', 'justification', 'notes')
    inlines = [RequisitionItemInline]


@admin.register(InventoryTransaction)
class InventoryTransactionAdmin(admin.ModelAdmin):
    list_display = ('transaction_number', 'transaction_type', 'item', 'from_location',
                    'quantity', 'total_cost', 'reference_number', 'performed_by', 'created_at')
    list_filter = ('transaction_type',)
    search_fields = ('transaction_number', 'reference_number', 'item__sku')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id',)
