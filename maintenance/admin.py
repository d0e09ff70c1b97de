from django.contrib import admin
from .models import (
    Asset,
    Attachment,
    HelpDeskEmployee,
    MaintenanceRequest,
    OwnershipChange,
    RequestHistory,
    Vendor,
)


@admin.register(Asset)
class AssetAdmin(admin.ModelAdmin):
    list_display = ['name', 'serial_number', 'category', 'branch', 'status', 'warranty_expiry']
    list_filter = ['status', 'branch', 'category']
    search_fields = ['name', 'serial_number', 'location']


@admin.register(OwnershipChange)
class OwnershipChangeAdmin(admin.ModelAdmin):
    list_display = ['asset', 'previous_owner', 'new_owner', 'changed_at']
    list_filter = ['changed_at']


@admin.register(HelpDeskEmployee)
class HelpDeskEmployeeAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'available', 'workload']
    list_filter = ['available']
    readonly_fields = ['workload']


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ['name', 'hourly_rate', 'response_time', 'rating']


class AttachmentInline(admin.TabularInline):
    model = Attachment
    extra = 0
    readonly_fields = ['file_name', 'file_ref', 'file_size', 'uploaded_at']
    can_delete = False


@admin.register(MaintenanceRequest)
class MaintenanceRequestAdmin(admin.ModelAdmin):
    """Read-only view; requests change only through the request store."""

    list_display = ['reference', 'title', 'status', 'priority', 'category', 'assignee_type', 'submitted_at']
    list_filter = ['status', 'priority', 'category', 'warranty_eligible']
    search_fields = ['reference', 'title', 'description']
    inlines = [AttachmentInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(RequestHistory)
class RequestHistoryAdmin(admin.ModelAdmin):
    list_display = ['request', 'action', 'changed_by', 'comment', 'timestamp']
    list_filter = ['action']
    readonly_fields = ['timestamp']
