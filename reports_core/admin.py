# reports_core/admin.py

from django.contrib import admin

from .models import (
    AuditLog,
    ClientNotificationConfig,
    ClientNotificationEmail,
    CorrectionItem,
    Report,
    ReportStatusHistory,
    UserProfile,
)


# =============================================================
# Users
# =============================================================

@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "client_code", "updated_at")
    list_filter = ("role",)
    search_fields = ("user__username", "user__email", "client_code")


# =============================================================
# Reports (status and version are workflow-owned)
# =============================================================

class CorrectionItemInline(admin.TabularInline):
    model = CorrectionItem
    extra = 0
    can_delete = False
    fields = ("field_key", "message", "status", "requested_by_role", "resolved_by_role", "created_at")
    readonly_fields = fields


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = (
        "form_number",
        "report_number",
        "report_type",
        "client_code",
        "status",
        "version",
        "updated_at",
    )
    list_filter = ("report_type", "status")
    search_fields = ("form_number", "report_number", "client_code")
    readonly_fields = (
        "status",
        "version",
        "form_number",
        "report_number",
        "prefix",
        "locked_at",
        "created_by",
        "updated_by",
        "created_at",
        "updated_at",
    )
    inlines = [CorrectionItemInline]


# =============================================================
# Status history (READ-ONLY AUDIT LOG)
# =============================================================

@admin.register(ReportStatusHistory)
class ReportStatusHistoryAdmin(admin.ModelAdmin):
    list_display = (
        "report",
        "from_status",
        "to_status",
        "role",
        "performed_by",
        "esigned",
        "forced",
        "version",
        "created_at",
    )
    list_filter = ("role", "forced", "esigned", "to_status")
    search_fields = ("report__form_number", "reason")
    readonly_fields = [f.name for f in ReportStatusHistory._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("action", "user", "report", "created_at")
    search_fields = ("action",)
    readonly_fields = [f.name for f in AuditLog._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


# =============================================================
# Client notifications
# =============================================================

@admin.register(ClientNotificationConfig)
class ClientNotificationConfigAdmin(admin.ModelAdmin):
    list_display = ("client_code", "mode", "updated_at")
    list_filter = ("mode",)
    search_fields = ("client_code",)


@admin.register(ClientNotificationEmail)
class ClientNotificationEmailAdmin(admin.ModelAdmin):
    list_display = ("client_code", "email", "label", "active")
    list_filter = ("active",)
    search_fields = ("client_code", "email", "label")
