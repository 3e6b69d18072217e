from django.contrib import admin

from .models import AuditEvent


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ("created_at", "action", "entity_type", "entity_label", "status", "user")
    list_filter = ("status", "action", "entity_type", "created_at")
    search_fields = ("action", "entity_type", "entity_id", "entity_label", "message", "user__username")
    ordering = ("-created_at",)
    readonly_fields = ("created_at",)
