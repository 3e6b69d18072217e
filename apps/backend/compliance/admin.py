from django.contrib import admin

from .models import AuditCategory, AuditRisk, Control, Framework


class ControlInline(admin.TabularInline):
    model = Control
    fields = ("control_code", "name", "functional_grouping", "status", "owner")
    extra = 0


@admin.register(Framework)
class FrameworkAdmin(admin.ModelAdmin):
    list_display = ("name", "framework_type", "status", "country", "is_custom")
    list_filter = ("framework_type", "status", "is_custom")
    search_fields = ("name",)
    inlines = [ControlInline]


@admin.register(Control)
class ControlAdmin(admin.ModelAdmin):
    list_display = ("control_code", "name", "framework", "status", "department", "owner")
    list_filter = ("framework", "status", "functional_grouping")
    search_fields = ("control_code", "name")


@admin.register(AuditCategory)
class AuditCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active")


@admin.register(AuditRisk)
class AuditRiskAdmin(admin.ModelAdmin):
    list_display = ("risk_id", "name", "department", "residual_score", "risk_level", "status", "creation_date")
    list_filter = ("status", "risk_level", "category")
    search_fields = ("risk_id", "name", "description")
    readonly_fields = ("inherent_score", "residual_score", "risk_level", "created_at", "updated_at")
