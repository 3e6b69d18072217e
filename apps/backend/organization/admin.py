from django.contrib import admin

from .models import (
    Department,
    Issue,
    IssueStakeholderNeed,
    OptionValue,
    Organization,
    Process,
    Regulation,
    Stakeholder,
    UserProfile,
)


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("name", "head_office_location", "employee_count", "updated_at")


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("name", "created_at")
    search_fields = ("name",)


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "full_name", "designation", "department")
    list_filter = ("department",)
    search_fields = ("user__username", "full_name")


@admin.register(Regulation)
class RegulationAdmin(admin.ModelAdmin):
    list_display = ("name", "version", "status")
    list_filter = ("status",)
    search_fields = ("name",)


@admin.register(Process)
class ProcessAdmin(admin.ModelAdmin):
    list_display = ("process_code", "name", "process_type", "department", "status")
    list_filter = ("process_type", "status")
    search_fields = ("process_code", "name")


@admin.register(Stakeholder)
class StakeholderAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "stakeholder_type", "status", "department")
    list_filter = ("stakeholder_type", "status")
    search_fields = ("name", "email")


@admin.register(OptionValue)
class OptionValueAdmin(admin.ModelAdmin):
    list_display = ("list_key", "value", "is_custom", "created_at")
    list_filter = ("list_key", "is_custom")


class IssueStakeholderNeedInline(admin.TabularInline):
    model = IssueStakeholderNeed
    extra = 0


@admin.register(Issue)
class IssueAdmin(admin.ModelAdmin):
    list_display = ("title", "domain", "category", "status", "department", "owner", "due_date")
    list_filter = ("status", "domain", "category")
    search_fields = ("title", "description")
    filter_horizontal = ("regulations", "processes")
    inlines = [IssueStakeholderNeedInline]
