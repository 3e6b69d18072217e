from django.contrib import admin

from .models import (
    Asset,
    AssetCategory,
    AssetGroup,
    AssetLifecycleStatus,
    AssetSensitivity,
    AssetSubCategory,
    CIARating,
)


@admin.register(AssetCategory)
class AssetCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "status")
    search_fields = ("name",)


@admin.register(AssetSubCategory)
class AssetSubCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "status")
    list_filter = ("category",)
    search_fields = ("name",)


@admin.register(AssetGroup)
class AssetGroupAdmin(admin.ModelAdmin):
    list_display = ("name",)


@admin.register(AssetLifecycleStatus)
class AssetLifecycleStatusAdmin(admin.ModelAdmin):
    list_display = ("order", "name")


@admin.register(AssetSensitivity)
class AssetSensitivityAdmin(admin.ModelAdmin):
    list_display = ("name",)


@admin.register(CIARating)
class CIARatingAdmin(admin.ModelAdmin):
    list_display = ("rating_type", "label", "value")
    list_filter = ("rating_type",)


@admin.register(Asset)
class AssetAdmin(admin.ModelAdmin):
    list_display = ("asset_code", "name", "category", "lifecycle_status", "department", "owner")
    search_fields = ("asset_code", "name", "location")
    list_filter = ("category", "lifecycle_status", "group", "sensitivity")
