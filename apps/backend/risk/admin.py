from django.contrib import admin

from .models import ControlStrength, ImpactRating, Risk, RiskCategory, RiskLikelihood, RiskRange


@admin.register(RiskCategory)
class RiskCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "color", "status")
    search_fields = ("name",)


@admin.register(ControlStrength)
class ControlStrengthAdmin(admin.ModelAdmin):
    list_display = ("name", "score")


@admin.register(RiskLikelihood)
class RiskLikelihoodAdmin(admin.ModelAdmin):
    list_display = ("score", "title", "time_frame", "probability")


@admin.register(ImpactRating)
class ImpactRatingAdmin(admin.ModelAdmin):
    list_display = ("score", "name")


@admin.register(RiskRange)
class RiskRangeAdmin(admin.ModelAdmin):
    list_display = ("title", "low_range", "high_range", "color", "timeline_days")


@admin.register(Risk)
class RiskAdmin(admin.ModelAdmin):
    list_display = ("risk_code", "title", "category", "risk_score", "risk_rating", "status", "owner", "due_date")
    list_filter = ("status", "risk_rating", "category", "response_strategy")
    search_fields = ("risk_code", "title", "description")
    readonly_fields = ("risk_score", "risk_rating", "created_at", "updated_at")
    filter_horizontal = ("assets",)
