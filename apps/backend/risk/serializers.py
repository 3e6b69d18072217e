from django.db import transaction
from rest_framework import serializers

from asset.models import Asset

from .models import ControlStrength, ImpactRating, Risk, RiskCategory, RiskLikelihood, RiskRange


class RiskCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = RiskCategory
        fields = ["id", "name", "description", "color", "status", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]


class ControlStrengthSerializer(serializers.ModelSerializer):
    class Meta:
        model = ControlStrength
        fields = ["id", "name", "score"]


class RiskLikelihoodSerializer(serializers.ModelSerializer):
    class Meta:
        model = RiskLikelihood
        fields = ["id", "title", "score", "time_frame", "probability"]


class ImpactRatingSerializer(serializers.ModelSerializer):
    class Meta:
        model = ImpactRating
        fields = ["id", "name", "score", "description"]


class RiskRangeSerializer(serializers.ModelSerializer):
    class Meta:
        model = RiskRange
        fields = ["id", "title", "color", "low_range", "high_range", "timeline_days", "description"]

    def validate(self, attrs: dict) -> dict:
        attrs = super().validate(attrs)
        low = attrs.get("low_range", self.instance.low_range if self.instance else None)
        high = attrs.get("high_range", self.instance.high_range if self.instance else None)
        if low is not None and high is not None and low > high:
            raise serializers.ValidationError({"high_range": "High range must be greater than or equal to low range."})
        return attrs


class RiskSerializer(serializers.ModelSerializer):
    asset_ids = serializers.PrimaryKeyRelatedField(
        source="assets", queryset=Asset.objects.all(), many=True, required=False
    )
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)
    category_color = serializers.CharField(source="category.color", read_only=True, default=None)
    department_name = serializers.CharField(source="department.name", read_only=True, default=None)
    owner_username = serializers.CharField(source="owner.username", read_only=True, default=None)
    control_strength_name = serializers.CharField(source="control_strength.name", read_only=True, default=None)

    class Meta:
        model = Risk
        fields = [
            "id",
            "risk_code",
            "title",
            "description",
            "category",
            "category_name",
            "category_color",
            "department",
            "department_name",
            "owner",
            "owner_username",
            "asset_ids",
            "control_strength",
            "control_strength_name",
            "likelihood",
            "impact",
            "risk_score",
            "risk_rating",
            "status",
            "response_strategy",
            "due_date",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["risk_score", "risk_rating", "created_at", "updated_at"]
        extra_kwargs = {"risk_code": {"required": False, "allow_blank": True}}

    def validate_title(self, value: str) -> str:
        title = value.strip()
        if not title:
            raise serializers.ValidationError("Title cannot be empty.")
        return title

    def validate(self, attrs: dict) -> dict:
        attrs = super().validate(attrs)
        new_status = attrs.get("status")
        if self.instance and new_status and not self.instance.can_transition_to(new_status):
            raise serializers.ValidationError(
                {"status": f"Invalid transition from {self.instance.status} to {new_status}."}
            )
        return attrs

    @transaction.atomic
    def create(self, validated_data: dict) -> Risk:
        assets = validated_data.pop("assets", [])
        risk = Risk.objects.create(**validated_data)
        risk.assets.set(assets)
        return risk

    @transaction.atomic
    def update(self, instance: Risk, validated_data: dict) -> Risk:
        assets = validated_data.pop("assets", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if assets is not None:
            instance.assets.set(assets)
        return instance
