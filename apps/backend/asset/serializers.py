from rest_framework import serializers

from .models import (
    Asset,
    AssetCategory,
    AssetGroup,
    AssetLifecycleStatus,
    AssetSensitivity,
    AssetSubCategory,
    CIARating,
)


class AssetCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = AssetCategory
        fields = ["id", "name", "description", "status"]


class AssetSubCategorySerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source="category.name", read_only=True)

    class Meta:
        model = AssetSubCategory
        fields = ["id", "name", "category", "category_name", "description", "status"]


class AssetGroupSerializer(serializers.ModelSerializer):
    class Meta:
        model = AssetGroup
        fields = ["id", "name", "description"]


class AssetLifecycleStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = AssetLifecycleStatus
        fields = ["id", "name", "description", "order"]


class AssetSensitivitySerializer(serializers.ModelSerializer):
    class Meta:
        model = AssetSensitivity
        fields = ["id", "name", "description"]


class CIARatingSerializer(serializers.ModelSerializer):
    class Meta:
        model = CIARating
        fields = ["id", "rating_type", "label", "value"]

    def validate_label(self, value: str) -> str:
        label = value.strip().lower()
        if not label:
            raise serializers.ValidationError("Label cannot be empty.")
        return label


class AssetSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)
    sub_category_name = serializers.CharField(source="sub_category.name", read_only=True, default=None)
    group_name = serializers.CharField(source="group.name", read_only=True, default=None)
    lifecycle_status_name = serializers.CharField(source="lifecycle_status.name", read_only=True, default=None)
    sensitivity_name = serializers.CharField(source="sensitivity.name", read_only=True, default=None)
    department_name = serializers.CharField(source="department.name", read_only=True, default=None)
    owner_username = serializers.CharField(source="owner.username", read_only=True, default=None)
    criticality = serializers.IntegerField(read_only=True)

    class Meta:
        model = Asset
        fields = [
            "id",
            "asset_code",
            "name",
            "description",
            "location",
            "value",
            "acquisition_date",
            "next_review_date",
            "category",
            "category_name",
            "sub_category",
            "sub_category_name",
            "group",
            "group_name",
            "lifecycle_status",
            "lifecycle_status_name",
            "sensitivity",
            "sensitivity_name",
            "department",
            "department_name",
            "owner",
            "owner_username",
            "confidentiality",
            "integrity",
            "availability",
            "criticality",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {"asset_code": {"required": False, "allow_blank": True}}

    def validate_name(self, value: str) -> str:
        name = value.strip()
        if not name:
            raise serializers.ValidationError("Asset name cannot be empty.")
        return name

    def validate(self, attrs: dict) -> dict:
        attrs = super().validate(attrs)

        def current(field: str):
            return attrs.get(field, getattr(self.instance, field, None) if self.instance else None)

        category = current("category")
        sub_category = current("sub_category")
        if sub_category and category and sub_category.category_id != category.id:
            raise serializers.ValidationError({"sub_category": "Sub category does not belong to the selected category."})

        for field, rating_type in (
            ("confidentiality", CIARating.TYPE_CONFIDENTIALITY),
            ("integrity", CIARating.TYPE_INTEGRITY),
            ("availability", CIARating.TYPE_AVAILABILITY),
        ):
            rating = attrs.get(field)
            if rating is not None and rating.rating_type != rating_type:
                raise serializers.ValidationError({field: f"Select a {rating_type} rating."})
        return attrs
