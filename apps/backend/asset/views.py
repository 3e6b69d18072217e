from core.permissions import IsAssetManagerOrReadOnly
from core.viewsets import AuditedModelViewSet

from .models import (
    Asset,
    AssetCategory,
    AssetGroup,
    AssetLifecycleStatus,
    AssetSensitivity,
    AssetSubCategory,
    CIARating,
)
from .serializers import (
    AssetCategorySerializer,
    AssetGroupSerializer,
    AssetLifecycleStatusSerializer,
    AssetSensitivitySerializer,
    AssetSerializer,
    AssetSubCategorySerializer,
    CIARatingSerializer,
)


class AssetCategoryViewSet(AuditedModelViewSet):
    queryset = AssetCategory.objects.order_by("name")
    serializer_class = AssetCategorySerializer
    permission_classes = [IsAssetManagerOrReadOnly]
    search_fields = ("name", "description")
    ordering_fields = ("name", "status")


class AssetSubCategoryViewSet(AuditedModelViewSet):
    queryset = AssetSubCategory.objects.select_related("category").order_by("category__name", "name")
    serializer_class = AssetSubCategorySerializer
    permission_classes = [IsAssetManagerOrReadOnly]
    search_fields = ("name", "description", "category__name")
    ordering_fields = ("name", "status")

    def get_queryset(self):
        qs = super().get_queryset()
        category = self.request.query_params.get("category")
        if category:
            qs = qs.filter(category_id=category)
        return qs


class AssetGroupViewSet(AuditedModelViewSet):
    queryset = AssetGroup.objects.order_by("name")
    serializer_class = AssetGroupSerializer
    permission_classes = [IsAssetManagerOrReadOnly]
    search_fields = ("name", "description")
    ordering_fields = ("name",)


class AssetLifecycleStatusViewSet(AuditedModelViewSet):
    queryset = AssetLifecycleStatus.objects.order_by("order", "name")
    serializer_class = AssetLifecycleStatusSerializer
    permission_classes = [IsAssetManagerOrReadOnly]
    search_fields = ("name", "description")
    ordering_fields = ("order", "name")


class AssetSensitivityViewSet(AuditedModelViewSet):
    queryset = AssetSensitivity.objects.order_by("name")
    serializer_class = AssetSensitivitySerializer
    permission_classes = [IsAssetManagerOrReadOnly]
    search_fields = ("name", "description")
    ordering_fields = ("name",)


class CIARatingViewSet(AuditedModelViewSet):
    queryset = CIARating.objects.order_by("rating_type", "-value")
    serializer_class = CIARatingSerializer
    permission_classes = [IsAssetManagerOrReadOnly]
    ordering_fields = ("rating_type", "value", "label")

    def get_queryset(self):
        qs = super().get_queryset()
        rating_type = self.request.query_params.get("rating_type")
        if rating_type:
            qs = qs.filter(rating_type=rating_type)
        return qs


class AssetViewSet(AuditedModelViewSet):
    serializer_class = AssetSerializer
    permission_classes = [IsAssetManagerOrReadOnly]
    search_fields = ("asset_code", "name", "location")
    ordering_fields = ("asset_code", "name", "value", "next_review_date", "created_at", "updated_at")

    def get_queryset(self):
        qs = Asset.objects.select_related(
            "category",
            "sub_category",
            "group",
            "lifecycle_status",
            "sensitivity",
            "department",
            "owner",
            "confidentiality",
            "integrity",
            "availability",
        ).order_by("asset_code")
        for param, lookup in (
            ("category", "category_id"),
            ("group", "group_id"),
            ("lifecycle_status", "lifecycle_status_id"),
            ("department", "department_id"),
        ):
            value = self.request.query_params.get(param)
            if value:
                qs = qs.filter(**{lookup: value})
        return qs
