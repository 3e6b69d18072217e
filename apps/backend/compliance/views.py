from django.db.models import Count
from rest_framework import decorators, response

from core.permissions import IsComplianceManagerOrReadOnly
from core.viewsets import AuditedModelViewSet

from .models import AuditCategory, AuditRisk, Control, Framework
from .serializers import AuditCategorySerializer, AuditRiskSerializer, ControlSerializer, FrameworkSerializer


def _filter_params(queryset, params, mapping):
    for param, lookup in mapping:
        value = params.get(param)
        if value:
            queryset = queryset.filter(**{lookup: value})
    return queryset


class FrameworkViewSet(AuditedModelViewSet):
    serializer_class = FrameworkSerializer
    permission_classes = [IsComplianceManagerOrReadOnly]
    search_fields = ("name", "description", "industry")
    ordering_fields = ("name", "status", "created_at")

    def get_queryset(self):
        queryset = Framework.objects.annotate(control_count=Count("controls"))
        queryset = _filter_params(
            queryset,
            self.request.query_params,
            (("status", "status"), ("framework_type", "framework_type")),
        )
        return queryset.order_by("name")

    @decorators.action(detail=True, methods=["get"], url_path="summary")
    def summary(self, request, pk=None):
        return response.Response(self.get_object().compliance_summary())


class ControlViewSet(AuditedModelViewSet):
    serializer_class = ControlSerializer
    permission_classes = [IsComplianceManagerOrReadOnly]
    search_fields = ("control_code", "name", "description", "control_question")
    ordering_fields = ("control_code", "name", "status", "updated_at")

    def get_queryset(self):
        queryset = Control.objects.select_related("framework", "department", "owner")
        return _filter_params(
            queryset,
            self.request.query_params,
            (
                ("framework", "framework_id"),
                ("status", "status"),
                ("functional_grouping", "functional_grouping"),
                ("department", "department_id"),
                ("owner", "owner_id"),
            ),
        )


class AuditCategoryViewSet(AuditedModelViewSet):
    queryset = AuditCategory.objects.order_by("name")
    serializer_class = AuditCategorySerializer
    permission_classes = [IsComplianceManagerOrReadOnly]
    search_fields = ("name", "description")


class AuditRiskViewSet(AuditedModelViewSet):
    """Internal-audit risk register; ``year`` filters on the creation date."""

    serializer_class = AuditRiskSerializer
    permission_classes = [IsComplianceManagerOrReadOnly]
    search_fields = ("risk_id", "name", "description")
    ordering_fields = ("risk_id", "creation_date", "residual_score", "status")

    def get_queryset(self):
        queryset = AuditRisk.objects.select_related("department", "category")
        params = self.request.query_params
        year = params.get("year", "")
        if year.isdigit():
            queryset = queryset.filter(creation_date__year=int(year))
        queryset = _filter_params(
            queryset,
            params,
            (
                ("department", "department_id"),
                ("category", "category_id"),
                ("status", "status"),
                ("risk_level", "risk_level"),
            ),
        )
        return queryset.order_by("-created_at")

    @decorators.action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        by_level = {
            row["risk_level"]: row["total"]
            for row in queryset.order_by().values("risk_level").annotate(total=Count("id"))
        }
        return response.Response(
            {
                "total": sum(by_level.values()),
                "open": queryset.exclude(status=AuditRisk.STATUS_CLOSED).count(),
                "by_level": by_level,
            }
        )
