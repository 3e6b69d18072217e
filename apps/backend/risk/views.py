from django.http import HttpResponse
from rest_framework import decorators, response, status

from core.audit import create_audit_event
from core.permissions import IsRiskManagerOrReadOnly
from core.viewsets import AuditedModelViewSet

from .models import ControlStrength, ImpactRating, Risk, RiskCategory, RiskLikelihood, RiskRange
from .scoring import export_risks_csv, risk_stats
from .serializers import (
    ControlStrengthSerializer,
    ImpactRatingSerializer,
    RiskCategorySerializer,
    RiskLikelihoodSerializer,
    RiskRangeSerializer,
    RiskSerializer,
)
from .tasks import rerate_all_risks


class RiskCategoryViewSet(AuditedModelViewSet):
    queryset = RiskCategory.objects.order_by("name")
    serializer_class = RiskCategorySerializer
    permission_classes = [IsRiskManagerOrReadOnly]
    search_fields = ("name", "description")
    ordering_fields = ("name", "status", "created_at")


class ControlStrengthViewSet(AuditedModelViewSet):
    queryset = ControlStrength.objects.order_by("score", "name")
    serializer_class = ControlStrengthSerializer
    permission_classes = [IsRiskManagerOrReadOnly]
    ordering_fields = ("score", "name")


class RiskLikelihoodViewSet(AuditedModelViewSet):
    queryset = RiskLikelihood.objects.order_by("score")
    serializer_class = RiskLikelihoodSerializer
    permission_classes = [IsRiskManagerOrReadOnly]
    ordering_fields = ("score", "title")


class ImpactRatingViewSet(AuditedModelViewSet):
    queryset = ImpactRating.objects.order_by("score")
    serializer_class = ImpactRatingSerializer
    permission_classes = [IsRiskManagerOrReadOnly]
    ordering_fields = ("score", "name")


class RiskRangeViewSet(AuditedModelViewSet):
    """Any change to the ranges re-rates existing risks."""

    queryset = RiskRange.objects.order_by("low_range")
    serializer_class = RiskRangeSerializer
    permission_classes = [IsRiskManagerOrReadOnly]
    ordering_fields = ("low_range", "title")

    def perform_create(self, serializer):
        super().perform_create(serializer)
        rerate_all_risks.delay()

    def perform_update(self, serializer):
        super().perform_update(serializer)
        rerate_all_risks.delay()

    def perform_destroy(self, instance):
        super().perform_destroy(instance)
        rerate_all_risks.delay()


class RiskViewSet(AuditedModelViewSet):
    serializer_class = RiskSerializer
    search_fields = ("risk_code", "title", "description")
    permission_classes = [IsRiskManagerOrReadOnly]
    ordering_fields = ("risk_code", "created_at", "updated_at", "due_date", "status", "risk_score")

    def get_queryset(self):
        queryset = Risk.objects.select_related("category", "department", "owner", "control_strength").prefetch_related(
            "assets"
        )
        for param, lookup in (
            ("status", "status"),
            ("category", "category_id"),
            ("department", "department_id"),
            ("risk_rating", "risk_rating"),
            ("response_strategy", "response_strategy"),
        ):
            value = self.request.query_params.get(param)
            if value:
                queryset = queryset.filter(**{lookup: value})
        return queryset.order_by("-created_at")

    @decorators.action(detail=True, methods=["post"], url_path="recalculate")
    def recalculate(self, request, pk=None):
        risk = self.get_object()
        changed = risk.refresh_scores()
        create_audit_event(
            action="risk.scoring.recalculate",
            entity_type="risk",
            entity_id=risk.id,
            entity_label=str(risk),
            metadata={"changed": changed, "risk_score": risk.risk_score, "risk_rating": risk.risk_rating},
            request=request,
        )
        return response.Response(self.get_serializer(risk).data, status=status.HTTP_200_OK)

    @decorators.action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        return response.Response(risk_stats())

    @decorators.action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        content = export_risks_csv(self.filter_queryset(self.get_queryset()))
        resp = HttpResponse(content, content_type="text/csv")
        resp["Content-Disposition"] = 'attachment; filename="risks.csv"'
        return resp
