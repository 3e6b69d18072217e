from django.contrib.auth import get_user_model
from django.db.models import Q
from django.http import Http404, HttpResponse
from rest_framework import decorators, generics, response, status, viewsets
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser

from core.audit import audit_instance
from core.permissions import IsComplianceManagerOrReadOnly, IsGrcAdminOrReadOnly
from core.viewsets import AuditedModelViewSet

from .csv_io import export_issues_csv, import_issues_csv
from .models import Department, Issue, OptionValue, Organization, Process, Regulation, Stakeholder
from .serializers import (
    DepartmentSerializer,
    IssueSerializer,
    OptionValueSerializer,
    OrganizationSerializer,
    ProcessSerializer,
    RegulationSerializer,
    StakeholderSerializer,
    UserSerializer,
)
from .services import issue_stats

User = get_user_model()


class OrganizationProfileView(generics.RetrieveUpdateAPIView):
    serializer_class = OrganizationSerializer
    permission_classes = [IsGrcAdminOrReadOnly]

    def get_object(self):
        organization = Organization.current()
        if organization is None:
            raise Http404("No organization profile has been created.")
        return organization

    def perform_update(self, serializer):
        organization = serializer.save()
        audit_instance(organization, "update", request=self.request)


class DepartmentViewSet(AuditedModelViewSet):
    queryset = Department.objects.order_by("name")
    serializer_class = DepartmentSerializer
    permission_classes = [IsGrcAdminOrReadOnly]
    search_fields = ("name",)
    ordering_fields = ("name", "created_at")


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = UserSerializer
    search_fields = ("username", "email", "profile__full_name")
    ordering_fields = ("username",)

    def get_queryset(self):
        qs = User.objects.filter(is_active=True).select_related("profile__department").order_by("username")
        department = self.request.query_params.get("department")
        if department:
            qs = qs.filter(profile__department_id=department)
        return qs


class RegulationViewSet(AuditedModelViewSet):
    queryset = Regulation.objects.order_by("name")
    serializer_class = RegulationSerializer
    permission_classes = [IsComplianceManagerOrReadOnly]
    search_fields = ("name", "version", "scope")
    ordering_fields = ("name", "status", "created_at")


class ProcessViewSet(AuditedModelViewSet):
    queryset = Process.objects.select_related("department", "owner").order_by("process_code")
    serializer_class = ProcessSerializer
    permission_classes = [IsComplianceManagerOrReadOnly]
    search_fields = ("process_code", "name", "description")
    ordering_fields = ("process_code", "name", "created_at")

    def get_queryset(self):
        qs = super().get_queryset()
        department = self.request.query_params.get("department")
        if department:
            qs = qs.filter(department_id=department)
        return qs


class StakeholderViewSet(AuditedModelViewSet):
    queryset = Stakeholder.objects.select_related("department").order_by("name")
    serializer_class = StakeholderSerializer
    permission_classes = [IsComplianceManagerOrReadOnly]
    search_fields = ("name", "email")
    ordering_fields = ("name", "created_at", "updated_at")

    def get_queryset(self):
        qs = super().get_queryset()
        stakeholder_type = self.request.query_params.get("type")
        status_value = self.request.query_params.get("status")
        department = self.request.query_params.get("department")
        if stakeholder_type:
            qs = qs.filter(stakeholder_type=stakeholder_type)
        if status_value:
            qs = qs.filter(status=status_value)
        if department:
            qs = qs.filter(department_id=department)
        return qs


class OptionValueViewSet(AuditedModelViewSet):
    queryset = OptionValue.objects.order_by("list_key", "id")
    serializer_class = OptionValueSerializer
    permission_classes = [IsComplianceManagerOrReadOnly]
    ordering_fields = ("list_key", "value", "created_at")

    def get_queryset(self):
        qs = super().get_queryset()
        list_key = self.request.query_params.get("list_key")
        if list_key:
            qs = qs.filter(list_key=list_key)
        return qs

    def perform_create(self, serializer):
        option = serializer.save(is_custom=True)
        audit_instance(option, "create", request=self.request)


def filter_issues(qs, params):
    search = (params.get("search") or "").strip()
    if search:
        qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))
    for param, lookup in (
        ("domain", "domain"),
        ("category", "category"),
        ("issue_type", "issue_type"),
        ("status", "status"),
        ("department", "department_id"),
        ("owner", "owner_id"),
    ):
        value = params.get(param)
        if value:
            qs = qs.filter(**{lookup: value})
    return qs


class IssueViewSet(AuditedModelViewSet):
    queryset = (
        Issue.objects.select_related("department", "owner")
        .prefetch_related("regulations", "processes", "stakeholder_needs__stakeholder")
        .order_by("-created_at")
    )
    serializer_class = IssueSerializer
    permission_classes = [IsComplianceManagerOrReadOnly]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    ordering_fields = ("title", "status", "due_date", "created_at", "updated_at")

    def get_queryset(self):
        qs = super().get_queryset()
        if self.action == "list":
            qs = filter_issues(qs, self.request.query_params)
        return qs

    @decorators.action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        issues = filter_issues(Issue.objects.select_related("department").order_by("-created_at"), request.query_params)
        content = export_issues_csv(issues)
        resp = HttpResponse(content, content_type="text/csv")
        resp["Content-Disposition"] = 'attachment; filename="issues.csv"'
        return resp

    @decorators.action(detail=False, methods=["post"], url_path="import", url_name="import")
    def import_csv(self, request):
        upload = request.FILES.get("file")
        if upload is not None:
            raw = upload.read()
            text = raw.decode("utf-8-sig", errors="replace")
        else:
            text = request.data.get("csv", "")
        if not text:
            return response.Response({"error": "Upload a CSV file."}, status=status.HTTP_400_BAD_REQUEST)
        try:
            result = import_issues_csv(text, request=request)
        except ValueError as exc:
            return response.Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return response.Response(result.as_dict(), status=status.HTTP_200_OK)

    @decorators.action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        return response.Response(issue_stats())
