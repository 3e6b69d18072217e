from rest_framework import viewsets

from .models import AuditEvent
from .permissions import CanViewAuditLog
from .serializers import AuditEventSerializer


class AuditEventViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = AuditEventSerializer
    permission_classes = [CanViewAuditLog]
    search_fields = ("action", "entity_type", "entity_id", "entity_label", "message")
    ordering_fields = ("created_at", "action", "status")

    def get_queryset(self):
        queryset = AuditEvent.objects.select_related("user").order_by("-created_at")
        for param in ("action", "entity_type", "status"):
            value = self.request.query_params.get(param, "").strip()
            if value:
                queryset = queryset.filter(**{param: value})
        return queryset
