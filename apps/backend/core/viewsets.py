from rest_framework import viewsets

from .audit import audit_instance, create_audit_event


class AuditedModelViewSet(viewsets.ModelViewSet):
    """ModelViewSet that writes an audit event for every create, update and delete."""

    def perform_create(self, serializer):
        instance = serializer.save()
        audit_instance(instance, "create", request=self.request)

    def perform_update(self, serializer):
        instance = serializer.save()
        audit_instance(instance, "update", request=self.request)

    def perform_destroy(self, instance):
        entity_type = instance._meta.model_name
        entity_id, entity_label = instance.pk, str(instance)
        instance.delete()
        create_audit_event(
            action=f"{entity_type}.delete",
            entity_type=entity_type,
            entity_id=entity_id,
            entity_label=entity_label,
            request=self.request,
        )
