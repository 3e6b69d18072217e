from rest_framework import serializers

from .models import AuditEvent


class AuditEventSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True, default="")

    class Meta:
        model = AuditEvent
        fields = [
            "id",
            "user",
            "username",
            "action",
            "entity_type",
            "entity_id",
            "entity_label",
            "status",
            "message",
            "metadata",
            "path",
            "method",
            "created_at",
        ]
        read_only_fields = fields
