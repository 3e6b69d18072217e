from django.conf import settings
from django.db import models


class AuditEvent(models.Model):
    STATUS_SUCCESS = "success"
    STATUS_FAILED = "failed"
    STATUS_DENIED = "denied"
    STATUS_CHOICES = [
        (STATUS_SUCCESS, "Success"),
        (STATUS_FAILED, "Failed"),
        (STATUS_DENIED, "Denied"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_events",
    )
    action = models.CharField(max_length=128)
    entity_type = models.CharField(max_length=64)
    entity_id = models.CharField(max_length=64, blank=True)
    entity_label = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_SUCCESS)
    message = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    path = models.CharField(max_length=255, blank=True)
    method = models.CharField(max_length=16, blank=True)
    ip_address = models.CharField(max_length=64, blank=True)
    user_agent = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="core_audit_created_idx"),
            models.Index(fields=["action", "entity_type"], name="core_audit_action_idx"),
            models.Index(fields=["status"], name="core_audit_status_idx"),
        ]

    def __str__(self) -> str:
        target = self.entity_label or f"{self.entity_type}:{self.entity_id}"
        return f"{self.created_at:%Y-%m-%d %H:%M} {self.action} {target} ({self.status})"
