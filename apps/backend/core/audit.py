from __future__ import annotations

import logging
from typing import Any

from django.db import models

from .models import AuditEvent

logger = logging.getLogger(__name__)


def _client_address(request) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()[:64]
    return request.META.get("REMOTE_ADDR", "")[:64]


def _request_fields(request) -> dict[str, str]:
    if request is None:
        return {"path": "", "method": "", "ip_address": "", "user_agent": ""}
    return {
        "path": getattr(request, "path", "")[:255],
        "method": getattr(request, "method", ""),
        "ip_address": _client_address(request),
        "user_agent": request.META.get("HTTP_USER_AGENT", "")[:255],
    }


def create_audit_event(
    *,
    action: str,
    entity_type: str,
    entity_id: str | int | None = None,
    entity_label: str = "",
    status: str = AuditEvent.STATUS_SUCCESS,
    message: str = "",
    metadata: dict[str, Any] | None = None,
    user=None,
    request=None,
) -> AuditEvent:
    """Persist one audit row; anonymous actors are stored as ``None``."""
    actor = user if user is not None else getattr(request, "user", None)
    if actor is not None and not getattr(actor, "is_authenticated", False):
        actor = None

    if status != AuditEvent.STATUS_SUCCESS:
        logger.warning("audit %s %s:%s %s %s", action, entity_type, entity_id or "", status, message)

    return AuditEvent.objects.create(
        user=actor,
        action=action,
        entity_type=entity_type,
        entity_id="" if entity_id is None else str(entity_id),
        entity_label=entity_label[:255],
        status=status,
        message=message,
        metadata=metadata or {},
        **_request_fields(request),
    )


def audit_instance(instance: models.Model, verb: str, *, request=None, **kwargs) -> AuditEvent:
    """Record ``<model>.<verb>`` for a model instance, e.g. ``issue.create``."""
    entity_type = instance._meta.model_name
    return create_audit_event(
        action=f"{entity_type}.{verb}",
        entity_type=entity_type,
        entity_id=instance.pk,
        entity_label=str(instance),
        request=request,
        **kwargs,
    )
