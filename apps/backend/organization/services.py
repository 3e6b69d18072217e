from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db.models import Count
from rest_framework import serializers

from core.audit import audit_instance, create_audit_event
from core.models import AuditEvent

from .models import Department, Issue, OptionValue, Process, Regulation, Stakeholder
from .serializers import IssueSerializer
from .wizard import OPTION_LISTS, IssueDraft, ReferenceData, StakeholderNeed, StakeholderRef, UserRef

logger = logging.getLogger(__name__)

User = get_user_model()


class IssueSubmitError(Exception):
    pass


def option_lists() -> dict[str, list[str]]:
    return {list_key: OptionValue.values_for(list_key) for list_key in OPTION_LISTS}


def persist_option(list_key: str, value: str, *, request=None) -> OptionValue | None:
    """Store a user-entered option so it survives a reload. Defaults are never stored."""
    cleaned = (value or "").strip()
    if not cleaned or cleaned in OptionValue.DEFAULTS.get(list_key, []):
        return None
    option, created = OptionValue.objects.get_or_create(
        list_key=list_key,
        value=cleaned,
        defaults={"is_custom": True},
    )
    if created:
        audit_instance(option, "create", request=request)
    return option


def load_reference_data() -> ReferenceData:
    users = {}
    for user in User.objects.filter(is_active=True).select_related("profile").order_by("username"):
        profile = getattr(user, "profile", None)
        users[user.pk] = UserRef(
            name=profile.display_name if profile else (user.get_full_name() or user.get_username()),
            department_id=profile.department_id if profile else None,
        )
    return ReferenceData(
        departments=dict(Department.objects.values_list("id", "name")),
        users=users,
        regulations=dict(Regulation.objects.values_list("id", "name")),
        processes={process.pk: str(process) for process in Process.objects.all()},
        stakeholders={
            stakeholder.pk: StakeholderRef(name=stakeholder.name, stakeholder_type=stakeholder.stakeholder_type)
            for stakeholder in Stakeholder.objects.all()
        },
    )


def draft_from_issue(issue: Issue) -> IssueDraft:
    return IssueDraft(
        title=issue.title,
        description=issue.description,
        domain=issue.domain,
        category=issue.category,
        issue_type=issue.issue_type,
        status=issue.status,
        due_date=issue.due_date.isoformat() if issue.due_date else "",
        department_id=issue.department_id,
        owner_id=issue.owner_id,
        selected_regulations=list(issue.regulations.values_list("id", flat=True)),
        selected_processes=list(issue.processes.values_list("id", flat=True)),
        stakeholder_needs=[
            StakeholderNeed(stakeholder_id=need.stakeholder_id, need_expectation=need.need_expectation)
            for need in issue.stakeholder_needs.all()
        ],
    )


def submit_issue_draft(draft: IssueDraft, issue_id=None, *, request=None) -> Issue:
    """Create or update an issue from a wizard draft through ``IssueSerializer``.

    Failures are audited and raised as ``IssueSubmitError`` carrying a
    one-line message, so the wizard can keep the draft and show the reason.
    """
    verb = "update" if issue_id else "create"
    try:
        instance = Issue.objects.get(pk=issue_id) if issue_id else None
        serializer = IssueSerializer(instance=instance, data=draft.to_payload(), context={"request": request})
        serializer.is_valid(raise_exception=True)
        issue = serializer.save()
    except (serializers.ValidationError, Issue.DoesNotExist, DatabaseError) as exc:
        create_audit_event(
            action=f"issue.{verb}",
            entity_type="issue",
            entity_id=issue_id,
            entity_label=draft.title[:255],
            status=AuditEvent.STATUS_FAILED,
            message=str(getattr(exc, "detail", exc)),
            request=request,
        )
        raise IssueSubmitError(error_message(exc, "Failed to save issue.")) from exc
    audit_instance(issue, verb, request=request)
    logger.info("Issue %s %sd from wizard", issue.pk, verb)
    return issue


def issue_stats() -> dict:
    def grouped(field: str) -> dict[str, int]:
        rows = Issue.objects.values(field).annotate(total=Count("id")).order_by(field)
        return {row[field] or "-": row["total"] for row in rows}

    return {
        "total": Issue.objects.count(),
        "open": Issue.objects.exclude(status__in=[Issue.STATUS_RESOLVED, Issue.STATUS_CLOSED]).count(),
        "by_status": grouped("status"),
        "by_domain": grouped("domain"),
        "by_category": grouped("category"),
    }


def error_message(exc: Exception, fallback: str = "Failed to save.") -> str:
    """Flatten a DRF error payload into one line for a flash message."""
    detail = getattr(exc, "detail", None)
    if detail is None:
        return str(exc) or fallback
    if isinstance(detail, dict):
        parts = []
        for field, messages in detail.items():
            if isinstance(messages, (list, tuple)):
                messages = " ".join(str(message) for message in messages)
            parts.append(f"{field}: {messages}")
        return "; ".join(parts) or fallback
    if isinstance(detail, (list, tuple)):
        return " ".join(str(item) for item in detail) or fallback
    return str(detail) or fallback
