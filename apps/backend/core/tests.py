from datetime import timedelta

from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management import call_command
from django.db import IntegrityError
from django.db.models import ProtectedError
from django.test import RequestFactory, SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from asset.models import AssetCategory, AssetSubCategory
from core.audit import audit_instance, create_audit_event
from core.exceptions import api_exception_handler
from core.models import AuditEvent
from core.permissions import ROLE_ASSET_MANAGER, ROLE_GRC_ADMIN, ROLE_NAMES, can_manage_assets, can_manage_risks
from core.tables import ACTION_DELETE, TABLE_KINDS, get_table_kind, kinds_for_section, project_rows
from core.tasks import purge_old_audit_events
from organization.models import Department


class AuditRetentionCommandTests(TestCase):
    def test_purge_audit_events_deletes_old_rows(self):
        old_event = AuditEvent.objects.create(action="issue.create", entity_type="issue", entity_id="1")
        recent_event = AuditEvent.objects.create(action="issue.update", entity_type="issue", entity_id="2")

        AuditEvent.objects.filter(id=old_event.id).update(created_at=timezone.now() - timedelta(days=200))
        call_command("purge_audit_events", days=180)

        self.assertFalse(AuditEvent.objects.filter(id=old_event.id).exists())
        self.assertTrue(AuditEvent.objects.filter(id=recent_event.id).exists())

    def test_purge_audit_events_dry_run_keeps_rows(self):
        old_event = AuditEvent.objects.create(action="issue.create", entity_type="issue", entity_id="3")
        AuditEvent.objects.filter(id=old_event.id).update(created_at=timezone.now() - timedelta(days=200))

        call_command("purge_audit_events", days=180, dry_run=True)
        self.assertTrue(AuditEvent.objects.filter(id=old_event.id).exists())

    @patch("core.tasks.call_command")
    def test_celery_task_invokes_purge_command(self, mocked_call_command):
        purge_old_audit_events()
        mocked_call_command.assert_called_once_with("purge_audit_events", days=180)


class SeedRolesCommandTests(TestCase):
    def test_seed_roles_is_idempotent(self):
        call_command("seed_roles")
        call_command("seed_roles")
        self.assertEqual(Group.objects.filter(name__in=ROLE_NAMES).count(), len(ROLE_NAMES))


class AuditHelperTests(TestCase):
    def test_audit_instance_records_model_action(self):
        department = Department.objects.create(name="Finance")
        event = audit_instance(department, "create")
        self.assertEqual(event.action, "department.create")
        self.assertEqual(event.entity_id, str(department.id))
        self.assertEqual(event.entity_label, "Finance")
        self.assertIsNone(event.user)

    def test_failed_event_keeps_message(self):
        event = create_audit_event(
            action="issue.create",
            entity_type="issue",
            status=AuditEvent.STATUS_FAILED,
            message="title: This field is required.",
        )
        self.assertEqual(event.status, AuditEvent.STATUS_FAILED)
        self.assertEqual(event.entity_id, "")

    def test_request_fields_prefer_forwarded_address(self):
        request = RequestFactory().post(
            "/context/",
            HTTP_X_FORWARDED_FOR="203.0.113.9, 10.0.0.1",
            HTTP_USER_AGENT="pytest",
        )
        event = create_audit_event(action="stakeholder.delete", entity_type="stakeholder", request=request)
        self.assertEqual(event.ip_address, "203.0.113.9")
        self.assertEqual(event.method, "POST")
        self.assertEqual(event.path, "/context/")
        self.assertEqual(event.user_agent, "pytest")


class ExceptionHandlerTests(SimpleTestCase):
    def test_protected_error_maps_to_conflict(self):
        response = api_exception_handler(ProtectedError("in use", set()), {})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn("error", response.data)

    def test_integrity_error_maps_to_conflict(self):
        response = api_exception_handler(IntegrityError("duplicate"), {})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_unrelated_error_is_left_alone(self):
        self.assertIsNone(api_exception_handler(ValueError("boom"), {}))


class SettingsTableTests(TestCase):
    def test_kinds_are_split_by_section(self):
        asset_kinds = {item.kind for item in kinds_for_section("asset")}
        risk_kinds = {item.kind for item in kinds_for_section("risk")}
        self.assertIn("cia-ratings", asset_kinds)
        self.assertIn("risk-ranges", risk_kinds)
        self.assertFalse(asset_kinds & risk_kinds)
        self.assertEqual(asset_kinds | risk_kinds, set(TABLE_KINDS))

    def test_unknown_kind_is_rejected(self):
        with self.assertRaises(LookupError):
            get_table_kind("vendors")

    def test_rows_share_one_shape(self):
        category = AssetCategory.objects.create(name="Hardware")
        AssetSubCategory.objects.create(name="Laptop", category=category)
        table_kind = get_table_kind("asset-sub-categories")

        rows = project_rows(table_kind, table_kind.queryset(), can_manage=True)

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].kind, "asset-sub-categories")
        self.assertEqual(rows[0].cells, ("Laptop", "Hardware", "Active"))
        self.assertEqual(rows[0].actions, (ACTION_DELETE,))

    def test_read_only_rows_have_no_actions(self):
        AssetCategory.objects.create(name="Software")
        table_kind = get_table_kind("asset-categories")
        rows = project_rows(table_kind, table_kind.queryset())
        self.assertEqual(rows[0].actions, ())
        self.assertEqual(rows[0].cells[1], "-")


class RolePermissionTests(TestCase):
    def test_asset_manager_cannot_manage_risks(self):
        user = get_user_model().objects.create_user(username="assets", password="pass1234")
        user.groups.add(Group.objects.create(name=ROLE_ASSET_MANAGER))
        self.assertTrue(can_manage_assets(user))
        self.assertFalse(can_manage_risks(user))


class AuditLogApiTests(APITestCase):
    def setUp(self):
        user_model = get_user_model()
        self.admin_user = user_model.objects.create_user(username="audit_admin", password="pass1234")
        self.viewer_user = user_model.objects.create_user(username="audit_viewer", password="pass1234")
        self.admin_user.groups.add(Group.objects.create(name=ROLE_GRC_ADMIN))
        AuditEvent.objects.create(action="issue.create", entity_type="issue", entity_id="1")
        AuditEvent.objects.create(action="stakeholder.delete", entity_type="stakeholder", entity_id="2")

    def test_viewer_cannot_read_audit_log(self):
        self.client.force_authenticate(self.viewer_user)
        response = self.client.get(reverse("audit-log-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_can_filter_audit_log(self):
        self.client.force_authenticate(self.admin_user)
        response = self.client.get(reverse("audit-log-list"), {"entity_type": "stakeholder"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["action"] for row in response.data], ["stakeholder.delete"])

    def test_healthcheck(self):
        response = self.client.get(reverse("healthcheck"))
        self.assertEqual(response.json()["status"], "ok")
