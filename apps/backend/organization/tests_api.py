from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from core.models import AuditEvent
from core.permissions import ROLE_COMPLIANCE_MANAGER, ROLE_GRC_ADMIN
from organization.models import (
    Department,
    Issue,
    OptionValue,
    Organization,
    Process,
    Regulation,
    Stakeholder,
    UserProfile,
)


class OrganizationApiTestCase(APITestCase):
    def setUp(self):
        user_model = get_user_model()
        self.admin_user = user_model.objects.create_user(username="grc_admin", password="pass1234")
        self.manager_user = user_model.objects.create_user(username="compliance", password="pass1234")
        self.viewer_user = user_model.objects.create_user(username="viewer", password="pass1234")

        admin_group, _ = Group.objects.get_or_create(name=ROLE_GRC_ADMIN)
        manager_group, _ = Group.objects.get_or_create(name=ROLE_COMPLIANCE_MANAGER)
        self.admin_user.groups.add(admin_group)
        self.manager_user.groups.add(manager_group)

        self.it = Department.objects.create(name="IT")
        self.finance = Department.objects.create(name="Finance")
        UserProfile.objects.create(user=self.manager_user, full_name="Casey Compliance", department=self.it)
        self.board = Stakeholder.objects.create(name="Board", stakeholder_type=Stakeholder.TYPE_INTERNAL)
        self.regulator = Stakeholder.objects.create(name="Regulator", stakeholder_type=Stakeholder.TYPE_EXTERNAL)
        self.iso = Regulation.objects.create(name="ISO 27001")
        self.onboarding = Process.objects.create(name="Onboarding", department=self.it)


class IssueApiTests(OrganizationApiTestCase):
    def _payload(self, **overrides):
        payload = {
            "title": "  Access review overdue  ",
            "domain": "IT",
            "category": "Security",
            "status": Issue.STATUS_OPEN,
            "department": self.it.id,
            "owner": self.manager_user.id,
            "regulation_ids": [self.iso.id],
            "process_ids": [self.onboarding.id],
            "stakeholder_needs": [
                {"stakeholder": self.regulator.id, "need_expectation": "Transparency"},
                {"stakeholder": self.board.id, "need_expectation": "Timely reporting"},
            ],
        }
        payload.update(overrides)
        return payload

    def test_viewer_cannot_create_issue(self):
        self.client.force_authenticate(self.viewer_user)
        response = self.client.post(reverse("issue-list"), data=self._payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_viewer_can_list_issues(self):
        Issue.objects.create(title="Visible")
        self.client.force_authenticate(self.viewer_user)
        response = self.client.get(reverse("issue-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_manager_creates_issue_with_links(self):
        self.client.force_authenticate(self.manager_user)
        response = self.client.post(reverse("issue-list"), data=self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        issue = Issue.objects.get(id=response.data["id"])
        self.assertEqual(issue.title, "Access review overdue")
        self.assertEqual(list(issue.regulations.all()), [self.iso])
        self.assertEqual(list(issue.processes.all()), [self.onboarding])
        self.assertEqual(
            [need["stakeholder_name"] for need in response.data["stakeholder_needs"]],
            ["Regulator", "Board"],
        )
        self.assertEqual(response.data["department_name"], "IT")
        self.assertTrue(AuditEvent.objects.filter(action="issue.create", entity_id=str(issue.id)).exists())

    def test_blank_title_is_rejected(self):
        self.client.force_authenticate(self.manager_user)
        response = self.client.post(reverse("issue-list"), data=self._payload(title="   "), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("title", response.data)

    def test_update_replaces_needs_only_when_sent(self):
        self.client.force_authenticate(self.manager_user)
        created = self.client.post(reverse("issue-list"), data=self._payload(), format="json").data
        detail_url = reverse("issue-detail", args=[created["id"]])

        response = self.client.patch(detail_url, data={"status": Issue.STATUS_IN_PROGRESS}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["stakeholder_needs"]), 2)

        response = self.client.patch(
            detail_url,
            data={"stakeholder_needs": [{"stakeholder": self.board.id, "need_expectation": "Compliance"}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([need["need_expectation"] for need in response.data["stakeholder_needs"]], ["Compliance"])

    def test_list_filters(self):
        Issue.objects.create(title="Payroll error", domain="Internal", category="Finance", department=self.finance)
        Issue.objects.create(title="Phishing wave", domain="IT", category="Security", department=self.it)
        self.client.force_authenticate(self.viewer_user)

        response = self.client.get(reverse("issue-list"), {"domain": "IT"})
        self.assertEqual([row["title"] for row in response.data], ["Phishing wave"])

        response = self.client.get(reverse("issue-list"), {"department": self.finance.id})
        self.assertEqual([row["title"] for row in response.data], ["Payroll error"])

        response = self.client.get(reverse("issue-list"), {"search": "phish"})
        self.assertEqual([row["title"] for row in response.data], ["Phishing wave"])

    def test_export_csv(self):
        Issue.objects.create(title="B, Inc.", domain="", category="", status="", department=self.it)
        self.client.force_authenticate(self.viewer_user)
        response = self.client.get(reverse("issue-export"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn('"B, Inc.","","","","","","IT"', response.content.decode())

    def test_import_csv_upload(self):
        self.client.force_authenticate(self.manager_user)
        upload = SimpleUploadedFile(
            "issues.csv",
            b"Title,Domain,Issue Type\nVendor breach,External,Data hack\n,Internal,\n",
            content_type="text/csv",
        )
        response = self.client.post(reverse("issue-import"), data={"file": upload}, format="multipart")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["created"], 1)
        self.assertEqual(response.data["skipped"], 1)
        self.assertEqual(Issue.objects.get().issue_type, "Data hack")

    def test_import_without_title_column(self):
        self.client.force_authenticate(self.manager_user)
        response = self.client.post(reverse("issue-import"), data={"csv": "Domain\nIT\n"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("error", response.data)

    def test_viewer_cannot_import(self):
        self.client.force_authenticate(self.viewer_user)
        response = self.client.post(reverse("issue-import"), data={"csv": "Title\nX\n"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_stats(self):
        Issue.objects.create(title="One", status=Issue.STATUS_OPEN)
        Issue.objects.create(title="Two", status=Issue.STATUS_CLOSED)
        self.client.force_authenticate(self.viewer_user)
        response = self.client.get(reverse("issue-stats"))
        self.assertEqual(response.data["total"], 2)
        self.assertEqual(response.data["open"], 1)
        self.assertEqual(response.data["by_status"], {"Closed": 1, "Open": 1})


class StakeholderApiTests(OrganizationApiTestCase):
    def test_create_uses_type_alias(self):
        self.client.force_authenticate(self.manager_user)
        response = self.client.post(
            reverse("stakeholder-list"),
            data={"name": " Auditor ", "type": Stakeholder.TYPE_THIRD_PARTY, "email": "audit@example.com"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        stakeholder = Stakeholder.objects.get(id=response.data["id"])
        self.assertEqual(stakeholder.name, "Auditor")
        self.assertEqual(stakeholder.stakeholder_type, Stakeholder.TYPE_THIRD_PARTY)

    def test_name_required(self):
        self.client.force_authenticate(self.manager_user)
        response = self.client.post(reverse("stakeholder-list"), data={"name": ""}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_type(self):
        self.client.force_authenticate(self.viewer_user)
        response = self.client.get(reverse("stakeholder-list"), {"type": Stakeholder.TYPE_EXTERNAL})
        self.assertEqual([row["name"] for row in response.data], ["Regulator"])

    def test_delete_is_audited(self):
        self.client.force_authenticate(self.manager_user)
        response = self.client.delete(reverse("stakeholder-detail", args=[self.board.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(
            AuditEvent.objects.filter(action="stakeholder.delete", entity_id=str(self.board.id), entity_label="Board").exists()
        )


class ReferenceApiTests(OrganizationApiTestCase):
    def test_users_filtered_by_department(self):
        self.client.force_authenticate(self.viewer_user)
        response = self.client.get(reverse("user-list"), {"department": self.it.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["username"] for row in response.data], ["compliance"])
        self.assertEqual(response.data[0]["full_name"], "Casey Compliance")
        self.assertEqual(response.data[0]["department_name"], "IT")

    def test_users_are_read_only(self):
        self.client.force_authenticate(self.admin_user)
        response = self.client.post(reverse("user-list"), data={"username": "x"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_only_admin_manages_departments(self):
        self.client.force_authenticate(self.manager_user)
        response = self.client.post(reverse("department-list"), data={"name": "Legal"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin_user)
        response = self.client.post(reverse("department-list"), data={"name": "Legal"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_process_code_is_generated(self):
        self.client.force_authenticate(self.manager_user)
        response = self.client.post(reverse("process-list"), data={"name": "Payroll"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["process_code"], "PRO2")

    def test_custom_option_value(self):
        self.client.force_authenticate(self.manager_user)
        response = self.client.post(
            reverse("option-value-list"), data={"list_key": "category", "value": "Legal"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(OptionValue.objects.get(value="Legal").is_custom)
        self.assertEqual(OptionValue.values_for("category")[-1], "Legal")

    def test_default_option_value_is_rejected(self):
        self.client.force_authenticate(self.manager_user)
        response = self.client.post(
            reverse("option-value-list"), data={"list_key": "category", "value": "Finance"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class OrganizationProfileApiTests(OrganizationApiTestCase):
    def test_missing_profile_returns_404(self):
        self.client.force_authenticate(self.viewer_user)
        response = self.client.get(reverse("organization-profile"))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_updates_profile(self):
        Organization.objects.create(name="Acme")
        self.client.force_authenticate(self.manager_user)
        response = self.client.patch(reverse("organization-profile"), data={"employee_count": 10}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin_user)
        response = self.client.patch(
            reverse("organization-profile"), data={"employee_count": 120, "vision": "Trusted"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Organization.current().employee_count, 120)
        self.assertTrue(AuditEvent.objects.filter(action="organization.update").exists())
