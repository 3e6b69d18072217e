from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.contrib.messages import get_messages
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from django.urls import reverse

from asset.models import AssetCategory, AssetSubCategory
from core.models import AuditEvent
from core.permissions import ROLE_ASSET_MANAGER, ROLE_COMPLIANCE_MANAGER, ROLE_GRC_ADMIN, ROLE_RISK_MANAGER
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
from risk.models import RiskRange


class WebUiTestCase(TestCase):
    def setUp(self):
        user_model = get_user_model()
        self.admin = user_model.objects.create_user(username="admin1", password="pass1234")
        self.manager = user_model.objects.create_user(username="manager1", password="pass1234")
        self.viewer = user_model.objects.create_user(username="viewer1", password="pass1234")
        self.asset_manager = user_model.objects.create_user(username="assets1", password="pass1234")
        self.risk_manager = user_model.objects.create_user(username="risks1", password="pass1234")
        for user, role in (
            (self.admin, ROLE_GRC_ADMIN),
            (self.manager, ROLE_COMPLIANCE_MANAGER),
            (self.asset_manager, ROLE_ASSET_MANAGER),
            (self.risk_manager, ROLE_RISK_MANAGER),
        ):
            group, _ = Group.objects.get_or_create(name=role)
            user.groups.add(group)

        self.department = Department.objects.create(name="IT")
        self.stakeholder = Stakeholder.objects.create(name="Regulator", stakeholder_type=Stakeholder.TYPE_EXTERNAL)
        self.regulation = Regulation.objects.create(name="ISO 27001")
        self.process = Process.objects.create(name="Incident Response", department=self.department)

    def login(self, username):
        self.client.login(username=username, password="pass1234")

    def messages_of(self, response):
        return [str(message) for message in get_messages(response.wsgi_request)]


class PageAccessTests(WebUiTestCase):
    def test_dashboard_requires_login(self):
        response = self.client.get(reverse("webui:dashboard"))
        self.assertEqual(response.status_code, 302)

    def test_login_page_renders(self):
        response = self.client.get(reverse("webui:login"))
        self.assertEqual(response.status_code, 200)

    def test_dashboard_shows_stats_cards(self):
        Issue.objects.create(title="Open issue")
        self.login("viewer1")
        response = self.client.get(reverse("webui:dashboard"))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Open Issues")
        labels = [card["label"] for card in response.context["stats_cards"]]
        self.assertIn("High / Critical Risks", labels)
        self.assertEqual(response.context["stats_cards"][0]["value"], 1)

    def test_audit_log_is_admin_only(self):
        self.login("viewer1")
        response = self.client.get(reverse("webui:audit-log"))
        self.assertRedirects(response, reverse("webui:dashboard"))

        self.login("admin1")
        response = self.client.get(reverse("webui:audit-log"))
        self.assertEqual(response.status_code, 200)


class OrganizationProfilePageTests(WebUiTestCase):
    def test_admin_saves_profile(self):
        self.login("admin1")
        response = self.client.post(reverse("webui:organization"), data={"name": " Acme Corp ", "employee_count": 250})
        self.assertRedirects(response, reverse("webui:organization"))
        organization = Organization.current()
        self.assertEqual(organization.name, "Acme Corp")
        self.assertTrue(AuditEvent.objects.filter(action="organization.update").exists())

    def test_viewer_cannot_save_profile(self):
        self.login("viewer1")
        self.client.post(reverse("webui:organization"), data={"name": "Hijack"})
        self.assertIsNone(Organization.current())


class ContextPageTests(WebUiTestCase):
    def test_filters(self):
        Stakeholder.objects.create(name="Board", stakeholder_type=Stakeholder.TYPE_INTERNAL)
        Issue.objects.create(title="Phishing", domain="IT", department=self.department)
        Issue.objects.create(title="Budget overrun", domain="Internal")
        self.login("viewer1")

        response = self.client.get(reverse("webui:context"), {"type": Stakeholder.TYPE_EXTERNAL, "domain": "IT"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item.name for item in response.context["stakeholders"]], ["Regulator"])
        self.assertEqual([item.title for item in response.context["issues"]], ["Phishing"])

    def test_manager_deletes_stakeholder(self):
        self.login("manager1")
        self.client.post(reverse("webui:context"), data={"action": "delete_stakeholder", "stakeholder_id": self.stakeholder.id})
        self.assertFalse(Stakeholder.objects.filter(id=self.stakeholder.id).exists())
        self.assertTrue(AuditEvent.objects.filter(action="stakeholder.delete", entity_label="Regulator").exists())

    def test_viewer_cannot_delete_issue(self):
        issue = Issue.objects.create(title="Keep")
        self.login("viewer1")
        self.client.post(reverse("webui:context"), data={"action": "delete_issue", "issue_id": issue.id})
        self.assertTrue(Issue.objects.filter(id=issue.id).exists())

    def test_export_csv(self):
        Issue.objects.create(title="B, Inc.", domain="", category="", status="", department=self.department)
        self.login("viewer1")
        response = self.client.get(reverse("webui:issue-export"))
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn('"B, Inc.","","","","","","IT"', response.content.decode())

    def test_import_csv(self):
        self.login("manager1")
        upload = SimpleUploadedFile("issues.csv", b"Title,Status\nAudit finding,Open\n,Open\n", content_type="text/csv")
        response = self.client.post(reverse("webui:issue-import"), data={"file": upload})
        self.assertRedirects(response, reverse("webui:context"))
        self.assertEqual(list(Issue.objects.values_list("title", flat=True)), ["Audit finding"])
        self.assertIn("Imported 1 issues, skipped 1 rows.", self.messages_of(response))


class StakeholderFormTests(WebUiTestCase):
    def test_create_stakeholder(self):
        self.login("manager1")
        response = self.client.post(
            reverse("webui:stakeholder-new"),
            data={"name": "Supplier", "email": "", "stakeholder_type": Stakeholder.TYPE_THIRD_PARTY, "status": "Active"},
        )
        self.assertRedirects(response, reverse("webui:context"))
        self.assertTrue(Stakeholder.objects.filter(name="Supplier", department__isnull=True).exists())
        self.assertTrue(AuditEvent.objects.filter(action="stakeholder.create").exists())

    def test_blank_name_is_rejected(self):
        self.login("manager1")
        response = self.client.post(
            reverse("webui:stakeholder-new"),
            data={"name": "  ", "stakeholder_type": Stakeholder.TYPE_INTERNAL, "status": "Active"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Stakeholder.objects.filter(stakeholder_type=Stakeholder.TYPE_INTERNAL).exists())

    def test_edit_stakeholder(self):
        self.login("manager1")
        self.client.post(
            reverse("webui:stakeholder-edit", args=[self.stakeholder.id]),
            data={"name": "Regulator", "stakeholder_type": Stakeholder.TYPE_EXTERNAL, "status": "Inactive"},
        )
        self.stakeholder.refresh_from_db()
        self.assertEqual(self.stakeholder.status, "Inactive")


class IssueWizardPageTests(WebUiTestCase):
    def info_step(self, **overrides):
        data = {
            "action": "next",
            "title": "Laptop theft",
            "description": "",
            "domain": "Internal",
            "category": "Finance",
            "issue_type": "",
            "status": Issue.STATUS_OPEN,
            "due_date": "",
            "department": str(self.department.id),
            "owner": "",
        }
        data.update(overrides)
        return data

    def wizard_state(self):
        return self.client.session["issue_wizard"]

    def post(self, data):
        return self.client.post(reverse("webui:issue-wizard"), data=data)

    def test_viewer_cannot_start_wizard(self):
        self.login("viewer1")
        response = self.client.get(reverse("webui:issue-new"))
        self.assertRedirects(response, reverse("webui:context"))
        self.assertNotIn("issue_wizard", self.client.session)

    def test_full_flow_creates_issue(self):
        self.login("manager1")
        self.assertRedirects(self.client.get(reverse("webui:issue-new")), reverse("webui:issue-wizard"))
        self.assertEqual(self.client.get(reverse("webui:issue-wizard")).status_code, 200)

        self.post(self.info_step())
        self.assertEqual(self.wizard_state()["current_step"], 2)

        self.post({"action": "next", "regulations": [self.regulation.id]})
        self.post({"action": "open_picker"})
        self.post({"action": "link_processes", "processes": [self.process.id]})
        self.assertEqual(self.wizard_state()["draft"]["selected_processes"], [self.process.id])
        self.post({"action": "next"})
        self.assertEqual(self.wizard_state()["current_step"], 4)

        self.post(
            {
                "action": "add_need",
                "stakeholder_type": "",
                "stakeholder": str(self.stakeholder.id),
                "need_expectation": "Compliance",
            }
        )
        self.post({"action": "next", "stakeholder_type": "", "stakeholder": "", "need_expectation": ""})
        self.assertEqual(self.wizard_state()["current_step"], 5)
        preview = self.client.get(reverse("webui:issue-wizard"))
        self.assertContains(preview, "Regulator")

        response = self.post({"action": "next"})

        self.assertRedirects(response, reverse("webui:context"))
        issue = Issue.objects.get(title="Laptop theft")
        self.assertEqual(issue.department, self.department)
        self.assertEqual(list(issue.regulations.all()), [self.regulation])
        self.assertEqual(list(issue.processes.all()), [self.process])
        self.assertEqual(issue.stakeholder_needs.get().need_expectation, "Compliance")
        self.assertNotIn("issue_wizard", self.client.session)

    def test_empty_title_stays_on_preview(self):
        self.login("manager1")
        self.client.get(reverse("webui:issue-new"))
        self.post(self.info_step(title=""))
        for _ in range(3):
            self.post({"action": "next"})
        self.assertEqual(self.wizard_state()["current_step"], 5)

        response = self.post({"action": "next"})

        self.assertRedirects(response, reverse("webui:issue-wizard"))
        self.assertIn("Issue title is required.", self.messages_of(response))
        self.assertEqual(self.wizard_state()["current_step"], 5)
        self.assertFalse(Issue.objects.exists())

    def test_cancelled_picker_keeps_linked_processes(self):
        other = Process.objects.create(name="Payroll")
        self.login("manager1")
        self.client.get(reverse("webui:issue-new"))
        self.post(self.info_step())
        self.post({"action": "next"})
        self.post({"action": "open_picker"})
        self.post({"action": "link_processes", "processes": [self.process.id]})
        self.post({"action": "open_picker"})
        self.post({"action": "close_picker", "processes": [self.process.id, other.id]})
        self.assertEqual(self.wizard_state()["draft"]["selected_processes"], [self.process.id])

        self.post({"action": "next", "unlink_process_id": str(self.process.id)})
        self.assertEqual(self.wizard_state()["draft"]["selected_processes"], [])

    def test_added_option_is_selected_and_persisted(self):
        self.login("manager1")
        self.client.get(reverse("webui:issue-new"))
        self.post(self.info_step(action="add_option", list_key="category", value="Legal"))
        self.post(self.info_step(action="add_option", list_key="category", value="Legal"))

        state = self.wizard_state()
        self.assertEqual(state["draft"]["category"], "Legal")
        self.assertEqual(state["options"]["category"].count("Legal"), 1)
        self.assertEqual(state["current_step"], 1)
        self.assertTrue(OptionValue.objects.get(list_key="category", value="Legal").is_custom)

    def test_department_change_clears_selected_owner(self):
        UserProfile.objects.create(user=self.admin, full_name="Ada Admin", department=self.department)
        finance = Department.objects.create(name="Finance")
        self.login("manager1")
        self.client.get(reverse("webui:issue-new"))
        self.post(self.info_step(action="refresh"))
        self.post(self.info_step(action="refresh", owner=str(self.admin.id)))
        self.assertEqual(self.wizard_state()["draft"]["owner_id"], self.admin.id)

        response = self.post(self.info_step(action="refresh", department=str(finance.id), owner=str(self.admin.id)))

        draft = self.wizard_state()["draft"]
        self.assertEqual(draft["department_id"], finance.id)
        self.assertIsNone(draft["owner_id"])
        self.assertNotIn("Please check the values you entered.", self.messages_of(response))

        self.post(self.info_step(department=str(finance.id)))
        self.assertEqual(self.wizard_state()["current_step"], 2)

    def test_owner_outside_department_is_rejected(self):
        self.login("manager1")
        self.client.get(reverse("webui:issue-new"))
        self.post(self.info_step(action="refresh"))

        response = self.post(self.info_step(owner=str(self.viewer.id)))

        self.assertIn("Please check the values you entered.", self.messages_of(response))
        self.assertEqual(self.wizard_state()["current_step"], 1)

    def test_malformed_row_buttons_show_message(self):
        self.login("manager1")
        self.client.get(reverse("webui:issue-new"))
        self.post(self.info_step())
        self.post({"action": "next"})

        response = self.post({"unlink_process_id": "abc"})
        self.assertRedirects(response, reverse("webui:issue-wizard"))
        self.assertIn("Invalid selection.", self.messages_of(response))

        self.post({"action": "next"})
        self.post(
            {
                "action": "add_need",
                "stakeholder_type": "",
                "stakeholder": str(self.stakeholder.id),
                "need_expectation": "Compliance",
            }
        )
        response = self.post(
            {"remove_index": "abc", "stakeholder_type": "", "stakeholder": "", "need_expectation": ""}
        )

        self.assertRedirects(response, reverse("webui:issue-wizard"))
        self.assertIn("Invalid selection.", self.messages_of(response))
        self.assertEqual(len(self.wizard_state()["draft"]["stakeholder_needs"]), 1)

    def test_opening_option_dialog_keeps_typed_values(self):
        self.login("manager1")
        self.client.get(reverse("webui:issue-new"))
        data = self.info_step(title="Typed before dialog", open_option="domain")
        data.pop("action")

        response = self.post(data)

        self.assertRedirects(response, f"{reverse('webui:issue-wizard')}?option=domain")
        self.assertEqual(self.wizard_state()["draft"]["title"], "Typed before dialog")
        page = self.client.get(response.url)
        self.assertContains(page, 'value="add_option"')
        self.assertContains(page, "Typed before dialog")

    def test_previous_on_first_step_discards_draft(self):
        self.login("manager1")
        self.client.get(reverse("webui:issue-new"))
        response = self.post(self.info_step(action="previous"))
        self.assertRedirects(response, reverse("webui:context"))
        self.assertNotIn("issue_wizard", self.client.session)

    def test_edit_existing_issue(self):
        issue = Issue.objects.create(title="Old title", department=self.department)
        issue.processes.add(self.process)
        self.login("manager1")
        self.client.get(reverse("webui:issue-edit", args=[issue.id]))
        self.assertEqual(self.wizard_state()["issue_id"], issue.id)

        self.post(self.info_step(title="New title"))
        for _ in range(3):
            self.post({"action": "next"})
        self.post({"action": "next"})

        issue.refresh_from_db()
        self.assertEqual(issue.title, "New title")
        self.assertEqual(list(issue.processes.all()), [self.process])
        self.assertEqual(Issue.objects.count(), 1)


class SettingsPageTests(WebUiTestCase):
    def test_unknown_section_is_404(self):
        self.login("viewer1")
        self.assertEqual(self.client.get(reverse("webui:settings", args=["vendor"])).status_code, 404)

    def test_unknown_kind_is_404(self):
        self.login("viewer1")
        response = self.client.get(reverse("webui:settings", args=["asset"]), {"kind": "risk-ranges"})
        self.assertEqual(response.status_code, 404)

    def test_rows_render_for_kind(self):
        category = AssetCategory.objects.create(name="Hardware")
        AssetSubCategory.objects.create(name="Server", category=category)
        self.login("viewer1")
        response = self.client.get(reverse("webui:settings", args=["asset"]), {"kind": "asset-sub-categories"})
        self.assertEqual(response.status_code, 200)
        row = response.context["rows"][0]
        self.assertEqual(row.cells, ("Server", "Hardware", "Active"))
        self.assertEqual(row.actions, ())

    def test_asset_manager_creates_category(self):
        self.login("assets1")
        self.client.post(
            reverse("webui:settings", args=["asset"]),
            data={"kind": "asset-categories", "action": "create", "entry-name": "Software", "entry-status": "Active"},
        )
        self.assertTrue(AssetCategory.objects.filter(name="Software").exists())
        self.assertTrue(AuditEvent.objects.filter(action="assetcategory.create").exists())

    def test_risk_manager_cannot_edit_asset_settings(self):
        self.login("risks1")
        self.client.post(
            reverse("webui:settings", args=["asset"]),
            data={"kind": "asset-categories", "action": "create", "entry-name": "Software", "entry-status": "Active"},
        )
        self.assertFalse(AssetCategory.objects.exists())

    def test_protected_delete_shows_message(self):
        category = AssetCategory.objects.create(name="Hardware")
        AssetSubCategory.objects.create(name="Server", category=category)
        self.login("assets1")
        response = self.client.post(
            reverse("webui:settings", args=["asset"]),
            data={"kind": "asset-categories", "action": "delete", "row_id": category.id},
        )
        self.assertTrue(AssetCategory.objects.filter(id=category.id).exists())
        self.assertIn("Asset Category is still referenced and cannot be deleted.", self.messages_of(response))

    @patch("webui.views.rerate_all_risks")
    def test_risk_range_change_queues_rerate(self, mocked_task):
        self.login("risks1")
        self.client.post(
            reverse("webui:settings", args=["risk"]),
            data={
                "kind": "risk-ranges",
                "action": "create",
                "entry-title": "Low Risk",
                "entry-color": "#22c55e",
                "entry-low_range": 1,
                "entry-high_range": 9,
            },
        )
        self.assertTrue(RiskRange.objects.filter(title="Low Risk").exists())
        mocked_task.delay.assert_called_once_with()
