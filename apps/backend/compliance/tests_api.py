from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from compliance.models import AuditRisk, Control, Framework
from core.models import AuditEvent
from core.permissions import ROLE_COMPLIANCE_MANAGER, ROLE_RISK_MANAGER
from organization.models import Department


class ComplianceApiTestCase(APITestCase):
    def setUp(self):
        user_model = get_user_model()
        self.compliance_manager = user_model.objects.create_user(username="compliance", password="pass1234")
        self.risk_manager = user_model.objects.create_user(username="risk_manager", password="pass1234")
        compliance_group, _ = Group.objects.get_or_create(name=ROLE_COMPLIANCE_MANAGER)
        risk_group, _ = Group.objects.get_or_create(name=ROLE_RISK_MANAGER)
        self.compliance_manager.groups.add(compliance_group)
        self.risk_manager.groups.add(risk_group)
        self.framework = Framework.objects.create(name="ISO 27001", framework_type=Framework.TYPE_STANDARD)


class FrameworkApiTests(ComplianceApiTestCase):
    def test_risk_manager_cannot_create_framework(self):
        self.client.force_authenticate(self.risk_manager)
        response = self.client.post(reverse("framework-list"), data={"name": "PCI DSS"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_compliance_manager_creates_framework(self):
        self.client.force_authenticate(self.compliance_manager)
        response = self.client.post(
            reverse("framework-list"),
            data={"name": " PCI DSS ", "framework_type": Framework.TYPE_REGULATION, "is_custom": True},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["name"], "PCI DSS")
        self.assertEqual(response.data["control_count"], 0)
        self.assertTrue(AuditEvent.objects.filter(action="framework.create", entity_label="PCI DSS").exists())

    def test_list_counts_controls(self):
        Control.objects.create(framework=self.framework, control_code="A.5.1", name="Policies")
        self.client.force_authenticate(self.risk_manager)
        response = self.client.get(reverse("framework-list"))
        self.assertEqual(response.data[0]["control_count"], 1)

    def test_summary(self):
        Control.objects.create(
            framework=self.framework, control_code="A.5.1", name="Policies", status=Control.STATUS_IMPLEMENTED
        )
        self.client.force_authenticate(self.risk_manager)
        response = self.client.get(reverse("framework-summary", args=[self.framework.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["compliance_percentage"], 100)

    def test_framework_with_controls_cannot_be_deleted(self):
        Control.objects.create(framework=self.framework, control_code="A.5.1", name="Policies")
        self.client.force_authenticate(self.compliance_manager)
        response = self.client.delete(reverse("framework-detail", args=[self.framework.id]))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Framework.objects.filter(id=self.framework.id).exists())


class ControlApiTests(ComplianceApiTestCase):
    def test_create_and_filter_controls(self):
        department = Department.objects.create(name="IT Operations")
        self.client.force_authenticate(self.compliance_manager)
        response = self.client.post(
            reverse("control-list"),
            data={
                "framework": self.framework.id,
                "control_code": " a.8.1 ",
                "name": "User endpoint devices",
                "functional_grouping": "Protect",
                "department": department.id,
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["control_code"], "A.8.1")
        self.assertEqual(response.data["framework_name"], "ISO 27001")
        self.assertEqual(response.data["status"], Control.STATUS_NOT_IMPLEMENTED)

        other = Framework.objects.create(name="NIST CSF")
        Control.objects.create(framework=other, control_code="PR.AC-1", name="Identities")
        response = self.client.get(reverse("control-list"), {"framework": self.framework.id})
        self.assertEqual([row["control_code"] for row in response.data], ["A.8.1"])

    def test_duplicate_code_in_framework_rejected(self):
        Control.objects.create(framework=self.framework, control_code="A.5.1", name="Policies")
        self.client.force_authenticate(self.compliance_manager)
        response = self.client.post(
            reverse("control-list"),
            data={"framework": self.framework.id, "control_code": "A.5.1", "name": "Again"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_update_is_audited(self):
        control = Control.objects.create(framework=self.framework, control_code="A.5.1", name="Policies")
        self.client.force_authenticate(self.compliance_manager)
        response = self.client.patch(
            reverse("control-detail", args=[control.id]), data={"status": Control.STATUS_IMPLEMENTED}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(AuditEvent.objects.filter(action="control.update", entity_id=str(control.id)).exists())


class AuditRiskApiTests(ComplianceApiTestCase):
    def test_create_scores_register_entry(self):
        self.client.force_authenticate(self.compliance_manager)
        response = self.client.post(
            reverse("audit-risk-list"),
            data={
                "name": "Manual journal entries",
                "inherent_likelihood": 20,
                "inherent_impact": 15,
                "residual_likelihood": 5,
                "residual_impact": 11,
                "residual_score": 1,
                "risk_level": "Low",
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["risk_id"], "RID001")
        self.assertEqual(response.data["inherent_score"], 300)
        self.assertEqual(response.data["residual_score"], 55)
        self.assertEqual(response.data["risk_level"], "Medium")

    def test_score_out_of_range(self):
        self.client.force_authenticate(self.compliance_manager)
        response = self.client.post(
            reverse("audit-risk-list"), data={"name": "Bad", "residual_impact": 30}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("residual_impact", response.data)

    def test_invalid_status_transition(self):
        risk = AuditRisk.objects.create(name="Access reviews", status=AuditRisk.STATUS_CLOSED)
        self.client.force_authenticate(self.compliance_manager)
        response = self.client.patch(
            reverse("audit-risk-detail", args=[risk.id]), data={"status": AuditRisk.STATUS_IN_REVIEW}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("status", response.data)

    def test_filters_and_stats(self):
        finance = Department.objects.create(name="Finance")
        AuditRisk.objects.create(name="Vendor master changes", department=finance, residual_likelihood=10, residual_impact=10)
        AuditRisk.objects.create(name="Badge access", status=AuditRisk.STATUS_CLOSED)
        self.client.force_authenticate(self.risk_manager)

        response = self.client.get(reverse("audit-risk-list"), {"department": finance.id})
        self.assertEqual([row["name"] for row in response.data], ["Vendor master changes"])

        response = self.client.get(reverse("audit-risk-list"), {"search": "badge"})
        self.assertEqual([row["name"] for row in response.data], ["Badge access"])

        response = self.client.get(reverse("audit-risk-stats"))
        self.assertEqual(response.data["total"], 2)
        self.assertEqual(response.data["open"], 1)
        self.assertEqual(response.data["by_level"], {"High": 1, "Low": 1})
