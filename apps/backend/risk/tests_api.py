from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from asset.models import Asset
from core.models import AuditEvent
from core.permissions import ROLE_ASSET_MANAGER, ROLE_RISK_MANAGER
from risk.models import Risk, RiskCategory, RiskRange


class RiskApiTestCase(APITestCase):
    def setUp(self):
        user_model = get_user_model()
        self.risk_manager = user_model.objects.create_user(username="risk_manager", password="pass1234")
        self.asset_manager = user_model.objects.create_user(username="asset_manager", password="pass1234")
        risk_group, _ = Group.objects.get_or_create(name=ROLE_RISK_MANAGER)
        asset_group, _ = Group.objects.get_or_create(name=ROLE_ASSET_MANAGER)
        self.risk_manager.groups.add(risk_group)
        self.asset_manager.groups.add(asset_group)

        self.category = RiskCategory.objects.create(name="IT/Cyber", color="#ef4444")
        self.asset = Asset.objects.create(name="Database server")
        for title, low, high in (("Low Risk", 1, 9), ("High", 10, 14), ("Very high", 15, 19), ("Catastrophic", 20, 25)):
            RiskRange.objects.create(title=title, color="#22c55e", low_range=low, high_range=high)


class RiskApiTests(RiskApiTestCase):
    def test_asset_manager_cannot_create_risk(self):
        self.client.force_authenticate(self.asset_manager)
        response = self.client.post(reverse("risk-list"), data={"title": "Blocked"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_risk_manager_creates_scored_risk(self):
        self.client.force_authenticate(self.risk_manager)
        response = self.client.post(
            reverse("risk-list"),
            data={
                "title": "Data breach",
                "category": self.category.id,
                "asset_ids": [self.asset.id],
                "likelihood": 4,
                "impact": 5,
                "risk_score": 1,
                "response_strategy": Risk.STRATEGY_TREAT,
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["risk_code"], "RISK-0001")
        self.assertEqual(response.data["risk_score"], 20)
        self.assertEqual(response.data["risk_rating"], "Catastrophic")
        self.assertEqual(response.data["category_color"], "#ef4444")
        self.assertEqual(response.data["asset_ids"], [self.asset.id])
        self.assertTrue(AuditEvent.objects.filter(action="risk.create").exists())

    def test_likelihood_out_of_range(self):
        self.client.force_authenticate(self.risk_manager)
        response = self.client.post(reverse("risk-list"), data={"title": "Bad", "likelihood": 6}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("likelihood", response.data)

    def test_update_rescores(self):
        risk = Risk.objects.create(title="Outage", likelihood=1, impact=1)
        self.client.force_authenticate(self.risk_manager)
        response = self.client.patch(reverse("risk-detail", args=[risk.id]), data={"impact": 3, "likelihood": 4}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["risk_score"], 12)
        self.assertEqual(response.data["risk_rating"], "High")

    def test_invalid_status_transition(self):
        risk = Risk.objects.create(title="Outage")
        self.client.force_authenticate(self.risk_manager)
        response = self.client.patch(
            reverse("risk-detail", args=[risk.id]), data={"status": Risk.STATUS_AWAITING_APPROVAL}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("status", response.data)

    def test_recalculate_after_range_change(self):
        risk = Risk.objects.create(title="Vendor lock-in", likelihood=3, impact=4)
        RiskRange.objects.filter(title="High").update(title="Elevated")
        self.client.force_authenticate(self.risk_manager)

        response = self.client.post(reverse("risk-recalculate", args=[risk.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["risk_rating"], "Elevated")
        event = AuditEvent.objects.get(action="risk.scoring.recalculate")
        self.assertTrue(event.metadata["changed"])

    def test_filters_and_stats(self):
        Risk.objects.create(title="Breach", likelihood=5, impact=5, category=self.category)
        Risk.objects.create(title="Typo", likelihood=1, impact=2)
        self.client.force_authenticate(self.asset_manager)

        response = self.client.get(reverse("risk-list"), {"risk_rating": "Catastrophic"})
        self.assertEqual([row["title"] for row in response.data], ["Breach"])

        response = self.client.get(reverse("risk-stats"))
        self.assertEqual(response.data["total"], 2)
        self.assertEqual(response.data["high"], 1)

    def test_export(self):
        Risk.objects.create(title="Breach", likelihood=5, impact=5)
        self.client.force_authenticate(self.asset_manager)
        response = self.client.get(reverse("risk-export"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('"RISK-0001","Breach"', response.content.decode())


class RiskSettingsApiTests(RiskApiTestCase):
    def test_range_bounds_validated(self):
        self.client.force_authenticate(self.risk_manager)
        response = self.client.post(
            reverse("risk-range-list"),
            data={"title": "Inverted", "color": "#000000", "low_range": 9, "high_range": 3},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_range_change_rerates_existing_risks(self):
        risk = Risk.objects.create(title="Outage", likelihood=3, impact=4)
        high = RiskRange.objects.get(title="High")
        self.client.force_authenticate(self.risk_manager)

        response = self.client.patch(reverse("risk-range-detail", args=[high.id]), data={"title": "Elevated"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        risk.refresh_from_db()
        self.assertEqual(risk.risk_rating, "Elevated")

    @patch("risk.views.rerate_all_risks")
    def test_range_delete_queues_rerate(self, mocked_task):
        low = RiskRange.objects.get(title="Low Risk")
        self.client.force_authenticate(self.risk_manager)
        response = self.client.delete(reverse("risk-range-detail", args=[low.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        mocked_task.delay.assert_called_once_with()

    def test_duplicate_category_conflicts(self):
        self.client.force_authenticate(self.risk_manager)
        response = self.client.post(reverse("risk-category-list"), data={"name": "IT/Cyber"}, format="json")
        self.assertIn(response.status_code, (status.HTTP_400_BAD_REQUEST, status.HTTP_409_CONFLICT))

    def test_category_color_validated(self):
        self.client.force_authenticate(self.risk_manager)
        response = self.client.post(
            reverse("risk-category-list"), data={"name": "Legal", "color": "red"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_asset_manager_cannot_edit_likelihoods(self):
        self.client.force_authenticate(self.asset_manager)
        response = self.client.post(
            reverse("risk-likelihood-list"), data={"title": "Rare", "score": 1}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_control_strengths_and_impacts(self):
        self.client.force_authenticate(self.risk_manager)
        response = self.client.post(reverse("control-strength-list"), data={"name": "Strong", "score": 5}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(reverse("impact-rating-list"), data={"name": "Severe", "score": 5}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
