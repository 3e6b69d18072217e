from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from asset.models import Asset, AssetCategory, AssetSubCategory, CIARating
from core.models import AuditEvent
from core.permissions import ROLE_ASSET_MANAGER, ROLE_RISK_MANAGER


class AssetApiTestCase(APITestCase):
    def setUp(self):
        user_model = get_user_model()
        self.asset_manager = user_model.objects.create_user(username="asset_manager", password="pass1234")
        self.risk_manager = user_model.objects.create_user(username="risk_manager", password="pass1234")
        asset_group, _ = Group.objects.get_or_create(name=ROLE_ASSET_MANAGER)
        risk_group, _ = Group.objects.get_or_create(name=ROLE_RISK_MANAGER)
        self.asset_manager.groups.add(asset_group)
        self.risk_manager.groups.add(risk_group)

        self.hardware = AssetCategory.objects.create(name="Hardware")
        self.software = AssetCategory.objects.create(name="Software")
        self.server = AssetSubCategory.objects.create(name="Server", category=self.hardware)
        self.high_c = CIARating.objects.create(rating_type=CIARating.TYPE_CONFIDENTIALITY, label="high", value=3)
        self.medium_i = CIARating.objects.create(rating_type=CIARating.TYPE_INTEGRITY, label="medium", value=2)


class AssetApiTests(AssetApiTestCase):
    def test_risk_manager_cannot_create_asset(self):
        self.client.force_authenticate(self.risk_manager)
        response = self.client.post(reverse("asset-list"), data={"name": "Laptop"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_asset_manager_creates_asset_with_generated_code(self):
        self.client.force_authenticate(self.asset_manager)
        response = self.client.post(
            reverse("asset-list"),
            data={
                "name": " Database server ",
                "category": self.hardware.id,
                "sub_category": self.server.id,
                "confidentiality": self.high_c.id,
                "integrity": self.medium_i.id,
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["asset_code"], "AST-001")
        self.assertEqual(response.data["name"], "Database server")
        self.assertEqual(response.data["criticality"], 3)
        self.assertEqual(response.data["sub_category_name"], "Server")
        self.assertTrue(AuditEvent.objects.filter(action="asset.create").exists())

    def test_sub_category_must_match_category(self):
        self.client.force_authenticate(self.asset_manager)
        response = self.client.post(
            reverse("asset-list"),
            data={"name": "Mismatch", "category": self.software.id, "sub_category": self.server.id},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("sub_category", response.data)

    def test_cia_rating_type_must_match_field(self):
        self.client.force_authenticate(self.asset_manager)
        response = self.client.post(
            reverse("asset-list"),
            data={"name": "Wrong rating", "integrity": self.high_c.id},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("integrity", response.data)

    def test_filter_by_category(self):
        Asset.objects.create(name="Rack", category=self.hardware)
        Asset.objects.create(name="ERP", category=self.software)
        self.client.force_authenticate(self.risk_manager)
        response = self.client.get(reverse("asset-list"), {"category": self.software.id})
        self.assertEqual([row["name"] for row in response.data], ["ERP"])


class AssetLookupApiTests(AssetApiTestCase):
    def test_sub_categories_filter_by_category(self):
        AssetSubCategory.objects.create(name="SaaS", category=self.software)
        self.client.force_authenticate(self.risk_manager)
        response = self.client.get(reverse("asset-sub-category-list"), {"category": self.hardware.id})
        self.assertEqual([row["name"] for row in response.data], ["Server"])
        self.assertEqual(response.data[0]["category_name"], "Hardware")

    def test_category_in_use_cannot_be_deleted(self):
        self.client.force_authenticate(self.asset_manager)
        response = self.client.delete(reverse("asset-category-detail", args=[self.hardware.id]))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn("error", response.data)
        self.assertTrue(AssetCategory.objects.filter(id=self.hardware.id).exists())
        self.assertFalse(AuditEvent.objects.filter(action="assetcategory.delete").exists())

    def test_unused_category_is_deleted(self):
        self.client.force_authenticate(self.asset_manager)
        response = self.client.delete(reverse("asset-category-detail", args=[self.software.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(AuditEvent.objects.filter(action="assetcategory.delete", entity_label="Software").exists())

    def test_cia_label_is_lowercased(self):
        self.client.force_authenticate(self.asset_manager)
        response = self.client.post(
            reverse("cia-rating-list"),
            data={"rating_type": CIARating.TYPE_AVAILABILITY, "label": " Critical ", "value": 5},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["label"], "critical")

    def test_cia_ratings_filter_by_type(self):
        self.client.force_authenticate(self.risk_manager)
        response = self.client.get(reverse("cia-rating-list"), {"rating_type": CIARating.TYPE_INTEGRITY})
        self.assertEqual([row["label"] for row in response.data], ["medium"])

    def test_cia_value_range(self):
        self.client.force_authenticate(self.asset_manager)
        response = self.client.post(
            reverse("cia-rating-list"),
            data={"rating_type": CIARating.TYPE_AVAILABILITY, "label": "extreme", "value": 9},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_lifecycle_statuses_are_ordered(self):
        self.client.force_authenticate(self.asset_manager)
        for name, order in (("Retired", 3), ("Planned", 1), ("Active", 2)):
            self.client.post(reverse("asset-lifecycle-status-list"), data={"name": name, "order": order}, format="json")
        response = self.client.get(reverse("asset-lifecycle-status-list"))
        self.assertEqual([row["name"] for row in response.data], ["Planned", "Active", "Retired"])
