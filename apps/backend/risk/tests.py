from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase

from organization.models import Department
from risk.models import Risk, RiskCategory, RiskRange, fallback_rating
from risk.scoring import EXPORT_HEADER, export_risks_csv, rerate_risks, risk_stats
from risk.tasks import rerate_all_risks


def _seed_ranges():
    for title, low, high in (("Low Risk", 1, 9), ("High", 10, 14), ("Very high", 15, 19), ("Catastrophic", 20, 25)):
        RiskRange.objects.create(title=title, color="#22c55e", low_range=low, high_range=high)


class FallbackRatingTests(SimpleTestCase):
    def test_thresholds(self):
        self.assertEqual(fallback_rating(25), "Catastrophic")
        self.assertEqual(fallback_rating(20), "Catastrophic")
        self.assertEqual(fallback_rating(16), "Very high")
        self.assertEqual(fallback_rating(10), "High")
        self.assertEqual(fallback_rating(9), "Low Risk")
        self.assertEqual(fallback_rating(1), "Low Risk")


class RiskModelTests(TestCase):
    def test_score_and_rating_from_ranges(self):
        _seed_ranges()
        risk = Risk.objects.create(title="Data breach", likelihood=4, impact=4)
        self.assertEqual(risk.risk_score, 16)
        self.assertEqual(risk.risk_rating, "Very high")
        self.assertTrue(risk.is_high)

    def test_rating_falls_back_without_ranges(self):
        risk = Risk.objects.create(title="Vendor outage", likelihood=5, impact=4)
        self.assertEqual(risk.risk_rating, "Catastrophic")

    def test_risk_codes_increment(self):
        first = Risk.objects.create(title="First")
        second = Risk.objects.create(title="Second")
        self.assertEqual(first.risk_code, "RISK-0001")
        self.assertEqual(second.risk_code, "RISK-0002")

    def test_low_score_is_not_high(self):
        _seed_ranges()
        risk = Risk.objects.create(title="Minor", likelihood=2, impact=3)
        self.assertEqual(risk.risk_rating, "Low Risk")
        self.assertFalse(risk.is_high)

    def test_status_transitions(self):
        risk = Risk.objects.create(title="Workflow")
        self.assertTrue(risk.can_transition_to(Risk.STATUS_PENDING_ASSESSMENT))
        self.assertFalse(risk.can_transition_to(Risk.STATUS_AWAITING_APPROVAL))

        risk.transition_to(Risk.STATUS_CLOSED)
        risk.refresh_from_db()
        self.assertEqual(risk.status, Risk.STATUS_CLOSED)

        with self.assertRaises(ValidationError):
            risk.transition_to(Risk.STATUS_IN_PROGRESS)

    def test_range_bounds_are_validated(self):
        risk_range = RiskRange(title="Broken", color="#000000", low_range=10, high_range=5)
        with self.assertRaises(ValidationError):
            risk_range.full_clean()

    def test_category_color_must_be_hex(self):
        with self.assertRaises(ValidationError):
            RiskCategory(name="Bad color", color="blue").full_clean()


class RiskScoringTests(TestCase):
    def test_rerate_updates_only_changed_risks(self):
        low = Risk.objects.create(title="Low", likelihood=1, impact=2)
        high = Risk.objects.create(title="High", likelihood=3, impact=4)
        self.assertEqual(high.risk_rating, "High")

        RiskRange.objects.create(title="Elevated", color="#f59e0b", low_range=10, high_range=25)

        self.assertEqual(rerate_risks(), 1)
        high.refresh_from_db()
        low.refresh_from_db()
        self.assertEqual(high.risk_rating, "Elevated")
        self.assertEqual(low.risk_rating, "Low Risk")

    def test_celery_task_returns_changed_count(self):
        Risk.objects.create(title="Severe", likelihood=5, impact=5)
        RiskRange.objects.create(title="Extreme", color="#ef4444", low_range=21, high_range=25)
        with self.assertLogs("risk.tasks", level="INFO"):
            self.assertEqual(rerate_all_risks.delay().get(), 1)

    def test_stats(self):
        _seed_ranges()
        category = RiskCategory.objects.create(name="IT/Cyber")
        Risk.objects.create(title="Breach", likelihood=4, impact=5, category=category)
        Risk.objects.create(title="Typo", likelihood=1, impact=1)
        closed = Risk.objects.create(title="Old", likelihood=5, impact=5)
        closed.transition_to(Risk.STATUS_CLOSED)

        stats = risk_stats()

        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["open"], 2)
        self.assertEqual(stats["high"], 1)
        self.assertEqual(stats["by_rating"], {"Catastrophic": 1, "Low Risk": 1})
        self.assertEqual(stats["by_category"], {"-": 2, "IT/Cyber": 1})

    def test_export_row(self):
        department = Department.objects.create(name="IT Operations")
        Risk.objects.create(title="Breach, external", likelihood=2, impact=5, department=department)
        lines = export_risks_csv(Risk.objects.all()).splitlines()
        self.assertEqual(lines[0], ",".join(f'"{name}"' for name in EXPORT_HEADER))
        self.assertEqual(
            lines[1],
            '"RISK-0001","Breach, external","","IT Operations","","2","5","10","High","Open","",""',
        )

