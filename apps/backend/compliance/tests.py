from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase

from compliance.models import AuditRisk, Control, Framework, audit_risk_level


class AuditRiskLevelTests(SimpleTestCase):
    def test_levels_follow_residual_score(self):
        self.assertEqual(audit_risk_level(None), "Low")
        self.assertEqual(audit_risk_level(49), "Low")
        self.assertEqual(audit_risk_level(50), "Medium")
        self.assertEqual(audit_risk_level(100), "High")
        self.assertEqual(audit_risk_level(250), "Extreme")


class FrameworkSummaryTests(TestCase):
    def test_summary_excludes_not_applicable_controls(self):
        framework = Framework.objects.create(name="ISO 27001")
        for code, status in (
            ("A.5.1", Control.STATUS_IMPLEMENTED),
            ("A.5.2", Control.STATUS_PARTIAL),
            ("A.5.3", Control.STATUS_NOT_IMPLEMENTED),
            ("A.5.4", Control.STATUS_NOT_IMPLEMENTED),
            ("A.5.5", Control.STATUS_NOT_APPLICABLE),
        ):
            Control.objects.create(framework=framework, control_code=code, name=code, status=status)

        summary = framework.compliance_summary()

        self.assertEqual(summary["total_controls"], 5)
        self.assertEqual(summary["by_status"][Control.STATUS_NOT_IMPLEMENTED], 2)
        # (1 + 0.5) of 4 applicable controls
        self.assertEqual(summary["compliance_percentage"], 38)

    def test_empty_framework(self):
        summary = Framework.objects.create(name="NIST CSF").compliance_summary()
        self.assertEqual(summary["total_controls"], 0)
        self.assertEqual(summary["compliance_percentage"], 0)


class AuditRiskModelTests(TestCase):
    def test_scores_and_level_are_derived(self):
        risk = AuditRisk.objects.create(
            name="Unreviewed vendor payments",
            inherent_likelihood=15,
            inherent_impact=20,
            residual_likelihood=10,
            residual_impact=12,
        )
        self.assertEqual(risk.risk_id, "RID001")
        self.assertEqual(risk.inherent_score, 300)
        self.assertEqual(risk.residual_score, 120)
        self.assertEqual(risk.risk_level, "High")

    def test_missing_residual_half_means_low(self):
        risk = AuditRisk.objects.create(name="Petty cash", residual_likelihood=20)
        self.assertIsNone(risk.residual_score)
        self.assertEqual(risk.risk_level, "Low")

    def test_risk_ids_increment(self):
        AuditRisk.objects.create(name="First")
        self.assertEqual(AuditRisk.objects.create(name="Second").risk_id, "RID002")

    def test_closed_risk_must_reopen_before_review(self):
        risk = AuditRisk.objects.create(name="Access reviews")
        risk.transition_to(AuditRisk.STATUS_CLOSED)
        with self.assertRaises(ValidationError):
            risk.transition_to(AuditRisk.STATUS_IN_REVIEW)
        risk.transition_to(AuditRisk.STATUS_OPEN)
        risk.refresh_from_db()
        self.assertEqual(risk.status, AuditRisk.STATUS_OPEN)
