from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase

from asset.models import Asset, CIARating
from core.models import AuditEvent
from organization.models import Department, Issue, OptionValue, Process, Regulation, Stakeholder, UserProfile
from organization.services import (
    IssueSubmitError,
    draft_from_issue,
    error_message,
    load_reference_data,
    option_lists,
    persist_option,
    submit_issue_draft,
)
from organization.wizard import STEP_PREVIEW, IssueDraft, IssueWizard, OUTCOME_FAILED
from risk.models import Risk, RiskRange


class OptionPersistenceTests(TestCase):
    def test_custom_value_survives_reload(self):
        option = persist_option("category", " Legal ")
        self.assertTrue(option.is_custom)
        self.assertIn("Legal", option_lists()["category"])
        self.assertTrue(AuditEvent.objects.filter(action="optionvalue.create").exists())

    def test_defaults_and_blanks_are_not_stored(self):
        self.assertIsNone(persist_option("category", "Finance"))
        self.assertIsNone(persist_option("domain", "   "))
        self.assertFalse(OptionValue.objects.exists())

    def test_second_persist_reuses_row(self):
        persist_option("domain", "Legal")
        persist_option("domain", "Legal")
        self.assertEqual(OptionValue.objects.filter(list_key="domain", value="Legal").count(), 1)


class ReferenceDataLoadTests(TestCase):
    def test_users_carry_profile_department(self):
        department = Department.objects.create(name="IT")
        user = get_user_model().objects.create_user(username="ada", password="pass1234")
        UserProfile.objects.create(user=user, full_name="Ada Lovelace", department=department)
        get_user_model().objects.create_user(username="noprofile", password="pass1234")

        reference = load_reference_data()

        self.assertEqual(reference.users[user.id].name, "Ada Lovelace")
        self.assertEqual(reference.owners_for(department.id), [(user.id, "Ada Lovelace")])
        self.assertEqual(len(reference.owners_for(None)), 2)


class IssueSubmitTests(TestCase):
    def setUp(self):
        self.department = Department.objects.create(name="IT")
        self.stakeholder = Stakeholder.objects.create(name="Board")
        self.regulation = Regulation.objects.create(name="GDPR")
        self.process = Process.objects.create(name="Backup")

    def _draft(self, **kwargs):
        draft = IssueDraft(
            title="Backup gaps",
            department_id=self.department.id,
            selected_regulations=[self.regulation.id],
            selected_processes=[self.process.id],
            **kwargs,
        )
        draft.add_need(self.stakeholder.id, "Service availability")
        return draft

    def test_create_from_draft(self):
        issue = submit_issue_draft(self._draft(due_date="2026-12-31"))
        self.assertEqual(issue.department, self.department)
        self.assertEqual(str(issue.due_date), "2026-12-31")
        self.assertEqual(issue.stakeholder_needs.get().need_expectation, "Service availability")
        self.assertTrue(AuditEvent.objects.filter(action="issue.create", entity_id=str(issue.id)).exists())

    def test_edit_round_trip_through_draft(self):
        issue = submit_issue_draft(self._draft())
        draft = draft_from_issue(issue)
        self.assertEqual(draft.selected_processes, [self.process.id])
        draft.title = "Backup gaps (revised)"
        draft.remove_need(0)

        updated = submit_issue_draft(draft, issue.id)

        self.assertEqual(updated.id, issue.id)
        self.assertEqual(updated.title, "Backup gaps (revised)")
        self.assertFalse(updated.stakeholder_needs.exists())

    def test_failure_is_audited_and_raised(self):
        draft = self._draft()
        draft.selected_regulations = [9999]

        with self.assertRaises(IssueSubmitError) as ctx:
            submit_issue_draft(draft)

        self.assertIn("regulation_ids", str(ctx.exception))
        self.assertFalse(Issue.objects.exists())
        self.assertTrue(AuditEvent.objects.filter(action="issue.create", status=AuditEvent.STATUS_FAILED).exists())

    def test_missing_issue_on_update(self):
        with self.assertRaises(IssueSubmitError):
            submit_issue_draft(self._draft(), 9999)

    def test_wizard_keeps_draft_when_save_fails(self):
        draft = self._draft(owner_id=9999)
        wizard = IssueWizard(draft=draft, current_step=STEP_PREVIEW, is_open=True)

        outcome = wizard.next(lambda d, issue_id: submit_issue_draft(d, issue_id))

        self.assertEqual(outcome.status, OUTCOME_FAILED)
        self.assertIn("owner", outcome.error)
        self.assertTrue(wizard.is_open)
        self.assertEqual(wizard.draft.title, "Backup gaps")


class ErrorMessageTests(SimpleTestCase):
    def test_flattens_field_errors(self):
        class FakeError(Exception):
            detail = {"title": ["This field is required."], "owner": "Invalid pk."}

        self.assertEqual(error_message(FakeError()), "title: This field is required.; owner: Invalid pk.")

    def test_falls_back_to_text(self):
        self.assertEqual(error_message(ValueError(""), "Failed."), "Failed.")


class SeedGrcCommandTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_grc")
        issue_count = Issue.objects.count()
        call_command("seed_grc")

        self.assertGreater(issue_count, 0)
        self.assertEqual(Issue.objects.count(), issue_count)
        self.assertEqual(Asset.objects.count(), 1)
        self.assertEqual(CIARating.objects.count(), 9)
        self.assertEqual(RiskRange.objects.count(), 4)
        self.assertEqual(Risk.objects.get(title="Data Breach Risk").risk_rating, "Catastrophic")
        self.assertFalse(OptionValue.objects.filter(is_custom=True).exists())
