from django.test import SimpleTestCase

from organization.wizard import (
    OUTCOME_BLOCKED,
    OUTCOME_FAILED,
    OUTCOME_SAVED,
    STEP_INFO,
    STEP_PREVIEW,
    STEP_PROCESS,
    IssueDraft,
    IssueWizard,
    ReferenceData,
    StakeholderRef,
    UserRef,
    WizardError,
)


def _reference():
    return ReferenceData(
        departments={1: "IT", 2: "Finance"},
        users={10: UserRef("Ada", 1), 11: UserRef("Bob", 2)},
        regulations={5: "ISO 27001"},
        processes={"p1": "PRO1 - Onboarding", "p2": "PRO2 - Payroll"},
        stakeholders={
            20: StakeholderRef("Board", "Internal"),
            21: StakeholderRef("Regulator", "External"),
        },
    )


class RecordingSubmit:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def __call__(self, draft, issue_id):
        self.calls.append((draft.title, issue_id))
        if self.error:
            raise self.error
        return {"id": 99, "title": draft.title}


class IssueWizardStepTests(SimpleTestCase):
    def test_open_starts_on_first_step_with_defaults(self):
        wizard = IssueWizard.open()
        self.assertTrue(wizard.is_open)
        self.assertEqual(wizard.current_step, STEP_INFO)
        self.assertEqual(wizard.draft.domain, "Internal")
        self.assertEqual(wizard.draft.category, "Finance")
        self.assertFalse(wizard.is_editing)

    def test_step_out_of_range_is_rejected(self):
        with self.assertRaises(WizardError):
            IssueWizard(current_step=6)
        with self.assertRaises(WizardError):
            IssueWizard(current_step=0)

    def test_next_advances_until_preview(self):
        wizard = IssueWizard.open()
        submit = RecordingSubmit()
        for _ in range(4):
            self.assertIsNone(wizard.next(submit))
        self.assertEqual(wizard.current_step, STEP_PREVIEW)
        self.assertTrue(wizard.is_last_step)
        self.assertEqual(submit.calls, [])

    def test_previous_on_first_step_closes_and_clears(self):
        wizard = IssueWizard.open()
        wizard.draft.title = "Draft"
        wizard.previous()
        self.assertFalse(wizard.is_open)
        self.assertEqual(wizard.draft.title, "")

    def test_previous_goes_back_one_step(self):
        wizard = IssueWizard(current_step=STEP_PROCESS, is_open=True)
        wizard.previous()
        self.assertEqual(wizard.current_step, STEP_PROCESS - 1)

    def test_closed_wizard_rejects_navigation(self):
        wizard = IssueWizard()
        with self.assertRaises(WizardError):
            wizard.next(RecordingSubmit())


class IssueWizardSubmitTests(SimpleTestCase):
    def test_empty_title_blocks_save_and_keeps_step(self):
        wizard = IssueWizard(current_step=STEP_PREVIEW, is_open=True)
        wizard.draft.title = "   "
        submit = RecordingSubmit()

        outcome = wizard.next(submit)

        self.assertEqual(outcome.status, OUTCOME_BLOCKED)
        self.assertEqual(submit.calls, [])
        self.assertTrue(wizard.is_open)
        self.assertEqual(wizard.current_step, STEP_PREVIEW)

    def test_successful_save_closes_and_resets(self):
        wizard = IssueWizard(current_step=STEP_PREVIEW, is_open=True, issue_id=7)
        wizard.draft.title = "Vendor audit overdue"

        outcome = wizard.next(RecordingSubmit())

        self.assertTrue(outcome.saved)
        self.assertEqual(outcome.status, OUTCOME_SAVED)
        self.assertFalse(wizard.is_open)
        self.assertEqual(wizard.current_step, STEP_INFO)
        self.assertIsNone(wizard.issue_id)

    def test_failed_save_keeps_draft_on_preview(self):
        wizard = IssueWizard(current_step=STEP_PREVIEW, is_open=True)
        wizard.draft.title = "Keep me"

        with self.assertLogs("organization.wizard", level="WARNING"):
            outcome = wizard.next(RecordingSubmit(error=RuntimeError("title: already exists")))

        self.assertEqual(outcome.status, OUTCOME_FAILED)
        self.assertEqual(outcome.error, "title: already exists")
        self.assertTrue(wizard.is_open)
        self.assertEqual(wizard.current_step, STEP_PREVIEW)
        self.assertEqual(wizard.draft.title, "Keep me")

    def test_submit_receives_issue_id_when_editing(self):
        wizard = IssueWizard(current_step=STEP_PREVIEW, is_open=True, issue_id=42)
        wizard.draft.title = "Edit"
        submit = RecordingSubmit()
        wizard.next(submit)
        self.assertEqual(submit.calls, [("Edit", 42)])


class IssueDraftTests(SimpleTestCase):
    def test_department_change_clears_owner(self):
        draft = IssueDraft(department_id=1, owner_id=10)
        draft.set_department(2)
        self.assertEqual(draft.department_id, 2)
        self.assertIsNone(draft.owner_id)

    def test_toggle_regulation(self):
        draft = IssueDraft()
        draft.toggle_regulation(5)
        draft.toggle_regulation(5, True)
        self.assertEqual(draft.selected_regulations, [5])
        draft.toggle_regulation(5)
        self.assertEqual(draft.selected_regulations, [])

    def test_payload_strips_title_and_maps_needs(self):
        draft = IssueDraft(title="  Leak  ", department_id=1, selected_processes=["p1"])
        draft.add_need(20, "Transparency")
        payload = draft.to_payload()
        self.assertEqual(payload["title"], "Leak")
        self.assertIsNone(payload["due_date"])
        self.assertEqual(payload["process_ids"], ["p1"])
        self.assertEqual(payload["stakeholder_needs"], [{"stakeholder": 20, "need_expectation": "Transparency"}])

    def test_remove_need_out_of_range(self):
        with self.assertRaises(WizardError):
            IssueDraft().remove_need(0)


class ProcessPickerTests(SimpleTestCase):
    def test_cancelled_picker_leaves_draft_untouched(self):
        wizard = IssueWizard.open(draft=IssueDraft(selected_processes=["p1"]))
        wizard.open_process_picker()
        wizard.toggle_temp_process("p2")
        self.assertEqual(wizard.temp_selected_processes, ["p1", "p2"])

        wizard.close_process_picker()

        self.assertEqual(wizard.draft.selected_processes, ["p1"])
        self.assertFalse(wizard.picker_open)

    def test_link_copies_staged_selection(self):
        wizard = IssueWizard.open(draft=IssueDraft(selected_processes=["p1"]))
        wizard.open_process_picker()
        wizard.toggle_temp_process("p1")
        wizard.toggle_temp_process("p2")
        wizard.link_processes()
        self.assertEqual(wizard.draft.selected_processes, ["p2"])

    def test_toggle_requires_open_picker(self):
        wizard = IssueWizard.open()
        with self.assertRaises(WizardError):
            wizard.toggle_temp_process("p1")

    def test_unlink_process(self):
        draft = IssueDraft(selected_processes=["p1", "p2"])
        draft.unlink_process("p1")
        draft.unlink_process("p9")
        self.assertEqual(draft.selected_processes, ["p2"])


class OptionListTests(SimpleTestCase):
    def test_adding_value_twice_appends_once_and_selects_it(self):
        wizard = IssueWizard.open(options={"category": ["Finance"]})
        self.assertEqual(wizard.add_option("category", "Legal"), "Legal")
        self.assertEqual(wizard.add_option("category", " Legal "), "Legal")
        self.assertEqual(wizard.options["category"].values, ["Finance", "Legal"])
        self.assertEqual(wizard.draft.category, "Legal")

    def test_blank_value_is_ignored(self):
        wizard = IssueWizard.open(options={"domain": ["Internal"]})
        self.assertIsNone(wizard.add_option("domain", "  "))
        self.assertEqual(wizard.options["domain"].values, ["Internal"])
        self.assertEqual(wizard.draft.domain, "Internal")

    def test_need_expectation_goes_to_pending_need(self):
        wizard = IssueWizard.open()
        wizard.add_option("need_expectation", "Quarterly briefing")
        self.assertEqual(wizard.pending_need, "Quarterly briefing")

    def test_unknown_list_is_rejected(self):
        with self.assertRaises(WizardError):
            IssueWizard.open().add_option("priority", "High")


class StakeholderNeedTests(SimpleTestCase):
    def test_needs_keep_insertion_order_and_remove_individually(self):
        reference = _reference()
        wizard = IssueWizard.open()
        for stakeholder_id, need in ((20, "Compliance"), (21, "Transparency"), (20, "Timely reporting")):
            wizard.pending_stakeholder_id = stakeholder_id
            wizard.pending_need = need
            wizard.add_pending_need()

        preview = wizard.preview(reference)
        self.assertEqual(
            [(item["stakeholder"], item["need_expectation"]) for item in preview["stakeholder_needs"]],
            [("Board", "Compliance"), ("Regulator", "Transparency"), ("Board", "Timely reporting")],
        )

        wizard.draft.remove_need(1)
        preview = wizard.preview(reference)
        self.assertEqual([item["need_expectation"] for item in preview["stakeholder_needs"]], ["Compliance", "Timely reporting"])
        self.assertEqual([item["index"] for item in preview["stakeholder_needs"]], [0, 1])

    def test_incomplete_need_is_not_added(self):
        wizard = IssueWizard.open()
        wizard.pending_stakeholder_id = 20
        self.assertIsNone(wizard.add_pending_need())
        self.assertEqual(wizard.draft.stakeholder_needs, [])

    def test_type_filter_drops_mismatched_stakeholder(self):
        wizard = IssueWizard.open()
        wizard.pending_stakeholder_id = 20
        wizard.set_stakeholder_type("External", _reference())
        self.assertIsNone(wizard.pending_stakeholder_id)

    def test_type_filter_keeps_matching_stakeholder(self):
        wizard = IssueWizard.open()
        wizard.pending_stakeholder_id = 21
        wizard.set_stakeholder_type("External", _reference())
        self.assertEqual(wizard.pending_stakeholder_id, 21)


class ReferenceDataTests(SimpleTestCase):
    def test_owners_are_filtered_by_department(self):
        reference = _reference()
        self.assertEqual(reference.owners_for(1), [(10, "Ada")])
        self.assertEqual(len(reference.owners_for(None)), 2)

    def test_preview_resolves_names(self):
        wizard = IssueWizard.open(
            draft=IssueDraft(title="Leak", department_id=1, owner_id=10, selected_regulations=[5], selected_processes=["p2"])
        )
        preview = wizard.preview(_reference())
        self.assertEqual(preview["department"], "IT")
        self.assertEqual(preview["owner"], "Ada")
        self.assertEqual(preview["regulations"], ["ISO 27001"])
        self.assertEqual(preview["processes"], ["PRO2 - Payroll"])
        self.assertEqual(preview["due_date"], "-")


class WizardSessionTests(SimpleTestCase):
    def test_round_trip_through_dict(self):
        wizard = IssueWizard.open(options={"domain": ["Internal", "IT"]}, issue_id=3)
        wizard.draft.title = "Round trip"
        wizard.draft.add_need(20, "Compliance")
        wizard.next(RecordingSubmit())
        wizard.open_process_picker()
        wizard.toggle_temp_process("p1")

        restored = IssueWizard.from_dict(wizard.to_dict())

        self.assertEqual(restored.current_step, wizard.current_step)
        self.assertEqual(restored.issue_id, 3)
        self.assertEqual(restored.draft, wizard.draft)
        self.assertEqual(restored.options["domain"].values, ["Internal", "IT"])
        self.assertTrue(restored.picker_open)
        self.assertEqual(restored.temp_selected_processes, ["p1"])
