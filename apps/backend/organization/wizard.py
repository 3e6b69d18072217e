"""Five-step issue wizard.

The wizard holds an ``IssueDraft`` plus the step controller, the staged
process picker and the step 4 selections. It knows nothing about HTTP or
the ORM: the web UI stores it in the session through ``to_dict`` /
``from_dict`` and hands ``next()`` a submit callable that performs the
actual save.

Usage:
    wizard = IssueWizard.open(options=option_lists)
    wizard.draft.title = "Access review overdue"
    wizard.next(submit)  # Info -> Regulations
    ...
    outcome = wizard.next(submit)  # on Preview: submits
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Hashable

logger = logging.getLogger(__name__)

STEP_INFO = 1
STEP_REGULATIONS = 2
STEP_PROCESS = 3
STEP_STAKEHOLDER = 4
STEP_PREVIEW = 5

ISSUE_STEPS = [
    (STEP_INFO, "Info", "Basic information"),
    (STEP_REGULATIONS, "Regulations", "Related regulations"),
    (STEP_PROCESS, "Process", "Related processes"),
    (STEP_STAKEHOLDER, "Stakeholder", "Related stakeholders"),
    (STEP_PREVIEW, "Preview & Save", "Review and submit"),
]

LIST_DOMAIN = "domain"
LIST_CATEGORY = "category"
LIST_ISSUE_TYPE = "issue_type"
LIST_NEED_EXPECTATION = "need_expectation"
OPTION_LISTS = (LIST_DOMAIN, LIST_CATEGORY, LIST_ISSUE_TYPE, LIST_NEED_EXPECTATION)

OUTCOME_SAVED = "saved"
OUTCOME_BLOCKED = "blocked"
OUTCOME_FAILED = "failed"


class WizardError(Exception):
    pass


@dataclass
class StakeholderNeed:
    stakeholder_id: Hashable
    need_expectation: str


@dataclass
class IssueDraft:
    title: str = ""
    description: str = ""
    domain: str = "Internal"
    category: str = "Finance"
    issue_type: str = ""
    status: str = "Open"
    due_date: str = ""
    department_id: Hashable | None = None
    owner_id: Hashable | None = None
    selected_regulations: list = field(default_factory=list)
    selected_processes: list = field(default_factory=list)
    stakeholder_needs: list[StakeholderNeed] = field(default_factory=list)

    def is_submittable(self) -> bool:
        return bool((self.title or "").strip())

    def set_department(self, department_id: Hashable | None) -> None:
        # The owner select is filtered by department, so any owner is dropped.
        self.department_id = department_id or None
        self.owner_id = None

    def toggle_regulation(self, regulation_id: Hashable, checked: bool | None = None) -> None:
        selected = regulation_id in self.selected_regulations
        if checked is None:
            checked = not selected
        if checked and not selected:
            self.selected_regulations.append(regulation_id)
        elif not checked and selected:
            self.selected_regulations.remove(regulation_id)

    def set_regulations(self, regulation_ids) -> None:
        self.selected_regulations = []
        for regulation_id in regulation_ids:
            self.toggle_regulation(regulation_id, True)

    def unlink_process(self, process_id: Hashable) -> None:
        if process_id in self.selected_processes:
            self.selected_processes.remove(process_id)

    def add_need(self, stakeholder_id: Hashable, need_expectation: str) -> StakeholderNeed:
        need = StakeholderNeed(stakeholder_id=stakeholder_id, need_expectation=need_expectation)
        self.stakeholder_needs.append(need)
        return need

    def remove_need(self, index: int) -> None:
        if not 0 <= index < len(self.stakeholder_needs):
            raise WizardError(f"No stakeholder need at position {index}.")
        del self.stakeholder_needs[index]

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title.strip(),
            "description": self.description,
            "domain": self.domain,
            "category": self.category,
            "issue_type": self.issue_type,
            "status": self.status,
            "due_date": self.due_date or None,
            "department": self.department_id or None,
            "owner": self.owner_id or None,
            "regulation_ids": list(self.selected_regulations),
            "process_ids": list(self.selected_processes),
            "stakeholder_needs": [
                {"stakeholder": need.stakeholder_id, "need_expectation": need.need_expectation}
                for need in self.stakeholder_needs
            ],
        }

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IssueDraft":
        values = dict(data)
        values["stakeholder_needs"] = [StakeholderNeed(**item) for item in values.get("stakeholder_needs", [])]
        values["selected_regulations"] = list(values.get("selected_regulations", []))
        values["selected_processes"] = list(values.get("selected_processes", []))
        return cls(**values)


@dataclass
class OptionList:
    values: list[str] = field(default_factory=list)

    def add(self, value: str) -> str | None:
        """Append ``value`` once; returns the cleaned value, or None when blank."""
        cleaned = (value or "").strip()
        if not cleaned:
            return None
        if cleaned not in self.values:
            self.values.append(cleaned)
        return cleaned

    def __contains__(self, value: str) -> bool:
        return value in self.values

    def __iter__(self):
        return iter(self.values)


@dataclass
class UserRef:
    name: str
    department_id: Hashable | None = None


@dataclass
class StakeholderRef:
    name: str
    stakeholder_type: str


@dataclass
class ReferenceData:
    departments: dict = field(default_factory=dict)
    users: dict = field(default_factory=dict)
    regulations: dict = field(default_factory=dict)
    processes: dict = field(default_factory=dict)
    stakeholders: dict = field(default_factory=dict)

    def owners_for(self, department_id: Hashable | None) -> list[tuple[Hashable, str]]:
        return [
            (user_id, user.name)
            for user_id, user in self.users.items()
            if department_id is None or user.department_id == department_id
        ]

    def stakeholders_of_type(self, stakeholder_type: str | None) -> list[tuple[Hashable, str]]:
        return [
            (stakeholder_id, stakeholder.name)
            for stakeholder_id, stakeholder in self.stakeholders.items()
            if not stakeholder_type or stakeholder.stakeholder_type == stakeholder_type
        ]

    def stakeholder_name(self, stakeholder_id: Hashable) -> str:
        stakeholder = self.stakeholders.get(stakeholder_id)
        return stakeholder.name if stakeholder else "-"


@dataclass
class SubmitOutcome:
    status: str
    result: Any = None
    error: str = ""

    @property
    def saved(self) -> bool:
        return self.status == OUTCOME_SAVED


SubmitHandler = Callable[[IssueDraft, Any], Any]


class IssueWizard:
    FIRST_STEP = STEP_INFO
    LAST_STEP = STEP_PREVIEW

    def __init__(
        self,
        *,
        draft: IssueDraft | None = None,
        current_step: int = STEP_INFO,
        is_open: bool = False,
        issue_id: Any = None,
        options: dict[str, list[str]] | None = None,
        picker_open: bool = False,
        temp_selected_processes: list | None = None,
        stakeholder_type_filter: str = "",
        pending_stakeholder_id: Hashable | None = None,
        pending_need: str = "",
    ) -> None:
        if not self.FIRST_STEP <= current_step <= self.LAST_STEP:
            raise WizardError(f"Step out of range: {current_step}")
        self.draft = draft or IssueDraft()
        self.current_step = current_step
        self.is_open = is_open
        self.issue_id = issue_id
        self.options = {key: OptionList(list((options or {}).get(key, []))) for key in OPTION_LISTS}
        self.picker_open = picker_open
        self.temp_selected_processes = list(temp_selected_processes or [])
        self.stakeholder_type_filter = stakeholder_type_filter
        self.pending_stakeholder_id = pending_stakeholder_id
        self.pending_need = pending_need

    @classmethod
    def open(
        cls,
        *,
        draft: IssueDraft | None = None,
        issue_id: Any = None,
        options: dict[str, list[str]] | None = None,
    ) -> "IssueWizard":
        return cls(draft=draft, issue_id=issue_id, options=options, is_open=True)

    @property
    def is_editing(self) -> bool:
        return self.issue_id is not None

    @property
    def is_last_step(self) -> bool:
        return self.current_step == self.LAST_STEP

    def _require_open(self) -> None:
        if not self.is_open:
            raise WizardError("The wizard is closed.")

    # Step controller

    def next(self, submit: SubmitHandler) -> SubmitOutcome | None:
        self._require_open()
        if self.current_step == self.LAST_STEP:
            return self.submit(submit)
        self.current_step += 1
        return None

    def previous(self) -> None:
        self._require_open()
        if self.current_step == self.FIRST_STEP:
            self.close()
            return
        self.current_step -= 1

    def close(self) -> None:
        self.is_open = False
        self.current_step = self.FIRST_STEP
        self.draft = IssueDraft()
        self.issue_id = None
        self.close_process_picker()
        self.stakeholder_type_filter = ""
        self.pending_stakeholder_id = None
        self.pending_need = ""

    def submit(self, handler: SubmitHandler) -> SubmitOutcome:
        self._require_open()
        if not self.draft.is_submittable():
            return SubmitOutcome(status=OUTCOME_BLOCKED, error="Issue title is required.")
        try:
            result = handler(self.draft, self.issue_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Issue submission failed: %s", exc, exc_info=True)
            return SubmitOutcome(status=OUTCOME_FAILED, error=str(exc) or "Failed to save issue.")
        self.close()
        return SubmitOutcome(status=OUTCOME_SAVED, result=result)

    # Option sub-dialogs

    def add_option(self, list_key: str, value: str) -> str | None:
        if list_key not in self.options:
            raise WizardError(f"Unknown option list: {list_key}")
        added = self.options[list_key].add(value)
        if added is None:
            return None
        if list_key == LIST_DOMAIN:
            self.draft.domain = added
        elif list_key == LIST_CATEGORY:
            self.draft.category = added
        elif list_key == LIST_ISSUE_TYPE:
            self.draft.issue_type = added
        else:
            self.pending_need = added
        return added

    # Step 3: staged process picker

    def open_process_picker(self) -> None:
        self.temp_selected_processes = list(self.draft.selected_processes)
        self.picker_open = True

    def toggle_temp_process(self, process_id: Hashable, checked: bool | None = None) -> None:
        if not self.picker_open:
            raise WizardError("The process picker is not open.")
        selected = process_id in self.temp_selected_processes
        if checked is None:
            checked = not selected
        if checked and not selected:
            self.temp_selected_processes.append(process_id)
        elif not checked and selected:
            self.temp_selected_processes.remove(process_id)

    def link_processes(self) -> None:
        if not self.picker_open:
            raise WizardError("The process picker is not open.")
        self.draft.selected_processes = list(self.temp_selected_processes)
        self.close_process_picker()

    def close_process_picker(self) -> None:
        self.temp_selected_processes = []
        self.picker_open = False

    # Step 4: stakeholder needs

    def set_stakeholder_type(self, stakeholder_type: str, reference: ReferenceData | None = None) -> None:
        self.stakeholder_type_filter = stakeholder_type or ""
        if reference is None or self.pending_stakeholder_id is None:
            return
        allowed = {stakeholder_id for stakeholder_id, _ in reference.stakeholders_of_type(self.stakeholder_type_filter)}
        if self.pending_stakeholder_id not in allowed:
            self.pending_stakeholder_id = None

    def add_pending_need(self) -> StakeholderNeed | None:
        need_expectation = (self.pending_need or "").strip()
        if self.pending_stakeholder_id is None or not need_expectation:
            return None
        need = self.draft.add_need(self.pending_stakeholder_id, need_expectation)
        self.pending_stakeholder_id = None
        self.pending_need = ""
        return need

    # Step 5

    def preview(self, reference: ReferenceData) -> dict[str, Any]:
        draft = self.draft
        owner = reference.users.get(draft.owner_id)
        return {
            "title": draft.title or "-",
            "description": draft.description,
            "domain": draft.domain or "-",
            "category": draft.category or "-",
            "issue_type": draft.issue_type or "-",
            "status": draft.status or "-",
            "due_date": draft.due_date or "-",
            "department": reference.departments.get(draft.department_id, "-"),
            "owner": owner.name if owner else "-",
            "regulations": [reference.regulations[item] for item in draft.selected_regulations if item in reference.regulations],
            "processes": [reference.processes[item] for item in draft.selected_processes if item in reference.processes],
            "stakeholder_needs": [
                {
                    "index": index,
                    "stakeholder": reference.stakeholder_name(need.stakeholder_id),
                    "need_expectation": need.need_expectation,
                }
                for index, need in enumerate(draft.stakeholder_needs)
            ],
        }

    # Session storage

    def to_dict(self) -> dict[str, Any]:
        return {
            "draft": self.draft.to_dict(),
            "current_step": self.current_step,
            "is_open": self.is_open,
            "issue_id": self.issue_id,
            "options": {key: list(option_list.values) for key, option_list in self.options.items()},
            "picker_open": self.picker_open,
            "temp_selected_processes": list(self.temp_selected_processes),
            "stakeholder_type_filter": self.stakeholder_type_filter,
            "pending_stakeholder_id": self.pending_stakeholder_id,
            "pending_need": self.pending_need,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IssueWizard":
        values = dict(data)
        values["draft"] = IssueDraft.from_dict(values.get("draft", {}))
        return cls(**values)
