from django import forms
from django.forms import modelform_factory
from django.utils.translation import gettext_lazy as _

from organization.models import Issue, Organization, Stakeholder
from organization.wizard import OPTION_LISTS, IssueDraft, ReferenceData


def _apply_bootstrap(form: forms.Form) -> None:
    for field in form.fields.values():
        widget = field.widget
        if widget.is_hidden:
            continue
        classes = widget.attrs.get("class", "").split()
        if isinstance(widget, (forms.CheckboxInput, forms.CheckboxSelectMultiple)):
            classes.append("form-check-input")
        elif isinstance(widget, (forms.Select, forms.SelectMultiple)):
            classes.append("form-select")
        else:
            classes.append("form-control")
        widget.attrs["class"] = " ".join(sorted(set(classes)))


def _option_choices(values, current: str | None = None, blank: bool = False) -> list[tuple[str, str]]:
    choices = [("", _("----"))] if blank else []
    choices.extend((value, value) for value in values)
    if current and current not in {value for value, _label in choices}:
        choices.append((current, current))
    return choices


def _id_choices(items) -> list[tuple[int, str]]:
    return [("", _("----"))] + list(items)


class OrganizationProfileForm(forms.ModelForm):
    class Meta:
        model = Organization
        fields = [
            "name",
            "established_date",
            "employee_count",
            "branch_count",
            "head_office_location",
            "head_office_address",
            "website",
            "description",
            "vision",
            "mission",
        ]
        widgets = {
            "established_date": forms.DateInput(attrs={"type": "date"}),
            "head_office_address": forms.Textarea(attrs={"rows": 2}),
            "description": forms.Textarea(attrs={"rows": 3}),
            "vision": forms.Textarea(attrs={"rows": 2}),
            "mission": forms.Textarea(attrs={"rows": 2}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        _apply_bootstrap(self)

    def clean_name(self):
        name = (self.cleaned_data.get("name") or "").strip()
        if not name:
            raise forms.ValidationError(_("Organization name is required."))
        return name


class StakeholderForm(forms.ModelForm):
    class Meta:
        model = Stakeholder
        fields = ["name", "email", "stakeholder_type", "status", "department"]
        labels = {"stakeholder_type": _("Type")}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["department"].required = False
        _apply_bootstrap(self)

    def clean_name(self):
        name = (self.cleaned_data.get("name") or "").strip()
        if not name:
            raise forms.ValidationError(_("Stakeholder name is required."))
        return name


class IssueInfoForm(forms.Form):
    """Step 1. Title is not required here; an empty title only blocks the final save."""

    title = forms.CharField(max_length=255, required=False)
    description = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 3}))
    domain = forms.ChoiceField(required=False)
    category = forms.ChoiceField(required=False)
    issue_type = forms.ChoiceField(required=False)
    status = forms.ChoiceField(choices=Issue.STATUS_CHOICES)
    due_date = forms.DateField(required=False, widget=forms.DateInput(attrs={"type": "date"}))
    department = forms.TypedChoiceField(coerce=int, empty_value=None, required=False)
    owner = forms.TypedChoiceField(coerce=int, empty_value=None, required=False)

    def __init__(self, *args, draft: IssueDraft, options: dict, reference: ReferenceData, **kwargs):
        kwargs.setdefault(
            "initial",
            {
                "title": draft.title,
                "description": draft.description,
                "domain": draft.domain,
                "category": draft.category,
                "issue_type": draft.issue_type,
                "status": draft.status,
                "due_date": draft.due_date or None,
                "department": draft.department_id,
                "owner": draft.owner_id,
            },
        )
        super().__init__(*args, **kwargs)
        self.fields["domain"].choices = _option_choices(options["domain"], draft.domain)
        self.fields["category"].choices = _option_choices(options["category"], draft.category)
        self.fields["issue_type"].choices = _option_choices(options["issue_type"], draft.issue_type, blank=True)
        self.fields["department"].choices = _id_choices(sorted(reference.departments.items(), key=lambda item: item[1]))
        department_id = draft.department_id
        if self.is_bound:
            try:
                department_id = int(self.data.get("department"))
            except (TypeError, ValueError):
                department_id = None
            if department_id != draft.department_id:
                # owner belongs to the previous department and is cleared on apply
                self.data = self.data.copy()
                self.data["owner"] = ""
        self.fields["owner"].choices = _id_choices(reference.owners_for(department_id))
        _apply_bootstrap(self)

    def apply_to(self, draft: IssueDraft) -> bool:
        """Copy cleaned values into the draft; returns True when the department changed."""
        data = self.cleaned_data
        draft.title = data.get("title") or ""
        draft.description = data.get("description") or ""
        draft.domain = data.get("domain") or ""
        draft.category = data.get("category") or ""
        draft.issue_type = data.get("issue_type") or ""
        draft.status = data.get("status") or Issue.STATUS_OPEN
        due_date = data.get("due_date")
        draft.due_date = due_date.isoformat() if due_date else ""
        department_id = data.get("department")
        if department_id != draft.department_id:
            draft.set_department(department_id)
            return True
        draft.owner_id = data.get("owner")
        return False


class IssueRegulationsForm(forms.Form):
    regulations = forms.TypedMultipleChoiceField(
        coerce=int, required=False, widget=forms.CheckboxSelectMultiple
    )

    def __init__(self, *args, draft: IssueDraft, reference: ReferenceData, **kwargs):
        kwargs.setdefault("initial", {"regulations": list(draft.selected_regulations)})
        super().__init__(*args, **kwargs)
        self.fields["regulations"].choices = sorted(reference.regulations.items(), key=lambda item: item[1])
        _apply_bootstrap(self)

    def apply_to(self, draft: IssueDraft) -> None:
        draft.set_regulations(self.cleaned_data.get("regulations") or [])


class ProcessPickerForm(forms.Form):
    processes = forms.TypedMultipleChoiceField(coerce=int, required=False, widget=forms.CheckboxSelectMultiple)

    def __init__(self, *args, selected, reference: ReferenceData, **kwargs):
        kwargs.setdefault("initial", {"processes": list(selected)})
        super().__init__(*args, **kwargs)
        self.fields["processes"].choices = sorted(reference.processes.items(), key=lambda item: item[1])
        _apply_bootstrap(self)


class StakeholderNeedForm(forms.Form):
    stakeholder_type = forms.ChoiceField(required=False)
    stakeholder = forms.TypedChoiceField(coerce=int, empty_value=None, required=False)
    need_expectation = forms.ChoiceField(required=False)

    def __init__(self, *args, stakeholder_type: str, options: dict, reference: ReferenceData, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["stakeholder_type"].choices = [("", _("All types"))] + list(Stakeholder.TYPE_CHOICES)
        self.fields["stakeholder"].choices = _id_choices(reference.stakeholders_of_type(stakeholder_type))
        self.fields["need_expectation"].choices = _option_choices(options["need_expectation"], blank=True)
        _apply_bootstrap(self)


class AddOptionForm(forms.Form):
    # shares the <form> with the step buttons, so the browser must not block them
    use_required_attribute = False

    list_key = forms.ChoiceField(choices=[(key, key) for key in OPTION_LISTS], widget=forms.HiddenInput)
    value = forms.CharField(max_length=128)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        _apply_bootstrap(self)


class IssueImportForm(forms.Form):
    file = forms.FileField()

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        _apply_bootstrap(self)


def settings_form_class(table_kind):
    return modelform_factory(table_kind.model, fields=list(table_kind.form_fields))


def build_settings_form(table_kind, *args, **kwargs) -> forms.ModelForm:
    form = settings_form_class(table_kind)(*args, **kwargs)
    _apply_bootstrap(form)
    return form
