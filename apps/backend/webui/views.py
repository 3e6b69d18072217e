import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.paginator import Paginator
from django.db.models import ProtectedError, Q
from django.http import Http404, HttpResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.utils.translation import gettext as _
from django.views.decorators.http import require_GET, require_POST

from asset.models import Asset
from core.audit import audit_instance, create_audit_event
from core.models import AuditEvent
from core.permissions import (
    can_manage_assets,
    can_manage_context,
    can_manage_organization,
    can_manage_risks,
    has_any_role,
    ROLE_GRC_ADMIN,
)
from core.tables import get_table_kind, kinds_for_section, project_rows
from organization.csv_io import export_issues_csv, import_issues_csv
from organization.models import Department, Issue, Organization, Stakeholder
from organization.services import (
    draft_from_issue,
    load_reference_data,
    option_lists,
    persist_option,
    submit_issue_draft,
)
from organization.wizard import (
    ISSUE_STEPS,
    OPTION_LISTS,
    STEP_INFO,
    STEP_PROCESS,
    STEP_REGULATIONS,
    STEP_STAKEHOLDER,
    IssueWizard,
    WizardError,
)
from risk.models import Risk
from risk.tasks import rerate_all_risks

from .forms import (
    AddOptionForm,
    IssueImportForm,
    IssueInfoForm,
    IssueRegulationsForm,
    OrganizationProfileForm,
    ProcessPickerForm,
    StakeholderForm,
    StakeholderNeedForm,
    build_settings_form,
)

logger = logging.getLogger(__name__)

WIZARD_SESSION_KEY = "issue_wizard"
SETTINGS_SECTIONS = {"asset": "Asset Settings", "risk": "Risk Settings"}


def _permission_context(user) -> dict:
    return {
        "can_manage_organization": can_manage_organization(user),
        "can_manage_context": can_manage_context(user),
        "can_manage_risks": can_manage_risks(user),
        "can_manage_assets": can_manage_assets(user),
        "can_view_audit": has_any_role(user, ROLE_GRC_ADMIN),
    }


def _stats_card(label: str, value: int, url: str | None = None) -> dict:
    return {"label": label, "value": value, "url": url}


@login_required
def dashboard(request):
    open_issues = Issue.objects.exclude(status__in=[Issue.STATUS_RESOLVED, Issue.STATUS_CLOSED])
    open_risks = Risk.objects.exclude(status=Risk.STATUS_CLOSED)
    high_risk_count = sum(1 for risk in open_risks.only("risk_score", "risk_rating") if risk.is_high)
    context_url = reverse("webui:context")

    stats_cards = [
        _stats_card(_("Open Issues"), open_issues.count(), context_url),
        _stats_card(_("Stakeholders"), Stakeholder.objects.filter(status=Stakeholder.STATUS_ACTIVE).count(), context_url),
        _stats_card(_("Open Risks"), open_risks.count()),
        _stats_card(_("High / Critical Risks"), high_risk_count),
        _stats_card(_("Assets"), Asset.objects.count(), reverse("webui:settings", args=["asset"])),
        _stats_card(_("Departments"), Department.objects.count()),
    ]
    context = {
        "stats_cards": stats_cards,
        "organization": Organization.current(),
        "recent_issues": Issue.objects.select_related("department").order_by("-created_at")[:5],
        **_permission_context(request.user),
    }
    return render(request, "webui/dashboard.html", context)


@login_required
def organization_profile(request):
    organization = Organization.current()
    editing = request.GET.get("edit") == "1" or organization is None
    form = OrganizationProfileForm(data=request.POST or None, instance=organization)

    if request.method == "POST":
        if not can_manage_organization(request.user):
            messages.error(request, _("You do not have permission to edit the organization profile."))
            return redirect("webui:organization")
        if form.is_valid():
            organization = form.save()
            audit_instance(organization, "update", request=request)
            messages.success(request, _("Organization profile saved."))
            return redirect("webui:organization")
        messages.error(request, _("Please fix the organization profile errors."))
        editing = True

    return render(
        request,
        "webui/organization_profile.html",
        {
            "organization": organization,
            "form": form,
            "editing": editing,
            **_permission_context(request.user),
        },
    )


def _delete_with_audit(request, instance, label: str) -> bool:
    entity_type = instance._meta.model_name
    entity_id, entity_label = instance.pk, str(instance)
    try:
        instance.delete()
    except ProtectedError:
        messages.error(request, _("%(label)s is still referenced and cannot be deleted.") % {"label": label})
        return False
    create_audit_event(
        action=f"{entity_type}.delete",
        entity_type=entity_type,
        entity_id=entity_id,
        entity_label=entity_label,
        request=request,
    )
    messages.success(request, _("%(label)s deleted.") % {"label": label})
    return True


@login_required
def context_page(request):
    if request.method == "POST":
        if not can_manage_context(request.user):
            messages.error(request, _("You do not have permission to manage the organization context."))
            return redirect("webui:context")
        action = request.POST.get("action")
        if action == "delete_stakeholder":
            stakeholder = Stakeholder.objects.filter(id=request.POST.get("stakeholder_id")).first()
            if stakeholder:
                _delete_with_audit(request, stakeholder, _("Stakeholder"))
        elif action == "delete_issue":
            issue = Issue.objects.filter(id=request.POST.get("issue_id")).first()
            if issue:
                _delete_with_audit(request, issue, _("Issue"))
        return redirect("webui:context")

    stakeholder_query = request.GET.get("sq", "").strip()
    selected_type = request.GET.get("type", "").strip()
    selected_stakeholder_status = request.GET.get("stakeholder_status", "").strip()
    stakeholders = Stakeholder.objects.select_related("department").order_by("name")
    if stakeholder_query:
        stakeholders = stakeholders.filter(Q(name__icontains=stakeholder_query) | Q(email__icontains=stakeholder_query))
    if selected_type:
        stakeholders = stakeholders.filter(stakeholder_type=selected_type)
    if selected_stakeholder_status:
        stakeholders = stakeholders.filter(status=selected_stakeholder_status)

    issue_query = request.GET.get("q", "").strip()
    selected_domain = request.GET.get("domain", "").strip()
    selected_category = request.GET.get("category", "").strip()
    selected_department = request.GET.get("department", "").strip()
    issues = Issue.objects.select_related("department", "owner").order_by("-created_at")
    if issue_query:
        issues = issues.filter(Q(title__icontains=issue_query) | Q(description__icontains=issue_query))
    if selected_domain:
        issues = issues.filter(domain=selected_domain)
    if selected_category:
        issues = issues.filter(category=selected_category)
    if selected_department:
        issues = issues.filter(department_id=selected_department)

    stakeholder_page = Paginator(stakeholders, 20).get_page(request.GET.get("spage"))
    issue_page = Paginator(issues, 20).get_page(request.GET.get("page"))
    options = option_lists()

    return render(
        request,
        "webui/context.html",
        {
            "stakeholders": stakeholder_page,
            "issues": issue_page,
            "stakeholder_query": stakeholder_query,
            "selected_type": selected_type,
            "selected_stakeholder_status": selected_stakeholder_status,
            "issue_query": issue_query,
            "selected_domain": selected_domain,
            "selected_category": selected_category,
            "selected_department": selected_department,
            "stakeholder_type_choices": Stakeholder.TYPE_CHOICES,
            "stakeholder_status_choices": Stakeholder.STATUS_CHOICES,
            "domain_choices": options["domain"],
            "category_choices": options["category"],
            "departments": Department.objects.order_by("name"),
            "import_form": IssueImportForm(),
            **_permission_context(request.user),
        },
    )


@login_required
@require_GET
def issue_export_csv(request):
    issues = Issue.objects.select_related("department").order_by("-created_at")
    response = HttpResponse(export_issues_csv(issues), content_type="text/csv")
    response["Content-Disposition"] = 'attachment; filename="issues.csv"'
    return response


@login_required
@require_POST
def issue_import_csv(request):
    if not can_manage_context(request.user):
        messages.error(request, _("You do not have permission to import issues."))
        return redirect("webui:context")
    form = IssueImportForm(request.POST, request.FILES)
    if not form.is_valid():
        messages.error(request, _("Choose a CSV file to import."))
        return redirect("webui:context")
    text = form.cleaned_data["file"].read().decode("utf-8-sig", errors="replace")
    try:
        result = import_issues_csv(text, request=request)
    except ValueError as exc:
        messages.error(request, str(exc))
        return redirect("webui:context")
    messages.success(
        request,
        _("Imported %(created)s issues, skipped %(skipped)s rows.") % {"created": result.created, "skipped": result.skipped},
    )
    return redirect("webui:context")


@login_required
def stakeholder_form(request, stakeholder_id: int | None = None):
    instance = get_object_or_404(Stakeholder, id=stakeholder_id) if stakeholder_id else None
    form = StakeholderForm(data=request.POST or None, instance=instance)

    if request.method == "POST":
        if request.POST.get("action") == "cancel":
            return redirect("webui:context")
        if not can_manage_context(request.user):
            messages.error(request, _("You do not have permission to manage stakeholders."))
            return redirect("webui:context")
        if form.is_valid():
            stakeholder = form.save()
            audit_instance(stakeholder, "update" if instance else "create", request=request)
            messages.success(request, _("Stakeholder saved."))
            return redirect("webui:context")
        messages.error(request, _("Please fix the stakeholder form errors."))

    return render(
        request,
        "webui/stakeholder_form.html",
        {"form": form, "stakeholder": instance, **_permission_context(request.user)},
    )


def _load_wizard(request) -> IssueWizard | None:
    data = request.session.get(WIZARD_SESSION_KEY)
    if not data:
        return None
    return IssueWizard.from_dict(data)


def _posted_int(request, key: str) -> int:
    try:
        return int(request.POST.get(key))
    except (TypeError, ValueError):
        raise WizardError(_("Invalid selection.")) from None


def _store_wizard(request, wizard: IssueWizard) -> None:
    if wizard.is_open:
        request.session[WIZARD_SESSION_KEY] = wizard.to_dict()
    else:
        request.session.pop(WIZARD_SESSION_KEY, None)


@login_required
def issue_wizard_start(request, issue_id: int | None = None):
    if not can_manage_context(request.user):
        messages.error(request, _("You do not have permission to manage issues."))
        return redirect("webui:context")
    draft = None
    if issue_id:
        draft = draft_from_issue(get_object_or_404(Issue, id=issue_id))
    wizard = IssueWizard.open(draft=draft, issue_id=issue_id, options=option_lists())
    _store_wizard(request, wizard)
    return redirect("webui:issue-wizard")


def _step_forms(wizard: IssueWizard, reference, data=None) -> dict:
    draft = wizard.draft
    forms = {}
    if wizard.current_step == STEP_INFO:
        forms["info_form"] = IssueInfoForm(
            data=data, draft=draft, options={k: v.values for k, v in wizard.options.items()}, reference=reference
        )
    elif wizard.current_step == STEP_REGULATIONS:
        forms["regulations_form"] = IssueRegulationsForm(data=data, draft=draft, reference=reference)
    elif wizard.current_step == STEP_PROCESS and wizard.picker_open:
        forms["picker_form"] = ProcessPickerForm(
            data=data, selected=wizard.temp_selected_processes, reference=reference
        )
    elif wizard.current_step == STEP_STAKEHOLDER:
        forms["need_form"] = StakeholderNeedForm(
            data=data,
            initial={
                "stakeholder_type": wizard.stakeholder_type_filter,
                "stakeholder": wizard.pending_stakeholder_id,
                "need_expectation": wizard.pending_need,
            },
            stakeholder_type=wizard.stakeholder_type_filter,
            options={k: v.values for k, v in wizard.options.items()},
            reference=reference,
        )
    return forms


def _apply_step(wizard: IssueWizard, forms: dict, reference) -> bool:
    """Copy the posted step form into the wizard; returns False on form errors."""
    if "info_form" in forms:
        form = forms["info_form"]
        if not form.is_valid():
            return False
        form.apply_to(wizard.draft)
    elif "regulations_form" in forms:
        form = forms["regulations_form"]
        if not form.is_valid():
            return False
        form.apply_to(wizard.draft)
    elif "need_form" in forms:
        form = forms["need_form"]
        if not form.is_valid():
            return False
        wizard.pending_stakeholder_id = form.cleaned_data.get("stakeholder")
        wizard.set_stakeholder_type(form.cleaned_data.get("stakeholder_type") or "", reference)
        wizard.pending_need = form.cleaned_data.get("need_expectation") or ""
    return True


@login_required
def issue_wizard(request):
    wizard = _load_wizard(request)
    if wizard is None or not wizard.is_open:
        messages.info(request, _("Start a new issue from the context page."))
        return redirect("webui:context")

    reference = load_reference_data()

    if request.method == "POST":
        if not can_manage_context(request.user):
            messages.error(request, _("You do not have permission to manage issues."))
            return redirect("webui:context")

        action = request.POST.get("action", "next")
        open_option = request.POST.get("open_option", "")
        if open_option in OPTION_LISTS:
            action = "refresh"
        elif "remove_index" in request.POST:
            action = "remove_need"
        elif "unlink_process_id" in request.POST:
            action = "unlink_process"
        forms = _step_forms(wizard, reference, data=request.POST)
        try:
            response = _handle_wizard_action(request, wizard, action, forms, reference)
        except WizardError as exc:
            logger.info("Rejected wizard action %s: %s", action, exc)
            messages.error(request, str(exc))
            response = None
        _store_wizard(request, wizard)
        if response is not None:
            return response
        if action == "refresh" and open_option in OPTION_LISTS:
            return redirect(f"{reverse('webui:issue-wizard')}?option={open_option}")
        return redirect("webui:issue-wizard")

    forms = _step_forms(wizard, reference)
    add_option_form = AddOptionForm(initial={"list_key": request.GET.get("option", "domain")})
    return render(
        request,
        "webui/issue_wizard.html",
        {
            "wizard": wizard,
            "steps": ISSUE_STEPS,
            "draft": wizard.draft,
            "reference": reference,
            "linked_processes": [
                (process_id, reference.processes.get(process_id, "-")) for process_id in wizard.draft.selected_processes
            ],
            "preview": wizard.preview(reference),
            "add_option_form": add_option_form,
            "adding_option": request.GET.get("option", ""),
            **forms,
            **_permission_context(request.user),
        },
    )


def _handle_wizard_action(request, wizard: IssueWizard, action: str, forms: dict, reference):
    if action == "cancel":
        wizard.close()
        messages.info(request, _("Issue discarded."))
        return redirect("webui:context")

    if action == "add_option":
        option_form = AddOptionForm(request.POST)
        if option_form.is_valid():
            _apply_step(wizard, forms, reference)
            list_key = option_form.cleaned_data["list_key"]
            added = wizard.add_option(list_key, option_form.cleaned_data["value"])
            if added:
                persist_option(list_key, added, request=request)
        else:
            messages.error(request, _("Enter a value to add."))
        return None

    if action in ("open_picker", "link_processes", "close_picker", "unlink_process"):
        if action == "open_picker":
            wizard.open_process_picker()
        elif action == "link_processes":
            form = forms.get("picker_form")
            if form is None or not form.is_valid():
                raise WizardError(_("The process picker is not open."))
            wizard.temp_selected_processes = []
            for process_id in form.cleaned_data["processes"]:
                wizard.toggle_temp_process(process_id, True)
            wizard.link_processes()
        elif action == "close_picker":
            wizard.close_process_picker()
        else:
            wizard.draft.unlink_process(_posted_int(request, "unlink_process_id"))
        return None

    if action == "add_need":
        if _apply_step(wizard, forms, reference) and wizard.add_pending_need() is None:
            messages.error(request, _("Select a stakeholder and a need / expectation."))
        return None

    if action == "remove_need":
        _apply_step(wizard, forms, reference)
        wizard.draft.remove_need(_posted_int(request, "remove_index"))
        return None

    if not _apply_step(wizard, forms, reference):
        messages.error(request, _("Please check the values you entered."))
        return None

    if action in ("refresh", "set_stakeholder_type"):
        return None

    if action == "previous":
        wizard.previous()
        if not wizard.is_open:
            return redirect("webui:context")
        return None

    outcome = wizard.next(lambda draft, issue_id: submit_issue_draft(draft, issue_id, request=request))
    if outcome is None:
        return None
    if outcome.saved:
        messages.success(request, _("Issue saved: %(title)s") % {"title": outcome.result.title})
        return redirect("webui:context")
    messages.error(request, outcome.error)
    return None


@login_required
def settings_page(request, section: str):
    if section not in SETTINGS_SECTIONS:
        raise Http404("Unknown settings section.")
    table_kinds = kinds_for_section(section)
    try:
        table_kind = get_table_kind(request.GET.get("kind") or request.POST.get("kind") or table_kinds[0].kind)
    except LookupError as exc:
        raise Http404(str(exc)) from exc
    if table_kind.section != section:
        raise Http404("Unknown settings table.")

    can_manage = table_kind.can_manage(request.user)
    form = build_settings_form(table_kind, data=request.POST or None, prefix="entry")
    page_url = f"{reverse('webui:settings', args=[section])}?kind={table_kind.kind}"

    if request.method == "POST":
        if not can_manage:
            messages.error(request, _("You do not have permission to manage %(title)s.") % {"title": table_kind.title})
            return redirect(page_url)
        action = request.POST.get("action", "create")
        changed = False
        if action == "delete":
            obj = table_kind.model.objects.filter(id=request.POST.get("row_id")).first()
            if obj is not None:
                changed = _delete_with_audit(request, obj, table_kind.title)
        elif form.is_valid():
            obj = form.save()
            audit_instance(obj, "create", request=request)
            messages.success(request, _("%(title)s created.") % {"title": table_kind.title})
            changed = True
        else:
            messages.error(request, _("Please fix the form errors."))
            return _render_settings(request, section, table_kinds, table_kind, form, can_manage)
        if changed and table_kind.model_label == "risk.RiskRange":
            rerate_all_risks.delay()
        return redirect(page_url)

    return _render_settings(request, section, table_kinds, table_kind, form, can_manage)


def _render_settings(request, section, table_kinds, table_kind, form, can_manage):
    rows = project_rows(table_kind, table_kind.queryset(), can_manage=can_manage)
    return render(
        request,
        "webui/settings_table.html",
        {
            "section": section,
            "section_title": SETTINGS_SECTIONS[section],
            "table_kinds": table_kinds,
            "table_kind": table_kind,
            "rows": rows,
            "form": form,
            "can_manage_table": can_manage,
            "show_form": request.GET.get("new") == "1" or form.is_bound,
            **_permission_context(request.user),
        },
    )


@login_required
def audit_log(request):
    if not has_any_role(request.user, ROLE_GRC_ADMIN):
        messages.error(request, _("You do not have permission to view the audit log."))
        return redirect("webui:dashboard")
    events = AuditEvent.objects.select_related("user").order_by("-created_at")
    selected_status = request.GET.get("status", "").strip()
    query = request.GET.get("q", "").strip()
    if selected_status:
        events = events.filter(status=selected_status)
    if query:
        events = events.filter(Q(action__icontains=query) | Q(entity_label__icontains=query) | Q(message__icontains=query))
    page_obj = Paginator(events, 50).get_page(request.GET.get("page"))
    return render(
        request,
        "webui/audit_log.html",
        {
            "events": page_obj,
            "page_obj": page_obj,
            "query": query,
            "selected_status": selected_status,
            "status_choices": AuditEvent.STATUS_CHOICES,
            **_permission_context(request.user),
        },
    )
