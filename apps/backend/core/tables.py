"""Tagged row projection for the generic settings tables.

Every lookup entity rendered by the settings pages is described by one
``TableKind``. The set of kinds is closed: pages and forms only accept a
kind registered here, and every row handed to a template is a
``TableRow`` with the same ``kind / id / display_name / actions`` shape,
whatever model it came from.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from django.apps import apps

from .permissions import can_manage_assets, can_manage_risks

ACTION_DELETE = "delete"


@dataclass(frozen=True)
class TableKind:
    kind: str
    section: str
    title: str
    model_label: str
    columns: tuple[tuple[str, str], ...]
    form_fields: tuple[str, ...]
    can_manage: Callable[[Any], bool]
    ordering: tuple[str, ...] = ("name",)

    @property
    def model(self):
        return apps.get_model(self.model_label)

    def queryset(self):
        return self.model.objects.order_by(*self.ordering)


@dataclass(frozen=True)
class TableRow:
    kind: str
    id: int
    display_name: str
    cells: tuple[str, ...]
    actions: tuple[str, ...] = field(default_factory=tuple)


def _resolve(obj: Any, path: str) -> str:
    value = obj
    for part in path.split("."):
        value = getattr(value, part, None)
        if value is None:
            return "-"
    if value == "":
        return "-"
    return str(value)


_KINDS = [
    TableKind(
        kind="asset-categories",
        section="asset",
        title="Asset Category",
        model_label="asset.AssetCategory",
        columns=(("Name", "name"), ("Description", "description"), ("Status", "status")),
        form_fields=("name", "description", "status"),
        can_manage=can_manage_assets,
    ),
    TableKind(
        kind="asset-sub-categories",
        section="asset",
        title="Asset Sub Category",
        model_label="asset.AssetSubCategory",
        columns=(("Name", "name"), ("Category", "category.name"), ("Status", "status")),
        form_fields=("name", "category", "description", "status"),
        can_manage=can_manage_assets,
    ),
    TableKind(
        kind="asset-groups",
        section="asset",
        title="Asset Group",
        model_label="asset.AssetGroup",
        columns=(("Name", "name"), ("Description", "description")),
        form_fields=("name", "description"),
        can_manage=can_manage_assets,
    ),
    TableKind(
        kind="asset-lifecycle-statuses",
        section="asset",
        title="Lifecycle Status",
        model_label="asset.AssetLifecycleStatus",
        columns=(("Order", "order"), ("Name", "name"), ("Description", "description")),
        form_fields=("name", "description", "order"),
        can_manage=can_manage_assets,
        ordering=("order", "name"),
    ),
    TableKind(
        kind="asset-sensitivities",
        section="asset",
        title="Asset Sensitivity",
        model_label="asset.AssetSensitivity",
        columns=(("Name", "name"), ("Description", "description")),
        form_fields=("name", "description"),
        can_manage=can_manage_assets,
    ),
    TableKind(
        kind="cia-ratings",
        section="asset",
        title="CIA Rating",
        model_label="asset.CIARating",
        columns=(("Type", "rating_type"), ("Label", "label"), ("Value", "value")),
        form_fields=("rating_type", "label", "value"),
        can_manage=can_manage_assets,
        ordering=("rating_type", "-value"),
    ),
    TableKind(
        kind="risk-categories",
        section="risk",
        title="Risk Category",
        model_label="risk.RiskCategory",
        columns=(("Name", "name"), ("Description", "description"), ("Color", "color"), ("Status", "status")),
        form_fields=("name", "description", "color", "status"),
        can_manage=can_manage_risks,
    ),
    TableKind(
        kind="control-strengths",
        section="risk",
        title="Control Strength",
        model_label="risk.ControlStrength",
        columns=(("Name", "name"), ("Score", "score")),
        form_fields=("name", "score"),
        can_manage=can_manage_risks,
        ordering=("score", "name"),
    ),
    TableKind(
        kind="risk-likelihoods",
        section="risk",
        title="Likelihood",
        model_label="risk.RiskLikelihood",
        columns=(("Title", "title"), ("Score", "score"), ("Time Frame", "time_frame"), ("Probability", "probability")),
        form_fields=("title", "score", "time_frame", "probability"),
        can_manage=can_manage_risks,
        ordering=("score",),
    ),
    TableKind(
        kind="impact-ratings",
        section="risk",
        title="Impact Rating",
        model_label="risk.ImpactRating",
        columns=(("Name", "name"), ("Score", "score"), ("Description", "description")),
        form_fields=("name", "score", "description"),
        can_manage=can_manage_risks,
        ordering=("score",),
    ),
    TableKind(
        kind="risk-ranges",
        section="risk",
        title="Risk Range",
        model_label="risk.RiskRange",
        columns=(("Title", "title"), ("Low", "low_range"), ("High", "high_range"), ("Timeline (days)", "timeline_days")),
        form_fields=("title", "color", "low_range", "high_range", "timeline_days", "description"),
        can_manage=can_manage_risks,
        ordering=("low_range",),
    ),
]

TABLE_KINDS: dict[str, TableKind] = {item.kind: item for item in _KINDS}


def get_table_kind(kind: str) -> TableKind:
    try:
        return TABLE_KINDS[kind]
    except KeyError as exc:
        raise LookupError(f"Unknown settings table: {kind}") from exc


def kinds_for_section(section: str) -> list[TableKind]:
    return [item for item in _KINDS if item.section == section]


def project_row(table_kind: TableKind, obj: Any, *, can_manage: bool = False) -> TableRow:
    return TableRow(
        kind=table_kind.kind,
        id=obj.pk,
        display_name=str(obj),
        cells=tuple(_resolve(obj, path) for _, path in table_kind.columns),
        actions=(ACTION_DELETE,) if can_manage else (),
    )


def project_rows(table_kind: TableKind, objects: Iterable[Any], *, can_manage: bool = False) -> list[TableRow]:
    return [project_row(table_kind, obj, can_manage=can_manage) for obj in objects]
