"""Risk rating refresh, KPI counts and CSV export."""
from __future__ import annotations

import csv
import io
from typing import Iterable

from django.db.models import Count

from .models import Risk

EXPORT_HEADER = [
    "Risk ID",
    "Title",
    "Category",
    "Department",
    "Owner",
    "Likelihood",
    "Impact",
    "Risk Score",
    "Risk Rating",
    "Status",
    "Response Strategy",
    "Due Date",
]


def rerate_risks(risks: Iterable[Risk] | None = None) -> int:
    """Recompute score and rating for each risk; returns how many changed."""
    if risks is None:
        risks = Risk.objects.all()
    return sum(1 for risk in risks if risk.refresh_scores())


def risk_stats() -> dict:
    open_risks = Risk.objects.exclude(status=Risk.STATUS_CLOSED)

    def grouped(qs, field: str) -> dict[str, int]:
        rows = qs.values(field).annotate(total=Count("id")).order_by(field)
        return {row[field] or "-": row["total"] for row in rows}

    return {
        "total": Risk.objects.count(),
        "open": open_risks.count(),
        "high": sum(1 for risk in open_risks.only("risk_score", "risk_rating") if risk.is_high),
        "by_status": grouped(Risk.objects.all(), "status"),
        "by_rating": grouped(open_risks, "risk_rating"),
        "by_category": grouped(Risk.objects.all(), "category__name"),
    }


def risk_export_row(risk: Risk) -> list[str]:
    return [
        risk.risk_code,
        risk.title,
        risk.category.name if risk.category_id else "",
        risk.department.name if risk.department_id else "",
        risk.owner.get_username() if risk.owner_id else "",
        str(risk.likelihood),
        str(risk.impact),
        str(risk.risk_score),
        risk.risk_rating,
        risk.status,
        risk.response_strategy,
        risk.due_date.isoformat() if risk.due_date else "",
    ]


def export_risks_csv(risks: Iterable[Risk]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for risk in risks:
        writer.writerow(risk_export_row(risk))
    return buffer.getvalue()
