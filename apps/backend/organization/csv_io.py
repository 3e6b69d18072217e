"""Issue CSV export and best-effort import."""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Iterable

from django.conf import settings
from django.db import DatabaseError
from rest_framework import serializers

from core.audit import audit_instance

from .models import Issue
from .serializers import IssueSerializer

logger = logging.getLogger(__name__)

EXPORT_HEADER = ["Title", "Description", "Domain", "Category", "Issue Type", "Status", "Department"]

# normalized header -> serializer field
IMPORT_COLUMNS = {
    "title": "title",
    "description": "description",
    "domain": "domain",
    "category": "category",
    "issuetype": "issue_type",
    "status": "status",
}


def issue_export_row(issue: Issue) -> list[str]:
    department = issue.department.name if issue.department_id else ""
    return [
        issue.title or "",
        issue.description or "",
        issue.domain or "",
        issue.category or "",
        issue.issue_type or "",
        issue.status or "",
        department,
    ]


def write_issues_csv(issues: Iterable[Issue], stream) -> None:
    writer = csv.writer(stream, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for issue in issues:
        writer.writerow(issue_export_row(issue))


def export_issues_csv(issues: Iterable[Issue]) -> str:
    buffer = io.StringIO()
    write_issues_csv(issues, buffer)
    return buffer.getvalue()


def normalize_header(name: str) -> str:
    return "".join((name or "").split()).lower()


@dataclass
class ImportResult:
    created: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"created": self.created, "skipped": self.skipped, "errors": self.errors}


def import_issues_csv(text: str, *, request=None, max_rows: int | None = None) -> ImportResult:
    """Create one issue per data row; failing rows are logged and skipped.

    Raises ValueError when the header has no title column or the file has
    more data rows than ``max_rows``.
    """
    if max_rows is None:
        max_rows = settings.ISSUE_IMPORT_MAX_ROWS

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    header = next(reader, None)
    if not header:
        raise ValueError("The CSV file is empty.")
    columns = {}
    for index, name in enumerate(header):
        target = IMPORT_COLUMNS.get(normalize_header(name))
        if target and target not in columns.values():
            columns[index] = target
    if "title" not in columns.values():
        raise ValueError("The CSV header must contain a Title column.")

    # (source line number, row)
    rows = [(reader.line_num, row) for row in reader if any(cell.strip() for cell in row)]
    if len(rows) > max_rows:
        raise ValueError(f"The CSV file has {len(rows)} rows; the limit is {max_rows}.")

    result = ImportResult()
    for line_number, row in rows:
        payload = {}
        for index, target in columns.items():
            value = row[index].strip() if index < len(row) else ""
            if value:
                payload[target] = value
        serializer = IssueSerializer(data=payload, context={"request": request})
        try:
            serializer.is_valid(raise_exception=True)
            issue = serializer.save()
        except (serializers.ValidationError, DatabaseError) as exc:
            detail = getattr(exc, "detail", exc)
            logger.warning("Skipping issue import row %s: %s", line_number, detail)
            result.skipped += 1
            result.errors.append(f"Row {line_number}: {detail}")
            continue
        audit_instance(issue, "create", request=request, metadata={"source": "csv_import"})
        result.created += 1
    logger.info("Issue import finished: %s created, %s skipped", result.created, result.skipped)
    return result
