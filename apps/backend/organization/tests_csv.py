from django.test import SimpleTestCase, TestCase, override_settings

from core.models import AuditEvent
from organization.csv_io import export_issues_csv, import_issues_csv, normalize_header
from organization.models import Department, Issue


class IssueCsvExportTests(SimpleTestCase):
    def test_rows_are_fully_quoted_with_department_name(self):
        without_department = Issue(title="A", domain="", category="", status="")
        with_department = Issue(title="B, Inc.", domain="", category="", status="")
        with_department.department = Department(id=1, name="IT")

        lines = export_issues_csv([without_department, with_department]).splitlines()

        self.assertEqual(lines[0], '"Title","Description","Domain","Category","Issue Type","Status","Department"')
        self.assertEqual(lines[1], '"A","","","","","",""')
        self.assertEqual(lines[2], '"B, Inc.","","","","","","IT"')

    def test_embedded_quotes_are_doubled(self):
        issue = Issue(title='The "big" one', domain="IT", category="Security", status="Open")
        line = export_issues_csv([issue]).splitlines()[1]
        self.assertEqual(line, '"The ""big"" one","","IT","Security","","Open",""')

    def test_header_normalization(self):
        self.assertEqual(normalize_header(" Issue Type "), "issuetype")
        self.assertEqual(normalize_header("TITLE"), "title")


class IssueCsvImportTests(TestCase):
    def test_import_creates_rows_and_skips_failures(self):
        text = (
            "\ufeffTitle,Description,Issue Type,Status\n"
            "Backup failure,Nightly job failed,Operational,Open\n"
            ",Missing title,,\n"
            "Bad status,,,Unknown\n"
            "Late filing,,Compliance,\n"
        )

        with self.assertLogs("organization.csv_io", level="WARNING"):
            result = import_issues_csv(text)

        self.assertEqual(result.created, 2)
        self.assertEqual(result.skipped, 2)
        self.assertEqual(len(result.errors), 2)
        backup = Issue.objects.get(title="Backup failure")
        self.assertEqual(backup.issue_type, "Operational")
        self.assertEqual(backup.domain, Issue.DEFAULT_DOMAIN)
        late = Issue.objects.get(title="Late filing")
        self.assertEqual(late.status, Issue.STATUS_OPEN)
        self.assertEqual(
            AuditEvent.objects.filter(action="issue.create", metadata__source="csv_import").count(),
            2,
        )

    def test_error_rows_match_file_lines_after_blank_lines(self):
        text = "Title,Status\n\nKept,Open\n\n,Open\n"

        with self.assertLogs("organization.csv_io", level="WARNING"):
            result = import_issues_csv(text)

        self.assertEqual(result.created, 1)
        self.assertEqual(len(result.errors), 1)
        self.assertTrue(result.errors[0].startswith("Row 5:"))

    def test_header_without_title_is_rejected(self):
        with self.assertRaises(ValueError):
            import_issues_csv("Description,Status\nsomething,Open\n")
        self.assertFalse(Issue.objects.exists())

    def test_empty_file_is_rejected(self):
        with self.assertRaises(ValueError):
            import_issues_csv("")

    @override_settings(ISSUE_IMPORT_MAX_ROWS=1)
    def test_row_limit(self):
        with self.assertRaises(ValueError):
            import_issues_csv("Title\nOne\nTwo\n")
        self.assertFalse(Issue.objects.exists())

    def test_export_after_import_uses_department_name(self):
        department = Department.objects.create(name="Legal")
        Issue.objects.create(title="Contract review", department=department)
        text = export_issues_csv(Issue.objects.select_related("department"))
        self.assertIn('"Contract review","","Internal","Finance","","Open","Legal"', text)
