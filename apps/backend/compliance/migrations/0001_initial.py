import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def _score_field():
    return models.PositiveSmallIntegerField(
        blank=True,
        null=True,
        validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(25)],
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("organization", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Framework",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True)),
                (
                    "framework_type",
                    models.CharField(
                        choices=[
                            ("Standard", "Standard"),
                            ("Regulation", "Regulation"),
                            ("Guideline", "Guideline"),
                            ("Internal Policy", "Internal Policy"),
                        ],
                        default="Standard",
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("Active", "Active"), ("Draft", "Draft"), ("Inactive", "Inactive")],
                        default="Active",
                        max_length=16,
                    ),
                ),
                ("country", models.CharField(blank=True, max_length=128)),
                ("industry", models.CharField(blank=True, max_length=128)),
                ("is_custom", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="AuditCategory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=128, unique=True)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={"ordering": ["name"], "verbose_name_plural": "audit categories"},
        ),
        migrations.CreateModel(
            name="Control",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("control_code", models.CharField(max_length=64)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("control_question", models.TextField(blank=True)),
                (
                    "functional_grouping",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("Govern", "Govern"),
                            ("Identify", "Identify"),
                            ("Protect", "Protect"),
                            ("Detect", "Detect"),
                            ("Respond", "Respond"),
                            ("Recover", "Recover"),
                        ],
                        max_length=16,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Not Implemented", "Not Implemented"),
                            ("Partially Implemented", "Partially Implemented"),
                            ("Implemented", "Implemented"),
                            ("Not Applicable", "Not Applicable"),
                        ],
                        default="Not Implemented",
                        max_length=32,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "department",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="controls",
                        to="organization.department",
                    ),
                ),
                (
                    "framework",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="controls",
                        to="compliance.framework",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="owned_controls",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["framework__name", "control_code"]},
        ),
        migrations.AddConstraint(
            model_name="control",
            constraint=models.UniqueConstraint(
                fields=("framework", "control_code"), name="compliance_control_code_unique"
            ),
        ),
        migrations.CreateModel(
            name="AuditRisk",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("risk_id", models.CharField(max_length=16, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("section_process", models.CharField(blank=True, max_length=255)),
                ("sub_process", models.CharField(blank=True, max_length=255)),
                ("activity", models.CharField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                ("inherent_likelihood", _score_field()),
                ("inherent_impact", _score_field()),
                ("inherent_score", models.PositiveIntegerField(blank=True, null=True)),
                ("control_description", models.TextField(blank=True)),
                (
                    "control_effectiveness",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("Effective", "Effective"),
                            ("Partially Effective", "Partially Effective"),
                            ("Ineffective", "Ineffective"),
                        ],
                        max_length=32,
                    ),
                ),
                ("residual_likelihood", _score_field()),
                ("residual_impact", _score_field()),
                ("residual_score", models.PositiveIntegerField(blank=True, null=True)),
                ("risk_level", models.CharField(default="Low", max_length=16)),
                ("creation_date", models.DateField(default=django.utils.timezone.localdate)),
                ("audit_comment", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("Open", "Open"), ("In Review", "In Review"), ("Closed", "Closed")],
                        default="Open",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "category",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="risks",
                        to="compliance.auditcategory",
                    ),
                ),
                (
                    "department",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_risks",
                        to="organization.department",
                    ),
                ),
            ],
            options={"ordering": ["-created_at"]},
        ),
    ]
