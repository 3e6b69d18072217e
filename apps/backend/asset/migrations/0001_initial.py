import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("organization", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AssetCategory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("Active", "Active"), ("Inactive", "Inactive")], default="Active", max_length=16
                    ),
                ),
            ],
            options={"ordering": ["name"], "verbose_name_plural": "asset categories"},
        ),
        migrations.CreateModel(
            name="AssetGroup",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="AssetLifecycleStatus",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True)),
                ("order", models.PositiveSmallIntegerField(default=0)),
            ],
            options={"ordering": ["order", "name"], "verbose_name_plural": "asset lifecycle statuses"},
        ),
        migrations.CreateModel(
            name="AssetSensitivity",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True)),
            ],
            options={"ordering": ["name"], "verbose_name_plural": "asset sensitivities"},
        ),
        migrations.CreateModel(
            name="CIARating",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "rating_type",
                    models.CharField(
                        choices=[
                            ("Confidentiality", "Confidentiality"),
                            ("Integrity", "Integrity"),
                            ("Availability", "Availability"),
                        ],
                        max_length=32,
                    ),
                ),
                ("label", models.CharField(max_length=64)),
                (
                    "value",
                    models.PositiveSmallIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(5),
                        ]
                    ),
                ),
            ],
            options={"ordering": ["rating_type", "-value"]},
        ),
        migrations.AddConstraint(
            model_name="ciarating",
            constraint=models.UniqueConstraint(fields=("rating_type", "label"), name="uq_cia_rating_type_label"),
        ),
        migrations.CreateModel(
            name="AssetSubCategory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("Active", "Active"), ("Inactive", "Inactive")], default="Active", max_length=16
                    ),
                ),
                (
                    "category",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sub_categories",
                        to="asset.assetcategory",
                    ),
                ),
            ],
            options={"ordering": ["category__name", "name"], "verbose_name_plural": "asset sub categories"},
        ),
        migrations.AddConstraint(
            model_name="assetsubcategory",
            constraint=models.UniqueConstraint(fields=("category", "name"), name="uq_asset_sub_category_name"),
        ),
        migrations.CreateModel(
            name="Asset",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("asset_code", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("location", models.CharField(blank=True, max_length=255)),
                ("value", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("acquisition_date", models.DateField(blank=True, null=True)),
                ("next_review_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "category",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assets",
                        to="asset.assetcategory",
                    ),
                ),
                (
                    "sub_category",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assets",
                        to="asset.assetsubcategory",
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assets",
                        to="asset.assetgroup",
                    ),
                ),
                (
                    "lifecycle_status",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assets",
                        to="asset.assetlifecyclestatus",
                    ),
                ),
                (
                    "sensitivity",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assets",
                        to="asset.assetsensitivity",
                    ),
                ),
                (
                    "department",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assets",
                        to="organization.department",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="owned_assets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "confidentiality",
                    models.ForeignKey(
                        blank=True,
                        limit_choices_to={"rating_type": "Confidentiality"},
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="confidentiality_assets",
                        to="asset.ciarating",
                    ),
                ),
                (
                    "integrity",
                    models.ForeignKey(
                        blank=True,
                        limit_choices_to={"rating_type": "Integrity"},
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="integrity_assets",
                        to="asset.ciarating",
                    ),
                ),
                (
                    "availability",
                    models.ForeignKey(
                        blank=True,
                        limit_choices_to={"rating_type": "Availability"},
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="availability_assets",
                        to="asset.ciarating",
                    ),
                ),
            ],
            options={"ordering": ["asset_code"]},
        ),
    ]
