from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class AssetCategory(models.Model):
    STATUS_ACTIVE = "Active"
    STATUS_INACTIVE = "Inactive"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
    ]

    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "asset categories"

    def __str__(self) -> str:
        return self.name


class AssetSubCategory(models.Model):
    name = models.CharField(max_length=255)
    category = models.ForeignKey(AssetCategory, on_delete=models.PROTECT, related_name="sub_categories")
    description = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=AssetCategory.STATUS_CHOICES, default=AssetCategory.STATUS_ACTIVE)

    class Meta:
        ordering = ["category__name", "name"]
        verbose_name_plural = "asset sub categories"
        constraints = [
            models.UniqueConstraint(fields=["category", "name"], name="uq_asset_sub_category_name"),
        ]

    def __str__(self) -> str:
        return f"{self.category.name} / {self.name}"


class AssetGroup(models.Model):
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class AssetLifecycleStatus(models.Model):
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    order = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ["order", "name"]
        verbose_name_plural = "asset lifecycle statuses"

    def __str__(self) -> str:
        return self.name


class AssetSensitivity(models.Model):
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "asset sensitivities"

    def __str__(self) -> str:
        return self.name


class CIARating(models.Model):
    TYPE_CONFIDENTIALITY = "Confidentiality"
    TYPE_INTEGRITY = "Integrity"
    TYPE_AVAILABILITY = "Availability"
    TYPE_CHOICES = [
        (TYPE_CONFIDENTIALITY, "Confidentiality"),
        (TYPE_INTEGRITY, "Integrity"),
        (TYPE_AVAILABILITY, "Availability"),
    ]

    rating_type = models.CharField(max_length=32, choices=TYPE_CHOICES)
    label = models.CharField(max_length=64)
    value = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])

    class Meta:
        ordering = ["rating_type", "-value"]
        constraints = [
            models.UniqueConstraint(fields=["rating_type", "label"], name="uq_cia_rating_type_label"),
        ]

    def __str__(self) -> str:
        return f"{self.rating_type}: {self.label} ({self.value})"

    def save(self, *args, **kwargs):
        self.label = (self.label or "").strip().lower()
        super().save(*args, **kwargs)


class Asset(models.Model):
    CODE_PREFIX = "AST-"

    asset_code = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=255, blank=True)
    value = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    acquisition_date = models.DateField(null=True, blank=True)
    next_review_date = models.DateField(null=True, blank=True)

    category = models.ForeignKey(AssetCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name="assets")
    sub_category = models.ForeignKey(
        AssetSubCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name="assets"
    )
    group = models.ForeignKey(AssetGroup, on_delete=models.SET_NULL, null=True, blank=True, related_name="assets")
    lifecycle_status = models.ForeignKey(
        AssetLifecycleStatus, on_delete=models.SET_NULL, null=True, blank=True, related_name="assets"
    )
    sensitivity = models.ForeignKey(AssetSensitivity, on_delete=models.SET_NULL, null=True, blank=True, related_name="assets")
    department = models.ForeignKey(
        "organization.Department", on_delete=models.SET_NULL, null=True, blank=True, related_name="assets"
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="owned_assets"
    )

    confidentiality = models.ForeignKey(
        CIARating,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="confidentiality_assets",
        limit_choices_to={"rating_type": CIARating.TYPE_CONFIDENTIALITY},
    )
    integrity = models.ForeignKey(
        CIARating,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="integrity_assets",
        limit_choices_to={"rating_type": CIARating.TYPE_INTEGRITY},
    )
    availability = models.ForeignKey(
        CIARating,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="availability_assets",
        limit_choices_to={"rating_type": CIARating.TYPE_AVAILABILITY},
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["asset_code"]

    def __str__(self) -> str:
        return f"{self.asset_code} - {self.name}"

    @property
    def criticality(self) -> int | None:
        """Highest of the confidentiality, integrity and availability values."""
        values = [rating.value for rating in (self.confidentiality, self.integrity, self.availability) if rating]
        return max(values) if values else None

    @classmethod
    def next_asset_code(cls) -> str:
        highest = 0
        for code in cls.objects.filter(asset_code__startswith=cls.CODE_PREFIX).values_list("asset_code", flat=True):
            suffix = code[len(cls.CODE_PREFIX):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{cls.CODE_PREFIX}{highest + 1:03d}"

    def clean(self) -> None:
        if self.sub_category_id and self.category_id and self.sub_category.category_id != self.category_id:
            raise ValidationError({"sub_category": "Sub category does not belong to the selected category."})
        for field_name, rating_type in (
            ("confidentiality", CIARating.TYPE_CONFIDENTIALITY),
            ("integrity", CIARating.TYPE_INTEGRITY),
            ("availability", CIARating.TYPE_AVAILABILITY),
        ):
            rating = getattr(self, field_name)
            if rating is not None and rating.rating_type != rating_type:
                raise ValidationError({field_name: f"Select a {rating_type} rating."})

    def save(self, *args, **kwargs):
        if not self.asset_code:
            self.asset_code = self.next_asset_code()
        super().save(*args, **kwargs)
