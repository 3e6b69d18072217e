from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone


class Framework(models.Model):
    TYPE_STANDARD = "Standard"
    TYPE_REGULATION = "Regulation"
    TYPE_GUIDELINE = "Guideline"
    TYPE_INTERNAL = "Internal Policy"
    TYPE_CHOICES = [
        (TYPE_STANDARD, "Standard"),
        (TYPE_REGULATION, "Regulation"),
        (TYPE_GUIDELINE, "Guideline"),
        (TYPE_INTERNAL, "Internal Policy"),
    ]

    STATUS_ACTIVE = "Active"
    STATUS_DRAFT = "Draft"
    STATUS_INACTIVE = "Inactive"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_DRAFT, "Draft"),
        (STATUS_INACTIVE, "Inactive"),
    ]

    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    framework_type = models.CharField(max_length=32, choices=TYPE_CHOICES, default=TYPE_STANDARD)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    country = models.CharField(max_length=128, blank=True)
    industry = models.CharField(max_length=128, blank=True)
    is_custom = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def compliance_summary(self) -> dict:
        """Control counts per status and the implemented share of applicable controls."""
        counts = {value: 0 for value, _label in Control.STATUS_CHOICES}
        for row in self.controls.order_by().values("status").annotate(total=models.Count("id")):
            counts[row["status"]] = row["total"]
        total = sum(counts.values())
        applicable = total - counts[Control.STATUS_NOT_APPLICABLE]
        implemented = counts[Control.STATUS_IMPLEMENTED] + counts[Control.STATUS_PARTIAL] / 2
        percentage = round(100 * implemented / applicable) if applicable else 0
        return {
            "framework": self.name,
            "total_controls": total,
            "by_status": counts,
            "compliance_percentage": percentage,
        }


class Control(models.Model):
    STATUS_NOT_IMPLEMENTED = "Not Implemented"
    STATUS_PARTIAL = "Partially Implemented"
    STATUS_IMPLEMENTED = "Implemented"
    STATUS_NOT_APPLICABLE = "Not Applicable"
    STATUS_CHOICES = [
        (STATUS_NOT_IMPLEMENTED, "Not Implemented"),
        (STATUS_PARTIAL, "Partially Implemented"),
        (STATUS_IMPLEMENTED, "Implemented"),
        (STATUS_NOT_APPLICABLE, "Not Applicable"),
    ]

    GROUPING_CHOICES = [
        ("Govern", "Govern"),
        ("Identify", "Identify"),
        ("Protect", "Protect"),
        ("Detect", "Detect"),
        ("Respond", "Respond"),
        ("Recover", "Recover"),
    ]

    framework = models.ForeignKey(Framework, on_delete=models.PROTECT, related_name="controls")
    control_code = models.CharField(max_length=64)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    control_question = models.TextField(blank=True)
    functional_grouping = models.CharField(max_length=16, choices=GROUPING_CHOICES, blank=True)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_NOT_IMPLEMENTED)
    department = models.ForeignKey(
        "organization.Department", on_delete=models.SET_NULL, null=True, blank=True, related_name="controls"
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="owned_controls"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["framework__name", "control_code"]
        constraints = [
            models.UniqueConstraint(fields=["framework", "control_code"], name="compliance_control_code_unique"),
        ]

    def __str__(self) -> str:
        return f"{self.control_code} - {self.name}"


class AuditCategory(models.Model):
    name = models.CharField(max_length=128, unique=True)
    description = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "audit categories"

    def __str__(self) -> str:
        return self.name


# (minimum residual score, level)
AUDIT_RISK_LEVELS = [
    (250, "Extreme"),
    (100, "High"),
    (50, "Medium"),
    (0, "Low"),
]

score_validators = [MinValueValidator(1), MaxValueValidator(25)]


def audit_risk_level(residual_score: int | None) -> str:
    if not residual_score:
        return AUDIT_RISK_LEVELS[-1][1]
    for minimum, level in AUDIT_RISK_LEVELS:
        if residual_score >= minimum:
            return level
    return AUDIT_RISK_LEVELS[-1][1]


def _product(left: int | None, right: int | None) -> int | None:
    if left and right:
        return int(left) * int(right)
    return None


class AuditRisk(models.Model):
    """Internal-audit risk register entry with inherent and residual scoring."""

    CODE_PREFIX = "RID"

    STATUS_OPEN = "Open"
    STATUS_IN_REVIEW = "In Review"
    STATUS_CLOSED = "Closed"
    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_IN_REVIEW, "In Review"),
        (STATUS_CLOSED, "Closed"),
    ]
    STATUS_TRANSITIONS = {
        STATUS_OPEN: {STATUS_IN_REVIEW, STATUS_CLOSED},
        STATUS_IN_REVIEW: {STATUS_OPEN, STATUS_CLOSED},
        STATUS_CLOSED: {STATUS_OPEN},
    }

    EFFECTIVENESS_CHOICES = [
        ("Effective", "Effective"),
        ("Partially Effective", "Partially Effective"),
        ("Ineffective", "Ineffective"),
    ]

    risk_id = models.CharField(max_length=16, unique=True)
    name = models.CharField(max_length=255)
    department = models.ForeignKey(
        "organization.Department", on_delete=models.SET_NULL, null=True, blank=True, related_name="audit_risks"
    )
    category = models.ForeignKey(AuditCategory, on_delete=models.PROTECT, null=True, blank=True, related_name="risks")
    section_process = models.CharField(max_length=255, blank=True)
    sub_process = models.CharField(max_length=255, blank=True)
    activity = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)

    inherent_likelihood = models.PositiveSmallIntegerField(null=True, blank=True, validators=score_validators)
    inherent_impact = models.PositiveSmallIntegerField(null=True, blank=True, validators=score_validators)
    inherent_score = models.PositiveIntegerField(null=True, blank=True)
    control_description = models.TextField(blank=True)
    control_effectiveness = models.CharField(max_length=32, choices=EFFECTIVENESS_CHOICES, blank=True)
    residual_likelihood = models.PositiveSmallIntegerField(null=True, blank=True, validators=score_validators)
    residual_impact = models.PositiveSmallIntegerField(null=True, blank=True, validators=score_validators)
    residual_score = models.PositiveIntegerField(null=True, blank=True)
    risk_level = models.CharField(max_length=16, default="Low")

    creation_date = models.DateField(default=timezone.localdate)
    audit_comment = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_OPEN)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.risk_id} - {self.name}"

    @classmethod
    def next_risk_id(cls) -> str:
        highest = 0
        for code in cls.objects.filter(risk_id__startswith=cls.CODE_PREFIX).values_list("risk_id", flat=True):
            suffix = code[len(cls.CODE_PREFIX):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{cls.CODE_PREFIX}{highest + 1:03d}"

    def save(self, *args, **kwargs):
        if not self.risk_id:
            self.risk_id = self.next_risk_id()
        self.inherent_score = _product(self.inherent_likelihood, self.inherent_impact)
        self.residual_score = _product(self.residual_likelihood, self.residual_impact)
        self.risk_level = audit_risk_level(self.residual_score)
        super().save(*args, **kwargs)

    def can_transition_to(self, new_status: str) -> bool:
        if new_status == self.status:
            return True
        return new_status in self.STATUS_TRANSITIONS.get(self.status, set())

    def transition_to(self, new_status: str) -> None:
        if not self.can_transition_to(new_status):
            raise ValidationError(f"Invalid transition from {self.status} to {new_status}.")
        self.status = new_status
        self.save()
