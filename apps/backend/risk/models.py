from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models

color_validator = RegexValidator(r"^#[0-9A-Fa-f]{6}$", "Enter a hex color such as #3b82f6.")


class RiskCategory(models.Model):
    STATUS_ACTIVE = "Active"
    STATUS_INACTIVE = "Inactive"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
    ]

    name = models.CharField(max_length=128, unique=True)
    description = models.CharField(max_length=255, blank=True)
    color = models.CharField(max_length=7, default="#3b82f6", validators=[color_validator])
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "risk categories"

    def __str__(self) -> str:
        return self.name


class ControlStrength(models.Model):
    name = models.CharField(max_length=128, unique=True)
    score = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])

    class Meta:
        ordering = ["score", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.score})"


class RiskLikelihood(models.Model):
    title = models.CharField(max_length=128, unique=True)
    score = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    time_frame = models.CharField(max_length=128, blank=True)
    probability = models.CharField(max_length=64, blank=True)

    class Meta:
        ordering = ["score"]

    def __str__(self) -> str:
        return f"{self.score} - {self.title}"


class ImpactRating(models.Model):
    name = models.CharField(max_length=128, unique=True)
    score = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["score"]

    def __str__(self) -> str:
        return f"{self.score} - {self.name}"


class RiskRange(models.Model):
    title = models.CharField(max_length=128, unique=True)
    color = models.CharField(max_length=7, validators=[color_validator])
    low_range = models.PositiveSmallIntegerField()
    high_range = models.PositiveSmallIntegerField()
    timeline_days = models.PositiveIntegerField(null=True, blank=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["low_range"]

    def __str__(self) -> str:
        return f"{self.title} ({self.low_range}-{self.high_range})"

    def clean(self) -> None:
        if self.low_range is not None and self.high_range is not None and self.low_range > self.high_range:
            raise ValidationError({"high_range": "High range must be greater than or equal to low range."})

    @classmethod
    def for_score(cls, score: int) -> "RiskRange | None":
        return cls.objects.filter(low_range__lte=score, high_range__gte=score).order_by("low_range").first()


# (minimum score, rating) used when no RiskRange covers a score
FALLBACK_RATINGS = [
    (20, "Catastrophic"),
    (15, "Very high"),
    (10, "High"),
    (0, "Low Risk"),
]

HIGH_RATINGS = {"Catastrophic", "Very high", "High"}
HIGH_SCORE_THRESHOLD = 10


def fallback_rating(score: int) -> str:
    for minimum, rating in FALLBACK_RATINGS:
        if score >= minimum:
            return rating
    return FALLBACK_RATINGS[-1][1]


class Risk(models.Model):
    CODE_PREFIX = "RISK-"

    STATUS_OPEN = "Open"
    STATUS_PENDING_ASSESSMENT = "Pending Assessment"
    STATUS_AWAITING_APPROVAL = "Awaiting Approval"
    STATUS_IN_PROGRESS = "In Progress"
    STATUS_CLOSED = "Closed"
    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_PENDING_ASSESSMENT, "Pending Assessment"),
        (STATUS_AWAITING_APPROVAL, "Awaiting Approval"),
        (STATUS_IN_PROGRESS, "In Progress"),
        (STATUS_CLOSED, "Closed"),
    ]

    STRATEGY_TREAT = "Treat"
    STRATEGY_TRANSFER = "Transfer"
    STRATEGY_ACCEPT = "Accept"
    STRATEGY_AVOID = "Avoid"
    STRATEGY_CHOICES = [
        (STRATEGY_TREAT, "Treat"),
        (STRATEGY_TRANSFER, "Transfer"),
        (STRATEGY_ACCEPT, "Accept"),
        (STRATEGY_AVOID, "Avoid"),
    ]

    risk_code = models.CharField(max_length=32, unique=True)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.ForeignKey(RiskCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name="risks")
    department = models.ForeignKey(
        "organization.Department", on_delete=models.SET_NULL, null=True, blank=True, related_name="risks"
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="owned_risks"
    )
    assets = models.ManyToManyField("asset.Asset", related_name="risks", blank=True)
    control_strength = models.ForeignKey(
        ControlStrength, on_delete=models.SET_NULL, null=True, blank=True, related_name="risks"
    )

    likelihood = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1), MaxValueValidator(5)])
    impact = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1), MaxValueValidator(5)])
    risk_score = models.PositiveSmallIntegerField(default=1)
    risk_rating = models.CharField(max_length=128, blank=True)

    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_OPEN)
    response_strategy = models.CharField(max_length=16, choices=STRATEGY_CHOICES, blank=True)
    due_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    STATUS_TRANSITIONS = {
        STATUS_OPEN: {STATUS_PENDING_ASSESSMENT, STATUS_IN_PROGRESS, STATUS_CLOSED},
        STATUS_PENDING_ASSESSMENT: {STATUS_AWAITING_APPROVAL, STATUS_OPEN, STATUS_CLOSED},
        STATUS_AWAITING_APPROVAL: {STATUS_IN_PROGRESS, STATUS_OPEN, STATUS_CLOSED},
        STATUS_IN_PROGRESS: {STATUS_OPEN, STATUS_CLOSED},
        STATUS_CLOSED: {STATUS_OPEN},
    }

    def __str__(self) -> str:
        return f"{self.risk_code} - {self.title}"

    @classmethod
    def next_risk_code(cls) -> str:
        highest = 0
        for code in cls.objects.filter(risk_code__startswith=cls.CODE_PREFIX).values_list("risk_code", flat=True):
            suffix = code[len(cls.CODE_PREFIX):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{cls.CODE_PREFIX}{highest + 1:04d}"

    def calculate_score(self) -> tuple[int, str]:
        score = int(self.likelihood) * int(self.impact)
        risk_range = RiskRange.for_score(score)
        return score, risk_range.title if risk_range else fallback_rating(score)

    @property
    def is_high(self) -> bool:
        return self.risk_rating in HIGH_RATINGS or self.risk_score >= HIGH_SCORE_THRESHOLD

    def refresh_scores(self) -> bool:
        """Recompute score and rating; returns True when either changed."""
        score, rating = self.calculate_score()
        if (score, rating) == (self.risk_score, self.risk_rating):
            return False
        self.risk_score, self.risk_rating = score, rating
        self.save(update_fields=["risk_score", "risk_rating", "updated_at"])
        return True

    def save(self, *args, **kwargs):
        if not self.risk_code:
            self.risk_code = self.next_risk_code()
        if kwargs.get("update_fields") is None:
            self.risk_score, self.risk_rating = self.calculate_score()
        super().save(*args, **kwargs)

    def can_transition_to(self, new_status: str) -> bool:
        if new_status == self.status:
            return True
        return new_status in self.STATUS_TRANSITIONS.get(self.status, set())

    def transition_to(self, new_status: str) -> None:
        if not self.can_transition_to(new_status):
            raise ValidationError(f"Invalid transition from {self.status} to {new_status}.")
        self.status = new_status
        self.save(update_fields=["status", "updated_at"])
