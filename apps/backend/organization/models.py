from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class Organization(models.Model):
    name = models.CharField(max_length=255)
    established_date = models.DateField(null=True, blank=True)
    employee_count = models.PositiveIntegerField(null=True, blank=True)
    branch_count = models.PositiveIntegerField(null=True, blank=True)
    head_office_location = models.CharField(max_length=255, blank=True)
    head_office_address = models.TextField(blank=True)
    website = models.URLField(blank=True)
    description = models.TextField(blank=True)
    vision = models.TextField(blank=True)
    mission = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name

    @classmethod
    def current(cls) -> "Organization | None":
        return cls.objects.order_by("id").first()


class Department(models.Model):
    name = models.CharField(max_length=255, unique=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class UserProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    full_name = models.CharField(max_length=255, blank=True)
    designation = models.CharField(max_length=255, blank=True)
    department = models.ForeignKey(Department, on_delete=models.SET_NULL, null=True, blank=True, related_name="members")

    class Meta:
        ordering = ["full_name"]

    def __str__(self) -> str:
        return self.display_name

    @property
    def display_name(self) -> str:
        return self.full_name or self.user.get_full_name() or self.user.get_username()


class Regulation(models.Model):
    STATUS_SUBSCRIBED = "Subscribed"
    STATUS_UNSUBSCRIBED = "Unsubscribed"
    STATUS_IN_PROGRESS = "In Progress"
    STATUS_CHOICES = [
        (STATUS_SUBSCRIBED, "Subscribed"),
        (STATUS_UNSUBSCRIBED, "Unsubscribed"),
        (STATUS_IN_PROGRESS, "In Progress"),
    ]

    name = models.CharField(max_length=255, unique=True)
    version = models.CharField(max_length=64, blank=True)
    scope = models.TextField(blank=True)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_SUBSCRIBED)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Process(models.Model):
    CODE_PREFIX = "PRO"

    TYPE_PRIMARY = "Primary"
    TYPE_SUPPORTING = "Supporting"
    TYPE_MANAGEMENT = "Management"
    TYPE_CHOICES = [
        (TYPE_PRIMARY, "Primary"),
        (TYPE_SUPPORTING, "Supporting"),
        (TYPE_MANAGEMENT, "Management"),
    ]

    STATUS_ACTIVE = "Active"
    STATUS_INACTIVE = "Inactive"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
    ]

    process_code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    process_type = models.CharField(max_length=32, choices=TYPE_CHOICES, default=TYPE_PRIMARY)
    department = models.ForeignKey(Department, on_delete=models.SET_NULL, null=True, blank=True, related_name="processes")
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="owned_processes",
    )
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["process_code"]

    def __str__(self) -> str:
        return f"{self.process_code} - {self.name}"

    @classmethod
    def next_process_code(cls) -> str:
        highest = 0
        for code in cls.objects.filter(process_code__startswith=cls.CODE_PREFIX).values_list("process_code", flat=True):
            suffix = code[len(cls.CODE_PREFIX):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{cls.CODE_PREFIX}{highest + 1}"

    def save(self, *args, **kwargs):
        if not self.process_code:
            self.process_code = self.next_process_code()
        super().save(*args, **kwargs)


class Stakeholder(models.Model):
    TYPE_INTERNAL = "Internal"
    TYPE_EXTERNAL = "External"
    TYPE_THIRD_PARTY = "Third Party"
    TYPE_CHOICES = [
        (TYPE_INTERNAL, "Internal"),
        (TYPE_EXTERNAL, "External"),
        (TYPE_THIRD_PARTY, "Third Party"),
    ]

    STATUS_ACTIVE = "Active"
    STATUS_INACTIVE = "Inactive"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
    ]

    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    stakeholder_type = models.CharField(max_length=32, choices=TYPE_CHOICES, default=TYPE_INTERNAL)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    department = models.ForeignKey(Department, on_delete=models.SET_NULL, null=True, blank=True, related_name="stakeholders")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def clean(self) -> None:
        if not (self.name or "").strip():
            raise ValidationError({"name": "Stakeholder name is required."})


class OptionValue(models.Model):
    """User-extendable option lists shown in the issue wizard selects."""

    LIST_DOMAIN = "domain"
    LIST_CATEGORY = "category"
    LIST_ISSUE_TYPE = "issue_type"
    LIST_NEED_EXPECTATION = "need_expectation"
    LIST_CHOICES = [
        (LIST_DOMAIN, "Domain"),
        (LIST_CATEGORY, "Category"),
        (LIST_ISSUE_TYPE, "Issue Type"),
        (LIST_NEED_EXPECTATION, "Need / Expectation"),
    ]

    DEFAULTS = {
        LIST_DOMAIN: ["Internal", "External", "IT", "GRC"],
        LIST_CATEGORY: ["Finance", "Human Resources", "Data breach", "Compliance", "Operations", "Security"],
        LIST_ISSUE_TYPE: ["Financial", "Operational", "Data hack", "Compliance", "Security"],
        LIST_NEED_EXPECTATION: [
            "Compliance",
            "Data protection",
            "Service availability",
            "Timely reporting",
            "Transparency",
        ],
    }

    list_key = models.CharField(max_length=32, choices=LIST_CHOICES)
    value = models.CharField(max_length=128)
    is_custom = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["list_key", "id"]
        constraints = [
            models.UniqueConstraint(fields=["list_key", "value"], name="uq_option_value_list_value"),
        ]

    def __str__(self) -> str:
        return f"{self.list_key}:{self.value}"

    @classmethod
    def values_for(cls, list_key: str) -> list[str]:
        """Defaults first, then stored values in creation order, without duplicates."""
        values = list(cls.DEFAULTS.get(list_key, []))
        for value in cls.objects.filter(list_key=list_key).order_by("id").values_list("value", flat=True):
            if value not in values:
                values.append(value)
        return values


class Issue(models.Model):
    STATUS_OPEN = "Open"
    STATUS_IN_PROGRESS = "In Progress"
    STATUS_PENDING = "Pending"
    STATUS_RESOLVED = "Resolved"
    STATUS_CLOSED = "Closed"
    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_IN_PROGRESS, "In Progress"),
        (STATUS_PENDING, "Pending"),
        (STATUS_RESOLVED, "Resolved"),
        (STATUS_CLOSED, "Closed"),
    ]

    DEFAULT_DOMAIN = "Internal"
    DEFAULT_CATEGORY = "Finance"

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    domain = models.CharField(max_length=128, blank=True, default=DEFAULT_DOMAIN)
    category = models.CharField(max_length=128, blank=True, default=DEFAULT_CATEGORY)
    issue_type = models.CharField(max_length=128, blank=True)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_OPEN)
    due_date = models.DateField(null=True, blank=True)
    department = models.ForeignKey(Department, on_delete=models.SET_NULL, null=True, blank=True, related_name="issues")
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="owned_issues",
    )
    regulations = models.ManyToManyField(Regulation, related_name="issues", blank=True)
    processes = models.ManyToManyField(Process, related_name="issues", blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title


class IssueStakeholderNeed(models.Model):
    issue = models.ForeignKey(Issue, on_delete=models.CASCADE, related_name="stakeholder_needs")
    stakeholder = models.ForeignKey(Stakeholder, on_delete=models.CASCADE, related_name="issue_needs")
    need_expectation = models.CharField(max_length=255)
    position = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])

    class Meta:
        ordering = ["issue", "position", "id"]

    def __str__(self) -> str:
        return f"{self.stakeholder} - {self.need_expectation}"
