from __future__ import annotations

from datetime import date

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from asset.models import (
    Asset,
    AssetCategory,
    AssetGroup,
    AssetLifecycleStatus,
    AssetSensitivity,
    AssetSubCategory,
    CIARating,
)
from organization.models import (
    Department,
    Issue,
    IssueStakeholderNeed,
    OptionValue,
    Organization,
    Process,
    Regulation,
    Stakeholder,
    UserProfile,
)
from risk.models import ControlStrength, ImpactRating, Risk, RiskCategory, RiskLikelihood, RiskRange

DEPARTMENTS = [
    "Human Resources",
    "Revenue",
    "IT Operations",
    "IT Support",
    "Product Development",
    "Compliance",
    "Procurement",
    "Operations",
    "Risk Management",
    "Quality Assurance",
    "Internal Audit",
]

USERS = [
    ("john.doe", "John Doe", "IT Manager", "IT Operations"),
    ("emily.brown", "Emily Brown", "HR Lead", "Human Resources"),
    ("james.anderson", "James Anderson", "Revenue Analyst", "Revenue"),
    ("lisa.taylor", "Lisa Taylor", "Compliance Officer", "Compliance"),
    ("david.jones", "David Jones", "Support Engineer", "IT Support"),
]

STAKEHOLDERS = [
    ("John Smith", "john.smith@example.com", "Internal", "Active"),
    ("Sarah Johnson", "sarah.j@partner.com", "External", "Active"),
    ("Mike Williams", "mike.w@vendor.com", "Third Party", "Active"),
    ("Emily Davis", "emily.d@example.com", "Internal", "Active"),
    ("Robert Brown", "robert.b@consultant.com", "External", "Active"),
    ("Jennifer Wilson", "jennifer.w@example.com", "Internal", "Inactive"),
    ("David Taylor", "david.t@partner.com", "Third Party", "Active"),
]

REGULATIONS = [
    ("ISO 27001-2022", "2022", "Information Security Management System", "Subscribed"),
    ("GDPR", "2018", "General Data Protection Regulation", "Subscribed"),
    ("PCI DSS", "4.0", "Payment Card Industry Data Security Standard", "Subscribed"),
    ("NIS Directive", "2.0", "Network and Information Security Directive", "Subscribed"),
    ("Latvia AML Law", "2023", "Anti-Money Laundering Law", "Unsubscribed"),
]

PROCESSES = [
    ("Procurement Process", "Primary", "Procurement"),
    ("Hiring Process", "Supporting", "Human Resources"),
    ("IT Change Management", "Primary", "IT Operations"),
    ("Incident Response", "Primary", "IT Operations"),
    ("Budget Planning", "Management", "Revenue"),
    ("Compliance Review", "Primary", "Compliance"),
    ("Risk Assessment", "Primary", "Risk Management"),
    ("Quality Control", "Supporting", "Quality Assurance"),
]

ISSUES = [
    ("Data Privacy Compliance Gap", "IT Operations", "IT", "Data breach", "Open", date(2025, 3, 15)),
    ("Employee Training Delay", "Human Resources", "Internal", "Human Resources", "In Progress", date(2025, 2, 28)),
    ("Budget Allocation Issue", "Revenue", "Internal", "Finance", "Open", date(2025, 4, 1)),
    ("Third-Party Vendor Risk", "Procurement", "External", "Finance", "Pending", date(2025, 3, 20)),
    ("System Downtime Incident", "IT Operations", "IT", "Data breach", "Resolved", date(2025, 2, 15)),
    ("Access Control Weakness", "IT Operations", "IT", "Data breach", "Open", date(2025, 3, 30)),
    ("Policy Update Required", "Compliance", "GRC", "Finance", "In Progress", date(2025, 4, 15)),
]

ASSET_CATEGORIES = {
    "Hardware": ["Server", "Workstation", "Firewall", "Storage Device"],
    "Software": ["Enterprise Application", "Database"],
    "Data": ["Customer Data", "Financial Data", "Employee Data"],
    "Network": ["LAN/WAN", "Cloud Infrastructure"],
    "Facilities": ["Data Center", "Office Building"],
}

ASSET_GROUPS = ["Security Tools", "Payment Systems", "Customer Facing", "Internal Operations", "Infrastructure"]
SENSITIVITIES = ["Public", "Internal", "Confidential", "Restricted"]
LIFECYCLE = ["Planned", "Active", "In Use", "Needs Maintenance", "Under Review", "Retired", "Disposed"]
CIA_LABELS = [("low", 1), ("medium", 2), ("high", 3)]

RISK_CATEGORIES = [
    ("Strategic", "Risks affecting strategic objectives", "#3b82f6"),
    ("Operational", "Risks in day-to-day operations", "#10b981"),
    ("Financial", "Risks impacting financial performance", "#f59e0b"),
    ("Compliance", "Regulatory and legal compliance risks", "#8b5cf6"),
    ("IT/Cyber", "Technology and cybersecurity risks", "#ef4444"),
    ("Reputational", "Risks to brand and reputation", "#ec4899"),
]

CONTROL_STRENGTHS = [("Weak", 1), ("Moderate", 3), ("Strong", 5)]
LIKELIHOODS = [
    ("Rare", 1, "Once in 10 years", "< 5%"),
    ("Unlikely", 2, "Once in 5 years", "5-25%"),
    ("Possible", 3, "Once a year", "25-50%"),
    ("Likely", 4, "Once a quarter", "50-90%"),
    ("Almost Certain", 5, "Once a month", "> 90%"),
]
IMPACTS = [("Insignificant", 1), ("Minor", 2), ("Moderate", 3), ("Major", 4), ("Severe", 5)]
RANGES = [
    ("Low Risk", "#22c55e", 1, 9, 180),
    ("High", "#f59e0b", 10, 14, 90),
    ("Very high", "#f97316", 15, 19, 30),
    ("Catastrophic", "#ef4444", 20, 25, 7),
]

RISKS = [
    ("Data Breach Risk", "IT/Cyber", "IT Operations", 4, 5, "Open", "Treat"),
    ("Regulatory Non-Compliance", "Compliance", "Compliance", 3, 4, "In Progress", "Treat"),
    ("Vendor Dependency", "Operational", "Procurement", 3, 3, "Pending Assessment", "Transfer"),
    ("Market Competition", "Strategic", "Revenue", 4, 3, "Open", "Accept"),
    ("System Failure", "IT/Cyber", "IT Operations", 3, 5, "In Progress", "Treat"),
    ("Financial Loss", "Financial", "Revenue", 2, 4, "Awaiting Approval", ""),
    ("Insider Threat", "IT/Cyber", "IT Operations", 2, 4, "Closed", "Treat"),
]


class Command(BaseCommand):
    help = "Seed demo organization, context, asset and risk reference data."

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete issues, risks and assets before re-seeding.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options.get("reset"):
            self.stdout.write(self.style.WARNING("Resetting seeded data..."))
            IssueStakeholderNeed.objects.all().delete()
            Issue.objects.all().delete()
            Risk.objects.all().delete()
            Asset.objects.all().delete()

        Organization.objects.get_or_create(
            id=1,
            defaults={
                "name": "Example Organization",
                "head_office_location": "Riga",
                "website": "https://example.com",
            },
        )

        departments = {name: Department.objects.get_or_create(name=name)[0] for name in DEPARTMENTS}

        user_model = get_user_model()
        users = {}
        for username, full_name, designation, department in USERS:
            user, created = user_model.objects.get_or_create(username=username, defaults={"email": f"{username}@example.com"})
            if created:
                user.set_unusable_password()
                user.save(update_fields=["password"])
            UserProfile.objects.update_or_create(
                user=user,
                defaults={"full_name": full_name, "designation": designation, "department": departments[department]},
            )
            users[username] = user

        stakeholders = {}
        for name, email, stakeholder_type, status in STAKEHOLDERS:
            stakeholders[name], _ = Stakeholder.objects.get_or_create(
                name=name,
                defaults={"email": email, "stakeholder_type": stakeholder_type, "status": status},
            )

        regulations = {}
        for name, version, scope, status in REGULATIONS:
            regulations[name], _ = Regulation.objects.get_or_create(
                name=name, defaults={"version": version, "scope": scope, "status": status}
            )

        processes = {}
        for name, process_type, department in PROCESSES:
            process = Process.objects.filter(name=name).first()
            if process is None:
                process = Process.objects.create(name=name, process_type=process_type, department=departments[department])
            processes[name] = process

        for list_key in OptionValue.DEFAULTS:
            for value in OptionValue.DEFAULTS[list_key]:
                OptionValue.objects.get_or_create(list_key=list_key, value=value, defaults={"is_custom": False})

        for title, department, domain, category, status, due_date in ISSUES:
            issue, created = Issue.objects.get_or_create(
                title=title,
                defaults={
                    "department": departments[department],
                    "domain": domain,
                    "category": category,
                    "status": status,
                    "due_date": due_date,
                },
            )
            if created and domain == "IT":
                issue.regulations.add(regulations["ISO 27001-2022"])
                issue.processes.add(processes["Incident Response"])
                IssueStakeholderNeed.objects.create(
                    issue=issue, stakeholder=stakeholders["John Smith"], need_expectation="Data protection"
                )

        self._seed_assets(departments, users)
        self._seed_risks(departments, users)
        self.stdout.write(self.style.SUCCESS("GRC seed completed."))

    def _seed_assets(self, departments, users) -> None:
        for category_name, sub_names in ASSET_CATEGORIES.items():
            category, _ = AssetCategory.objects.get_or_create(name=category_name)
            for sub_name in sub_names:
                AssetSubCategory.objects.get_or_create(category=category, name=sub_name)
        for name in ASSET_GROUPS:
            AssetGroup.objects.get_or_create(name=name)
        for name in SENSITIVITIES:
            AssetSensitivity.objects.get_or_create(name=name)
        for order, name in enumerate(LIFECYCLE, start=1):
            AssetLifecycleStatus.objects.get_or_create(name=name, defaults={"order": order})
        for rating_type, _ in CIARating.TYPE_CHOICES:
            for label, value in CIA_LABELS:
                CIARating.objects.get_or_create(rating_type=rating_type, label=label, defaults={"value": value})

        if Asset.objects.exists():
            return
        hardware = AssetCategory.objects.get(name="Hardware")
        Asset.objects.create(
            name="Production Database Server",
            location="Data Center A",
            value=50000,
            category=hardware,
            sub_category=AssetSubCategory.objects.get(category=hardware, name="Server"),
            group=AssetGroup.objects.get(name="Infrastructure"),
            lifecycle_status=AssetLifecycleStatus.objects.get(name="Active"),
            sensitivity=AssetSensitivity.objects.get(name="Restricted"),
            department=departments["IT Operations"],
            owner=users["john.doe"],
            confidentiality=CIARating.objects.get(rating_type=CIARating.TYPE_CONFIDENTIALITY, label="high"),
            integrity=CIARating.objects.get(rating_type=CIARating.TYPE_INTEGRITY, label="high"),
            availability=CIARating.objects.get(rating_type=CIARating.TYPE_AVAILABILITY, label="medium"),
        )

    def _seed_risks(self, departments, users) -> None:
        for name, description, color in RISK_CATEGORIES:
            RiskCategory.objects.get_or_create(name=name, defaults={"description": description, "color": color})
        for name, score in CONTROL_STRENGTHS:
            ControlStrength.objects.get_or_create(name=name, defaults={"score": score})
        for title, score, time_frame, probability in LIKELIHOODS:
            RiskLikelihood.objects.get_or_create(
                title=title, defaults={"score": score, "time_frame": time_frame, "probability": probability}
            )
        for name, score in IMPACTS:
            ImpactRating.objects.get_or_create(name=name, defaults={"score": score})
        for title, color, low, high, days in RANGES:
            RiskRange.objects.get_or_create(
                title=title, defaults={"color": color, "low_range": low, "high_range": high, "timeline_days": days}
            )

        for title, category, department, likelihood, impact, status, strategy in RISKS:
            Risk.objects.get_or_create(
                title=title,
                defaults={
                    "category": RiskCategory.objects.get(name=category),
                    "department": departments[department],
                    "owner": users["lisa.taylor"],
                    "likelihood": likelihood,
                    "impact": impact,
                    "status": status,
                    "response_strategy": strategy,
                },
            )
