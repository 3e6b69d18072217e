from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand

from core.permissions import ROLE_NAMES


class Command(BaseCommand):
    help = "Create the default GRC role groups."

    def handle(self, *args, **options):
        for role_name in ROLE_NAMES:
            _, created = Group.objects.get_or_create(name=role_name)
            if created:
                self.stdout.write(self.style.SUCCESS(f"Created group: {role_name}"))
            else:
                self.stdout.write(f"Group already exists: {role_name}")
