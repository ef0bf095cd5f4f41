# users/management/commands/seed_users.py

from __future__ import annotations

from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from permissions.roles import ROLE_ADMIN, ROLE_MANAGER, ROLE_OPERATOR, ROLE_VIEWER


@dataclass(frozen=True)
class SeedUserSpec:
    label: str
    role: str
    email: str


SEED_USERS = [
    SeedUserSpec("Admin", ROLE_ADMIN, "admin@example.com"),
    SeedUserSpec("Manager", ROLE_MANAGER, "manager@example.com"),
    SeedUserSpec("Operator", ROLE_OPERATOR, "operator@example.com"),
    SeedUserSpec("Viewer", ROLE_VIEWER, "viewer@example.com"),
]


class Command(BaseCommand):
    help = "Seed one workshop user per role (admin, manager, operator, viewer)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            type=str,
            required=True,
            help="Password for newly seeded users",
        )
        parser.add_argument(
            "--force-password",
            action="store_true",
            help="Also reset the password of users that already exist.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password = options.get("password") or ""
        force_password = bool(options.get("force_password"))

        if len(password) < 8:
            raise CommandError("--password must be at least 8 characters.")

        User = get_user_model()
        created_count = 0

        for spec in SEED_USERS:
            is_admin = spec.role == ROLE_ADMIN
            user, created = User.objects.get_or_create(
                email=spec.email,
                defaults={"role": spec.role, "is_staff": is_admin, "is_superuser": is_admin},
            )

            if not created and user.role != spec.role:
                user.role = spec.role
                user.save(update_fields=["role", "updated_at"])

            if created or force_password:
                user.set_password(password)
                user.save(update_fields=["password"])

            if created:
                created_count += 1
                self.stdout.write(f"created: {spec.label} ({spec.role}) {spec.email}")
            else:
                self.stdout.write(f"exists:  {spec.label} ({spec.role}) {spec.email}")

        self.stdout.write(self.style.SUCCESS(f"Created users: {created_count}"))
