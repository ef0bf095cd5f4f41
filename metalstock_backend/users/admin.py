# users/admin.py

"""
Workshop staff accounts in Django Admin.

role is the field that matters for the API (it maps to capabilities);
is_staff only opens this admin site.
"""

from __future__ import annotations

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from permissions.roles import effective_capabilities_for
from users.models import User


@admin.register(User)
class StaffUserAdmin(DjangoUserAdmin):
    ordering = ("email",)
    list_display = ("email", "display_name", "role", "capabilities", "is_active", "is_staff")
    list_filter = ("role", "is_active", "is_staff")
    search_fields = ("email", "first_name", "last_name")
    readonly_fields = ("created_at", "updated_at", "last_login")

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Workshop", {"fields": ("first_name", "last_name", "role", "is_active")}),
        ("Admin site", {"fields": ("is_staff", "is_superuser")}),
        ("History", {"fields": ("last_login", "created_at", "updated_at")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "role", "password1", "password2"),
            },
        ),
    )

    @admin.display(description="Capabilities")
    def capabilities(self, obj):
        return ", ".join(sorted(effective_capabilities_for(obj)))
