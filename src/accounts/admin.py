"""Admin interface for accounts app."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from unfold.admin import ModelAdmin

from accounts.models import User


@admin.register(User)
class GatepassUserAdmin(UserAdmin, ModelAdmin):  # type: ignore[type-arg,misc]
    """Admin for users, with the role and category used for ticket eligibility."""

    list_display = ["username", "email", "display_name", "role", "category", "is_active"]
    list_filter = ["role", "is_staff", "is_active"]
    search_fields = ["username", "email", "first_name", "last_name", "preferred_name"]
    ordering = ["username"]

    fieldsets = (
        *UserAdmin.fieldsets,  # type: ignore[misc]
        ("Profile", {"fields": ("preferred_name", "phone_number", "role", "category")}),
    )
