"""Admin for ticketing.

Status changes go through the services, so everything the state machine or the
inventory ledger owns is read-only here.
"""

import typing as t

from django.contrib import admin
from unfold.admin import ModelAdmin, TabularInline

from ticketing.models import Order, PaymentMethod, Ticket, TicketType, ValidationAttempt


@admin.register(TicketType)
class TicketTypeAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["name", "event", "price", "sold_count", "total_quantity", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["name", "event__title"]
    readonly_fields = ["sold_count"]
    autocomplete_fields = ["event"]


@admin.register(PaymentMethod)
class PaymentMethodAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["name", "event", "kind", "is_active", "display_order"]
    list_filter = ["kind", "is_active"]
    search_fields = ["name", "event__title", "account_title"]
    autocomplete_fields = ["event"]


class TicketInline(TabularInline):  # type: ignore[misc]
    model = Ticket
    extra = 0
    can_delete = False
    fields = ["ticket_number", "holder_name", "status", "used_at"]
    readonly_fields = fields

    def has_add_permission(self, request: t.Any, obj: t.Any = None) -> bool:
        return False


@admin.register(Order)
class OrderAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["id", "event", "buyer", "ticket_type", "quantity", "total_amount", "status", "created_at"]
    list_filter = ["status"]
    search_fields = ["id", "ticket_code", "buyer__username", "buyer__email", "event__title"]
    readonly_fields = [
        "event",
        "ticket_type",
        "buyer",
        "payment_method",
        "quantity",
        "total_amount",
        "status",
        "payment_details",
        "payment_proof",
        "proof_submitted_at",
        "rejection_reason",
        "verified_by",
        "verified_at",
        "ticket_code",
    ]
    inlines = [TicketInline]

    def has_add_permission(self, request: t.Any) -> bool:
        return False

    def has_delete_permission(self, request: t.Any, obj: t.Any = None) -> bool:
        return False


@admin.register(Ticket)
class TicketAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["ticket_number", "event", "user", "holder_name", "status", "used_at"]
    list_filter = ["status", "is_used"]
    search_fields = ["ticket_number", "holder_name", "holder_email", "user__username"]
    readonly_fields = [
        "order",
        "event",
        "ticket_type",
        "user",
        "sequence",
        "ticket_number",
        "reference",
        "status",
        "is_used",
        "used_at",
        "validated_by",
    ]

    def has_add_permission(self, request: t.Any) -> bool:
        return False

    def has_delete_permission(self, request: t.Any, obj: t.Any = None) -> bool:
        return False


@admin.register(ValidationAttempt)
class ValidationAttemptAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["created_at", "event", "result", "method", "validator", "ticket"]
    list_filter = ["result", "method"]
    search_fields = ["ticket__ticket_number", "event__title", "validator__username"]
    date_hierarchy = "created_at"

    def has_add_permission(self, request: t.Any) -> bool:
        return False

    def has_change_permission(self, request: t.Any, obj: t.Any = None) -> bool:
        return False

    def has_delete_permission(self, request: t.Any, obj: t.Any = None) -> bool:
        return False
