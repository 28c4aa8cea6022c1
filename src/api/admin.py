# Read-only admin for tracked internal errors.

import typing as t

import orjson
from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html
from unfold.admin import ModelAdmin, TabularInline

from . import models

_PRE = '<pre style="background: #f8f9fa; padding: 10px; border-radius: 4px; font-size: 12px;">{}</pre>'


def _pretty(data: t.Any) -> str:
    if not data:
        return "-"
    return format_html(_PRE, orjson.dumps(data, option=orjson.OPT_INDENT_2).decode())


class ErrorOccurrenceInline(TabularInline):  # type: ignore[misc]
    model = models.ErrorOccurrence
    extra = 0
    can_delete = False
    readonly_fields = ["timestamp"]
    fields = ["timestamp"]
    ordering = ["-timestamp"]


@admin.register(models.Error)
class ErrorAdmin(ModelAdmin):  # type: ignore[misc]
    """Error signatures. Only the issue tracking fields are editable."""

    list_display = ["path_short", "server_version", "occurrence_count", "created_at", "last_seen", "issue_solved"]
    list_filter = ["server_version", "issue_solved", "created_at"]
    search_fields = ["path", "traceback", "md5"]
    readonly_fields = [
        "md5",
        "path",
        "server_version",
        "created_at",
        "occurrence_count",
        "traceback_display",
        "json_payload_display",
        "request_metadata_display",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    fieldsets = (
        (
            "Error",
            {
                "fields": (
                    "md5",
                    "path",
                    "server_version",
                    ("created_at", "occurrence_count"),
                    ("issue_url", "issue_solved"),
                )
            },
        ),
        (
            "Debug",
            {
                "fields": ("traceback_display", "request_metadata_display", "json_payload_display"),
                "classes": ["collapse"],
            },
        ),
    )
    inlines = [ErrorOccurrenceInline]

    @admin.display(description="Path")
    def path_short(self, obj: models.Error) -> str:
        return obj.path if len(obj.path) <= 60 else f"...{obj.path[-57:]}"

    @admin.display(description="Occurrences")
    def occurrence_count(self, obj: models.Error) -> int:
        return obj.occurrence_count

    @admin.display(description="Last seen")
    def last_seen(self, obj: models.Error) -> str:
        last = obj.erroroccurrence_set.order_by("-timestamp").first()
        return (last.timestamp if last else obj.created_at).strftime("%Y-%m-%d %H:%M")

    @admin.display(description="Traceback")
    def traceback_display(self, obj: models.Error) -> str:
        return format_html(_PRE, obj.traceback)

    @admin.display(description="JSON payload")
    def json_payload_display(self, obj: models.Error) -> str:
        return _pretty(obj.json_payload)

    @admin.display(description="Request metadata")
    def request_metadata_display(self, obj: models.Error) -> str:
        return _pretty(obj.request_metadata)

    def has_add_permission(self, request: t.Any) -> bool:
        return False


@admin.register(models.ErrorOccurrence)
class ErrorOccurrenceAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["error_link", "timestamp"]
    list_filter = ["signature__server_version", "timestamp"]
    search_fields = ["signature__path", "signature__md5"]
    readonly_fields = ["signature", "timestamp"]
    date_hierarchy = "timestamp"
    ordering = ["-timestamp"]

    @admin.display(description="Error signature")
    def error_link(self, obj: models.ErrorOccurrence) -> str:
        url = reverse("admin:api_error_change", args=[obj.signature_id])
        return format_html('<a href="{}">{}</a>', url, obj.signature.md5[:8])

    def has_add_permission(self, request: t.Any) -> bool:
        return False

    def has_change_permission(self, request: t.Any, obj: t.Any = None) -> bool:
        return False
