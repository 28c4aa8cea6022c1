from django.contrib import admin
from unfold.admin import ModelAdmin

from events.models import Event


@admin.register(Event)
class EventAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["title", "organizer", "category", "status", "starts_at"]
    list_filter = ["status", "category"]
    search_fields = ["title", "organizer__username", "organizer__email"]
    autocomplete_fields = ["organizer"]
