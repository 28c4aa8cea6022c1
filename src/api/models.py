"""API models: internal errors, grouped by traceback signature."""

from django.conf import settings
from django.db import models


def get_version() -> str:
    """Get the current version of the application."""
    return settings.VERSION


class Error(models.Model):
    """One distinct internal error, identified by the md5 of its traceback."""

    md5 = models.CharField(max_length=32, unique=True, editable=False)
    path = models.CharField(max_length=1024)
    server_version = models.CharField(max_length=32, default=get_version)
    traceback = models.TextField()
    payload = models.BinaryField(null=True, blank=True)
    json_payload = models.JSONField(null=True, blank=True)
    request_metadata = models.JSONField(null=True, blank=True)
    issue_url = models.URLField(null=True, blank=True)
    issue_solved = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.path} ({self.md5[:8]})"

    @property
    def occurrence_count(self) -> int:
        return self.erroroccurrence_set.count()


class ErrorOccurrence(models.Model):
    signature = models.ForeignKey(Error, on_delete=models.CASCADE)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-timestamp"]
