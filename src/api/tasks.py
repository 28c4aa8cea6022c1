"""Tasks for tracking internal errors."""

import base64
import hashlib
import typing as t

import structlog
from celery import shared_task
from django.db import transaction

from .models import Error, ErrorOccurrence

logger = structlog.get_logger(__name__)


@shared_task
def track_internal_error(
    path: str,
    traceback_str: str,
    encoded_payload: str | None = None,
    json_payload: dict[str, t.Any] | None = None,
    metadata: dict[str, t.Any] | None = None,
) -> None:
    """Record an internal error, grouping identical tracebacks under one signature.

    Args:
        path: ``METHOD /path`` of the failing request.
        traceback_str: The formatted traceback.
        encoded_payload: Base64 of the raw body, when it was not JSON.
        json_payload: The (obfuscated) JSON body, when there was one.
        metadata: Headers, query and user of the request.
    """
    md5 = hashlib.md5(traceback_str.encode("utf-8")).hexdigest()
    with transaction.atomic():
        error, created = Error.objects.get_or_create(
            md5=md5,
            defaults={
                "path": path[:1024],
                "traceback": traceback_str,
                "payload": base64.b64decode(encoded_payload) if encoded_payload else None,
                "json_payload": json_payload,
                "request_metadata": metadata,
            },
        )
        ErrorOccurrence.objects.create(signature=error)
    logger.info("internal_error.tracked", md5=md5, path=path, new_signature=created)
