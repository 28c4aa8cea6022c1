"""Opaque blob storage on top of Django's storage API.

Callers only see ``put(bytes) -> key`` and ``url(key) -> str``. Keys under
``protected/`` are served through expiring signed URLs (see ``common.signing``).
"""

import uuid

import structlog
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import Storage, default_storage

from .signing import PROTECTED_PATH_PREFIX, generate_signed_url, is_protected_path

logger = structlog.get_logger(__name__)


class BlobStoreError(Exception):
    """The storage backend failed to store or locate a blob."""


class BlobStore:
    """Thin wrapper over a Django ``Storage`` backend."""

    def __init__(self, storage: Storage | None = None, *, protected: bool = True) -> None:
        self._storage = storage
        self.protected = protected

    @property
    def storage(self) -> Storage:
        return self._storage or default_storage

    def put(self, data: bytes, *, folder: str, extension: str) -> str:
        """Store ``data`` under a fresh, unguessable name.

        Args:
            data: Raw blob content.
            folder: Logical folder, e.g. ``payment_proofs/<order_id>``.
            extension: File extension without the dot.

        Returns:
            The key the blob was saved under (it may differ from the requested one).

        Raises:
            BlobStoreError: If the backend fails for any reason, timeouts included.
        """
        prefix = PROTECTED_PATH_PREFIX if self.protected else ""
        name = f"{prefix}{folder.strip('/')}/{uuid.uuid4().hex}.{extension}"
        try:
            key = self.storage.save(name, ContentFile(data))
        except Exception as exc:
            logger.warning("blob_store.put_failed", name=name, error=str(exc))
            raise BlobStoreError(f"Could not store blob {name}.") from exc
        logger.info("blob_store.put", key=key, size=len(data))
        return key

    def url(self, key: str, *, expires_in: int | None = None) -> str:
        """Return a URL the blob can be fetched from.

        Protected keys get a signed URL that expires after ``expires_in`` seconds.
        """
        if is_protected_path(key):
            return generate_signed_url(key, expires_in=expires_in or settings.PROOF_URL_EXPIRES_IN)
        return f"{settings.MEDIA_URL}{key}"

    def exists(self, key: str) -> bool:
        return self.storage.exists(key)


blob_store = BlobStore()
