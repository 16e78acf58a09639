"""
trok/services/storage_service.py

Purpose: Document uploads to Google Cloud Storage

- Builds object paths as {crn}/{type}/{filename}
- Issues short-lived V4 signed POST policies so browsers upload directly
"""

from datetime import timedelta
from typing import Any, Dict, Optional

from google.cloud import storage
from starlette.concurrency import run_in_threadpool

from trok.core.config import settings
from trok.core.exceptions import ExternalServiceError, ValidationError
from trok.core.logging import get_logger
from trok.utils.validation_utils import validate_path_segment

logger = get_logger(__name__)

# Custom metadata attached to every uploaded object
UPLOAD_FIELDS = {"x-goog-meta-test": "data"}


def build_object_path(crn: str, doc_type: str, filename: str) -> str:
    """
    Returns the object path for an uploaded document.

    Raises:
        ValidationError: If any segment could escape its folder
    """
    for label, segment in (("crn", crn), ("type", doc_type), ("filename", filename)):
        if not validate_path_segment(segment):
            raise ValidationError(f"Invalid {label} for upload path", details={label: segment})
    return f"{crn}/{doc_type}/{filename}"


class StorageService:
    """Wraps the google-cloud-storage client used for signed uploads."""

    def __init__(self, bucket_name: Optional[str] = None, client: Optional[storage.Client] = None):
        self.bucket_name = bucket_name or settings.GCS_BUCKET_NAME
        self._client = client

    def _get_client(self) -> storage.Client:
        if self._client is None:
            # Credentials come from GOOGLE_APPLICATION_CREDENTIALS / ADC
            self._client = storage.Client()
        return self._client

    def _sign(self, object_path: str, expiry_seconds: int) -> Dict[str, Any]:
        return self._get_client().generate_signed_post_policy_v4(
            self.bucket_name,
            object_path,
            expiration=timedelta(seconds=expiry_seconds),
            fields=dict(UPLOAD_FIELDS),
        )

    async def generate_upload_policy(
        self,
        crn: str,
        doc_type: str,
        filename: str,
        expiry_seconds: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Creates a signed POST policy for one document.

        Returns:
            {"url": ..., "fields": {...}} as produced by google-cloud-storage
        """
        if not self.bucket_name:
            raise ExternalServiceError("Storage bucket is not configured")

        object_path = build_object_path(crn, doc_type, filename)
        expiry = expiry_seconds or settings.GCS_UPLOAD_EXPIRY_SECONDS

        try:
            policy = await run_in_threadpool(self._sign, object_path, expiry)
        except Exception as e:
            logger.error(f"Failed to sign upload policy for {object_path}: {e}", exc_info=True)
            raise ExternalServiceError("Unable to create upload URL") from e

        logger.info(f"Signed upload policy issued for {object_path} in {self.bucket_name}")
        return policy


# Global storage service instance
_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Get or create the global storage service instance."""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
