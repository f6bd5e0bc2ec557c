"""Celery tasks for stored media."""
import logging

from appify.core.celery_app import celery_app
from appify.services.storage_service import StorageError, get_storage

logger = logging.getLogger(__name__)


@celery_app.task(autoretry_for=(StorageError,), retry_backoff=True, max_retries=3)
def delete_stored_media(url: str) -> bool:
    """Remove a deleted post's image from storage."""
    deleted = get_storage().delete(url)
    if not deleted:
        logger.warning("Media %s was not found in storage", url)
    return deleted
