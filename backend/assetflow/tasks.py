from __future__ import annotations
import logging
from celery import shared_task

from assetflow import get_db
from assetflow.services import notifications

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def deliver_notification(recipient_id, type_, title, message, asset_id=None, bill_no=None, actor_id=None):
    """Persist an in-app notification. Failures are logged, never retried into the caller."""
    try:
        n = notifications.create_notification(recipient_id, type_, title, message, asset_id, bill_no, actor_id)
    except Exception:
        logger.exception('delivering %s notification to user %s failed', type_, recipient_id)
        get_db().rollback()
        return None
    logger.info('notification %s (%s) delivered to user %s', n.id, type_, recipient_id)
    return n.id
