"""
Delivery Worker.

Drains pending EMAIL notifications (sent_at IS NULL) through the email
channel. A failed send leaves the row pending for the next drain; nothing is
ever marked permanently failed.
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional

from core.utils import utcnow
from database.models import Notification
from database.repository import CricketRepository
from notification.channels import NotificationChannel, _mask_email

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    attempted: int = 0
    sent: int = 0
    failed: int = 0


class NotificationDeliveryService:
    def __init__(self, email_channel: NotificationChannel, batch_size: int = 50):
        self.channel = email_channel
        self.batch_size = batch_size

    @staticmethod
    def _recipient(notification: Notification) -> Optional[str]:
        user = notification.user
        if user is not None and user.email:
            return user.email
        return (notification.data or {}).get('email')

    def _deliver_one(self, repo: CricketRepository, notification: Notification) -> bool:
        recipient = self._recipient(notification)
        try:
            ok = self.channel.send(recipient, notification.title, notification.body, notification.data or {})
            error = self.channel.last_error
        except Exception as e:
            logger.error(f"Unexpected error sending notification {notification.id}: {e}", exc_info=True)
            ok, error = False, str(e)

        if ok:
            repo.notifications.mark_sent(notification, utcnow())
        else:
            repo.notifications.mark_failed(notification, error or "send failed")
            logger.warning(
                f"Notification {notification.id} to {_mask_email(recipient)} failed "
                f"(attempt {notification.attempt_count}), will retry next drain"
            )
        # Each outcome is durable on its own; a crash mid-batch never re-sends finished rows
        repo.commit()
        return ok

    def drain(self, repo: CricketRepository) -> DeliveryResult:
        start = time.time()
        result = DeliveryResult()

        pending = repo.notifications.get_pending_email(self.batch_size)
        if not pending:
            logger.debug("No pending email notifications")
            return result

        logger.info(f"Processing {len(pending)} pending email notification(s)")
        for notification in pending:
            result.attempted += 1
            if self._deliver_one(repo, notification):
                result.sent += 1
            else:
                result.failed += 1

        logger.info(
            f"Delivery drain finished in {time.time() - start:.2f}s: "
            f"sent={result.sent}, failed={result.failed}"
        )
        return result
