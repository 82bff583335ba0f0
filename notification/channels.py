"""
Notification Channels

One NotificationChannel per delivery mechanism. Only EMAIL needs an active
send; IN_APP rows are delivered by existing, so its channel only logs.

Usage:
    from notification.channels import NotificationChannelFactory

    channel = NotificationChannelFactory.get_channel('EMAIL', email_config=config.notifications.email)
    channel.send(recipient, subject, body, metadata)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import logging
import os

import requests
from tenacity import (
    retry,
    stop_after_attempt,
    wait_fixed,
    retry_if_exception,
    before_sleep_log
)

from core.config_loader import EmailConfig
from core.utils import is_retryable_http_error
from notification.message_builder import NotificationMessageBuilder

logger = logging.getLogger(__name__)


def _is_dry_run_mode() -> bool:
    """Check if notification channels should run in dry-run (log-only) mode."""
    return os.environ.get('NOTIFICATION_DRY_RUN', '').lower() in ('true', '1', 'yes')


def _mask_email(email: str) -> str:
    """
    Mask email address for safe logging (PII protection).

    Shows only domain, e.g., "***@example.com"
    """
    if not email or '@' not in email:
        return "***"
    local, domain = email.rsplit('@', 1)
    return f"***@{domain}"


class NotificationChannel(ABC):
    """
    Abstract base class for all notification channels.

    send() reports the outcome as a bool; the reason for the most recent
    failure is kept in `last_error` for the delivery worker to record.
    """

    last_error: Optional[str] = None

    @property
    @abstractmethod
    def channel_type(self) -> str:
        """Return the channel type identifier (matches NotificationChannelType)."""
        pass

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        """
        Send a notification through this channel.

        Args:
            recipient: Target recipient (format depends on channel)
            subject: Notification subject/title
            body: Notification body
            metadata: Notification data payload (matchId, ...)

        Returns:
            True if sent successfully, False otherwise
        """
        pass

    def validate_config(self) -> bool:
        return True


class EmailChannel(NotificationChannel):
    """Email notification channel via the Resend HTTP API."""

    def __init__(
        self,
        email_config: Optional[EmailConfig] = None,
        base_url: str = "http://localhost:3000",
        dry_run: Optional[bool] = None,
        session: Optional[requests.Session] = None
    ):
        self.config = email_config or EmailConfig()
        self.dry_run = _is_dry_run_mode() if dry_run is None else dry_run
        self.message_builder = NotificationMessageBuilder(base_url)
        self.session = session or requests.Session()
        self.last_error = None

    @property
    def channel_type(self) -> str:
        return 'EMAIL'

    def validate_config(self) -> bool:
        return bool(self.config.api_key)

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_fixed(1),
        retry=retry_if_exception(is_retryable_http_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self.session.post(
            self.config.api_url,
            json=payload,
            headers={'Authorization': f"Bearer {self.config.api_key}"},
            timeout=self.config.request_timeout_seconds
        )
        response.raise_for_status()
        return response.json() if response.content else {}

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        self.last_error = None

        if not recipient:
            self.last_error = "no recipient address"
            logger.error("Email notification has no recipient")
            return False

        if self.dry_run:
            logger.info(f"[DRY RUN] Email to {_mask_email(recipient)}: {subject}")
            return True

        if not self.validate_config():
            # Same outcome as a send so unconfigured deployments do not pile up pending rows
            logger.info(f"Resend not configured, skipping email to {_mask_email(recipient)}")
            return True

        payload = {
            'from': self.config.from_address,
            'to': [recipient],
            'subject': subject,
            'html': self.message_builder.build_email_html(subject, body, metadata),
        }

        try:
            result = self._post(payload)
        except requests.RequestException as e:
            self.last_error = str(e)
            logger.error(f"Failed to send email to {_mask_email(recipient)}: {e}")
            return False

        logger.info(f"Email sent to {_mask_email(recipient)} (id={result.get('id')})")
        return True


class InAppChannel(NotificationChannel):
    """In-app notifications are delivered by the row existing unread."""

    @property
    def channel_type(self) -> str:
        return 'IN_APP'

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        logger.debug(f"[IN_APP] User: {recipient}, Title: {subject}")
        return True


class NotificationChannelFactory:
    """
    Factory for creating notification channels.

    New channels register here instead of being wired into the delivery
    worker directly.
    """

    _channels: Dict[str, type] = {
        'EMAIL': EmailChannel,
        'IN_APP': InAppChannel,
    }

    @classmethod
    def get_channel(cls, channel_type: str, **kwargs) -> NotificationChannel:
        """
        Get a notification channel instance by type.

        Raises:
            ValueError: If channel type is not registered
        """
        channel_class = cls._channels.get(str(channel_type).upper())
        if not channel_class:
            raise ValueError(f"Unknown channel type: {channel_type}. "
                             f"Available: {', '.join(cls._channels.keys())}")
        return channel_class(**kwargs)

    @classmethod
    def register_channel(cls, channel_type: str, channel_class: type):
        if not issubclass(channel_class, NotificationChannel):
            raise ValueError("Channel class must extend NotificationChannel")

        cls._channels[channel_type.upper()] = channel_class
        logger.info(f"Registered new channel type: {channel_type}")

    @classmethod
    def list_channels(cls) -> list:
        return list(cls._channels.keys())
