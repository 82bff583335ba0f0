"""
Notification Module

Fan-out of match events into per-user notification rows, and delivery of
pending email notifications.

Usage:
    from notification import NotificationFanoutService, NotificationDeliveryService

    with cricket_uow(db.SessionLocal) as repo:
        NotificationFanoutService().fan_out(repo, event)

    with cricket_uow(db.SessionLocal) as repo:
        delivery_service.drain(repo)
"""

from notification.channels import (
    NotificationChannel,
    EmailChannel,
    InAppChannel,
    NotificationChannelFactory,
)

from notification.tracker import (
    NotificationTracker,
    generate_dedup_key,
)

from notification.fanout import (
    NotificationFanoutService,
    FanoutResult,
    resolve_enabled_channels,
)

from notification.delivery import (
    NotificationDeliveryService,
    DeliveryResult,
)

__all__ = [
    # Channels
    'NotificationChannel',
    'EmailChannel',
    'InAppChannel',
    'NotificationChannelFactory',
    # Tracker
    'NotificationTracker',
    'generate_dedup_key',
    # Fan-out / delivery
    'NotificationFanoutService',
    'FanoutResult',
    'resolve_enabled_channels',
    'NotificationDeliveryService',
    'DeliveryResult',
]
