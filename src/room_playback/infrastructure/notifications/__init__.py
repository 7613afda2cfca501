"""Notification adapters."""

from room_playback.infrastructure.notifications.event_notifier import EventBusNotifier

__all__ = ["EventBusNotifier"]
