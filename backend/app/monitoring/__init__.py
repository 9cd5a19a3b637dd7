"""Prometheus-text metrics for the realtime socket and the follow graph."""

from .metrics import (
    follow_transitions_total,
    messages_total,
    online_users,
    realtime_connections,
    realtime_errors_total,
    realtime_events_total,
    realtime_room_members,
)
from .registry import MetricsRegistry, registry

__all__ = [
    "MetricsRegistry",
    "registry",
    "realtime_connections",
    "realtime_room_members",
    "realtime_events_total",
    "realtime_errors_total",
    "follow_transitions_total",
    "messages_total",
    "online_users",
]
