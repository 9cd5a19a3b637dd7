"""Metric definitions for realtime messaging and the follow graph."""

from __future__ import annotations

from .registry import registry


realtime_connections = registry.gauge(
    "realtime_active_connections",
    "Number of websocket connections currently bound to a user.",
    label_names=("scope",),
)

realtime_room_members = registry.gauge(
    "realtime_room_members",
    "Number of connections currently joined to chat rooms.",
)

realtime_events_total = registry.counter(
    "realtime_events_total",
    "Count of realtime events processed by the chat socket.",
    label_names=("direction", "event"),
)

realtime_errors_total = registry.counter(
    "realtime_errors_total",
    "Count of chat socket events that ended in an error reply.",
    label_names=("event",),
)

follow_transitions_total = registry.counter(
    "follow_transitions_total",
    "Follow edge state transitions, by resulting state.",
    label_names=("transition",),
)

messages_total = registry.counter(
    "messages_total",
    "Message store mutations, by operation.",
    label_names=("operation",),
)

online_users = registry.gauge(
    "realtime_online_users",
    "Distinct users with a live chat connection, sampled at scrape time.",
)
