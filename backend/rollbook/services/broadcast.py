"""
Live Update Broadcaster - fan-out of attendance change events.

Keeps the set of connected viewer sessions in memory (lost on restart)
and pushes a lightweight cache-invalidation event to every one of them
whenever a section's attendance changes:

    {"type": "attendance_update", "payload": {"sectionId": 7}}

Every connection receives every event; there is no per-section
subscription filtering. Receivers re-fetch instead of trusting the
payload. Delivery is best-effort: a viewer that is not connected at
broadcast time simply misses the event and converges on its next fetch.

One broadcaster instance is created per application (app.state) and
handed to routes through a dependency.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks

from rollbook.logging_config import get_logger, log_with_context

logger = get_logger("live")

ATTENDANCE_UPDATE = "attendance_update"


@dataclass
class Subscription:
    """Metadata kept for each registered connection."""
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: Optional[int] = None
    role: Optional[str] = None


class LiveUpdateBroadcaster:
    """
    Registry of live connections keyed by connection handle.

    A connection handle is anything with an async ``send_json`` method
    (a Starlette WebSocket in production). Registration and broadcast both
    run on the event loop, so the registry needs no lock.
    """

    def __init__(self):
        self._connections: Dict[Any, Subscription] = {}

    def register(self, connection, user_id: Optional[int] = None,
                 role: Optional[str] = None) -> Subscription:
        subscription = Subscription(user_id=user_id, role=role)
        self._connections[connection] = subscription
        log_with_context(logger, "INFO", "Viewer connected",
            context={"user_id": user_id},
            extra_data={"role": role, "connections": len(self._connections)})
        return subscription

    def deregister(self, connection) -> None:
        subscription = self._connections.pop(connection, None)
        if subscription is not None:
            log_with_context(logger, "INFO", "Viewer disconnected",
                context={"user_id": subscription.user_id},
                extra_data={"connections": len(self._connections)})

    def subscription(self, connection) -> Optional[Subscription]:
        return self._connections.get(connection)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def broadcast(self, section_id: int) -> int:
        """
        Send an attendance_update event for a section to every connection.

        Connections that fail to receive are dropped from the registry.
        Returns the number of connections the event was delivered to.
        """
        message = {"type": ATTENDANCE_UPDATE, "payload": {"sectionId": section_id}}
        delivered = 0

        # Copy: failed sends deregister while we iterate
        for connection in list(self._connections):
            try:
                await connection.send_json(message)
                delivered += 1
            except Exception as e:
                log_with_context(logger, "WARNING",
                    "Dropping connection after failed send: {}".format(e),
                    context={"section_id": section_id})
                self.deregister(connection)

        log_with_context(logger, "INFO",
            "Broadcast attendance_update for section {} to {} viewers".format(section_id, delivered),
            context={"section_id": section_id})
        return delivered

    def notify(self, section_id: int, background_tasks: BackgroundTasks) -> None:
        """Schedule a broadcast to run after the response is sent."""
        background_tasks.add_task(self.broadcast, section_id)
