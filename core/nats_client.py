"""
NATS Event Bus

Publishes service events to NATS JetStream through nats-py.

Events are pydantic models carrying an ``event_type`` (used as the subject,
e.g. ``campaign.created``) and are serialized with ``model_dump_json``.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

import nats
from nats.js import JetStreamContext

logger = logging.getLogger(__name__)


def _subject_for(event: Any) -> str:
    event_type = getattr(event, "event_type", None)
    if isinstance(event_type, Enum):
        return event_type.value
    if not event_type:
        raise ValueError(f"Event has no event_type: {event!r}")
    return str(event_type)


class NATSEventBus:
    """NATS JetStream event bus"""

    def __init__(
        self,
        service_name: str,
        servers: str = "nats://localhost:4222",
        stream_name: Optional[str] = None,
        stream_subjects: Optional[List[str]] = None,
    ):
        """
        Initialize NATS Event Bus.

        Args:
            service_name: Name of the service, used as the connection name
            servers: NATS server URL(s), comma separated
            stream_name: JetStream stream events are persisted in
            stream_subjects: Subject patterns the stream captures
        """
        self.service_name = service_name
        self.servers = [s.strip() for s in servers.split(",") if s.strip()]
        self.stream_name = stream_name
        self.stream_subjects = stream_subjects or []

        self._nc = None
        self._js: Optional[JetStreamContext] = None
        self._streams_ready: Dict[str, bool] = {}

        logger.info(f"NATS EventBus initialized: {', '.join(self.servers)}")

    async def connect(self):
        """Connect to NATS and prepare JetStream"""
        try:
            self._nc = await nats.connect(servers=self.servers, name=self.service_name)
            self._js = self._nc.jetstream()
            logger.info(f"Connected to NATS as {self.service_name}")
        except Exception as e:
            logger.error(f"Failed to connect to NATS: {e}")
            raise

        if self.stream_name and self.stream_subjects:
            await self.create_stream(self.stream_name, self.stream_subjects)

    async def publish_event(self, event: Any) -> bool:
        """
        Publish an event to JetStream.

        The subject is the event type. Returns False instead of raising when
        the bus is down or the publish fails.
        """
        if not self.is_connected or self._js is None:
            logger.error("Not connected to NATS")
            return False

        try:
            subject = _subject_for(event)
            data = event.model_dump_json().encode()
            ack = await self._js.publish(subject, data)
            logger.info(f"Published event {subject} to stream {ack.stream}, seq={ack.seq}")
            return True

        except Exception as e:
            logger.error(f"Error publishing event: {e}")
            return False

    async def create_stream(self, name: str, subjects: List[str]) -> bool:
        """Create a JetStream stream if it does not exist yet"""
        if self._js is None:
            return False

        try:
            await self._js.add_stream(name=name, subjects=subjects)
            self._streams_ready[name] = True
            logger.info(f"JetStream stream ready: {name} {subjects}")
            return True
        except Exception as e:
            logger.warning(f"Stream creation for {name} failed: {e}")
            return False

    async def close(self):
        """Drain and close the NATS connection"""
        if self._nc is not None:
            try:
                await self._nc.drain()
            except Exception as e:
                logger.warning(f"Error draining NATS connection: {e}")
            self._nc = None
            self._js = None

        logger.info("Disconnected from NATS")

    @property
    def is_connected(self) -> bool:
        """Check if connected to NATS"""
        return self._nc is not None and self._nc.is_connected


__all__ = ["NATSEventBus"]
