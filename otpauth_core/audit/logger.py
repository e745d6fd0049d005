"""
Audit Logger
============
Append-only audit sink with hash chain support.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

import structlog

from .event_types import AuditEventType, AuditStatus
from .hashing import compute_event_hash
from .models import AuditEvent
from .sink import AuditSink

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditLogger(AuditSink):
    """
    Buffers audit events in a tamper-evident hash chain.

    Tracks the previous hash to maintain chain integrity. Call ``flush`` to
    hand buffered events to durable storage.
    """

    def __init__(self, service_name: str, clock: Callable[[], datetime] = _utcnow):
        self.service_name = service_name
        self._clock = clock
        self._previous_hash: Optional[str] = None
        self._buffer: List[AuditEvent] = []

    def set_previous_hash(self, hash_value: str) -> None:
        """Set the previous hash (e.g., from database on startup)."""
        self._previous_hash = hash_value

    def record(
        self,
        event_type: Union[AuditEventType, str],
        status: Union[AuditStatus, str],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        """
        Create an audit log entry.

        Args:
            event_type: Type of event
            status: "success", "error" or "pending"
            metadata: Additional event data

        Returns:
            The created AuditEvent
        """
        timestamp = self._clock()
        metadata = dict(metadata or {})
        event_type_str = event_type.value if isinstance(event_type, AuditEventType) else event_type
        status_str = status.value if isinstance(status, AuditStatus) else status

        event_hash = compute_event_hash(
            self._previous_hash,
            timestamp,
            self.service_name,
            event_type_str,
            status_str,
            metadata,
        )

        event = AuditEvent(
            id=str(uuid.uuid4()),
            timestamp=timestamp,
            service=self.service_name,
            event_type=event_type_str,
            status=status_str,
            metadata=metadata,
            hash=event_hash,
            previous_hash=self._previous_hash,
        )

        self._previous_hash = event_hash
        self._buffer.append(event)

        logger.info(
            "audit_event_logged",
            event_id=event.id,
            event_type=event.event_type,
            status=status_str,
        )

        return event

    @property
    def events(self) -> List[AuditEvent]:
        """Buffered events, oldest first."""
        return list(self._buffer)

    def flush(self) -> List[AuditEvent]:
        """
        Get and clear buffered events.

        Returns:
            List of buffered events
        """
        events = self._buffer
        self._buffer = []
        return events
