"""
Audit Sink
==========
Interface the auth flow records audit events through.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from .event_types import AuditEventType, AuditStatus


class AuditSink(ABC):
    """Receives audit events. Implementations must not raise on bad metadata."""

    @abstractmethod
    def record(
        self,
        event_type: Union[AuditEventType, str],
        status: Union[AuditStatus, str],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record one audit event."""
