"""
Audit Logging Module
====================
Append-only, tamper-evident audit trail with hash chaining.
"""

from .event_types import AuditEventType, AuditStatus
from .models import AuditEvent
from .hashing import compute_event_hash, verify_chain_integrity
from .sink import AuditSink
from .logger import AuditLogger

__all__ = [
    # Event Types
    "AuditEventType",
    "AuditStatus",
    # Models
    "AuditEvent",
    # Hashing
    "compute_event_hash",
    "verify_chain_integrity",
    # Sink
    "AuditSink",
    "AuditLogger",
]
