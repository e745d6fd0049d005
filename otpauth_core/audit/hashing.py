"""
Audit Hashing
=============
Hash computation and chain verification for audit logs.
"""

import hashlib
import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import structlog

from .models import AuditEvent

logger = structlog.get_logger(__name__)


def compute_event_hash(
    previous_hash: Optional[str],
    timestamp: datetime,
    service: str,
    event_type: str,
    status: str,
    metadata: Dict[str, Any],
) -> str:
    """
    Compute the hash for an audit event.

    Each event's hash depends on the previous event's hash, so editing or
    removing any entry breaks every hash after it.

    Returns:
        SHA-256 hex digest
    """
    hash_input = json.dumps({
        "previous_hash": previous_hash,
        "timestamp": timestamp.isoformat(),
        "service": service,
        "event_type": event_type,
        "status": status,
        "metadata": metadata,
    }, sort_keys=True, separators=(",", ":"), default=str)

    return hashlib.sha256(hash_input.encode()).hexdigest()


def verify_chain_integrity(events: List[AuditEvent]) -> Tuple[bool, Optional[int]]:
    """
    Verify the integrity of an audit event chain.

    Args:
        events: List of events in chronological order

    Returns:
        Tuple of (is_valid, first_invalid_index)
    """
    previous_hash = events[0].previous_hash if events else None

    for i, event in enumerate(events):
        if event.previous_hash != previous_hash:
            logger.warning("audit_chain_linkage_broken", event_id=event.id, index=i)
            return False, i

        expected_hash = compute_event_hash(
            event.previous_hash,
            event.timestamp,
            event.service,
            event.event_type,
            event.status,
            event.metadata,
        )
        if event.hash != expected_hash:
            logger.warning(
                "audit_chain_integrity_violation",
                event_id=event.id,
                index=i,
                expected_hash=expected_hash[:16],
                actual_hash=event.hash[:16],
            )
            return False, i

        previous_hash = event.hash

    return True, None
