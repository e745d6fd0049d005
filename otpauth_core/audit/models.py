"""
Audit Models
============
Data models for audit log entries.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class AuditEvent:
    """An audit log entry with hash chain support."""
    id: str
    timestamp: datetime
    service: str
    event_type: str
    status: str  # "success", "error", "pending"
    metadata: Dict[str, Any]
    hash: str
    previous_hash: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        d = asdict(self)
        d["timestamp"] = self.timestamp.isoformat()
        return d
