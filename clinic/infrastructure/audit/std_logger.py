import json
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from ...application.ports.audit_logger import AuditLogger


class StdAuditLogger(AuditLogger):
    """Writes one JSON line per appointment event to the clinic.audit logger."""

    def __init__(self, logger_name: str = "clinic.audit") -> None:
        self._logger = logging.getLogger(logger_name)

    def log(self, action: str, actor_id: str, appointment_id: Optional[str] = None, success: bool = True,
            details: Optional[Dict[str, Any]] = None) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "action": action,
            "actor_id": actor_id,
            "appointment_id": appointment_id,
            "success": success,
            "details": details or {},
        }
        self._logger.info(f"AUDIT: {json.dumps(entry, default=str)}")
