"""Structured logging for ERP-facing trip operations (import, refresh, sync)."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

_QUIET_OUTCOMES = ("success",)


class StructuredOperationLogger:
    """Emits one record per remote trip operation.

    Records carry the operation fields under `extra["structured"]` so a JSON
    formatter can ship them as-is.
    """

    def log_outcome(
        self,
        operation: str,
        trip_id: str | None,
        outcome: str,
        latency_ms: float,
        phase: str | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Record how an operation on trip_id ended.

        Args:
            operation: "import", "refresh" or "sync"
            trip_id: Local trip id (None when nothing was stored)
            outcome: "success", "not_found" or "error"
            latency_ms: Wall time of the whole operation
            phase: Failed sync phase, if any
            error_reason: Failure message, if any
        """
        fields: dict[str, Any] = {
            "operation": operation,
            "trip_id": trip_id,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }
        fields.update(
            {k: v for k, v in (("phase", phase), ("error_reason", error_reason)) if v}
        )

        level = logging.INFO if outcome in _QUIET_OUTCOMES else logging.WARNING
        logger.log(
            level,
            "%s of trip %s finished: %s",
            operation,
            trip_id or "-",
            outcome,
            extra={"structured": fields},
        )
