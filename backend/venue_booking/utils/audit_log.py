from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from .request_id import get_request_id

AuditAction = Literal[
    "reservation.created",
    "reservation.confirmed",
    "reservation.rejected",
    "reservation.cancelled",
    "reservation.completed",
    "reservation.expired",
    "venue.date_blocked",
    "venue.date_unblocked",
]
AuditInitiator = Literal["holder", "host", "system"]

_audit_logger = logging.getLogger("audit")
_audit_logger.setLevel(logging.INFO)
if not _audit_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _audit_logger.addHandler(handler)
_audit_logger.propagate = False


def _enum_to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def emit_audit_log(
    *,
    action: AuditAction,
    initiator: AuditInitiator,
    venue_id: Optional[int],
    reservation_id: Optional[int] = None,
    holder_id: Optional[int] = None,
    booking_date: Optional[str] = None,
    guest_count: Optional[int] = None,
    status_from: Optional[Any] = None,
    status_to: Optional[Any] = None,
    version: Optional[int] = None,
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Emit structured JSON audit log. Raises RuntimeError if logging fails."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "info",
        "action": action,
        "initiator": initiator,
        "request_id": get_request_id(),
        "reservation_id": reservation_id,
        "venue_id": venue_id,
        "holder_id": holder_id,
        "booking_date": booking_date,
        "guest_count": guest_count,
        "status_from": _enum_to_str(status_from),
        "status_to": _enum_to_str(status_to),
        "version": version,
    }
    if message is not None:
        payload["message"] = message
    if extra:
        payload.update(extra)

    # Drop None values to keep the log compact.
    compact_payload = {k: v for k, v in payload.items() if v is not None}
    try:
        _audit_logger.info(json.dumps(compact_payload, ensure_ascii=True, default=str))
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("failed to emit audit log") from exc
