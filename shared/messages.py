"""
Формат сообщений службы доставки на SystemBus.

- Запрос: action + payload, для ответа — correlation_id и reply_to
- Ответ: action "response", success и, при ошибке, error/error_code
- Событие: action события + payload, без reply_to (ответа не ждут)
"""
from dataclasses import dataclass, asdict, field
from typing import Dict, Any, Optional
from datetime import datetime, timezone

from shared.topics import DroneDeliveryActions


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Message:
    """Сообщение SystemBus: запрос или событие."""
    action: str
    payload: Dict[str, Any] = field(default_factory=dict)
    sender: str = ""
    correlation_id: Optional[str] = None
    reply_to: Optional[str] = None
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Пустые correlation_id/reply_to в сообщение не попадают."""
        return {k: v for k, v in asdict(self).items() if v is not None}


def create_event(action: str, payload: Dict[str, Any], sender: str) -> Dict[str, Any]:
    """Событие для публикации в топик событий системы."""
    return Message(action=action, payload=payload, sender=sender).to_dict()


def create_response(
    correlation_id: Optional[str],
    payload: Dict[str, Any],
    sender: str,
    success: bool = True,
    error: Optional[str] = None,
    error_code: Optional[str] = None
) -> Dict[str, Any]:
    """
    Ответ на запрос с тем же correlation_id.

    Для отказа: success=False, error — текст ошибки, error_code —
    машиночитаемый код (INVALID_REQUEST, DRONE_NOT_FOUND, ...).
    """
    response = {
        "action": DroneDeliveryActions.RESPONSE,
        "payload": payload,
        "sender": sender,
        "correlation_id": correlation_id,
        "success": success,
        "timestamp": utc_timestamp()
    }
    if not success:
        response["error"] = error or "request failed"
        response["error_code"] = error_code or "INTERNAL_ERROR"
    return response


def create_error_response(
    request: Dict[str, Any],
    sender: str,
    error: Exception,
    error_code: str
) -> Dict[str, Any]:
    """Ответ-отказ на запрос по исключению обработчика."""
    return create_response(
        correlation_id=request.get("correlation_id"),
        payload={},
        sender=sender,
        success=False,
        error=str(error),
        error_code=error_code
    )
