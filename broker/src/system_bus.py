"""
Базовый интерфейс SystemBus для передачи сообщений между системами.
"""
from abc import ABC, abstractmethod
from typing import Callable, Dict, Any, Optional
import logging


logger = logging.getLogger(__name__)


class SystemBus(ABC):
    """
    Абстрактная шина сообщений между системами.

    Особенности:
    - Работает с dict сообщениями
    - Поддерживает request/response через correlation_id и reply_to
    - Использует топики вида systems.{system_name}
    """

    @abstractmethod
    def publish(self, topic: str, message: Dict[str, Any]) -> bool:
        """
        Публикует сообщение в указанный топик.

        Args:
            topic: Имя топика (например, "systems.drone_delivery")
            message: Сообщение с полями action, payload, sender и
                     (опционально) correlation_id, reply_to

        Returns:
            bool: True если сообщение успешно отправлено
        """

    @abstractmethod
    def subscribe(self, topic: str, callback: Callable[[Dict[str, Any]], None]) -> bool:
        """Подписывается на топик; callback вызывается на каждое сообщение."""

    @abstractmethod
    def unsubscribe(self, topic: str) -> bool:
        """Отписывается от топика."""

    @abstractmethod
    def request(
        self,
        topic: str,
        message: Dict[str, Any],
        timeout: float = 30.0
    ) -> Optional[Dict[str, Any]]:
        """
        Отправляет запрос и ждёт ответ (синхронный request/response).

        Returns:
            Dict: Ответное сообщение или None при таймауте
        """

    @abstractmethod
    def start(self) -> None:
        """Запускает обработку сообщений."""

    @abstractmethod
    def stop(self) -> None:
        """Останавливает обработку сообщений и освобождает ресурсы."""

