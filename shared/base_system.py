"""
Базовый класс для всех систем, использующих SystemBus.

Предоставляет унифицированный интерфейс для:
- Подписки на топик системы
- Обработки входящих сообщений
- Маршрутизации по action
- HTTP API на Flask (health/status + маршруты системы)
"""
from abc import ABC, abstractmethod
from typing import Dict, Any, Callable, Optional
import logging
import threading
import signal
import sys
import time

from flask import Flask, jsonify

from broker.src.system_bus import SystemBus
from shared.messages import create_error_response, create_response


logger = logging.getLogger(__name__)


class BaseSystem(ABC):
    """
    Абстрактный базовый класс для всех систем.

    Каждая система:
    - Подключается к SystemBus (если он задан)
    - Подписывается на свой топик
    - Обрабатывает сообщения через маршрутизацию по action
    - Поднимает HTTP API (если задан порт)

    Attributes:
        system_id: Уникальный идентификатор экземпляра системы
        system_type: Тип системы (drone_delivery, ...)
        topic: Топик для получения сообщений
        bus: SystemBus для коммуникации или None (только HTTP)
    """

    def __init__(
        self,
        system_id: str,
        system_type: str,
        topic: str,
        bus: Optional[SystemBus],
        http_port: Optional[int] = None
    ):
        """
        Args:
            system_id: Уникальный ID экземпляра (например, "drone_delivery_001")
            system_type: Тип системы (например, "drone_delivery")
            topic: Топик для подписки (например, "systems.drone_delivery")
            bus: Экземпляр SystemBus или None
            http_port: Порт HTTP API (опционально)
        """
        self.system_id = system_id
        self.system_type = system_type
        self.topic = topic
        self.bus = bus
        self.http_port = http_port

        # Маршрутизатор action -> handler
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]] = {}

        self._http_app: Optional[Flask] = None
        self._http_thread: Optional[threading.Thread] = None

        self._running = False

        self._setup_handlers()
        self._register_handlers()

    def _setup_handlers(self):
        """Регистрирует базовые обработчики."""
        self.register_handler("ping", self._handle_ping)
        self.register_handler("get_status", self._handle_get_status)

    @abstractmethod
    def _register_handlers(self):
        """
        Регистрирует обработчики сообщений для конкретной системы.

        Пример:
            self.register_handler("load_drone", self._handle_load_drone)
        """

    def _register_routes(self, app: Flask) -> None:
        """Добавляет HTTP-маршруты системы. По умолчанию только health/status."""

    def register_handler(
        self,
        action: str,
        handler: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]
    ):
        """
        Регистрирует обработчик для действия.

        Args:
            action: Название действия (например, "load_drone")
            handler: Функция-обработчик, принимает message dict,
                     возвращает payload для ответа или None
        """
        self._handlers[action] = handler

    def _handle_message(self, message: Dict[str, Any]):
        """
        Обрабатывает входящее сообщение.

        Маршрутизирует по полю "action" к обработчику. Ответ уходит в
        reply_to, если он задан. Исключение с атрибутом error_code
        (доменная ошибка) становится отказом с этим кодом, остальные
        логируются с traceback и отвечают INTERNAL_ERROR.
        """
        action = message.get("action")
        if not action:
            logger.warning(f"[{self.system_id}] Message without action: {message}")
            return

        handler = self._handlers.get(action)
        if handler is None:
            logger.warning(f"[{self.system_id}] Unknown action: {action}")
            self._reply(message, create_error_response(
                message, self.system_id, LookupError(f"Unknown action: {action}"), "UNKNOWN_ACTION"
            ))
            return

        try:
            result = handler(message)
        except Exception as e:
            error_code = getattr(e, "error_code", None)
            if error_code:
                logger.warning(f"[{self.system_id}] {action} rejected: {e}")
            else:
                logger.exception(f"[{self.system_id}] Error handling {action}")
                error_code = "INTERNAL_ERROR"
            self._reply(message, create_error_response(message, self.system_id, e, error_code))
            return

        if result is not None:
            self._reply(message, create_response(
                correlation_id=message.get("correlation_id"),
                payload=result,
                sender=self.system_id
            ))

    def _reply(self, message: Dict[str, Any], response: Dict[str, Any]) -> None:
        """Публикует ответ в reply_to запроса; без reply_to или шины ответа нет."""
        reply_to = message.get("reply_to")
        if reply_to and self.bus is not None:
            self.bus.publish(reply_to, response)

    def _handle_ping(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Обработчик ping - возвращает pong."""
        return {"pong": True, "system_id": self.system_id}

    def _handle_get_status(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Обработчик get_status - возвращает статус системы."""
        return self.get_status()

    def get_status(self) -> Dict[str, Any]:
        """
        Возвращает статус системы.

        Может быть переопределён в наследниках для добавления
        специфичных метрик.
        """
        return {
            "system_id": self.system_id,
            "system_type": self.system_type,
            "topic": self.topic,
            "running": self._running,
            "handlers": list(self._handlers.keys())
        }

    def create_http_app(self) -> Flask:
        """Создаёт Flask app: /health, /status и маршруты системы."""
        app = Flask(self.system_type)

        @app.route("/health")
        def health():
            return jsonify({
                "status": "healthy" if self._running else "starting",
                "system_id": self.system_id,
                "system_type": self.system_type
            })

        @app.route("/status")
        def status():
            return jsonify(self.get_status())

        self._register_routes(app)
        return app

    def _run_http_server(self):
        """Запускает HTTP сервер в отдельном потоке."""
        if self._http_app and self.http_port:
            self._http_app.run(
                host="0.0.0.0",
                port=self.http_port,
                threaded=True,
                use_reloader=False
            )

    def start(self):
        """
        Запускает систему.

        - Запускает SystemBus и подписывается на топик
        - Запускает HTTP сервер (если задан порт)
        """
        logger.info(f"[{self.system_id}] Starting {self.system_type}...")

        if self.bus is not None:
            self.bus.start()
            self.bus.subscribe(self.topic, self._handle_message)

        self._running = True

        if self.http_port:
            self._http_app = self.create_http_app()
            logging.getLogger("werkzeug").setLevel(logging.ERROR)
            self._http_thread = threading.Thread(
                target=self._run_http_server,
                daemon=True,
                name=f"{self.system_type}-http"
            )
            self._http_thread.start()
            logger.info(f"[{self.system_id}] HTTP API on port {self.http_port}")

        logger.info(f"[{self.system_id}] Started. Listening on topic: {self.topic}")

    def stop(self):
        """Останавливает систему."""
        logger.info(f"[{self.system_id}] Stopping...")

        self._running = False

        if self.bus is not None:
            self.bus.unsubscribe(self.topic)
            self.bus.stop()

        logger.info(f"[{self.system_id}] Stopped")

    def run_forever(self):
        """
        Запускает систему и блокирует до получения сигнала остановки.

        Обрабатывает SIGINT и SIGTERM для graceful shutdown.
        """
        def signal_handler(sig, frame):
            logger.info(f"[{self.system_id}] Received signal {sig}, shutting down...")
            self.stop()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        self.start()

        logger.info(f"[{self.system_id}] Running. Press Ctrl+C to stop.")

        try:
            while self._running:
                signal.pause()
        except AttributeError:
            # Windows не поддерживает signal.pause()
            while self._running:
                time.sleep(1)
