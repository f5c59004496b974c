"""MQTT SystemBus."""
import json
import logging
import threading
import os
from typing import Callable, Dict, Any, Optional
from uuid import uuid4
from concurrent.futures import Future, TimeoutError as FutureTimeoutError

import paho.mqtt.client as mqtt

from broker.src.system_bus import SystemBus


logger = logging.getLogger(__name__)


class MQTTSystemBus(SystemBus):
    """SystemBus поверх MQTT (paho-mqtt). Топики systems.xxx <-> systems/xxx."""

    def __init__(
        self,
        broker: Optional[str] = None,
        port: Optional[int] = None,
        client_id: str = "system_bus",
        qos: int = 1,
        username: Optional[str] = None,
        password: Optional[str] = None,
        connect_timeout: float = 10.0
    ):
        self.broker = broker or os.environ.get("MQTT_BROKER", "localhost")
        self.port = port or int(os.environ.get("MQTT_PORT", "1883"))
        self.client_id = f"{client_id}_{uuid4().hex[:8]}"
        self.qos = qos
        self.username = username or os.environ.get("BROKER_USER")
        self.password = password or os.environ.get("BROKER_PASSWORD")
        self.connect_timeout = connect_timeout
        self._client: Optional[mqtt.Client] = None
        self._callbacks: Dict[str, Callable[[Dict[str, Any]], None]] = {}
        self._callbacks_lock = threading.Lock()
        self._pending_requests: Dict[str, Future] = {}
        self._pending_lock = threading.Lock()
        self._reply_topic = f"replies.{self.client_id}"
        self._connected = threading.Event()
        self._started = False

    @staticmethod
    def _topic_to_mqtt(topic: str) -> str:
        """Топик systems.xxx -> systems/xxx для MQTT."""
        return topic.replace(".", "/")

    @staticmethod
    def _mqtt_to_topic(mqtt_topic: str) -> str:
        """MQTT топик systems/xxx -> systems.xxx."""
        return mqtt_topic.replace("/", ".")

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback подключения к broker, переподписка на топики."""
        if reason_code == 0:
            self._connected.set()
            logger.info(f"MQTTSystemBus connected to {self.broker}:{self.port}")
            with self._callbacks_lock:
                for topic in self._callbacks:
                    client.subscribe(self._topic_to_mqtt(topic), qos=self.qos)
        else:
            self._connected.clear()
            logger.error(f"Failed to connect to MQTT broker: {reason_code}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback отключения от broker."""
        self._connected.clear()
        if reason_code != 0:
            logger.warning(f"Unexpected MQTT disconnect ({reason_code}), reconnecting...")

    def _on_message(self, client, userdata, msg):
        topic = self._mqtt_to_topic(msg.topic)
        try:
            message = json.loads(msg.payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Error decoding MQTT message on {topic}: {e}")
            return

        if topic == self._reply_topic:
            with self._pending_lock:
                future = self._pending_requests.pop(message.get("correlation_id"), None)
            if future is not None:
                future.set_result(message)
            return

        with self._callbacks_lock:
            callback = self._callbacks.get(topic)
        if callback:
            try:
                callback(message)
            except Exception:
                logger.exception(f"Error in callback for {topic}")

    def start(self) -> None:
        """Подключается к MQTT broker и подписывается на reply-топик."""
        if self._started:
            return
        self._client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
        )
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message
        if self.username and self.password:
            self._client.username_pw_set(self.username, self.password)

        try:
            self._client.connect(self.broker, self.port, keepalive=60)
        except OSError as e:
            raise ConnectionError(f"Failed to start MQTT SystemBus: {e}") from e
        self._client.loop_start()

        if not self._connected.wait(self.connect_timeout):
            self._client.loop_stop()
            raise ConnectionError(f"Failed to connect to MQTT broker at {self.broker}:{self.port}")

        self._started = True
        self.subscribe(self._reply_topic, lambda msg: None)
        logger.info(f"MQTTSystemBus started. Reply topic: {self._reply_topic}")

    def stop(self) -> None:
        if self._client:
            self._client.loop_stop()
            self._client.disconnect()
            self._client = None

        with self._callbacks_lock:
            self._callbacks.clear()
        self._connected.clear()
        self._started = False
        logger.info("MQTTSystemBus stopped")

    def publish(self, topic: str, message: Dict[str, Any]) -> bool:
        """Публикует сообщение в топик (dot-notation)."""
        if not self._started:
            self.start()

        mqtt_topic = self._topic_to_mqtt(topic)
        payload = json.dumps(message, ensure_ascii=False).encode("utf-8")
        result = self._client.publish(mqtt_topic, payload, qos=self.qos)
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.error(f"Failed to publish to {mqtt_topic}, rc={result.rc}")
            return False
        return True

    def subscribe(self, topic: str, callback: Callable[[Dict[str, Any]], None]) -> bool:
        """Подписывается на топик, callback вызывается при получении сообщения."""
        if not self._started:
            self.start()

        with self._callbacks_lock:
            self._callbacks[topic] = callback

        if self._connected.is_set():
            result, _ = self._client.subscribe(self._topic_to_mqtt(topic), qos=self.qos)
            if result != mqtt.MQTT_ERR_SUCCESS:
                logger.error(f"Failed to subscribe to {topic}, rc={result}")
                return False
        return True

    def unsubscribe(self, topic: str) -> bool:
        with self._callbacks_lock:
            self._callbacks.pop(topic, None)

        if self._client and self._connected.is_set():
            result, _ = self._client.unsubscribe(self._topic_to_mqtt(topic))
            return result == mqtt.MQTT_ERR_SUCCESS
        return True

    def request(
        self,
        topic: str,
        message: Dict[str, Any],
        timeout: float = 30.0
    ) -> Optional[Dict[str, Any]]:
        """Синхронный request/response: отправляет запрос, ждёт ответ до timeout."""
        if not self._started:
            self.start()
        correlation_id = str(uuid4())
        future: Future = Future()

        with self._pending_lock:
            self._pending_requests[correlation_id] = future

        request_message = {
            **message,
            "correlation_id": correlation_id,
            "reply_to": self._reply_topic
        }

        if not self.publish(topic, request_message):
            with self._pending_lock:
                self._pending_requests.pop(correlation_id, None)
            return None

        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            with self._pending_lock:
                self._pending_requests.pop(correlation_id, None)
            logger.warning(f"Request to {topic} timed out after {timeout}s")
            return None
