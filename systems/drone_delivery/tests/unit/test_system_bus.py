# systems/drone_delivery/tests/unit/test_system_bus.py
"""
Тесты фабрики SystemBus и MQTTSystemBus (paho-mqtt замокан).
"""

import json

import pytest
from unittest.mock import Mock
from pytest_mock import MockerFixture

from broker.mqtt.mqtt_system_bus import MQTTSystemBus
from broker.src.bus_factory import create_system_bus


@pytest.fixture
def mqtt_client(mocker: MockerFixture):
    """Мок paho Client: подключение сразу успешно."""
    client = Mock()
    client.publish.return_value = Mock(rc=0)
    client.subscribe.return_value = (0, 1)
    client.unsubscribe.return_value = (0, 1)
    mocker.patch("broker.mqtt.mqtt_system_bus.mqtt.Client", return_value=client)

    def connect(host, port, keepalive=60):
        client.on_connect(client, None, {}, 0)

    client.connect.side_effect = connect
    return client


def make_message(topic, payload):
    return Mock(topic=topic, payload=json.dumps(payload).encode("utf-8"))


def test_factory_creates_mqtt_bus(mocker: MockerFixture):
    bus_cls = mocker.patch("broker.src.bus_factory.MQTTSystemBus")

    bus = create_system_bus("mqtt", client_id="drone_delivery_001")

    assert bus is bus_cls.return_value
    assert bus_cls.call_args.kwargs["client_id"] == "drone_delivery_001"


def test_factory_mqtt_config_overrides(mocker: MockerFixture):
    bus_cls = mocker.patch("broker.src.bus_factory.MQTTSystemBus")

    create_system_bus(config={"broker": {"type": "mqtt", "mqtt": {"broker": "mosquitto", "port": 1884, "qos": 0}}})

    kwargs = bus_cls.call_args.kwargs
    assert (kwargs["broker"], kwargs["port"], kwargs["qos"]) == ("mosquitto", 1884, 0)


def test_factory_none_bus():
    assert create_system_bus("none") is None


def test_factory_unknown_bus():
    with pytest.raises(ValueError):
        create_system_bus("kafka")


def test_topic_mapping():
    assert MQTTSystemBus._topic_to_mqtt("systems.drone_delivery") == "systems/drone_delivery"
    assert MQTTSystemBus._mqtt_to_topic("systems/drone_delivery") == "systems.drone_delivery"


def test_publish(mqtt_client):
    bus = MQTTSystemBus(broker="localhost", port=1883, client_id="test")

    assert bus.publish("systems.drone_delivery", {"action": "ping"}) is True

    topic, payload = mqtt_client.publish.call_args.args
    assert topic == "systems/drone_delivery"
    assert json.loads(payload) == {"action": "ping"}


def test_publish_failure(mqtt_client):
    mqtt_client.publish.return_value = Mock(rc=4)
    bus = MQTTSystemBus(broker="localhost", port=1883, client_id="test")

    assert bus.publish("systems.drone_delivery", {"action": "ping"}) is False


def test_subscribe_dispatches_messages(mqtt_client):
    bus = MQTTSystemBus(broker="localhost", port=1883, client_id="test")
    callback = Mock()

    bus.subscribe("systems.drone_delivery", callback)
    bus._on_message(mqtt_client, None, make_message("systems/drone_delivery", {"action": "ping"}))

    callback.assert_called_once_with({"action": "ping"})


def test_invalid_json_is_dropped(mqtt_client):
    bus = MQTTSystemBus(broker="localhost", port=1883, client_id="test")
    callback = Mock()
    bus.subscribe("systems.drone_delivery", callback)

    bus._on_message(mqtt_client, None, Mock(topic="systems/drone_delivery", payload=b"{broken"))

    callback.assert_not_called()


def test_request_resolved_by_reply(mqtt_client):
    bus = MQTTSystemBus(broker="localhost", port=1883, client_id="test")
    bus.start()
    reply_topic = bus._reply_topic.replace(".", "/")

    def answer(topic, payload, qos=1):
        request = json.loads(payload)
        bus._on_message(mqtt_client, None, make_message(reply_topic, {
            "correlation_id": request["correlation_id"],
            "success": True,
        }))
        return Mock(rc=0)

    mqtt_client.publish.side_effect = answer

    response = bus.request("systems.drone_delivery", {"action": "get_available_drones"}, timeout=1.0)

    assert response["success"] is True


def test_request_timeout(mqtt_client):
    bus = MQTTSystemBus(broker="localhost", port=1883, client_id="test")

    assert bus.request("systems.drone_delivery", {"action": "ping"}, timeout=0.01) is None
    assert bus._pending_requests == {}


def test_start_fails_without_connection(mocker: MockerFixture):
    client = Mock()
    mocker.patch("broker.mqtt.mqtt_system_bus.mqtt.Client", return_value=client)
    bus = MQTTSystemBus(broker="localhost", port=1883, client_id="test", connect_timeout=0.01)

    with pytest.raises(ConnectionError):
        bus.start()
    client.loop_stop.assert_called_once()
