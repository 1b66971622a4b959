"""
HoneywellBridge Unit Tests

명령 인터페이스 통합 테스트:
- connect → 이벤트 토픽 구독
- 수신 메시지 → 디바이스 상태 재발행
- 관리 명령 (bind / unbind / set_loop / reset_state)
"""

import pytest
import sys
import os
import json
import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.dirname(__file__))

from mock_mqtt import MockMQTTClient, MQTT_ERR_QUEUE_SIZE

from honeywell_sensors.bridge import HoneywellBridge
from honeywell_sensors.connection import MQTTConnection, HostInfo
from honeywell_sensors.registry import SensorRegistry
from honeywell_sensors.interfaces import MemoryStore
from honeywell_sensors.sinks import MqttDeviceSink, LoggingDeviceSink
from honeywell_sensors.router import RouteOutcome
from honeywell_sensors.log import LogLevel, PACKAGE_LOGGER
from honeywell_sensors.loop import Loop
from honeywell_sensors.exceptions import ValidationError, NotFoundError, ConnectionError


EVENT_TOPIC = "hubitat/honeywell/events"
NOW = datetime(2025, 4, 3, 7, 30, tzinfo=timezone.utc)


@pytest.fixture
def client():
    return MockMQTTClient()


@pytest.fixture
def bridge(client):
    conn = MQTTConnection(
        'broker', connect_timeout=0.1, client=client,
        host_info=lambda: HostInfo(firmware="fw", address="10.0.0.2", uptime=1)
    )
    clock = MagicMock()
    clock.now.return_value = NOW
    return HoneywellBridge(
        conn,
        SensorRegistry(MemoryStore()),
        MqttDeviceSink(conn, prefix="honeywell/devices"),
        clock=clock,
        topic=EVENT_TOPIC
    )


class TestConnectCommands:
    """연결 명령"""

    def test_connect_subscribes_event_topic(self, bridge, client):
        bridge.connect()

        assert bridge.connection.is_connected
        assert client.subscribed == [(EVENT_TOPIC, 0)]

    def test_connect_without_topic(self, bridge, client):
        bridge.topic = None
        bridge.connect()
        assert client.subscribed == []

    def test_connect_subscribes_when_announcement_fails(self, bridge, client):
        """상태 알림 실패와 무관하게 이벤트 토픽 구독"""
        client.publish_rc = [MQTT_ERR_QUEUE_SIZE]

        bridge.connect()

        assert bridge.connection.is_connected
        assert client.subscribed == [(EVENT_TOPIC, 0)]

    def test_connect_failure(self, bridge, client):
        client.connect_error = OSError("unreachable")
        with pytest.raises(ConnectionError):
            bridge.connect()

    def test_publish(self, bridge, client):
        bridge.publish("test/topic", "hello")
        assert client.published[-1] == ("test/topic", "hello", 0, False)

    def test_subscribe_unsubscribe(self, bridge, client):
        bridge.subscribe("debug/topic")
        bridge.unsubscribe("debug/topic")

        assert ("debug/topic", 0) in client.subscribed
        assert client.unsubscribed == ["debug/topic"]

    def test_disconnect(self, bridge, client):
        bridge.connect()
        assert bridge.disconnect() is True
        assert not bridge.connection.is_connected


class TestMessageFlow:
    """MQTT 수신 → 라우팅 → 재발행"""

    def test_unbound_sensor_discovered(self, bridge, client):
        bridge.connect()

        client.deliver(EVENT_TOPIC, json.dumps({"id": 980740, "contact_open": 1}))

        assert 980740 in bridge.known_sensors()
        assert bridge.last_sensor_event == NOW

    def test_bound_sensor_state_republished(self, bridge, client):
        bridge.connect()
        device_id = bridge.bind(980740, "contact", "Front Door")
        client.published.clear()

        client.deliver(EVENT_TOPIC, json.dumps({"id": 980740, "contact_open": 1, "reed_open": 0}))

        published = {topic: payload for topic, payload, _, _ in client.published}
        assert published[f"honeywell/devices/{device_id}/contact"] == "closed"
        assert published[f"honeywell/devices/{device_id}/contact_open"] == "1"
        assert published[f"honeywell/devices/{device_id}/reed_open"] == "0"

    def test_motion_state_republished(self, bridge, client):
        bridge.connect()
        device_id = bridge.bind(4242, "motion", "Hall")
        client.published.clear()

        client.deliver(EVENT_TOPIC, json.dumps({"id": 4242, "contact_open": 1}))

        published = {topic: payload for topic, payload, _, _ in client.published}
        assert published[f"honeywell/devices/{device_id}/motion"] == "active"

    def test_bad_payload_dropped(self, bridge):
        assert bridge.handle_message(EVENT_TOPIC, b"garbage") == RouteOutcome.DROPPED
        assert bridge.known_sensors() == {}


class TestAdminCommands:
    """관리 명령"""

    def test_bind_and_unbind(self, bridge):
        device_id = bridge.bind("980740", "Virtual Contact Sensor", "Front Door")
        assert [d.device_id for d in bridge.devices()] == [device_id]

        bridge.unbind(device_id)
        assert bridge.devices() == []

    def test_bind_validation(self, bridge):
        with pytest.raises(ValidationError):
            bridge.bind("not-a-number", "contact", "Front Door")

    def test_bind_discovered(self, bridge):
        bridge.handle_message(EVENT_TOPIC, json.dumps({"id": 77}))
        device_id = bridge.bind_discovered(77, "motion", "Garage")
        assert device_id == "Honeywell_77"

    def test_set_loop_unknown(self, bridge):
        with pytest.raises(NotFoundError):
            bridge.set_loop("Honeywell_1", 2)

    def test_set_loop(self, bridge):
        device_id = bridge.bind(1, "contact", "Door")
        assert bridge.set_loop(device_id, "1") == Loop.CONTACT

    def test_wipe_device_state(self, bridge):
        device_id = bridge.bind(1, "contact", "Door")
        bridge.wipe_device_state(device_id)
        assert bridge.registry.get_device(device_id).loop is None

    def test_reset_state(self, bridge):
        bridge.handle_message(EVENT_TOPIC, json.dumps({"id": 77}))
        bridge.bind(1, "contact", "Door")
        bridge.set_log_level("trace")

        bridge.reset_state()

        assert bridge.known_sensors() == {}
        assert bridge.registry.registered_sensors() == {}
        assert len(bridge.devices()) == 1
        assert bridge.last_sensor_event is None
        assert bridge.log_level == LogLevel.INFO


class TestLogLevel:
    """로그 레벨"""

    def test_set_log_level(self, bridge):
        bridge.set_log_level("debug")
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG

    def test_invalid_log_level(self, bridge):
        with pytest.raises(ValidationError):
            bridge.set_log_level("verbose")
        assert bridge.log_level == LogLevel.INFO


class TestSinks:
    """DeviceSink 구현"""

    def test_mqtt_sink_publish_failure_contained(self):
        conn = MagicMock()
        conn.publish.side_effect = ConnectionError("down")
        sink = MqttDeviceSink(conn, prefix="p")

        sink.emit_contact_state("Honeywell_1", True)

        conn.publish.assert_called_once_with("p/Honeywell_1/contact", "open", retain=True)

    def test_logging_sink(self, caplog):
        sink = LoggingDeviceSink()
        with caplog.at_level(logging.INFO, logger=PACKAGE_LOGGER):
            sink.emit_motion_state("Honeywell_1", False)
        assert "inactive" in caplog.text
