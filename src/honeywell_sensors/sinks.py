"""
Device State Sinks

DeviceSink 구현
- LoggingDeviceSink: 상태 변화를 로그로만 기록
- MqttDeviceSink: 디바이스 상태를 retain 토픽으로 재발행
  (<prefix>/<device_id>/<name>, 예: honeywell/devices/Honeywell_980740/contact)
"""

import logging
from typing import Any, TYPE_CHECKING

from .exceptions import HoneywellError
from .mqtt_topics import DEFAULT_STATE_TOPIC_PREFIX, get_device_topic

if TYPE_CHECKING:
    from .connection import MQTTConnection

logger = logging.getLogger(__name__)


# 상태 값 (Hubitat 가상 센서와 동일한 이름)
MOTION_ACTIVE = "active"
MOTION_INACTIVE = "inactive"
CONTACT_OPEN = "open"
CONTACT_CLOSED = "closed"

MOTION_ATTRIBUTE = "motion"
CONTACT_ATTRIBUTE = "contact"


class LoggingDeviceSink:
    """로그 출력 sink"""

    def emit_attribute(self, device_id: str, name: str, value: Any) -> None:
        logger.debug(f"{device_id}: {name} = {value}")

    def emit_motion_state(self, device_id: str, active: bool) -> None:
        logger.info(f"{device_id}: motion {MOTION_ACTIVE if active else MOTION_INACTIVE}")

    def emit_contact_state(self, device_id: str, open: bool) -> None:
        logger.info(f"{device_id}: contact {CONTACT_OPEN if open else CONTACT_CLOSED}")


class MqttDeviceSink:
    """
    MQTT 재발행 sink

    발행 실패는 해당 속성만 실패로 기록하고 라우팅은 계속 진행
    """

    def __init__(
        self,
        connection: 'MQTTConnection',
        prefix: str = DEFAULT_STATE_TOPIC_PREFIX,
        retain: bool = True
    ):
        """
        Args:
            connection: 발행에 사용할 MQTT 연결
            prefix: 상태 토픽 접두사
            retain: retain 플래그
        """
        self._connection = connection
        self.prefix = prefix
        self.retain = retain

    def _publish(self, device_id: str, name: str, value: Any) -> None:
        topic = get_device_topic(self.prefix, device_id, name)
        try:
            self._connection.publish(topic, str(value), retain=self.retain)
        except HoneywellError as e:
            logger.error(f"Failed to publish {name} for {device_id}: {e}")

    def emit_attribute(self, device_id: str, name: str, value: Any) -> None:
        self._publish(device_id, name, value)

    def emit_motion_state(self, device_id: str, active: bool) -> None:
        self._publish(device_id, MOTION_ATTRIBUTE, MOTION_ACTIVE if active else MOTION_INACTIVE)

    def emit_contact_state(self, device_id: str, open: bool) -> None:
        self._publish(device_id, CONTACT_ATTRIBUTE, CONTACT_OPEN if open else CONTACT_CLOSED)
