"""
Event Router Module

센서 메시지 → 논리 디바이스 라우팅
- 바인딩된 센서: 루프 해석 후 상태(active/inactive, open/close) 및 보조 속성 발행
- 미등록 센서: 레지스트리에 관측 기록

rtl_433는 같은 이벤트를 최대 10회 반복 송신하지만 중복 제거는 하지 않음
(상태 변경 시에만 알리는 것은 DeviceSink의 책임)
"""

import logging
from enum import Enum
from typing import Union

from .exceptions import ParseError
from .interfaces import Clock, DeviceSink
from .log import TRACE
from .loop import SensorKind, resolve_state
from .protocol import SensorRecord, parse_record
from .registry import LogicalDevice, SensorRegistry

logger = logging.getLogger(__name__)


# 디바이스 속성 이름
ATTR_CONTACT_OPEN = "contact_open"
ATTR_REED_OPEN = "reed_open"
ATTR_ALARM = "alarm"
ATTR_TAMPER = "tamper"
ATTR_BATTERY_OK = "battery_ok"
ATTR_LAST_EVENT_TYPE = "lastEventType"
ATTR_LAST_EVENT_TIME = "lastEventTime"
ATTR_SENSOR_LAST_EVENT = "sensorLastEvent"
ATTR_TAMPER_STATUS = "tamperStatus"

TAMPER_OPEN_NOTE = "Sensor case may be open"
TAMPER_CLOSED_NOTE = "Sensor case is closed / intact"


class RouteOutcome(Enum):
    """라우팅 결과"""
    ROUTED = 'routed'                  # 바인딩된 디바이스로 전달
    DISCOVERED = 'discovered'          # 새 센서를 Known 목록에 추가
    ALREADY_KNOWN = 'already_known'    # 이미 알려진 미등록 센서
    DROPPED = 'dropped'                # 파싱 실패


class EventRouter:
    """
    센서 메시지 라우터

    사용 예:
        router = EventRouter(registry, sink, SystemClock())
        outcome = router.route(msg.payload)
    """

    def __init__(self, registry: SensorRegistry, sink: DeviceSink, clock: Clock):
        """
        Args:
            registry: 센서 레지스트리
            sink: 디바이스 상태 수신자
            clock: 시각 제공자
        """
        self._registry = registry
        self._sink = sink
        self._clock = clock

    def route(self, raw_payload: Union[str, bytes]) -> RouteOutcome:
        """
        수신 메시지 처리

        Args:
            raw_payload: MQTT payload (JSON)

        Returns:
            RouteOutcome
        """
        try:
            record = parse_record(raw_payload)
        except ParseError as e:
            logger.error(f"Dropping sensor message: {e}")
            return RouteOutcome.DROPPED

        logger.log(TRACE, f"Got sensor data: {record.raw}")

        # 라우팅과 관리 명령 (다른 프로세스 포함) 은 같은 잠금 안에서 직렬화
        with self._registry.transaction():
            device = self._registry.device_for_sensor(record.sensor_id)
            if device is not None:
                self._deliver(device, record)
                return RouteOutcome.ROUTED

            if self._registry.observe(record):
                return RouteOutcome.DISCOVERED
            return RouteOutcome.ALREADY_KNOWN

    def _deliver(self, device: LogicalDevice, record: SensorRecord) -> None:
        """바인딩된 디바이스에 상태 및 속성 발행"""
        device_id = device.device_id
        loop = self._registry.ensure_loop(device)
        active = resolve_state(loop, record)

        if active is None:
            logger.debug(
                f"{record.sensor_id}: {loop.field_name} missing from record, "
                f"state unchanged for {device_id}"
            )
        elif device.kind == SensorKind.MOTION:
            logger.debug(f"Calling {'active' if active else 'inactive'}() for {record.sensor_id}")
            self._sink.emit_motion_state(device_id, active)
        else:
            logger.debug(f"Calling {'open' if active else 'close'}() for {record.sensor_id}")
            self._sink.emit_contact_state(device_id, active)

        attributes = (
            (ATTR_CONTACT_OPEN, record.contact_open),
            (ATTR_REED_OPEN, record.reed_open),
            (ATTR_ALARM, record.alarm),
            (ATTR_TAMPER, record.tamper),
            (ATTR_BATTERY_OK, record.battery_ok),
        )
        for name, value in attributes:
            if value is not None:
                self._sink.emit_attribute(device_id, name, int(value))

        if record.tamper is not None:
            note = TAMPER_OPEN_NOTE if record.tamper else TAMPER_CLOSED_NOTE
            self._sink.emit_attribute(device_id, ATTR_TAMPER_STATUS, note)

        if record.event_code is not None:
            self._sink.emit_attribute(device_id, ATTR_LAST_EVENT_TYPE, record.event_code)

        now = self._clock.now().isoformat()
        self._sink.emit_attribute(device_id, ATTR_LAST_EVENT_TIME, now)
        self._sink.emit_attribute(device_id, ATTR_SENSOR_LAST_EVENT, record.payload)

        self._registry.record_state(device_id, state=active, timestamp=now, tamper=record.tamper)
