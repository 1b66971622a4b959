"""
Honeywell Bridge

명령 인터페이스 (connect, disconnect, subscribe, unsubscribe, publish,
bind, unbind, set_loop, reset_state ...) 와 메시지 경로를 하나로 묶는 관리자

메시지 경로: MQTTConnection → handle_message → EventRouter → DeviceSink
관리 명령:   HoneywellBridge → SensorRegistry
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .config import BridgeConfig
from .connection import MQTTConnection
from .interfaces import Clock, DeviceSink, JsonFileStore, SystemClock
from .log import LogLevel, DEFAULT_LOG_LEVEL, PACKAGE_LOGGER
from .loop import Loop, SensorKind
from .mqtt_topics import DEFAULT_QOS, DEFAULT_RETAIN
from .registry import LogicalDevice, SensorRegistry
from .router import EventRouter, RouteOutcome
from .sinks import MqttDeviceSink

logger = logging.getLogger(__name__)


class HoneywellBridge:
    """
    Honeywell 무선 센서 브리지

    사용 예:
        config = load_config('config.yaml')
        bridge = HoneywellBridge.from_config(config)

        bridge.connect()   # 접속 + 이벤트 토픽 구독

        # 발견된 센서 확인 후 등록
        print(bridge.known_sensors())
        device_id = bridge.bind("980740", "contact", "Front Door")
        bridge.set_loop(device_id, Loop.CONTACT)

        bridge.disconnect()
    """

    def __init__(
        self,
        connection: MQTTConnection,
        registry: SensorRegistry,
        sink: DeviceSink,
        clock: Optional[Clock] = None,
        topic: Optional[str] = None,
        log_level: Union[LogLevel, str] = DEFAULT_LOG_LEVEL
    ):
        """
        Args:
            connection: MQTT 연결
            registry: 센서 레지스트리
            sink: 디바이스 상태 수신자
            clock: 시각 제공자 (기본값: SystemClock)
            topic: 센서 이벤트 토픽
            log_level: 최소 로그 레벨
        """
        self._connection = connection
        self._registry = registry
        self._clock = clock or SystemClock()
        self._router = EventRouter(registry, sink, self._clock)
        self.topic = topic
        self.last_sensor_event: Optional[datetime] = None

        self._log_level = DEFAULT_LOG_LEVEL
        self.set_log_level(log_level)

        self._connection.set_message_handler(self.handle_message)

    @classmethod
    def from_config(cls, config: BridgeConfig) -> 'HoneywellBridge':
        """설정으로부터 브리지 구성 (JSON 파일 저장소, MQTT 재발행 sink)"""
        broker = config.broker
        connection = MQTTConnection(
            host=broker.host,
            port=broker.port,
            client_id=broker.client_id,
            username=broker.username,
            password=broker.password,
            keepalive=broker.keepalive,
            connect_timeout=broker.connect_timeout,
        )
        registry = SensorRegistry(JsonFileStore(config.state_file))
        sink = MqttDeviceSink(connection, prefix=config.state_topic_prefix)
        return cls(
            connection,
            registry,
            sink,
            topic=broker.topic,
            log_level=config.log_level,
        )

    @property
    def connection(self) -> MQTTConnection:
        return self._connection

    @property
    def registry(self) -> SensorRegistry:
        return self._registry

    @property
    def log_level(self) -> LogLevel:
        return self._log_level

    def set_log_level(self, level: Union[LogLevel, int, str]) -> LogLevel:
        """
        최소 로그 레벨 변경

        Raises:
            ValidationError: 알 수 없는 레벨
        """
        self._log_level = LogLevel.parse(level)
        logging.getLogger(PACKAGE_LOGGER).setLevel(self._log_level.value)
        return self._log_level

    # ===== 메시지 경로 =====

    def handle_message(self, topic: str, payload: Union[str, bytes]) -> RouteOutcome:
        """수신 메시지 처리 (MQTTConnection 콜백)"""
        # 라디오 수신이 계속되고 있는지 표시
        self.last_sensor_event = self._clock.now()
        return self._router.route(payload)

    # ===== 연결 명령 =====

    def connect(self) -> None:
        """
        브로커 연결 후 센서 이벤트 토픽 구독

        Raises:
            ConnectionError: 접속 실패 시
        """
        self._connection.connect()
        if self.topic:
            self._connection.subscribe(self.topic)
        else:
            logger.error("Missing MQTT topic to subscribe to for sensor events")

    def disconnect(self) -> bool:
        return self._connection.disconnect()

    def subscribe(self, topic: str) -> None:
        logger.debug(f"subscribe(): topic: {topic}")
        self._connection.subscribe(topic)

    def unsubscribe(self, topic: str) -> None:
        logger.debug(f"unsubscribe(): topic: {topic}")
        self._connection.unsubscribe(topic)

    def publish(
        self,
        topic: str,
        payload: str = "",
        qos: int = DEFAULT_QOS,
        retain: bool = DEFAULT_RETAIN
    ) -> None:
        self._connection.publish(topic, payload, qos, retain)

    # ===== 레지스트리 명령 =====

    def bind(self, sensor_id: Union[int, str], kind: Union[SensorKind, str], label: str) -> str:
        """센서 ID로 디바이스 생성/등록"""
        return self._registry.bind(sensor_id, kind, label)

    def bind_discovered(
        self,
        sensor_id: Union[int, str],
        kind: Union[SensorKind, str],
        label: str
    ) -> str:
        """발견된 센서 목록에서 디바이스 생성/등록"""
        return self._registry.bind_discovered(sensor_id, kind, label)

    def unbind(self, device_id: str) -> None:
        self._registry.unbind(device_id)

    def set_loop(self, device_id: str, loop: Union[Loop, int, str]) -> Loop:
        return self._registry.set_loop(device_id, loop)

    def wipe_device_state(self, device_id: str) -> None:
        self._registry.wipe_device_state(device_id)

    def known_sensors(self) -> Dict[int, Dict[str, Any]]:
        return self._registry.known_sensors()

    def devices(self) -> List[LogicalDevice]:
        return self._registry.devices()

    def reset_state(self) -> None:
        """
        레지스트리 및 설정 초기화

        논리 디바이스는 삭제하지 않음
        """
        self._registry.reset()
        self.last_sensor_event = None
        self.set_log_level(DEFAULT_LOG_LEVEL)
        logger.info("Cleared state and device data")
