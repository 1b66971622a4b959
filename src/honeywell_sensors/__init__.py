"""
Honeywell Wireless Sensors Library

rtl_433이 MQTT로 전달하는 Honeywell / Ademco 345MHz 무선 센서 이벤트 처리
- 센서 메시지 파싱 및 디바이스 라우팅 (Contact / Motion)
- 센서 루프 선택 (Loop 1 Contact, Loop 2 Reed, Loop 3 Alarm)
- 발견된 센서 / 등록된 센서 원장 관리
- MQTT 연결 관리 (last will, 재접속)

사용 예:
    from honeywell_sensors import HoneywellBridge, load_config

    bridge = HoneywellBridge.from_config(load_config('config.yaml'))
    bridge.connect()

    # 발견된 센서 등록
    for sensor_id in bridge.known_sensors():
        print(sensor_id)
    device_id = bridge.bind(980740, "contact", "Front Door")
"""

__version__ = '1.0.0'
__author__ = 'CRK'

# Core classes
from .bridge import HoneywellBridge
from .connection import MQTTConnection, ConnectionState, HostInfo
from .registry import SensorRegistry, LogicalDevice, device_id_for
from .router import EventRouter, RouteOutcome

# Protocol
from .protocol import SensorRecord, parse_record, validate_sensor_id
from .loop import Loop, SensorKind, default_loop, resolve_field, resolve_state

# Collaborators
from .interfaces import Store, Clock, DeviceSink, MemoryStore, JsonFileStore, SystemClock
from .sinks import LoggingDeviceSink, MqttDeviceSink

# Configuration / logging
from .config import BridgeConfig, BrokerConfig, load_config, parse_config
from .log import LogLevel, TRACE, configure_logging

# Exceptions
from .exceptions import (
    HoneywellError,
    ConnectionError,
    CommunicationError,
    ParseError,
    ValidationError,
    NotFoundError,
    BindingConflictError,
    StorageError
)

# MQTT Topics
from .mqtt_topics import Topics, LinkStatus, DEFAULT_EVENT_TOPIC

__all__ = [
    # Version
    '__version__',

    # Core
    'HoneywellBridge',
    'MQTTConnection',
    'ConnectionState',
    'HostInfo',
    'SensorRegistry',
    'LogicalDevice',
    'device_id_for',
    'EventRouter',
    'RouteOutcome',

    # Protocol
    'SensorRecord',
    'parse_record',
    'validate_sensor_id',
    'Loop',
    'SensorKind',
    'default_loop',
    'resolve_field',
    'resolve_state',

    # Collaborators
    'Store',
    'Clock',
    'DeviceSink',
    'MemoryStore',
    'JsonFileStore',
    'SystemClock',
    'LoggingDeviceSink',
    'MqttDeviceSink',

    # Configuration / logging
    'BridgeConfig',
    'BrokerConfig',
    'load_config',
    'parse_config',
    'LogLevel',
    'TRACE',
    'configure_logging',

    # Exceptions
    'HoneywellError',
    'ConnectionError',
    'CommunicationError',
    'ParseError',
    'ValidationError',
    'NotFoundError',
    'BindingConflictError',
    'StorageError',

    # MQTT Topics
    'Topics',
    'LinkStatus',
    'DEFAULT_EVENT_TOPIC',
]
