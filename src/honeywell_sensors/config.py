"""
Bridge Configuration

YAML 설정 파일 로드

예 (config.yaml):
    broker:
      host: 192.168.1.234
      port: 1883
      username: mqtt_user
      password: secret
      topic: hubitat/honeywell/events
    state_file: honeywell_state.json
    state_topic_prefix: honeywell/devices
    log_level: info
"""

import logging
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .connection import DEFAULT_CONNECT_TIMEOUT
from .exceptions import ValidationError
from .log import LogLevel, DEFAULT_LOG_LEVEL
from .mqtt_topics import (
    DEFAULT_PORT, DEFAULT_KEEPALIVE, DEFAULT_EVENT_TOPIC, DEFAULT_STATE_TOPIC_PREFIX,
    normalize
)

logger = logging.getLogger(__name__)


DEFAULT_STATE_FILE = "honeywell_state.json"


def default_client_id() -> str:
    """호스트 이름 기반 클라이언트 ID (예: "honeywell_raspberrypi")"""
    return f"honeywell_{normalize(socket.gethostname()) or 'bridge'}"


@dataclass
class BrokerConfig:
    """브로커 접속 설정"""
    host: str
    port: int = DEFAULT_PORT
    username: Optional[str] = None
    password: Optional[str] = None
    topic: str = DEFAULT_EVENT_TOPIC
    client_id: str = field(default_factory=default_client_id)
    keepalive: int = DEFAULT_KEEPALIVE
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT

    @property
    def uri(self) -> str:
        return f"tcp://{self.host}:{self.port}"


@dataclass
class BridgeConfig:
    """브리지 전체 설정"""
    broker: BrokerConfig
    state_file: str = DEFAULT_STATE_FILE
    state_topic_prefix: str = DEFAULT_STATE_TOPIC_PREFIX
    log_level: LogLevel = DEFAULT_LOG_LEVEL


def _require_int(data: Dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ValidationError(f"broker.{key} must be an integer: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"broker.{key} must be an integer: {value!r}")


def parse_config(data: Optional[Dict[str, Any]]) -> BridgeConfig:
    """
    설정 딕셔너리 → BridgeConfig

    Raises:
        ValidationError: 필수 항목 누락 또는 잘못된 값
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Configuration must be a mapping")

    broker_data = data.get("broker") or {}
    if not isinstance(broker_data, dict):
        raise ValidationError("broker must be a mapping")

    host = str(broker_data.get("host") or "").strip()
    if not host:
        raise ValidationError("broker.host is required")

    port = _require_int(broker_data, "port", DEFAULT_PORT)
    if not 0 < port < 65536:
        raise ValidationError(f"broker.port out of range: {port}")

    topic = str(broker_data.get("topic") or DEFAULT_EVENT_TOPIC).strip()

    try:
        connect_timeout = float(broker_data.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT))
    except (TypeError, ValueError):
        raise ValidationError(
            f"broker.connect_timeout must be a number: {broker_data.get('connect_timeout')!r}"
        )

    broker = BrokerConfig(
        host=host,
        port=port,
        username=broker_data.get("username") or None,
        password=broker_data.get("password") or None,
        topic=topic,
        client_id=str(broker_data.get("client_id") or default_client_id()),
        keepalive=_require_int(broker_data, "keepalive", DEFAULT_KEEPALIVE),
        connect_timeout=connect_timeout,
    )

    return BridgeConfig(
        broker=broker,
        state_file=str(data.get("state_file") or DEFAULT_STATE_FILE),
        state_topic_prefix=str(data.get("state_topic_prefix") or DEFAULT_STATE_TOPIC_PREFIX),
        log_level=LogLevel.parse(data.get("log_level", DEFAULT_LOG_LEVEL.name.lower())),
    )


def load_config(path: Union[str, Path]) -> BridgeConfig:
    """
    YAML 설정 파일 로드

    Raises:
        ValidationError: 파일을 읽을 수 없거나 내용이 잘못된 경우
    """
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as e:
        raise ValidationError(f"Cannot read configuration {config_path}: {e}")

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in {config_path}: {e}")

    config = parse_config(data)
    logger.debug(f"Loaded configuration from {config_path} (broker {config.broker.uri})")
    return config
