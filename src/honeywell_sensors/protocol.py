"""
rtl_433 Honeywell-Security Message Protocol

rtl_433 -F json 출력 형식 (MQTT payload, UTF-8 JSON):
{"time": "1743220672", "model": "Honeywell-Security", "id": 980740,
 "channel": 8, "event": 128, "state": "open", "contact_open": 1,
 "reed_open": 0, "alarm": 0, "tamper": 0, "battery_ok": 1,
 "heartbeat": 0, "mic": "CRC"}

id 외의 모든 필드는 생략될 수 있음 (부분 레코드 허용)
"""

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .exceptions import ParseError, ValidationError

logger = logging.getLogger(__name__)


# 센서 ID 범위 (센서 스티커 번호에서 앞 문자와 0을 제거한 값)
SENSOR_ID_MIN = 1
SENSOR_ID_MAX = 9999999

MODEL_NAME = "Honeywell-Security"

# 0/1 플래그 필드 (JSON 키 → SensorRecord 속성)
FLAG_FIELDS = {
    "contact_open": "contact_open",
    "reed_open": "reed_open",
    "alarm": "alarm",
    "tamper": "tamper",
    "battery_ok": "battery_ok",
    "heartbeat": "heartbeat",
}


@dataclass(frozen=True)
class SensorRecord:
    """센서 메시지 1건 (파싱 후 불변)"""
    sensor_id: int
    channel: Optional[int] = None
    event_code: Optional[int] = None
    contact_open: Optional[bool] = None   # Loop 1
    reed_open: Optional[bool] = None      # Loop 2
    alarm: Optional[bool] = None          # Loop 3
    tamper: Optional[bool] = None         # Loop 4
    battery_ok: Optional[bool] = None
    heartbeat: Optional[bool] = None
    timestamp: Optional[Union[int, float]] = None   # epoch 초, 해석 불가 시 None
    model: Optional[str] = None
    state: Optional[str] = None
    mic: Optional[str] = None
    payload: str = field(default="", compare=False)
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __str__(self) -> str:
        flags = ", ".join(
            f"{name}={int(getattr(self, name))}"
            for name in FLAG_FIELDS.values()
            if getattr(self, name) is not None
        )
        return f"Sensor {self.sensor_id} [{flags}]"


def _to_int(value: Any, name: str) -> Optional[int]:
    """숫자 또는 숫자 문자열 → int (None 허용)"""
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ParseError(f"Field '{name}' is not an integer: {value!r}")


def _to_timestamp(value: Any) -> Optional[Union[int, float]]:
    """
    time 필드 → epoch 초

    보조 필드이므로 해석할 수 없는 형식 (예: "2025-03-29 12:00:00") 은 None
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        seconds = None
    if seconds is None or not math.isfinite(seconds):
        logger.debug(f"Ignoring unrecognized time value: {value!r}")
        return None
    return int(seconds) if seconds.is_integer() else seconds


def _to_flag(value: Any, name: str) -> Optional[bool]:
    """0/1 플래그 → bool (None 허용)"""
    number = _to_int(value, name)
    if number is None:
        return None
    return number != 0


def _to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def parse_record(payload: Union[str, bytes]) -> SensorRecord:
    """
    MQTT payload 파싱

    Args:
        payload: UTF-8 JSON 문자열 또는 바이트

    Returns:
        SensorRecord 객체

    Raises:
        ParseError: JSON 형식 오류, id 누락, 필드 타입 오류 시
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = bytes(payload).decode('utf-8')
        except UnicodeDecodeError as e:
            raise ParseError(f"Payload is not valid UTF-8: {e}")

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse JSON: {e}")

    if not isinstance(data, dict):
        raise ParseError(f"Expected JSON object, got {type(data).__name__}")

    sensor_id = _to_int(data.get("id"), "id")
    if sensor_id is None:
        raise ParseError("Missing sensor id")
    if not SENSOR_ID_MIN <= sensor_id <= SENSOR_ID_MAX:
        raise ParseError(f"Sensor id out of range: {sensor_id}")

    model = _to_str(data.get("model"))
    if model is not None and model != MODEL_NAME:
        logger.debug(f"Unexpected model '{model}' for sensor {sensor_id}")

    flags = {attr: _to_flag(data.get(key), key) for key, attr in FLAG_FIELDS.items()}

    return SensorRecord(
        sensor_id=sensor_id,
        channel=_to_int(data.get("channel"), "channel"),
        event_code=_to_int(data.get("event"), "event"),
        timestamp=_to_timestamp(data.get("time")),
        model=model,
        state=_to_str(data.get("state")),
        mic=_to_str(data.get("mic")),
        payload=payload,
        raw=data,
        **flags
    )


def validate_sensor_id(value: Union[int, str]) -> int:
    """
    관리 명령용 센서 ID 검증

    Args:
        value: 센서 ID (정수 또는 숫자 문자열)

    Returns:
        정수 센서 ID

    Raises:
        ValidationError: 숫자가 아니거나 범위(1~9999999) 밖인 경우
    """
    if isinstance(value, bool):
        raise ValidationError(f"Sensor ID ({value}) must be a number")

    if isinstance(value, int):
        sensor_id = value
    else:
        text = str(value).strip() if value is not None else ""
        if not text:
            raise ValidationError("Sensor ID cannot be empty")
        if not text.isdigit():
            raise ValidationError(f"Sensor ID ({text}) must be a number")
        sensor_id = int(text)

    if not SENSOR_ID_MIN <= sensor_id <= SENSOR_ID_MAX:
        raise ValidationError(
            f"Sensor ID ({sensor_id}) must be a number between "
            f"{SENSOR_ID_MIN} and {SENSOR_ID_MAX} (inclusive)"
        )
    return sensor_id
