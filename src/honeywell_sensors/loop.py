"""
Sensor Loop Resolver

다기능 센서(5816 등)의 루프(신호 채널) → 상태 필드 매핑
- Loop 1: contact_open (접점 모드로 설치된 센서)
- Loop 2: reed_open (자석/리드 스위치 모드로 설치된 센서)
- Loop 3: alarm
- Loop 4: tamper (예약, 매핑 없음 - 항상 보조 속성으로만 발행)
"""

from enum import Enum
from typing import Optional, Union

from .exceptions import ValidationError
from .protocol import SensorRecord


class SensorKind(Enum):
    """논리 디바이스 종류"""
    CONTACT = 'contact'
    MOTION = 'motion'

    @classmethod
    def parse(cls, value: Union['SensorKind', str]) -> 'SensorKind':
        """
        문자열 → SensorKind

        "contact", "Motion", "Virtual Contact Sensor" 등 허용

        Raises:
            ValidationError: 알 수 없는 종류
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower() if value is not None else ""
        if text in _KIND_ALIASES:
            return _KIND_ALIASES[text]
        raise ValidationError(f"Unknown device type: {value!r}")


_KIND_ALIASES = {
    'contact': SensorKind.CONTACT,
    'virtual contact sensor': SensorKind.CONTACT,
    'motion': SensorKind.MOTION,
    'virtual motion sensor': SensorKind.MOTION,
}


class Loop(Enum):
    """센서 루프 → 레코드 필드 이름"""
    CONTACT = 1   # Loop 1 / Contact
    REED = 2      # Loop 2 / Reed
    ALARM = 3     # Loop 3 / Alarm

    @property
    def field_name(self) -> str:
        return LOOP_FIELDS[self]

    @property
    def label(self) -> str:
        """표시용 이름 (예: "Loop 2 / Reed")"""
        return f"Loop {self.value} / {self.name.capitalize()}"

    @classmethod
    def parse(cls, value: Union['Loop', int, str]) -> 'Loop':
        """
        루프 값 파싱

        1, "2", "Loop 3 / Alarm", "reed" 등 허용

        Raises:
            ValidationError: 1~3 외의 값 또는 알 수 없는 이름
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool) or value is None:
            raise ValidationError(f"Invalid loop: {value!r}")
        if isinstance(value, int):
            number = value
        else:
            text = str(value).strip().lower()
            for loop in cls:
                if text in (str(loop.value), loop.name.lower(), loop.label.lower()):
                    return loop
            raise ValidationError(f"Invalid loop: {value!r}")
        try:
            return cls(number)
        except ValueError:
            raise ValidationError(f"Invalid loop: {value!r} (expected 1, 2 or 3)")


LOOP_FIELDS = {
    Loop.CONTACT: 'contact_open',
    Loop.REED: 'reed_open',
    Loop.ALARM: 'alarm',
}

# 종류별 기본 루프
# Contact 센서는 보통 리드(자석) 감지로, Motion 센서는 접점 트리거로 배선됨
DEFAULT_LOOPS = {
    SensorKind.CONTACT: Loop.REED,
    SensorKind.MOTION: Loop.CONTACT,
}


def default_loop(kind: SensorKind) -> Loop:
    """종류별 기본 루프"""
    return DEFAULT_LOOPS[kind]


def resolve_field(loop: Loop) -> str:
    """루프가 나타내는 SensorRecord 필드 이름"""
    return LOOP_FIELDS[loop]


def resolve_state(loop: Loop, record: SensorRecord) -> Optional[bool]:
    """
    루프에 해당하는 활성/열림 상태 조회

    Args:
        loop: 디바이스 루프
        record: 센서 레코드

    Returns:
        True (active/open), False (inactive/closed),
        레코드에 해당 필드가 없으면 None
    """
    value = getattr(record, resolve_field(loop))
    if value is None:
        return None
    return bool(value)
