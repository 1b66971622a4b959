"""
Loop Resolver Unit Tests

루프 → 상태 필드 매핑 테스트:
- 루프별 필드
- 종류별 기본 루프
- 루프/종류 파싱
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from honeywell_sensors.loop import (
    Loop, SensorKind, default_loop, resolve_field, resolve_state
)
from honeywell_sensors.protocol import SensorRecord
from honeywell_sensors.exceptions import ValidationError


class TestLoopFields:
    """루프 필드 매핑"""

    def test_loop_values(self):
        """루프 번호"""
        assert Loop.CONTACT.value == 1
        assert Loop.REED.value == 2
        assert Loop.ALARM.value == 3

    def test_resolve_field(self):
        """루프별 필드 이름"""
        assert resolve_field(Loop.CONTACT) == "contact_open"
        assert resolve_field(Loop.REED) == "reed_open"
        assert resolve_field(Loop.ALARM) == "alarm"

    def test_tamper_not_mapped(self):
        """Loop 4 (tamper)는 매핑 없음"""
        with pytest.raises(ValidationError):
            Loop.parse(4)

    def test_labels(self):
        """표시 이름"""
        assert Loop.CONTACT.label == "Loop 1 / Contact"
        assert Loop.REED.label == "Loop 2 / Reed"
        assert Loop.ALARM.label == "Loop 3 / Alarm"


class TestResolveState:
    """루프 상태 해석"""

    RECORD = SensorRecord(sensor_id=980740, contact_open=True, reed_open=False, alarm=True)

    def test_each_loop_yields_bool(self):
        """모든 루프에서 정확히 하나의 bool"""
        for loop in Loop:
            assert isinstance(resolve_state(loop, self.RECORD), bool)

    def test_selected_values(self):
        """루프별 선택 값"""
        assert resolve_state(Loop.CONTACT, self.RECORD) is True
        assert resolve_state(Loop.REED, self.RECORD) is False
        assert resolve_state(Loop.ALARM, self.RECORD) is True

    def test_deterministic(self):
        """같은 입력 → 같은 결과"""
        results = {resolve_state(Loop.REED, self.RECORD) for _ in range(5)}
        assert results == {False}

    def test_missing_field(self):
        """레코드에 필드 없음"""
        record = SensorRecord(sensor_id=1, contact_open=True)
        assert resolve_state(Loop.REED, record) is None


class TestDefaultLoop:
    """종류별 기본 루프"""

    def test_contact_defaults_to_reed(self):
        assert default_loop(SensorKind.CONTACT) == Loop.REED

    def test_motion_defaults_to_contact(self):
        assert default_loop(SensorKind.MOTION) == Loop.CONTACT


class TestParsing:
    """루프/종류 파싱"""

    @pytest.mark.parametrize("value,expected", [
        (1, Loop.CONTACT),
        ("2", Loop.REED),
        ("Loop 3 / Alarm", Loop.ALARM),
        ("loop 2 / reed", Loop.REED),
        ("contact", Loop.CONTACT),
        (Loop.ALARM, Loop.ALARM),
    ])
    def test_parse_loop(self, value, expected):
        assert Loop.parse(value) == expected

    @pytest.mark.parametrize("value", [0, 5, "", "Loop 4 / Tamper", "reedy", None, True])
    def test_parse_loop_invalid(self, value):
        """알 수 없는 값은 기본값 없이 거부"""
        with pytest.raises(ValidationError):
            Loop.parse(value)

    @pytest.mark.parametrize("value,expected", [
        ("contact", SensorKind.CONTACT),
        ("Motion", SensorKind.MOTION),
        ("Virtual Contact Sensor", SensorKind.CONTACT),
        ("Virtual Motion Sensor", SensorKind.MOTION),
        (SensorKind.MOTION, SensorKind.MOTION),
    ])
    def test_parse_kind(self, value, expected):
        assert SensorKind.parse(value) == expected

    @pytest.mark.parametrize("value", ["door", "", None, "Virtual Switch"])
    def test_parse_kind_invalid(self, value):
        with pytest.raises(ValidationError):
            SensorKind.parse(value)
