"""
Shared State File Tests

실행 중인 브리지와 별도 프로세스의 관리 명령이 같은 상태 파일을 공유하는 경우:
- 다른 인스턴스의 바인딩/루프 변경이 라우팅에 바로 반영
- 라우팅 중 기록이 다른 인스턴스의 원장을 덮어쓰지 않음
- 동시 실행 시 양쪽 변경 모두 유지
"""

import pytest
import sys
import os
import json
import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from honeywell_sensors.registry import SensorRegistry
from honeywell_sensors.router import EventRouter, RouteOutcome
from honeywell_sensors.interfaces import JsonFileStore
from honeywell_sensors.loop import Loop


NOW = datetime(2025, 4, 3, 7, 30, tzinfo=timezone.utc)


def event(sensor_id, **fields):
    data = {"id": sensor_id}
    data.update(fields)
    return json.dumps(data)


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "state.json"


@pytest.fixture
def running(state_path):
    """브리지 프로세스 쪽 레지스트리"""
    return SensorRegistry(JsonFileStore(state_path))


@pytest.fixture
def admin(state_path):
    """관리 명령 프로세스 쪽 레지스트리"""
    return SensorRegistry(JsonFileStore(state_path))


@pytest.fixture
def sink():
    return MagicMock()


@pytest.fixture
def router(running, sink):
    clock = MagicMock()
    clock.now.return_value = NOW
    return EventRouter(running, sink, clock)


class TestJsonFileStore:
    """파일 저장소 키 단위 갱신"""

    def test_set_keeps_other_instance_keys(self, state_path):
        first = JsonFileStore(state_path)
        second = JsonFileStore(state_path)

        first.set("a", "1")
        second.set("b", "2")

        assert first.get("b") == "2"
        assert json.loads(state_path.read_text()) == {"a": "1", "b": "2"}

    def test_remove_keeps_other_keys(self, state_path):
        first = JsonFileStore(state_path)
        second = JsonFileStore(state_path)
        first.set("a", "1")
        first.set("b", "2")

        second.remove("a")

        assert first.get("a") is None
        assert first.get("b") == "2"

    def test_locked_is_reentrant(self, state_path):
        store = JsonFileStore(state_path)
        with store.locked():
            with store.locked():
                store.set("a", "1")
        assert store.get("a") == "1"


class TestAdminChangesVisible:
    """다른 인스턴스의 관리 명령 → 라우팅"""

    def test_bind_routes_immediately(self, router, admin, sink):
        device_id = admin.bind(980740, "contact", "Front Door")

        outcome = router.route(event(980740, reed_open=1))

        assert outcome == RouteOutcome.ROUTED
        sink.emit_contact_state.assert_called_once_with(device_id, True)

    def test_set_loop_applies(self, router, admin, sink):
        device_id = admin.bind(980740, "contact", "Front Door")
        admin.set_loop(device_id, Loop.CONTACT)

        router.route(event(980740, contact_open=0, reed_open=1))

        sink.emit_contact_state.assert_called_once_with(device_id, False)

    def test_unbind_stops_routing(self, router, admin, sink):
        device_id = admin.bind(980740, "contact", "Front Door")
        router.route(event(980740, reed_open=1))
        admin.unbind(device_id)
        sink.reset_mock()

        outcome = router.route(event(980740, reed_open=1))

        assert outcome == RouteOutcome.DISCOVERED
        sink.emit_contact_state.assert_not_called()


class TestRoutingKeepsAdminChanges:
    """라우팅 기록 후에도 관리 명령 결과 유지"""

    def test_discovery_does_not_erase_binding(self, router, admin, state_path):
        device_id = admin.bind(980740, "contact", "Front Door")

        assert router.route(event(111, contact_open=1)) == RouteOutcome.DISCOVERED

        fresh = SensorRegistry(JsonFileStore(state_path))
        assert fresh.registered_sensors() == {980740: device_id}
        assert fresh.get_device(device_id).label == "Front Door"
        assert 111 in fresh.known_sensors()

    def test_routed_state_keeps_admin_loop(self, router, admin, state_path):
        device_id = admin.bind(980740, "contact", "Front Door")
        router.route(event(980740, reed_open=1))
        admin.set_loop(device_id, Loop.ALARM)

        router.route(event(980740, alarm=1))

        fresh = SensorRegistry(JsonFileStore(state_path))
        device = fresh.get_device(device_id)
        assert device.loop == Loop.ALARM
        assert device.last_state is True

    def test_admin_sees_discovered_sensors(self, router, admin):
        router.route(event(4242, contact_open=1))

        assert 4242 in admin.known_sensors()
        assert admin.bind_discovered(4242, "motion", "Hall") == "Honeywell_4242"

    def test_concurrent_routing_and_binding(self, router, admin, state_path):
        """두 스레드가 동시에 기록해도 양쪽 변경 모두 유지"""
        errors = []

        def route_events():
            try:
                for sensor_id in range(1, 41):
                    router.route(event(sensor_id, contact_open=1))
            except Exception as e:
                errors.append(e)

        def bind_sensors():
            try:
                for sensor_id in range(1001, 1021):
                    admin.bind(sensor_id, "contact", f"Door {sensor_id}")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=route_events), threading.Thread(target=bind_sensors)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        fresh = SensorRegistry(JsonFileStore(state_path))
        assert set(fresh.known_sensors()) == set(range(1, 41))
        assert set(fresh.registered_sensors()) == set(range(1001, 1021))
        assert len(fresh.devices()) == 20
