"""
Sensor Registry Module

센서 원장(ledger) 관리
- Known Sensors: 관측되었지만 아직 디바이스에 연결되지 않은 센서 (최초 관측 스냅샷 유지)
- Registered Sensors: 센서 ID → 논리 디바이스 ID 바인딩
- Logical Devices: 종류/루프/마지막 상태를 가진 논리 디바이스

저장 형식 (Store, 이름 → JSON 문자열):
    knownSensors:      {"980740": {<최초 수신 레코드>}, ...}
    registeredSensors: {"980740": {"deviceNetworkId": "Honeywell_980740"}, ...}
    childDevices:      {"Honeywell_980740": {<LogicalDevice>}, ...}
"""

import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterator, List, Optional, Union

from .exceptions import ValidationError, NotFoundError, BindingConflictError
from .interfaces import Store
from .log import TRACE
from .loop import Loop, SensorKind, default_loop
from .protocol import SensorRecord, validate_sensor_id

logger = logging.getLogger(__name__)


# Store 키
KNOWN_SENSORS_KEY = "knownSensors"
REGISTERED_SENSORS_KEY = "registeredSensors"
CHILD_DEVICES_KEY = "childDevices"

DEVICE_ID_PREFIX = "Honeywell_"


def device_id_for(sensor_id: int) -> str:
    """센서 ID → 논리 디바이스 ID (예: 980740 → "Honeywell_980740")"""
    return f"{DEVICE_ID_PREFIX}{sensor_id}"


@dataclass
class LogicalDevice:
    """논리 디바이스"""
    device_id: str
    sensor_id: int
    kind: SensorKind
    label: str
    loop: Optional[Loop] = None
    last_state: Optional[bool] = None          # active/open = True
    last_event_timestamp: Optional[str] = None
    tamper_state: Optional[bool] = None

    def __str__(self) -> str:
        loop = self.loop.label if self.loop else "Loop (default)"
        return f"{self.device_id} '{self.label}' ({self.kind.value}, {loop})"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["loop"] = self.loop.value if self.loop else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LogicalDevice':
        loop = data.get("loop")
        return cls(
            device_id=data["device_id"],
            sensor_id=int(data["sensor_id"]),
            kind=SensorKind.parse(data["kind"]),
            label=data.get("label", ""),
            loop=Loop.parse(loop) if loop is not None else None,
            last_state=data.get("last_state"),
            last_event_timestamp=data.get("last_event_timestamp"),
            tamper_state=data.get("tamper_state"),
        )


class SensorRegistry:
    """
    센서 레지스트리

    관측(observe)은 메시지 처리 경로에서, 바인딩 관련 명령은 관리 명령 경로에서
    호출되므로 모든 연산을 transaction() 안에서 수행
    - 프로세스 내부: 하나의 RLock
    - 프로세스 사이: Store.locked() (JsonFileStore는 파일 잠금)
    - 가장 바깥 구간 진입 시 저장소에서 원장을 다시 읽으므로 다른 프로세스의
      관리 명령 결과가 바로 라우팅에 반영됨

    사용 예:
        registry = SensorRegistry(MemoryStore())

        # 미등록 센서 관측
        registry.observe(record)

        # 센서 → 디바이스 바인딩
        device_id = registry.bind("980740", SensorKind.CONTACT, "Front Door")
        registry.set_loop(device_id, Loop.CONTACT)

        # 바인딩 해제
        registry.unbind(device_id)
    """

    def __init__(self, store: Store):
        """
        Args:
            store: 원장 저장소 (get/set 문자열)
        """
        self._store = store
        self.lock = threading.RLock()
        self._depth = 0

        self._known: Dict[str, Dict[str, Any]] = {}
        self._registered: Dict[str, Dict[str, str]] = {}
        self._devices: Dict[str, LogicalDevice] = {}
        with self.lock, self._store.locked():
            self._refresh()

    # ===== 저장소 =====

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        원장 잠금 구간 (재진입 가능)

        가장 바깥 구간에서만 저장소 내용을 다시 읽음
        """
        with self.lock, self._store.locked():
            self._depth += 1
            try:
                if self._depth == 1:
                    self._refresh()
                yield
            finally:
                self._depth -= 1

    def _refresh(self) -> None:
        self._known = self._load(KNOWN_SENSORS_KEY)
        self._registered = self._load(REGISTERED_SENSORS_KEY)
        self._devices = {
            device_id: LogicalDevice.from_dict(data)
            for device_id, data in self._load(CHILD_DEVICES_KEY).items()
        }

    def _load(self, key: str) -> Dict[str, Any]:
        blob = self._store.get(key)
        logger.log(TRACE, f"Loaded {key} data: '{blob}'")
        if blob is None or blob.strip() == "":
            return {}
        try:
            data = json.loads(blob)
        except json.JSONDecodeError as e:
            logger.error(f"Stored {key} is not valid JSON, ignoring: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Stored {key} is not a JSON object, ignoring")
            return {}
        return data

    def _save(self, key: str, data: Dict[str, Any]) -> None:
        blob = json.dumps(data)
        logger.log(TRACE, f"Storing {key}: {blob}")
        self._store.set(key, blob)

    def _save_devices(self) -> None:
        self._save(CHILD_DEVICES_KEY, {k: d.to_dict() for k, d in self._devices.items()})

    # ===== 조회 =====

    def known_sensors(self) -> Dict[int, Dict[str, Any]]:
        """
        미등록 센서 목록

        바인딩된 센서의 스냅샷은 저장소에 남아 있어도 목록에서 제외

        Returns:
            {센서 ID: 최초 관측 레코드}
        """
        with self.transaction():
            return {
                int(key): dict(value)
                for key, value in self._known.items()
                if key not in self._registered
            }

    def registered_sensors(self) -> Dict[int, str]:
        """등록된 센서 목록 {센서 ID: 디바이스 ID}"""
        with self.transaction():
            return {
                int(key): value.get("deviceNetworkId", "")
                for key, value in self._registered.items()
            }

    def devices(self) -> List[LogicalDevice]:
        """논리 디바이스 목록"""
        with self.transaction():
            return list(self._devices.values())

    def get_device(self, device_id: str) -> Optional[LogicalDevice]:
        with self.transaction():
            return self._devices.get(device_id)

    def device_for_sensor(self, sensor_id: int) -> Optional[LogicalDevice]:
        """센서 ID에 연결된 논리 디바이스 (없으면 None)"""
        with self.transaction():
            return self._devices.get(device_id_for(sensor_id))

    def is_bound(self, sensor_id: int) -> bool:
        with self.transaction():
            return str(sensor_id) in self._registered

    # ===== 메시지 경로 =====

    def observe(self, record: SensorRecord) -> bool:
        """
        미등록 센서 관측 기록

        이미 알려진 센서는 최초 스냅샷을 유지 (갱신하지 않음)

        Args:
            record: 센서 레코드

        Returns:
            새 센서가 추가되면 True
        """
        key = str(record.sensor_id)
        with self.transaction():
            if key in self._known:
                logger.log(TRACE, f"Already have sensor data for {key}")
                return False

            self._known[key] = dict(record.raw)
            logger.debug(f"Found new sensor: {key}")
            self._save(KNOWN_SENSORS_KEY, self._known)
            return True

    def record_state(
        self,
        device_id: str,
        state: Optional[bool] = None,
        timestamp: Optional[str] = None,
        tamper: Optional[bool] = None
    ) -> None:
        """라우팅 결과(마지막 상태)를 디바이스에 기록"""
        with self.transaction():
            device = self._devices.get(device_id)
            if device is None:
                return
            if state is not None:
                device.last_state = state
            if timestamp is not None:
                device.last_event_timestamp = timestamp
            if tamper is not None:
                device.tamper_state = tamper
            self._save_devices()

    def ensure_loop(self, device: LogicalDevice) -> Loop:
        """
        디바이스 루프 조회, 미설정이면 종류별 기본값을 저장 후 반환
        """
        with self.transaction():
            current = self._devices.get(device.device_id, device)
            if current.loop is None:
                current.loop = default_loop(current.kind)
                logger.warning(
                    f"{current.device_id} missing Loop setting, assuming "
                    f"{current.loop.label} for {current.kind.value} sensor"
                )
                self._save_devices()
            device.loop = current.loop
            return current.loop

    # ===== 관리 명령 =====

    def bind(
        self,
        sensor_id: Union[int, str],
        kind: Union[SensorKind, str],
        label: str
    ) -> str:
        """
        센서 → 논리 디바이스 바인딩

        같은 입력으로 반복 호출해도 디바이스가 중복 생성되지 않음

        Args:
            sensor_id: 센서 ID (1~9999999)
            kind: 디바이스 종류
            label: 디바이스 표시 이름

        Returns:
            논리 디바이스 ID

        Raises:
            ValidationError: 라벨이 비었거나 센서 ID/종류가 잘못된 경우
        """
        if label is None or str(label).strip() == "":
            raise ValidationError("Device Label cannot be empty")
        sensor = validate_sensor_id(sensor_id)
        sensor_kind = SensorKind.parse(kind)
        label = str(label).strip()

        device_id = device_id_for(sensor)
        key = str(sensor)

        with self.transaction():
            if device_id in self._devices:
                conflict = BindingConflictError(
                    f"Device {device_id} already exists for sensor {sensor}"
                )
                logger.warning(f"{conflict}, not re-creating it")
            else:
                loop = default_loop(sensor_kind)
                self._devices[device_id] = LogicalDevice(
                    device_id=device_id,
                    sensor_id=sensor,
                    kind=sensor_kind,
                    label=label,
                    loop=loop,
                )
                self._save_devices()
                logger.info(
                    f"Created device {device_id} '{label}' "
                    f"({sensor_kind.value}, {loop.label})"
                )

            if key in self._registered:
                logger.log(TRACE, f"Already have registered sensor data for {sensor}")
            else:
                self._registered[key] = {"deviceNetworkId": device_id}
                self._save(REGISTERED_SENSORS_KEY, self._registered)
                logger.info(f"Registered sensor {sensor} → {device_id}")

        return device_id

    def bind_discovered(
        self,
        sensor_id: Union[int, str],
        kind: Union[SensorKind, str],
        label: str
    ) -> str:
        """
        미등록 센서 목록에 있는 센서를 바인딩

        Raises:
            NotFoundError: 미등록 센서 목록에 없는 경우
        """
        sensor = validate_sensor_id(sensor_id)
        with self.transaction():
            if sensor not in self.known_sensors():
                raise NotFoundError(f"Sensor {sensor} is not in the list of known sensors")
            return self.bind(sensor, kind, label)

    def unbind(self, device_id: str) -> None:
        """
        논리 디바이스 삭제 및 등록 해제

        Raises:
            NotFoundError: 디바이스가 없는 경우
        """
        with self.transaction():
            device = self._devices.pop(device_id, None)
            if device is None:
                raise NotFoundError(f"Device {device_id} not found")
            self._save_devices()

            # 키가 아니라 엔트리 안의 디바이스 ID로 역방향 검색
            del_key = None
            for key, entry in self._registered.items():
                if entry.get("deviceNetworkId") == device_id:
                    del_key = key
                    break

            if del_key is None:
                logger.warning(f"Registered sensors was missing {device_id}, nothing to remove")
            else:
                del self._registered[del_key]
                self._save(REGISTERED_SENSORS_KEY, self._registered)
                logger.debug(f"Removed {del_key} from registered sensors")

        logger.info(f"Removed device {device_id} '{device.label}'")

    def set_loop(self, device_id: str, loop: Union[Loop, int, str]) -> Loop:
        """
        디바이스 루프 변경

        Raises:
            NotFoundError: 디바이스가 없는 경우
            ValidationError: 잘못된 루프 값
        """
        with self.transaction():
            device = self._devices.get(device_id)
            if device is None:
                raise NotFoundError(f"Device {device_id} not found")
            new_loop = Loop.parse(loop)
            device.loop = new_loop
            self._save_devices()

        logger.info(f"Set {device_id} '{device.label}' to {new_loop.label}")
        return new_loop

    def wipe_device_state(self, device_id: str) -> None:
        """
        디바이스 상태 및 루프 설정 초기화 (디바이스 자체는 유지)

        Raises:
            NotFoundError: 디바이스가 없는 경우
        """
        with self.transaction():
            device = self._devices.get(device_id)
            if device is None:
                raise NotFoundError(f"Device {device_id} not found")
            device.loop = None
            device.last_state = None
            device.last_event_timestamp = None
            device.tamper_state = None
            self._save_devices()

        logger.info(f"Cleared state and data for {device_id} '{device.label}'")

    def reset(self) -> None:
        """Known/Registered 원장 초기화 (논리 디바이스는 유지)"""
        with self.transaction():
            self._known.clear()
            self._registered.clear()
            self._store.remove(KNOWN_SENSORS_KEY)
            self._store.remove(REGISTERED_SENSORS_KEY)
        logger.info("Cleared known and registered sensors")
