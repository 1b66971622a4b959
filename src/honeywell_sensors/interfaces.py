"""
Collaborator Interfaces

코어가 호출하는 외부 서비스의 좁은 인터페이스
- Store: 이름 → 문자열 blob 키-값 저장소 (디바이스 메타데이터)
- Clock: 현재 시각
- DeviceSink: 디바이스 상태/속성 발행
"""

import json
import logging
import os
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, ContextManager, Dict, Iterator, Optional, Protocol, Union

from filelock import FileLock, Timeout

from .exceptions import StorageError

logger = logging.getLogger(__name__)


DEFAULT_LOCK_TIMEOUT = 10.0  # seconds


class Store(Protocol):
    """문자열 blob 저장소"""

    def get(self, name: str) -> Optional[str]:
        ...

    def set(self, name: str, value: str) -> None:
        ...

    def remove(self, name: str) -> None:
        ...

    def locked(self) -> ContextManager[Any]:
        """여러 get/set을 하나의 원자적 구간으로 묶는 잠금"""
        ...


class Clock(Protocol):
    """시각 제공자"""

    def now(self) -> datetime:
        ...


class DeviceSink(Protocol):
    """디바이스 상태 수신자 (호스트의 디바이스 객체 모델)"""

    def emit_attribute(self, device_id: str, name: str, value: Any) -> None:
        ...

    def emit_motion_state(self, device_id: str, active: bool) -> None:
        ...

    def emit_contact_state(self, device_id: str, open: bool) -> None:
        ...


class SystemClock:
    """UTC 현재 시각"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class MemoryStore:
    """메모리 저장소 (테스트/임시 실행용)"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()

    def locked(self) -> ContextManager[Any]:
        return self._lock

    def get(self, name: str) -> Optional[str]:
        return self._data.get(name)

    def set(self, name: str, value: str) -> None:
        self._data[name] = value

    def remove(self, name: str) -> None:
        self._data.pop(name, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)


class JsonFileStore:
    """
    JSON 파일 저장소

    파일 내용: {"knownSensors": "<json>", "registeredSensors": "<json>", ...}
    값은 불투명한 문자열로 저장

    같은 파일을 여러 프로세스가 공유 (실행 중인 브리지 + 관리 명령)
    - 모든 get/set/remove는 <path>.lock 파일 잠금 안에서 파일을 다시 읽음
    - set/remove는 최신 파일 내용에 해당 키만 반영한 뒤 임시 파일 교체로 기록
    - locked(): 여러 연산을 하나의 잠금 구간으로 묶음 (재진입 가능)
    """

    def __init__(self, path: Union[str, Path], lock_timeout: float = DEFAULT_LOCK_TIMEOUT):
        """
        Args:
            path: 상태 파일 경로
            lock_timeout: 파일 잠금 대기 시간 (초)
        """
        self.path = Path(path)
        if not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file_lock = FileLock(str(self.path) + '.lock', timeout=lock_timeout)

    @contextmanager
    def locked(self) -> Iterator[None]:
        """
        파일 잠금 구간

        Raises:
            StorageError: 제한 시간 안에 잠금을 얻지 못한 경우
        """
        try:
            self._file_lock.acquire()
        except Timeout:
            raise StorageError(f"Timed out waiting for lock on {self.path}")
        try:
            yield
        finally:
            self._file_lock.release()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding='utf-8') or "{}")
        except json.JSONDecodeError as e:
            logger.error(f"State file {self.path} is corrupt, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"State file {self.path} is not a JSON object, treating as empty")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: Dict[str, str]) -> None:
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        try:
            tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding='utf-8')
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Failed to write state file {self.path}: {e}")

    def get(self, name: str) -> Optional[str]:
        with self.locked():
            return self._read().get(name)

    def set(self, name: str, value: str) -> None:
        with self.locked():
            data = self._read()
            data[name] = value
            self._write(data)

    def remove(self, name: str) -> None:
        with self.locked():
            data = self._read()
            if data.pop(name, None) is not None:
                self._write(data)
