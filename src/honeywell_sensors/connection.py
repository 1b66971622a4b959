"""
MQTT Connection Manager

브로커 세션 관리 클래스 (paho-mqtt)
- connect / disconnect / subscribe / unsubscribe / publish
- Last will (LWT=offline, retain) 설정 및 접속 시 online 알림
- 연결이 끊긴 상태에서 subscribe/publish 호출 시 1회 재접속 시도

상태 전이: DISCONNECTED → CONNECTING → CONNECTED → DISCONNECTED
접속 실패 시 자동 재시도하지 않음
"""

import logging
import socket
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

import paho.mqtt.client as mqtt

from .client_factory import create_mqtt_client
from .exceptions import ConnectionError, CommunicationError, HoneywellError
from .mqtt_topics import (
    DEFAULT_PORT, DEFAULT_KEEPALIVE, DEFAULT_QOS, DEFAULT_RETAIN,
    Topics, LinkStatus,
    LAST_WILL_TOPIC, LAST_WILL_MESSAGE, LAST_WILL_QOS, LAST_WILL_RETAIN
)

logger = logging.getLogger(__name__)


DEFAULT_CONNECT_TIMEOUT = 10.0  # seconds

_STARTED = time.monotonic()


class ConnectionState(Enum):
    """세션 상태"""
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'


@dataclass
class HostInfo:
    """접속 알림에 포함되는 호스트 정보"""
    firmware: str   # FW
    address: str    # IP
    uptime: int     # UPTIME (초)


def local_host_info(broker_host: str = "8.8.8.8") -> HostInfo:
    """
    현재 호스트 정보 수집

    Args:
        broker_host: 로컬 주소 판별에 사용할 브로커 주소
    """
    from . import __version__

    address = "127.0.0.1"
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # UDP connect는 패킷을 보내지 않고 라우팅에 쓰일 로컬 주소만 결정
        sock.connect((broker_host, 9))
        address = sock.getsockname()[0]
    except OSError as e:
        logger.debug(f"Could not determine local address: {e}")
    finally:
        sock.close()

    return HostInfo(
        firmware=f"honeywell_sensors v{__version__}",
        address=address,
        uptime=int(time.monotonic() - _STARTED)
    )


MessageHandler = Callable[[str, bytes], None]


class MQTTConnection:
    """
    MQTT 브로커 연결 관리 클래스

    Context manager 지원:
        with MQTTConnection('192.168.1.234', username='mqtt_user', password='...') as conn:
            conn.set_message_handler(lambda topic, payload: print(topic, payload))
            conn.subscribe('hubitat/honeywell/events')
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        client_id: str = "",
        username: Optional[str] = None,
        password: Optional[str] = None,
        keepalive: int = DEFAULT_KEEPALIVE,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        host_info: Optional[Callable[[], HostInfo]] = None,
        client: Optional[mqtt.Client] = None
    ):
        """
        Args:
            host: 브로커 주소 (예: '192.168.1.234')
            port: 브로커 포트 (기본값: 1883)
            client_id: MQTT 클라이언트 ID
            username: 브로커 사용자 (선택)
            password: 브로커 비밀번호 (선택)
            keepalive: keepalive 간격 (초)
            connect_timeout: CONNACK 대기 시간 (초)
            host_info: 접속 알림용 호스트 정보 제공 함수
            client: 사용할 paho 클라이언트 (None이면 생성)
        """
        self.host = host
        self.port = port
        self.client_id = client_id
        self.username = username
        self.password = password
        self.keepalive = keepalive
        self.connect_timeout = connect_timeout
        self._host_info = host_info or (lambda: local_host_info(self.host))

        self._client = client if client is not None else create_mqtt_client(client_id)
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message

        self._state = ConnectionState.DISCONNECTED
        self._state_lock = threading.Lock()   # 네트워크 스레드 콜백과 공유
        self._lock = threading.RLock()
        self._connack = threading.Event()
        self._connack_rc: Optional[int] = None
        self._loop_running = False
        self._subscriptions: Dict[str, int] = {}
        self._message_handler: Optional[MessageHandler] = None

    @property
    def state(self) -> ConnectionState:
        with self._state_lock:
            return self._state

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self.state == ConnectionState.CONNECTED

    def _set_state(self, state: ConnectionState) -> None:
        with self._state_lock:
            self._state = state

    @property
    def subscriptions(self):
        return list(self._subscriptions)

    def set_message_handler(self, handler: Optional[MessageHandler]) -> None:
        """수신 메시지 처리 함수 등록 (topic, payload)"""
        self._message_handler = handler

    # ===== paho 콜백 (네트워크 스레드) =====

    def _on_connect(self, client, userdata, flags, rc, properties=None) -> None:
        self._connack_rc = int(rc) if not hasattr(rc, 'value') else rc.value
        self._connack.set()

    def _on_disconnect(self, client, userdata, rc, properties=None) -> None:
        rc = int(rc) if not hasattr(rc, 'value') else rc.value
        if rc == mqtt.MQTT_ERR_SUCCESS:
            return
        # _lock 사용 금지: disconnect()가 _lock을 쥔 채 loop_stop()으로 이 스레드를 join
        with self._state_lock:
            if self._state != ConnectionState.CONNECTED:
                return
            self._state = ConnectionState.DISCONNECTED
        logger.warning(f"Lost connection to broker {self.host}:{self.port} (rc={rc})")
        # 전송 계층의 자동 재접속 중지 (다음 요청 시 재접속)
        client.disconnect()

    def _on_message(self, client, userdata, msg) -> None:
        logger.debug(f"RX {msg.topic} ({len(msg.payload)} bytes)")
        handler = self._message_handler
        if handler is None:
            logger.warning(f"Message on {msg.topic} had no handler")
            return
        try:
            handler(msg.topic, msg.payload)
        except Exception as e:
            logger.error(f"Error handling message on {msg.topic}: {e}", exc_info=True)

    # ===== 세션 =====

    def _stop_loop(self) -> None:
        if self._loop_running:
            self._client.loop_stop()
            self._loop_running = False

    def connect(self) -> bool:
        """
        브로커 연결

        성공 시 LWT/FW/IP/UPTIME 알림 발행, 이전 구독 복원

        Returns:
            성공 시 True

        Raises:
            ConnectionError: 접속 불가, 인증 실패, CONNACK 타임아웃 시
        """
        with self._lock:
            if self.is_connected:
                logger.warning(f"Already connected to {self.host}:{self.port}")
                return True

            self._set_state(ConnectionState.CONNECTING)
            self._stop_loop()
            self._connack.clear()
            self._connack_rc = None

            try:
                if self.username:
                    self._client.username_pw_set(self.username, self.password)
                self._client.will_set(
                    LAST_WILL_TOPIC, LAST_WILL_MESSAGE,
                    qos=LAST_WILL_QOS, retain=LAST_WILL_RETAIN
                )
                self._client.connect(self.host, self.port, self.keepalive)
                self._client.loop_start()
                self._loop_running = True
            except (OSError, ValueError) as e:
                self._stop_loop()
                self._set_state(ConnectionState.DISCONNECTED)
                raise ConnectionError(f"Failed to connect to {self.host}:{self.port}: {e}")

            if not self._connack.wait(self.connect_timeout):
                self._stop_loop()
                self._set_state(ConnectionState.DISCONNECTED)
                raise ConnectionError(
                    f"No response from broker {self.host}:{self.port} "
                    f"within {self.connect_timeout}s"
                )

            if self._connack_rc != 0:
                self._stop_loop()
                self._set_state(ConnectionState.DISCONNECTED)
                raise ConnectionError(
                    f"Broker {self.host}:{self.port} refused connection: "
                    f"{mqtt.connack_string(self._connack_rc)}"
                )

            self._set_state(ConnectionState.CONNECTED)
            logger.info(f"Connected to broker {self.host}:{self.port} as '{self.client_id}'")

            for topic, qos in list(self._subscriptions.items()):
                self._subscribe(topic, qos)

        # 알림 실패는 접속 실패가 아님 (세션은 이미 CONNECTED)
        try:
            self.announce(LinkStatus.ONLINE)
        except HoneywellError as e:
            logger.warning(f"Could not announce online status: {e}")
        return True

    def disconnect(self) -> bool:
        """
        브로커 연결 해제

        해제 요청이 실패하면 실제 연결 상태를 다시 조회하여 반영

        Returns:
            연결이 해제되면 True
        """
        with self._lock:
            if self.state == ConnectionState.DISCONNECTED:
                logger.debug("Already disconnected")
                self._stop_loop()
                return True

            try:
                self.announce(LinkStatus.OFFLINE)
            except HoneywellError as e:
                logger.warning(f"Could not announce offline status: {e}")

            try:
                rc = self._client.disconnect()
                if rc not in (None, mqtt.MQTT_ERR_SUCCESS):
                    raise CommunicationError(mqtt.error_string(rc))
            except (OSError, CommunicationError) as e:
                logger.warning(f"Disconnection from broker failed, {e}")
                if self._client.is_connected():
                    self._set_state(ConnectionState.CONNECTED)
                    return False

            self._stop_loop()
            self._set_state(ConnectionState.DISCONNECTED)
            logger.info(f"Disconnected from broker {self.host}:{self.port}")
            return True

    def _ensure_connected(self) -> None:
        if not self.is_connected:
            logger.debug("Not connected, connecting...")
            self.connect()

    # ===== 구독/발행 =====

    def _subscribe(self, topic: str, qos: int) -> None:
        result, _mid = self._client.subscribe(topic, qos)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise CommunicationError(f"Failed to subscribe to {topic}: {mqtt.error_string(result)}")
        logger.debug(f"Subscribed to topic: {topic}")

    def subscribe(self, topic: str, qos: int = DEFAULT_QOS) -> None:
        """
        토픽 구독

        Raises:
            ConnectionError: 재접속 실패 시
            CommunicationError: 구독 요청 거부 시
        """
        with self._lock:
            self._ensure_connected()
            self._subscribe(topic, qos)
            self._subscriptions[topic] = qos

    def unsubscribe(self, topic: str) -> None:
        """
        토픽 구독 해제

        Raises:
            ConnectionError: 재접속 실패 시
            CommunicationError: 해제 요청 거부 시
        """
        with self._lock:
            self._ensure_connected()
            result, _mid = self._client.unsubscribe(topic)
            if result != mqtt.MQTT_ERR_SUCCESS:
                raise CommunicationError(
                    f"Failed to unsubscribe from {topic}: {mqtt.error_string(result)}"
                )
            self._subscriptions.pop(topic, None)
            logger.debug(f"Unsubscribed from topic: {topic}")

    def publish(
        self,
        topic: str,
        payload: str,
        qos: int = DEFAULT_QOS,
        retain: bool = DEFAULT_RETAIN
    ) -> None:
        """
        메시지 발행

        전송 계층이 연결 끊김을 보고하면 1회 재접속 후 재시도

        Raises:
            ConnectionError: 재접속 실패 시
            CommunicationError: 발행 실패 시
        """
        with self._lock:
            self._ensure_connected()
            info = self._client.publish(topic, payload, qos, retain)

            if info.rc == mqtt.MQTT_ERR_NO_CONN:
                logger.warning(f"Publish to {topic} found the session closed, reconnecting")
                self._set_state(ConnectionState.DISCONNECTED)
                self.connect()
                info = self._client.publish(topic, payload, qos, retain)

            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                raise CommunicationError(f"Unable to publish to {topic}: {mqtt.error_string(info.rc)}")

        logger.debug(f"Published topic: {topic} payload: {payload}")

    def announce(self, status: str) -> None:
        """
        허브 상태 알림 발행 (LWT, FW, IP, UPTIME)

        Args:
            status: LinkStatus.ONLINE / LinkStatus.OFFLINE
        """
        info = self._host_info()
        values = {
            Topics.LWT: status,
            Topics.FIRMWARE: info.firmware,
            Topics.IP: info.address,
            Topics.UPTIME: str(info.uptime),
        }
        for topic in Topics.announcement_topics():
            retain = LAST_WILL_RETAIN if topic == LAST_WILL_TOPIC else DEFAULT_RETAIN
            self.publish(topic, values[topic], retain=retain)

    def __enter__(self) -> 'MQTTConnection':
        """Context manager entry"""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit"""
        self.disconnect()
