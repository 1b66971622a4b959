"""
MQTT Topics Module

rtl_433 → MQTT 브리지 Topic 상수 정의
- 센서 이벤트 수신 토픽 (rtl_433 events)
- LWT / FW / IP / UPTIME: 허브 상태 알림 (last will)
- 디바이스 상태 재발행 토픽
"""

import re


# MQTT 기본 설정
DEFAULT_QOS = 0
DEFAULT_RETAIN = False
DEFAULT_PORT = 1883
DEFAULT_KEEPALIVE = 60

# rtl_433 -F json ... events=hubitat/honeywell/events
DEFAULT_EVENT_TOPIC = "hubitat/honeywell/events"
DEFAULT_STATE_TOPIC_PREFIX = "honeywell/devices"


def normalize(name: str) -> str:
    """
    토픽/클라이언트 ID용 이름 정규화

    Args:
        name: 원본 이름 (예: "Home Hub #1")

    Returns:
        영숫자 외 문자를 '-'로 치환한 소문자 (예: "home-hub-1")
    """
    return re.sub(r"[^a-zA-Z0-9]+", "-", name).strip("-").lower()


def get_device_topic(prefix: str, device_id: str, name: str) -> str:
    """
    디바이스 상태 재발행 토픽 생성

    Args:
        prefix: 상태 토픽 접두사 (예: "honeywell/devices")
        device_id: 논리 디바이스 ID (예: "Honeywell_980740")
        name: 속성 이름 (예: "contact")

    Returns:
        전체 토픽 경로 (예: "honeywell/devices/Honeywell_980740/contact")
    """
    return f"{prefix.rstrip('/')}/{device_id}/{name}"


class Topics:
    """
    허브 상태 알림 토픽

    접속 성공 시 네 개 값을 발행하여 구독자가 허브 재시작을 감지할 수 있게 함
    """

    LWT = "LWT"          # online / offline (last will 대상)
    FIRMWARE = "FW"      # 호스트 버전 문자열
    IP = "IP"            # 호스트 주소
    UPTIME = "UPTIME"    # 호스트 가동 시간 (초)

    @classmethod
    def announcement_topics(cls):
        """알림 발행 순서"""
        return (cls.LWT, cls.FIRMWARE, cls.IP, cls.UPTIME)


class LinkStatus:
    """LWT 토픽 값"""
    ONLINE = "online"
    OFFLINE = "offline"


# Last will 설정 (브로커가 비정상 종료 시 대신 발행)
LAST_WILL_TOPIC = Topics.LWT
LAST_WILL_MESSAGE = LinkStatus.OFFLINE
LAST_WILL_QOS = 0
LAST_WILL_RETAIN = True
