"""
Honeywell Sensors Custom Exceptions
"""


class HoneywellError(Exception):
    """Honeywell 센서 브리지 기본 예외"""
    pass


class ConnectionError(HoneywellError):
    """MQTT 브로커 연결 오류 (접속 불가, 인증 실패)"""
    pass


class CommunicationError(HoneywellError):
    """연결된 상태에서 발행/구독 요청이 거부됨"""
    pass


class ParseError(HoneywellError):
    """센서 메시지(JSON) 파싱 오류"""
    pass


class ValidationError(HoneywellError):
    """잘못된 관리 명령 입력 또는 설정 값"""
    pass


class NotFoundError(HoneywellError):
    """대상 디바이스/센서 ID 없음"""
    pass


class BindingConflictError(HoneywellError):
    """이미 등록된 센서 재등록 (경고만, 치명적 아님)"""
    pass


class StorageError(HoneywellError):
    """상태 파일 잠금 획득 실패 또는 쓰기 오류"""
    pass
