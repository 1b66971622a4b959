"""
Logging Levels

error / warn / info / debug / trace 다섯 단계
trace는 logging.DEBUG 아래의 사용자 정의 레벨 (5)
"""

import logging
from enum import Enum
from typing import Optional, Union

from .exceptions import ValidationError


TRACE = 5
logging.addLevelName(TRACE, "TRACE")

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
PACKAGE_LOGGER = 'honeywell_sensors'


class LogLevel(Enum):
    """최소 로그 레벨"""
    ERROR = logging.ERROR
    WARN = logging.WARNING
    INFO = logging.INFO
    DEBUG = logging.DEBUG
    TRACE = TRACE

    @classmethod
    def parse(cls, value: Union['LogLevel', int, str]) -> 'LogLevel':
        """
        로그 레벨 파싱

        이름("info", "WARNING") 또는 설정 화면 번호(1=trace ... 5=error) 허용

        Raises:
            ValidationError: 알 수 없는 레벨
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool) or value is None:
            raise ValidationError(f"Unknown log level: {value!r}")

        text = str(value).strip().lower()
        if text in _LEVEL_ALIASES:
            return _LEVEL_ALIASES[text]
        raise ValidationError(
            f"Unknown log level: {value!r} (expected error, warn, info, debug or trace)"
        )


_LEVEL_ALIASES = {
    'error': LogLevel.ERROR,
    'warn': LogLevel.WARN,
    'warning': LogLevel.WARN,
    'info': LogLevel.INFO,
    'debug': LogLevel.DEBUG,
    'trace': LogLevel.TRACE,
    '5': LogLevel.ERROR,
    '4': LogLevel.WARN,
    '3': LogLevel.INFO,
    '2': LogLevel.DEBUG,
    '1': LogLevel.TRACE,
}

DEFAULT_LOG_LEVEL = LogLevel.INFO


def configure_logging(
    level: Union[LogLevel, int, str] = DEFAULT_LOG_LEVEL,
    fmt: str = DEFAULT_FORMAT,
    handler: Optional[logging.Handler] = None
) -> LogLevel:
    """
    패키지 로거 설정

    Args:
        level: 최소 로그 레벨
        fmt: 로그 포맷
        handler: 출력 핸들러 (None이면 stderr StreamHandler)

    Returns:
        적용된 LogLevel
    """
    log_level = LogLevel.parse(level)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(log_level.value)

    if handler is None and not package_logger.handlers:
        handler = logging.StreamHandler()
    if handler is not None:
        handler.setFormatter(logging.Formatter(fmt))
        package_logger.addHandler(handler)

    return log_level
