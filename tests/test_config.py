"""
Configuration / Logging Unit Tests

YAML 설정 로드 및 로그 레벨 테스트
"""

import pytest
import sys
import os
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from honeywell_sensors.config import (
    parse_config, load_config, default_client_id, DEFAULT_STATE_FILE
)
from honeywell_sensors.log import (
    LogLevel, TRACE, PACKAGE_LOGGER, configure_logging
)
from honeywell_sensors.mqtt_topics import DEFAULT_EVENT_TOPIC, DEFAULT_STATE_TOPIC_PREFIX
from honeywell_sensors.exceptions import ValidationError


CONFIG_YAML = """
broker:
  host: 192.168.1.234
  port: 1884
  username: mqtt_user
  password: secret
  topic: rtl433/events
  client_id: honeywell_hub
state_file: /var/lib/honeywell/state.json
state_topic_prefix: home/sensors
log_level: debug
"""


class TestParseConfig:
    """설정 딕셔너리 파싱"""

    def test_minimal(self):
        config = parse_config({"broker": {"host": "broker.local"}})

        assert config.broker.host == "broker.local"
        assert config.broker.port == 1883
        assert config.broker.topic == DEFAULT_EVENT_TOPIC
        assert config.broker.username is None
        assert config.broker.client_id.startswith("honeywell_")
        assert config.state_file == DEFAULT_STATE_FILE
        assert config.state_topic_prefix == DEFAULT_STATE_TOPIC_PREFIX
        assert config.log_level == LogLevel.INFO

    def test_uri(self):
        config = parse_config({"broker": {"host": "10.0.0.5", "port": 8883}})
        assert config.broker.uri == "tcp://10.0.0.5:8883"

    def test_missing_host(self):
        with pytest.raises(ValidationError):
            parse_config({"broker": {"port": 1883}})

    def test_empty_config(self):
        with pytest.raises(ValidationError):
            parse_config(None)

    def test_not_a_mapping(self):
        with pytest.raises(ValidationError):
            parse_config(["broker"])

    @pytest.mark.parametrize("port", [0, 70000, "abc", True])
    def test_bad_port(self, port):
        with pytest.raises(ValidationError):
            parse_config({"broker": {"host": "h", "port": port}})

    def test_bad_connect_timeout(self):
        with pytest.raises(ValidationError):
            parse_config({"broker": {"host": "h", "connect_timeout": "soon"}})

    def test_bad_log_level(self):
        with pytest.raises(ValidationError):
            parse_config({"broker": {"host": "h"}, "log_level": "loud"})

    def test_default_client_id(self):
        client_id = default_client_id()
        assert client_id.startswith("honeywell_")
        assert " " not in client_id


class TestLoadConfig:
    """YAML 파일 로드"""

    def test_load(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(CONFIG_YAML, encoding='utf-8')

        config = load_config(path)

        assert config.broker.host == "192.168.1.234"
        assert config.broker.port == 1884
        assert config.broker.username == "mqtt_user"
        assert config.broker.password == "secret"
        assert config.broker.topic == "rtl433/events"
        assert config.broker.client_id == "honeywell_hub"
        assert config.state_file == "/var/lib/honeywell/state.json"
        assert config.state_topic_prefix == "home/sensors"
        assert config.log_level == LogLevel.DEBUG

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("broker: [unclosed", encoding='utf-8')
        with pytest.raises(ValidationError):
            load_config(path)


class TestLogLevel:
    """로그 레벨 파싱"""

    @pytest.mark.parametrize("value,expected", [
        ("error", LogLevel.ERROR),
        ("WARN", LogLevel.WARN),
        ("warning", LogLevel.WARN),
        ("info", LogLevel.INFO),
        ("debug", LogLevel.DEBUG),
        ("trace", LogLevel.TRACE),
        (1, LogLevel.TRACE),
        ("5", LogLevel.ERROR),
        (LogLevel.DEBUG, LogLevel.DEBUG),
    ])
    def test_parse(self, value, expected):
        assert LogLevel.parse(value) == expected

    @pytest.mark.parametrize("value", ["verbose", 0, 6, None, True])
    def test_parse_invalid(self, value):
        with pytest.raises(ValidationError):
            LogLevel.parse(value)

    def test_trace_below_debug(self):
        assert TRACE < logging.DEBUG
        assert logging.getLevelName(TRACE) == "TRACE"

    def test_configure_logging(self):
        handler = logging.NullHandler()
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        try:
            level = configure_logging("warn", handler=handler)

            assert level == LogLevel.WARN
            assert package_logger.level == logging.WARNING
            assert handler in package_logger.handlers
        finally:
            package_logger.removeHandler(handler)
            package_logger.setLevel(logging.NOTSET)
