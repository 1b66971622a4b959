"""
paho-mqtt Client Factory

paho-mqtt 1.x / 2.x 모두에서 동작하는 클라이언트 생성
2.x는 callback_api_version 인자가 필수이므로 VERSION1 콜백 시그니처를 지정
(on_connect(client, userdata, flags, rc) 형태 유지)
"""

from typing import Any, Dict

import paho.mqtt.client as mqtt


def create_mqtt_client(client_id: str = "", **kwargs: Any) -> mqtt.Client:
    """
    MQTT 클라이언트 생성

    Args:
        client_id: 클라이언트 ID
        kwargs: mqtt.Client 생성자에 전달할 추가 인자

    Returns:
        mqtt.Client (MQTT v3.1.1)
    """
    client_kwargs: Dict[str, Any] = {"client_id": client_id or ""}
    client_kwargs["protocol"] = kwargs.pop("protocol", mqtt.MQTTv311)
    client_kwargs.update(kwargs)

    callback_api_version = getattr(mqtt, "CallbackAPIVersion", None)
    if callback_api_version is not None:
        client_kwargs["callback_api_version"] = callback_api_version.VERSION1

    return mqtt.Client(**client_kwargs)
