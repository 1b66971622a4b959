"""
Honeywell Sensors Basic Usage Example

Honeywell / Ademco 무선 센서 브리지 기본 사용 예제
"""

import sys
import logging

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# 브로커 설정 (환경에 맞게 변경)
BROKER_HOST = '192.168.1.234'
EVENT_TOPIC = 'hubitat/honeywell/events'


def example_offline_routing():
    """
    브로커 없이 라우팅 동작 확인

    MemoryStore + LoggingDeviceSink로 레지스트리와 라우터만 사용합니다.
    """
    from honeywell_sensors import (
        SensorRegistry, EventRouter, MemoryStore, LoggingDeviceSink, SystemClock, Loop
    )

    print(f"\n{'='*50}")
    print("Offline Routing Example")
    print(f"{'='*50}\n")

    registry = SensorRegistry(MemoryStore())
    router = EventRouter(registry, LoggingDeviceSink(), SystemClock())

    # ===== 발견 =====
    print("[Discovery]")
    outcome = router.route('{"id": 980740, "channel": 8, "event": 128, "reed_open": 1}')
    print(f"  First message: {outcome.value}")
    for sensor_id, record in registry.known_sensors().items():
        print(f"  Known: {sensor_id} {record}")

    # ===== 등록 =====
    print("\n[Bind]")
    device_id = registry.bind(980740, "contact", "Front Door")
    print(f"  Device: {registry.get_device(device_id)}")

    # ===== 라우팅 =====
    print("\n[Routing]")
    router.route('{"id": 980740, "contact_open": 0, "reed_open": 1, "alarm": 0}')

    # 루프 변경 (Loop 1 = Contact)
    registry.set_loop(device_id, Loop.CONTACT)
    router.route('{"id": 980740, "contact_open": 0, "reed_open": 1, "alarm": 0}')
    print(f"  Device: {registry.get_device(device_id)}")


def example_bridge():
    """
    브로커 연결 예제

    Context manager로 연결/해제를 관리합니다.
    """
    import time
    from honeywell_sensors import (
        HoneywellBridge, MQTTConnection, SensorRegistry, JsonFileStore, MqttDeviceSink
    )

    print(f"\n{'='*50}")
    print("Bridge Example")
    print(f"Broker: {BROKER_HOST}")
    print(f"{'='*50}\n")

    with MQTTConnection(BROKER_HOST) as conn:
        bridge = HoneywellBridge(
            conn,
            SensorRegistry(JsonFileStore('honeywell_state.json')),
            MqttDeviceSink(conn),
            topic=EVENT_TOPIC
        )
        bridge.subscribe(EVENT_TOPIC)

        print("Listening for 30 seconds...")
        time.sleep(30)

        print("\n[Known Sensors]")
        for sensor_id, record in bridge.known_sensors().items():
            print(f"  {sensor_id}: {record}")

        print("\n[Devices]")
        for device in bridge.devices():
            print(f"  {device}")

    print("\n[Done] Connection closed automatically")


def example_error_handling():
    """
    에러 처리 예제
    """
    from honeywell_sensors import (
        SensorRegistry, MemoryStore,
        HoneywellError, ValidationError, NotFoundError
    )

    registry = SensorRegistry(MemoryStore())

    try:
        registry.bind("12345678", "contact", "Too Long")
    except ValidationError as e:
        print(f"Invalid input: {e}")

    try:
        registry.set_loop("Honeywell_1", 2)
    except NotFoundError as e:
        print(f"Not found: {e}")

    try:
        registry.bind(1, "smoke", "Hall")
    except HoneywellError as e:
        print(f"Bridge error: {e}")


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Honeywell Sensors Usage Examples')
    parser.add_argument(
        '--example',
        choices=['offline', 'bridge', 'error'],
        default='offline',
        help='Example to run (default: offline)'
    )

    args = parser.parse_args()

    if args.example == 'offline':
        example_offline_routing()
    elif args.example == 'bridge':
        example_bridge()
    elif args.example == 'error':
        example_error_handling()
    else:
        sys.exit(1)
