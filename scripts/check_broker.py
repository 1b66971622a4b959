#!/usr/bin/env python3
"""
MQTT Broker Connection Check Script

브로커 접속 및 rtl_433 센서 이벤트 수신 확인용 스크립트
"""

import sys
import argparse
import logging
import time

# 로깅 설정
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def check_broker(host: str, port: int, topic: str, username=None, password=None,
                 listen: float = 10.0, verbose: bool = False) -> bool:
    """
    브로커 접속 확인

    Args:
        host: 브로커 주소
        port: 브로커 포트
        topic: 센서 이벤트 토픽
        username: 브로커 사용자
        password: 브로커 비밀번호
        listen: 이벤트 수신 대기 시간 (초)
        verbose: 수신 메시지 전체 출력 여부
    """
    # Add src to path
    import os
    sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

    from honeywell_sensors import (
        MQTTConnection, parse_record,
        HoneywellError, ConnectionError, ParseError
    )

    print(f"\n{'='*60}")
    print("MQTT Broker Connection Check")
    print(f"{'='*60}")
    print(f"Broker: tcp://{host}:{port}")
    print(f"Topic:  {topic}")
    print(f"{'='*60}\n")

    received = []

    def on_message(msg_topic, payload):
        try:
            record = parse_record(payload)
        except ParseError as e:
            print(f"  [WARN] Unparsable message: {e}")
            return
        received.append(record)
        if verbose:
            print(f"  {record.raw}")
        else:
            print(f"  {record}")

    try:
        with MQTTConnection(host, port=port, client_id="honeywell_check",
                            username=username, password=password) as conn:
            print("[OK] Broker connected (LWT=online published)\n")

            # ===== 이벤트 수신 =====
            print(f"[TEST] Sensor events ({listen:.0f}s)")
            conn.set_message_handler(on_message)
            conn.subscribe(topic)
            time.sleep(listen)

            sensors = {record.sensor_id for record in received}
            if received:
                print(f"\n  [OK] {len(received)} events from {len(sensors)} sensors")
            else:
                print("\n  [WARN] No sensor events received")
                print("  Check that rtl_433 is running with -F mqtt://...,events=<topic>")

            print(f"\n{'='*60}")
            print("[SUCCESS] Broker check finished")
            print(f"{'='*60}\n")

            return True

    except ConnectionError as e:
        print(f"\n[FAIL] Connection error: {e}")
        print("\nPossible causes:")
        print("  - Wrong broker address or port")
        print("  - Broker not running")
        print("  - Bad username or password")
        return False

    except HoneywellError as e:
        print(f"\n[FAIL] Bridge error: {e}")
        return False


def main():
    """메인 함수"""
    parser = argparse.ArgumentParser(
        description='MQTT Broker Connection Check',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --host 192.168.1.234                  # Default port and topic
  %(prog)s --host broker.local -u mqtt -P secret # With credentials
  %(prog)s --host 192.168.1.234 -t 60 -v         # Listen 60s, raw output
        """
    )

    parser.add_argument('--host', '-H', type=str, help='Broker address')
    parser.add_argument('--port', '-p', type=int, default=1883, help='Broker port')
    parser.add_argument('--topic', type=str, default='hubitat/honeywell/events',
                        help='rtl_433 events topic')
    parser.add_argument('--username', '-u', type=str, help='Broker username')
    parser.add_argument('--password', '-P', type=str, help='Broker password')
    parser.add_argument('--time', '-t', type=float, default=10.0,
                        help='Seconds to listen for sensor events')
    parser.add_argument('--verbose', '-v', action='store_true', help='Print raw messages')

    args = parser.parse_args()

    if not args.host:
        parser.print_help()
        print("\nError: Please specify --host")
        return 1

    success = check_broker(args.host, args.port, args.topic, args.username,
                           args.password, args.time, args.verbose)
    return 0 if success else 1


if __name__ == '__main__':
    sys.exit(main())
