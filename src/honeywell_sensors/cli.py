"""
honeywell-bridge command line

사용 예:
    honeywell-bridge -c config.yaml run
    honeywell-bridge -c config.yaml known
    honeywell-bridge -c config.yaml bind 980740 contact "Front Door"
    honeywell-bridge -c config.yaml set-loop Honeywell_980740 1
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

from .bridge import HoneywellBridge
from .config import load_config
from .exceptions import HoneywellError
from .log import configure_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='honeywell-bridge',
        description='Honeywell / Ademco 345MHz wireless sensors over rtl_433 and MQTT'
    )
    parser.add_argument('-c', '--config', default='config.yaml', help='YAML configuration file')
    parser.add_argument('--log-level', help='error, warn, info, debug or trace (overrides config)')

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('run', help='Connect, subscribe and route sensor events until interrupted')

    for name, help_text in (
        ('bind', 'Create a device for a sensor ID'),
        ('bind-discovered', 'Create a device for a sensor from the list of known sensors'),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument('sensor', help='Sensor ID (1-9999999)')
        cmd.add_argument('kind', help='contact or motion')
        cmd.add_argument('label', help='Device label')

    cmd = sub.add_parser('unbind', help='Remove a device and its sensor registration')
    cmd.add_argument('device', help='Device ID (e.g. Honeywell_980740)')

    cmd = sub.add_parser('set-loop', help='Select which sensor loop drives the device state')
    cmd.add_argument('device', help='Device ID')
    cmd.add_argument('loop', help='1 (contact), 2 (reed) or 3 (alarm)')

    cmd = sub.add_parser('wipe-device', help="Clear a device's state and loop setting")
    cmd.add_argument('device', help='Device ID')

    sub.add_parser('known', help='List discovered sensors not yet bound to a device')
    sub.add_parser('devices', help='List devices')
    sub.add_parser('reset', help='Clear known and registered sensors (devices are kept)')

    cmd = sub.add_parser('publish', help='Publish a test message')
    cmd.add_argument('topic')
    cmd.add_argument('message', nargs='?', default='')

    return parser


def _run(bridge: HoneywellBridge) -> None:
    bridge.connect()
    print(f"Listening on {bridge.topic} (Ctrl+C to stop)")
    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        bridge.disconnect()


def _execute(bridge: HoneywellBridge, args: argparse.Namespace) -> None:
    command = args.command

    if command == 'run':
        _run(bridge)

    elif command == 'bind':
        print(bridge.bind(args.sensor, args.kind, args.label))

    elif command == 'bind-discovered':
        print(bridge.bind_discovered(args.sensor, args.kind, args.label))

    elif command == 'unbind':
        bridge.unbind(args.device)

    elif command == 'set-loop':
        loop = bridge.set_loop(args.device, args.loop)
        print(f"{args.device}: {loop.label}")

    elif command == 'wipe-device':
        bridge.wipe_device_state(args.device)

    elif command == 'known':
        known = bridge.known_sensors()
        if not known:
            print("No known sensors")
        for sensor_id, record in sorted(known.items()):
            print(f"{sensor_id:>8}  {record}")

    elif command == 'devices':
        devices = bridge.devices()
        if not devices:
            print("No devices")
        for device in devices:
            print(device)

    elif command == 'reset':
        bridge.reset_state()

    elif command == 'publish':
        try:
            bridge.publish(args.topic, args.message)
        finally:
            bridge.disconnect()


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        level = args.log_level or config.log_level
        configure_logging(level)
        bridge = HoneywellBridge.from_config(config)
        if args.log_level:
            bridge.set_log_level(args.log_level)
        _execute(bridge, args)
    except HoneywellError as e:
        logger.error(f"{args.command}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
