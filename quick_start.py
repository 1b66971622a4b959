from honeywell_sensors import HoneywellBridge, load_config, configure_logging

config = load_config('config.yaml')
configure_logging(config.log_level)

bridge = HoneywellBridge.from_config(config)

# 접속 + rtl_433 이벤트 토픽 구독
bridge.connect()

# 발견된 센서 확인
for sensor_id, record in bridge.known_sensors().items():
    print(f"{sensor_id}: {record}")

# 센서 등록 후 루프 선택 (Loop 2 = Reed)
device_id = bridge.bind(980740, "contact", "Front Door")
bridge.set_loop(device_id, 2)

for device in bridge.devices():
    print(device)

bridge.disconnect()
