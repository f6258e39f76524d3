import argparse, random, time, threading, requests
from datetime import datetime, timezone

SCENARIOS = [
    ("sortyx-sensor-two", lambda: {"battery": random.randint(60, 100), "distance": random.randint(10, 150), "tilt": "normal"}),
    ("bin-sensor-001", lambda: {"battery": random.randint(60, 100), "distance": random.randint(10, 150), "tilt": "normal",
                                "temperature": round(random.uniform(15.0, 30.0), 1)}),
    ("bin-sensor-002", lambda: {"battery": random.randint(60, 100), "distance": random.randint(10, 150),
                                "tilt": random.choice(["normal", "tilted"]), "temperature": round(random.uniform(15.0, 30.0), 1)}),
    ("environmental-sensor-001", lambda: {"battery": random.randint(60, 100), "temperature": round(random.uniform(15.0, 30.0), 1),
                                          "humidity": round(random.uniform(30.0, 80.0), 1),
                                          "pressure": round(random.uniform(990.0, 1030.0), 2)}),
]


def envelope(device_id, decoded_payload):
    now = datetime.now(timezone.utc).isoformat()
    return {
        "end_device_ids": {
            "device_id": device_id,
            "application_ids": {"application_id": "smart-waste-management"},
        },
        "received_at": now,
        "uplink_message": {
            "f_port": 1,
            "f_cnt": random.randint(0, 1000),
            "decoded_payload": decoded_payload,
            "rx_metadata": [
                {
                    "gateway_ids": {"gateway_id": "test-gateway-001"},
                    "rssi": random.randint(-100, -50),
                    "snr": round(random.uniform(-5.0, 10.0), 1),
                    "received_at": now,
                }
            ],
            "settings": {
                "data_rate": {"lora": {"bandwidth": 125000, "spreading_factor": 7, "coding_rate": "4/5"}},
                "frequency": "902300000",
            },
        },
    }


def one_device(device_id, make_payload, base_url, rps, count):
    interval = 1.0 / rps
    sent = 0
    while count is None or sent < count:
        try:
            r = requests.post(f"{base_url}/ttn", json=envelope(device_id, make_payload()), timeout=2)
            if r.status_code != 200:
                print(f"{device_id}: {r.status_code} {r.text}")
        except requests.RequestException as e:
            print(f"{device_id}: {e}")
        sent += 1
        time.sleep(interval)


def check(base_url):
    for path in ("/health", "/devices"):
        r = requests.get(f"{base_url}{path}", timeout=5)
        print(f"GET {path} -> {r.status_code} {r.text}")


if __name__ == "__main__":
    p = argparse.ArgumentParser()
    p.add_argument("--devices", type=int, default=len(SCENARIOS))
    p.add_argument("--rps", type=float, default=1.0, help="per-device requests/sec")
    p.add_argument("--count", type=int, default=None, help="uplinks per device, unbounded if omitted")
    p.add_argument("--check", action="store_true", help="hit /health before and /devices after")
    p.add_argument("--base-url", default="http://localhost:3000")
    args = p.parse_args()

    if args.check:
        check(args.base_url)

    print(f"Starting {args.devices} devices at {args.rps} rps to {args.base_url}")
    threads = []
    for i in range(args.devices):
        name, make_payload = SCENARIOS[i % len(SCENARIOS)]
        device_id = name if i < len(SCENARIOS) else f"{name}-{i}"
        t = threading.Thread(target=one_device, args=(device_id, make_payload, args.base_url, args.rps, args.count), daemon=True)
        t.start()
        threads.append(t)
    for t in threads:
        t.join()

    if args.check:
        check(args.base_url)
