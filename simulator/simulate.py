import time, random, argparse, json, datetime, urllib.request
def post(api, path, payload, token):
    req = urllib.request.Request(api + path, data=json.dumps(payload).encode('utf-8'),
        headers={'Content-Type':'application/json', 'X-Device-Token': token})
    with urllib.request.urlopen(req, timeout=10) as resp:
        return json.loads(resp.read().decode())
def main():
    p = argparse.ArgumentParser(description="Fake four-channel thermo device")
    p.add_argument('--api', default='http://localhost:8000')
    p.add_argument('--token', required=True, help='device token given at provisioning')
    p.add_argument('--rate', type=float, default=5.0)
    p.add_argument('--base', type=float, default=60.0)
    p.add_argument('--drop', type=float, default=0.05, help='probability a channel reads NaN')
    args = p.parse_args()
    print(f"Streaming to {args.api} every {args.rate}s... CTRL+C to stop")
    temp, heating = args.base, False
    while True:
        # crude plant: heats while the relays are on, cools otherwise
        temp += random.gauss(0.4 if heating else -0.3, 0.1)
        chans = [temp + random.gauss(0, 0.2) for _ in range(4)]
        chans = [float('nan') if random.random() < args.drop else round(c, 2) for c in chans]
        payload = {"s1": chans[0], "s2": chans[1], "s3": chans[2], "s4": chans[3],
            "ts": datetime.datetime.now(datetime.timezone.utc).isoformat()}
        try:
            out = post(args.api, "/api/thermo/push", payload, args.token)
            heating = bool(out["desired"]["relay1"])
            pv = out.get("pv")
            print(f"pv={pv} relays={'ON' if heating else 'OFF'} sp={out['setpoint']} h={out['hysteresis']} mode={out['mode']}")
        except Exception as e: print("Error:", e)
        time.sleep(args.rate)
if __name__ == "__main__": main()
