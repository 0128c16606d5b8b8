#!/usr/bin/env python3
"""
Continuous marketplace traffic.
Keeps farmers and buyers active until stopped with Ctrl+C.
"""
import argparse
import os
import signal
import subprocess
import sys

process = None


def signal_handler(sig, frame):
    print('\n\nStopping traffic generation...')
    if process:
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
    sys.exit(0)


signal.signal(signal.SIGINT, signal_handler)
signal.signal(signal.SIGTERM, signal_handler)

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the marketplace traffic generator indefinitely")
    parser.add_argument("--users", type=int, default=20, help="Concurrent users (default: 20)")
    parser.add_argument("--url", type=str, default="http://localhost:8000", help="API URL")
    args = parser.parse_args()

    print("Starting continuous traffic generation...")
    print("Press Ctrl+C to stop")
    print(f"Using {args.users} concurrent farmers and buyers against {args.url}\n")

    script_dir = os.path.dirname(os.path.abspath(__file__))
    generate_traffic_path = os.path.join(script_dir, "generate-traffic.py")

    process = subprocess.Popen(
        [sys.executable, generate_traffic_path, "--users", str(args.users), "--duration", "999999", "--url", args.url],
        cwd=script_dir,
        stdout=sys.stdout,
        stderr=sys.stderr
    )
    process.wait()
