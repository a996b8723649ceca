#!/usr/bin/env python3
"""Quick smoke test against a running API (local or deployed).

    ROBOTAXI_API_URL=https://my-deploy.example.com python smoke_api.py
"""

import json
import os
import sys

import requests

API_URL = os.environ.get("ROBOTAXI_API_URL", "http://localhost:8000")


def main() -> int:
    print("=" * 60)
    print(f"Smoke testing Robotaxi API at {API_URL}")
    print("=" * 60)
    print()

    # 1. Health check
    print("1. Health check...")
    try:
        health = requests.get(f"{API_URL}/health", timeout=10)
        print(f"   ✓ Status: {health.status_code}")
        print(f"   ✓ Response: {health.json()}")
    except requests.RequestException as e:
        print(f"   ✗ Failed: {e}")
        return 1
    print()

    # 2. Context manifest
    print("2. Getting context (full)...")
    try:
        ctx = requests.get(f"{API_URL}/context?detail_level=full", timeout=30).json()
        print(f"   ✓ Simulator: {ctx['simulator_name']}")
        print(f"   ✓ Inputs: {len(ctx['inputs'])}")
        print(f"   ✓ Endpoints: {len(ctx['endpoints'])}")
        print(f"   ✓ Size: ~{len(json.dumps(ctx)):,} chars")
    except (requests.RequestException, KeyError) as e:
        print(f"   ✗ Failed: {e}")
        return 1
    print()

    # 3. Base-case simulation
    print("3. Running base-case simulation...")
    try:
        sim = requests.post(f"{API_URL}/simulate", json={"inputs": {}}, timeout=30).json()
        econ = sim["snapshot"]["economics"]
        print(f"   ✓ Cost per mile: ${econ['total_cost_per_mile']:.2f}")
        print(f"   ✓ Margin per mile: ${econ['margin_per_mile']:.2f}")
        print(f"   ✓ Status: {sim['snapshot']['status']}")
        print(f"   ✓ Top lever: {sim['levers']['impacts'][0]['name']}")
    except (requests.RequestException, KeyError) as e:
        print(f"   ✗ Failed: {e}")
        return 1
    print()

    # 4. Cost curve
    print("4. Sampling deadhead curve...")
    try:
        curve = requests.post(
            f"{API_URL}/simulate/curve",
            json={"inputs": {}, "variable": "deadhead"},
            timeout=30,
        ).json()
        flagged = [p for p in curve["points"] if p["is_current_point"]]
        print(f"   ✓ Points: {len(curve['points'])}")
        print(f"   ✓ Current point: {flagged[0]['x'] if flagged else 'off-grid'}")
    except (requests.RequestException, KeyError) as e:
        print(f"   ✗ Failed: {e}")
        return 1
    print()

    print("=" * 60)
    print("✓ All checks passed.")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
