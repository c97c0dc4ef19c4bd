#!/usr/bin/env python3
"""
healthcheck.py
- Basic healthcheck script for Docker HEALTHCHECK.
- Returns exit code 0 if the API answers /healthz, 1 if not.
"""

import os
import sys

import requests

API_PORT = os.getenv("API_PORT", "6060")
HEALTH_URL = os.getenv("HEALTH_URL", f"http://127.0.0.1:{API_PORT}/healthz")


def check(url=HEALTH_URL, timeout=2):
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        print(f"❌ Healthcheck failed: {e}")
        return False
    if response.status_code != 200:
        print(f"❌ Healthcheck failed: HTTP {response.status_code}")
        return False
    return True


def main():
    sys.exit(0 if check() else 1)


if __name__ == "__main__":
    main()
