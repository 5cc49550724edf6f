#!/usr/bin/env python3
"""
Smoke check against a running audit server.

Posts https://example.com to /api/generate-audit, retrying while the server
starts, and writes the returned document to test_audit.docx.
"""

import sys
import time
from pathlib import Path

import httpx

DEFAULT_ENDPOINT = "http://localhost:3000/api/generate-audit"
MAX_RETRIES = 30
RETRY_DELAY_S = 2
MAX_SERVER_ERRORS = 5


def verify(endpoint: str = DEFAULT_ENDPOINT, output_path: Path = Path("test_audit.docx")) -> int:
    server_errors = 0
    for attempt in range(1, MAX_RETRIES + 1):
        print(f"Attempt {attempt}: Connecting to API...")
        try:
            response = httpx.post(endpoint, json={"url": "https://example.com"}, timeout=90)
        except httpx.HTTPError as e:
            print(f"Connection failed (server might be starting)... {e}")
        else:
            if response.status_code == 200:
                output_path.write_bytes(response.content)
                print(f"Success: {output_path} created, size: {len(response.content)}")
                return 0
            print(f"Status: {response.status_code}")
            print(f"Body: {response.text}")
            server_errors += 1
            if server_errors > MAX_SERVER_ERRORS:
                return 1
        time.sleep(RETRY_DELAY_S)

    print("Failed to connect after retries", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(verify(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_ENDPOINT))
