"""
CRITICAL WARNING:
Do NOT run against production database.
These scripts intentionally trigger conflict scenarios.
Use only in local or CI test environments.

Usage:
    python scripts/concurrency_stress_test.py /path/to/existing/weather.csv

The data source must exist on the server host unless the server runs with
SIMULATION_VALIDATE_DATA_SOURCE_FILE=false.
"""

import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from concurrent.futures import ThreadPoolExecutor, as_completed

import requests

BASE = os.environ.get("STRESS_BASE_URL", "http://127.0.0.1:8000/api/v1")
WORKERS = int(os.environ.get("STRESS_WORKERS", "10"))


def safe_json(resp, label):
    if "application/json" not in resp.headers.get("Content-Type", ""):
        print(f"[{label}] Non-JSON: {resp.text[:200]}")
        return None
    try:
        return resp.json()
    except ValueError:
        return None


def headers(etag=None):
    h = {
        "Content-Type": "application/json",
        "X-Correlation-ID": str(uuid.uuid4()),
    }
    if etag:
        h["If-Match"] = etag
    return h


def run(data_source):
    print(
        f"=== Concurrency stress test ({WORKERS} parallel PATCHes with one ETag, "
        f"expect 1x200, {WORKERS - 1}x409) ==="
    )

    start_time = (datetime.now(timezone.utc) + timedelta(days=1)).strftime(
        "%Y-%m-%dT%H:%M:%SZ"
    )
    r = requests.post(
        f"{BASE}/simulations",
        headers=headers(),
        json={
            "name": f"Stress-{uuid.uuid4().hex[:8]}",
            "startTime": start_time,
            "dataSource": data_source,
        },
    )
    j = safe_json(r, "CREATE")
    if r.status_code != 201 or not j or "data" not in j:
        print("CREATE SIMULATION failed:", r.status_code, j)
        sys.exit(1)

    simulation_id = j["data"]["id"]
    etag = r.headers["ETag"]

    def patch_once(i):
        resp = requests.patch(
            f"{BASE}/simulations/{simulation_id}",
            headers=headers(etag),
            json={"name": f"Writer-{i}"},
        )
        return resp.status_code

    codes = []
    with ThreadPoolExecutor(max_workers=WORKERS) as executor:
        futures = [executor.submit(patch_once, i) for i in range(WORKERS)]
        for f in as_completed(futures):
            codes.append(f.result())

    ok = sum(1 for c in codes if c == 200)
    conflict = sum(1 for c in codes if c == 409)
    if ok != 1 or conflict != WORKERS - 1:
        print(
            f"INVARIANT BROKEN: expected 1x200, {WORKERS - 1}x409; "
            f"got {ok}x200, {conflict}x409"
        )
        print("Status codes:", sorted(codes))
        sys.exit(1)

    r = requests.get(f"{BASE}/audit/", params={"simulationId": simulation_id})
    j = safe_json(r, "AUDIT")
    if not j or j.get("count") != 1:
        print("INVARIANT BROKEN: expected exactly one audit entry:", j)
        sys.exit(1)

    print(f"OK: 1x200, {WORKERS - 1}x409, one audit entry as expected.")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    run(sys.argv[1])
