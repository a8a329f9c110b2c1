#!/usr/bin/env python3
# scripts/bulk_upload_stores.py
"""
Upload every store from one or more JSON files in a single POST /stores/bulk.

  python scripts/bulk_upload_stores.py ralphs-stores.json walmart-stores.json \
      --base-url http://localhost:8000/api
"""
import argparse
import json
import os
import sys
from pathlib import Path
from typing import List

import httpx


def load_store_files(paths: List[str]) -> List[dict]:
    stores: List[dict] = []
    for p in paths:
        path = Path(p)
        if not path.exists():
            print(f"⚠️  Skipping {p} - file not found")
            continue
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            print(f"⚠️  Skipping {p} - expected a JSON array of stores")
            continue
        print(f"✅ Loaded {len(data)} stores from {path}")
        stores.extend(data)
    return stores


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("files", nargs="+", help="JSON files holding arrays of stores")
    ap.add_argument("--base-url", default=os.getenv("STORE_API_BASE_URL", "http://localhost:8000/api"))
    ap.add_argument("--auth-bearer", default=os.getenv("STORE_API_TOKEN"), help="Bearer token (optional)")
    ap.add_argument("--timeout", type=float, default=60.0)
    args = ap.parse_args()

    stores = load_store_files(args.files)
    if not stores:
        print("❌ No stores to upload!")
        return 1

    headers = {"Authorization": f"Bearer {args.auth_bearer}"} if args.auth_bearer else {}
    url = args.base_url.rstrip("/") + "/stores/bulk"
    print(f"\n📦 Uploading {len(stores)} stores to {url} in one request...")

    with httpx.Client(timeout=args.timeout, headers=headers) as client:
        r = client.post(url, json={"stores": stores})
    if r.status_code != 200:
        print(f"❌ Upload failed: {r.status_code} - {r.text}")
        return 1

    result = r.json()
    print("=" * 60)
    print(f"✅ Bulk upload complete: {result.get('count')} stores")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
