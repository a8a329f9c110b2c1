#!/usr/bin/env python3
# scripts/remove_duplicates.py
"""
Find stores sharing an address (trimmed, case-insensitive) and delete every
copy except the first one listed by GET /stores/all.
"""
import argparse
import os
import sys
from typing import Dict, List, Tuple

import httpx


def find_duplicate_ids(stores: List[dict]) -> Tuple[Dict[str, List[dict]], List[int]]:
    """
    Returns ({normalized address: [stores...]} for addresses seen more than
    once, [ids to delete]). The first store of each group is kept.
    """
    by_address: Dict[str, List[dict]] = {}
    for s in stores:
        key = (s.get("address") or "").strip().lower()
        by_address.setdefault(key, []).append(s)

    dupes = {k: v for k, v in by_address.items() if len(v) > 1}
    to_delete = [s["id"] for group in dupes.values() for s in group[1:]]
    return dupes, to_delete


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--base-url", default=os.getenv("STORE_API_BASE_URL", "http://localhost:8000/api"))
    ap.add_argument("--auth-bearer", default=os.getenv("STORE_API_TOKEN"))
    ap.add_argument("--dry-run", action="store_true", help="Only report duplicates")
    args = ap.parse_args()

    base = args.base_url.rstrip("/")
    headers = {"Authorization": f"Bearer {args.auth_bearer}"} if args.auth_bearer else {}

    with httpx.Client(timeout=60.0, headers=headers) as client:
        r = client.get(f"{base}/stores/all")
        r.raise_for_status()
        stores = r.json().get("stores", [])
        print(f"📊 Total stores in database: {len(stores)}")

        dupes, to_delete = find_duplicate_ids(stores)
        print(f"🔴 Found {len(dupes)} addresses with duplicates")
        for group in dupes.values():
            print(f"   📍 {group[0]['address']} ({len(group)} copies, {group[0].get('retailer')})")

        if not to_delete:
            print("✅ No duplicates found! Database is clean.")
            return 0
        if args.dry_run:
            print(f"Would delete {len(to_delete)} stores: {to_delete}")
            return 0

        deleted = 0
        for store_id in to_delete:
            resp = client.delete(f"{base}/stores/{store_id}")
            if resp.status_code == 200:
                deleted += 1
            else:
                print(f"❌ Failed to delete store {store_id}: {resp.status_code}")

    print(f"✅ Removed {deleted} duplicates, {len(stores) - deleted} stores remain")
    return 0 if deleted == len(to_delete) else 1


if __name__ == "__main__":
    sys.exit(main())
