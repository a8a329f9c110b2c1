#!/usr/bin/env python3
# scripts/clear_all_stores.py
import argparse
import os
import sys

import httpx


def main() -> int:
    ap = argparse.ArgumentParser(description="Delete ALL stores (DELETE /stores)")
    ap.add_argument("--base-url", default=os.getenv("STORE_API_BASE_URL", "http://localhost:8000/api"))
    ap.add_argument("--auth-bearer", default=os.getenv("STORE_API_TOKEN"))
    ap.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = ap.parse_args()

    if not args.yes:
        answer = input("⚠️  This deletes ALL stores. Type 'yes' to continue: ")
        if answer.strip().lower() != "yes":
            print("Aborted.")
            return 1

    headers = {"Authorization": f"Bearer {args.auth_bearer}"} if args.auth_bearer else {}
    with httpx.Client(timeout=60.0, headers=headers) as client:
        r = client.delete(args.base_url.rstrip("/") + "/stores")
    if r.status_code != 200:
        print(f"❌ Failed to clear stores: {r.status_code} - {r.text}")
        return 1

    print(f"🗑️  Deleted: {r.json().get('deleted', 0)} stores")
    print("Next step: python scripts/bulk_upload_stores.py <files>")
    return 0


if __name__ == "__main__":
    sys.exit(main())
