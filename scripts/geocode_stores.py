#!/usr/bin/env python3
# scripts/geocode_stores.py
"""
Refresh lat/lon of every store in a JSON file from Nominatim (OpenStreetMap).
Stores that fail to geocode keep their old coordinates. Rewrites the file.
"""
import argparse
import json
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import httpx

UA = "store-locator/1.0 (geocode_stores.py)"  # Nominatim requires a User-Agent
NOMINATIM = "https://nominatim.openstreetmap.org/search"
DELAY_S = 1.1  # Nominatim policy: max 1 req/sec


def geocode(client: httpx.Client, address: str) -> Optional[Tuple[float, float]]:
    params = {"q": address, "format": "json", "limit": 1}
    try:
        r = client.get(NOMINATIM, params=params, headers={"User-Agent": UA})
        r.raise_for_status()
        data = r.json()
    except (httpx.HTTPError, ValueError) as e:
        print(f"   ❌ Geocoding error: {e}")
        return None
    if not data:
        return None
    # 4 decimals ~ 11 m
    return round(float(data[0]["lat"]), 4), round(float(data[0]["lon"]), 4)


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("file", help="JSON array of stores")
    args = ap.parse_args()

    path = Path(args.file)
    stores = json.loads(path.read_text(encoding="utf-8"))
    print(f"📍 Found {len(stores)} stores to geocode")

    ok = failed = 0
    updated = []
    with httpx.Client(timeout=30.0) as client:
        for i, store in enumerate(stores, start=1):
            print(f"[{i}/{len(stores)}] {store['address']}  old=({store.get('lat')}, {store.get('lon')})")
            coords = geocode(client, store["address"])
            if coords:
                lat, lon = coords
                print(f"   new=({lat}, {lon}) ✅")
                updated.append({**store, "lat": lat, "lon": lon})
                ok += 1
            else:
                print("   ⚠️  keeping original coordinates")
                updated.append(store)
                failed += 1
            if i < len(stores):
                time.sleep(DELAY_S)

    path.write_text(json.dumps(updated, indent=2), encoding="utf-8")
    print(f"\n✅ Success: {ok}  ⚠️ Failed: {failed}  📁 Saved to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
