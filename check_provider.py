#!/usr/bin/env python3
"""Script to verify connectivity to the distance matrix provider."""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from shipping_engine.config import settings
from shipping_engine.errors import ProviderError
from shipping_engine.services.geo.distance_client import (
    HEALTH_CHECK_DESTINATION,
    HEALTH_CHECK_ORIGIN,
    DistanceMatrixClient,
)


def main():
    print("=" * 60)
    print("Distance Provider Connection Test")
    print("=" * 60)
    print()

    print("1. Checking provider configuration...")
    if not settings.maps_api_key:
        print("   [ERROR] Maps API key is not configured")
        print("   Please set SHIP_MAPS_API_KEY in your .env file")
        return 1

    print(f"   [OK] Provider URL: {settings.distance_matrix_url}")
    print(f"   [OK] Timeout: {settings.provider_timeout_seconds}s")
    print()

    print("2. Requesting a sample distance...")
    try:
        client = DistanceMatrixClient.from_settings(settings)
        result = client.get_distance(HEALTH_CHECK_ORIGIN, HEALTH_CHECK_DESTINATION)
    except ProviderError as e:
        print(f"   [ERROR] {e.message} ({e.detail})")
        return 1

    print(f"   [OK] Distance: {result.distance_km:.2f} km ({result.distance_text})")
    print(f"   [OK] Duration: {result.duration_seconds:.0f} seconds ({result.duration_text})")
    if result.duration_in_traffic_seconds is not None:
        print(f"   [OK] Duration in traffic: {result.duration_in_traffic_seconds:.0f} seconds")
    else:
        print("   [WARN] Provider did not return duration_in_traffic")
    print()

    print("=" * 60)
    print("[SUCCESS] Distance provider is connected and working!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
