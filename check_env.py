#!/usr/bin/env python3
"""Helper script to check and create the .env file for the shipping engine."""

from pathlib import Path
import os

SECRET_KEYS = ("SHIP_SUPABASE_KEY", "SHIP_MAPS_API_KEY")

TEMPLATE = """# Supabase Configuration (shipping configs and calculation history)
# Get these from: https://supabase.com/dashboard → Your Project → Settings → API
SHIP_SUPABASE_URL=https://your-project-id.supabase.co
SHIP_SUPABASE_KEY=your-service-role-key-here

# Distance provider (Google Distance Matrix compatible)
SHIP_MAPS_API_KEY=your-maps-api-key-here
# SHIP_DISTANCE_MATRIX_URL=https://maps.googleapis.com/maps/api/distancematrix/json
# SHIP_PROVIDER_TIMEOUT_SECONDS=10

# API Configuration
SHIP_API_PREFIX=/api
# SHIP_FRONTEND_ALLOWED_ORIGINS - Leave commented to use defaults
# If you need to override, use JSON array format: ["http://localhost:5173","http://127.0.0.1:5173"]
# Or comma-separated: http://localhost:5173,http://127.0.0.1:5173

# Pricing
# SHIP_LOCAL_TIMEZONE=Asia/Kolkata
# SHIP_DISTANCE_CACHE_WINDOW_MINUTES=60
"""


def _mask(value: str) -> str:
    if len(value) > 20:
        return value[:20] + "..." + value[-10:]
    return value


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Shipping Engine Environment Checker")
    print("=" * 60)
    print()

    if env_file.exists():
        print(f"✅ Found .env file at: {env_file}")
        print()
        print("Current contents:")
        print("-" * 60)
        with open(env_file, "r", encoding="utf-8") as f:
            for line in f.read().split("\n"):
                name, sep, value = line.partition("=")
                if sep and name.strip() in SECRET_KEYS:
                    print(f"{name}={_mask(value.strip())}")
                else:
                    print(line)
        print("-" * 60)
        print()
    else:
        print(f"❌ .env file NOT found at: {env_file}")
        print()
        print("Creating template .env file...")
        with open(env_file, "w", encoding="utf-8") as f:
            f.write(TEMPLATE)
        print(f"✅ Created .env file at: {env_file}")
        print()
        print("⚠️  Please edit .env and add your Supabase and maps credentials!")
        print()
        return

    print("Checking environment variables...")
    print()
    for name in ("SHIP_SUPABASE_URL", "SHIP_SUPABASE_KEY", "SHIP_MAPS_API_KEY"):
        value = os.getenv(name)
        if value:
            print(f"✅ {name} (from environment): {value[:20]}...")
        else:
            print(f"❌ {name} not found in environment")
    print()

    print("Testing config loading...")
    print()
    try:
        import sys
        sys.path.insert(0, str(project_root / "src"))
        from shipping_engine.config import settings

        supabase_ready = bool(settings.supabase_url and settings.supabase_key)
        provider_ready = bool(settings.maps_api_key)
        print(f"{'✅' if supabase_ready else '❌'} Supabase configured: {supabase_ready}")
        print(f"{'✅' if provider_ready else '❌'} Distance provider configured: {provider_ready}")
        print(f"   Peak hours evaluated in: {settings.local_timezone}")
        print()

        if supabase_ready and provider_ready:
            print("=" * 60)
            print("✅ SUCCESS: Shipping engine is configured!")
            print("=" * 60)
        else:
            print("=" * 60)
            print("❌ ERROR: Shipping engine is NOT fully configured")
            print("=" * 60)
            print()
            print("Troubleshooting:")
            print("1. Make sure .env file exists in project root")
            print("2. Make sure variables start with SHIP_ prefix")
            print("3. Without Supabase, configs and history are kept in memory only")
            print("4. Restart backend after editing .env")
            print()
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print()
        print("Make sure you're running this from the project root directory")


if __name__ == "__main__":
    main()
