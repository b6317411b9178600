#!/usr/bin/env python3
"""
Development startup script.

Runs the mock store backend with auto-reload so the storefront client can be
pointed at it (STOREFRONT_API_BASE_URL=http://localhost:3000/api).

Usage:
    python scripts/start_dev.py
    MOCK_STORE_PORT=8080 python scripts/start_dev.py
"""

import importlib.util
import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent

REQUIRED_MODULES = ("fastapi", "uvicorn", "httpx", "pydantic_settings", "dotenv")


def check_dependencies() -> bool:
    """Check the server and client dependencies are importable."""
    missing = [name for name in REQUIRED_MODULES if importlib.util.find_spec(name) is None]
    if missing:
        print(f"✗ Missing dependencies: {', '.join(missing)}")
        print("\nRun: pip install -e .")
        return False
    print("✓ Dependencies installed")
    return True


def describe_env() -> None:
    """Report whether a .env file overrides the defaults."""
    if (PROJECT_ROOT / ".env").exists():
        print("✓ Using settings from .env")
    else:
        fee = os.getenv("MOCK_STORE_SHIPPING_FEE", "35000")
        print(f"! No .env file; shipping fee {fee}")


def print_fixtures(port: str) -> None:
    print("\n" + "=" * 60)
    print(f"Store API:   http://localhost:{port}/api")
    print(f"API docs:    http://localhost:{port}/docs")
    print("Demo token:  demo-token (200 loyalty points, two saved addresses)")
    print("New user:    new-user-token (no points, no addresses)")
    print("Codes:       SAVE5, TENPC, HALF5, FLAT1, ONCE1")
    print("=" * 60)
    print("Press Ctrl+C to stop\n")


def run_store(port: str) -> int:
    """Run uvicorn in the foreground until interrupted."""
    command = [
        sys.executable, "-m", "uvicorn",
        "mock_store.main:app",
        "--reload",
        "--host", "0.0.0.0",
        "--port", port,
    ]
    process = subprocess.Popen(command, cwd=PROJECT_ROOT)
    try:
        return process.wait()
    except KeyboardInterrupt:
        print("\nStopping mock store...")
        process.terminate()
        return process.wait()


def main():
    print("Storefront Checkout - Mock Store (development)")

    if not check_dependencies():
        sys.exit(1)
    describe_env()

    port = os.getenv("MOCK_STORE_PORT", "3000")
    print_fixtures(port)
    sys.exit(run_store(port))


if __name__ == "__main__":
    main()
