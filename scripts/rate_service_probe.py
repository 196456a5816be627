# flake8: noqa E402
# Run against a running rate service, e.g.:
# uv run scripts/rate_service_probe.py --base EUR --destination USD BRL GBP
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

# Ensure the src directory is importable when the script is invoked via uv/python directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from config import config
from services.rate_client import RateServiceClient, RateServiceError


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query the rate service for one base and several destinations.")
    parser.add_argument("--url", default=None, help="Rate service URL (default: RATE_SERVICE_URL setting).")
    parser.add_argument("--base", default="EUR", help="Base currency code (default: EUR).")
    parser.add_argument("destinations", nargs="*", default=["USD"], help="Destination currency codes.")
    parser.add_argument("--describe", action="store_true", help="Print the service description first.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = config()
    client = RateServiceClient(
        base_url=args.url or settings.rate_service_url,
        timeout=settings.rate_call_timeout_seconds,
    )

    if args.describe:
        print(json.dumps(client.describe(), indent=2))

    payload: dict[str, Any] = {"base": args.base.upper(), "rates": {}, "errors": {}}
    for destination in args.destinations:
        try:
            payload["rates"][destination.upper()] = client.get_rate(args.base, destination)
        except (RateServiceError, ValueError) as exc:
            payload["errors"][destination.upper()] = str(exc)
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
