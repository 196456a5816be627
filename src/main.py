from __future__ import annotations

import argparse
import json
import logging
from typing import Sequence

import uvicorn

from api.catalog_api import create_catalog_app
from api.rate_api import create_rate_app
from config import config
from db.db import init_db
from db.repositories import seed_products
from services.ecb_client import EcbRateFeedClient
from services.price_converter import PriceConverter
from services.rate_client import RateServiceClient
from services.rate_table import RateTableHolder


def build_feed_client() -> EcbRateFeedClient:
    settings = config()
    return EcbRateFeedClient(
        url=settings.ecb_feed_url,
        timeout=settings.feed_timeout_seconds,
        retry_attempts=settings.feed_retry_attempts,
        max_age_days=settings.feed_max_age_days,
    )


def build_rate_client() -> RateServiceClient:
    settings = config()
    return RateServiceClient(base_url=settings.rate_service_url, timeout=settings.rate_call_timeout_seconds)


def serve_rates(host: str, port: int) -> None:
    app = create_rate_app(
        RateTableHolder(),
        build_feed_client(),
        startup_policy=config().rate_startup_policy,
    )
    uvicorn.run(app, host=host, port=port, log_config=None)


def serve_catalog(host: str, port: int) -> None:
    settings = config()
    session_factory = init_db(settings.catalog_db_url)
    with session_factory() as session:
        seed_products(session)
    converter = PriceConverter(build_rate_client(), base_currency=settings.catalog_base_currency)
    app = create_catalog_app(session_factory, converter)
    uvicorn.run(app, host=host, port=port, log_config=None)


def print_rate(base: str, destination: str) -> None:
    rate = build_rate_client().get_rate(base, destination)
    print(json.dumps({"base": base.upper(), "destination": destination.upper(), "rate": rate}))


def print_feed() -> None:
    snapshot = build_feed_client().fetch()
    payload = {
        "published_on": snapshot.published_on.isoformat() if snapshot.published_on else None,
        "rates": {entry.currency: entry.rate for entry in snapshot.rates},
    }
    print(json.dumps(payload, indent=2))


def main(argv: Sequence[str] | None = None) -> None:
    settings = config()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")

    parser = argparse.ArgumentParser(description="Exchange-rate service and currency-aware product catalog.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    rates_parser = subparsers.add_parser("rates", help="Serve the rate service.")
    rates_parser.add_argument("--host", default=settings.rate_service_host)
    rates_parser.add_argument("--port", type=int, default=settings.rate_service_port)

    catalog_parser = subparsers.add_parser("catalog", help="Serve the product catalog.")
    catalog_parser.add_argument("--host", default=settings.catalog_host)
    catalog_parser.add_argument("--port", type=int, default=settings.catalog_port)

    rate_parser = subparsers.add_parser("rate", help="Ask the rate service for one rate.")
    rate_parser.add_argument("base")
    rate_parser.add_argument("destination")

    subparsers.add_parser("feed", help="Fetch and print the current rate feed.")

    args = parser.parse_args(argv)
    if args.command == "rates":
        serve_rates(args.host, args.port)
    elif args.command == "catalog":
        serve_catalog(args.host, args.port)
    elif args.command == "rate":
        print_rate(args.base, args.destination)
    else:
        print_feed()


if __name__ == "__main__":
    main()
