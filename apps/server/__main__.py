from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Final

from ports.bus import BusConnectionError
from shared.config.loader import ConfigError, load_server_settings

from apps.server.compose import ServerApp, build_bus
from apps.server.settings import ServerSettings

LOG: Final = logging.getLogger("responder")

LOG_FORMAT: Final = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_logging(quiet: bool, verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


async def run(settings: ServerSettings) -> int:
    bus = build_bus(settings)
    try:
        await bus.connect()
    except BusConnectionError as ex:
        LOG.error("%s", ex)
        return 1

    if settings.bus_impl == "nats":
        LOG.info("NATS Server listening on %s with authentication", settings.nats_url)
    else:
        LOG.warning("Using the in-process bus; only local publishers can reach it")
    try:
        await ServerApp(bus).serve()
    finally:
        await bus.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="ncr-server")
    ap.add_argument("--profile", help="Config profile under configs/profiles (default: dev).")
    ap.add_argument("--env-file", default=".env", help="Path to a .env file (default: ./.env).")
    ap.add_argument("--quiet", action="store_true", help="Only log warnings and errors.")
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = ap.parse_args(argv)

    _configure_logging(args.quiet, args.verbose)

    try:
        settings = load_server_settings(profile=args.profile, dotenv_path=args.env_file)
    except ConfigError as ex:
        LOG.error("Configuration error: %s", ex)
        return 2

    try:
        return asyncio.run(run(settings))
    except KeyboardInterrupt:
        LOG.info("Shutting down...")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
