"""Proxy entrypoint.

Run directly::

    python -m front.main --electrumx-host 127.0.0.1 --electrumx-port 50010
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

import uvicorn
from bridge.client import CONNECTION_MODES, create_bridge
from dotenv import load_dotenv

from front.config import Settings
from front.server import create_app

log = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> Settings:
    defaults = Settings.from_env()
    parser = argparse.ArgumentParser(description="HTTP to ElectrumX JSON-RPC proxy")
    parser.add_argument("--host", type=str, default=defaults.host, help="Listen address")
    parser.add_argument("--port", type=int, default=defaults.port, help="Listen port")
    parser.add_argument(
        "--electrumx-host", type=str, default=defaults.electrumx_host, help="Backend host"
    )
    parser.add_argument(
        "--electrumx-port", type=int, default=defaults.electrumx_port, help="Backend TCP port"
    )
    parser.add_argument(
        "--connection-mode",
        choices=CONNECTION_MODES,
        default=defaults.connection_mode,
        help="shared: one locked long-lived socket; ephemeral: one socket per call",
    )
    parser.add_argument(
        "--read-timeout",
        type=float,
        default=defaults.read_timeout,
        help="Seconds to wait on each backend read",
    )
    parser.add_argument(
        "--connect-timeout",
        type=float,
        default=defaults.connect_timeout,
        help="Seconds to wait for the backend connection",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=defaults.log_level,
        help="Logging level",
    )

    args = parser.parse_args(argv)
    settings = Settings(
        host=args.host,
        port=args.port,
        electrumx_host=args.electrumx_host,
        electrumx_port=args.electrumx_port,
        connection_mode=args.connection_mode,
        read_timeout=args.read_timeout,
        connect_timeout=args.connect_timeout,
        log_level=args.log_level,
    )
    try:
        return settings.validate()
    except ValueError as exc:
        parser.error(str(exc))


def main(argv: list[str] | None = None) -> None:
    load_dotenv(os.path.join(Path.cwd(), ".env"))
    settings = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    bridge = create_bridge(
        settings.connection_mode,
        settings.electrumx_host,
        settings.electrumx_port,
        read_timeout=settings.read_timeout,
        connect_timeout=settings.connect_timeout,
    )
    log.info(
        "proxying %s:%d → %s:%d (%s connection)",
        settings.host,
        settings.port,
        settings.electrumx_host,
        settings.electrumx_port,
        bridge.mode,
    )
    uvicorn.run(
        create_app(bridge),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
