"""Command-line launcher serving the game API with uvicorn."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

import structlog
import uvicorn

from .api import create_app
from .config import load_settings

logger = structlog.get_logger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Scattergories game server")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument(
        "--no-clock",
        action="store_true",
        help="do not tick turns server-side; clients post TICK actions instead",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    app = create_app(run_clock=not args.no_clock)
    logger.info("server_starting", host=args.host, port=args.port, clock=not args.no_clock)
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
