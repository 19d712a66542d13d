from __future__ import annotations

import argparse
import logging
from typing import Optional

import uvicorn

from .app import SERVICE_MAX_STEPS, create_app

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the bftree parse/run/transpile API")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    parser.add_argument(
        "--max-steps",
        type=int,
        default=SERVICE_MAX_STEPS,
        help=f"Step budget applied to every /api/run request (default: {SERVICE_MAX_STEPS:,})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.max_steps < 1:
        parser.error("--max-steps must be positive")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logger.info("Serving bftree API on %s:%d (max_steps=%d)", args.host, args.port, args.max_steps)
    uvicorn.run(create_app(max_steps=args.max_steps), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
