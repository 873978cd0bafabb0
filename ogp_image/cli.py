"""Command line runner for rendering a single preview."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import load_settings
from .errors import PreviewError
from .keys import encode_request_key
from .logging_setup import configure_logging
from .service import build_service

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ogp_image", description="Render an OGP preview image.")
    parser.add_argument("key", nargs="?", help="base64 encoded source URL")
    parser.add_argument("-o", "--output", type=Path, help="write the PNG here (default: stdout)")
    parser.add_argument("--encode", metavar="URL", help="print the request key for URL and exit")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.encode:
        print(encode_request_key(args.encode))
        return 0
    if not args.key:
        parser.error("a request key or --encode URL is required")

    settings = load_settings()
    configure_logging(settings.log_level)
    service = build_service(settings)
    try:
        data = service.render(args.key)
    except PreviewError as exc:
        logger.error("failed create ogp image: %s", exc)
        return 1

    if args.output:
        args.output.write_bytes(data)
        logger.info("Wrote %d bytes to %s", len(data), args.output)
    else:
        sys.stdout.buffer.write(data)
    return 0
