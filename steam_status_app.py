#!/usr/bin/env python3
"""HTTP endpoint and command line for the Steam status card.

Usage:
  steam-status serve [--host 0.0.0.0] [--port 3000]
  steam-status render [-o steam-status.svg]

`serve` exposes GET /steam-status.svg. `render` does a single fetch and
writes the card to disk, for cron / Actions style updates.
"""
from __future__ import annotations
import sys
import time
import logging
import argparse
from pathlib import Path
from typing import List, Optional

import requests
import uvicorn
from fastapi import FastAPI
from fastapi.responses import Response

from steam_status import (
    SVG_MEDIA_TYPE,
    Config,
    FetchError,
    fetch_stats,
    load_config,
    render_card,
    render_error,
    setup_logging,
)

logger = logging.getLogger(__name__)

ROUTE = "/steam-status.svg"


def create_app(config: Config) -> FastAPI:
    app = FastAPI(title="steam-status-svg")

    # Sync handler: FastAPI runs it in the threadpool, requests stay independent.
    @app.get(ROUTE)
    def steam_status_svg() -> Response:
        try:
            stats = fetch_stats(config)
            body = render_card(stats, config.source_label)
        except Exception as e:
            logger.exception("Rendering %s failed", ROUTE)
            message = str(e) or e.__class__.__name__
            return Response(render_error(message), status_code=500, media_type=SVG_MEDIA_TYPE)
        return Response(body, media_type=SVG_MEDIA_TYPE)

    return app


def render_to_file(config: Config, output: Path) -> int:
    print("Collecting stats...")
    t0 = time.time()
    try:
        stats = fetch_stats(config)
    except (FetchError, requests.RequestException) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    output.write_text(render_card(stats, config.source_label), encoding="utf-8")
    print(f"Wrote {output}")
    print("Done in {:.2f}s".format(time.time() - t0))
    return 0


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="steam-status", description="Steam profile status SVG card")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help=f"serve GET {ROUTE}")
    serve.add_argument("--host", default=config.host)
    serve.add_argument("--port", type=int, default=config.port)

    render = sub.add_parser("render", help="fetch once and write the card to a file")
    render.add_argument("-o", "--output", type=Path, default=Path("steam-status.svg"))
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    config = load_config()
    args = build_parser(config).parse_args(argv)
    setup_logging(config.log_level, config.debug)

    if args.command == "render":
        return render_to_file(config, args.output)

    logger.info("Server running at http://%s:%d%s", args.host, args.port, ROUTE)
    uvicorn.run(create_app(config), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
