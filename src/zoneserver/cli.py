"""Command-line entry point.

Usage:
    zonesync serve [--host HOST] [--port PORT] [--no-load]
    zonesync fetch [--url URL] [--json]
"""

import argparse
import asyncio
import json
import sys
from collections import Counter

from zoneserver.config import settings
from zonesync import LoadError, SyncClient, ZoneSession
from zonesync.exporters.geojson import export_geojson


def serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from zoneserver.main import create_app

    app = create_app(settings, load_on_startup=not args.no_load)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


async def _fetch(url: str | None) -> ZoneSession:
    session = ZoneSession()
    async with SyncClient(session, settings) as client:
        await client.load(url)
    return session


def fetch(args: argparse.Namespace) -> int:
    """Load the remote zone set and print a summary."""
    try:
        session = asyncio.run(_fetch(args.url))
    except LoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output_json:
        print(json.dumps(export_geojson(session.zones), indent=2))
        return 0

    zones = session.zones
    print(f"{len(zones)} zones from {args.url or settings.wfs_url}")
    for geom_type, count in sorted(Counter(z.geometry_type for z in zones).items()):
        print(f"  {geom_type}: {count}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zonesync",
        description="Zone edit tracking and WFS-T synchronization",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="Run the zone editing API")
    p_serve.add_argument("--host", default=settings.host, help="Bind address")
    p_serve.add_argument("--port", type=int, default=settings.port, help="Bind port")
    p_serve.add_argument("--no-load", action="store_true", help="Don't fetch zones at startup")
    p_serve.set_defaults(func=serve)

    p_fetch = sub.add_parser("fetch", help="Fetch zones from the WFS server")
    p_fetch.add_argument("--url", default=None, help="Full GetFeature URL")
    p_fetch.add_argument("--json", action="store_true", dest="output_json", help="Print GeoJSON")
    p_fetch.set_defaults(func=fetch)

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    sys.exit(args.func(args))
