"""CLI entrypoint."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from placescout import config
from placescout.bookmark_client import BookmarkClient, EngagementClient
from placescout.catalog_client import CatalogClient
from placescout.geo import LatLng, ViewportBounds
from placescout.http import HttpClient, RequestMetrics, ServiceError
from placescout.location import EnvLocationProvider, StaticLocationProvider
from placescout.media_client import MediaClient
from placescout.preference_client import PreferenceClient
from placescout.reporting import render_summary, write_places_json
from placescout.store import PlaceStore


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def parse_viewport(raw: Optional[str]) -> Optional[ViewportBounds]:
    if not raw:
        return None
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 4:
        raise ValueError("Viewport must be north,south,east,west")
    north, south, east, west = (float(p) for p in parts)
    return ViewportBounds(north=north, south=south, east=east, west=west)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Browse nearby places and hidden gems")
    parser.add_argument("--api-base-url", type=str, default=None)
    parser.add_argument("--lat", type=float, default=None, help="User latitude")
    parser.add_argument("--lng", type=float, default=None, help="User longitude")
    parser.add_argument(
        "--distance",
        type=float,
        default=config.DEFAULT_DISTANCE_MILES,
        choices=config.DISTANCE_OPTIONS,
        help="Max distance in miles",
    )
    parser.add_argument("--any-distance", action="store_true", help="Disable the distance filter")
    parser.add_argument("--query", type=str, default="")
    parser.add_argument("--interest", action="append", default=[], help="Interest tag (repeatable)")
    parser.add_argument("--hidden-gems", action="store_true", help="Only unverified places")
    parser.add_argument("--viewport", type=str, default=None, help="north,south,east,west")
    parser.add_argument("--no-media", action="store_true", help="Skip photo loading in the full load")
    parser.add_argument("--user-id", type=str, default=None, help="Rank by this user's interest preferences")
    parser.add_argument("--session-token", type=str, default=None, help="Session for bookmark calls")
    parser.add_argument("--bookmarked", action="store_true", help="Only show bookmarked places")
    parser.add_argument("--list-tags", action="store_true", help="Print available interest tags and exit")
    parser.add_argument(
        "--out",
        nargs="?",
        const=config.OUTPUT_PATH,
        default=None,
        help=f"Write visible places as JSON (default path: {config.OUTPUT_PATH})",
    )
    return parser.parse_args(argv)


def build_store(args: argparse.Namespace, metrics: Optional[RequestMetrics] = None) -> PlaceStore:
    http_client = HttpClient(base_url=args.api_base_url, metrics=metrics)
    if args.lat is not None and args.lng is not None:
        provider = StaticLocationProvider(LatLng(args.lat, args.lng))
    else:
        provider = EnvLocationProvider()
    session_token = args.session_token or os.environ.get("PLACESCOUT_SESSION_TOKEN")
    store = PlaceStore(
        CatalogClient(http_client),
        MediaClient(http_client),
        preferences=PreferenceClient(http_client),
        location_provider=provider,
        bookmarks=BookmarkClient(http_client, session_token),
        engagement=EngagementClient(http_client),
        user_id=args.user_id,
    )
    store.set_distance(None if args.any_distance else args.distance)
    store.set_query(args.query)
    for tag in args.interest:
        store.toggle_interest(tag)
    store.set_hidden_gems(args.hidden_gems)
    return store


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    config.load_settings()
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        viewport = parse_viewport(args.viewport)
    except ValueError as exc:
        print(f"Invalid --viewport: {exc}", file=sys.stderr)
        return 2

    metrics = RequestMetrics()
    with build_store(args, metrics=metrics) as store:
        if args.list_tags:
            for tag in store.available_tags():
                print(f"{tag.tag}: {tag.description}")
            return 0

        store.resolve_location()
        store.load_places(include_media=not args.no_media)
        if viewport is not None:
            store.load_viewport(viewport)
            store.wait_for_background()

        if args.user_id:
            places = store.matching_places(args.user_id)
        else:
            places = store.visible_places
        if args.bookmarked:
            try:
                store.load_bookmarks()
            except ServiceError as exc:
                print(f"Cannot load bookmarks: {exc}", file=sys.stderr)
                return 1
            places = [p for p in places if store.is_bookmarked(p.id)]
        summary = store.summary()
        summary["requests"] = dict(metrics.network)

        for line in render_summary(summary, places):
            print(line)
        if args.out:
            write_places_json(args.out, places, summary)
            print(f"Wrote {len(places)} places to {args.out}")

        return 1 if store.error else 0


if __name__ == "__main__":
    raise SystemExit(main())
