#!/usr/bin/env python3
"""
Litter Map command line client.

Saves photos as records and lists or deletes them, using the storage backend
configured for the API (set STORAGE_BACKEND=redis to keep records between runs).
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from litter_core import (
    CaptureSession,
    CoordinateResolver,
    FixedLocator,
    InvalidInput,
    LocationUnavailable,
    Record,
    RecordLifecycleManager,
    StorageFailure,
    create_store,
    format_coordinate,
    location_message,
    map_url,
)

from backend.app.core.config import settings
from backend.app.core.kv import RedisDelegate

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("litter_map.cli")


def print_records(records: List[Record]) -> None:
    if not records:
        print("No records yet")
        return
    for record in records:
        lat = format_coordinate(record.latitude, True)
        lon = format_coordinate(record.longitude, False)
        print(f"{record.id}  {lat}, {lon}  {map_url(record.latitude, record.longitude)}")


async def run(args: argparse.Namespace) -> int:
    delegate: Optional[RedisDelegate] = None
    if settings.STORAGE_BACKEND == "redis":
        delegate = RedisDelegate.from_url(settings.REDIS_URL)
    else:
        logger.warning("STORAGE_BACKEND is memory; records are lost when the command exits")
    manager = RecordLifecycleManager(create_store(delegate), prefix=settings.RECORD_KEY_PREFIX)

    try:
        if args.command == "capture":
            locator = None
            if args.lat is not None and args.lon is not None:
                locator = FixedLocator(args.lat, args.lon)
            session = CaptureSession(CoordinateResolver(locator))
            image_bytes = Path(args.image).read_bytes()
            try:
                capture = await session.capture(image_bytes)
            except InvalidInput:
                print("Please select a valid image file", file=sys.stderr)
                return 1
            except LocationUnavailable as e:
                print(location_message(e), file=sys.stderr)
                return 1
            record = await manager.save_capture(capture)
            source = "from image GPS data" if capture.location.source == "exif" else "from current device location"
            print(f"Record {record.id} saved (location obtained {source})")
            print_records([record])
        elif args.command == "list":
            print_records(await manager.list_all())
        elif args.command == "delete":
            print_records(await manager.delete_by_id(args.id))
    except StorageFailure as e:
        print(f"Storage error: {e}", file=sys.stderr)
        return 2
    finally:
        if delegate is not None:
            await delegate.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Litter Map command line client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m backend.cli capture photo.jpg
  python -m backend.cli capture photo.png --lat 40.4461 --lon -79.9822
  python -m backend.cli list
  python -m backend.cli delete 1718000000000
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    capture = subparsers.add_parser("capture", help="save a photo as a record")
    capture.add_argument("image", help="path to the photo")
    capture.add_argument("--lat", type=float, help="device latitude if the photo has no GPS data")
    capture.add_argument("--lon", type=float, help="device longitude if the photo has no GPS data")

    subparsers.add_parser("list", help="list records, newest first")

    delete = subparsers.add_parser("delete", help="delete a record")
    delete.add_argument("id", help="record id")

    args = parser.parse_args(argv)
    if args.command == "capture" and not Path(args.image).is_file():
        print(f"File does not exist: {args.image}", file=sys.stderr)
        return 1
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
