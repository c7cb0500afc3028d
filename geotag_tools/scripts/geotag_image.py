from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from geotag_api.config import Settings, get_settings
from geotag_api.services.errors import GeotagError
from geotag_api.services.formats import detect_format
from geotag_api.services.metadata import GeoCoordinate, MetadataRecord, extract_metadata, write_metadata


def record_to_dict(record: MetadataRecord) -> dict:
    geo = None
    if record.coordinate is not None:
        geo = {"lat": record.coordinate.lat, "lon": record.coordinate.lon}
    return {"geo": geo, "description": record.description, "keywords": record.keywords}


def check_limits(args: argparse.Namespace, settings: Settings) -> Optional[str]:
    if args.lat is not None and not -90 <= args.lat <= 90:
        return f"latitude must be within -90..90, got {args.lat}"
    if args.lon is not None and not -180 <= args.lon <= 180:
        return f"longitude must be within -180..180, got {args.lon}"
    if args.description is not None and len(args.description) > settings.max_description_length:
        return f"description must be {settings.max_description_length} characters or fewer"
    if args.keywords is not None and len(args.keywords) > settings.max_keywords_length:
        return f"keywords must be {settings.max_keywords_length} characters or fewer"
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Read or write GPS/description/keyword EXIF tags of an image")
    parser.add_argument("--input", required=True, help="Image file to read or geotag")
    parser.add_argument("--lat", type=float, help="Latitude in decimal degrees (-90..90)")
    parser.add_argument("--lon", type=float, help="Longitude in decimal degrees (-180..180)")
    parser.add_argument("--description", help="Image description text")
    parser.add_argument("--keywords", help="Keyword text")
    parser.add_argument("--output", help="Output path (default: geotagged_<name> beside the input)")
    parser.add_argument("--show", action="store_true", help="Only print the metadata already in the file")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    src = Path(args.input)
    if not src.is_file():
        print(f"Input not found: {src}", file=sys.stderr)
        return 1
    if (args.lat is None) != (args.lon is None):
        print("--lat and --lon must be given together", file=sys.stderr)
        return 1
    problem = check_limits(args, get_settings())
    if problem:
        print(f"Error: {problem}", file=sys.stderr)
        return 1

    data = src.read_bytes()
    fmt = detect_format(src.name)
    coordinate = GeoCoordinate(args.lat, args.lon) if args.lat is not None else None
    update = MetadataRecord(coordinate=coordinate, description=args.description, keywords=args.keywords)

    if args.show or update.is_empty():
        print(json.dumps(record_to_dict(extract_metadata(data, fmt)), indent=2, ensure_ascii=False))
        return 0

    try:
        result = write_metadata(data, fmt, update, filename=src.name)
    except GeotagError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    out_path = Path(args.output) if args.output else src.with_name(result.filename)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(result.data)
    if result.warning:
        print(f"Warning: {result.warning}", file=sys.stderr)
    print(f"Saved: {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
