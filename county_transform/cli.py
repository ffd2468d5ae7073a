#!/usr/bin/env python3
"""CLI entry point for county-transform"""

import argparse
import logging
import sys

from .config import Settings, load_environment
from .counties import get_county_adapter
from .errors import TransformError
from .pipeline import run_transform
from .utils import dump_json, load_json, setup_logging

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(description="Transform one parcel's county records into canonical documents")
    parser.add_argument("--input-dir", type=str, help="Directory with input.html, property_seed.json and unnormalized_address.json")
    parser.add_argument("--output-dir", type=str, help="Directory to (re)write the output documents into")
    parser.add_argument("--owners-dir", type=str, help="Directory with owner_data.json, utilities_data.json, layout_data.json and structure_data.json")
    parser.add_argument("--county", type=str, help="County adapter to use; defaults to county_jurisdiction from unnormalized_address.json")
    parser.add_argument("--raw-fields", type=str, help="JSON file with an already-extracted raw field bag; input.html is not read")
    parser.add_argument("--use-code-table", type=str, help="CSV or JSON code table replacing the county's default table")
    parser.add_argument("--strict-deed-types", action="store_true", help="Fail on unrecognized deed instruments instead of using Miscellaneous")
    return parser


def settings_from_args(args) -> Settings:
    """Environment settings, overridden by whatever flags were given"""
    settings = Settings.from_env()
    if args.input_dir:
        settings.input_dir = args.input_dir
    if args.output_dir:
        settings.output_dir = args.output_dir
    if args.owners_dir:
        settings.owners_dir = args.owners_dir
    if args.county:
        settings.county = args.county
    if args.raw_fields:
        settings.raw_fields_path = args.raw_fields
    if args.use_code_table:
        settings.use_code_table_path = args.use_code_table
    if args.strict_deed_types:
        settings.strict_deed_types = True
    return settings


def resolve_county(settings: Settings):
    county = settings.county
    if not county:
        address = load_json(settings.input_path("unnormalized_address.json")) or {}
        county = address.get("county_jurisdiction")
        if county:
            logger.info(f"📍 Found county_jurisdiction: {county}")
    if not county:
        return None
    return get_county_adapter(county)


def main(argv=None):
    """Main CLI entry point"""
    load_environment()
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)
    setup_logging(settings.logs_dir, settings.log_level)

    try:
        adapter = resolve_county(settings)
        if adapter is None and not (settings.raw_fields_path and settings.use_code_table_path):
            raise TransformError(f"Unknown county: {settings.county or 'not specified'}", "county")
        run_transform(settings, adapter)
    except TransformError as e:
        logger.error(f"❌ {e.message} (path: {e.path})")
        print(dump_json(e.to_dict()), file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        sys.exit(1)
    except Exception as e:
        logger.exception("Transform failed")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
