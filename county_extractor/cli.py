#!/usr/bin/env python3
"""CLI entry point for county-extractor"""

import os
import sys
import json
import logging
import argparse

import pandas as pd

from .counties import get_county
from .data_extractor import extract_parcel
from .errors import ConfigError, ExtractionError, InputError
from .layout_extractor import write_layout_data
from .owners.linker import CurrentOwnerFallback
from .owners.processor import write_owner_data
from .relationships import write_county_data_group
from .settings import Settings
from .structure_extractor import write_structure_data
from .utility_extractor import write_utility_data
from .utils import load_json, print_status, setup_logging, write_json

logger = logging.getLogger(__name__)

SEED_COLUMNS = ["parcel_id", "county", "method", "url", "source_identifier"]


def _add_common_options(parser):
    parser.add_argument("--owner-fallback", choices=[policy.value for policy in CurrentOwnerFallback],
                        help="Link the current owners to a sale without a dated owner list")
    repair = parser.add_mutually_exclusive_group()
    repair.add_argument("--repair-digits", dest="repair_digits", action="store_true", default=None,
                        help="Repair digits keyed in for letters in owner names (0 -> O, 1 -> I, ...)")
    repair.add_argument("--no-repair-digits", dest="repair_digits", action="store_false",
                        help="Keep owner names as published")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show INFO logs on the console")
    parser.set_defaults(repair_digits=None)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="county-extractor",
        description="Extract Elephant Lexicon records from saved county property appraiser pages",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    stages = {
        "owners": "Write owners/owner_data.json from input.html",
        "layout": "Write owners/layout_data.json from input.html",
        "structure": "Write owners/structure_data.json from input.html",
        "utility": "Write owners/utilities_data.json from input.html",
        "extract": "Write data/*.json from input.html and the owners/ sidecars",
        "run": "Run every stage: owners, layout, structure, utility, extract and relationships",
    }
    for name, help_text in stages.items():
        stage = subparsers.add_parser(name, help=help_text)
        stage.add_argument("parcel_dir", help="Directory holding input.html")
        stage.add_argument("--county", type=str,
                           help="County name; defaults to county_jurisdiction in unnormalized_address.json")
        _add_common_options(stage)

    batch = subparsers.add_parser("batch", help="Run every parcel listed in a seed CSV")
    batch.add_argument("seed_csv", help=f"CSV with columns {', '.join(SEED_COLUMNS)}")
    batch.add_argument("--root", type=str, default=".", help="Directory holding one folder per parcel_id")
    batch.add_argument("--county", type=str, help="County for rows without a county value")
    _add_common_options(batch)
    return parser


def resolve_county(parcel_dir, county_name=None):
    """County module from the flag, else from unnormalized_address.json"""
    if not county_name:
        unnormalized = load_json(os.path.join(parcel_dir, "unnormalized_address.json")) or {}
        county_name = unnormalized.get("county_jurisdiction")
        if not county_name:
            raise ConfigError("No --county given and no county_jurisdiction in unnormalized_address.json",
                              path=os.path.join(parcel_dir, "unnormalized_address.json"))
    return get_county(county_name)


def run_stage(command, parcel_dir, county, settings):
    if command in ("owners", "run"):
        write_owner_data(parcel_dir, county, settings)
    if command in ("layout", "run"):
        write_layout_data(parcel_dir, county, settings)
    if command in ("structure", "run"):
        write_structure_data(parcel_dir, county, settings)
    if command in ("utility", "run"):
        write_utility_data(parcel_dir, county, settings)
    if command in ("extract", "run"):
        result = extract_parcel(parcel_dir, county, settings)
        if command == "run":
            write_county_data_group(result.data_dir)


def _parse_query_string(value):
    if value is None or pd.isna(value) or not str(value).strip():
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        logger.error(f"   ❌ Could not parse multiValueQueryString: {value!r}")
        return None
    return parsed if isinstance(parsed, dict) else None


def write_seed(parcel_dir, row):
    """property_seed.json for one seed CSV row"""
    source_http_request = {
        "method": str(row.get("method") or "GET").upper(),
        "url": row.get("url"),
    }
    query_string = _parse_query_string(row.get("multiValueQueryString"))
    if query_string is not None:
        source_http_request["multiValueQueryString"] = query_string
    seed = {
        "parcel_id": row["parcel_id"],
        "source_http_request": source_http_request,
        "request_identifier": row.get("source_identifier") or row["parcel_id"],
    }
    write_json(os.path.join(parcel_dir, "property_seed.json"), seed)
    return seed


def run_batch(seed_csv, root, settings, default_county=None):
    """Run all stages for every seed row; returns the number of failed parcels"""
    seed_df = pd.read_csv(seed_csv, dtype=str, keep_default_na=False)
    missing = [column for column in ("parcel_id", "url") if column not in seed_df.columns]
    if missing:
        raise ConfigError(f"Seed CSV is missing columns: {', '.join(missing)}", path=seed_csv)
    print_status(f"📊 Found {len(seed_df)} entries in {seed_csv}")

    failures = 0
    for _, row in seed_df.iterrows():
        row = {key: (value.strip() if isinstance(value, str) else value) for key, value in row.items()}
        parcel_id = row.get("parcel_id") or row.get("source_identifier")
        if not parcel_id:
            continue
        parcel_dir = os.path.join(root, parcel_id)
        try:
            if not os.path.isdir(parcel_dir):
                raise InputError(f"Parcel directory not found: {parcel_dir}", path=parcel_dir)
            county = resolve_county(parcel_dir, row.get("county") or default_county)
            write_seed(parcel_dir, row)
            run_stage("run", parcel_dir, county, settings)
        except ExtractionError as e:
            failures += 1
            logger.error(f"❌ Parcel {parcel_id} failed: {e.message}")
            print(json.dumps(e.to_payload()))
    print_status(f"✅ Processed {len(seed_df)} parcels, {failures} failed")
    return failures


def main(argv=None):
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env().with_overrides(
            owner_fallback=args.owner_fallback,
            repair_digits=args.repair_digits,
            log_level="INFO" if args.verbose else None,
        )
        setup_logging(settings.logs_dir, settings.log_level)

        if args.command == "batch":
            return 1 if run_batch(args.seed_csv, args.root, settings, args.county) else 0

        if not os.path.isdir(args.parcel_dir):
            raise InputError(f"Parcel directory not found: {args.parcel_dir}", path=args.parcel_dir)
        county = resolve_county(args.parcel_dir, args.county)
        run_stage(args.command, args.parcel_dir, county, settings)
    except ExtractionError as e:
        logger.error(e.message)
        print(json.dumps(e.to_payload()))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
