#!/usr/bin/env python3
"""
export_declaration.py - Export a self-attested declaration as a JPEG.

TARGET: 20-50 KB per image
Fields come from options or a JSON file; options win over the file.

Usage:
    python export_declaration.py --applicant-name "Ram Kumar" --father-name ... -o ./out
    python export_declaration.py --record record.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add parent to path when running as script
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent))

from declaration_export.errors import ValidationIncomplete
from declaration_export.pipeline import SessionFlags, export_declaration
from declaration_export.record import FIELD_LABELS, DeclarationRecord, validate_record
from declaration_export.settings import MAX_SIZE, MIN_SIZE, ExportSettings, SizeWindow

FIELD_OPTIONS = [
    ("applicant_name", "Applicant name"),
    ("father_name", "Father/guardian name"),
    ("age", "Age in years"),
    ("year", "Year"),
    ("occupation", "Occupation"),
    ("address", "Full address"),
    ("place", "Place of declaration"),
    ("date", "Date, YYYY-MM-DD (default: today)"),
]


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Export a self-attested declaration (Ghoshna Patra) as JPEG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python export_declaration.py --record ram.json -o ./out/
  python export_declaration.py --record ram.json --place Patna

The output image will be:
  - A4 width at 2x (1588 px wide)
  - JPEG, searched for a size between 20 KB and 50 KB
  - Named Ghoshna_Patra_<Applicant_Name>.jpg
"""
    )

    parser.add_argument(
        "--record",
        type=Path,
        help="JSON file with the field values"
    )

    for name, help_text in FIELD_OPTIONS:
        parser.add_argument(
            f"--{name.replace('_', '-')}",
            dest=name,
            help=help_text
        )

    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=Path("."),
        help="Output directory (default: current directory)"
    )

    parser.add_argument(
        "--min-size",
        type=int,
        default=MIN_SIZE,
        help=f"Minimum file size in bytes (default: {MIN_SIZE})"
    )

    parser.add_argument(
        "--max-size",
        type=int,
        default=MAX_SIZE,
        help=f"Maximum file size in bytes (default: {MAX_SIZE})"
    )

    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace an existing file instead of adding a (1), (2)... suffix"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    return parser.parse_args(argv)


def load_record(args) -> DeclarationRecord:
    """Merge the JSON file (if any) with command-line fields."""
    values = {}
    if args.record:
        with open(args.record, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{args.record}: expected a JSON object")
        values.update(data)

    for name, _ in FIELD_OPTIONS:
        value = getattr(args, name)
        if value is not None:
            values[name] = value

    if not str(values.get("date") or "").strip():
        values["date"] = DeclarationRecord.today()

    return DeclarationRecord.from_mapping(values)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        record = validate_record(load_record(args))
    except ValidationIncomplete as e:
        labels = ", ".join(FIELD_LABELS.get(name, name) for name in e.missing)
        print(f"Error: Please fill in all fields (missing: {labels})", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        window = SizeWindow(args.min_size, args.max_size)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = export_declaration(
        record,
        args.output_dir,
        settings=ExportSettings(window=window),
        session=SessionFlags(),
        overwrite=args.overwrite
    )

    if result.success:
        print(f"\n{result.summary()}")
        return 0

    print(f"Error: {result.error}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
