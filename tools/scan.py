#!/usr/bin/env python3
"""
Seed check for a registrar CSV export.

Usage
------
domain-seeds-csv --csv export.csv > seeds.txt
python -m tools.scan --csv export.csv     (from a checkout root)

Every non-blank cell of the domain column yields one output line,
duplicates included.
"""
import argparse
import sys

import pandas as pd

from domain_seeds import add_pool_arguments, run_from_args

# --------- Defaults (can be overridden via CLI) ----------
DEFAULT_CSV_PATH = "domains.csv"
COLUMN_HINTS = ("domain", "name")
# ---------------------------------------------------------

def detect_domain_column(df: pd.DataFrame) -> str:
    for hint in COLUMN_HINTS:
        for col in df.columns:
            if hint in col.lower():
                return col
    return df.columns[0]

def load_domains(csv_path: str):
    # cells are stripped but otherwise taken as exported
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    col = detect_domain_column(df)
    cells = df[col].astype(str).str.strip()
    domains = cells[cells != ""].tolist()
    print(f"Found {len(domains)} domains in column '{col}'", file=sys.stderr)
    return domains

def main(argv=None):
    ap = argparse.ArgumentParser(
        description="HTTPS seed check for the domain column of a registrar CSV export. "
                    "Emits one URL per non-blank row; duplicate rows are kept.",
    )
    ap.add_argument("--csv", default=DEFAULT_CSV_PATH, help="Path to input CSV")
    add_pool_arguments(ap)
    args = ap.parse_args(argv)

    try:
        domains = load_domains(args.csv)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    try:
        written = run_from_args(domains, args)
    except KeyboardInterrupt:
        print("\nInterrupted by user.", file=sys.stderr)
        return 130
    print(f"Wrote {written} seeds", file=sys.stderr)
    return 0

if __name__ == "__main__":
    sys.exit(main())
