#!/usr/bin/env python3
"""Sample upload generation script for load testing the importer.

Generates a spreadsheet in the upload template layout:
- Row 1: Header row (template column names)
- Row 2+: Request rows

Floors, processes and issue texts are drawn from small pools so the file
exercises synonym matching and keyword classification. A share of rows can
be made invalid on purpose (bad date, unknown floor, missing description).
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

TEMPLATE_COLUMNS = ["Sl.No.", "Date", "Floor", "Wing", "Process", "Location", "Issue Description"]

FLOORS = ["Ground Floor", "GF", "1st Floor", "first", "2nd Floor", "Cafeteria", "canteen"]
WINGS = ["Right wing", "Left wing", "Whole floor", ""]
PROCESSES = ["Meesho", "Flipkart", "NA", ""]
LOCATIONS = ["Gents rest room", "Ladies rest room", "Pantry", "Eating area", "Reception", "Server room"]
ISSUES = [
    "Electrical Switch box top",
    "No fire extinguisher",
    "AC not cooling",
    "Tap leak in washroom",
    "Dustbin not emptied, dirty floor",
    "URGENT sparking from power board",
    "Chair broken",
    "Door handle loose",
]


def generate_requests(rows: int, invalid_ratio: float = 0.0, seed: int = 42) -> pd.DataFrame:
    """Build a DataFrame of synthetic maintenance requests.

    Args:
        rows: number of request rows
        invalid_ratio: share of rows (0..1) deliberately made invalid
        seed: random seed for reproducible data
    """
    rng = np.random.default_rng(seed)
    days = pd.date_range("2025-01-01", "2025-12-31", freq="D")

    data = {
        "Sl.No.": [str(i + 1) for i in range(rows)],
        "Date": pd.DatetimeIndex(rng.choice(days.values, rows)).strftime("%d.%m.%y").tolist(),
        "Floor": rng.choice(FLOORS, rows).tolist(),
        "Wing": rng.choice(WINGS, rows).tolist(),
        "Process": rng.choice(PROCESSES, rows).tolist(),
        "Location": rng.choice(LOCATIONS, rows).tolist(),
        "Issue Description": rng.choice(ISSUES, rows).tolist(),
    }
    df = pd.DataFrame(data, columns=TEMPLATE_COLUMNS)

    n_invalid = int(rows * invalid_ratio)
    if n_invalid:
        targets = rng.choice(rows, n_invalid, replace=False)
        for k, idx in enumerate(targets):
            # 3 種類の不正パターンを順に割り当て
            if k % 3 == 0:
                df.at[idx, "Date"] = "2025-13-45"
            elif k % 3 == 1:
                df.at[idx, "Floor"] = "Mezzanine"
            else:
                df.at[idx, "Issue Description"] = ""
    return df


def create_upload_file(output_path: Path, rows: int, invalid_ratio: float = 0.0, seed: int = 42) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = generate_requests(rows, invalid_ratio, seed)
    if output_path.suffix.lower() == ".csv":
        df.to_csv(output_path, index=False)
    else:
        with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Maintenance Requests", index=False)
    return output_path


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic maintenance request upload",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s sample.xlsx --rows 500
  %(prog)s messy.xlsx --rows 2000 --invalid-ratio 0.05 --seed 7
  %(prog)s sample.csv --rows 120
        """,
    )
    parser.add_argument("output", type=Path, help="Output .xlsx or .csv path")
    parser.add_argument("--rows", type=int, default=1_000, help="Number of request rows (default: 1,000)")
    parser.add_argument("--invalid-ratio", type=float, default=0.0,
                        help="Share of rows made invalid on purpose (default: 0)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args(argv)

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0.0 <= args.invalid_ratio <= 1.0:
        print("Error: --invalid-ratio must be between 0 and 1", file=sys.stderr)
        return 1

    path = create_upload_file(args.output, args.rows, args.invalid_ratio, args.seed)
    print(f"Created upload file: {path}")
    print(f"  Rows: {args.rows:,} (+ 1 header row)")
    print(f"  Invalid rows: {int(args.rows * args.invalid_ratio):,}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
