#!/usr/bin/env python3
"""Export the merged (base + overlay) crime reports to JSONL and CSV."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
from rich import print
from rich.logging import RichHandler

from incident_map.dataset import DEFAULT_TIMEOUT, load_all
from incident_map.overlay_store import DEFAULT_OVERLAY_KEY, JsonFileStore, OverlayStore
from incident_map.records import CATEGORIES, category_key, is_pending
from incident_map.search import count_by_category, default_filters, derive

CSV_COLUMNS = [
    "id",
    "crime_type",
    "national_id",
    "latitude",
    "longitude",
    "report_status",
    "pending",
    "report_date_time",
    "report_details",
]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Dump crime reports (base dataset plus local overlay) for analysis."
    )
    parser.add_argument(
        "--data",
        default="data/data.json",
        help="Base dataset path or http(s) URL (default: data/data.json).",
    )
    parser.add_argument(
        "--overlay",
        default="data/overlay_store.json",
        help="Overlay store file (default: data/overlay_store.json).",
    )
    parser.add_argument(
        "--overlay-key",
        default=DEFAULT_OVERLAY_KEY,
        help=f"Key holding the overlay list (default: {DEFAULT_OVERLAY_KEY}).",
    )
    parser.add_argument(
        "--output-dir",
        default="data/exports",
        help="Directory where the export folder will be created (default: data/exports).",
    )
    parser.add_argument(
        "--prefix",
        default=None,
        help="Optional subfolder prefix (defaults to current UTC date YYYYMMDD).",
    )
    parser.add_argument(
        "--category",
        action="append",
        choices=[category_key(c) for c in CATEGORIES],
        help="Only export these categories (repeatable; default: all).",
    )
    parser.add_argument("--search", default="", help="Free-text search term.")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Fetch timeout in seconds.")
    parser.add_argument("--no-json", action="store_true", help="Skip writing JSONL.")
    parser.add_argument("--no-csv", action="store_true", help="Skip writing CSV.")
    return parser.parse_args(argv)


def build_filters(categories: Optional[List[str]]) -> Dict[str, bool]:
    filters = default_filters()
    if categories:
        wanted = {category_key(c) for c in categories}
        filters = {key: key in wanted for key in filters}
    return filters


def ensure_output_dir(base_dir: str, prefix: Optional[str]) -> Path:
    root = Path(base_dir)
    folder = prefix or datetime.now(timezone.utc).strftime("%Y%m%d")
    out_dir = root / folder
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir


def flatten_row(row: Dict[str, Any]) -> Dict[str, Any]:
    out = {col: row.get(col) for col in CSV_COLUMNS}
    out["pending"] = is_pending(row)
    return out


def write_jsonl(rows: Iterable[Dict[str, Any]], path: Path) -> None:
    count = 0
    with path.open("w", encoding="utf-8") as handle:
        for row in rows:
            handle.write(json.dumps(row, ensure_ascii=False) + "\n")
            count += 1
    if count == 0:
        path.unlink(missing_ok=True)


def write_csv(rows: Iterable[Dict[str, Any]], path: Path) -> None:
    frame = pd.DataFrame([flatten_row(r) for r in rows], columns=CSV_COLUMNS)
    if frame.empty:
        path.unlink(missing_ok=True)
        return
    frame.to_csv(path, index=False)


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(
        level=logging.INFO, format="%(message)s", handlers=[RichHandler(show_path=False)]
    )
    args = parse_args(argv)
    store = OverlayStore(JsonFileStore(Path(args.overlay)), args.overlay_key)
    merged = load_all(args.data, store, args.timeout)
    rows = derive(merged, build_filters(args.category), args.search)

    export_dir = ensure_output_dir(args.output_dir, args.prefix)
    if not args.no_json:
        write_jsonl(rows, export_dir / "reports.jsonl")
    if not args.no_csv:
        write_csv(rows, export_dir / "reports.csv")

    for key, count in sorted(count_by_category(rows).items()):
        print(f"  {key.title()}: {count}")
    total = len(rows)
    print(
        f"[green][ok][/green] Exported {total} report{'s' if total != 1 else ''} "
        f"of {len(merged)} to {export_dir}"
    )


if __name__ == "__main__":
    main()
