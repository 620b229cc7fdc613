"""Tabulate raw vs canonical values of a JSON parameter catalogue."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from src.ecology.parameters import read_catalogue_entries, parameter_store_from_entries


def audit_parameters(catalogue_path: Path, output_path: Path) -> pd.DataFrame:
    entries = read_catalogue_entries(catalogue_path)
    store = parameter_store_from_entries(entries)
    records: List[Dict[str, Any]] = []
    for entry in entries:
        name = str(entry.get("name"))
        param = store.metadata(name)
        canonical = param.value
        if isinstance(param.value, str):
            kind = "string"
            canonical = None
        elif entry.get("value") is None:
            kind = "derived"
        else:
            kind = "literal"
        records.append(
            {
                "name": name,
                "kind": kind,
                "raw_value": param.raw_value,
                "raw_unit": param.units,
                "canonical_value": canonical,
                "expression": entry.get("expression") or "",
            }
        )
    frame = pd.DataFrame(records)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(output_path, index=False)
    return frame


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Audit unit conversion and derivation of a parameter catalogue")
    parser.add_argument("catalogue", type=Path, help="JSON parameter catalogue")
    parser.add_argument("output", type=Path, help="Destination CSV for the audit table")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))
    frame = audit_parameters(args.catalogue, args.output)
    print(f"wrote {len(frame)} parameters to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
