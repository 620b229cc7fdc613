"""Evaluate the configured cells of a run configuration and print their derivatives."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List

import numpy as np
import pandas as pd

from src.ecology.config import build_cells, build_ecology, load_run_config
from src.ecology.massbalance import MassBalanceAuditor

logger = logging.getLogger(__name__)


def evaluate_config(config_path: Path, *, audit: bool = False) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Return (derivatives, audit) tables; the audit table is empty unless requested."""

    config = load_run_config(config_path)
    ecology = build_ecology(config)
    auditor = MassBalanceAuditor(ecology)
    rows = []
    audits = []
    try:
        for cell in build_cells(ecology, config):
            if audit:
                report = auditor.audit(cell)
                frame = report.to_frame()
                frame.insert(0, "cell", cell.label)
                audits.append(frame)
            else:
                ecology.evaluate(cell)
            for name, value in ecology.derivative_table(cell):
                rows.append({"cell": cell.label, "kind": cell.kind.value, "tracer": name, "derivative": value})
    finally:
        ecology.teardown()
    derivatives = pd.DataFrame(rows, columns=["cell", "kind", "tracer", "derivative"])
    audit_frame = (
        pd.concat(audits, ignore_index=True)
        if audits
        else pd.DataFrame(columns=["cell", "currency", "before", "after", "discrepancy"])
    )
    return derivatives, audit_frame


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Evaluate ecology derivatives for configured cells")
    parser.add_argument("config", type=Path, help="JSON run configuration")
    parser.add_argument("--audit", action="store_true", help="Report the mass-balance bracket per cell")
    parser.add_argument("--output", type=Path, default=None, help="Write the derivative table to this CSV")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )

    derivatives, audit_frame = evaluate_config(args.config, audit=args.audit)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        derivatives.to_csv(args.output, index=False)
        logger.info("wrote %d derivative rows to %s", len(derivatives), args.output)
    else:
        print(derivatives.to_string(index=False))
    if args.audit:
        print(audit_frame.to_string(index=False))
        if not audit_frame.empty:
            balanced = np.isclose(
                audit_frame["before"].astype(float), audit_frame["after"].astype(float), rtol=1e-9, atol=1e-12
            )
            if not bool(np.all(balanced)):
                return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
