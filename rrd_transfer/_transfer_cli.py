# rrd_transfer/_transfer_cli.py
from __future__ import annotations

import csv
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Iterable

import click

FIELDNAMES = ["uuid", "interval", "action", "reason", "csv_path", "rra_path"]


def echo_actions_text(actions: Iterable[object]) -> None:
    """
    Print one action per line.

    Assumes action objects have attributes:
      uuid, interval, action, reason, csv_path, rra_path
    """
    actions = list(actions)
    if not actions:
        click.echo("no actions (no archives found)")
        return
    for a in actions:
        parts = [
            str(getattr(a, "action", None)),
            f"uuid={getattr(a, 'uuid', None)}",
            f"interval={getattr(a, 'interval', None)}",
            f"reason={getattr(a, 'reason', None)}",
        ]
        csv_path = getattr(a, "csv_path", None)
        rra_path = getattr(a, "rra_path", None)
        if csv_path:
            parts.append(f"csv={csv_path}")
        if rra_path:
            parts.append(f"rra={rra_path}")

        click.echo("  ".join(parts))


def write_actions_csv(actions: Iterable[object], out_csv: str) -> None:
    """
    Write actions to a CSV file.

    Columns are stable and explicit to support downstream parsing and fixtures.
    """
    out_path = Path(out_csv)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=FIELDNAMES)
        w.writeheader()
        for a in actions:
            if is_dataclass(a):
                row = asdict(a)
            else:
                row = {k: getattr(a, k, None) for k in FIELDNAMES}

            # enforce stable column ordering
            w.writerow({k: row.get(k, None) for k in FIELDNAMES})


def resolve_plan_flag(apply: bool, plan: bool) -> bool:
    """
    Default is plan=True unless apply=True.

    If the user explicitly sets --plan, it wins (and --apply should be absent).
    """
    if plan:
        return True
    if apply:
        return False
    return True  # default


def maybe_fail_if_changes(actions: list[object], fail_if_changes: bool) -> None:
    """
    Exit code convention:
      - 0: no merges planned (or apply mode)
      - 2: merges planned and fail_if_changes requested
    """
    merges = [a for a in actions if getattr(a, "action", None) == "merge"]
    if fail_if_changes and len(merges) > 0:
        raise SystemExit(2)
