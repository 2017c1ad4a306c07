# rrd_transfer/inject.py
from __future__ import annotations

import click

from rrd_transfer.samples import cutoff_from_date
from rrd_transfer.transfer import inject_data
from rrd_transfer.transfer_config import set_config
from rrd_transfer._transfer_cli import (
    echo_actions_text,
    maybe_fail_if_changes,
    resolve_plan_flag,
    write_actions_csv,
)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("rra_dir", type=click.Path(exists=True, file_okay=False, dir_okay=True))
@click.argument("csv_dir", type=click.Path(exists=True, file_okay=False, dir_okay=True))
@click.option(
    "--until",
    "-L",
    default=None,
    help="Import data until (and including) this date, YYYY-mm-dd. Default: no limit.",
)
@click.option("--tz", default=None, help="Time zone of --until. Default: local time.")
@click.option(
    "--names",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="config_hcb_rrd.xml holding the device names. Default: the one in RRA_DIR.",
)
@click.option(
    "--config",
    "config_file",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file overriding the packaged configuration.",
)
@click.option("--plan", is_flag=True, default=False, help="Dry-run: compute and print actions without writing.")
@click.option("--apply", is_flag=True, default=False, help="Execute: rewrite the .rra files.")
@click.option(
    "--out-actions",
    default=None,
    type=click.Path(dir_okay=False),
    help="Optional CSV path to write the action list (audit/fixtures).",
)
@click.option(
    "--fail-if-changes",
    is_flag=True,
    default=False,
    help="In plan mode, exit with code 2 if any merges would be made.",
)
def main(
    rra_dir: str,
    csv_dir: str,
    until: str | None,
    tz: str | None,
    names: str | None,
    config_file: str | None,
    plan: bool,
    apply: bool,
    out_actions: str | None,
    fail_if_changes: bool,
) -> None:
    """
    Merge csv exports of an old device into the .rra archives in RRA_DIR.
    """
    if plan and apply:
        raise click.UsageError("Choose at most one of --plan or --apply (default is --plan).")
    if out_actions is not None and not out_actions.lower().endswith(".csv"):
        raise click.UsageError("--out-actions must be a .csv path")

    if config_file is not None:
        set_config(config_file)

    try:
        cutoff = cutoff_from_date(until, tz=tz)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--until")

    plan_effective = resolve_plan_flag(apply=apply, plan=plan)

    actions = inject_data(
        rra_dir,
        csv_dir,
        cutoff=cutoff,
        device_names=names,
        plan=plan_effective,
    )

    echo_actions_text(actions)

    if out_actions is not None:
        write_actions_csv(actions, out_actions)

    if plan_effective:
        maybe_fail_if_changes(actions, fail_if_changes)
