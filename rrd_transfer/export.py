# rrd_transfer/export.py
from __future__ import annotations

import click

from rrd_transfer.transfer import rra_to_csv
from rrd_transfer.transfer_config import set_config
from rrd_transfer._transfer_cli import echo_actions_text, write_actions_csv


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("rra_dir", type=click.Path(exists=True, file_okay=False, dir_okay=True))
@click.option(
    "--dest",
    "csv_dir",
    default=None,
    type=click.Path(file_okay=False),
    help="Directory for the csv files. Default: RRA_DIR.",
)
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
@click.option(
    "--out-actions",
    default=None,
    type=click.Path(dir_okay=False),
    help="Optional CSV path to write the action list.",
)
def main(
    rra_dir: str,
    csv_dir: str | None,
    names: str | None,
    config_file: str | None,
    out_actions: str | None,
) -> None:
    """
    Convert the .rra archives of an old device in RRA_DIR to csv files.
    """
    if config_file is not None:
        set_config(config_file)
    try:
        actions = rra_to_csv(rra_dir, device_names=names, csv_dir=csv_dir)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))

    echo_actions_text(actions)

    if out_actions is not None:
        write_actions_csv(actions, out_actions)
