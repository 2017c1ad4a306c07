# rrd_transfer/show_dat.py
from __future__ import annotations

import click

from rrd_transfer.dat_file import describe_device, read_dat_file
from rrd_transfer.device_names import read_device_names
from rrd_transfer.errors import RrdTransferError
from rrd_transfer.filename import uuid_from_dat_path


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("dat_files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--names",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="config_hcb_rrd.xml used to resolve device names.",
)
def main(dat_files: tuple[str, ...], names: str | None) -> None:
    """
    Print the contents of one or more .dat archive metadata files.
    """
    lookup = read_device_names(names) if names is not None else {}
    for fname in dat_files:
        click.echo(f"\n{fname}")
        try:
            device = read_dat_file(fname)
        except RrdTransferError as e:
            click.echo(f"  error: {e}", err=True)
            continue
        device = device.with_name(lookup.get(uuid_from_dat_path(fname)))
        for line in describe_device(device):
            click.echo(line)
