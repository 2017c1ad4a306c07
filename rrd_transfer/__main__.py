import click
from rrd_transfer.inject import main as inject_cli
from rrd_transfer.export import main as export_cli
from rrd_transfer.show_dat import main as show_cli

@click.group(
    help="Transfer round-robin archive history from an old device to a new one."
)
@click.help_option("-h", "--help")  # Add the help option at the group level
def cli():
    """Main entry point for rrd_transfer commands."""
    pass

# Register the commands
cli.add_command(inject_cli, "inject")
cli.add_command(export_cli, "export")
cli.add_command(show_cli, "show")

if __name__ == "__main__":
    cli()
