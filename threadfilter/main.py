"""threadfilter CLI — extract one person's threads from a chat-history export."""

import click

from threadfilter.cli.extract_cmd import extract
from threadfilter.cli.threads_cmd import threads


@click.group()
@click.version_option(package_name="threadfilter")
def cli():
    """threadfilter — read chat-history HTML exports."""
    pass


cli.add_command(extract)
cli.add_command(threads)


if __name__ == "__main__":
    cli()
