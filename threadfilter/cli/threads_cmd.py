"""CLI command that summarizes the threads in a chat export."""

from __future__ import annotations

import sys
from typing import BinaryIO, Optional

import click
from rich.console import Console
from rich.table import Table

from threadfilter.cli.extract_cmd import report_parse_error, validate_encoding
from threadfilter.config import resolve_settings
from threadfilter.export.errors import ExportParseError
from threadfilter.export.parser import ThreadParser
from threadfilter.log import configure_logging
from threadfilter.output import BufferingSink, format_date

console = Console()


@click.command("threads")
@click.argument("source", type=click.File("rb"), default="-")
@click.option("--person", "-p", default=None,
              help="Only list threads whose participants contain this name "
                   "(default: $THREADFILTER_PERSON, config file, or every thread)")
@click.option("--encoding", default=None, callback=validate_encoding,
              help="Character encoding of the export (default: utf-8)")
@click.option("--verbose", "-v", is_flag=True, help="Log parser transitions to stderr")
def threads(source: BinaryIO, person: Optional[str], encoding: Optional[str], verbose: bool):
    """List the threads in an export with their dates and message counts.

    \b
    Examples:
        threadfilter threads messages.htm
        threadfilter threads messages.htm --person Alice
    """
    configure_logging(verbose)
    settings = resolve_settings(person=person, encoding=encoding)

    sink = BufferingSink()
    parser = ThreadParser(settings.person or "", sink)
    try:
        parser.parse(source, encoding=settings.encoding)
    except ExportParseError as exc:
        report_parse_error(exc)
        sys.exit(1)

    found = sink.sorted_threads()
    if not found:
        console.print("[yellow]No matching threads found.[/yellow]")
        return

    table = Table(title=f"Threads ({len(found)} of {parser.threads_seen})")
    table.add_column("First message", style="dim", no_wrap=True)
    table.add_column("Participants", style="cyan", max_width=60)
    table.add_column("Msgs", justify="right")

    for thread in found:
        first = format_date(thread.earliest_timestamp())
        table.add_row(first, thread.participants, str(len(thread.messages)))

    console.print(table)
