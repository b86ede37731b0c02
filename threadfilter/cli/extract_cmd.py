"""CLI command that prints one person's threads from a chat export."""

from __future__ import annotations

import codecs
import logging
import sys
from typing import BinaryIO, Optional

import click
from rich.console import Console
from rich.markup import escape

from threadfilter.config import resolve_settings
from threadfilter.export.errors import ExportParseError
from threadfilter.export.parser import ThreadParser
from threadfilter.log import configure_logging
from threadfilter.output import MODES, make_sink

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def validate_encoding(ctx, param, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        codecs.lookup(value)
    except LookupError:
        raise click.BadParameter(f"unknown encoding {value!r}")
    return value


def report_parse_error(exc: ExportParseError) -> None:
    console.print(f"[red]Error:[/red] {escape(str(exc))}", soft_wrap=True)


@click.command("extract")
@click.argument("source", type=click.File("rb"), default="-")
@click.option("--person", "-p", default=None,
              help="Name to look for in each thread's participants line "
                   "(default: $THREADFILTER_PERSON or config file)")
@click.option("--mode", type=click.Choice(MODES), default=None,
              help="buffer: sort threads by date before printing; "
                   "stream: print each message as it is parsed")
@click.option("--encoding", default=None, callback=validate_encoding,
              help="Character encoding of the export (default: utf-8)")
@click.option("--verbose", "-v", is_flag=True, help="Log parser transitions to stderr")
def extract(
    source: BinaryIO,
    person: Optional[str],
    mode: Optional[str],
    encoding: Optional[str],
    verbose: bool,
):
    """Print every thread with PERSON from a chat-history HTML export.

    SOURCE is the export file; stdin is read when it is omitted or "-".
    Threads come out oldest-first, each followed by its messages
    oldest-first. Any structural surprise in the export aborts the run
    with exit status 1 and no transcript.

    \b
    Examples:
        threadfilter extract messages.htm --person Alice
        threadfilter extract messages.htm -p Alice --mode stream
        cat messages.htm | threadfilter extract -p "Alice Smith"
    """
    configure_logging(verbose)
    settings = resolve_settings(person=person, mode=mode, encoding=encoding)
    if settings.person is None:
        raise click.UsageError(
            "No person given. Use --person, set THREADFILTER_PERSON, "
            "or add 'person:' to the config file."
        )

    sink = make_sink(settings.mode, sys.stdout)
    parser = ThreadParser(settings.person, sink)
    logger.debug("Extracting threads with %r (%s mode)", settings.person, settings.mode)

    try:
        parser.parse(source, encoding=settings.encoding)
    except ExportParseError as exc:
        report_parse_error(exc)
        sys.exit(1)

    sink.finish()
