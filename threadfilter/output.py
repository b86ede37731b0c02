"""Turn parsed threads into the plain-text transcript.

Two sinks share one format:

- ``BufferingSink`` keeps every matching thread, then prints threads
  oldest-first by representative date with each thread's messages
  oldest-first (the export lists them newest-first).
- ``StreamingSink`` prints each message the moment its body paragraph
  closes, in raw document order, with no thread headers.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, TextIO, Union

from threadfilter.export.base import Message, Thread

logger = logging.getLogger(__name__)

MODES = ("buffer", "stream")

DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z %Z"


def format_date(when: Optional[datetime]) -> str:
    """Render a timestamp as ``2023-01-02 15:04:00 -0800 PST``."""
    if when is None:
        return ""
    return when.strftime(DATE_FORMAT)


def format_thread_header(thread: Thread) -> str:
    """Header line dated by the thread's earliest message, never by the sort key."""
    return f"{format_date(thread.earliest_timestamp())}\t{thread.participants}:\n"


def format_message_line(message: Message) -> str:
    return f"{format_date(message.timestamp)}\t{message.sender}:\t{message.body}\n"


def render_threads(threads: List[Thread], out: TextIO) -> int:
    """Write threads in the order given. Returns the number of lines written.

    Threads without messages print nothing, not even a header.
    """
    lines = 0
    for thread in threads:
        if not thread.messages:
            continue
        out.write(format_thread_header(thread))
        lines += 1
        for message in thread.chronological():
            out.write(format_message_line(message))
            lines += 1
    return lines


class BufferingSink:
    """Collect threads; print them sorted once the parse has finished."""

    def __init__(self, out: Optional[TextIO] = None):
        self.out = out
        self.threads: List[Thread] = []

    def message_closed(self, thread: Thread, message: Message) -> None:
        pass

    def thread_closed(self, thread: Thread) -> None:
        self.threads.append(thread)

    def sorted_threads(self) -> List[Thread]:
        """Threads ascending by representative date; ties keep document order."""
        return sorted(self.threads, key=lambda t: t.date)

    def finish(self) -> None:
        if self.out is None:
            return
        lines = render_threads(self.sorted_threads(), self.out)
        self.out.flush()
        logger.debug("Wrote %d lines for %d threads", lines, len(self.threads))


class StreamingSink:
    """Print each message as soon as the parser hands it over, in document order."""

    def __init__(self, out: TextIO):
        self.out = out
        self.count = 0

    def message_closed(self, thread: Thread, message: Message) -> None:
        self.out.write(format_message_line(message))
        self.count += 1

    def thread_closed(self, thread: Thread) -> None:
        self.out.flush()

    def finish(self) -> None:
        self.out.flush()
        logger.debug("Streamed %d messages", self.count)


def make_sink(mode: str, out: TextIO) -> Union[BufferingSink, StreamingSink]:
    if mode == "stream":
        return StreamingSink(out)
    if mode == "buffer":
        return BufferingSink(out)
    raise ValueError(f"Unknown output mode: {mode}. Use one of {', '.join(MODES)}.")
