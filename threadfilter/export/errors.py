"""Errors raised while reading a chat-history export.

Every one of them is fatal: the parser never resynchronizes after a
mismatch, so callers either get the whole transcript or an exception.
"""

from __future__ import annotations

from typing import Any, Optional


class ExportParseError(Exception):
    """Base class for everything that can go wrong reading an export."""


class MalformedInput(ExportParseError):
    """The byte stream could not be tokenized (bad encoding, broken markup)."""


class UnexpectedToken(ExportParseError):
    """A token arrived that the grammar does not allow in the current state."""

    def __init__(self, state: Any, token: Any, depth: Optional[int] = None):
        self.state = state
        self.token = token
        self.depth = depth
        where = f" (depth {depth})" if depth is not None else ""
        super().__init__(f"{state}: unexpected {token}{where}")


class DateFormatError(ExportParseError):
    """Timestamp text does not match the export's date layout."""

    def __init__(self, text: str, reason: str = "does not match the export date layout"):
        self.text = text
        self.reason = reason
        super().__init__(f"cannot parse date {text!r}: {reason}")
