"""Thread and message records rebuilt from a chat-history export."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class Message:
    """One authored entry inside a thread.

    ``sender`` is only the first word of the name shown in the export,
    ``timestamp`` stays ``None`` until the header's meta line is parsed.
    """

    sender: str = ""
    timestamp: Optional[datetime] = None
    body: str = ""


@dataclass
class Thread:
    """A conversation whose participants line matched the target person.

    ``messages`` keeps document order, which the export writes
    newest-first. ``date`` is the representative date used to sort
    threads: the earliest message timestamp seen so far, or the moment
    the thread was created when no message carried a date.
    """

    participants: str
    date: datetime
    messages: List[Message] = field(default_factory=list)

    def new_message(self) -> Message:
        message = Message()
        self.messages.append(message)
        return message

    def note_date(self, when: datetime) -> None:
        """Lower the representative date if ``when`` is earlier."""
        if when < self.date:
            self.date = when

    def earliest_timestamp(self) -> Optional[datetime]:
        """Earliest parsed message date, or ``None`` if no message is dated."""
        dated = [m.timestamp for m in self.messages if m.timestamp is not None]
        return min(dated) if dated else None

    def chronological(self) -> List[Message]:
        """Messages oldest-first."""
        return list(reversed(self.messages))
