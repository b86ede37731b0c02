"""Streaming state machine that rebuilds threads from export HTML tokens.

The export nests its markup like this::

    <div class="thread">Alice, Bob
      <div class="message">
        <div class="message_header">
          <span class="user">Alice Smith</span>
          <span class="meta">Monday, January 2, 2023 at 3:04pm PST</span>
        </div>
        <p>body</p>          (nested layout)
      </div>
      <p>body</p>            (sibling layout, body follows its message)
    </div>

The parser looks at one token at a time and never builds a document tree.
Only threads whose participants line contains the target person are kept;
everything else is skipped at the thread level. Any token the grammar does
not expect in the current state raises :class:`UnexpectedToken`.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone
from typing import BinaryIO, Callable, Dict, List, Optional, Protocol

from threadfilter.export.base import Message, Thread
from threadfilter.export.dates import DateParser, parse_date
from threadfilter.export.errors import UnexpectedToken
from threadfilter.export.tokens import Token, Tokenizer, TokenKind, start_tag

logger = logging.getLogger(__name__)


class State(enum.Enum):
    INIT = "init"
    THREAD_HEADER = "thread header"
    THREAD = "thread"
    MESSAGE = "message"
    MESSAGE_HEADER = "message header"
    USER = "user"
    META = "meta"
    MESSAGE_PARAGRAPH = "message paragraph"

    def __str__(self) -> str:
        return self.value


class ThreadSink(Protocol):
    """Receives records as the parser completes them."""

    def message_closed(self, thread: Thread, message: Message) -> None:
        ...

    def thread_closed(self, thread: Thread) -> None:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_body(text: str) -> str:
    """Replace each carriage return and line feed with a space."""
    return text.replace("\r", " ").replace("\n", " ")


def first_word(text: str) -> str:
    words = text.split()
    return words[0] if words else ""


class ThreadParser:
    """Feed tokens in, get :class:`Thread` records out through a sink.

    All parse state lives on the instance, so several parsers can run
    side by side. ``clock`` supplies the creation time used as a thread's
    representative date before any of its messages is dated.

    Each message reaches ``sink.message_closed`` exactly once, when no
    more body text can arrive for it: at its closing tag if a nested
    ``<p>`` gave it a body, otherwise when the next message starts or the
    thread ends, since sibling ``<p>`` elements may still follow it.
    Several paragraphs for one message are joined with a space.
    """

    def __init__(
        self,
        person: str,
        sink: ThreadSink,
        date_parser: DateParser = parse_date,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.person = person
        self.sink = sink
        self.date_parser = date_parser
        self.clock = clock

        self.state = State.INIT
        self.thread: Optional[Thread] = None
        self.message: Optional[Message] = None
        # Closed message that sibling <p> elements may still add body text to
        self._pending: Optional[Message] = None
        self._has_body = False
        self._paragraph: List[str] = []
        self._paragraph_scope = State.THREAD

        self.threads_seen = 0
        self.threads_matched = 0
        self.messages_parsed = 0

        self._handlers: Dict[State, Callable[[Token], bool]] = {
            State.INIT: self._on_init,
            State.THREAD_HEADER: self._on_thread_header,
            State.THREAD: self._on_thread,
            State.MESSAGE: self._on_message,
            State.MESSAGE_HEADER: self._on_message_header,
            State.USER: self._on_user,
            State.META: self._on_meta,
            State.MESSAGE_PARAGRAPH: self._on_message_paragraph,
        }

    # ── Driving ────────────────────────────────────────────────────

    def parse(self, stream: BinaryIO, encoding: str = "utf-8") -> None:
        """Consume ``stream`` to the end, then :meth:`close`."""
        tokenizer = Tokenizer(stream, encoding=encoding)
        for token in tokenizer:
            self.feed(token, depth=tokenizer.depth)
        self.close()

    def feed(self, token: Token, depth: Optional[int] = None) -> None:
        """Advance the machine by one token.

        Raises:
            UnexpectedToken: the token is not allowed in the current state.
            DateFormatError: a meta line does not hold a valid date.
        """
        handled = self._handlers[self.state](token)
        if not handled:
            raise UnexpectedToken(self.state, token, depth)

    def close(self) -> None:
        """End of input. A thread still open has already matched, so keep it."""
        if self.thread is not None:
            logger.debug("%s: Input ended inside thread %r", self.state, self.thread.participants)
            self._finish_thread()
        self.state = State.INIT
        self.message = None
        logger.info(
            "Parsed %d messages in %d of %d threads",
            self.messages_parsed, self.threads_matched, self.threads_seen,
        )

    # ── Transitions ────────────────────────────────────────────────

    def _on_init(self, token: Token) -> bool:
        if start_tag(token, "div", "thread"):
            self.threads_seen += 1
            self.state = State.THREAD_HEADER
        return True

    def _on_thread_header(self, token: Token) -> bool:
        if token.kind is TokenKind.END_TAG:
            logger.debug("%s: End thread", self.state)
            self.state = State.INIT
            return True

        if token.kind is TokenKind.TEXT:
            participants = token.text.strip()
            if not participants:
                return True
            if self.person in participants:
                logger.debug("%s: Begin thread %r", self.state, participants)
                self.thread = Thread(participants=participants, date=self.clock())
                self.threads_matched += 1
                self.state = State.THREAD
            else:
                logger.debug("%s: Skipping thread %r", self.state, participants)
                self.state = State.INIT
            return True

        return False

    def _on_thread(self, token: Token) -> bool:
        if token.kind is TokenKind.END_TAG:
            logger.debug("%s: End thread", self.state)
            self._finish_thread()
            self.state = State.INIT
            return True

        if start_tag(token, "div", "message"):
            logger.debug("%s: Message", self.state)
            self._flush_pending()
            self.message = self.thread.new_message()
            self._has_body = False
            self.messages_parsed += 1
            self.state = State.MESSAGE
            return True

        if start_tag(token, "p"):
            logger.debug("%s: Message P", self.state)
            if self._pending is None:
                self._pending = self.thread.new_message()
                self._has_body = False
                self.messages_parsed += 1
            self.message = self._pending
            self._begin_paragraph(State.THREAD)
            return True

        return _is_blank(token)

    def _on_message(self, token: Token) -> bool:
        if token.kind is TokenKind.END_TAG:
            logger.debug("%s: End message", self.state)
            if self._has_body:
                self.sink.message_closed(self.thread, self.message)
            else:
                self._pending = self.message
            self.message = None
            self.state = State.THREAD
            return True

        if start_tag(token, "div", "message_header"):
            logger.debug("%s: Message header", self.state)
            self.message.sender = ""
            self.message.timestamp = None
            self.state = State.MESSAGE_HEADER
            return True

        if start_tag(token, "p"):
            logger.debug("%s: Message P", self.state)
            self._begin_paragraph(State.MESSAGE)
            return True

        return _is_blank(token)

    def _on_message_header(self, token: Token) -> bool:
        if token.kind is TokenKind.END_TAG:
            logger.debug("%s: End message header", self.state)
            self.state = State.MESSAGE
            return True

        if start_tag(token, "span", "user"):
            logger.debug("%s: Begin user", self.state)
            self.state = State.USER
            return True

        if start_tag(token, "span", "meta"):
            logger.debug("%s: Begin meta", self.state)
            self.state = State.META
            return True

        return _is_blank(token)

    def _on_user(self, token: Token) -> bool:
        if token.kind is TokenKind.END_TAG:
            logger.debug("%s: End user", self.state)
            self.state = State.MESSAGE_HEADER
            return True

        if token.kind is TokenKind.TEXT:
            self.message.sender = first_word(token.text)
            logger.debug("%s: User %r", self.state, self.message.sender)
            return True

        return False

    def _on_meta(self, token: Token) -> bool:
        if token.kind is TokenKind.END_TAG:
            logger.debug("%s: End meta", self.state)
            self.state = State.MESSAGE_HEADER
            return True

        if token.kind is TokenKind.TEXT:
            when = self.date_parser(token.text)
            self.message.timestamp = when
            self.thread.note_date(when)
            logger.debug("%s: Date %s", self.state, when.isoformat())
            return True

        return False

    def _on_message_paragraph(self, token: Token) -> bool:
        if token.kind is TokenKind.END_TAG:
            logger.debug("%s: End message P", self.state)
            self._end_paragraph()
            self.state = self._paragraph_scope
            if self.state is State.THREAD:
                self.message = None
            return True

        if token.kind is TokenKind.TEXT:
            self._paragraph.append(normalize_body(token.text))
            logger.debug("%s: MessageP %r", self.state, token.text)
            return True

        return False

    # ── Record bookkeeping ─────────────────────────────────────────

    def _begin_paragraph(self, scope: State) -> None:
        self._paragraph = []
        self._paragraph_scope = scope
        self.state = State.MESSAGE_PARAGRAPH

    def _end_paragraph(self) -> None:
        text = "".join(self._paragraph)
        if self._has_body:
            self.message.body = f"{self.message.body} {text}"
        else:
            self.message.body = text
        self._has_body = True
        self._paragraph = []

    def _flush_pending(self) -> None:
        if self._pending is not None:
            self.sink.message_closed(self.thread, self._pending)
            self._pending = None

    def _finish_thread(self) -> None:
        if self.state is State.MESSAGE_PARAGRAPH:
            self._end_paragraph()
        unsent = self.message if self.message is not None else self._pending
        if unsent is not None:
            self.sink.message_closed(self.thread, unsent)
        self.sink.thread_closed(self.thread)
        self.thread = None
        self.message = None
        self._pending = None
        self._has_body = False


def _is_blank(token: Token) -> bool:
    """Whitespace between structural elements carries no meaning."""
    return token.kind is TokenKind.TEXT and not token.text.strip()
