"""Pull-style HTML tokenizer over a byte stream.

Wraps :class:`html.parser.HTMLParser`: bytes are read in chunks, decoded
incrementally and fed to the parser, whose callbacks queue :class:`Token`
values for the caller to pull one at a time. Nothing but the current chunk
and the pending tokens is ever held in memory.
"""

from __future__ import annotations

import codecs
import enum
import logging
from collections import deque
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import BinaryIO, Deque, Iterator, TextIO, Tuple, Union

from threadfilter.export.errors import MalformedInput

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class TokenKind(enum.Enum):
    START_TAG = "start tag"
    END_TAG = "end tag"
    TEXT = "text"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    tag: str = ""
    attrs: Tuple[Tuple[str, str], ...] = ()
    text: str = ""

    def __str__(self) -> str:
        if self.kind is TokenKind.START_TAG:
            attrs = "".join(f' {key}="{value}"' for key, value in self.attrs)
            return f"<{self.tag}{attrs}>"
        if self.kind is TokenKind.END_TAG:
            return f"</{self.tag}>"
        preview = self.text if len(self.text) <= 60 else self.text[:57] + "..."
        return f"text {preview!r}"


def has_attribute(token: Token, key: str, value: str) -> bool:
    """True if ``token`` carries ``key="value"``.

    An empty key or value means "no constraint" and always matches.
    """
    if not key or not value:
        return True
    return (key, value) in token.attrs


def start_tag(token: Token, tag: str, class_name: str = "") -> bool:
    """True for a start tag named ``tag`` whose class is ``class_name``."""
    return (
        token.kind is TokenKind.START_TAG
        and token.tag == tag
        and has_attribute(token, "class", class_name)
    )


class _TokenCollector(HTMLParser):
    """HTMLParser that queues tokens instead of acting on them.

    Comments, declarations and processing instructions fall through to
    the base class no-ops and never become tokens.
    """

    def __init__(self, queue: Deque[Token]):
        super().__init__(convert_charrefs=True)
        self._queue = queue

    def handle_starttag(self, tag, attrs):
        pairs = tuple((key, value if value is not None else "") for key, value in attrs)
        self._queue.append(Token(TokenKind.START_TAG, tag=tag, attrs=pairs))

    def handle_endtag(self, tag):
        self._queue.append(Token(TokenKind.END_TAG, tag=tag))

    def handle_data(self, data):
        # Merge runs the parser reports in pieces so a text node is one token
        if self._queue and self._queue[-1].kind is TokenKind.TEXT:
            data = self._queue.pop().text + data
        self._queue.append(Token(TokenKind.TEXT, text=data))


class Tokenizer:
    """Iterate over the HTML tokens of a byte (or text) stream.

    ``depth`` goes up by one per start tag and down by one per end tag.
    It is informational; void elements such as ``<br>`` make it drift on
    perfectly valid HTML.
    """

    def __init__(
        self,
        stream: Union[BinaryIO, TextIO],
        encoding: str = "utf-8",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self._stream = stream
        self.encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="strict")
        self._chunk_size = chunk_size
        self._queue: Deque[Token] = deque()
        self._html = _TokenCollector(self._queue)
        self._exhausted = False
        self._bytes_read = 0
        self.depth = 0

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        while not self._ready():
            if self._exhausted:
                raise StopIteration
            self._fill()

        token = self._queue.popleft()
        if token.kind is TokenKind.START_TAG:
            self.depth += 1
        elif token.kind is TokenKind.END_TAG:
            self.depth -= 1
        return token

    def _ready(self) -> bool:
        if not self._queue:
            return False
        # A lone trailing text token may still grow with the next chunk
        if self._exhausted or len(self._queue) > 1:
            return True
        return self._queue[0].kind is not TokenKind.TEXT

    def _fill(self) -> None:
        chunk = self._stream.read(self._chunk_size)
        if not chunk:
            self._exhausted = True

        try:
            if isinstance(chunk, str):
                text = chunk
            else:
                text = self._decoder.decode(chunk, final=self._exhausted)
            self._html.feed(text)
            if self._exhausted:
                self._html.close()
        except UnicodeDecodeError as exc:
            raise MalformedInput(
                f"input is not valid {self.encoding} near byte "
                f"{self._bytes_read + exc.start}: {exc.reason}"
            ) from exc
        except (AssertionError, ValueError) as exc:
            # HTMLParser signals markup it cannot make sense of this way
            raise MalformedInput(f"cannot tokenize input: {exc}") from exc

        self._bytes_read += len(chunk)
        logger.debug("Read %d bytes, %d tokens pending", len(chunk), len(self._queue))

