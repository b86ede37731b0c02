from threadfilter.export.base import Message, Thread
from threadfilter.export.dates import DateLayout, parse_date
from threadfilter.export.errors import (
    DateFormatError,
    ExportParseError,
    MalformedInput,
    UnexpectedToken,
)
from threadfilter.export.parser import State, ThreadParser
from threadfilter.export.tokens import Token, Tokenizer, TokenKind, has_attribute

__all__ = [
    "Message",
    "Thread",
    "DateLayout",
    "parse_date",
    "DateFormatError",
    "ExportParseError",
    "MalformedInput",
    "UnexpectedToken",
    "State",
    "ThreadParser",
    "Token",
    "Tokenizer",
    "TokenKind",
    "has_attribute",
]
