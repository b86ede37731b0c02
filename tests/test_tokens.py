import io

import pytest

from threadfilter.export.errors import MalformedInput
from threadfilter.export.tokens import Token, Tokenizer, TokenKind, has_attribute, start_tag

from conftest import SCENARIO


def tokenize(stream, encoding="utf-8", chunk_size=None):
    if chunk_size is None:
        return list(Tokenizer(stream, encoding=encoding))
    return list(Tokenizer(stream, encoding=encoding, chunk_size=chunk_size))


def _kinds(tokens):
    return [(t.kind, t.tag or t.text) for t in tokens]


def test_start_end_and_text_tokens():
    tokens = tokenize(io.BytesIO(b'<div class="thread">Alice, Bob</div>'))
    assert tokens == [
        Token(TokenKind.START_TAG, tag="div", attrs=(("class", "thread"),)),
        Token(TokenKind.TEXT, text="Alice, Bob"),
        Token(TokenKind.END_TAG, tag="div"),
    ]


def test_attributes_keep_document_order_and_empty_values():
    (token,) = tokenize(io.BytesIO(b'<span data-x="1" class="user" hidden>'))
    assert token.attrs == (("data-x", "1"), ("class", "user"), ("hidden", ""))


def test_self_closing_tag_is_start_then_end():
    tokens = tokenize(io.BytesIO(b"<p>a<br/>b</p>"))
    assert _kinds(tokens) == [
        (TokenKind.START_TAG, "p"),
        (TokenKind.TEXT, "a"),
        (TokenKind.START_TAG, "br"),
        (TokenKind.END_TAG, "br"),
        (TokenKind.TEXT, "b"),
        (TokenKind.END_TAG, "p"),
    ]


def test_comments_and_doctype_are_dropped():
    tokens = tokenize(io.BytesIO(b"<!DOCTYPE html><!-- note --><p>x</p>"))
    assert _kinds(tokens) == [
        (TokenKind.START_TAG, "p"),
        (TokenKind.TEXT, "x"),
        (TokenKind.END_TAG, "p"),
    ]


def test_character_references_are_decoded():
    tokens = tokenize(io.BytesIO(b"<p>Tom &amp; Jerry &#8212; ok</p>"))
    assert tokens[1].text == "Tom & Jerry — ok"


def test_text_is_not_split_by_small_chunks():
    data = SCENARIO.encode("utf-8")
    whole = tokenize(io.BytesIO(data))
    chunked = tokenize(io.BytesIO(data), chunk_size=3)
    assert chunked == whole


def test_multibyte_characters_across_chunks():
    data = "<p>café ☃</p>".encode("utf-8")
    tokens = tokenize(io.BytesIO(data), chunk_size=1)
    assert tokens[1].text == "café ☃"


def test_depth_tracks_start_and_end_tags():
    tokenizer = Tokenizer(io.BytesIO(b"<div><span>x</span></div>"))
    depths = []
    for _ in tokenizer:
        depths.append(tokenizer.depth)
    assert depths == [1, 2, 2, 1, 0]


def test_text_stream_is_accepted():
    tokens = tokenize(io.StringIO("<p>hi</p>"))
    assert tokens[1].text == "hi"


def test_other_encoding():
    tokens = tokenize(io.BytesIO("<p>été</p>".encode("latin-1")), encoding="latin-1")
    assert tokens[1].text == "été"


def test_invalid_bytes_raise_malformed_input():
    with pytest.raises(MalformedInput, match="not valid utf-8"):
        tokenize(io.BytesIO(b'<div class="thread">\xff\xfe</div>'))


def test_truncated_multibyte_sequence_at_end_raises():
    with pytest.raises(MalformedInput):
        tokenize(io.BytesIO(b"<p>caf\xc3"))


def test_empty_stream_yields_nothing():
    assert tokenize(io.BytesIO(b"")) == []


class TestHasAttribute:
    token = Token(TokenKind.START_TAG, tag="div", attrs=(("id", "t1"), ("class", "thread")))

    def test_match(self):
        assert has_attribute(self.token, "class", "thread")

    def test_value_mismatch(self):
        assert not has_attribute(self.token, "class", "message")

    def test_missing_key(self):
        assert not has_attribute(self.token, "title", "thread")

    def test_empty_key_or_value_is_no_constraint(self):
        assert has_attribute(self.token, "", "anything")
        assert has_attribute(self.token, "class", "")
        assert has_attribute(Token(TokenKind.START_TAG, tag="p"), "", "")

    def test_value_must_match_exactly(self):
        token = Token(TokenKind.START_TAG, tag="div", attrs=(("class", "thread wide"),))
        assert not has_attribute(token, "class", "thread")


def test_start_tag_helper():
    token = Token(TokenKind.START_TAG, tag="span", attrs=(("class", "user"),))
    assert start_tag(token, "span", "user")
    assert start_tag(token, "span")
    assert not start_tag(token, "div", "user")
    assert not start_tag(Token(TokenKind.END_TAG, tag="span"), "span")


def test_token_str_for_error_messages():
    assert str(Token(TokenKind.START_TAG, tag="p", attrs=(("class", "x"),))) == '<p class="x">'
    assert str(Token(TokenKind.END_TAG, tag="div")) == "</div>"
    assert str(Token(TokenKind.TEXT, text="hi")) == "text 'hi'"
