from __future__ import annotations

import io
from datetime import datetime, timezone

import pytest

FIXED_NOW = datetime(2030, 1, 1, tzinfo=timezone.utc)

SCENARIO = (
    '<div class="thread">Alice, Bob<div class="message"><div class="message_header">'
    '<span class="user">Alice Smith</span>'
    '<span class="meta">Monday, January 2, 2023 at 3:04pm PST</span></div>'
    "<p>Hello there\r\nfriend</p></div></div>"
)


def message_html(user: str, meta: str, body: str) -> str:
    return (
        '<div class="message"><div class="message_header">'
        f'<span class="user">{user}</span><span class="meta">{meta}</span>'
        f"</div><p>{body}</p></div>"
    )


def thread_html(participants: str, *messages: str) -> str:
    return f'<div class="thread">{participants}{"".join(messages)}</div>'


def export_html(*threads: str) -> str:
    return (
        "<!DOCTYPE html><html><head><title>Messages</title></head><body>"
        '<div class="contents"><h1>Messages</h1>'
        + "".join(threads)
        + "</div></body></html>"
    )


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def as_stream():
    def _as_stream(html: str) -> io.BytesIO:
        return io.BytesIO(html.encode("utf-8"))
    return _as_stream


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the developer's own config and environment out of every test."""
    monkeypatch.setenv("THREADFILTER_CONFIG", str(tmp_path / "no-config.yaml"))
    monkeypatch.delenv("THREADFILTER_PERSON", raising=False)
    monkeypatch.delenv("THREADFILTER_MODE", raising=False)
    return tmp_path / "no-config.yaml"
