"""
Splits bot replies into prose and fenced code blocks, and renders them.

A reply is scanned for GitHub-style fences::

    ```python
    print("hi")
    ```

Prose between fences becomes a :class:`TextSegment`; each fence becomes a
:class:`CodeSegment`.  Whitespace-only prose between fences is dropped.  An
opening fence without a closing one is left in the surrounding prose.
"""

import re
from dataclasses import dataclass
from typing import Callable, Union

import markdown

#: Opening fence, optional language tag, newline, lazy body, closing fence.
CODE_FENCE_RE = re.compile(r"```(\w*)\n([\s\S]*?)```", re.ASCII)

FENCE = "```"

_HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#039;",
})


@dataclass(frozen=True)
class TextSegment:
    markdown_source: str


@dataclass(frozen=True)
class CodeSegment:
    language: str
    content: str


RenderedSegment = Union[TextSegment, CodeSegment]


def escape_html(text: str) -> str:
    """Escape ``& < > " '`` in one pass, so existing entities are escaped once."""
    return text.translate(_HTML_ESCAPES)


def render_segments(reply: str) -> list[RenderedSegment]:
    """Split *reply* into text and code segments, in order."""
    if FENCE not in reply:
        return [TextSegment(reply)]

    segments: list[RenderedSegment] = []
    last_index = 0
    for match in CODE_FENCE_RE.finditer(reply):
        before = reply[last_index:match.start()]
        if before.strip():
            segments.append(TextSegment(before.strip()))
        segments.append(CodeSegment(match.group(1) or "", match.group(2)))
        last_index = match.end()

    remainder = reply[last_index:]
    if remainder.strip():
        segments.append(TextSegment(remainder.strip()))
    return segments


def to_source(segments: list[RenderedSegment]) -> str:
    """Serialise *segments* back to markdown, one segment per block."""
    blocks = []
    for seg in segments:
        if isinstance(seg, CodeSegment):
            blocks.append(f"{FENCE}{seg.language}\n{seg.content}{FENCE}")
        else:
            blocks.append(seg.markdown_source)
    return "\n".join(blocks)


def transcript_to_markdown(transcript: list[tuple[str, str]]) -> str:
    """Return a markdown document for a list of ``(sender, text)`` turns.

    Bot replies are re-serialised from their segments, so every code block
    starts on its own line with its language tag.
    """
    turns = []
    for sender, text in transcript:
        if sender == "user":
            turns.append(f"**You:** {text}")
        else:
            turns.append(f"**Assistant:**\n\n{to_source(render_segments(text))}")
    return "\n\n".join(turns) + "\n"


def markdown_converter() -> Callable[[str], str]:
    """Return a markdown → HTML function backed by the ``markdown`` package."""
    md = markdown.Markdown(extensions=["fenced_code", "tables", "nl2br"])

    def convert(text: str) -> str:
        return md.reset().convert(text)

    return convert


class MessageRenderer:
    """Turns chat turns into HTML.

    *markdown_fn* converts prose to HTML.  When it is ``None`` prose is
    emitted as-is (not escaped).
    """

    def __init__(self, markdown_fn: Callable[[str], str] | None = None) -> None:
        self._markdown = markdown_fn or (lambda text: text)
        self._code_ids = 0

    def _prose(self, text: str, css: str) -> str:
        return f'<div class="{css}">{self._markdown(text)}</div>'

    def _code(self, seg: CodeSegment) -> str:
        self._code_ids += 1
        code_id = f"chat-code-{self._code_ids}"
        return (
            '<div class="chat-code">'
            f'<pre><code id="{code_id}" class="language-{escape_html(seg.language)}">'
            f"{escape_html(seg.content)}</code></pre>"
            f'<button class="copy-code-btn" data-copy-target="{code_id}">'
            '<i class="copy icon"></i> Copy</button>'
            "</div>"
        )

    def render_html(self, reply: str) -> str:
        """Return the markup for one bot reply."""
        if FENCE not in reply:
            return self._prose(reply, "chat-message bot prose prose-invert")

        parts = []
        for seg in render_segments(reply):
            if isinstance(seg, CodeSegment):
                parts.append(self._code(seg))
            else:
                parts.append(self._prose(seg.markdown_source,
                                         "chat-text prose prose-invert"))
        return f'<div class="chat-message bot">{"".join(parts)}</div>'

    @staticmethod
    def render_user_html(text: str) -> str:
        """Return the markup for one user message (plain, escaped text)."""
        return f'<div class="chat-message user">{escape_html(text)}</div>'

    def render_transcript(self, transcript: list[tuple[str, str]],
                          title: str = "Chat") -> str:
        """Return a standalone HTML page for a list of ``(sender, text)``."""
        body = []
        for sender, text in transcript:
            if sender == "user":
                body.append(self.render_user_html(text))
            else:
                body.append(self.render_html(text))
        return (
            "<!DOCTYPE html>\n"
            f"<html><head><meta charset=\"utf-8\"><title>{escape_html(title)}</title></head>\n"
            '<body><div class="chat-log">\n'
            + "\n".join(body)
            + "\n</div></body></html>\n"
        )
