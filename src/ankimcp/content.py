"""Plain-text rendering of the HTML Anki returns for card faces."""

import re

_STYLE_BLOCK = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_LINE_BREAK = re.compile(r"<div[^>]*>|<br\s*/?>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_PLAY_DIRECTIVE = re.compile(r"\[anki:play:[^\]]+\]")

# Decoded in a single pass: "&amp;lt;" ends up as the literal text "&lt;".
_ENTITIES = {
    "nbsp": " ",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
}
_ENTITY = re.compile(r"&(nbsp|amp|lt|gt|quot);")


def clean_html(html: str) -> str:
    """Strip formatting that isn't needed to read a card.

    Style blocks, tags and audio play directives are removed, ``<div>`` and
    ``<br>`` become line breaks, the basic HTML entities are decoded, and
    every line is trimmed with blank lines dropped.
    """
    text = _STYLE_BLOCK.sub("", html)
    text = _LINE_BREAK.sub("\n", text)
    text = _TAG.sub(" ", text)
    text = _PLAY_DIRECTIVE.sub("", text)
    text = _ENTITY.sub(lambda m: _ENTITIES[m.group(1)], text)

    lines = (line.strip() for line in text.split("\n"))
    return "\n".join(line for line in lines if line)
