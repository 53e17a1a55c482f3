"""
Tokenizer - protects the non-translatable parts of a chat message.

Four passes run in a fixed order, each rewriting ``message.text`` and
appending to ``message.tokens`` (one shared, strictly increasing counter):

1. Emoji shortcodes (``:smile:``)
2. Links (``[text](https://...)``, ``![alt](https://...)``, ``<https://...|text>``)
3. Rendered markup (the message is rendered; the spans the renderer protected
   are re-marked with notranslate markers)
4. Mentions and channels (``@username``, ``#channel``)

Markers are opaque to every later pass: none of the pass patterns can match
inside the wrapper form.

Usage:
    from autotranslate.services.translation.tokenizer import Tokenizer

    tokenizer = Tokenizer(renderer, schemes="http,https")
    message = tokenizer.tokenize(message)
    # message.text: "Hello <i class=notranslate>{3}</i>, check <i class=notranslate>{0}</i> ..."
"""

import logging
import re
from typing import Iterable, Optional

from autotranslate.services.protocols import Renderer
from autotranslate.services.translation.entities import Message
from autotranslate.services.translation.exceptions import MalformedInputError
from autotranslate.services.translation.tokens import TokenStream, contains_marker

logger = logging.getLogger(__name__)

# :identifier: with letters, digits and "+"
EMOJI_PATTERN = re.compile(r":[+\w\d]+:")

# Some renderers wrap the complete message in a <p>; that wrapper is not part of the message
WRAPPED_PARAGRAPH_PATTERN = re.compile(r"^\s*<p>|</p>\s*$", re.MULTILINE)


def _ensure_stream(message: Message) -> TokenStream:
    if not isinstance(message.tokens, TokenStream):
        message.tokens = TokenStream(list(message.tokens or []))
    return message.tokens


def parse_schemes(schemes: Optional[str]) -> str:
    """
    Turn the comma separated scheme setting into a regex alternation.

    Raises:
        MalformedInputError: If no scheme is configured
    """
    if schemes is None:
        raise MalformedInputError("Link schemes are not configured")
    names = [name.strip() for name in str(schemes).split(",") if name.strip()]
    if not names:
        raise MalformedInputError(f"Link schemes setting is empty: {schemes!r}")
    return "|".join(re.escape(name) for name in names)


def tokenize_emojis(message: Message) -> Message:
    stream = _ensure_stream(message)
    message.text = EMOJI_PATTERN.sub(lambda match: stream.add(match.group(0)), message.text)
    return message


def tokenize_links(message: Message, schemes: Optional[str]) -> Message:
    """
    Protect link syntax while leaving the visible link text translatable.

    Each link becomes two markers bracketing its text: one for the opening
    syntax, one for the closing syntax (including the target URL).
    """
    stream = _ensure_stream(message)
    alternation = parse_schemes(schemes)

    def bracket(match: re.Match) -> str:
        pre, text, post = match.group(1), match.group(2), match.group(3)
        pre_marker = stream.add(pre)
        post_marker = stream.add(post)
        return pre_marker + text + post_marker

    # ![alt text](http://image url) and [text](http://link)
    markdown_link = re.compile(
        rf"(!?\[)([^\]]+)(\]\((?:{alternation}):\/\/[^\)]+\))",
        re.MULTILINE
    )
    message.text = markdown_link.sub(bracket, message.text)

    # <http://link|Text>, raw or html-escaped
    angle_link = re.compile(
        rf"((?:<|&lt;)(?:{alternation}):\/\/[^\|]+\|)(.+?)(?=>|&gt;)((?:>|&gt;))",
        re.MULTILINE
    )
    message.text = angle_link.sub(bracket, message.text)

    return message


def tokenize_markup(message: Message, renderer: Renderer) -> Message:
    """
    Render the message and protect what the renderer produced.

    After rendering, every token entry whose placeholder is not a notranslate
    marker (the renderer's own placeholders) gets a fresh marker, updated in
    place so its original fragment is preserved. Rendering may move or
    reformat those placeholders, so the rendered output is the source of truth.
    """
    stream = _ensure_stream(message)

    message.html = message.text
    message = renderer.render(message)
    stream = _ensure_stream(message)

    text = WRAPPED_PARAGRAPH_PATTERN.sub("", message.html or "")

    for token in stream:
        if not token.is_notranslate:
            new_marker = stream.next_marker()
            text = text.replace(token.marker, new_marker, 1)
            token.marker = new_marker

    message.text = text
    return message


def _tokenize_literals(message: Message, prefix: str, names: Iterable[str]) -> None:
    stream = message.tokens
    for name in names:
        if not name:
            continue
        pattern = re.compile(f"({re.escape(prefix + name)})", re.MULTILINE)
        message.text = pattern.sub(lambda match: stream.add(match.group(0)), message.text)


def tokenize_mentions(message: Message) -> Message:
    _ensure_stream(message)
    if message.mentions:
        _tokenize_literals(message, "@", (mention.username for mention in message.mentions))
    if message.channels:
        _tokenize_literals(message, "#", (channel.name for channel in message.channels))
    return message


class Tokenizer:
    """
    Runs the four tokenizer passes over a message.

    Args:
        renderer: Markdown renderer used by the markup pass
        schemes: Comma separated URL schemes for the link pass
    """

    def __init__(self, renderer: Renderer, schemes: Optional[str]):
        self._renderer = renderer
        self._schemes = schemes

    def tokenize(self, message: Message) -> Message:
        """
        Extract the non-translatable parts of a message.

        Raises:
            MalformedInputError: If the link schemes are not configured
        """
        _ensure_stream(message)

        if contains_marker(message.text):
            logger.warning(
                f"[Tokenizer] Message {message.id} already contains notranslate markers; "
                f"restored text may differ from the original"
            )

        message = tokenize_emojis(message)
        message = tokenize_links(message, self._schemes)
        message = tokenize_markup(message, self._renderer)
        message = tokenize_mentions(message)

        logger.debug(f"[Tokenizer] Message {message.id}: {len(message.tokens)} tokens")
        return message
