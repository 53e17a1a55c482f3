"""
Markdown renderer used by the rendered-markup tokenizer pass.

Renders ``message.html`` with Python-Markdown and protects code and links:
every rendered ``<pre>`` block, ``<code>`` span and ``<a>`` anchor is swapped
for a renderer placeholder (``=!=<hex>=!=``) and recorded in the message's
token stream, so the tokenizer can turn it into a notranslate marker
afterwards. Hash headings are switched off: in chat, ``#general`` names a
channel.

Notranslate markers already in the text are stashed before rendering and put
back afterwards, so they come out byte-for-byte even inside code.
"""

import logging
import re
import uuid

import markdown
from markdown.extensions import Extension

from autotranslate.config.constants import RENDERER_PLACEHOLDER_TEMPLATE
from autotranslate.services.translation.entities import Message
from autotranslate.services.translation.tokens import MARKER_PATTERN, Token, TokenStream, contains_marker

logger = logging.getLogger(__name__)

PROTECTED_SPAN_PATTERN = re.compile(
    r"<pre[^>]*>.*?</pre>|<code[^>]*>.*?</code>|<a\s[^>]*>.*?</a>",
    re.DOTALL
)

DEFAULT_EXTENSIONS = ["fenced_code"]


class ChatMarkdownExtension(Extension):
    """Chat flavour: a leading ``#`` is a channel reference, not a heading."""

    def extendMarkdown(self, md):
        md.parser.blockprocessors.deregister("hashheader", strict=False)


class MarkdownRenderer:
    """
    Markdown to HTML with code and link protection.

    Args:
        extensions: Python-Markdown extensions to enable; the chat flavour
            is always added
    """

    def __init__(self, extensions=None):
        self.extensions = list(extensions if extensions is not None else DEFAULT_EXTENSIONS)
        self.extensions.append(ChatMarkdownExtension())

    def render(self, message: Message) -> Message:
        if not isinstance(message.tokens, TokenStream):
            message.tokens = TokenStream(list(message.tokens or []))

        source = message.html if message.html is not None else message.text
        stash = {}
        # Letters and digits only, so markdown leaves the keys alone
        prefix = "mk" + uuid.uuid4().hex

        def keep(match):
            key = f"{prefix}x{len(stash)}x"
            stash[key] = match.group(0)
            return key

        source = MARKER_PATTERN.sub(keep, source or "")
        rendered = markdown.markdown(source, extensions=self.extensions)

        def protect(match):
            span = match.group(0)
            if contains_marker(self._restore(span, stash)):
                return span
            placeholder = RENDERER_PLACEHOLDER_TEMPLATE.format(key=uuid.uuid4().hex)
            message.tokens.append(Token(marker=placeholder, text=self._restore(span, stash)))
            return placeholder

        rendered = PROTECTED_SPAN_PATTERN.sub(protect, rendered)
        message.html = self._restore(rendered, stash)
        return message

    @staticmethod
    def _restore(text: str, stash) -> str:
        for key, marker in stash.items():
            text = text.replace(key, marker)
        return text
