"""
Token markers and the per-message token stream.

A marker is a synthetic placeholder substituted for a protected span of a
message so that a translation provider can process the surrounding prose
without touching the span. Markers are built from a monotonically increasing
integer inside a fixed wrapper carrying the ``notranslate`` flag:

    <i class=notranslate>{3}</i>

Known limitation: a user who literally types the wrapper form can produce
text that collides with a marker. Tokenization logs a warning when it sees
this but does not escape it.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional

from autotranslate.config.constants import MARKER_TEMPLATE, NOTRANSLATE_FLAG

# Any marker in the wrapper form, whatever its index
MARKER_PATTERN = re.compile(
    r"<i class=" + re.escape(NOTRANSLATE_FLAG) + r">\{\d+\}</i>"
)


def make_marker(index: int) -> str:
    """Build the marker for the given stream index."""
    return MARKER_TEMPLATE.format(index=index)


def contains_marker(text: str) -> bool:
    """True if ``text`` already holds a notranslate marker."""
    return MARKER_PATTERN.search(text) is not None


@dataclass
class Token:
    """
    One protected fragment of a message.

    Attributes:
        marker: Placeholder currently standing in for the fragment
        text: Original fragment, restored verbatim on detokenization
        render_override: Optional replacement used instead of ``text``. The
            tokenizer never sets it (the renderer records the rendered HTML
            as ``text``); it is left for hosts and providers that restore
            a fragment in another form, e.g. a localized mention
    """
    marker: str
    text: str
    render_override: Optional[str] = None

    @property
    def is_notranslate(self) -> bool:
        return NOTRANSLATE_FLAG in self.marker

    @property
    def replacement(self) -> str:
        if self.render_override is not None:
            return self.render_override
        return self.text


class TokenStream:
    """
    Ordered record of the tokens extracted from one message.

    The stream owns the marker counter for its message. The counter only moves
    forward, so a marker is never handed out twice even when entries are
    appended without consuming it (renderer placeholders) or re-marked later.
    """

    def __init__(self, tokens: Optional[List[Token]] = None):
        self._tokens: List[Token] = list(tokens or [])
        self._next_index = len(self._tokens)

    def next_marker(self) -> str:
        """Reserve the next marker without recording a token."""
        marker = make_marker(self._next_index)
        self._next_index += 1
        return marker

    def add(self, text: str, render_override: Optional[str] = None) -> str:
        """Record ``text`` under a fresh marker and return the marker."""
        marker = self.next_marker()
        self._tokens.append(Token(marker=marker, text=text, render_override=render_override))
        return marker

    def append(self, token: Token) -> None:
        """Record a token that already carries its own placeholder."""
        self._tokens.append(token)

    def markers(self) -> List[str]:
        return [token.marker for token in self._tokens]

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __getitem__(self, index: int) -> Token:
        return self._tokens[index]

    def __repr__(self) -> str:
        return f"<TokenStream {len(self._tokens)} tokens, next={self._next_index}>"
