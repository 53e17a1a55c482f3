"""
Detokenizer - restores protected fragments in (translated) text.

Substitution is simultaneous: one pattern matches every marker of the stream
and each match is replaced by its token's ``render_override`` or original
text. Token order therefore does not matter, and restored fragments are never
scanned again.
"""

import logging
import re
from typing import Iterable

from autotranslate.services.translation.entities import Message
from autotranslate.services.translation.tokens import Token

logger = logging.getLogger(__name__)


def detokenize(text: str, tokens: Iterable[Token]) -> str:
    """
    Replace every occurrence of every marker in ``text``.

    Markers missing from ``text`` (dropped by a provider) are skipped silently.

    Args:
        text: Text containing markers, typically a provider's translation
        tokens: Tokens produced when the source message was tokenized

    Returns:
        Text with original (or overridden) fragments restored
    """
    replacements = {token.marker: token.replacement for token in tokens}
    if not text or not replacements:
        return text

    missing = sum(1 for marker in replacements if marker not in text)
    if missing:
        logger.debug(f"[Detokenizer] {missing}/{len(replacements)} markers missing from text")

    # Longest first so no marker can shadow another that it prefixes
    pattern = re.compile(
        "|".join(re.escape(marker) for marker in sorted(replacements, key=len, reverse=True))
    )
    return pattern.sub(lambda match: replacements[match.group(0)], text)


def detokenize_message(message: Message) -> str:
    """Detokenize a message's own text with its own token stream."""
    return detokenize(message.text, message.tokens)
