"""
autotranslate: marker-protected machine translation for chat messages.

The package tokenizes the non-translatable parts of a rendered chat message
(emoji shortcodes, links, rendered markup, mentions and channels), hands the
marked text to a runtime-selected translation provider without blocking the
message-save path, and restores the protected fragments afterwards.
"""

__version__ = "1.0.0"
