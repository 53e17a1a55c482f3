"""
Translation Engine Module

This module contains the marker-protection engine:
- TokenStream: Per-message token record and marker counter
- Tokenizer: The four protection passes (emoji, link, markup, mention)
- detokenize: Restores protected fragments in translated text
- ProviderRegistry: Registered providers and the active provider name
- AutoTranslate: Per-provider orchestrator on the after-save hook

Usage:
    from autotranslate.services.translation import Message, detokenize
    from autotranslate.services.translation.tokenizer import Tokenizer
    from autotranslate.services.translation.orchestrator import AutoTranslate
"""

from autotranslate.services.translation.tokens import Token, TokenStream, make_marker
from autotranslate.services.translation.entities import (
    Attachment,
    ChannelRef,
    Mention,
    Message,
    ProviderMetadata,
    ProviderSetting,
    Room,
    SupportedLanguage,
)
from autotranslate.services.translation.exceptions import (
    AutoTranslateError,
    MalformedInputError,
    ProviderImportError,
    RegistryNotInitializedError,
)
from autotranslate.services.translation.detokenizer import detokenize, detokenize_message

__all__ = [
    # Tokens
    "Token",
    "TokenStream",
    "make_marker",
    # Entities
    "Attachment",
    "ChannelRef",
    "Mention",
    "Message",
    "ProviderMetadata",
    "ProviderSetting",
    "Room",
    "SupportedLanguage",
    # Errors
    "AutoTranslateError",
    "MalformedInputError",
    "ProviderImportError",
    "RegistryNotInitializedError",
    # Detokenization
    "detokenize",
    "detokenize_message",
]
