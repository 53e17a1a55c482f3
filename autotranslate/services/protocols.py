"""
Protocol definitions for the auto-translation collaborators.

This module defines interfaces (Python Protocols) that allow:
- Plugging in translation vendors without subclassing
- Testing without real vendors, databases or renderers
- Clear contracts between the engine and the host application

Usage:
    from autotranslate.services.protocols import TranslationProvider

    class EchoProvider:
        def metadata(self):
            return ProviderMetadata(name="echo", display_name="Echo")

        async def supported_languages(self, target):
            return [SupportedLanguage(language="en", name="English")]

        async def translate_message(self, message, target_languages):
            return {lang: message.text for lang in target_languages}

        async def translate_attachment(self, attachment, target_languages):
            return {lang: attachment.description or "" for lang in target_languages}
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Set, runtime_checkable

from autotranslate.services.translation.entities import (
    Attachment,
    Message,
    ProviderMetadata,
    SupportedLanguage,
)


@runtime_checkable
class TranslationProvider(Protocol):
    """
    Capability set every translation provider implements.

    The message handed to ``translate_message`` is already tokenized: its
    ``text`` carries notranslate markers the provider must pass through
    unchanged. Operations may be coroutines or plain blocking functions;
    blocking ones are run in a thread pool by the orchestrator.
    """

    def metadata(self) -> ProviderMetadata:
        """Name, display name and settings schema of the provider."""
        ...

    def supported_languages(self, target: str) -> List[SupportedLanguage]:
        """
        Languages a message can be translated from into ``target``.

        Args:
            target: The language into which shall be translated

        Returns:
            List of SupportedLanguage entries
        """
        ...

    def translate_message(
        self,
        message: Message,
        target_languages: Iterable[str]
    ) -> Dict[str, str]:
        """
        Translate a tokenized message.

        Returns:
            Translated text for each target language
        """
        ...

    def translate_attachment(
        self,
        attachment: Attachment,
        target_languages: Iterable[str]
    ) -> Dict[str, str]:
        """Translate an attachment's description (or text)."""
        ...


class Renderer(Protocol):
    """
    Markdown renderer.

    Reads ``message.html``, writes the rendered markup back to ``message.html``.
    It must keep notranslate markers byte-for-byte. Spans it wants protected
    are replaced by its own placeholders and appended to ``message.tokens``.
    """

    def render(self, message: Message) -> Message:
        ...


class MessageStore(Protocol):
    """Persistence of messages and their translations."""

    async def fetch_message(self, message_id: str) -> Optional[Message]:
        ...

    async def persist_translation(
        self,
        message_id: str,
        translations: Dict[str, str],
        provider_name: Optional[str]
    ) -> None:
        ...

    async def persist_attachment_translation(
        self,
        message_id: str,
        attachment_index: int,
        translations: Dict[str, str]
    ) -> None:
        ...


class SubscriptionLookup(Protocol):
    """Room membership lookup."""

    async def languages_for(self, room_id: str, exclude_user_id: Optional[str]) -> Set[str]:
        """Auto-translate languages of the room's members, excluding one user."""
        ...


class SettingsSource(Protocol):
    """Push-based configuration."""

    def watch(self, key: str, callback: Callable[[str, Any], None]) -> None:
        """Call ``callback(key, value)`` now and on every later change."""
        ...

    def unwatch(self, key: str, callback: Callable[[str, Any], None]) -> None:
        ...

    def get(self, key: str, default: Any = None) -> Any:
        ...
