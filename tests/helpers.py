import asyncio
from typing import Dict, Iterable, List, Optional, Set

from autotranslate.services.translation.entities import (
    Attachment,
    Mention,
    Message,
    ProviderMetadata,
    ProviderSetting,
    SupportedLanguage,
)


class FakeProvider:
    """
    Provider that prefixes the text with the language code.

    Markers pass through untouched, like a well-behaved vendor.
    """

    def __init__(
        self,
        name: str = "fake",
        settings: Optional[List[ProviderSetting]] = None,
        fail_attachments: Iterable[str] = (),
        fail_body: bool = False,
    ):
        self.name = name
        self.settings = list(settings or [])
        self.fail_attachments = set(fail_attachments)
        self.fail_body = fail_body
        self.messages: List[Message] = []
        self.attachments: List[Attachment] = []
        self.targets: List[List[str]] = []

    def metadata(self):
        return ProviderMetadata(name=self.name, display_name=self.name.title(), settings=self.settings)

    async def supported_languages(self, target):
        return [
            SupportedLanguage(language="de", name="German"),
            SupportedLanguage(language="fr", name="French"),
        ]

    async def translate_message(self, message, target_languages):
        self.messages.append(message)
        self.targets.append(list(target_languages))
        if self.fail_body:
            raise RuntimeError("vendor unavailable")
        return {lang: f"[{lang}] {message.text}" for lang in target_languages}

    async def translate_attachment(self, attachment, target_languages):
        # Yield so attachments of one message really interleave
        await asyncio.sleep(0)
        self.attachments.append(attachment)
        if attachment.description in self.fail_attachments:
            raise RuntimeError(f"cannot translate {attachment.description}")
        return {lang: f"[{lang}] {attachment.description}" for lang in target_languages}


class BlockingProvider(FakeProvider):
    """Same behaviour with plain (blocking) methods."""

    def translate_message(self, message, target_languages):
        self.messages.append(message)
        self.targets.append(list(target_languages))
        return {lang: f"[{lang}] {message.text}" for lang in target_languages}

    def translate_attachment(self, attachment, target_languages):
        self.attachments.append(attachment)
        return {lang: f"[{lang}] {attachment.description}" for lang in target_languages}


class MetadataOnlyProvider:
    """Provider that implements nothing but metadata()."""

    def __init__(self, name: str = "fake"):
        self.name = name

    def metadata(self):
        return ProviderMetadata(name=self.name)


class InMemoryMessageStore:
    def __init__(self):
        self.messages: Dict[str, Message] = {}
        self.persisted: List[tuple] = []

    def add(self, message: Message) -> Message:
        self.messages[message.id] = message.clone()
        return message

    async def fetch_message(self, message_id):
        message = self.messages.get(message_id)
        return message.clone() if message else None

    async def persist_translation(self, message_id, translations, provider_name):
        self.persisted.append(("body", message_id, dict(translations), provider_name))
        message = self.messages[message_id]
        message.translations.update(translations)
        message.translation_provider = provider_name

    async def persist_attachment_translation(self, message_id, attachment_index, translations):
        self.persisted.append(("attachment", message_id, attachment_index, dict(translations)))
        attachment = self.messages[message_id].attachments[attachment_index]
        attachment.translations.update(translations)


class StaticSubscriptions:
    def __init__(self, languages: Set[str]):
        self.languages = set(languages)
        self.calls: List[tuple] = []

    async def languages_for(self, room_id, exclude_user_id=None):
        self.calls.append((room_id, exclude_user_id))
        return set(self.languages)


class FailingSubscriptions:
    async def languages_for(self, room_id, exclude_user_id=None):
        raise RuntimeError("database unavailable")


class IdentityRenderer:
    """Leaves the html untouched and protects nothing."""

    def render(self, message):
        return message


def make_message(
    text: str = "Hello world",
    message_id: str = "msg-1",
    mentions: Iterable[str] = (),
    attachments: Iterable[str] = (),
) -> Message:
    return Message(
        id=message_id,
        text=text,
        room_id="room-1",
        sender_id="user-1",
        mentions=[Mention(username=name) for name in mentions],
        attachments=[Attachment(description=description) for description in attachments],
    )
