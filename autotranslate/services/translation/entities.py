"""
Domain types flowing through the auto-translation engine.

These are plain dataclasses, independent of the ORM models in
``autotranslate.models``: the repositories convert between the two.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from autotranslate.services.translation.tokens import TokenStream


@dataclass
class Mention:
    username: str


@dataclass
class ChannelRef:
    name: str


@dataclass
class Attachment:
    """Attachment translated independently of the message body, addressed by index."""
    description: Optional[str] = None
    text: Optional[str] = None
    translations: Dict[str, str] = field(default_factory=dict)

    def is_translatable(self) -> bool:
        return bool(self.description or self.text)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "text": self.text,
            "translations": dict(self.translations),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Attachment":
        return cls(
            description=data.get("description"),
            text=data.get("text"),
            translations=dict(data.get("translations") or {}),
        )


@dataclass
class Message:
    """
    A chat message under transformation.

    ``text`` is rewritten in place by the tokenizer passes; ``tokens`` is the
    stream those passes fill. Neither the transformed text nor the stream is
    ever persisted.
    """
    id: str
    text: str = ""
    room_id: Optional[str] = None
    sender_id: Optional[str] = None
    html: Optional[str] = None
    tokens: TokenStream = field(default_factory=TokenStream)
    mentions: List[Mention] = field(default_factory=list)
    channels: List[ChannelRef] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)
    translations: Dict[str, str] = field(default_factory=dict)
    translation_provider: Optional[str] = None

    def clone(self) -> "Message":
        """Deep copy, so tokenizing the clone never touches this message."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "room_id": self.room_id,
            "sender_id": self.sender_id,
            "text": self.text,
            "mentions": [m.username for m in self.mentions],
            "channels": [c.name for c in self.channels],
            "attachments": [a.to_dict() for a in self.attachments],
            "translations": dict(self.translations),
            "translation_provider": self.translation_provider,
        }


@dataclass
class Room:
    id: str
    name: Optional[str] = None


@dataclass
class ProviderSetting:
    """
    One entry of a provider's settings schema.

    Required settings gate translation: the provider's orchestrator only
    translates while every required setting has a value.
    """
    key: str
    label: str = ""
    required: bool = True
    secret: bool = False


@dataclass
class ProviderMetadata:
    name: str
    display_name: str = ""
    settings: List[ProviderSetting] = field(default_factory=list)


@dataclass
class SupportedLanguage:
    language: str
    name: str
