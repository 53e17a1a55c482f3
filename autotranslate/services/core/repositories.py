"""
Repository Layer - Centralized database queries.

Default persistence and lookup collaborators of the auto-translation engine,
backed by the async SQLAlchemy models in ``autotranslate.models``.

Usage:
    from autotranslate.services.core.repositories import (
        get_message_repository,
        get_subscription_repository,
    )

    # Languages to translate a message into
    languages = await get_subscription_repository().languages_for(room_id, sender_id)
    # Returns: {"de", "fr"}

    # Store translations produced by a provider
    await get_message_repository().persist_translation(message_id, {"de": "Hallo"}, "echo")
"""

import asyncio
import logging
import weakref
from typing import Dict, Optional, Set

from sqlalchemy import select, and_

from autotranslate.models import database
from autotranslate.models.message import MessageRecord
from autotranslate.models.subscription import Subscription
from autotranslate.services.translation.entities import (
    Attachment,
    ChannelRef,
    Mention,
    Message,
)

logger = logging.getLogger(__name__)


def record_to_message(record: MessageRecord) -> Message:
    """Build the domain message from a stored row."""
    return Message(
        id=record.id,
        text=record.text or "",
        room_id=record.room_id,
        sender_id=record.sender_id,
        mentions=[Mention(username=name) for name in (record.mentions or [])],
        channels=[ChannelRef(name=name) for name in (record.channels or [])],
        attachments=[Attachment.from_dict(item) for item in (record.attachments or [])],
        translations=dict(record.translations or {}),
        translation_provider=record.translation_provider,
    )


class MessageRepository:
    """
    Repository for message rows and their translations.

    Translation writes of one message are serialized inside the process:
    attachment translations of a message are stored in one JSON column and
    would otherwise overwrite each other.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @property
    def session_factory(self):
        return self._session_factory or database.AsyncSessionLocal

    def _lock_for(self, message_id: str) -> asyncio.Lock:
        lock = self._locks.get(message_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[message_id] = lock
        return lock

    async def fetch_message(self, message_id: str) -> Optional[Message]:
        """
        Get a message by ID.

        Returns:
            Message if found, None otherwise
        """
        try:
            async with self.session_factory() as db:
                record = await db.get(MessageRecord, message_id)
                return record_to_message(record) if record else None
        except Exception as e:
            logger.error(f"Error fetching message {message_id}: {e}")
            return None

    async def save_message(self, message: Message) -> Message:
        """Insert or update a message (text, mentions, channels, attachments)."""
        async with self.session_factory() as db:
            record = await db.get(MessageRecord, message.id) if message.id else None
            if record is None:
                record = MessageRecord(id=message.id) if message.id else MessageRecord()
                db.add(record)

            record.room_id = message.room_id
            record.sender_id = message.sender_id
            record.text = message.text or ""
            record.mentions = [m.username for m in message.mentions]
            record.channels = [c.name for c in message.channels]
            record.attachments = [a.to_dict() for a in message.attachments]
            record.translations = dict(message.translations)
            record.translation_provider = message.translation_provider

            await db.commit()
            await db.refresh(record)
            return record_to_message(record)

    async def persist_translation(
        self,
        message_id: str,
        translations: Dict[str, str],
        provider_name: Optional[str]
    ) -> None:
        """
        Merge per-language translations of the message body.

        Existing languages not in ``translations`` are kept.
        """
        async with self._lock_for(message_id):
            async with self.session_factory() as db:
                result = await db.execute(
                    select(MessageRecord).where(MessageRecord.id == message_id).with_for_update()
                )
                record = result.scalar_one_or_none()
                if not record:
                    logger.warning(f"[MessageRepository] Message {message_id} not found, translation dropped")
                    return

                merged = dict(record.translations or {})
                merged.update(translations)
                # New object so the JSON column is flagged dirty
                record.translations = merged
                record.translation_provider = provider_name
                await db.commit()

        logger.debug(f"[MessageRepository] Stored {sorted(translations)} for message {message_id}")

    async def persist_attachment_translation(
        self,
        message_id: str,
        attachment_index: int,
        translations: Dict[str, str]
    ) -> None:
        """Merge translations into ``attachments[attachment_index]``; an unknown index is ignored."""
        async with self._lock_for(message_id):
            async with self.session_factory() as db:
                result = await db.execute(
                    select(MessageRecord).where(MessageRecord.id == message_id).with_for_update()
                )
                record = result.scalar_one_or_none()
                if not record:
                    logger.warning(f"[MessageRepository] Message {message_id} not found, translation dropped")
                    return

                attachments = [dict(item) for item in (record.attachments or [])]
                if attachment_index < 0 or attachment_index >= len(attachments):
                    logger.warning(
                        f"[MessageRepository] Attachment {attachment_index} out of range "
                        f"for message {message_id} ({len(attachments)} attachments)"
                    )
                    return

                attachment = attachments[attachment_index]
                merged = dict(attachment.get("translations") or {})
                merged.update(translations)
                attachment["translations"] = merged
                record.attachments = attachments
                await db.commit()


class SubscriptionRepository:
    """Repository for room subscriptions."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    @property
    def session_factory(self):
        return self._session_factory or database.AsyncSessionLocal

    async def languages_for(self, room_id: str, exclude_user_id: Optional[str] = None) -> Set[str]:
        """
        Auto-translate languages of a room's members.

        Args:
            room_id: The room to look up
            exclude_user_id: Optional user ID to exclude (typically the author)

        Returns:
            Distinct language codes, empty if nobody in the room auto-translates
        """
        stmt = select(Subscription.auto_translate_language).where(
            and_(
                Subscription.room_id == room_id,
                Subscription.auto_translate == True,
                Subscription.auto_translate_language.isnot(None)
            )
        ).distinct()

        if exclude_user_id:
            stmt = stmt.where(Subscription.user_id != exclude_user_id)

        async with self.session_factory() as db:
            result = await db.execute(stmt)
            return {language for language in result.scalars().all() if language}

    async def upsert_subscription(
        self,
        room_id: str,
        user_id: str,
        auto_translate: bool = False,
        auto_translate_language: Optional[str] = None
    ) -> Subscription:
        """Create or update the subscription of a user to a room."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Subscription).where(
                    and_(
                        Subscription.room_id == room_id,
                        Subscription.user_id == user_id
                    )
                )
            )
            subscription = result.scalar_one_or_none()
            if subscription is None:
                subscription = Subscription(room_id=room_id, user_id=user_id)
                db.add(subscription)

            subscription.auto_translate = auto_translate
            subscription.auto_translate_language = auto_translate_language
            await db.commit()
            await db.refresh(subscription)
            return subscription


# Global instances
_message_repository: Optional[MessageRepository] = None
_subscription_repository: Optional[SubscriptionRepository] = None


def get_message_repository() -> MessageRepository:
    """Get or create the global MessageRepository instance."""
    global _message_repository
    if _message_repository is None:
        _message_repository = MessageRepository()
    return _message_repository


def get_subscription_repository() -> SubscriptionRepository:
    """Get or create the global SubscriptionRepository instance."""
    global _subscription_repository
    if _subscription_repository is None:
        _subscription_repository = SubscriptionRepository()
    return _subscription_repository
