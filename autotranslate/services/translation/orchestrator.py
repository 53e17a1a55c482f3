"""
Auto-translate orchestrator - one instance per registered provider.

Each instance follows the configuration: it subscribes its
``handle_message_saved`` to the ``afterSaveMessage`` hook while its provider
is the active one, and unsubscribes otherwise. When a message is saved it
resolves the target languages, then schedules the translation work as
fire-and-forget asyncio tasks and returns the stored message immediately.

    message saved
      -> handle_message_saved()          (returns the fetched message)
           -> task: tokenize clone -> provider.translate_message -> persist_translation
           -> task: per attachment  -> provider.translate_attachment -> persist_attachment_translation

Translation is best effort: a failing unit is logged and counted, never
raised into the save path, and never stops the other units.

Usage:
    orchestrator = AutoTranslate(
        provider,
        registry=registry,
        settings_store=store,
        callbacks=callbacks,
        messages=MessageRepository(),
        subscriptions=SubscriptionRepository(),
        renderer=MarkdownRenderer(),
    )
    tasks = orchestrator.dispatch_translations(message, ["de", "fr"])
    await orchestrator.wait_for_pending()
"""

import asyncio
import functools
import inspect
import logging
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Set

from autotranslate.config.constants import (
    AFTER_SAVE_MESSAGE_HOOK,
    SETTING_ENABLED,
    SETTING_LINK_SCHEMES,
    SETTING_SERVICE_PROVIDER,
)
from autotranslate.services.callbacks import CallbackPriority, CallbackRegistry
from autotranslate.services.metrics import unit_failures, units_dispatched, units_persisted
from autotranslate.services.protocols import (
    MessageStore,
    Renderer,
    SettingsSource,
    SubscriptionLookup,
    TranslationProvider,
)
from autotranslate.services.translation.entities import (
    Attachment,
    Message,
    ProviderMetadata,
    Room,
    SupportedLanguage,
)
from autotranslate.services.translation.registry import ProviderRegistry, resolve_metadata
from autotranslate.services.translation.tokenizer import Tokenizer

logger = logging.getLogger(__name__)


class AutoTranslate:
    """
    Drives tokenization and provider calls for one provider.

    State:
        enabled: Mirrors the AUTOTRANSLATE_ENABLED setting
        credentials_present: True while every required provider setting has a value
        subscribed: True while handle_message_saved is on the afterSaveMessage hook
    """

    def __init__(
        self,
        provider: TranslationProvider,
        *,
        registry: ProviderRegistry,
        settings_store: SettingsSource,
        callbacks: CallbackRegistry,
        messages: MessageStore,
        subscriptions: SubscriptionLookup,
        renderer: Renderer,
    ):
        self.provider = provider
        self._registry = registry
        self._settings = settings_store
        self._callbacks = callbacks
        self._messages = messages
        self._subscriptions = subscriptions
        self._renderer = renderer

        self.metadata: ProviderMetadata = resolve_metadata(provider)
        self.name = self.metadata.name
        self.enabled = False
        self._schemes: Optional[str] = None
        self._credentials: Dict[str, Any] = {
            setting.key: None for setting in self.metadata.settings if setting.required
        }
        self._pending: Set[asyncio.Task] = set()
        self._closed = False

        # Each watch fires immediately with the current value
        self._settings.watch(SETTING_ENABLED, self._on_enabled_changed)
        self._settings.watch(SETTING_LINK_SCHEMES, self._on_schemes_changed)
        for key in self._credentials:
            self._settings.watch(key, self._on_credential_changed)
        self._settings.watch(SETTING_SERVICE_PROVIDER, self._on_service_provider_changed)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def credentials_present(self) -> bool:
        return all(self._credentials.values())

    @property
    def subscribed(self) -> bool:
        return self._callbacks.has(AFTER_SAVE_MESSAGE_HOOK, self.name)

    def _on_enabled_changed(self, key: str, value: Any) -> None:
        self.enabled = bool(value)

    def _on_schemes_changed(self, key: str, value: Any) -> None:
        self._schemes = value

    def _on_credential_changed(self, key: str, value: Any) -> None:
        self._credentials[key] = value

    def _on_service_provider_changed(self, key: str, value: Any) -> None:
        if self.name and self.name == value:
            self.register_after_save_callback()
        else:
            self.unregister_after_save_callback()

    def register_after_save_callback(self) -> None:
        """Put this provider on the save hook (replaces an earlier subscription of the same name)."""
        self._callbacks.add(
            AFTER_SAVE_MESSAGE_HOOK,
            self.handle_message_saved,
            CallbackPriority.MEDIUM,
            self.name
        )
        logger.info(f"[AutoTranslate] '{self.name}' subscribed to {AFTER_SAVE_MESSAGE_HOOK}")

    def unregister_after_save_callback(self) -> None:
        """Take this provider off the save hook. Safe when not subscribed."""
        if self.subscribed:
            logger.info(f"[AutoTranslate] '{self.name}' unsubscribed from {AFTER_SAVE_MESSAGE_HOOK}")
        self._callbacks.remove(AFTER_SAVE_MESSAGE_HOOK, self.name)

    def close(self) -> None:
        """Stop following configuration and leave the save hook."""
        if self._closed:
            return
        self._closed = True
        self._settings.unwatch(SETTING_SERVICE_PROVIDER, self._on_service_provider_changed)
        self._settings.unwatch(SETTING_ENABLED, self._on_enabled_changed)
        self._settings.unwatch(SETTING_LINK_SCHEMES, self._on_schemes_changed)
        for key in self._credentials:
            self._settings.unwatch(key, self._on_credential_changed)
        self.unregister_after_save_callback()

    # ------------------------------------------------------------------
    # Tokenization
    # ------------------------------------------------------------------

    def tokenize(self, message: Message) -> Message:
        return Tokenizer(self._renderer, self._schemes).tokenize(message)

    # ------------------------------------------------------------------
    # Save hook
    # ------------------------------------------------------------------

    async def handle_message_saved(
        self,
        message: Message,
        room: Room,
        target_language: Optional[str] = None
    ) -> Optional[Message]:
        """
        Schedule translation of a saved message and return the stored message.

        Args:
            message: The message that was just saved
            room: Room the message was posted in
            target_language: Translate into this language only, instead of
                the languages of the room's members

        Returns:
            The unmodified message as currently stored; translations are
            persisted later by the scheduled tasks
        """
        if self.enabled and self.credentials_present:
            targets = await self._resolve_target_languages(message, room, target_language)
            if targets:
                self.dispatch_translations(message, targets)
            else:
                logger.debug(f"[AutoTranslate] No target languages for message {message.id}")

        return await self._messages.fetch_message(message.id)

    async def _resolve_target_languages(
        self,
        message: Message,
        room: Room,
        target_language: Optional[str]
    ) -> List[str]:
        if target_language:
            return [target_language]
        try:
            languages = await self._subscriptions.languages_for(room.id, message.sender_id)
        except Exception:
            logger.exception(f"[AutoTranslate] Could not resolve target languages for room {room.id}")
            return []
        return sorted(lang for lang in languages if lang)

    def dispatch_translations(self, message: Message, target_languages: Iterable[str]) -> List[asyncio.Task]:
        """
        Schedule body and attachment translation without waiting for them.

        Must be called from a running event loop.

        Returns:
            The scheduled tasks (body first, then attachments), each already
            guarded so awaiting it never raises
        """
        targets = list(target_languages)
        tasks = []

        if message.text:
            tasks.append(self._spawn(self._translate_body(message, targets), f"body of {message.id}", "body"))

        if any(attachment.is_translatable() for attachment in message.attachments):
            tasks.append(self._spawn(self._translate_attachments(message, targets), f"attachments of {message.id}", "attachment"))

        return tasks

    async def wait_for_pending(self) -> None:
        """Wait until every scheduled translation task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _spawn(self, coro: Awaitable[None], label: str, unit: str) -> asyncio.Task:
        task = asyncio.create_task(self._guard(coro, label, unit))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _guard(self, coro: Awaitable[None], label: str, unit: str) -> None:
        try:
            await coro
        except Exception:
            unit_failures.labels(unit=unit).inc()
            logger.exception(f"[AutoTranslate] '{self.name}' failed translating {label}")

    async def _translate_body(self, message: Message, targets: List[str]) -> None:
        target_message = message.clone()
        target_message = self.tokenize(target_message)

        units_dispatched.labels(unit="body").inc()
        translations = await self._call_provider("translate_message", target_message, targets)

        if translations:
            await self._messages.persist_translation(
                message.id,
                translations,
                self._registry.active_provider_name
            )
            units_persisted.labels(unit="body").inc()

    async def _translate_attachments(self, message: Message, targets: List[str]) -> None:
        # Started in index order; completions may interleave
        await asyncio.gather(*[
            self._translate_attachment(message.id, index, attachment, targets)
            for index, attachment in enumerate(message.attachments)
            if attachment.is_translatable()
        ])

    async def _translate_attachment(
        self,
        message_id: str,
        index: int,
        attachment: Attachment,
        targets: List[str]
    ) -> None:
        try:
            units_dispatched.labels(unit="attachment").inc()
            translations = await self._call_provider("translate_attachment", attachment, targets)
            if translations:
                await self._messages.persist_attachment_translation(message_id, index, translations)
                units_persisted.labels(unit="attachment").inc()
        except Exception:
            unit_failures.labels(unit="attachment").inc()
            logger.exception(
                f"[AutoTranslate] '{self.name}' failed translating attachment {index} of {message_id}"
            )

    # ------------------------------------------------------------------
    # Provider calls
    # ------------------------------------------------------------------

    async def get_supported_languages(self, target: str) -> List[SupportedLanguage]:
        return list(await self._call_provider("supported_languages", target) or [])

    async def _call_provider(self, operation: str, *args: Any) -> Any:
        """
        Call a provider operation, coroutine or blocking.

        A provider lacking the operation (or raising NotImplementedError)
        yields an empty result and a warning. Any other error propagates to
        the caller's unit of work.
        """
        fn = getattr(self.provider, operation, None)
        if fn is None:
            logger.warning(f"[AutoTranslate] {operation}() must be implemented by provider '{self.name}'")
            return {}

        try:
            if inspect.iscoroutinefunction(fn):
                result = await fn(*args)
            else:
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(None, functools.partial(fn, *args))
                if inspect.iscoroutine(result):
                    result = await result
        except NotImplementedError:
            logger.warning(f"[AutoTranslate] {operation}() must be implemented by provider '{self.name}'")
            return {}

        return result or {}

    def __repr__(self) -> str:
        return f"<AutoTranslate {self.name} enabled={self.enabled} subscribed={self.subscribed}>"
