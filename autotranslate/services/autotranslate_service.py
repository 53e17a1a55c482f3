"""
AutoTranslate Service - wires the engine to its collaborators.

Owns the runtime settings store, the provider registry, the callback hooks
and the default adapters (repositories, markdown renderer), and keeps one
``AutoTranslate`` orchestrator per registered provider.

Usage:
    service = AutoTranslateService(registry=init_registry())
    service.register_provider(EchoProvider())

    saved = await service.messages.save_message(message)
    saved = await service.run_after_save(saved, Room(id=saved.room_id))

    await service.shutdown()
"""

import logging
from typing import Dict, List, Optional

from autotranslate.config.constants import AFTER_SAVE_MESSAGE_HOOK
from autotranslate.config.settings import settings as app_settings
from autotranslate.services.callbacks import CallbackRegistry
from autotranslate.services.core.repositories import (
    get_message_repository,
    get_subscription_repository,
)
from autotranslate.services.protocols import (
    MessageStore,
    Renderer,
    SubscriptionLookup,
    TranslationProvider,
)
from autotranslate.services.rendering import MarkdownRenderer
from autotranslate.services.settings_store import SettingsStore
from autotranslate.services.translation.entities import Message, Room
from autotranslate.services.translation.orchestrator import AutoTranslate
from autotranslate.services.translation.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class AutoTranslateService:
    """
    Entry point for the host application.

    Every collaborator can be injected; the defaults are the SQL repositories,
    the markdown renderer and a settings store seeded from the environment.
    """

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        settings_store: Optional[SettingsStore] = None,
        callbacks: Optional[CallbackRegistry] = None,
        messages: Optional[MessageStore] = None,
        subscriptions: Optional[SubscriptionLookup] = None,
        renderer: Optional[Renderer] = None,
    ):
        self.settings_store = settings_store or SettingsStore.from_settings(app_settings)
        self.registry = registry or ProviderRegistry()
        self.callbacks = callbacks or CallbackRegistry()
        self.messages = messages or get_message_repository()
        self.subscriptions = subscriptions or get_subscription_repository()
        self.renderer = renderer or MarkdownRenderer()

        self._orchestrators: Dict[str, AutoTranslate] = {}
        self.registry.load_active_provider(self.settings_store)

    def register_provider(self, provider: TranslationProvider) -> Optional[AutoTranslate]:
        """
        Register a provider and create its orchestrator.

        Registering a name again replaces the earlier provider and closes its
        orchestrator, so only the newest one can be subscribed. A provider
        the registry skips (no metadata name) gets no orchestrator.
        """
        name = self.registry.register_provider(provider)
        if name is None:
            return None

        previous = self._orchestrators.pop(name, None)
        if previous is not None:
            previous.close()

        orchestrator = AutoTranslate(
            provider,
            registry=self.registry,
            settings_store=self.settings_store,
            callbacks=self.callbacks,
            messages=self.messages,
            subscriptions=self.subscriptions,
            renderer=self.renderer,
        )
        self._orchestrators[name] = orchestrator
        return orchestrator

    def get_orchestrator(self, name: str) -> Optional[AutoTranslate]:
        return self._orchestrators.get(name)

    def get_active(self) -> Optional[AutoTranslate]:
        """Orchestrator of the active provider, if one is registered."""
        name = self.registry.active_provider_name
        if name is None:
            return None
        return self._orchestrators.get(name)

    @property
    def orchestrators(self) -> List[AutoTranslate]:
        return list(self._orchestrators.values())

    async def run_after_save(self, message: Message, room: Room) -> Message:
        """Fire the after-save hook for a message the host has just saved."""
        return await self.callbacks.run(AFTER_SAVE_MESSAGE_HOOK, message, room)

    async def wait_for_pending(self) -> None:
        for orchestrator in self.orchestrators:
            await orchestrator.wait_for_pending()

    async def shutdown(self) -> None:
        """Wait for scheduled translations, then detach every orchestrator."""
        await self.wait_for_pending()
        for orchestrator in self.orchestrators:
            orchestrator.close()
        self._orchestrators.clear()
        logger.info("[AutoTranslateService] Shut down")
