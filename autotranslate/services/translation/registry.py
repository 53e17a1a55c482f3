"""
Translation provider registry.

Holds every registered provider keyed by its metadata name, plus the name of
the active provider. Providers register once at startup; only the active name
changes afterwards, pushed from configuration.

The registry is process-scoped state behind an explicit lifecycle:

    registry = init_registry()
    registry.load_active_provider(settings_store)
    registry.register_provider(provider)
    ...
    shutdown_registry()

Components receive the registry by reference; ``get_registry()`` is only for
the edges (API dependencies, startup code).
"""

import importlib
import logging
from typing import Any, Dict, Optional

from autotranslate.config.constants import SETTING_SERVICE_PROVIDER
from autotranslate.services.protocols import SettingsSource, TranslationProvider
from autotranslate.services.translation.entities import ProviderMetadata
from autotranslate.services.translation.exceptions import (
    ProviderImportError,
    RegistryNotInitializedError,
)

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Table of providers by name plus the active provider name."""

    def __init__(self):
        self._providers: Dict[str, TranslationProvider] = {}
        self._active_provider: Optional[str] = None
        self._settings: Optional[SettingsSource] = None

    def register_provider(self, provider: TranslationProvider) -> Optional[str]:
        """
        Register a provider under its metadata name.

        Re-registering a name replaces the earlier provider. A provider
        without a usable name is skipped with a warning.

        Returns:
            The name the provider was registered under, or None if skipped
        """
        name = resolve_metadata(provider).name
        if not name:
            logger.warning(f"[ProviderRegistry] Skipping {type(provider).__name__}: no provider name")
            return None
        if name in self._providers:
            logger.info(f"[ProviderRegistry] Replacing provider '{name}'")
        else:
            logger.info(f"[ProviderRegistry] Registered provider '{name}'")
        self._providers[name] = provider
        return name

    def get_provider(self, name: str) -> Optional[TranslationProvider]:
        return self._providers.get(name)

    def get_active_provider(self) -> Optional[TranslationProvider]:
        """Active provider, or None if nothing is registered under the active name."""
        if self._active_provider is None:
            return None
        return self._providers.get(self._active_provider)

    @property
    def active_provider_name(self) -> Optional[str]:
        return self._active_provider

    @property
    def providers(self) -> Dict[str, TranslationProvider]:
        return dict(self._providers)

    def load_active_provider(self, settings_source: SettingsSource) -> None:
        """
        Track the configured active provider name.

        The settings source pushes the current value immediately and every
        later change.
        """
        if self._settings is not None:
            self._settings.unwatch(SETTING_SERVICE_PROVIDER, self._on_active_provider_changed)
        self._settings = settings_source
        settings_source.watch(SETTING_SERVICE_PROVIDER, self._on_active_provider_changed)

    def _on_active_provider_changed(self, key: str, value: Any) -> None:
        name = value or None
        if name != self._active_provider:
            logger.info(f"[ProviderRegistry] Active provider: {self._active_provider} -> {name}")
        self._active_provider = name

    def close(self) -> None:
        if self._settings is not None:
            self._settings.unwatch(SETTING_SERVICE_PROVIDER, self._on_active_provider_changed)
            self._settings = None
        self._providers.clear()
        self._active_provider = None


def resolve_metadata(provider: Any) -> ProviderMetadata:
    """
    Read a provider's metadata, degrading to an unnamed entry.

    A provider without ``metadata()`` (or raising NotImplementedError from it)
    breaks its contract; that is logged, never raised.
    """
    metadata_fn = getattr(provider, "metadata", None)
    if metadata_fn is None:
        logger.warning(f"[ProviderRegistry] metadata() must be implemented by {type(provider).__name__}")
        return ProviderMetadata(name="")
    try:
        metadata = metadata_fn()
    except NotImplementedError:
        logger.warning(f"[ProviderRegistry] metadata() must be implemented by {type(provider).__name__}")
        return ProviderMetadata(name="")
    return metadata or ProviderMetadata(name="")


def import_provider(path: str) -> TranslationProvider:
    """
    Resolve a ``"package.module:attribute"`` path to a provider.

    A class (or any other callable that is not itself a provider) is called
    without arguments to build the instance.

    Raises:
        ProviderImportError: If the module or attribute cannot be resolved
    """
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ProviderImportError(f"Provider path must look like 'module:attribute': {path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ProviderImportError(f"Cannot import provider module {module_name!r}: {e}") from e

    try:
        target = getattr(module, attribute)
    except AttributeError:
        raise ProviderImportError(f"Module {module_name!r} has no attribute {attribute!r}") from None

    if isinstance(target, type) or not hasattr(target, "metadata"):
        target = target()
    return target


# Process-scoped instance, managed by init_registry / shutdown_registry
_registry: Optional[ProviderRegistry] = None


def init_registry() -> ProviderRegistry:
    """Create the process registry (or return the existing one)."""
    global _registry
    if _registry is None:
        _registry = ProviderRegistry()
    return _registry


def get_registry() -> ProviderRegistry:
    if _registry is None:
        raise RegistryNotInitializedError("init_registry() has not been called")
    return _registry


def shutdown_registry() -> None:
    global _registry
    if _registry is not None:
        _registry.close()
        _registry = None
