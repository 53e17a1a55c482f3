"""
Runtime settings store with push-based change notification.

The store is seeded from ``Settings`` at startup and holds the values that can
change while the process runs (enable flag, active provider, provider keys).
Components subscribe with ``watch(key, callback)``; the callback fires
immediately with the current value and again on every change.

Changes made in another process reach this one over redis pub/sub:

    await publish_setting_change("AUTOTRANSLATE_SERVICE_PROVIDER", "deepl")

and every process running ``subscribe_to_setting_changes(store)`` applies it.
"""

import json
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from autotranslate.config.constants import SETTINGS_CHANNEL
from autotranslate.config.redis import get_redis
from autotranslate.config.settings import Settings

logger = logging.getLogger(__name__)

SettingCallback = Callable[[str, Any], None]


class SettingsStore:
    """Watchable key/value settings."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})
        self._watchers: Dict[str, List[SettingCallback]] = defaultdict(list)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SettingsStore":
        return cls(settings.runtime_values())

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> bool:
        """
        Store a value and notify watchers.

        Returns:
            True if the value changed (and watchers were notified)
        """
        if key in self._values and self._values[key] == value:
            return False
        self._values[key] = value
        logger.debug(f"[SettingsStore] {key} changed")
        self._notify(key, value)
        return True

    def watch(self, key: str, callback: SettingCallback) -> None:
        self._watchers[key].append(callback)
        self._call(callback, key, self._values.get(key))

    def unwatch(self, key: str, callback: SettingCallback) -> None:
        watchers = self._watchers.get(key, [])
        if callback in watchers:
            watchers.remove(callback)

    def _notify(self, key: str, value: Any) -> None:
        for callback in list(self._watchers.get(key, [])):
            self._call(callback, key, value)

    @staticmethod
    def _call(callback: SettingCallback, key: str, value: Any) -> None:
        try:
            callback(key, value)
        except Exception:
            logger.exception(f"[SettingsStore] Watcher for {key} failed")


async def publish_setting_change(key: str, value: Any) -> int:
    """Publish a setting change to every process sharing this redis."""
    r = await get_redis()
    payload = json.dumps({"key": key, "value": value})
    return await r.publish(SETTINGS_CHANNEL, payload)


def apply_setting_message(store: SettingsStore, message: Dict[str, Any]) -> bool:
    """
    Apply one pub/sub message to the store.

    Returns:
        True if the store changed
    """
    if message.get("type") != "message":
        return False

    data = message.get("data")
    if isinstance(data, bytes):
        data = data.decode("utf-8")

    try:
        payload = json.loads(data)
        key = payload["key"]
    except (TypeError, ValueError, KeyError) as e:
        logger.error(f"[SettingsStore] Ignoring malformed setting message: {e}")
        return False

    return store.set(key, payload.get("value"))


async def subscribe_to_setting_changes(store: SettingsStore):
    """Background task applying setting changes published by other processes."""
    redis = await get_redis()
    pubsub = redis.pubsub()
    await pubsub.subscribe(SETTINGS_CHANNEL)

    logger.info(f"✅ Subscribed to {SETTINGS_CHANNEL}")

    try:
        async for message in pubsub.listen():
            apply_setting_message(store, message)
    except Exception as e:
        logger.error(f"Settings subscription error: {e}")
    finally:
        await pubsub.unsubscribe(SETTINGS_CHANNEL)
