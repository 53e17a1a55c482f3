"""
Tests for the runtime settings store and its redis propagation
"""
import json

import fakeredis.aioredis
import pytest

from autotranslate.config.constants import SETTINGS_CHANNEL
from autotranslate.config.settings import Settings
from autotranslate.services.settings_store import (
    SettingsStore,
    apply_setting_message,
    publish_setting_change,
)


def test_watch_fires_immediately_and_on_change():
    store = SettingsStore({"A": 1})
    seen = []

    store.watch("A", lambda key, value: seen.append((key, value)))
    store.set("A", 2)

    assert seen == [("A", 1), ("A", 2)]


def test_set_without_change_does_not_notify():
    store = SettingsStore({"A": 1})
    seen = []
    store.watch("A", lambda key, value: seen.append(value))

    assert store.set("A", 1) is False
    assert seen == [1]


def test_watch_unknown_key_gets_none():
    store = SettingsStore()
    seen = []

    store.watch("MISSING", lambda key, value: seen.append(value))

    assert seen == [None]


def test_unwatch_stops_notifications():
    store = SettingsStore({"A": 1})
    seen = []

    def callback(key, value):
        seen.append(value)

    store.watch("A", callback)
    store.unwatch("A", callback)
    store.set("A", 2)

    assert seen == [1]


def test_failing_watcher_does_not_block_others():
    store = SettingsStore({"A": 1})
    seen = []

    def boom(key, value):
        raise RuntimeError("boom")

    store.watch("A", boom)
    store.watch("A", lambda key, value: seen.append(value))
    store.set("A", 2)

    assert seen == [1, 2]


def test_store_is_seeded_from_settings():
    settings = Settings(
        AUTOTRANSLATE_ENABLED=True,
        AUTOTRANSLATE_SERVICE_PROVIDER="deepl",
        AUTOTRANSLATE_PROVIDER_SETTINGS={"DEEPL_API_KEY": "k"},
    )

    store = SettingsStore.from_settings(settings)

    assert store.get("AUTOTRANSLATE_ENABLED") is True
    assert store.get("AUTOTRANSLATE_SERVICE_PROVIDER") == "deepl"
    assert store.get("MARKDOWN_SUPPORT_SCHEMES_FOR_LINK") == "http,https"
    assert store.get("DEEPL_API_KEY") == "k"


def test_apply_setting_message():
    store = SettingsStore({"A": 1})
    message = {"type": "message", "data": json.dumps({"key": "A", "value": 5}).encode()}

    assert apply_setting_message(store, message) is True
    assert store.get("A") == 5


@pytest.mark.parametrize("message", [
    {"type": "subscribe", "data": 1},
    {"type": "message", "data": b"not json"},
    {"type": "message", "data": json.dumps({"value": 1})},
])
def test_apply_setting_message_ignores_other_payloads(message):
    store = SettingsStore({"A": 1})

    assert apply_setting_message(store, message) is False
    assert store.get("A") == 1


@pytest.mark.asyncio
async def test_publish_setting_change(monkeypatch):
    fake = fakeredis.aioredis.FakeRedis()

    async def _get_fake():
        return fake

    # Patch the local import used by settings_store
    monkeypatch.setattr("autotranslate.services.settings_store.get_redis", _get_fake)

    pubsub = fake.pubsub()
    await pubsub.subscribe(SETTINGS_CHANNEL)
    await pubsub.get_message(timeout=1)  # subscribe confirmation

    receivers = await publish_setting_change("AUTOTRANSLATE_SERVICE_PROVIDER", "deepl")
    assert receivers == 1

    message = None
    for _ in range(10):
        message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1)
        if message:
            break
    assert message is not None

    store = SettingsStore({"AUTOTRANSLATE_SERVICE_PROVIDER": ""})
    assert apply_setting_message(store, message)
    assert store.get("AUTOTRANSLATE_SERVICE_PROVIDER") == "deepl"

    await pubsub.unsubscribe(SETTINGS_CHANNEL)
    await fake.aclose()


def test_redis_url_includes_password_and_db():
    from autotranslate.config.redis import build_redis_url

    assert build_redis_url(Settings(REDIS_HOST="cache", REDIS_PORT=6380)) == "redis://cache:6380/0"
    assert build_redis_url(Settings(REDIS_HOST="cache", REDIS_PASSWORD="pw", REDIS_DB=2)) == "redis://:pw@cache:6379/2"
