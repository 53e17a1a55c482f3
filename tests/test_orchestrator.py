"""
Tests for the per-provider orchestrator
"""
import asyncio
import logging

import pytest

from autotranslate.config.constants import (
    AFTER_SAVE_MESSAGE_HOOK,
    SETTING_ENABLED,
    SETTING_LINK_SCHEMES,
    SETTING_SERVICE_PROVIDER,
)
from autotranslate.services.translation.detokenizer import detokenize
from autotranslate.services.translation.entities import ProviderSetting, Room
from autotranslate.services.translation.orchestrator import AutoTranslate
from tests.helpers import (
    BlockingProvider,
    FailingSubscriptions,
    FakeProvider,
    IdentityRenderer,
    MetadataOnlyProvider,
    StaticSubscriptions,
    make_message,
)

pytestmark = pytest.mark.asyncio


@pytest.fixture
def build(registry, settings_store, hooks, message_store, subscriptions):
    def _build(provider=None, subscriptions_override=None):
        provider = provider or FakeProvider()
        registry.register_provider(provider)
        return AutoTranslate(
            provider,
            registry=registry,
            settings_store=settings_store,
            callbacks=hooks,
            messages=message_store,
            subscriptions=subscriptions_override or subscriptions,
            renderer=IdentityRenderer(),
        )
    return _build


async def test_disabled_returns_fetched_message_without_translating(build, settings_store, message_store):
    settings_store.set(SETTING_ENABLED, False)
    provider = FakeProvider()
    orchestrator = build(provider)
    message = message_store.add(make_message("Hello", attachments=["a photo"]))

    result = await orchestrator.handle_message_saved(message, Room(id="room-1"))

    assert result.id == message.id
    assert result.translations == {}
    assert orchestrator.pending_count == 0
    assert provider.messages == []
    assert provider.attachments == []


async def test_saved_message_is_translated_for_room_languages(build, message_store, subscriptions):
    provider = FakeProvider()
    orchestrator = build(provider)
    message = message_store.add(make_message("Hello"))

    result = await orchestrator.handle_message_saved(message, Room(id="room-1"))
    # Returned before translations land
    assert result.translations == {}

    await orchestrator.wait_for_pending()

    assert provider.targets == [["de", "fr"]]
    assert subscriptions.calls == [("room-1", "user-1")]
    stored = message_store.messages[message.id]
    assert stored.translations == {"de": "[de] Hello", "fr": "[fr] Hello"}
    assert stored.translation_provider == "fake"


async def test_explicit_target_language_skips_room_lookup(build, message_store, subscriptions):
    provider = FakeProvider()
    orchestrator = build(provider)
    message = message_store.add(make_message("Hello"))

    await orchestrator.handle_message_saved(message, Room(id="room-1"), target_language="it")
    await orchestrator.wait_for_pending()

    assert provider.targets == [["it"]]
    assert subscriptions.calls == []


async def test_no_target_languages_dispatches_nothing(build, message_store):
    provider = FakeProvider()
    orchestrator = build(provider, subscriptions_override=StaticSubscriptions(set()))
    message = message_store.add(make_message("Hello"))

    result = await orchestrator.handle_message_saved(message, Room(id="room-1"))

    assert result is not None
    assert orchestrator.pending_count == 0
    assert provider.messages == []


async def test_language_lookup_failure_still_returns_message(build, message_store):
    provider = FakeProvider()
    orchestrator = build(provider, subscriptions_override=FailingSubscriptions())
    message = message_store.add(make_message("Hello"))

    result = await orchestrator.handle_message_saved(message, Room(id="room-1"))

    assert result.id == message.id
    assert provider.messages == []


async def test_provider_receives_tokenized_clone(build, message_store):
    provider = FakeProvider()
    orchestrator = build(provider)
    message = message_store.add(make_message("Hi @bob :wave:", mentions=["bob"]))

    orchestrator.dispatch_translations(message, ["de"])
    await orchestrator.wait_for_pending()

    sent = provider.messages[0]
    assert "@bob" not in sent.text
    assert ":wave:" not in sent.text
    assert detokenize(sent.text, sent.tokens) == "Hi @bob :wave:"
    # The caller's message is untouched
    assert message.text == "Hi @bob :wave:"
    assert len(message.tokens) == 0


async def test_provider_text_is_not_html_escaped(build, message_store):
    provider = FakeProvider()
    orchestrator = build(provider)
    message = message_store.add(make_message("Tom & Jerry <3"))

    orchestrator.dispatch_translations(message, ["de"])
    await orchestrator.wait_for_pending()

    assert provider.messages[0].text == "Tom & Jerry <3"
    assert provider.messages[0].html == "Tom & Jerry <3"


async def test_failing_attachment_does_not_stop_the_others(build, message_store):
    provider = FakeProvider(fail_attachments={"a2"})
    orchestrator = build(provider)
    message = message_store.add(make_message("Body", attachments=["a0", "a1", "a2", "a3", "a4"]))

    orchestrator.dispatch_translations(message, ["de"])
    await orchestrator.wait_for_pending()

    persisted = sorted(entry[2] for entry in message_store.persisted if entry[0] == "attachment")
    assert persisted == [0, 1, 3, 4]
    stored = message_store.messages[message.id]
    assert stored.attachments[2].translations == {}
    assert stored.attachments[4].translations == {"de": "[de] a4"}
    # The body is unaffected
    assert stored.translations == {"de": "[de] Body"}


async def test_failing_body_is_logged_not_raised(build, message_store, caplog):
    provider = FakeProvider(fail_body=True)
    orchestrator = build(provider)
    message = message_store.add(make_message("Body", attachments=["a0"]))

    with caplog.at_level(logging.ERROR):
        tasks = orchestrator.dispatch_translations(message, ["de"])
        await orchestrator.wait_for_pending()

    assert all(task.exception() is None for task in tasks)
    assert "failed translating body" in caplog.text
    stored = message_store.messages[message.id]
    assert stored.translations == {}
    assert stored.attachments[0].translations == {"de": "[de] a0"}


async def test_missing_schemes_fail_only_the_body(build, settings_store, message_store):
    settings_store.set(SETTING_LINK_SCHEMES, None)
    provider = FakeProvider()
    orchestrator = build(provider)
    message = message_store.add(make_message("Body", attachments=["a0"]))

    orchestrator.dispatch_translations(message, ["de"])
    await orchestrator.wait_for_pending()

    assert provider.messages == []
    assert message_store.messages[message.id].attachments[0].translations == {"de": "[de] a0"}


async def test_blocking_provider_runs_in_executor(build, message_store):
    provider = BlockingProvider()
    orchestrator = build(provider)
    message = message_store.add(make_message("Body", attachments=["a0"]))

    orchestrator.dispatch_translations(message, ["fr"])
    await orchestrator.wait_for_pending()

    stored = message_store.messages[message.id]
    assert stored.translations == {"fr": "[fr] Body"}
    assert stored.attachments[0].translations == {"fr": "[fr] a0"}


async def test_unimplemented_operations_yield_empty_results(build, message_store, caplog):
    orchestrator = build(MetadataOnlyProvider())
    message = message_store.add(make_message("Body", attachments=["a0"]))

    with caplog.at_level(logging.WARNING):
        orchestrator.dispatch_translations(message, ["de"])
        await orchestrator.wait_for_pending()
        languages = await orchestrator.get_supported_languages("en")

    assert languages == []
    assert message_store.persisted == []
    assert "translate_message() must be implemented" in caplog.text


async def test_missing_metadata_degrades_to_unnamed_provider(registry, settings_store, hooks, message_store, subscriptions, caplog):
    class NoMetadata:
        pass

    with caplog.at_level(logging.WARNING):
        orchestrator = AutoTranslate(
            NoMetadata(),
            registry=registry,
            settings_store=settings_store,
            callbacks=hooks,
            messages=message_store,
            subscriptions=subscriptions,
            renderer=IdentityRenderer(),
        )

    assert orchestrator.name == ""
    assert not orchestrator.subscribed
    assert "metadata() must be implemented" in caplog.text


async def test_subscription_follows_active_provider(build, settings_store, hooks):
    orchestrator = build(FakeProvider())
    assert orchestrator.subscribed
    assert hooks.ids(AFTER_SAVE_MESSAGE_HOOK) == ["fake"]

    settings_store.set(SETTING_SERVICE_PROVIDER, "other")
    assert not orchestrator.subscribed

    settings_store.set(SETTING_SERVICE_PROVIDER, "fake")
    assert orchestrator.subscribed


async def test_required_settings_gate_translation(build, settings_store, message_store):
    provider = FakeProvider(settings=[ProviderSetting(key="FAKE_API_KEY", label="API key", secret=True)])
    orchestrator = build(provider)
    message = message_store.add(make_message("Body"))

    assert not orchestrator.credentials_present
    await orchestrator.handle_message_saved(message, Room(id="room-1"))
    assert provider.messages == []

    settings_store.set("FAKE_API_KEY", "secret")
    assert orchestrator.credentials_present
    await orchestrator.handle_message_saved(message, Room(id="room-1"))
    await orchestrator.wait_for_pending()
    assert len(provider.messages) == 1


async def test_enable_flag_is_pushed(build, settings_store):
    orchestrator = build(FakeProvider())
    assert orchestrator.enabled

    settings_store.set(SETTING_ENABLED, False)
    assert not orchestrator.enabled


async def test_close_unsubscribes_and_stops_watching(build, settings_store, hooks):
    orchestrator = build(FakeProvider())

    orchestrator.close()
    assert not orchestrator.subscribed

    settings_store.set(SETTING_SERVICE_PROVIDER, "other")
    settings_store.set(SETTING_SERVICE_PROVIDER, "fake")
    assert not orchestrator.subscribed
    assert hooks.ids(AFTER_SAVE_MESSAGE_HOOK) == []


async def test_message_without_text_or_attachments_schedules_nothing(build):
    orchestrator = build(FakeProvider())

    tasks = orchestrator.dispatch_translations(make_message(""), ["de"])

    assert tasks == []


async def test_dispatch_returns_awaitable_tasks(build, message_store):
    orchestrator = build(FakeProvider())
    message = message_store.add(make_message("Body", attachments=["a0"]))

    tasks = orchestrator.dispatch_translations(message, ["de"])
    assert len(tasks) == 2

    await asyncio.gather(*tasks)

    assert orchestrator.pending_count == 0
    stored = message_store.messages[message.id]
    assert stored.translations == {"de": "[de] Body"}
    assert stored.attachments[0].translations == {"de": "[de] a0"}
