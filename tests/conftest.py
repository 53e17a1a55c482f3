import sys
import pytest
from pathlib import Path

# Add project root (1 level up from tests/) to sys.path so tests can import 'autotranslate'
root = Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))


# Optionally set PYTHONPATH for runtime
import os
os.environ.setdefault('PYTHONPATH', str(root))

# Keep the module-level engine off Postgres; repository tests build their own engines
os.environ.setdefault('DATABASE_URL', 'sqlite+aiosqlite:///:memory:')


from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from autotranslate.config.constants import (
    SETTING_ENABLED,
    SETTING_LINK_SCHEMES,
    SETTING_SERVICE_PROVIDER,
)
from autotranslate.models.database import Base as DBBase
from autotranslate.services.autotranslate_service import AutoTranslateService
from autotranslate.services.callbacks import CallbackRegistry
from autotranslate.services.settings_store import SettingsStore
from autotranslate.services.translation.registry import ProviderRegistry
from tests.helpers import IdentityRenderer, InMemoryMessageStore, StaticSubscriptions


@pytest.fixture
def settings_store():
    """Auto-translation switched on with 'fake' as the active provider."""
    return SettingsStore({
        SETTING_ENABLED: True,
        SETTING_SERVICE_PROVIDER: "fake",
        SETTING_LINK_SCHEMES: "http,https",
    })


@pytest.fixture
def registry(settings_store):
    registry = ProviderRegistry()
    registry.load_active_provider(settings_store)
    yield registry
    registry.close()


@pytest.fixture
def hooks():
    return CallbackRegistry()


@pytest.fixture
def message_store():
    return InMemoryMessageStore()


@pytest.fixture
def subscriptions():
    return StaticSubscriptions({"de", "fr"})


@pytest.fixture
def service(settings_store, hooks, message_store, subscriptions):
    """Service wired to in-memory collaborators."""
    return AutoTranslateService(
        registry=ProviderRegistry(),
        settings_store=settings_store,
        callbacks=hooks,
        messages=message_store,
        subscriptions=subscriptions,
        renderer=IdentityRenderer(),
    )


@pytest.fixture
async def session_factory(tmp_path):
    """Fresh SQLite database per test for the repositories."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(DBBase.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
