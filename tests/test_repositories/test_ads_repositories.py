# tests/test_repositories/test_ads_repositories.py

import json

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from moovie.db.base import Base
from moovie.repositories.ads import MemoryAdsRepository, get_ads_repository, set_ads_repository
from moovie.repositories.ads_sql import SqlAdsRepository
from moovie.schemas.ads import (
    AdNetworkIn,
    AdNetworkPatch,
    AdPage,
    AdScriptIn,
    AdScriptPatch,
    AdSettingsPatch,
    AdType,
    AdZoneIn,
    AdZonePatch,
)

pytestmark = pytest.mark.anyio


@pytest.fixture(params=["memory", "sql"])
async def repo(request, tmp_path):
    if request.param == "memory":
        yield MemoryAdsRepository()
        return

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ads.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    maker = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    yield SqlAdsRepository(maker)
    await engine.dispose()


# ─────────────────────────────────────────────────────────────────────────────
# Behaviour shared by both implementations
# ─────────────────────────────────────────────────────────────────────────────

async def test_network_lifecycle(repo):
    created = await repo.create_network(AdNetworkIn(name="Adsterra"))
    assert created.id and created.is_enabled is True
    assert created.created_at is not None

    updated = await repo.update_network(created.id, AdNetworkPatch(is_enabled=False))
    assert updated.name == "Adsterra"
    assert updated.is_enabled is False

    assert await repo.update_network("missing", AdNetworkPatch(name="x")) is None
    assert await repo.delete_network(created.id) is True
    assert await repo.delete_network(created.id) is False
    assert await repo.list_networks() == []


async def test_scripts_filter_and_keep_payload(repo):
    payload = "<script>var a = 1 < 2 && 'x';</script>"
    first = await repo.create_script(AdScriptIn(network_id="n1", ad_type=AdType.popup, script=payload))
    await repo.create_script(AdScriptIn(network_id="n2", ad_type=AdType.native, script="<div/>"))

    only_n1 = await repo.list_scripts(network_id="n1")
    assert [s.id for s in only_n1] == [first.id]
    assert only_n1[0].script == payload
    assert len(await repo.list_scripts()) == 2

    await repo.update_script(first.id, AdScriptPatch(is_enabled=False))
    assert (await repo.get_script(first.id)).is_enabled is False


async def test_zone_page_filter_and_nullable_patch(repo):
    hero = await repo.create_zone(
        AdZoneIn(name="Hero", position="homepage_hero", ad_type=AdType.banner_728x90, script_id="s1")
    )
    await repo.create_zone(AdZoneIn(name="Player", page=AdPage.watch, position="below", ad_type=AdType.native))

    assert [z.position for z in await repo.list_zones(page=AdPage.home)] == ["homepage_hero"]
    assert await repo.list_zones(page=AdPage.browse) == []

    patched = await repo.update_zone(hero.id, AdZonePatch.model_validate({"scriptId": None, "delay": 10}))
    assert patched.script_id is None
    assert patched.delay == 10
    assert patched.position == "homepage_hero"

    # a null for a non-nullable field leaves it alone
    patched = await repo.update_zone(hero.id, AdZonePatch.model_validate({"name": None}))
    assert patched.name == "Hero"


async def test_settings_created_on_first_write(repo):
    assert await repo.get_settings() is None

    saved = await repo.update_settings(AdSettingsPatch(test_mode=True))
    assert saved.test_mode is True
    assert saved.master_enabled is True

    saved = await repo.update_settings(AdSettingsPatch(popup_frequency_cap=5))
    assert saved.test_mode is True
    assert saved.popup_frequency_cap == 5
    assert (await repo.get_settings()).popup_frequency_cap == 5


# ─────────────────────────────────────────────────────────────────────────────
# Memory specifics
# ─────────────────────────────────────────────────────────────────────────────

async def test_memory_repository_seeds_from_file(tmp_path):
    path = tmp_path / "ads.json"
    path.write_text(json.dumps({
        "networks": [{"id": "n1", "name": "Seeded"}],
        "scripts": [{"id": "s1", "networkId": "n1", "adType": "popup", "script": "<i/>"}],
        "zones": [{"id": "z1", "name": "Exit", "position": "exit", "adType": "popup", "frequency": 1}],
        "settings": {"masterEnabled": False},
    }), encoding="utf-8")

    repo = MemoryAdsRepository(str(path))
    assert [n.name for n in await repo.list_networks()] == ["Seeded"]
    assert (await repo.get_script("s1")).ad_type is AdType.popup
    assert (await repo.get_zone("z1")).frequency == 1
    assert (await repo.get_settings()).master_enabled is False


async def test_memory_repository_ignores_broken_seed(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{oops", encoding="utf-8")
    repo = MemoryAdsRepository(str(path))
    assert await repo.list_networks() == []
    assert await repo.get_settings() is None


def test_repository_factory(monkeypatch):
    monkeypatch.delenv("ADS_REPOSITORY_IMPL", raising=False)
    first = get_ads_repository()
    assert isinstance(first, MemoryAdsRepository)
    assert get_ads_repository() is first

    custom = MemoryAdsRepository()
    set_ads_repository(custom)
    assert get_ads_repository() is custom


def test_repository_factory_dotted_path(monkeypatch):
    monkeypatch.setenv("ADS_REPOSITORY_IMPL", "moovie.repositories.ads:MemoryAdsRepository")
    set_ads_repository(None)
    assert isinstance(get_ads_repository(), MemoryAdsRepository)
