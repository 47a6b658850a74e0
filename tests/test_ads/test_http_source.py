# tests/test_ads/test_http_source.py

import httpx
import pytest

from moovie.schemas.ads import AdType
from moovie.services.ads.scripts import get_ad_scripts_by_type
from moovie.services.ads.source import HttpAdSource, load_ad_settings
from moovie.services.ads.zones import ZoneCache

pytestmark = pytest.mark.anyio

BASE = "http://admin.test"

SCRIPTS = [
    {"id": "s1", "networkId": "n1", "adType": "popup", "script": "<script>p()</script>", "isEnabled": True},
    {"id": "broken", "adType": "not-a-type"},
    {"id": "s2", "networkId": "n1", "adType": "native", "script": "<div/>", "isEnabled": False},
]
ZONES = [
    {"id": "z1", "name": "Hero", "page": "home", "position": "homepage_hero", "adType": "banner_728x90",
     "scriptId": None, "isEnabled": True, "rotation": True, "lazyLoad": True, "trigger": "load",
     "delay": 0, "frequency": None},
]
SETTINGS = {"masterEnabled": False, "testMode": True, "popupFrequencyCap": 4, "headerScripts": "<meta>"}


def _source(overrides=None):
    seen = []
    routes = {"settings": SETTINGS, "scripts": SCRIPTS, "zones": ZONES, **(overrides or {})}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        body = routes.get(request.url.path.rsplit("/", 1)[-1])
        if isinstance(body, int):
            return httpx.Response(body, json={"success": False, "error": "Internal Server Error"})
        return httpx.Response(200, json=body)

    return HttpAdSource(BASE, transport=httpx.MockTransport(handler)), seen


async def test_reads_admin_endpoints():
    source, seen = _source()

    current = await source.fetch_settings()
    assert current.master_enabled is False
    assert current.popup_frequency_cap == 4

    zones = await source.fetch_zones()
    assert zones[0].position == "homepage_hero"

    assert seen == ["/api/v1/admin/ads/settings", "/api/v1/admin/ads/zones"]


async def test_malformed_records_are_skipped():
    source, _ = _source()
    scripts = await source.fetch_scripts()
    assert [s.id for s in scripts] == ["s1", "s2"]
    assert [s.id for s in await get_ad_scripts_by_type(source, AdType.popup)] == ["s1"]


async def test_empty_settings_fall_back_to_defaults():
    source, _ = _source({"settings": {}})
    assert await source.fetch_settings() is None
    assert (await load_ad_settings(source)).master_enabled is True


async def test_server_errors_degrade_gracefully():
    source, _ = _source({"settings": 500, "scripts": 500, "zones": 500})

    with pytest.raises(httpx.HTTPStatusError):
        await source.fetch_scripts()

    assert (await load_ad_settings(source)).master_enabled is True
    assert await get_ad_scripts_by_type(source, "popup") == []
    assert await ZoneCache(source.fetch_zones).get_zone_config("homepage_hero") is None
