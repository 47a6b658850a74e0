# tests/test_ads/test_eligibility_gate.py

import json

import pytest

from moovie.schemas.ads import AdType
from moovie.services.ads.eligibility import EligibilityGate, should_show_ad
from moovie.services.ads.frequency import FrequencyStore, MemoryFrequencyStorage, now_ms

pytestmark = pytest.mark.anyio


def _capped_store(count: int) -> FrequencyStore:
    raw = json.dumps({"popup": {"count": count, "timestamp": now_ms()}})
    return FrequencyStore(MemoryFrequencyStorage(raw))


@pytest.mark.parametrize("ad_type", [AdType.popup, AdType.banner_728x90, AdType.native, AdType.social_bar])
@pytest.mark.parametrize("frequency", [None, 0, 2])
@pytest.mark.parametrize("test_mode", [None, False, True])
@pytest.mark.parametrize("is_admin", [True, False])
async def test_master_switch_off_hides_everything(ad_type, frequency, test_mode, is_admin):
    store = _capped_store(0)
    gate = EligibilityGate(store, is_admin=lambda: is_admin)
    assert await gate.should_show_ad(ad_type, frequency, test_mode, False) is False
    assert store.storage.writes == 0


async def test_under_cap_store_allows_popup_when_master_is_on():
    gate = EligibilityGate(_capped_store(0), is_admin=lambda: True)
    assert await gate.should_show_ad(AdType.popup, 2, True, True) is True


async def test_unknown_master_switch_counts_as_on():
    assert await EligibilityGate().should_show_ad(AdType.native, None, None, None) is True


async def test_test_mode_restricts_ads_to_admins():
    assert await EligibilityGate(is_admin=lambda: False).should_show_ad("native", None, True, True) is False
    assert await EligibilityGate(is_admin=lambda: True).should_show_ad("native", None, True, True) is True


async def test_popup_under_and_over_cap():
    assert await EligibilityGate(_capped_store(1)).should_show_ad("popup", 2, False, True) is True
    assert await EligibilityGate(_capped_store(2)).should_show_ad("popup", 2, False, True) is False


@pytest.mark.parametrize("frequency", [None, 0])
async def test_popup_without_frequency_is_not_capped(frequency):
    gate = EligibilityGate(_capped_store(50))
    assert await gate.should_show_ad("popup", frequency, False, True) is True


async def test_only_popups_are_capped():
    raw = json.dumps({"native": {"count": 99, "timestamp": now_ms()}})
    gate = EligibilityGate(FrequencyStore(MemoryFrequencyStorage(raw)))
    assert await gate.should_show_ad("native", 1, False, True) is True


async def test_module_level_helper():
    assert await should_show_ad("popup", 1, False, True, store=_capped_store(1)) is False
    assert await should_show_ad("banner_468x60", 1, True, True, is_admin=lambda: True) is True
