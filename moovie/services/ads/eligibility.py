# moovie/services/ads/eligibility.py
from __future__ import annotations

"""
Moovie — Ad Eligibility Gate
============================

Decides whether one placement may show an ad right now. Checks, in order:

1. master switch: `master_enabled is False` hides every ad
2. test mode: only admins see ads while it is on
3. popup cap: pop-ups with a truthy frequency defer to the `FrequencyStore`

Settings are passed in on every call and nothing is cached here. The only side
effect is the store's lazy pruning of expired entries.
"""

from typing import Callable, Optional

from moovie.schemas.ads import AdType
from moovie.services.ads.frequency import FrequencyStore, MemoryFrequencyStorage

AdminCheck = Callable[[], bool]


class EligibilityGate:
    def __init__(
        self,
        store: Optional[FrequencyStore] = None,
        is_admin: Optional[AdminCheck] = None,
    ) -> None:
        self.store = store or FrequencyStore(MemoryFrequencyStorage())
        self.is_admin: AdminCheck = is_admin or (lambda: False)

    async def should_show_ad(
        self,
        ad_type: AdType | str,
        frequency: Optional[int] = None,
        test_mode: Optional[bool] = None,
        master_enabled: Optional[bool] = None,
    ) -> bool:
        if master_enabled is False:
            return False
        if test_mode and not self.is_admin():
            return False
        if AdType(ad_type) is AdType.popup and frequency:
            return await self.store.check_frequency_cap(AdType.popup.value, frequency)
        return True


async def should_show_ad(
    ad_type: AdType | str,
    frequency: Optional[int] = None,
    test_mode: Optional[bool] = None,
    master_enabled: Optional[bool] = None,
    *,
    store: Optional[FrequencyStore] = None,
    is_admin: Optional[AdminCheck] = None,
) -> bool:
    gate = EligibilityGate(store, is_admin)
    return await gate.should_show_ad(ad_type, frequency, test_mode, master_enabled)


__all__ = ["AdminCheck", "EligibilityGate", "should_show_ad"]
