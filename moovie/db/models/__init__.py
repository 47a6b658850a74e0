# moovie/db/models/__init__.py
"""
Moovie — ORM model registry (ad engine tables).
"""

from moovie.db.base_class import Base

from .ad_network import AdNetwork
from .ad_script import AdScript
from .ad_zone import AdZone
from .ad_settings import AdSettings, SETTINGS_ROW_ID

__all__ = [
    "Base",
    "AdNetwork",
    "AdScript",
    "AdZone",
    "AdSettings",
    "SETTINGS_ROW_ID",
]
