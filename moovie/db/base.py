# moovie/db/base.py
"""
Moovie — SQLAlchemy Base registry
=================================

Import all ORM models so their tables are registered on `Base.metadata`
(Alembic autogeneration, `create_all` in tests).

Tip: Keep this file import-only; no runtime logic.
"""

from moovie.db.base_class import Base

# ───────────────────────────────────────────────────────────────
# Ad engine
# ───────────────────────────────────────────────────────────────
from moovie.db.models.ad_network import AdNetwork
from moovie.db.models.ad_script import AdScript
from moovie.db.models.ad_zone import AdZone
from moovie.db.models.ad_settings import AdSettings

__all__ = [
    "Base",
    "AdNetwork",
    "AdScript",
    "AdZone",
    "AdSettings",
]
