from __future__ import annotations

"""
🎛️ Moovie — AdSettings (singleton row)

Exactly one row, keyed `global`. It is created lazily on the first write; a
missing row reads as the defaults.
"""

from sqlalchemy import Boolean, Column, Integer, String, Text, text

from moovie.db.base_class import Base, TimestampMixin

SETTINGS_ROW_ID = "global"


class AdSettings(TimestampMixin, Base):
    __tablename__ = "ad_settings"

    id = Column(String(16), primary_key=True, default=SETTINGS_ROW_ID)
    master_enabled = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    test_mode = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    popup_frequency_cap = Column(Integer, nullable=False, default=2, server_default=text("2"))
    header_scripts = Column(Text, nullable=False, default="", server_default="")

    __mapper_args__ = {"eager_defaults": True}
