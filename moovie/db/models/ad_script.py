from __future__ import annotations

"""
🧾 Moovie — AdScript
====================

One pasted ad tag. `script` is opaque third-party markup and is stored and
served byte-for-byte. Scripts sharing an `ad_type` form the rotation pool for
that type.
"""

from sqlalchemy import Boolean, Column, Enum, Index, String, Text, text

from moovie.db.base_class import Base, StringPKMixin, TimestampMixin
from moovie.schemas.ads import AdType


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class AdScript(StringPKMixin, TimestampMixin, Base):
    __tablename__ = "ad_scripts"

    # Soft reference; networks may be deleted independently
    network_id = Column(String(64), nullable=False, index=True)
    ad_type = Column(
        Enum(AdType, name="ad_type", native_enum=False, length=32, values_callable=_enum_values),
        nullable=False,
    )
    script = Column(Text, nullable=False)
    is_enabled = Column(Boolean, nullable=False, default=True, server_default=text("true"))

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        Index("ix_ad_scripts_type_enabled", "ad_type", "is_enabled"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<AdScript id={self.id} type={self.ad_type} enabled={self.is_enabled}>"
