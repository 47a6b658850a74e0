from __future__ import annotations

"""
🧭 Moovie — AdZone
==================

A placement slot on a page, addressed by `position` (e.g. `homepage_hero`).

Highlights
----------
• `script_id` pins one script; `NULL`/`"none"` or `rotation=true` rotates.
• `lazy_load`, `trigger` and `delay` drive placement activation.
• `frequency` overrides the global popup cap for popups served through the zone.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Enum, Index, Integer, String, text

from moovie.db.base_class import Base, StringPKMixin, TimestampMixin
from moovie.schemas.ads import AdPage, AdTrigger, AdType


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class AdZone(StringPKMixin, TimestampMixin, Base):
    __tablename__ = "ad_zones"

    name = Column(String(120), nullable=False)
    page = Column(
        Enum(AdPage, name="ad_page", native_enum=False, length=16, values_callable=_enum_values),
        nullable=False,
        default=AdPage.home,
    )
    position = Column(String(120), nullable=False)
    ad_type = Column(
        Enum(AdType, name="ad_type", native_enum=False, length=32, values_callable=_enum_values),
        nullable=False,
    )
    script_id = Column(String(64), nullable=True)

    is_enabled = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    rotation = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    lazy_load = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    trigger = Column(
        Enum(AdTrigger, name="ad_trigger", native_enum=False, length=16, values_callable=_enum_values),
        nullable=False,
        default=AdTrigger.load,
    )
    delay = Column(Integer, nullable=False, default=0, server_default=text("0"))
    frequency = Column(Integer, nullable=True)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("delay >= 0", name="delay_nonneg"),
        CheckConstraint("(frequency IS NULL OR frequency >= 0)", name="frequency_nonneg"),
        Index("ix_ad_zones_page_position", "page", "position"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<AdZone id={self.id} position={self.position!r} enabled={self.is_enabled}>"
