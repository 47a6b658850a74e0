from __future__ import annotations

"""
📡 Moovie — AdNetwork
=====================

A third-party ad network (e.g. an exchange whose tags the admin pastes in).
Scripts reference a network by id; deleting a network does **not** cascade to
its scripts, the admin panel removes those explicitly.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, String, text

from moovie.db.base_class import Base, StringPKMixin, TimestampMixin


class AdNetwork(StringPKMixin, TimestampMixin, Base):
    __tablename__ = "ad_networks"

    name = Column(String(120), nullable=False)
    is_enabled = Column(Boolean, nullable=False, default=True, server_default=text("true"))

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("length(trim(name)) > 0", name="name_not_blank"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<AdNetwork id={self.id} name={self.name!r} enabled={self.is_enabled}>"
