"""
Save slot model for Forge Tycoon.
"""

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import DateTime, JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from forge_tycoon.database import Base
from forge_tycoon.gameplay.timing import utc_now


class SaveSlot(Base):
    """
    One named snapshot of the whole shop.
    The snapshot itself is the JSON document produced by Shop.serialize().
    """

    __tablename__ = "save_slots"

    id: Mapped[Uuid] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    data: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
    )
    version: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    saved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SaveSlot(name={self.name}, version={self.version}, saved_at={self.saved_at})>"
