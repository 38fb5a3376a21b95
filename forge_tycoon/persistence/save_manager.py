"""
Save manager for Forge Tycoon.
Stores Shop snapshots in named save slots and runs the autosave timer.

Persistence failures never escape: they are logged, reported on the bus
as error notifications, and the in-memory game is left untouched.
"""

import json
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from forge_tycoon.config import Settings, get_settings
from forge_tycoon.events import GameLoaded, GameSaved, NotificationLevel, SaveDeleted
from forge_tycoon.gameplay.shop import Shop
from forge_tycoon.gameplay.timing import to_iso, utc_now
from forge_tycoon.models.save_slot import SaveSlot

logger = logging.getLogger(__name__)

MIN_AUTOSAVE_INTERVAL = 30

# Global save manager instance
_manager: "SaveManager | None" = None


def get_save_manager() -> "SaveManager | None":
    """Get the global save manager instance."""
    return _manager


def set_save_manager(manager: "SaveManager | None") -> None:
    """Set the global save manager instance."""
    global _manager
    _manager = manager


class SaveManager:
    """
    Reads and writes Shop snapshots.
    One row per slot name; saving into an existing slot overwrites it.
    """

    def __init__(
        self,
        shop: Shop,
        db_session_factory,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._shop = shop
        self._db_session_factory = db_session_factory
        self._version = settings.save_version

        self.autosave_slot = settings.autosave_slot
        self.autosave_enabled = settings.autosave_enabled
        self.autosave_interval = max(MIN_AUTOSAVE_INTERVAL, settings.autosave_interval_seconds)
        self._autosave_elapsed = 0.0

    @property
    def bus(self):
        return self._shop.bus

    # =========================================================================
    # SLOTS
    # =========================================================================

    async def save_game(self, slot: str | None = None) -> bool:
        """Write the current game into a slot (the autosave slot by default)."""
        slot = slot or self.autosave_slot
        data = self._shop.serialize(slot_name=slot, version=self._version)

        try:
            async with self._db_session_factory() as db:
                await self._write_slot(db, slot, data)
                await db.commit()
        except SQLAlchemyError:
            logger.error(f"Failed to save game to slot {slot}", exc_info=True)
            self.bus.notify(NotificationLevel.ERROR, f"Failed to save game to slot '{slot}'.")
            return False

        logger.info(f"Game saved to slot {slot}")
        self.bus.publish(GameSaved(slot=slot))
        if slot != self.autosave_slot:
            self.bus.notify(NotificationLevel.SUCCESS, f"Game saved to slot '{slot}'.")
        return True

    async def load_game(self, slot: str | None = None) -> bool:
        """
        Restore the game from a slot.
        A missing or invalid slot is a warning and changes nothing.
        """
        slot = slot or self.autosave_slot

        try:
            async with self._db_session_factory() as db:
                row = await self._get_slot(db, slot)
                data = row.data if row is not None else None
        except SQLAlchemyError:
            logger.error(f"Failed to read save slot {slot}", exc_info=True)
            self.bus.notify(NotificationLevel.ERROR, f"Failed to load game from slot '{slot}'.")
            return False

        if data is None:
            logger.warning(f"No save found in slot {slot}")
            self.bus.notify(NotificationLevel.WARNING, f"No save found in slot '{slot}'.")
            return False

        if not self._shop.deserialize(data):
            logger.warning(f"Save in slot {slot} is invalid")
            self.bus.notify(NotificationLevel.WARNING, f"Save in slot '{slot}' is invalid.")
            return False

        logger.info(f"Game loaded from slot {slot}")
        self.bus.publish(GameLoaded(slot=slot))
        self.bus.notify(NotificationLevel.SUCCESS, f"Game loaded from slot '{slot}'.")
        return True

    async def delete_save(self, slot: str) -> bool:
        try:
            async with self._db_session_factory() as db:
                row = await self._get_slot(db, slot)
                if row is None:
                    return False
                await db.delete(row)
                await db.commit()
        except SQLAlchemyError:
            logger.error(f"Failed to delete save slot {slot}", exc_info=True)
            self.bus.notify(NotificationLevel.ERROR, f"Failed to delete slot '{slot}'.")
            return False

        self.bus.publish(SaveDeleted(slot=slot))
        self.bus.notify(NotificationLevel.INFO, f"Deleted save slot '{slot}'.")
        return True

    async def list_saves(self) -> list[dict[str, Any]]:
        """All slots, newest first."""
        try:
            async with self._db_session_factory() as db:
                result = await db.execute(
                    select(SaveSlot).order_by(SaveSlot.saved_at.desc())
                )
                rows = result.scalars().all()
        except SQLAlchemyError:
            logger.error("Failed to list save slots", exc_info=True)
            return []

        return [
            {
                "slot": row.name,
                "version": row.version,
                "saved_at": to_iso(row.saved_at),
                "meta": (row.data or {}).get("meta", {}),
            }
            for row in rows
        ]

    async def export_save(self, slot: str) -> str | None:
        """The slot's snapshot as JSON text, or None if the slot is empty."""
        try:
            async with self._db_session_factory() as db:
                row = await self._get_slot(db, slot)
                data = row.data if row is not None else None
        except SQLAlchemyError:
            logger.error(f"Failed to export save slot {slot}", exc_info=True)
            return None
        if data is None:
            return None
        return json.dumps(data)

    async def import_save(self, text: str, slot: str) -> bool:
        """Store JSON text produced by export_save into a slot."""
        try:
            data = json.loads(text)
        except ValueError:
            logger.warning(f"Import into slot {slot} is not valid JSON")
            self.bus.notify(NotificationLevel.ERROR, "Imported save is not valid JSON.")
            return False

        if not Shop.is_valid_snapshot(data):
            logger.warning(f"Import into slot {slot} is not a game snapshot")
            self.bus.notify(NotificationLevel.ERROR, "Imported data is not a valid save.")
            return False

        try:
            async with self._db_session_factory() as db:
                await self._write_slot(db, slot, data)
                await db.commit()
        except SQLAlchemyError:
            logger.error(f"Failed to import save into slot {slot}", exc_info=True)
            self.bus.notify(NotificationLevel.ERROR, f"Failed to import save into slot '{slot}'.")
            return False

        self.bus.notify(NotificationLevel.SUCCESS, f"Imported save into slot '{slot}'.")
        return True

    # =========================================================================
    # AUTOSAVE
    # =========================================================================

    async def update(self, elapsed_seconds: float) -> bool:
        """Advance the autosave timer. Returns True when an autosave ran."""
        if not self.autosave_enabled:
            return False

        self._autosave_elapsed += elapsed_seconds
        if self._autosave_elapsed < self.autosave_interval:
            return False

        self._autosave_elapsed = 0.0
        return await self.save_game(self.autosave_slot)

    def set_autosave_interval(self, seconds: int) -> None:
        self.autosave_interval = max(MIN_AUTOSAVE_INTERVAL, seconds)
        self._autosave_elapsed = 0.0

    def set_autosave_enabled(self, enabled: bool) -> None:
        self.autosave_enabled = enabled
        self._autosave_elapsed = 0.0

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    async def _get_slot(db, slot: str) -> SaveSlot | None:
        result = await db.execute(select(SaveSlot).where(SaveSlot.name == slot))
        return result.scalar_one_or_none()

    async def _write_slot(self, db, slot: str, data: dict[str, Any]) -> None:
        version = (data.get("meta") or {}).get("version", self._version)
        row = await self._get_slot(db, slot)
        if row is None:
            db.add(SaveSlot(name=slot, data=data, version=version))
        else:
            row.data = data
            row.version = version
            row.saved_at = utc_now()
