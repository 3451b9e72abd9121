# File: store.py
"""Handles persistent storage of the local progress ledger.

Uses Home Assistant's Storage helper so progress recorded while signed out
survives restarts. The cloud copy of the ledger lives on the backend (see
api.py); this store only ever holds the local-scope ledger.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.helpers.storage import Store

from . import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class LedgerStore:
    """Thin wrapper around Home Assistant's Store for the local ledger."""

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location (default: const.STORAGE_KEY).
        """
        self.hass = hass
        self._storage_key = storage_key
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: dict[str, Any] | None = None

    async def async_initialize(self) -> None:
        """Load the ledger from storage during startup.

        Leaves data as None when nothing was ever saved.
        """
        const.LOGGER.debug("DEBUG: LedgerStore: Loading data from storage")
        existing_data = await self._store.async_load()

        if existing_data is None:
            const.LOGGER.info("INFO: No existing local ledger found")
            self._data = None
            return

        self._data = existing_data
        const.LOGGER.debug(
            "DEBUG: Loaded local ledger version %s with %s sources",
            existing_data.get(const.DATA_LEDGER_VERSION),
            len(existing_data.get(const.DATA_LEDGER_MAP_PROGRESS, {})),
        )

    @property
    def data(self) -> dict[str, Any] | None:
        """Retrieve the in-memory ledger cache."""
        return self._data

    def set_data(self, new_data: dict[str, Any]) -> None:
        """Replace the in-memory ledger."""
        self._data = new_data

    async def async_save(self) -> None:
        """Save the in-memory ledger to storage.

        Raises:
            No exceptions raised - errors are logged but do not stop execution.
            OSError: Logged when file system issues prevent saving.
            TypeError: Logged when data contains non-serializable types.
            ValueError: Logged when data is invalid for JSON serialization.
        """
        if self._data is None:
            return
        try:
            await self._store.async_save(self._data)
            const.LOGGER.debug(
                "DEBUG: Local ledger version %s saved",
                self._data.get(const.DATA_LEDGER_VERSION),
            )
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save local ledger due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
        except TypeError as err:
            const.LOGGER.error(
                "ERROR: Failed to save local ledger due to non-serializable data: %s",
                err,
            )
        except ValueError as err:
            const.LOGGER.error(
                "ERROR: Failed to save local ledger due to invalid data format: %s",
                err,
            )

    async def async_delete_storage(self) -> None:
        """Forget the in-memory ledger and remove the storage file."""
        self._data = None
        try:
            await self._store.async_remove()
            const.LOGGER.info(
                "INFO: Local ledger storage removed: %s", self._store.path
            )
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove storage file %s: %s. Check file permissions",
                self._store.path,
                err,
            )
