"""
Short-TTL cache of the SystemSettings row.

Readers get the cached snapshot without locking while it is fresh. When it
goes stale, one reader reloads it under a lock while the others wait and
then reuse the reloaded value (double-checked), so a burst of requests
never stampedes the database.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from app.core.database import SessionLocal
from app.crud import system_settings as settings_crud
from app.schemas.settings import SystemSettingsSchema

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0

SettingsListener = Callable[[SystemSettingsSchema], None]


class SettingsCache:
    def __init__(
        self,
        session_factory: Callable = SessionLocal,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        self._session_factory = session_factory
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[SystemSettingsSchema] = None
        self._loaded_at: Optional[float] = None
        self._listeners: List[SettingsListener] = []
        self.load_count = 0

    def _is_fresh(self) -> bool:
        return (
            self._value is not None
            and self._loaded_at is not None
            and self._clock() - self._loaded_at < self._ttl
        )

    def _load(self) -> SystemSettingsSchema:
        db = self._session_factory()
        try:
            row = settings_crud.get(db)
            self.load_count += 1
            if row is None:
                return SystemSettingsSchema()
            return SystemSettingsSchema.model_validate(row)
        finally:
            db.close()

    def get(self) -> SystemSettingsSchema:
        """Return the current settings, reloading from the database at most once per TTL."""
        if self._is_fresh():
            return self._value

        with self._lock:
            if self._is_fresh():
                return self._value

            self._value = self._load()
            self._loaded_at = self._clock()
            logger.debug("System settings reloaded from database")
            return self._value

    def invalidate(self) -> None:
        """Drop the cached value so the next get() reloads."""
        with self._lock:
            self._value = None
            self._loaded_at = None

    def update(self, values: Dict[str, Any]) -> SystemSettingsSchema:
        """
        Write settings through to the database and replace the cached value.

        Listeners are notified after the cache is updated.

        Args:
            values: Column name -> new value; omitted columns keep their value

        Returns:
            The new settings snapshot
        """
        db = self._session_factory()
        try:
            row = settings_crud.save(db, values)
            snapshot = SystemSettingsSchema.model_validate(row)
        finally:
            db.close()

        with self._lock:
            self._value = snapshot
            self._loaded_at = self._clock()

        logger.info(f"System settings updated: {sorted(values.keys())}")
        self._broadcast(snapshot)
        return snapshot

    def add_listener(self, listener: SettingsListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SettingsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _broadcast(self, snapshot: SystemSettingsSchema) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                # The settings change is already committed
                logger.error(f"Settings listener {listener!r} failed: {e}", exc_info=True)


# Singleton instance
settings_cache = SettingsCache()
