"""
Achievement Progress Stores

The progress store is the only side-effecting dependency of the achievement
engine. It holds one ProgressRecord per (user, achievement) and must never
revert an unlock: once is_unlocked is True the row is frozen, including
unlocked_at.

Implementations:
- InMemoryProgressStore: process-local dict, for tests and demo sessions
- PostgresProgressStore: user_achievement_progress table via psycopg

Pass PROGRESS_SCHEMA to Database(schema=...) to create the table when the
pool opens, or call PostgresProgressStore.ensure_schema().
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple
import logging

import psycopg

from tipquest.db.connection import Database, db
from tipquest.exceptions import wrap_store_exception
from tipquest.models.achievement import ProgressRecord

logger = logging.getLogger(__name__)


class ProgressStore(ABC):
    """Repository interface for per-user achievement progress"""

    @abstractmethod
    async def get(self, user_id: str) -> Dict[str, ProgressRecord]:
        """
        Get all stored progress for a user

        Returns:
            ProgressRecord by achievement_id (empty when nothing stored)
        """

    @abstractmethod
    async def upsert(self, user_id: str, achievement_id: str, record: ProgressRecord) -> bool:
        """
        Create or update one progress record

        Never reverts an unlocked row. Driver failures raise.

        Returns:
            True when the write was applied, False when the stored record
            is already unlocked and was left as is
        """


def _merge(existing: Optional[ProgressRecord], incoming: ProgressRecord) -> ProgressRecord:
    """Apply an incoming write without ever reverting an unlock"""
    if existing is not None and existing.is_unlocked:
        return existing
    if incoming.is_unlocked and incoming.unlocked_at is None:
        raise ValueError(f"Unlocked record for '{incoming.achievement_id}' needs unlocked_at")
    return incoming.model_copy()


class InMemoryProgressStore(ProgressStore):
    """Process-local progress store keyed by (user_id, achievement_id)"""

    def __init__(self):
        self._records: Dict[Tuple[str, str], ProgressRecord] = {}

    async def get(self, user_id: str) -> Dict[str, ProgressRecord]:
        return {
            achievement_id: record.model_copy()
            for (owner, achievement_id), record in self._records.items()
            if owner == user_id
        }

    async def upsert(self, user_id: str, achievement_id: str, record: ProgressRecord) -> bool:
        key = (user_id, achievement_id)
        existing = self._records.get(key)
        merged = _merge(existing, record)
        if merged is existing:
            logger.debug(f"Kept unlocked progress {user_id}/{achievement_id} in memory store")
            return False
        self._records[key] = merged
        logger.debug(f"Saved progress {user_id}/{achievement_id} to memory store")
        return True

    def clear(self) -> None:
        self._records.clear()


# ==========================================
# PostgreSQL
# ==========================================

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS user_achievement_progress (
    user_id TEXT NOT NULL,
    achievement_id TEXT NOT NULL,
    current_value DOUBLE PRECISION NOT NULL DEFAULT 0,
    target_value DOUBLE PRECISION,
    is_unlocked BOOLEAN NOT NULL DEFAULT FALSE,
    unlocked_at TIMESTAMPTZ,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (user_id, achievement_id)
)
"""

SELECT_PROGRESS_SQL = """
SELECT achievement_id, current_value, target_value, is_unlocked, unlocked_at
FROM user_achievement_progress
WHERE user_id = %s
"""

# Rows that are already unlocked are left untouched by the WHERE guard
UPSERT_PROGRESS_SQL = """
INSERT INTO user_achievement_progress
    (user_id, achievement_id, current_value, target_value, is_unlocked, unlocked_at)
VALUES (%s, %s, %s, %s, %s, %s)
ON CONFLICT (user_id, achievement_id) DO UPDATE
SET current_value = EXCLUDED.current_value,
    target_value = EXCLUDED.target_value,
    is_unlocked = EXCLUDED.is_unlocked,
    unlocked_at = EXCLUDED.unlocked_at,
    updated_at = CURRENT_TIMESTAMP
WHERE NOT user_achievement_progress.is_unlocked
"""


PROGRESS_SCHEMA = (CREATE_TABLE_SQL,)


class PostgresProgressStore(ProgressStore):
    """Progress store backed by the user_achievement_progress table"""

    def __init__(self, database: Database = db):
        self.db = database

    async def ensure_schema(self) -> None:
        """Create the progress table if it doesn't exist"""
        try:
            await self.db.apply_schema(PROGRESS_SCHEMA)
        except psycopg.Error as e:
            raise wrap_store_exception(e, operation="ensure_schema")
        logger.info("Ensured user_achievement_progress table exists")

    async def get(self, user_id: str) -> Dict[str, ProgressRecord]:
        try:
            async with self.db.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(SELECT_PROGRESS_SQL, (user_id,))
                    rows = await cur.fetchall()
        except psycopg.Error as e:
            raise wrap_store_exception(e, operation="get_progress", user_id=user_id)

        return {row["achievement_id"]: ProgressRecord(**row) for row in rows}

    async def upsert(self, user_id: str, achievement_id: str, record: ProgressRecord) -> bool:
        if record.is_unlocked and record.unlocked_at is None:
            raise ValueError(f"Unlocked record for '{achievement_id}' needs unlocked_at")

        try:
            async with self.db.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        UPSERT_PROGRESS_SQL,
                        (
                            user_id,
                            achievement_id,
                            record.current_value,
                            record.target_value,
                            record.is_unlocked,
                            record.unlocked_at,
                        )
                    )
                    applied = cur.rowcount > 0
                await conn.commit()
        except psycopg.Error as e:
            raise wrap_store_exception(
                e, operation="upsert_progress", user_id=user_id, achievement_id=achievement_id
            )

        if not applied:
            logger.debug(f"Kept unlocked progress {user_id}/{achievement_id}")
        return applied
