"""
Achievement System

Reconciles shift-log metrics against the achievement catalog and the user's
stored progress, then persists what changed.

Per achievement:
- Stored as unlocked: reported unlocked at 100%, never written again
- Metric reached the target: unlock persisted with unlocked_at = now and
  reported in newly_unlocked
- Still locked: progress = value / target, written only when the value
  moved since the stored snapshot

Recomputes for one user are serialized so an in-flight "still locked"
write can't land after another recompute's unlock. Store failures never
abort a recompute: reads degrade to "no stored progress", failed writes are
retried by the next recompute.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from datetime import date, datetime, timezone
import asyncio
import logging
import time

from tipquest.db.progress_store import ProgressStore
from tipquest.gamification.catalog import DEFAULT_CATALOG
from tipquest.gamification.metrics import compute_metrics, metric_value
from tipquest.gamification.streak_system import calculate_shift_streak
from tipquest.models.achievement import AchievementDefinition, ProgressRecord, UserAchievement
from tipquest.models.gamification import AchievementReport
from tipquest.models.shift import ShiftInput, coerce_shift_log
from tipquest.observability.metrics import (
    record_recompute,
    record_store_error,
    record_store_write,
    record_unlock,
)

logger = logging.getLogger(__name__)


@dataclass
class AchievementDecision:
    """Outcome of evaluating one achievement"""
    achievement: UserAchievement
    write: Optional[ProgressRecord] = None
    unlocks: bool = False


def calculate_progress(current_value: float, target_value: float) -> float:
    """Percentage toward target, clamped to [0, 100]"""
    if target_value <= 0:
        return 0.0
    return max(0.0, min(100.0, current_value / target_value * 100))


def evaluate_achievement(
    definition: AchievementDefinition,
    current_value: float,
    record: Optional[ProgressRecord],
    now: datetime
) -> AchievementDecision:
    """
    Decide the state of one achievement and the write it needs

    Args:
        definition: Catalog entry
        current_value: Metric value for definition.metric
        record: Stored progress, None when nothing is stored
        now: Timestamp for a fresh unlock

    Returns:
        AchievementDecision; write is None when the store is already current
    """
    base = definition.model_dump()

    if record is not None and record.is_unlocked:
        return AchievementDecision(
            achievement=UserAchievement(
                **base,
                unlocked=True,
                unlocked_at=record.unlocked_at,
                current_value=current_value,
                progress=100.0,
            )
        )

    if current_value >= definition.target_value:
        write = ProgressRecord(
            achievement_id=definition.id,
            current_value=current_value,
            target_value=definition.target_value,
            is_unlocked=True,
            unlocked_at=now,
        )
        return AchievementDecision(
            achievement=UserAchievement(
                **base,
                unlocked=True,
                unlocked_at=now,
                current_value=current_value,
                progress=100.0,
            ),
            write=write,
            unlocks=True,
        )

    progress = calculate_progress(current_value, definition.target_value)
    # No row is created until there is progress to show
    if record is None:
        changed = progress > 0
    else:
        changed = current_value != record.current_value

    write = None
    if changed:
        write = ProgressRecord(
            achievement_id=definition.id,
            current_value=current_value,
            target_value=definition.target_value,
            is_unlocked=False,
            unlocked_at=None,
        )

    return AchievementDecision(
        achievement=UserAchievement(
            **base,
            unlocked=False,
            unlocked_at=None,
            current_value=current_value,
            progress=progress,
        ),
        write=write,
    )


def _unlock_sort_key(achievement: UserAchievement) -> datetime:
    unlocked_at = achievement.unlocked_at
    if unlocked_at is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if unlocked_at.tzinfo is None:
        return unlocked_at.replace(tzinfo=timezone.utc)
    return unlocked_at


def order_achievements(achievements: Iterable[UserAchievement]) -> List[UserAchievement]:
    """
    Unlocked first (most recent unlock first), then locked by descending
    progress. Ties keep catalog order.
    """
    items = list(achievements)
    unlocked = sorted((a for a in items if a.unlocked), key=_unlock_sort_key, reverse=True)
    locked = sorted((a for a in items if not a.unlocked), key=lambda a: a.progress, reverse=True)
    return unlocked + locked


def get_visible_achievements(achievements: Iterable[UserAchievement]) -> List[UserAchievement]:
    """Unlocked achievements plus locked ones that show some progress"""
    return [a for a in achievements if a.unlocked or a.progress > 0]


def get_achievement_recommendations(
    achievements: Iterable[UserAchievement],
    limit: int = 3,
    min_progress: float = 50.0
) -> List[UserAchievement]:
    """
    Locked achievements closest to completion

    Args:
        achievements: Output of a recompute
        limit: Number of recommendations to return
        min_progress: Minimum progress percentage to qualify

    Returns:
        Up to `limit` locked achievements, highest progress first
    """
    locked = [a for a in achievements if not a.unlocked and a.progress >= min_progress]
    locked.sort(key=lambda a: a.progress, reverse=True)
    return locked[:limit]


class AchievementEngine:
    """
    Achievement reconciliation against a ProgressStore.

    Responsibilities:
    - Metric and streak evaluation over the shift log
    - Unlock decisions (monotonic, idempotent)
    - Persisting changed progress, at most one write per achievement
    - Serializing recomputes per user
    """

    def __init__(
        self,
        store: ProgressStore,
        catalog: Optional[Sequence[AchievementDefinition]] = None
    ):
        """
        Initialize AchievementEngine.

        Args:
            store: Progress store for unlock state
            catalog: Achievement definitions (defaults to DEFAULT_CATALOG)
        """
        self.store = store
        self.catalog: Tuple[AchievementDefinition, ...] = tuple(DEFAULT_CATALOG if catalog is None else catalog)
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    async def recompute(
        self,
        user_id: Optional[str],
        shifts: Iterable[ShiftInput],
        today: Optional[date] = None,
        now: Optional[datetime] = None
    ) -> AchievementReport:
        """
        Recompute every achievement for a user

        Without a user_id nothing is read from or written to the store and
        nothing is reported as newly unlocked.

        Args:
            user_id: Owner of the progress records, None when anonymous
            shifts: Full current shift log
            today: Reference day for streaks (defaults to local today)
            now: Unlock timestamp (defaults to current UTC time)

        Returns:
            AchievementReport with ordered achievements and newly_unlocked
        """
        if user_id is None:
            return await self._recompute(None, shifts, today, now)

        lock = self._locks.setdefault(user_id, asyncio.Lock())
        if lock.locked():
            logger.debug(f"Recompute for user {user_id} queued behind in-flight recompute")

        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                return await self._recompute(user_id, shifts, today, now)
        finally:
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                # Last caller for this user drops the lock
                del self._lock_users[user_id]
                del self._locks[user_id]

    async def _recompute(
        self,
        user_id: Optional[str],
        shifts: Iterable[ShiftInput],
        today: Optional[date],
        now: Optional[datetime]
    ) -> AchievementReport:
        started = time.perf_counter()
        now = now or datetime.now(timezone.utc)

        records = coerce_shift_log(shifts)
        streak = calculate_shift_streak(records, today=today)
        metrics = compute_metrics(records, streak)

        stored, store_available = await self._load_progress(user_id)
        persist = user_id is not None and store_available

        achievements = []
        newly_unlocked = []
        unconfirmed = []  # (index, definition, value) of unlocks the store didn't take
        for definition in self.catalog:
            value = metric_value(metrics, definition.metric)
            decision = evaluate_achievement(definition, value, stored.get(definition.id), now)
            achievements.append(decision.achievement)

            if not persist or decision.write is None:
                continue

            saved = await self._save_progress(user_id, definition.id, decision.write)
            if not decision.unlocks:
                continue
            if saved:
                newly_unlocked.append(decision.achievement)
                record_unlock(definition.tier.value)
                logger.info(
                    f"User {user_id} unlocked achievement: {definition.id} "
                    f"({definition.name}, {definition.tier.value})"
                )
            else:
                unconfirmed.append((len(achievements) - 1, definition, value))

        if unconfirmed:
            await self._reconcile_unlocks(user_id, achievements, unconfirmed, now)

        if user_id is None:
            outcome = "anonymous"
        elif not store_available:
            outcome = "degraded"
        else:
            outcome = "ok"
        record_recompute(outcome, time.perf_counter() - started)

        logger.info(
            f"Recomputed achievements for user {user_id}: shifts={len(records)}, "
            f"unlocked={sum(1 for a in achievements if a.unlocked)}/{len(achievements)}, "
            f"new={len(newly_unlocked)}, outcome={outcome}"
        )

        return AchievementReport(
            achievements=order_achievements(achievements),
            newly_unlocked=newly_unlocked,
            metrics=metrics,
            streak=streak,
            store_available=store_available,
        )

    async def _load_progress(self, user_id: Optional[str]) -> Tuple[Dict[str, ProgressRecord], bool]:
        """Read stored progress; an unreachable store reads as empty"""
        if user_id is None:
            return {}, True

        try:
            return await self.store.get(user_id), True
        except Exception as e:
            record_store_error("get")
            logger.error(
                f"Could not read achievement progress for user {user_id}, "
                f"computing without stored state: {e}",
                exc_info=True
            )
            return {}, False

    async def _save_progress(self, user_id: str, achievement_id: str, record: ProgressRecord) -> bool:
        """
        Write one record

        Returns:
            True when the store applied the write. Errors are logged and
            retried next recompute; a store that kept its existing unlocked
            row returns False without counting as an error.
        """
        try:
            saved = await self.store.upsert(user_id, achievement_id, record)
        except Exception as e:
            record_store_error("upsert")
            logger.error(
                f"Could not save progress {achievement_id} for user {user_id}: {e}",
                exc_info=True
            )
            return False

        if not saved:
            logger.info(f"Progress store kept existing unlock {achievement_id} for user {user_id}")
            return False

        record_store_write("unlock" if record.is_unlocked else "progress")
        return True

    async def _reconcile_unlocks(
        self,
        user_id: str,
        achievements: List[UserAchievement],
        unconfirmed: List[Tuple[int, AchievementDefinition, float]],
        now: datetime
    ) -> None:
        """
        Re-read unlocks the store didn't accept from this recompute

        A row that is already unlocked (written by another engine, or missed
        by a stale read) is reported with its stored unlocked_at and no event.
        Anything else stays an in-memory unlock and is retried next time.
        """
        fresh, available = await self._load_progress(user_id)
        if not available:
            return

        for index, definition, value in unconfirmed:
            record = fresh.get(definition.id)
            if record is not None and record.is_unlocked:
                achievements[index] = evaluate_achievement(definition, value, record, now).achievement
