"""Cancellable periodic auto-backups.

This module tracks one background task per table id. Each task runs a
backup cycle right away, then repeats on a fixed period until it is
cancelled by table deletion, re-scheduling, or process shutdown.
"""

from __future__ import annotations

import threading

from core.constants import DEFAULT_AUTO_BACKUP_INTERVAL_HOURS, SECONDS_PER_HOUR
from core.errors import NotFoundError, VaultScheduleError
from core.logging_config import get_logger
from store.backup_store import BackupStore
from store.table_store import TableStore

_LOGGER = get_logger(__name__)


class ScheduledBackup:
    """Background worker that repeats auto-backup cycles for one table."""

    def __init__(self, backup_store: BackupStore, table_id: int, interval_hours: float) -> None:
        self._backup_store = backup_store
        self._table_id = table_id
        self._interval_hours = interval_hours
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=f"tablevault-auto-backup-{table_id}",
            daemon=True,
        )
        self._cycles_completed = 0

    @property
    def table_id(self) -> int:
        return self._table_id

    @property
    def interval_hours(self) -> float:
        return self._interval_hours

    @property
    def cycles_completed(self) -> int:
        return self._cycles_completed

    @property
    def is_active(self) -> bool:
        return not self._stop_event.is_set()

    def run_cycle(self) -> int | None:
        """Run one backup-and-prune cycle; failures are logged, not raised."""
        backup_id = self._backup_store.run_auto_backup_cycle(self._table_id)
        self._cycles_completed += 1
        return backup_id

    def start(self) -> None:
        self._thread.start()

    def cancel(self, timeout_seconds: float | None = None) -> None:
        """Stop the worker and wait for an in-flight cycle to finish."""
        self._stop_event.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout_seconds)

    def _run(self) -> None:
        interval_seconds = self._interval_hours * SECONDS_PER_HOUR
        while not self._stop_event.wait(interval_seconds):
            self.run_cycle()


class AutoBackupScheduler:
    """Process-wide registry of active auto-backup schedules."""

    def __init__(
        self,
        table_store: TableStore,
        backup_store: BackupStore,
        default_interval_hours: float = DEFAULT_AUTO_BACKUP_INTERVAL_HOURS,
    ) -> None:
        """Create the scheduler and hook it into table deletion.

        Args:
            table_store: Store whose deletions cancel schedules.
            backup_store: Store that runs each backup cycle.
            default_interval_hours: Period used when none is given.
        """
        self._table_store = table_store
        self._backup_store = backup_store
        self._default_interval_hours = default_interval_hours
        self._guard = threading.Lock()
        self._schedules: dict[int, ScheduledBackup] = {}
        table_store.add_delete_listener(self.cancel)
        backup_store.attach_scheduler(self)

    def schedule(self, table_id: int, interval_hours: float | None = None) -> ScheduledBackup:
        """Back up a table now, then keep backing it up every interval.

        Args:
            table_id: Table to back up.
            interval_hours: Period between cycles; config default when omitted.

        Returns:
            Handle of the started schedule.

        Raises:
            NotFoundError: If the table does not exist.
            VaultScheduleError: If the interval is not positive.
        """
        hours = self._default_interval_hours if interval_hours is None else interval_hours
        if hours <= 0:
            raise VaultScheduleError(
                f"Invalid auto-backup interval {hours} hours for table {table_id}. "
                "Use an interval greater than zero."
            )
        scheduled = ScheduledBackup(self._backup_store, table_id, hours)
        with self._table_store.mutation_lock(table_id):
            self._table_store.require(table_id)
            with self._guard:
                replaced = self._schedules.get(table_id)
                self._schedules[table_id] = scheduled
        if replaced is not None:
            replaced.cancel()
            _LOGGER.info("auto_backup_replaced", table_id=table_id)
        scheduled.run_cycle()
        if self._table_store.get_by_id(table_id) is None:
            self._discard(table_id, scheduled)
            raise NotFoundError(
                f"Table with id {table_id} was deleted while its auto-backup was starting."
            )
        scheduled.start()
        _LOGGER.info("auto_backup_scheduled", table_id=table_id, interval_hours=hours)
        return scheduled

    def cancel(self, table_id: int) -> bool:
        """Stop the schedule of one table.

        Returns:
            ``True`` when a schedule was active.
        """
        with self._guard:
            scheduled = self._schedules.pop(table_id, None)
        if scheduled is None:
            return False
        scheduled.cancel()
        _LOGGER.info("auto_backup_cancelled", table_id=table_id)
        return True

    def _discard(self, table_id: int, scheduled: ScheduledBackup) -> None:
        with self._guard:
            if self._schedules.get(table_id) is scheduled:
                del self._schedules[table_id]
        scheduled.cancel()

    def get(self, table_id: int) -> ScheduledBackup | None:
        with self._guard:
            return self._schedules.get(table_id)

    def active_table_ids(self) -> tuple[int, ...]:
        with self._guard:
            return tuple(sorted(self._schedules))

    def shutdown(self) -> None:
        """Cancel every active schedule."""
        for table_id in self.active_table_ids():
            self.cancel(table_id)
