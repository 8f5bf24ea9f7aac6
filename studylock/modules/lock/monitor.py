"""Lock monitor: the client-side state store for the overdue-task lock.

Four independent triggers (change feed, 60-second poll, deadline wake-up and
foreground transitions) all funnel into the same idempotent recompute, so no
ordering between them is assumed.
"""

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from studylock.core.change_feed import ChangeEvent, ChangeFeed, change_feed
from studylock.core.config import constants
from studylock.core.logging import span
from studylock.domain.task import Task
from studylock.modules.lock import state_machine
from studylock.modules.lock.focus import FocusBreak, FocusTracker
from studylock.modules.lock.state_machine import LockState


logger = logging.getLogger(__name__)

TaskSource = Callable[[str], Awaitable[list[Task]]]
LockListener = Callable[[LockState], Awaitable[None] | None]


async def _open_tasks_for(user_id: str) -> list[Task]:
    from studylock.modules.tasks import service as task_service

    return await task_service.list_open_tasks(user_id=user_id)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class LockMonitor:
    """Owns the task snapshot, the suppression flags and the current LockState for one user."""

    def __init__(
        self,
        *,
        user_id: str,
        task_source: TaskSource | None = None,
        scheduler: AsyncIOScheduler | None = None,
        feed: ChangeFeed | None = None,
        clock: Callable[[], datetime] = _utc_now,
        focus: FocusTracker | None = None,
    ) -> None:
        self.user_id = user_id
        self._task_source = task_source or _open_tasks_for
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler or AsyncIOScheduler()
        self._feed = feed or change_feed
        self._clock = clock
        self.focus = focus or FocusTracker(user_id=user_id, scheduler=self._scheduler, clock=clock)

        self._tasks: list[Task] = []
        self._unlocked_for_proof = False
        self._submitting = False
        self._state = LockState()
        self._listeners: list[LockListener] = []
        self._unsubscribe: Callable[[], None] | None = None
        self._started = False

    @property
    def state(self) -> LockState:
        return self._state

    @property
    def poll_job_id(self) -> str:
        return f"lock-poll-{self.user_id}"

    @property
    def wakeup_job_id(self) -> str:
        return f"lock-wakeup-{self.user_id}"

    def add_listener(self, callback: LockListener) -> Callable[[], None]:
        """Observe lock state changes. Returns a function that removes the listener."""
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    async def _notify(self, state: LockState) -> None:
        for callback in list(self._listeners):
            try:
                result = callback(state)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Lock listener failed", extra={"user_id": self.user_id})

    def _schedule_wakeup(self, state: LockState, now: datetime) -> None:
        if not self._started:
            return

        wakeup = state_machine.next_wakeup(state, now)
        if wakeup is None:
            if self._scheduler.get_job(self.wakeup_job_id) is not None:
                self._scheduler.remove_job(self.wakeup_job_id)
            return

        self._scheduler.add_job(
            self._on_wakeup,
            trigger=DateTrigger(run_date=wakeup),
            id=self.wakeup_job_id,
            replace_existing=True,
        )
        logger.debug("Scheduled lock wake-up", extra={"user_id": self.user_id, "run_date": wakeup.isoformat()})

    async def evaluate(self, now: datetime | None = None) -> LockState:
        """Recompute the lock state from the current snapshot and flags.

        Listeners are notified only when the state actually changes.
        """
        now = now or self._clock()
        new_state = state_machine.recompute(
            self._tasks,
            now,
            unlocked_for_proof=self._unlocked_for_proof,
            submitting=self._submitting,
        )
        changed = new_state != self._state
        self._state = new_state
        self._schedule_wakeup(new_state, now)

        if changed:
            logger.info(
                "Lock state changed",
                extra={
                    "user_id": self.user_id,
                    "locked": new_state.locked,
                    "locking_task_id": new_state.locking_task.id if new_state.locking_task else None,
                    "overdue": len(new_state.overdue_tasks),
                },
            )
            await self._notify(new_state)
        return new_state

    async def refresh(self) -> LockState:
        """Fetch the authoritative task snapshot and re-evaluate."""
        with span("lock_monitor.refresh"):
            self._tasks = list(await self._task_source(self.user_id))
            return await self.evaluate()

    async def unlock_for_proof(self) -> LockState:
        """Lift the lock so the user can reach the proof flow.

        Only takes effect while locked.
        """
        if self._state.locked:
            self._unlocked_for_proof = True
        return await self.evaluate()

    async def relock(self) -> LockState:
        """Close the proof flow; the lock returns if anything is still overdue."""
        self._unlocked_for_proof = False
        return await self.evaluate()

    async def set_submitting(self, submitting: bool) -> LockState:
        self._submitting = submitting
        return await self.evaluate()

    @asynccontextmanager
    async def submission(self) -> AsyncIterator[LockState]:
        """Suppress the lock for the duration of a proof submission.

        On exit, whether the submission succeeded, failed or was cancelled, both
        suppression flags are cleared and the snapshot is refreshed.
        """
        state = await self.set_submitting(True)
        try:
            yield state
        finally:
            self._submitting = False
            self._unlocked_for_proof = False
            try:
                await self.refresh()
            except Exception:
                logger.exception("Lock refresh after submission failed", extra={"user_id": self.user_id})
                await self.evaluate()

    async def on_foreground(self, now: datetime | None = None) -> FocusBreak | None:
        """Handle the app returning to the foreground: check focus, then refresh immediately."""
        focus_break = self.focus.on_foreground(now)
        await self.refresh()
        return focus_break

    def on_background(self, now: datetime | None = None) -> bool:
        """Handle the app leaving the foreground."""
        return self.focus.on_background(now, locked=self._state.locked)

    async def _on_change(self, event: ChangeEvent) -> None:
        logger.debug("Task change received", extra={"user_id": self.user_id, "action": event.action.value})
        await self.refresh()

    async def _on_wakeup(self) -> None:
        await self.evaluate()

    async def _poll(self) -> None:
        try:
            await self.refresh()
        except Exception:
            logger.exception("Lock poll failed", extra={"user_id": self.user_id})

    async def start(self) -> LockState:
        """Subscribe to task changes, register the poll and wake-up jobs, and evaluate."""
        if self._started:
            return self._state

        self._unsubscribe = self._feed.subscribe(collection="tasks", callback=self._on_change, user_id=self.user_id)
        self._scheduler.add_job(
            self._poll,
            trigger=IntervalTrigger(seconds=constants.LOCK_POLL_SECONDS),
            id=self.poll_job_id,
            replace_existing=True,
        )
        if self._owns_scheduler and not self._scheduler.running:
            self._scheduler.start()
        self._started = True

        logger.info("Lock monitor started", extra={"user_id": self.user_id})
        return await self.refresh()

    async def stop(self) -> None:
        """Tear down subscriptions and timers."""
        if not self._started:
            return

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for job_id in (self.poll_job_id, self.wakeup_job_id):
            if self._scheduler.get_job(job_id) is not None:
                self._scheduler.remove_job(job_id)
        self.focus.reset()
        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._started = False
        logger.info("Lock monitor stopped", extra={"user_id": self.user_id})
