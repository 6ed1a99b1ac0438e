"""
Background job runner for PlantCare.

Two recurring jobs live here: the device liveness sweep and the hourly
watering decision. One loop thread wakes every ``check_interval_seconds``,
pops due jobs off a heap and hands them to a small thread pool.

Timing rules:
- Interval jobs are fixed-rate. A job's next slot is derived from the slot it
  was scheduled for, and is set before the job is handed to the pool.
- Slots missed while the host was asleep are skipped, never replayed.
- A job that raises is logged and counted; its schedule is unaffected.
"""

from __future__ import annotations

import heapq
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

from app.utils.time import utc_now

logger = logging.getLogger(__name__)

# Share of recent runs that may fail before health degrades / turns unhealthy
DEGRADED_FAILURE_RATE = 0.2
UNHEALTHY_FAILURE_RATE = 0.5
HEALTH_WINDOW = 50
STALE_AFTER_INTERVALS = 3


@dataclass
class JobResult:
    job_id: str
    success: bool
    started_at: datetime
    completed_at: datetime
    result: Any = None
    error: str | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "success": self.success,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "error": self.error,
        }


@dataclass
class ScheduledJob:
    """A registered task bound to a repeat interval."""

    job_id: str
    task_name: str
    namespace: str
    interval_seconds: int
    enabled: bool = True
    next_run: datetime | None = None
    last_run: datetime | None = None
    run_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    last_error: str | None = None

    def record(self, started_at: datetime, error: str | None) -> None:
        self.last_run = started_at
        self.run_count += 1
        if error is None:
            self.success_count += 1
        else:
            self.failure_count += 1
        self.last_error = error

    def overdue_seconds(self, now: datetime) -> float | None:
        """Seconds past the stale threshold, or None while the job keeps up."""
        if self.last_run is None:
            return None
        since_last = (now - self.last_run).total_seconds()
        if since_last <= self.interval_seconds * STALE_AFTER_INTERVALS:
            return None
        return since_last - self.interval_seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "task_name": self.task_name,
            "namespace": self.namespace,
            "enabled": self.enabled,
            "interval_seconds": self.interval_seconds,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "last_error": self.last_error,
        }


class UnifiedScheduler:
    """
    Heap-driven interval scheduler owned by the service container.

    Heap entries are ``(run_at_ts, seq, job_id)``. Entries are never removed in
    place: when a job is disabled, dropped or rescheduled its old entry no
    longer matches ``job.next_run`` and is discarded when popped.
    """

    def __init__(
        self,
        check_interval_seconds: float = 1.0,
        max_history: int = 500,
        max_workers: int = 2,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._check_interval = float(check_interval_seconds)
        self._max_history = int(max_history)
        self._max_workers = int(max_workers)
        self._clock = clock

        self._tasks: dict[str, Callable[[], Any]] = {}
        self._jobs: dict[str, ScheduledJob] = {}
        self._heap: list[tuple[float, int, str]] = []
        self._seq = 0
        self._history: list[JobResult] = []

        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running = False
        self._executor: ThreadPoolExecutor | None = self._new_executor()

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="PlantCareJob")

    # ==================== Registration ====================

    def register_task(self, name: str, func: Callable[[], Any]) -> None:
        self._tasks[name] = func
        logger.debug("Registered task: %s", name)

    def clear_jobs(self) -> None:
        with self._lock:
            self._jobs.clear()
            self._heap.clear()
            self._seq = 0

    def schedule_interval(
        self,
        task_name: str,
        interval_seconds: int,
        *,
        job_id: str | None = None,
        enabled: bool = True,
        start_immediately: bool = False,
    ) -> ScheduledJob:
        """Run ``task_name`` every ``interval_seconds``; the first run is one interval out."""
        interval = int(interval_seconds)
        if interval <= 0:
            raise ValueError("interval_seconds must be positive")
        if task_name not in self._tasks:
            raise KeyError(f"Task not registered: {task_name}")

        now = self._clock()
        job = ScheduledJob(
            job_id=job_id or task_name,
            task_name=task_name,
            namespace=task_name.partition(".")[0] if "." in task_name else "default",
            interval_seconds=interval,
            enabled=enabled,
            next_run=now if start_immediately else now + timedelta(seconds=interval),
        )
        with self._lock:
            self._jobs[job.job_id] = job
            self._enqueue(job)
        logger.info("Scheduled job %s every %ss", job.job_id, interval)
        return job

    def run_now(self, task_name: str) -> JobResult | None:
        """Run a task synchronously on the calling thread and record the outcome."""
        func = self._tasks.get(task_name)
        if func is None:
            logger.error("Task not found: %s", task_name)
            return None

        started_at = self._clock()
        job_id = f"{task_name}_immediate_{int(started_at.timestamp())}"
        try:
            value = func()
        except Exception as e:
            logger.error("Immediate run of %s failed: %s", task_name, e, exc_info=True)
            outcome = JobResult(job_id, False, started_at, self._clock(), error=str(e))
        else:
            outcome = JobResult(job_id, True, started_at, self._clock(), result=value)
        self._remember(outcome)
        return outcome

    def enable_job(self, job_id: str, enabled: bool = True) -> bool:
        """Toggle a job. Re-enabled jobs next run one interval from now."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False
            job.enabled = bool(enabled)
            if job.enabled:
                job.next_run = self._clock() + timedelta(seconds=job.interval_seconds)
                self._enqueue(job)
        logger.info("Job %s %s", job_id, "enabled" if enabled else "disabled")
        return True

    def get_job(self, job_id: str) -> ScheduledJob | None:
        return self._jobs.get(job_id)

    def get_jobs(self) -> list[ScheduledJob]:
        with self._lock:
            return list(self._jobs.values())

    # ==================== Lifecycle ====================

    def start(self) -> None:
        if self._running:
            logger.warning("Scheduler already running")
            return
        if self._executor is None:
            self._executor = self._new_executor()
        self._stop_event.clear()
        self._running = True
        self._thread = threading.Thread(target=self._loop, daemon=True, name="PlantCareScheduler")
        self._thread.start()
        logger.info("Scheduler started with %s job(s)", len(self._jobs))

    def stop(self, wait: bool = True, timeout: float = 5.0) -> None:
        """Stop the loop; with ``wait`` also block until in-flight jobs finish."""
        was_running = self._running
        self._running = False
        self._stop_event.set()

        if wait and self._thread is not None:
            self._thread.join(timeout=timeout)
        self._thread = None

        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

        if was_running:
            logger.info("Scheduler stopped")

    def shutdown(self, wait: bool = True, timeout: float = 5.0) -> None:
        self.stop(wait=wait, timeout=timeout)

    def is_running(self) -> bool:
        return self._running

    def _loop(self) -> None:
        while self._running:
            try:
                self._process_due_jobs()
            except Exception as e:
                logger.error("Scheduler loop error: %s", e, exc_info=True)
            self._stop_event.wait(self._check_interval)

    # ==================== Dispatch ====================

    def _enqueue(self, job: ScheduledJob) -> None:
        if job.enabled and job.next_run is not None:
            self._seq += 1
            heapq.heappush(self._heap, (job.next_run.timestamp(), self._seq, job.job_id))

    def _process_due_jobs(self) -> None:
        now = self._clock()
        with self._lock:
            while self._heap and self._heap[0][0] <= now.timestamp():
                run_at_ts, _seq, job_id = heapq.heappop(self._heap)
                job = self._jobs.get(job_id)
                if job is None or not job.enabled or job.next_run is None:
                    continue
                if abs(job.next_run.timestamp() - run_at_ts) > 1e-6:
                    continue

                slot = job.next_run
                job.next_run = self._following_slot(slot, job.interval_seconds, now)
                self._enqueue(job)

                if self._executor is None:
                    logger.warning("No executor; job %s skipped", job_id)
                    continue
                try:
                    self._executor.submit(self._execute_job, job_id, slot)
                except RuntimeError as e:
                    logger.error("Could not submit job %s: %s", job_id, e)

    @staticmethod
    def _following_slot(slot: datetime, interval: int, now: datetime) -> datetime:
        step = timedelta(seconds=interval)
        nxt = slot + step
        if nxt <= now:
            missed = int((now - nxt).total_seconds() // interval) + 1
            nxt += step * missed
        return nxt

    def _execute_job(self, job_id: str, slot: datetime) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None or not job.enabled:
            return

        func = self._tasks.get(job.task_name)
        started_at = self._clock()
        error: str | None = None
        value: Any = None
        try:
            if func is None:
                raise LookupError(f"Task function not found: {job.task_name}")
            value = func()
        except Exception as e:
            error = str(e)
            logger.error("Job %s failed: %s", job_id, e, exc_info=True)

        with self._lock:
            job.record(started_at, error)
        outcome = JobResult(job_id, error is None, started_at, self._clock(), result=value, error=error)
        self._remember(outcome)
        if error is None:
            logger.debug("Job %s (slot %s) took %.2fs", job_id, slot.isoformat(), outcome.duration_seconds)

    def _remember(self, outcome: JobResult) -> None:
        with self._lock:
            self._history.append(outcome)
            del self._history[: -self._max_history]

    # ==================== Reporting ====================

    def health_check(self) -> dict[str, Any]:
        """
        Report loop state, per-job counters and recent failure rate.

        ``unhealthy`` when the loop is down or over half the recent runs
        failed. ``degraded`` when a job has gone three intervals without
        running, or over a fifth of recent runs failed.
        """
        with self._lock:
            now = self._clock()
            jobs = list(self._jobs.values())
            recent = self._history[-HEALTH_WINDOW:]

        failures = sum(1 for r in recent if not r.success)
        failure_rate = failures / len(recent) if recent else 0.0

        stale_jobs = []
        for job in jobs:
            overdue = job.overdue_seconds(now) if job.enabled else None
            if overdue is not None:
                stale_jobs.append(
                    {"job_id": job.job_id, "last_run": job.last_run.isoformat(), "overdue_seconds": overdue}
                )

        if not self._running:
            health, reason = "unhealthy", "Scheduler is not running"
        elif failure_rate > UNHEALTHY_FAILURE_RATE:
            health, reason = "unhealthy", f"High failure rate: {failure_rate:.0%}"
        elif stale_jobs:
            health, reason = "degraded", f"{len(stale_jobs)} stale job(s) detected"
        elif failure_rate > DEGRADED_FAILURE_RATE:
            health, reason = "degraded", f"Elevated failure rate: {failure_rate:.0%}"
        else:
            health, reason = "healthy", "All jobs on schedule"

        return {
            "health": health,
            "reason": reason,
            "timestamp": now.isoformat(),
            "scheduler_running": self._running,
            "statistics": {
                "total_jobs": len(jobs),
                "enabled_jobs": sum(1 for j in jobs if j.enabled),
                "recent_executions": len(recent),
                "recent_failures": failures,
                "failure_rate": round(failure_rate, 3),
            },
            "jobs": [job.to_dict() for job in jobs],
            "stale_jobs": stale_jobs,
        }

    def get_history(self, job_id: str | None = None, limit: int = 100) -> list[JobResult]:
        """Recorded runs, newest first."""
        with self._lock:
            results = [r for r in self._history if job_id is None or r.job_id == job_id]
        results.sort(key=lambda r: r.started_at, reverse=True)
        return results[: int(limit)]
