import threading
from datetime import timedelta

import pytest

from app.workers.unified_scheduler import UnifiedScheduler


@pytest.fixture()
def scheduler(clock):
    sched = UnifiedScheduler(check_interval_seconds=0.01, max_workers=2, clock=clock)
    yield sched
    sched.stop(wait=True)


def _drain(scheduler):
    """Wait for submitted jobs by shutting the pool down."""
    scheduler._executor.shutdown(wait=True)
    scheduler._executor = None


def test_schedule_interval_sets_first_run(scheduler, clock):
    scheduler.register_task("device.ping", lambda: "pong")

    job = scheduler.schedule_interval("device.ping", 60)

    assert job.job_id == "device.ping"
    assert job.namespace == "device"
    assert job.next_run == clock() + timedelta(seconds=60)


def test_schedule_requires_registered_task_and_positive_interval(scheduler):
    with pytest.raises(KeyError):
        scheduler.schedule_interval("missing.task", 60)

    scheduler.register_task("device.ping", lambda: None)
    with pytest.raises(ValueError):
        scheduler.schedule_interval("device.ping", 0)


def test_due_job_runs_and_next_run_is_fixed_rate(scheduler, clock):
    calls = []
    scheduler.register_task("device.ping", lambda: calls.append(clock()))
    job = scheduler.schedule_interval("device.ping", 60)
    first_slot = job.next_run

    clock.advance(seconds=61)
    scheduler._process_due_jobs()
    _drain(scheduler)

    assert len(calls) == 1
    # advanced from the scheduled slot, not from when the loop noticed it
    assert job.next_run == first_slot + timedelta(seconds=60)
    assert job.run_count == 1
    assert job.success_count == 1


def test_not_due_job_does_not_run(scheduler, clock):
    calls = []
    scheduler.register_task("device.ping", lambda: calls.append(1))
    scheduler.schedule_interval("device.ping", 60)

    clock.advance(seconds=30)
    scheduler._process_due_jobs()
    _drain(scheduler)

    assert calls == []


def test_missed_slots_are_skipped_not_piled_up(scheduler, clock):
    calls = []
    scheduler.register_task("device.ping", lambda: calls.append(1))
    job = scheduler.schedule_interval("device.ping", 60)
    start = clock()

    clock.advance(seconds=600)  # host slept through nine slots
    scheduler._process_due_jobs()
    _drain(scheduler)

    assert calls == [1]
    assert job.next_run > clock()
    assert (job.next_run - start).total_seconds() % 60 == 0


def test_failing_job_is_recorded_and_does_not_stop_schedule(scheduler, clock):
    def boom():
        raise RuntimeError("sensor store unavailable")

    scheduler.register_task("irrigation.tick", boom)
    job = scheduler.schedule_interval("irrigation.tick", 60)

    clock.advance(seconds=60)
    scheduler._process_due_jobs()
    _drain(scheduler)

    assert job.failure_count == 1
    assert job.last_error == "sensor store unavailable"
    assert job.next_run == clock() + timedelta(seconds=60)
    history = scheduler.get_history(job_id=job.job_id)
    assert len(history) == 1 and history[0].success is False


def test_disabled_job_is_skipped(scheduler, clock):
    calls = []
    scheduler.register_task("device.ping", lambda: calls.append(1))
    scheduler.schedule_interval("device.ping", 60)
    scheduler.enable_job("device.ping", enabled=False)

    clock.advance(seconds=120)
    scheduler._process_due_jobs()
    _drain(scheduler)

    assert calls == []


def test_run_now_records_result(scheduler):
    scheduler.register_task("device.ping", lambda: {"ok": True})

    result = scheduler.run_now("device.ping")

    assert result.success is True
    assert result.result == {"ok": True}
    assert scheduler.run_now("unknown.task") is None


def test_run_now_captures_failure(scheduler):
    scheduler.register_task("device.ping", lambda: 1 / 0)

    result = scheduler.run_now("device.ping")

    assert result.success is False
    assert "division" in result.error


def test_background_loop_executes_due_jobs(clock):
    ran = threading.Event()
    sched = UnifiedScheduler(check_interval_seconds=0.01, clock=clock)
    sched.register_task("device.ping", ran.set)
    sched.schedule_interval("device.ping", 60, start_immediately=True)

    sched.start()
    try:
        assert ran.wait(timeout=2.0)
        assert sched.is_running()
    finally:
        sched.stop(wait=True)

    assert not sched.is_running()


def test_stop_waits_for_in_flight_job(clock):
    started = threading.Event()
    finished = threading.Event()

    def slow():
        started.set()
        finished.wait(0.2)
        finished.set()

    sched = UnifiedScheduler(check_interval_seconds=0.01, clock=clock)
    sched.register_task("slow.job", slow)
    sched.schedule_interval("slow.job", 60, start_immediately=True)
    sched.start()
    assert started.wait(timeout=2.0)

    sched.stop(wait=True)

    assert finished.is_set()


def test_health_check_reports_state(scheduler, clock):
    scheduler.register_task("device.ping", lambda: None)
    scheduler.schedule_interval("device.ping", 60)

    report = scheduler.health_check()
    assert report["health"] == "unhealthy"  # loop not started
    assert report["statistics"]["total_jobs"] == 1
    assert report["jobs"][0]["job_id"] == "device.ping"

    scheduler.start()
    assert scheduler.health_check()["health"] == "healthy"
