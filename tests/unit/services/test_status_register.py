import threading
from datetime import timedelta

from app.enums import PumpState, WateringMode
from app.services.application.status_register import StatusRegister

FIVE_MINUTES = timedelta(minutes=5)


def test_initial_status_is_optimistic(status_register, clock):
    status = status_register.snapshot()
    assert status.is_online is True
    assert status.last_heartbeat == clock()
    assert status.pump_status is PumpState.OFF
    assert status.current_mode is WateringMode.AUTO


def test_initial_mode_can_be_seeded(clock):
    register = StatusRegister(initial_mode=WateringMode.MANUAL, clock=clock)
    assert register.snapshot().current_mode is WateringMode.MANUAL


def test_stale_heartbeat_goes_offline_and_heartbeat_recovers(status_register, clock):
    clock.advance(minutes=6)

    assert status_register.mark_offline_if_stale(FIVE_MINUTES) is True
    assert status_register.snapshot().is_online is False

    status_register.mark_heartbeat(PumpState.OFF)
    status = status_register.snapshot()
    assert status.is_online is True
    assert status.last_heartbeat == clock()


def test_fresh_heartbeat_stays_online(status_register, clock):
    clock.advance(minutes=4, seconds=59)
    assert status_register.mark_offline_if_stale(FIVE_MINUTES) is False
    assert status_register.snapshot().is_online is True


def test_exact_timeout_counts_as_stale(status_register, clock):
    clock.advance(minutes=5)
    assert status_register.mark_offline_if_stale(FIVE_MINUTES) is True


def test_offline_transition_reported_once(status_register, clock):
    clock.advance(minutes=10)
    assert status_register.mark_offline_if_stale(FIVE_MINUTES) is True
    assert status_register.mark_offline_if_stale(FIVE_MINUTES) is False


def test_set_mode_and_pump_are_independent(status_register):
    status_register.set_mode(WateringMode.MANUAL)
    status_register.set_pump(PumpState.ON)

    status = status_register.snapshot()
    assert status.current_mode is WateringMode.MANUAL
    assert status.pump_status is PumpState.ON


def test_snapshot_is_a_copy(status_register):
    snapshot = status_register.snapshot()
    snapshot.is_online = False
    snapshot.pump_status = PumpState.ON

    status = status_register.snapshot()
    assert status.is_online is True
    assert status.pump_status is PumpState.OFF


def test_listener_receives_each_change(clock):
    seen = []
    register = StatusRegister(clock=clock, on_change=seen.append)

    register.set_pump(PumpState.ON)
    register.set_mode(WateringMode.MANUAL)
    clock.advance(minutes=6)
    register.mark_offline_if_stale(FIVE_MINUTES)
    register.mark_offline_if_stale(FIVE_MINUTES)  # no transition, no event

    assert [s.pump_status for s in seen] == [PumpState.ON] * 3
    assert [s.current_mode for s in seen] == [WateringMode.AUTO, WateringMode.MANUAL, WateringMode.MANUAL]
    assert seen[-1].is_online is False


def test_listener_failure_does_not_undo_mutation(clock):
    def broken(_snapshot):
        raise RuntimeError("socket gone")

    register = StatusRegister(clock=clock, on_change=broken)
    register.set_pump(PumpState.ON)

    assert register.snapshot().pump_status is PumpState.ON


def test_concurrent_mutations_leave_consistent_snapshots(status_register):
    errors = []

    def writer(state: PumpState, mode: WateringMode):
        for _ in range(200):
            status_register.mark_heartbeat(state)
            status_register.set_mode(mode)

    def reader():
        for _ in range(400):
            snap = status_register.snapshot()
            if snap.pump_status not in (PumpState.ON, PumpState.OFF) or not snap.is_online:
                errors.append(snap)

    threads = [
        threading.Thread(target=writer, args=(PumpState.ON, WateringMode.AUTO)),
        threading.Thread(target=writer, args=(PumpState.OFF, WateringMode.MANUAL)),
        threading.Thread(target=reader),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []


def test_set_pump_if_mode_applies_while_mode_matches(status_register):
    assert status_register.set_pump_if_mode(PumpState.ON, WateringMode.AUTO) is True
    assert status_register.snapshot().pump_status is PumpState.ON


def test_set_pump_if_mode_refuses_after_mode_change(status_register):
    status_register.set_mode(WateringMode.MANUAL)
    before = status_register.snapshot()

    assert status_register.set_pump_if_mode(PumpState.ON, WateringMode.AUTO) is False
    assert status_register.snapshot() == before
