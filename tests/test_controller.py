from __future__ import annotations

import math

import pytest

from conftest import FakeResource
from xaudio.backend.player.controller import PlaybackController
from xaudio.backend.player.machine import (
    ChangeTrack,
    ChangeVolume,
    Ended,
    NextTrack,
    Pause,
    Play,
    PlaybackStatus,
    PrevTrack,
    ResourceFailed,
    ResourceReady,
    Retry,
    Seek,
)

S = PlaybackStatus


def _drive_to(controller: PlaybackController, resource: FakeResource, status: PlaybackStatus) -> None:
    if status is S.LOADING:
        return
    if status is S.FAILURE:
        controller.send(ResourceFailed(reason="boom"))
        return
    controller.send(ResourceReady(handle=resource))
    if status in (S.PLAYING, S.ENDED):
        controller.send(Play())
    if status is S.ENDED:
        controller.send(Ended())
    assert controller.status is status


# ---------------------------------------------------------------------------
# Concrete scenarios
# ---------------------------------------------------------------------------


def test_ready_attaches_handle(controller, resource) -> None:
    assert controller.status is S.LOADING
    snapshot = controller.send(ResourceReady(handle=resource))
    assert snapshot.status is S.PAUSED
    assert controller.context.resource_handle is resource
    assert resource.calls == []


def test_play_from_paused_invokes_play_once(ready, resource) -> None:
    ready.send(Play())
    assert ready.status is S.PLAYING
    assert resource.count("play") == 1


def test_failure_auto_retries_after_delay(ready, resource, clock) -> None:
    ready.send(Play())
    ready.send(ResourceFailed())
    assert ready.status is S.FAILURE
    assert ready.retry_pending

    clock.advance(2.9)
    assert ready.status is S.FAILURE
    assert resource.count("load") == 0

    clock.advance(0.1)
    assert ready.status is S.LOADING
    assert resource.count("load") == 1
    assert ready.context.resource_handle is resource
    assert not ready.retry_pending


def test_next_track_while_playing_restarts_playback(ready, resource) -> None:
    ready.send(Play())
    ready.send(ChangeTrack(track_id=2))
    resource.calls.clear()

    ready.send(NextTrack())
    assert ready.status is S.PLAYING
    assert ready.context.current_track.id == 3
    assert resource.names() == ["set_source", "play"]
    assert resource.calls[0] == ("set_source", "/music/track-3.mp3", False)


def test_change_to_unknown_track_keeps_everything(ready, resource) -> None:
    ready.send(Play())
    before = ready.context
    resource.calls.clear()

    ready.send(ChangeTrack(track_id=99))
    assert ready.status is S.PLAYING
    assert ready.context.current_track == before.current_track
    assert "set_source" not in resource.names()


def test_change_track_during_failure_cancels_pending_retry(ready, resource, clock) -> None:
    ready.send(ResourceFailed())
    ready.send(ChangeTrack(track_id=1))
    assert ready.status is S.LOADING
    assert ready.context.current_track.id == 1
    assert not ready.retry_pending

    clock.advance(10)
    assert ready.status is S.LOADING
    assert resource.count("load") == 0
    assert resource.calls[-1] == ("set_source", "/music/track-1.mp3", False)

    ready.send(ResourceReady(handle=resource))
    assert ready.status is S.PAUSED


@pytest.mark.parametrize(
    ("setup", "event", "expected_id"),
    [
        ((), PrevTrack(), 0),
        ((ChangeTrack(track_id=4),), NextTrack(), 4),
        ((), ChangeTrack(track_id=99), 0),
    ],
    ids=["prev-at-first", "next-at-last", "unknown-id"],
)
def test_unchanged_track_navigation_out_of_failure_reloads(ready, resource, clock, setup, event, expected_id) -> None:  # noqa: ANN001
    for pre in setup:
        ready.send(pre)
    ready.send(ResourceFailed())
    resource.calls.clear()

    ready.send(event)
    assert ready.status is S.LOADING
    assert ready.context.current_track.id == expected_id
    assert not ready.retry_pending
    track = ready.context.current_track
    assert resource.calls == [("set_source", track.url, track.is_radio)]

    clock.advance(60)
    assert ready.status is S.LOADING
    ready.send(ResourceReady(handle=resource))
    assert ready.status is S.PAUSED


def test_failed_reload_out_of_failure_rearms_retry(ready, resource) -> None:
    ready.send(ResourceFailed())

    def broken_source(url, *, is_stream=False):  # noqa: ANN001, ANN202
        raise RuntimeError("device gone")

    resource.set_source = broken_source
    ready.send(PrevTrack())
    assert ready.status is S.FAILURE
    assert ready.retry_pending


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


def test_nothing_touches_an_absent_handle(controller) -> None:
    for event in (
        Play(),
        Pause(),
        Seek(time=3),
        ChangeVolume(volume=0.5),
        NextTrack(),
        ResourceFailed(),
        Retry(handle=None),
        Play(),
        ChangeTrack(track_id=2),
    ):
        controller.send(event)
    assert controller.context.resource_handle is None
    assert controller.status is S.LOADING


def test_ready_without_handle_keeps_effects_silent(controller) -> None:
    controller.send(ResourceReady(handle=None))
    controller.send(Play())
    controller.send(ChangeVolume(volume=0.3))
    assert controller.status is S.PLAYING
    assert controller.context.volume == 0.3


@pytest.mark.parametrize("status", [S.LOADING, S.PAUSED, S.PLAYING, S.ENDED])
def test_failure_reachable_from_every_active_state(controller, resource, clock, status) -> None:
    _drive_to(controller, resource, status)
    controller.send(ResourceFailed(reason="gone"))
    assert controller.status is S.FAILURE
    assert controller.retry_pending
    assert len(clock.live) == 1


def test_failure_does_not_rearm_timer(ready, clock) -> None:
    ready.send(ResourceFailed())
    ready.send(ResourceFailed())
    assert len(clock.live) == 1


@pytest.mark.parametrize(
    "leave",
    [NextTrack(), PrevTrack(), ChangeTrack(track_id=3), Retry(handle=None)],
)
def test_leaving_failure_cancels_retry(ready, resource, clock, leave) -> None:
    ready.send(ResourceFailed())
    ready.send(leave)
    assert ready.status is S.LOADING
    assert not ready.retry_pending
    loads = resource.count("load")

    clock.advance(60)
    assert ready.status is S.LOADING
    assert resource.count("load") == loads
    assert clock.live == []


def test_manual_retry_uses_the_supplied_handle(ready, resource) -> None:
    replacement = FakeResource()
    ready.send(ResourceFailed())
    ready.send(Retry(handle=replacement))
    assert ready.context.resource_handle is replacement
    assert replacement.count("load") == 1
    assert resource.count("load") == 0


def test_navigation_clamps(ready) -> None:
    ready.send(PrevTrack())
    assert ready.context.current_track.id == 0
    ready.send(ChangeTrack(track_id=4))
    ready.send(NextTrack())
    assert ready.context.current_track.id == 4


@pytest.mark.parametrize("start", [0, 1, 2, 3])
def test_next_then_previous_returns_home(ready, start) -> None:
    ready.send(ChangeTrack(track_id=start))
    ready.send(NextTrack())
    ready.send(PrevTrack())
    assert ready.context.current_track.id == start


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
@pytest.mark.parametrize("status", [S.PAUSED, S.PLAYING, S.ENDED])
def test_non_finite_seek_is_dropped(controller, resource, status, bad) -> None:
    _drive_to(controller, resource, status)
    before = controller.snapshot()
    resource.calls.clear()

    controller.send(Seek(time=bad))
    assert "set_current_time" not in resource.names()
    assert controller.snapshot() == before


def test_valid_seek_is_applied(ready, resource) -> None:
    ready.send(Seek(time=42.5))
    assert resource.calls[-1] == ("set_current_time", 42.5)
    assert ready.status is S.PAUSED


@pytest.mark.parametrize("status", [S.PAUSED, S.PLAYING, S.ENDED])
def test_volume_is_echoed(controller, resource, status) -> None:
    _drive_to(controller, resource, status)
    controller.send(ChangeVolume(volume=0.42))
    assert controller.context.volume == 0.42
    assert resource.calls[-1] == ("set_volume", 0.42)
    assert controller.status is status


def test_volume_is_not_clamped_by_controller(ready, resource) -> None:
    ready.send(ChangeVolume(volume=1.5))
    assert ready.context.volume == 1.5
    assert resource.calls[-1] == ("set_volume", 1.5)


# ---------------------------------------------------------------------------
# Remaining transitions
# ---------------------------------------------------------------------------


def test_pause_and_end(ready, resource) -> None:
    ready.send(Play())
    ready.send(Pause())
    assert ready.status is S.PAUSED
    assert resource.count("pause") == 1

    ready.send(Play())
    ready.send(Ended())
    assert ready.status is S.ENDED


def test_navigation_from_ended_starts_playing(ready, resource) -> None:
    ready.send(Play())
    ready.send(Ended())
    resource.calls.clear()

    ready.send(NextTrack())
    assert ready.status is S.PLAYING
    assert resource.names() == ["set_source", "play"]


def test_navigation_at_boundary_from_ended_replays_same_track(ready, resource) -> None:
    ready.send(ChangeTrack(track_id=4))
    ready.send(Play())
    ready.send(Ended())
    resource.calls.clear()

    ready.send(NextTrack())
    assert ready.status is S.PLAYING
    assert ready.context.current_track.id == 4
    assert resource.names() == ["play"]


def test_seek_in_ended_stays_ended(ready, resource) -> None:
    ready.send(Play())
    ready.send(Ended())
    ready.send(Seek(time=5))
    assert ready.status is S.ENDED
    assert resource.calls[-1] == ("set_current_time", 5)


def test_navigation_while_paused_switches_source_only(ready, resource) -> None:
    ready.send(NextTrack())
    assert ready.status is S.PAUSED
    assert resource.names() == ["set_source"]


def test_radio_track_marked_as_stream(ready, resource) -> None:
    ready.send(ChangeTrack(track_id=4))
    assert resource.calls[-1] == ("set_source", "https://stream.example/live", True)


def test_unaccepted_events_are_ignored(controller, resource) -> None:
    controller.send(Play())
    controller.send(Ended())
    assert controller.status is S.LOADING
    controller.send(ResourceReady(handle=resource))
    controller.send(Pause())
    assert controller.status is S.PAUSED
    assert resource.calls == []


# ---------------------------------------------------------------------------
# Play rejection, mailbox and lifecycle
# ---------------------------------------------------------------------------


def test_rejected_play_moves_to_failure(controller) -> None:
    blocked = FakeResource(reject_play=True)
    controller.send(ResourceReady(handle=blocked))
    snapshot = controller.send(Play())
    assert snapshot.status is S.FAILURE
    assert controller.retry_pending


def test_events_sent_from_listener_run_after_current_transition(ready) -> None:
    seen = []

    def listener(snapshot) -> None:  # noqa: ANN001
        seen.append(snapshot.status)
        if snapshot.status is S.PLAYING and len(seen) == 1:
            ready.send(Pause())

    ready.subscribe(listener)
    ready.send(Play())
    assert seen == [S.PLAYING, S.PAUSED]
    assert ready.status is S.PAUSED


def test_listener_errors_do_not_break_dispatch(ready) -> None:
    def broken(_snapshot) -> None:  # noqa: ANN001
        raise RuntimeError("listener bug")

    ready.subscribe(broken)
    ready.send(Play())
    assert ready.status is S.PLAYING


def test_unsubscribe(ready) -> None:
    seen = []
    unsubscribe = ready.subscribe(seen.append)
    ready.send(Play())
    unsubscribe()
    unsubscribe()
    ready.send(Pause())
    assert len(seen) == 1


def test_ignored_events_do_not_notify(controller) -> None:
    seen = []
    controller.subscribe(seen.append)
    controller.send(Play())
    assert seen == []


def test_dispose_cancels_retry_and_ignores_events(catalog, runner, clock, resource) -> None:
    ctrl = PlaybackController(catalog, task_runner=runner, retry_delay_sec=3.0)
    ctrl.send(ResourceReady(handle=resource))
    ctrl.send(ResourceFailed())
    assert ctrl.retry_pending

    ctrl.dispose()
    assert ctrl.disposed
    assert not ctrl.retry_pending
    clock.advance(10)
    assert ctrl.status is S.FAILURE
    assert resource.count("load") == 0

    ctrl.send(Retry(handle=resource))
    assert ctrl.status is S.FAILURE
    ctrl.dispose()


def test_dispose_closes_owned_runner(catalog) -> None:
    with PlaybackController(catalog) as ctrl:
        runner = ctrl._task_runner
    assert runner.closed
    assert ctrl.disposed


def test_dispose_leaves_shared_runner_open(catalog, runner) -> None:
    ctrl = PlaybackController(catalog, task_runner=runner)
    ctrl.dispose()
    assert not runner.closed


def test_retry_uses_handle_provider(catalog, runner, clock, resource) -> None:
    fresh = FakeResource()
    ctrl = PlaybackController(catalog, task_runner=runner, retry_delay_sec=1.0, handle_provider=lambda: fresh)
    ctrl.send(ResourceReady(handle=resource))
    ctrl.send(ResourceFailed())
    clock.advance(1.0)
    assert ctrl.context.resource_handle is fresh
    assert fresh.count("load") == 1
    ctrl.dispose()


def test_initial_volume_and_snapshot_flags(catalog, runner) -> None:
    ctrl = PlaybackController(catalog, task_runner=runner, initial_volume=0.25)
    snapshot = ctrl.snapshot()
    assert snapshot.volume == 0.25
    assert snapshot.current_track == catalog.first
    assert snapshot.is_loading
    assert not (snapshot.is_playing or snapshot.is_paused or snapshot.is_ended or snapshot.is_error)
    assert ctrl.matches(S.LOADING)
    ctrl.dispose()
