"""Thread-safe work/break session clock driven by a one-second tick source."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from .constants import (
    ACTION_CONFIGURE,
    ACTION_PAUSE,
    ACTION_RESET,
    ACTION_START,
    AUTO_ADVANCE_DELAY_SECONDS,
    PHASE_BREAK,
    PHASE_IDLE,
    PHASE_WORK,
    REASON_ALREADY_RUNNING,
    REASON_AUTO_ADVANCE_CANCELLED,
    REASON_AUTO_ADVANCED,
    REASON_CONFIGURED,
    REASON_NOT_RUNNING,
    REASON_PAUSED,
    REASON_RESET,
    REASON_RESUMED,
    REASON_STARTED,
    TICK_INTERVAL_SECONDS,
)
from .contracts import ClockSettings, SessionEventPublisher, SettingsStore
from .scheduling import ScheduledCall, Scheduler

SessionPhase = Literal["idle", "work", "break"]
SessionAction = Literal["start", "pause", "reset", "configure"]


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable clock snapshot exposed to collaborators and the UI."""
    phase: SessionPhase
    remaining_seconds: int
    phase_length_seconds: int
    work_duration_seconds: int
    break_duration_seconds: int
    is_running: bool
    completed_count: int
    auto_advance: bool
    auto_advance_pending: bool = False

    @property
    def progress(self) -> float:
        if self.phase == PHASE_IDLE or self.phase_length_seconds <= 0:
            return 0.0
        return 1.0 - (self.remaining_seconds / self.phase_length_seconds)


@dataclass(frozen=True)
class SessionActionResult:
    """Result envelope returned after applying a clock operation."""
    action: SessionAction
    accepted: bool
    reason: str
    snapshot: SessionSnapshot


@dataclass(frozen=True)
class SessionTick:
    """Payload for a regular countdown tick."""
    snapshot: SessionSnapshot
    completed: Optional["PhaseCompleted"] = None


@dataclass(frozen=True)
class PhaseCompleted:
    """Emitted when a phase boundary is reached and the next phase is loaded."""
    previous_phase: SessionPhase
    next_phase: SessionPhase
    completed_count: int
    snapshot: SessionSnapshot


@dataclass(frozen=True)
class SessionStateChanged:
    """Emitted after an accepted start, pause, or reset."""
    action: SessionAction
    reason: str
    snapshot: SessionSnapshot


@dataclass(frozen=True)
class SettingsChanged:
    """Emitted after the configuration was replaced."""
    settings: ClockSettings
    snapshot: SessionSnapshot


SessionEvent = SessionTick | PhaseCompleted | SessionStateChanged | SettingsChanged


class SessionClock:
    """Work/break countdown owning at most one tick source at a time.

    Every mutation runs under one lock and events are published after the lock
    is released, so publishers may call back into the clock.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        settings: Optional[ClockSettings] = None,
        publishers: Sequence[SessionEventPublisher] = (),
        settings_store: Optional[SettingsStore] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._scheduler = scheduler
        self._settings = settings or ClockSettings()
        self._publishers: list[SessionEventPublisher] = list(publishers)
        self._settings_store = settings_store
        self._logger = logger or logging.getLogger("pomodoro")
        self._lock = threading.Lock()

        self._phase: SessionPhase = PHASE_IDLE
        self._remaining_seconds = self._settings.work_duration_seconds
        self._phase_length_seconds = self._settings.work_duration_seconds
        self._is_running = False
        self._completed_count = 0
        self._tick_source: Optional[ScheduledCall] = None
        self._pending_advance: Optional[ScheduledCall] = None

    @property
    def settings(self) -> ClockSettings:
        with self._lock:
            return self._settings

    def add_publisher(self, publisher: SessionEventPublisher) -> None:
        with self._lock:
            self._publishers.append(publisher)

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def start(self) -> SessionActionResult:
        with self._lock:
            self._cancel_pending_advance_locked()
            if self._is_running:
                return self._result_locked(ACTION_START, False, REASON_ALREADY_RUNNING)
            reason = REASON_STARTED if self._phase == PHASE_IDLE else REASON_RESUMED
            result = self._start_locked(reason)
        self._publish(SessionStateChanged(ACTION_START, result.reason, result.snapshot))
        return result

    def pause(self) -> SessionActionResult:
        with self._lock:
            advance_cancelled = self._cancel_pending_advance_locked()
            if not self._is_running:
                if not advance_cancelled:
                    return self._result_locked(ACTION_PAUSE, False, REASON_NOT_RUNNING)
                reason = REASON_AUTO_ADVANCE_CANCELLED
                self._logger.info("Pending auto-advance cancelled by pause")
            else:
                self._cancel_tick_source_locked()
                self._is_running = False
                reason = REASON_PAUSED
                self._logger.info(
                    "Session paused: phase=%s remaining=%ss",
                    self._phase,
                    self._remaining_seconds,
                )
            result = self._result_locked(ACTION_PAUSE, True, reason)
        self._publish(SessionStateChanged(ACTION_PAUSE, reason, result.snapshot))
        return result

    def reset(self) -> SessionActionResult:
        with self._lock:
            self._cancel_pending_advance_locked()
            self._cancel_tick_source_locked()
            self._is_running = False
            self._phase = PHASE_IDLE
            self._remaining_seconds = self._settings.work_duration_seconds
            self._phase_length_seconds = self._settings.work_duration_seconds
            self._logger.info("Session reset")
            result = self._result_locked(ACTION_RESET, True, REASON_RESET)
        self._publish(SessionStateChanged(ACTION_RESET, REASON_RESET, result.snapshot))
        return result

    def tick(self) -> Optional[SessionTick]:
        """Advance the countdown by one second; returns None while not running."""
        with self._lock:
            if not self._is_running or self._phase == PHASE_IDLE:
                return None

            if self._remaining_seconds > 0:
                self._remaining_seconds -= 1
            if self._remaining_seconds > 0:
                tick = SessionTick(snapshot=self._snapshot_locked())
            else:
                completed = self._complete_phase_locked()
                tick = SessionTick(snapshot=completed.snapshot, completed=completed)

        self._publish(tick.completed or tick)
        return tick

    def update_configuration(
        self,
        *,
        work_seconds: int,
        break_seconds: int,
        auto_advance: bool,
        sound_enabled: bool,
        bgm_enabled: Optional[bool] = None,
    ) -> SessionActionResult:
        """Replace the configuration.

        Durations must already be validated as positive integers. The active
        phase keeps its length, but its remaining time is clamped to the
        longer of the new durations. New lengths apply from the next phase,
        or immediately while idle.
        """
        with self._lock:
            self._settings = ClockSettings(
                work_duration_seconds=int(work_seconds),
                break_duration_seconds=int(break_seconds),
                auto_advance=bool(auto_advance),
                sound_enabled=bool(sound_enabled),
                bgm_enabled=(
                    self._settings.bgm_enabled if bgm_enabled is None else bool(bgm_enabled)
                ),
            )
            if self._phase == PHASE_IDLE:
                self._remaining_seconds = self._settings.work_duration_seconds
                self._phase_length_seconds = self._settings.work_duration_seconds
            else:
                self._remaining_seconds = min(
                    self._remaining_seconds,
                    max(
                        self._settings.work_duration_seconds,
                        self._settings.break_duration_seconds,
                    ),
                )
            if not self._settings.auto_advance:
                self._cancel_pending_advance_locked()
            settings = self._settings
            self._logger.info(
                "Configuration updated: work=%ss break=%ss auto_advance=%s sound=%s bgm=%s",
                settings.work_duration_seconds,
                settings.break_duration_seconds,
                settings.auto_advance,
                settings.sound_enabled,
                settings.bgm_enabled,
            )
            result = self._result_locked(ACTION_CONFIGURE, True, REASON_CONFIGURED)

        self._persist_settings(settings)
        self._publish(SettingsChanged(settings=settings, snapshot=result.snapshot))
        return result

    def _start_locked(self, reason: str) -> SessionActionResult:
        if self._phase == PHASE_IDLE:
            self._begin_phase_locked(PHASE_WORK)
        self._is_running = True
        self._schedule_tick_source_locked()
        self._logger.info(
            "Session %s: phase=%s remaining=%ss",
            reason,
            self._phase,
            self._remaining_seconds,
        )
        return self._result_locked(ACTION_START, True, reason)

    def _complete_phase_locked(self) -> PhaseCompleted:
        self._cancel_tick_source_locked()
        self._is_running = False

        previous_phase = self._phase
        if previous_phase == PHASE_WORK:
            self._completed_count += 1
            self._begin_phase_locked(PHASE_BREAK)
        else:
            self._begin_phase_locked(PHASE_WORK)

        if self._settings.auto_advance:
            self._pending_advance = self._scheduler.call_later(
                AUTO_ADVANCE_DELAY_SECONDS,
                self._auto_advance,
            )

        self._logger.info(
            "Phase completed: %s -> %s (completed=%d)",
            previous_phase,
            self._phase,
            self._completed_count,
        )
        return PhaseCompleted(
            previous_phase=previous_phase,
            next_phase=self._phase,
            completed_count=self._completed_count,
            snapshot=self._snapshot_locked(),
        )

    def _auto_advance(self) -> None:
        with self._lock:
            if self._pending_advance is None:
                return
            self._pending_advance = None
            if self._is_running:
                return
            result = self._start_locked(REASON_AUTO_ADVANCED)
        self._publish(SessionStateChanged(ACTION_START, result.reason, result.snapshot))

    def _begin_phase_locked(self, phase: SessionPhase) -> None:
        if phase == PHASE_WORK:
            length = self._settings.work_duration_seconds
        else:
            length = self._settings.break_duration_seconds
        self._phase = phase
        self._remaining_seconds = length
        self._phase_length_seconds = length

    def _schedule_tick_source_locked(self) -> None:
        self._cancel_tick_source_locked()
        self._tick_source = self._scheduler.call_every(TICK_INTERVAL_SECONDS, self.tick)

    def _cancel_tick_source_locked(self) -> None:
        if self._tick_source is not None:
            self._tick_source.cancel()
            self._tick_source = None

    def _cancel_pending_advance_locked(self) -> bool:
        if self._pending_advance is None:
            return False
        self._pending_advance.cancel()
        self._pending_advance = None
        return True

    def _persist_settings(self, settings: ClockSettings) -> None:
        if self._settings_store is None:
            return
        try:
            self._settings_store.save(settings)
        except Exception as error:
            self._logger.warning("Failed to persist settings: %s", error)

    def _publish(self, event: SessionEvent) -> None:
        with self._lock:
            publishers = tuple(self._publishers)
        for publisher in publishers:
            try:
                publisher.publish(event)
            except Exception as error:
                self._logger.error(
                    "Session event publisher %s failed: %s",
                    type(publisher).__name__,
                    error,
                    exc_info=True,
                )

    def _result_locked(
        self,
        action: SessionAction,
        accepted: bool,
        reason: str,
    ) -> SessionActionResult:
        return SessionActionResult(
            action=action,
            accepted=accepted,
            reason=reason,
            snapshot=self._snapshot_locked(),
        )

    def _snapshot_locked(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self._phase,
            remaining_seconds=self._remaining_seconds,
            phase_length_seconds=self._phase_length_seconds,
            work_duration_seconds=self._settings.work_duration_seconds,
            break_duration_seconds=self._settings.break_duration_seconds,
            is_running=self._is_running,
            completed_count=self._completed_count,
            auto_advance=self._settings.auto_advance,
            auto_advance_pending=self._pending_advance is not None,
        )
