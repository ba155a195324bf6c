"""Race replay driver.

The driver owns the simulation state and advances it from wall-clock deltas
scaled by a speed multiplier. Snapshots are handed to a StatusSampler, which
throttles how often listeners hear about them.
"""

import logging
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta
from enum import Enum

from race_replay.course import MarkerTable
from race_replay.models import PaceParams, SimulationState, Snapshot, StatusSample, WeatherRecord
from race_replay.pace import adjusted_pace
from race_replay.weather import weather_at

logger = logging.getLogger(__name__)

DEFAULT_EMIT_INTERVAL = 0.25  # seconds of wall time between emissions
DEFAULT_FRAME_INTERVAL = 1 / 60  # seconds; one display refresh


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


class StatusSampler:
    """Forward snapshots to a listener at most once per interval of wall time."""

    def __init__(self, listener: Callable[[Snapshot], None], interval: float = DEFAULT_EMIT_INTERVAL):
        self.listener = listener
        self.interval = interval
        self._last_emit: float | None = None

    def notify(self, now: float, build: Callable[[], Snapshot], force: bool = False) -> bool:
        """Emit a snapshot if the interval has passed since the last one.

        The snapshot is only built when it is actually emitted.

        Returns:
            True if the listener was called.
        """
        if not force and self._last_emit is not None and now - self._last_emit < self.interval:
            return False
        self._last_emit = now
        self.listener(build())
        return True

    def reset(self) -> None:
        self._last_emit = None


class SimulationDriver:
    """State machine stepping a runner along the course.

    States: IDLE -> RUNNING <-> PAUSED, RUNNING -> FINISHED once the course
    length is reached. reset() returns to IDLE from any state.
    """

    def __init__(
        self,
        table: MarkerTable,
        weather: Sequence[WeatherRecord] | None = None,
        race_start: datetime | None = None,
        params: PaceParams | None = None,
        sampler: StatusSampler | None = None,
    ):
        self.table = table
        self.weather = list(weather or [])
        self.race_start = race_start
        self.params = params or PaceParams()
        self.sampler = sampler
        self.state = SimulationState()
        self.run_state = RunState.IDLE
        self.target_pace = ""
        self.position = table.position_at(0.0)
        self._start_clock: datetime | None = None
        self._last_frame: float | None = None
        self._wall_elapsed = 0.0

    def load_course(self, table: MarkerTable) -> None:
        """Replace the course and start over."""
        self.table = table
        self.reset()

    @property
    def course_length(self) -> float:
        return self.table.course_length

    @property
    def clock_time(self) -> datetime | None:
        if self._start_clock is None:
            return None
        return self._start_clock + timedelta(seconds=self.state.race_time_elapsed)

    def start(self, target_pace: str) -> bool:
        """Start or resume the replay at the given "MM:SS" target pace.

        Returns:
            False if the replay cannot start (no course, or already finished).
        """
        if not self.table:
            logger.warning("Cannot start simulation: no course loaded")
            return False
        if self.run_state == RunState.FINISHED:
            logger.warning("Cannot start simulation: race already finished, reset first")
            return False

        if self.state.total_distance == 0:
            self._start_clock = self.race_start or datetime.now()
        self.target_pace = target_pace
        self.run_state = RunState.RUNNING
        return True

    def pause(self) -> None:
        if self.run_state == RunState.RUNNING:
            self.run_state = RunState.PAUSED
            self._last_frame = None

    def reset(self) -> None:
        self.state = SimulationState()
        self.run_state = RunState.IDLE
        self.position = self.table.position_at(0.0)
        self._start_clock = None
        self._last_frame = None
        self._wall_elapsed = 0.0
        if self.sampler is not None:
            self.sampler.reset()

    def current_pace(self) -> float:
        return adjusted_pace(self.target_pace, self.state.total_distance, self.table, self.params)

    def tick(self, wall_delta: float, speed_multiplier: float = 1.0) -> SimulationState:
        """Advance the replay by a wall-clock delta in seconds.

        Does nothing unless running. Reaching the course length clamps the
        distance there and finishes the race.
        """
        if self.run_state != RunState.RUNNING:
            return self.state

        wall_delta = max(0.0, wall_delta)
        # Replay never runs backwards
        effective = max(0.0, wall_delta * speed_multiplier)
        self.state.race_time_elapsed += effective

        pace = self.current_pace()
        if pace > 0:
            self.state.total_distance += effective / pace
        else:
            # A zero pace covers any distance instantly
            self.state.total_distance = self.course_length

        finished = self.state.total_distance >= self.course_length
        if finished:
            self.state.total_distance = self.course_length
            self.run_state = RunState.FINISHED
            logger.info("Finished %.2f mi in %.0f s", self.course_length, self.state.race_time_elapsed)

        self.position = self.table.position_at(self.state.total_distance)
        self._wall_elapsed += wall_delta
        if self.sampler is not None:
            self.sampler.notify(self._wall_elapsed, self.snapshot, force=finished)
        return self.state

    def frame(self, timestamp: float, speed_multiplier: float = 1.0) -> SimulationState:
        """Advance from a frame timestamp in seconds.

        The first frame after start, pause or reset only records the
        timestamp so that time spent stopped is never replayed.
        """
        if self.run_state != RunState.RUNNING:
            return self.state
        delta = 0.0 if self._last_frame is None else timestamp - self._last_frame
        self._last_frame = timestamp
        return self.tick(delta, speed_multiplier)

    def status(self) -> StatusSample:
        distance = self.state.total_distance
        return StatusSample(
            clock_time=self.clock_time,
            elapsed_time=self.state.race_time_elapsed,
            distance=distance,
            pace_seconds_per_unit=self.current_pace() if self.target_pace else 0.0,
            incline_percent=self.table.incline_at(distance),
        )

    def snapshot(self) -> Snapshot:
        clock_time = self.clock_time
        weather = None
        if clock_time is not None:
            weather = weather_at(clock_time, self.weather)
        return Snapshot(
            position=self.position,
            status=self.status(),
            weather=weather,
            runner_direction=self.table.bearing_at(self.state.total_distance),
        )


class VirtualClock:
    """Monotonic clock that only moves when slept on, for replays without waiting."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += max(0.0, seconds)


def run_realtime(
    driver: SimulationDriver,
    speed_multiplier: float = 1.0,
    frame_interval: float = DEFAULT_FRAME_INTERVAL,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> SimulationState:
    """Drive frames on a fixed schedule until the driver stops running."""
    while driver.run_state == RunState.RUNNING:
        driver.frame(clock(), speed_multiplier)
        if driver.run_state == RunState.RUNNING:
            sleep(frame_interval)
    return driver.state
