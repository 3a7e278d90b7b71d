"""Turn-by-turn navigation session state machine."""

import math
from enum import Enum
from typing import Callable, Optional

from .config import CONFIG
from .events import (
    ArrivedAtDestination,
    ArrivedAtStep,
    GuidanceEvent,
    ProgressUpdate,
    SessionStarted,
    SessionStopped,
)
from .geo import haversine_distance
from .models import PositionFix, Route, Step


class InvalidRoute(ValueError):
    """Route has no steps to navigate"""


class SessionState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    ARRIVED = "arrived"


class NavigationSession:
    """Tracks progress through one route and emits guidance events.

    Fed by an owning controller which must serialize start/on_fix/stop and
    keep the position subscription; the session only ever looks at the fix
    it is handed.

        session = NavigationSession(emit=sink.handle)
        session.start(route)
        # for every fix from the position source:
        session.on_fix(fix)

    Every call emits at most one event, synchronously, before returning.
    """

    def __init__(self, emit: Callable[[GuidanceEvent], None],
                 arrival_threshold: Optional[float] = None):
        if arrival_threshold is None:
            arrival_threshold = CONFIG["arrival_threshold"]
        if arrival_threshold <= 0:
            raise ValueError(f"arrival_threshold must be positive, got {arrival_threshold}")
        self.arrival_threshold = arrival_threshold
        self._emit = emit

        self._steps: tuple[Step, ...] = ()
        self._step_index = 0
        self._active = False
        self._last_fix: Optional[PositionFix] = None

    @property
    def state(self) -> SessionState:
        if self._active:
            return SessionState.ACTIVE
        if self._steps and self._step_index >= len(self._steps):
            return SessionState.ARRIVED
        return SessionState.IDLE

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def current_step_index(self) -> int:
        return self._step_index

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._steps

    @property
    def current_step(self) -> Optional[Step]:
        if self._step_index < len(self._steps):
            return self._steps[self._step_index]
        return None

    @property
    def last_fix(self) -> Optional[PositionFix]:
        return self._last_fix

    def start(self, route: Route):
        """Begin guidance along route, replacing any trip in progress"""
        if not isinstance(route, Route):
            raise InvalidRoute(f"expected a Route, got {type(route).__name__}")
        steps = route.steps
        if not steps:
            raise InvalidRoute("route has no steps")

        self._steps = steps
        self._step_index = 0
        self._last_fix = None
        self._active = True
        self._emit(SessionStarted(first_instruction=steps[0].instruction,
                                  step_count=len(steps)))

    def on_fix(self, fix: PositionFix):
        """Consume one position fix. Ignored unless the session is active."""
        if not self._active:
            return
        if self._step_index >= len(self._steps):
            return

        target = self._steps[self._step_index].end_location
        distance = haversine_distance(fix.lat, fix.lon, target.lat, target.lon)
        if math.isfinite(distance):
            self._last_fix = fix
        # Corrupt fixes come back as inf and are reported as progress
        if not distance <= self.arrival_threshold:
            self._emit(ProgressUpdate(distance_remaining=distance,
                                      step_index=self._step_index))
            return

        self._step_index += 1
        if self._step_index == len(self._steps):
            self._active = False
            self._emit(ArrivedAtDestination())
        else:
            self._emit(ArrivedAtStep(instruction=self._steps[self._step_index].instruction,
                                     step_index=self._step_index))

    def stop(self):
        """End the trip. No-op unless active."""
        if not self._active:
            return
        self._clear()
        self._emit(SessionStopped())

    def reset(self):
        """Return to Idle from any state (stops an active trip first)"""
        if self._active:
            self.stop()
        else:
            self._clear()

    def _clear(self):
        self._active = False
        self._steps = ()
        self._step_index = 0
        self._last_fix = None
