"""Main TrailNav application: owns the session and its position subscription."""

import threading
import time
from typing import Optional, Sequence

from .config import CONFIG
from .directions import DirectionsError, DirectionsProvider, NetworkTimeout
from .events import GuidanceEvent
from .geo import bearing_between, bearing_to_compass, haversine_distance, retry_with_backoff
from .gps import GPSRecorder, PositionSource
from .guidance import GuidanceSink
from .logger import Logger
from .models import Coordinate, PositionFix, Route
from .session import NavigationSession, SessionState


def format_route_preview(route: Route) -> str:
    """Turn-by-turn listing of a route with cumulative distances"""
    steps = route.steps
    lines = ["=" * 60, "ROUTE PREVIEW", "=" * 60]
    if route.summary:
        lines.append(f"Via: {route.summary}")
    lines.append(f"Total distance: {route.distance:.0f}m ({route.distance/1000:.2f}km)")
    lines.append(f"Legs: {len(route.legs)}, steps: {len(steps)}")
    lines.append("")
    lines.append("-" * 60)
    lines.append("TURN-BY-TURN DIRECTIONS")
    lines.append("-" * 60)

    cumulative = 0.0
    for leg_number, leg in enumerate(route.legs, start=1):
        if len(route.legs) > 1:
            lines.append(f"\nLeg {leg_number}: {leg.start_address or '?'} -> {leg.end_address or '?'}")
        for step in leg.steps:
            lines.append(f"{cumulative:>7.0f}m | {step.instruction}")
            cumulative += step.distance or 0
    lines.append(f"{cumulative:>7.0f}m | Arrive at destination")
    lines.append("=" * 60)
    return "\n".join(lines)


class Navigator:
    """Wires directions, position source, session and guidance sinks.

    All session calls go through one lock: fixes arrive on the source's
    polling thread while stop() usually comes from the main thread. Events
    are queued under that lock and handed to the sinks after it is released,
    so slow speech never holds up a state change.
    """

    def __init__(self, directions: Optional[DirectionsProvider],
                 source: PositionSource,
                 sinks: Sequence[GuidanceSink] = (),
                 logger: Optional[Logger] = None,
                 arrival_threshold: Optional[float] = None,
                 stale_timeout: Optional[float] = None,
                 clock=time.monotonic):
        self.directions = directions
        self.source = source
        self.sinks = list(sinks)
        self.logger = logger or Logger()
        self.stale_timeout = (stale_timeout if stale_timeout is not None
                              else CONFIG["fix_stale_timeout"])
        self.clock = clock

        self.session = NavigationSession(self._dispatch, arrival_threshold)
        self.route: Optional[Route] = None
        self.last_error: Optional[DirectionsError] = None

        self._lock = threading.RLock()
        self._handle: Optional[int] = None
        self._generation = 0
        self._pending: list = []
        self._delivery_lock = threading.RLock()
        self._last_fix_time: Optional[float] = None
        self._stale_warned = False
        self._last_log_update = 0.0
        self._events_seen = 0

    # Directions

    def plan(self, origin: Coordinate, destination: Coordinate,
             mode: Optional[str] = None) -> Optional[Route]:
        """Fetch a route, retrying only network timeouts. None on failure."""
        mode = mode or CONFIG["default_travel_mode"]
        self.last_error = None
        self.logger.log("Fetching directions", {
            "origin": origin.to_dict(), "destination": destination.to_dict(), "mode": mode
        })

        def try_fetch():
            try:
                return self.directions.fetch(origin, destination, mode)
            except NetworkTimeout as e:
                self.last_error = e
                self.logger.log("Directions attempt timed out", {"error": str(e)})
                return None

        try:
            route = retry_with_backoff(
                try_fetch,
                max_time=CONFIG["directions_retry_time"],
                initial_delay=2.0,
                max_delay=8.0,
                description="directions fetch"
            )
        except DirectionsError as e:
            self.last_error = e
            self.logger.log("Directions failed", {"kind": type(e).__name__, "error": str(e)})
            return None

        if route is None:
            self.logger.log("Directions failed after retries", {"error": str(self.last_error)})
            return None

        self.last_error = None
        self.logger.log("Route fetched", {
            "legs": len(route.legs), "steps": len(route.steps), "distance": route.distance
        })
        return route

    # Session control

    def begin(self, route: Route):
        """Start (or restart) guidance along route and listen for fixes.

        Raises InvalidRoute without touching the running trip.
        """
        with self._lock:
            self.session.start(route)
            self.route = route
            self._last_fix_time = self.clock()
            self._stale_warned = False
            if self._handle is None:
                self._generation += 1
                generation = self._generation
                self._handle = self.source.subscribe(
                    lambda fix: self._on_fix(fix, generation))
        self._deliver()
        self.logger.log("Navigation started", {"steps": len(route.steps)})

    def stop(self):
        """Unsubscribe from the source, then stop the session. Idempotent."""
        with self._lock:
            self._unsubscribe()
            self.session.stop()
        self._deliver()

    def _on_fix(self, fix: PositionFix, generation: int):
        with self._lock:
            if self._handle is None or generation != self._generation:
                # Straggler from a torn-down subscription
                return
            self._last_fix_time = self.clock()
            self._stale_warned = False
            self.session.on_fix(fix)
            if self.session.state is SessionState.ARRIVED:
                self._unsubscribe()
        self._deliver()

    def _unsubscribe(self):
        if self._handle is not None:
            self.source.unsubscribe(self._handle)
            self._handle = None

    def _dispatch(self, event: GuidanceEvent):
        self._events_seen += 1
        self._pending.append(("handle", event))

    def _deliver(self):
        """Hand queued events to the sinks in order, outside the session lock"""
        with self._delivery_lock:
            with self._lock:
                pending, self._pending = self._pending, []
            for method, arg in pending:
                for sink in self.sinks:
                    getattr(sink, method)(arg)

    # Liveness and status

    def check_stale(self, now: Optional[float] = None) -> bool:
        """Warn once when no fix has arrived for stale_timeout seconds"""
        with self._lock:
            if not self.session.is_active or self._last_fix_time is None:
                return False
            now = self.clock() if now is None else now
            silent_for = now - self._last_fix_time
            if silent_for < self.stale_timeout:
                return False
            if not self._stale_warned:
                self._stale_warned = True
                self.logger.log("No GPS fix", {"seconds": round(silent_for, 1),
                                               "gps_status": self.source.get_status()})
                self._pending.append(("warn", "GPS signal lost"))
        self._deliver()
        return True

    def get_state(self) -> dict:
        """Current state as dict for logging"""
        with self._lock:
            state = {
                "state": self.session.state.value,
                "step_index": self.session.current_step_index,
                "step_count": len(self.session.steps),
                "gps_status": self.source.get_status(),
            }
            fix = self.session.last_fix
            step = self.session.current_step
        if fix:
            state["location"] = {"lat": fix.lat, "lon": fix.lon, "accuracy": fix.accuracy}
            if step:
                target = step.end_location
                state["distance_to_step"] = round(
                    haversine_distance(fix.lat, fix.lon, target.lat, target.lon), 1)
                state["heading_to_step"] = bearing_to_compass(
                    bearing_between(fix.lat, fix.lon, target.lat, target.lon))
        return state

    def periodic_update(self):
        """Log a STATE line every log_interval seconds"""
        now = self.clock()
        if now - self._last_log_update >= CONFIG["log_interval"]:
            self.logger.log("STATE", self.get_state())
            self._last_log_update = now

    # Blocking runs

    def run(self, origin: Coordinate, destination: Coordinate,
            mode: Optional[str] = None) -> bool:
        """Fetch a route and navigate it. True if the destination was reached."""
        route = self.plan(origin, destination, mode)
        if route is None:
            print(f"Could not get directions: {self.last_error}")
            for sink in self.sinks:
                sink.warn("Could not get directions")
            return False
        return self.run_route(route)

    def run_route(self, route: Route, tick: float = 0.5) -> bool:
        """Navigate an already fetched route until arrival, end of playback or Ctrl+C"""
        print("\n=== TrailNav ===")
        if self.source.is_finished():
            print("GPS trace is empty")
            return False
        print("Press Ctrl+C to stop\n")

        self.begin(route)
        try:
            while self.session.is_active:
                self.periodic_update()
                self.check_stale()
                if self.source.is_finished():
                    # Let the final delivered fix land before giving up
                    time.sleep(tick)
                    if self.session.is_active:
                        self.logger.log("Playback finished before arrival")
                    break
                time.sleep(tick)
        except KeyboardInterrupt:
            print("\nStopping...")
        finally:
            arrived = self.session.state is SessionState.ARRIVED
            self.stop()
            self.logger.log("Navigation ended", {"arrived": arrived, "events": self._events_seen})
            if isinstance(self.source, GPSRecorder):
                self.source.save()
        return arrived
