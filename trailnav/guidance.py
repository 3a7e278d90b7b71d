"""Guidance sinks: turn session events into speech, console lines and logs.

The session emits a ProgressUpdate for every fix; throttling those is the
sink's job.
"""

import math
import time
from typing import Callable, Optional

from .audio import Audio
from .config import CONFIG
from .events import (
    ArrivedAtDestination,
    ArrivedAtStep,
    GuidanceEvent,
    ProgressUpdate,
    SessionStarted,
    SessionStopped,
)
from .geo import format_distance
from .logger import Logger


class GuidanceSink:
    """Consumer of session events"""

    def handle(self, event: GuidanceEvent):
        raise NotImplementedError

    def warn(self, message: str):
        """Out-of-band warning from the controller (e.g. lost GPS)"""


class VoiceGuidance(GuidanceSink):
    """Speaks instructions; progress prompts are rate and distance gated"""

    def __init__(self, audio: Audio, clock: Callable[[], float] = time.monotonic,
                 announce_interval: Optional[float] = None,
                 announce_delta: Optional[float] = None,
                 approach_distance: Optional[float] = None,
                 logger: Optional[Logger] = None):
        self.audio = audio
        self.clock = clock
        self.announce_interval = (announce_interval if announce_interval is not None
                                  else CONFIG["progress_announce_interval"])
        self.announce_delta = (announce_delta if announce_delta is not None
                               else CONFIG["progress_announce_delta"])
        self.approach_distance = (approach_distance if approach_distance is not None
                                  else CONFIG["approach_warning_distance"])
        self.logger = logger

        self.instruction: Optional[str] = None
        self.step_index = 0
        self._last_announce_time: Optional[float] = None
        self._last_announce_distance: Optional[float] = None
        self._approach_warned = False

    def handle(self, event: GuidanceEvent):
        if isinstance(event, SessionStarted):
            self._new_step(event.first_instruction, 0)
            self._say(f"Starting navigation. {event.first_instruction}")
        elif isinstance(event, ArrivedAtStep):
            self._new_step(event.instruction, event.step_index)
            self._say(event.instruction)
        elif isinstance(event, ProgressUpdate):
            self._on_progress(event)
        elif isinstance(event, ArrivedAtDestination):
            self.instruction = None
            self._say("You have arrived at your destination")
        elif isinstance(event, SessionStopped):
            self.instruction = None
            self._say("Navigation stopped")

    def warn(self, message: str):
        self._say(message)

    def _new_step(self, instruction: str, step_index: int):
        self.instruction = instruction
        self.step_index = step_index
        self._approach_warned = False
        # The instruction was just spoken; count that as the last announcement
        self._last_announce_time = self.clock()
        self._last_announce_distance = None

    def _on_progress(self, event: ProgressUpdate):
        distance = event.distance_remaining
        if not math.isfinite(distance):
            return
        if not self._approach_warned and distance <= self.approach_distance:
            self._approach_warned = True
            self._announce(distance)
            return
        if not self._progress_due(distance):
            return
        self._announce(distance)

    def _progress_due(self, distance: float) -> bool:
        now = self.clock()
        if (self._last_announce_time is not None
                and now - self._last_announce_time < self.announce_interval):
            return False
        if (self._last_announce_distance is not None
                and abs(self._last_announce_distance - distance) < self.announce_delta):
            return False
        return True

    def _announce(self, distance: float):
        self._last_announce_time = self.clock()
        self._last_announce_distance = distance
        if self.instruction:
            self._say(f"In {format_distance(distance)}, {self.instruction}")
        else:
            self._say(format_distance(distance))

    def _say(self, text: str):
        self.audio.speak(text)
        if self.logger:
            self.logger.log(f"AUDIO: {text}")


class ConsoleGuidance(GuidanceSink):
    """One status line per event; progress lines only after real movement"""

    def __init__(self, progress_delta: Optional[float] = None, out: Callable[[str], None] = print):
        self.progress_delta = (progress_delta if progress_delta is not None
                               else CONFIG["console_progress_delta"])
        self.out = out
        self.step_count = 0
        self._last_distance: Optional[float] = None

    def handle(self, event: GuidanceEvent):
        if isinstance(event, SessionStarted):
            self.step_count = event.step_count
            self._last_distance = None
            self.out(f"Route ready - {event.step_count} steps")
            self.out(f"[1/{event.step_count}] {event.first_instruction}")
        elif isinstance(event, ArrivedAtStep):
            self._last_distance = None
            self.out(f"[{event.step_index + 1}/{self.step_count}] {event.instruction}")
        elif isinstance(event, ProgressUpdate):
            distance = event.distance_remaining
            if not math.isfinite(distance):
                return
            if (self._last_distance is None
                    or abs(self._last_distance - distance) >= self.progress_delta):
                self._last_distance = distance
                self.out(f"  {distance:.0f}m to next maneuver")
        elif isinstance(event, ArrivedAtDestination):
            self.out("Arrived at destination!")
        elif isinstance(event, SessionStopped):
            self.out("Navigation stopped")

    def warn(self, message: str):
        self.out(f"WARNING: {message}")


class LogGuidance(GuidanceSink):
    """Writes every event to the log, unthrottled"""

    def __init__(self, logger: Logger):
        self.logger = logger

    def handle(self, event: GuidanceEvent):
        self.logger.log(type(event).__name__, event.to_dict() or None)

    def warn(self, message: str):
        self.logger.log("Warning", {"message": message})
