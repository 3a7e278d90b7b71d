"""Position sources: live GPS, recording and playback.

Sources are push-based. Subscribing the first callback starts a background
polling thread; removing the last one asks it to stop. With autostart=False
no thread is started and the caller drives poll() itself.
"""

import json
import subprocess
import threading
import time
from datetime import datetime
from typing import Callable, Optional

from .config import CONFIG
from .models import PositionFix


FixCallback = Callable[[PositionFix], None]


class PositionSource:
    """Base class: subclasses implement read_fix()"""

    def __init__(self, autostart: bool = True):
        self.autostart = autostart
        self.last_fix: Optional[PositionFix] = None
        self.consecutive_failures = 0
        self._subscribers: dict[int, FixCallback] = {}
        self._next_handle = 1
        self._lock = threading.Lock()
        self._read_lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None

    def subscribe(self, callback: FixCallback) -> int:
        """Register callback for every fix; returns a handle for unsubscribe()"""
        with self._lock:
            handle = self._next_handle
            self._next_handle += 1
            self._subscribers[handle] = callback
            if self.autostart and self._stop_event is None:
                self._stop_event = threading.Event()
                thread = threading.Thread(target=self._run, args=(self._stop_event,),
                                          name=type(self).__name__, daemon=True)
                thread.start()
        return handle

    def unsubscribe(self, handle: int):
        """Remove a subscription. Unknown handles are ignored."""
        with self._lock:
            self._subscribers.pop(handle, None)
            if not self._subscribers and self._stop_event is not None:
                # Not joined: the poller may be inside a callback waiting on our caller
                self._stop_event.set()
                self._stop_event = None

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def poll(self, stop_event: Optional[threading.Event] = None) -> Optional[PositionFix]:
        """Read one fix and deliver it to current subscribers.

        Reads are serialized, so a poller that is being retired never
        interleaves with its replacement. Once stop_event is set nothing more is
        read or delivered.
        """
        with self._read_lock:
            if stop_event is not None and stop_event.is_set():
                return None
            fix = self.read_fix()
        if fix is None:
            return None
        with self._lock:
            if stop_event is not None and stop_event.is_set():
                return None
            callbacks = list(self._subscribers.values())
        for callback in callbacks:
            callback(fix)
        return fix

    def _run(self, stop_event: threading.Event):
        while not stop_event.is_set():
            self.poll(stop_event)
            if self.is_finished():
                break
            stop_event.wait(self.get_poll_interval())

    def read_fix(self) -> Optional[PositionFix]:
        raise NotImplementedError

    def get_poll_interval(self) -> float:
        return CONFIG["gps_poll_interval"]

    def is_finished(self) -> bool:
        return False

    def get_status(self) -> str:
        if self.consecutive_failures == 0:
            acc = ""
            if self.last_fix and self.last_fix.accuracy is not None:
                acc = f", accuracy {self.last_fix.accuracy:.0f}m"
            return f"GPS OK{acc}"
        return f"GPS: {self.consecutive_failures} consecutive failures"

    def _record_fix(self, fix: Optional[PositionFix]) -> Optional[PositionFix]:
        if fix is None:
            self.consecutive_failures += 1
        else:
            self.last_fix = fix
            self.consecutive_failures = 0
        return fix


class TermuxGPS(PositionSource):
    """GPS access via Termux API"""

    def __init__(self, timeout: Optional[int] = None, autostart: bool = True):
        super().__init__(autostart)
        self.timeout = timeout or CONFIG["gps_fix_timeout"]

    def read_fix(self) -> Optional[PositionFix]:
        """Get current location using termux-location"""
        try:
            result = subprocess.run(
                ["termux-location", "-p", "gps", "-r", "once"],
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return self._record_fix(None)

        if result.returncode != 0 or not result.stdout or not result.stdout.strip():
            return self._record_fix(None)

        try:
            return self._record_fix(self.parse_location(result.stdout))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            return self._record_fix(None)

    @staticmethod
    def parse_location(output: str) -> PositionFix:
        """Parse termux-location JSON output"""
        data = json.loads(output)
        return PositionFix.from_dict({
            "lat": data["latitude"],
            "lon": data["longitude"],
            "accuracy": data.get("accuracy"),
            "heading": data.get("bearing"),
            "speed": data.get("speed"),
            "timestamp": time.time(),
        })


class GPSRecorder(PositionSource):
    """Records every read of another source, failed attempts included"""

    def __init__(self, source: PositionSource, record_path: str, autostart: bool = True):
        super().__init__(autostart)
        self.source = source
        self.record_path = record_path
        self.trace: list[dict] = []
        self.start_time = time.time()

    def read_fix(self) -> Optional[PositionFix]:
        fix = self.source.read_fix()
        self.trace.append({
            "elapsed": time.time() - self.start_time,
            "timestamp": time.time(),
            "location": fix.to_dict() if fix else None,
            "status": self.source.get_status(),
        })
        return self._record_fix(fix)

    def get_poll_interval(self) -> float:
        return self.source.get_poll_interval()

    def is_finished(self) -> bool:
        return self.source.is_finished()

    def get_status(self) -> str:
        return self.source.get_status()

    def save(self):
        """Save trace to file"""
        with open(self.record_path, "w") as f:
            json.dump({
                "recorded_at": datetime.now().isoformat(),
                "trace": self.trace
            }, f, indent=2)
        print(f"GPS trace saved to {self.record_path} ({len(self.trace)} entries)")


class GPSPlayback(PositionSource):
    """Plays back a recorded GPS trace"""

    def __init__(self, playback_path: str, speed: float = 1.0, autostart: bool = True):
        super().__init__(autostart)
        if speed <= 0:
            raise ValueError(f"playback speed must be positive, got {speed}")
        self.playback_path = playback_path
        self.speed = speed
        self.index = 0

        with open(playback_path) as f:
            data = json.load(f)
            self.trace: list[dict] = data["trace"]
        print(f"Loaded GPS trace from {playback_path} ({len(self.trace)} entries)")

    def read_fix(self) -> Optional[PositionFix]:
        """Return the next trace entry; None for recorded failures or when done"""
        if self.index >= len(self.trace):
            return None

        entry = self.trace[self.index]
        self.index += 1

        if not entry.get("location"):
            return self._record_fix(None)
        try:
            return self._record_fix(PositionFix.from_dict(entry["location"]))
        except (KeyError, TypeError, ValueError):
            return self._record_fix(None)

    def first_fix(self) -> Optional[PositionFix]:
        """First usable fix in the trace, without advancing playback"""
        for entry in self.trace:
            if entry.get("location"):
                try:
                    return PositionFix.from_dict(entry["location"])
                except (KeyError, TypeError, ValueError):
                    continue
        return None

    def get_poll_interval(self) -> float:
        """Interval to the next entry based on trace timing and speed"""
        if self.index <= 0 or self.index >= len(self.trace):
            return CONFIG["gps_poll_interval"] / self.speed

        prev_elapsed = self.trace[self.index - 1].get("elapsed", 0)
        curr_elapsed = self.trace[self.index].get("elapsed", 0)
        interval = (curr_elapsed - prev_elapsed) / self.speed
        return max(0.1, min(interval, 5.0))

    def is_finished(self) -> bool:
        return self.index >= len(self.trace)

    def get_status(self) -> str:
        progress = f"{self.index}/{len(self.trace)}"
        if self.consecutive_failures == 0:
            return f"Playback OK ({progress})"
        return f"Playback: {self.consecutive_failures} failures ({progress})"
