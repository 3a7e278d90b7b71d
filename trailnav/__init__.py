"""TrailNav - Turn-by-turn navigation guide."""

from .config import CONFIG
from .models import Coordinate, PositionFix, Step, Leg, Route
from .events import (
    SessionStarted,
    ProgressUpdate,
    ArrivedAtStep,
    ArrivedAtDestination,
    SessionStopped,
    GuidanceEvent,
)
from .logger import Logger
from .geo import (
    haversine_distance,
    bearing_between,
    bearing_to_compass,
    format_distance,
    retry_with_backoff,
)
from .session import NavigationSession, SessionState, InvalidRoute
from .directions import (
    DirectionsProvider,
    DirectionsError,
    NetworkTimeout,
    NoRouteFound,
    InvalidRequest,
    ProviderError,
)
from .gps import PositionSource, TermuxGPS, GPSRecorder, GPSPlayback
from .audio import Audio
from .guidance import GuidanceSink, VoiceGuidance, ConsoleGuidance, LogGuidance
from .app import Navigator, format_route_preview

__all__ = [
    "CONFIG",
    "Coordinate",
    "PositionFix",
    "Step",
    "Leg",
    "Route",
    "SessionStarted",
    "ProgressUpdate",
    "ArrivedAtStep",
    "ArrivedAtDestination",
    "SessionStopped",
    "GuidanceEvent",
    "Logger",
    "haversine_distance",
    "bearing_between",
    "bearing_to_compass",
    "format_distance",
    "retry_with_backoff",
    "NavigationSession",
    "SessionState",
    "InvalidRoute",
    "DirectionsProvider",
    "DirectionsError",
    "NetworkTimeout",
    "NoRouteFound",
    "InvalidRequest",
    "ProviderError",
    "PositionSource",
    "TermuxGPS",
    "GPSRecorder",
    "GPSPlayback",
    "Audio",
    "GuidanceSink",
    "VoiceGuidance",
    "ConsoleGuidance",
    "LogGuidance",
    "Navigator",
    "format_route_preview",
]
