"""Data classes for TrailNav."""

import math
from dataclasses import dataclass, asdict
from typing import Optional


@dataclass(frozen=True)
class Coordinate:
    """A validated latitude/longitude pair"""
    lat: float
    lon: float

    def __post_init__(self):
        for name, value, limit in (("lat", self.lat, 90), ("lon", self.lon, 180)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value) or abs(value) > limit:
                raise ValueError(f"{name} out of range: {value}")

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, d: dict) -> "Coordinate":
        return cls(lat=d["lat"], lon=d["lon"])

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        """Parse 'lat,lon' as typed on the command line"""
        parts = text.split(",")
        if len(parts) != 2:
            raise ValueError(f"expected 'lat,lon', got {text!r}")
        return cls(lat=float(parts[0]), lon=float(parts[1]))


@dataclass(frozen=True)
class PositionFix:
    """One reported position. Range is not checked here; bad fixes simply never match a step."""
    lat: float
    lon: float
    accuracy: Optional[float] = None  # meters
    timestamp: Optional[float] = None
    heading: Optional[float] = None  # degrees, 0=North
    speed: Optional[float] = None  # m/s

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "PositionFix":
        optional = {}
        for key in ("accuracy", "timestamp", "heading", "speed"):
            if d.get(key) is not None:
                optional[key] = float(d[key])
        return cls(lat=float(d["lat"]), lon=float(d["lon"]), **optional)


@dataclass(frozen=True)
class Step:
    """Smallest unit of a route: one maneuver instruction"""
    end_location: Coordinate
    instruction: str
    maneuver: Optional[str] = None  # e.g. "turn-left", "roundabout-right"
    distance: Optional[float] = None  # meters
    duration: Optional[float] = None  # seconds

    def to_dict(self) -> dict:
        return {
            "end_location": self.end_location.to_dict(),
            "instruction": self.instruction,
            "maneuver": self.maneuver,
            "distance": self.distance,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Step":
        return cls(
            end_location=Coordinate.from_dict(d["end_location"]),
            instruction=d["instruction"],
            maneuver=d.get("maneuver"),
            distance=d.get("distance"),
            duration=d.get("duration"),
        )


@dataclass(frozen=True)
class Leg:
    steps: tuple[Step, ...]
    start_address: Optional[str] = None
    end_address: Optional[str] = None
    distance: Optional[float] = None  # meters
    duration: Optional[float] = None  # seconds

    def to_dict(self) -> dict:
        return {
            "steps": [s.to_dict() for s in self.steps],
            "start_address": self.start_address,
            "end_address": self.end_address,
            "distance": self.distance,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Leg":
        return cls(
            steps=tuple(Step.from_dict(s) for s in d["steps"]),
            start_address=d.get("start_address"),
            end_address=d.get("end_address"),
            distance=d.get("distance"),
            duration=d.get("duration"),
        )


@dataclass(frozen=True)
class Route:
    """Ordered legs as returned by the directions provider (travel order)"""
    legs: tuple[Leg, ...]
    summary: str = ""

    @property
    def steps(self) -> tuple[Step, ...]:
        """All steps of all legs, flattened in travel order"""
        return tuple(step for leg in self.legs for step in leg.steps)

    @property
    def distance(self) -> float:
        return sum(leg.distance or 0 for leg in self.legs)

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "legs": [leg.to_dict() for leg in self.legs],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Route":
        return cls(
            legs=tuple(Leg.from_dict(leg) for leg in d["legs"]),
            summary=d.get("summary", ""),
        )
