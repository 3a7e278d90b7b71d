"""Shared builders for TrailNav tests."""

import math

from trailnav.geo import EARTH_RADIUS
from trailnav.models import Coordinate, Leg, PositionFix, Route, Step


LAGOS_STEPS = [
    ((6.5244, 3.3792), "Head south on Herbert Macaulay Way"),
    ((6.4541, 3.4316), "Turn left onto Ozumba Mbadiwe Avenue"),
]


def make_step(lat: float, lon: float, instruction: str = "Continue", **kwargs) -> Step:
    return Step(end_location=Coordinate(lat, lon), instruction=instruction, **kwargs)


def make_route(points=None, legs: int = 1) -> Route:
    """Route over (lat, lon), instruction pairs, split evenly into legs"""
    points = LAGOS_STEPS if points is None else points
    steps = [make_step(lat, lon, text, distance=100.0) for (lat, lon), text in points]
    per_leg = max(1, math.ceil(len(steps) / legs))
    chunks = [tuple(steps[i:i + per_leg]) for i in range(0, len(steps), per_leg)]
    return Route(legs=tuple(Leg(steps=chunk, distance=100.0 * len(chunk)) for chunk in chunks))


def make_fix(lat: float, lon: float, **kwargs) -> PositionFix:
    return PositionFix(lat=lat, lon=lon, **kwargs)


def north_of(lat: float, lon: float, meters: float) -> PositionFix:
    """Fix the given number of meters due north of a point"""
    return make_fix(lat + math.degrees(meters / EARTH_RADIUS), lon)


class EventRecorder:
    """Collects emitted events in order"""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def handle(self, event):
        self.events.append(event)

    def warn(self, message):
        self.events.append(("warn", message))

    def types(self) -> list:
        return [type(e).__name__ if not isinstance(e, tuple) else e[0] for e in self.events]
