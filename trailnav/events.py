"""Guidance events emitted by the navigation session."""

from dataclasses import dataclass, asdict
from typing import Union


@dataclass(frozen=True)
class SessionStarted:
    first_instruction: str
    step_count: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ProgressUpdate:
    distance_remaining: float  # meters to the end of the current step
    step_index: int

    def to_dict(self) -> dict:
        return {"distance_remaining": round(self.distance_remaining, 1),
                "step_index": self.step_index}


@dataclass(frozen=True)
class ArrivedAtStep:
    """Previous step completed; instruction is for the step now being travelled"""
    instruction: str
    step_index: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ArrivedAtDestination:
    def to_dict(self) -> dict:
        return {}


@dataclass(frozen=True)
class SessionStopped:
    def to_dict(self) -> dict:
        return {}


GuidanceEvent = Union[
    SessionStarted, ProgressUpdate, ArrivedAtStep, ArrivedAtDestination, SessionStopped
]
