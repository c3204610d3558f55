"""Models package for the Knock Golf engine."""

from .events import EventType, GameEvent
from .effects import SpecialEffectRequest

__all__ = [
    "EventType",
    "GameEvent",
    "SpecialEffectRequest",
]
