"""
Table notifications.

The table announces every change it makes on a player's behalf. Audio and
rendering hook in through Table.set_event_emitter (a draw is the draw-sound
cue, a placement the place-sound cue); the AI never reads events back.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class EventType(str, Enum):
    """Everything a Knock Golf table can announce."""

    # Round lifecycle
    ROUND_STARTED = "round_started"
    ROUND_END_REQUESTED = "round_end_requested"
    ROUND_ENDED = "round_ended"

    # Turn actions
    CARD_DRAWN = "card_drawn"
    CARD_PLACED = "card_placed"
    DECK_RESHUFFLED = "deck_reshuffled"

    # Special cards
    SPECIAL_EFFECT_REQUESTED = "special_effect_requested"
    SPECIAL_EFFECT_RESOLVED = "special_effect_resolved"


@dataclass(frozen=True)
class GameEvent:
    """
    One table notification.

    Attributes:
        event_type: What happened.
        game_id: Table the event belongs to.
        sequence_num: Per-table counter, starting at 1.
        player_id: Acting player, None for table-level events.
        data: Event-specific payload.
        timestamp: UTC creation time.
    """

    event_type: EventType
    game_id: str
    sequence_num: int
    player_id: Optional[str] = None
    data: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        out = asdict(self)
        out["event_type"] = self.event_type.value
        out["timestamp"] = self.timestamp.isoformat()
        return out

    def describe(self, skip: tuple[str, ...] = ("dealt_cards",)) -> str:
        """Single-line summary, e.g. for narrating a simulated game."""
        details = ", ".join(f"{k}={v}" for k, v in self.data.items() if k not in skip)
        who = self.player_id or "table"
        return f"[{self.sequence_num:3}] {who:6} {self.event_type.value}: {details}"
