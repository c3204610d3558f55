"""Special-effect request record published by players and resolved by the table."""

from dataclasses import dataclass
from typing import Optional

from constants import SpecialEffect


@dataclass
class SpecialEffectRequest:
    """
    A pending special effect.

    The acting player only fills this in and publishes it; applying the
    effect is the table's job (see Table.resolve_special_effect).

    Attributes:
        effect_type: Shuffle, Reveal or Swap.
        card_id: The drawn card that triggered the effect.
        player_id: The player who triggered it.
        target_player: Player whose hand is shuffled (Shuffle only).
        target_card: Opponent card to take (Swap only).
        own_card: Own card to give away (Swap only).
    """

    effect_type: SpecialEffect
    card_id: int
    player_id: str
    target_player: Optional[str] = None
    target_card: Optional[int] = None
    own_card: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "effect_type": self.effect_type.value,
            "card_id": self.card_id,
            "player_id": self.player_id,
            "target_player": self.target_player,
            "target_card": self.target_card,
            "own_card": self.own_card,
        }
