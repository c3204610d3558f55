"""
Card pool constants for Knock Golf.

This module is the single source of truth for the card set. The AI's
scoring heuristic relies on these totals, so the table must build its
deck from CARD_VALUES and nothing else.

Card pool:
    - Values 1 through 12
    - Four copies of each value
    - 48 cards, 312 points, mean 6.5

Special values (only when drawn from the deck):
    - 11: Shuffle the opponent's hand
    - 9: Reveal
    - 7: Swap one opponent card with one own card
"""

from enum import Enum
from typing import Optional


# =============================================================================
# Card Pool - Single Source of Truth
# =============================================================================

MIN_CARD_VALUE: int = 1
MAX_CARD_VALUE: int = 12
COPIES_PER_VALUE: int = 4

CARD_VALUES: list[int] = [
    value
    for value in range(MIN_CARD_VALUE, MAX_CARD_VALUE + 1)
    for _ in range(COPIES_PER_VALUE)
]

TOTAL_CARDS: int = len(CARD_VALUES)        # 48
TOTAL_POINTS: int = sum(CARD_VALUES)       # 312
MEAN_CARD_VALUE: float = TOTAL_POINTS / TOTAL_CARDS  # 6.5


# =============================================================================
# Special Effects
# =============================================================================

class SpecialEffect(str, Enum):
    """Triggered abilities for cards drawn directly from the deck."""

    SHUFFLE = "shuffle"
    REVEAL = "reveal"
    SWAP = "swap"


SPECIAL_CARD_EFFECTS: dict[int, SpecialEffect] = {
    11: SpecialEffect.SHUFFLE,
    9: SpecialEffect.REVEAL,
    7: SpecialEffect.SWAP,
}


# =============================================================================
# Helper Functions
# =============================================================================

def get_special_effect(value: int, from_deck: bool) -> Optional[SpecialEffect]:
    """
    Get the special effect triggered by a drawn card.

    Args:
        value: Value of the drawn card.
        from_deck: True if the card was drawn from the deck.

    Returns:
        The triggered effect, or None (graveyard draws never trigger).
    """
    if not from_deck:
        return None
    return SPECIAL_CARD_EFFECTS.get(value)
