"""Scoring heuristic and decision policies for the Knock Golf AI opponent."""

import logging
from enum import Enum
from typing import Optional

from config import config
from constants import MEAN_CARD_VALUE, TOTAL_CARDS, TOTAL_POINTS
from game import Hand
from memory import AIMemory


# Debug logging configuration
# Set AI_DEBUG=1 environment variable to enable detailed AI decision logging
AI_DEBUG = config.AI_DEBUG

# Create a dedicated logger for AI decisions
ai_logger = logging.getLogger("knockgolf.ai")
if AI_DEBUG:
    ai_logger.setLevel(logging.DEBUG)
    if not ai_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [AI] %(message)s", datefmt="%H:%M:%S"
        ))
        ai_logger.addHandler(handler)


def ai_log(message: str):
    """Log AI decision info when AI_DEBUG is enabled."""
    if AI_DEBUG:
        ai_logger.debug(message)


# =============================================================================
# AI Decision Constants
# =============================================================================
# Single difficulty tier: these are fixed, not tuned per opponent.

# Always swap a drawn card at or below this value
ALWAYS_SWAP_MAX_VALUE = 4

# Swap a drawn card at or below this value while little is known
EARLY_SWAP_MAX_VALUE = 6
EARLY_SWAP_KNOWN_LIMIT = 4

# Swap into an unknown slot when the drawn card is at or below this value
UNKNOWN_SWAP_MAX_VALUE = 5

# Never end the round on or before this many turns
MIN_TURNS_BEFORE_END = 4

# End-round thresholds when no opponent card is known
END_SCORE_RELAXED = 20
END_TURNS_RELAXED = 6
END_SCORE_STRICT = 15
END_TURNS_STRICT = 5

# End when own estimate beats the opponent's by at least this much
END_MARGIN = -3

# A known card at or above this value blocks ending the round
BLOCKING_CARD_VALUE = 10


class DrawSource(str, Enum):
    """Where to draw from at the start of a turn."""

    GRAVEYARD = "graveyard"
    DECK = "deck"


# =============================================================================
# Scoring Heuristic
# =============================================================================

def expected_unknown_value(memory: AIMemory) -> float:
    """
    Expected value of a card the AI cannot see.

    The 48-card/312-point pool minus everything the AI has accounted for
    (own known cards, seen discard values, opponent known cards), averaged
    over what is left. Falls back to the pool mean when nothing is left.
    """
    remaining_cards = TOTAL_CARDS - memory.accounted_count
    if remaining_cards <= 0:
        return MEAN_CARD_VALUE
    remaining_points = TOTAL_POINTS - memory.accounted_points
    return remaining_points / remaining_cards


def estimate_hand_score(memory: AIMemory, hand: Hand, known_lookup: dict[int, int]) -> float:
    """
    Estimate a hand's total.

    Known cards count at their recorded value, the rest at the expected
    unknown value. Pass memory.known_cards for the AI's own hand and
    memory.opponent_known_cards for the opponent's.
    """
    expected = expected_unknown_value(memory)
    total = 0.0
    for card_id in hand:
        value = known_lookup.get(card_id)
        total += value if value is not None else expected
    return total


def estimate_own_score(memory: AIMemory, hand: Hand) -> float:
    return estimate_hand_score(memory, hand, memory.known_cards)


def estimate_opponent_score(memory: AIMemory, hand: Hand) -> float:
    return estimate_hand_score(memory, hand, memory.opponent_known_cards)


# =============================================================================
# Decision Policies
# =============================================================================

class KnockAI:
    """Fixed-heuristic decisions. Pure functions of memory and hand snapshots."""

    @staticmethod
    def worst_known_card(memory: AIMemory, hand: Hand) -> Optional[tuple[int, int]]:
        """
        Highest-valued card in the hand whose value the AI knows.

        Ties keep the first one in hand order.

        Returns:
            (card id, value), or None if no hand card is known.
        """
        worst: Optional[tuple[int, int]] = None
        for card_id in hand:
            value = memory.known_cards.get(card_id)
            if value is None:
                continue
            if worst is None or value > worst[1]:
                worst = (card_id, value)
        return worst

    @staticmethod
    def first_unknown_card(memory: AIMemory, hand: Hand) -> Optional[int]:
        """First card in hand order whose value the AI does not know."""
        for card_id in hand:
            if card_id not in memory.known_cards:
                return card_id
        return None

    @staticmethod
    def choose_draw_source(
        memory: AIMemory,
        graveyard_top_value: Optional[int],
        worst_known_value: Optional[int],
    ) -> DrawSource:
        """
        Decide between the visible discard and a blind deck draw.

        The discard is only worth taking if it beats both the AI's worst
        known card (when there is one) and the expectation of a blind draw.
        """
        if graveyard_top_value is None:
            ai_log("  Draw: graveyard empty, drawing from deck")
            return DrawSource.DECK

        expected = expected_unknown_value(memory)

        if worst_known_value is not None:
            take = graveyard_top_value < worst_known_value and graveyard_top_value < expected
        else:
            take = graveyard_top_value < expected

        ai_log(
            f"  Draw: top={graveyard_top_value} worst={worst_known_value} "
            f"expected={expected:.2f} -> {'graveyard' if take else 'deck'}"
        )
        return DrawSource.GRAVEYARD if take else DrawSource.DECK

    @staticmethod
    def should_swap(drawn_value: int, memory: AIMemory, hand: Hand) -> bool:
        """Whether to keep the drawn card (swap) rather than discard it."""
        worst = KnockAI.worst_known_card(memory, hand)
        if worst is not None and drawn_value < worst[1]:
            ai_log(f"  Swap: {drawn_value} beats worst known {worst[1]}")
            return True

        if drawn_value <= ALWAYS_SWAP_MAX_VALUE:
            ai_log(f"  Swap: {drawn_value} is low enough to always keep")
            return True

        # Little is known yet: medium cards still beat the average unknown
        if drawn_value <= EARLY_SWAP_MAX_VALUE and len(memory.known_cards) < EARLY_SWAP_KNOWN_LIMIT:
            ai_log(f"  Swap: {drawn_value} with only {len(memory.known_cards)} known cards")
            return True

        ai_log(f"  Discard: {drawn_value}")
        return False

    @staticmethod
    def choose_swap_target(drawn_value: int, memory: AIMemory, hand: Hand) -> Optional[int]:
        """
        Pick the hand card to replace with the drawn card.

        Returns:
            Card id to replace, or None to discard the drawn card instead.
        """
        worst = KnockAI.worst_known_card(memory, hand)
        if worst is not None and drawn_value < worst[1]:
            return worst[0]

        if drawn_value <= UNKNOWN_SWAP_MAX_VALUE:
            return KnockAI.first_unknown_card(memory, hand)

        return None

    @staticmethod
    def should_end_round(
        memory: AIMemory,
        own_hand: Hand,
        opponent_hand: Hand,
        turns_played: int,
    ) -> bool:
        """
        Decide whether to end the round after this turn.

        Never before the minimum turn count, and never while a known card
        of BLOCKING_CARD_VALUE or more sits in the AI's hand.
        """
        if turns_played <= MIN_TURNS_BEFORE_END:
            return False

        for card_id in own_hand:
            value = memory.known_cards.get(card_id)
            if value is not None and value >= BLOCKING_CARD_VALUE:
                ai_log(f"  End round blocked: known card {value} in hand")
                return False

        own_score = estimate_own_score(memory, own_hand)
        opponent_score = estimate_opponent_score(memory, opponent_hand)
        margin = own_score - opponent_score

        if not memory.opponent_known_cards:
            if own_score <= END_SCORE_RELAXED and turns_played >= END_TURNS_RELAXED:
                ai_log(f"  End round: own {own_score:.1f} after {turns_played} turns")
                return True
            if own_score <= END_SCORE_STRICT and turns_played >= END_TURNS_STRICT:
                ai_log(f"  End round: own {own_score:.1f} after {turns_played} turns")
                return True
            return False

        if margin <= END_MARGIN:
            ai_log(f"  End round: margin {margin:.1f} (own {own_score:.1f}, opp {opponent_score:.1f})")
            return True
        return False

    @staticmethod
    def select_swap_effect_cards(
        memory: AIMemory,
        own_hand: Hand,
        opponent_hand: Hand,
    ) -> Optional[tuple[int, int]]:
        """
        Choose the cards for a Swap special effect.

        Opponent side: the highest-valued known card still in the opponent's
        hand (first in hand order wins ties), else the opponent's first card.
        Own side: the AI's worst known card.

        Returns:
            (opponent card id, own card id), or None if either side is unresolved.
        """
        target: Optional[int] = None
        best_value: Optional[int] = None
        for card_id in opponent_hand:
            value = memory.opponent_known_cards.get(card_id)
            if value is None:
                continue
            if best_value is None or value > best_value:
                target, best_value = card_id, value
        if target is None and opponent_hand.cards:
            target = opponent_hand.cards[0]

        worst = KnockAI.worst_known_card(memory, own_hand)
        if target is None or worst is None:
            return None
        return target, worst[0]
