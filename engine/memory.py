"""
Belief state for the AI opponent.

AIMemory is what the AI remembers about hidden information: values of its
own cards it has seen, opponent cards it has seen face up, values that went
through the graveyard, and how many turns it has played. It is owned by
exactly one AI and is never read by the other player.
"""

from dataclasses import dataclass, field
from typing import Mapping

from config import config
from game import Card, Hand, PositionKind


@dataclass
class AIMemory:
    """
    Per-AI memory of observed cards.

    Attributes:
        known_cards: Own-hand card id -> value, for cards the AI has seen.
        initial_cards: The first two dealt cards as (card id, value).
        seen_discards: Distinct values observed in the graveyard.
        opponent_known_cards: Opponent card id -> value, for cards seen face up.
        turns_played: Completed AI turns.

    A card id is recorded in at most one of known_cards and
    opponent_known_cards; whichever hand holds it decides which.
    """

    known_cards: dict[int, int] = field(default_factory=dict)
    initial_cards: list[tuple[int, int]] = field(default_factory=list)
    seen_discards: list[int] = field(default_factory=list)
    opponent_known_cards: dict[int, int] = field(default_factory=dict)
    turns_played: int = 0

    @classmethod
    def initialize(cls, hand: Hand, cards: Mapping[int, Card]) -> "AIMemory":
        """
        Build the memory for a freshly dealt hand.

        The AI peeks at its first two cards (INITIAL_PEEKS), so their values
        are recorded whether or not they are face up.

        Args:
            hand: The AI's starting hand.
            cards: All cards at the table by id.
        """
        memory = cls()
        memory.record_initial_cards(hand, cards, require_face_up=False)
        return memory

    def record_initial_cards(
        self,
        hand: Hand,
        cards: Mapping[int, Card],
        require_face_up: bool = True,
    ) -> int:
        """
        Record the first cards of the hand (two by default) as initial cards.

        Precondition: initial_cards is empty. Calling this twice duplicates
        entries.

        Returns:
            Number of cards recorded.
        """
        recorded = 0
        for card_id in hand.cards[:config.table.initial_peeks]:
            card = cards.get(card_id)
            if card is None:
                continue
            if require_face_up and not card.face_up:
                continue
            self.remember_own(card_id, card.value)
            self.initial_cards.append((card_id, card.value))
            recorded += 1
        return recorded

    def remember_own(self, card_id: int, value: int) -> None:
        self.opponent_known_cards.pop(card_id, None)
        self.known_cards[card_id] = value

    def remember_opponent(self, card_id: int, value: int) -> None:
        self.known_cards.pop(card_id, None)
        self.opponent_known_cards[card_id] = value

    def remember_discard(self, value: int) -> None:
        if value not in self.seen_discards:
            self.seen_discards.append(value)

    def observe(self, own_hand: Hand, cards: Mapping[int, Card], ai_id: str) -> None:
        """
        Learn from everything currently visible. Runs every tick, on any turn.

        - Face-up cards in the AI's hand go to known_cards.
        - Graveyard values not seen before go to seen_discards.
        - Face-up cards in other hands go to opponent_known_cards.
        - Cards already known by value follow their card between hands
          (e.g. after a Swap special effect).

        Args:
            own_hand: The AI's hand.
            cards: All cards at the table by id.
            ai_id: The AI player's id.
        """
        for card_id in own_hand:
            card = cards.get(card_id)
            if card is None:
                continue
            if card.face_up:
                self.remember_own(card_id, card.value)
            elif card_id in self.opponent_known_cards:
                self.remember_own(card_id, self.opponent_known_cards[card_id])

        for card in cards.values():
            position = card.position
            if position.kind == PositionKind.GRAVEYARD:
                self.remember_discard(card.value)
            elif position.kind == PositionKind.HAND and position.player_id != ai_id:
                if card.face_up:
                    self.remember_opponent(card.id, card.value)
                elif card.id in self.known_cards:
                    self.remember_opponent(card.id, self.known_cards[card.id])

    @property
    def accounted_count(self) -> int:
        """Number of entries counted against the card pool."""
        return len(self.known_cards) + len(self.seen_discards) + len(self.opponent_known_cards)

    @property
    def accounted_points(self) -> int:
        """Sum of values counted against the card pool."""
        return (
            sum(self.known_cards.values())
            + sum(self.seen_discards)
            + sum(self.opponent_known_cards.values())
        )
