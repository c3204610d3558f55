"""
Table state for two-player Knock Golf.

This module owns the shared game state (cards, hands, deck, graveyard,
turn ownership) and the services players use to mutate it: drawing from
the deck or graveyard, swapping the drawn card into a hand, discarding it,
publishing special effects, and ending the round.

Knock Golf Rules Summary:
    - Each player holds a hand of face-down cards (4 by default)
    - Goal: finish the round with the lowest summed hand value
    - On your turn: draw from the deck or the graveyard, then swap the
      drawn card into your hand or discard it
    - Drawing an 11, 9 or 7 from the deck triggers a special effect
    - Any player may end the round after their turn; hands are then scored

Services never raise on invalid requests. They return None/False and
leave the table unchanged, so callers can simply retry on a later tick.
"""

import logging
import random
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Optional

from constants import CARD_VALUES, SpecialEffect
from config import config
from models.effects import SpecialEffectRequest
from models.events import EventType, GameEvent

logger = logging.getLogger(__name__)


class PositionKind(Enum):
    """Where a card currently lives."""

    DECK = "deck"
    HAND = "hand"
    GRAVEYARD = "graveyard"
    DRAWN = "drawn"


@dataclass(frozen=True)
class CardPosition:
    """
    A card's location, with the owning player for hand and drawn positions.

    Attributes:
        kind: The container kind.
        player_id: Owner for HAND, drawing player for DRAWN, else None.
    """

    kind: PositionKind
    player_id: Optional[str] = None

    @classmethod
    def deck(cls) -> "CardPosition":
        return cls(PositionKind.DECK)

    @classmethod
    def graveyard(cls) -> "CardPosition":
        return cls(PositionKind.GRAVEYARD)

    @classmethod
    def in_hand(cls, player_id: str) -> "CardPosition":
        return cls(PositionKind.HAND, player_id)

    @classmethod
    def drawn_by(cls, player_id: str) -> "CardPosition":
        return cls(PositionKind.DRAWN, player_id)

    def is_hand_of(self, player_id: str) -> bool:
        return self.kind == PositionKind.HAND and self.player_id == player_id

    def is_drawn_by(self, player_id: str) -> bool:
        return self.kind == PositionKind.DRAWN and self.player_id == player_id


@dataclass
class Card:
    """
    A playing card.

    Attributes:
        id: Stable identity, unique at the table.
        value: Point value (1-12).
        face_up: Whether the card is visible to all players.
        position: Current location.
        owner_id: Player holding or drawing the card, if any.
        from_deck: True while a drawn card came from the deck (special effects).
        is_being_dealt: True while a deck draw is animating.
    """

    id: int
    value: int
    face_up: bool = False
    position: CardPosition = field(default_factory=CardPosition.deck)
    owner_id: Optional[str] = None
    from_deck: bool = False
    is_being_dealt: bool = False

    def to_client_dict(self) -> dict:
        """Card data for a viewer; hides the value if face-down."""
        if self.face_up:
            return {"id": self.id, "value": self.value, "face_up": True}
        return {"id": self.id, "face_up": False}


@dataclass
class Hand:
    """Ordered card ids held by one player. Index order is deal order."""

    cards: list[int] = field(default_factory=list)

    def __contains__(self, card_id: object) -> bool:
        return card_id in self.cards

    def __iter__(self) -> Iterator[int]:
        return iter(self.cards)

    def __len__(self) -> int:
        return len(self.cards)


class Deck:
    """
    Face-down draw pile. Draws take from the front.

    Shuffling uses a private Random seeded per deck so a round can be
    replayed exactly from its seed.
    """

    def __init__(self, card_ids: list[int], seed: Optional[int] = None) -> None:
        self.cards: list[int] = list(card_ids)
        self.seed: int = seed if seed is not None else random.randint(0, 2**31 - 1)
        self._rng = random.Random(self.seed)
        self.shuffle()

    def shuffle(self) -> None:
        """Randomize the order of cards in the deck."""
        self._rng.shuffle(self.cards)

    def draw(self) -> Optional[int]:
        """
        Draw the front card.

        Returns:
            The drawn card id, or None if the deck is empty.
        """
        if self.cards:
            return self.cards.pop(0)
        return None

    def cards_remaining(self) -> int:
        return len(self.cards)

    def add_cards(self, card_ids: list[int]) -> None:
        """Add cards (e.g. a recycled graveyard) and reshuffle."""
        self.cards.extend(card_ids)
        self.shuffle()


@dataclass
class Graveyard:
    """Discard pile. The top card is the last element."""

    cards: list[int] = field(default_factory=list)

    def top(self) -> Optional[int]:
        if self.cards:
            return self.cards[-1]
        return None

    def is_empty(self) -> bool:
        return not self.cards


@dataclass
class Player:
    """
    A player at the table.

    Attributes:
        id: Unique identifier for the player.
        name: Display name.
        hand: The player's hand.
        is_ai: Whether the AI controller drives this player.
        score: Points scored in the last round.
        total_score: Cumulative points across rounds.
        rounds_won: Rounds where this player had the lowest score.
    """

    id: str
    name: str
    hand: Hand = field(default_factory=Hand)
    is_ai: bool = False
    score: int = 0
    total_score: int = 0
    rounds_won: int = 0


@dataclass
class Turn:
    """Turn ownership. Read by players, written only by the table."""

    current_player: Optional[str] = None
    has_drawn_card: bool = False


class TablePhase(Enum):
    """
    Phases of a Knock Golf round.

    Flow: WAITING -> PLAYING -> ROUND_ENDED
    """

    WAITING = "waiting"
    PLAYING = "playing"
    ROUND_ENDED = "round_ended"


@dataclass
class Table:
    """
    Main game state and card services for a two-player table.

    Attributes:
        players: Seated players (max 2).
        cards: Every card at the table by id.
        deck: The draw pile.
        graveyard: The discard pile.
        turn: Whose turn it is and whether they have drawn.
        phase: Current round phase.
        hand_size: Cards dealt to each player.
        round_num: Current round number (1-indexed once started).
        round_ender_id: Player who requested the round end, if any.
        special_effect: Published effect awaiting resolution.
        winners: Player ids with the lowest score last round.
        game_id: Unique identifier used in events and logs.
    """

    players: list[Player] = field(default_factory=list)
    cards: dict[int, Card] = field(default_factory=dict)
    deck: Optional[Deck] = None
    graveyard: Graveyard = field(default_factory=Graveyard)
    turn: Turn = field(default_factory=Turn)
    phase: TablePhase = TablePhase.WAITING
    hand_size: int = field(default_factory=lambda: config.table.hand_size)
    round_num: int = 0
    round_ender_id: Optional[str] = None
    special_effect: Optional[SpecialEffectRequest] = None
    winners: list[str] = field(default_factory=list)
    game_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    _event_emitter: Optional[Callable[[GameEvent], None]] = field(
        default=None, repr=False, compare=False
    )
    _sequence_num: int = field(default=0, repr=False, compare=False)
    _lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)
    _rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    def set_event_emitter(self, emitter: Callable[[GameEvent], None]) -> None:
        """
        Set callback for event emission.

        Audio and rendering systems hook in here; a draw event is the
        "play draw sound" cue and a placement event the "play place sound" cue.
        """
        self._event_emitter = emitter

    def _emit(
        self,
        event_type: EventType,
        player_id: Optional[str] = None,
        **data: Any,
    ) -> None:
        if self._event_emitter is None:
            return

        self._sequence_num += 1
        event = GameEvent(
            event_type=event_type,
            game_id=self.game_id,
            sequence_num=self._sequence_num,
            player_id=player_id,
            data=data,
        )
        self._event_emitter(event)

    @contextmanager
    def exclusive(self) -> Iterator["Table"]:
        """
        Hold exclusive write access to the table for one unit of work.

        Re-entrant, so services can be called while a caller already holds it.
        Never hold this across ticks.
        """
        with self._lock:
            yield self

    # -------------------------------------------------------------------------
    # Player Management
    # -------------------------------------------------------------------------

    def add_player(self, player: Player) -> bool:
        """
        Seat a player.

        Returns:
            True if seated, False if the table is full (max 2 players).
        """
        if len(self.players) >= 2:
            return False
        self.players.append(player)
        return True

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def current_player(self) -> Optional[Player]:
        """Get the player whose turn it currently is."""
        if self.turn.current_player is None:
            return None
        return self.get_player(self.turn.current_player)

    def opponent_of(self, player_id: str) -> Optional[Player]:
        """Get the other seated player."""
        for player in self.players:
            if player.id != player_id:
                return player
        return None

    def hand_of(self, player_id: str) -> Optional[Hand]:
        player = self.get_player(player_id)
        if player is None:
            return None
        return player.hand

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def graveyard_top(self) -> Optional[Card]:
        top_id = self.graveyard.top()
        if top_id is None:
            return None
        return self.cards.get(top_id)

    def find_drawn_card(self, player_id: str) -> Optional[Card]:
        """Find the card currently marked as drawn by a player."""
        for card in self.cards.values():
            if card.position.is_drawn_by(player_id):
                return card
        return None

    def hand_values(self, player_id: str) -> list[int]:
        hand = self.hand_of(player_id)
        if hand is None:
            return []
        return [self.cards[card_id].value for card_id in hand]

    # -------------------------------------------------------------------------
    # Round Lifecycle
    # -------------------------------------------------------------------------

    def start_round(
        self,
        seed: Optional[int] = None,
        first_player: Optional[str] = None,
    ) -> None:
        """
        Build the 48-card pool, deal hands and start play.

        Args:
            seed: Deck shuffle seed (random if None).
            first_player: Player who moves first (first seated if None).
        """
        self.round_num += 1
        self.cards = {
            card_id: Card(id=card_id, value=value)
            for card_id, value in enumerate(CARD_VALUES)
        }
        self.deck = Deck(list(self.cards), seed=seed)
        self._rng = random.Random(self.deck.seed)
        self.graveyard = Graveyard()
        self.special_effect = None
        self.round_ender_id = None
        self.winners = []

        dealt: dict[str, list[int]] = {}
        for player in self.players:
            player.hand = Hand()
            player.score = 0
            for _ in range(self.hand_size):
                card_id = self.deck.draw()
                if card_id is None:
                    break
                card = self.cards[card_id]
                card.position = CardPosition.in_hand(player.id)
                card.owner_id = player.id
                player.hand.cards.append(card_id)
            dealt[player.id] = [self.cards[c].value for c in player.hand]

        first_discard = self.deck.draw()
        if first_discard is not None:
            self._send_to_graveyard(self.cards[first_discard])

        if first_player is None and self.players:
            first_player = self.players[0].id
        self.turn = Turn(current_player=first_player)
        self.phase = TablePhase.PLAYING

        logger.info(
            f"Round {self.round_num} started (seed={self.deck.seed}, first={first_player})"
        )
        self._emit(
            EventType.ROUND_STARTED,
            round_num=self.round_num,
            deck_seed=self.deck.seed,
            dealt_cards=dealt,
            first_discard=self.graveyard_top().value if self.graveyard_top() else None,
            first_player=first_player,
        )

    def request_round_end(self, player_id: str) -> bool:
        """
        Request that the round end now, then score it.

        Returns:
            True if the round was ended, False if no round is in play.
        """
        if self.phase != TablePhase.PLAYING:
            return False

        self.round_ender_id = player_id
        self._emit(EventType.ROUND_END_REQUESTED, player_id=player_id)
        self.end_round()
        return True

    def end_round(self) -> dict[str, int]:
        """
        Reveal all hands and score them.

        Returns:
            Mapping of player id to round score (lower is better).
        """
        for player in self.players:
            for card_id in player.hand:
                self.cards[card_id].face_up = True

        scores = {player.id: sum(self.hand_values(player.id)) for player in self.players}
        for player in self.players:
            player.score = scores[player.id]
            player.total_score += player.score

        if scores:
            best = min(scores.values())
            self.winners = [pid for pid, score in scores.items() if score == best]
            for pid in self.winners:
                self.get_player(pid).rounds_won += 1

        self.phase = TablePhase.ROUND_ENDED
        self.turn.has_drawn_card = False

        logger.info(f"Round {self.round_num} ended: scores={scores}, winners={self.winners}")
        self._emit(
            EventType.ROUND_ENDED,
            round_num=self.round_num,
            scores=scores,
            winners=self.winners,
            ended_by=self.round_ender_id,
        )
        return scores

    # -------------------------------------------------------------------------
    # Turn Actions
    # -------------------------------------------------------------------------

    def _can_draw(self, player_id: str) -> bool:
        return (
            self.phase == TablePhase.PLAYING
            and self.turn.current_player == player_id
            and not self.turn.has_drawn_card
        )

    def _mark_drawn(self, card: Card, player_id: str, from_deck: bool) -> None:
        card.position = CardPosition.drawn_by(player_id)
        card.owner_id = player_id
        card.face_up = True
        card.from_deck = from_deck
        card.is_being_dealt = from_deck
        self.turn.has_drawn_card = True

    def draw_from_graveyard(self, player_id: str) -> Optional[Card]:
        """
        Take the top discard.

        Returns:
            The drawn Card, or None if the graveyard is empty or it is not
            this player's draw.
        """
        if not self._can_draw(player_id):
            return None
        if self.graveyard.is_empty():
            return None

        card = self.cards[self.graveyard.cards.pop()]
        self._mark_drawn(card, player_id, from_deck=False)
        self._emit(EventType.CARD_DRAWN, player_id=player_id, source="graveyard", value=card.value)
        return card

    def draw_from_deck(self, player_id: str) -> Optional[Card]:
        """
        Take the front card of the deck.

        An empty deck is refilled from the graveyard (all but its top card)
        first. If nothing can be drawn, the round ends.

        Returns:
            The drawn Card, or None if nothing was drawn.
        """
        if not self._can_draw(player_id):
            return None

        card_id = self.deck.draw() if self.deck else None
        if card_id is None:
            card_id = self._reshuffle_graveyard()
        if card_id is None:
            logger.warning("No cards left in deck or graveyard, ending round")
            self.end_round()
            return None

        card = self.cards[card_id]
        self._mark_drawn(card, player_id, from_deck=True)
        self._emit(EventType.CARD_DRAWN, player_id=player_id, source="deck")
        return card

    def _reshuffle_graveyard(self) -> Optional[int]:
        """
        Recycle the graveyard into the deck, keeping the top card visible.

        Returns:
            A card id drawn from the refilled deck, or None if not possible.
        """
        if self.deck is None or len(self.graveyard.cards) <= 1:
            return None

        top_id = self.graveyard.cards[-1]
        recycled = self.graveyard.cards[:-1]
        for card_id in recycled:
            card = self.cards[card_id]
            card.face_up = False
            card.position = CardPosition.deck()

        self.deck.add_cards(recycled)
        self.graveyard.cards = [top_id]
        self._emit(EventType.DECK_RESHUFFLED, recycled=len(recycled))
        return self.deck.draw()

    def swap_drawn(self, player_id: str, target_id: int) -> Optional[Card]:
        """
        Put the drawn card face down into the hand slot of target_id.

        The replaced card goes face-up onto the graveyard and the turn passes.

        Returns:
            The replaced Card, or None if the swap is invalid.
        """
        drawn = self.find_drawn_card(player_id)
        player = self.get_player(player_id)
        if drawn is None or player is None:
            return None
        if target_id not in player.hand:
            return None

        slot = player.hand.cards.index(target_id)
        player.hand.cards[slot] = drawn.id
        drawn.position = CardPosition.in_hand(player_id)
        drawn.owner_id = player_id
        drawn.face_up = False
        drawn.from_deck = False
        drawn.is_being_dealt = False

        replaced = self.cards[target_id]
        self._send_to_graveyard(replaced)

        self._emit(
            EventType.CARD_PLACED,
            player_id=player_id,
            action="swap",
            slot=slot,
            new_value=drawn.value,
            old_value=replaced.value,
        )
        self._end_turn()
        return replaced

    def discard_drawn(self, player_id: str) -> bool:
        """
        Put the drawn card onto the graveyard and pass the turn.

        Returns:
            True if discarded, False if the player holds no drawn card.
        """
        drawn = self.find_drawn_card(player_id)
        if drawn is None:
            return False

        self._send_to_graveyard(drawn)
        self._emit(EventType.CARD_PLACED, player_id=player_id, action="discard", value=drawn.value)
        self._end_turn()
        return True

    def _send_to_graveyard(self, card: Card) -> None:
        card.position = CardPosition.graveyard()
        card.owner_id = None
        card.face_up = True
        card.from_deck = False
        card.is_being_dealt = False
        self.graveyard.cards.append(card.id)

    def _end_turn(self) -> None:
        self.turn.has_drawn_card = False
        if self.phase != TablePhase.PLAYING:
            return
        opponent = self.opponent_of(self.turn.current_player)
        if opponent is not None:
            self.turn.current_player = opponent.id

    # -------------------------------------------------------------------------
    # Special Effects
    # -------------------------------------------------------------------------

    def request_special_effect(self, request: SpecialEffectRequest) -> None:
        """Publish a special effect for resolution. Replaces any pending one."""
        self.special_effect = request
        self._emit(
            EventType.SPECIAL_EFFECT_REQUESTED,
            player_id=request.player_id,
            **self._effect_data(request),
        )

    def resolve_special_effect(self) -> bool:
        """
        Apply and clear the pending special effect.

        SHUFFLE: randomize the target player's hand order.
        REVEAL: turn the acting player's opponent's first face-down card up.
        SWAP: exchange target_card (opponent hand) with own_card (acting hand).

        Returns:
            True if an effect was applied, False if none was pending or it
            could not be resolved (the request is dropped either way).
        """
        request = self.special_effect
        if request is None:
            return False
        self.special_effect = None

        if request.effect_type == SpecialEffect.SHUFFLE:
            applied = self._apply_shuffle(request)
        elif request.effect_type == SpecialEffect.REVEAL:
            applied = self._apply_reveal(request)
        elif request.effect_type == SpecialEffect.SWAP:
            applied = self._apply_swap(request)
        else:
            applied = False

        if not applied:
            logger.info(f"Special effect {request.effect_type.value} could not be resolved, skipped")
            return False

        self._emit(
            EventType.SPECIAL_EFFECT_RESOLVED,
            player_id=request.player_id,
            **self._effect_data(request),
        )
        return True

    @staticmethod
    def _effect_data(request: SpecialEffectRequest) -> dict:
        data = request.to_dict()
        del data["player_id"]
        return data

    def _apply_shuffle(self, request: SpecialEffectRequest) -> bool:
        if request.target_player is None:
            return False
        hand = self.hand_of(request.target_player)
        if hand is None:
            return False
        self._rng.shuffle(hand.cards)
        return True

    def _apply_reveal(self, request: SpecialEffectRequest) -> bool:
        opponent = self.opponent_of(request.player_id)
        if opponent is None:
            return False
        for card_id in opponent.hand:
            card = self.cards[card_id]
            if not card.face_up:
                card.face_up = True
                return True
        return False

    def _apply_swap(self, request: SpecialEffectRequest) -> bool:
        own_player = self.get_player(request.player_id)
        opponent = self.opponent_of(request.player_id)
        if own_player is None or opponent is None:
            return False
        if request.own_card not in own_player.hand or request.target_card not in opponent.hand:
            return False

        own_slot = own_player.hand.cards.index(request.own_card)
        target_slot = opponent.hand.cards.index(request.target_card)
        own_player.hand.cards[own_slot] = request.target_card
        opponent.hand.cards[target_slot] = request.own_card

        taken = self.cards[request.target_card]
        taken.position = CardPosition.in_hand(own_player.id)
        taken.owner_id = own_player.id

        given = self.cards[request.own_card]
        given.position = CardPosition.in_hand(opponent.id)
        given.owner_id = opponent.id
        return True

    def get_state(self, for_player_id: str) -> dict:
        """
        Table state as seen by one player.

        Face-down cards are hidden, including the viewer's own.
        """
        top = self.graveyard_top()
        return {
            "game_id": self.game_id,
            "phase": self.phase.value,
            "round_num": self.round_num,
            "current_player": self.turn.current_player,
            "deck_remaining": self.deck.cards_remaining() if self.deck else 0,
            "graveyard_top": top.to_client_dict() if top else None,
            "players": [
                {
                    "id": p.id,
                    "name": p.name,
                    "is_you": p.id == for_player_id,
                    "cards": [self.cards[c].to_client_dict() for c in p.hand],
                    "total_score": p.total_score,
                }
                for p in self.players
            ],
        }
