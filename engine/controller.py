"""
Tick-driven turn controller for the AI opponent.

The controller is advanced once per engine frame. Waiting ("thinking") is
a timer carried inside the current state, so a turn survives any number of
frames, including zero-length ones, and can be abandoned at any point by
resetting to IDLE.

Turn flow:
    IDLE -> THINKING -> DECIDING_DRAW -> EXECUTING_DRAW -> THINKING_SWAP
         -> [ACTIVATING_SPECIAL] -> DECIDING_SWAP -> EXECUTING_SWAP -> IDLE

Each tick does at most one state's worth of work. Missing data (no hand,
no drawn card yet, no opponent) leaves the state unchanged so the same
work is retried on the next tick.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from ai import KnockAI, DrawSource, estimate_opponent_score, estimate_own_score
from config import config
from constants import SpecialEffect, get_special_effect
from game import Table, TablePhase
from logging_config import get_logger
from memory import AIMemory
from models.effects import SpecialEffectRequest


class AIPhase(Enum):
    """Phases of one AI turn."""

    IDLE = "idle"
    THINKING = "thinking"
    DECIDING_DRAW = "deciding_draw"
    EXECUTING_DRAW = "executing_draw"
    THINKING_SWAP = "thinking_swap"
    ACTIVATING_SPECIAL = "activating_special"
    DECIDING_SWAP = "deciding_swap"
    EXECUTING_SWAP = "executing_swap"


@dataclass(frozen=True)
class AIState:
    """
    Current AI phase plus the data that phase carries.

    Attributes:
        phase: Where the turn is.
        timer: Seconds left (THINKING, THINKING_SWAP).
        drawn_card: Card drawn this turn (THINKING_SWAP onward).
        target_card: Hand card to replace, None to discard (EXECUTING_SWAP).
    """

    phase: AIPhase = AIPhase.IDLE
    timer: float = 0.0
    drawn_card: Optional[int] = None
    target_card: Optional[int] = None

    @classmethod
    def idle(cls) -> "AIState":
        return cls(AIPhase.IDLE)

    @classmethod
    def thinking(cls, timer: float) -> "AIState":
        return cls(AIPhase.THINKING, timer=timer)

    @classmethod
    def deciding_draw(cls) -> "AIState":
        return cls(AIPhase.DECIDING_DRAW)

    @classmethod
    def executing_draw(cls) -> "AIState":
        return cls(AIPhase.EXECUTING_DRAW)

    @classmethod
    def thinking_swap(cls, timer: float, drawn_card: int) -> "AIState":
        return cls(AIPhase.THINKING_SWAP, timer=timer, drawn_card=drawn_card)

    @classmethod
    def activating_special(cls, drawn_card: int) -> "AIState":
        return cls(AIPhase.ACTIVATING_SPECIAL, drawn_card=drawn_card)

    @classmethod
    def deciding_swap(cls, drawn_card: int) -> "AIState":
        return cls(AIPhase.DECIDING_SWAP, drawn_card=drawn_card)

    @classmethod
    def executing_swap(cls, drawn_card: int, target_card: Optional[int]) -> "AIState":
        return cls(AIPhase.EXECUTING_SWAP, drawn_card=drawn_card, target_card=target_card)


class AITurnController:
    """
    Per-AI turn state machine.

    Owns the AI's turn state exclusively; shares the belief memory with the
    AIOpponent that observes the table.
    """

    def __init__(
        self,
        player_id: str,
        memory: AIMemory,
        think_delay: Optional[float] = None,
        swap_think_delay: Optional[float] = None,
    ) -> None:
        self.player_id = player_id
        self.memory = memory
        self.state = AIState.idle()
        self.think_delay = think_delay if think_delay is not None else config.ai_timing.think_delay
        self.swap_think_delay = (
            swap_think_delay if swap_think_delay is not None else config.ai_timing.swap_think_delay
        )
        self.log = get_logger(__name__).with_context(player_id=player_id)

        self._handlers: dict[AIPhase, Callable[[Table, float], None]] = {
            AIPhase.IDLE: self._idle,
            AIPhase.THINKING: self._thinking,
            AIPhase.DECIDING_DRAW: self._deciding_draw,
            AIPhase.EXECUTING_DRAW: self._executing_draw,
            AIPhase.THINKING_SWAP: self._thinking_swap,
            AIPhase.ACTIVATING_SPECIAL: self._activating_special,
            AIPhase.DECIDING_SWAP: self._deciding_swap,
            AIPhase.EXECUTING_SWAP: self._executing_swap,
        }

    def tick(self, table: Table, delta: float) -> AIState:
        """
        Advance the turn by one frame.

        Off-turn (or outside play) the state is forced to IDLE and nothing
        else happens.

        Args:
            table: The shared table.
            delta: Seconds elapsed since the previous frame.

        Returns:
            The state after this tick.
        """
        if table.phase != TablePhase.PLAYING or table.turn.current_player != self.player_id:
            if self.state.phase != AIPhase.IDLE:
                self.log.info(
                    f"Turn ended mid-decision, dropping {self.state.phase.value}",
                    extra={"phase": self.state.phase.value},
                )
                self.state = AIState.idle()
            return self.state

        with table.exclusive():
            self._handlers[self.state.phase](table, delta)
        return self.state

    # -------------------------------------------------------------------------
    # Phase handlers
    # -------------------------------------------------------------------------

    def _idle(self, table: Table, delta: float) -> None:
        if not self.memory.initial_cards:
            hand = table.hand_of(self.player_id)
            if hand is None:
                return
            self.memory.record_initial_cards(hand, table.cards)

        self.state = AIState.thinking(self.think_delay)
        self.log.info("AI turn started, thinking...")

    def _thinking(self, table: Table, delta: float) -> None:
        timer = self.state.timer - delta
        if timer <= 0:
            self.state = AIState.deciding_draw()
            self.log.debug("AI deciding where to draw...")
        else:
            self.state = replace(self.state, timer=timer)

    def _deciding_draw(self, table: Table, delta: float) -> None:
        hand = table.hand_of(self.player_id)
        if hand is None:
            return

        worst = KnockAI.worst_known_card(self.memory, hand)
        worst_value = worst[1] if worst else None

        top = table.graveyard_top()
        top_value = top.value if top is not None and top.face_up else None

        source = KnockAI.choose_draw_source(self.memory, top_value, worst_value)
        if source == DrawSource.GRAVEYARD:
            table.draw_from_graveyard(self.player_id)
        else:
            table.draw_from_deck(self.player_id)
        self.log.info(f"AI drawing from {source.value}")

        self.state = AIState.executing_draw()

    def _executing_draw(self, table: Table, delta: float) -> None:
        drawn = table.find_drawn_card(self.player_id)
        if drawn is None:
            self.log.debug("Drawn card not found yet, waiting")
            return

        self.state = AIState.thinking_swap(self.swap_think_delay, drawn.id)
        self.log.info(f"AI drew card with value {drawn.value}")

    def _thinking_swap(self, table: Table, delta: float) -> None:
        timer = self.state.timer - delta
        if timer > 0:
            self.state = replace(self.state, timer=timer)
            return

        card = table.cards.get(self.state.drawn_card)
        if card is None:
            return

        effect = get_special_effect(card.value, card.from_deck)
        if effect is not None:
            self.state = AIState.activating_special(card.id)
            self.log.info(f"AI activated special card: {effect.value}")
            return

        self.state = AIState.deciding_swap(card.id)
        self.log.debug("AI deciding what to do with card")

    def _activating_special(self, table: Table, delta: float) -> None:
        card = table.cards.get(self.state.drawn_card)
        if card is None:
            return

        effect = get_special_effect(card.value, card.from_deck)
        opponent = table.opponent_of(self.player_id)

        if effect == SpecialEffect.SHUFFLE:
            if opponent is not None:
                table.request_special_effect(SpecialEffectRequest(
                    effect_type=SpecialEffect.SHUFFLE,
                    card_id=card.id,
                    player_id=self.player_id,
                    target_player=opponent.id,
                ))
                self.log.info("AI shuffled opponent's hand")

        elif effect == SpecialEffect.SWAP:
            if opponent is None:
                self.log.info("No opponent for swap effect, skipped")
            else:
                own_hand = table.hand_of(self.player_id)
                if own_hand is None:
                    return
                pair = KnockAI.select_swap_effect_cards(self.memory, own_hand, opponent.hand)
                if pair is None:
                    self.log.info("Swap effect has no resolvable cards, skipped")
                else:
                    target, own = pair
                    table.request_special_effect(SpecialEffectRequest(
                        effect_type=SpecialEffect.SWAP,
                        card_id=card.id,
                        player_id=self.player_id,
                        target_card=target,
                        own_card=own,
                    ))
                    self.log.info("AI will swap cards")

        elif effect == SpecialEffect.REVEAL:
            table.request_special_effect(SpecialEffectRequest(
                effect_type=SpecialEffect.REVEAL,
                card_id=card.id,
                player_id=self.player_id,
            ))
            self.log.info("AI revealed a card")

        self.state = AIState.deciding_swap(card.id)

    def _deciding_swap(self, table: Table, delta: float) -> None:
        card = table.cards.get(self.state.drawn_card)
        hand = table.hand_of(self.player_id)
        if card is None or hand is None:
            return

        target = None
        if KnockAI.should_swap(card.value, self.memory, hand):
            target = KnockAI.choose_swap_target(card.value, self.memory, hand)

        self.state = AIState.executing_swap(card.id, target)

    def _executing_swap(self, table: Table, delta: float) -> None:
        drawn_id = self.state.drawn_card
        target = self.state.target_card

        if target is not None:
            replaced = table.swap_drawn(self.player_id, target)
            if replaced is None:
                self.log.warning(f"Swap target {target} no longer in hand, re-deciding")
                self.state = AIState.deciding_swap(drawn_id)
                return
            self.memory.remember_own(drawn_id, table.cards[drawn_id].value)
            self.log.info(f"AI swapped in {table.cards[drawn_id].value}, replaced {replaced.value}")
        else:
            if not table.discard_drawn(self.player_id):
                self.log.warning("Drawn card missing, cannot discard yet")
                return
            self.log.info(f"AI discarded {table.cards[drawn_id].value}")

        self.memory.turns_played += 1
        self.log.info(f"AI turn count: {self.memory.turns_played}")

        own_hand = table.hand_of(self.player_id)
        opponent = table.opponent_of(self.player_id)
        if own_hand is not None and opponent is not None:
            should_end = KnockAI.should_end_round(
                self.memory, own_hand, opponent.hand, self.memory.turns_played
            )
            own_score = estimate_own_score(self.memory, own_hand)
            opponent_score = estimate_opponent_score(self.memory, opponent.hand)
            self.log.info(
                f"AI end round check - Own: {own_score:.1f}, Opponent: {opponent_score:.1f}, "
                f"Margin: {own_score - opponent_score:.1f}"
            )
            if should_end:
                table.request_round_end(self.player_id)
                self.log.info("AI decided to end the round!")

        # Round end is a request to the table; this turn is done either way
        self.state = AIState.idle()


class AIOpponent:
    """
    One AI player: its belief memory plus its turn controller.

    update() runs the observe step before the controller step, so each
    decision sees everything visible in that frame.
    """

    def __init__(
        self,
        player_id: str,
        memory: Optional[AIMemory] = None,
        think_delay: Optional[float] = None,
        swap_think_delay: Optional[float] = None,
    ) -> None:
        self.player_id = player_id
        self.memory = memory if memory is not None else AIMemory()
        self.controller = AITurnController(
            player_id, self.memory, think_delay=think_delay, swap_think_delay=swap_think_delay
        )

    @property
    def state(self) -> AIState:
        return self.controller.state

    def start_round(self, table: Table) -> None:
        """Reset memory and turn state for a freshly dealt round."""
        hand = table.hand_of(self.player_id)
        self.memory = AIMemory.initialize(hand, table.cards) if hand is not None else AIMemory()
        self.controller.memory = self.memory
        self.controller.state = AIState.idle()

    def observe(self, table: Table) -> None:
        hand = table.hand_of(self.player_id)
        if hand is None:
            return
        self.memory.observe(hand, table.cards, self.player_id)

    def update(self, table: Table, delta: float) -> AIState:
        """Run one frame: observe, then advance the turn."""
        self.observe(table)
        return self.controller.tick(table, delta)
