"""
Knock Golf AI Simulation Runner

Runs headless games of the AI opponent against a scripted house player.
No rendering or input needed - the AI is driven frame by frame exactly as
an engine would drive it.

Usage:
    python simulate.py [num_games] [seed]
    python simulate.py detail [seed]

Examples:
    python simulate.py 50          # Run 50 games
    python simulate.py 50 1234     # Run 50 games from a fixed seed
    python simulate.py detail 7    # Narrate a single game
"""

import random
import sys
from collections import Counter
from typing import Callable, Optional

from config import config
from constants import MEAN_CARD_VALUE
from controller import AIOpponent
from game import Card, Player, Table, TablePhase
from logging_config import setup_logging, table_context
from models.events import EventType, GameEvent

AI_ID = "ai"
HOUSE_ID = "house"


class HousePlayer:
    """
    Scripted baseline opponent for the AI.

    Remembers its two peeked cards and anything it has placed face up,
    takes a low discard when it beats its worst known card, keeps low
    draws, and ends the round once its estimate is low enough. Never
    triggers special effects.
    """

    def __init__(self, player_id: str, knock_after: int = 6, knock_score: float = 16.0) -> None:
        self.player_id = player_id
        self.knock_after = knock_after
        self.knock_score = knock_score
        self.known: dict[int, int] = {}
        self.turns_played = 0

    def start_round(self, table: Table) -> None:
        hand = table.hand_of(self.player_id)
        peeked = hand.cards[:config.table.initial_peeks]
        self.known = {card_id: table.cards[card_id].value for card_id in peeked}
        self.turns_played = 0

    def _worst_known(self, table: Table) -> Optional[tuple[int, int]]:
        worst = None
        for card_id in table.hand_of(self.player_id):
            value = self.known.get(card_id)
            if value is not None and (worst is None or value > worst[1]):
                worst = (card_id, value)
        return worst

    def estimate(self, table: Table) -> float:
        return sum(
            self.known.get(card_id, MEAN_CARD_VALUE)
            for card_id in table.hand_of(self.player_id)
        )

    def play_turn(self, table: Table) -> str:
        """Play one whole turn. Returns the action taken."""
        hand = table.hand_of(self.player_id)
        for card_id in hand:
            card = table.cards[card_id]
            if card.face_up:
                self.known[card_id] = card.value

        worst = self._worst_known(table)
        top = table.graveyard_top()

        drawn: Optional[Card] = None
        action = "draw_deck"
        if top is not None and worst is not None and top.value < worst[1] and top.value <= 5:
            drawn = table.draw_from_graveyard(self.player_id)
            action = "take_discard"
        if drawn is None:
            drawn = table.draw_from_deck(self.player_id)
            action = "draw_deck"
        if drawn is None:
            return "no_card"

        target = None
        if worst is not None and drawn.value < worst[1]:
            target = worst[0]
        elif drawn.value <= 5:
            target = next((c for c in hand if c not in self.known), None)

        if target is not None:
            table.swap_drawn(self.player_id, target)
            self.known[drawn.id] = drawn.value
            action += "+swap"
        else:
            table.discard_drawn(self.player_id)
            action += "+discard"

        self.turns_played += 1
        if self.turns_played >= self.knock_after and self.estimate(table) <= self.knock_score:
            if table.request_round_end(self.player_id):
                action += "+end_round"
        return action


class SimulationStats:
    """
    Aggregates over many simulated rounds.

    Table events feed the AI behaviour counters through record_event, which
    is installed as the table's event emitter.
    """

    def __init__(self):
        self.games_played = 0
        self.total_turns = 0
        self.exhausted_rounds = 0
        self.wins: Counter = Counter()
        self.scores: dict[str, list[int]] = {}
        self.actions: dict[str, Counter] = {}

        self.ai_draw_sources: Counter = Counter()
        self.ai_specials: Counter = Counter()
        self.round_enders: Counter = Counter()

    def record_event(self, event: GameEvent) -> None:
        if event.event_type == EventType.ROUND_END_REQUESTED:
            self.round_enders[event.player_id] += 1
        elif event.player_id != AI_ID:
            return
        elif event.event_type == EventType.CARD_DRAWN:
            self.ai_draw_sources[event.data.get("source")] += 1
        elif event.event_type == EventType.SPECIAL_EFFECT_REQUESTED:
            self.ai_specials[event.data.get("effect_type")] += 1

    def record_game(self, table: Table) -> None:
        self.games_played += 1
        for player in table.players:
            self.scores.setdefault(player.name, []).append(player.score)
        for winner_id in table.winners:
            self.wins[table.get_player(winner_id).name] += 1

    def record_turn(self, player_name: str, action: str) -> None:
        self.total_turns += 1
        self.actions.setdefault(player_name, Counter())[action] += 1

    def average_score(self, player_name: str) -> float:
        scores = self.scores.get(player_name) or [0]
        return sum(scores) / len(scores)

    def report(self) -> str:
        games = max(1, self.games_played)
        lines = [
            "=" * 50,
            f"KNOCK GOLF: {self.games_played} rounds, AI vs House",
            "=" * 50,
            f"Turns per round: {self.total_turns / games:.1f}",
            f"Rounds cut off (no cards / turn cap): {self.exhausted_rounds}",
            "",
            "Wins (ties count for both) and average score:",
        ]
        for name in sorted(self.scores, key=self.average_score):
            lines.append(
                f"  {name:6} {self.wins[name]:4} wins ({self.wins[name] / games:6.1%})"
                f"   avg {self.average_score(name):5.1f}"
            )

        for name, counts in sorted(self.actions.items()):
            total = sum(counts.values())
            lines.append("")
            lines.append(f"{name} actions:")
            for action, n in counts.most_common():
                lines.append(f"  {action:28} {n:5} ({n / total:6.1%})")

        lines.append("")
        lines.append("AI draws: " + ", ".join(f"{k}={v}" for k, v in sorted(self.ai_draw_sources.items())))
        lines.append("AI specials: " + ", ".join(f"{k}={v}" for k, v in sorted(self.ai_specials.items())))
        lines.append("Rounds ended by: " + ", ".join(f"{k}={v}" for k, v in sorted(self.round_enders.items())))
        return "\n".join(lines)


def create_table(emitter: Optional[Callable[[GameEvent], None]] = None) -> Table:
    """Seat the house player and the AI at a fresh table."""
    table = Table()
    table.add_player(Player(id=HOUSE_ID, name="House"))
    table.add_player(Player(id=AI_ID, name="AI", is_ai=True))
    if emitter is not None:
        table.set_event_emitter(emitter)
    return table


def run_round(
    table: Table,
    ai: AIOpponent,
    house: HousePlayer,
    stats: SimulationStats,
    seed: Optional[int] = None,
    first_player: Optional[str] = None,
    delta: Optional[float] = None,
    max_turns: Optional[int] = None,
) -> dict[str, int]:
    """
    Play one round to completion.

    Each frame: the house plays a whole turn if it is its turn, the AI
    observes and advances, then any published special effect is resolved.

    Returns:
        Mapping of player id to round score.
    """
    delta = delta if delta is not None else config.TICK_SECONDS
    max_turns = max_turns if max_turns is not None else config.table.max_turns_per_round

    table.start_round(seed=seed, first_player=first_player)
    ai.start_round(table)
    house.start_round(table)

    max_frames = max_turns * 1000
    frames = 0
    with table_context(table.game_id):
        while table.phase == TablePhase.PLAYING and frames < max_frames:
            if table.turn.current_player == house.player_id:
                action = house.play_turn(table)
                stats.record_turn("House", action)

            turns_before = ai.memory.turns_played
            ai.update(table, delta)
            if ai.memory.turns_played > turns_before:
                stats.record_turn("AI", "turn")

            table.resolve_special_effect()

            if house.turns_played + ai.memory.turns_played >= max_turns:
                break
            frames += 1

        if table.phase == TablePhase.PLAYING:
            stats.exhausted_rounds += 1
            table.end_round()

    return {player.id: player.score for player in table.players}


def run_simulation(num_games: int = 10, seed: Optional[int] = None) -> SimulationStats:
    """Run many single-round games and print a report."""
    rng = random.Random(seed)
    stats = SimulationStats()

    print(f"Running {num_games} games (AI vs House)...")

    for game_num in range(num_games):
        table = create_table(emitter=stats.record_event)
        ai = AIOpponent(AI_ID)
        house = HousePlayer(HOUSE_ID)

        first = AI_ID if game_num % 2 else HOUSE_ID
        run_round(table, ai, house, stats, seed=rng.randint(0, 2**31 - 1), first_player=first)
        stats.record_game(table)

        if (game_num + 1) % 10 == 0:
            print(f"  Completed {game_num + 1}/{num_games} games")

    print()
    print(stats.report())
    return stats


def run_detailed_game(seed: Optional[int] = None) -> Table:
    """Run one game, printing every table event as it happens."""

    def narrate(event: GameEvent) -> None:
        stats.record_event(event)
        print(f"  {event.describe()}")

    stats = SimulationStats()
    table = create_table(emitter=narrate)
    ai = AIOpponent(AI_ID)
    house = HousePlayer(HOUSE_ID)

    print("=" * 50)
    print("DETAILED GAME: AI vs House")
    print("=" * 50)

    run_round(table, ai, house, stats, seed=seed)

    print("\n" + "=" * 50)
    print("FINAL SCORES")
    print("=" * 50)
    for player in sorted(table.players, key=lambda p: p.score):
        print(f"  {player.name}: {player.score} points")
        print(f"    Cards: {table.hand_values(player.id)}")

    print(f"\nAI turns: {ai.memory.turns_played}, known own cards: {len(ai.memory.known_cards)}, "
          f"known opponent cards: {len(ai.memory.opponent_known_cards)}")
    winners = [table.get_player(pid).name for pid in table.winners]
    print(f"Winner: {' & '.join(winners)}!")
    return table


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "detail":
        setup_logging(level=config.LOG_LEVEL, environment=config.ENVIRONMENT)
        game_seed = int(sys.argv[2]) if len(sys.argv) > 2 else None
        run_detailed_game(game_seed)
    else:
        setup_logging(level="WARNING", environment=config.ENVIRONMENT)
        num_games = int(sys.argv[1]) if len(sys.argv) > 1 else 10
        base_seed = int(sys.argv[2]) if len(sys.argv) > 2 else None
        run_simulation(num_games, base_seed)
