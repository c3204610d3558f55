"""
Tests for the headless simulation runner.

Frames are long (0.5s) so each game needs only a few hundred ticks.
"""

from config import config
from controller import AIOpponent
from game import PositionKind, TablePhase
from simulate import (
    AI_ID, HOUSE_ID, HousePlayer, SimulationStats,
    create_table, run_detailed_game, run_round, run_simulation,
)


def play_round(seed=3, first_player=HOUSE_ID):
    stats = SimulationStats()
    table = create_table(emitter=stats.record_event)
    ai = AIOpponent(AI_ID)
    house = HousePlayer(HOUSE_ID)
    scores = run_round(table, ai, house, stats, seed=seed, first_player=first_player, delta=0.5)
    return table, ai, stats, scores


class TestRunRound:

    def test_round_completes(self):
        table, _, _, scores = play_round()

        assert table.phase == TablePhase.ROUND_ENDED
        assert scores == {
            HOUSE_ID: sum(table.hand_values(HOUSE_ID)),
            AI_ID: sum(table.hand_values(AI_ID)),
        }

    def test_ai_takes_turns(self):
        _, ai, stats, _ = play_round(first_player=AI_ID)

        assert ai.memory.turns_played >= 1
        assert sum(stats.ai_draw_sources.values()) >= ai.memory.turns_played
        assert stats.actions["AI"]["turn"] == ai.memory.turns_played

    def test_turn_cap_ends_round(self):
        stats = SimulationStats()
        table = create_table()
        ai = AIOpponent(AI_ID)
        house = HousePlayer(HOUSE_ID, knock_after=1000)

        run_round(table, ai, house, stats, seed=5, delta=0.5, max_turns=4)

        assert table.phase == TablePhase.ROUND_ENDED

    def test_every_card_accounted_for(self):
        table, _, _, _ = play_round(seed=11)
        in_hands = sum(len(p.hand) for p in table.players)
        drawn = sum(1 for c in table.cards.values() if c.position.kind == PositionKind.DRAWN)
        assert in_hands + drawn + len(table.graveyard.cards) + table.deck.cards_remaining() == 48


class TestHousePlayer:

    def test_keeps_low_draw(self):
        table = create_table()
        table.start_round(seed=8, first_player=HOUSE_ID)
        house = HousePlayer(HOUSE_ID)
        house.start_round(table)

        table.graveyard.cards.clear()
        low = min(table.deck.cards, key=lambda c: table.cards[c].value)
        table.deck.cards.remove(low)
        table.deck.cards.insert(0, low)

        action = house.play_turn(table)

        assert action.startswith("draw_deck+swap")
        assert low in table.hand_of(HOUSE_ID)
        assert table.turn.current_player == AI_ID

    def test_peeks_configured_number_of_cards(self, monkeypatch):
        monkeypatch.setattr(config.table, "initial_peeks", 3)
        table = create_table()
        table.start_round(seed=8, first_player=HOUSE_ID)
        house = HousePlayer(HOUSE_ID)

        house.start_round(table)

        hand = table.hand_of(HOUSE_ID)
        assert list(house.known) == hand.cards[:3]
        assert all(house.known[c] == table.cards[c].value for c in hand.cards[:3])


class TestRunSimulation:

    def test_games_are_counted(self, capsys):
        stats = run_simulation(num_games=3, seed=1)

        assert stats.games_played == 3
        assert sum(len(s) for s in stats.scores.values()) == 6
        assert "AI vs House" in capsys.readouterr().out

    def test_detailed_game_narrates(self, capsys):
        table = run_detailed_game(seed=2)

        out = capsys.readouterr().out
        assert table.phase == TablePhase.ROUND_ENDED
        assert "round_started" in out
        assert "FINAL SCORES" in out
