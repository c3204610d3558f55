"""
Tests for AIMemory: the initial peek, per-frame observation, and cards
changing hands.
"""

from game import Card, CardPosition, Hand
from memory import AIMemory


AI_ID = "ai"
OPPONENT_ID = "opponent"


def make_cards(*specs):
    """
    Build a card table from (id, value, position, face_up) tuples.
    """
    return {
        card_id: Card(id=card_id, value=value, face_up=face_up, position=position)
        for card_id, value, position, face_up in specs
    }


def own(card_id, value, face_up=False):
    return (card_id, value, CardPosition.in_hand(AI_ID), face_up)


def theirs(card_id, value, face_up=False):
    return (card_id, value, CardPosition.in_hand(OPPONENT_ID), face_up)


def discarded(card_id, value):
    return (card_id, value, CardPosition.graveyard(), True)


class TestInitialize:

    def test_peeks_first_two_cards_face_down(self):
        cards = make_cards(own(0, 3), own(1, 9), own(2, 5), own(3, 1))
        memory = AIMemory.initialize(Hand(cards=[0, 1, 2, 3]), cards)

        assert memory.known_cards == {0: 3, 1: 9}
        assert memory.initial_cards == [(0, 3), (1, 9)]
        assert memory.seen_discards == []
        assert memory.opponent_known_cards == {}
        assert memory.turns_played == 0

    def test_short_hand(self):
        cards = make_cards(own(4, 7))
        memory = AIMemory.initialize(Hand(cards=[4]), cards)
        assert memory.initial_cards == [(4, 7)]

    def test_record_requires_face_up_by_default(self):
        cards = make_cards(own(0, 3, face_up=True), own(1, 9), own(2, 5))
        memory = AIMemory()

        recorded = memory.record_initial_cards(Hand(cards=[0, 1, 2]), cards)

        assert recorded == 1
        assert memory.initial_cards == [(0, 3)]
        assert memory.known_cards == {0: 3}


class TestObserve:

    def test_face_up_own_card_becomes_known(self):
        cards = make_cards(own(0, 3), own(1, 9, face_up=True))
        memory = AIMemory()
        memory.observe(Hand(cards=[0, 1]), cards, AI_ID)
        assert memory.known_cards == {1: 9}

    def test_graveyard_values_are_distinct(self):
        cards = make_cards(own(0, 3), discarded(10, 5), discarded(11, 5), discarded(12, 2))
        memory = AIMemory()

        memory.observe(Hand(cards=[0]), cards, AI_ID)
        memory.observe(Hand(cards=[0]), cards, AI_ID)

        assert sorted(memory.seen_discards) == [2, 5]

    def test_face_up_opponent_card_becomes_known(self):
        cards = make_cards(own(0, 3), theirs(20, 11, face_up=True), theirs(21, 4))
        memory = AIMemory()
        memory.observe(Hand(cards=[0]), cards, AI_ID)
        assert memory.opponent_known_cards == {20: 11}

    def test_deck_and_drawn_cards_are_ignored(self):
        cards = make_cards(
            own(0, 3),
            (30, 8, CardPosition.deck(), False),
            (31, 6, CardPosition.drawn_by(OPPONENT_ID), True),
        )
        memory = AIMemory()
        memory.observe(Hand(cards=[0]), cards, AI_ID)
        assert memory.accounted_count == 0

    def test_unknown_ids_in_hand_are_skipped(self):
        memory = AIMemory()
        memory.observe(Hand(cards=[0, 99]), make_cards(own(0, 3, face_up=True)), AI_ID)
        assert memory.known_cards == {0: 3}


class TestCardsChangingHands:

    def test_own_known_card_given_away_moves_to_opponent(self):
        memory = AIMemory(known_cards={0: 9, 1: 2})
        cards = make_cards(theirs(0, 9), own(1, 2), own(20, 12, face_up=True))

        memory.observe(Hand(cards=[20, 1]), cards, AI_ID)

        assert memory.known_cards == {1: 2, 20: 12}
        assert memory.opponent_known_cards == {0: 9}

    def test_opponent_known_card_taken_moves_to_own(self):
        memory = AIMemory(opponent_known_cards={20: 12})
        cards = make_cards(own(20, 12))

        memory.observe(Hand(cards=[20]), cards, AI_ID)

        assert memory.known_cards == {20: 12}
        assert memory.opponent_known_cards == {}

    def test_card_recorded_in_one_map_only(self):
        memory = AIMemory()
        memory.remember_own(5, 7)
        memory.remember_opponent(5, 7)
        assert memory.known_cards == {}
        assert memory.opponent_known_cards == {5: 7}

        memory.remember_own(5, 7)
        assert memory.known_cards == {5: 7}
        assert memory.opponent_known_cards == {}


class TestAccounting:

    def test_counts_every_pool(self):
        memory = AIMemory(
            known_cards={0: 3, 1: 4},
            seen_discards=[12],
            opponent_known_cards={20: 1},
        )
        assert memory.accounted_count == 4
        assert memory.accounted_points == 20
