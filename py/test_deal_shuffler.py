import random
from collections import Counter

import pytest
from deal_shuffler import (
    DECK_SIZE,
    STOCK_SIZE,
    create_deck,
    deal_easy_layout,
    deal_from_deck,
    deal_unsolvable_layout,
    shuffle_deck,
    validate_deck,
)
from klondike import Card, InvalidDeckError, Rank, RoomVariant, Suit


def test_create_deck():
    deck = create_deck()

    assert len(deck) == DECK_SIZE
    assert len(set(deck)) == DECK_SIZE
    assert not any(card.face_up for card in deck)
    assert Counter(card.suit for card in deck) == {suit: 13 for suit in Suit}


def test_shuffle_keeps_cards_and_input():
    deck = create_deck()
    original = list(deck)

    shuffled = shuffle_deck(deck, seed=3)

    assert deck == original
    assert sorted(shuffled, key=lambda card: card.card_id) == sorted(deck, key=lambda card: card.card_id)
    assert shuffled != deck


def test_shuffle_is_deterministic_for_a_seed():
    first = shuffle_deck(create_deck(), seed=42)
    second = shuffle_deck(create_deck(), seed=42)
    other = shuffle_deck(create_deck(), seed=43)

    assert first == second
    assert first != other


def test_shuffle_uniformity():
    deck = create_deck()
    rng = random.Random(1234)
    runs = 10_000
    positions = {card: [0] * DECK_SIZE for card in deck}
    for _ in range(runs):
        for position, card in enumerate(shuffle_deck(deck, rng=rng)):
            positions[card][position] += 1

    expected = runs / DECK_SIZE
    chi_squares = [
        sum((count - expected) ** 2 / expected for count in counts)
        for counts in positions.values()
    ]

    # Each statistic has 51 degrees of freedom
    mean_chi_square = sum(chi_squares) / len(chi_squares)
    assert 44 < mean_chi_square < 58
    assert max(chi_squares) < 110


@pytest.mark.parametrize(
    "cards",
    [
        [],
        create_deck()[:-1],
        create_deck()[:-1] + [Card(Suit.HEART, Rank.ACE)],
        create_deck() + [Card(Suit.HEART, Rank.ACE)],
    ],
)
def test_invalid_decks_are_rejected(cards):
    with pytest.raises(InvalidDeckError):
        validate_deck(cards)
    with pytest.raises(InvalidDeckError):
        shuffle_deck(cards, seed=1)
    with pytest.raises(ValueError):
        deal_from_deck(cards)


def test_deal_partition_and_shape():
    shuffled = shuffle_deck(create_deck(), seed=8)

    deal = deal_from_deck(shuffled, RoomVariant.PREMIUM)

    deal.validate_shape()
    assert deal.room_variant == RoomVariant.PREMIUM
    assert [len(column) for column in deal.tableau] == [1, 2, 3, 4, 5, 6, 7]
    assert len(deal.stock) == STOCK_SIZE == 24
    assert deal.all_cards() == shuffled
    for column in deal.tableau:
        assert column[-1].face_up
        assert not any(card.face_up for card in column[:-1])


def test_easy_layout():
    for seed in range(20):
        deal = deal_easy_layout(random.Random(seed))

        deal.validate_shape()
        tops = [column[-1] for column in deal.tableau]
        assert {card.rank for card in tops[:4]} == {Rank.ACE}
        # Twos not on the tableau come up within the first draws
        stock_twos = [idx for idx, card in enumerate(reversed(deal.stock)) if card.rank == Rank.TWO]
        assert all(idx < 16 for idx in stock_twos)


@pytest.mark.parametrize("seed", range(10))
def test_unsolvable_layout_buries_aces(seed):
    deal = deal_unsolvable_layout(random.Random(seed))

    deal.validate_shape()
    assert all(column[-1].rank != Rank.ACE for column in deal.tableau)
    aces = [(col, row) for col, column in enumerate(deal.tableau) for row, card in enumerate(column) if card.rank == Rank.ACE]
    assert sorted(aces) == [(3, 0), (4, 0), (5, 0), (6, 0)]
    for col, row in aces:
        assert not deal.tableau[col][row].face_up
        assert deal.tableau[col][row + 1].rank == Rank.KING
    # Twos are drawn last
    assert {card.rank for card in deal.stock[:4]} == {Rank.TWO}
