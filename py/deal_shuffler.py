import logging
import random

from klondike import Card, Deal, InvalidDeckError, Rank, RoomVariant, Suit

logger = logging.getLogger(__name__)

DECK_SIZE = 52
TABLEAU_COLUMNS = 7
STOCK_SIZE = DECK_SIZE - TABLEAU_COLUMNS * (TABLEAU_COLUMNS + 1) // 2


def create_deck() -> list[Card]:
    return [Card(suit, rank) for suit in Suit for rank in Rank]


def validate_deck(cards: list[Card]) -> None:
    unique = set(cards)
    if len(cards) != DECK_SIZE or len(unique) != DECK_SIZE:
        msg = f"Deck holds {len(cards)} cards ({len(unique)} unique), expected {DECK_SIZE} unique cards"
        raise InvalidDeckError(msg)


def shuffle_deck(deck: list[Card], seed: int | None = None, *, rng: random.Random | None = None) -> list[Card]:
    """
    Return a uniformly shuffled face-down copy of ``deck``.

    Args:
        deck: The 52 cards to shuffle; not modified
        seed: Seed for a private random source, for reproducible shuffles
        rng: Random source to draw from instead, e.g. one seed stream shared by many shuffles

    Returns:
        A new list holding the same cards in random order
    """
    validate_deck(deck)
    if rng is None:
        rng = random.Random(seed)
    shuffled = [card.copy(face_up=False) for card in deck]
    rng.shuffle(shuffled)
    return shuffled


def deal_from_deck(shuffled: list[Card], room_variant: RoomVariant = RoomVariant.STANDARD) -> Deal:
    """Deal columns 1..7 with 1..7 cards in deck order; the remaining 24 cards form the stock."""
    validate_deck(shuffled)
    hand = list(shuffled)
    columns: list[list[Card]] = []
    for idx in range(TABLEAU_COLUMNS):
        columns.append(hand[:idx + 1])
        hand = hand[idx + 1:]
    return Deal.from_columns(columns, hand, room_variant=room_variant)


def deal_easy_layout(rng: random.Random, room_variant: RoomVariant = RoomVariant.STANDARD) -> Deal:
    """
    Deal the friendly first-game layout.

    The four Aces are the face-up cards of columns 1-4, columns 5-7 usually
    show a Two, and the Twos left for the stock come up within the first
    draws.
    """
    deck = create_deck()
    aces = [card for card in deck if card.rank == Rank.ACE]
    twos = [card for card in deck if card.rank == Rank.TWO]
    others = [card for card in deck if card.rank not in (Rank.ACE, Rank.TWO)]
    rng.shuffle(aces)
    rng.shuffle(twos)
    rng.shuffle(others)

    columns: list[list[Card]] = [[] for _ in range(TABLEAU_COLUMNS)]
    for col, column in enumerate(columns):
        for _ in range(col):
            column.append(others.pop() if others else twos.pop())
        if col < len(Suit):
            column.append(aces[col])
        elif twos and rng.random() > 0.3:  # noqa: PLR2004
            column.append(twos.pop())
        else:
            column.append(others.pop())

    # Top of the stock is the last card; spread the Twos through the first draws.
    draw_order: list[Card] = []
    while twos or others:
        if twos and (len(draw_order) % 4 == 0 or not others):
            draw_order.append(twos.pop())
        else:
            draw_order.append(others.pop())
    draw_order.reverse()

    logger.debug(f"Dealt easy layout with tops {[column[-1] for column in columns]}")
    return Deal.from_columns(columns, draw_order, room_variant=room_variant)


def deal_unsolvable_layout(rng: random.Random, room_variant: RoomVariant = RoomVariant.STANDARD) -> Deal:
    """
    Deal a hostile debugging layout.

    Each of columns 4-7 hides an Ace at its bottom under a King, a Queen and a
    Jack, so no Ace starts face up and each one waits on court cards that
    only an empty column can take. The Twos sit at the bottom of the stock.
    Most of these deals cannot be won, though nothing guarantees it.
    """
    deck = create_deck()
    aces = [card for card in deck if card.rank == Rank.ACE]
    twos = [card for card in deck if card.rank == Rank.TWO]
    court = {
        rank: [card for card in deck if card.rank == rank]
        for rank in (Rank.KING, Rank.QUEEN, Rank.JACK)
    }
    others = [card for card in deck if card.rank not in (Rank.ACE, Rank.TWO) and card.rank not in court]
    for cards in (aces, twos, *court.values(), others):
        rng.shuffle(cards)

    columns: list[list[Card]] = [[] for _ in range(TABLEAU_COLUMNS)]
    buried = TABLEAU_COLUMNS - len(aces)
    for col, column in enumerate(columns):
        if col >= buried:
            column.append(aces.pop())
            column.extend(cards.pop() for cards in court.values())
        while len(column) < col + 1:
            column.append(others.pop())

    # Bottom of the stock first, so the Twos are drawn last.
    stock = twos + others
    logger.debug(f"Dealt unsolvable layout with {len(stock)} stock cards")
    return Deal.from_columns(columns, stock, room_variant=room_variant)
