import copy
from enum import Enum
from dataclasses import dataclass
from typing import override, Any


class IllegalMoveError(ValueError):
    """Raised when a move violates placement rules or its source card is not accessible."""


class InvalidDeckError(ValueError):
    """Raised when a deck or deal does not hold exactly the 52 unique cards."""


class Color(str, Enum):
    RED = "RED"
    BLACK = "BLACK"


class Suit(str, Enum):
    HEART = "HEART"
    DIAMOND = "DIAMOND"
    CLUB = "CLUB"
    SPADE = "SPADE"

    @property
    def color(self) -> Color:
        if self == Suit.HEART or self == Suit.DIAMOND:
            return Color.RED
        return Color.BLACK

    @override
    def __str__(self) -> str:
        return {
            Suit.HEART: "♥",
            Suit.DIAMOND: "♦",
            Suit.CLUB: "♣",
            Suit.SPADE: "♠",
        }[self]


class Rank(str, Enum):
    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    @property
    def int_repr(self) -> int:
        return _RANK_VALUES[self]

    @staticmethod
    def from_int(value: int) -> "Rank":
        for rank, rank_value in _RANK_VALUES.items():
            if rank_value == value:
                return rank
        msg = f"Invalid rank value {value}"
        raise ValueError(msg)

    @override
    def __str__(self) -> str:
        return self.value

    def __int__(self) -> int:
        return self.int_repr


_RANK_VALUES = {rank: idx + 1 for idx, rank in enumerate(Rank)}


class EmptyColumnRule(str, Enum):
    ANY = "ANY"
    KING_ONLY = "KING_ONLY"


class RoomVariant(str, Enum):
    STANDARD = "standard"
    PREMIUM = "premium"
    LUXURY = "luxury"


@dataclass
class Card:
    suit: Suit
    rank: Rank
    face_up: bool = False

    @property
    def color(self) -> Color:
        return self.suit.color

    @property
    def card_id(self) -> str:
        return f"{self.suit.value}-{self.rank.value}"

    def copy(self, *, face_up: bool | None = None) -> "Card":
        return Card(self.suit, self.rank, self.face_up if face_up is None else face_up)

    def as_jsonable_dict(self) -> dict:
        return {
            "suit": self.suit.value,
            "rank": self.rank.value,
            "color": self.color.value,
            "face_up": self.face_up,
        }

    @override
    def __str__(self) -> str:
        return f"{self.rank} {self.suit}"

    @override
    def __repr__(self) -> str:
        return f"{self.rank} {self.suit}{'' if self.face_up else ' (down)'}"

    @override
    def __eq__(self, other: Any) -> bool:  # pyright: ignore [reportAny]
        if not isinstance(other, Card):
            return False
        return self.suit == other.suit and self.rank == other.rank

    @override
    def __hash__(self) -> int:
        return hash((self.suit, self.rank))


type HidableCard = Card | None


def can_place_on_tableau(
    card: Card,
    target_top: HidableCard,
    *,
    empty_column_rule: EmptyColumnRule = EmptyColumnRule.ANY,
) -> bool:
    if target_top is None:
        return empty_column_rule == EmptyColumnRule.ANY or card.rank == Rank.KING
    return card.color != target_top.color and int(card.rank) == int(target_top.rank) - 1


def can_place_on_foundation(card: Card, foundation_top: HidableCard) -> bool:
    if foundation_top is None:
        return card.rank == Rank.ACE
    return card.suit == foundation_top.suit and int(card.rank) == int(foundation_top.rank) + 1


def is_valid_run(cards: list[Card]) -> bool:
    if not cards or not all(card.face_up for card in cards):
        return False
    return all(
        can_place_on_tableau(upper, lower)
        for lower, upper in zip(cards, cards[1:])
    )


class Stack:
    def __init__(self, initial_cards: list[Card] | None = None):
        self.cards = list(initial_cards or [])

    def as_jsonable_dict(self) -> dict:
        return {
            "cards": [card.as_jsonable_dict() for card in self.cards],
        }

    @override
    def __str__(self) -> str:
        return f"Stack: {self.cards}"

    def add_to_top(self, card: Card) -> None:
        self.cards.append(card)

    def add_multiple_to_top(self, cards: list[Card]) -> None:
        self.cards.extend(cards)

    def inspect_top(self) -> HidableCard:
        if len(self.cards) == 0:
            return None
        return self.cards[-1]

    def inspect_all(self) -> list[Card]:
        return self.cards.copy()

    def get_from_top(self) -> HidableCard:
        if len(self.cards) == 0:
            return None
        return self.cards.pop()

    def get_all(self) -> list[Card]:
        cards = self.cards
        self.cards = []
        return cards

    def reverse(self) -> None:
        self.cards.reverse()

    def __len__(self) -> int:
        return len(self.cards)


class TableauColumn:
    """A tableau column: face-down cards at the bottom, a face-up run on top.

    Rows are numbered from the bottom of the column, face-down rows first.
    """

    def __init__(self) -> None:
        self.hidden = Stack()
        self.visible = Stack()

    def as_jsonable_dict(self) -> dict:
        return {
            "hidden": self.hidden.as_jsonable_dict(),
            "visible": self.visible.as_jsonable_dict(),
        }

    @override
    def __str__(self) -> str:
        return f"TableauColumn: {self.hidden} {self.visible}"

    def add_to_top(self, card: Card, *, hide: bool = False) -> None:
        card.face_up = not hide
        if hide:
            self.hidden.add_to_top(card)
        else:
            self.visible.add_to_top(card)

    def add_multiple_to_top(self, cards: list[Card]) -> None:
        for card in cards:
            card.face_up = True
        self.visible.add_multiple_to_top(cards)

    def inspect_top(self) -> HidableCard:
        return self.visible.inspect_top()

    def inspect_all(self) -> list[Card]:
        return self.hidden.inspect_all() + self.visible.inspect_all()

    def card_at(self, row: int) -> Card:
        if row < 0 or row >= len(self):
            msg = f"Row {row} out of range for column of {len(self)} cards"
            raise IllegalMoveError(msg)
        if row < self.hidden_len():
            return self.hidden.cards[row]
        return self.visible.cards[row - self.hidden_len()]

    def first_visible_row(self) -> int:
        return self.hidden_len()

    def take_from(self, row: int) -> tuple[list[Card], bool]:
        """Remove the face-up cards from ``row`` to the top, turning up the new top card."""
        start = row - self.hidden_len()
        if start < 0 or start >= self.visible_len():
            msg = f"Row {row} is not a face-up card"
            raise IllegalMoveError(msg)
        taken = self.visible.cards[start:]
        self.visible.cards = self.visible.cards[:start]
        turned_up = False
        if self.visible_len() == 0 and self.hidden_len() > 0:
            from_top = self.hidden.get_from_top()
            assert from_top is not None  # noqa: S101
            from_top.face_up = True
            self.visible.add_to_top(from_top)
            turned_up = True
        return taken, turned_up

    def hide_bottom_visible(self) -> None:
        if self.visible_len() == 0:
            return
        card = self.visible.cards.pop(0)
        card.face_up = False
        self.hidden.add_to_top(card)

    def movable_run_start(self) -> int | None:
        """Row of the deepest card whose run up to the top can be moved as one."""
        if self.visible_len() == 0:
            return None
        cards = self.visible.cards
        start = len(cards) - 1
        while start > 0 and can_place_on_tableau(cards[start], cards[start - 1]):
            start -= 1
        return self.hidden_len() + start

    def __len__(self) -> int:
        return self.visible_len() + self.hidden_len()

    def visible_len(self) -> int:
        return len(self.visible)

    def hidden_len(self) -> int:
        return len(self.hidden)


def movable_run(column: TableauColumn) -> list[Card]:
    start = column.movable_run_start()
    if start is None:
        return []
    return column.inspect_all()[start:]


class Location(str, Enum):
    STOCK = "STOC"
    WASTE = "WAST"
    FOUNDATION_1 = "FOUN_1"
    FOUNDATION_2 = "FOUN_2"
    FOUNDATION_3 = "FOUN_3"
    FOUNDATION_4 = "FOUN_4"
    TABLEAU_1 = "TABL_1"
    TABLEAU_2 = "TABL_2"
    TABLEAU_3 = "TABL_3"
    TABLEAU_4 = "TABL_4"
    TABLEAU_5 = "TABL_5"
    TABLEAU_6 = "TABL_6"
    TABLEAU_7 = "TABL_7"

    @staticmethod
    def tableaus() -> tuple["Location", ...]:
        return _TABLEAUS

    @staticmethod
    def foundations() -> tuple["Location", ...]:
        return _FOUNDATIONS

    @staticmethod
    def tableau(idx: int) -> "Location":
        return _TABLEAUS[idx]

    @staticmethod
    def foundation(idx: int) -> "Location":
        return _FOUNDATIONS[idx]


_TABLEAUS = tuple(loc for loc in Location if loc.value.startswith("TABL"))
_FOUNDATIONS = tuple(loc for loc in Location if loc.value.startswith("FOUN"))


class MoveKind(str, Enum):
    TABLEAU_TO_TABLEAU = "TABLEAU_TO_TABLEAU"
    TABLEAU_TO_FOUNDATION = "TABLEAU_TO_FOUNDATION"
    WASTE_TO_TABLEAU = "WASTE_TO_TABLEAU"
    WASTE_TO_FOUNDATION = "WASTE_TO_FOUNDATION"
    STOCK_TO_WASTE = "STOCK_TO_WASTE"
    WASTE_TO_STOCK = "WASTE_TO_STOCK"
    FOUNDATION_TO_TABLEAU = "FOUNDATION_TO_TABLEAU"


@dataclass(unsafe_hash=True, eq=True)
class Move:
    from_location: Location
    to_location: Location
    card_index: int = 0

    @property
    def kind(self) -> MoveKind:
        src, dst = self.from_location, self.to_location
        if src == Location.STOCK and dst == Location.WASTE:
            return MoveKind.STOCK_TO_WASTE
        if src == Location.WASTE and dst == Location.STOCK:
            return MoveKind.WASTE_TO_STOCK
        if src == Location.WASTE and dst in _FOUNDATIONS:
            return MoveKind.WASTE_TO_FOUNDATION
        if src == Location.WASTE and dst in _TABLEAUS:
            return MoveKind.WASTE_TO_TABLEAU
        if src in _TABLEAUS and dst in _FOUNDATIONS:
            return MoveKind.TABLEAU_TO_FOUNDATION
        if src in _TABLEAUS and dst in _TABLEAUS and src != dst:
            return MoveKind.TABLEAU_TO_TABLEAU
        if src in _FOUNDATIONS and dst in _TABLEAUS:
            return MoveKind.FOUNDATION_TO_TABLEAU
        msg = f"No move from {src.value} to {dst.value}"
        raise IllegalMoveError(msg)

    def as_jsonable_dict(self) -> dict:
        return {
            "from_location": self.from_location.value,
            "to_location": self.to_location.value,
            "card_index": self.card_index,
        }

    @override
    def __str__(self) -> str:
        return f"{self.from_location.value} ({self.card_index}) -> {self.to_location.value}"

    @override
    def __repr__(self) -> str:
        return self.__str__()


@dataclass(eq=True)
class HistoryEntry:
    move: Move
    cards: list[Card]
    turned_up: bool = False

    @override
    def __str__(self) -> str:
        return f"{self.move} {self.cards}"


class GameStatus(str, Enum):
    SETUP = "SETUP"
    PLAYING = "PLAYING"
    WON = "WON"


def check_win_condition(state: "GameState") -> bool:
    return all(len(foundation) == 13 for foundation in state.foundations)  # noqa: PLR2004


class GameState:
    def __init__(self, empty_column_rule: EmptyColumnRule = EmptyColumnRule.ANY) -> None:
        self.foundations = [Stack() for _ in range(4)]
        self.tableaus = [TableauColumn() for _ in range(7)]
        self.stock = Stack()
        self.waste = Stack()
        self.empty_column_rule = empty_column_rule

        self.history: list[HistoryEntry] = []
        self.status = GameStatus.SETUP

        self.move_count = 0
        self.undo_count = 0

    @property
    def is_won(self) -> bool:
        return check_win_condition(self)

    def can_place_on_column(self, card: Card, tableau_idx: int) -> bool:
        return can_place_on_tableau(
            card,
            self.tableaus[tableau_idx].inspect_top(),
            empty_column_rule=self.empty_column_rule,
        )

    def foundation_for(self, card: Card) -> int | None:
        """Index of the foundation that accepts ``card``, preferring the pile of its own suit."""
        empty_idx = None
        for idx, foundation in enumerate(self.foundations):
            top = foundation.inspect_top()
            if top is None:
                if empty_idx is None:
                    empty_idx = idx
                continue
            if can_place_on_foundation(card, top):
                return idx
        if empty_idx is not None and can_place_on_foundation(card, None):
            return empty_idx
        return None

    def foundation_rank(self, suit: Suit) -> int:
        for foundation in self.foundations:
            top = foundation.inspect_top()
            if top is not None and top.suit == suit:
                return int(top.rank)
        return 0

    def foundation_cards(self) -> int:
        return sum(len(foundation) for foundation in self.foundations)

    def hidden_cards(self) -> int:
        return sum(tableau.hidden_len() for tableau in self.tableaus)

    def _record(self, move: Move, cards: list[Card], *, turned_up: bool = False) -> None:
        self.history.append(HistoryEntry(move, cards, turned_up=turned_up))
        self.move_count += 1
        self.status = GameStatus.WON if self.is_won else GameStatus.PLAYING

    def move_stock_to_waste(self) -> None:
        card = self.stock.get_from_top()
        if card is None:
            msg = "Stock is empty"
            raise IllegalMoveError(msg)
        card.face_up = True
        self.waste.add_to_top(card)
        self._record(Move(Location.STOCK, Location.WASTE), [card])

    def cycle_waste_to_stock(self) -> None:
        if len(self.stock) > 0 or len(self.waste) == 0:
            msg = "Waste can only be recycled once the stock is empty"
            raise IllegalMoveError(msg)
        self.waste.reverse()
        cards = self.waste.get_all()
        for card in cards:
            card.face_up = False
        self.stock.add_multiple_to_top(cards)
        self._record(Move(Location.WASTE, Location.STOCK), [])

    def move_waste_to_foundation(self, foundation_idx: int) -> None:
        foundation = self.foundations[foundation_idx]
        card = self.waste.inspect_top()
        if card is None or not can_place_on_foundation(card, foundation.inspect_top()):
            msg = f"Cannot move {card} from waste to foundation {foundation_idx + 1}"
            raise IllegalMoveError(msg)
        _ = self.waste.get_from_top()
        foundation.add_to_top(card)
        self._record(Move(Location.WASTE, Location.foundation(foundation_idx)), [card])

    def move_tableau_to_foundation(self, tableau_idx: int, foundation_idx: int, card_index: int | None = None) -> None:
        tableau = self.tableaus[tableau_idx]
        foundation = self.foundations[foundation_idx]
        row = len(tableau) - 1
        if card_index is not None and card_index != row:
            msg = f"Row {card_index} of tableau {tableau_idx + 1} is not its top card"
            raise IllegalMoveError(msg)
        card = tableau.inspect_top()
        if card is None or not can_place_on_foundation(card, foundation.inspect_top()):
            msg = f"Cannot move {card} from tableau {tableau_idx + 1} to foundation {foundation_idx + 1}"
            raise IllegalMoveError(msg)
        _, turned_up = tableau.take_from(row)
        foundation.add_to_top(card)
        self._record(
            Move(Location.tableau(tableau_idx), Location.foundation(foundation_idx), row),
            [card],
            turned_up=turned_up,
        )

    def move_waste_to_tableau(self, tableau_idx: int) -> None:
        card = self.waste.inspect_top()
        if card is None or not self.can_place_on_column(card, tableau_idx):
            msg = f"Cannot move {card} from waste to tableau {tableau_idx + 1}"
            raise IllegalMoveError(msg)
        _ = self.waste.get_from_top()
        self.tableaus[tableau_idx].add_to_top(card)
        self._record(Move(Location.WASTE, Location.tableau(tableau_idx)), [card])

    def move_tableau_to_tableau(self, from_tableau_idx: int, card_index: int, to_tableau_idx: int) -> None:
        if from_tableau_idx == to_tableau_idx:
            msg = "Source and target tableau are the same"
            raise IllegalMoveError(msg)
        from_tableau = self.tableaus[from_tableau_idx]
        run = from_tableau.inspect_all()[card_index:] if 0 <= card_index < len(from_tableau) else []
        if not is_valid_run(run):
            msg = f"Row {card_index} of tableau {from_tableau_idx + 1} does not start a movable run"
            raise IllegalMoveError(msg)
        if not self.can_place_on_column(run[0], to_tableau_idx):
            msg = f"Cannot place {run[0]} on tableau {to_tableau_idx + 1}"
            raise IllegalMoveError(msg)

        cards, turned_up = from_tableau.take_from(card_index)
        self.tableaus[to_tableau_idx].add_multiple_to_top(cards)
        self._record(
            Move(Location.tableau(from_tableau_idx), Location.tableau(to_tableau_idx), card_index),
            cards,
            turned_up=turned_up,
        )

    def move_foundation_to_tableau(self, foundation_idx: int, tableau_idx: int) -> None:
        foundation = self.foundations[foundation_idx]
        card = foundation.inspect_top()
        if card is None or not self.can_place_on_column(card, tableau_idx):
            msg = f"Cannot move {card} from foundation {foundation_idx + 1} to tableau {tableau_idx + 1}"
            raise IllegalMoveError(msg)
        _ = foundation.get_from_top()
        self.tableaus[tableau_idx].add_to_top(card)
        self._record(Move(Location.foundation(foundation_idx), Location.tableau(tableau_idx)), [card])

    def step(self, move: Move) -> None:
        """Apply ``move`` in place. Raises ``IllegalMoveError`` and leaves the state unchanged if illegal."""
        kind = move.kind
        if kind == MoveKind.STOCK_TO_WASTE:
            self.move_stock_to_waste()
        elif kind == MoveKind.WASTE_TO_STOCK:
            self.cycle_waste_to_stock()
        elif kind == MoveKind.WASTE_TO_FOUNDATION:
            self.move_waste_to_foundation(Location.foundations().index(move.to_location))
        elif kind == MoveKind.WASTE_TO_TABLEAU:
            self.move_waste_to_tableau(Location.tableaus().index(move.to_location))
        elif kind == MoveKind.TABLEAU_TO_FOUNDATION:
            self.move_tableau_to_foundation(
                Location.tableaus().index(move.from_location),
                Location.foundations().index(move.to_location),
                move.card_index,
            )
        elif kind == MoveKind.FOUNDATION_TO_TABLEAU:
            self.move_foundation_to_tableau(
                Location.foundations().index(move.from_location),
                Location.tableaus().index(move.to_location),
            )
        elif kind == MoveKind.TABLEAU_TO_TABLEAU:
            self.move_tableau_to_tableau(
                Location.tableaus().index(move.from_location),
                move.card_index,
                Location.tableaus().index(move.to_location),
            )

    def undo(self) -> None:
        if len(self.history) == 0:
            return

        entry = self.history.pop()
        move = entry.move
        kind = move.kind

        if kind == MoveKind.STOCK_TO_WASTE:
            from_top = self.waste.get_from_top()
            assert from_top is not None  # noqa: S101
            from_top.face_up = False
            self.stock.add_to_top(from_top)
        elif kind == MoveKind.WASTE_TO_STOCK:
            self.stock.reverse()
            cards = self.stock.get_all()
            for card in cards:
                card.face_up = True
            self.waste.add_multiple_to_top(cards)
        elif kind == MoveKind.WASTE_TO_FOUNDATION:
            foundation = self.foundations[Location.foundations().index(move.to_location)]
            from_top = foundation.get_from_top()
            assert from_top is not None  # noqa: S101
            self.waste.add_to_top(from_top)
        elif kind == MoveKind.WASTE_TO_TABLEAU:
            to_tableau = self.tableaus[Location.tableaus().index(move.to_location)]
            cards, _ = to_tableau.take_from(len(to_tableau) - 1)
            self.waste.add_multiple_to_top(cards)
        elif kind == MoveKind.TABLEAU_TO_FOUNDATION:
            tableau = self.tableaus[Location.tableaus().index(move.from_location)]
            foundation = self.foundations[Location.foundations().index(move.to_location)]
            from_top = foundation.get_from_top()
            assert from_top is not None  # noqa: S101
            if entry.turned_up:
                tableau.hide_bottom_visible()
            tableau.add_to_top(from_top)
        elif kind == MoveKind.FOUNDATION_TO_TABLEAU:
            from_foundation = self.foundations[Location.foundations().index(move.from_location)]
            to_tableau = self.tableaus[Location.tableaus().index(move.to_location)]
            cards, _ = to_tableau.take_from(len(to_tableau) - 1)
            from_foundation.add_multiple_to_top(cards)
        elif kind == MoveKind.TABLEAU_TO_TABLEAU:
            from_tableau = self.tableaus[Location.tableaus().index(move.from_location)]
            to_tableau = self.tableaus[Location.tableaus().index(move.to_location)]
            cards, _ = to_tableau.take_from(len(to_tableau) - len(entry.cards))
            if entry.turned_up:
                from_tableau.hide_bottom_visible()
            from_tableau.add_multiple_to_top(cards)

        self.move_count -= 1
        self.undo_count += 1
        self.status = GameStatus.PLAYING if self.history else GameStatus.SETUP

    def legal_moves(self) -> list[Move]:  # noqa: PLR0912
        moves: list[Move] = []

        if len(self.stock) > 0:
            moves.append(Move(Location.STOCK, Location.WASTE))
        elif len(self.waste) > 0:
            moves.append(Move(Location.WASTE, Location.STOCK))

        waste_top = self.waste.inspect_top()
        if waste_top is not None:
            foundation_idx = self.foundation_for(waste_top)
            if foundation_idx is not None:
                moves.append(Move(Location.WASTE, Location.foundation(foundation_idx)))
            for tableau_idx in range(len(self.tableaus)):
                if self.can_place_on_column(waste_top, tableau_idx):
                    moves.append(Move(Location.WASTE, Location.tableau(tableau_idx)))

        for tableau_idx, tableau in enumerate(self.tableaus):
            tableau_top = tableau.inspect_top()
            if tableau_top is None:
                continue
            foundation_idx = self.foundation_for(tableau_top)
            if foundation_idx is not None:
                moves.append(
                    Move(Location.tableau(tableau_idx), Location.foundation(foundation_idx), len(tableau) - 1),
                )
            run_start = tableau.movable_run_start()
            assert run_start is not None  # noqa: S101
            cards = tableau.inspect_all()
            for row in range(run_start, len(tableau)):
                for other_idx in range(len(self.tableaus)):
                    if other_idx != tableau_idx and self.can_place_on_column(cards[row], other_idx):
                        moves.append(Move(Location.tableau(tableau_idx), Location.tableau(other_idx), row))

        for foundation_idx, foundation in enumerate(self.foundations):
            foundation_top = foundation.inspect_top()
            if foundation_top is None:
                continue
            for tableau_idx in range(len(self.tableaus)):
                if self.can_place_on_column(foundation_top, tableau_idx):
                    moves.append(Move(Location.foundation(foundation_idx), Location.tableau(tableau_idx)))

        return moves

    def is_auto_completable(self) -> bool:
        return (
            len(self.stock) == 0
            and len(self.waste) == 0
            and all(tableau.hidden_len() == 0 for tableau in self.tableaus)
        )

    def auto_complete_suggestion(self) -> Move | None:
        if not self.is_auto_completable() or self.is_won:
            return None

        for tableau_idx, tableau in enumerate(self.tableaus):
            card = tableau.inspect_top()
            if card is None:
                continue
            foundation_idx = self.foundation_for(card)
            if foundation_idx is not None:
                return Move(Location.tableau(tableau_idx), Location.foundation(foundation_idx), len(tableau) - 1)

        return None

    def copy(self) -> "GameState":
        return copy.deepcopy(self)

    def as_jsonable_dict(self) -> dict:
        return {
            "status": self.status.value,
            "foundations": [foundation.as_jsonable_dict() for foundation in self.foundations],
            "tableaus": [tableau.as_jsonable_dict() for tableau in self.tableaus],
            "stock": self.stock.as_jsonable_dict(),
            "waste": self.waste.as_jsonable_dict(),
            "move_count": self.move_count,
        }


def apply_move(state: GameState, move: Move) -> GameState:
    """Return the state after ``move``; ``state`` itself is not modified."""
    new_state = state.copy()
    new_state.step(move)
    return new_state


@dataclass(frozen=True)
class Deal:
    """An initial layout: tableau columns (bottom card first) and the stock (top card last)."""

    tableau: tuple[tuple[Card, ...], ...]
    stock: tuple[Card, ...]
    room_variant: RoomVariant = RoomVariant.STANDARD

    @classmethod
    def from_columns(
        cls,
        columns: list[list[Card]],
        stock: list[Card],
        *,
        room_variant: RoomVariant = RoomVariant.STANDARD,
        flip_tops: bool = True,
    ) -> "Deal":
        """Freeze a layout. With ``flip_tops`` only the last card of each column is face-up."""
        tableau = []
        for column in columns:
            if flip_tops:
                frozen = tuple(card.copy(face_up=row == len(column) - 1) for row, card in enumerate(column))
            else:
                frozen = tuple(card.copy() for card in column)
            tableau.append(frozen)
        return cls(
            tableau=tuple(tableau),
            stock=tuple(card.copy(face_up=False) for card in stock),
            room_variant=room_variant,
        )

    def columns(self) -> list[list[Card]]:
        return [[card.copy() for card in column] for column in self.tableau]

    def stock_cards(self) -> list[Card]:
        return [card.copy(face_up=False) for card in self.stock]

    def all_cards(self) -> list[Card]:
        return [card for column in self.tableau for card in column] + list(self.stock)

    def fingerprint(self) -> tuple:
        return (
            tuple(tuple(card.card_id for card in column) for column in self.tableau),
            tuple(card.card_id for card in self.stock),
        )

    def validate(self) -> None:
        cards = self.all_cards()
        if len(cards) != 52 or len(set(cards)) != 52:  # noqa: PLR2004
            msg = f"Deal holds {len(cards)} cards ({len(set(cards))} unique), expected 52 unique cards"
            raise InvalidDeckError(msg)

    def validate_shape(self) -> None:
        self.validate()
        if len(self.tableau) != 7:  # noqa: PLR2004
            msg = f"Deal has {len(self.tableau)} tableau columns, expected 7"
            raise InvalidDeckError(msg)
        for idx, column in enumerate(self.tableau):
            if len(column) != idx + 1:
                msg = f"Tableau column {idx + 1} holds {len(column)} cards, expected {idx + 1}"
                raise InvalidDeckError(msg)
            if any(card.face_up for card in column[:-1]) or not column[-1].face_up:
                msg = f"Only the last card of tableau column {idx + 1} may be face-up"
                raise InvalidDeckError(msg)
        if any(card.face_up for card in self.stock):
            msg = "Stock cards must be face-down"
            raise InvalidDeckError(msg)

    def to_game_state(self, empty_column_rule: EmptyColumnRule = EmptyColumnRule.ANY) -> GameState:
        if len(self.tableau) > len(Location.tableaus()):
            msg = f"Deal has {len(self.tableau)} tableau columns, at most 7 are supported"
            raise InvalidDeckError(msg)
        state = GameState(empty_column_rule)
        for tableau, column in zip(state.tableaus, self.tableau):
            last_hidden = max((row for row, card in enumerate(column) if not card.face_up), default=-1)
            if last_hidden == len(column) - 1:
                last_hidden -= 1
            for row, card in enumerate(column):
                tableau.add_to_top(card.copy(), hide=row <= last_hidden)
        state.stock.add_multiple_to_top(self.stock_cards())
        return state

    def as_jsonable_dict(self) -> dict:
        return {
            "room_variant": self.room_variant.value,
            "tableau": [[card.as_jsonable_dict() for card in column] for column in self.tableau],
            "stock": [card.as_jsonable_dict() for card in self.stock],
        }
