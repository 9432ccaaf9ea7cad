"""
Hooks that keep caller-owned markers on tableau slots while the generator swaps cards.

A repair swap changes which card sits in a face-down slot. Anything the caller
attached to a slot (a key, a shovel, a bonus marker) must stay on that slot,
so the generator takes a snapshot right before every swap and hands it back
right after.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping, Sequence
from typing import override

from klondike import Card

type Tableau = Sequence[Sequence[Card]]
type SlotCoordinate = tuple[int, int]


class ResourceSnapshot(Mapping[SlotCoordinate, str]):
    """Read-only mapping of ``(column, row)`` to the tag held by that slot."""

    def __init__(self, tags: Mapping[SlotCoordinate, str] | None = None) -> None:
        self._tags: dict[SlotCoordinate, str] = dict(tags or {})

    @override
    def __getitem__(self, slot: SlotCoordinate) -> str:
        return self._tags[slot]

    @override
    def __iter__(self) -> Iterator[SlotCoordinate]:
        return iter(self._tags)

    @override
    def __len__(self) -> int:
        return len(self._tags)

    @override
    def __repr__(self) -> str:
        return f"ResourceSnapshot({self._tags!r})"


class ResourcePreservationAdapter(ABC):
    @abstractmethod
    def snapshot(self, tableau: Tableau) -> ResourceSnapshot:
        """Record the tag on every tagged slot of ``tableau``."""

    @abstractmethod
    def restore(self, tableau: Tableau, snapshot: ResourceSnapshot) -> None:
        """Put each tag of ``snapshot`` back on whatever card now sits at its slot."""


class SlotTagAdapter(ResourcePreservationAdapter):
    """
    Keeps tags bound to cards, the way the shell's marker managers do, and
    rebinds them slot-wise on restore.

    Tags may only be placed on tableau cards. After a restore every tag is
    bound to the card occupying its original slot, so a tag never follows a
    card into another column or into the stock.
    """

    def __init__(self) -> None:
        self._bindings: dict[Card, str] = {}

    def place(self, tableau: Tableau, slot: SlotCoordinate, tag: str) -> None:
        column, row = slot
        try:
            card = tableau[column][row]
        except IndexError as e:
            msg = f"No tableau card at slot {slot}"
            raise ValueError(msg) from e
        self._bindings[card] = tag

    def tag_for(self, card: Card) -> str | None:
        return self._bindings.get(card)

    def tags_by_slot(self, tableau: Tableau) -> dict[SlotCoordinate, str]:
        tags = {}
        for col, column in enumerate(tableau):
            for row, card in enumerate(column):
                tag = self._bindings.get(card)
                if tag is not None:
                    tags[(col, row)] = tag
        return tags

    @override
    def snapshot(self, tableau: Tableau) -> ResourceSnapshot:
        return ResourceSnapshot(self.tags_by_slot(tableau))

    @override
    def restore(self, tableau: Tableau, snapshot: ResourceSnapshot) -> None:
        self._bindings = {tableau[col][row]: tag for (col, row), tag in snapshot.items()}
