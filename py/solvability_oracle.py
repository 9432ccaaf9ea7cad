"""
Solvability oracle: decides whether a deal can be won by simulating play.

The simulation sees every card, including face-down tableau cards and the
stock order, and uses that knowledge to pick moves. Move legality is still
decided by the rules engine, so a winning run is a witness that holds in the
real game. A failed run only means the greedy policy found no win.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from klondike import (
    Card,
    Deal,
    EmptyColumnRule,
    GameState,
    IllegalMoveError,
    Location,
    Move,
    Rank,
    Suit,
    TableauColumn,
)

logger = logging.getLogger(__name__)


@dataclass
class OracleOptions:
    """
    Search limits for one oracle run.

    Attributes:
        max_moves: Move ceiling, draws included
        max_stock_cycles: Times the waste may be turned back into the stock
        empty_column_rule: Which cards an empty tableau column accepts
    """
    max_moves: int = 1500
    max_stock_cycles: int = 6
    empty_column_rule: EmptyColumnRule = EmptyColumnRule.ANY


class StopReason(str, Enum):
    WON = "WON"
    DEADLOCK = "DEADLOCK"
    STOCK_CYCLES = "STOCK_CYCLES"
    MOVE_LIMIT = "MOVE_LIMIT"


@dataclass
class SolveResult:
    """
    Outcome of an oracle run.

    Attributes:
        solvable: True only if the simulation reached the win condition
        move_count: Moves played, draws and recycles included
        moves: The moves played; a winning witness when solvable
        stock_cycles: Times the waste was recycled into the stock
        foundation_cards: Cards on the foundations when the run stopped
        reason: Why the run stopped
    """
    solvable: bool
    move_count: int
    moves: list[Move] = field(default_factory=list)
    stock_cycles: int = 0
    foundation_cards: int = 0
    reason: StopReason = StopReason.DEADLOCK


# Candidate tiers, best first.
_SAFE_FOUNDATION = 4
_REVEAL = 3
_FREEING = 2
_FOUNDATION = 1


def _is_safe_foundation_card(state: GameState, card: Card) -> bool:
    """A card is safe to bank when no opposite-colour card could still need it as a tableau base."""
    rank = int(card.rank)
    if rank <= 2:  # noqa: PLR2004
        return True
    lowest_opposite = min(state.foundation_rank(suit) for suit in Suit if suit.color != card.color)
    return rank <= lowest_opposite + 2


def _preferred_target(state: GameState, card: Card, exclude: int) -> int | None:
    """Column that accepts ``card``; occupied columns are preferred over empty ones."""
    empty_target = None
    for idx, tableau in enumerate(state.tableaus):
        if idx == exclude or not state.can_place_on_column(card, idx):
            continue
        if len(tableau) > 0:
            return idx
        if empty_target is None:
            empty_target = idx
    return empty_target


def _revealed_card_value(state: GameState, column: TableauColumn, exclude: int) -> int:
    """How useful the face-down card under ``column``'s face-up run will be once turned up."""
    revealed = column.hidden.inspect_top()
    if revealed is None:
        return 0
    if state.foundation_for(revealed) is not None:
        return 3
    for idx, tableau in enumerate(state.tableaus):
        top = tableau.inspect_top()
        if idx != exclude and top is not None and state.can_place_on_column(revealed, idx):
            return 2
    return 0


def _candidates(state: GameState) -> list[tuple[int, int, list[Move]]]:  # noqa: PLR0912
    candidates: list[tuple[int, int, list[Move]]] = []

    waste_top = state.waste.inspect_top()
    if waste_top is not None:
        foundation_idx = state.foundation_for(waste_top)
        if foundation_idx is not None:
            tier = _SAFE_FOUNDATION if _is_safe_foundation_card(state, waste_top) else _FOUNDATION
            candidates.append((tier, 0, [Move(Location.WASTE, Location.foundation(foundation_idx))]))
        target = _preferred_target(state, waste_top, exclude=-1)
        if target is not None and (len(state.tableaus[target]) > 0 or waste_top.rank == Rank.KING):
            candidates.append((_FREEING, 2, [Move(Location.WASTE, Location.tableau(target))]))

    for idx, column in enumerate(state.tableaus):
        top = column.inspect_top()
        if top is None:
            continue
        source = Location.tableau(idx)
        top_row = len(column) - 1
        reveals = column.hidden_len() > 0 and column.visible_len() == 1
        hidden_weight = column.hidden_len() * 10

        foundation_idx = state.foundation_for(top)
        if foundation_idx is not None:
            move = Move(source, Location.foundation(foundation_idx), top_row)
            if _is_safe_foundation_card(state, top):
                candidates.append((_SAFE_FOUNDATION, 1 if reveals else 0, [move]))
            elif reveals:
                value = _revealed_card_value(state, column, idx)
                candidates.append((_REVEAL, value * 100 + hidden_weight, [move]))
            else:
                candidates.append((_FOUNDATION, 0, [move]))

        run_start = column.movable_run_start()
        assert run_start is not None  # noqa: S101
        cards = column.inspect_all()

        if column.hidden_len() > 0 and run_start == column.first_visible_row():
            target = _preferred_target(state, cards[run_start], exclude=idx)
            if target is not None:
                occupied_bonus = 5 if len(state.tableaus[target]) > 0 else 0
                value = _revealed_card_value(state, column, idx)
                candidates.append((
                    _REVEAL,
                    value * 100 + hidden_weight + occupied_bonus,
                    [Move(source, Location.tableau(target), run_start)],
                ))

        for row in range(max(run_start, column.first_visible_row() + 1), len(column)):
            exposed = cards[row - 1]
            exposed_foundation = state.foundation_for(exposed)
            if exposed_foundation is None:
                continue
            target = _preferred_target(state, cards[row], exclude=idx)
            if target is None:
                continue
            candidates.append((
                _FREEING,
                3,
                [
                    Move(source, Location.tableau(target), row),
                    Move(source, Location.foundation(exposed_foundation), row - 1),
                ],
            ))

    return candidates


def _play(state: GameState, moves: list[Move]) -> bool:
    """Play ``moves`` as one step; on an illegal move roll back and report it unavailable."""
    played = 0
    try:
        for move in moves:
            state.step(move)
            played += 1
    except IllegalMoveError as e:
        logger.debug(f"Oracle skipped unavailable move: {e}")
        for _ in range(played):
            state.undo()
        return False
    return True


def solve(deal: Deal, options: OracleOptions | None = None) -> SolveResult:
    """
    Simulate greedy omniscient play from ``deal``.

    Args:
        deal: Layout to test; never modified
        options: Search limits, defaults to ``OracleOptions()``

    Returns:
        SolveResult with the moves played and the reason the run stopped
    """
    options = options or OracleOptions()
    state = deal.to_game_state(options.empty_column_rule)
    stock_cycles = 0
    progressed_since_recycle = True
    unavailable: set[tuple[Move, ...]] = set()
    reason = StopReason.DEADLOCK

    while True:
        if state.is_won:
            reason = StopReason.WON
            break
        if state.move_count >= options.max_moves:
            reason = StopReason.MOVE_LIMIT
            break

        candidates = [c for c in _candidates(state) if tuple(c[2]) not in unavailable]
        if candidates:
            _, _, moves = max(candidates, key=lambda c: (c[0], c[1]))
            if _play(state, moves):
                progressed_since_recycle = True
                unavailable.clear()
            else:
                unavailable.add(tuple(moves))
            continue

        if len(state.stock) > 0:
            state.move_stock_to_waste()
            continue
        if len(state.waste) == 0:
            reason = StopReason.DEADLOCK
            break
        if not progressed_since_recycle:
            reason = StopReason.DEADLOCK
            break
        if stock_cycles >= options.max_stock_cycles:
            reason = StopReason.STOCK_CYCLES
            break
        state.cycle_waste_to_stock()
        stock_cycles += 1
        progressed_since_recycle = False

    result = SolveResult(
        solvable=reason == StopReason.WON,
        move_count=state.move_count,
        moves=[entry.move for entry in state.history],
        stock_cycles=stock_cycles,
        foundation_cards=state.foundation_cards(),
        reason=reason,
    )
    logger.debug(
        f"Oracle finished: {result.reason.value}, {result.foundation_cards}/52 banked "
        f"in {result.move_count} moves, {result.stock_cycles} stock cycles"
    )
    return result


def is_solvable(deal: Deal, options: OracleOptions | None = None) -> bool:
    return solve(deal, options).solvable


def replay(deal: Deal, moves: list[Move], empty_column_rule: EmptyColumnRule = EmptyColumnRule.ANY) -> GameState:
    """Play ``moves`` from ``deal`` through the rules engine; raises ``IllegalMoveError`` on a bad witness."""
    state = deal.to_game_state(empty_column_rule)
    for move in moves:
        state.step(move)
    return state
