"""
Solvable deal generator.

Each attempt shuffles a fresh deal and probes it with the solvability oracle.
A deal the oracle cannot win is repaired by swapping face-down cards and
probed again; when repair fails the generator reshuffles, and once the
reshuffle budget runs out it falls back to the last shuffled deal, marked as
degraded. Generation never raises for an unlucky deck.
"""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from functools import partial

from deal_shuffler import create_deck, deal_easy_layout, deal_from_deck, shuffle_deck
from klondike import Card, Deal, InvalidDeckError, RoomVariant
from resource_preservation import ResourcePreservationAdapter
from solvability_oracle import OracleOptions, SolveResult, solve

logger = logging.getLogger(__name__)

type Probe = Callable[[Deal], SolveResult]
type Dealer = Callable[[random.Random], Deal]


class DifficultyHint(str, Enum):
    EASY = "easy"
    NORMAL = "normal"


class GenerationStage(str, Enum):
    SHUFFLE = "SHUFFLE"
    PROBE = "PROBE"
    REPAIR = "REPAIR"
    RESHUFFLE = "RESHUFFLE"
    DONE = "DONE"
    FALLBACK = "FALLBACK"


@dataclass
class GenerationEvent:
    """Progress report handed to ``GeneratorOptions.on_attempt``."""
    stage: GenerationStage
    attempt: int
    reshuffles: int
    repairs: int
    swaps_tried: int
    solvable: bool | None = None


@dataclass
class GeneratorOptions:
    """
    Knobs for one generation.

    Attributes:
        difficulty_hint: EASY deals the first-game layout, NORMAL a uniform shuffle
        room_variant: Label carried on the resulting deal
        resource_preservation: Adapter keeping slot tags in place across repair swaps
        seed: Makes the whole generation reproducible
        max_reshuffles: Fresh shuffles allowed after the first one
        max_repairs_per_shuffle: Repair passes per shuffled deal
        max_swaps_per_repair: Swap candidates probed per repair pass
        oracle: Limits for every oracle run
        on_attempt: Optional progress callback
    """
    difficulty_hint: DifficultyHint = DifficultyHint.NORMAL
    room_variant: RoomVariant = RoomVariant.STANDARD
    resource_preservation: ResourcePreservationAdapter | None = None
    seed: int | None = None
    max_reshuffles: int = 40
    max_repairs_per_shuffle: int = 2
    max_swaps_per_repair: int = 12
    oracle: OracleOptions = field(default_factory=OracleOptions)
    on_attempt: Callable[[GenerationEvent], None] | None = None


@dataclass
class GenerationDiagnostics:
    attempts: int = 0
    reshuffles: int = 0
    repairs: int = 0
    swaps_tried: int = 0
    repaired: bool = False
    degraded: bool = False
    probes: int = 0
    elapsed_ms: float = 0.0
    solve_move_count: int = 0

    def as_jsonable_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Slot:
    """A card position: ``column`` is a tableau index, or None for the stock."""
    column: int | None
    row: int


@dataclass
class RepairOutcome:
    deal: Deal
    solved: bool
    result: SolveResult | None = None
    passes: int = 0
    swaps_tried: int = 0
    probes: int = 0


def _card_at(columns: list[list[Card]], stock: list[Card], slot: Slot) -> Card:
    if slot.column is None:
        return stock[slot.row]
    return columns[slot.column][slot.row]


def _set_card(columns: list[list[Card]], stock: list[Card], slot: Slot, card: Card) -> None:
    if slot.column is None:
        stock[slot.row] = card
    else:
        columns[slot.column][slot.row] = card


def _swap(
    columns: list[list[Card]],
    stock: list[Card],
    first: Slot,
    second: Slot,
    adapter: ResourcePreservationAdapter | None,
) -> None:
    snapshot = adapter.snapshot(columns) if adapter is not None else None
    first_card = _card_at(columns, stock, first)
    second_card = _card_at(columns, stock, second)
    _set_card(columns, stock, first, second_card)
    _set_card(columns, stock, second, first_card)
    if adapter is not None and snapshot is not None:
        adapter.restore(columns, snapshot)


def _depth(columns: list[list[Card]], stock: list[Card], slot: Slot) -> int:
    """Cards that must move before the card at ``slot`` becomes playable."""
    if slot.column is None:
        # Draws until the card comes up; the stock top is the last card.
        return len(stock) - 1 - slot.row
    return len(columns[slot.column]) - 1 - slot.row


def _swap_gain(columns: list[list[Card]], stock: list[Card], first: Slot, second: Slot) -> int:
    """
    How much a swap lifts low cards towards play.

    A card blocks in proportion to its depth times how low it is; the gain is
    the drop in total blocking after the two cards trade depths.
    """
    first_rank = int(_card_at(columns, stock, first).rank)
    second_rank = int(_card_at(columns, stock, second).rank)
    return (_depth(columns, stock, first) - _depth(columns, stock, second)) * (second_rank - first_rank)


def candidate_swaps(columns: list[list[Card]], stock: list[Card], rng: random.Random) -> list[tuple[Slot, Slot]]:
    """
    Ordered swap candidates for one repair pass.

    Pairs of face-down tableau slots in different columns come first, then
    face-down slots paired with stock cards. Within each tier the swaps that
    raise buried low cards the most are tried first; ``rng`` breaks ties.
    """
    hidden = [
        Slot(col, row)
        for col, column in enumerate(columns)
        for row, card in enumerate(column)
        if not card.face_up
    ]
    stock_slots = [Slot(None, row) for row in range(len(stock))]

    tableau_pairs = [
        (first, second)
        for idx, first in enumerate(hidden)
        for second in hidden[idx + 1:]
        if first.column != second.column
    ]
    stock_pairs = [(first, second) for first in hidden for second in stock_slots]

    def ordered(pairs: list[tuple[Slot, Slot]]) -> list[tuple[Slot, Slot]]:
        keyed = [(-_swap_gain(columns, stock, a, b), rng.random(), a, b) for a, b in pairs]
        keyed.sort(key=lambda item: (item[0], item[1]))
        return [(a, b) for _, _, a, b in keyed]

    return ordered(tableau_pairs) + ordered(stock_pairs)


def repair_deal(  # noqa: PLR0913
    deal: Deal,
    *,
    probe: Probe | None = None,
    rng: random.Random | None = None,
    max_repairs: int = 2,
    max_swaps: int = 12,
    adapter: ResourcePreservationAdapter | None = None,
    seen: set[tuple] | None = None,
    baseline: SolveResult | None = None,
) -> RepairOutcome:
    """
    Try to make ``deal`` winnable by swapping face-down cards.

    Every candidate swap is applied, probed, and kept if the probe wins or
    undone otherwise. When a pass finds no win, the swap that banked the most
    foundation cards is kept and the next pass builds on it.

    Args:
        deal: Deal the oracle could not win
        probe: Oracle run deciding each candidate, defaults to ``solve``
        rng: Tie-breaker for candidate order
        max_repairs: Repair passes
        max_swaps: Candidates probed per pass
        adapter: Called around every swap so slot tags stay on their slots
        seen: Fingerprints of deals already probed; updated in place
        baseline: Probe result for ``deal`` itself

    Returns:
        RepairOutcome holding the winning deal, or the best partial repair
    """
    probe = probe or solve
    rng = rng or random.Random()
    seen = seen if seen is not None else {deal.fingerprint()}
    columns = deal.columns()
    stock = deal.stock_cards()
    best_score = baseline.foundation_cards if baseline is not None else -1
    outcome = RepairOutcome(deal=deal, solved=False, result=baseline)

    def current_deal() -> Deal:
        return Deal.from_columns(columns, stock, room_variant=deal.room_variant, flip_tops=False)

    for _ in range(max_repairs):
        outcome.passes += 1
        best_swap: tuple[Slot, Slot] | None = None
        tried = 0
        for first, second in candidate_swaps(columns, stock, rng):
            if tried >= max_swaps:
                break
            _swap(columns, stock, first, second, adapter)
            candidate = current_deal()
            fingerprint = candidate.fingerprint()
            if fingerprint in seen:
                _swap(columns, stock, first, second, adapter)
                continue
            seen.add(fingerprint)
            tried += 1
            outcome.swaps_tried += 1
            outcome.probes += 1
            result = probe(candidate)
            if result.solvable:
                logger.debug(f"Repair swap {first} <-> {second} made the deal winnable")
                outcome.deal = candidate
                outcome.solved = True
                outcome.result = result
                return outcome
            if result.foundation_cards > best_score:
                best_score = result.foundation_cards
                best_swap = (first, second)
                outcome.result = result
            _swap(columns, stock, first, second, adapter)

        if best_swap is None:
            logger.debug("Repair pass found no improving swap")
            break
        _swap(columns, stock, best_swap[0], best_swap[1], adapter)
        outcome.deal = current_deal()
        logger.debug(f"Repair pass kept {best_swap[0]} <-> {best_swap[1]} ({best_score}/52 banked)")

    return outcome


def _deal_for(options: GeneratorOptions, rng: random.Random) -> Deal:
    if options.difficulty_hint == DifficultyHint.EASY:
        return deal_easy_layout(rng, options.room_variant)
    return deal_from_deck(shuffle_deck(create_deck(), rng=rng), options.room_variant)


def generate_solvable_deal(  # noqa: PLR0915
    options: GeneratorOptions | None = None,
    *,
    probe: Probe | None = None,
    dealer: Dealer | None = None,
) -> tuple[Deal, GenerationDiagnostics]:
    """
    Produce a deal the oracle can win.

    Args:
        options: Generation knobs, defaults to ``GeneratorOptions()``
        probe: Replaces the oracle run, e.g. to force repairs in tests
        dealer: Replaces the shuffle step

    Returns:
        The deal and its diagnostics; ``diagnostics.degraded`` is set when no
        winnable deal was found within budget
    """
    options = options or GeneratorOptions()
    options = replace(
        options,
        difficulty_hint=DifficultyHint(options.difficulty_hint),
        room_variant=RoomVariant(options.room_variant),
    )
    rng = random.Random(options.seed)
    probe = probe or partial(solve, options=options.oracle)
    dealer = dealer or partial(_deal_for, options)
    diagnostics = GenerationDiagnostics()
    seen: set[tuple] = set()
    last_deal: Deal | None = None
    start = time.perf_counter()

    def emit(stage: GenerationStage, solvable: bool | None = None) -> None:
        if options.on_attempt is not None:
            options.on_attempt(GenerationEvent(
                stage=stage,
                attempt=diagnostics.attempts,
                reshuffles=diagnostics.reshuffles,
                repairs=diagnostics.repairs,
                swaps_tried=diagnostics.swaps_tried,
                solvable=solvable,
            ))

    def finish(deal: Deal) -> tuple[Deal, GenerationDiagnostics]:
        diagnostics.elapsed_ms = (time.perf_counter() - start) * 1000
        return deal, diagnostics

    while diagnostics.attempts <= options.max_reshuffles:
        if diagnostics.attempts > 0:
            diagnostics.reshuffles += 1
            emit(GenerationStage.RESHUFFLE)
        diagnostics.attempts += 1

        try:
            deal = dealer(rng)
            deal.validate()
        except InvalidDeckError as e:
            logger.error(f"Attempt {diagnostics.attempts} produced an invalid deal: {e}")
            continue

        fingerprint = deal.fingerprint()
        if fingerprint in seen:
            logger.debug(f"Attempt {diagnostics.attempts} repeated an already probed deal")
            continue
        seen.add(fingerprint)
        last_deal = deal
        emit(GenerationStage.SHUFFLE)

        result = probe(deal)
        diagnostics.probes += 1
        emit(GenerationStage.PROBE, result.solvable)
        if result.solvable:
            diagnostics.solve_move_count = result.move_count
            emit(GenerationStage.DONE, True)
            logger.info(
                f"Generated winnable deal on attempt {diagnostics.attempts} "
                f"after {diagnostics.probes} probes"
            )
            return finish(deal)

        if options.max_repairs_per_shuffle <= 0:
            continue

        outcome = repair_deal(
            deal,
            probe=probe,
            rng=rng,
            max_repairs=options.max_repairs_per_shuffle,
            max_swaps=options.max_swaps_per_repair,
            adapter=options.resource_preservation,
            seen=seen,
            baseline=result,
        )
        diagnostics.repairs += outcome.passes
        diagnostics.swaps_tried += outcome.swaps_tried
        diagnostics.probes += outcome.probes
        emit(GenerationStage.REPAIR, outcome.solved)
        if outcome.solved:
            assert outcome.result is not None  # noqa: S101
            diagnostics.repaired = True
            diagnostics.solve_move_count = outcome.result.move_count
            emit(GenerationStage.DONE, True)
            logger.info(
                f"Generated winnable deal on attempt {diagnostics.attempts} by repair "
                f"after {diagnostics.swaps_tried} swaps and {diagnostics.probes} probes"
            )
            return finish(outcome.deal)

    diagnostics.degraded = True
    if last_deal is None:
        last_deal = deal_from_deck(shuffle_deck(create_deck(), rng=rng), options.room_variant)
    emit(GenerationStage.FALLBACK, False)
    logger.warning(
        f"No winnable deal found in {diagnostics.attempts} attempts "
        f"({diagnostics.probes} probes); returning the last shuffled deal"
    )
    return finish(last_deal)
