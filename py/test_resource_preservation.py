import random

import pytest
from deal_generator import GeneratorOptions, generate_solvable_deal, repair_deal
from deal_shuffler import create_deck, deal_from_deck, shuffle_deck
from klondike import Deal
from resource_preservation import ResourceSnapshot, SlotTagAdapter
from solvability_oracle import SolveResult

KEY_SLOT = (2, 0)
SHOVEL_SLOT = (4, 3)


class RecordingAdapter(SlotTagAdapter):
    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def snapshot(self, tableau):
        self.calls.append("snapshot")
        return super().snapshot(tableau)

    def restore(self, tableau, snapshot):
        self.calls.append("restore")
        super().restore(tableau, snapshot)


@pytest.fixture
def deal():
    return deal_from_deck(shuffle_deck(create_deck(), seed=17))


@pytest.fixture
def adapter(deal):
    adapter = RecordingAdapter()
    columns = deal.columns()
    adapter.place(columns, KEY_SLOT, "key")
    adapter.place(columns, SHOVEL_SLOT, "shovel")
    return adapter


def _changed_slots(original: Deal, candidate: Deal) -> int:
    return sum(
        candidate.tableau[col][row] != original.tableau[col][row]
        for col, row in (KEY_SLOT, SHOVEL_SLOT)
    )


def test_place_and_lookup(deal, adapter):
    columns = deal.columns()

    assert adapter.tag_for(columns[2][0]) == "key"
    assert adapter.tag_for(columns[4][3]) == "shovel"
    assert adapter.tag_for(columns[0][0]) is None
    assert adapter.tags_by_slot(columns) == {KEY_SLOT: "key", SHOVEL_SLOT: "shovel"}

    with pytest.raises(ValueError):
        adapter.place(columns, (0, 3), "bonus")


def test_snapshot_is_read_only(deal, adapter):
    snapshot = adapter.snapshot(deal.columns())

    assert isinstance(snapshot, ResourceSnapshot)
    assert dict(snapshot) == {KEY_SLOT: "key", SHOVEL_SLOT: "shovel"}
    with pytest.raises(TypeError):
        snapshot[KEY_SLOT] = "shovel"  # type: ignore[index]


def test_restore_rebinds_by_slot(deal, adapter):
    columns = deal.columns()
    snapshot = adapter.snapshot(columns)
    columns[2][0], columns[6][5] = columns[6][5], columns[2][0]

    adapter.restore(columns, snapshot)

    assert adapter.tags_by_slot(columns) == {KEY_SLOT: "key", SHOVEL_SLOT: "shovel"}
    assert adapter.tag_for(columns[6][5]) is None


def test_tags_survive_a_forced_repair(deal, adapter):
    def probe(candidate: Deal) -> SolveResult:
        changed = _changed_slots(deal, candidate)
        return SolveResult(solvable=changed == 2, move_count=0, foundation_cards=changed)

    outcome = repair_deal(deal, probe=probe, rng=random.Random(5), max_repairs=2, max_swaps=500, adapter=adapter)

    assert outcome.solved
    repaired = outcome.deal.columns()
    # Both tagged slots now hold other cards, yet the tags stayed on the slots
    assert _changed_slots(deal, outcome.deal) == 2
    assert adapter.tags_by_slot(repaired) == {KEY_SLOT: "key", SHOVEL_SLOT: "shovel"}


def test_every_swap_is_wrapped(deal, adapter):
    outcome = repair_deal(
        deal,
        probe=lambda candidate: SolveResult(solvable=False, move_count=0),
        rng=random.Random(0),
        max_repairs=1,
        max_swaps=4,
        adapter=adapter,
    )

    assert outcome.swaps_tried == 4
    # Four swaps applied and undone, then the best one applied again
    assert adapter.calls == ["snapshot", "restore"] * 9
    assert adapter.tags_by_slot(outcome.deal.columns()) == {KEY_SLOT: "key", SHOVEL_SLOT: "shovel"}


def test_generator_passes_the_adapter_through():
    adapter = RecordingAdapter()
    probed = []

    def probe(candidate: Deal) -> SolveResult:
        probed.append(candidate)
        if len(probed) == 1:
            # Tag the freshly shuffled deal before any repair runs
            columns = candidate.columns()
            adapter.place(columns, KEY_SLOT, "key")
            adapter.place(columns, SHOVEL_SLOT, "shovel")
        return SolveResult(solvable=_changed_slots(probed[0], candidate) > 0, move_count=1)

    result, diagnostics = generate_solvable_deal(
        GeneratorOptions(seed=8, resource_preservation=adapter, max_swaps_per_repair=500),
        probe=probe,
    )

    assert diagnostics.repaired
    assert adapter.calls
    assert adapter.tags_by_slot(result.columns()) == {KEY_SLOT: "key", SHOVEL_SLOT: "shovel"}


def test_no_adapter_no_tags(deal):
    outcome = repair_deal(
        deal,
        probe=lambda candidate: SolveResult(solvable=True, move_count=0),
        rng=random.Random(0),
    )

    assert outcome.solved
    assert outcome.deal.fingerprint() != deal.fingerprint()
