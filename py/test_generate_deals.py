import json
import sys

import pytest
from deal_generator import DifficultyHint
from generate_deals import check_unsolvable, generate_many, main
from klondike import RoomVariant


@pytest.mark.parametrize("games", ["0", "-3"])
def test_games_must_be_positive(monkeypatch, capsys, games):
    monkeypatch.setattr(sys, "argv", ["generate-deals", "--games", games])

    with pytest.raises(SystemExit) as excinfo:
        main()

    assert excinfo.value.code == 2
    assert "--games must be at least 1" in capsys.readouterr().err


def test_generate_many_rejects_no_games():
    with pytest.raises(ValueError):
        generate_many(0, seed=1, difficulty_hint=DifficultyHint.NORMAL, room_variant=RoomVariant.STANDARD)


def test_single_deal_as_json(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["generate-deals", "--seed", "5", "--room", "premium", "--json"])

    main()

    line = capsys.readouterr().out.strip()
    payload = json.loads(line)
    assert payload["deal"]["room_variant"] == "premium"
    assert [len(column) for column in payload["deal"]["tableau"]] == [1, 2, 3, 4, 5, 6, 7]
    assert len(payload["deal"]["stock"]) == 24
    assert payload["diagnostics"]["degraded"] is False


def test_generate_many_in_one_process(capsys):
    generate_many(2, seed=3, difficulty_hint=DifficultyHint.NORMAL, room_variant=RoomVariant.STANDARD, num_processes=1)

    out = capsys.readouterr().out
    assert "Results from 2 deals:" in out


def test_check_unsolvable_reports_wins(capsys):
    wins = check_unsolvable(3, seed=0)

    assert 0 <= wins <= 3
    assert f"Oracle won {wins}/3 hostile layouts" in capsys.readouterr().out
