import csv
import json

from fantasyxi.cli import _parse_combos, _parse_filters, main

from tests.factories import CONTEXT, balanced_pool


def _write_slate(tmp_path, players) -> str:
    path = tmp_path / "slate.json"
    payload = {
        "context": CONTEXT.model_dump(mode="json"),
        "players": [player.model_dump(mode="json") for player in players],
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def _fast_env(monkeypatch):
    monkeypatch.setenv("FANTASYXI_POPULATION", "20")
    monkeypatch.setenv("FANTASYXI_GENERATIONS", "4")


def test_cli_writes_csv(tmp_path, monkeypatch, capsys):
    _fast_env(monkeypatch)
    slate = _write_slate(tmp_path, balanced_pool())
    output = tmp_path / "lineups.csv"

    code = main([slate, "--lineups", "3", "--risk", "aggressive", "--seed", "4", "--output", str(output)])

    assert code == 0
    rows = list(csv.reader(output.read_text(encoding="utf-8").splitlines()))
    assert len(rows) == 4
    assert rows[0][0] == "EntryName"
    assert "Wrote 3 lineups" in capsys.readouterr().out


def test_cli_reports_infeasible_pool(tmp_path, monkeypatch, capsys):
    _fast_env(monkeypatch)
    players = [player for player in balanced_pool() if player.role.value != "WK"]
    slate = _write_slate(tmp_path, players)

    code = main([slate, "--output", str(tmp_path / "out.csv")])

    assert code == 2
    assert "Keeper" in capsys.readouterr().err
    assert not (tmp_path / "out.csv").exists()


def test_parse_filters_open_ends():
    ranges = _parse_filters(["consistency=0.6:", "credits=:9.5"])
    assert ranges["consistency"].min == 0.6
    assert ranges["consistency"].max is None
    assert ranges["credits"].max == 9.5


def test_parse_captain_combos():
    combos = _parse_combos(["bat1-ind:ar1-aus:60", " bwl1-aus : wk1-ind : 40 "])
    assert [(combo.captain_id, combo.vice_captain_id, combo.percentage) for combo in combos] == [
        ("bat1-ind", "ar1-aus", 60.0),
        ("bwl1-aus", "wk1-ind", 40.0),
    ]


def test_cli_role_split(tmp_path, monkeypatch, capsys):
    _fast_env(monkeypatch)
    slate = _write_slate(tmp_path, balanced_pool())
    output = tmp_path / "split.csv"

    code = main([slate, "--lineups", "2", "--role-shape", "1-4-3-3", "--team-split", "6", "5", "--output", str(output)])
    assert code == 0
    rows = list(csv.reader(output.read_text(encoding="utf-8").splitlines()))
    assert [row[5] for row in rows[1:]] == ["1-4-3-3", "1-4-3-3"]

    code = main([slate, "--role-shape", "0-6-2-3", "--output", str(tmp_path / "bad.csv")])
    assert code == 2
    assert "not legal" in capsys.readouterr().err
