import csv
from io import StringIO

import pytest
from pydantic import ValidationError

from fantasyxi.exceptions import FilterExhaustion
from fantasyxi.models import Lineup, LineupPlayer, Role
from fantasyxi.pool import AttributeRange, LineupExportError, export_lineups_to_csv, filter_pool, summarize_batch

from tests.factories import balanced_pool, score


def _lineup(lineup_id: str, ids: list[str], captain: str, vice: str, *, is_fallback: bool = False) -> Lineup:
    roles = [Role.KEEPER] + [Role.BATTER] * 4 + [Role.ALL_ROUNDER] * 2 + [Role.BOWLER] * 4
    players = tuple(
        LineupPlayer(
            player_id=pid,
            name=f"Player {pid}",
            team="India" if index % 2 else "Australia",
            role=roles[index % len(roles)],
            credits=8.0,
            predicted_points=40.0,
        )
        for index, pid in enumerate(ids)
    )
    return Lineup(
        lineup_id=lineup_id,
        players=players,
        captain_id=captain,
        vice_captain_id=vice,
        total_credits=8.0 * len(players),
        role_counts={"WK": 1, "BAT": 4, "AR": 2, "BWL": 4},
        expected_points=40.0 * len(players),
        risk_score=0.4,
        confidence_score=0.6,
        is_fallback=is_fallback,
    )


def _ids(start: int) -> list[str]:
    return [f"p{n}" for n in range(start, start + 11)]


def test_range_filter_keeps_locked_players():
    pool = score(balanced_pool())
    ranges = {"selection_pct": AttributeRange(min=40.0, max=80.0)}
    kept = filter_pool(pool, ranges, keep_ids=["wk1-ind"])
    kept_ids = {player.player_id for player in kept}
    assert "wk1-ind" in kept_ids
    for player in kept:
        if player.player_id != "wk1-ind":
            assert 40.0 <= player.player.selection_pct <= 80.0


def test_range_filter_on_scored_attribute():
    pool = score(balanced_pool())
    kept = filter_pool(pool, {"predicted_points": AttributeRange(min=0.0, max=100.0)})
    assert len(kept) == len(pool)


def test_filter_exhaustion_reports_counts():
    pool = score(balanced_pool())
    with pytest.raises(FilterExhaustion) as excinfo:
        filter_pool(pool, {"selection_pct": AttributeRange(min=73.0)}, required=11)
    assert excinfo.value.remaining == 5
    assert excinfo.value.required == 11


def test_unknown_attribute_rejected():
    with pytest.raises(KeyError):
        filter_pool([], {"height": AttributeRange(min=1.0)})


def test_range_must_be_ordered():
    with pytest.raises(ValidationError):
        AttributeRange(min=5.0, max=1.0)
    assert AttributeRange(max=3.0).contains(-10.0)


def test_summarize_batch_counts():
    lineups = [
        _lineup("L001", _ids(0), "p0", "p1"),
        _lineup("L002", _ids(5), "p5", "p6", is_fallback=True),
        _lineup("L003", _ids(0), "p1", "p0"),
    ]
    stats = summarize_batch(lineups, pool_size=32)
    assert stats.lineup_count == 3
    assert stats.unique_captains == 3
    assert stats.unique_pairs == 3
    assert stats.unique_lineups == 2
    assert stats.players_used == 16
    assert stats.pool_utilization == pytest.approx(50.0)
    # overlaps: (L1, L2) = 6, (L1, L3) = 11, (L2, L3) = 6
    assert stats.mean_overlap == pytest.approx(23 / 3)
    assert stats.max_overlap == 11
    assert stats.fallback_count == 1

    top = stats.player_usage[0]
    assert top.count == 3
    assert top.exposure == pytest.approx(1.0)


def test_single_lineup_has_no_overlap():
    stats = summarize_batch([_lineup("L001", _ids(0), "p0", "p1")], pool_size=11)
    assert stats.mean_overlap == 0.0
    assert stats.pool_utilization == pytest.approx(100.0)


def test_export_lineups_to_csv():
    lineups = [_lineup("L001", _ids(0), "p0", "p1"), _lineup("L002", _ids(11), "p12", "p11", is_fallback=True)]
    text = export_lineups_to_csv(lineups)
    rows = list(csv.reader(StringIO(text)))
    assert rows[0][:8] == ["EntryName", "Captain", "ViceCaptain", "Credits", "ExpectedPoints", "Shape", "Strategy", "Fallback"]
    assert rows[0][-1] == "P11"
    assert rows[1][:3] == ["L001", "p0", "p1"]
    assert rows[1][3] == "88"
    assert rows[1][5] == "1-4-2-4"
    assert rows[1][8] == "p0"
    assert rows[2][7] == "yes"
    assert len(rows) == 3


def test_export_rejects_bad_entry_names():
    with pytest.raises(LineupExportError):
        export_lineups_to_csv([_lineup("L001", _ids(0), "p0", "p1")], entry_names=["a", "b"])
