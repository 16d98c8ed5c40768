import pytest

from fantasyxi.models import Role
from fantasyxi.optimizer import LEADERSHIP_STRATEGIES, LeadershipSelector

from tests.factories import exact_pool, make_player, score


def test_rotation_gives_distinct_leaders():
    lineup = score(exact_pool())
    selector = LeadershipSelector()
    picks = [selector.select(lineup, lineup, seed) for seed in range(12)]
    assert len({pick.captain_id for pick in picks}) >= 2
    for seed, pick in enumerate(picks):
        assert pick.captain_id != pick.vice_captain_id
        assert pick.strategy == LEADERSHIP_STRATEGIES[seed % len(LEADERSHIP_STRATEGIES)]


def test_bowlers_skipped_when_others_available():
    lineup = score(exact_pool())
    by_id = {player.player_id: player for player in lineup}
    selector = LeadershipSelector()
    for seed in range(6):
        pick = selector.select(lineup, lineup, seed)
        assert by_id[pick.captain_id].role is not Role.BOWLER
        assert by_id[pick.vice_captain_id].role is not Role.BOWLER


def test_bowler_heavy_lineup_still_gets_two_leaders():
    lineup = score([make_player("k1", "WK")] + [make_player(f"b{i}", "BWL", points=20.0 + i) for i in range(10)])
    selector = LeadershipSelector()
    for seed in range(6):
        pick = selector.select(lineup, lineup, seed)
        assert pick.captain_id != pick.vice_captain_id


def test_same_seed_same_pick():
    lineup = score(exact_pool())
    selector = LeadershipSelector()
    assert selector.select(lineup, lineup, 4) == selector.select(lineup, lineup, 4)


def test_pinned_leaders_honoured():
    lineup = score(exact_pool())
    captain, vice = lineup[5].player_id, lineup[9].player_id
    selector = LeadershipSelector()

    pick = selector.select(lineup, lineup, 0, captain_id=captain, vice_captain_id=vice)
    assert (pick.captain_id, pick.vice_captain_id, pick.strategy) == (captain, vice, "pinned")

    solo = selector.select(lineup, lineup, 0, captain_id=captain, vice_captain_id=captain)
    assert solo.captain_id == captain
    assert solo.vice_captain_id != captain


def test_pinned_captain_outside_lineup_ignored():
    lineup = score(exact_pool())
    pick = LeadershipSelector().select(lineup, lineup, 1, captain_id="not-selected")
    assert pick.strategy == LEADERSHIP_STRATEGIES[1]
    assert pick.captain_id != "not-selected"


def test_invalid_inputs():
    with pytest.raises(ValueError):
        LeadershipSelector(captaincy_weight=1.5)
    lonely = score([make_player("k1", "WK")])
    with pytest.raises(ValueError):
        LeadershipSelector().select(lonely, lonely, 0)
