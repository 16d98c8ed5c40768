import pytest
from pydantic import ValidationError

from fantasyxi.models import MatchContext, Player, Role


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("WK", Role.KEEPER),
        ("Wicket-Keeper", Role.KEEPER),
        ("batsman", Role.BATTER),
        ("All Rounder", Role.ALL_ROUNDER),
        ("spin bowler", Role.BOWLER),
        ("BWL", Role.BOWLER),
        ("", Role.BATTER),
        ("opener", Role.BATTER),
    ],
)
def test_role_parse_variants(label, expected):
    assert Role.parse(label) is expected


def test_player_normalizes_role_and_is_frozen():
    player = Player(player_id="p1", name="Opener", team="India", role="Wicket Keeper", credits=9.0)
    assert player.role is Role.KEEPER
    assert player.role.label == "Keeper"
    with pytest.raises(ValidationError):
        player.credits = 10.0


def test_player_rejects_out_of_range_values():
    with pytest.raises(ValidationError):
        Player(player_id="p1", name="A", team="India", role="BAT", selection_pct=120.0)
    with pytest.raises(ValidationError):
        Player(player_id="p1", name="A", team="India", role="BAT", injury_risk=0.5)
    with pytest.raises(ValidationError):
        Player(player_id="", name="A", team="India", role="BAT")


def test_match_context_opponent_lookup():
    context = MatchContext(team1="India", team2="Australia")
    assert context.opponent_of("India") == "Australia"
    assert context.opponent_of("Australia") == "India"
    assert context.pitch_type == "balanced"
    assert context.weather == "clear"
