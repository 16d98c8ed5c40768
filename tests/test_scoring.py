import pytest

from fantasyxi.models import MatchContext, Role
from fantasyxi.scoring import (
    EnsembleMember,
    EnsemblePredictor,
    FeatureVector,
    FeedForwardPredictor,
    RuleForestPredictor,
    ScoringModel,
    build_features,
)

from tests.factories import CONTEXT, balanced_pool, make_player, score

UNIT_FIELDS = (
    "confidence",
    "volatility",
    "recent_form",
    "consistency",
    "versatility",
    "venue_fit",
    "pitch_fit",
    "weather_fit",
    "opposition_strength",
    "head_to_head",
    "captaincy",
    "ownership",
    "price_efficiency",
    "upset_potential",
    "performance_volatility",
)


def _features(**overrides) -> FeatureVector:
    values = dict(
        role=Role.BATTER,
        base_points=0.0,
        credits=0.0,
        selection_pct=0.0,
        dream_team_pct=0.0,
        recent_form=0.0,
        consistency=0.0,
        versatility=0.0,
        injury_risk=1.0,
        venue_fit=0.0,
        pitch_fit=0.0,
        weather_fit=0.0,
        opposition_strength=0.0,
        head_to_head=0.0,
        captaincy=0.0,
        ownership=0.0,
        price_efficiency=0.0,
        upset_potential=0.0,
    )
    values.update(overrides)
    return FeatureVector(**values)


class _ConstantPredictor:
    def __init__(self, name: str, value: float):
        self.name = name
        self.value = value

    def predict(self, features: FeatureVector) -> float:
        return self.value


def test_scored_attributes_stay_in_range():
    for scored in score(balanced_pool()):
        assert 0.0 <= scored.predicted_points <= 100.0
        assert 1.0 <= scored.injury_risk <= 10.0
        for name in UNIT_FIELDS:
            assert 0.0 <= getattr(scored, name) <= 1.0, name


def test_scoring_is_idempotent():
    pool = balanced_pool()
    first = [player.model_dump() for player in score(pool)]
    second = [player.model_dump() for player in score(pool)]
    assert first == second


def test_supplied_attributes_are_kept():
    player = make_player("p1", "BAT", recent_form=0.9, consistency=0.2, injury_risk=3.0)
    scored = ScoringModel().score_player(player, CONTEXT)
    assert scored.recent_form == 0.9
    assert scored.consistency == 0.2
    assert scored.injury_risk == 3.0


def test_venue_and_pitch_fit_follow_context():
    batter = make_player("b1", "BAT", points=40.0)
    bowler = make_player("w1", "BWL", points=40.0)
    elsewhere = MatchContext(venue="Eden Gardens", pitch_type="bowling")

    home = build_features(batter, CONTEXT)
    away = build_features(batter, elsewhere)
    assert home.venue_fit == pytest.approx(0.52)
    assert away.venue_fit == pytest.approx(0.32)
    assert home.pitch_fit == 0.8
    assert away.pitch_fit == 0.5
    assert build_features(bowler, elsewhere).pitch_fit == 0.8
    assert build_features(bowler, MatchContext()).pitch_fit == 0.6


def test_weather_and_head_to_head():
    player = make_player("p1", "BWL", "India")
    context = CONTEXT.model_copy(update={"head_to_head": {"p1": 80.0}})
    features = build_features(player, context)
    assert features.weather_fit == 0.8
    assert features.head_to_head == pytest.approx(0.8)
    assert build_features(make_player("p2", "BWL", "India"), context).head_to_head == 0.5


def test_stronger_opponent_lowers_opposition_score():
    player = make_player("p1", "BAT", "Australia", points=50.0)
    weak = MatchContext(team1="Australia", team2="Sri Lanka")
    strong = MatchContext(team1="Australia", team2="India")
    assert build_features(player, weak).opposition_strength > build_features(player, strong).opposition_strength


def test_ineligible_player_gets_lower_fitness_rating():
    fit = build_features(make_player("p1", "BAT"), CONTEXT)
    unfit = build_features(make_player("p2", "BAT", eligible=False), CONTEXT)
    assert fit.injury_risk == 8.0
    assert unfit.injury_risk == 5.0


def test_all_rounders_are_most_versatile():
    all_rounder = build_features(make_player("a1", "AR", credits=7.0), CONTEXT)
    batter = build_features(make_player("b1", "BAT", credits=7.0), CONTEXT)
    assert all_rounder.versatility == 0.9
    assert batter.versatility == pytest.approx(0.5)


def test_feed_forward_with_silent_inputs_returns_base_share():
    assert FeedForwardPredictor().predict(_features(base_points=50.0)) == pytest.approx(20.0)


def test_rule_forest_uses_default_bonuses():
    assert RuleForestPredictor().predict(_features(base_points=10.0)) == pytest.approx(10.6)


def test_ensemble_normalizes_and_clamps():
    ensemble = EnsemblePredictor(
        [
            EnsembleMember(_ConstantPredictor("low", 20.0), 0.25),
            EnsembleMember(_ConstantPredictor("high", 60.0), 0.75),
        ]
    )
    assert ensemble.predict(_features()) == pytest.approx(50.0)
    assert ensemble.breakdown(_features()) == {"low": 20.0, "high": 60.0}

    capped = EnsemblePredictor([EnsembleMember(_ConstantPredictor("huge", 500.0), 1.0)])
    assert capped.predict(_features()) == 100.0
    scored = ScoringModel(ensemble=capped).score_player(make_player("p1", "BAT"), CONTEXT)
    assert scored.predicted_points == 100.0


def test_confidence_weighting_shifts_member_weight():
    member = EnsembleMember(_ConstantPredictor("linear", 0.0), 0.25, confidence_weight=0.1)
    assert member.weight(0.0) == pytest.approx(0.25)
    assert member.weight(1.0) == pytest.approx(0.35)


def test_empty_ensemble_rejected():
    with pytest.raises(ValueError):
        EnsemblePredictor([])


def test_better_raw_points_predict_higher():
    low = ScoringModel().score_player(make_player("p1", "BAT", points=10.0), CONTEXT)
    high = ScoringModel().score_player(make_player("p2", "BAT", points=70.0), CONTEXT)
    assert high.predicted_points > low.predicted_points
