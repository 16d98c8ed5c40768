import random

import pytest

from fantasyxi.config.roster import get_rules
from fantasyxi.config.settings import RiskThreshold
from fantasyxi.exceptions import InfeasiblePool
from fantasyxi.optimizer import GeneticOptimizer, build_fallback, check_feasibility
from fantasyxi.optimizer.fitness import budget_utilization, diversity_score, fitness, risk_alignment
from fantasyxi.validation import shape_of, validate

from tests.factories import FAST_SETTINGS, balanced_pool, exact_pool, make_player, score


def _optimizer() -> GeneticOptimizer:
    return GeneticOptimizer(get_rules(), FAST_SETTINGS)


def _wide_pool():
    """2 keepers, 6 batters, 4 all-rounders, 6 bowlers; all 8 credits, 9 per team."""

    roles = ["WK"] * 2 + ["BAT"] * 6 + ["AR"] * 4 + ["BWL"] * 6
    return [
        make_player(f"w{i}", role, "India" if i % 2 == 0 else "Australia", credits=8.0, points=25.0 + i * 2)
        for i, role in enumerate(roles)
    ]


@pytest.mark.parametrize("risk_profile", ["conservative", "balanced", "aggressive"])
def test_optimize_returns_legal_lineup(risk_profile):
    pool = score(balanced_pool())
    result = _optimizer().optimize(pool, risk_profile, random.Random(3))
    assert len(set(result.player_ids)) == 11
    assert validate(result.players, get_rules()).ok
    assert result.generations == FAST_SETTINGS.generations


@pytest.mark.parametrize("risk_profile", ["conservative", "balanced", "aggressive"])
def test_exactly_eleven_players_returns_that_set(risk_profile):
    pool = score(exact_pool())
    result = _optimizer().optimize(pool, risk_profile, random.Random(0))
    assert set(result.player_ids) == {player.player_id for player in pool}


def test_wide_pool_stays_within_rules():
    rules = get_rules()
    result = _optimizer().optimize(score(_wide_pool()), "balanced", random.Random(11))
    assert rules.is_legal_shape(shape_of(result.players))
    assert sum(player.credits for player in result.players) <= 100.0


def test_no_keepers_is_infeasible():
    pool = [player for player in score(balanced_pool()) if player.role.value != "WK"]
    with pytest.raises(InfeasiblePool) as excinfo:
        _optimizer().optimize(pool, "balanced", random.Random(0))
    assert "Keeper" in excinfo.value.roles
    assert excinfo.value.error_code == "INFEASIBLE_POOL"


def test_over_budget_pool_is_infeasible():
    pool = score([player.model_copy(update={"credits": 10.0}) for player in exact_pool()])
    with pytest.raises(InfeasiblePool, match="credit cap"):
        check_feasibility(pool, get_rules())


def test_ineligible_players_never_selected():
    players = balanced_pool()
    players[4] = players[4].model_copy(update={"eligible": False})
    result = _optimizer().optimize(score(players), "balanced", random.Random(5))
    assert players[4].player_id not in result.player_ids


def test_locked_players_always_selected():
    pool = score(balanced_pool())
    locked = [pool[0].player_id, pool[-1].player_id]
    for seed in range(3):
        result = _optimizer().optimize(pool, "aggressive", random.Random(seed), locked_ids=locked)
        assert set(locked) <= set(result.player_ids)


def test_unknown_locks_are_ignored():
    pool = score(balanced_pool())
    result = _optimizer().optimize(pool, "balanced", random.Random(1), locked_ids=["ghost"])
    assert "ghost" not in result.player_ids
    assert len(result.players) == 11


def test_same_seed_same_lineup():
    pool = score(balanced_pool())
    first = _optimizer().optimize(pool, "balanced", random.Random(42))
    second = _optimizer().optimize(pool, "balanced", random.Random(42))
    assert first.player_ids == second.player_ids
    assert first.fitness == second.fitness


def test_risk_filter_fails_open():
    pool = score(balanced_pool())
    strict = FAST_SETTINGS.with_overrides(
        risk_thresholds={
            "conservative": RiskThreshold(max_volatility=0.0, min_consistency=1.0),
            "balanced": RiskThreshold(max_volatility=1.0, min_consistency=0.0),
            "aggressive": RiskThreshold(max_volatility=1.0, min_consistency=0.0),
        }
    )
    optimizer = GeneticOptimizer(get_rules(), strict)

    kept, applied = optimizer.risk_filter(pool, "conservative")
    assert not applied
    assert len(kept) == len(pool)

    kept, applied = optimizer.risk_filter(pool, "balanced")
    assert applied
    assert len(kept) == len(pool)

    result = optimizer.optimize(pool, "conservative", random.Random(2))
    assert not result.risk_filtered
    assert validate(result.players, get_rules()).ok


def test_build_fallback_is_deterministic_and_legal():
    pool = score(balanced_pool())
    first = build_fallback(pool, get_rules())
    second = build_fallback(pool, get_rules())
    assert [p.player_id for p in first] == [p.player_id for p in second]
    assert validate(first, get_rules()).ok


def test_build_fallback_honours_locks_and_raises_without_keepers():
    pool = score(balanced_pool())
    lineup = build_fallback(pool, get_rules(), locked_ids=[pool[-1].player_id])
    assert pool[-1].player_id in {player.player_id for player in lineup}

    no_keepers = [player for player in pool if player.role.value != "WK"]
    with pytest.raises(InfeasiblePool):
        build_fallback(no_keepers, get_rules())


def test_fitness_components():
    pool = score(exact_pool())
    rules = get_rules()
    assert budget_utilization(pool, rules) == pytest.approx(0.88)
    assert budget_utilization(pool, rules, 0.88) == pytest.approx(1.0)
    assert budget_utilization(pool, rules, 0.98) < budget_utilization(pool, rules, 0.90)
    assert 0.0 <= diversity_score(pool) <= 1.0
    assert risk_alignment(0.2, "conservative") == pytest.approx(0.8)
    assert risk_alignment(0.2, "aggressive") == pytest.approx(0.2)
    assert risk_alignment(0.5, "balanced") == pytest.approx(0.5)

    boosted = {player.player_id: 2.0 for player in pool}
    plain = fitness(pool, rules, "balanced", FAST_SETTINGS.fitness_weights)
    biased = fitness(pool, rules, "balanced", FAST_SETTINGS.fitness_weights, bias=boosted)
    assert biased > plain
