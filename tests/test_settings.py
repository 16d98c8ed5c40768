import pytest

from fantasyxi.config.settings import OptimizerSettings


def test_defaults():
    settings = OptimizerSettings()
    assert settings.population_size == 100
    assert settings.generations == 50
    assert settings.threshold("conservative").max_volatility == 0.3
    assert settings.threshold("aggressive").min_consistency == 0.3
    with pytest.raises(KeyError):
        settings.threshold("reckless")


def test_from_env_overrides(monkeypatch):
    monkeypatch.setenv("FANTASYXI_POPULATION", "30")
    monkeypatch.setenv("FANTASYXI_GENERATIONS", "5")
    monkeypatch.setenv("FANTASYXI_MUTATION_RATE", "1.7")
    monkeypatch.setenv("FANTASYXI_WEIGHT_POINTS", "0.6")
    monkeypatch.setenv("FANTASYXI_BALANCED_MAX_VOLATILITY", "0.65")
    settings = OptimizerSettings.from_env()
    assert settings.population_size == 30
    assert settings.generations == 5
    assert settings.mutation_rate == 1.0
    assert settings.fitness_weights.points == 0.6
    assert settings.threshold("balanced").max_volatility == 0.65
    assert settings.threshold("balanced").min_consistency == 0.5


def test_from_env_ignores_garbage(monkeypatch):
    monkeypatch.setenv("FANTASYXI_POPULATION", "lots")
    monkeypatch.setenv("FANTASYXI_ELITE_FRACTION", "half")
    monkeypatch.setenv("FANTASYXI_TOURNAMENT_SIZE", "0")
    settings = OptimizerSettings.from_env()
    assert settings.population_size == 100
    assert settings.elite_fraction == 0.2
    assert settings.tournament_size == 1


def test_with_overrides_returns_copy():
    base = OptimizerSettings()
    tuned = base.with_overrides(generations=3)
    assert tuned.generations == 3
    assert base.generations == 50
