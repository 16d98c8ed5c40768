import pytest

from fantasyxi.config.roster import RoleShape, common_shapes, get_rules, iter_rules
from fantasyxi.models.player import Role


def test_get_rules_defaults_to_classic():
    rules = get_rules()
    assert rules.name == "classic"
    assert rules.squad_size == 11
    assert rules.salary_cap == 100.0
    assert rules.max_per_team == 7
    assert rules.bounds(Role.KEEPER).min == 1
    assert rules.bounds("BWL").max == 6


def test_get_rules_is_case_insensitive_and_rejects_unknown():
    assert get_rules(" Classic ").name == "classic"
    with pytest.raises(KeyError):
        get_rules("test-match")


def test_legal_shapes_sum_to_squad_and_respect_bounds():
    rules = get_rules("classic")
    shapes = rules.legal_shapes()
    assert RoleShape(1, 4, 2, 4) in shapes
    assert RoleShape(4, 3, 1, 3) in shapes
    assert RoleShape(1, 2, 4, 4) not in shapes
    for shape in shapes:
        assert shape.total == 11
        assert rules.is_legal_shape(shape)


def test_common_shapes_filtered_by_rules():
    classic_names = {name for name, _ in common_shapes(get_rules("classic"))}
    open_names = {name for name, _ in common_shapes(get_rules("open"))}
    assert "balanced" in classic_names
    assert "all-rounder dominant" not in classic_names
    assert "all-rounder dominant" in open_names


def test_narrowed_rules_pin_each_role():
    rules = get_rules()
    narrowed = rules.narrowed_to(RoleShape.parse("1-3-2-5"))
    assert narrowed.legal_shapes() == (RoleShape(1, 3, 2, 5),)
    assert narrowed.salary_cap == rules.salary_cap

    with pytest.raises(ValueError):
        rules.narrowed_to(RoleShape(0, 5, 2, 4))


def test_role_shape_helpers():
    shape = RoleShape.from_mapping({"WK": 2, "BAT": 3, "AR": 2, "BWL": 4})
    assert shape.label == "2-3-2-4"
    assert shape.as_dict() == {"WK": 2, "BAT": 3, "AR": 2, "BWL": 4}
    with pytest.raises(ValueError):
        RoleShape.parse("1-4-6")


def test_iter_rules_lists_configured_sets():
    assert {rules.name for rules in iter_rules()} == {"classic", "open"}


def test_split_between_caps_each_team():
    rules = get_rules().split_between(("India", "Australia"), (6, 5))
    assert rules.team_cap("India") == 6
    assert rules.team_cap("Australia") == 5
    assert rules.team_cap("England") == 7
    assert rules.name == "classic:6/5"
    with pytest.raises(ValueError):
        get_rules().split_between(("India", "India"), (6, 5))
    with pytest.raises(ValueError):
        get_rules().check_split((4, 4))
