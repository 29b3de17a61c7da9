import pytest

from sloopkit.jsonlogic import JsonLogicError, apply_logic

EXCLUDE_S2 = {"==": [{"var": "metadata.name"}, "s2"]}


def test_exclusion_rule_matches_named_resource():
    assert apply_logic(EXCLUDE_S2, {"metadata": {"name": "s2"}}) is True
    assert apply_logic(EXCLUDE_S2, {"metadata": {"name": "s1"}}) is False


def test_var_dotted_path_and_index():
    data = {"spec": {"ports": [{"port": 80}, {"port": 443}]}}
    assert apply_logic({"var": "spec.ports.1.port"}, data) == 443


def test_var_default_when_missing():
    assert apply_logic({"var": ["nope.deeper", "fallback"]}, {"a": 1}) == "fallback"


def test_var_empty_path_returns_data():
    data = {"a": [1, 2]}
    assert apply_logic({"var": ""}, data) == data


def test_missing_lists_absent_keys():
    assert apply_logic({"missing": ["a", "b"]}, {"a": "x"}) == ["b"]


def test_missing_some():
    data = {"a": 1, "b": 2}
    assert apply_logic({"missing_some": [1, ["a", "c"]]}, data) == []
    assert apply_logic({"missing_some": [2, ["a", "c"]]}, data) == ["c"]


def test_if_picks_branch():
    rule = {"if": [{"var": "flag"}, "yes", "no"]}
    assert apply_logic(rule, {"flag": True}) == "yes"
    assert apply_logic(rule, {"flag": False}) == "no"


def test_and_or_return_operand_values():
    assert apply_logic({"and": [1, 0, 2]}) == 0
    assert apply_logic({"or": [0, "", "value"]}) == "value"


def test_loose_and_strict_equality():
    assert apply_logic({"==": [1, "1"]}) is True
    assert apply_logic({"===": [1, "1"]}) is False
    assert apply_logic({"!=": [1, "1"]}) is False


def test_between_comparison():
    assert apply_logic({"<": [1, 2, 3]}) is True
    assert apply_logic({"<": [1, 5, 3]}) is False


def test_arithmetic_invariants():
    assert apply_logic({"+": [7, 9]}) == apply_logic({"+": [9, 7]})
    assert apply_logic({"-": [{"+": [4, 5]}, 5]}) == 4


def test_division_by_zero_raises():
    with pytest.raises(JsonLogicError):
        apply_logic({"/": [1, 0]})


def test_unknown_operator_raises():
    with pytest.raises(JsonLogicError):
        apply_logic({"frobnicate": [1]})


def test_non_rule_values_pass_through():
    assert apply_logic([1, {"var": "a"}], {"a": 5}) == [1, 5]


def test_array_quantifiers():
    data = {"items": [1, 2, 3]}
    assert apply_logic({"some": [{"var": "items"}, {">": [{"var": ""}, 2]}]}, data) is True
    assert apply_logic({"all": [{"var": "items"}, {">": [{"var": ""}, 0]}]}, data) is True
    assert apply_logic({"none": [{"var": "items"}, {">": [{"var": ""}, 5]}]}, data) is True


def test_in_and_merge():
    assert apply_logic({"in": ["ell", "hello"]}) is True
    assert apply_logic({"merge": [[1], [2, 3]]}) == [1, 2, 3]


def test_map_keeps_length():
    data = {"items": [1, 2, 3, 4]}
    result = apply_logic({"map": [{"var": "items"}, {"*": [{"var": ""}, 2]}]}, data)
    assert len(result) == len(data["items"])