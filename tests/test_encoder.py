from __future__ import annotations

import copy

import pytest

from processes.solver.encoder import encode_item, encode_request, resolve_variant, shape_for
from processes.solver.types import (
    EncodingError,
    ErrorCodes,
    Item,
    ProblemParameters,
    ProblemVariant,
)


def test_zero_one_vector_layout() -> None:
    params = {"capacity": 10, "items": [{"weight": 2, "value": 3}, {"weight": 4, "value": 5}]}
    assert encode_request("knapsack_01", params) == ["10", "2", "2,3", "4,5"]


def test_two_dimensional_token_and_capacity2_position() -> None:
    params = {
        "capacity": 10,
        "capacity2": 8,
        "items": [{"weight": 2, "volume": 3, "value": 10}],
    }
    args = encode_request("knapsack_2d", params)
    assert args == ["10", "8", "1", "2,3,10"]
    assert args[3] == "2,3,10"


def test_kth_vector_begins_with_capacity_k_count() -> None:
    params = {"capacity": 10, "k": 3, "items": [{"weight": 1, "value": 1}, {"weight": 2, "value": 2}]}
    args = encode_request(ProblemVariant.KTH_OPTIMAL, params)
    assert args[:3] == ["10", "3", "2"]
    assert args[3:] == ["1,1", "2,2"]


def test_grouped_token() -> None:
    item = Item(weight=5, value=7, group=2)
    assert encode_item(item, shape_for(ProblemVariant.GROUP)) == "5,7,2"
    args = encode_request("knapsack_group", {"capacity": 9, "items": [item.to_dict()]})
    assert args[-1] == "5,7,2"


@pytest.mark.parametrize(
    "algorithm,item,token",
    [
        ("knapsack_multiple", {"weight": 3, "value": 4, "count": 2}, "3,4,2"),
        ("knapsack_mixed", {"weight": 3, "value": 4, "type": 1}, "3,4,1"),
        ("knapsack_depend", {"weight": 3, "value": 4, "parent": 0}, "3,4,0"),
        ("knapsack_tree", {"weight": 3, "value": 4, "parent": 0}, "3,4,0"),
        ("knapsack_complete", {"weight": 3, "value": 4}, "3,4"),
        ("knapsack_count", {"weight": 3, "value": 4}, "3,4"),
    ],
)
def test_item_token_per_variant(algorithm: str, item: dict, token: str) -> None:
    args = encode_request(algorithm, {"capacity": 5, "items": [item]})
    assert args == ["5", "1", token]


def test_dependency_parents_reference_one_based_positions() -> None:
    params = {
        "capacity": 20,
        "items": [
            {"weight": 5, "value": 8, "parent": 0},
            {"weight": 2, "value": 3, "parent": 1},
            {"weight": 4, "value": 6, "parent": 0},
            {"weight": 1, "value": 2, "parent": 3},
        ],
    }
    assert encode_request("knapsack_depend", params)[2:] == ["5,8,0", "2,3,1", "4,6,0", "1,2,3"]


def test_empty_item_list() -> None:
    assert encode_request("knapsack_01", {"capacity": 0, "items": []}) == ["0", "0"]


def test_typed_parameters_accepted() -> None:
    params = ProblemParameters(capacity=7, items=(Item(weight=1, value=2),))
    assert encode_request("knapsack_01", params) == ["7", "1", "1,2"]


def test_input_is_not_mutated() -> None:
    params = {
        "capacity": 10,
        "capacity2": 5,
        "items": [{"weight": 2, "volume": 3, "value": 10}, {"weight": 1, "volume": 1, "value": 1}],
    }
    before = copy.deepcopy(params)
    encode_request("knapsack_2d", params)
    assert params == before


def test_unknown_algorithm_rejected() -> None:
    with pytest.raises(EncodingError) as ei:
        resolve_variant("knapsack_magic")
    assert ei.value.code is ErrorCodes.ENCODING_ERROR
    assert "knapsack_magic" in ei.value.message


@pytest.mark.parametrize(
    "algorithm,params,fragment",
    [
        ("knapsack_01", {"items": [{"weight": 1, "value": 1}]}, "capacity is required"),
        ("knapsack_kth", {"capacity": 5, "items": []}, "k is required"),
        ("knapsack_2d", {"capacity": 5, "items": []}, "capacity2 is required"),
        ("knapsack_01", {"capacity": 5, "k": 2, "items": []}, "k is not accepted"),
        ("knapsack_01", {"capacity": 5, "capacity2": 2, "items": []}, "capacity2 is not accepted"),
        ("knapsack_01", {"capacity": 5, "items": [{"value": 1}]}, "weight is required"),
        ("knapsack_01", {"capacity": 5, "items": [{"weight": 1}]}, "value is required"),
        (
            "knapsack_01",
            {"capacity": 5, "items": [{"weight": 1, "value": 1, "count": 2}]},
            "count is not accepted",
        ),
        (
            "knapsack_multiple",
            {"capacity": 5, "items": [{"weight": 1, "value": 1, "count": 2, "type": 0}]},
            "type is not accepted",
        ),
        (
            "knapsack_2d",
            {"capacity": 5, "capacity2": 3, "items": [{"weight": 1, "value": 1}]},
            "volume is required",
        ),
        ("knapsack_01", {"capacity": -1, "items": []}, "non-negative"),
        ("knapsack_01", {"capacity": 5.5, "items": []}, "must be an integer"),
        ("knapsack_01", {"capacity": "10", "items": []}, "must be an integer"),
        ("knapsack_01", {"capacity": True, "items": []}, "must be an integer"),
        ("knapsack_kth", {"capacity": 5, "k": 0, "items": []}, "must be positive"),
        (
            "knapsack_multiple",
            {"capacity": 5, "items": [{"weight": 1, "value": 1, "count": 0}]},
            "must be positive",
        ),
        (
            "knapsack_mixed",
            {"capacity": 5, "items": [{"weight": 1, "value": 1, "type": 3}]},
            "type must be one of",
        ),
        ("knapsack_01", {"capacity": 5, "items": "nope"}, "items must be a list"),
        ("knapsack_01", {"capacity": 5, "items": [7]}, "item 1 must be an object"),
        ("knapsack_01", "capacity=5", "params must be an object"),
    ],
)
def test_encoding_errors(algorithm: str, params, fragment: str) -> None:
    with pytest.raises(EncodingError) as ei:
        encode_request(algorithm, params)
    assert fragment in ei.value.message
    assert ei.value.message.startswith(f"Invalid parameters for {algorithm}")


def test_k_and_capacity2_together_rejected_for_every_variant() -> None:
    for variant in ProblemVariant:
        params = {"capacity": 5, "k": 1, "capacity2": 5, "items": []}
        with pytest.raises(EncodingError) as ei:
            encode_request(variant, params)
        assert "conflicting_extras" in ei.value.details["reasons"]


def test_all_violations_reported_together() -> None:
    params = {"capacity": -1, "items": [{"weight": -2, "value": 1, "group": 4}]}
    with pytest.raises(EncodingError) as ei:
        encode_request("knapsack_01", params)
    reasons = ei.value.details["reasons"]
    assert reasons.count("negative_value") == 2
    assert "unexpected_item_field" in reasons

