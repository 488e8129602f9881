"""Tests for derived views and validation helpers."""
import pytest

from formstate import (
    FormState,
    SingleValueTokenCache,
    calculate_is_valid,
    create_validation,
    create_values,
    deep_equal,
    is_dirty,
)


@pytest.fixture
def state():
    return FormState.create({"a": "x", "b": 2})


def test_create_values_follows_field_order(state):
    assert list(create_values(["b", "a"], state).items()) == [("b", 2), ("a", "x")]


def test_create_validation_omits_unvalidated_fields(state):
    validated = state.with_field("a", state["a"].with_validation(False))
    assert create_validation(["a", "b"], validated) == {"a": False}


@pytest.mark.parametrize("validation, expected", [
    ({}, True),
    ({"a": True, "b": "looks fine"}, True),
    ({"a": False}, False),
    ({"a": {"rules": {"min": True, "max": False}}}, False),
    ({"a": {"rules": {"min": True}}, "b": None}, True),
    ({"a": [True, {"deep": False}]}, False),
    ({"a": 0, "b": ""}, True),
])
def test_calculate_is_valid(validation, expected):
    assert calculate_is_valid(validation) is expected


def test_failure_after_nested_mapping_is_found():
    # A nested mapping without failures must not hide a later sibling's False
    assert calculate_is_valid({"a": {"ok": True}, "b": False}) is False
    assert calculate_is_valid({"a": False, "b": {"ok": True}}) is False


def test_deep_equal_keeps_booleans_apart_from_numbers():
    assert deep_equal({"a": [1, {"b": "c"}]}, {"a": [1, {"b": "c"}]})
    assert not deep_equal({"a": False}, {"a": 0})
    assert not deep_equal(True, 1)
    assert not deep_equal({"a": 1}, {"a": 1, "b": 2})
    assert not deep_equal([1, 2], (1, 2))


def test_is_dirty():
    assert is_dirty({"a": ""}, {"a": "x"}) is True
    assert is_dirty({"a": ["x"]}, {"a": ["x"]}) is False


def test_views_are_memoized_until_commit(form):
    values = form.values()
    validation = form.validation()
    assert form.values() is values
    assert form.validation() is validation

    form.set_field_value("a", "changed", should_validate=False)

    assert form.values() is not values
    assert form.values()["a"] == "changed"


def test_views_are_read_only(form):
    with pytest.raises(TypeError):
        form.values()["a"] = "direct"


def test_is_dirty_tracks_baseline(form):
    assert form.is_dirty() is False
    form.set_field_value("a", "x", should_validate=False)
    assert form.is_dirty() is True
    form.set_field_value("a", "", should_validate=False)
    assert form.is_dirty() is False


def test_is_valid_follows_validation(form):
    assert form.is_valid() is True
    form.set_field_validation("a", {"format": False})
    assert form.is_valid() is False
    form.set_field_validation("a", {"format": True})
    assert form.is_valid() is True


def test_single_value_token_cache_compares_identity():
    token = [object()]
    cache = SingleValueTokenCache(lambda: (token[0],))
    computed = []

    def compute():
        computed.append(1)
        return len(computed)

    assert cache.get_or_compute(compute) == 1
    assert cache.get_or_compute(compute) == 1
    token[0] = object()
    assert cache.get_or_compute(compute) == 2
    cache.invalidate()
    assert cache.get_or_compute(compute) == 3
    assert cache.stats == (1, 3)
