"""Tests for FieldStore: reads, the single write path and per-field isolation."""
import logging

import pytest

from formstate import EMPTY_ENTRY, FieldStore, FormState


@pytest.fixture
def store():
    return FieldStore(FormState.create({"a": "", "b": "", "c": 0}))


def test_field_set_fixed_from_initial_values(store):
    assert store.field_names == ("a", "b", "c")
    assert store.read("c").value == 0
    assert store.read("a").validation is None


def test_read_unknown_field_warns_and_returns_empty_slice(store, caplog):
    with caplog.at_level(logging.WARNING, logger="formstate"):
        entry = store.read("missing")
    assert entry is EMPTY_ENTRY
    assert "missing" in caplog.text


def test_updating_one_field_keeps_other_entries(store):
    before = store.read_all()
    store.set_field_value("a", "x")
    after = store.read_all()

    assert after is not before
    assert after["a"].value == "x"
    assert after["b"] is before["b"]
    assert after["c"] is before["c"]


def test_sequence_of_writes_never_touches_other_fields(store):
    writes = [("a", "1"), ("b", "2"), ("a", "3"), ("c", 4), ("b", "5")]
    for name, value in writes:
        before = store.read_all()
        store.set_field_value(name, value)
        after = store.read_all()
        for other in store.field_names:
            if other != name:
                assert after[other] is before[other]


def test_only_changed_field_subscribers_fire(store):
    seen = {"a": [], "b": []}
    store.subscribe("a", lambda entry: seen["a"].append(entry.value))
    store.subscribe("b", lambda entry: seen["b"].append(entry.value))

    store.set_field_value("a", "hello")

    assert seen == {"a": ["hello"], "b": []}


def test_form_subscribers_receive_changed_names_and_flag_changes(store):
    events = []
    store.subscribe_all(lambda changed, flags: events.append((set(changed), flags)))

    store.set_field_value("b", "x")
    store.mutate(lambda s: s.with_flags(is_submitting=True))

    assert events == [({"b"}, False), (set(), True)]


def test_noop_mutation_commits_nothing(store):
    calls = []
    store.subscribe_all(lambda changed, flags: calls.append(changed))
    before = store.read_all()
    token = store.get_token()

    assert store.mutate(lambda s: s) is before
    assert store.get_token() == token
    assert calls == []


def test_setting_identical_value_object_is_noop(store):
    value = ["x"]
    store.set_field_value("a", value)
    state = store.read_all()
    store.set_field_value("a", value)
    assert store.read_all() is state


def test_equal_validation_is_rejected(store):
    store.set_field_validation("a", {"length": False, "nested": {"ok": True}})
    before = store.read_all()

    store.set_field_validation("a", {"length": False, "nested": {"ok": True}})

    assert store.read_all() is before


def test_validation_false_differs_from_zero(store):
    store.set_field_validation("c", 0)
    before = store.read_all()
    store.set_field_validation("c", False)
    assert store.read_all() is not before
    assert store.read("c").validation is False


def test_updater_may_not_change_field_set(store):
    with pytest.raises(ValueError):
        store.mutate(lambda s: FormState(fields={"a": s["a"]}))


def test_updater_must_return_form_state(store):
    with pytest.raises(TypeError):
        store.mutate(lambda s: {"a": s["a"]})


def test_failing_subscriber_does_not_block_others(store, caplog):
    seen = []

    def broken(entry):
        raise RuntimeError("boom")

    store.subscribe("a", broken)
    store.subscribe("a", lambda entry: seen.append(entry.value))

    with caplog.at_level(logging.WARNING, logger="formstate"):
        store.set_field_value("a", "x")

    assert seen == ["x"]
    assert "boom" in caplog.text
    assert store.read("a").value == "x"


def test_unsubscribe_stops_notifications(store):
    seen = []
    unsubscribe = store.subscribe("a", lambda entry: seen.append(entry.value))
    store.set_field_value("a", "1")
    unsubscribe()
    store.set_field_value("a", "2")
    assert seen == ["1"]


def test_subscriber_sees_committed_state(store):
    observed = []
    store.subscribe("a", lambda entry: observed.append(store.read_all()["a"] is entry))
    store.set_field_value("a", "x")
    assert observed == [True]


def test_subscriber_write_during_fan_out_leaves_latest_entry_last(store):
    seen_b = []

    def write_b(entry):
        if entry.value == "outer":
            store.set_field_value("b", "from-subscriber")

    store.subscribe("a", write_b)
    store.subscribe("b", lambda entry: seen_b.append(entry.value))

    store.mutate(lambda s: s.with_fields({
        "a": s["a"].with_value("outer"),
        "b": s["b"].with_value("outer"),
    }))

    assert store.read("b").value == "from-subscriber"
    assert seen_b[-1] == "from-subscriber"
    assert seen_b.count("from-subscriber") == 1


def test_subscriber_rewriting_its_own_field(store):
    first, second = [], []

    def normalize(entry):
        first.append(entry.value)
        if entry.value != entry.value.strip():
            store.set_field_value("a", entry.value.strip())

    store.subscribe("a", normalize)
    store.subscribe("a", lambda entry: second.append(entry.value))

    store.set_field_value("a", " x ")

    assert store.read("a").value == "x"
    assert first == [" x ", "x"]
    assert second == ["x"]


def test_unknown_field_writes_are_ignored(store, caplog):
    before = store.read_all()
    with caplog.at_level(logging.WARNING, logger="formstate"):
        store.set_field_value("nope", 1)
        store.set_field_validation("nope", False)
        store.subscribe("nope", lambda entry: None)
    assert store.read_all() is before
    assert caplog.text.count("nope") == 3
