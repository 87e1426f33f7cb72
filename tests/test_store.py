"""Tests for Store."""

import copy

import pytest

from oneway import (
    Action,
    ActionTypes,
    InvalidActionError,
    ReentrantDispatchError,
    Store,
    UndefinedStateError,
    create_store,
)


def counter(state, action):
    if state is None:
        state = {"count": 0}
    kind = action["type"]
    if kind == "INCREMENT":
        return {**state, "count": state["count"] + 1}
    if kind == "DECREMENT":
        return {**state, "count": state["count"] - 1}
    if kind == "RESET":
        return {**state, "count": 0}
    return state


class TestCreation:
    def test_init_action_produces_initial_state(self):
        s = create_store(counter)
        assert s.get_state() == {"count": 0}

    def test_preloaded_state(self):
        s = create_store(counter, {"count": 5})
        assert s.get_state() == {"count": 5}

    def test_preloaded_state_identity_preserved(self):
        preloaded = {"count": 5}
        s = create_store(counter, preloaded)
        assert s.get_state() is preloaded

    def test_reducer_must_be_callable(self):
        with pytest.raises(TypeError):
            create_store("nope")

    def test_reducer_sees_init_action(self):
        seen = []

        def r(state, action):
            seen.append(action["type"])
            return state if state is not None else 0

        create_store(r)
        assert seen == [ActionTypes.INIT]

    def test_independent_instances(self):
        a = create_store(counter)
        b = create_store(counter)
        a.dispatch({"type": "INCREMENT"})
        assert a.get_state() == {"count": 1}
        assert b.get_state() == {"count": 0}


class TestDispatch:
    def test_increment_twice(self):
        s = create_store(counter, {"count": 0})
        s.dispatch({"type": "INCREMENT"})
        s.dispatch({"type": "INCREMENT"})
        assert s.get_state() == {"count": 2}

    def test_decrement_then_reset(self):
        s = create_store(counter, {"count": 2})
        s.dispatch({"type": "DECREMENT"})
        assert s.get_state() == {"count": 1}
        s.dispatch({"type": "RESET"})
        assert s.get_state() == {"count": 0}

    def test_returns_new_state(self):
        s = create_store(counter)
        result = s.dispatch({"type": "INCREMENT"})
        assert result is s.get_state()

    def test_dataclass_action(self):
        def r(state, action):
            if state is None:
                return 0
            if action.type == "ADD":
                return state + action.payload["by"]
            return state

        s = create_store(r)
        s.dispatch(Action("ADD", {"by": 3}))
        assert s.get_state() == 3

    def test_unknown_action_keeps_identity(self):
        s = create_store(counter)
        before = s.get_state()
        s.dispatch({"type": "SOMETHING_ELSE"})
        assert s.get_state() is before

    @pytest.mark.parametrize("bad", [{}, {"type": None}, {"kind": "X"}, object(), 42])
    def test_missing_type_rejected(self, bad):
        s = create_store(counter)
        with pytest.raises(InvalidActionError):
            s.dispatch(bad)
        assert s.get_state() == {"count": 0}

    def test_invalid_action_is_type_error(self):
        s = create_store(counter)
        with pytest.raises(TypeError):
            s.dispatch({})

    def test_undefined_state_rejected(self):
        def r(state, action):
            if state is None:
                return {"count": 0}
            if action["type"] == "INCREMENT":
                return {"count": state["count"] + 1}
            if action["type"] == "BROKEN":
                return None
            return state

        s = create_store(r)
        s.dispatch({"type": "INCREMENT"})
        before = s.get_state()
        log = []
        s.subscribe(lambda: log.append("called"))
        with pytest.raises(UndefinedStateError):
            s.dispatch({"type": "BROKEN"})
        assert s.get_state() is before
        assert log == []

    def test_undefined_initial_state_rejected(self):
        with pytest.raises(UndefinedStateError):
            create_store(lambda state, action: None)

    def test_reducer_error_leaves_state(self):
        def r(state, action):
            if action["type"] == "BOOM":
                raise ValueError("boom")
            return state if state is not None else 1

        s = create_store(r)
        with pytest.raises(ValueError, match="boom"):
            s.dispatch({"type": "BOOM"})
        assert s.get_state() == 1
        # store is usable afterwards
        s.dispatch({"type": "OTHER"})

    def test_same_reference_still_notifies(self):
        s = create_store(counter)
        log = []
        s.subscribe(lambda: log.append(s.get_state()))
        s.dispatch({"type": "UNKNOWN"})
        assert len(log) == 1


class TestDeterminism:
    def test_replay_yields_identical_state(self):
        actions = [{"type": t} for t in ["INCREMENT", "INCREMENT", "DECREMENT", "NOOP", "INCREMENT"]]
        runs = []
        for _ in range(2):
            s = create_store(counter, {"count": 10})
            for a in actions:
                s.dispatch(a)
            runs.append(s.get_state())
        assert runs[0] == runs[1] == {"count": 12}

    def test_reducer_does_not_mutate_state(self):
        s = create_store(counter, {"count": 0, "user": {"name": "a"}})
        for kind in ["INCREMENT", "DECREMENT", "RESET", "NOOP"]:
            before = s.get_state()
            snapshot = copy.deepcopy(before)
            s.dispatch({"type": kind})
            assert before == snapshot


class TestSubscribe:
    def test_listeners_called_in_order(self):
        s = create_store(counter)
        log = []
        s.subscribe(lambda: log.append(1))
        s.subscribe(lambda: log.append(2))
        s.subscribe(lambda: log.append(3))
        s.dispatch({"type": "INCREMENT"})
        s.dispatch({"type": "INCREMENT"})
        assert log == [1, 2, 3, 1, 2, 3]

    def test_listener_sees_post_transition_state(self):
        s = create_store(counter)
        seen = []
        s.subscribe(lambda: seen.append(s.get_state()["count"]))
        s.dispatch({"type": "INCREMENT"})
        assert seen == [1]

    def test_unsubscribe(self):
        s = create_store(counter)
        log = []
        unsubscribe = s.subscribe(lambda: log.append("x"))
        s.dispatch({"type": "INCREMENT"})
        unsubscribe()
        s.dispatch({"type": "INCREMENT"})
        assert log == ["x"]

    def test_unsubscribe_twice_is_noop(self):
        s = create_store(counter)
        unsubscribe_a = s.subscribe(lambda: None)
        s.subscribe(lambda: None)
        unsubscribe_a()
        unsubscribe_a()
        assert s.listener_count == 1

    def test_same_listener_twice_is_two_entries(self):
        s = create_store(counter)
        log = []

        def listener():
            log.append("x")

        unsubscribe = s.subscribe(listener)
        s.subscribe(listener)
        s.dispatch({"type": "INCREMENT"})
        assert log == ["x", "x"]
        unsubscribe()
        s.dispatch({"type": "INCREMENT"})
        assert log == ["x", "x", "x"]

    def test_unsubscribe_during_round_takes_effect_next_round(self):
        s = create_store(counter)
        log = []
        handles = {}

        def l1():
            log.append(1)
            handles["l2"]()

        s.subscribe(l1)
        handles["l2"] = s.subscribe(lambda: log.append(2))
        s.subscribe(lambda: log.append(3))

        s.dispatch({"type": "INCREMENT"})
        assert log == [1, 2, 3]
        s.dispatch({"type": "INCREMENT"})
        assert log == [1, 2, 3, 1, 3]

    def test_subscribe_during_round_takes_effect_next_round(self):
        s = create_store(counter)
        log = []
        added = []

        def l1():
            log.append(1)
            if not added:
                added.append(s.subscribe(lambda: log.append("late")))

        s.subscribe(l1)
        s.dispatch({"type": "INCREMENT"})
        assert log == [1]
        s.dispatch({"type": "INCREMENT"})
        assert log == [1, 1, "late"]

    def test_listener_must_be_callable(self):
        s = create_store(counter)
        with pytest.raises(TypeError):
            s.subscribe(None)

    def test_listener_error_propagates_after_commit(self):
        s = create_store(counter)
        log = []

        def failing():
            raise RuntimeError("listener failed")

        s.subscribe(lambda: log.append(1))
        s.subscribe(failing)
        s.subscribe(lambda: log.append(3))
        with pytest.raises(RuntimeError, match="listener failed"):
            s.dispatch({"type": "INCREMENT"})
        assert s.get_state() == {"count": 1}
        assert log == [1]
        # the in-progress flag was cleared
        s.subscribe(lambda: None)


class TestReentrancy:
    def test_dispatch_from_reducer_rejected(self):
        holder = {}

        def r(state, action):
            if state is None:
                return 0
            if action["type"] == "NESTED":
                holder["store"].dispatch({"type": "INNER"})
            return state + 1

        s = create_store(r)
        holder["store"] = s
        with pytest.raises(ReentrantDispatchError):
            s.dispatch({"type": "NESTED"})
        assert s.get_state() == 0
        s.dispatch({"type": "OK"})
        assert s.get_state() == 1

    def test_dispatch_from_listener_rejected(self):
        s = create_store(counter)
        errors = []

        def listener():
            try:
                s.dispatch({"type": "INCREMENT"})
            except ReentrantDispatchError as exc:
                errors.append(exc)

        s.subscribe(listener)
        s.dispatch({"type": "INCREMENT"})
        assert len(errors) == 1
        assert s.get_state() == {"count": 1}

    def test_reentrant_error_is_runtime_error(self):
        s = create_store(counter)
        s.subscribe(lambda: s.dispatch({"type": "INCREMENT"}))
        with pytest.raises(RuntimeError):
            s.dispatch({"type": "INCREMENT"})
        assert s.get_state() == {"count": 1}

    def test_replace_reducer_from_listener_rejected(self):
        s = create_store(counter)
        s.subscribe(lambda: s.replace_reducer(counter))
        with pytest.raises(ReentrantDispatchError):
            s.dispatch({"type": "INCREMENT"})


class TestReplaceReducer:
    def test_replace_dispatches_replace_action(self):
        s = create_store(counter)
        seen = []

        def doubled(state, action):
            seen.append(action["type"])
            if action["type"] == "INCREMENT":
                return {**state, "count": state["count"] + 2}
            return state

        s.replace_reducer(doubled)
        assert seen == [ActionTypes.REPLACE]
        s.dispatch({"type": "INCREMENT"})
        assert s.get_state() == {"count": 2}

    def test_replace_notifies_listeners(self):
        s = create_store(counter)
        log = []
        s.subscribe(lambda: log.append("x"))
        s.replace_reducer(counter)
        assert log == ["x"]

    def test_replace_requires_callable(self):
        s = create_store(counter)
        with pytest.raises(TypeError):
            s.replace_reducer(42)


class TestRepr:
    def test_repr(self):
        s = Store(counter)
        assert "counter" in repr(s)
        assert "'count': 0" in repr(s)
