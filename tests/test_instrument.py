"""Tests for the store adapter (liftstore/instrument.py)."""

import pytest

from liftstore import (
    Commit,
    DevTools,
    HistoryState,
    ImportActions,
    ImportState,
    InstrumentOptions,
    InvalidMaxAgeError,
    JumpToState,
    Reset,
    Rollback,
    SetActionsActive,
    StoreTypeError,
    Sweep,
    ToggleAction,
    UnliftedStore,
)

from conftest import CountingReducer, counter, create_store, double_counter


class TestInstrument:
    """Tests for creating an instrumented store."""

    def test_returns_facade(self, store):
        assert isinstance(store, UnliftedStore)
        assert store.get_state() == 0

    def test_binds_handle(self, store, devtools: DevTools):
        assert devtools.is_bound
        assert isinstance(devtools.store.get_state(), HistoryState)

    def test_unbound_handle_raises(self):
        with pytest.raises(RuntimeError, match="not bound"):
            DevTools().store

    def test_handle_binds_once(self, store, devtools: DevTools):
        with pytest.raises(RuntimeError, match="already bound"):
            create_store(counter, 0, devtools.instrument())

    @pytest.mark.parametrize("max_age", [1, 0])
    def test_invalid_max_age_fails_immediately(self, max_age: int):
        with pytest.raises(InvalidMaxAgeError):
            DevTools().instrument(max_age=max_age)

    def test_accepts_options(self):
        devtools = DevTools()
        store = create_store(counter, 0, devtools.instrument(InstrumentOptions(max_age=3)))
        for _ in range(5):
            store.dispatch("INCREMENT")
        assert len(devtools.history().staged_action_ids) == 3
        assert store.get_state() == 5

    def test_initializes_when_store_does_not(self):
        """Stores that never dispatch INIT still get a computed history."""

        class SilentStore:
            def __init__(self, reducer, state):
                self.reducer = reducer
                self.state = state

            def dispatch(self, action):
                self.state = self.reducer(self.state, action)
                return action

            def get_state(self):
                return self.state

        devtools = DevTools()
        store = devtools.instrument()(lambda r, s, e=None: SilentStore(r, s))(counter, 7)

        assert store.get_state() == 7
        assert devtools.history().computed_states == (7,)


class TestStateType:
    """Tests for the declared state type of the handle."""

    def test_matching_type(self):
        devtools = DevTools(state_type=int)
        create_store(counter, 0, devtools.instrument())
        assert devtools.store.get_state().committed_state == 0

    def test_mismatched_type(self):
        devtools = DevTools(state_type=str)
        create_store(counter, 0, devtools.instrument())
        with pytest.raises(StoreTypeError) as exc_info:
            devtools.store
        assert isinstance(exc_info.value, TypeError)
        assert "int" in str(exc_info.value)

    def test_from_options(self):
        devtools = DevTools.from_options(InstrumentOptions(state_type=int))
        assert devtools.state_type is int

    def test_instrument_options_set_type(self):
        devtools = DevTools()
        create_store(counter, 0, devtools.instrument(InstrumentOptions(state_type=str)))

        assert devtools.state_type is str
        with pytest.raises(StoreTypeError):
            devtools.store

    def test_instrument_options_keep_matching_type(self):
        devtools = DevTools(state_type=int)
        create_store(counter, 0, devtools.instrument(InstrumentOptions(max_age=3, state_type=int)))
        assert devtools.store.get_state().committed_state == 0

    def test_instrument_options_conflicting_type(self):
        devtools = DevTools(state_type=int)
        with pytest.raises(ValueError, match="state_type str"):
            devtools.instrument(InstrumentOptions(state_type=str))
        assert not devtools.is_bound


class TestFacade:
    """Tests for the unlifted store seen by application code."""

    def test_perform_actions(self, store):
        assert store.get_state() == 0
        store.dispatch("INCREMENT")
        assert store.get_state() == 1
        store.dispatch("INCREMENT")
        assert store.get_state() == 2

    def test_dispatch_returns_action(self, store):
        action = {"type": "INCREMENT"}
        assert store.dispatch(action) is action

    def test_actions_recorded(self, store, lifted_store):
        store.dispatch("INCREMENT")
        store.dispatch("DECREMENT")
        history = lifted_store.get_state()
        assert history.staged_action_ids == (0, 1, 2)
        assert [r.action for r in history.staged_actions[1:]] == ["INCREMENT", "DECREMENT"]

    def test_subscribe_forwards(self, store, lifted_store):
        calls = []
        unsubscribe = store.subscribe(lambda: calls.append(store.get_state()))

        store.dispatch("INCREMENT")
        lifted_store.dispatch(JumpToState(0))
        unsubscribe()
        store.dispatch("INCREMENT")

        assert calls == [1, 0]

    def test_replace_reducer(self, store):
        store.dispatch("INCREMENT")
        store.dispatch("DECREMENT")
        store.dispatch("INCREMENT")
        assert store.get_state() == 1

        store.replace_reducer(double_counter)
        assert store.get_state() == 2

    def test_reducer_error_keeps_history(self, devtools: DevTools):
        def failing(state, action):
            if action == "BOOM":
                raise ValueError("bad action")
            return counter(state, action)

        store = create_store(failing, 0, devtools.instrument())
        store.dispatch("INCREMENT")
        before = devtools.history()

        with pytest.raises(ValueError, match="bad action"):
            store.dispatch("BOOM")

        assert devtools.history() is before
        assert store.get_state() == 1


class TestHistoryControl:
    """Tests for history-control commands dispatched to the devtools store."""

    def test_rollback_to_last_commit(self, store, lifted_store):
        store.dispatch("INCREMENT")
        store.dispatch("INCREMENT")
        assert store.get_state() == 2

        lifted_store.dispatch(Commit())
        assert store.get_state() == 2
        assert lifted_store.get_state().staged_action_ids == (0,)

        store.dispatch("INCREMENT")
        store.dispatch("INCREMENT")
        assert store.get_state() == 4

        lifted_store.dispatch(Rollback())
        assert store.get_state() == 2

        store.dispatch("DECREMENT")
        assert store.get_state() == 1

        lifted_store.dispatch(Rollback())
        assert store.get_state() == 2

    def test_reset_to_initial_state(self, store, lifted_store):
        store.dispatch("INCREMENT")
        assert store.get_state() == 1

        lifted_store.dispatch(Commit())
        assert store.get_state() == 1

        store.dispatch("INCREMENT")
        assert store.get_state() == 2

        lifted_store.dispatch(Rollback())
        assert store.get_state() == 1

        store.dispatch("INCREMENT")
        assert store.get_state() == 2

        lifted_store.dispatch(Reset())
        assert store.get_state() == 0

    def test_toggle_action(self, store, lifted_store):
        store.dispatch("INCREMENT")
        store.dispatch("DECREMENT")
        store.dispatch("INCREMENT")
        assert store.get_state() == 1

        lifted_store.dispatch(ToggleAction(2))
        assert store.get_state() == 2

        lifted_store.dispatch(ToggleAction(2))
        assert store.get_state() == 1

    def test_set_actions_active(self, store, lifted_store):
        store.dispatch("INCREMENT")
        store.dispatch("INCREMENT")
        store.dispatch("INCREMENT")
        assert store.get_state() == 3

        lifted_store.dispatch(SetActionsActive(1, 3, False))
        assert store.get_state() == 1

        lifted_store.dispatch(SetActionsActive(0, 2, True))
        assert store.get_state() == 2

        lifted_store.dispatch(SetActionsActive(0, 1, True))
        assert store.get_state() == 2

    def test_sweep_disabled_actions(self, store, lifted_store):
        for action in ("INCREMENT", "DECREMENT", "INCREMENT", "INCREMENT"):
            store.dispatch(action)

        assert store.get_state() == 2
        assert lifted_store.get_state().staged_action_ids == (0, 1, 2, 3, 4)
        assert lifted_store.get_state().skipped_action_ids == ()

        lifted_store.dispatch(ToggleAction(2))
        assert store.get_state() == 3
        assert lifted_store.get_state().staged_action_ids == (0, 1, 2, 3, 4)
        assert lifted_store.get_state().skipped_action_ids == (2,)

        lifted_store.dispatch(Sweep())
        assert store.get_state() == 3
        assert lifted_store.get_state().staged_action_ids == (0, 1, 3, 4)
        assert lifted_store.get_state().skipped_action_ids == ()

    def test_jump_to_state(self, store, lifted_store):
        store.dispatch("INCREMENT")
        store.dispatch("DECREMENT")
        store.dispatch("INCREMENT")
        assert store.get_state() == 1

        lifted_store.dispatch(JumpToState(0))
        assert store.get_state() == 0

        lifted_store.dispatch(JumpToState(1))
        assert store.get_state() == 1

        lifted_store.dispatch(JumpToState(2))
        assert store.get_state() == 0

        store.dispatch("INCREMENT")
        assert store.get_state() == 0

        lifted_store.dispatch(JumpToState(4))
        assert store.get_state() == 2


class TestRecomputation:
    """Tests counting reducer calls through the instrumented store."""

    def _monitored(self):
        reducer = CountingReducer()
        devtools = DevTools()
        store = create_store(reducer, 0, devtools.instrument())
        return reducer, store, devtools.store

    def test_not_recomputed_on_every_action(self):
        reducer, store, _ = self._monitored()
        assert reducer.calls == 1

        for _ in range(3):
            store.dispatch("INCREMENT")

        assert reducer.calls == 4

    def test_not_recomputed_when_jumping(self):
        reducer, store, lifted_store = self._monitored()
        for _ in range(3):
            store.dispatch("INCREMENT")
        saved = lifted_store.get_state().computed_states

        for index in (0, 1, 3):
            lifted_store.dispatch(JumpToState(index))

        assert reducer.calls == 4
        assert lifted_store.get_state().computed_states == saved

    def test_not_recomputed_on_monitor_actions(self):
        reducer, store, lifted_store = self._monitored()
        for _ in range(3):
            store.dispatch("INCREMENT")
        saved = lifted_store.get_state().computed_states

        lifted_store.dispatch("lol")
        lifted_store.dispatch("wat")

        assert reducer.calls == 4
        assert lifted_store.get_state().computed_states == saved


class TestMaxAge:
    """Tests for auto-commit through the instrumented store."""

    @pytest.fixture
    def configured(self):
        devtools = DevTools()
        store = create_store(counter, 0, devtools.instrument(max_age=3))
        return store, devtools.store

    def test_auto_commit_earliest_action(self, configured):
        store, lifted_store = configured
        store.dispatch("INCREMENT")
        store.dispatch("INCREMENT")
        history = lifted_store.get_state()

        assert store.get_state() == 2
        assert len(history.actions_by_id) == 3
        assert history.committed_state == 0
        assert 1 in history.staged_action_ids

        store.dispatch("INCREMENT")
        history = lifted_store.get_state()

        assert store.get_state() == 3
        assert len(history.actions_by_id) == 3
        assert 1 not in history.staged_action_ids
        assert history.computed_states[0] == 1
        assert history.committed_state == 1
        assert history.current_state_index == 2

    def test_skipped_actions_removed_once_committed(self, configured):
        store, lifted_store = configured
        store.dispatch("INCREMENT")
        lifted_store.dispatch(ToggleAction(1))

        store.dispatch("INCREMENT")
        assert 1 in lifted_store.get_state().skipped_action_ids

        store.dispatch("INCREMENT")
        assert 1 not in lifted_store.get_state().skipped_action_ids

    def test_current_state_index_kept(self, configured):
        store, lifted_store = configured
        store.dispatch("INCREMENT")
        store.dispatch("INCREMENT")
        assert lifted_store.get_state().current_state_index == 2

        store.dispatch("INCREMENT")
        history = lifted_store.get_state()
        assert history.current_state_index == 2
        assert history.current_state == 3


class TestImportThroughStore:
    """Tests for importing exported histories and action logs."""

    @pytest.fixture
    def exported(self) -> HistoryState:
        devtools = DevTools()
        store = create_store(counter, 0, devtools.instrument())
        for _ in range(3):
            store.dispatch("INCREMENT")
        return devtools.history()

    def test_import_state(self, exported: HistoryState):
        devtools = DevTools()
        create_store(counter, 0, devtools.instrument())

        devtools.store.dispatch(ImportState(exported))

        assert devtools.history() == exported

    def test_import_state_replaces_log(self, exported: HistoryState):
        devtools = DevTools()
        store = create_store(counter, 0, devtools.instrument())
        store.dispatch("DECREMENT")
        store.dispatch("DECREMENT")

        devtools.store.dispatch(ImportState(exported))

        assert devtools.history() == exported
        assert store.get_state() == 3

    def test_import_actions_replaces_log(self, exported: HistoryState):
        devtools = DevTools()
        store = create_store(counter, 0, devtools.instrument())
        store.dispatch("DECREMENT")
        store.dispatch("DECREMENT")

        devtools.store.dispatch(ImportActions(["INCREMENT"] * 3))

        actual = devtools.history()
        assert actual.committed_state == exported.committed_state
        assert actual.computed_states == exported.computed_states
        assert actual.current_state_index == exported.current_state_index
        assert actual.next_action_id == exported.next_action_id
        assert actual.skipped_action_ids == exported.skipped_action_ids
        assert actual.staged_action_ids == exported.staged_action_ids
        assert store.get_state() == 3
