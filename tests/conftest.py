"""Shared fixtures for liftstore tests."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional

import pytest

from liftstore import INIT, DevTools, HistoryState, LiftedReducer, ToggleAction
from liftstore.core.engine import reset


def counter(state: int, action: Any) -> int:
    if action == "INCREMENT":
        return state + 1
    if action == "DECREMENT":
        return state - 1
    return state


def adder(state: int, action: Any) -> int:
    if isinstance(action, tuple) and action[0] == "ADD":
        return state + action[1]
    return state


def double_counter(state: int, action: Any) -> int:
    if action == "INCREMENT":
        return state + 2
    if action == "DECREMENT":
        return state - 2
    return state


class CountingReducer:
    """Reducer that records how often it runs and never changes state."""

    def __init__(self):
        self.calls = 0

    def __call__(self, state: Any, action: Any) -> Any:
        self.calls += 1
        return state


class ReferenceStore:
    """Minimal redux-style store used as the store being instrumented."""

    def __init__(self, reducer: Callable[[Any, Any], Any], initial_state: Any):
        self._reducer = reducer
        self._state = initial_state
        self._listeners: List[Callable[[], None]] = []
        self.dispatch(INIT)

    def dispatch(self, action: Any) -> Any:
        # State is only replaced once the reducer has succeeded.
        self._state = self._reducer(self._state, action)
        for listener in list(self._listeners):
            listener()
        return action

    def get_state(self) -> Any:
        return self._state

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def replace_reducer(self, reducer: Callable[[Any, Any], Any]) -> None:
        self._reducer = reducer
        self.dispatch(INIT)


def create_store(reducer: Callable[[Any, Any], Any], initial_state: Any, enhancer: Optional[Callable] = None):
    if enhancer is not None:
        return enhancer(create_store)(reducer, initial_state)
    return ReferenceStore(reducer, initial_state)


@pytest.fixture
def base_timestamp() -> datetime:
    """Fixed base timestamp for reproducible tests."""
    return datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def devtools() -> DevTools:
    return DevTools()


@pytest.fixture
def store(devtools: DevTools):
    """Counter store instrumented through ``devtools``."""
    return create_store(counter, 0, devtools.instrument())


@pytest.fixture
def lifted_store(store, devtools: DevTools):
    """The devtools store behind ``store``."""
    return devtools.store


@pytest.fixture
def lifted_counter() -> LiftedReducer:
    return LiftedReducer(counter, 0)


@pytest.fixture
def initial_history(lifted_counter: LiftedReducer) -> HistoryState:
    """Freshly initialized counter history."""
    return lifted_counter(reset(0), INIT)


@pytest.fixture
def sample_history() -> HistoryState:
    """Counter history after INCREMENT, DECREMENT, INCREMENT, INCREMENT with #2 skipped."""
    devtools = DevTools()
    store = create_store(counter, 0, devtools.instrument())
    for action in ("INCREMENT", "DECREMENT", "INCREMENT", "INCREMENT"):
        store.dispatch(action)
    devtools.store.dispatch(ToggleAction(2))
    return devtools.history()


@pytest.fixture
def history_file(tmp_path: Path, sample_history: HistoryState) -> Path:
    file_path = tmp_path / "history.json"
    sample_history.save(file_path)
    return file_path
