#!/usr/bin/env python3
"""Time travel through a counter store.

Run:
    python examples/counter_example.py

Then inspect the written history:
    liftstore states counter-history.json
"""

import logging
from pathlib import Path

from liftstore import INIT, Commit, DevTools, JumpToState, ToggleAction


class SimpleStore:
    """The smallest store liftstore can instrument."""

    def __init__(self, reducer, initial_state):
        self._reducer = reducer
        self._state = initial_state
        self._listeners = []
        self.dispatch(INIT)

    def dispatch(self, action):
        self._state = self._reducer(self._state, action)
        for listener in list(self._listeners):
            listener()
        return action

    def get_state(self):
        return self._state

    def subscribe(self, listener):
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def replace_reducer(self, reducer):
        self._reducer = reducer
        self.dispatch(INIT)


def create_store(reducer, initial_state, enhancer=None):
    if enhancer is not None:
        return enhancer(create_store)(reducer, initial_state)
    return SimpleStore(reducer, initial_state)


def counter(state, action):
    if action == "INCREMENT":
        return state + 1
    if action == "DECREMENT":
        return state - 1
    return state


def main():
    logging.basicConfig(level=logging.DEBUG)

    devtools = DevTools(state_type=int)
    store = create_store(counter, 0, devtools.instrument(max_age=10))
    store.subscribe(lambda: print(f"  state -> {store.get_state()}"))

    print("Dispatching INCREMENT, DECREMENT, INCREMENT, INCREMENT")
    for action in ("INCREMENT", "DECREMENT", "INCREMENT", "INCREMENT"):
        store.dispatch(action)

    print("Skipping the DECREMENT (action #2)")
    devtools.store.dispatch(ToggleAction(2))

    print("Jumping back to the first INCREMENT")
    devtools.store.dispatch(JumpToState(1))

    print("Jumping to the newest state and committing")
    devtools.store.dispatch(JumpToState(4))
    devtools.store.dispatch(Commit())

    output = Path("counter-history.json")
    devtools.history().save(output)
    print(f"History saved to {output}")


if __name__ == "__main__":
    main()
