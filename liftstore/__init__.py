"""liftstore - time-travel instrumentation for reducer-based stores.

Wraps an existing store so every dispatched action is recorded and any
point of history can be jumped to, disabled, re-enabled, committed or
rolled back.

Usage:
    from liftstore import DevTools, ToggleAction

    devtools = DevTools()
    store = create_store(counter, 0, devtools.instrument(max_age=50))

    store.dispatch("INCREMENT")
    store.dispatch("DECREMENT")
    devtools.store.dispatch(ToggleAction(2))  # skip the DECREMENT
    store.get_state()                         # 1

    devtools.history().save(Path("history.json"))

CLI:
    liftstore inspect history.json        # Summary
    liftstore states history.json         # Timeline of computed states
    liftstore replay actions.json -r app.reducers:counter
    liftstore diff a.json b.json          # Compare histories
"""

__version__ = "1.1.0"

from .config import InstrumentOptions
from .core.actions import (
    INIT,
    ActionRecord,
    Command,
    CommandType,
    Commit,
    ImportActions,
    ImportState,
    Init,
    JumpToState,
    PerformAction,
    Reset,
    Rollback,
    SetActionsActive,
    Sweep,
    ToggleAction,
)
from .core.engine import UNBOUNDED, InvalidMaxAgeError, LiftedReducer
from .core.schema import SchemaVersionError
from .core.state import HistoryState
from .instrument import DevTools, Store, StoreTypeError, UnliftedStore

__all__ = [
    # History
    "ActionRecord",
    "HistoryState",
    "LiftedReducer",
    "UNBOUNDED",
    # Commands
    "Command",
    "CommandType",
    "Commit",
    "INIT",
    "ImportActions",
    "ImportState",
    "Init",
    "JumpToState",
    "PerformAction",
    "Reset",
    "Rollback",
    "SetActionsActive",
    "Sweep",
    "ToggleAction",
    # Instrumentation
    "DevTools",
    "InstrumentOptions",
    "Store",
    "UnliftedStore",
    # Errors
    "InvalidMaxAgeError",
    "SchemaVersionError",
    "StoreTypeError",
]
