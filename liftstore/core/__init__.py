"""liftstore core - history state, commands and the lifting engine."""

from .actions import (
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
from .engine import (
    UNBOUNDED,
    InvalidMaxAgeError,
    LiftedReducer,
    recompute_states,
    reset,
    unlift_state,
    validate_max_age,
)
from .schema import (
    CURRENT_VERSION,
    MIN_SUPPORTED_VERSION,
    VERSION_HISTORY,
    SchemaMigrator,
    SchemaVersionError,
    get_version_info,
    validate_version,
)
from .state import HistoryState

__all__ = [
    "ActionRecord",
    "CURRENT_VERSION",
    "Command",
    "CommandType",
    "Commit",
    "HistoryState",
    "INIT",
    "ImportActions",
    "ImportState",
    "Init",
    "InvalidMaxAgeError",
    "JumpToState",
    "LiftedReducer",
    "MIN_SUPPORTED_VERSION",
    "PerformAction",
    "Reset",
    "Rollback",
    "SchemaMigrator",
    "SchemaVersionError",
    "SetActionsActive",
    "Sweep",
    "ToggleAction",
    "UNBOUNDED",
    "VERSION_HISTORY",
    "get_version_info",
    "recompute_states",
    "reset",
    "unlift_state",
    "validate_max_age",
    "validate_version",
]
