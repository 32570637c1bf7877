"""History-control commands and recorded actions."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Optional, Tuple

if TYPE_CHECKING:
    from .state import HistoryState


ActionCodec = Callable[[Any], Any]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CommandType(str, Enum):
    """Commands understood by the lifted reducer."""
    PERFORM_ACTION = "PERFORM_ACTION"
    RESET = "RESET"
    COMMIT = "COMMIT"
    ROLLBACK = "ROLLBACK"
    TOGGLE_ACTION = "TOGGLE_ACTION"
    SET_ACTIONS_ACTIVE = "SET_ACTIONS_ACTIVE"
    SWEEP = "SWEEP"
    JUMP_TO_STATE = "JUMP_TO_STATE"
    IMPORT_STATE = "IMPORT_STATE"
    IMPORT_ACTIONS = "IMPORT_ACTIONS"
    INIT = "@@INIT"


@dataclass(frozen=True)
class Command:
    """Base class of the closed set of history-control commands."""

    type: ClassVar[Optional[CommandType]] = None


@dataclass(frozen=True)
class Init(Command):
    """Store initialization signal.

    The wrapped store dispatches it when created and after its reducer is
    replaced; the lifted reducer answers with a full recomputation.
    """

    type = CommandType.INIT

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value}


INIT = Init()


@dataclass(frozen=True)
class PerformAction(Command):
    """Wraps an application action so it is recorded in history."""
    action: Any
    timestamp: datetime = field(default_factory=_now)

    type = CommandType.PERFORM_ACTION


@dataclass(frozen=True)
class Reset(Command):
    """Go back to the state the store was created with."""
    type = CommandType.RESET


@dataclass(frozen=True)
class Commit(Command):
    """Squash staged actions into the committed state."""
    type = CommandType.COMMIT


@dataclass(frozen=True)
class Rollback(Command):
    """Forget staged actions, keep the committed state."""
    type = CommandType.ROLLBACK


@dataclass(frozen=True)
class ToggleAction(Command):
    """Flip whether the action with ``action_id`` is skipped."""
    action_id: int

    type = CommandType.TOGGLE_ACTION


@dataclass(frozen=True)
class SetActionsActive(Command):
    """Enable or disable every action id in ``[start, end)``."""
    start: int
    end: int
    active: bool = True

    type = CommandType.SET_ACTIONS_ACTIVE


@dataclass(frozen=True)
class Sweep(Command):
    """Permanently drop skipped actions from history."""
    type = CommandType.SWEEP


@dataclass(frozen=True)
class JumpToState(Command):
    """Move the cursor to ``index`` without recomputing anything."""
    index: int

    type = CommandType.JUMP_TO_STATE


@dataclass(frozen=True)
class ImportState(Command):
    """Replace the whole history with a previously exported one."""
    state: "HistoryState"

    type = CommandType.IMPORT_STATE


@dataclass(frozen=True)
class ImportActions(Command):
    """Replace history with a replay of raw application actions."""
    actions: Tuple[Any, ...]

    type = CommandType.IMPORT_ACTIONS

    def __post_init__(self):
        object.__setattr__(self, "actions", tuple(self.actions))


@dataclass(frozen=True)
class ActionRecord:
    """An application action as recorded in history."""
    id: int
    action: Any
    timestamp: datetime = field(default_factory=_now)

    @property
    def is_init(self) -> bool:
        return isinstance(self.action, Init)

    def to_dict(self, encode_action: Optional[ActionCodec] = None) -> Dict[str, Any]:
        if self.is_init:
            action = self.action.to_dict()
        elif encode_action is not None:
            action = encode_action(self.action)
        else:
            action = self.action
        return {
            "id": self.id,
            "action": action,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any], decode_action: Optional[ActionCodec] = None) -> "ActionRecord":
        """Create an ActionRecord from a dictionary.

        Args:
            decode_action: Rebuilds application actions from their stored form.
                The init record is recognized before decoding.

        Raises:
            ValueError: If required fields are missing or invalid.
        """
        if not isinstance(d, dict):
            raise ValueError(f"Action record must be a dict, got {type(d).__name__}")

        missing = [f for f in ("id", "action", "timestamp") if f not in d]
        if missing:
            raise ValueError(f"Action record missing required fields: {missing}")

        record_id = d["id"]
        if not isinstance(record_id, int) or isinstance(record_id, bool):
            raise ValueError(f"id must be int, got {type(record_id).__name__}")
        if record_id < 0:
            raise ValueError(f"id must not be negative, got {record_id}")

        timestamp = d["timestamp"]
        if isinstance(timestamp, str):
            try:
                timestamp = datetime.fromisoformat(timestamp)
            except ValueError as e:
                raise ValueError(f"Invalid timestamp format '{d['timestamp']}': {e}")
        elif not isinstance(timestamp, datetime):
            raise ValueError(f"timestamp must be an ISO-8601 string, got {type(timestamp).__name__}")

        action = d["action"]
        if action == INIT.to_dict():
            action = INIT
        elif decode_action is not None:
            action = decode_action(action)

        return cls(id=record_id, action=action, timestamp=timestamp)
