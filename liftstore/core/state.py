"""History State - the immutable snapshot tracked by the lifted store."""

import dataclasses
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from .actions import ActionCodec, ActionRecord
from .schema import CURRENT_VERSION, SchemaMigrator, validate_version

StateCodec = Callable[[Any], Any]


@dataclass(frozen=True)
class HistoryState:
    """Action log, computed-state cache and cursor of an instrumented store.

    Values are never mutated in place: every transition builds a new
    HistoryState and shares the fields it did not touch.
    """
    actions_by_id: Dict[int, ActionRecord]
    next_action_id: int
    staged_action_ids: Tuple[int, ...]
    skipped_action_ids: Tuple[int, ...]
    committed_state: Any
    current_state_index: int
    computed_states: Tuple[Any, ...]

    def __post_init__(self):
        object.__setattr__(self, "staged_action_ids", tuple(self.staged_action_ids))
        object.__setattr__(self, "skipped_action_ids", tuple(self.skipped_action_ids))
        object.__setattr__(self, "computed_states", tuple(self.computed_states))

    @property
    def current_state(self) -> Any:
        """The computed state the cursor points at."""
        return self.computed_states[self.current_state_index]

    @property
    def staged_actions(self) -> List[ActionRecord]:
        return [self.actions_by_id[action_id] for action_id in self.staged_action_ids]

    def is_skipped(self, action_id: int) -> bool:
        return action_id in self.skipped_action_ids

    def replace(self, **changes: Any) -> "HistoryState":
        """Return a copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes)

    def check_invariants(self) -> None:
        """Check the structural invariants of a completed transition.

        Raises:
            ValueError: Describing the first violated invariant.
        """
        if len(self.computed_states) != len(self.staged_action_ids):
            raise ValueError(
                f"computedStates has {len(self.computed_states)} entries for "
                f"{len(self.staged_action_ids)} staged actions"
            )

        unknown = [i for i in self.staged_action_ids if i not in self.actions_by_id]
        if unknown:
            raise ValueError(f"Staged action ids missing from actionsById: {unknown}")

        unstaged = [i for i in self.skipped_action_ids if i not in self.staged_action_ids]
        if unstaged:
            raise ValueError(f"Skipped action ids are not staged: {unstaged}")

        if self.actions_by_id and self.next_action_id <= max(self.actions_by_id):
            raise ValueError(
                f"nextActionId {self.next_action_id} must be greater than every "
                f"recorded id (max {max(self.actions_by_id)})"
            )

        if self.staged_action_ids and not 0 <= self.current_state_index < len(self.staged_action_ids):
            raise ValueError(
                f"currentStateIndex {self.current_state_index} out of range "
                f"for {len(self.staged_action_ids)} staged actions"
            )

    def to_dict(
        self,
        encode_state: Optional[StateCodec] = None,
        encode_action: Optional[ActionCodec] = None,
    ) -> Dict[str, Any]:
        """Export as a JSON/YAML friendly dictionary.

        Args:
            encode_state: Converts application states to serializable values.
            encode_action: Converts application actions to serializable values.
        """
        encode = encode_state or (lambda s: s)
        return {
            "liftstore": CURRENT_VERSION,
            "history": {
                "actionsById": {
                    str(action_id): record.to_dict(encode_action)
                    for action_id, record in self.actions_by_id.items()
                },
                "nextActionId": self.next_action_id,
                "stagedActionIds": list(self.staged_action_ids),
                "skippedActionIds": list(self.skipped_action_ids),
                "committedState": encode(self.committed_state),
                "currentStateIndex": self.current_state_index,
                "computedStates": [encode(s) for s in self.computed_states],
            },
        }

    @classmethod
    def from_dict(
        cls,
        d: Dict[str, Any],
        decode_state: Optional[StateCodec] = None,
        decode_action: Optional[ActionCodec] = None,
    ) -> "HistoryState":
        """Create a HistoryState from an exported dictionary.

        Args:
            decode_state: Inverse of the encode_state used by to_dict.
            decode_action: Inverse of the encode_action used by to_dict.

        Raises:
            SchemaVersionError: If the format version is no longer supported.
            ValueError: If fields are missing, malformed or inconsistent.
        """
        if not isinstance(d, dict):
            raise ValueError(f"Expected dict, got {type(d).__name__}")

        validate_version(d)
        d = SchemaMigrator.migrate(d)

        history = d.get("history")
        if not isinstance(history, dict):
            raise ValueError("Invalid history format: missing 'history' mapping")

        required_fields = [
            "actionsById",
            "nextActionId",
            "stagedActionIds",
            "skippedActionIds",
            "committedState",
            "currentStateIndex",
            "computedStates",
        ]
        missing = [f for f in required_fields if f not in history]
        if missing:
            raise ValueError(f"History missing required fields: {missing}")

        for name in ("nextActionId", "currentStateIndex"):
            if not isinstance(history[name], int):
                raise ValueError(f"{name} must be int, got {type(history[name]).__name__}")

        if not isinstance(history["actionsById"], dict):
            raise ValueError(f"actionsById must be a mapping, got {type(history['actionsById']).__name__}")

        for name in ("stagedActionIds", "skippedActionIds", "computedStates"):
            if not isinstance(history[name], list):
                raise ValueError(f"{name} must be a list, got {type(history[name]).__name__}")

        actions_by_id = {}
        for key, record in history["actionsById"].items():
            try:
                action_id = int(key)
            except (TypeError, ValueError):
                raise ValueError(f"actionsById key must be an integer, got {key!r}")
            parsed = ActionRecord.from_dict(record, decode_action)
            if parsed.id != action_id:
                raise ValueError(f"actionsById key {action_id} holds record with id {parsed.id}")
            actions_by_id[action_id] = parsed

        decode = decode_state or (lambda s: s)
        state = cls(
            actions_by_id=actions_by_id,
            next_action_id=history["nextActionId"],
            staged_action_ids=history["stagedActionIds"],
            skipped_action_ids=history["skippedActionIds"],
            committed_state=decode(history["committedState"]),
            current_state_index=history["currentStateIndex"],
            computed_states=[decode(s) for s in history["computedStates"]],
        )
        state.check_invariants()
        return state

    @classmethod
    def load(
        cls,
        path: Path,
        decode_state: Optional[StateCodec] = None,
        decode_action: Optional[ActionCodec] = None,
    ) -> "HistoryState":
        """Load a history from file (JSON or YAML).

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is empty, has invalid format, or malformed data.
        """
        if not path.exists():
            raise FileNotFoundError(f"History file not found: {path}")

        try:
            content = path.read_text()
        except PermissionError:
            raise PermissionError(f"Permission denied reading history file: {path}")

        if not content.strip():
            raise ValueError(f"History file is empty: {path}")

        try:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content)
            else:
                data = json.loads(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ValueError(f"Invalid file format in {path}: {e}")

        if data is None:
            raise ValueError(f"History file contains no data: {path}")

        if not isinstance(data, dict):
            raise ValueError(f"History file must contain a dictionary, got {type(data).__name__}: {path}")

        return cls.from_dict(data, decode_state=decode_state, decode_action=decode_action)

    def save(
        self,
        path: Path,
        encode_state: Optional[StateCodec] = None,
        encode_action: Optional[ActionCodec] = None,
    ) -> None:
        """Save history to file.

        Actions and states that JSON or YAML cannot represent need codecs
        here and the matching decoders in load() to survive the round trip.
        """
        data = self.to_dict(encode_state=encode_state, encode_action=encode_action)
        if path.suffix in (".yaml", ".yml"):
            content = yaml.dump(data, default_flow_style=False, sort_keys=False)
        else:
            content = json.dumps(data, indent=2, default=str)
        path.write_text(content)

    def diff(self, other: "HistoryState") -> List[Dict[str, Any]]:
        """Compare two histories entry by entry.

        Returns one item per staged position where the histories disagree,
        either on the action recorded there or on the state computed for it.
        """
        diffs = []
        first = self.staged_actions
        second = other.staged_actions
        for i in range(max(len(first), len(second))):
            a = first[i] if i < len(first) else None
            b = second[i] if i < len(second) else None

            if a is None:
                diffs.append({"index": i, "type": "missing_in_first", "action": b.to_dict()})
            elif b is None:
                diffs.append({"index": i, "type": "missing_in_second", "action": a.to_dict()})
            elif a.action != b.action or self.is_skipped(a.id) != other.is_skipped(b.id):
                diffs.append({
                    "index": i,
                    "type": "diverged_action",
                    "first": a.to_dict(),
                    "second": b.to_dict(),
                })
            elif (
                i < len(self.computed_states)
                and i < len(other.computed_states)
                and self.computed_states[i] != other.computed_states[i]
            ):
                diffs.append({
                    "index": i,
                    "type": "diverged_state",
                    "first": self.computed_states[i],
                    "second": other.computed_states[i],
                })

        return diffs
