"""Lifting Engine - the history-aware reducer wrapped around a user reducer.

The lifted reducer receives the current HistoryState and a command and
returns the next HistoryState. Besides editing history it works out the
lowest index of ``computed_states`` the edit may have invalidated, so only
that suffix is replayed through the user reducer.
"""

import logging
import sys
from typing import Any, Callable, Optional, Sequence, Tuple

from .actions import (
    INIT,
    ActionRecord,
    Command,
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
from .state import HistoryState

logger = logging.getLogger(__name__)

Reducer = Callable[[Any, Any], Any]

# max_age used when no bound is configured
UNBOUNDED = sys.maxsize

# Marks a transition that leaves computed_states valid as they are
UNCHANGED: Optional[int] = None


class InvalidMaxAgeError(ValueError):
    """Raised when history is bounded to fewer than two entries."""

    def __init__(self, max_age: Any):
        self.max_age = max_age
        super().__init__(f"max_age must be an integer of at least 2, got {max_age!r}")


def validate_max_age(max_age: Any) -> int:
    """Return ``max_age`` if it is a usable history bound.

    Raises:
        InvalidMaxAgeError: If it is not an integer >= 2.
    """
    if isinstance(max_age, bool) or not isinstance(max_age, int) or max_age < 2:
        raise InvalidMaxAgeError(max_age)
    return max_age


def _init_record() -> ActionRecord:
    return ActionRecord(id=0, action=INIT)


def reset(initial_committed_state: Any) -> HistoryState:
    """History as it was when the store was created, before computing."""
    return HistoryState(
        actions_by_id={0: _init_record()},
        next_action_id=1,
        staged_action_ids=(0,),
        skipped_action_ids=(),
        committed_state=initial_committed_state,
        current_state_index=0,
        computed_states=(),
    )


def commit(state: HistoryState) -> HistoryState:
    """Squash staged actions into a new committed state."""
    return reset(state.current_state)


def rollback(state: HistoryState) -> HistoryState:
    """Forget staged actions and start again from the committed state."""
    return reset(state.committed_state)


def toggle_action(state: HistoryState, action_id: int) -> HistoryState:
    if action_id in state.skipped_action_ids:
        skipped = tuple(i for i in state.skipped_action_ids if i != action_id)
    else:
        skipped = (action_id,) + state.skipped_action_ids
    return state.replace(skipped_action_ids=skipped)


def set_actions_active(state: HistoryState, start: int, end: int, active: bool) -> HistoryState:
    ids = [i for i in state.staged_action_ids[1:] if start <= i < end]
    if active:
        skipped = tuple(i for i in state.skipped_action_ids if i not in ids)
    else:
        skipped = state.skipped_action_ids + tuple(
            i for i in ids if i not in state.skipped_action_ids
        )
    return state.replace(skipped_action_ids=skipped)


def sweep(state: HistoryState) -> HistoryState:
    """Forget any actions that are currently being skipped."""
    skipped = set(state.skipped_action_ids)
    staged = tuple(i for i in state.staged_action_ids if i not in skipped)
    return state.replace(
        staged_action_ids=staged,
        skipped_action_ids=(),
        current_state_index=min(state.current_state_index, len(staged) - 1),
    )


def jump_to_state(state: HistoryState, index: int) -> HistoryState:
    return state.replace(current_state_index=index)


def commit_excess_action(state: HistoryState) -> HistoryState:
    """Fold the oldest action after the init action into the committed state.

    The folded action cannot be recovered afterwards.
    """
    folded_id = state.staged_action_ids[1]
    actions_by_id = {i: r for i, r in state.actions_by_id.items() if i != folded_id}

    logger.debug("History reached max_age, auto-committing action %d", folded_id)
    return state.replace(
        actions_by_id=actions_by_id,
        staged_action_ids=state.staged_action_ids[:1] + state.staged_action_ids[2:],
        skipped_action_ids=tuple(i for i in state.skipped_action_ids if i != folded_id),
        committed_state=state.computed_states[1],
        computed_states=state.computed_states[1:],
        current_state_index=max(state.current_state_index - 1, 0),
    )


def perform_action(state: HistoryState, command: PerformAction, max_age: int) -> HistoryState:
    if len(state.staged_action_ids) >= max_age:
        state = commit_excess_action(state)

    # A cursor on the newest entry follows new actions; elsewhere it stays put.
    is_following = state.current_state_index == len(state.staged_action_ids) - 1
    action_id = state.next_action_id
    return state.replace(
        actions_by_id={
            **state.actions_by_id,
            action_id: ActionRecord(id=action_id, action=command.action, timestamp=command.timestamp),
        },
        next_action_id=action_id + 1,
        staged_action_ids=state.staged_action_ids + (action_id,),
        current_state_index=state.current_state_index + 1 if is_following else state.current_state_index,
    )


def import_actions(actions: Sequence[Any], initial_committed_state: Any) -> HistoryState:
    records = [_init_record()] + [
        ActionRecord(id=i, action=action) for i, action in enumerate(actions, start=1)
    ]
    return HistoryState(
        actions_by_id={record.id: record for record in records},
        next_action_id=len(records),
        staged_action_ids=tuple(range(len(records))),
        skipped_action_ids=(),
        committed_state=initial_committed_state,
        current_state_index=len(records) - 1,
        computed_states=(),
    )


def recompute_states(state: HistoryState, min_invalidated_index: int, reducer: Reducer) -> Tuple[Any, ...]:
    """Recompute ``computed_states`` from ``min_invalidated_index`` onwards.

    Entries before the index are reused; skipped actions copy the previous
    state forward unchanged.
    """
    computed = list(state.computed_states[:min_invalidated_index])
    skipped = set(state.skipped_action_ids)

    for i in range(min_invalidated_index, len(state.staged_action_ids)):
        action_id = state.staged_action_ids[i]
        previous = computed[i - 1] if i > 0 else state.committed_state
        if action_id in skipped:
            computed.append(previous)
        else:
            computed.append(reducer(previous, state.actions_by_id[action_id].action))

    return tuple(computed)


def unlift_state(state: HistoryState) -> Any:
    """Project the application state the cursor points at."""
    return state.current_state


class LiftedReducer:
    """A reducer over HistoryState built around an application reducer.

    Usage:
        lifted = LiftedReducer(counter, 0, max_age=50)
        history = lifted(reset(0), INIT)
        history = lifted(history, PerformAction("INCREMENT"))
        history.current_state  # 1

    Reducer exceptions propagate to the caller; the HistoryState passed in
    is left untouched.
    """

    def __init__(self, reducer: Reducer, initial_state: Any, max_age: int = UNBOUNDED):
        """Initialize the lifted reducer.

        Args:
            reducer: The application reducer ``(state, action) -> state``.
            initial_state: State the store was created with; used by Reset,
                ImportActions and cold initialization.
            max_age: Maximum number of staged entries, init action included.
                Older actions are committed automatically and lost.

        Raises:
            InvalidMaxAgeError: If max_age is smaller than 2.
        """
        self.reducer = reducer
        self.initial_state = initial_state
        self.max_age = validate_max_age(max_age)

    def __call__(self, state: HistoryState, action: Any) -> HistoryState:
        new_state, min_invalidated_index = self._apply(state, action)
        if min_invalidated_index is UNCHANGED:
            return new_state
        return new_state.replace(
            computed_states=recompute_states(new_state, min_invalidated_index, self.reducer)
        )

    def _apply(self, state: HistoryState, action: Any) -> Tuple[HistoryState, Optional[int]]:
        """Edit history for ``action``; return it with the invalidated index."""
        if not isinstance(action, Command):
            logger.debug("Passing through monitor action %r", action)
            return state, UNCHANGED

        if isinstance(action, PerformAction):
            new_state = perform_action(state, action, self.max_age)
            # Only the new action needs computing.
            return new_state, len(new_state.staged_action_ids) - 1

        if isinstance(action, Init):
            # Recompute everything on cold start and after a reducer swap.
            if not state.staged_action_ids:
                return reset(self.initial_state), 0
            return state, 0

        if isinstance(action, Reset):
            return reset(self.initial_state), 0

        if isinstance(action, Commit):
            return commit(state), 0

        if isinstance(action, Rollback):
            return rollback(state), 0

        if isinstance(action, ToggleAction):
            # The init entry at position 0 is never skipped.
            if action.action_id not in state.staged_action_ids[1:]:
                return state, UNCHANGED
            # History before the toggled action has not changed.
            return toggle_action(state, action.action_id), state.staged_action_ids.index(action.action_id)

        if isinstance(action, SetActionsActive):
            positions = [
                i for i, action_id in enumerate(state.staged_action_ids)
                if i > 0 and action.start <= action_id < action.end
            ]
            if not positions:
                return state, UNCHANGED
            return set_actions_active(state, action.start, action.end, action.active), positions[0]

        if isinstance(action, Sweep):
            if not state.skipped_action_ids:
                return state, UNCHANGED
            skipped = set(state.skipped_action_ids)
            first_swept = next(
                i for i, action_id in enumerate(state.staged_action_ids) if action_id in skipped
            )
            return sweep(state), first_swept

        if isinstance(action, JumpToState):
            if not 0 <= action.index < len(state.staged_action_ids):
                logger.warning(
                    "Ignoring jump to state %d, history has %d entries",
                    action.index, len(state.staged_action_ids),
                )
                return state, UNCHANGED
            return jump_to_state(state, action.index), UNCHANGED

        if isinstance(action, ImportState):
            # The imported snapshot carries its own computed states.
            return action.state, UNCHANGED

        if isinstance(action, ImportActions):
            return import_actions(action.actions, self.initial_state), 0

        logger.debug("Passing through unknown command %r", action)
        return state, UNCHANGED
