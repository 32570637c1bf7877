"""Benchmark fixtures for generating action logs and histories of various sizes.

Provides a small todo-list reducer and factory functions that drive it
through the lifted reducer, for performance benchmarking.
"""

import random
from enum import IntEnum
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Dict, List, Tuple

from liftstore import INIT, UNBOUNDED, HistoryState, LiftedReducer, PerformAction, ToggleAction
from liftstore.core.engine import reset


class HistorySize(IntEnum):
    """Standard history sizes for benchmarking."""

    SMALL = 100
    MEDIUM = 1000
    LARGE = 5000


def todo_reducer(state: Dict[str, Any], action: Dict[str, Any]) -> Dict[str, Any]:
    """Reducer over ``{"todos": [...], "next": int}``."""
    kind = action.get("type") if isinstance(action, dict) else None

    if kind == "ADD":
        todo = {"id": state["next"], "text": action["text"], "done": False}
        return {"todos": state["todos"] + [todo], "next": state["next"] + 1}
    if kind == "COMPLETE":
        todos = [
            dict(t, done=True) if t["id"] == action["id"] else t
            for t in state["todos"]
        ]
        return {"todos": todos, "next": state["next"]}
    if kind == "REMOVE":
        todos = [t for t in state["todos"] if t["id"] != action["id"]]
        return {"todos": todos, "next": state["next"]}
    return state


INITIAL_TODOS: Dict[str, Any] = {"todos": [], "next": 0}


def generate_actions(size: int, seed: int = 42) -> List[Dict[str, Any]]:
    """Generate a realistic mix of todo actions.

    Args:
        size: Number of actions to generate.
        seed: Random seed for reproducibility.

    Returns:
        A list of ADD, COMPLETE and REMOVE actions.
    """
    random.seed(seed)
    actions: List[Dict[str, Any]] = []
    added = 0

    for i in range(size):
        roll = random.random()
        if added == 0 or roll < 0.5:
            actions.append({"type": "ADD", "text": f"todo {i}"})
            added += 1
        elif roll < 0.85:
            actions.append({"type": "COMPLETE", "id": random.randrange(added)})
        else:
            actions.append({"type": "REMOVE", "id": random.randrange(added)})

    return actions


def generate_history(
    size: int,
    skip_rate: float = 0.0,
    max_age: int = UNBOUNDED,
    seed: int = 42,
) -> Tuple[LiftedReducer, HistoryState]:
    """Record ``size`` generated actions into a history.

    Args:
        size: Number of actions to perform.
        skip_rate: Proportion of recorded actions toggled off afterwards.
        max_age: History bound passed to the lifted reducer.
        seed: Random seed for reproducibility.

    Returns:
        The lifted reducer and the resulting HistoryState.
    """
    lifted = LiftedReducer(todo_reducer, INITIAL_TODOS, max_age=max_age)
    history = lifted(reset(INITIAL_TODOS), INIT)

    for action in generate_actions(size, seed=seed):
        history = lifted(history, PerformAction(action))

    if skip_rate > 0:
        random.seed(seed)
        for action_id in history.staged_action_ids[1:]:
            if random.random() < skip_rate:
                history = lifted(history, ToggleAction(action_id))

    return lifted, history


def save_history_to_temp_file(history: HistoryState, format: str = "json") -> Path:
    """Save a history to a temporary file for I/O benchmarks.

    Args:
        history: The history to save.
        format: File format, either "json" or "yaml".

    Returns:
        Path to the temporary file.
    """
    with NamedTemporaryFile(mode="w", suffix=f".{format}", delete=False) as f:
        temp_path = Path(f.name)

    history.save(temp_path)
    return temp_path
