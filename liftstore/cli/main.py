"""liftstore CLI - inspect, replay and edit persisted store histories."""

import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import click
import yaml

from .. import __version__
from ..core.actions import (
    INIT,
    Command,
    Commit,
    ImportActions,
    JumpToState,
    PerformAction,
    Rollback,
    SetActionsActive,
    Sweep,
    ToggleAction,
)
from ..core.engine import UNBOUNDED, InvalidMaxAgeError, LiftedReducer, Reducer, reset
from ..core.schema import CURRENT_VERSION, SchemaVersionError
from ..core.state import HistoryState

LOG_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)-24s | %(message)s"

# operation name -> number of integer arguments
OPERATIONS = {
    "commit": 0,
    "rollback": 0,
    "sweep": 0,
    "toggle": 1,
    "jump": 1,
    "enable": 2,
    "disable": 2,
}

# hooks a --codec module may define, passed to HistoryState.load/save
CODEC_HOOKS = ("encode_action", "decode_action", "encode_state", "decode_state")


def _error(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)


def _load_history_safely(history_file: str, **decoders: Callable[[Any], Any]) -> Optional[HistoryState]:
    """Load a history file with proper error handling.

    Args:
        decoders: decode_action / decode_state hooks forwarded to HistoryState.load.

    Returns:
        HistoryState if successful, None if failed (error message already printed).
    """
    try:
        return HistoryState.load(Path(history_file), **decoders)
    except (FileNotFoundError, PermissionError, ValueError, SchemaVersionError) as e:
        _error(str(e))
        return None
    except Exception as e:
        click.echo(click.style(f"Unexpected error loading history: {e}", fg="red"), err=True)
        return None


def _load_actions_safely(actions_file: str) -> Optional[List[Any]]:
    """Load a JSON or YAML list of application actions."""
    path = Path(actions_file)
    if not path.exists():
        _error(f"Actions file not found: {path}")
        return None

    try:
        content = path.read_text()
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        _error(f"Invalid file format in {path}: {e}")
        return None

    if not isinstance(data, list):
        _error(f"Actions file must contain a list, got {type(data).__name__}: {path}")
        return None
    return data


def _import_reducer(reference: str) -> Reducer:
    """Resolve a ``module:attribute`` reference to a reducer."""
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise click.BadParameter(f"expected 'module:attribute', got {reference!r}", param_hint="--reducer")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import {module_name}: {e}", param_hint="--reducer")

    reducer = getattr(module, attribute, None)
    if not callable(reducer):
        raise click.BadParameter(f"{reference} is not a callable reducer", param_hint="--reducer")
    return reducer


def _import_codec(module_name: Optional[str]) -> Dict[str, Callable[[Any], Any]]:
    """Collect the persistence hooks defined by a ``--codec`` module."""
    if module_name is None:
        return {}

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import {module_name}: {e}", param_hint="--codec")

    hooks = {name: getattr(module, name) for name in CODEC_HOOKS if callable(getattr(module, name, None))}
    if not hooks:
        raise click.BadParameter(f"{module_name} defines none of {', '.join(CODEC_HOOKS)}", param_hint="--codec")
    return hooks


def _select(hooks: Dict[str, Callable[[Any], Any]], prefix: str) -> Dict[str, Callable[[Any], Any]]:
    return {name: hook for name, hook in hooks.items() if name.startswith(prefix)}


def _format_value(value: Any, width: int = 60) -> str:
    if value is INIT:
        text = "@@INIT"
    else:
        text = json.dumps(value, default=str, sort_keys=True)
    return text[:width] + "..." if len(text) > width else text


def _save(history: HistoryState, output: str, **encoders: Callable[[Any], Any]) -> None:
    try:
        history.save(Path(output), **encoders)
    except OSError as e:
        _error(f"Failed to write {output}: {e}")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="liftstore")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level for the history engine",
)
def cli(log_level: str):
    """liftstore - time-travel through recorded store histories."""
    logging.basicConfig(level=getattr(logging, log_level.upper()), format=LOG_FORMAT)


@cli.command()
@click.argument("history_file", type=click.Path())
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def inspect(history_file: str, as_json: bool):
    """Summarize a persisted history.

    Examples:
        liftstore inspect history.json
        liftstore inspect --json history.yaml
    """
    history = _load_history_safely(history_file)
    if history is None:
        sys.exit(1)

    summary = {
        "staged": len(history.staged_action_ids),
        "skipped": list(history.skipped_action_ids),
        "next_action_id": history.next_action_id,
        "current_state_index": history.current_state_index,
        "committed_state": history.committed_state,
        "current_state": history.current_state if history.staged_action_ids else None,
    }

    if as_json:
        click.echo(json.dumps(summary, indent=2, default=str))
        return

    click.echo(f"History: {history_file}")
    click.echo(f"  Staged actions: {summary['staged']} ({len(summary['skipped'])} skipped)")
    click.echo(f"  Next action id: {summary['next_action_id']}")
    click.echo(f"  Committed state: {_format_value(history.committed_state)}")
    if not history.staged_action_ids:
        click.echo("  Cursor: none (empty history)")
        return
    click.echo(f"  Cursor: {summary['current_state_index']} of {summary['staged'] - 1}")
    click.echo(f"  Current state: {_format_value(history.current_state)}")


@cli.command()
@click.argument("history_file", type=click.Path())
def states(history_file: str):
    """Show every staged action with the state computed for it.

    The cursor is marked with '>' and skipped actions are dimmed.

    Examples:
        liftstore states history.json
    """
    history = _load_history_safely(history_file)
    if history is None:
        sys.exit(1)

    for i, (record, state) in enumerate(zip(history.staged_actions, history.computed_states)):
        marker = ">" if i == history.current_state_index else " "
        line = f"{marker} [{i}] #{record.id} {_format_value(record.action, 30)} -> {_format_value(state)}"
        if history.is_skipped(record.id):
            click.echo(click.style(line + " (skipped)", dim=True))
        else:
            click.echo(line)


@cli.command()
@click.argument("actions_file", type=click.Path())
@click.option("--reducer", "-r", "reducer_ref", required=True, help="Reducer as module:attribute")
@click.option("--initial-state", "-i", default="null", help="Initial state as JSON")
@click.option("--max-age", type=int, help="Replay one action at a time with this history bound")
@click.option("--output", "-o", type=click.Path(), help="Write the resulting history here")
@click.option("--codec", "codec_module", help="Module defining encode_action/decode_action or encode_state/decode_state")
def replay(
    actions_file: str,
    reducer_ref: str,
    initial_state: str,
    max_age: Optional[int],
    output: Optional[str],
    codec_module: Optional[str],
):
    """Replay a list of actions from the initial state.

    Examples:
        liftstore replay actions.json -r app.reducers:counter -i 0
        liftstore replay actions.yaml -r app.reducers:todos -i '[]' -o history.json
    """
    reducer = _import_reducer(reducer_ref)
    hooks = _import_codec(codec_module)

    try:
        initial = json.loads(initial_state)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--initial-state")
    if "decode_state" in hooks:
        initial = hooks["decode_state"](initial)

    actions = _load_actions_safely(actions_file)
    if actions is None:
        sys.exit(1)
    if "decode_action" in hooks:
        actions = [hooks["decode_action"](action) for action in actions]

    try:
        lifted = LiftedReducer(reducer, initial, max_age if max_age is not None else UNBOUNDED)
    except InvalidMaxAgeError as e:
        raise click.BadParameter(str(e), param_hint="--max-age")

    if max_age is None:
        history = lifted(reset(initial), ImportActions(actions))
    else:
        history = lifted(reset(initial), INIT)
        for action in actions:
            history = lifted(history, PerformAction(action))

    click.echo(f"Replayed {len(actions)} actions ({len(history.staged_action_ids)} staged).")
    click.echo(f"State: {_format_value(history.current_state)}")

    if output:
        _save(history, output, **_select(hooks, "encode_"))
        click.echo(f"History written to {output}")


def _build_command(operation: str, args: Tuple[int, ...]) -> Command:
    expected = OPERATIONS[operation]
    if len(args) != expected:
        raise click.UsageError(f"'{operation}' takes {expected} argument(s), got {len(args)}")

    if operation == "commit":
        return Commit()
    if operation == "rollback":
        return Rollback()
    if operation == "sweep":
        return Sweep()
    if operation == "toggle":
        return ToggleAction(args[0])
    if operation == "jump":
        return JumpToState(args[0])
    return SetActionsActive(args[0], args[1], active=operation == "enable")


@cli.command()
@click.argument("history_file", type=click.Path())
@click.argument("operation", type=click.Choice(sorted(OPERATIONS)))
@click.argument("args", nargs=-1, type=int)
@click.option("--reducer", "-r", "reducer_ref", required=True, help="Reducer as module:attribute")
@click.option("--output", "-o", type=click.Path(), help="Write here instead of overwriting the input")
@click.option("--codec", "codec_module", help="Module defining encode_action/decode_action or encode_state/decode_state")
def apply(
    history_file: str,
    operation: str,
    args: Tuple[int, ...],
    reducer_ref: str,
    output: Optional[str],
    codec_module: Optional[str],
):
    """Edit a persisted history and recompute the affected states.

    Examples:
        liftstore apply history.json toggle 2 -r app.reducers:counter
        liftstore apply history.json disable 1 3 -r app.reducers:counter -o edited.json
        liftstore apply history.json commit -r app.reducers:counter
    """
    command = _build_command(operation, args)
    reducer = _import_reducer(reducer_ref)

    hooks = _import_codec(codec_module)
    history = _load_history_safely(history_file, **_select(hooks, "decode_"))
    if history is None:
        sys.exit(1)

    if not history.staged_action_ids:
        _error(f"History has no staged actions: {history_file}")
        sys.exit(1)

    lifted = LiftedReducer(reducer, history.committed_state)
    history = lifted(history, command)

    target = output or history_file
    _save(history, target, **_select(hooks, "encode_"))
    click.echo(f"Applied {operation} ({len(history.staged_action_ids)} staged).")
    click.echo(f"State: {_format_value(history.current_state)}")


@cli.command("diff")
@click.argument("history1", type=click.Path())
@click.argument("history2", type=click.Path())
def diff_histories(history1: str, history2: str):
    """Compare two histories and find divergence.

    Examples:
        liftstore diff before.json after.json
    """
    h1 = _load_history_safely(history1)
    if h1 is None:
        sys.exit(1)

    h2 = _load_history_safely(history2)
    if h2 is None:
        sys.exit(1)

    diffs = h1.diff(h2)

    if not diffs:
        click.echo(click.style("Histories are identical.", fg="green"))
        return

    click.echo(f"Found {len(diffs)} difference(s):")
    click.echo()

    for d in diffs[:10]:
        if d["type"] == "diverged_action":
            click.echo(f"Index {d['index']}: " + click.style("ACTION DIVERGED", fg="yellow"))
            click.echo(f"  first:  {_format_value(d['first']['action'])}")
            click.echo(f"  second: {_format_value(d['second']['action'])}")
        elif d["type"] == "diverged_state":
            click.echo(f"Index {d['index']}: " + click.style("STATE DIVERGED", fg="yellow"))
            click.echo(f"  first:  {_format_value(d['first'])}")
            click.echo(f"  second: {_format_value(d['second'])}")
        elif d["type"] == "missing_in_first":
            click.echo(f"Index {d['index']}: " + click.style("MISSING in first", fg="red"))
        elif d["type"] == "missing_in_second":
            click.echo(f"Index {d['index']}: " + click.style("MISSING in second", fg="red"))
        click.echo()


@cli.command()
@click.argument("history_file", type=click.Path())
@click.option("--output", "-o", type=click.Path(), help="Write here instead of overwriting the input")
def migrate(history_file: str, output: Optional[str]):
    """Upgrade a persisted history to the current format.

    Examples:
        liftstore migrate old-history.json -o history.json
    """
    history = _load_history_safely(history_file)
    if history is None:
        sys.exit(1)

    target = output or history_file
    _save(history, target)
    click.echo(f"Wrote {target} in format {CURRENT_VERSION}.")


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
