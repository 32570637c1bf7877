"""Benchmarks for history recording and time travel.

Measures:
- Recording 100, 1000, 5000 actions
- Toggling early and late actions (recomputed suffix length)
- Jumping through history
- Sweeping skipped actions
- Recording under a max_age bound
"""

from typing import Any, Dict, List, Optional

from liftstore import JumpToState, PerformAction, SetActionsActive, Sweep, ToggleAction

from .fixtures import HistorySize, generate_actions, generate_history
from .timing import Measurement, compare_to_baseline, measure


class HistoryBenchmarks:
    """History recording and time-travel benchmarks."""

    def __init__(self, baseline: Optional[Dict[str, float]] = None):
        self.baseline = baseline or {}
        self.results: List[Measurement] = []

    def _keep(self, result: Measurement) -> Measurement:
        self.results.append(result)
        return result

    def bench_record(self, size: int, iterations: int) -> Measurement:
        return self._keep(measure(
            f"record_{size}_actions",
            lambda: generate_history(size),
            iterations,
            action_count=size,
        ))

    def bench_toggle_first_action(self, iterations: int = 20) -> Measurement:
        """Toggling the oldest action recomputes the whole history."""
        lifted, history = generate_history(HistorySize.MEDIUM)
        return self._keep(measure(
            "toggle_first_of_1000",
            lambda: lifted(history, ToggleAction(1)),
            iterations,
            recomputed=int(HistorySize.MEDIUM),
        ))

    def bench_toggle_last_action(self, iterations: int = 200) -> Measurement:
        """Toggling the newest action recomputes a single state."""
        lifted, history = generate_history(HistorySize.MEDIUM)
        last_id = history.staged_action_ids[-1]
        return self._keep(measure(
            "toggle_last_of_1000",
            lambda: lifted(history, ToggleAction(last_id)),
            iterations,
            recomputed=1,
        ))

    def bench_disable_range(self, iterations: int = 20) -> Measurement:
        lifted, history = generate_history(HistorySize.MEDIUM)
        command = SetActionsActive(HistorySize.MEDIUM // 2, HistorySize.MEDIUM + 1, False)
        return self._keep(measure(
            "disable_second_half_of_1000",
            lambda: lifted(history, command),
            iterations,
            range=[command.start, command.end],
        ))

    def bench_jump_through_history(self, iterations: int = 20) -> Measurement:
        """Jumping never calls the reducer."""
        lifted, history = generate_history(HistorySize.MEDIUM)
        jumps = [JumpToState(i) for i in range(0, len(history.staged_action_ids), 10)]

        def jump_everywhere():
            state = history
            for jump in jumps:
                state = lifted(state, jump)
            return state

        return self._keep(measure("jump_100_times_in_1000", jump_everywhere, iterations, jumps=len(jumps)))

    def bench_sweep(self, iterations: int = 10) -> Measurement:
        lifted, history = generate_history(HistorySize.MEDIUM, skip_rate=0.1)
        return self._keep(measure(
            "sweep_1000_with_10pct_skipped",
            lambda: lifted(history, Sweep()),
            iterations,
            skipped=len(history.skipped_action_ids),
        ))

    def bench_record_with_max_age(self, iterations: int = 10) -> Measurement:
        """Recording past the bound auto-commits one action per dispatch."""
        lifted, history = generate_history(0, max_age=50)
        commands = [PerformAction(a) for a in generate_actions(HistorySize.MEDIUM)]

        def record_bounded():
            state = history
            for command in commands:
                state = lifted(state, command)
            return state

        return self._keep(measure("record_1000_max_age_50", record_bounded, iterations, max_age=50))

    def run_all(self) -> List[Measurement]:
        self.results = []
        self.bench_record(HistorySize.SMALL, iterations=50)
        self.bench_record(HistorySize.MEDIUM, iterations=10)
        self.bench_record(HistorySize.LARGE, iterations=3)
        self.bench_toggle_first_action()
        self.bench_toggle_last_action()
        self.bench_disable_range()
        self.bench_jump_through_history()
        self.bench_sweep()
        self.bench_record_with_max_age()
        return self.results

    def run_quick(self) -> List[Measurement]:
        self.results = []
        self.bench_record(HistorySize.SMALL, iterations=10)
        self.bench_toggle_first_action(iterations=5)
        self.bench_toggle_last_action(iterations=50)
        return self.results


def run_history_benchmarks(
    quick: bool = False,
    baseline: Optional[Dict[str, float]] = None,
) -> List[Dict[str, Any]]:
    """Run history benchmarks and return results as dictionaries."""
    benchmarks = HistoryBenchmarks(baseline=baseline)
    results = benchmarks.run_quick() if quick else benchmarks.run_all()

    if baseline:
        return compare_to_baseline(results, baseline)
    return [r.to_dict() for r in results]
