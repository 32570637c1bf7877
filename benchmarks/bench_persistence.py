"""Benchmarks for history persistence.

Measures:
- Loading histories from JSON/YAML
- Saving histories to JSON/YAML
- to_dict / from_dict conversion
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from liftstore import HistoryState

from .fixtures import HistorySize, generate_history, save_history_to_temp_file
from .timing import Measurement, compare_to_baseline, measure


class PersistenceBenchmarks:
    """History persistence benchmarks."""

    def __init__(self, baseline: Optional[Dict[str, float]] = None):
        self.baseline = baseline or {}
        self.results: List[Measurement] = []
        self._temp_files: List[Path] = []

    def cleanup(self) -> None:
        """Remove the history files written by the benchmarks."""
        for temp_file in self._temp_files:
            if temp_file.exists():
                temp_file.unlink()
        self._temp_files = []

    def _history_file(self, size: int, format: str):
        _, history = generate_history(size)
        temp_path = save_history_to_temp_file(history, format=format)
        self._temp_files.append(temp_path)
        return history, temp_path

    def bench_load(self, size: int, format: str, iterations: int) -> Measurement:
        _, temp_path = self._history_file(size, format)
        result = measure(
            f"load_{format}_{size}_actions",
            lambda: HistoryState.load(temp_path),
            iterations,
            action_count=size,
            format=format,
        )
        self.results.append(result)
        return result

    def bench_save(self, size: int, format: str, iterations: int) -> Measurement:
        history, temp_path = self._history_file(size, format)
        result = measure(
            f"save_{format}_{size}_actions",
            lambda: history.save(temp_path),
            iterations,
            action_count=size,
            format=format,
        )
        self.results.append(result)
        return result

    def bench_dict_roundtrip(self, iterations: int = 10) -> Measurement:
        _, history = generate_history(HistorySize.MEDIUM)
        result = measure(
            "dict_roundtrip_1000_actions",
            lambda: HistoryState.from_dict(history.to_dict()),
            iterations,
            action_count=int(HistorySize.MEDIUM),
        )
        self.results.append(result)
        return result

    def run_all(self) -> List[Measurement]:
        self.results = []
        try:
            self.bench_load(HistorySize.SMALL, "json", iterations=50)
            self.bench_load(HistorySize.MEDIUM, "json", iterations=10)
            self.bench_load(HistorySize.SMALL, "yaml", iterations=10)
            self.bench_save(HistorySize.MEDIUM, "json", iterations=10)
            self.bench_save(HistorySize.SMALL, "yaml", iterations=10)
            self.bench_dict_roundtrip()
        finally:
            self.cleanup()
        return self.results

    def run_quick(self) -> List[Measurement]:
        self.results = []
        try:
            self.bench_load(HistorySize.SMALL, "json", iterations=10)
            self.bench_save(HistorySize.SMALL, "json", iterations=10)
        finally:
            self.cleanup()
        return self.results


def run_persistence_benchmarks(
    quick: bool = False,
    baseline: Optional[Dict[str, float]] = None,
) -> List[Dict[str, Any]]:
    """Run persistence benchmarks and return results as dictionaries."""
    benchmarks = PersistenceBenchmarks(baseline=baseline)
    results = benchmarks.run_quick() if quick else benchmarks.run_all()

    if baseline:
        return compare_to_baseline(results, baseline)
    return [r.to_dict() for r in results]
