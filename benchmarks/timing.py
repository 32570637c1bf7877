"""Timing helpers shared by the benchmark suites.

Every call is timed on its own so outliers from a garbage collection or a
cold cache show up in ``min_ms``/``median_ms`` instead of vanishing into an
average. Memory is traced on one extra call, outside the timed loop, because
tracemalloc slows allocation-heavy code down considerably.
"""

import gc
import statistics
import time
import tracemalloc
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

MB = 1024 * 1024


@dataclass
class Measurement:
    """Per-call timings and traced peak memory of one benchmark."""

    name: str
    samples_ms: List[float]
    memory_peak_bytes: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def iterations(self) -> int:
        return len(self.samples_ms)

    @property
    def total_time_ms(self) -> float:
        return sum(self.samples_ms)

    @property
    def avg_time_ms(self) -> float:
        return self.total_time_ms / self.iterations if self.samples_ms else 0.0

    @property
    def ops_per_second(self) -> float:
        return 1000 / self.avg_time_ms if self.avg_time_ms > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "iterations": self.iterations,
            "total_time_ms": round(self.total_time_ms, 3),
            "avg_time_ms": round(self.avg_time_ms, 3),
            "median_ms": round(statistics.median(self.samples_ms), 3) if self.samples_ms else 0.0,
            "min_ms": round(min(self.samples_ms, default=0.0), 3),
            "ops_per_second": round(self.ops_per_second, 2),
            "memory_peak_mb": round(self.memory_peak_bytes / MB, 3),
            "metadata": self.metadata,
        }


def _traced_peak(func: Callable[[], Any]) -> int:
    tracemalloc.start()
    try:
        baseline = tracemalloc.get_traced_memory()[0]
        func()
        return tracemalloc.get_traced_memory()[1] - baseline
    finally:
        tracemalloc.stop()


def measure(
    name: str,
    func: Callable[[], Any],
    iterations: int = 10,
    warmup: int = 2,
    **metadata: Any,
) -> Measurement:
    """Time ``iterations`` calls of ``func`` after ``warmup`` untimed ones."""
    for _ in range(warmup):
        func()

    gc.collect()
    samples = []
    for _ in range(iterations):
        start = time.perf_counter()
        func()
        samples.append((time.perf_counter() - start) * 1000)

    return Measurement(name, samples, _traced_peak(func), dict(metadata))


def compare_to_baseline(results: List[Measurement], baseline: Dict[str, float]) -> List[Dict[str, Any]]:
    """Report each result with the baseline ops/sec and the relative speedup."""
    comparisons = []
    for result in results:
        row = result.to_dict()
        baseline_ops = baseline.get(result.name)
        if baseline_ops:
            row["baseline_ops_per_second"] = baseline_ops
            row["speedup"] = round(result.ops_per_second / baseline_ops, 2)
        comparisons.append(row)
    return comparisons
