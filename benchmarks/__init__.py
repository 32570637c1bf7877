"""liftstore Benchmarking Suite.

Performance benchmarks for the lifted reducer and history persistence.

Benchmarks included:
- Recording 100, 1000, 5000 actions
- Toggling the oldest and newest action
- Disabling a range, jumping and sweeping
- Recording under max_age
- Loading and saving histories as JSON/YAML

Usage:
    python -m benchmarks.run_benchmarks
    python -m benchmarks.run_benchmarks --suite history
    python -m benchmarks.run_benchmarks --output report.json
"""

from .fixtures import (
    HistorySize,
    generate_actions,
    generate_history,
    todo_reducer,
)

__all__ = [
    "HistorySize",
    "generate_actions",
    "generate_history",
    "todo_reducer",
]
