#!/usr/bin/env python
"""CLI to run all liftstore benchmarks.

Usage:
    python -m benchmarks.run_benchmarks
    python -m benchmarks.run_benchmarks --suite history
    python -m benchmarks.run_benchmarks --suite persistence --quick
    python -m benchmarks.run_benchmarks --output report.json
    python -m benchmarks.run_benchmarks --baseline baseline.json
"""

import json
import platform
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from liftstore import __version__

from .bench_history import run_history_benchmarks
from .bench_persistence import run_persistence_benchmarks

BENCHMARK_SUITES = {
    "history": ("History Recording and Time Travel", run_history_benchmarks),
    "persistence": ("History Persistence", run_persistence_benchmarks),
}


def load_baseline(path: Path) -> Optional[Dict[str, float]]:
    """Load benchmark name -> ops/sec from a previous report."""
    if not path.exists():
        click.echo(f"Warning: Baseline file not found: {path}", err=True)
        return None

    try:
        data = json.loads(path.read_text())
        return {
            result["name"]: result.get("ops_per_second", 0)
            for suite in data.get("suites", {}).values()
            for result in suite.get("results", [])
        }
    except (json.JSONDecodeError, KeyError) as e:
        click.echo(f"Warning: Failed to parse baseline file: {e}", err=True)
        return None


def generate_report(results: Dict[str, List[Dict[str, Any]]]) -> Dict[str, Any]:
    """Assemble suite results and a summary into one report."""
    suites = {}
    for suite_name, suite_results in results.items():
        suites[suite_name] = {
            "title": BENCHMARK_SUITES[suite_name][0],
            "benchmark_count": len(suite_results),
            "total_time_ms": round(sum(r["total_time_ms"] for r in suite_results), 3),
            "results": suite_results,
        }

    all_results = [r for suite_results in results.values() for r in suite_results]
    return {
        "liftstore_version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "system": {
            "platform": platform.platform(),
            "python_version": platform.python_version(),
        },
        "suites": suites,
        "summary": {
            "total_benchmarks": len(all_results),
            "total_time_ms": round(sum(r["total_time_ms"] for r in all_results), 3),
            "memory_peak_mb": round(max((r["memory_peak_mb"] for r in all_results), default=0), 3),
        },
    }


def print_results(report: Dict[str, Any]) -> None:
    click.echo("\n" + "=" * 70)
    click.echo(f"liftstore {report['liftstore_version']} Benchmark Report")
    click.echo(f"Python {report['system']['python_version']} on {report['system']['platform']}")
    click.echo("=" * 70)

    for suite in report["suites"].values():
        click.echo(f"\n{suite['title']}")
        click.echo("-" * 50)
        for result in suite["results"]:
            line = (
                f"  {result['name']:<36} {result['avg_time_ms']:>9.3f} ms"
                f"  {result['ops_per_second']:>10.2f} ops/s  {result['memory_peak_mb']:>7.3f} MB"
            )
            speedup = result.get("speedup")
            if speedup is not None and abs(speedup - 1) >= 0.05:
                color = "green" if speedup > 1 else "red"
                line += click.style(f"  [{(speedup - 1) * 100:+.1f}%]", fg=color)
            click.echo(line)

    summary = report["summary"]
    click.echo("\n" + "-" * 50)
    click.echo(f"  Total benchmarks: {summary['total_benchmarks']}")
    click.echo(f"  Total time: {summary['total_time_ms']:.3f} ms")
    click.echo(f"  Peak memory: {summary['memory_peak_mb']:.3f} MB")


@click.command()
@click.option(
    "--suite",
    type=click.Choice(sorted(BENCHMARK_SUITES) + ["all"]),
    default="all",
    help="Benchmark suite to run",
)
@click.option("--quick", is_flag=True, help="Run quick benchmarks with fewer iterations")
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Output file for JSON report")
@click.option("--baseline", "-b", type=click.Path(path_type=Path), help="Previous report to compare against")
@click.option("--quiet", "-q", is_flag=True, help="Only write the report file")
def main(suite: str, quick: bool, output: Optional[Path], baseline: Optional[Path], quiet: bool):
    """Run liftstore benchmarks."""
    baseline_ops = load_baseline(baseline) if baseline else None
    suites_to_run = sorted(BENCHMARK_SUITES) if suite == "all" else [suite]

    results: Dict[str, List[Dict[str, Any]]] = {}
    for suite_name in suites_to_run:
        title, run_func = BENCHMARK_SUITES[suite_name]
        if not quiet:
            click.echo(f"Running {title}{' (quick)' if quick else ''}...")
        results[suite_name] = run_func(quick=quick, baseline=baseline_ops)

    report = generate_report(results)

    if output:
        output.write_text(json.dumps(report, indent=2))
        if not quiet:
            click.echo(f"Report saved to: {output}")

    if not quiet:
        print_results(report)


if __name__ == "__main__":
    sys.exit(main())
