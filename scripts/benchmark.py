#!/usr/bin/env python3
"""
viewsync Performance Benchmarks

Measures how fast derived views follow their source under growing
workloads. Each benchmark scales N by SCALE_FACTOR until a single run takes
longer than TIME_LIMIT_SECONDS, then reports the last result.

Usage:
    python scripts/benchmark.py            # Run all benchmarks
    python scripts/benchmark.py --config   # Show current benchmark configuration
    python scripts/benchmark.py --quiet    # Only print the final table

Configuration:
    Adjust the constants at the top of the file to change benchmark parameters.
"""

import argparse
import random
import sys
import time
from typing import Any, Callable, Dict

# Add the project root to the Python path
sys.path.insert(0, ".")

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table, box

from viewsync import Collection, DerivedView, Model, TaskQueue, compare_values, diff_ops

# Configuration constants - adjust these to change benchmark behavior
TIME_LIMIT_SECONDS = 1.0  # Maximum time allowed per run
STARTING_N = 100  # Starting number of items
SCALE_FACTOR = 1.5  # How much to multiply N by each iteration
SEED = 1234


def _fruits(n: int, rng: random.Random) -> Collection:
    """A collection of n fruit models with random names."""
    return Collection(
        data=[{"id": i, "fruit": f"fruit-{rng.randrange(n * 4):08d}"} for i in range(n)],
        model_factory=Model,
    )


def _fruit(model):
    return model.fruit


class ViewBenchmark:
    """Rich-formatted display for view maintenance benchmarks."""

    def __init__(self, quiet: bool = False):
        self.console = Console()
        self.quiet = quiet
        self.results: Dict[str, Dict[str, Any]] = {}

    def run_benchmarks(self):
        """Run all benchmarks and display results with rich formatting."""
        start_time = time.time()
        self._display_header()

        self._run("construction", "Sorted View Construction", self._construction)
        self._run("add", "Add Into Sorted View", self._sorted_adds)
        self._run("window", "Add/Remove Through Window", self._window_churn)
        self._run("change", "Item Change Reposition", self._item_changes)
        self._run("coalesced", "Coalesced Resync", self._coalesced_changes)
        self._run("diff", "Ordered Diff", self._ordered_diff)

        self._display_final_results(start_time)

    # ------------------------------------------------------------------
    # Operations: each returns (operations performed, seconds measured)
    # ------------------------------------------------------------------

    def _construction(self, n: int):
        collection = _fruits(n, random.Random(SEED))
        start = time.perf_counter()
        view = DerivedView(collection, map=_fruit, compare=compare_values)
        elapsed = time.perf_counter() - start
        assert len(view) == n
        return n, elapsed

    def _sorted_adds(self, n: int):
        rng = random.Random(SEED)
        collection = _fruits(10, rng)
        view = DerivedView(collection, map=_fruit, compare=compare_values)
        start = time.perf_counter()
        for i in range(n):
            collection.add({"id": 100 + i, "fruit": f"fruit-{rng.randrange(n * 4):08d}"})
        elapsed = time.perf_counter() - start
        assert len(view) == n + 10
        return n, elapsed

    def _window_churn(self, n: int):
        rng = random.Random(SEED)
        collection = _fruits(n, rng)
        view = DerivedView(collection, map=_fruit, begin=n // 4, end=-(n // 4))
        events = []
        view.subscribe(events.append)
        start = time.perf_counter()
        for i in range(n):
            collection.add({"id": n + i, "fruit": "kiwi"}, rng.randrange(len(collection) + 1))
            collection.remove_at(rng.randrange(len(collection)))
        elapsed = time.perf_counter() - start
        return 2 * n, elapsed

    def _item_changes(self, n: int):
        rng = random.Random(SEED)
        collection = _fruits(n, rng)
        DerivedView(collection, map=_fruit, compare=compare_values)
        items = collection.to_array()
        start = time.perf_counter()
        for item in items:
            item.set(fruit=f"fruit-{rng.randrange(n * 4):08d}")
        elapsed = time.perf_counter() - start
        return n, elapsed

    def _coalesced_changes(self, n: int):
        rng = random.Random(SEED)
        scheduler = TaskQueue()
        collection = _fruits(n, rng)
        DerivedView(
            collection, map=_fruit, compare=compare_values, coalesce=True, scheduler=scheduler
        )
        items = collection.to_array()
        start = time.perf_counter()
        for item in rng.sample(items, max(1, n // 10)):
            item.set(fruit=f"fruit-{rng.randrange(n * 4):08d}")
        scheduler.flush()
        elapsed = time.perf_counter() - start
        return max(1, n // 10), elapsed

    def _ordered_diff(self, n: int):
        rng = random.Random(SEED)
        before = list(range(n))
        after = [x for x in before if rng.random() > 0.02]
        for _ in range(max(1, n // 50)):
            after.insert(rng.randrange(len(after) + 1), -1)
        start = time.perf_counter()
        diff_ops(before, after)
        elapsed = time.perf_counter() - start
        return n, elapsed

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def _run(self, key: str, name: str, operation: Callable[[int], Any]):
        if not self.quiet:
            self.console.print(f"[yellow]Running {name} benchmark...[/yellow]")
        result = self._run_adaptive_benchmark(operation)
        self.results[key] = dict(result, name=name)
        if not self.quiet:
            self.console.print(
                f"[green]✓[/green] {name}: {result['operations_per_second']:,.0f} ops/sec "
                f"({result['max_n']:,} items)"
            )

    def _run_adaptive_benchmark(self, operation: Callable[[int], Any]) -> Dict[str, Any]:
        """Scale the workload until one run reaches the time limit."""
        n = STARTING_N
        while True:
            ops, elapsed = operation(n)
            result = {
                "max_n": n,
                "operation_time": elapsed,
                "operations_per_second": ops / elapsed if elapsed > 0 else float("inf"),
            }
            if elapsed >= TIME_LIMIT_SECONDS:
                return result
            n = int(n * SCALE_FACTOR)

    def _display_header(self):
        header = Panel(
            Align.center("viewsync Performance Benchmark Suite"),
            title="viewsync Benchmarks",
            border_style="blue",
        )
        self.console.print(header)
        self.console.print()

    def _display_final_results(self, start_time: float):
        elapsed = time.time() - start_time

        table = Table(title="Final Benchmark Results", box=box.DOUBLE)
        table.add_column("Benchmark", style="cyan", no_wrap=True)
        table.add_column("Max Workload", style="magenta", justify="right")
        table.add_column("Performance", style="green", justify="right")
        table.add_column("Per Operation", style="yellow", justify="right")

        for result in self.results.values():
            ops_sec = result["operations_per_second"]
            per_op_us = 1e6 / ops_sec if ops_sec else 0.0
            table.add_row(
                result["name"],
                f"{result['max_n']:,} items",
                f"{ops_sec / 1000:.1f}K ops/sec",
                f"{per_op_us:.1f}μs",
            )

        self.console.print()
        self.console.print(table)
        self.console.print(f"\nCompleted in {elapsed:.1f}s")


def print_config():
    """Print the current benchmark configuration."""
    print("viewsync Benchmark Configuration:")
    print(f"  TIME_LIMIT_SECONDS: {TIME_LIMIT_SECONDS}")
    print(f"  STARTING_N: {STARTING_N}")
    print(f"  SCALE_FACTOR: {SCALE_FACTOR}")


def main():
    """Main entry point for the benchmark script."""
    parser = argparse.ArgumentParser(description="viewsync Performance Benchmarks")
    parser.add_argument(
        "--config", action="store_true", help="Show current benchmark configuration"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output, show only final results",
    )
    args = parser.parse_args()

    if args.config:
        print_config()
        return

    if not args.quiet:
        print_config()
        print()

    ViewBenchmark(quiet=args.quiet).run_benchmarks()


if __name__ == "__main__":
    main()
