"""Benchmark: Acl.check latency — per-check p50/p99.

Measures the per-call latency of Acl.check() over a layered graph where
every layer fans out to several nodes and only one route passes its
predicates.
"""
from __future__ import annotations

import asyncio
import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aumos_acl_graph.context.scope import ContextScope
from aumos_acl_graph.engine.acl import Acl

_WARMUP: int = 50
_ITERATIONS: int = 1_000
_LAYERS: int = 4
_FAN_OUT: int = 4


def _route_check(index: int):  # type: ignore[no-untyped-def]
    async def check(scope: ContextScope) -> bool:
        return scope.get("route") == index

    return check


def _make_acl(layers: int, fan_out: int) -> Acl:
    """Build a graph of ``layers`` layers, each node linking to every node of the next."""
    definitions: list[dict[str, object]] = []
    previous = ["public"]
    for layer in range(layers):
        current = [f"l{layer}n{n}" for n in range(fan_out)]
        for source in previous:
            for n, target in enumerate(current):
                definitions.append({
                    "from": source,
                    "to": target,
                    "explain": f"{source} -> {target}",
                    "check": _route_check(n),
                })
        previous = current
    for source in previous:
        definitions.append({"from": source, "to": "target", "explain": f"{source} -> target"})
    return Acl("public", definitions)


def bench_check_latency() -> dict[str, object]:
    """Benchmark Acl.check() per-call latency.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p99_latency_ms, memory_peak_mb.
    """
    acl = _make_acl(_LAYERS, _FAN_OUT)
    context = {"route": 1}

    async def run() -> list[float]:
        for _ in range(_WARMUP):
            await acl.check("target", context)

        latencies: list[float] = []
        for _ in range(_ITERATIONS):
            t0 = time.perf_counter()
            await acl.check("target", context)
            latencies.append((time.perf_counter() - t0) * 1000)
        return latencies

    latencies_ms = asyncio.run(run())

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": "acl_check_latency",
        "iterations": _ITERATIONS,
        "edges": acl.graph.edge_count,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_latency_ms": round(sorted_lats[n // 2], 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
        "memory_peak_mb": 0.0,
    }
    print(
        f"[bench_check_latency] {result['operation']}: "
        f"p99={result['p99_latency_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    return bench_check_latency()


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "check_latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
