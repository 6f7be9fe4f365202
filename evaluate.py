#!/usr/bin/env python3
"""
Evaluate the SSAT solver configurations on SSAT files or random instances.

Every selected algorithm (rule set + splitting heuristic) runs on the same
formula store. For each run the script records the probability, wall time,
propagation / elimination / split counters and the split percentage
(splits out of the 2^n - 1 nodes of a full split tree), and checks that the
store came back unchanged. Per instance it also reports whether all
algorithms agree, and with --check compares against the brute-force
evaluator.

Outputs:
  - CSV with one row per (instance, algorithm) run (outdir/metrics.csv)
  - Plots (PNG): time_by_algorithm.png, splits_by_algorithm.png

Usage examples:
  python3 evaluate.py instances/*.ssat --algorithms all --outdir outputs
  python3 evaluate.py --generate 20 --num-vars 12 --num-clauses 30 \
      --max-len 3 --min-len 2 --block-size 2 --probs 0.3 0.7 --check --seed 1
"""
from __future__ import annotations

import argparse
import csv
import itertools
import os
import random
import signal
import sys
import time
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Tuple

from formula import FormulaStore
from generator import alternating_order, brute_force, generate_instance
from reader import MalformedInput, SSATInstance, read_ssat
from solver import ALGORITHMS, SolverConfig, SSATSolver

DEFAULT_ALGORITHMS = [
    "ucp-pve/max-occurrence",
    "ucp/max-occurrence",
    "pve/max-occurrence",
    "plain/max-occurrence",
]
TOLERANCE = 1e-9


@dataclass
class RunResult:
    instance: str
    algorithm: str
    num_vars: int
    n_clauses: int
    status: str
    probability: Optional[float]
    wall_time_s: float
    propagations: int
    eliminations: int
    splits: int
    split_percentage: float
    restored: Optional[bool] = None
    agrees: Optional[bool] = None
    expected_probability: Optional[float] = None
    is_correct: Optional[bool] = None
    error: str = ""


def split_percentage(splits: int, num_vars: int) -> float:
    """Splits as a percentage of the 2^n - 1 nodes of a full split tree."""
    if num_vars <= 0:
        return 0.0
    # 2^n overflows a float here; the percentage is 0 to double precision
    if num_vars >= sys.float_info.max_exp:
        return 0.0
    return 100.0 * splits / (2.0 ** num_vars - 1)


# ---------------------------
# Timeout helpers
# ---------------------------
class Timeout(Exception):
    pass


def _timeout_handler(signum, frame):  # noqa: ARG001
    raise Timeout()


# ---------------------------
# Run / evaluation logic
# ---------------------------
def run_one_algorithm(
    store: FormulaStore,
    instance_name: str,
    algorithm: str,
    config: SolverConfig,
    timeout_s: Optional[float],
) -> RunResult:
    before = store.snapshot()
    solver = SSATSolver(store, config)

    started = time.perf_counter()
    old_handler = None
    probability: Optional[float] = None
    error_msg = ""
    try:
        if timeout_s and timeout_s > 0 and hasattr(signal, "SIGALRM"):
            old_handler = signal.signal(signal.SIGALRM, _timeout_handler)
            signal.alarm(max(1, int(timeout_s)))
        probability = solver.solve()
        status = "OK"
    except Timeout:
        status = "TIMEOUT"
    except Exception as e:
        status = "ERROR"
        error_msg = f"solve: {type(e).__name__}: {e}"
    finally:
        wall_time = time.perf_counter() - started
        if hasattr(signal, "SIGALRM") and old_handler is not None:
            signal.alarm(0)
            signal.signal(signal.SIGALRM, old_handler)

    counters = solver.counters
    return RunResult(
        instance=instance_name,
        algorithm=algorithm,
        num_vars=store.num_vars,
        n_clauses=len(before[0]),
        status=status,
        probability=probability,
        wall_time_s=wall_time,
        propagations=counters.propagations,
        eliminations=counters.eliminations,
        splits=counters.splits,
        split_percentage=split_percentage(counters.splits, store.num_vars),
        restored=(store.snapshot() == before),
        error=error_msg,
    )


def run_instance(
    instance: SSATInstance,
    instance_name: str,
    algorithms: List[str],
    timeout_s: Optional[float],
    check: bool = False,
    seed: Optional[int] = None,
) -> List[RunResult]:
    """Run every algorithm on one store and label the rows with agreement/correctness."""
    store = instance.to_store()
    expected = brute_force(instance) if check else None

    results: List[RunResult] = []
    for name in algorithms:
        config = ALGORITHMS[name]
        if seed is not None:
            config = SolverConfig(config.unit_propagation, config.pure_elimination, config.split_heuristic, seed)
        res = run_one_algorithm(store, instance_name, name, config, timeout_s)
        if not res.restored:
            # an interrupted run may leave the store half-updated
            store = instance.to_store()
        res.expected_probability = expected
        if expected is not None and res.probability is not None:
            res.is_correct = abs(res.probability - expected) <= TOLERANCE
        results.append(res)

    solved = [r.probability for r in results if r.probability is not None]
    if solved:
        agree = max(solved) - min(solved) <= TOLERANCE
        for r in results:
            if r.probability is not None:
                r.agrees = agree
    return results


def save_csv(rows: List[RunResult], path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(
            f,
            fieldnames=list(asdict(rows[0]).keys()) if rows else list(RunResult.__dataclass_fields__.keys()),
        )
        writer.writeheader()
        for r in rows:
            writer.writerow(asdict(r))


def try_make_plots(rows: List[RunResult], outdir: str) -> List[str]:
    import matplotlib.pyplot as plt

    os.makedirs(outdir, exist_ok=True)
    paths: List[str] = []

    by_algorithm: Dict[str, List[RunResult]] = {}
    for r in rows:
        if r.status == "OK":
            by_algorithm.setdefault(r.algorithm, []).append(r)
    if not by_algorithm:
        return paths
    labels = sorted(by_algorithm.keys())

    # Time distributions by algorithm (boxplot)
    plt.figure(figsize=(max(6, len(labels) * 0.8), 4))
    plt.boxplot([[r.wall_time_s for r in by_algorithm[a]] for a in labels], showfliers=False)
    plt.xticks(range(1, len(labels) + 1), labels, rotation=45, ha="right")
    plt.title("Solve time by algorithm")
    plt.ylabel("Seconds")
    p = os.path.join(outdir, "time_by_algorithm.png")
    plt.tight_layout()
    plt.savefig(p)
    plt.close()
    paths.append(p)

    # Mean splits by algorithm (bar chart)
    means = [sum(r.splits for r in by_algorithm[a]) / len(by_algorithm[a]) for a in labels]
    plt.figure(figsize=(max(6, len(labels) * 0.8), 4))
    plt.bar(range(len(labels)), means)
    plt.xticks(range(len(labels)), labels, rotation=45, ha="right")
    plt.title("Mean variable splits by algorithm")
    plt.ylabel("Splits")
    p = os.path.join(outdir, "splits_by_algorithm.png")
    plt.tight_layout()
    plt.savefig(p)
    plt.close()
    paths.append(p)

    return paths


def load_instances(args: argparse.Namespace) -> List[Tuple[str, SSATInstance]]:
    instances: List[Tuple[str, SSATInstance]] = []
    for path in args.files:
        try:
            instances.append((os.path.basename(path), read_ssat(path)))
        except (OSError, MalformedInput) as e:
            print(f"[skip] {path}: {e}", file=sys.stderr)

    rng = random.Random(args.seed)
    order = args.var_order or alternating_order(args.num_vars, args.block_size)
    n_chance = order.count("R")
    probs = list(itertools.islice(itertools.cycle(args.probs), n_chance))
    for i in range(args.generate):
        instance = generate_instance(
            args.num_vars, args.num_clauses, args.max_len, args.min_len, order, probs, seed=rng.randint(0, 2**31 - 1)
        )
        instances.append((f"generated-{i + 1}", instance))
    return instances


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Evaluate SSAT solver configurations on SSAT instances.")
    ap.add_argument("files", nargs="*", help="SSAT files to solve")
    ap.add_argument("--algorithms", nargs="*", default=DEFAULT_ALGORITHMS, help="Algorithm names (rules/heuristic), or 'all'")
    ap.add_argument("--timeout", type=float, default=30.0, help="Per-run timeout in seconds (Linux only)")
    ap.add_argument("--check", action="store_true", help="Compare each run against brute-force evaluation")
    ap.add_argument("--seed", type=int, default=None, help="Random seed (generator and random heuristic)")
    ap.add_argument("--outdir", type=str, default=os.path.join(os.getcwd(), "outputs"), help="Output dir for CSV and plots")
    ap.add_argument("--no-plots", action="store_true", help="Skip plotting")
    gen = ap.add_argument_group("generated instances")
    gen.add_argument("--generate", type=int, default=0, help="How many random instances to generate")
    gen.add_argument("--num-vars", type=int, default=10)
    gen.add_argument("--num-clauses", type=int, default=20)
    gen.add_argument("--max-len", type=int, default=3, help="Maximum clause length")
    gen.add_argument("--min-len", type=int, default=1, help="Minimum clause length")
    gen.add_argument("--var-order", type=str, default=None, help="'E'/'R' letter per variable; default alternates blocks")
    gen.add_argument("--block-size", type=int, default=1, help="Block size of the default alternating order")
    gen.add_argument("--probs", nargs="*", type=float, default=[0.5], help="Chance probabilities, cycled over 'R' variables")
    args = ap.parse_args(argv)

    if args.algorithms == ["all"]:
        args.algorithms = list(ALGORITHMS.keys())
    unknown = [a for a in args.algorithms if a not in ALGORITHMS]
    if unknown:
        ap.error(f"unknown algorithms: {', '.join(unknown)}; choose from {', '.join(ALGORITHMS)}")
    if args.var_order is not None and len(args.var_order) != args.num_vars:
        ap.error("--var-order needs one letter per variable")
    if not args.files and args.generate <= 0:
        ap.error("give SSAT files or --generate N")
    return args


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    results: List[RunResult] = []
    disagreements = 0
    for name, instance in load_instances(args):
        rows = run_instance(instance, name, args.algorithms, args.timeout, check=args.check, seed=args.seed)
        results.extend(rows)
        if any(r.agrees is False for r in rows):
            disagreements += 1
        for r in rows:
            prob = "-" if r.probability is None else f"{r.probability:.6f}"
            print(f"{name} {r.algorithm:<24} -> {r.status} p={prob} in {r.wall_time_s:.3f}s, "
                  f"splits={r.splits}, ucp={r.propagations}, pve={r.eliminations}")

    # Save CSV
    csv_path = os.path.join(args.outdir, "metrics.csv")
    save_csv(results, csv_path)
    print(f"Saved metrics CSV -> {csv_path}")

    # Plots
    if not args.no_plots:
        for p in try_make_plots(results, args.outdir):
            print(f"Saved plot -> {p}")

    # Summaries
    print(f"Instances where algorithms disagree: {disagreements}")
    unrestored = sum(1 for r in results if r.restored is False and r.status == "OK")
    if unrestored:
        print(f"Runs that left the formula store modified: {unrestored}")
    labeled = [r for r in results if r.is_correct is not None]
    if labeled:
        correct = sum(1 for r in labeled if r.is_correct)
        print(f"Brute-force agreement: {correct}/{len(labeled)}")
    for algorithm in args.algorithms:
        times = [r.wall_time_s for r in results if r.algorithm == algorithm and r.status == "OK"]
        if times:
            print(f"Mean time ({algorithm}): {sum(times)/len(times):.3f}s over {len(times)} instances")


if __name__ == "__main__":
    main()
