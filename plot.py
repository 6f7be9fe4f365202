import argparse
import pathlib
import os
from typing import List, Optional

import matplotlib.pyplot as plt
import pandas as pd

METRICS = ["wall_time_s", "splits", "propagations", "eliminations", "split_percentage"]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Plot SSAT evaluation metrics.")
    ap.add_argument("paths", nargs="+", help="metrics.csv files, or directories holding one")
    ap.add_argument("--metric", choices=METRICS, action="append", help="Metric(s) to plot (default: wall time and splits)")
    ap.add_argument("--outdir", default=str(pathlib.Path.cwd() / "plots"))
    return ap.parse_args(argv)

def get_path(path: str) -> pathlib.Path:
    p = pathlib.Path(path)
    return p / "metrics.csv" if p.is_dir() else p

def get_data(paths: List[str]) -> pd.DataFrame:
    frames = []
    for path in paths:
        csv_path = get_path(path)
        raw = pd.read_csv(csv_path)
        raw["run"] = csv_path.parent.name
        frames.append(raw)
    data = pd.concat(frames, ignore_index=True)
    # only completed runs carry meaningful counters
    return data[data["status"] == "OK"]

def plot(data: pd.DataFrame, metric: str, file: pathlib.Path) -> bool:
    if data.empty:
        return False
    grouped = list(data.groupby("algorithm")[metric])
    labels = [name for name, _ in grouped]
    values = [series.to_list() for _, series in grouped]

    plt.figure(figsize=(max(6.4, len(labels) * 0.8), 4.8))
    plt.boxplot(values)
    plt.xticks(range(1, len(labels) + 1), labels, rotation=45, ha="right")
    plt.ylabel(metric)
    plt.title(f"{metric} by algorithm")
    plt.tight_layout()
    plt.savefig(file)
    plt.clf()
    plt.close()
    return True

def main(argv: Optional[List[str]] = None) -> List[pathlib.Path]:
    args = parse_args(argv)
    plots = pathlib.Path(args.outdir)
    if not plots.exists():
        os.makedirs(plots)
    data = get_data(args.paths)
    written = []
    for metric in args.metric or ["wall_time_s", "splits"]:
        file = plots / f"{metric}_by_algorithm.png"
        if plot(data, metric, file):
            written.append(file)
    return written

if __name__ == "__main__":
    main()
