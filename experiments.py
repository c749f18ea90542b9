# Jacob Mitchell, Kyle Axtell
# CS 456 - Data Compression
# experiments.py
# 3/6/26

"""
Experiment harness: Huffman with the built tree vs Huffman through a saved code table

The "huffman+table" pipeline writes the code table out, reads it back and
decodes with the rebuilt tree, so every run also checks that a saved table
decodes exactly what the original tree encoded.

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 256 --exp2_max_mb 4
  python experiments.py --outdir results --exp1_generators uniform256,zipf128,single_symbol
"""

from __future__ import annotations

import argparse
import csv
import io
import logging
import random
import statistics
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib
matplotlib.use("Agg") # file output only
import matplotlib.pyplot as plt

import huffman as huff
from bitio import BitReader, BitWriter
from code_table import load_code_table, write_code_table

logger = logging.getLogger(__name__)

PIPELINES = ("huffman", "huffman+table")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def pack(data: bytes, code_map: Dict[int, str]) -> Tuple[bytes, int, int]:
    """
    Encode data into packed bytes
    Returns (packed_bytes, bit_count, pad_bits)
    """
    out = io.BytesIO()
    with BitWriter(out) as writer:
        bit_count = huff.huffman_encode(data, code_map, writer)
    return out.getvalue(), bit_count, writer.pad_bits


def unpack(packed: bytes, bit_count: int, symbol_count: int, root: huff.HuffmanNode) -> bytes:
    # bit_count hides the padding; symbol_count only matters for a one-leaf tree
    return huff.huffman_decode(BitReader(packed, bit_count), root, symbol_count=symbol_count)


def reload_tree(root: huff.HuffmanNode) -> Tuple[huff.HuffmanNode, int]:
    """
    Save the code table as text and rebuild a tree from it
    Returns (rebuilt_root, table_bytes)
    """
    buf = io.StringIO()
    write_code_table(root, buf)
    text = buf.getvalue()
    return load_code_table(text), len(text.encode("ascii"))


# Synthetic dataset generators

def _sample(size: int, weights: Sequence[float], symbols: Sequence[int], rng: random.Random) -> bytes:
    # inverse-CDF sampling with a binary search over the cumulative weights
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)

    out = bytearray()
    for _ in range(size):
        r = rng.random()
        lo, hi = 0, len(cdf) - 1
        while lo < hi:
            mid = (lo + hi) // 2
            if r <= cdf[mid]:
                hi = mid
            else:
                lo = mid + 1
        out.append(symbols[lo])
    return bytes(out)

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    symbols = [dominant] + [i for i in range(256) if i != dominant]
    weights = [dom_frac] + [(1.0 - dom_frac) / 255] * 255
    return _sample(size, weights, symbols, rng)

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample(size, weights, list(range(alphabet)), rng)

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    chars = " etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n"

    def weight(ch: str) -> float:
        if ch == ' ':
            return 13.0
        if ch == '\n':
            return 1.5
        if ch.lower() in "etaoinshrdlu":
            return 6.0
        if ch.lower() in "cmfwgypbvk":
            return 2.5
        return 1.2

    return _sample(size, [weight(ch) for ch in chars], [ord(ch) for ch in chars], rng)

def gen_single_symbol(size: int, seed: int = 0) -> bytes:
    # one-leaf tree: every symbol has the empty code
    return bytes([ord('A')]) * size

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform128": lambda size, seed: gen_uniform(size, alphabet=128, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single_symbol": lambda size, seed: gen_single_symbol(size, seed=seed),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> bytes:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown dataset generator {name!r} (known: {', '.join(sorted(GENERATOR_REGISTRY))})")
    return fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # "huffman" or "huffman+table"
    unique_symbols: int

    build_ms: float
    table_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    compressed_bytes: int
    table_bytes: int
    payload_bits: int
    pad_bits: int
    compression_ratio: float
    correctness_ok: int  # 1 or 0


def run_one(data: bytes, pipeline: str) -> MetricRow:
    if pipeline not in PIPELINES:
        raise ValueError(f"pipeline must be one of {PIPELINES}")
    freqs = huff.count_frequencies(data)

    t0 = now_ns()
    root = huff.build_huffman_tree(freqs)
    code_map = huff.generate_huffman_codes(root)
    build_ms = ns_to_ms(now_ns() - t0)

    t1 = now_ns()
    packed, bit_count, pad_bits = pack(data, code_map)
    encode_ms = ns_to_ms(now_ns() - t1)

    table_ms = 0.0
    table_bytes = 0
    decode_root = root
    if pipeline == "huffman+table":
        t2 = now_ns()
        decode_root, table_bytes = reload_tree(root)
        table_ms = ns_to_ms(now_ns() - t2)

    t3 = now_ns()
    decoded = unpack(packed, bit_count, len(data), decode_root)
    decode_ms = ns_to_ms(now_ns() - t3)

    comp_bytes = len(packed) + table_bytes
    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=sum(1 for f in freqs if f),
        build_ms=build_ms,
        table_ms=table_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + table_ms + encode_ms + decode_ms,
        compressed_bytes=comp_bytes,
        table_bytes=table_bytes,
        payload_bits=bit_count,
        pad_bits=pad_bits,
        compression_ratio=comp_bytes / max(1, len(data)),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    names = [f.name for f in fields(MetricRow)]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


SUMMARY_METRICS = ("compression_ratio", "encode_ms", "decode_ms", "build_ms", "table_ms", "total_ms")

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "pipeline", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b, pipeline = key
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "pipeline": pipeline,
                "n_runs": len(items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(row)


# Plotting

def _line_chart(path: Path, x, series: Dict[str, List[float]], title: str, ylabel: str,
                xlabel: str = "", xticklabels: Sequence[str] = ()) -> None:
    plt.figure()
    for label, y in series.items():
        plt.plot(x, y, marker="o", label=label)
    if xticklabels:
        plt.xticks(x, xticklabels, rotation=20, ha="right")
    if xlabel:
        plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.title(title)
    plt.legend()
    plt.tight_layout()
    plt.savefig(path, dpi=200)
    plt.close()


def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, pipeline: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset and r.pipeline == pipeline]
        return statistics.mean(vals) if vals else float("nan")

    charts = [
        ("compression_ratio", "Compressed Bytes / Original Bytes", "Compression Ratio by Distribution", "exp1_compression_ratio.png"),
        ("decode_ms", "Decode Time (ms)", "Decode Time by Distribution", "exp1_decode_time.png"),
        ("total_ms", "Total Time (ms)", "Total Runtime by Distribution", "exp1_total_time.png"),
    ]
    for field, ylabel, title, filename in charts:
        series = {p: [mean_for(d, p, field) for d in datasets] for p in PIPELINES}
        _line_chart(outdir / filename, x, series, f"Experiment 1: {title}", ylabel, xticklabels=datasets)


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        def mean_size(size: int, pipeline: str, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.file_size_bytes == size and r.pipeline == pipeline]
            return statistics.mean(vals) if vals else float("nan")

        for field, ylabel, slug in (("encode_ms", "Encode Time (ms)", "encode_time"),
                                    ("compression_ratio", "Compressed Bytes / Original Bytes", "compression_ratio"),
                                    ("total_ms", "Total Time (ms)", "total_time")):
            series = {p: [mean_size(s, p, field) for s in sizes] for p in PIPELINES}
            _line_chart(outdir / f"exp2_{slug}_{dist}.png", sizes, series,
                        f"Experiment 2: {ylabel} vs Size ({dist})", ylabel, xlabel="File Size (bytes)")


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def run_experiments(args: argparse.Namespace) -> List[MetricRow]:
    rows: List[MetricRow] = []

    def record(exp_name: str, dataset_name: str, run_id: int, data: bytes) -> None:
        for pipeline in PIPELINES:
            row = run_one(data, pipeline)
            row.exp_name = exp_name
            row.dataset_name = dataset_name
            row.run_id = run_id
            rows.append(row)
            logger.debug("%s %s run %d %s ok=%d", exp_name, dataset_name, run_id, pipeline, row.correctness_ok)

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                record("exp1_distribution", gen_name, run_id, generate_dataset(gen_name, fixed_size, args.seed + run_id))

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        min_bytes = max(1, args.exp2_min_kb) * 1024
        max_bytes = max(1, args.exp2_max_mb) * 1024 * 1024
        sizes: List[int] = []
        s = min_bytes
        while s <= max_bytes:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    data = generate_dataset(gen_name, size_b, args.seed + 10_000 + size_b + run_id)
                    record("exp2_size_scaling", gen_name, run_id, data)
    return rows

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--no_plots", action="store_true", help="Write CSV files only")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log every run to stderr")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=512, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=str, default="uniform256,zipf128,repetitive90,english_like,single_symbol",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_mb", type=int, default=8, help="Experiment 2 max size in MB (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")
    return ap

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(name)s: %(message)s")

    outdir = Path(args.outdir)
    safe_mkdir(outdir)
    rows = run_experiments(args)

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
