# visualize.py
import os

import matplotlib.pyplot as plt


def _ensure_dir(outpath):
    dirname = os.path.dirname(outpath)
    if dirname:
        os.makedirs(dirname, exist_ok=True)


def plot_statistics(stats, outpath):
    """Bar chart of hit / miss / eviction counts."""
    _ensure_dir(outpath)
    labels = ["Hit", "Miss", "Eviction"]
    counts = [stats.hit, stats.miss, stats.eviction]
    plt.figure(figsize=(5, 4))
    bars = plt.bar(labels, counts, color=["tab:green", "tab:red", "tab:orange"])
    for bar, count in zip(bars, counts):
        plt.annotate(str(count), (bar.get_x() + bar.get_width() / 2, bar.get_height()),
                     ha="center", va="bottom")
    plt.title(f"Cache Accesses (hit rate {stats.hit_rate:.1%})")
    plt.ylabel("Count")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_hit_miss_rate(hit_rate, outpath):
    _ensure_dir(outpath)
    plt.figure(figsize=(4,4))
    labels = ['Hit', 'Miss']
    sizes = [hit_rate, 1.0 - hit_rate]
    plt.pie(sizes, labels=labels, autopct='%1.1f%%')
    plt.title("Cache Hit/Miss Rate")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_associativity_sweep(results, outpath):
    """results: [(E, Statistics), ...] from BenchmarkRunner.sweep_associativity."""
    _ensure_dir(outpath)
    ways = [e for e, _ in results]
    plt.figure(figsize=(8,4))
    plt.plot(ways, [s.miss for _, s in results], marker='o', label="Misses")
    plt.plot(ways, [s.eviction for _, s in results], marker='s', label="Evictions")
    plt.title("Misses vs Associativity")
    plt.xlabel("Lines per set (E)")
    plt.ylabel("Count")
    plt.xticks(ways)
    plt.legend()
    plt.grid(True)
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
