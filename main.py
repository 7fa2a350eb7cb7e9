# main.py
import argparse
import json
import logging
import os
import sys

from benchmark import BenchmarkRunner, run_sharded
from cache import CacheConfig, InvalidConfiguration
from simulator import AccessSimulator, Statistics
from tracefile import MalformedTraceLine, format_event, read_trace
from visualize import plot_associativity_sweep, plot_hit_miss_rate, plot_statistics

logger = logging.getLogger(__name__)


def load_config(path="config.json"):
    with open(path, "r") as f:
        return json.load(f)


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="csim", description="LRU set-associative cache simulator")
    p.add_argument("-s", type=int, help="Number of set index bits (S = 2^s sets)")
    p.add_argument("-E", type=int, help="Lines per set")
    p.add_argument("-b", type=int, help="Number of block bits (B = 2^b bytes)")
    p.add_argument("-t", "--trace", help="Valgrind trace to replay")
    p.add_argument("-v", "--verbose", action="store_true", help="Print the outcome of every event")
    p.add_argument("-j", "--jobs", type=int, default=1, help="Simulate in this many set-partitioned shards")
    p.add_argument("--config", help="JSON config; without --trace runs the synthetic benchmark")
    p.add_argument("--json", help="Write the result summary to this file")
    p.add_argument("--plot", help="Write a hit/miss/eviction chart to this file")
    p.add_argument("--log-level", default="WARNING",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p.parse_args(argv)


def build_config(args, cfg):
    cache_cfg = dict(cfg.get("cache", {}))
    for key in ("s", "E", "b"):
        value = getattr(args, key)
        if value is not None:
            cache_cfg[key] = value
    missing = [key for key in ("s", "E", "b") if key not in cache_cfg]
    if missing:
        raise InvalidConfiguration(f"missing cache parameter(s): {', '.join(missing)}")
    return CacheConfig(s=cache_cfg["s"], E=cache_cfg["E"], b=cache_cfg["b"])


def _describe(results):
    words = []
    for result in results:
        words.append("hit" if result.hit else "miss")
        if result.evicted:
            words.append("eviction")
    return " ".join(words)


def run_trace(args, config):
    events = read_trace(args.trace)
    logger.info("replaying %s with s=%d E=%d b=%d", args.trace, config.s, config.E, config.b)
    if args.verbose:
        sim = AccessSimulator(config)
        for event in events:
            print(f"{format_event(event)} {_describe(sim.process(event))}")
        stats = sim.accumulator.finish()
    else:
        stats = run_sharded(config, events, args.jobs)

    print(f"hits:{stats.hit} misses:{stats.miss} evictions:{stats.eviction}")
    if args.json:
        dirname = os.path.dirname(args.json)
        if dirname:
            os.makedirs(dirname, exist_ok=True)
        with open(args.json, "w") as f:
            json.dump(dict(stats.as_dict(), s=config.s, E=config.E, b=config.b,
                           trace=args.trace), f, indent=2)
    if args.plot:
        plot_statistics(stats, args.plot)
    return stats


def run_benchmark(cfg):
    runner = BenchmarkRunner(cfg)
    out_cfg = cfg.get("output", {})
    print("Starting benchmark with config:", cfg.get("benchmark", {}))
    events = runner.generate_trace()
    summary = runner.run(events)
    results_path = runner.save_results(summary, out_cfg)
    print("Benchmark Summary:", summary)
    print("Results saved to:", results_path)

    results_dir = out_cfg.get("results_dir", "results")
    sweep = cfg.get("benchmark", {}).get("sweep_E", [1, 2, 4, 8])
    results = runner.sweep_associativity(sweep, events)
    plot_associativity_sweep(results, out_cfg.get("sweep_plot", os.path.join(results_dir, "sweep_E.png")))
    final = Statistics(summary["hit"], summary["miss"], summary["eviction"])
    plot_statistics(final, out_cfg.get("summary_plot", os.path.join(results_dir, "summary.png")))
    plot_hit_miss_rate(summary["hit_rate"], out_cfg.get("hitmiss_plot", os.path.join(results_dir, "hit_miss_rate.png")))
    print(f"Plots saved in {results_dir}/")
    return summary


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(levelname)s %(name)s: %(message)s")
    try:
        cfg = load_config(args.config) if args.config else {}
        if args.trace:
            if args.jobs < 1:
                raise InvalidConfiguration("--jobs must be at least 1")
            run_trace(args, build_config(args, cfg))
        elif args.config:
            run_benchmark(cfg)
        else:
            print("csim: either -t TRACE or --config is required", file=sys.stderr)
            return 2
    except (InvalidConfiguration, MalformedTraceLine, OSError) as e:
        print(f"csim: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
