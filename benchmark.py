# benchmark.py
import json
import logging
import os
import threading
import time

import numpy as np

from cache import CacheConfig, InvalidConfiguration, decode
from simulator import AccessSimulator, Statistics
from tracefile import Operation, TraceEvent

logger = logging.getLogger(__name__)

# numpy draws int64; wider blocks get offsets from their low 62 bits
MAX_OFFSET_RANGE = 1 << 62


def shard_events(events, config, num_shards):
    """
    Split events into `num_shards` lists by set index. Every access to a set
    lands in the same shard, in trace order, so LRU state stays exact.
    """
    shards = [[] for _ in range(num_shards)]
    for event in events:
        set_index, _ = decode(event.address, config)
        shards[set_index % num_shards].append(event)
    return shards


def run_sharded(config, events, num_shards=1):
    """Simulate `events` with one independent cache per shard; returns summed Statistics."""
    if num_shards < 1:
        raise ValueError("num_shards must be at least 1")
    if num_shards == 1:
        return AccessSimulator(config).run(events)

    lock = threading.Lock()
    partials = []

    def worker(shard):
        stats = AccessSimulator(config).run(shard)
        with lock:
            partials.append(stats)

    threads = []
    for shard in shard_events(events, config, num_shards):
        t = threading.Thread(target=worker, args=(shard,))
        t.start()
        threads.append(t)
    for t in threads:
        t.join()
    if len(partials) != num_shards:
        raise RuntimeError(f"{num_shards - len(partials)} shard(s) failed")
    return sum(partials, Statistics())


class BenchmarkRunner:
    def __init__(self, cfg):
        self.cfg = cfg
        bench = cfg.get("benchmark", {})
        self.rng = np.random.default_rng(bench.get("random_seed", None))
        cache_cfg = cfg.get("cache", {})
        self.config = CacheConfig(
            s=cache_cfg.get("s", 4),
            E=cache_cfg.get("E", 2),
            b=cache_cfg.get("b", 4),
        )
        self.working_set_kb = bench.get("working_set_kb", 64)
        self.num_blocks = max(1, (self.working_set_kb * 1024) // self.config.block_size)
        self.num_requests = bench.get("num_requests", 10000)
        self.num_threads = bench.get("num_threads", 4)
        if not isinstance(self.num_threads, int) or isinstance(self.num_threads, bool) or self.num_threads < 1:
            raise InvalidConfiguration(f"num_threads must be a positive integer, got {self.num_threads!r}")
        self.read_ratio = bench.get("read_ratio", 0.7)
        self.modify_ratio = bench.get("modify_ratio", 0.1)
        self.access_pattern = bench.get("access_pattern", "mixed")
        self._seq_ptr = 0

    def _generate_block(self):
        if self.access_pattern == "sequential":
            return self._next_sequential()
        elif self.access_pattern == "random":
            return int(self.rng.integers(0, self.num_blocks))
        else:  # mixed: mostly sequential with some random
            if self.rng.random() < 0.8:
                return self._next_sequential()
            return int(self.rng.integers(0, self.num_blocks))

    def _next_sequential(self):
        block = self._seq_ptr
        self._seq_ptr = (block + 1) % self.num_blocks
        return block

    def _generate_op(self):
        r = self.rng.random()
        if r < self.read_ratio:
            return Operation.LOAD
        if r < self.read_ratio + self.modify_ratio:
            return Operation.MODIFY
        return Operation.STORE

    def generate_trace(self):
        block_size = self.config.block_size
        events = []
        for _ in range(self.num_requests):
            block = self._generate_block()
            offset = int(self.rng.integers(0, min(block_size, MAX_OFFSET_RANGE)))
            events.append(TraceEvent(self._generate_op(), block * block_size + offset, 8))
        return events

    def run(self, events=None):
        if events is None:
            events = self.generate_trace()
        start = time.time()
        stats = run_sharded(self.config, events, self.num_threads)
        end = time.time()
        return self.summarize(stats, len(events), end - start)

    def summarize(self, stats, total_events, duration):
        return {
            "s": self.config.s,
            "E": self.config.E,
            "b": self.config.b,
            "total_events": total_events,
            "total_accesses": stats.accesses,
            "hit": stats.hit,
            "miss": stats.miss,
            "eviction": stats.eviction,
            "hit_rate": stats.hit_rate,
            "miss_rate": 1.0 - stats.hit_rate if stats.accesses else 0.0,
            "throughput_events_per_sec": total_events / duration if duration > 0 else 0,
            "duration_s": duration,
        }

    def sweep_associativity(self, values, events=None):
        """Replay one trace for each E in `values`; returns [(E, Statistics)]."""
        if events is None:
            events = self.generate_trace()
        results = []
        for e in values:
            config = CacheConfig(self.config.s, e, self.config.b)
            results.append((e, run_sharded(config, events, self.num_threads)))
            logger.info("E=%d: %s", e, results[-1][1])
        return results

    def save_results(self, summary, out_cfg):
        results_dir = out_cfg.get("results_dir", "results")
        os.makedirs(results_dir, exist_ok=True)
        path = os.path.join(results_dir, out_cfg.get("results_file", "results.json"))
        with open(path, "w") as f:
            json.dump(summary, f, indent=2)
        return path
