# simulator.py
import logging
from dataclasses import asdict, dataclass

from cache import LRUCache, decode
from tracefile import Operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Statistics:
    hit: int = 0
    miss: int = 0
    eviction: int = 0

    def __add__(self, other):
        if not isinstance(other, Statistics):
            return NotImplemented
        return Statistics(self.hit + other.hit,
                          self.miss + other.miss,
                          self.eviction + other.eviction)

    @property
    def accesses(self):
        return self.hit + self.miss

    @property
    def hit_rate(self):
        return self.hit / self.accesses if self.accesses else 0.0

    def as_dict(self):
        return asdict(self)


class StatisticsAccumulator:
    """Counts hits, misses and evictions. Read-only once finish() is called."""

    def __init__(self):
        self.hit = 0
        self.miss = 0
        self.eviction = 0
        self.finished = False

    def record(self, result):
        if self.finished:
            raise RuntimeError("statistics already finalized")
        if result.hit:
            self.hit += 1
        else:
            self.miss += 1
        if result.evicted:
            self.eviction += 1

    def snapshot(self):
        return Statistics(self.hit, self.miss, self.eviction)

    def finish(self):
        self.finished = True
        return self.snapshot()


class AccessSimulator:
    """
    Replays trace events against one cache.
    Owns its simulation context (cache + counters); nothing is shared between
    instances, so independent simulators can run side by side.
    """

    def __init__(self, config, cache=None, accumulator=None):
        self.config = config
        self.cache = cache if cache is not None else LRUCache(config)
        self.accumulator = accumulator if accumulator is not None else StatisticsAccumulator()

    def _access(self, address):
        set_index, tag = decode(address, self.config)
        result = self.cache.access(set_index, tag)
        self.accumulator.record(result)
        return result

    def process(self, event):
        """Apply one event. Returns the AccessResult of each cache access made."""
        if event.op is Operation.MODIFY:
            # load then store on the same block; the store always hits
            return [self._access(event.address), self._access(event.address)]
        if event.op in (Operation.LOAD, Operation.STORE):
            return [self._access(event.address)]
        logger.debug("skipping instruction fetch at %#x", event.address)
        return []

    def run(self, events):
        n = 0
        for event in events:
            self.process(event)
            n += 1
        stats = self.accumulator.finish()
        logger.info("simulated %d events: %s", n, stats)
        return stats


def simulate(config, events):
    return AccessSimulator(config).run(events)
