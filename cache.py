# cache.py
import collections
import logging
from dataclasses import dataclass

ADDRESS_BITS = 64
ADDRESS_MASK = (1 << ADDRESS_BITS) - 1

logger = logging.getLogger(__name__)


class InvalidConfiguration(ValueError):
    """Raised when (s, E, b) cannot describe a cache."""


@dataclass(frozen=True)
class CacheConfig:
    """
    Cache geometry.

    s: set index bits (S = 2**s sets)
    E: lines per set
    b: block offset bits (B = 2**b bytes per block)
    """
    s: int
    E: int
    b: int

    def __post_init__(self):
        for name in ("s", "E", "b"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidConfiguration(f"{name} must be an integer, got {value!r}")
        if self.s < 0 or self.b < 0:
            raise InvalidConfiguration("s and b must be non-negative")
        if self.E < 1:
            raise InvalidConfiguration(f"E must be at least 1, got {self.E}")
        if self.s + self.b > ADDRESS_BITS:
            raise InvalidConfiguration(
                f"s + b must not exceed {ADDRESS_BITS}, got {self.s + self.b}")

    @property
    def num_sets(self):
        return 1 << self.s

    @property
    def block_size(self):
        return 1 << self.b

    @property
    def tag_bits(self):
        return ADDRESS_BITS - self.s - self.b

    def decode(self, address):
        return decode(address, self)


def decode(address, config):
    """Split `address` into (set_index, tag). Offset bits are dropped."""
    address &= ADDRESS_MASK
    set_index = (address >> config.b) & ((1 << config.s) - 1)
    tag = (address >> (config.b + config.s)) & ((1 << config.tag_bits) - 1)
    return set_index, tag


AccessResult = collections.namedtuple("AccessResult", "hit evicted")

Line = collections.namedtuple("Line", "tag valid recency")


class CacheSet:
    """
    One set of E lines.
    Tags live in an OrderedDict: leftmost = least recent, rightmost = most recent.
    """

    def __init__(self, associativity):
        self.associativity = associativity
        self._lines = collections.OrderedDict()

    def __len__(self):
        return len(self._lines)

    def __contains__(self, tag):
        return tag in self._lines

    def access(self, tag):
        if tag in self._lines:
            self._lines.move_to_end(tag)
            return AccessResult(True, False)
        evicted = False
        if len(self._lines) >= self.associativity:
            victim, _ = self._lines.popitem(last=False)
            logger.debug("evict tag %s", victim)
            evicted = True
        self._lines[tag] = True
        return AccessResult(False, evicted)

    def victim(self):
        """Tag that the next miss would evict, or None while the set has room."""
        if len(self._lines) < self.associativity:
            return None
        return next(iter(self._lines))

    def lines(self):
        valid = [Line(tag, True, i) for i, tag in enumerate(self._lines)]
        empty = [Line(None, False, None)] * (self.associativity - len(valid))
        return valid + empty


class LRUCache:
    """
    Set-associative LRU cache model, addressed by (set_index, tag).
    Only metadata is tracked; no data is stored.
    """

    def __init__(self, config: CacheConfig):
        self.config = config
        self.num_sets = config.num_sets
        self.associativity = config.E
        # sets are created on first touch; S can be as large as 2**64
        self.sets = {}
        logger.info("cache: %d sets, %d-way, %dB blocks",
                    self.num_sets, self.associativity, config.block_size)

    def _check_index(self, set_index):
        if not 0 <= set_index < self.num_sets:
            raise IndexError(f"set index {set_index} out of range for {self.num_sets} sets")

    def _set(self, set_index):
        self._check_index(set_index)
        s = self.sets.get(set_index)
        if s is None:
            s = self.sets[set_index] = CacheSet(self.associativity)
        return s

    def access(self, set_index, tag):
        """
        Access `tag` in set `set_index`. Returns AccessResult(hit, evicted)
        and updates LRU state.
        """
        return self._set(set_index).access(tag)

    def access_address(self, address):
        return self.access(*decode(address, self.config))

    def contains(self, set_index, tag):
        s = self.sets.get(set_index)
        return s is not None and tag in s

    def lines(self, set_index):
        self._check_index(set_index)
        s = self.sets.get(set_index)
        if s is None:
            s = CacheSet(self.associativity)
        return s.lines()

    def stats(self):
        used_lines = sum(len(s) for s in self.sets.values())
        return {
            "num_sets": self.num_sets,
            "associativity": self.associativity,
            "block_size": self.config.block_size,
            "touched_sets": len(self.sets),
            "used_lines": used_lines,
        }
