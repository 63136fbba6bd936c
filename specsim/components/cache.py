"""
Two-Level Cache Model

Small FIFO cache levels with fixed latencies. Nothing here touches real
memory: addresses are plain numbers used as dictionary keys.
"""

import itertools
from collections import OrderedDict
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import AddressError
from ..utils.helpers import is_finite_number


@dataclass(frozen=True)
class AccessResult:
    """Outcome of a single cache access."""
    level: str        # 'L1', 'L2' or 'memory'
    hit: bool
    latency: int

    def to_dict(self) -> Dict:
        return asdict(self)


def _validate_address(address, where: str) -> None:
    if not is_finite_number(address):
        raise AddressError(f"{where} received invalid address: {address!r}")


class CacheLevel:
    """
    A single cache tier with FIFO eviction.

    Insertion order doubles as recency: the first key in `lines` is the
    next one to be evicted.
    """

    def __init__(self, name: str, size: int, latency: int):
        if size < 1:
            raise ValueError(f"CacheLevel({name}) size must be positive, got {size}")
        self.name = name
        self.size = size
        self.latency = latency

        # {address: insertion marker}
        self.lines: OrderedDict = OrderedDict()
        self._marker = itertools.count()

    def contains(self, address) -> bool:
        """Check residency without side effects."""
        _validate_address(address, f"CacheLevel({self.name})")
        return address in self.lines

    def insert(self, address) -> Optional[float]:
        """
        Install an address, evicting the oldest line if full.

        Returns:
            The evicted address, or None
        """
        _validate_address(address, f"CacheLevel({self.name})")
        if address in self.lines:
            return None

        evicted = None
        if len(self.lines) >= self.size:
            evicted, _ = self.lines.popitem(last=False)
        self.lines[address] = next(self._marker)
        return evicted

    def snapshot(self) -> List:
        """Resident addresses in insertion order."""
        return list(self.lines.keys())

    def reset(self) -> None:
        self.lines.clear()
        self._marker = itertools.count()

    def __len__(self) -> int:
        return len(self.lines)

    def __repr__(self) -> str:
        return f"CacheLevel({self.name}, {len(self.lines)}/{self.size}, latency={self.latency})"


class CacheHierarchy:
    """
    Ordered cache levels checked L1 first, backed by memory.

    A hit returns immediately without touching later levels. A full miss
    reports memory latency and installs the address into the first level
    only.
    """

    def __init__(self, levels: Optional[Sequence[CacheLevel]] = None,
                 miss_latency: int = 42):
        if levels is None:
            levels = [
                CacheLevel('L1', size=8, latency=8),
                CacheLevel('L2', size=16, latency=16),
            ]
        if not levels:
            raise ValueError("CacheHierarchy requires at least one level")

        self.levels: List[CacheLevel] = list(levels)
        self.miss_latency = miss_latency

    @classmethod
    def from_config(cls, config) -> 'CacheHierarchy':
        """Build from a SimulatorConfig."""
        return cls(
            levels=[
                CacheLevel('L1', size=config.l1_size, latency=config.l1_latency),
                CacheLevel('L2', size=config.l2_size, latency=config.l2_latency),
            ],
            miss_latency=config.miss_latency,
        )

    def access(self, address) -> AccessResult:
        """
        Serve an address from the first level holding it.

        Args:
            address: Mock address (finite number)

        Returns:
            AccessResult for the tier that satisfied the request
        """
        _validate_address(address, "CacheHierarchy")

        for level in self.levels:
            if level.contains(address):
                return AccessResult(level=level.name, hit=True, latency=level.latency)

        self.levels[0].insert(address)
        return AccessResult(level='memory', hit=False, latency=self.miss_latency)

    def prime(self, addresses: Iterable) -> List[AccessResult]:
        """Populate the cache by touching addresses in order."""
        return [self.access(address) for address in addresses]

    def probe(self, addresses: Iterable) -> List[AccessResult]:
        """Re-read addresses to observe latency (the Probe in Prime+Probe)."""
        return [self.access(address) for address in addresses]

    def snapshot(self) -> List[Dict]:
        """Resident lines per level, in insertion order."""
        return [
            {'name': level.name, 'lines': level.snapshot()}
            for level in self.levels
        ]

    def reset(self) -> None:
        for level in self.levels:
            level.reset()

    def __repr__(self) -> str:
        return f"CacheHierarchy({self.levels}, miss_latency={self.miss_latency})"
