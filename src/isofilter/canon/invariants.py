"""Vertex invariants used to split cells during canonical labelling.

An invariant assigns each vertex a value that depends only on the graph
and the current colouring, so applying it never changes which graphs get
equal canonical forms; it only changes the labelling and the search cost.
"""
from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass
from itertools import combinations
from typing import Callable, Dict, Hashable, List, Optional, Tuple, Union

from isofilter.canon.refine import Adjacency, Colors, _relabel
from isofilter.errors import ConfigurationError, UnsupportedInvariant


INVARIANT_NAMES: Tuple[str, ...] = (
    "none",
    "twopaths",
    "adjtriang",
    "triples",
    "quadruples",
    "celltrips",
    "cellquads",
    "cellquins",
    "distances",
    "indsets",
    "cliques",
    "cellcliq",
    "cellind",
    "adjacencies",
    "cellfano",
    "cellfano2",
    "refinvar",
)

# Invariants each nauty mode provides.
NAUTY_DENSE = frozenset(range(1, len(INVARIANT_NAMES)))
NAUTY_SPARSE = frozenset({8, 13})
TRACES: frozenset = frozenset()


@dataclass(frozen=True)
class InvariantSpec:
    """
    kind:      index into INVARIANT_NAMES (0 = no invariant)
    min_level: first search-tree level the invariant is applied at (root = 1)
    max_level: last level it is applied at
    arg:       strength parameter (clique size, distance bound, ...)
    """

    kind: int = 0
    min_level: int = 1
    max_level: int = 1
    arg: int = 3

    @property
    def name(self) -> str:
        return INVARIANT_NAMES[self.kind]

    def active_at(self, level: int) -> bool:
        return self.kind != 0 and self.min_level <= level <= self.max_level

    def describe(self) -> str:
        return f"{self.name}[{self.min_level}:{self.max_level},{self.arg}]"

    @classmethod
    def parse(
        cls,
        inv: Union[int, str, None],
        levels: Optional[str] = None,
        arg: Optional[int] = None,
    ) -> "InvariantSpec":
        """Build from the -i, -I and -K option values."""
        if inv is None:
            return cls()
        if isinstance(inv, str) and not inv.isdigit():
            if inv not in INVARIANT_NAMES:
                raise ConfigurationError(f"unknown invariant {inv!r}")
            kind = INVARIANT_NAMES.index(inv)
        else:
            kind = int(inv)
        if not 0 <= kind < len(INVARIANT_NAMES):
            raise ConfigurationError(f"-i value must be 0..{len(INVARIANT_NAMES) - 1}")
        if kind == 0:
            return cls()

        lo = hi = 1
        if levels:
            parts = levels.split(":")
            try:
                if len(parts) == 1:
                    lo = hi = int(parts[0])
                elif len(parts) == 2:
                    lo, hi = int(parts[0]), int(parts[1])
                else:
                    raise ValueError(levels)
            except ValueError as exc:
                raise ConfigurationError(f"bad invariant level range {levels!r}") from exc
        if lo < 0 or hi < lo:
            raise ConfigurationError(f"bad invariant level range {lo}:{hi}")

        if arg is None:
            arg = 3
        if arg < 0:
            raise ConfigurationError("-K value must be non-negative")
        return cls(kind=kind, min_level=lo, max_level=hi, arg=arg)


# ---------------------------------------------------------------------------
# Python implementations
# ---------------------------------------------------------------------------

def _twopaths(adj: Adjacency, colors: Colors, arg: int) -> List[Hashable]:
    vals = []
    for v in range(adj.n):
        cnt: Counter[int] = Counter()
        for u in adj.out[v]:
            for w in adj.out[u]:
                cnt[colors[w]] += 1
        vals.append(tuple(sorted(cnt.items())))
    return vals


def _adjtriang(adj: Adjacency, colors: Colors, arg: int) -> List[Hashable]:
    vals = []
    for v in range(adj.n):
        nbrs = sorted((adj.out[v] | adj.inn[v]) - {v})
        cnt: Counter[Tuple[int, int]] = Counter()
        for u, w in combinations(nbrs, 2):
            if adj.adjacent(u, w):
                cnt[tuple(sorted((colors[u], colors[w])))] += 1
        vals.append(tuple(sorted(cnt.items())))
    return vals


def _distances(adj: Adjacency, colors: Colors, arg: int) -> List[Hashable]:
    depth = arg if arg > 0 else adj.n
    vals = []
    for v in range(adj.n):
        dist = {v: 0}
        queue = deque([v])
        while queue:
            u = queue.popleft()
            if dist[u] >= depth:
                continue
            for w in adj.out[u]:
                if w not in dist:
                    dist[w] = dist[u] + 1
                    queue.append(w)
        by_level: Dict[int, Counter] = {}
        for w, d in dist.items():
            if d > 0:
                by_level.setdefault(d, Counter())[colors[w]] += 1
        vals.append(tuple((d, tuple(sorted(by_level[d].items()))) for d in sorted(by_level)))
    return vals


def _count_sets(adj: Adjacency, size: int, want_adjacent: bool) -> List[Hashable]:
    size = max(size, 2)
    vals = []
    for v in range(adj.n):
        pool = [u for u in range(adj.n) if u != v and adj.adjacent(u, v) == want_adjacent]
        count = 0
        for rest in combinations(pool, size - 1):
            if all(adj.adjacent(a, b) == want_adjacent for a, b in combinations(rest, 2)):
                count += 1
        vals.append(count)
    return vals


def _indsets(adj: Adjacency, colors: Colors, arg: int) -> List[Hashable]:
    return _count_sets(adj, arg, want_adjacent=False)


def _cliques(adj: Adjacency, colors: Colors, arg: int) -> List[Hashable]:
    return _count_sets(adj, arg, want_adjacent=True)


def _adjacencies(adj: Adjacency, colors: Colors, arg: int) -> List[Hashable]:
    vals = []
    for v in range(adj.n):
        outs = sorted((colors[u], len(adj.out[u]), len(adj.inn[u])) for u in adj.out[v])
        ins = sorted((colors[u], len(adj.out[u]), len(adj.inn[u])) for u in adj.inn[v])
        vals.append((tuple(outs), tuple(ins)))
    return vals


InvariantFn = Callable[[Adjacency, Colors, int], List[Hashable]]

PYTHON_INVARIANTS: Dict[int, InvariantFn] = {
    1: _twopaths,
    2: _adjtriang,
    8: _distances,
    9: _indsets,
    10: _cliques,
    13: _adjacencies,
}


def check_invariant(spec: InvariantSpec, mode: str, backend: str) -> None:
    """Raise UnsupportedInvariant unless (mode, backend) implements spec."""
    if spec.kind == 0:
        return
    if mode == "traces":
        raise UnsupportedInvariant("invariants are not available with Traces")
    if mode == "sparse" and spec.kind not in NAUTY_SPARSE:
        raise UnsupportedInvariant(f"invariant {spec.name} is not available in sparse mode")
    if backend == "python" and spec.kind not in PYTHON_INVARIANTS:
        raise UnsupportedInvariant(
            f"invariant {spec.name} is not implemented by the python canonicalizer; "
            f"available: {', '.join(INVARIANT_NAMES[k] for k in sorted(PYTHON_INVARIANTS))}"
        )


def apply_invariant(adj: Adjacency, colors: Colors, spec: InvariantSpec) -> Colors:
    """Split cells by invariant value, keeping the cell order."""
    vals = PYTHON_INVARIANTS[spec.kind](adj, colors, spec.arg)
    return _relabel([(colors[v], vals[v]) for v in range(adj.n)])
