"""Canonical labelling of graphs under an initial partition.

Two backends produce canonical forms:

  - RefinementCanonicalizer: individualisation-refinement search in pure
    Python, with automorphism pruning.  Always available.
  - LabelgCanonicalizer: nauty's labelg, one subprocess per graph.

The two backends do not produce the same canonical forms; a run must use
one of them throughout.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import networkx as nx

from isofilter.canon.invariants import InvariantSpec, apply_invariant, check_invariant
from isofilter.canon.partition import parse_partition
from isofilter.canon.refine import (
    Adjacency,
    Colors,
    adjacency_from_graph,
    individualize,
    is_discrete,
    refine,
    target_cell,
)
from isofilter.errors import (
    ConfigurationError,
    EncodingError,
    GraphTooLarge,
    UnsupportedGraph,
)
from isofilter.external.nauty import labelg_args, labelg_available, labelg_canonical
from isofilter.io.graph6 import DIGRAPH6, GRAPH6, SPARSE6, AnyGraph, encode_graph


BACKENDS = ("python", "nauty")
MODES = ("dense", "sparse", "traces")

# Search depth grows with the number of vertices on very symmetric graphs.
PYTHON_MAX_VERTICES = 500


@dataclass(frozen=True)
class CanonConfig:
    backend: str = "python"
    mode: str = "dense"
    partition: Optional[str] = None
    invariant: InvariantSpec = field(default_factory=InvariantSpec)
    max_vertices: Optional[int] = None

    def validate(self) -> None:
        """Reject unusable configurations before any graph is read."""
        if self.backend not in BACKENDS:
            raise ConfigurationError(f"unknown canonicalizer backend {self.backend!r}")
        if self.mode not in MODES:
            raise ConfigurationError(f"unknown canonicalization mode {self.mode!r}")
        if self.max_vertices is not None and self.max_vertices < 0:
            raise ConfigurationError("maximum number of vertices must be non-negative")
        if self.partition is not None and "\0" in self.partition:
            raise ConfigurationError("partition string may not contain nul")
        check_invariant(self.invariant, self.mode, self.backend)

    @property
    def vertex_limit(self) -> Optional[int]:
        if self.max_vertices is not None:
            return self.max_vertices
        if self.backend == "python":
            return PYTHON_MAX_VERTICES
        return None


@dataclass(frozen=True)
class CanonicalResult:
    """
    graph:     the canonically relabelled graph (python backend only)
    labelling: labelling[i] is the input vertex placed at position i,
               or None when the backend does not report it
    form:      the canonical form, when the backend produces text directly
    """

    graph: Optional[AnyGraph]
    labelling: Optional[Tuple[int, ...]]
    form: Optional[str] = None


class Canonicalizer:
    def __init__(self, config: CanonConfig):
        config.validate()
        self.config = config

    def check(self, G: AnyGraph) -> None:
        n = G.number_of_nodes()
        limit = self.config.vertex_limit
        if limit is not None and n > limit:
            raise GraphTooLarge(n, limit)
        if self.config.mode == "traces" and (G.is_directed() or nx.number_of_selfloops(G)):
            raise UnsupportedGraph("Traces does not allow loops or directed edges")

    def canonicalize(self, G: AnyGraph, fmt: str) -> CanonicalResult:
        raise NotImplementedError

    def canonical_form(self, G: AnyGraph, fmt: str) -> str:
        """Canonical text of G in format fmt."""
        res = self.canonicalize(G, fmt)
        if res.form is not None:
            return res.form
        return encode_graph(res.graph, fmt)


# ---------------------------------------------------------------------------
# Pure Python search
# ---------------------------------------------------------------------------

ArcKey = Tuple[Tuple[int, int], ...]


def _arc_key(adj: Adjacency, pos: Colors) -> ArcKey:
    arcs = []
    for v in range(adj.n):
        for u in adj.out[v]:
            if adj.directed:
                arcs.append((pos[v], pos[u]))
            elif v <= u:
                a, b = pos[v], pos[u]
                arcs.append((a, b) if a <= b else (b, a))
    arcs.sort()
    return tuple(arcs)


def _orbit(v: int, gens: List[Tuple[int, ...]]) -> set:
    seen = {v}
    stack = [v]
    while stack:
        x = stack.pop()
        for g in gens:
            y = g[x]
            if y not in seen:
                seen.add(y)
                stack.append(y)
    return seen


class _Search:
    """One individualisation-refinement search over a single graph.

    The leaf with the smallest relabelled arc list is canonical.  When a
    leaf equals the best one, the map between them is an automorphism that
    fixes the common path prefix; it is recorded for orbit pruning and the
    search jumps back to the level where the two paths diverge.
    """

    def __init__(self, adj: Adjacency, invariant: InvariantSpec):
        self.adj = adj
        self.invariant = invariant
        self.best_key: Optional[ArcKey] = None
        self.best_pos: Optional[Colors] = None
        self.best_path: List[int] = []
        self.automorphisms: List[Tuple[int, ...]] = []

    def _settle(self, colors: Colors, level: int) -> Colors:
        colors = refine(self.adj, colors)
        if self.invariant.active_at(level) and not is_discrete(colors):
            colors = refine(self.adj, apply_invariant(self.adj, colors, self.invariant))
        return colors

    def _leaf(self, pos: Colors, path: List[int]) -> Optional[int]:
        key = _arc_key(self.adj, pos)
        if self.best_key is None or key < self.best_key:
            self.best_key, self.best_pos, self.best_path = key, pos, list(path)
            return None
        if key == self.best_key:
            lab = [0] * self.adj.n
            for v, p in enumerate(self.best_pos):
                lab[p] = v
            self.automorphisms.append(tuple(lab[p] for p in pos))
            for depth, (a, b) in enumerate(zip(path, self.best_path)):
                if a != b:
                    return depth
        return None

    def search(self, colors: Colors, path: List[int], level: int) -> Optional[int]:
        colors = self._settle(colors, level)
        if is_discrete(colors):
            return self._leaf(colors, path)

        depth = len(path)
        explored: List[int] = []
        for v in target_cell(colors):
            if explored:
                gens = [g for g in self.automorphisms if all(g[p] == p for p in path)]
                if gens and not _orbit(v, gens).isdisjoint(explored):
                    continue
            explored.append(v)
            jump = self.search(individualize(colors, v), path + [v], level + 1)
            if jump is not None and jump < depth:
                return jump
        return None


class RefinementCanonicalizer(Canonicalizer):
    def canonicalize(self, G: AnyGraph, fmt: str = GRAPH6) -> CanonicalResult:
        self.check(G)
        adj = adjacency_from_graph(G)
        n = adj.n
        loops = tuple(int(v in adj.out[v]) for v in range(n))
        ranks = parse_partition(self.config.partition, n)
        initial = tuple(zip(ranks, loops))

        s = _Search(adj, self.config.invariant)
        s.search(refine(adj, initial), [], 1)
        pos = s.best_pos if s.best_pos is not None else ()

        labelling = [0] * n
        for v, p in enumerate(pos):
            labelling[p] = v

        H = nx.DiGraph() if adj.directed else nx.Graph()
        H.add_nodes_from(range(n))
        H.add_edges_from(
            (pos[v], pos[u]) for v in range(n) for u in adj.out[v]
        )
        return CanonicalResult(graph=H, labelling=tuple(labelling))


# ---------------------------------------------------------------------------
# nauty labelg
# ---------------------------------------------------------------------------

class LabelgCanonicalizer(Canonicalizer):
    def __init__(self, config: CanonConfig):
        super().__init__(config)
        if not labelg_available():
            raise ConfigurationError(
                "nauty backend requested but 'labelg' is not in PATH (set NAUTY_LABELG)."
            )

    def canonicalize(self, G: AnyGraph, fmt: str = GRAPH6) -> CanonicalResult:
        self.check(G)
        if G.is_directed():
            text = encode_graph(G, DIGRAPH6)
        elif nx.number_of_selfloops(G):
            text = encode_graph(G, SPARSE6)
        else:
            text = encode_graph(G, GRAPH6)
        args = labelg_args(
            fmt,
            mode=self.config.mode,
            partition=self.config.partition,
            invariant=self.config.invariant,
        )
        try:
            form = labelg_canonical(text, args)
        except RuntimeError as exc:
            raise EncodingError(str(exc)) from exc
        return CanonicalResult(graph=None, labelling=None, form=form)


def make_canonicalizer(config: CanonConfig) -> Canonicalizer:
    """Validate *config* and build the matching canonicalizer."""
    config.validate()
    if config.backend == "nauty":
        return LabelgCanonicalizer(config)
    return RefinementCanonicalizer(config)


def canonicalize(
    G: AnyGraph,
    partition: Optional[str] = None,
    invariant: Optional[InvariantSpec] = None,
    fmt: Optional[str] = None,
) -> Tuple[str, Tuple[int, ...]]:
    """Return (canonical_form, labelling) using the pure Python search."""
    if fmt is None:
        fmt = DIGRAPH6 if G.is_directed() else GRAPH6
    config = CanonConfig(partition=partition, invariant=invariant or InvariantSpec())
    res = RefinementCanonicalizer(config).canonicalize(G, fmt)
    return encode_graph(res.graph, fmt), res.labelling  # type: ignore[return-value]
