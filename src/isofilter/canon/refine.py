"""Colour refinement (equitable ordered partitions) for graphs and digraphs."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import networkx as nx


Colors = Tuple[int, ...]


@dataclass(frozen=True)
class Adjacency:
    """Out- and in-neighbour sets of a graph on 0..n-1.

    For undirected graphs both lists are the same neighbour sets.
    """

    n: int
    out: Tuple[frozenset, ...]
    inn: Tuple[frozenset, ...]
    directed: bool

    def adjacent(self, u: int, v: int) -> bool:
        """Adjacent in either direction."""
        return v in self.out[u] or u in self.out[v]

    def has_loops(self) -> bool:
        return any(v in self.out[v] for v in range(self.n))


def adjacency_from_graph(G: nx.Graph) -> Adjacency:
    n = G.number_of_nodes()
    if set(G.nodes()) != set(range(n)):
        G = nx.convert_node_labels_to_integers(G)
    directed = G.is_directed()
    out = tuple(frozenset(G.successors(v) if directed else G.neighbors(v)) for v in range(n))
    inn = tuple(frozenset(G.predecessors(v)) for v in range(n)) if directed else out
    return Adjacency(n=n, out=out, inn=inn, directed=directed)


def _relabel(keys: Sequence) -> Colors:
    """Dense colour ids that preserve the order of the keys."""
    uniq: Dict[object, int] = {k: i for i, k in enumerate(sorted(set(keys)))}
    return tuple(uniq[k] for k in keys)


def _refine_once(adj: Adjacency, colors: Colors) -> Colors:
    """One round of WL-1 colour refinement."""
    sigs = []
    for v in range(adj.n):
        out_cnt: Counter[int] = Counter(colors[u] for u in adj.out[v])
        sig: tuple = (colors[v], tuple(sorted(out_cnt.items())))
        if adj.directed:
            in_cnt: Counter[int] = Counter(colors[u] for u in adj.inn[v])
            sig += (tuple(sorted(in_cnt.items())),)
        sigs.append(sig)
    return _relabel(sigs)


def refine(adj: Adjacency, colors: Sequence[int]) -> Colors:
    """Iterate refinement to an equitable partition.

    The signature of a vertex starts with its current colour, so cells only
    split and the relative order of the cells is kept.
    """
    colors = _relabel(colors)
    k = len(set(colors))
    while True:
        newc = _refine_once(adj, colors)
        k_new = len(set(newc))
        if k_new == k:
            return newc
        colors, k = newc, k_new


def individualize(colors: Colors, v: int) -> Colors:
    """Split v off into a singleton cell placed first within its old cell."""
    keys = [2 * c + 1 for c in colors]
    keys[v] = 2 * colors[v]
    return _relabel(keys)


def is_discrete(colors: Colors) -> bool:
    return len(set(colors)) == len(colors)


def cells(colors: Colors) -> List[List[int]]:
    """Cells in colour order, vertices ascending within each cell."""
    groups: Dict[int, List[int]] = {}
    for v, c in enumerate(colors):
        groups.setdefault(c, []).append(v)
    return [groups[c] for c in sorted(groups)]


def target_cell(colors: Colors) -> List[int]:
    """The first non-singleton cell, or [] if the partition is discrete."""
    for cell in cells(colors):
        if len(cell) > 1:
            return cell
    return []
