"""Tests for colour refinement."""
import networkx as nx

from isofilter.canon.refine import (
    adjacency_from_graph,
    cells,
    individualize,
    is_discrete,
    refine,
    target_cell,
)


def _adj(edges, n, directed=False):
    G = nx.DiGraph() if directed else nx.Graph()
    G.add_nodes_from(range(n))
    G.add_edges_from(edges)
    return adjacency_from_graph(G)


def test_refine_complete():
    adj = _adj([(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)], 4)
    colors = refine(adj, (0,) * 4)
    assert len(set(colors)) == 1


def test_refine_path():
    # P4: endpoints together, middle vertices together, endpoints first
    adj = _adj([(0, 1), (1, 2), (2, 3)], 4)
    colors = refine(adj, (0,) * 4)
    assert colors[0] == colors[3]
    assert colors[1] == colors[2]
    assert colors[0] < colors[1]


def test_refine_keeps_cell_order():
    # The initial cell order survives refinement.
    adj = _adj([(0, 1), (1, 2), (2, 3)], 4)
    colors = refine(adj, (1, 1, 0, 0))
    assert max(colors[2], colors[3]) < min(colors[0], colors[1])


def test_refine_cycle_fixpoint():
    adj = _adj([(0, 1), (1, 2), (2, 3), (3, 4), (4, 0)], 5)
    assert len(set(refine(adj, (0,) * 5))) == 1


def test_refine_directed_in_and_out():
    # 0 -> 1 -> 2: source, middle and sink all differ
    adj = _adj([(0, 1), (1, 2)], 3, directed=True)
    colors = refine(adj, (0, 0, 0))
    assert is_discrete(colors)


def test_individualize_then_refine_cycle():
    adj = _adj([(0, 1), (1, 2), (2, 3), (3, 0)], 4)
    colors = refine(adj, individualize(refine(adj, (0,) * 4), 0))
    assert colors[0] == 0
    assert colors[1] == colors[3]
    assert colors[2] not in (colors[0], colors[1])


def test_cells_and_target_cell():
    colors = (1, 0, 1, 2)
    assert cells(colors) == [[1], [0, 2], [3]]
    assert target_cell(colors) == [0, 2]
    assert target_cell((0, 1, 2)) == []
